"""Translate Supabase client failures into domain errors."""

from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from postgrest.exceptions import APIError

from face_attendance.domain.errors import StorageTimeoutError, StorageUnavailableError

UNIQUE_VIOLATION = "23505"


@contextmanager
def storage_errors(
    operation: str, on_conflict: type[Exception] | None = None
) -> Iterator[None]:
    """Wrap a PostgREST call, mapping transport and API errors."""
    try:
        yield
    except httpx.TimeoutException as exc:
        raise StorageTimeoutError(f"{operation} timed out") from exc
    except httpx.HTTPError as exc:
        raise StorageUnavailableError(f"{operation} failed: {exc}") from exc
    except APIError as exc:
        if on_conflict is not None and exc.code == UNIQUE_VIOLATION:
            raise on_conflict(f"{operation} conflicted: {exc.message}") from exc
        raise StorageUnavailableError(f"{operation} failed: {exc.message}") from exc
