"""Embedding provider port and service."""

import base64
import binascii
from dataclasses import dataclass
from typing import Protocol

from face_attendance.domain.descriptors import normalize_descriptor
from face_attendance.domain.errors import InvalidInputError, ModelUnavailableError


class EmbeddingProvider(Protocol):
    """Interface for models converting a face image to a descriptor."""

    async def open(self) -> None:
        """Acquire model resources before first use."""

    async def close(self) -> None:
        """Release model resources."""

    async def embed(self, image_bytes: bytes) -> list[float]:
        """Return the descriptor for the single face in the image."""


@dataclass
class EmbeddingService:
    """Service that validates images and descriptors around a provider."""

    provider: EmbeddingProvider
    expected_dimension: int | None = None

    async def embed(self, image_bytes: bytes) -> tuple[float, ...]:
        """Embed an image and validate the returned descriptor."""
        if not image_bytes:
            raise InvalidInputError("Image payload is empty")
        raw = await self.provider.embed(image_bytes)
        try:
            descriptor = normalize_descriptor(raw)
        except InvalidInputError as exc:
            raise ModelUnavailableError("Model returned an invalid descriptor") from exc
        if (
            self.expected_dimension is not None
            and len(descriptor) != self.expected_dimension
        ):
            raise ModelUnavailableError(
                f"Model returned {len(descriptor)} values, "
                f"expected {self.expected_dimension}"
            )
        return descriptor

    async def embed_base64(self, payload: str) -> tuple[float, ...]:
        """Embed a base64 image, accepting data URLs."""
        return await self.embed(decode_image(payload))


def decode_image(payload: str) -> bytes:
    """Decode a base64 string or data URL into image bytes."""
    encoded = payload
    if payload.startswith("data:"):
        _header, separator, encoded = payload.partition(",")
        if not separator:
            raise InvalidInputError("Image data URL has no payload")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError("Image payload is not valid base64") from exc
