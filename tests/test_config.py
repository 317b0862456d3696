"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from face_attendance.config import Settings


def test_settings_reject_non_positive_lock_timeout() -> None:
    with pytest.raises(ValidationError):
        Settings(
            supabase_url="https://example.supabase.co",
            supabase_service_key="service-key",
            ledger_lock_timeout_seconds=-1,
        )


def test_settings_reject_threshold_out_of_range() -> None:
    with pytest.raises(ValidationError):
        Settings(
            supabase_url="https://example.supabase.co",
            supabase_service_key="service-key",
            match_threshold=1.5,
        )
