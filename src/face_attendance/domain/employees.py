"""Domain models for enrolled employees."""

from dataclasses import dataclass
from datetime import datetime

from face_attendance.domain.errors import InvalidInputError


@dataclass(frozen=True)
class EmployeeRecord:
    """Represents an employee stored in the database."""

    id: int
    name: str
    email: str
    department: str | None = None
    face_descriptor: tuple[float, ...] | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise InvalidInputError("Employee name must not be blank")
        if not self.email.strip():
            raise InvalidInputError("Employee email must not be blank")

    @property
    def is_enrolled(self) -> bool:
        """Return True when the employee has a face descriptor."""
        return self.face_descriptor is not None


@dataclass(frozen=True)
class GalleryEntry:
    """One enrolled descriptor used during identification."""

    employee_id: int
    descriptor: tuple[float, ...]
