"""Pydantic models for API payloads."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from face_attendance.domain.attendance import AttendanceRow, AttendanceSession
from face_attendance.domain.employees import EmployeeRecord


class ApiModel(BaseModel):
    """Base model exposing camelCase JSON names; field names are accepted too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmployeeCreate(ApiModel):
    """Payload for registering an employee."""

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    face_descriptor: list[float] | None = None


class EmployeeUpdate(ApiModel):
    """Partial update; a descriptor re-enrolls the employee."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, min_length=3, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    face_descriptor: list[float] | None = None


class EmployeeOut(ApiModel):
    """Employee details returned by the API."""

    id: int
    name: str
    email: str
    department: str | None
    enrolled: bool
    created_at: datetime | None

    @classmethod
    def from_record(cls, record: EmployeeRecord) -> "EmployeeOut":
        return cls(
            id=record.id,
            name=record.name,
            email=record.email,
            department=record.department,
            enrolled=record.is_enrolled,
            created_at=record.created_at,
        )


class IdentifyRequest(ApiModel):
    """Either a precomputed descriptor or a base64 image."""

    face_descriptor: list[float] | None = None
    image_base64: str | None = None

    @model_validator(mode="after")
    def _one_source(self) -> "IdentifyRequest":
        if (self.face_descriptor is None) == (self.image_base64 is None):
            raise ValueError("Provide exactly one of faceDescriptor or imageBase64")
        return self


class IdentifyResponse(ApiModel):
    """A resolved employee."""

    employee_id: int
    name: str
    confidence: float
    distance: float


class AttendanceRequest(ApiModel):
    """Check-in or check-out request."""

    employee_id: int
    action: str
    timestamp: datetime | None = None


class SessionOut(ApiModel):
    """Attendance session returned by the API."""

    id: int
    employee_id: int
    date: date
    check_in: datetime | None
    check_out: datetime | None
    worked_hours: float | None

    @classmethod
    def from_session(cls, session: AttendanceSession) -> "SessionOut":
        return cls(
            id=session.id,
            employee_id=session.employee_id,
            date=session.calendar_date,
            check_in=session.check_in,
            check_out=session.check_out,
            worked_hours=session.worked_hours,
        )


class AttendanceRecordOut(SessionOut):
    """Attendance session joined with employee details."""

    name: str
    email: str | None
    department: str | None

    @classmethod
    def from_row(cls, row: AttendanceRow) -> "AttendanceRecordOut":
        session = SessionOut.from_session(row.session)
        return cls(
            **session.model_dump(),
            name=row.employee_name,
            email=row.employee_email,
            department=row.department,
        )


class LedgerResponse(ApiModel):
    """Outcome of a check-in or check-out request."""

    outcome: str
    message: str
    reason: str | None = None
    attendance: SessionOut | None = None
