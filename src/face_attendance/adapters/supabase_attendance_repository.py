"""Supabase-backed attendance session repository."""

from dataclasses import dataclass
from datetime import date, datetime

from supabase import Client

from face_attendance.adapters.supabase_errors import storage_errors
from face_attendance.domain.attendance import (
    AttendanceFilter,
    AttendanceRow,
    AttendanceSession,
    FilterField,
)
from face_attendance.domain.errors import SessionConflictError, StorageUnavailableError
from face_attendance.services.ledger import LedgerRepository

_COLUMNS = "id, employee_id, date, check_in, check_out"
_FILTER_COLUMNS = {
    FilterField.CALENDAR_DATE: "date",
    FilterField.EMPLOYEE_ID: "employee_id",
}


@dataclass
class SupabaseAttendanceRepository(LedgerRepository):
    """Supabase implementation for attendance sessions.

    Writes are conditional on the row still being in the state the ledger
    read, and the ``attendance_one_open_session`` partial unique index rejects
    a second open session per employee and date.
    """

    client: Client

    def latest_session(
        self, employee_id: int, calendar_date: date
    ) -> AttendanceSession | None:
        """Return the newest session for the employee and date."""
        with storage_errors("read latest session"):
            response = (
                self.client.table("attendance")
                .select(_COLUMNS)
                .eq("employee_id", employee_id)
                .eq("date", calendar_date.isoformat())
                .order("id", desc=True)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def count_open_sessions(self, employee_id: int, calendar_date: date) -> int:
        """Return the number of sessions still missing a check-out."""
        with storage_errors("count open sessions"):
            response = (
                self.client.table("attendance")
                .select("id")
                .eq("employee_id", employee_id)
                .eq("date", calendar_date.isoformat())
                .is_("check_out", "null")
                .execute()
            )
        return len(response.data or [])

    def create_session(
        self, employee_id: int, calendar_date: date, check_in: datetime
    ) -> AttendanceSession:
        """Insert an open session row."""
        with storage_errors("create session", on_conflict=SessionConflictError):
            response = (
                self.client.table("attendance")
                .insert(
                    {
                        "employee_id": employee_id,
                        "date": calendar_date.isoformat(),
                        "check_in": check_in.isoformat(),
                    }
                )
                .execute()
            )
        if not response.data:
            raise StorageUnavailableError("Failed to create session")
        return _to_session(response.data[0])

    def close_session(self, session_id: int, check_out: datetime) -> AttendanceSession:
        """Set check-out only if the session is still open."""
        with storage_errors("close session"):
            response = (
                self.client.table("attendance")
                .update({"check_out": check_out.isoformat()})
                .eq("id", session_id)
                .is_("check_out", "null")
                .execute()
            )
        if not response.data:
            raise SessionConflictError(f"Session {session_id} is no longer open")
        return _to_session(response.data[0])

    def set_check_in(self, session_id: int, check_in: datetime) -> AttendanceSession:
        """Set check-in only if the session still lacks one."""
        with storage_errors("repair session check-in"):
            response = (
                self.client.table("attendance")
                .update({"check_in": check_in.isoformat()})
                .eq("id", session_id)
                .is_("check_in", "null")
                .execute()
            )
        if not response.data:
            raise SessionConflictError(f"Session {session_id} already has a check-in")
        return _to_session(response.data[0])

    def list_sessions(self, attendance_filter: AttendanceFilter) -> list[AttendanceRow]:
        """Return sessions matching the filter, joined with employee details."""
        query = self.client.table("attendance").select(
            f"{_COLUMNS}, employees(name, email, department)"
        )
        for predicate in attendance_filter.predicates:
            value = predicate.value
            query = getattr(query, predicate.op.value)(
                _FILTER_COLUMNS[predicate.field],
                value.isoformat() if isinstance(value, date) else value,
            )
        with storage_errors("list sessions"):
            response = query.order("date", desc=True).order("id").execute()
        rows = [_to_row(row) for row in response.data or []]
        return sorted(
            rows,
            key=lambda row: (
                -row.session.calendar_date.toordinal(),
                row.employee_name,
                row.session.id,
            ),
        )


def _parse_timestamp(value: object) -> datetime | None:
    return datetime.fromisoformat(str(value)) if value else None


def _to_session(row: dict[str, object]) -> AttendanceSession:
    return AttendanceSession(
        id=int(row["id"]),
        employee_id=int(row["employee_id"]),
        calendar_date=date.fromisoformat(str(row["date"])),
        check_in=_parse_timestamp(row.get("check_in")),
        check_out=_parse_timestamp(row.get("check_out")),
    )


def _to_row(row: dict[str, object]) -> AttendanceRow:
    employee = row.get("employees") or {}
    if not isinstance(employee, dict):
        employee = {}
    return AttendanceRow(
        session=_to_session(row),
        employee_name=str(employee.get("name", "")),
        employee_email=employee.get("email"),
        department=employee.get("department"),
    )
