"""Worked-hours summaries over attendance sessions."""

from dataclasses import dataclass
from datetime import date

from face_attendance.domain.attendance import AttendanceFilter, AttendanceRow
from face_attendance.services.ledger import LedgerRepository


@dataclass(frozen=True)
class EmployeeHours:
    """Worked hours for one employee across the filtered sessions."""

    employee_id: int
    employee_name: str
    sessions: int
    open_sessions: int
    days: int
    total_hours: float


@dataclass
class AttendanceReportService:
    """Service for listing attendance and summarizing worked hours."""

    repository: LedgerRepository

    def list_records(
        self,
        on_date: date | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        employee_id: int | None = None,
    ) -> list[AttendanceRow]:
        """Return attendance rows for the given optional filters."""
        return self.repository.list_sessions(
            build_filter(on_date, start_date, end_date, employee_id)
        )

    def summarize(
        self,
        on_date: date | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        employee_id: int | None = None,
    ) -> list[EmployeeHours]:
        """Return per-employee worked hours ordered by employee name."""
        rows = self.list_records(on_date, start_date, end_date, employee_id)
        return _aggregate(rows)


def build_filter(
    on_date: date | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    employee_id: int | None = None,
) -> AttendanceFilter:
    """Compose optional listing parameters into one attendance filter."""
    attendance_filter = AttendanceFilter()
    if on_date is not None:
        attendance_filter = attendance_filter.on_date(on_date)
    if start_date is not None or end_date is not None:
        attendance_filter = attendance_filter.between(start_date, end_date)
    if employee_id is not None:
        attendance_filter = attendance_filter.for_employee(employee_id)
    return attendance_filter


def _aggregate(rows: list[AttendanceRow]) -> list[EmployeeHours]:
    grouped: dict[int, list[AttendanceRow]] = {}
    for row in rows:
        grouped.setdefault(row.session.employee_id, []).append(row)
    summaries = []
    for employee_id, employee_rows in grouped.items():
        hours = [
            row.session.worked_hours
            for row in employee_rows
            if row.session.worked_hours is not None
        ]
        summaries.append(
            EmployeeHours(
                employee_id=employee_id,
                employee_name=employee_rows[0].employee_name,
                sessions=len(employee_rows),
                open_sessions=sum(1 for row in employee_rows if row.session.is_open),
                days=len({row.session.calendar_date for row in employee_rows}),
                total_hours=round(sum(hours), 2),
            )
        )
    return sorted(summaries, key=lambda item: (item.employee_name, item.employee_id))
