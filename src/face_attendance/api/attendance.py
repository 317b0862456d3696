"""Attendance ledger endpoints."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse

from face_attendance.api.schemas import (
    AttendanceRecordOut,
    AttendanceRequest,
    LedgerResponse,
    SessionOut,
)
from face_attendance.domain.attendance import (
    LedgerOutcome,
    OutcomeKind,
    RejectionReason,
)

if TYPE_CHECKING:
    from face_attendance.containers import AppContainer

router = APIRouter(prefix="/attendance", tags=["attendance"])

_OUTCOME_RESPONSES: dict[OutcomeKind, tuple[int, str]] = {
    OutcomeKind.ENTER_RECORDED: (
        status.HTTP_201_CREATED,
        "Check-in recorded successfully",
    ),
    OutcomeKind.LEAVE_RECORDED: (status.HTTP_200_OK, "Check-out recorded successfully"),
    OutcomeKind.ALREADY_OPEN: (status.HTTP_200_OK, "Employee already checked in"),
    OutcomeKind.STORAGE_UNAVAILABLE: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Attendance storage is unavailable, please retry",
    ),
    OutcomeKind.TIMEOUT: (
        status.HTTP_504_GATEWAY_TIMEOUT,
        "Attendance update timed out, please retry",
    ),
}

_REJECTION_RESPONSES: dict[RejectionReason, tuple[int, str]] = {
    RejectionReason.NO_OPEN_SESSION: (
        status.HTTP_400_BAD_REQUEST,
        "Cannot check out without checking in first",
    ),
    RejectionReason.ALREADY_CLOSED: (
        status.HTTP_200_OK,
        "Employee already checked out",
    ),
    RejectionReason.LEAVE_NOT_AFTER_ENTER: (
        status.HTTP_400_BAD_REQUEST,
        "Check-out time must be after the check-in time",
    ),
    RejectionReason.ENTER_BEFORE_LAST_LEAVE: (
        status.HTTP_400_BAD_REQUEST,
        "Check-in time must be after the previous check-out",
    ),
}


@router.get("")
async def list_attendance(
    request: Request,
    on_date: date | None = Query(default=None, alias="date"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    employee_id: int | None = Query(default=None, alias="employeeId"),
) -> dict[str, list[AttendanceRecordOut]]:
    """Return attendance records filtered by date, range and employee."""
    container: AppContainer = request.app.state.container
    rows = container.report_service.list_records(
        on_date=on_date,
        start_date=start_date,
        end_date=end_date,
        employee_id=employee_id,
    )
    return {"attendanceRecords": [AttendanceRecordOut.from_row(row) for row in rows]}


@router.get("/report")
async def attendance_report(
    request: Request,
    on_date: date | None = Query(default=None, alias="date"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    employee_id: int | None = Query(default=None, alias="employeeId"),
) -> dict[str, object]:
    """Return worked hours per employee for the filtered period."""
    container: AppContainer = request.app.state.container
    summaries = container.report_service.summarize(
        on_date=on_date,
        start_date=start_date,
        end_date=end_date,
        employee_id=employee_id,
    )
    return {
        "employees": [
            {
                "employeeId": item.employee_id,
                "name": item.employee_name,
                "sessions": item.sessions,
                "openSessions": item.open_sessions,
                "days": item.days,
                "totalHours": item.total_hours,
            }
            for item in summaries
        ]
    }


@router.post("")
async def record_attendance(
    payload: AttendanceRequest, request: Request
) -> JSONResponse:
    """Record a check-in or check-out for an employee."""
    container: AppContainer = request.app.state.container
    outcome = container.attendance_ledger.apply(
        payload.employee_id, payload.action, payload.timestamp
    )
    status_code, body = _ledger_response(outcome)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(mode="json", by_alias=True)
    )


def _ledger_response(outcome: LedgerOutcome) -> tuple[int, LedgerResponse]:
    if outcome.kind is OutcomeKind.REJECTED and outcome.reason is not None:
        status_code, message = _REJECTION_RESPONSES[outcome.reason]
    else:
        status_code, message = _OUTCOME_RESPONSES[outcome.kind]
    return status_code, LedgerResponse(
        outcome=outcome.kind.value,
        message=message,
        reason=outcome.reason.value if outcome.reason else None,
        attendance=(
            SessionOut.from_session(outcome.session) if outcome.session else None
        ),
    )
