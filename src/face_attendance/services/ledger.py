"""Attendance ledger: per-employee, per-day check-in/check-out state machine."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from face_attendance.domain.attendance import (
    AttendanceAction,
    AttendanceFilter,
    AttendanceRow,
    AttendanceSession,
    CivilDayPolicy,
    LedgerOutcome,
    RejectionReason,
)
from face_attendance.domain.errors import (
    EmployeeNotFoundError,
    InconsistentStateError,
    InvalidInputError,
    SessionConflictError,
    StorageTimeoutError,
    StorageUnavailableError,
)
from face_attendance.services.employees import EmployeeRepository
from face_attendance.services.locks import KeyedLocks, LockTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Kolkata"
_DECISION_ATTEMPTS = 2


class LedgerRepository(Protocol):
    """Persistence interface for attendance sessions."""

    def latest_session(
        self, employee_id: int, calendar_date: date
    ) -> AttendanceSession | None:
        """Return the most recently created session for the key, if any."""

    def count_open_sessions(self, employee_id: int, calendar_date: date) -> int:
        """Return how many sessions for the key have no check-out yet."""

    def create_session(
        self, employee_id: int, calendar_date: date, check_in: datetime
    ) -> AttendanceSession:
        """Create an open session.

        Raises SessionConflictError if another open session exists for the key.
        """

    def close_session(self, session_id: int, check_out: datetime) -> AttendanceSession:
        """Set check-out on an open session.

        Raises SessionConflictError if the session was closed concurrently.
        """

    def set_check_in(self, session_id: int, check_in: datetime) -> AttendanceSession:
        """Set check-in on a session that is missing it.

        Raises SessionConflictError if check-in was set concurrently.
        """

    def list_sessions(self, attendance_filter: AttendanceFilter) -> list[AttendanceRow]:
        """Return sessions matching the filter with employee details."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class AttendanceLedger:
    """Applies check-in and check-out actions to attendance sessions.

    Writers are serialized per ``(employee_id, calendar_date)``. Business
    rejections, storage failures and timeouts are returned as outcomes;
    invalid input and inconsistent stored data raise.
    """

    repository: LedgerRepository
    employee_repository: EmployeeRepository
    timezone_name: str = DEFAULT_TIMEZONE
    day_policy: CivilDayPolicy = CivilDayPolicy.TIMESTAMP
    lock_timeout_seconds: float | None = 5.0
    clock: Callable[[], datetime] = _utc_now
    locks: KeyedLocks = field(default_factory=KeyedLocks)
    tz: ZoneInfo = field(init=False)

    def __post_init__(self) -> None:
        self.tz = ZoneInfo(self.timezone_name)

    def apply(
        self,
        employee_id: int,
        action: AttendanceAction | str,
        timestamp: datetime | None,
        timeout: float | None = None,
    ) -> LedgerOutcome:
        """Apply one action and return the resulting outcome."""
        if timestamp is None:
            raise InvalidInputError("Timestamp is required")
        if not isinstance(action, AttendanceAction):
            action = AttendanceAction.parse(action)
        moment = self.localize(timestamp)
        day = self.civil_date(moment)
        wait = self.lock_timeout_seconds if timeout is None else timeout
        if wait is not None and wait <= 0:
            raise InvalidInputError("Lock timeout must be positive")
        try:
            if self.employee_repository.get_employee(employee_id) is None:
                raise EmployeeNotFoundError(employee_id)
            with self.locks.acquire((employee_id, day), timeout=wait):
                return self._apply_locked(employee_id, action, moment, day)
        except LockTimeoutError:
            logger.warning(
                "Timed out waiting for ledger lock",
                extra={"employee_id": employee_id, "date": day.isoformat()},
            )
            return LedgerOutcome.timed_out("Timed out waiting for a concurrent update")
        except StorageTimeoutError:
            logger.warning(
                "Ledger storage call timed out",
                extra={"employee_id": employee_id, "date": day.isoformat()},
            )
            return LedgerOutcome.timed_out("Storage did not respond in time")
        except StorageUnavailableError as exc:
            logger.exception(
                "Ledger storage unavailable",
                extra={"employee_id": employee_id, "date": day.isoformat()},
            )
            return LedgerOutcome.storage_unavailable(str(exc))

    def localize(self, timestamp: datetime) -> datetime:
        """Return the timestamp as an aware datetime in the reference timezone.

        Naive timestamps are taken to already be reference-timezone wall time.
        """
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=self.tz)
        return timestamp.astimezone(self.tz)

    def civil_date(self, moment: datetime) -> date:
        """Return the calendar day a call at ``moment`` is booked against."""
        if self.day_policy is CivilDayPolicy.SERVER_CLOCK:
            return self.clock().astimezone(self.tz).date()
        return moment.astimezone(self.tz).date()

    def list_sessions(self, attendance_filter: AttendanceFilter) -> list[AttendanceRow]:
        """Return sessions matching the filter."""
        return self.repository.list_sessions(attendance_filter)

    def _apply_locked(
        self,
        employee_id: int,
        action: AttendanceAction,
        moment: datetime,
        day: date,
    ) -> LedgerOutcome:
        # A conflict means another process wrote the row between our read and
        # write; the decision is made again against fresh state.
        for attempt in range(_DECISION_ATTEMPTS):
            try:
                return self._transition(employee_id, action, moment, day)
            except SessionConflictError:
                logger.info(
                    "Ledger write conflicted, re-reading",
                    extra={"employee_id": employee_id, "attempt": attempt + 1},
                )
        return LedgerOutcome.storage_unavailable(
            "Session is being updated concurrently"
        )

    def _transition(
        self,
        employee_id: int,
        action: AttendanceAction,
        moment: datetime,
        day: date,
    ) -> LedgerOutcome:
        latest = self.repository.latest_session(employee_id, day)
        self._check_consistency(employee_id, day, latest)
        if action is AttendanceAction.ENTER:
            return self._enter(employee_id, day, moment, latest)
        return self._leave(moment, latest)

    def _check_consistency(
        self, employee_id: int, day: date, latest: AttendanceSession | None
    ) -> None:
        if latest is not None and latest.check_in is None and latest.is_closed:
            raise InconsistentStateError(
                f"Session {latest.id} has a check-out without a check-in"
            )
        open_count = self.repository.count_open_sessions(employee_id, day)
        latest_unclosed = 1 if latest is not None and latest.check_out is None else 0
        if open_count != latest_unclosed:
            raise InconsistentStateError(
                f"Employee {employee_id} has {open_count} open sessions "
                f"on {day.isoformat()}"
            )

    def _enter(
        self,
        employee_id: int,
        day: date,
        moment: datetime,
        latest: AttendanceSession | None,
    ) -> LedgerOutcome:
        if latest is None:
            session = self.repository.create_session(employee_id, day, moment)
            logger.info(
                "Check-in recorded",
                extra={"employee_id": employee_id, "session_id": session.id},
            )
            return LedgerOutcome.enter_recorded(session)
        if latest.check_in is None:
            session = self.repository.set_check_in(latest.id, moment)
            logger.warning(
                "Repaired session missing check-in",
                extra={"employee_id": employee_id, "session_id": session.id},
            )
            return LedgerOutcome.enter_recorded(session)
        if latest.is_open:
            return LedgerOutcome.already_open(latest)
        if latest.check_out is not None and moment <= latest.check_out:
            return LedgerOutcome.rejected(
                RejectionReason.ENTER_BEFORE_LAST_LEAVE, latest
            )
        session = self.repository.create_session(employee_id, day, moment)
        logger.info(
            "Check-in recorded",
            extra={"employee_id": employee_id, "session_id": session.id},
        )
        return LedgerOutcome.enter_recorded(session)

    def _leave(
        self, moment: datetime, latest: AttendanceSession | None
    ) -> LedgerOutcome:
        if latest is None or latest.check_in is None:
            return LedgerOutcome.rejected(RejectionReason.NO_OPEN_SESSION)
        if latest.is_closed:
            return LedgerOutcome.rejected(RejectionReason.ALREADY_CLOSED, latest)
        if moment <= latest.check_in:
            return LedgerOutcome.rejected(
                RejectionReason.LEAVE_NOT_AFTER_ENTER, latest
            )
        session = self.repository.close_session(latest.id, moment)
        logger.info(
            "Check-out recorded",
            extra={"employee_id": session.employee_id, "session_id": session.id},
        )
        return LedgerOutcome.leave_recorded(session)
