"""Domain models for attendance sessions and ledger outcomes."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum

from face_attendance.domain.errors import InconsistentStateError, InvalidInputError

SECONDS_PER_HOUR = 3600


class AttendanceAction(str, Enum):
    """Actions a client can request against the ledger."""

    ENTER = "check-in"
    LEAVE = "check-out"

    @classmethod
    def parse(cls, raw: str) -> "AttendanceAction":
        """Parse an action string, raising InvalidInputError when unknown."""
        try:
            return cls(raw)
        except ValueError as exc:
            raise InvalidInputError(
                'Invalid action. Use "check-in" or "check-out"'
            ) from exc


class CivilDayPolicy(str, Enum):
    """How the ledger decides which calendar day a call belongs to."""

    TIMESTAMP = "timestamp"
    SERVER_CLOCK = "server_clock"


@dataclass(frozen=True)
class AttendanceSession:
    """One check-in/check-out pair for an employee on a calendar day."""

    id: int
    employee_id: int
    calendar_date: date
    check_in: datetime | None = None
    check_out: datetime | None = None

    def __post_init__(self) -> None:
        if (
            self.check_in is not None
            and self.check_out is not None
            and self.check_out <= self.check_in
        ):
            raise InconsistentStateError(
                f"Session {self.id} has check_out not after check_in"
            )

    @property
    def is_open(self) -> bool:
        """Return True while the session has a check-in but no check-out."""
        return self.check_in is not None and self.check_out is None

    @property
    def is_closed(self) -> bool:
        """Return True once a check-out has been recorded."""
        return self.check_out is not None

    @property
    def worked_hours(self) -> float | None:
        """Return the closed session length in hours, rounded to 2 places."""
        if self.check_in is None or self.check_out is None:
            return None
        seconds = (self.check_out - self.check_in).total_seconds()
        return round(seconds / SECONDS_PER_HOUR, 2)


@dataclass(frozen=True)
class AttendanceRow:
    """An attendance session joined with employee details for listings."""

    session: AttendanceSession
    employee_name: str
    employee_email: str | None = None
    department: str | None = None


class OutcomeKind(str, Enum):
    """Kinds of ledger results returned to callers."""

    ENTER_RECORDED = "enter_recorded"
    LEAVE_RECORDED = "leave_recorded"
    ALREADY_OPEN = "already_open"
    REJECTED = "rejected"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    TIMEOUT = "timeout"


class RejectionReason(str, Enum):
    """Business-rule rejections; these are normal results, not failures."""

    NO_OPEN_SESSION = "no_open_session"
    ALREADY_CLOSED = "already_closed"
    LEAVE_NOT_AFTER_ENTER = "leave_not_after_enter"
    ENTER_BEFORE_LAST_LEAVE = "enter_before_last_leave"


@dataclass(frozen=True)
class LedgerOutcome:
    """Result of applying one action to the ledger."""

    kind: OutcomeKind
    session: AttendanceSession | None = None
    reason: RejectionReason | None = None
    detail: str | None = None

    @classmethod
    def enter_recorded(cls, session: AttendanceSession) -> "LedgerOutcome":
        return cls(kind=OutcomeKind.ENTER_RECORDED, session=session)

    @classmethod
    def leave_recorded(cls, session: AttendanceSession) -> "LedgerOutcome":
        return cls(kind=OutcomeKind.LEAVE_RECORDED, session=session)

    @classmethod
    def already_open(cls, session: AttendanceSession) -> "LedgerOutcome":
        return cls(kind=OutcomeKind.ALREADY_OPEN, session=session)

    @classmethod
    def rejected(
        cls, reason: RejectionReason, session: AttendanceSession | None = None
    ) -> "LedgerOutcome":
        return cls(kind=OutcomeKind.REJECTED, session=session, reason=reason)

    @classmethod
    def storage_unavailable(cls, detail: str) -> "LedgerOutcome":
        return cls(kind=OutcomeKind.STORAGE_UNAVAILABLE, detail=detail)

    @classmethod
    def timed_out(cls, detail: str) -> "LedgerOutcome":
        return cls(kind=OutcomeKind.TIMEOUT, detail=detail)


class FilterField(str, Enum):
    """Session fields that listings can be filtered on."""

    CALENDAR_DATE = "calendar_date"
    EMPLOYEE_ID = "employee_id"


class FilterOp(str, Enum):
    """Comparison operators supported by attendance filters."""

    EQ = "eq"
    GTE = "gte"
    LTE = "lte"


@dataclass(frozen=True)
class Predicate:
    """A single named comparison against a session field."""

    field: FilterField
    op: FilterOp
    value: date | int

    def matches(self, session: AttendanceSession) -> bool:
        """Evaluate the predicate against an in-memory session."""
        actual = getattr(session, self.field.value)
        if self.op is FilterOp.EQ:
            return actual == self.value
        if self.op is FilterOp.GTE:
            return actual >= self.value
        return actual <= self.value


@dataclass(frozen=True)
class AttendanceFilter:
    """Conjunction of predicates used to list attendance sessions."""

    predicates: tuple[Predicate, ...] = field(default_factory=tuple)

    def on_date(self, day: date) -> "AttendanceFilter":
        """Restrict to a single calendar date."""
        return self._with(Predicate(FilterField.CALENDAR_DATE, FilterOp.EQ, day))

    def between(
        self, start: date | None = None, end: date | None = None
    ) -> "AttendanceFilter":
        """Restrict to an inclusive calendar date range."""
        if start is not None and end is not None and start > end:
            raise InvalidInputError("start_date must not be after end_date")
        result = self
        if start is not None:
            result = result._with(
                Predicate(FilterField.CALENDAR_DATE, FilterOp.GTE, start)
            )
        if end is not None:
            result = result._with(
                Predicate(FilterField.CALENDAR_DATE, FilterOp.LTE, end)
            )
        return result

    def for_employee(self, employee_id: int) -> "AttendanceFilter":
        """Restrict to one employee."""
        return self._with(
            Predicate(FilterField.EMPLOYEE_ID, FilterOp.EQ, employee_id)
        )

    def matches(self, session: AttendanceSession) -> bool:
        """Return True when every predicate holds for the session."""
        return all(predicate.matches(session) for predicate in self.predicates)

    def _with(self, predicate: Predicate) -> "AttendanceFilter":
        return replace(self, predicates=(*self.predicates, predicate))
