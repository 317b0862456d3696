"""Shared test fixtures."""

import threading
import time
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime

import pytest

from face_attendance.config import Settings
from face_attendance.containers import AppContainer
from face_attendance.domain.attendance import (
    AttendanceFilter,
    AttendanceRow,
    AttendanceSession,
)
from face_attendance.domain.employees import EmployeeRecord, GalleryEntry
from face_attendance.domain.errors import SessionConflictError
from face_attendance.services.embeddings import EmbeddingProvider, EmbeddingService
from face_attendance.services.employees import EmployeeRepository, EmployeeService
from face_attendance.services.ledger import AttendanceLedger, LedgerRepository
from face_attendance.services.recognition import GalleryRepository, RecognitionService
from face_attendance.services.reports import AttendanceReportService


@dataclass
class InMemoryAttendanceRepository(LedgerRepository):
    """In-memory session store enforcing one open session per key."""

    employees: dict[int, EmployeeRecord] = field(default_factory=dict)
    sessions: dict[int, AttendanceSession] = field(default_factory=dict)
    read_delay: float = 0.0
    fail_with: Exception | None = None
    _next_id: int = 1
    _guard: threading.Lock = field(default_factory=threading.Lock)

    def latest_session(
        self, employee_id: int, calendar_date: date
    ) -> AttendanceSession | None:
        self._maybe_fail()
        with self._guard:
            matching = self._for_key(employee_id, calendar_date)
        if self.read_delay:
            time.sleep(self.read_delay)
        return matching[-1] if matching else None

    def count_open_sessions(self, employee_id: int, calendar_date: date) -> int:
        self._maybe_fail()
        with self._guard:
            return sum(
                1
                for session in self._for_key(employee_id, calendar_date)
                if session.check_out is None
            )

    def create_session(
        self, employee_id: int, calendar_date: date, check_in: datetime
    ) -> AttendanceSession:
        self._maybe_fail()
        with self._guard:
            if any(
                session.check_out is None
                for session in self._for_key(employee_id, calendar_date)
            ):
                raise SessionConflictError("open session exists")
            session = AttendanceSession(
                id=self._next_id,
                employee_id=employee_id,
                calendar_date=calendar_date,
                check_in=check_in,
            )
            self._next_id += 1
            self.sessions[session.id] = session
            return session

    def close_session(self, session_id: int, check_out: datetime) -> AttendanceSession:
        self._maybe_fail()
        with self._guard:
            session = self.sessions[session_id]
            if session.check_out is not None:
                raise SessionConflictError("session already closed")
            updated = replace(session, check_out=check_out)
            self.sessions[session_id] = updated
            return updated

    def set_check_in(self, session_id: int, check_in: datetime) -> AttendanceSession:
        self._maybe_fail()
        with self._guard:
            session = self.sessions[session_id]
            if session.check_in is not None:
                raise SessionConflictError("session already has a check-in")
            updated = replace(session, check_in=check_in)
            self.sessions[session_id] = updated
            return updated

    def list_sessions(self, attendance_filter: AttendanceFilter) -> list[AttendanceRow]:
        self._maybe_fail()
        rows = []
        for session in self.sessions.values():
            if not attendance_filter.matches(session):
                continue
            employee = self.employees.get(session.employee_id)
            rows.append(
                AttendanceRow(
                    session=session,
                    employee_name=employee.name if employee else "",
                    employee_email=employee.email if employee else None,
                    department=employee.department if employee else None,
                )
            )
        return sorted(
            rows,
            key=lambda row: (
                -row.session.calendar_date.toordinal(),
                row.employee_name,
                row.session.id,
            ),
        )

    def insert_raw(self, session: AttendanceSession) -> AttendanceSession:
        """Store a session as-is, bypassing ledger rules."""
        with self._guard:
            self.sessions[session.id] = session
            self._next_id = max(self._next_id, session.id + 1)
        return session

    def open_sessions(self, employee_id: int, calendar_date: date) -> list[int]:
        return [
            session.id
            for session in self._for_key(employee_id, calendar_date)
            if session.is_open
        ]

    def _for_key(self, employee_id: int, calendar_date: date) -> list[AttendanceSession]:
        return sorted(
            (
                session
                for session in self.sessions.values()
                if session.employee_id == employee_id
                and session.calendar_date == calendar_date
            ),
            key=lambda session: session.id,
        )

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with


@dataclass
class InMemoryEmployeeRepository(EmployeeRepository, GalleryRepository):
    """In-memory employee repository for tests."""

    employees: dict[int, EmployeeRecord] = field(default_factory=dict)
    attendance: InMemoryAttendanceRepository | None = None
    gallery_reads: int = 0
    _next_id: int = 1

    def create_employee(
        self,
        name: str,
        email: str,
        department: str | None,
        face_descriptor: tuple[float, ...] | None,
    ) -> EmployeeRecord:
        employee = EmployeeRecord(
            id=self._next_id,
            name=name,
            email=email,
            department=department,
            face_descriptor=face_descriptor,
            created_at=datetime.now(tz=UTC),
        )
        self._next_id += 1
        self.employees[employee.id] = employee
        return employee

    def get_employee(self, employee_id: int) -> EmployeeRecord | None:
        return self.employees.get(employee_id)

    def get_by_email(self, email: str) -> EmployeeRecord | None:
        for employee in self.employees.values():
            if employee.email == email:
                return employee
        return None

    def list_employees(self) -> list[EmployeeRecord]:
        return [self.employees[key] for key in sorted(self.employees)]

    def update_employee(
        self, employee_id: int, changes: dict[str, object]
    ) -> EmployeeRecord:
        updated = replace(self.employees[employee_id], **changes)
        self.employees[employee_id] = updated
        return updated

    def delete_employee(self, employee_id: int) -> None:
        if self.attendance is not None:
            for session_id in [
                session.id
                for session in self.attendance.sessions.values()
                if session.employee_id == employee_id
            ]:
                del self.attendance.sessions[session_id]
        self.employees.pop(employee_id, None)

    def list_enrolled(self) -> list[GalleryEntry]:
        self.gallery_reads += 1
        return [
            GalleryEntry(employee_id=employee.id, descriptor=employee.face_descriptor)
            for employee in self.list_employees()
            if employee.face_descriptor is not None
        ]

    def get_descriptor(self, employee_id: int) -> tuple[float, ...] | None:
        employee = self.employees.get(employee_id)
        return employee.face_descriptor if employee else None


@dataclass
class FakeEmbeddingProvider(EmbeddingProvider):
    """Embedding provider returning a fixed descriptor."""

    descriptor: list[float] = field(default_factory=lambda: [0.1, 0.2, 0.3])
    error: Exception | None = None
    opened: bool = False
    images: list[bytes] = field(default_factory=list)

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.opened = False

    async def embed(self, image_bytes: bytes) -> list[float]:
        self.images.append(image_bytes)
        if self.error is not None:
            raise self.error
        return self.descriptor


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        embedding_dimension=3,
    )


@pytest.fixture
def employee_repository() -> InMemoryEmployeeRepository:
    return InMemoryEmployeeRepository()


@pytest.fixture
def attendance_repository(
    employee_repository: InMemoryEmployeeRepository,
) -> InMemoryAttendanceRepository:
    repository = InMemoryAttendanceRepository(employees=employee_repository.employees)
    employee_repository.attendance = repository
    return repository


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def ledger(
    attendance_repository: InMemoryAttendanceRepository,
    employee_repository: InMemoryEmployeeRepository,
) -> AttendanceLedger:
    return AttendanceLedger(
        repository=attendance_repository,
        employee_repository=employee_repository,
        timezone_name="Asia/Kolkata",
    )


@pytest.fixture
def container(
    settings: Settings,
    employee_repository: InMemoryEmployeeRepository,
    attendance_repository: InMemoryAttendanceRepository,
    embedding_provider: FakeEmbeddingProvider,
    ledger: AttendanceLedger,
) -> AppContainer:
    embedding_service = EmbeddingService(
        provider=embedding_provider,
        expected_dimension=settings.embedding_dimension,
    )

    async def open_resources() -> None:
        await embedding_provider.open()

    async def close_resources() -> None:
        await embedding_provider.close()

    return AppContainer(
        settings=settings,
        embedding_provider=embedding_provider,
        employee_service=EmployeeService(
            employee_repository, expected_dimension=settings.embedding_dimension
        ),
        recognition_service=RecognitionService(
            gallery_repository=employee_repository,
            embedding_service=embedding_service,
            threshold=settings.match_threshold,
            expected_dimension=settings.embedding_dimension,
        ),
        attendance_ledger=ledger,
        report_service=AttendanceReportService(attendance_repository),
        open_resources=open_resources,
        close_resources=close_resources,
    )
