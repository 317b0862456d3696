"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import ClientOptions, create_client

from face_attendance.adapters.httpx_embedding_provider import HttpxEmbeddingProvider
from face_attendance.adapters.supabase_attendance_repository import (
    SupabaseAttendanceRepository,
)
from face_attendance.adapters.supabase_employee_repository import (
    SupabaseEmployeeRepository,
)
from face_attendance.config import Settings
from face_attendance.services.embeddings import EmbeddingProvider, EmbeddingService
from face_attendance.services.employees import EmployeeService
from face_attendance.services.ledger import AttendanceLedger
from face_attendance.services.recognition import RecognitionService
from face_attendance.services.reports import AttendanceReportService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    embedding_provider: EmbeddingProvider
    employee_service: EmployeeService
    recognition_service: RecognitionService
    attendance_ledger: AttendanceLedger
    report_service: AttendanceReportService
    open_resources: Callable[[], Awaitable[None]]
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_service_key,
        options=ClientOptions(
            postgrest_client_timeout=resolved_settings.storage_timeout_seconds
        ),
    )
    employee_repository = SupabaseEmployeeRepository(supabase_client)
    attendance_repository = SupabaseAttendanceRepository(supabase_client)
    embedding_provider = HttpxEmbeddingProvider.create(
        resolved_settings.embedding_service_url,
        timeout_seconds=resolved_settings.embedding_timeout_seconds,
    )
    embedding_service = EmbeddingService(
        provider=embedding_provider,
        expected_dimension=resolved_settings.embedding_dimension,
    )
    employee_service = EmployeeService(
        repository=employee_repository,
        expected_dimension=resolved_settings.embedding_dimension,
    )
    recognition_service = RecognitionService(
        gallery_repository=employee_repository,
        embedding_service=embedding_service,
        threshold=resolved_settings.match_threshold,
        expected_dimension=resolved_settings.embedding_dimension,
    )
    attendance_ledger = AttendanceLedger(
        repository=attendance_repository,
        employee_repository=employee_repository,
        timezone_name=resolved_settings.reference_timezone,
        day_policy=resolved_settings.civil_day_policy,
        lock_timeout_seconds=resolved_settings.ledger_lock_timeout_seconds,
    )
    report_service = AttendanceReportService(attendance_repository)

    async def open_resources() -> None:
        await embedding_provider.open()

    async def close_resources() -> None:
        await embedding_provider.close()

    return AppContainer(
        settings=resolved_settings,
        embedding_provider=embedding_provider,
        employee_service=employee_service,
        recognition_service=recognition_service,
        attendance_ledger=attendance_ledger,
        report_service=report_service,
        open_resources=open_resources,
        close_resources=close_resources,
    )
