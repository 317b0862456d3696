"""Supabase-backed employee and gallery repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from face_attendance.adapters.supabase_errors import storage_errors
from face_attendance.domain.descriptors import descriptor_to_text, text_to_descriptor
from face_attendance.domain.employees import EmployeeRecord, GalleryEntry
from face_attendance.domain.errors import (
    DuplicateEmployeeError,
    StorageUnavailableError,
)
from face_attendance.services.employees import EmployeeRepository
from face_attendance.services.recognition import GalleryRepository

_COLUMNS = "id, name, email, department, face_descriptor, created_at"


@dataclass
class SupabaseEmployeeRepository(EmployeeRepository, GalleryRepository):
    """Supabase implementation for employees and their face descriptors."""

    client: Client

    def create_employee(
        self,
        name: str,
        email: str,
        department: str | None,
        face_descriptor: tuple[float, ...] | None,
    ) -> EmployeeRecord:
        """Insert an employee row and return it."""
        with storage_errors("create employee", on_conflict=DuplicateEmployeeError):
            response = (
                self.client.table("employees")
                .insert(
                    {
                        "name": name,
                        "email": email,
                        "department": department,
                        "face_descriptor": (
                            descriptor_to_text(face_descriptor)
                            if face_descriptor is not None
                            else None
                        ),
                    }
                )
                .execute()
            )
        if not response.data:
            raise StorageUnavailableError("Failed to create employee")
        return _to_employee(response.data[0])

    def get_employee(self, employee_id: int) -> EmployeeRecord | None:
        """Return an employee by id, if present."""
        with storage_errors("get employee"):
            response = (
                self.client.table("employees")
                .select(_COLUMNS)
                .eq("id", employee_id)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _to_employee(response.data[0])

    def get_by_email(self, email: str) -> EmployeeRecord | None:
        """Return an employee by email, if present."""
        with storage_errors("get employee by email"):
            response = (
                self.client.table("employees")
                .select(_COLUMNS)
                .eq("email", email)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _to_employee(response.data[0])

    def list_employees(self) -> list[EmployeeRecord]:
        """Return all employees ordered by id."""
        with storage_errors("list employees"):
            response = (
                self.client.table("employees").select(_COLUMNS).order("id").execute()
            )
        return [_to_employee(row) for row in response.data or []]

    def update_employee(
        self, employee_id: int, changes: dict[str, object]
    ) -> EmployeeRecord:
        """Apply a partial update to an employee row."""
        payload = dict(changes)
        descriptor = payload.get("face_descriptor")
        if descriptor is not None:
            payload["face_descriptor"] = descriptor_to_text(descriptor)
        with storage_errors("update employee", on_conflict=DuplicateEmployeeError):
            response = (
                self.client.table("employees")
                .update(payload)
                .eq("id", employee_id)
                .execute()
            )
        if not response.data:
            raise StorageUnavailableError(f"Failed to update employee {employee_id}")
        return _to_employee(response.data[0])

    def delete_employee(self, employee_id: int) -> None:
        """Delete attendance sessions, then the employee row."""
        with storage_errors("delete employee"):
            self.client.table("attendance").delete().eq(
                "employee_id", employee_id
            ).execute()
            self.client.table("employees").delete().eq("id", employee_id).execute()

    def list_enrolled(self) -> list[GalleryEntry]:
        """Return enrolled descriptors ordered by employee id."""
        with storage_errors("list enrolled descriptors"):
            response = (
                self.client.table("employees")
                .select("id, face_descriptor")
                .not_.is_("face_descriptor", "null")
                .order("id")
                .execute()
            )
        return [
            GalleryEntry(
                employee_id=int(row["id"]),
                descriptor=text_to_descriptor(row["face_descriptor"]),
            )
            for row in response.data or []
            if row.get("face_descriptor")
        ]

    def get_descriptor(self, employee_id: int) -> tuple[float, ...] | None:
        """Return the enrolled descriptor for an employee, if any."""
        with storage_errors("get descriptor"):
            response = (
                self.client.table("employees")
                .select("face_descriptor")
                .eq("id", employee_id)
                .limit(1)
                .execute()
            )
        if not response.data or not response.data[0].get("face_descriptor"):
            return None
        return text_to_descriptor(response.data[0]["face_descriptor"])


def _to_employee(row: dict[str, object]) -> EmployeeRecord:
    raw_descriptor = row.get("face_descriptor")
    created_at = row.get("created_at")
    return EmployeeRecord(
        id=int(row["id"]),
        name=str(row["name"]),
        email=str(row["email"]),
        department=row.get("department"),
        face_descriptor=(
            text_to_descriptor(str(raw_descriptor)) if raw_descriptor else None
        ),
        created_at=datetime.fromisoformat(str(created_at)) if created_at else None,
    )
