"""Employee registry and face enrollment."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from face_attendance.domain.descriptors import normalize_descriptor
from face_attendance.domain.employees import EmployeeRecord
from face_attendance.domain.errors import (
    DuplicateEmployeeError,
    EmployeeNotFoundError,
    InvalidInputError,
)

logger = logging.getLogger(__name__)


class EmployeeRepository(Protocol):
    """Persistence interface for employees."""

    def create_employee(
        self,
        name: str,
        email: str,
        department: str | None,
        face_descriptor: tuple[float, ...] | None,
    ) -> EmployeeRecord:
        """Create an employee and return it."""

    def get_employee(self, employee_id: int) -> EmployeeRecord | None:
        """Return an employee by id, if present."""

    def get_by_email(self, email: str) -> EmployeeRecord | None:
        """Return an employee by email, if present."""

    def list_employees(self) -> list[EmployeeRecord]:
        """Return all employees ordered by id."""

    def update_employee(
        self, employee_id: int, changes: dict[str, object]
    ) -> EmployeeRecord:
        """Apply a partial update and return the employee."""

    def delete_employee(self, employee_id: int) -> None:
        """Delete an employee together with its attendance sessions."""


@dataclass
class EmployeeService:
    """Application service for employee lifecycle actions."""

    repository: EmployeeRepository
    expected_dimension: int | None = None

    def list_employees(self) -> list[EmployeeRecord]:
        """Return all employees."""
        return self.repository.list_employees()

    def get_employee(self, employee_id: int) -> EmployeeRecord:
        """Return an employee or raise EmployeeNotFoundError."""
        employee = self.repository.get_employee(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return employee

    def register(
        self,
        name: str,
        email: str,
        department: str | None = None,
        face_descriptor: Sequence[float] | None = None,
    ) -> EmployeeRecord:
        """Register a new employee, optionally enrolling a face descriptor."""
        name = _required(name, "name")
        email = _required(email, "email").lower()
        if self.repository.get_by_email(email) is not None:
            raise DuplicateEmployeeError("Employee with this email already exists")
        descriptor = (
            self._descriptor(face_descriptor) if face_descriptor is not None else None
        )
        employee = self.repository.create_employee(
            name=name,
            email=email,
            department=department,
            face_descriptor=descriptor,
        )
        logger.info(
            "Registered employee",
            extra={"employee_id": employee.id, "enrolled": employee.is_enrolled},
        )
        return employee

    def update(
        self,
        employee_id: int,
        name: str | None = None,
        email: str | None = None,
        department: str | None = None,
        face_descriptor: Sequence[float] | None = None,
    ) -> EmployeeRecord:
        """Update employee fields; a new descriptor replaces the enrolled one."""
        current = self.get_employee(employee_id)
        changes: dict[str, object] = {}
        if name is not None:
            changes["name"] = _required(name, "name")
        if email is not None:
            normalized = _required(email, "email").lower()
            if normalized != current.email:
                existing = self.repository.get_by_email(normalized)
                if existing is not None and existing.id != employee_id:
                    raise DuplicateEmployeeError(
                        "Employee with this email already exists"
                    )
                changes["email"] = normalized
        if department is not None:
            changes["department"] = department
        if face_descriptor is not None:
            changes["face_descriptor"] = self._descriptor(face_descriptor)
        if not changes:
            return current
        updated = self.repository.update_employee(employee_id, changes)
        if "face_descriptor" in changes:
            logger.info("Re-enrolled employee", extra={"employee_id": employee_id})
        return updated

    def delete(self, employee_id: int) -> None:
        """Delete an employee and its attendance history."""
        self.get_employee(employee_id)
        self.repository.delete_employee(employee_id)
        logger.info("Deleted employee", extra={"employee_id": employee_id})

    def _descriptor(self, values: Sequence[float]) -> tuple[float, ...]:
        descriptor = normalize_descriptor(values)
        if (
            self.expected_dimension is not None
            and len(descriptor) != self.expected_dimension
        ):
            raise InvalidInputError(
                f"Face descriptor must have {self.expected_dimension} values"
            )
        return descriptor


def _required(value: str, label: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise InvalidInputError(f"{label.capitalize()} is required")
    return cleaned
