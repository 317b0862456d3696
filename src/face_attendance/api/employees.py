"""Employee registry and identification endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from face_attendance.api.schemas import (
    EmployeeCreate,
    EmployeeOut,
    EmployeeUpdate,
    IdentifyRequest,
    IdentifyResponse,
)
from face_attendance.domain.recognition import NoMatch, NoMatchReason

if TYPE_CHECKING:
    from face_attendance.containers import AppContainer

router = APIRouter(prefix="/employees", tags=["employees"])

_NO_MATCH_MESSAGES = {
    NoMatchReason.EMPTY_GALLERY: "No employees with face data found",
    NoMatchReason.NO_CANDIDATE_WITHIN_THRESHOLD: "No matching employee found",
}


@router.get("")
async def list_employees(request: Request) -> dict[str, list[EmployeeOut]]:
    """Return all employees."""
    container: AppContainer = request.app.state.container
    employees = container.employee_service.list_employees()
    return {"employees": [EmployeeOut.from_record(item) for item in employees]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_employee(payload: EmployeeCreate, request: Request) -> EmployeeOut:
    """Register an employee, enrolling the face descriptor when given."""
    container: AppContainer = request.app.state.container
    employee = container.employee_service.register(
        name=payload.name,
        email=payload.email,
        department=payload.department,
        face_descriptor=payload.face_descriptor,
    )
    return EmployeeOut.from_record(employee)


@router.post("/identify", response_model=None)
async def identify_employee(
    payload: IdentifyRequest, request: Request
) -> IdentifyResponse | JSONResponse:
    """Resolve a face descriptor or image to an enrolled employee."""
    container: AppContainer = request.app.state.container
    recognition = container.recognition_service
    if payload.image_base64 is not None:
        descriptor = await recognition.embedding_service.embed_base64(
            payload.image_base64
        )
    else:
        descriptor = payload.face_descriptor
    result = recognition.identify(descriptor)
    if isinstance(result, NoMatch):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "error": _NO_MATCH_MESSAGES[result.reason],
                "reason": result.reason.value,
            },
        )
    employee = container.employee_service.get_employee(result.employee_id)
    return IdentifyResponse(
        employee_id=employee.id,
        name=employee.name,
        confidence=result.confidence,
        distance=result.distance,
    )


@router.get("/{employee_id}")
async def get_employee(employee_id: int, request: Request) -> EmployeeOut:
    """Return one employee."""
    container: AppContainer = request.app.state.container
    return EmployeeOut.from_record(
        container.employee_service.get_employee(employee_id)
    )


@router.put("/{employee_id}")
async def update_employee(
    employee_id: int, payload: EmployeeUpdate, request: Request
) -> EmployeeOut:
    """Update an employee; a new descriptor replaces the enrolled face."""
    container: AppContainer = request.app.state.container
    employee = container.employee_service.update(
        employee_id,
        name=payload.name,
        email=payload.email,
        department=payload.department,
        face_descriptor=payload.face_descriptor,
    )
    return EmployeeOut.from_record(employee)


@router.delete("/{employee_id}")
async def delete_employee(employee_id: int, request: Request) -> dict[str, str]:
    """Delete an employee and its attendance records."""
    container: AppContainer = request.app.state.container
    container.employee_service.delete(employee_id)
    return {"message": "Employee and related records deleted successfully"}
