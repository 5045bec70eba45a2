"""
Student registration and lookup endpoints for API v1.

These routes register students, list or search them and return a
single student with its QR code.  Business rules (required fields,
e-mail format, duplicate e-mails, ID generation) live in
``RegistrationService``; the handlers only translate its errors into
HTTP status codes.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from event_checkin_api.app.core.deps import get_qr_service, get_registration_service
from event_checkin_api.app.core.exceptions import (
    DuplicateRegistrationError,
    IdGenerationError,
    StudentNotFoundError,
    ValidationError,
)
from event_checkin_api.app.schemas.student import StudentCreate, StudentRead
from event_checkin_api.app.services.qr_service import QRCodeService
from event_checkin_api.app.services.registration_service import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
async def register_student(
    data: StudentCreate,
    service: RegistrationService = Depends(get_registration_service),
) -> StudentRead:
    """Register a student for the event.

    Returns the stored record with its generated ID.  A 400 error is
    returned for missing fields, a malformed e-mail or an unknown role,
    and a 409 error if the e-mail is already registered.
    """
    try:
        return await service.register(data)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except DuplicateRegistrationError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except IdGenerationError as e:
        logger.error("Registration for %s failed: %s", data.email, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e


@router.get("/", response_model=List[StudentRead])
async def list_students(
    search: Optional[str] = Query(None, description="Substring of name, ID, college or e-mail"),
    role: Optional[str] = Query(None, description="Exact role, or 'all'"),
    service: RegistrationService = Depends(get_registration_service),
) -> List[StudentRead]:
    """List students, newest registration first, optionally filtered."""
    try:
        return await service.search(search, role)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.get("/{student_id}", response_model=StudentRead)
async def get_student(
    student_id: str = Path(..., description="Student ID, e.g. FEST-1718000000000-042"),
    service: RegistrationService = Depends(get_registration_service),
) -> StudentRead:
    try:
        return await service.get(student_id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get(
    "/{student_id}/qr",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def get_student_qr(
    student_id: str = Path(..., description="Student ID"),
    service: RegistrationService = Depends(get_registration_service),
    qr: QRCodeService = Depends(get_qr_service),
) -> Response:
    """Return the student's QR code as a PNG image.

    The code encodes the student's ``qrCodeData`` (the student ID).
    """
    try:
        student = await service.get(student_id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return Response(content=qr.render_png(student.qr_code_data or student.id), media_type="image/png")
