"""
Check-in endpoints for API v1.

``POST /validate`` marks a student as entered.  Every outcome, including
the failures, is returned as a ``ValidationOutcome`` body
(``{success, student, message}``) so scanning clients can render one
shape; the status code tells success (200), unknown student (404) and
already validated (409) apart.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from event_checkin_api.app.core.deps import get_registration_service
from event_checkin_api.app.core.exceptions import (
    AlreadyValidatedError,
    StudentNotFoundError,
    ValidationError,
)
from event_checkin_api.app.schemas.validation import RecentScan, ValidationOutcome, ValidationRequest
from event_checkin_api.app.services.registration_service import RegistrationService

router = APIRouter()


def _result_response(status_code: int, result: ValidationOutcome) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json", by_alias=True))


@router.post(
    "/",
    response_model=ValidationOutcome,
    responses={
        404: {"model": ValidationOutcome, "description": "Student ID not found"},
        409: {"model": ValidationOutcome, "description": "Student already validated"},
    },
)
async def validate_student(
    body: ValidationRequest,
    service: RegistrationService = Depends(get_registration_service),
):
    """Validate (check in) a student by ID."""
    student_id = (body.student_id or "").strip()
    if not student_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student ID is required")
    try:
        return await service.validate(student_id, body.method, body.scanned_by)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except StudentNotFoundError as e:
        return _result_response(status.HTTP_404_NOT_FOUND, ValidationOutcome(success=False, message=str(e)))
    except AlreadyValidatedError as e:
        return _result_response(
            status.HTTP_409_CONFLICT,
            ValidationOutcome(success=False, student=e.student, message=str(e)),
        )


@router.get("/recent", response_model=List[RecentScan])
async def recent_scans(
    limit: int = Query(10, description="Number of scans to return (1-100)"),
    service: RegistrationService = Depends(get_registration_service),
) -> List[RecentScan]:
    """Return the latest successful scans, newest first, with student details."""
    try:
        return await service.recent_scans(limit)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
