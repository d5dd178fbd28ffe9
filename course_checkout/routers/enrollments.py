"""Enrollment endpoints for the student portal."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from course_checkout.core.auth import CurrentUser, get_current_user
from course_checkout.core.database import get_db
from course_checkout.models.enrollment import Enrollment
from course_checkout.repositories.enrollment_repository import EnrollmentRepository
from course_checkout.schemas.enrollment import EnrollmentResponse

router = APIRouter()


@router.get("/mine", response_model=list[EnrollmentResponse], summary="List my enrollments")
async def list_my_enrollments(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[Enrollment]:
    return EnrollmentRepository(db).get_for_user(user.id)
