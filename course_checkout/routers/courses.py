"""Course catalog endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from course_checkout.core.auth import CurrentUser, require_admin
from course_checkout.core.database import get_db
from course_checkout.models.course import Course, CourseStatus
from course_checkout.repositories.course_repository import CourseRepository
from course_checkout.schemas.course import CourseCreate, CourseResponse, CourseUpdate

router = APIRouter()


@router.get("/", response_model=list[CourseResponse], summary="List courses")
async def list_courses(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: CourseStatus | None = None,
    db: Session = Depends(get_db),
) -> list[Course]:
    return CourseRepository(db).get_all(skip=skip, limit=limit, status=status)


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course",
    responses={404: {"description": "Course not found"}},
)
async def get_course(course_id: UUID, db: Session = Depends(get_db)) -> Course:
    course = CourseRepository(db).get_by_id(course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.post(
    "/",
    response_model=CourseResponse,
    status_code=201,
    summary="Create course",
    responses={409: {"description": "Course with this slug already exists"}},
)
async def create_course(
    data: CourseCreate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Course:
    repo = CourseRepository(db)
    if repo.get_by_slug(data.slug):
        raise HTTPException(status_code=409, detail="Course with this slug already exists")
    return repo.create(data)


@router.put(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Update course",
    responses={
        404: {"description": "Course not found"},
        422: {"description": "Validation error"},
    },
)
async def update_course(
    course_id: UUID,
    data: CourseUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Course:
    repo = CourseRepository(db)
    course = repo.get_by_id(course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if data.max_capacity is not None and data.max_capacity < course.enrolled_count:
        raise HTTPException(
            status_code=422, detail="max_capacity cannot be lower than current enrollments"
        )
    return repo.update(course_id, data)  # type: ignore[return-value]
