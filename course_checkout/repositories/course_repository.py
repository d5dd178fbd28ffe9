"""Course repository for data access."""

from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from course_checkout.models.course import Course, CourseStatus
from course_checkout.schemas.course import CourseCreate, CourseUpdate


class CourseRepository:
    """Repository for Course model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        status: CourseStatus | None = None,
    ) -> list[Course]:
        """Get all courses with optional status filter."""
        query = self.db.query(Course)

        if status:
            query = query.filter(Course.status == status.value)

        return query.order_by(Course.created_at.desc()).offset(skip).limit(limit).all()

    def get_by_id(self, course_id: UUID) -> Course | None:
        """Get a course by ID."""
        return self.db.query(Course).filter(Course.id == course_id).first()

    def get_by_slug(self, slug: str) -> Course | None:
        """Get a course by slug."""
        return self.db.query(Course).filter(Course.slug == slug).first()

    def create(self, data: CourseCreate) -> Course:
        """Create a new course."""
        course = Course(
            slug=data.slug,
            title=data.title,
            price_usd=data.price_usd,
            price_uyu=data.price_uyu,
            max_capacity=data.max_capacity,
            enrollment_deadline=data.enrollment_deadline,
            status=data.status.value,
            enrolled_count=0,
        )
        self.db.add(course)
        self.db.commit()
        self.db.refresh(course)
        return course

    def update(self, course_id: UUID, data: CourseUpdate) -> Course | None:
        """Update a course."""
        course = self.get_by_id(course_id)
        if not course:
            return None

        update_data = data.model_dump(exclude_unset=True)
        if "status" in update_data and update_data["status"]:
            update_data["status"] = update_data["status"].value

        for key, value in update_data.items():
            setattr(course, key, value)

        self.db.commit()
        self.db.refresh(course)
        return course

    def try_reserve_seat(self, course_id: UUID) -> bool:
        """Increment ``enrolled_count`` only while below ``max_capacity``.

        Single conditional UPDATE; does not commit.
        """
        result = self.db.execute(
            update(Course)
            .where(
                Course.id == course_id,
                or_(
                    Course.max_capacity.is_(None),
                    Course.enrolled_count < Course.max_capacity,
                ),
            )
            .values(enrolled_count=Course.enrolled_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def release_seat(self, course_id: UUID) -> bool:
        """Decrement ``enrolled_count`` without going below zero. Does not commit."""
        result = self.db.execute(
            update(Course)
            .where(Course.id == course_id, Course.enrolled_count > 0)
            .values(enrolled_count=Course.enrolled_count - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
