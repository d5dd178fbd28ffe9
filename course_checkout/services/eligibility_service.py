"""Enrollment eligibility checks.

Decides whether a user may start a checkout for a course. Reasons are checked
in a fixed order and the first match wins.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from course_checkout.core.config import settings
from course_checkout.models.course import Course
from course_checkout.models.shared import as_utc, utc_now
from course_checkout.repositories.enrollment_repository import EnrollmentRepository

OpenStatusPredicate = Callable[[str], bool]


class EnrollmentBlockReason(str, Enum):
    ALREADY_ENROLLED = "already_enrolled"
    COURSE_CLOSED = "course_closed"
    DEADLINE_PASSED = "deadline_passed"
    COURSE_FULL = "course_full"


BLOCK_MESSAGES = {
    EnrollmentBlockReason.ALREADY_ENROLLED: "You are already enrolled in this course",
    EnrollmentBlockReason.COURSE_CLOSED: "This course is not open for enrollment",
    EnrollmentBlockReason.DEADLINE_PASSED: "The enrollment deadline for this course has passed",
    EnrollmentBlockReason.COURSE_FULL: "This course is full",
}


@dataclass
class EligibilityResult:
    """Outcome of an eligibility check."""

    eligible: bool
    reason: EnrollmentBlockReason | None = None

    @property
    def message(self) -> str | None:
        return BLOCK_MESSAGES[self.reason] if self.reason else None


def is_open_for_enrollment(status: str) -> bool:
    """Default open-status policy, driven by ``OPEN_ENROLLMENT_STATUSES``."""
    return status in settings.open_enrollment_statuses


class EligibilityService:
    """Read-only checker; never mutates state."""

    def __init__(self, db: Session, is_open: OpenStatusPredicate | None = None):
        self.db = db
        self.enrollment_repo = EnrollmentRepository(db)
        self.is_open = is_open or is_open_for_enrollment

    def check(
        self,
        user_id: UUID,
        course: Course,
        now: datetime | None = None,
    ) -> EligibilityResult:
        """Check whether ``user_id`` may begin a checkout for ``course``."""
        now = now or utc_now()

        if self.enrollment_repo.has_active(user_id, course.id):  # type: ignore[arg-type]
            return EligibilityResult(False, EnrollmentBlockReason.ALREADY_ENROLLED)

        if not self.is_open(str(course.status)):
            return EligibilityResult(False, EnrollmentBlockReason.COURSE_CLOSED)

        if course.enrollment_deadline and as_utc(course.enrollment_deadline) < now:
            return EligibilityResult(False, EnrollmentBlockReason.DEADLINE_PASSED)

        if course.max_capacity is not None and course.enrolled_count >= course.max_capacity:
            return EligibilityResult(False, EnrollmentBlockReason.COURSE_FULL)

        return EligibilityResult(True)
