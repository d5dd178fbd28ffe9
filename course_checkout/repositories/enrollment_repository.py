"""Enrollment repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from course_checkout.models.enrollment import Enrollment, EnrollmentStatus


class EnrollmentRepository:
    """Repository for Enrollment model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_user_and_course(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        """Get the enrollment row for a (user, course) pair, whatever its status."""
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
            .first()
        )

    def get_by_order_id(self, order_id: UUID) -> Enrollment | None:
        """Get the enrollment created by an order."""
        return self.db.query(Enrollment).filter(Enrollment.order_id == order_id).first()

    def has_active(self, user_id: UUID, course_id: UUID) -> bool:
        """Check for a non-cancelled enrollment."""
        enrollment = self.get_by_user_and_course(user_id, course_id)
        return (
            enrollment is not None and enrollment.status != EnrollmentStatus.CANCELLED.value
        )

    def get_for_user(self, user_id: UUID) -> list[Enrollment]:
        """Get all enrollments for a user."""
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.user_id == user_id)
            .order_by(Enrollment.created_at.desc())
            .all()
        )

    def count_confirmed(self, course_id: UUID) -> int:
        """Count confirmed enrollments for a course."""
        return (
            self.db.query(Enrollment)
            .filter(
                Enrollment.course_id == course_id,
                Enrollment.status == EnrollmentStatus.CONFIRMED.value,
            )
            .count()
        )

    def confirm(self, user_id: UUID, course_id: UUID, order_id: UUID) -> Enrollment | None:
        """Create a confirmed enrollment, or reactivate a cancelled one.

        Returns None when an active enrollment already exists. Flushes but does
        not commit, so a concurrent insert surfaces as ``IntegrityError``.
        """
        enrollment = self.get_by_user_and_course(user_id, course_id)
        if enrollment is not None:
            if enrollment.status != EnrollmentStatus.CANCELLED.value:
                return None
            enrollment.status = EnrollmentStatus.CONFIRMED.value  # type: ignore[assignment]
            enrollment.order_id = order_id  # type: ignore[assignment]
        else:
            enrollment = Enrollment(
                user_id=user_id,
                course_id=course_id,
                order_id=order_id,
                status=EnrollmentStatus.CONFIRMED.value,
            )
            self.db.add(enrollment)

        self.db.flush()
        return enrollment

    def cancel_for_order(self, order_id: UUID) -> Enrollment | None:
        """Cancel the confirmed enrollment granted by an order. Does not commit."""
        enrollment = self.get_by_order_id(order_id)
        if enrollment is None or enrollment.status != EnrollmentStatus.CONFIRMED.value:
            return None

        enrollment.status = EnrollmentStatus.CANCELLED.value  # type: ignore[assignment]
        self.db.flush()
        return enrollment
