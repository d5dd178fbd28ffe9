from course_checkout.repositories.bank_account_repository import BankAccountRepository
from course_checkout.repositories.coupon_repository import CouponRepository
from course_checkout.repositories.course_repository import CourseRepository
from course_checkout.repositories.enrollment_repository import EnrollmentRepository
from course_checkout.repositories.notification_repository import NotificationRepository
from course_checkout.repositories.order_repository import OrderRepository

__all__ = [
    "BankAccountRepository",
    "CouponRepository",
    "CourseRepository",
    "EnrollmentRepository",
    "NotificationRepository",
    "OrderRepository",
]
