from course_checkout.models.bank_account import BankAccount
from course_checkout.models.coupon import Coupon
from course_checkout.models.course import Course, CourseStatus
from course_checkout.models.enrollment import Enrollment, EnrollmentStatus
from course_checkout.models.notification import (
    Notification,
    NotificationEvent,
    NotificationStatus,
)
from course_checkout.models.order import (
    TERMINAL_STATUSES,
    Currency,
    Order,
    OrderStatus,
    PaymentMethod,
)

__all__ = [
    "BankAccount",
    "Coupon",
    "Course",
    "CourseStatus",
    "Currency",
    "Enrollment",
    "EnrollmentStatus",
    "Notification",
    "NotificationEvent",
    "NotificationStatus",
    "Order",
    "OrderStatus",
    "PaymentMethod",
    "TERMINAL_STATUSES",
]
