from course_checkout.schemas.bank_account import (
    BankAccountCreate,
    BankAccountReorderRequest,
    BankAccountResponse,
    BankAccountUpdate,
)
from course_checkout.schemas.checkout import (
    CheckoutContextResponse,
    CheckoutInitiateRequest,
    CheckoutInitiateResponse,
    EligibilityResponse,
    PricingResponse,
)
from course_checkout.schemas.coupon import (
    ApplyCouponRequest,
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidationResponse,
)
from course_checkout.schemas.course import CourseCreate, CourseResponse, CourseUpdate
from course_checkout.schemas.enrollment import EnrollmentResponse
from course_checkout.schemas.order import (
    OrderResponse,
    OrderTransitionResponse,
    RejectPaymentRequest,
    TransferSentRequest,
)

__all__ = [
    "ApplyCouponRequest",
    "BankAccountCreate",
    "BankAccountReorderRequest",
    "BankAccountResponse",
    "BankAccountUpdate",
    "CheckoutContextResponse",
    "CheckoutInitiateRequest",
    "CheckoutInitiateResponse",
    "CouponCreate",
    "CouponResponse",
    "CouponUpdate",
    "CouponValidationResponse",
    "CourseCreate",
    "CourseResponse",
    "CourseUpdate",
    "EligibilityResponse",
    "EnrollmentResponse",
    "OrderResponse",
    "OrderTransitionResponse",
    "PricingResponse",
    "RejectPaymentRequest",
    "TransferSentRequest",
]
