"""Checkout commands used by the student-facing checkout page."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from course_checkout.core.auth import CurrentUser
from course_checkout.core.config import settings
from course_checkout.models.bank_account import BankAccount
from course_checkout.models.course import Course
from course_checkout.models.order import Currency, Order, PaymentMethod
from course_checkout.repositories.bank_account_repository import BankAccountRepository
from course_checkout.repositories.course_repository import CourseRepository
from course_checkout.repositories.order_repository import OrderRepository
from course_checkout.services.coupon_service import CouponValidation, CouponValidator
from course_checkout.services.eligibility_service import (
    EligibilityResult,
    EligibilityService,
    EnrollmentBlockReason,
)
from course_checkout.services.order_state_machine import (
    OrderEvent,
    OrderStateMachine,
    TransitionResult,
)
from course_checkout.services.payment_provider import (
    PaymentGatewayError,
    PaymentProviderBase,
    get_payment_provider,
)
from course_checkout.services.pricing import Pricing, list_price, price_course

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[PaymentMethod], PaymentProviderBase]


class CheckoutError(str, Enum):
    COURSE_NOT_FOUND = "course_not_found"
    NOT_ELIGIBLE = "not_eligible"
    INVALID_COUPON = "invalid_coupon"
    CURRENCY_NOT_OFFERED = "currency_not_offered"
    PAYMENT_REQUIRED = "payment_required"
    BANK_ACCOUNT_UNAVAILABLE = "bank_account_unavailable"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"
    FINALIZATION_FAILED = "finalization_failed"


CHECKOUT_MESSAGES = {
    CheckoutError.COURSE_NOT_FOUND: "Course not found",
    CheckoutError.NOT_ELIGIBLE: "You cannot enroll in this course",
    CheckoutError.INVALID_COUPON: "The coupon is not valid",
    CheckoutError.CURRENCY_NOT_OFFERED: "This course is not sold in the selected currency",
    CheckoutError.PAYMENT_REQUIRED: "This course requires a payment method",
    CheckoutError.BANK_ACCOUNT_UNAVAILABLE: "The selected bank account cannot receive this payment",
    CheckoutError.GATEWAY_UNAVAILABLE: "The payment gateway is unavailable, try again later",
    CheckoutError.FINALIZATION_FAILED: "The enrollment could not be completed",
}


@dataclass
class CheckoutContext:
    """Everything the checkout page renders for one course."""

    course: Course
    eligibility: EligibilityResult
    coupon: CouponValidation | None = None
    pricing_usd: Pricing | None = None
    pricing_uyu: Pricing | None = None
    pending_order: Order | None = None
    bank_accounts: list[BankAccount] = field(default_factory=list)


@dataclass
class CheckoutResult:
    """Outcome of initiating a checkout."""

    ok: bool
    order: Order | None = None
    error: CheckoutError | None = None
    message: str | None = None
    block_reason: EnrollmentBlockReason | None = None
    coupon: CouponValidation | None = None
    redirect_url: str | None = None
    transition: TransitionResult | None = None

    @classmethod
    def failed(cls, error: CheckoutError, **kwargs: object) -> "CheckoutResult":
        message = kwargs.pop("message", None) or CHECKOUT_MESSAGES[error]
        return cls(ok=False, error=error, message=message, **kwargs)  # type: ignore[arg-type]


class CheckoutService:
    """Service for the checkout flow."""

    def __init__(self, db: Session, provider_factory: ProviderFactory | None = None):
        self.db = db
        self.course_repo = CourseRepository(db)
        self.order_repo = OrderRepository(db)
        self.bank_account_repo = BankAccountRepository(db)
        self.eligibility = EligibilityService(db)
        self.coupons = CouponValidator(db)
        self.state_machine = OrderStateMachine(db)
        self.provider_factory = provider_factory or get_payment_provider

    def get_context(
        self,
        user: CurrentUser,
        course_id: UUID,
        coupon_code: str | None = None,
    ) -> CheckoutContext | None:
        """Build the checkout page context, or None when the course does not exist.

        Pricing and coupon work is skipped for users who cannot enroll. Active
        bank accounts are listed for every currency; each carries its own.
        """
        course = self.course_repo.get_by_id(course_id)
        if course is None:
            return None

        context = CheckoutContext(
            course=course,
            eligibility=self.eligibility.check(user.id, course),
            pending_order=self.order_repo.get_open_for_course(user.id, course_id),
            bank_accounts=self.bank_account_repo.get_active(),
        )
        if not context.eligibility.eligible:
            return context

        snapshot = None
        if coupon_code:
            context.coupon = self._validate_coupon(user, course, coupon_code)
            snapshot = context.coupon.snapshot

        context.pricing_usd = price_course(course, Currency.USD, snapshot)
        context.pricing_uyu = price_course(course, Currency.UYU, snapshot)
        return context

    def apply_coupon(
        self, user: CurrentUser, course_id: UUID, code: str
    ) -> CouponValidation | None:
        """Validate a coupon for a course and user; never consumes a use.

        Returns None when the course does not exist.
        """
        course = self.course_repo.get_by_id(course_id)
        if course is None:
            return None
        return self._validate_coupon(user, course, code)

    def _validate_coupon(self, user: CurrentUser, course: Course, code: str) -> CouponValidation:
        return self.coupons.validate(
            code,
            course.id,  # type: ignore[arg-type]
            user.email,
            list_price(course, Currency.USD),  # type: ignore[arg-type]
        )

    def initiate(
        self,
        user: CurrentUser,
        course_id: UUID,
        payment_method: PaymentMethod,
        currency: Currency = Currency.USD,
        coupon_code: str | None = None,
        bank_account_id: UUID | None = None,
    ) -> CheckoutResult:
        """Create an order and start its payment.

        A zero final amount always takes the free path, whatever method was
        requested. A bank transfer may name the account the student will pay
        into; it must be active and in the order currency. For MercadoPago the
        gateway preference is created before the order leaves ``created``, so a
        gateway outage leaves nothing half-done.
        """
        course = self.course_repo.get_by_id(course_id)
        if course is None:
            return CheckoutResult.failed(CheckoutError.COURSE_NOT_FOUND)

        eligibility = self.eligibility.check(user.id, course)
        if not eligibility.eligible:
            return CheckoutResult.failed(
                CheckoutError.NOT_ELIGIBLE,
                block_reason=eligibility.reason,
                message=eligibility.message,
            )

        validation = None
        if coupon_code and coupon_code.strip():
            validation = self._validate_coupon(user, course, coupon_code)
            if not validation.valid:
                return CheckoutResult.failed(
                    CheckoutError.INVALID_COUPON, coupon=validation, message=validation.message
                )

        snapshot = validation.snapshot if validation else None
        pricing = price_course(course, currency, snapshot)
        if pricing is None:
            return CheckoutResult.failed(CheckoutError.CURRENCY_NOT_OFFERED)

        if pricing.is_free:
            payment_method = PaymentMethod.FREE
        elif payment_method is PaymentMethod.FREE:
            return CheckoutResult.failed(CheckoutError.PAYMENT_REQUIRED)

        if payment_method is not PaymentMethod.BANK_TRANSFER:
            bank_account_id = None
        elif bank_account_id is not None:
            account = self.bank_account_repo.get_by_id(bank_account_id)
            if account is None or not account.is_active or account.currency != currency.value:
                return CheckoutResult.failed(CheckoutError.BANK_ACCOUNT_UNAVAILABLE)

        order = self.order_repo.create(
            user_id=user.id,
            user_email=user.email,
            user_name=user.name,
            course_id=course_id,
            payment_method=payment_method,
            currency=currency.value,
            original_price_usd=list_price(course, Currency.USD),  # type: ignore[arg-type]
            original_price_uyu=list_price(course, Currency.UYU),
            original_amount=pricing.original_price,
            discount_percent=pricing.discount_percent,
            discount_amount=pricing.discount_amount,
            final_amount=pricing.final_amount,
            coupon_id=snapshot.coupon_id if snapshot else None,
            coupon_code=snapshot.code if snapshot else None,
            coupon_discount_percent=snapshot.discount_percent if snapshot else None,
        )
        logger.info(
            "Order %s created for course %s (%s, %s %s)",
            order.order_number,
            course.slug,
            payment_method.value,
            pricing.final_amount,
            currency.value,
        )

        if payment_method is PaymentMethod.FREE:
            return self._finish(
                self.state_machine.fire(order.id, OrderEvent.FREE_CHECKOUT),  # type: ignore[arg-type]
                coupon=validation,
            )
        if payment_method is PaymentMethod.BANK_TRANSFER:
            return self._finish(
                self.state_machine.fire(
                    order.id,  # type: ignore[arg-type]
                    OrderEvent.TRANSFER_SELECTED,
                    changes={"bank_account_id": bank_account_id} if bank_account_id else None,
                ),
                coupon=validation,
            )
        return self._start_gateway_checkout(order, course, validation)

    def _start_gateway_checkout(
        self,
        order: Order,
        course: Course,
        validation: CouponValidation | None,
    ) -> CheckoutResult:
        provider = self.provider_factory(PaymentMethod(order.payment_method))
        try:
            session = provider.create_checkout_session(
                order_id=order.id,  # type: ignore[arg-type]
                course_id=course.id,  # type: ignore[arg-type]
                title=str(course.title),
                amount=order.final_amount,  # type: ignore[arg-type]
                currency=str(order.currency),
                payer_email=str(order.user_email),
                payer_name=order.user_name,  # type: ignore[arg-type]
                success_url=f"{settings.APP_URL}/checkout/success/{order.id}",
                failure_url=f"{settings.APP_URL}/checkout/{course.id}?error=payment_failed",
                pending_url=f"{settings.APP_URL}/checkout/success/{order.id}?pending=true",
                notification_url=f"{settings.API_URL}/v1/webhooks/mercadopago",
            )
        except PaymentGatewayError as e:
            logger.error("Could not open checkout for order %s: %s", order.order_number, e)
            return CheckoutResult.failed(
                CheckoutError.GATEWAY_UNAVAILABLE, order=order, coupon=validation
            )

        result = self._finish(
            self.state_machine.fire(
                order.id,  # type: ignore[arg-type]
                OrderEvent.GATEWAY_INITIALIZED,
                changes={"gateway_preference_id": session.preference_id},
            ),
            coupon=validation,
        )
        if result.ok:
            result.redirect_url = session.checkout_url
        return result

    def _finish(
        self, transition: TransitionResult, coupon: CouponValidation | None
    ) -> CheckoutResult:
        if transition.ok:
            return CheckoutResult(
                ok=True, order=transition.order, coupon=coupon, transition=transition
            )
        return CheckoutResult.failed(
            CheckoutError.FINALIZATION_FAILED,
            order=transition.order,
            coupon=coupon,
            transition=transition,
            message=transition.message,
        )
