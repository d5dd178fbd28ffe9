"""Order lifecycle transitions.

Every transition is a conditional UPDATE on the order's current status, so two
writers racing on the same order cannot both win. Reaching ``paid`` is the
finalization unit: seat reservation, coupon consumption, enrollment and the
outbox rows commit together with the status change or not at all.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from course_checkout.models.enrollment import Enrollment
from course_checkout.models.order import Order, OrderStatus, PaymentMethod
from course_checkout.models.shared import utc_now
from course_checkout.repositories.coupon_repository import CouponRepository
from course_checkout.repositories.course_repository import CourseRepository
from course_checkout.repositories.enrollment_repository import EnrollmentRepository
from course_checkout.repositories.order_repository import OPEN_ORDER_STATUSES, OrderRepository
from course_checkout.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class OrderEvent(str, Enum):
    FREE_CHECKOUT = "free_checkout"
    GATEWAY_INITIALIZED = "gateway_initialized"
    TRANSFER_SELECTED = "transfer_selected"
    GATEWAY_NOTIFIED = "gateway_notified"
    TRANSFER_SENT = "transfer_sent"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_REJECTED = "payment_rejected"
    FINALIZATION_FAILED = "finalization_failed"
    CANCEL = "cancel"
    REFUND = "refund"


TRANSITIONS: dict[tuple[OrderStatus, OrderEvent], OrderStatus] = {
    (OrderStatus.CREATED, OrderEvent.FREE_CHECKOUT): OrderStatus.PAID,
    (OrderStatus.CREATED, OrderEvent.GATEWAY_INITIALIZED): OrderStatus.PENDING_PAYMENT,
    (OrderStatus.CREATED, OrderEvent.TRANSFER_SELECTED): OrderStatus.PENDING_PAYMENT,
    (OrderStatus.PENDING_PAYMENT, OrderEvent.GATEWAY_NOTIFIED): OrderStatus.PAYMENT_PROCESSING,
    (OrderStatus.PENDING_PAYMENT, OrderEvent.TRANSFER_SENT): OrderStatus.PAYMENT_PROCESSING,
    (OrderStatus.PENDING_PAYMENT, OrderEvent.PAYMENT_CONFIRMED): OrderStatus.PAID,
    (OrderStatus.PAYMENT_PROCESSING, OrderEvent.PAYMENT_CONFIRMED): OrderStatus.PAID,
    (OrderStatus.PAYMENT_PROCESSING, OrderEvent.PAYMENT_REJECTED): OrderStatus.REJECTED,
    (OrderStatus.CREATED, OrderEvent.FINALIZATION_FAILED): OrderStatus.REJECTED,
    (OrderStatus.PENDING_PAYMENT, OrderEvent.FINALIZATION_FAILED): OrderStatus.REJECTED,
    (OrderStatus.PAYMENT_PROCESSING, OrderEvent.FINALIZATION_FAILED): OrderStatus.REJECTED,
    (OrderStatus.PENDING_PAYMENT, OrderEvent.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.PAYMENT_PROCESSING, OrderEvent.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.PAID, OrderEvent.REFUND): OrderStatus.REFUNDED,
}

# Each event leads to exactly one status.
EVENT_TARGETS: dict[OrderEvent, OrderStatus] = {
    event: target for (_, event), target in TRANSITIONS.items()
}

EVENT_METHODS: dict[OrderEvent, frozenset[PaymentMethod]] = {
    OrderEvent.FREE_CHECKOUT: frozenset({PaymentMethod.FREE}),
    OrderEvent.GATEWAY_INITIALIZED: frozenset({PaymentMethod.MERCADOPAGO}),
    OrderEvent.GATEWAY_NOTIFIED: frozenset({PaymentMethod.MERCADOPAGO}),
    OrderEvent.TRANSFER_SELECTED: frozenset({PaymentMethod.BANK_TRANSFER}),
    OrderEvent.TRANSFER_SENT: frozenset({PaymentMethod.BANK_TRANSFER}),
}


class TransitionError(str, Enum):
    ORDER_NOT_FOUND = "order_not_found"
    ILLEGAL_TRANSITION = "illegal_transition"
    WRONG_PAYMENT_METHOD = "wrong_payment_method"
    FORBIDDEN = "forbidden"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    COUPON_EXHAUSTED = "coupon_exhausted"
    ALREADY_ENROLLED = "already_enrolled"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"
    UNSUPPORTED_VERDICT = "unsupported_verdict"


ERROR_MESSAGES = {
    TransitionError.ORDER_NOT_FOUND: "Order not found",
    TransitionError.ILLEGAL_TRANSITION: "This action is not allowed for the order's current status",
    TransitionError.WRONG_PAYMENT_METHOD: "This action does not apply to the order's payment method",
    TransitionError.FORBIDDEN: "You are not allowed to act on this order",
    TransitionError.CAPACITY_EXCEEDED: "The course filled up before the payment was confirmed",
    TransitionError.COUPON_EXHAUSTED: "The coupon ran out of uses before the payment was confirmed",
    TransitionError.ALREADY_ENROLLED: "The student is already enrolled in this course",
    TransitionError.GATEWAY_UNAVAILABLE: "The payment gateway is unavailable, try again later",
    TransitionError.UNSUPPORTED_VERDICT: "Unsupported payment status from the gateway",
}

# Finalization failures, recorded on the order as ``failure_reason``.
FINALIZATION_ERRORS = frozenset(
    {
        TransitionError.CAPACITY_EXCEEDED,
        TransitionError.COUPON_EXHAUSTED,
        TransitionError.ALREADY_ENROLLED,
    }
)


@dataclass
class TransitionResult:
    """Outcome of firing an event at an order."""

    ok: bool
    order: Order | None = None
    error: TransitionError | None = None
    message: str | None = None
    already_processed: bool = False
    enrollment: Enrollment | None = None

    @classmethod
    def failed(
        cls,
        error: TransitionError,
        order: Order | None = None,
        message: str | None = None,
    ) -> "TransitionResult":
        return cls(ok=False, order=order, error=error, message=message or ERROR_MESSAGES[error])


class _FinalizationAborted(Exception):
    def __init__(self, error: TransitionError):
        super().__init__(error.value)
        self.error = error


class OrderStateMachine:
    """Fires lifecycle events at orders inside single transactions."""

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.course_repo = CourseRepository(db)
        self.coupon_repo = CouponRepository(db)
        self.enrollment_repo = EnrollmentRepository(db)
        self.notifications = NotificationService(db)

    def fire(
        self,
        order_id: UUID,
        event: OrderEvent,
        *,
        reason: str | None = None,
        changes: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """Apply ``event`` to an order.

        Args:
            order_id: The order to move.
            event: The lifecycle event.
            reason: Failure reason for rejection events.
            changes: Extra column values written with the status change.

        Returns:
            TransitionResult. Replaying an event whose target status the order
            already holds is reported as ``already_processed``.
        """
        order = self.order_repo.get_by_id(order_id)
        if order is None:
            return TransitionResult.failed(TransitionError.ORDER_NOT_FOUND)

        methods = EVENT_METHODS.get(event)
        if methods is not None and PaymentMethod(order.payment_method) not in methods:
            return TransitionResult.failed(TransitionError.WRONG_PAYMENT_METHOD, order)

        current = OrderStatus(order.status)
        target = TRANSITIONS.get((current, event))
        if target is None:
            return self._no_transition(order, event)

        if target is OrderStatus.PAID:
            return self._finalize(order, current, event)

        values = dict(changes or {})
        values.update(self._stamps(event, reason))
        moved = self.order_repo.compare_and_set_status(
            order.id, [current], target, **values  # type: ignore[arg-type]
        )
        if not moved:
            self.db.rollback()
            return self._after_lost_race(order_id, event)

        self.db.refresh(order)
        self._side_effects(order, event, reason)
        self.db.commit()
        self.db.refresh(order)

        logger.info(
            "Order %s: %s -> %s (%s)", order.order_number, current.value, target.value, event.value
        )
        return TransitionResult(ok=True, order=order)

    def _stamps(self, event: OrderEvent, reason: str | None) -> dict[str, Any]:
        now = utc_now()
        if event is OrderEvent.TRANSFER_SENT:
            return {"transfer_sent_at": now}
        if event is OrderEvent.CANCEL:
            return {"cancelled_at": now}
        if event is OrderEvent.REFUND:
            return {"refunded_at": now}
        if event in (OrderEvent.PAYMENT_REJECTED, OrderEvent.FINALIZATION_FAILED):
            return {"failure_reason": reason}
        return {}

    def _side_effects(self, order: Order, event: OrderEvent, reason: str | None) -> None:
        course = self.course_repo.get_by_id(order.course_id)  # type: ignore[arg-type]

        if event is OrderEvent.TRANSFER_SELECTED:
            self.notifications.transfer_instructions(order, course)
        elif event is OrderEvent.TRANSFER_SENT:
            self.notifications.transfer_needs_review(
                order,
                course,
                order.transfer_reference,  # type: ignore[arg-type]
                order.transfer_proof_url,  # type: ignore[arg-type]
            )
        elif event in (OrderEvent.PAYMENT_REJECTED, OrderEvent.FINALIZATION_FAILED):
            self.notifications.payment_rejected(order, course, reason)
        elif event is OrderEvent.CANCEL:
            self.notifications.order_cancelled(order, course)
        elif event is OrderEvent.REFUND:
            if self.enrollment_repo.cancel_for_order(order.id) is not None:  # type: ignore[arg-type]
                self.course_repo.release_seat(order.course_id)  # type: ignore[arg-type]
            self.notifications.order_refunded(order, course)

    def _no_transition(self, order: Order, event: OrderEvent) -> TransitionResult:
        if order.status == EVENT_TARGETS[event].value:
            logger.info(
                "Order %s already %s, ignoring %s", order.order_number, order.status, event.value
            )
            return TransitionResult(
                ok=True,
                order=order,
                already_processed=True,
                enrollment=self.enrollment_repo.get_by_order_id(order.id),  # type: ignore[arg-type]
            )
        return TransitionResult.failed(
            TransitionError.ILLEGAL_TRANSITION,
            order,
            f"Cannot apply {event.value} to an order in status {order.status}",
        )

    def _after_lost_race(self, order_id: UUID, event: OrderEvent) -> TransitionResult:
        """Another writer moved the order first; report what it is now."""
        self.db.expire_all()
        order = self.order_repo.get_by_id(order_id)
        if order is None:
            return TransitionResult.failed(TransitionError.ORDER_NOT_FOUND)
        logger.info("Order %s changed concurrently, now %s", order.order_number, order.status)
        return self._no_transition(order, event)

    def _finalize(self, order: Order, current: OrderStatus, event: OrderEvent) -> TransitionResult:
        order_id: UUID = order.id  # type: ignore[assignment]
        course_id: UUID = order.course_id  # type: ignore[assignment]
        coupon_id: UUID | None = order.coupon_id  # type: ignore[assignment]
        user_id: UUID = order.user_id  # type: ignore[assignment]

        try:
            if not self.order_repo.compare_and_set_status(
                order_id, [current], OrderStatus.PAID, paid_at=utc_now()
            ):
                self.db.rollback()
                return self._after_lost_race(order_id, event)

            if not self.course_repo.try_reserve_seat(course_id):
                raise _FinalizationAborted(TransitionError.CAPACITY_EXCEEDED)

            if coupon_id is not None and not self.coupon_repo.try_consume_use(coupon_id):
                raise _FinalizationAborted(TransitionError.COUPON_EXHAUSTED)

            enrollment = self.enrollment_repo.confirm(user_id, course_id, order_id)
            if enrollment is None:
                raise _FinalizationAborted(TransitionError.ALREADY_ENROLLED)

            self.db.refresh(order)
            self.notifications.order_paid(order, self.course_repo.get_by_id(course_id))
            self.db.commit()
        except _FinalizationAborted as exc:
            self.db.rollback()
            return self._reject_after_failed_finalization(order_id, exc.error)
        except IntegrityError:
            self.db.rollback()
            return self._reject_after_failed_finalization(order_id, TransitionError.ALREADY_ENROLLED)

        self.db.refresh(order)
        self.db.refresh(enrollment)
        logger.info(
            "Order %s: %s -> paid (%s)", order.order_number, current.value, event.value
        )
        return TransitionResult(ok=True, order=order, enrollment=enrollment)

    def _reject_after_failed_finalization(
        self, order_id: UUID, error: TransitionError
    ) -> TransitionResult:
        """Move an order whose finalization was rolled back to ``rejected``."""
        self.db.expire_all()
        if not self.order_repo.compare_and_set_status(
            order_id, OPEN_ORDER_STATUSES, OrderStatus.REJECTED, failure_reason=error.value
        ):
            self.db.rollback()
            order = self.order_repo.get_by_id(order_id)
            return TransitionResult.failed(error, order)

        order = self.order_repo.get_by_id(order_id)
        if order is None:
            self.db.rollback()
            return TransitionResult.failed(TransitionError.ORDER_NOT_FOUND)
        self.db.refresh(order)
        self.notifications.payment_rejected(
            order,
            self.course_repo.get_by_id(order.course_id),  # type: ignore[arg-type]
            error.value,
        )
        self.db.commit()
        self.db.refresh(order)

        logger.warning("Order %s rejected during finalization: %s", order.order_number, error.value)
        return TransitionResult.failed(error, order)
