"""Payment reconciliation: the commands that settle an order.

Admins confirm or reject bank transfers, students report a transfer as sent,
and gateway verdicts arrive through the webhook. All of them route through the
order state machine.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from course_checkout.models.order import TERMINAL_STATUSES, OrderStatus, PaymentMethod
from course_checkout.repositories.order_repository import OrderRepository
from course_checkout.services.order_state_machine import (
    OrderEvent,
    OrderStateMachine,
    TransitionError,
    TransitionResult,
)
from course_checkout.services.payment_provider import GatewayPayment

logger = logging.getLogger(__name__)

PROCESSING_VERDICTS = frozenset({"pending", "in_process", "authorized"})


class ReconciliationService:
    """Service for settling orders."""

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.state_machine = OrderStateMachine(db)

    def confirm_payment(self, order_id: UUID) -> TransitionResult:
        """Mark a payment as received and finalize the order.

        A second confirmation of a paid order is a no-op reported as success.
        """
        return self.state_machine.fire(order_id, OrderEvent.PAYMENT_CONFIRMED)

    def reject_payment(self, order_id: UUID, reason: str | None = None) -> TransitionResult:
        """Reject a payment under review. Only orders in ``payment_processing`` qualify."""
        return self.state_machine.fire(order_id, OrderEvent.PAYMENT_REJECTED, reason=reason)

    def mark_transfer_sent(
        self,
        order_id: UUID,
        user_id: UUID,
        reference: str | None = None,
        proof_url: str | None = None,
    ) -> TransitionResult:
        """Record that the student sent a bank transfer; queues it for review."""
        order = self.order_repo.get_by_id(order_id)
        if order is None:
            return TransitionResult.failed(TransitionError.ORDER_NOT_FOUND)
        if order.user_id != user_id:
            return TransitionResult.failed(TransitionError.FORBIDDEN)

        return self.state_machine.fire(
            order_id,
            OrderEvent.TRANSFER_SENT,
            changes={"transfer_reference": reference, "transfer_proof_url": proof_url},
        )

    def refund(self, order_id: UUID) -> TransitionResult:
        """Refund a paid order; cancels the enrollment and frees the seat."""
        return self.state_machine.fire(order_id, OrderEvent.REFUND)

    def cancel(
        self,
        order_id: UUID,
        user_id: UUID | None = None,
        is_admin: bool = False,
    ) -> TransitionResult:
        """Cancel an unpaid order on behalf of its owner or an admin."""
        order = self.order_repo.get_by_id(order_id)
        if order is None:
            return TransitionResult.failed(TransitionError.ORDER_NOT_FOUND)
        if not is_admin and order.user_id != user_id:
            return TransitionResult.failed(TransitionError.FORBIDDEN)

        return self.state_machine.fire(order_id, OrderEvent.CANCEL)

    def apply_gateway_verdict(self, order_id: UUID, payment: GatewayPayment) -> TransitionResult:
        """Apply a payment status reported by the gateway.

        Verdicts for orders already in a terminal state are acknowledged without
        changing them, except a refund of a paid order.
        """
        order = self.order_repo.get_by_id(order_id)
        if order is None:
            return TransitionResult.failed(TransitionError.ORDER_NOT_FOUND)
        if order.payment_method != PaymentMethod.MERCADOPAGO.value:
            return TransitionResult.failed(TransitionError.WRONG_PAYMENT_METHOD, order)

        status = OrderStatus(order.status)
        verdict = payment.status
        if status in TERMINAL_STATUSES:
            if status is OrderStatus.PAID and verdict in ("refunded", "charged_back"):
                return self.state_machine.fire(order_id, OrderEvent.REFUND)
            logger.warning(
                "Ignoring gateway verdict %s for order %s in terminal status %s",
                verdict,
                order.order_number,
                status.value,
            )
            return TransitionResult(ok=True, order=order, already_processed=True)

        self.order_repo.record_gateway_payment(
            order_id, payment.payment_id, payment.status, payment.status_detail
        )

        logger.info(
            "Gateway verdict %s for order %s (payment %s)",
            verdict,
            order.order_number,
            payment.payment_id,
        )

        if verdict == "approved":
            if status is OrderStatus.PENDING_PAYMENT:
                self.state_machine.fire(order_id, OrderEvent.GATEWAY_NOTIFIED)
            return self.state_machine.fire(order_id, OrderEvent.PAYMENT_CONFIRMED)

        if verdict in PROCESSING_VERDICTS:
            return self.state_machine.fire(order_id, OrderEvent.GATEWAY_NOTIFIED)

        if verdict == "rejected":
            if status is OrderStatus.PENDING_PAYMENT:
                self.state_machine.fire(order_id, OrderEvent.GATEWAY_NOTIFIED)
            return self.state_machine.fire(
                order_id,
                OrderEvent.PAYMENT_REJECTED,
                reason=payment.status_detail or "rejected",
            )

        if verdict == "cancelled":
            return self.state_machine.fire(order_id, OrderEvent.CANCEL)

        if verdict in ("refunded", "charged_back"):
            return self.state_machine.fire(order_id, OrderEvent.REFUND)

        logger.warning("Unsupported gateway status %s for order %s", verdict, order.order_number)
        return TransitionResult.failed(TransitionError.UNSUPPORTED_VERDICT, order)
