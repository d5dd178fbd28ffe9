"""Notification outbox: stage typed events and deliver them to the dispatcher.

Events are staged inside the transaction of the order transition that caused
them; delivery happens later from the worker and never affects order state.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from course_checkout.core.config import settings
from course_checkout.models.bank_account import BankAccount
from course_checkout.models.course import Course
from course_checkout.models.notification import Notification, NotificationEvent
from course_checkout.models.order import Order
from course_checkout.repositories.bank_account_repository import BankAccountRepository
from course_checkout.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)

PAYMENT_METHOD_LABELS = {
    "mercadopago": "MercadoPago",
    "bank_transfer": "Bank transfer",
    "free": "Free",
}


def order_payload(order: Order, course: Course | None = None) -> dict[str, Any]:
    """Data the dispatcher needs to render any order message."""
    payload: dict[str, Any] = {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "customer_name": order.user_name,
        "customer_email": order.user_email,
        "amount": f"{order.final_amount:.2f}",
        "currency": order.currency,
        "payment_method": PAYMENT_METHOD_LABELS.get(
            str(order.payment_method), str(order.payment_method)
        ),
        "coupon_code": order.coupon_code,
        "coupon_discount_percent": order.coupon_discount_percent,
    }
    if course is not None:
        payload["course_id"] = str(course.id)
        payload["course_title"] = course.title
    return payload


def bank_account_payload(account: BankAccount) -> dict[str, Any]:
    return {
        "bank_name": account.bank_name,
        "account_holder": account.account_holder,
        "account_type": account.account_type,
        "account_number": account.account_number,
        "currency": account.currency,
        "swift_code": account.swift_code,
        "routing_number": account.routing_number,
        "notes": account.notes,
    }


class NotificationService:
    """Service for staging and delivering transactional notifications."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository(db)
        self.bank_accounts = BankAccountRepository(db)

    def enqueue(
        self,
        event: NotificationEvent,
        order: Order,
        *,
        course: Course | None = None,
        recipient: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> Notification:
        """Stage one event for an order. The caller owns the commit."""
        payload = order_payload(order, course)
        if extra:
            payload.update(extra)
        return self.repo.add(
            event_type=event.value,
            order_id=order.id,  # type: ignore[arg-type]
            recipient=recipient,
            payload=payload,
        )

    def order_paid(self, order: Order, course: Course | None) -> list[Notification]:
        """Confirmation to the student plus a payment notice to admins."""
        return [
            self.enqueue(
                NotificationEvent.ORDER_PAID,
                order,
                course=course,
                recipient=str(order.user_email),
            ),
            self.enqueue(NotificationEvent.ADMIN_PAYMENT_RECEIVED, order, course=course),
        ]

    def transfer_instructions(self, order: Order, course: Course | None) -> Notification:
        """Tell the student where to pay.

        Lists the account chosen at checkout, or every active account in the
        order currency when none was chosen.
        """
        accounts: list[BankAccount] = []
        if order.bank_account_id is not None:
            chosen = self.bank_accounts.get_by_id(order.bank_account_id)  # type: ignore[arg-type]
            if chosen is not None:
                accounts = [chosen]
        if not accounts:
            accounts = self.bank_accounts.get_active(str(order.currency))
        if not accounts:
            logger.warning(
                "No active %s bank account for transfer order %s",
                order.currency,
                order.order_number,
            )
        return self.enqueue(
            NotificationEvent.TRANSFER_INSTRUCTIONS,
            order,
            course=course,
            recipient=str(order.user_email),
            extra={"bank_accounts": [bank_account_payload(a) for a in accounts]},
        )

    def transfer_needs_review(
        self,
        order: Order,
        course: Course | None,
        reference: str | None,
        proof_url: str | None,
    ) -> Notification:
        return self.enqueue(
            NotificationEvent.TRANSFER_NEEDS_REVIEW,
            order,
            course=course,
            extra={"transfer_reference": reference, "transfer_proof_url": proof_url},
        )

    def payment_rejected(
        self, order: Order, course: Course | None, reason: str | None
    ) -> Notification:
        return self.enqueue(
            NotificationEvent.PAYMENT_REJECTED,
            order,
            course=course,
            recipient=str(order.user_email),
            extra={"reason": reason},
        )

    def order_cancelled(self, order: Order, course: Course | None) -> Notification:
        return self.enqueue(
            NotificationEvent.ORDER_CANCELLED,
            order,
            course=course,
            recipient=str(order.user_email),
        )

    def order_refunded(self, order: Order, course: Course | None) -> Notification:
        return self.enqueue(
            NotificationEvent.ORDER_REFUNDED,
            order,
            course=course,
            recipient=str(order.user_email),
        )

    def deliver(self, notification_id: UUID) -> bool:
        """POST one notification to the dispatcher.

        Returns:
            True if the dispatcher accepted it, False otherwise.
        """
        notification = self.repo.get_by_id(notification_id)
        if not notification:
            logger.error("Notification %s not found", notification_id)
            return False

        if not settings.NOTIFICATION_DISPATCH_URL:
            logger.warning(
                "NOTIFICATION_DISPATCH_URL not configured, leaving %s pending",
                notification_id,
            )
            return False

        body = {
            "id": str(notification.id),
            "event_type": notification.event_type,
            "recipient": notification.recipient,
            "payload": notification.payload,
        }
        try:
            with httpx.Client(timeout=30.0) as client:
                resp = client.post(
                    settings.NOTIFICATION_DISPATCH_URL,
                    content=json.dumps(body, default=str).encode("utf-8"),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.warning("Notification delivery failed for %s: %s", notification_id, exc)
            self.repo.mark_failed(notification_id, str(exc))
            return False

        if 200 <= resp.status_code < 300:
            self.repo.mark_sent(notification_id)
            return True

        self.repo.mark_failed(
            notification_id, f"HTTP {resp.status_code}: {resp.text[:500] if resp.text else ''}"
        )
        return False

    def dispatch_pending(self) -> int:
        """Deliver every pending notification that still has attempts left.

        Returns:
            Number of notifications delivered.
        """
        pending = self.repo.get_pending(settings.NOTIFICATION_MAX_ATTEMPTS)
        delivered = 0
        for notification in pending:
            if self.deliver(notification.id):  # type: ignore[arg-type]
                delivered += 1
        return delivered
