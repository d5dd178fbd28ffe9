"""Repository for the notification outbox."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from course_checkout.models.notification import Notification, NotificationStatus
from course_checkout.models.shared import utc_now


class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(
        self,
        *,
        event_type: str,
        payload: dict[str, Any],
        order_id: UUID | None = None,
        recipient: str | None = None,
    ) -> Notification:
        """Stage a notification in the current transaction without committing."""
        notification = Notification(
            event_type=event_type,
            order_id=order_id,
            recipient=recipient,
            payload=payload,
            status=NotificationStatus.PENDING.value,
            attempts=0,
        )
        self.db.add(notification)
        return notification

    def get_by_id(self, notification_id: UUID) -> Notification | None:
        return self.db.query(Notification).filter(Notification.id == notification_id).first()

    def get_for_order(self, order_id: UUID) -> list[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.order_id == order_id)
            .order_by(Notification.created_at.asc())
            .all()
        )

    def get_pending(self, max_attempts: int, limit: int = 100) -> list[Notification]:
        """Pending or failed notifications that still have attempts left."""
        return (
            self.db.query(Notification)
            .filter(
                Notification.status.in_(
                    [NotificationStatus.PENDING.value, NotificationStatus.FAILED.value]
                ),
                Notification.attempts < max_attempts,
            )
            .order_by(Notification.created_at.asc())
            .limit(limit)
            .all()
        )

    def mark_sent(self, notification_id: UUID) -> Notification | None:
        notification = self.get_by_id(notification_id)
        if notification is None:
            return None
        notification.status = NotificationStatus.SENT.value  # type: ignore[assignment]
        notification.attempts = int(notification.attempts) + 1  # type: ignore[assignment]
        notification.last_error = None  # type: ignore[assignment]
        notification.sent_at = utc_now()  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_failed(self, notification_id: UUID, error: str) -> Notification | None:
        notification = self.get_by_id(notification_id)
        if notification is None:
            return None
        notification.status = NotificationStatus.FAILED.value  # type: ignore[assignment]
        notification.attempts = int(notification.attempts) + 1  # type: ignore[assignment]
        notification.last_error = error[:1000]  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(notification)
        return notification
