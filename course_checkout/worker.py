import logging
from typing import Any

from arq import cron

from course_checkout.core.database import SessionLocal
from course_checkout.services.notification_service import NotificationService
from course_checkout.tasks import redis_settings

logger = logging.getLogger(__name__)


async def dispatch_notifications_task(ctx: dict[str, Any]) -> int:
    """Background task: deliver pending notifications from the outbox.

    Runs every minute. Failed deliveries are retried on later runs until
    NOTIFICATION_MAX_ATTEMPTS is reached.
    """
    db = SessionLocal()
    try:
        count = NotificationService(db).dispatch_pending()
        if count > 0:
            logger.info("Delivered %d notifications", count)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        dispatch_notifications_task,
    ]
    cron_jobs = [
        cron(dispatch_notifications_task, second={0}),  # every minute
    ]
    redis_settings = redis_settings
