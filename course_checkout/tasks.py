import logging
from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from course_checkout.core.config import settings

logger = logging.getLogger(__name__)

# Redis connection settings
redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Get or create Redis pool for arq"""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """
    Enqueue a task to the arq worker.

    Args:
        task_name: Name of the task function
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task

    Returns:
        Job object from arq
    """
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
        return job  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_dispatch_notifications() -> Job:
    """Enqueue an immediate run of the notification dispatcher."""
    return await enqueue_task("dispatch_notifications_task")


async def request_notification_dispatch() -> None:
    """Ask the worker to deliver freshly staged notifications now.

    Used as a response background task after an order transition commits.
    When Redis is unreachable the cron run picks the rows up instead.
    """
    try:
        await enqueue_dispatch_notifications()
    except Exception:
        logger.exception("Failed to enqueue notification dispatch")
