"""Tests for background task enqueueing."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from course_checkout.tasks import (
    enqueue_dispatch_notifications,
    enqueue_task,
    get_redis_pool,
    request_notification_dispatch,
)


class TestTasks:
    @pytest.mark.asyncio
    async def test_get_redis_pool(self):
        mock_pool = MagicMock()

        with patch("course_checkout.tasks.create_pool", new_callable=AsyncMock) as mock_create:
            mock_create.return_value = mock_pool

            result = await get_redis_pool()

            assert result == mock_pool
            mock_create.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_task(self):
        """Test enqueue_task enqueues a job and closes the pool."""
        mock_job = MagicMock()
        mock_pool = MagicMock()
        mock_pool.enqueue_job = AsyncMock(return_value=mock_job)
        mock_pool.close = AsyncMock()

        with patch("course_checkout.tasks.get_redis_pool", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = mock_pool

            result = await enqueue_task("my_task", "arg1", kwarg1="value1")

            assert result == mock_job
            mock_pool.enqueue_job.assert_called_once_with("my_task", "arg1", kwarg1="value1")
            mock_pool.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_task_closes_pool_on_error(self):
        mock_pool = MagicMock()
        mock_pool.enqueue_job = AsyncMock(side_effect=Exception("Redis error"))
        mock_pool.close = AsyncMock()

        with patch("course_checkout.tasks.get_redis_pool", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = mock_pool

            with pytest.raises(Exception, match="Redis error"):
                await enqueue_task("failing_task")

            mock_pool.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_dispatch_notifications(self):
        with patch("course_checkout.tasks.enqueue_task", new_callable=AsyncMock) as mock_enqueue:
            await enqueue_dispatch_notifications()

        mock_enqueue.assert_called_once_with("dispatch_notifications_task")

    @pytest.mark.asyncio
    async def test_request_notification_dispatch(self):
        with patch(
            "course_checkout.tasks.enqueue_dispatch_notifications", new_callable=AsyncMock
        ) as mock_enqueue:
            await request_notification_dispatch()

        mock_enqueue.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_request_notification_dispatch_logs_redis_failure(self, caplog):
        with patch(
            "course_checkout.tasks.enqueue_dispatch_notifications",
            new_callable=AsyncMock,
            side_effect=ConnectionError("Redis unreachable"),
        ):
            await request_notification_dispatch()

        assert "Failed to enqueue notification dispatch" in caplog.text
