"""Base task class with common functionality.

Provides a foundation for Celery tasks with:
- Error handling and logging
- Retry logic
- Running async service code from Celery's sync workers
"""

import asyncio
import functools
import logging
from typing import Any, Callable, TypeVar

from celery import Task

from loyalty.core.celery_app import celery_app
from loyalty.core.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableTask(Task):
    """Task with automatic retry on storage failures.

    Retries with exponential backoff; domain errors are not retried.
    """

    abstract = True
    autoretry_for = (StorageError,)
    retry_backoff = True
    retry_backoff_max = 600  # Max 10 minutes
    retry_jitter = True
    max_retries = 3

    def on_failure(
        self,
        exc: Exception,
        task_id: str,
        args: tuple,
        kwargs: dict,
        einfo: Any,
    ) -> None:
        """Log task failure."""
        logger.error(
            f"Task {self.name} failed after {self.request.retries} retries",
            exc_info=exc,
            extra={"task_id": task_id, "task_name": self.name},
        )

    def on_retry(
        self,
        exc: Exception,
        task_id: str,
        args: tuple,
        kwargs: dict,
        einfo: Any,
    ) -> None:
        """Log task retry."""
        logger.warning(
            f"Task {self.name} retrying "
            f"(attempt {self.request.retries + 1}/{self.max_retries}): {exc}",
            extra={"task_id": task_id, "task_name": self.name},
        )


def async_task(
    *args: Any,
    bind: bool = True,
    base: type[Task] = RetryableTask,
    **kwargs: Any,
) -> Callable:
    """Decorator for async Celery tasks.

    Each invocation runs the coroutine on a fresh event loop.

    @param bind - Bind task instance to first argument
    @param base - Base task class to use
    @returns Decorated task function

    Example:
        @async_task(name="loyalty.tasks.voucher_tasks.expire_vouchers")
        async def expire_vouchers(self) -> dict:
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @celery_app.task(*args, bind=bind, base=base, **kwargs)
        @functools.wraps(func)
        def wrapper(*task_args: Any, **task_kwargs: Any) -> T:
            return asyncio.run(func(*task_args, **task_kwargs))

        return wrapper

    return decorator
