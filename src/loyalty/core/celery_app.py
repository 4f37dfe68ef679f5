"""Celery application configuration.

Provides task queue infrastructure with Redis broker for:
- Periodic voucher maintenance (expiry sweep)
- Background operations
"""

from celery import Celery
from kombu import Exchange, Queue

from loyalty.core.config import get_settings

settings = get_settings()

# Create Celery application
celery_app = Celery(
    "loyalty",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["loyalty.tasks.voucher_tasks"],
)

default_exchange = Exchange("default", type="direct")

celery_app.conf.task_queues = (
    Queue("normal", exchange=default_exchange, routing_key="normal"),
    Queue("maintenance", exchange=default_exchange, routing_key="maintenance"),
)

# Default queue
celery_app.conf.task_default_queue = "normal"
celery_app.conf.task_default_exchange = "default"
celery_app.conf.task_default_routing_key = "normal"

# Task routing
celery_app.conf.task_routes = {
    "loyalty.tasks.voucher_tasks.*": {"queue": "maintenance"},
}

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task execution
    task_acks_late=True,  # Acknowledge after task completes
    task_reject_on_worker_lost=True,  # Requeue if worker dies

    # Result backend
    result_expires=3600,

    # Worker configuration
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    # Retry configuration
    task_default_retry_delay=60,
    task_max_retries=3,

    # Logging
    worker_hijack_root_logger=False,  # Don't hijack root logger

    # Broker settings
    broker_connection_retry_on_startup=True,
    broker_connection_max_retries=10,
)

# Celery Beat schedule (periodic tasks)
celery_app.conf.beat_schedule = {
    "expire-stale-vouchers": {
        "task": "loyalty.tasks.voucher_tasks.expire_vouchers",
        "schedule": float(settings.expiry_sweep_interval_seconds),
        "options": {"queue": "maintenance"},
    },
}
