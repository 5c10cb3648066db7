from celery import Celery
from celery.schedules import crontab

from bepawa.core.config import settings

celery_app = Celery(
    "bepawa",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["bepawa.workers.tasks"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_max_tasks_per_child=1000,

    task_routes={
        "bepawa.workers.tasks.*": {"queue": "inventory"},
    },

    beat_schedule={
        "daily-low-stock-scan": {
            "task": "bepawa.workers.tasks.scan_low_stock",
            "schedule": crontab(hour=6, minute=0),  # 6:00 AM UTC
        },
        "daily-expiry-scan": {
            "task": "bepawa.workers.tasks.scan_expiring_products",
            "schedule": crontab(hour=6, minute=30),
        },
    },
)
