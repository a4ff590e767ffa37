"""
Celery application configuration.
"""

import ssl

from celery import Celery

from keepsake.core.config import settings

# Create Celery app
celery_app = Celery(
    "keepsake_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["keepsake.worker.tasks"],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=60 * 30,  # 30 minutes max per task
    task_soft_time_limit=60 * 25,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    result_expires=3600 * 24,  # Results expire after 24 hours
    beat_schedule={
        "reconcile-contacts": {
            "task": "reconcile_contacts_task",
            "schedule": float(settings.reconcile_interval_seconds),
        },
    },
)

# SSL configuration for managed Redis (rediss://)
if settings.redis_url.startswith("rediss://"):
    celery_app.conf.update(
        broker_use_ssl={"ssl_cert_reqs": ssl.CERT_NONE},
        redis_backend_use_ssl={"ssl_cert_reqs": ssl.CERT_NONE},
    )
