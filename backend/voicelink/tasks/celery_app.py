# backend/voicelink/tasks/celery_app.py
import logging

import nest_asyncio
from celery import Celery
from celery.schedules import crontab
from celery.signals import worker_process_init, worker_process_shutdown

from voicelink.core.config import settings

# Register every mapper before a task queries anything.
from voicelink.db import base  # noqa: F401
from voicelink.db.session import dispose_worker_db_resources_sync, initialize_worker_db_resources

logger = logging.getLogger("voicelink.tasks.celery_app")

celery_app = Celery(
    "worker",
    broker=str(settings.CELERY_BROKER_URL),
    backend=str(settings.CELERY_RESULT_BACKEND),
    include=["voicelink.tasks.maintenance"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    task_track_started=True,
    task_acks_late=settings.CELERY_ACKS_LATE,
    result_expires=settings.CELERY_RESULT_EXPIRES,
    beat_schedule={
        "purge-expired-guest-sessions": {
            "task": "voicelink.tasks.maintenance.purge_expired_guest_sessions",
            "schedule": crontab(minute=15),
        },
        "purge-old-usage-records": {
            "task": "voicelink.tasks.maintenance.purge_old_usage_records",
            "schedule": crontab(hour=3, minute=0),
        },
        "purge-stale-audio-files": {
            "task": "voicelink.tasks.maintenance.purge_stale_audio_files",
            "schedule": crontab(hour=3, minute=30),
        },
    },
)


# --- Worker Process Lifecycle Signal Handlers ---


@worker_process_init.connect(weak=False)
def init_worker_process_signal(**_kwargs):
    """Signal handler for when a Celery worker process starts."""
    logger.info("CELERY_WORKER_PROCESS_INIT: Applying nest_asyncio for event loop compatibility.")
    nest_asyncio.apply()
    logger.info("CELERY_WORKER_PROCESS_INIT: nest_asyncio applied. Initializing DB resources.")
    initialize_worker_db_resources()
    logger.info("CELERY_WORKER_PROCESS_INIT: DB resources initialization complete.")


@worker_process_shutdown.connect(weak=False)
def shutdown_worker_process_signal(**_kwargs):
    """Signal handler for when a Celery worker process shuts down."""
    logger.info("CELERY_WORKER_PROCESS_SHUTDOWN: Signal received. Disposing DB resources.")
    dispose_worker_db_resources_sync()
    logger.info("CELERY_WORKER_PROCESS_SHUTDOWN: DB resources disposal complete.")

