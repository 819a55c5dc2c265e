"""
Celery application factory.
"""

from celery import Celery
from celery.signals import worker_process_init

from insurtrack.core.config import settings
from insurtrack.core.logging import setup_logging

celery_app = Celery("insurtrack")
celery_app.config_from_object("celeryconfig")

# Auto-discover tasks in these modules
celery_app.autodiscover_tasks([
    "insurtrack.tasks.reminder_tasks",
])


@worker_process_init.connect
def _configure_worker_logging(**_: object) -> None:
    setup_logging("DEBUG" if settings.APP_ENV == "development" else "INFO")
