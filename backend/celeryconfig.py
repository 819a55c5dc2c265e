"""
Celery settings for the InsurTrack worker and beat.

Loaded with ``config_from_object("celeryconfig")`` in ``insurtrack.tasks``.
Start the processes from ``backend/``:

    celery -A insurtrack.tasks worker -Q notifications,default
    celery -A insurtrack.tasks beat
"""

import os

from celery.schedules import crontab

broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
result_expires = 24 * 3600

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

# Beat times below are UTC.
timezone = "UTC"
enable_utc = True

imports = ("insurtrack.tasks.reminder_tasks",)

task_acks_late = True
task_reject_on_worker_lost = True
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 200

# A run sends at most one e-mail per policy holder.
task_soft_time_limit = 10 * 60
task_time_limit = 11 * 60
task_default_retry_delay = 60
task_max_retries = 3

task_default_queue = "default"
task_routes = {
    "insurtrack.tasks.reminder_tasks.*": {"queue": "notifications"},
}

EMI_REMINDER_SCHEDULE = crontab(
    hour=int(os.getenv("EMI_REMINDER_HOUR", "9")),
    minute=int(os.getenv("EMI_REMINDER_MINUTE", "0")),
)

beat_schedule = {
    "send-emi-reminders-daily": {
        "task": "insurtrack.tasks.reminder_tasks.send_emi_reminders",
        "schedule": EMI_REMINDER_SCHEDULE,
    },
}
