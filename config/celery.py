import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("hotel_booking")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Check-in reminders for tomorrow's arrivals - daily at 09:00
    "send-bulk-check-in-reminders": {
        "task": "notifications.send_bulk_check_in_reminders",
        "schedule": crontab(minute=0, hour=9),
    },
}
