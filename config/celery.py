import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("dormitory_allocation")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

SWEEP_INTERVAL_SECONDS = float(os.environ.get("ALLOCATION_SWEEP_INTERVAL_SECONDS", 300))

app.conf.beat_schedule = {
    # Overdue reservations, no-show candidates and overdue keys
    "run-overdue-sweep": {
        "task": "sweeper.run_overdue_sweep",
        "schedule": SWEEP_INTERVAL_SECONDS,
        "options": {"expires": max(SWEEP_INTERVAL_SECONDS - 10, 1)},
    },
    # Daily digest of keys still out of circulation
    "report-keys-needing-attention": {
        "task": "sweeper.report_keys_needing_attention",
        "schedule": crontab(minute=0, hour=8),
    },
}

app.conf.timezone = os.environ.get("DJANGO_TIME_ZONE", "Asia/Almaty")
