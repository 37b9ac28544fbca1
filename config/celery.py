import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("courtbook")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Same env var as settings.RESERVATION_SWEEP_INTERVAL_SECONDS; settings are not loaded yet here
SWEEP_INTERVAL = float(os.environ.get("RESERVATION_SWEEP_INTERVAL", 60))


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Expire overdue holds
    "sweep-expired-holds": {
        "task": "reservations.sweep_expired_holds",
        "schedule": SWEEP_INTERVAL,
        "options": {"expires": max(SWEEP_INTERVAL - 10, 1)},
    },
}

app.conf.timezone = "UTC"
