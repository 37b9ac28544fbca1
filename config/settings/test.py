"""Test settings.

File-backed SQLite so that worker threads in concurrency tests share one
database, and Celery tasks executed inline.
"""

from .base import *  # noqa: F401,F403

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test-db.sqlite3',  # noqa: F405
        'TEST': {
            'NAME': BASE_DIR / 'test-db.sqlite3',  # noqa: F405
        },
        'OPTIONS': {
            'timeout': 20,
        },
    }
}

CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

RESERVATION_HOLD_TTL = timedelta(minutes=10)  # noqa: F405
RESERVATION_PAYMENT_WINDOW = timedelta(minutes=15)  # noqa: F405
COURTS_DEFAULT_TIME_ZONE = 'America/Argentina/Cordoba'
COURTS_DEFAULT_CURRENCY = 'ARS'

# caplog listens on the root logger
for _name in ("apps", "shared"):
    LOGGING["loggers"][_name] = {"level": "DEBUG", "propagate": True}  # noqa: F405
