from .settings import *

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

BOOKING_ENGINE = {
    **BOOKING_ENGINE,
    "NOTIFIER_BACKEND": "realtime.notifier.InMemoryNotifier",
}

CELERY_TASK_ALWAYS_EAGER = True

LOGGING["loggers"]["services"]["level"] = "WARNING"
LOGGING["loggers"]["bookings"]["level"] = "WARNING"
