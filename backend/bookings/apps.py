"""Bookings app configuration."""

from django.apps import AppConfig


class BookingsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'bookings'

    def ready(self):
        # Expiry is swept by the Celery beat schedule (see tasks.py)
        # and can be run by hand with `manage.py expire_bookings`.
        pass
