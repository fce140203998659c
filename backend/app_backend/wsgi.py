"""WSGI config for app_backend project (HTTP only, no WebSockets)."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "app_backend.settings.settings")

application = get_wsgi_application()
