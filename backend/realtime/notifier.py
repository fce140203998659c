"""
Push notification delivery.

The booking services only know the ``Notifier`` interface:
``send(address_token, title, body, data) -> bool``. Delivery is
fire-and-forget; a False return (or an exception inside a backend) is logged
by the caller and never rolls back a booking transition.

Backends:
    - ChannelLayerNotifier: pushes to the Channels group owned by the device
      token; clients receive it on ``ws/notifications/``
    - LoggingNotifier: logs the message only
    - InMemoryNotifier: keeps messages in ``InMemoryNotifier.outbox`` (tests)
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, address_token: str, title: str, body: str, data: Optional[Dict[str, Any]] = None) -> bool: ...


def push_group_name(address_token: str) -> str:
    """Channels group for a device token (group names must be short ASCII)."""
    digest = hashlib.sha256(address_token.encode("utf-8")).hexdigest()[:32]
    return f"push_{digest}"


def _stringify(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    # Push payload data must be flat string pairs
    return {str(k): "" if v is None else str(v) for k, v in (data or {}).items()}


class ChannelLayerNotifier:
    """Deliver through the configured Channels layer (Redis in production)."""

    def send(self, address_token, title, body, data=None) -> bool:
        if not address_token:
            logger.debug("Cannot send notification: no address token")
            return False

        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning("No channel layer available for push notification")
            return False

        payload = {
            "type": "push_notification",
            "title": title,
            "body": body,
            "data": _stringify(data),
        }
        group = push_group_name(address_token)
        logger.debug("PUSH -> %s: %s", group, payload)
        async_to_sync(channel_layer.group_send)(group, payload)
        return True


class LoggingNotifier:
    def send(self, address_token, title, body, data=None) -> bool:
        if not address_token:
            return False
        logger.info("Notification to %s...: %s | %s | %s", address_token[:8], title, body, _stringify(data))
        return True


@dataclass
class SentNotification:
    address_token: str
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)


class InMemoryNotifier:
    """
    Records every send in ``outbox`` instead of delivering it.

    The outbox lives on the class so a test can read what the engine sent
    through instances it never sees; call ``clear()`` in ``setUp``.
    """

    outbox: List[SentNotification] = []

    def send(self, address_token, title, body, data=None) -> bool:
        if not address_token:
            return False
        InMemoryNotifier.outbox.append(
            SentNotification(address_token=address_token, title=title, body=body, data=_stringify(data))
        )
        return True

    @classmethod
    def clear(cls):
        cls.outbox.clear()


def get_notifier(path: Optional[str] = None) -> Notifier:
    from services.booking_management.conf import booking_setting

    backend = import_string(path or booking_setting("NOTIFIER_BACKEND"))
    return backend()
