"""WebSocket consumer that delivers booking push notifications."""

import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from realtime.notifier import push_group_name

logger = logging.getLogger(__name__)


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """
    Receives pushes addressed to the user's registered notification token.

    ChannelLayerNotifier sends to ``push_group_name(token)``. Every socket
    opened by an account joins that group, so all of the user's devices
    get booking events: new bookings for drivers, offers and status
    changes for passengers.
    """

    push_group = None

    async def connect(self):
        user = self.scope["user"]
        if user.is_anonymous:
            await self.close()
            return

        token = getattr(user, "fcm_token", None)
        if not token:
            # 4003: authenticated but nothing to listen on
            await self.close(code=4003)
            return

        self.push_group = push_group_name(token)
        await self.channel_layer.group_add(self.push_group, self.channel_name)
        await self.accept()

        logger.info("User %s subscribed to push notifications", user.pk)
        await self.send_json({
            "type": "connection_established",
            "user_id": user.pk,
            "role": getattr(user, "role", None),
        })

    async def disconnect(self, close_code):
        if self.push_group:
            await self.channel_layer.group_discard(self.push_group, self.channel_name)

    async def receive_json(self, content, **kwargs):
        msg_type = content.get("type") if isinstance(content, dict) else None
        if msg_type == "ping":
            await self.send_json({"type": "pong"})
        else:
            await self.send_json({"type": "error", "message": f"Unsupported message type: {msg_type}"})

    async def push_notification(self, event):
        """Group handler for ChannelLayerNotifier.send()."""
        await self.send_json({
            "type": "notification",
            "title": event.get("title", ""),
            "body": event.get("body", ""),
            "data": event.get("data", {}),
        })
