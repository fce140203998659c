"""WebSocket authentication middleware for JWT auth."""

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

User = get_user_model()
logger = logging.getLogger(__name__)


@database_sync_to_async
def _get_active_user(user_id):
    return User.objects.filter(id=user_id, is_active=True).first()


class JWTAuthMiddleware(BaseMiddleware):
    """
    Authenticate WebSocket connections using a JWT access token in the
    querystring (?token=...). Anything else connects as AnonymousUser and
    is closed by the consumer.
    """

    async def __call__(self, scope, receive, send):
        raw = parse_qs(scope.get("query_string", b"").decode()).get("token", [None])[0]
        scope["user"] = await self._resolve_user(raw) or AnonymousUser()
        return await super().__call__(scope, receive, send)

    async def _resolve_user(self, raw_token):
        if not raw_token:
            return None
        try:
            access = AccessToken(raw_token)
        except TokenError as exc:
            logger.debug("Rejected WebSocket token: %s", exc)
            return None
        return await _get_active_user(access["user_id"])
