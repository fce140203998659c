"""Resolve a user/driver id to the details notifications need."""

from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model

User = get_user_model()


@dataclass(frozen=True)
class Identity:
    user_id: int
    display_name: str
    notification_address: Optional[str]
    role: str


def lookup_identity(user_id) -> Optional[Identity]:
    """Return the identity for ``user_id`` or None when the user does not exist."""
    if not user_id:
        return None
    user = User.objects.filter(id=user_id).only(
        'id', 'username', 'first_name', 'last_name', 'fcm_token', 'role'
    ).first()
    if user is None:
        return None
    return Identity(
        user_id=user.id,
        display_name=user.display_name,
        notification_address=user.fcm_token or None,
        role=user.role,
    )
