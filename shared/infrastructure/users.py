"""
User directory

Boundary to the account service: the engines only need to resolve a
user id to a user record (for ownership and limits).
"""

from django.contrib.auth import get_user_model

from shared.domain.exceptions import NotFoundError


def get_user(user_id):
    """Return the active user with ``user_id`` or raise ``NotFoundError``."""
    user_model = get_user_model()
    try:
        return user_model.objects.get(pk=user_id, is_active=True)
    except user_model.DoesNotExist:
        raise NotFoundError(f"User {user_id} not found", user_id=user_id)
