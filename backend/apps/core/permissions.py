"""Permission utilities for GraphQL and REST views."""
from strawberry.types import Info

from apps.core.context import Context


class PermissionError(Exception):
    """Raised when user lacks required permissions."""

    pass


def get_current_user(info: Info[Context, None]):
    """Get the current authenticated user or raise error."""
    if not info.context.is_authenticated:
        raise PermissionError("Authentication required")
    return info.context.user


def check_auth(info: Info[Context, None]):
    """Get the current user without raising.

    Returns (user, None) on success or (None, error_string) on failure.
    Use in mutations that return result types.
    """
    if not info.context.is_authenticated:
        return None, "Authentication required"
    return info.context.user, None


def check_admin(info: Info[Context, None]):
    """Like check_auth, but the user must also be an administrator."""
    user, err = check_auth(info)
    if err:
        return None, err
    if not user.is_admin:
        return None, "Permission denied"
    return user, None


def get_current_user_from_request(request):
    """Get the current authenticated user from a Django request.

    Uses the same authentication logic as the GraphQL context.
    Returns None if not authenticated.
    """
    from apps.core.context import get_context

    context = get_context(request)
    if context.is_authenticated:
        return context.user
    return None
