"""Core GraphQL schema: authentication, current user and dashboard."""
from typing import Annotated

import strawberry
from django.contrib.auth import authenticate
from strawberry.types import Info

from apps.core.auth import create_access_token, create_refresh_token, get_user_from_token
from apps.core.context import Context


@strawberry.type
class AuthPayload:
    """Authentication response with tokens."""

    access_token: str
    refresh_token: str
    user_id: int
    email: str


@strawberry.type
class AuthError:
    """Authentication error."""

    message: str


AuthResult = Annotated[AuthPayload | AuthError, strawberry.union("AuthResult")]


@strawberry.type
class DeleteResult:
    """Result of delete operations."""

    success: bool = False
    error: str | None = None


@strawberry.type
class CurrentUser:
    """Current authenticated user info."""

    id: int
    email: str
    first_name: str
    last_name: str
    is_admin: bool


@strawberry.type
class DashboardStats:
    total_firms: int
    total_invoices: int
    pending_scheduled: int
    sent_invoices: int
    paid_invoices: int


def _auth_payload(user) -> AuthPayload:
    return AuthPayload(
        access_token=create_access_token(user),
        refresh_token=create_refresh_token(user),
        user_id=user.id,
        email=user.email,
    )


@strawberry.type
class CoreQuery:
    """Core queries including auth status."""

    @strawberry.field
    def me(self, info: Info[Context, None]) -> CurrentUser | None:
        """Get current authenticated user."""
        user = info.context.user
        if user is None:
            return None

        return CurrentUser(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            is_admin=user.is_admin,
        )

    @strawberry.field
    def dashboard_stats(self, info: Info[Context, None]) -> DashboardStats:
        """Counts shown on the dashboard."""
        from apps.core.permissions import get_current_user
        from apps.firms.models import Firm
        from apps.invoices.models import Invoice
        from apps.scheduling.models import ScheduledInvoice

        get_current_user(info)
        return DashboardStats(
            total_firms=Firm.objects.count(),
            total_invoices=Invoice.objects.count(),
            pending_scheduled=ScheduledInvoice.objects.filter(
                status=ScheduledInvoice.Status.PENDING
            ).count(),
            sent_invoices=Invoice.objects.filter(status=Invoice.Status.SENT).count(),
            paid_invoices=Invoice.objects.filter(status=Invoice.Status.PAID).count(),
        )


@strawberry.type
class AuthMutation:
    """Authentication mutations."""

    @strawberry.mutation
    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate user and return tokens."""
        user = authenticate(username=email.strip().lower(), password=password)

        if user is None or not user.is_active:
            return AuthError(message="Invalid email or password")

        return _auth_payload(user)

    @strawberry.mutation
    def refresh_token(self, refresh_token: str) -> AuthResult:
        """Get new access token using refresh token."""
        user = get_user_from_token(refresh_token, token_type="refresh")

        if user is None:
            return AuthError(message="Invalid or expired refresh token")

        return _auth_payload(user)
