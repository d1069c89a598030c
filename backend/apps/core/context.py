"""Request context shared by the GraphQL schema and the REST views."""
from dataclasses import dataclass

from django.http import HttpRequest
from strawberry.django.views import GraphQLView

from apps.core.auth import get_user_from_token
from apps.users.models import User

BEARER_PREFIX = "Bearer "


@dataclass
class Context:
    request: HttpRequest
    user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def bearer_token(request: HttpRequest) -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX):].strip() or None


def get_context(request: HttpRequest) -> Context:
    """Build the context for a request, resolving the operator from its JWT."""
    token = bearer_token(request)
    user = get_user_from_token(token) if token else None
    return Context(request=request, user=user)


class AuthenticatedGraphQLView(GraphQLView):
    def get_context(self, request, response):
        return get_context(request)
