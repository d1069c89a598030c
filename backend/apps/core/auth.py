"""JWT tokens for operator sessions.

Access tokens authenticate GraphQL and REST calls; refresh tokens can only
be exchanged for a new pair through the refreshToken mutation.
"""
from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings

from apps.users.models import User

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


def _issue(user: User, token_type: str, lifetime: timedelta, **claims) -> str:
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        **claims,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(hours=settings.JWT_ACCESS_TOKEN_HOURS)
    return _issue(user, ACCESS, lifetime, email=user.email)


def create_refresh_token(user: User, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(days=settings.JWT_REFRESH_TOKEN_DAYS)
    return _issue(user, REFRESH, lifetime)


def decode_token(token: str) -> dict | None:
    """Return the claims of a valid, unexpired token, otherwise None."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        # ExpiredSignatureError is a subclass
        return None


def get_user_from_token(token: str, token_type: str = ACCESS) -> User | None:
    """Resolve the active user a token of the given type was issued to."""
    claims = decode_token(token)
    if not claims or claims.get("type") != token_type:
        return None
    try:
        return User.objects.get(pk=int(claims["sub"]), is_active=True)
    except (KeyError, ValueError, User.DoesNotExist):
        return None
