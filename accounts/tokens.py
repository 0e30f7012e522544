"""
Signed tokens for sessions and password resets.

Access tokens are short-lived bearer credentials. A refresh token is
stored on the user and only the stored value is accepted, so issuing a new
one (or clearing it on logout) invalidates the previous session.
"""

import uuid
from datetime import datetime, timedelta, timezone

from django.conf import settings
from jose import JWTError, jwt


class TokenError(Exception):
    """Raised when a token cannot be decoded, has expired or has the wrong type."""


def _encode(claims: dict, secret: str, lifetime: timedelta) -> str:
    to_encode = claims.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({"iat": now, "exp": now + lifetime})
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def _decode(token: str, secret: str, token_type: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise TokenError(str(exc)) from exc
    if payload.get("type") != token_type or not payload.get("sub"):
        raise TokenError(f"Not a {token_type} token")
    return payload


def create_access_token(user) -> str:
    return _encode(
        {
            "sub": str(user.pk),
            "email": user.email,
            "username": user.username,
            "type": "access",
        },
        settings.ACCESS_TOKEN_SECRET,
        timedelta(minutes=settings.ACCESS_TOKEN_LIFETIME_MINUTES),
    )


def create_refresh_token(user) -> str:
    return _encode(
        {"sub": str(user.pk), "type": "refresh", "jti": uuid.uuid4().hex},
        settings.REFRESH_TOKEN_SECRET,
        timedelta(days=settings.REFRESH_TOKEN_LIFETIME_DAYS),
    )


def create_reset_token(user) -> str:
    return _encode(
        {"sub": str(user.pk), "type": "reset"},
        settings.RESET_PASSWORD_SECRET,
        timedelta(minutes=settings.RESET_TOKEN_LIFETIME_MINUTES),
    )


def decode_access_token(token: str) -> dict:
    return _decode(token, settings.ACCESS_TOKEN_SECRET, "access")


def decode_refresh_token(token: str) -> dict:
    return _decode(token, settings.REFRESH_TOKEN_SECRET, "refresh")


def decode_reset_token(token: str) -> dict:
    return _decode(token, settings.RESET_PASSWORD_SECRET, "reset")


def issue_token_pair(user):
    """
    Create an access/refresh pair and store the refresh token on *user*,
    replacing whatever session it had before.
    """
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)
    user.refresh_token = refresh_token
    user.save(update_fields=["refresh_token", "updated_at"])
    return access_token, refresh_token


def set_auth_cookies(response, access_token: str, refresh_token: str):
    options = {
        "httponly": True,
        "secure": settings.AUTH_COOKIE_SECURE,
        "samesite": settings.AUTH_COOKIE_SAMESITE,
    }
    response.set_cookie(
        "accessToken", access_token,
        max_age=settings.ACCESS_TOKEN_LIFETIME_MINUTES * 60, **options,
    )
    response.set_cookie(
        "refreshToken", refresh_token,
        max_age=settings.REFRESH_TOKEN_LIFETIME_DAYS * 24 * 60 * 60, **options,
    )
    return response


def clear_auth_cookies(response):
    response.delete_cookie("accessToken", samesite=settings.AUTH_COOKIE_SAMESITE)
    response.delete_cookie("refreshToken", samesite=settings.AUTH_COOKIE_SAMESITE)
    return response
