# accounts/providers.py
"""
Third-party identity verification.

Each verifier turns a token issued to the frontend by an identity provider
into a ProviderIdentity, or raises ProviderError.

Usage:
    from accounts.providers import verify_google_token
    identity = verify_google_token(id_token)
"""
import hashlib
import hmac
import logging
from dataclasses import dataclass

import requests
from django.conf import settings
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from music.utils.monitoring import ErrorTracker, PerformanceMonitor

logger = logging.getLogger("accounts")


class ProviderError(Exception):
    """The provider rejected the token or returned no usable identity."""


@dataclass
class ProviderIdentity:
    provider: str
    email: str
    name: str = ""
    avatar: str = ""


# ---------- Google ---------- #

@PerformanceMonitor.track_api_call("google", "verify_id_token")
def verify_google_token(token: str) -> ProviderIdentity:
    if not settings.GOOGLE_CLIENT_ID:
        raise ProviderError("Google sign-in is not configured")
    try:
        claims = id_token.verify_oauth2_token(
            token, google_requests.Request(), settings.GOOGLE_CLIENT_ID
        )
    except ValueError as exc:
        raise ProviderError(f"Invalid Google token: {exc}") from exc

    email = (claims.get("email") or "").strip().lower()
    if not email or not claims.get("email_verified", True):
        raise ProviderError("Google account does not have a valid email")
    return ProviderIdentity(
        provider="google",
        email=email,
        name=claims.get("name") or "",
        avatar=claims.get("picture") or "",
    )


# ---------- Facebook ---------- #

def _appsecret_proof(access_token: str) -> str:
    return hmac.new(
        settings.FACEBOOK_APP_SECRET.encode(), access_token.encode(), hashlib.sha256
    ).hexdigest()


@PerformanceMonitor.track_api_call("facebook", "me")
def verify_facebook_token(access_token: str) -> ProviderIdentity:
    params = {"fields": "id,name,email,picture.type(large)", "access_token": access_token}
    if settings.FACEBOOK_APP_SECRET:
        params["appsecret_proof"] = _appsecret_proof(access_token)

    try:
        res = requests.get(f"{settings.FACEBOOK_GRAPH_ROOT}/me", params=params, timeout=5)
    except requests.RequestException as exc:
        ErrorTracker.log_error("FacebookGraphError", str(exc), {"endpoint": "me"})
        raise ProviderError("Could not reach Facebook") from exc

    if res.status_code == 429:
        try:
            retry_after = int(res.headers.get("Retry-After", 0)) or None
        except ValueError:
            # HTTP-date form
            retry_after = None
        ErrorTracker.log_api_rate_limit("facebook", retry_after)
        raise ProviderError("Facebook is rate limiting sign-ins, try again later")
    if res.status_code != 200:
        logger.warning("Facebook rejected access token (%s)", res.status_code)
        raise ProviderError("Invalid Facebook token")

    data = res.json()
    email = (data.get("email") or "").strip().lower()
    if not email:
        raise ProviderError("Facebook account does not have a valid email")
    picture = (data.get("picture") or {}).get("data") or {}
    return ProviderIdentity(
        provider="facebook",
        email=email,
        name=data.get("name") or "",
        avatar=picture.get("url") or "",
    )

