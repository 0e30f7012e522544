import logging

from django.contrib.auth import get_user_model
from rest_framework import authentication, exceptions

from accounts.tokens import TokenError, decode_access_token

logger = logging.getLogger("accounts")

User = get_user_model()


class JWTCookieAuthentication(authentication.BaseAuthentication):
    """
    Access token from ``Authorization: Bearer <token>``, falling back to the
    ``accessToken`` cookie.

    A bad bearer header fails the request with 401. A bad cookie is treated
    as no credential at all, so a stale cookie never blocks the public
    login and refresh endpoints; protected views still answer 401.
    """
    keyword = "Bearer"

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if header and header[0].lower() == self.keyword.lower().encode():
            if len(header) != 2:
                raise exceptions.AuthenticationFailed("Invalid Authorization header.")
            return self.authenticate_token(header[1].decode("latin-1"))

        token = request.COOKIES.get("accessToken")
        if not token:
            return None
        try:
            return self.authenticate_token(token)
        except exceptions.AuthenticationFailed as exc:
            logger.info(f"Ignoring access token cookie: {exc.detail}")
            return None

    def authenticate_token(self, token):
        try:
            payload = decode_access_token(token)
        except TokenError as exc:
            raise exceptions.AuthenticationFailed("Invalid or expired access token.") from exc

        user = User.objects.filter(pk=payload["sub"]).first()
        if user is None or not user.is_active:
            raise exceptions.AuthenticationFailed("User not found.")
        return user, token

    def authenticate_header(self, request):
        return self.keyword
