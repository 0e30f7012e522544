"""
User and session endpoints
Registration, password and third-party sign-in, session refresh, profile
"""

import ipaddress
from datetime import timedelta
import logging

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.db.models import Count, F
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from accounts import providers
from accounts.models import Visitor
from accounts.serializers import (
    ChangePasswordSerializer,
    FacebookLoginSerializer,
    ForgotPasswordSerializer,
    GoogleLoginSerializer,
    LoginSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
    UpdateAccountSerializer,
    UserSerializer,
    VisitorInputSerializer,
    VisitorSerializer,
)
from accounts.services import User, register_user, upsert_provider_user
from accounts.tokens import (
    TokenError,
    clear_auth_cookies,
    create_reset_token,
    decode_refresh_token,
    decode_reset_token,
    issue_token_pair,
    set_auth_cookies,
)
from music.api.exceptions import NotFound, Unauthorized, ValidationFailed
from music.api.responses import api_response
from music.api.serializers import TrackSerializer
from music.models import Track
from music.pagination import page_params

logger = logging.getLogger("accounts")


def session_response(user, message, status_code=status.HTTP_200_OK):
    """Issue a fresh token pair for *user* and return it in the body and as cookies."""
    access_token, refresh_token = issue_token_pair(user)
    response = api_response(
        {
            "user": UserSerializer(user).data,
            "accessToken": access_token,
            "refreshToken": refresh_token,
        },
        message,
        status_code,
    )
    return set_auth_cookies(response, access_token, refresh_token)


def require_password_account(user, message="This account signs in with a third-party provider"):
    if not user.has_usable_password():
        raise ValidationFailed(message)


# ----------  Registration & sign-in  ------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """
    POST /api/v1/users/register/
    {"email": "...", "password": "...", "full_name": "...", "username": "optional"}
    """
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = register_user(**serializer.validated_data)
    return session_response(user, "User successfully registered and logged in", status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data["email"].strip().lower()

    user = User.objects.filter(email=email).first()
    if user is None:
        raise NotFound("User not found")
    require_password_account(user, "This account uses third-party sign-in. Please sign in with your provider.")
    if not user.check_password(serializer.validated_data["password"]):
        logger.info(f"Failed login for user {user.pk}")
        raise Unauthorized("Invalid email or password")

    user.last_login = timezone.now()
    user.save(update_fields=["last_login"])
    return session_response(user, "User logged in successfully")


def provider_login(request, verify, token, provider_name):
    try:
        identity = verify(token)
    except providers.ProviderError as exc:
        logger.info(f"{provider_name} sign-in rejected: {exc}")
        raise Unauthorized(str(exc)) from exc
    user, created = upsert_provider_user(identity)
    return session_response(
        user,
        f"User authenticated with {provider_name} successfully",
        status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@api_view(['POST'])
@permission_classes([AllowAny])
def google_login(request):
    """
    POST /api/v1/users/google/
    {"id_token": "<Google ID token>"}
    """
    serializer = GoogleLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return provider_login(request, providers.verify_google_token, serializer.validated_data["id_token"], "Google")


@api_view(['POST'])
@permission_classes([AllowAny])
def facebook_login(request):
    """
    POST /api/v1/users/facebook/
    {"access_token": "<Facebook user access token>"}
    """
    serializer = FacebookLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return provider_login(
        request, providers.verify_facebook_token, serializer.validated_data["access_token"], "Facebook"
    )


# ----------  Session  ------------------------------------
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    user = request.user
    user.refresh_token = ""
    user.save(update_fields=["refresh_token", "updated_at"])
    return clear_auth_cookies(api_response({}, "Logged out successfully"))


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_token(request):
    """Exchange the stored refresh token for a new pair. The old one stops working."""
    incoming = request.COOKIES.get("refreshToken") or request.data.get("refresh_token")
    if not incoming:
        raise Unauthorized("Refresh token is required")

    try:
        payload = decode_refresh_token(incoming)
    except TokenError:
        raise Unauthorized("Invalid refresh token")

    user = User.objects.filter(pk=payload["sub"], is_active=True).first()
    if user is None:
        raise Unauthorized("Invalid refresh token")
    if incoming != user.refresh_token:
        raise Unauthorized("Refresh token is expired or used")

    access_token, new_refresh_token = issue_token_pair(user)
    expires_at = timezone.now() + timedelta(minutes=settings.ACCESS_TOKEN_LIFETIME_MINUTES)
    response = api_response(
        {
            "accessToken": access_token,
            "refreshToken": new_refresh_token,
            "expires_at": expires_at.isoformat(),
        },
        "Token refreshed successfully",
    )
    return set_auth_cookies(response, access_token, new_refresh_token)


# ----------  Passwords  ------------------------------------
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = request.user
    require_password_account(user)

    if not user.check_password(serializer.validated_data["old_password"]):
        raise ValidationFailed("Invalid password. Please enter the correct password and try again")
    user.set_password(serializer.validated_data["new_password"])
    user.save(update_fields=["password", "updated_at"])
    return api_response({}, "Password changed successfully")


@api_view(['POST'])
@permission_classes([AllowAny])
def forgot_password(request):
    serializer = ForgotPasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = User.objects.filter(email=serializer.validated_data["email"].strip().lower()).first()
    if user is None:
        raise NotFound("User not found")
    require_password_account(user)

    token = create_reset_token(user)
    reset_url = f"{settings.FRONTEND_URL}/reset-password?token={token}"
    send_mail(
        "Password Reset Request",
        f"Click the link to reset your password: {reset_url}",
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
    )
    logger.info(f"Password reset mail sent to user {user.pk}")
    return api_response({}, "Password reset link sent to your email")


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password(request, token):
    serializer = ResetPasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        payload = decode_reset_token(token)
    except TokenError:
        raise ValidationFailed("Invalid or expired token")
    user = User.objects.filter(pk=payload["sub"]).first()
    if user is None:
        raise ValidationFailed("Invalid or expired token")
    require_password_account(user)

    user.set_password(serializer.validated_data["new_password"])
    user.refresh_token = ""
    user.save(update_fields=["password", "refresh_token", "updated_at"])
    return api_response({}, "Password reset successful. Please log in with your new password")


# ----------  Profile  ------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user(request):
    return api_response(UserSerializer(request.user).data, "Current user fetched successfully")


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_account(request):
    serializer = UpdateAccountSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    user = request.user

    with transaction.atomic():
        favorite_artists = data.pop("favorite_artists", None)
        for field, value in data.items():
            setattr(user, field, value)
        user.save()
        if favorite_artists is not None:
            user.favorite_artists.set(favorite_artists)

    return api_response(UserSerializer(user).data, "Account details updated successfully")


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def delete_account(request):
    user_id = request.user.pk
    request.user.delete()
    logger.info(f"User deleted: {user_id}")
    return clear_auth_cookies(api_response({}, "Account deleted successfully"))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def liked_tracks(request):
    tracks = (request.user.liked_tracks
              .select_related("artist", "album")
              .order_by("-created_at", "-id"))
    return api_response(TrackSerializer(tracks, many=True).data, "Liked tracks fetched successfully")


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def top_tracks(request):
    """
    The caller's most played tracks

    GET /api/v1/users/top-tracks/?limit=10
    """
    _, limit = page_params(request, default_limit=10)
    tracks = (Track.objects
              .filter(plays__user=request.user)
              .annotate(user_play_count=Count("plays"))
              .select_related("artist", "album")
              .order_by("-user_play_count", "-play_count", "-id")[:limit])
    data = []
    for track in tracks:
        item = TrackSerializer(track).data
        item["user_play_count"] = track.user_play_count
        data.append(item)
    return api_response(data, "Top tracks fetched successfully")


# ----------  Visitors & public config  ------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def track_visitor(request):
    """
    Record an anonymous visit. A returning IP bumps its visit counter.

    POST /api/v1/users/visitors/
    {"ip": "203.0.113.7", "city": "...", "region": "...", "country": "...",
     "longitude": 12.3, "network_org": "..."}
    """
    serializer = VisitorInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    ip = data.pop("ip")
    if not data.get("ip_version"):
        data["ip_version"] = f"IPv{ipaddress.ip_address(ip).version}"
    data = {key: value for key, value in data.items() if value not in ("", None)}

    with transaction.atomic():
        visitor, created = Visitor.objects.select_for_update().get_or_create(ip=ip, defaults=data)
        if not created:
            Visitor.objects.filter(pk=visitor.pk).update(
                visit_count=F("visit_count") + 1,
                last_visited_at=timezone.now(),
                **data,
            )
            visitor.refresh_from_db()

    if created:
        return api_response(VisitorSerializer(visitor).data, "Visitor recorded", status.HTTP_201_CREATED)
    return api_response(VisitorSerializer(visitor).data, "Visitor updated")


@api_view(['GET'])
@permission_classes([AllowAny])
def public_config(request):
    return api_response(
        {
            "google_client_id": settings.GOOGLE_CLIENT_ID,
            "facebook_app_id": settings.FACEBOOK_APP_ID,
        },
        "Config fetched successfully",
    )
