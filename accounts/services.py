"""
Account creation and third-party sign-in.

Both the password registration flow and the Google / Facebook flows end in
the same User table; third-party sign-ins find-or-create by email.
"""

import logging
import re

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from music.api.exceptions import Conflict

logger = logging.getLogger("accounts")

User = get_user_model()


def generate_unique_username(email: str) -> str:
    """
    Derive a free username from the local part of *email*:
    "john@x.com" -> john, john1, john2, ... (first one not taken).
    """
    base = re.sub(r"[^a-z0-9]", "", email.split("@")[0].lower()) or "user"
    candidate, suffix = base, 0
    while User.objects.filter(username=candidate).exists():
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


@transaction.atomic
def register_user(email, password, full_name="", username=None):
    email = email.strip().lower()
    if User.objects.filter(email=email).exists():
        raise Conflict("User already exists with this email")

    username = (username or "").strip().lower()
    if username:
        if User.objects.filter(username=username).exists():
            raise Conflict("Username is already taken")
    else:
        username = generate_unique_username(email)

    user = User(
        username=username,
        email=email,
        full_name=full_name or "",
        auth_provider="email",
        is_email_verified=False,
    )
    user.set_password(password)
    user.save()
    logger.info(f"User registered: {user.pk} ({user.username})")
    return user


def upsert_provider_user(identity):
    """
    Find or create the user behind a verified ProviderIdentity.

    A first sign-in creates a password-less account with a generated
    username. A returning email account is linked: provider, verification
    flag and (when empty) avatar are backfilled; its password keeps working.
    Returns (user, created).
    """
    user = User.objects.filter(email=identity.email).first()

    if user is None:
        user = User(
            username=generate_unique_username(identity.email),
            email=identity.email,
            full_name=identity.name,
            avatar=identity.avatar,
            auth_provider=identity.provider,
            is_email_verified=True,
        )
        user.set_unusable_password()
        user.save()
        logger.info(f"User created from {identity.provider}: {user.pk} ({user.username})")
        return user, True

    if user.auth_provider == "email":
        user.auth_provider = identity.provider
        user.is_email_verified = True
        if not user.avatar and identity.avatar:
            user.avatar = identity.avatar
        try:
            with transaction.atomic():
                user.save(update_fields=["auth_provider", "is_email_verified", "avatar", "updated_at"])
        except DatabaseError as exc:
            # sign-in goes ahead with the account as it was
            logger.warning(f"Could not link {identity.provider} to user {user.pk}: {exc}")
            user.refresh_from_db()
    return user, False
