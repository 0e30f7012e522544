from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """
    Listener account.

    Password accounts keep Django's salted hash in ``password``; accounts
    created through a third-party identity provider carry an unusable
    password and are kept out of the password flows.
    """
    PROVIDERS = [
        ("email", "Email"),
        ("google", "Google"),
        ("facebook", "Facebook"),
    ]

    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=150, blank=True, default="")
    avatar = models.URLField(max_length=500, blank=True, default="")
    auth_provider = models.CharField(max_length=20, choices=PROVIDERS, default="email")
    is_email_verified = models.BooleanField(default=False)

    # Preference bag (favorite artists live on music.Artist.fans)
    favorite_genres = models.JSONField(default=list, blank=True)
    preferred_languages = models.JSONField(default=list, blank=True)
    mood_preferences = models.JSONField(default=list, blank=True)

    # Single active refresh token; clearing it ends the session
    refresh_token = models.TextField(blank=True, default="")

    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        self.username = (self.username or "").strip().lower()
        self.email = (self.email or "").strip().lower()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.username


class Visitor(models.Model):
    """Anonymous site visitor keyed by IP address."""
    IP_VERSIONS = [("IPv4", "IPv4"), ("IPv6", "IPv6")]

    ip = models.CharField(max_length=45, unique=True)
    ip_version = models.CharField(max_length=4, choices=IP_VERSIONS)
    city = models.CharField(max_length=120, default="Unknown")
    region = models.CharField(max_length=120, default="Unknown")
    country = models.CharField(max_length=120, default="Unknown")
    longitude = models.FloatField(null=True, blank=True)
    network_org = models.CharField(max_length=200, default="Unknown")
    visit_count = models.PositiveIntegerField(default=1)
    last_visited_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.ip} ({self.visit_count} visits)"
