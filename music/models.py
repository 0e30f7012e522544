import json
from typing import Iterable, List

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


# ----------  Tag helpers  ------------------------------------
def normalize_tags(values: Iterable) -> List[str]:
    """Trim, lower-case and de-duplicate tags, keeping first-seen order."""
    seen = []
    for value in values or []:
        tag = str(value).strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def tags_overlap(field: str, values: Iterable[str]) -> Q:
    """
    Q matching rows whose JSON tag list on *field* holds any of *values*.

    Tags are stored as JSON arrays of strings, so a quoted element is matched
    against the serialised array. This keeps whole-tag semantics ("rock" does
    not match "hard rock") on every backend, SQLite included.
    """
    query = Q()
    for tag in normalize_tags(values):
        query |= Q(**{f"{field}__icontains": json.dumps(tag)})
    return query


def default_social_links():
    return {"instagram": "", "youtube": "", "spotify": "", "twitter": ""}


# ----------  Catalogue models  ------------------------------------
class Artist(models.Model):
    name = models.CharField(max_length=200)
    bio = models.TextField(blank=True, default="")
    image = models.URLField(max_length=500, blank=True, default="")
    genres = models.JSONField(default=list, blank=True)
    social_links = models.JSONField(default=default_social_links, blank=True)
    fans = models.ManyToManyField(
        settings.AUTH_USER_MODEL, related_name="favorite_artists", blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["name"], name="music_artis_name_0c9b0e_idx")]

    def __str__(self):
        return self.name


class Album(models.Model):
    """
    An artist's release. total_tracks / total_duration_seconds mirror the
    tracks pointing at this album and are kept in sync by
    music.services.aggregates.recalc_album_stats.
    """
    title = models.CharField(max_length=200)
    artist = models.ForeignKey(Artist, on_delete=models.CASCADE, related_name="albums")
    description = models.TextField(blank=True, default="")
    cover_image = models.URLField(max_length=500)
    release_date = models.DateField(null=True, blank=True)
    genres = models.JSONField(default=list, blank=True)
    total_tracks = models.PositiveIntegerField(default=0)
    total_duration_seconds = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.title} — {self.artist.name}"


class Track(models.Model):
    track_file = models.URLField(max_length=500)
    title = models.CharField(max_length=200)
    artist = models.ForeignKey(Artist, on_delete=models.CASCADE, related_name="tracks")
    album = models.ForeignKey(
        Album, on_delete=models.SET_NULL, null=True, blank=True, related_name="tracks"
    )
    duration = models.PositiveIntegerField(help_text="Duration in seconds")
    language = models.CharField(max_length=50, blank=True, default="")
    genres = models.JSONField(default=list, blank=True)
    moods = models.JSONField(default=list, blank=True)
    play_count = models.PositiveIntegerField(default=0)
    like_count = models.PositiveIntegerField(default=0)
    liked_by = models.ManyToManyField(
        settings.AUTH_USER_MODEL, related_name="liked_tracks", blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-play_count", "-created_at"], name="music_track_play_co_5e1f0a_idx"),
            models.Index(fields=["album"], name="music_track_album_i_7d2c4b_idx"),
        ]

    def __str__(self):
        return f"{self.title} — {self.artist.name}"


# ----------  Playlist models  ------------------------------------
class Playlist(models.Model):
    title = models.CharField(max_length=120)
    description = models.TextField(blank=True, default="")
    cover_image = models.URLField(max_length=500, blank=True, default="")
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="playlists"
    )
    tracks = models.ManyToManyField(Track, through="PlaylistTrack", related_name="playlists")
    is_public = models.BooleanField(default=False)
    total_tracks = models.PositiveIntegerField(default=0)
    total_duration_seconds = models.PositiveIntegerField(default=0)
    tags = models.JSONField(default=list, blank=True)
    moods = models.JSONField(default=list, blank=True)
    liked_by = models.ManyToManyField(
        settings.AUTH_USER_MODEL, related_name="liked_playlists", blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.title} ({self.owner.username})"

    def is_owned_by(self, user) -> bool:
        return bool(user and user.is_authenticated and self.owner_id == user.pk)

    def ordered_items(self):
        return self.items.select_related("track__artist", "track__album").order_by("position", "id")


class PlaylistTrack(models.Model):
    playlist = models.ForeignKey(Playlist, on_delete=models.CASCADE, related_name="items")
    track = models.ForeignKey(Track, on_delete=models.CASCADE, related_name="playlist_items")
    position = models.PositiveIntegerField(default=0)
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("playlist", "track")
        ordering = ["position"]


# ----------  Playback history  ------------------------------------
class PlaybackHistory(models.Model):
    DEVICES = [
        ("web", "Web"),
        ("android", "Android"),
        ("ios", "iOS"),
        ("desktop", "Desktop"),
        ("other", "Other"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="playback_history"
    )
    track = models.ForeignKey(Track, on_delete=models.CASCADE, related_name="plays")
    played_at = models.DateTimeField(default=timezone.now)
    progress_seconds = models.PositiveIntegerField(default=0)
    completed = models.BooleanField(default=False)
    device = models.CharField(max_length=20, choices=DEVICES, default="web")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-played_at", "-id"]
        indexes = [models.Index(fields=["user", "-played_at"], name="music_playb_user_id_3a8f21_idx")]
        verbose_name_plural = "Playback history"

    def __str__(self):
        return f"{self.user.username} played {self.track.title} at {self.played_at}"
