"""
Denormalised counters on albums and playlists.

Both are recomputed from the source of truth (the tracks pointing at an
album, the items of a playlist) rather than adjusted incrementally, so every
call converges regardless of what happened before it.
"""

import logging

from django.db.models import Count, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from music.models import Album, Playlist, PlaylistTrack, Track

logger = logging.getLogger("music")


def recalc_album_stats(album_id):
    """Set total_tracks / total_duration_seconds from the album's tracks. No-op for a missing album."""
    if album_id is None:
        return None
    album = Album.objects.filter(pk=album_id).first()
    if album is None:
        return None

    stats = Track.objects.filter(album_id=album_id).aggregate(
        count=Count("id"),
        duration=Coalesce(Sum("duration"), Value(0)),
    )
    album.total_tracks = stats["count"]
    album.total_duration_seconds = stats["duration"]
    album.updated_at = timezone.now()
    album.save(update_fields=["total_tracks", "total_duration_seconds", "updated_at"])
    logger.debug(
        f"Album {album_id} counters: {album.total_tracks} tracks, {album.total_duration_seconds}s"
    )
    return album


def recalc_playlist_stats(playlist_id):
    """Set total_tracks / total_duration_seconds from the playlist's resolved tracks."""
    if playlist_id is None:
        return None
    playlist = Playlist.objects.filter(pk=playlist_id).first()
    if playlist is None:
        return None

    stats = PlaylistTrack.objects.filter(playlist_id=playlist_id).aggregate(
        count=Count("id"),
        duration=Coalesce(Sum("track__duration"), Value(0)),
    )
    playlist.total_tracks = stats["count"]
    playlist.total_duration_seconds = stats["duration"]
    playlist.updated_at = timezone.now()
    playlist.save(update_fields=["total_tracks", "total_duration_seconds", "updated_at"])
    logger.debug(
        f"Playlist {playlist_id} counters: {playlist.total_tracks} tracks, "
        f"{playlist.total_duration_seconds}s"
    )
    return playlist


def playlists_containing(track_ids):
    return list(
        PlaylistTrack.objects.filter(track_id__in=track_ids)
        .values_list("playlist_id", flat=True)
        .distinct()
    )


def recalc_playlists_containing(track_id):
    """Recompute every playlist that holds *track_id*."""
    playlist_ids = playlists_containing([track_id])
    for playlist_id in playlist_ids:
        recalc_playlist_stats(playlist_id)
    return playlist_ids


def recalc_all():
    """Recompute every album and playlist. Returns (albums, playlists) touched."""
    album_ids = list(Album.objects.values_list("id", flat=True))
    playlist_ids = list(Playlist.objects.values_list("id", flat=True))
    for album_id in album_ids:
        recalc_album_stats(album_id)
    for playlist_id in playlist_ids:
        recalc_playlist_stats(playlist_id)
    logger.info(f"Recalculated counters for {len(album_ids)} albums and {len(playlist_ids)} playlists")
    return len(album_ids), len(playlist_ids)
