"""
Catalogue mutations that move denormalised counters.

Each operation runs in one transaction together with the counter
recalculation it triggers, so a failure leaves no stale album or
playlist totals behind.
"""

import logging

from django.db import transaction

from music.api.exceptions import NotFound
from music.models import Album, Artist, PlaylistTrack, Track, normalize_tags
from music.services.aggregates import (
    playlists_containing,
    recalc_album_stats,
    recalc_playlist_stats,
)

logger = logging.getLogger("music")

TRACK_FIELDS = ("track_file", "title", "duration", "language")


def resolve_artist(artist_id):
    artist = Artist.objects.filter(pk=artist_id).first()
    if artist is None:
        raise NotFound("Artist not found")
    return artist


def resolve_album(album_id):
    if album_id is None:
        return None
    album = Album.objects.filter(pk=album_id).first()
    if album is None:
        raise NotFound("Album not found")
    return album


@transaction.atomic
def create_track(data):
    """Create a track from validated *data* and refresh its album's counters."""
    artist = resolve_artist(data["artist"])
    album = resolve_album(data.get("album"))

    track = Track.objects.create(
        track_file=data["track_file"],
        title=data["title"],
        artist=artist,
        album=album,
        duration=data["duration"],
        language=data.get("language", ""),
        genres=normalize_tags(data.get("genres", [])),
        moods=normalize_tags(data.get("moods", [])),
    )
    if album is not None:
        recalc_album_stats(album.pk)

    logger.info(f"Track created: {track.pk} '{track.title}'")
    return track


@transaction.atomic
def update_track(track, data):
    """
    Apply a partial update to *track*.

    A moved track refreshes both its old and new album. A duration change
    refreshes the album and every playlist holding the track.
    """
    old_album_id = track.album_id
    old_duration = track.duration

    if "artist" in data:
        track.artist = resolve_artist(data["artist"])
    if "album" in data:
        # explicit null detaches the track
        track.album = resolve_album(data["album"])

    for field in TRACK_FIELDS:
        if field in data:
            setattr(track, field, data[field])
    if "genres" in data:
        track.genres = normalize_tags(data["genres"])
    if "moods" in data:
        track.moods = normalize_tags(data["moods"])
    track.save()

    album_ids = {old_album_id, track.album_id} - {None}
    for album_id in album_ids:
        recalc_album_stats(album_id)
    if track.duration != old_duration:
        for playlist_id in playlists_containing([track.pk]):
            recalc_playlist_stats(playlist_id)

    logger.info(f"Track updated: {track.pk}")
    return track


@transaction.atomic
def delete_track(track):
    album_id = track.album_id
    playlist_ids = playlists_containing([track.pk])
    track_id = track.pk

    track.delete()

    recalc_album_stats(album_id)
    for playlist_id in playlist_ids:
        recalc_playlist_stats(playlist_id)

    logger.info(f"Track deleted: {track_id}")
    return track_id


@transaction.atomic
def delete_album(album):
    """Delete *album*; its tracks stay in the catalogue without an album."""
    album_id = album.pk
    detached = Track.objects.filter(album_id=album_id).count()
    album.delete()
    logger.info(f"Album deleted: {album_id} ({detached} tracks detached)")
    return album_id


@transaction.atomic
def delete_artist(artist):
    """
    Delete *artist* with its albums and tracks, then refresh the playlists
    and the other artists' albums that held those tracks.
    """
    artist_id = artist.pk
    track_ids = list(artist.tracks.values_list("id", flat=True))
    playlist_ids = playlists_containing(track_ids)
    album_ids = set(artist.tracks.exclude(album__isnull=True).values_list("album_id", flat=True))

    artist.delete()

    for album_id in album_ids:
        recalc_album_stats(album_id)
    for playlist_id in playlist_ids:
        recalc_playlist_stats(playlist_id)

    logger.info(
        f"Artist deleted: {artist_id} ({len(track_ids)} tracks, {len(playlist_ids)} playlists refreshed)"
    )
    return artist_id


@transaction.atomic
def add_track_to_playlist(playlist, track):
    """Append *track* to *playlist*. Adding a track already present changes nothing."""
    if PlaylistTrack.objects.filter(playlist=playlist, track=track).exists():
        return False
    last = playlist.items.order_by("-position").values_list("position", flat=True).first()
    PlaylistTrack.objects.create(
        playlist=playlist,
        track=track,
        position=0 if last is None else last + 1,
    )
    recalc_playlist_stats(playlist.pk)
    return True


@transaction.atomic
def remove_track_from_playlist(playlist, track_id):
    """Drop *track_id* from *playlist*. Removing an absent track changes nothing."""
    deleted, _ = PlaylistTrack.objects.filter(playlist=playlist, track_id=track_id).delete()
    if not deleted:
        return False
    recalc_playlist_stats(playlist.pk)
    return True


@transaction.atomic
def set_playlist_tracks(playlist, track_ids):
    """Replace the playlist's tracks with *track_ids* in that order."""
    playlist.items.all().delete()
    PlaylistTrack.objects.bulk_create([
        PlaylistTrack(playlist=playlist, track_id=track_id, position=position)
        for position, track_id in enumerate(track_ids)
    ])
    recalc_playlist_stats(playlist.pk)


@transaction.atomic
def reorder_playlist(playlist, track_ids):
    current = dict(playlist.items.values_list("track_id", "id"))
    for position, track_id in enumerate(track_ids):
        PlaylistTrack.objects.filter(pk=current[track_id]).update(position=position)
