"""
Rule-based "for-you" recommendations.

The user's taste signature is the most frequent genres and moods over their
recent plays. Candidates share at least one genre or mood with it and are
ranked by popularity; tracks the user played recently are never returned.
"""

import logging
import time
from collections import Counter

from django.db import transaction

from music.models import PlaybackHistory, Track, tags_overlap
from music.utils.monitoring import PerformanceMonitor, RecommendationMetrics
from recommender.models import RecommendationLog

logger = logging.getLogger(__name__)

RECENT_HISTORY_WINDOW = 50
SIGNATURE_SIZE = 5
CANDIDATE_MULTIPLIER = 3
DEFAULT_LIMIT = 20
ALGORITHM_VERSION = "v1-rule-based"

# ───────────────────────────────────────────────
def taste_signature(user):
    """
    Return (favorite_genres, favorite_moods, recent_track_ids) from the
    user's last RECENT_HISTORY_WINDOW plays, newest first.
    Ties keep the order a tag was first seen in.
    """
    recent = (PlaybackHistory.objects
                    .filter(user=user)
                    .select_related("track")
                    .order_by("-played_at", "-id")[:RECENT_HISTORY_WINDOW])

    genres, moods = Counter(), Counter()
    recent_track_ids = []
    for entry in recent:
        track = entry.track
        if track.pk not in recent_track_ids:
            recent_track_ids.append(track.pk)
        genres.update(track.genres or [])
        moods.update(track.moods or [])

    favorite_genres = [g for g, _ in genres.most_common(SIGNATURE_SIZE)]
    favorite_moods = [m for m, _ in moods.most_common(SIGNATURE_SIZE)]
    return favorite_genres, favorite_moods, recent_track_ids

# ───────────────────────────────────────────────
def candidate_tracks(favorite_genres, favorite_moods, exclude_ids, limit):
    """
    Up to CANDIDATE_MULTIPLIER * limit tracks matching the signature, most
    played first. No signature means every track is a candidate.
    """
    qs = Track.objects.all()
    signature = tags_overlap("genres", favorite_genres) | tags_overlap("moods", favorite_moods)
    if favorite_genres or favorite_moods:
        qs = qs.filter(signature)
    if exclude_ids:
        qs = qs.exclude(pk__in=exclude_ids)
    qs = qs.order_by("-play_count", "-created_at", "-id")
    return list(qs.only("id", "play_count")[:limit * CANDIDATE_MULTIPLIER])

# ───────────────────────────────────────────────
@PerformanceMonitor.track_execution_time
def for_you(user, limit: int = DEFAULT_LIMIT):
    """
    Recommend up to *limit* tracks for *user*.

    Returns (tracks, meta) where tracks are hydrated with artist and album
    in rank order and meta is {favorite_genres, favorite_moods, log_id}.
    """
    start_time = time.time()

    favorite_genres, favorite_moods, recent_ids = taste_signature(user)
    candidates = candidate_tracks(favorite_genres, favorite_moods, recent_ids, limit)

    recent = set(recent_ids)
    selected = [t for t in candidates if t.pk not in recent][:limit]

    scored = [
        {
            "track": t.pk,
            "score": t.play_count + 1 / (rank + 1),
            "rank": rank,
        }
        for rank, t in enumerate(selected, start=1)
    ]

    with transaction.atomic():
        log = RecommendationLog.objects.create(
            user=user,
            type="for-you",
            source="rule-based",
            input_context={
                "favorite_genres": favorite_genres,
                "favorite_moods": favorite_moods,
                "recent_track_ids": recent_ids,
                "base_track": None,
            },
            recommended_tracks=scored,
            algorithm_version=ALGORITHM_VERSION,
        )

    by_id = Track.objects.select_related("artist", "album").in_bulk([s["track"] for s in scored])
    tracks = [by_id[s["track"]] for s in scored if s["track"] in by_id]

    RecommendationMetrics.log_recommendation(
        user.pk, [t.pk for t in tracks], "for-you", time.time() - start_time
    )
    meta = {
        "favorite_genres": favorite_genres,
        "favorite_moods": favorite_moods,
        "log_id": log.pk,
    }
    return tracks, meta
