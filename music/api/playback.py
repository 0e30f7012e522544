"""
Playback API endpoints
Record what a user plays and report their listening history
"""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import F
import logging

from music.models import PlaybackHistory, Track
from music.pagination import page_params, paginate
from music.api.exceptions import Forbidden, NotFound
from music.api.responses import api_response
from music.api.serializers import (
    PlaybackHistorySerializer,
    PlaybackProgressSerializer,
    PlaybackStartSerializer,
)

logger = logging.getLogger(__name__)


def history_queryset(user):
    return (
        PlaybackHistory.objects
        .filter(user=user)
        .select_related("track__artist", "track__album")
        .order_by("-played_at", "-id")
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def start_playback(request):
    """
    Start playing a track

    POST /api/v1/playback/start/
    {
        "track_id": 12,
        "device": "web",
        "ip_address": "203.0.113.7"
    }
    """
    serializer = PlaybackStartSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    track = Track.objects.filter(pk=data["track_id"]).first()
    if track is None:
        raise NotFound("Track not found")

    with transaction.atomic():
        entry = PlaybackHistory.objects.create(
            user=request.user,
            track=track,
            device=data["device"],
            ip_address=data.get("ip_address") or request.META.get("REMOTE_ADDR"),
        )
        Track.objects.filter(pk=track.pk).update(play_count=F("play_count") + 1)

    logger.info(f"Playback started: user {request.user.pk} track {track.pk} ({data['device']})")
    entry = history_queryset(request.user).get(pk=entry.pk)
    return api_response(
        PlaybackHistorySerializer(entry).data, "Playback started", status.HTTP_201_CREATED
    )


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_progress(request, pk):
    """
    Report progress on a playback entry

    PATCH /api/v1/playback/<id>/progress/
    {
        "progress_seconds": 95,
        "completed": false
    }
    """
    serializer = PlaybackProgressSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    entry = PlaybackHistory.objects.filter(pk=pk).first()
    if entry is None:
        raise NotFound("Playback history entry not found")
    if entry.user_id != request.user.pk:
        raise Forbidden("You can only update your own playback entries")

    for field, value in serializer.validated_data.items():
        setattr(entry, field, value)
    entry.save()

    entry = history_queryset(request.user).get(pk=entry.pk)
    return api_response(PlaybackHistorySerializer(entry).data, "Playback updated")


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def playback_history(request):
    """
    Paginated playback history, newest first

    GET /api/v1/playback/history/?page=1&limit=20
    """
    items, pagination = paginate(history_queryset(request.user), request, default_limit=20)
    return api_response(
        {"history": PlaybackHistorySerializer(items, many=True).data, "pagination": pagination},
        "Playback history fetched successfully",
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def recent_plays(request):
    """
    Last N plays

    GET /api/v1/playback/recent/?limit=10
    """
    _, limit = page_params(request, default_limit=10)
    recent = history_queryset(request.user)[:limit]
    return api_response(
        PlaybackHistorySerializer(recent, many=True).data,
        "Recent plays fetched successfully",
    )
