"""
Playlist endpoints.

Ownership-gated mutations check, in order: authentication (401),
existence (404), ownership (403).
"""

import logging

from django.db import transaction
from django.db.models import Q
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from music.api.exceptions import Forbidden, NotFound, ValidationFailed
from music.api.responses import api_response
from music.api.serializers import (
    PlaylistInputSerializer,
    PlaylistReorderSerializer,
    PlaylistSerializer,
    PlaylistSummarySerializer,
    PlaylistTrackInputSerializer,
)
from music.models import Playlist, Track, tags_overlap
from music.pagination import paginate
from music.services import catalog

logger = logging.getLogger("music")


def playlist_queryset():
    return Playlist.objects.select_related("owner")


def get_playlist(pk):
    playlist = playlist_queryset().filter(pk=pk).first()
    if playlist is None:
        raise NotFound("Playlist not found")
    return playlist


def get_owned_playlist(pk, user, message="You can only modify your own playlists"):
    playlist = get_playlist(pk)
    if not playlist.is_owned_by(user):
        raise Forbidden(message)
    return playlist


def get_visible_playlist(pk, user):
    playlist = get_playlist(pk)
    if not (playlist.is_public or playlist.is_owned_by(user)):
        raise Forbidden("You do not have access to this playlist")
    return playlist


def unique_in_order(ids):
    seen = []
    for value in ids:
        if value not in seen:
            seen.append(value)
    return seen


class PlaylistCreateAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PlaylistInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        track_ids = unique_in_order(data.pop("tracks", []))
        if track_ids and Track.objects.filter(pk__in=track_ids).count() != len(track_ids):
            raise ValidationFailed("One or more tracks do not exist")

        with transaction.atomic():
            playlist = Playlist.objects.create(owner=request.user, **data)
            catalog.set_playlist_tracks(playlist, track_ids)

        logger.info(f"Playlist created: {playlist.pk} by user {request.user.pk}")
        playlist = playlist_queryset().get(pk=playlist.pk)
        return api_response(
            PlaylistSerializer(playlist).data, "Playlist created successfully", status.HTTP_201_CREATED
        )


class MyPlaylistsAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        playlists = playlist_queryset().filter(owner=request.user).order_by("-created_at", "-id")
        return api_response(
            PlaylistSummarySerializer(playlists, many=True).data,
            "User playlists fetched successfully",
        )


class PublicPlaylistsAPIView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        """
        List public playlists, newest first.

        Query Parameters:
            - tag: only playlists carrying this tag
            - mood: only playlists carrying this mood
            - search: case-insensitive substring of the title or description
            - page / limit: pagination (default limit: 20)
        """
        params = request.query_params
        playlists = playlist_queryset().filter(is_public=True).order_by("-created_at", "-id")

        if params.get("tag"):
            playlists = playlists.filter(tags_overlap("tags", [params["tag"]]))
        if params.get("mood"):
            playlists = playlists.filter(tags_overlap("moods", [params["mood"]]))
        if params.get("search"):
            search = params["search"]
            playlists = playlists.filter(
                Q(title__icontains=search) | Q(description__icontains=search)
            )

        items, pagination = paginate(playlists, request, default_limit=20)
        return api_response(
            {"playlists": PlaylistSummarySerializer(items, many=True).data, "pagination": pagination},
            "Public playlists fetched successfully",
        )


class PlaylistDetailAPIView(APIView):

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request, pk):
        playlist = get_visible_playlist(pk, request.user)
        return api_response(PlaylistSerializer(playlist).data, "Playlist fetched successfully")

    def patch(self, request, pk):
        playlist = get_owned_playlist(pk, request.user, "You can only update your own playlists")
        serializer = PlaylistInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        track_ids = data.pop("tracks", None)
        if track_ids is not None:
            track_ids = unique_in_order(track_ids)
            if Track.objects.filter(pk__in=track_ids).count() != len(track_ids):
                raise ValidationFailed("One or more tracks do not exist")

        with transaction.atomic():
            for field, value in data.items():
                setattr(playlist, field, value)
            playlist.save()
            if track_ids is not None:
                catalog.set_playlist_tracks(playlist, track_ids)

        playlist = playlist_queryset().get(pk=playlist.pk)
        return api_response(PlaylistSerializer(playlist).data, "Playlist updated successfully")

    def delete(self, request, pk):
        playlist = get_owned_playlist(pk, request.user, "You can only delete your own playlists")
        playlist.delete()
        logger.info(f"Playlist deleted: {pk} by user {request.user.pk}")
        return api_response({}, "Playlist deleted successfully")


class PlaylistTracksAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        """Append a track. Adding a track that is already there is a no-op."""
        playlist = get_owned_playlist(pk, request.user)
        serializer = PlaylistTrackInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        track = Track.objects.filter(pk=serializer.validated_data["track_id"]).first()
        if track is None:
            raise NotFound("Track not found")

        added = catalog.add_track_to_playlist(playlist, track)
        playlist = playlist_queryset().get(pk=playlist.pk)
        message = "Track added to playlist" if added else "Track already in playlist"
        return api_response(PlaylistSerializer(playlist).data, message)

    def put(self, request, pk):
        """Reorder the playlist. track_ids must list exactly the current tracks."""
        playlist = get_owned_playlist(pk, request.user)
        serializer = PlaylistReorderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        track_ids = serializer.validated_data["track_ids"]
        current = list(playlist.items.values_list("track_id", flat=True))
        if len(track_ids) != len(current) or set(track_ids) != set(current):
            raise ValidationFailed("track_ids must contain exactly the playlist's current tracks")

        catalog.reorder_playlist(playlist, track_ids)
        playlist = playlist_queryset().get(pk=playlist.pk)
        return api_response(PlaylistSerializer(playlist).data, "Playlist reordered")


class PlaylistTrackDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, pk, track_id):
        playlist = get_owned_playlist(pk, request.user)
        removed = catalog.remove_track_from_playlist(playlist, track_id)
        playlist = playlist_queryset().get(pk=playlist.pk)
        message = "Track removed from playlist" if removed else "Track not present in playlist"
        return api_response(PlaylistSerializer(playlist).data, message)


class PlaylistLikeAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        playlist = get_visible_playlist(pk, request.user)
        playlist.liked_by.add(request.user)
        return api_response(PlaylistSummarySerializer(playlist).data, "Playlist liked")

    def delete(self, request, pk):
        playlist = get_visible_playlist(pk, request.user)
        playlist.liked_by.remove(request.user)
        return api_response(PlaylistSummarySerializer(playlist).data, "Playlist unliked")
