from rest_framework.views import APIView
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from django.db import transaction
from django.db.models import F
import logging

from music.models import Album, Artist, Track, tags_overlap
from music.pagination import paginate
from music.services import catalog
from music.services.aggregates import recalc_album_stats
from music.api.exceptions import Conflict, NotFound, ValidationFailed
from music.api.responses import api_response
from music.api.serializers import (
    AlbumDetailSerializer,
    AlbumInputSerializer,
    AlbumSerializer,
    ArtistInputSerializer,
    ArtistSerializer,
    TrackInputSerializer,
    TrackSerializer,
)

logger = logging.getLogger("music")


def id_param(params, name):
    try:
        return int(params[name])
    except ValueError:
        raise ValidationFailed(f"{name} must be an integer")


def get_or_404(queryset, pk, label):
    obj = queryset.filter(pk=pk).first()
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj


class CatalogueView(APIView):
    """Reads are public; writes need a staff account."""

    def get_permissions(self):
        if self.request.method in ("GET", "HEAD", "OPTIONS"):
            return [AllowAny()]
        return [IsAdminUser()]


# ----------  Tracks  ------------------------------------
def track_queryset():
    return Track.objects.select_related("artist", "album")


class TrackListAPIView(CatalogueView):

    def get(self, request):
        """
        List tracks, newest first.

        Query Parameters:
            - artistId: only tracks by this artist
            - albumId: only tracks on this album
            - genre: only tracks tagged with this genre
            - mood: only tracks tagged with this mood
            - search: case-insensitive substring of the title
            - page / limit: pagination (default limit: 20)
        """
        params = request.query_params
        tracks = track_queryset().order_by("-created_at", "-id")

        if params.get("artistId"):
            tracks = tracks.filter(artist_id=id_param(params, "artistId"))
        if params.get("albumId"):
            tracks = tracks.filter(album_id=id_param(params, "albumId"))
        if params.get("genre"):
            tracks = tracks.filter(tags_overlap("genres", [params["genre"]]))
        if params.get("mood"):
            tracks = tracks.filter(tags_overlap("moods", [params["mood"]]))
        if params.get("search"):
            tracks = tracks.filter(title__icontains=params["search"])

        items, pagination = paginate(tracks, request, default_limit=20)
        return api_response(
            {"tracks": TrackSerializer(items, many=True).data, "pagination": pagination},
            "Tracks fetched successfully",
        )

    def post(self, request):
        serializer = TrackInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        track = catalog.create_track(serializer.validated_data)
        track = track_queryset().get(pk=track.pk)
        return api_response(
            TrackSerializer(track).data, "Track created successfully", status.HTTP_201_CREATED
        )


class TrackDetailAPIView(CatalogueView):

    def get(self, request, pk):
        track = get_or_404(track_queryset(), pk, "Track")
        return api_response(TrackSerializer(track).data, "Track fetched successfully")

    def patch(self, request, pk):
        track = get_or_404(Track.objects.all(), pk, "Track")
        serializer = TrackInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        catalog.update_track(track, serializer.validated_data)
        track = track_queryset().get(pk=track.pk)
        return api_response(TrackSerializer(track).data, "Track updated successfully")

    def delete(self, request, pk):
        track = get_or_404(Track.objects.all(), pk, "Track")
        catalog.delete_track(track)
        return api_response({}, "Track deleted successfully")


class TrackPlayAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        updated = Track.objects.filter(pk=pk).update(play_count=F("play_count") + 1)
        if not updated:
            raise NotFound("Track not found")
        track = track_queryset().get(pk=pk)
        return api_response(TrackSerializer(track).data, "Play count incremented")


class TrackLikeAPIView(APIView):
    """Like / unlike a track. Each user counts once towards like_count."""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        track = get_or_404(Track.objects.all(), pk, "Track")
        with transaction.atomic():
            if not track.liked_by.filter(pk=request.user.pk).exists():
                track.liked_by.add(request.user)
                Track.objects.filter(pk=pk).update(like_count=F("like_count") + 1)
        track = track_queryset().get(pk=pk)
        return api_response(TrackSerializer(track).data, "Track liked")

    def delete(self, request, pk):
        track = get_or_404(Track.objects.all(), pk, "Track")
        with transaction.atomic():
            if track.liked_by.filter(pk=request.user.pk).exists():
                track.liked_by.remove(request.user)
                Track.objects.filter(pk=pk, like_count__gt=0).update(like_count=F("like_count") - 1)
        track = track_queryset().get(pk=pk)
        return api_response(TrackSerializer(track).data, "Track unliked")


# ----------  Albums  ------------------------------------
class AlbumListAPIView(CatalogueView):

    def get(self, request):
        """
        List albums, newest first.

        Query Parameters:
            - search: case-insensitive substring of the title
            - artistId: only albums by this artist
            - genre: only albums tagged with this genre
            - page / limit: pagination (default limit: 10)
        """
        params = request.query_params
        albums = Album.objects.select_related("artist").order_by("-created_at", "-id")

        if params.get("search"):
            albums = albums.filter(title__icontains=params["search"])
        if params.get("artistId"):
            albums = albums.filter(artist_id=id_param(params, "artistId"))
        if params.get("genre"):
            albums = albums.filter(tags_overlap("genres", [params["genre"]]))

        items, pagination = paginate(albums, request, default_limit=10)
        return api_response(
            {"albums": AlbumSerializer(items, many=True).data, "pagination": pagination},
            "Albums fetched successfully",
        )

    def post(self, request):
        serializer = AlbumInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data["artist"] = catalog.resolve_artist(data["artist"])
        album = Album.objects.create(**data)
        logger.info(f"Album created: {album.pk} '{album.title}'")
        return api_response(
            AlbumSerializer(album).data, "Album created successfully", status.HTTP_201_CREATED
        )


class AlbumDetailAPIView(CatalogueView):

    def get(self, request, pk):
        album = get_or_404(Album.objects.select_related("artist"), pk, "Album")
        return api_response(AlbumDetailSerializer(album).data, "Album fetched successfully")

    def patch(self, request, pk):
        album = get_or_404(Album.objects.all(), pk, "Album")
        serializer = AlbumInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        if "artist" in data:
            data["artist"] = catalog.resolve_artist(data["artist"])
        for field, value in data.items():
            setattr(album, field, value)
        album.save()
        album = recalc_album_stats(album.pk)
        return api_response(AlbumSerializer(album).data, "Album updated successfully")

    def delete(self, request, pk):
        album = get_or_404(Album.objects.all(), pk, "Album")
        catalog.delete_album(album)
        return api_response({}, "Album deleted successfully")


# ----------  Artists  ------------------------------------
def ensure_unique_artist_name(name, exclude_pk=None):
    clash = Artist.objects.filter(name__iexact=name)
    if exclude_pk is not None:
        clash = clash.exclude(pk=exclude_pk)
    if clash.exists():
        raise Conflict("Artist with this name already exists")


class ArtistListAPIView(CatalogueView):

    def get(self, request):
        """
        List artists, newest first.

        Query Parameters:
            - genre: only artists tagged with this genre
            - search: case-insensitive substring of the name
            - page / limit: pagination (default limit: 20)
        """
        params = request.query_params
        artists = Artist.objects.order_by("-created_at", "-id")

        if params.get("genre"):
            artists = artists.filter(tags_overlap("genres", [params["genre"]]))
        if params.get("search"):
            artists = artists.filter(name__icontains=params["search"])

        items, pagination = paginate(artists, request, default_limit=20)
        return api_response(
            {"artists": ArtistSerializer(items, many=True).data, "pagination": pagination},
            "Artists fetched successfully",
        )

    def post(self, request):
        serializer = ArtistInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        ensure_unique_artist_name(data["name"])

        social_links = Artist._meta.get_field("social_links").get_default()
        social_links.update(data.pop("social_links", {}))
        artist = Artist.objects.create(social_links=social_links, **data)
        logger.info(f"Artist created: {artist.pk} '{artist.name}'")
        return api_response(
            ArtistSerializer(artist).data, "Artist created successfully", status.HTTP_201_CREATED
        )


class ArtistDetailAPIView(CatalogueView):

    def get(self, request, pk):
        artist = get_or_404(Artist.objects.all(), pk, "Artist")
        return api_response(ArtistSerializer(artist).data, "Artist fetched successfully")

    def patch(self, request, pk):
        artist = get_or_404(Artist.objects.all(), pk, "Artist")
        serializer = ArtistInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        if "name" in data and data["name"].lower() != artist.name.lower():
            ensure_unique_artist_name(data["name"], exclude_pk=artist.pk)
        if "social_links" in data:
            # merged, not replaced
            artist.social_links = {**(artist.social_links or {}), **data.pop("social_links")}
        for field, value in data.items():
            setattr(artist, field, value)
        artist.save()
        return api_response(ArtistSerializer(artist).data, "Artist updated successfully")

    def delete(self, request, pk):
        artist = get_or_404(Artist.objects.all(), pk, "Artist")
        catalog.delete_artist(artist)
        return api_response({}, "Artist deleted successfully")
