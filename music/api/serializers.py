from django.contrib.auth import get_user_model
from rest_framework import serializers

from music.models import Album, Artist, PlaybackHistory, Playlist, Track, normalize_tags

User = get_user_model()


# ----------  Summaries (populated references)  ----------------------------
class ArtistSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Artist
        fields = ['id', 'name', 'image']


class AlbumSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Album
        fields = ['id', 'title', 'cover_image']


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'full_name', 'avatar']


# ----------  Catalogue  ------------------------------------
class ArtistSerializer(serializers.ModelSerializer):
    fan_count = serializers.SerializerMethodField()

    class Meta:
        model = Artist
        fields = [
            'id', 'name', 'bio', 'image', 'genres', 'social_links',
            'fan_count', 'created_at', 'updated_at'
        ]

    def get_fan_count(self, obj):
        return obj.fans.count()


class TrackSerializer(serializers.ModelSerializer):
    artist = ArtistSummarySerializer(read_only=True)
    album = AlbumSummarySerializer(read_only=True)

    class Meta:
        model = Track
        fields = [
            'id', 'track_file', 'title', 'artist', 'album', 'duration',
            'language', 'genres', 'moods', 'play_count', 'like_count',
            'created_at', 'updated_at'
        ]


class AlbumSerializer(serializers.ModelSerializer):
    artist = ArtistSummarySerializer(read_only=True)

    class Meta:
        model = Album
        fields = [
            'id', 'title', 'artist', 'description', 'cover_image',
            'release_date', 'genres', 'total_tracks',
            'total_duration_seconds', 'created_at', 'updated_at'
        ]


class AlbumDetailSerializer(AlbumSerializer):
    tracks = serializers.SerializerMethodField()

    class Meta(AlbumSerializer.Meta):
        fields = AlbumSerializer.Meta.fields + ['tracks']

    def get_tracks(self, obj):
        tracks = obj.tracks.select_related('artist', 'album').order_by('created_at', 'id')
        return TrackSerializer(tracks, many=True).data


# ----------  Playlists  ------------------------------------
class PlaylistSummarySerializer(serializers.ModelSerializer):
    owner = UserSummarySerializer(read_only=True)
    like_count = serializers.SerializerMethodField()

    class Meta:
        model = Playlist
        fields = [
            'id', 'title', 'description', 'cover_image', 'owner',
            'is_public', 'total_tracks', 'total_duration_seconds',
            'tags', 'moods', 'like_count', 'created_at', 'updated_at'
        ]

    def get_like_count(self, obj):
        return obj.liked_by.count()


class PlaylistSerializer(PlaylistSummarySerializer):
    """Playlist with its tracks in play order."""
    tracks = serializers.SerializerMethodField()

    class Meta(PlaylistSummarySerializer.Meta):
        fields = PlaylistSummarySerializer.Meta.fields + ['tracks']

    def get_tracks(self, obj):
        return TrackSerializer([item.track for item in obj.ordered_items()], many=True).data


# ----------  Playback  ------------------------------------
class PlaybackHistorySerializer(serializers.ModelSerializer):
    track = TrackSerializer(read_only=True)

    class Meta:
        model = PlaybackHistory
        fields = [
            'id', 'track', 'played_at', 'progress_seconds', 'completed',
            'device', 'ip_address', 'created_at', 'updated_at'
        ]


# ----------  Request bodies  ------------------------------------
class TagListField(serializers.ListField):
    child = serializers.CharField(max_length=50)

    def to_internal_value(self, data):
        return normalize_tags(super().to_internal_value(data))


class ArtistInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    image = serializers.URLField(max_length=500)
    bio = serializers.CharField(required=False, allow_blank=True)
    genres = TagListField(required=False)
    social_links = serializers.DictField(
        child=serializers.CharField(allow_blank=True), required=False
    )

    def validate_name(self, value):
        return value.strip()

    def validate_social_links(self, value):
        allowed = {'instagram', 'youtube', 'spotify', 'twitter'}
        unknown = set(value) - allowed
        if unknown:
            raise serializers.ValidationError(f"Unknown social links: {', '.join(sorted(unknown))}")
        return value


class AlbumInputSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    artist = serializers.IntegerField()
    cover_image = serializers.URLField(max_length=500)
    description = serializers.CharField(required=False, allow_blank=True)
    release_date = serializers.DateField(required=False, allow_null=True)
    genres = TagListField(required=False)


class TrackInputSerializer(serializers.Serializer):
    track_file = serializers.URLField(max_length=500)
    title = serializers.CharField(max_length=200)
    artist = serializers.IntegerField()
    album = serializers.IntegerField(required=False, allow_null=True)
    duration = serializers.IntegerField(min_value=1)
    language = serializers.CharField(max_length=50, required=False, allow_blank=True)
    genres = TagListField(required=False)
    moods = TagListField(required=False)


class PlaylistInputSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=120)
    description = serializers.CharField(required=False, allow_blank=True)
    cover_image = serializers.URLField(max_length=500, required=False, allow_blank=True)
    is_public = serializers.BooleanField(required=False)
    tags = TagListField(required=False)
    moods = TagListField(required=False)
    tracks = serializers.ListField(child=serializers.IntegerField(), required=False)

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title may not be blank.")
        return value


class PlaylistTrackInputSerializer(serializers.Serializer):
    track_id = serializers.IntegerField()


class PlaylistReorderSerializer(serializers.Serializer):
    track_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)


class PlaybackStartSerializer(serializers.Serializer):
    track_id = serializers.IntegerField()
    device = serializers.ChoiceField(choices=PlaybackHistory.DEVICES, default='web')
    ip_address = serializers.IPAddressField(required=False, allow_null=True)


class PlaybackProgressSerializer(serializers.Serializer):
    progress_seconds = serializers.IntegerField(min_value=0, required=False)
    completed = serializers.BooleanField(required=False)
