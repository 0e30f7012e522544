from django.contrib.auth import get_user_model
from rest_framework import serializers

from accounts.models import Visitor
from music.api.serializers import TagListField
from music.models import Artist

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    favorite_artists = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    has_password = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'full_name', 'avatar',
            'auth_provider', 'is_email_verified', 'has_password',
            'favorite_genres', 'favorite_artists', 'preferred_languages',
            'mood_preferences', 'date_joined', 'updated_at'
        ]

    def get_has_password(self, obj):
        return obj.has_usable_password()


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, max_length=128, write_only=True)
    full_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    username = serializers.RegexField(
        r'^[A-Za-z0-9_.-]+$', max_length=150, required=False, allow_blank=True
    )


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class GoogleLoginSerializer(serializers.Serializer):
    id_token = serializers.CharField()


class FacebookLoginSerializer(serializers.Serializer):
    access_token = serializers.CharField()


class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(min_length=6, max_length=128, write_only=True)


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    new_password = serializers.CharField(min_length=6, max_length=128, write_only=True)


class UpdateAccountSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    avatar = serializers.URLField(max_length=500, required=False, allow_blank=True)
    favorite_genres = TagListField(required=False)
    preferred_languages = TagListField(required=False)
    mood_preferences = TagListField(required=False)
    favorite_artists = serializers.PrimaryKeyRelatedField(
        queryset=Artist.objects.all(), many=True, required=False
    )


class VisitorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Visitor
        fields = [
            'id', 'ip', 'ip_version', 'city', 'region', 'country',
            'longitude', 'network_org', 'visit_count', 'last_visited_at',
            'created_at', 'updated_at'
        ]


class VisitorInputSerializer(serializers.Serializer):
    ip = serializers.IPAddressField()
    ip_version = serializers.ChoiceField(choices=Visitor.IP_VERSIONS, required=False)
    city = serializers.CharField(max_length=120, required=False, allow_blank=True)
    region = serializers.CharField(max_length=120, required=False, allow_blank=True)
    country = serializers.CharField(max_length=120, required=False, allow_blank=True)
    longitude = serializers.FloatField(required=False, allow_null=True)
    network_org = serializers.CharField(max_length=200, required=False, allow_blank=True)
