import factory
from factory.django import DjangoModelFactory
from faker import Faker
from django.contrib.auth import get_user_model
from django.utils import timezone

from accounts.models import Visitor
from music.models import Album, Artist, PlaybackHistory, Playlist, PlaylistTrack, Track

fake = Faker()
User = get_user_model()

GENRES = ["rock", "pop", "jazz", "hip-hop", "electronic", "classical", "folk", "indie"]
MOODS = ["happy", "chill", "energetic", "sad", "romantic", "focus"]


class UserFactory(DjangoModelFactory):
    class Meta:
        model = User

    username = factory.Sequence(lambda n: f"user_{n}")
    email = factory.LazyAttribute(lambda obj: f"{obj.username}@example.com")
    full_name = factory.Faker("name")
    password = factory.PostGenerationMethodCall("set_password", "password123")


class ArtistFactory(DjangoModelFactory):
    class Meta:
        model = Artist

    name = factory.Sequence(lambda n: f"{fake.name()} {n}")
    bio = factory.Faker("text", max_nb_chars=200)
    image = factory.Faker("image_url")
    genres = factory.LazyFunction(lambda: fake.random_elements(GENRES, length=2, unique=True))


class AlbumFactory(DjangoModelFactory):
    class Meta:
        model = Album

    title = factory.Faker("sentence", nb_words=3)
    artist = factory.SubFactory(ArtistFactory)
    cover_image = factory.Faker("image_url")
    release_date = factory.Faker("date_object")
    genres = factory.LazyFunction(lambda: fake.random_elements(GENRES, length=1, unique=True))


class TrackFactory(DjangoModelFactory):
    class Meta:
        model = Track

    track_file = factory.Faker("url")
    title = factory.Faker("sentence", nb_words=4)
    artist = factory.SubFactory(ArtistFactory)
    album = None
    duration = factory.Faker("random_int", min=90, max=420)
    language = "en"
    genres = factory.LazyFunction(lambda: fake.random_elements(GENRES, length=2, unique=True))
    moods = factory.LazyFunction(lambda: fake.random_elements(MOODS, length=1, unique=True))
    play_count = 0


class PlaylistFactory(DjangoModelFactory):
    class Meta:
        model = Playlist

    owner = factory.SubFactory(UserFactory)
    title = factory.Faker("sentence", nb_words=3)
    description = factory.Faker("text", max_nb_chars=100)
    is_public = True


class PlaylistTrackFactory(DjangoModelFactory):
    class Meta:
        model = PlaylistTrack

    playlist = factory.SubFactory(PlaylistFactory)
    track = factory.SubFactory(TrackFactory)
    position = factory.Sequence(lambda n: n)


class PlaybackHistoryFactory(DjangoModelFactory):
    class Meta:
        model = PlaybackHistory

    user = factory.SubFactory(UserFactory)
    track = factory.SubFactory(TrackFactory)
    played_at = factory.LazyFunction(timezone.now)
    device = "web"


class VisitorFactory(DjangoModelFactory):
    class Meta:
        model = Visitor

    ip = factory.Faker("ipv4_public")
    ip_version = "IPv4"
    city = factory.Faker("city")
    country = factory.Faker("country")
