from django.test import TestCase
from django.urls import reverse
from rest_framework.exceptions import NotFound as DRFNotFound
from rest_framework.request import Request
from rest_framework.test import APIClient, APIRequestFactory

from music.api.exceptions import envelope_exception_handler
from music.models import Track, tags_overlap
from music.pagination import paginate
from music.tests.factories import AlbumFactory, ArtistFactory, TrackFactory, UserFactory
from music.utils.monitoring import ErrorTracker


class TestPagination(TestCase):
    """page/limit arithmetic."""

    def setUp(self):
        self.factory = APIRequestFactory()
        for _ in range(25):
            TrackFactory()

    def page(self, **params):
        request = Request(self.factory.get("/", params))
        return paginate(Track.objects.order_by("id"), request, default_limit=20)

    def test_total_pages(self):
        """total_pages is ceil(total / limit)."""
        _, meta = self.page(limit=10)
        self.assertEqual(meta, {"page": 1, "limit": 10, "total": 25, "total_pages": 3})

    def test_pages_cover_everything_once(self):
        """The union of all pages is the full set without duplicates."""
        seen = []
        for page in range(1, 4):
            items, _ = self.page(limit=10, page=page)
            seen.extend(t.pk for t in items)
        self.assertEqual(len(seen), len(set(seen)))
        self.assertEqual(set(seen), set(Track.objects.values_list("id", flat=True)))

    def test_bounds(self):
        """page < 1 is page 1; limit is kept in 1..100."""
        _, meta = self.page(page=0, limit=0)
        self.assertEqual((meta["page"], meta["limit"]), (1, 1))
        _, meta = self.page(limit=5000)
        self.assertEqual(meta["limit"], 100)
        _, meta = self.page(limit="abc")
        self.assertEqual(meta["limit"], 20)

    def test_empty(self):
        """An empty result still has one page."""
        Track.objects.all().delete()
        items, meta = self.page()
        self.assertEqual(items, [])
        self.assertEqual(meta["total_pages"], 1)


class TestTrackList(TestCase):
    """Track listing filters."""

    def setUp(self):
        self.client = APIClient()
        self.artist = ArtistFactory()
        self.album = AlbumFactory(artist=self.artist)
        self.rock = TrackFactory(artist=self.artist, album=self.album, title="Paranoid Android", genres=["rock"], moods=["sad"])
        self.hard = TrackFactory(title="Ace of Spades", genres=["hard rock"], moods=["energetic"])
        self.pop = TrackFactory(title="Toxic", genres=["pop"], moods=["happy"])

    def list(self, **params):
        response = self.client.get(reverse("music_api:track-list"), params)
        self.assertEqual(response.status_code, 200)
        return [t["id"] for t in response.data["data"]["tracks"]]

    def test_newest_first(self):
        """Default ordering is newest first."""
        self.assertEqual(self.list(), [self.pop.pk, self.hard.pk, self.rock.pk])

    def test_genre_matches_whole_tag(self):
        """genre=rock does not match 'hard rock'."""
        self.assertEqual(self.list(genre="rock"), [self.rock.pk])

    def test_mood_filter(self):
        self.assertEqual(self.list(mood="happy"), [self.pop.pk])

    def test_search(self):
        """search is a case-insensitive substring of the title."""
        self.assertEqual(self.list(search="ANDROID"), [self.rock.pk])

    def test_artist_and_album(self):
        self.assertEqual(self.list(artistId=self.artist.pk), [self.rock.pk])
        self.assertEqual(self.list(albumId=self.album.pk), [self.rock.pk])

    def test_non_numeric_artist(self):
        response = self.client.get(reverse("music_api:track-list"), {"artistId": "abc"})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data["success"])

    def test_populated_references(self):
        """Artist and album come back as summaries."""
        response = self.client.get(reverse("music_api:track-detail", args=[self.rock.pk]))
        data = response.data["data"]
        self.assertEqual(data["artist"], {"id": self.artist.pk, "name": self.artist.name, "image": self.artist.image})
        self.assertEqual(data["album"]["id"], self.album.pk)

    def test_tags_overlap_any(self):
        """tags_overlap matches any of several tags."""
        ids = set(Track.objects.filter(tags_overlap("genres", ["pop", "Hard Rock"])).values_list("id", flat=True))
        self.assertEqual(ids, {self.pop.pk, self.hard.pk})


class TestTrackActions(TestCase):
    """Play and like counters."""

    def setUp(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.track = TrackFactory()

    def test_play_requires_auth(self):
        response = self.client.post(reverse("music_api:track-play", args=[self.track.pk]))
        self.assertEqual(response.status_code, 401)

    def test_play_increments(self):
        """Each play call adds one."""
        self.client.force_authenticate(user=self.user)
        self.client.post(reverse("music_api:track-play", args=[self.track.pk]))
        response = self.client.post(reverse("music_api:track-play", args=[self.track.pk]))
        self.assertEqual(response.data["data"]["play_count"], 2)

    def test_like_once_per_user(self):
        """A user's repeated likes count once; unlike reverses it."""
        self.client.force_authenticate(user=self.user)
        url = reverse("music_api:track-like", args=[self.track.pk])
        self.client.post(url)
        response = self.client.post(url)
        self.assertEqual(response.data["data"]["like_count"], 1)
        self.assertTrue(self.user.liked_tracks.filter(pk=self.track.pk).exists())

        response = self.client.delete(url)
        self.assertEqual(response.data["data"]["like_count"], 0)
        self.assertFalse(self.user.liked_tracks.exists())


class TestEnvelope(TestCase):
    """Every response uses {statusCode, data, message, success}."""

    def setUp(self):
        self.client = APIClient()

    def test_not_found(self):
        response = self.client.get(reverse("music_api:track-detail", args=[999999]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.data,
            {"statusCode": 404, "data": None, "message": "Track not found", "success": False},
        )

    def test_success(self):
        TrackFactory()
        response = self.client.get(reverse("music_api:track-list"))
        self.assertEqual(response.data["statusCode"], 200)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["message"], "Tracks fetched successfully")

    def test_drf_exception(self):
        """DRF's own exceptions are wrapped too."""
        response = envelope_exception_handler(DRFNotFound("gone"), {})
        self.assertEqual(response.data["statusCode"], 404)
        self.assertEqual(response.data["message"], "gone")

    def test_unexpected_error(self):
        """Unexpected errors become a 500 envelope."""
        response = envelope_exception_handler(RuntimeError("boom"), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["statusCode"], 500)
        self.assertFalse(response.data["success"])
        self.assertNotIn("boom", response.data["message"])

    def test_unexpected_error_is_tracked(self):
        """The handler records the error for later inspection."""
        envelope_exception_handler(RuntimeError("disk full"), {})
        latest = ErrorTracker.recent_errors("RuntimeError")[-1]
        self.assertEqual(latest["message"], "disk full")
        self.assertEqual(latest["context"], {"view": None})
