from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from music.models import Album, PlaylistTrack, Track
from music.services import catalog
from music.services.aggregates import recalc_album_stats, recalc_playlist_stats
from music.tests.factories import (
    AlbumFactory,
    ArtistFactory,
    PlaylistFactory,
    TrackFactory,
    UserFactory,
)


class TestAlbumCounters(TestCase):
    """Album totals follow the tracks that point at the album."""

    def setUp(self):
        self.client = APIClient()
        self.staff = UserFactory(is_staff=True)
        self.client.force_authenticate(user=self.staff)
        self.artist = ArtistFactory()
        self.album = AlbumFactory(artist=self.artist)

    def create_track(self, **overrides):
        payload = {
            "track_file": "https://cdn.example.com/t.mp3",
            "title": "Song",
            "artist": self.artist.pk,
            "album": self.album.pk,
            "duration": 200,
        }
        payload.update(overrides)
        return self.client.post(reverse("music_api:track-list"), payload, format="json")

    def fetch_album(self):
        response = self.client.get(reverse("music_api:album-detail", args=[self.album.pk]))
        self.assertEqual(response.status_code, 200)
        return response.data["data"]

    def test_create_then_delete_scenario(self):
        """Two tracks sum up; deleting one leaves only the other."""
        t1 = self.create_track(title="T1", duration=180)
        t2 = self.create_track(title="T2", duration=120)
        self.assertEqual(t1.status_code, 201)
        self.assertEqual(t2.status_code, 201)

        album = self.fetch_album()
        self.assertEqual(album["total_tracks"], 2)
        self.assertEqual(album["total_duration_seconds"], 300)
        self.assertEqual(len(album["tracks"]), 2)

        response = self.client.delete(reverse("music_api:track-detail", args=[t1.data["data"]["id"]]))
        self.assertEqual(response.status_code, 200)

        album = self.fetch_album()
        self.assertEqual(album["total_tracks"], 1)
        self.assertEqual(album["total_duration_seconds"], 120)

    def test_moving_track_updates_both_albums(self):
        """Changing a track's album recomputes the old and the new album."""
        other = AlbumFactory(artist=self.artist)
        track_id = self.create_track(duration=150).data["data"]["id"]

        response = self.client.patch(
            reverse("music_api:track-detail", args=[track_id]),
            {"album": other.pk},
            format="json",
        )
        self.assertEqual(response.status_code, 200)

        self.album.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual((self.album.total_tracks, self.album.total_duration_seconds), (0, 0))
        self.assertEqual((other.total_tracks, other.total_duration_seconds), (1, 150))

    def test_detaching_track(self):
        """album: null detaches the track and shrinks the album."""
        track_id = self.create_track(duration=100).data["data"]["id"]
        self.client.patch(
            reverse("music_api:track-detail", args=[track_id]), {"album": None}, format="json"
        )
        self.album.refresh_from_db()
        self.assertEqual(self.album.total_tracks, 0)
        self.assertIsNone(Track.objects.get(pk=track_id).album_id)

    def test_duration_change(self):
        """A new duration is reflected in the album total."""
        track_id = self.create_track(duration=100).data["data"]["id"]
        self.client.patch(
            reverse("music_api:track-detail", args=[track_id]), {"duration": 240}, format="json"
        )
        self.album.refresh_from_db()
        self.assertEqual(self.album.total_duration_seconds, 240)

    def test_unknown_album_is_not_found(self):
        """Creating a track on a missing album answers 404 and creates nothing."""
        response = self.create_track(album=999999)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["message"], "Album not found")
        self.assertFalse(Track.objects.exists())

    def test_missing_required_fields(self):
        """duration and track_file are required."""
        response = self.client.post(
            reverse("music_api:track-list"),
            {"title": "x", "artist": self.artist.pk},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data["success"])
        self.assertIn("duration", response.data["errors"])

    def test_recalc_is_idempotent(self):
        """Running the helper on a drifted album converges, and again changes nothing."""
        TrackFactory(artist=self.artist, album=self.album, duration=60)
        TrackFactory(artist=self.artist, album=self.album, duration=40)
        Album.objects.filter(pk=self.album.pk).update(total_tracks=99, total_duration_seconds=1)

        recalc_album_stats(self.album.pk)
        recalc_album_stats(self.album.pk)

        self.album.refresh_from_db()
        self.assertEqual(self.album.total_tracks, 2)
        self.assertEqual(self.album.total_duration_seconds, 100)


class TestPlaylistCountersFromCatalogue(TestCase):
    """Catalogue mutations keep the playlists holding a track in sync."""

    def setUp(self):
        self.artist = ArtistFactory()
        self.track = TrackFactory(artist=self.artist, duration=100)
        self.other = TrackFactory(duration=50)
        self.playlist = PlaylistFactory()
        catalog.set_playlist_tracks(self.playlist, [self.track.pk, self.other.pk])

    def test_track_delete_refreshes_playlist(self):
        """Deleting a track drops it from playlist totals."""
        catalog.delete_track(self.track)
        self.playlist.refresh_from_db()
        self.assertEqual(self.playlist.total_tracks, 1)
        self.assertEqual(self.playlist.total_duration_seconds, 50)

    def test_track_duration_change_refreshes_playlist(self):
        """A longer track lengthens the playlist."""
        catalog.update_track(self.track, {"duration": 300})
        self.playlist.refresh_from_db()
        self.assertEqual(self.playlist.total_duration_seconds, 350)

    def test_artist_delete_cascades(self):
        """Deleting an artist removes their tracks and refreshes playlists."""
        album = AlbumFactory(artist=self.artist)
        catalog.delete_artist(self.artist)

        self.assertFalse(Album.objects.filter(pk=album.pk).exists())
        self.assertFalse(Track.objects.filter(pk=self.track.pk).exists())
        self.playlist.refresh_from_db()
        self.assertEqual(self.playlist.total_tracks, 1)
        self.assertEqual(PlaylistTrack.objects.filter(playlist=self.playlist).count(), 1)

    def test_artist_delete_refreshes_other_artists_album(self):
        """A guest track on someone else's album leaves that album's totals."""
        album = AlbumFactory()
        catalog.create_track({
            "track_file": "own.mp3", "title": "Own", "duration": 100,
            "artist": album.artist_id, "album": album.pk,
        })
        catalog.create_track({
            "track_file": "feat.mp3", "title": "Feat", "duration": 200,
            "artist": self.artist.pk, "album": album.pk,
        })
        album.refresh_from_db()
        self.assertEqual(album.total_tracks, 2)

        catalog.delete_artist(self.artist)

        album.refresh_from_db()
        self.assertEqual(album.total_tracks, 1)
        self.assertEqual(album.total_duration_seconds, 100)

    def test_album_delete_detaches_tracks(self):
        """Tracks outlive their album."""
        album = AlbumFactory(artist=self.artist)
        track = TrackFactory(artist=self.artist, album=album)
        catalog.delete_album(album)
        track.refresh_from_db()
        self.assertIsNone(track.album_id)

    def test_recalc_counters_command(self):
        """The management command converges drifted counters."""
        type(self.playlist).objects.filter(pk=self.playlist.pk).update(total_tracks=0)
        call_command("recalc_counters", verbosity=0)
        self.playlist.refresh_from_db()
        self.assertEqual(self.playlist.total_tracks, 2)
        self.assertEqual(self.playlist.total_duration_seconds, 150)

    def test_recalc_missing_playlist(self):
        """A missing playlist is a no-op."""
        self.assertIsNone(recalc_playlist_stats(999999))


class TestCataloguePermissions(TestCase):
    """Reads are public, writes need staff."""

    def setUp(self):
        self.client = APIClient()
        self.artist = ArtistFactory()

    def test_anonymous_read(self):
        """Anyone can list artists."""
        response = self.client.get(reverse("music_api:artist-list"))
        self.assertEqual(response.status_code, 200)

    def test_anonymous_write(self):
        """Anonymous writes are 401."""
        response = self.client.post(
            reverse("music_api:artist-list"),
            {"name": "New", "image": "https://img.example.com/a.png"},
            format="json",
        )
        self.assertEqual(response.status_code, 401)

    def test_listener_write(self):
        """Non-staff writes are 403."""
        self.client.force_authenticate(user=UserFactory())
        response = self.client.delete(reverse("music_api:artist-detail", args=[self.artist.pk]))
        self.assertEqual(response.status_code, 403)


class TestArtists(TestCase):
    """Artist create/update rules."""

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=UserFactory(is_staff=True))

    def test_duplicate_name_conflicts(self):
        """Names are unique regardless of case."""
        ArtistFactory(name="Radiohead")
        response = self.client.post(
            reverse("music_api:artist-list"),
            {"name": "radiohead", "image": "https://img.example.com/r.png"},
            format="json",
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["statusCode"], 409)

    def test_social_links_are_merged(self):
        """Patching one social link keeps the others."""
        artist = ArtistFactory(social_links={"instagram": "ig", "youtube": "yt", "spotify": "", "twitter": ""})
        response = self.client.patch(
            reverse("music_api:artist-detail", args=[artist.pk]),
            {"social_links": {"twitter": "tw"}},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        artist.refresh_from_db()
        self.assertEqual(artist.social_links["instagram"], "ig")
        self.assertEqual(artist.social_links["twitter"], "tw")

    def test_genres_are_normalised(self):
        """Tags are trimmed, lower-cased and de-duplicated."""
        response = self.client.post(
            reverse("music_api:artist-list"),
            {"name": "Björk", "image": "https://img.example.com/b.png", "genres": [" Pop", "pop", "Electronic"]},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["data"]["genres"], ["pop", "electronic"])
