from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from music.models import PlaybackHistory
from music.tests.factories import PlaybackHistoryFactory, TrackFactory, UserFactory


class TestPlayback(TestCase):
    """Playback history endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)
        self.track = TrackFactory(play_count=0)

    def test_start(self):
        """Starting playback records history and bumps play_count."""
        response = self.client.post(
            reverse("music_api:playback-start"),
            {"track_id": self.track.pk, "device": "android"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["data"]["device"], "android")
        self.assertEqual(response.data["data"]["track"]["id"], self.track.pk)

        self.track.refresh_from_db()
        self.assertEqual(self.track.play_count, 1)
        self.assertEqual(PlaybackHistory.objects.filter(user=self.user).count(), 1)

    def test_start_unknown_track(self):
        response = self.client.post(
            reverse("music_api:playback-start"), {"track_id": 999999}, format="json"
        )
        self.assertEqual(response.status_code, 404)

    def test_start_bad_device(self):
        response = self.client.post(
            reverse("music_api:playback-start"),
            {"track_id": self.track.pk, "device": "toaster"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_progress(self):
        """Owners can report progress."""
        entry = PlaybackHistoryFactory(user=self.user, track=self.track)
        response = self.client.patch(
            reverse("music_api:playback-progress", args=[entry.pk]),
            {"progress_seconds": 42, "completed": True},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        entry.refresh_from_db()
        self.assertEqual(entry.progress_seconds, 42)
        self.assertTrue(entry.completed)

    def test_progress_other_user(self):
        """Someone else's entry is 403."""
        entry = PlaybackHistoryFactory(track=self.track)
        response = self.client.patch(
            reverse("music_api:playback-progress", args=[entry.pk]),
            {"progress_seconds": 10},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_progress_missing(self):
        response = self.client.patch(
            reverse("music_api:playback-progress", args=[999999]),
            {"progress_seconds": 10},
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_history_and_recent(self):
        """History is newest first and only the caller's."""
        now = timezone.now()
        entries = [
            PlaybackHistoryFactory(user=self.user, played_at=now - timedelta(minutes=m))
            for m in (30, 20, 10)
        ]
        PlaybackHistoryFactory()

        response = self.client.get(reverse("music_api:playback-history"), {"limit": 2})
        data = response.data["data"]
        self.assertEqual([h["id"] for h in data["history"]], [entries[2].pk, entries[1].pk])
        self.assertEqual(data["pagination"]["total"], 3)
        self.assertEqual(data["pagination"]["total_pages"], 2)

        response = self.client.get(reverse("music_api:playback-recent"), {"limit": 1})
        self.assertEqual([h["id"] for h in response.data["data"]], [entries[2].pk])

    def test_requires_auth(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse("music_api:playback-history"))
        self.assertEqual(response.status_code, 401)
