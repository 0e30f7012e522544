from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.utils import timezone
from music.tests.factories import (
    UserFactory,
    ArtistFactory,
    AlbumFactory,
    TrackFactory,
    PlaylistFactory,
    PlaybackHistoryFactory,
)
from music.services.aggregates import recalc_all
import random
from datetime import timedelta

User = get_user_model()


class Command(BaseCommand):
    help = "Generate test data for development and testing"

    def add_arguments(self, parser):
        parser.add_argument(
            "--users",
            type=int,
            default=10,
            help="Number of users to create",
        )
        parser.add_argument(
            "--artists",
            type=int,
            default=20,
            help="Number of artists to create",
        )
        parser.add_argument(
            "--albums",
            type=int,
            default=30,
            help="Number of albums to create",
        )
        parser.add_argument(
            "--tracks",
            type=int,
            default=200,
            help="Number of tracks to create",
        )
        parser.add_argument(
            "--playlists",
            type=int,
            default=20,
            help="Number of playlists to create",
        )
        parser.add_argument(
            "--plays",
            type=int,
            default=30,
            help="Playback history entries per user",
        )
        parser.add_argument(
            "--clear",
            action="store_true",
            help="Clear existing data before generating new data",
        )

    def handle(self, *args, **options):
        if options["clear"]:
            self.stdout.write("Clearing existing data...")
            from music.models import PlaybackHistory, PlaylistTrack, Playlist, Track, Album, Artist

            PlaybackHistory.objects.all().delete()
            PlaylistTrack.objects.all().delete()
            Playlist.objects.all().delete()
            Track.objects.all().delete()
            Album.objects.all().delete()
            Artist.objects.all().delete()
            User.objects.filter(is_superuser=False).delete()
            self.stdout.write(self.style.SUCCESS("Existing data cleared"))

        # Generate users
        self.stdout.write(f"Creating {options['users']} users...")
        users = [UserFactory() for _ in range(options["users"])]
        self.stdout.write(self.style.SUCCESS(f"Created {len(users)} users"))

        # Generate artists and albums
        self.stdout.write(f"Creating {options['artists']} artists...")
        artists = [ArtistFactory() for _ in range(options["artists"])]
        self.stdout.write(self.style.SUCCESS(f"Created {len(artists)} artists"))

        self.stdout.write(f"Creating {options['albums']} albums...")
        albums = [AlbumFactory(artist=random.choice(artists)) for _ in range(options["albums"])]
        self.stdout.write(self.style.SUCCESS(f"Created {len(albums)} albums"))

        # Generate tracks, most of them on an album by the same artist
        self.stdout.write(f"Creating {options['tracks']} tracks...")
        tracks = []
        for _ in range(options["tracks"]):
            if albums and random.random() < 0.8:
                album = random.choice(albums)
                tracks.append(TrackFactory(artist=album.artist, album=album))
            else:
                tracks.append(TrackFactory(artist=random.choice(artists)))
        self.stdout.write(self.style.SUCCESS(f"Created {len(tracks)} tracks"))

        # Generate playlists
        self.stdout.write(f"Creating {options['playlists']} playlists...")
        playlists = []
        for _ in range(options["playlists"]):
            playlist = PlaylistFactory(owner=random.choice(users), is_public=random.random() < 0.6)
            playlists.append(playlist)

            num_tracks = random.randint(5, 30)
            for i, track in enumerate(random.sample(tracks, min(num_tracks, len(tracks)))):
                playlist.items.create(track=track, position=i)
        self.stdout.write(self.style.SUCCESS(f"Created {len(playlists)} playlists"))

        # Generate playback history
        self.stdout.write(f"Creating up to {options['plays']} plays per user...")
        plays = 0
        now = timezone.now()
        for user in users:
            for _ in range(options["plays"] if tracks else 0):
                track = random.choice(tracks)
                PlaybackHistoryFactory(
                    user=user,
                    track=track,
                    played_at=now - timedelta(minutes=random.randint(1, 60 * 24 * 30)),
                    progress_seconds=random.randint(0, track.duration),
                    completed=random.random() < 0.5,
                    device=random.choice(["web", "android", "ios", "desktop"]),
                )
                track.play_count += 1
                track.save(update_fields=["play_count"])
                plays += 1
        self.stdout.write(self.style.SUCCESS(f"Created {plays} playback entries"))

        recalc_all()

        # Summary
        self.stdout.write("\n" + "=" * 50)
        self.stdout.write(self.style.SUCCESS("Test data generation complete!"))
        self.stdout.write(f"Users: {len(users)}")
        self.stdout.write(f"Artists: {len(artists)}")
        self.stdout.write(f"Albums: {len(albums)}")
        self.stdout.write(f"Tracks: {len(tracks)}")
        self.stdout.write(f"Playlists: {len(playlists)}")
        self.stdout.write(f"Plays: {plays}")
        self.stdout.write("=" * 50)
