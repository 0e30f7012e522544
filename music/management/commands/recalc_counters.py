from django.core.management.base import BaseCommand
from django.db import transaction

from music.services.aggregates import recalc_album_stats, recalc_all, recalc_playlist_stats


class Command(BaseCommand):
    help = "Recompute album and playlist track/duration counters from their tracks"

    def add_arguments(self, parser):
        parser.add_argument(
            "--album",
            type=int,
            action="append",
            default=[],
            help="Only recompute this album (repeatable)",
        )
        parser.add_argument(
            "--playlist",
            type=int,
            action="append",
            default=[],
            help="Only recompute this playlist (repeatable)",
        )

    def handle(self, *args, **options):
        if not options["album"] and not options["playlist"]:
            with transaction.atomic():
                albums, playlists = recalc_all()
            self.stdout.write(self.style.SUCCESS(
                f"Recomputed {albums} albums and {playlists} playlists"
            ))
            return

        with transaction.atomic():
            for album_id in options["album"]:
                if recalc_album_stats(album_id) is None:
                    self.stdout.write(self.style.WARNING(f"Album {album_id} not found"))
            for playlist_id in options["playlist"]:
                if recalc_playlist_stats(playlist_id) is None:
                    self.stdout.write(self.style.WARNING(f"Playlist {playlist_id} not found"))
        self.stdout.write(self.style.SUCCESS("Counters recomputed"))
