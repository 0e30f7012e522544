from django.urls import path
from music.api.views import (
    AlbumDetailAPIView,
    AlbumListAPIView,
    ArtistDetailAPIView,
    ArtistListAPIView,
    TrackDetailAPIView,
    TrackLikeAPIView,
    TrackListAPIView,
    TrackPlayAPIView,
)
from music.api.playlists import (
    MyPlaylistsAPIView,
    PlaylistCreateAPIView,
    PlaylistDetailAPIView,
    PlaylistLikeAPIView,
    PlaylistTrackDetailAPIView,
    PlaylistTracksAPIView,
    PublicPlaylistsAPIView,
)
from music.api.playback import (
    playback_history,
    recent_plays,
    start_playback,
    update_progress,
)

app_name = 'music_api'

urlpatterns = [
    # Tracks
    path('tracks/', TrackListAPIView.as_view(), name='track-list'),
    path('tracks/<int:pk>/', TrackDetailAPIView.as_view(), name='track-detail'),
    path('tracks/<int:pk>/play/', TrackPlayAPIView.as_view(), name='track-play'),
    path('tracks/<int:pk>/like/', TrackLikeAPIView.as_view(), name='track-like'),

    # Albums
    path('albums/', AlbumListAPIView.as_view(), name='album-list'),
    path('albums/<int:pk>/', AlbumDetailAPIView.as_view(), name='album-detail'),

    # Artists
    path('artists/', ArtistListAPIView.as_view(), name='artist-list'),
    path('artists/<int:pk>/', ArtistDetailAPIView.as_view(), name='artist-detail'),

    # Playlists
    path('playlists/', PlaylistCreateAPIView.as_view(), name='playlist-create'),
    path('playlists/me/', MyPlaylistsAPIView.as_view(), name='my-playlists'),
    path('playlists/public/', PublicPlaylistsAPIView.as_view(), name='public-playlists'),
    path('playlists/<int:pk>/', PlaylistDetailAPIView.as_view(), name='playlist-detail'),
    path('playlists/<int:pk>/tracks/',
         PlaylistTracksAPIView.as_view(),
         name='playlist-tracks'),
    path('playlists/<int:pk>/tracks/<int:track_id>/',
         PlaylistTrackDetailAPIView.as_view(),
         name='playlist-track-detail'),
    path('playlists/<int:pk>/like/', PlaylistLikeAPIView.as_view(), name='playlist-like'),

    # Playback
    path('playback/start/', start_playback, name='playback-start'),
    path('playback/<int:pk>/progress/', update_progress, name='playback-progress'),
    path('playback/history/', playback_history, name='playback-history'),
    path('playback/recent/', recent_plays, name='playback-recent'),
]
