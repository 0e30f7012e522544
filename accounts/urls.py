from django.urls import path

from accounts import api

app_name = 'accounts'

urlpatterns = [
    # Registration & sign-in
    path('users/register/', api.register, name='register'),
    path('users/login/', api.login, name='login'),
    path('users/google/', api.google_login, name='google-login'),
    path('users/facebook/', api.facebook_login, name='facebook-login'),

    # Session
    path('users/logout/', api.logout, name='logout'),
    path('users/refresh-token/', api.refresh_token, name='refresh-token'),

    # Passwords
    path('users/change-password/', api.change_password, name='change-password'),
    path('users/forgot-password/', api.forgot_password, name='forgot-password'),
    path('users/reset-password/<str:token>/', api.reset_password, name='reset-password'),

    # Profile
    path('users/current-user/', api.current_user, name='current-user'),
    path('users/update-account/', api.update_account, name='update-account'),
    path('users/delete-account/', api.delete_account, name='delete-account'),
    path('users/liked-tracks/', api.liked_tracks, name='liked-tracks'),
    path('users/top-tracks/', api.top_tracks, name='top-tracks'),

    # Visitors & public config
    path('users/visitors/', api.track_visitor, name='visitors'),
    path('config/public/', api.public_config, name='public-config'),
]
