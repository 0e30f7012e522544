from django.urls import path

from .api import ForYouView

app_name = "recommender"

urlpatterns = [
    path("for-you/", ForYouView.as_view(), name="for-you"),
]
