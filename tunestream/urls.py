from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", include("music.api.urls")),
    path("api/v1/recommendations/", include("recommender.urls")),
    path("api/v1/", include("accounts.urls")),
]
