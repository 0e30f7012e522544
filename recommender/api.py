# recommender/api.py
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated

from music.api.responses import api_response
from music.api.serializers import TrackSerializer
from music.pagination import MAX_LIMIT
from .engine import DEFAULT_LIMIT, for_you


def requested_limit(request):
    try:
        limit = int(request.query_params.get("limit", DEFAULT_LIMIT))
    except (TypeError, ValueError):
        limit = DEFAULT_LIMIT
    return min(max(1, limit), MAX_LIMIT)


class ForYouView(APIView):
    """
    Personalised recommendations from the caller's recent listening.

    Query Parameters:
        - limit: maximum number of tracks (default: 20, at most 100)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        tracks, meta = for_you(request.user, requested_limit(request))
        return api_response(
            {"tracks": TrackSerializer(tracks, many=True).data, "meta": meta},
            "Recommendations generated successfully",
        )
