from django.conf import settings
from django.db import models


def default_input_context():
    return {
        "favorite_genres": [],
        "favorite_moods": [],
        "recent_track_ids": [],
        "base_track": None,
    }


class RecommendationLog(models.Model):
    """
    Audit record of one recommendation pass: what went in, what came out.
    Append-only; rows are never updated after creation.
    """
    SOURCES = [
        ("rule-based", "Rule-based"),
        ("ml-model", "ML model"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="recommendation_logs"
    )
    type = models.CharField(max_length=50, default="for-you")
    source = models.CharField(max_length=20, choices=SOURCES, default="rule-based")
    input_context = models.JSONField(default=default_input_context)
    # [{"track": <id>, "score": <float>, "rank": <int>}, ...] in rank order
    recommended_tracks = models.JSONField(default=list)
    algorithm_version = models.CharField(max_length=50, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="recommender_user_id_9b4e6d_idx"),
        ]

    def __str__(self):
        return f"{self.type} recommendations for {self.user.username} at {self.created_at}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("RecommendationLog entries are append-only")
        super().save(*args, **kwargs)

    @property
    def track_ids(self):
        return [entry["track"] for entry in self.recommended_tracks]
