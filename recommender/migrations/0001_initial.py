import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import recommender.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="RecommendationLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(default="for-you", max_length=50)),
                (
                    "source",
                    models.CharField(
                        choices=[("rule-based", "Rule-based"), ("ml-model", "ML model")],
                        default="rule-based",
                        max_length=20,
                    ),
                ),
                ("input_context", models.JSONField(default=recommender.models.default_input_context)),
                ("recommended_tracks", models.JSONField(default=list)),
                ("algorithm_version", models.CharField(blank=True, default="", max_length=50)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recommendation_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "-created_at"], name="recommender_user_id_9b4e6d_idx"),
                ],
            },
        ),
    ]
