import uuid
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id",          models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("type",        models.CharField(
                    choices=[("order", "Order"), ("payment", "Payment"), ("system", "System")],
                    default="order",
                    max_length=10,
                )),
                ("title",       models.CharField(max_length=120)),
                ("message",     models.TextField()),
                ("action_text", models.CharField(blank=True, max_length=40)),
                ("action_link", models.CharField(blank=True, max_length=255)),
                ("priority",    models.CharField(
                    choices=[("low", "Low"), ("medium", "Medium"), ("high", "High")],
                    default="medium",
                    max_length=6,
                )),
                ("is_read",     models.BooleanField(default=False)),
                ("metadata",    models.JSONField(blank=True, default=dict)),
                ("created_at",  models.DateTimeField(auto_now_add=True)),
                ("user",        models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="notifications",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.AddIndex(
            model_name="notification",
            index=models.Index(fields=["user", "is_read"], name="notif_user_read_idx"),
        ),
    ]
