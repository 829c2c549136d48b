import uuid
import django.core.serializers.json
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PendingPayment",
            fields=[
                ("id",                   models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("merchant_request_id",  models.CharField(max_length=100, unique=True)),
                ("checkout_request_id",  models.CharField(db_index=True, max_length=100)),
                ("items",                models.JSONField(encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("shipping_address",     models.JSONField(encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("billing_address",      models.JSONField(encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("subtotal",             models.DecimalField(decimal_places=2, max_digits=12)),
                ("discount",             models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("tax",                  models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("shipping_cost",        models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total",                models.DecimalField(decimal_places=2, max_digits=12)),
                ("coupon_snapshot",      models.JSONField(
                    blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True,
                )),
                ("shipping_method_name", models.CharField(max_length=80)),
                ("estimated_delivery",   models.DateTimeField(blank=True, null=True)),
                ("stock_reservations",   models.JSONField(default=list)),
                ("phone_number",         models.CharField(max_length=12)),
                ("status",               models.CharField(
                    choices=[
                        ("pending",   "Pending"),
                        ("failed",    "Failed"),
                        ("expired",   "Expired"),
                        ("processed", "Processed"),
                    ],
                    default="pending",
                    max_length=10,
                )),
                ("failure_reason",       models.CharField(blank=True, max_length=255)),
                ("created_at",           models.DateTimeField(auto_now_add=True)),
                ("updated_at",           models.DateTimeField(auto_now=True)),
                ("coupon",               models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+",
                    to="catalog.coupon",
                )),
                ("shipping_method",      models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+",
                    to="catalog.shippingmethod",
                )),
                ("user",                 models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="pending_payments",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
        ),
        migrations.AddIndex(
            model_name="pendingpayment",
            index=models.Index(fields=["status", "created_at"], name="pending_status_created_idx"),
        ),
        migrations.AddIndex(
            model_name="pendingpayment",
            index=models.Index(fields=["user", "status"], name="pending_user_status_idx"),
        ),
    ]
