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
            name="Order",
            fields=[
                ("id",                   models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number",         models.CharField(max_length=32, unique=True)),
                ("shipping_address",     models.JSONField(encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("billing_address",      models.JSONField(encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("payment_method",       models.CharField(choices=[("mpesa", "M-Pesa")], default="mpesa", max_length=10)),
                ("payment_status",       models.CharField(
                    choices=[
                        ("pending",  "Pending"),
                        ("paid",     "Paid"),
                        ("failed",   "Failed"),
                        ("refunded", "Refunded"),
                    ],
                    default="pending",
                    max_length=10,
                )),
                ("phone_number",         models.CharField(max_length=12)),
                ("merchant_request_id",  models.CharField(max_length=100, unique=True)),
                ("checkout_request_id",  models.CharField(blank=True, max_length=100)),
                ("mpesa_receipt_number", models.CharField(blank=True, db_index=True, max_length=50)),
                ("paid_at",              models.DateTimeField(blank=True, null=True)),
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
                ("status",               models.CharField(
                    choices=[
                        ("pending",    "Pending"),
                        ("processing", "Processing"),
                        ("shipped",    "Shipped"),
                        ("delivered",  "Delivered"),
                        ("cancelled",  "Cancelled"),
                        ("refunded",   "Refunded"),
                    ],
                    default="pending",
                    max_length=12,
                )),
                ("tracking_number",      models.CharField(blank=True, max_length=64)),
                ("notes",                models.TextField(blank=True)),
                ("delivered_at",         models.DateTimeField(blank=True, null=True)),
                ("cancelled_at",         models.DateTimeField(blank=True, null=True)),
                ("created_at",           models.DateTimeField(auto_now_add=True)),
                ("updated_at",           models.DateTimeField(auto_now=True)),
                ("coupon",               models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="orders",
                    to="catalog.coupon",
                )),
                ("shipping_method",      models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="orders",
                    to="catalog.shippingmethod",
                )),
                ("user",                 models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="orders",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id",       models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title",    models.CharField(max_length=200)),
                ("sku",      models.CharField(blank=True, max_length=64)),
                ("image",    models.URLField(blank=True, max_length=500)),
                ("price",    models.DecimalField(decimal_places=2, max_digits=12)),
                ("quantity", models.PositiveIntegerField()),
                ("variant",  models.JSONField(blank=True, null=True)),
                ("order",    models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="items",
                    to="orders.order",
                )),
                ("product",  models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+",
                    to="catalog.product",
                )),
            ],
        ),
        migrations.CreateModel(
            name="OrderEvent",
            fields=[
                ("id",          models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("from_status", models.CharField(blank=True, max_length=12)),
                ("to_status",   models.CharField(max_length=12)),
                ("note",        models.CharField(blank=True, max_length=255)),
                ("created_at",  models.DateTimeField(auto_now_add=True)),
                ("actor",       models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("order",       models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="events",
                    to="orders.order",
                )),
            ],
            options={"ordering": ["created_at", "id"]},
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["user", "-created_at"], name="order_user_created_idx"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["status"], name="order_status_idx"),
        ),
    ]
