import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id",         models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title",      models.CharField(max_length=200)),
                ("sku",        models.CharField(max_length=64, unique=True)),
                ("price",      models.DecimalField(
                    decimal_places=2, max_digits=12,
                    validators=[django.core.validators.MinValueValidator(0)],
                )),
                ("sale_price", models.DecimalField(
                    blank=True, decimal_places=2, max_digits=12, null=True,
                    validators=[django.core.validators.MinValueValidator(0)],
                )),
                ("stock",      models.PositiveIntegerField(default=0)),
                ("image_url",  models.URLField(blank=True, max_length=500)),
                ("is_active",  models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["title"]},
        ),
        migrations.CreateModel(
            name="Coupon",
            fields=[
                ("id",         models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code",       models.CharField(max_length=40, unique=True)),
                ("type",       models.CharField(
                    choices=[("percentage", "Percentage"), ("fixed", "Fixed amount")],
                    max_length=10,
                )),
                ("amount",     models.DecimalField(
                    decimal_places=2, max_digits=10,
                    validators=[django.core.validators.MinValueValidator(0)],
                )),
                ("min_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("max_uses",   models.PositiveIntegerField(blank=True, null=True)),
                ("used_count", models.PositiveIntegerField(default=0)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("is_active",  models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="ShippingMethod",
            fields=[
                ("id",             models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name",           models.CharField(max_length=80)),
                ("description",    models.CharField(blank=True, max_length=255)),
                ("cost",           models.DecimalField(
                    decimal_places=2, max_digits=10,
                    validators=[django.core.validators.MinValueValidator(0)],
                )),
                ("estimated_days", models.PositiveIntegerField(default=3)),
                ("min_free",       models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("is_active",      models.BooleanField(default=True)),
            ],
        ),
        migrations.CreateModel(
            name="TaxRate",
            fields=[
                ("id",         models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("min_amount", models.DecimalField(
                    decimal_places=2, max_digits=12,
                    validators=[django.core.validators.MinValueValidator(0)],
                )),
                ("max_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("rate",       models.DecimalField(
                    decimal_places=4, max_digits=5,
                    validators=[
                        django.core.validators.MinValueValidator(0),
                        django.core.validators.MaxValueValidator(1),
                    ],
                )),
            ],
            options={"ordering": ["min_amount"]},
        ),
    ]
