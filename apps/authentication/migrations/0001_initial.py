import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("password",          models.CharField(max_length=128, verbose_name="password")),
                ("last_login",        models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser",      models.BooleanField(default=False, verbose_name="superuser status")),
                ("id",                models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("email",             models.EmailField(max_length=254, unique=True)),
                ("full_name",         models.CharField(max_length=120)),
                ("phone",             models.CharField(blank=True, max_length=15)),
                ("role",              models.CharField(
                    choices=[("CUSTOMER", "Customer"), ("ADMIN", "Store Admin")],
                    default="CUSTOMER",
                    max_length=10,
                )),
                ("is_email_verified", models.BooleanField(default=False)),
                ("is_active",         models.BooleanField(default=True)),
                ("is_staff",          models.BooleanField(default=False)),
                ("created_at",        models.DateTimeField(auto_now_add=True)),
                ("groups",            models.ManyToManyField(
                    blank=True, related_name="user_set", related_query_name="user",
                    to="auth.group", verbose_name="groups",
                )),
                ("user_permissions",  models.ManyToManyField(
                    blank=True, related_name="user_set", related_query_name="user",
                    to="auth.permission", verbose_name="user permissions",
                )),
            ],
            options={"verbose_name": "Customer"},
        ),
        migrations.AddIndex(
            model_name="customer",
            index=models.Index(fields=["role"], name="customer_role_idx"),
        ),
    ]
