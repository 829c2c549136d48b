from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(BaseUserAdmin):
    list_display  = ("email", "full_name", "phone", "role", "is_email_verified", "is_active", "created_at")
    list_filter   = ("role", "is_active", "is_email_verified")
    search_fields = ("email", "full_name", "phone")
    ordering      = ("-created_at",)
    fieldsets = (
        (None,          {"fields": ("email", "password")}),
        ("Personal",    {"fields": ("full_name", "phone")}),
        ("Role",        {"fields": ("role", "is_email_verified")}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "full_name", "role", "password1", "password2")}),
    )
