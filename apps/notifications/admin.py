from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display  = ("user", "title", "type", "priority", "is_read", "created_at")
    list_filter   = ("type", "priority", "is_read")
    search_fields = ("user__email", "title")
    readonly_fields = ("id", "created_at")
