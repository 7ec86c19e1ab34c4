from django.contrib import admin
from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("kind", "recipient", "subject", "sent", "created_at")
    list_filter = ("kind", "sent", "created_at")
    search_fields = ("recipient", "subject", "message")
