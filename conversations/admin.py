from django.contrib import admin
from .models import Conversation, ConversationMessage


class ConversationMessageInline(admin.TabularInline):
    """Messages are an append-only log; the admin only shows them"""
    model = ConversationMessage
    extra = 0
    can_delete = False
    fields = ['sender', 'message', 'timestamp', 'admin_id', 'admin_name']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ['tracking_id', 'customer_name', 'status', 'is_unread_by_admin', 'last_message_at']
    list_filter = ['status', 'is_unread_by_admin', 'created_at']
    search_fields = ['tracking_id', 'customer_name', 'customer_email', 'messages__message']
    readonly_fields = ['tracking_id', 'created_at', 'updated_at', 'last_message_at']
    inlines = [ConversationMessageInline]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('messages')
