from django.contrib import admin
from .models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'sender', 'receiver', 'listing', 'read', 'created_at']
    list_filter = ['read', 'created_at']
    search_fields = ['content', 'sender__email', 'sender__full_name', 'receiver__email', 'receiver__full_name']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
    raw_id_fields = ['sender', 'receiver', 'listing']
