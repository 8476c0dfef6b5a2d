from django.urls import path
from .views import (
    message_list_create, message_detail, conversation_list, conversation_detail, unread_count
)

urlpatterns = [
    path('messages/', message_list_create, name='message-list-create'),
    path('messages/unread-count/', unread_count, name='message-unread-count'),
    path('messages/<int:pk>/', message_detail, name='message-detail'),
    path('conversations/', conversation_list, name='conversation-list'),
    path('conversations/<int:user_id>/', conversation_detail, name='conversation-detail'),
]
