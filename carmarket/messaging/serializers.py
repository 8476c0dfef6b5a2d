from django.contrib.auth import get_user_model
from rest_framework import serializers

from carmarket.core.serializers import UserSummarySerializer
from carmarket.listings.models import CarListing
from .models import Message

User = get_user_model()

MAX_MESSAGE_LENGTH = 2000


class ListingSummarySerializer(serializers.ModelSerializer):
    cover_image = serializers.SerializerMethodField()

    class Meta:
        model = CarListing
        fields = ['id', 'title', 'brand', 'model', 'year', 'price', 'status', 'cover_image']
        read_only_fields = fields

    def get_cover_image(self, obj):
        # Uses the prefetched images when available
        images = list(obj.images.all())
        return images[0].url if images else None


class MessageSerializer(serializers.ModelSerializer):
    sender = UserSummarySerializer(read_only=True)
    receiver = UserSummarySerializer(read_only=True)
    listing = ListingSummarySerializer(read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'sender', 'receiver', 'listing', 'content', 'read', 'created_at']
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    receiver = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())
    listing = serializers.PrimaryKeyRelatedField(queryset=CarListing.objects.all())
    content = serializers.CharField(max_length=MAX_MESSAGE_LENGTH, trim_whitespace=True)

    def validate_receiver(self, value):
        if value.id == self.context['sender'].id:
            raise serializers.ValidationError('You cannot send a message to yourself')
        if value.is_blocked or not value.is_active:
            raise serializers.ValidationError('This user cannot receive messages')
        return value

    def create(self, validated_data):
        return Message.objects.create(sender=self.context['sender'], **validated_data)


class ConversationSerializer(serializers.Serializer):
    """Serializes a messaging.conversations.Conversation for the current user"""
    counterparty = serializers.SerializerMethodField()
    listing = serializers.SerializerMethodField()
    last_message = serializers.SerializerMethodField()
    message_count = serializers.IntegerField()
    unread_count = serializers.IntegerField()

    def get_counterparty(self, obj):
        return UserSummarySerializer(obj.counterparty(self.context['user_id'])).data

    def get_listing(self, obj):
        return ListingSummarySerializer(obj.representative.listing).data

    def get_last_message(self, obj):
        latest = obj.latest
        return {
            'id': latest.id,
            'content': latest.content,
            'sender_id': latest.sender_id,
            'read': latest.read,
            'created_at': serializers.DateTimeField().to_representation(latest.created_at),
        }
