from rest_framework import serializers

from carmarket.core.serializers import UserAdminSerializer
from carmarket.listings.models import CarListing
from carmarket.listings.serializers import CarListingSerializer


class DashboardLoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)


class BlockUserSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, trim_whitespace=True)


class ChannelsSerializer(serializers.Serializer):
    whatsapp_enabled = serializers.BooleanField(required=False)
    instagram_enabled = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Provide whatsapp_enabled and/or instagram_enabled')
        return attrs


class ListingRemovalSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, trim_whitespace=True)


class ModerationSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[CarListing.STATUS_APPROVED, CarListing.STATUS_REJECTED])
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class OwnerListingSerializer(serializers.ModelSerializer):
    class Meta:
        model = CarListing
        fields = ['id', 'title', 'brand', 'model', 'year', 'price', 'status', 'created_at']
        read_only_fields = fields


class CorporateUserSerializer(UserAdminSerializer):
    listings = OwnerListingSerializer(many=True, read_only=True)

    class Meta(UserAdminSerializer.Meta):
        fields = UserAdminSerializer.Meta.fields + ['listings']
        read_only_fields = fields


class AdminListingSerializer(CarListingSerializer):
    """Listing with the owner's account details for moderation"""
    owner = UserAdminSerializer(source='user', read_only=True)

    class Meta(CarListingSerializer.Meta):
        fields = CarListingSerializer.Meta.fields + ['owner']
        read_only_fields = fields
