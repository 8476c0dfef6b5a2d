import re
from datetime import date

from rest_framework import serializers

from carmarket.core.validators import whatsapp_link
from .choices import FEATURES, SHARE_PLATFORMS
from .models import CarListing, CarImage


class DigitsIntegerField(serializers.IntegerField):
    """
    Integer input that tolerates thousands separators and currency text
    ("1.250.000 TL" -> 1250000). Non-digit characters are dropped.
    """

    def to_internal_value(self, data):
        if isinstance(data, str):
            digits = re.sub(r'\D', '', data)
            if not digits:
                self.fail('invalid')
            data = digits
        return super().to_internal_value(data)


class CarImageSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = CarImage
        fields = ['id', 'url', 'position', 'created_at']

    def get_url(self, obj):
        return obj.url


class SellerSerializer(serializers.Serializer):
    """Seller card shown on listings, with contact channels"""
    id = serializers.IntegerField()
    full_name = serializers.CharField()
    company_name = serializers.CharField(allow_null=True)
    is_corporate = serializers.BooleanField()
    member_since = serializers.DateTimeField(source='created_at')
    phone = serializers.CharField(allow_null=True)
    whatsapp_url = serializers.SerializerMethodField()
    instagram_enabled = serializers.BooleanField()

    def get_whatsapp_url(self, obj):
        if not obj.whatsapp_enabled or not obj.phone:
            return None
        return whatsapp_link(obj.phone)


class CarListingSerializer(serializers.ModelSerializer):
    images = CarImageSerializer(many=True, read_only=True)
    seller = SellerSerializer(source='user', read_only=True)

    class Meta:
        model = CarListing
        fields = [
            'id', 'title', 'brand', 'model', 'year', 'mileage', 'color', 'price', 'fuel_type',
            'transmission', 'body_type', 'condition', 'engine_size', 'power', 'doors',
            'location', 'description', 'features', 'warranty', 'negotiable', 'exchange',
            'status', 'images', 'seller', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CarListingWriteSerializer(serializers.ModelSerializer):
    """Create/update payload; images are handled by the view"""
    year = DigitsIntegerField(min_value=1950)
    mileage = DigitsIntegerField(min_value=0, max_value=2_000_000)
    price = DigitsIntegerField(min_value=1, max_value=10 ** 12)
    features = serializers.ListField(
        child=serializers.ChoiceField(choices=FEATURES),
        required=False,
        allow_empty=True
    )

    class Meta:
        model = CarListing
        fields = [
            'brand', 'model', 'year', 'mileage', 'color', 'price', 'fuel_type', 'transmission',
            'body_type', 'condition', 'engine_size', 'power', 'doors', 'location', 'description',
            'features', 'warranty', 'negotiable', 'exchange',
        ]

    def validate_year(self, value):
        if value > date.today().year + 1:
            raise serializers.ValidationError('Year cannot be in the future')
        return value

    def validate_brand(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Brand is required')
        return value

    def validate_model(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Model is required')
        return value

    def validate_location(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Location is required')
        return value

    def validate_features(self, value):
        # Keep catalog order, drop duplicates
        return [feature for feature in FEATURES if feature in set(value)]


class ShareSerializer(serializers.Serializer):
    platforms = serializers.ListField(
        child=serializers.ChoiceField(choices=SHARE_PLATFORMS),
        allow_empty=False
    )
