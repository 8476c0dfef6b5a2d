import django_filters
from django.db import connection
from django.db.models import Q

from .choices import FUEL_TYPE_CHOICES, TRANSMISSION_CHOICES, BODY_TYPE_CHOICES, CONDITION_CHOICES, COLOR_CHOICES
from .models import CarListing


def parse_features(value):
    """Comma-separated feature names -> list of stripped, non-empty names"""
    return [item.strip() for item in (value or '').split(',') if item.strip()]


class ListingFilter(django_filters.FilterSet):
    """
    Public listing search.

    - search: case-insensitive match on brand, model or location
    - brand / model / location: case-insensitive contains
    - fuel_type, transmission, body_type, color, condition: exact
    - min_/max_ price, year, mileage: inclusive ranges
    - features: comma-separated; a listing must have all of them
    """
    search = django_filters.CharFilter(method='filter_search')
    brand = django_filters.CharFilter(field_name='brand', lookup_expr='icontains')
    model = django_filters.CharFilter(field_name='model', lookup_expr='icontains')
    location = django_filters.CharFilter(field_name='location', lookup_expr='icontains')
    fuel_type = django_filters.ChoiceFilter(choices=FUEL_TYPE_CHOICES)
    transmission = django_filters.ChoiceFilter(choices=TRANSMISSION_CHOICES)
    body_type = django_filters.ChoiceFilter(choices=BODY_TYPE_CHOICES)
    color = django_filters.ChoiceFilter(choices=COLOR_CHOICES)
    condition = django_filters.ChoiceFilter(choices=CONDITION_CHOICES)
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    min_year = django_filters.NumberFilter(field_name='year', lookup_expr='gte')
    max_year = django_filters.NumberFilter(field_name='year', lookup_expr='lte')
    min_mileage = django_filters.NumberFilter(field_name='mileage', lookup_expr='gte')
    max_mileage = django_filters.NumberFilter(field_name='mileage', lookup_expr='lte')
    features = django_filters.CharFilter(method='filter_features')

    class Meta:
        model = CarListing
        fields = [
            'search', 'brand', 'model', 'location', 'fuel_type', 'transmission', 'body_type',
            'color', 'condition', 'min_price', 'max_price', 'min_year', 'max_year',
            'min_mileage', 'max_mileage', 'features',
        ]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(brand__icontains=value) |
            Q(model__icontains=value) |
            Q(location__icontains=value)
        )

    def filter_features(self, queryset, name, value):
        wanted = parse_features(value)
        if not wanted:
            return queryset
        if connection.features.supports_json_field_contains:
            for feature in wanted:
                queryset = queryset.filter(features__contains=[feature])
            return queryset
        # SQLite has no JSON containment lookup; match in Python
        matching_ids = [
            pk for pk, features in queryset.values_list('id', 'features')
            if set(wanted).issubset(features or [])
        ]
        return queryset.filter(id__in=matching_ids)
