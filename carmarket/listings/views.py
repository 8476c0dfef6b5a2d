import logging

from django.db import IntegrityError
from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly, AllowAny
from rest_framework.response import Response

from carmarket.core.cache_utils import get_cached_listings, cache_listings
from carmarket.core.site_settings import enabled_share_platforms
from carmarket.core.utils import create_audit_log
from .choices import (
    BRANDS, FEATURES, FUEL_TYPE_CHOICES, TRANSMISSION_CHOICES, BODY_TYPE_CHOICES,
    CONDITION_CHOICES, COLOR_CHOICES, DOOR_CHOICES, as_options
)
from .filters import ListingFilter
from .models import CarListing, CarImage
from .serializers import CarListingSerializer, CarListingWriteSerializer, ShareSerializer
from .services import create_listing, delete_listing
from .social_share import SocialShareError, SocialShareNotConfigured, auto_share_listing, share_listing
from .validators import validate_listing_images

logger = logging.getLogger('carmarket.listings')


def listing_queryset():
    return CarListing.objects.select_related('user').prefetch_related(
        Prefetch('images', queryset=CarImage.objects.order_by('position', 'id'))
    )


def can_view_listing(user, listing):
    if listing.status == CarListing.STATUS_APPROVED:
        return True
    return user.is_authenticated and (user.is_staff or listing.user_id == user.id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticatedOrReadOnly])
def listing_list_create(request):
    """Search approved listings or create a new listing (multipart with images)"""
    if request.method == 'GET':
        filters = {key: request.query_params.get(key) for key in sorted(request.query_params.keys())}
        cached_data, cache_key = get_cached_listings(filters)
        if cached_data is not None:
            return Response(cached_data)

        queryset = listing_queryset().filter(status=CarListing.STATUS_APPROVED)
        listing_filter = ListingFilter(request.query_params, queryset=queryset)
        if not listing_filter.is_valid():
            return Response(listing_filter.errors, status=status.HTTP_400_BAD_REQUEST)

        data = CarListingSerializer(listing_filter.qs.order_by('-created_at'), many=True).data
        cache_listings(cache_key, data)
        return Response(data)

    serializer = CarListingWriteSerializer(data=request.data)
    images = request.FILES.getlist('images')
    errors = {}
    if not serializer.is_valid():
        errors.update(serializer.errors)
    image_errors = validate_listing_images(images)
    if image_errors:
        errors['images'] = image_errors
    if errors:
        logger.warning(f"Listing creation rejected for user {request.user.id}: {errors}")
        return Response(errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        listing = create_listing(request.user, serializer.validated_data, images)
    except IntegrityError as e:
        logger.error(f"Integrity error creating listing: {str(e)}")
        return Response({'error': 'Listing could not be saved'}, status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error creating listing: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request,
        action='listing_create',
        model_name='CarListing',
        object_id=listing.id,
        object_name=listing.title,
        changes={'status': listing.status, 'images': len(images)}
    )
    auto_share_listing(listing)

    listing = listing_queryset().get(pk=listing.pk)
    return Response(CarListingSerializer(listing).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticatedOrReadOnly])
def listing_detail(request, pk):
    """Retrieve a listing; owners may update or delete it"""
    listing = get_object_or_404(listing_queryset(), pk=pk)

    if request.method == 'GET':
        if not can_view_listing(request.user, listing):
            return Response({'error': 'Listing not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(CarListingSerializer(listing).data)

    if listing.user_id != request.user.id:
        logger.warning(f"User {request.user.id} tried to modify listing {listing.id} owned by {listing.user_id}")
        return Response({'error': 'You do not have permission to modify this listing'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = CarListingWriteSerializer(listing, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            serializer.save()
        except IntegrityError as e:
            logger.error(f"Integrity error updating listing {listing.id}: {str(e)}")
            return Response({'error': 'Listing could not be saved'}, status=status.HTTP_400_BAD_REQUEST)

        create_audit_log(
            request=request,
            action='listing_update',
            model_name='CarListing',
            object_id=listing.id,
            object_name=listing.title,
            changes=dict(serializer.validated_data)
        )
        logger.info(f"Listing {listing.id} updated by owner {request.user.id}")
        listing = listing_queryset().get(pk=listing.pk)
        return Response(CarListingSerializer(listing).data)

    # DELETE
    listing_id, title = listing.id, listing.title
    try:
        delete_listing(listing)
    except Exception as e:
        logger.error(f"Error deleting listing {listing_id}: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request,
        action='listing_delete',
        model_name='CarListing',
        object_id=listing_id,
        object_name=title
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_listings(request):
    """Listings owned by the current user, any status"""
    listings = listing_queryset().filter(user=request.user).order_by('-created_at')
    return Response(CarListingSerializer(listings, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def listing_share(request, pk):
    """Publish an own listing to Instagram and/or Facebook"""
    listing = get_object_or_404(listing_queryset(), pk=pk)
    if listing.user_id != request.user.id:
        return Response({'error': 'You do not have permission to share this listing'}, status=status.HTTP_403_FORBIDDEN)
    if listing.status != CarListing.STATUS_APPROVED:
        return Response({'error': 'Only approved listings can be shared'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ShareSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    platforms = list(dict.fromkeys(serializer.validated_data['platforms']))
    enabled = enabled_share_platforms()
    disabled = [platform for platform in platforms if platform not in enabled]
    if disabled:
        logger.info(f"Share of listing {listing.id} refused, disabled platforms: {disabled}")
        return Response(
            {'error': f"Sharing to {', '.join(disabled)} is disabled", 'disabled': disabled},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        result = share_listing(listing, platforms)
    except SocialShareNotConfigured as e:
        return Response({'error': str(e)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    except SocialShareError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    create_audit_log(
        request=request,
        action='listing_share',
        model_name='CarListing',
        object_id=listing.id,
        object_name=listing.title,
        changes={'platforms': platforms}
    )
    return Response({'shared': platforms, 'result': result})


@api_view(['GET'])
@permission_classes([AllowAny])
def listing_options(request):
    """Catalogs used by listing forms and search filters"""
    return Response({
        'brands': BRANDS,
        'features': FEATURES,
        'fuel_types': as_options(FUEL_TYPE_CHOICES),
        'transmissions': as_options(TRANSMISSION_CHOICES),
        'body_types': as_options(BODY_TYPE_CHOICES),
        'conditions': as_options(CONDITION_CHOICES),
        'colors': as_options(COLOR_CHOICES),
        'doors': as_options(DOOR_CHOICES),
        'defaults': {'doors': '4', 'condition': 'used'},
    })
