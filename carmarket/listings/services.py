"""
Listing write operations shared by the owner API, account deletion and
dashboard moderation.
"""
import logging

from django.conf import settings
from django.db import transaction

from .models import CarListing, CarImage

logger = logging.getLogger(__name__)


def initial_status():
    if getattr(settings, 'LISTING_REQUIRES_APPROVAL', False):
        return CarListing.STATUS_PENDING
    return CarListing.STATUS_APPROVED


@transaction.atomic
def create_listing(user, validated_data, images):
    """Create a listing and store its photos in upload order"""
    listing = CarListing.objects.create(user=user, status=initial_status(), **validated_data)
    for position, upload in enumerate(images):
        CarImage.objects.create(listing=listing, image=upload, position=position)
    logger.info(f"Listing {listing.id} created by user {user.id} with {len(images)} images")
    return listing


@transaction.atomic
def delete_listing(listing):
    """Delete a listing; image files are removed by the CarImage post_delete signal"""
    listing_id = listing.id
    image_count = listing.images.count()
    listing.images.all().delete()
    listing.delete()
    logger.info(f"Listing {listing_id} deleted ({image_count} images removed)")


@transaction.atomic
def delete_user_data(user):
    """
    Remove an account with everything it owns: listings and their photos,
    sent and received messages, verification codes.
    """
    user_id = user.id
    for listing in CarListing.objects.filter(user=user).prefetch_related('images'):
        delete_listing(listing)
    # Messages and verification codes cascade with the user row
    user.delete()
    logger.info(f"All data for user {user_id} deleted")
