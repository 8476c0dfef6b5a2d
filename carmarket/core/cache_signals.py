"""
Cache invalidation signals
Automatically invalidate cache when listings, messages or users change
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from .cache_utils import invalidate_listings_cache, invalidate_dashboard_cache

logger = logging.getLogger(__name__)

LISTING_MODELS = ('CarListing', 'CarImage', 'User')
DASHBOARD_MODELS = ('CarListing', 'Message', 'User')


@receiver([post_save, post_delete])
def invalidate_listings_on_change(sender, instance, **kwargs):
    """Invalidate listing searches when listings, their images or sellers change"""
    if sender.__name__ not in LISTING_MODELS:
        return
    try:
        # Invalidate after commit so the cache is not refilled with stale rows
        transaction.on_commit(invalidate_listings_cache)
    except Exception as e:
        logger.warning(f"Error in invalidate_listings_on_change signal: {e}")


@receiver([post_save, post_delete])
def invalidate_dashboard_on_change(sender, instance, **kwargs):
    """Invalidate dashboard statistics when counted rows change"""
    if sender.__name__ not in DASHBOARD_MODELS:
        return
    try:
        transaction.on_commit(invalidate_dashboard_cache)
    except Exception as e:
        logger.warning(f"Error in invalidate_dashboard_on_change signal: {e}")
