"""
Social share hook client: publishes a listing to Instagram and/or Facebook
through an external webhook (``SOCIAL_SHARE_URL``).
"""
import logging
from typing import List, Dict, Any

import requests
from django.conf import settings

from carmarket.core.site_settings import enabled_share_platforms

logger = logging.getLogger(__name__)


class SocialShareError(Exception):
    """The share hook rejected the request or could not be reached"""


class SocialShareNotConfigured(SocialShareError):
    """No share hook URL is configured"""


def build_share_payload(listing, platforms: List[str]) -> Dict[str, Any]:
    image_urls = [image.url for image in listing.images.all() if image.url]
    return {
        'listing_id': listing.id,
        'platforms': platforms,
        'title': listing.title,
        'price': listing.price,
        'mileage': listing.mileage,
        'location': listing.location,
        'description': listing.description,
        'images': image_urls,
        'seller': listing.user.display_name,
    }


def share_listing(listing, platforms: List[str]) -> Dict[str, Any]:
    """
    Send a listing to the share hook.

    Returns:
        The hook's JSON response, or {'shared': platforms} when it has no body.

    Raises:
        SocialShareNotConfigured: SOCIAL_SHARE_URL is empty
        SocialShareError: request failed or returned a non-2xx status
    """
    url = getattr(settings, 'SOCIAL_SHARE_URL', '')
    if not url:
        raise SocialShareNotConfigured('Social sharing is not configured')

    headers = {'Content-Type': 'application/json'}
    token = getattr(settings, 'SOCIAL_SHARE_TOKEN', '')
    if token:
        headers['Authorization'] = f'Bearer {token}'

    try:
        response = requests.post(
            url,
            json=build_share_payload(listing, platforms),
            headers=headers,
            timeout=getattr(settings, 'SOCIAL_SHARE_TIMEOUT', 15),
        )
        response.raise_for_status()
    except requests.exceptions.Timeout:
        logger.warning(f"Social share timed out for listing {listing.id}")
        raise SocialShareError('Social share service timed out')
    except requests.exceptions.RequestException as e:
        logger.warning(f"Social share failed for listing {listing.id}: {str(e)}")
        raise SocialShareError('Listing could not be shared')

    logger.info(f"Listing {listing.id} shared to {', '.join(platforms)}")
    try:
        return response.json()
    except ValueError:
        return {'shared': platforms}


def auto_share_listing(listing):
    """
    Share a newly published listing for corporate accounts with auto share
    on. Failures are logged and never propagate to the caller.
    """
    user = listing.user
    if not (user.is_corporate and user.auto_share) or listing.status != listing.STATUS_APPROVED:
        return None
    platforms = enabled_share_platforms()
    if not platforms:
        return None
    try:
        return share_listing(listing, platforms)
    except SocialShareError as e:
        logger.warning(f"Auto share skipped for listing {listing.id}: {str(e)}")
        return None
