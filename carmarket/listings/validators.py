"""
Upload validation for listing photos
"""
import logging

from django.core.exceptions import ValidationError
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_FORMATS = {'JPEG': 'image/jpeg', 'PNG': 'image/png', 'WEBP': 'image/webp'}
ALLOWED_CONTENT_TYPES = set(ALLOWED_IMAGE_FORMATS.values()) | {'image/jpg'}
MAX_IMAGE_SIZE = 30 * 1024 * 1024  # 30 MB
MAX_IMAGES_PER_LISTING = 16
MIN_IMAGE_WIDTH = 1920
MIN_IMAGE_HEIGHT = 1080


def validate_listing_image(upload):
    """
    Check one uploaded photo.

    Rules:
    - content type and decoded format must be JPEG, PNG or WebP
    - at most 30 MB
    - at least 1920x1080 pixels

    Raises:
        ValidationError naming the file and the failed rule.
    """
    name = getattr(upload, 'name', 'image')
    content_type = getattr(upload, 'content_type', None)
    if content_type and content_type.lower() not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(f'{name}: only JPEG, PNG and WebP images are allowed')

    if upload.size > MAX_IMAGE_SIZE:
        raise ValidationError(f'{name}: image must be 30 MB or smaller')

    try:
        upload.seek(0)
        with Image.open(upload) as img:
            image_format = img.format
            width, height = img.size
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning(f"Unreadable image upload {name}: {str(e)}")
        raise ValidationError(f'{name}: file is not a valid image')
    finally:
        upload.seek(0)

    if image_format not in ALLOWED_IMAGE_FORMATS:
        raise ValidationError(f'{name}: only JPEG, PNG and WebP images are allowed')

    if width < MIN_IMAGE_WIDTH or height < MIN_IMAGE_HEIGHT:
        raise ValidationError(
            f'{name}: image must be at least {MIN_IMAGE_WIDTH}x{MIN_IMAGE_HEIGHT} pixels '
            f'(got {width}x{height})'
        )


def validate_listing_images(uploads, existing_count=0):
    """
    Check a batch of photos for a listing.

    Returns the list of error messages (empty when every file passes).
    """
    errors = []
    total = existing_count + len(uploads)
    if total == 0:
        errors.append('At least one image is required')
    if total > MAX_IMAGES_PER_LISTING:
        errors.append(f'A listing can have at most {MAX_IMAGES_PER_LISTING} images')
    for upload in uploads:
        try:
            validate_listing_image(upload)
        except ValidationError as e:
            errors.extend(e.messages)
    return errors
