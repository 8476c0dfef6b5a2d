"""
Storage cleanup for listing photos
"""
from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver
import logging

from .models import CarImage

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=CarImage)
def delete_image_file(sender, instance, **kwargs):
    """Remove the stored file once the image row deletion is committed"""
    if not instance.image:
        return
    storage = instance.image.storage
    name = instance.image.name

    def remove_file():
        try:
            if storage.exists(name):
                storage.delete(name)
        except Exception as e:
            logger.warning(f"Could not delete image file {name}: {str(e)}")

    transaction.on_commit(remove_file)
