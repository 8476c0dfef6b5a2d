import os
import uuid

from django.conf import settings
from django.db import models

from .choices import (
    FUEL_TYPE_CHOICES, TRANSMISSION_CHOICES, BODY_TYPE_CHOICES,
    CONDITION_CHOICES, COLOR_CHOICES, DOOR_CHOICES
)


class CarListing(models.Model):
    """A car offered for sale"""
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='listings')
    brand = models.CharField(max_length=100)
    model = models.CharField(max_length=100)
    year = models.PositiveIntegerField()
    mileage = models.PositiveIntegerField()
    color = models.CharField(max_length=20, choices=COLOR_CHOICES, blank=True)
    price = models.PositiveBigIntegerField()
    fuel_type = models.CharField(max_length=20, choices=FUEL_TYPE_CHOICES)
    transmission = models.CharField(max_length=20, choices=TRANSMISSION_CHOICES)
    body_type = models.CharField(max_length=20, choices=BODY_TYPE_CHOICES, blank=True)
    condition = models.CharField(max_length=20, choices=CONDITION_CHOICES, default='used')
    engine_size = models.CharField(max_length=20, blank=True)
    power = models.CharField(max_length=20, blank=True)
    doors = models.CharField(max_length=2, choices=DOOR_CHOICES, default='4')
    location = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    features = models.JSONField(default=list, blank=True)
    warranty = models.BooleanField(default=False)
    negotiable = models.BooleanField(default=False)
    exchange = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_APPROVED)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.year} {self.brand} {self.model}"

    @property
    def title(self):
        return str(self)

    class Meta:
        db_table = 'car_listings'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='car_listing_status_1c2d3e_idx'),
            models.Index(fields=['brand', 'model'], name='car_listing_brand_4f5a6b_idx'),
            models.Index(fields=['price'], name='car_listing_price_7c8d9e_idx'),
        ]


def listing_image_path(instance, filename):
    """car-images/<listing id>/<random>.<ext>"""
    ext = os.path.splitext(filename)[1].lower().lstrip('.') or 'jpg'
    return f"car-images/{instance.listing_id}/{uuid.uuid4().hex}.{ext}"


class CarImage(models.Model):
    """Photo attached to a listing"""
    listing = models.ForeignKey(CarListing, on_delete=models.CASCADE, related_name='images')
    image = models.ImageField(upload_to=listing_image_path, max_length=255)
    position = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Image {self.position} of {self.listing}"

    @property
    def url(self):
        return self.image.url if self.image else None

    class Meta:
        db_table = 'car_images'
        ordering = ['position', 'id']
