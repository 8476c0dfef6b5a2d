from django.contrib import admin
from .models import CarListing, CarImage


class CarImageInline(admin.TabularInline):
    model = CarImage
    extra = 0
    readonly_fields = ['created_at']


@admin.register(CarListing)
class CarListingAdmin(admin.ModelAdmin):
    list_display = ['id', 'brand', 'model', 'year', 'price', 'user', 'status', 'created_at']
    list_filter = ['status', 'fuel_type', 'transmission', 'condition', 'created_at']
    search_fields = ['brand', 'model', 'location', 'user__email', 'user__full_name', 'user__company_name']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [CarImageInline]


@admin.register(CarImage)
class CarImageAdmin(admin.ModelAdmin):
    list_display = ['id', 'listing', 'position', 'created_at']
    search_fields = ['listing__brand', 'listing__model']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
