from django.urls import path
from .views import (
    listing_list_create, listing_detail, my_listings, listing_share, listing_options
)

urlpatterns = [
    path('listings/', listing_list_create, name='listing-list-create'),
    path('listings/mine/', my_listings, name='listing-mine'),
    path('listings/options/', listing_options, name='listing-options'),
    path('listings/<int:pk>/', listing_detail, name='listing-detail'),
    path('listings/<int:pk>/share/', listing_share, name='listing-share'),
]
