from django.urls import path
from .views import (
    dashboard_login, dashboard_change_password, dashboard_stats,
    dashboard_users, dashboard_corporate_users, dashboard_user_delete,
    dashboard_user_block, dashboard_user_unblock, dashboard_user_channels,
    dashboard_listings, dashboard_listing_delete, dashboard_listing_moderate,
    dashboard_messages
)

urlpatterns = [
    # Admin session
    path('dashboard/login/', dashboard_login, name='dashboard-login'),
    path('dashboard/password/', dashboard_change_password, name='dashboard-password'),
    path('dashboard/stats/', dashboard_stats, name='dashboard-stats'),

    # User moderation
    path('dashboard/users/', dashboard_users, name='dashboard-users'),
    path('dashboard/corporate-users/', dashboard_corporate_users, name='dashboard-corporate-users'),
    path('dashboard/users/<int:pk>/', dashboard_user_delete, name='dashboard-user-delete'),
    path('dashboard/users/<int:pk>/block/', dashboard_user_block, name='dashboard-user-block'),
    path('dashboard/users/<int:pk>/unblock/', dashboard_user_unblock, name='dashboard-user-unblock'),
    path('dashboard/users/<int:pk>/channels/', dashboard_user_channels, name='dashboard-user-channels'),

    # Listing moderation
    path('dashboard/listings/', dashboard_listings, name='dashboard-listings'),
    path('dashboard/listings/<int:pk>/', dashboard_listing_delete, name='dashboard-listing-delete'),
    path('dashboard/listings/<int:pk>/moderate/', dashboard_listing_moderate, name='dashboard-listing-moderate'),

    # Messages
    path('dashboard/messages/', dashboard_messages, name='dashboard-messages'),
]
