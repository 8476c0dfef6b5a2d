"""
URL configuration for the carmarket project.

Every app exposes its API under ``api/v1/``; uploaded listing images are
served from ``media/``.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "CarMarket Admin Panel"
admin.site.site_title = "CarMarket Admin Portal"
admin.site.index_title = "Welcome to the CarMarket Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('carmarket.core.urls')),
    path('api/v1/', include('carmarket.listings.urls')),
    path('api/v1/', include('carmarket.messaging.urls')),
    path('api/v1/', include('carmarket.dashboard.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
