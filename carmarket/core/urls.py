from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    change_password, password_check, verification_request, verification_verify,
    corporate_status, toggle_auto_share,
    setting_list_create, setting_detail,
    audit_log_list, audit_log_detail
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/change-password/', change_password, name='change-password'),
    path('auth/password-check/', password_check, name='password-check'),
    path('auth/verification/request/', verification_request, name='verification-request'),
    path('auth/verification/verify/', verification_verify, name='verification-verify'),

    # Corporate account endpoints
    path('corporate/status/', corporate_status, name='corporate-status'),
    path('corporate/auto-share/', toggle_auto_share, name='corporate-auto-share'),

    # Setting endpoints
    path('settings/', setting_list_create, name='setting-list-create'),
    path('settings/<int:pk>/', setting_detail, name='setting-detail'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),
]
