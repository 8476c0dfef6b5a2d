from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, VerificationCode, Setting, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'full_name', 'is_corporate', 'subscription_status', 'is_blocked', 'is_staff', 'created_at']
    list_filter = ['is_corporate', 'subscription_status', 'is_blocked', 'is_staff', 'created_at']
    search_fields = ['email', 'full_name', 'phone', 'company_name', 'tax_number']
    ordering = ['-created_at']
    readonly_fields = ['blocked_at', 'blocked_by', 'created_at', 'updated_at']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Profile', {'fields': ('full_name', 'phone', 'email_verified')}),
        ('Corporate', {'fields': (
            'is_corporate', 'company_name', 'company_type', 'tax_number', 'tax_office',
            'registration_number', 'company_country', 'website', 'position', 'identity_number',
            'address', 'city', 'postal_code', 'address_country',
            'trial_start_date', 'trial_end_date', 'subscription_status', 'auto_share',
        )}),
        ('Contact Channels', {'fields': ('whatsapp_enabled', 'instagram_enabled')}),
        ('Moderation', {'fields': ('is_blocked', 'block_reason', 'blocked_at', 'blocked_by')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'username', 'full_name', 'password1', 'password2'),
        }),
    )


@admin.register(VerificationCode)
class VerificationCodeAdmin(admin.ModelAdmin):
    list_display = ['email', 'user', 'consumed', 'expires_at', 'created_at']
    list_filter = ['consumed', 'created_at']
    search_fields = ['email', 'user__email']
    ordering = ['-created_at']
    readonly_fields = ['user', 'email', 'code', 'expires_at', 'created_at']


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key', 'description']
    ordering = ['key']
    readonly_fields = ['updated_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_id', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__email', 'model_name', 'object_id', 'object_name']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'object_name', 'changes', 'ip_address', 'created_at']
