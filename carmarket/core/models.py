from datetime import timedelta
import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser, UserManager as DjangoUserManager
from django.db import models
from django.utils import timezone


class UserManager(DjangoUserManager):
    """Manager that logs users in by email; username defaults to the email"""

    def available_username(self, email, exclude_pk=None):
        """The email as a username, or a unique variant when it is taken"""
        username = email[:150]
        taken = self.filter(username=username)
        if exclude_pk is not None:
            taken = taken.exclude(pk=exclude_pk)
        if taken.exists():
            username = f'{email[:117]}+{uuid.uuid4().hex}'
        return username

    def create_user(self, email=None, password=None, username=None, **extra_fields):
        email = self.normalize_email(email)
        return super().create_user(username or self.available_username(email), email, password, **extra_fields)

    def create_superuser(self, email=None, password=None, username=None, **extra_fields):
        email = self.normalize_email(email)
        return super().create_superuser(username or self.available_username(email), email, password, **extra_fields)


class User(AbstractUser):
    """Marketplace account: individual seller/buyer or corporate dealer"""
    SUBSCRIPTION_FREE = 'free'
    SUBSCRIPTION_TRIAL = 'trial'
    SUBSCRIPTION_ACTIVE = 'active'
    SUBSCRIPTION_CHOICES = [
        (SUBSCRIPTION_FREE, 'Free'),
        (SUBSCRIPTION_TRIAL, 'Trial'),
        (SUBSCRIPTION_ACTIVE, 'Active'),
    ]

    email = models.EmailField(max_length=254, unique=True)
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email_verified = models.BooleanField(default=False)

    # Corporate account
    is_corporate = models.BooleanField(default=False)
    company_name = models.CharField(max_length=255, blank=True, null=True)
    company_type = models.CharField(max_length=100, blank=True, null=True)
    tax_number = models.CharField(max_length=50, blank=True, null=True)
    tax_office = models.CharField(max_length=255, blank=True, null=True)
    registration_number = models.CharField(max_length=100, blank=True, null=True)
    company_country = models.CharField(max_length=100, blank=True, null=True)
    website = models.CharField(max_length=255, blank=True, null=True)
    position = models.CharField(max_length=100, blank=True, null=True)
    identity_number = models.CharField(max_length=50, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    postal_code = models.CharField(max_length=20, blank=True, null=True)
    address_country = models.CharField(max_length=100, blank=True, null=True)
    trial_start_date = models.DateTimeField(null=True, blank=True)
    trial_end_date = models.DateTimeField(null=True, blank=True)
    subscription_status = models.CharField(max_length=20, choices=SUBSCRIPTION_CHOICES, default=SUBSCRIPTION_FREE)
    auto_share = models.BooleanField(default=False)

    # Contact channels (admin controlled)
    whatsapp_enabled = models.BooleanField(default=True)
    instagram_enabled = models.BooleanField(default=False)

    # Moderation
    is_blocked = models.BooleanField(default=False)
    block_reason = models.TextField(blank=True, null=True)
    blocked_at = models.DateTimeField(null=True, blank=True)
    blocked_by = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='blocked_users')

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_corporate'], name='users_is_corp_0f3a1c_idx'),
            models.Index(fields=['is_blocked'], name='users_is_bloc_7d2e4b_idx'),
        ]

    def __str__(self):
        return self.full_name or self.email

    @property
    def display_name(self):
        if self.is_corporate and self.company_name:
            return self.company_name
        return self.full_name or self.email

    def start_corporate_trial(self, company_name, tax_number, commit=True):
        """Flag the account as corporate and open the free trial window"""
        now = timezone.now()
        self.is_corporate = True
        self.company_name = company_name
        self.tax_number = tax_number
        self.trial_start_date = now
        self.trial_end_date = now + timedelta(days=getattr(settings, 'CORPORATE_TRIAL_DAYS', 30))
        self.subscription_status = self.SUBSCRIPTION_TRIAL
        if commit:
            self.save()

    def is_trial_active(self):
        if self.subscription_status != self.SUBSCRIPTION_TRIAL or not self.trial_end_date:
            return False
        return timezone.now() < self.trial_end_date

    def block(self, reason, blocked_by=None):
        self.is_blocked = True
        self.block_reason = reason
        self.blocked_at = timezone.now()
        self.blocked_by = blocked_by
        self.save(update_fields=['is_blocked', 'block_reason', 'blocked_at', 'blocked_by', 'updated_at'])

    def unblock(self):
        self.is_blocked = False
        self.block_reason = None
        self.blocked_at = None
        self.blocked_by = None
        self.save(update_fields=['is_blocked', 'block_reason', 'blocked_at', 'blocked_by', 'updated_at'])


class VerificationCode(models.Model):
    """One-time code emailed to confirm a new email address"""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='verification_codes')
    email = models.EmailField(max_length=254)
    code = models.CharField(max_length=6)
    expires_at = models.DateTimeField()
    consumed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.email

    def is_expired(self):
        return timezone.now() >= self.expires_at

    class Meta:
        db_table = 'verification_codes'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['email'], name='verificatio_email_5b9c2e_idx'),
        ]


class Setting(models.Model):
    """Site settings edited from the dashboard (social platforms, notifications)"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for account and moderation operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('register', 'Register'),
        ('admin_login', 'Admin Login'),
        ('password_change', 'Password Change'),
        ('account_delete', 'Account Deleted'),
        ('user_block', 'User Blocked'),
        ('user_unblock', 'User Unblocked'),
        ('user_delete', 'User Deleted'),
        ('channels_update', 'Contact Channels Updated'),
        ('listing_create', 'Listing Created'),
        ('listing_update', 'Listing Updated'),
        ('listing_delete', 'Listing Deleted'),
        ('listing_approve', 'Listing Approved'),
        ('listing_reject', 'Listing Rejected'),
        ('listing_share', 'Listing Shared'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., listing title, user email)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_a1b2c3_idx'),
            models.Index(fields=['action'], name='audit_logs_action_d4e5f6_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_7a8b9c_idx'),
        ]
