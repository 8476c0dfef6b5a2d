from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import User, Setting, AuditLog
from .validators import validate_email_address, normalize_phone

CORPORATE_FIELDS = [
    'company_name', 'company_type', 'tax_number', 'tax_office', 'registration_number',
    'company_country', 'website', 'position', 'identity_number', 'address', 'city',
    'postal_code', 'address_country',
]


def _clean_email(value):
    try:
        email = validate_email_address(value)
    except DjangoValidationError as e:
        raise serializers.ValidationError(e.messages[0])
    return email.lower()


def _clean_phone(value):
    if not value:
        return None
    try:
        return normalize_phone(value)
    except DjangoValidationError as e:
        raise serializers.ValidationError(e.messages[0])


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id', 'email', 'full_name', 'phone', 'email_verified', 'is_corporate', 'company_name',
            'subscription_status', 'whatsapp_enabled', 'instagram_enabled', 'is_staff',
            'is_blocked', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Public view of a user (seller, message counterparty)"""
    class Meta:
        model = User
        fields = ['id', 'full_name', 'company_name', 'is_corporate', 'created_at']
        read_only_fields = fields


class UserAdminSerializer(serializers.ModelSerializer):
    """Everything the dashboard shows about an account"""
    blocked_by = serializers.PrimaryKeyRelatedField(read_only=True)
    listing_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'full_name', 'phone', 'email_verified', 'is_corporate', *CORPORATE_FIELDS,
            'trial_start_date', 'trial_end_date', 'subscription_status', 'auto_share',
            'whatsapp_enabled', 'instagram_enabled', 'is_blocked', 'block_reason', 'blocked_at',
            'blocked_by', 'is_staff', 'is_active', 'listing_count', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProfileSerializer(serializers.ModelSerializer):
    """Own profile; only full_name and phone are editable"""
    trial_active = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'full_name', 'phone', 'email_verified', 'is_corporate', *CORPORATE_FIELDS,
            'trial_start_date', 'trial_end_date', 'subscription_status', 'trial_active', 'auto_share',
            'whatsapp_enabled', 'instagram_enabled', 'is_staff', 'created_at', 'updated_at',
        ]
        read_only_fields = [f for f in fields if f not in ('full_name', 'phone')]

    def get_trial_active(self, obj):
        return obj.is_trial_active()

    def validate_full_name(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError('Full name is required')
        return value

    def validate_phone(self, value):
        return _clean_phone(value)


class CorporateStatusSerializer(serializers.ModelSerializer):
    trial_active = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'is_corporate', 'trial_start_date', 'trial_end_date', 'subscription_status',
            'trial_active', 'company_name', 'tax_number', 'auto_share',
        ]
        read_only_fields = fields

    def get_trial_active(self, obj):
        return obj.is_trial_active()


class UserCreateSerializer(serializers.ModelSerializer):
    """
    Registration for individual and corporate accounts.

    Corporate sign-up additionally requires password confirmation, a phone
    number, company name and tax number, and starts the corporate trial.
    """
    account_type = serializers.ChoiceField(choices=['individual', 'corporate'], default='individual', write_only=True)
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ['account_type', 'email', 'password', 'password_confirm', 'full_name', 'phone', *CORPORATE_FIELDS]
        extra_kwargs = {
            'email': {'validators': []},
        }

    def validate_email(self, value):
        email = _clean_email(value)
        if User.objects.filter(email__iexact=email).exists():
            raise serializers.ValidationError('This email address is already registered')
        return email

    def validate_full_name(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError('Full name is required')
        return value

    def validate_phone(self, value):
        return _clean_phone(value)

    def validate(self, attrs):
        if not attrs.get('full_name'):
            raise serializers.ValidationError({'full_name': 'Full name is required'})

        confirm = attrs.get('password_confirm')
        if confirm and attrs['password'] != confirm:
            raise serializers.ValidationError({'password_confirm': "Passwords don't match"})

        if attrs.get('account_type') == 'corporate':
            errors = {}
            if not confirm:
                errors['password_confirm'] = 'Please confirm your password'
            if not attrs.get('phone'):
                errors['phone'] = 'Phone number is required for corporate accounts'
            for field in ('company_name', 'tax_number'):
                if not (attrs.get(field) or '').strip():
                    errors[field] = 'This field is required for corporate accounts'
            if errors:
                raise serializers.ValidationError(errors)
        return attrs

    def create(self, validated_data):
        account_type = validated_data.pop('account_type', 'individual')
        validated_data.pop('password_confirm', None)
        password = validated_data.pop('password')
        company_name = validated_data.pop('company_name', None)
        tax_number = validated_data.pop('tax_number', None)

        user = User.objects.create_user(password=password, is_active=True, **validated_data)
        if account_type == 'corporate':
            user.start_corporate_trial(company_name.strip(), tax_number.strip())
        return user


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)
    confirm_password = serializers.CharField(write_only=True)

    def validate_current_password(self, value):
        if not self.context['user'].check_password(value):
            raise serializers.ValidationError('Current password is incorrect')
        return value

    def validate(self, attrs):
        if attrs['new_password'] != attrs['confirm_password']:
            raise serializers.ValidationError({'confirm_password': "New passwords don't match"})
        try:
            validate_password(attrs['new_password'], self.context['user'])
        except DjangoValidationError as e:
            raise serializers.ValidationError({'new_password': e.messages})
        return attrs


class VerificationRequestSerializer(serializers.Serializer):
    email = serializers.CharField()

    def validate_email(self, value):
        return _clean_email(value)


class VerificationVerifySerializer(serializers.Serializer):
    email = serializers.CharField()
    code = serializers.RegexField(r'^\d{6}$', error_messages={'invalid': 'Verification code must be 6 digits'})

    def validate_email(self, value):
        return _clean_email(value)


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'changes', 'ip_address', 'created_at']
