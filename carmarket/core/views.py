import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .authentication import blocked_message
from .email_service import EmailDeliveryError
from .models import Setting, AuditLog
from .serializers import (
    UserSerializer, UserCreateSerializer, ProfileSerializer, CorporateStatusSerializer,
    PasswordChangeSerializer, VerificationRequestSerializer, VerificationVerifySerializer,
    SettingSerializer, AuditLogSerializer
)
from .utils import create_audit_log
from .validators import check_password_rules, password_strength
from .verification import EmailAlreadyRegistered, VerificationCooldown, request_code, verify_code

User = get_user_model()
logger = logging.getLogger('carmarket.core')


def tokens_for_user(user):
    token = CustomTokenObtainPairSerializer.get_token(user)
    return {
        'access': str(token.access_token),
        'refresh': str(token),
    }


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        email = attrs.get(self.username_field)
        if email:
            attrs[self.username_field] = email.strip().lower()
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        if self.user.is_blocked:
            logger.info(f"Blocked user {self.user.id} attempted to log in")
            raise AuthenticationFailed(blocked_message(self.user), code='user_blocked')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['full_name'] = user.full_name
        token['is_corporate'] = user.is_corporate
        token['is_staff'] = user.is_staff
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """
    Register an individual or corporate account.

    Corporate accounts are signed in straight away (tokens returned) and
    start their trial; individual accounts are asked to sign in.
    """
    serializer = UserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Registration rejected: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        with transaction.atomic():
            user = serializer.save()
    except Exception as e:
        logger.error(f"Error registering user: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request,
        user=user,
        action='register',
        model_name='User',
        object_id=user.id,
        object_name=user.email,
        changes={'is_corporate': user.is_corporate}
    )
    logger.info(f"User {user.id} registered (corporate={user.is_corporate})")

    payload = {'user': UserSerializer(user).data}
    if user.is_corporate:
        payload.update(tokens_for_user(user))
        payload['message'] = 'Corporate account created. Your free trial has started.'
    else:
        payload['message'] = 'Registration successful. Please sign in.'
    return Response(payload, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user's profile: view, update name/phone, or delete the account"""
    user = request.user

    if request.method == 'GET':
        return Response(ProfileSerializer(user).data)

    if request.method == 'PATCH':
        serializer = ProfileSerializer(user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            logger.info(f"User {user.id} updated profile fields {sorted(serializer.validated_data)}")
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    user_id, email = user.id, user.email
    try:
        create_audit_log(
            request=request,
            action='account_delete',
            model_name='User',
            object_id=user_id,
            object_name=email
        )
        from carmarket.listings.services import delete_user_data
        delete_user_data(user)
    except Exception as e:
        logger.error(f"Error deleting account {user_id}: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"User {user_id} deleted their account")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    """Change own password (current, new, confirmation)"""
    serializer = PasswordChangeSerializer(data=request.data, context={'user': request.user})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    request.user.set_password(serializer.validated_data['new_password'])
    request.user.save(update_fields=['password', 'updated_at'])
    create_audit_log(
        request=request,
        action='password_change',
        model_name='User',
        object_id=request.user.id,
        object_name=request.user.email
    )
    logger.info(f"User {request.user.id} changed password")
    return Response({'message': 'Password updated successfully'})


@api_view(['POST'])
@permission_classes([AllowAny])
def password_check(request):
    """Validate a candidate password and report its strength"""
    password = request.data.get('password', '') or ''
    is_valid, error = check_password_rules(password)
    score, label = password_strength(password)
    return Response({
        'is_valid': is_valid,
        'error': error or None,
        'score': score,
        'strength': label,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def verification_request(request):
    """Email a 6-digit code to confirm a (new) email address"""
    serializer = VerificationRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    email = serializer.validated_data['email']
    if User.objects.filter(email__iexact=email).exclude(pk=request.user.pk).exists():
        return Response({'error': 'This email address is already registered'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        request_code(request.user, email)
    except VerificationCooldown as e:
        return Response(
            {'error': str(e), 'retry_after': e.retry_after},
            status=status.HTTP_429_TOO_MANY_REQUESTS
        )
    except EmailDeliveryError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    return Response({'message': 'Verification code sent to your email address'})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def verification_verify(request):
    """Confirm a code and apply the verified email address"""
    serializer = VerificationVerifySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        verified = verify_code(request.user, data['email'], data['code'])
    except EmailAlreadyRegistered as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if not verified:
        return Response({'error': 'Invalid verification code'}, status=status.HTTP_400_BAD_REQUEST)

    request.user.refresh_from_db()
    return Response(ProfileSerializer(request.user).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def corporate_status(request):
    """Corporate flags, trial window and subscription state of the current user"""
    return Response(CorporateStatusSerializer(request.user).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def toggle_auto_share(request):
    """Enable or disable automatic social sharing of new listings"""
    user = request.user
    if not user.is_corporate:
        return Response({'error': 'Auto share is only available for corporate accounts'}, status=status.HTTP_403_FORBIDDEN)

    enabled = request.data.get('enabled')
    if not isinstance(enabled, bool):
        return Response({'error': "'enabled' must be true or false"}, status=status.HTTP_400_BAD_REQUEST)

    user.auto_share = enabled
    user.save(update_fields=['auto_share', 'updated_at'])
    logger.info(f"User {user.id} set auto_share={enabled}")
    return Response(CorporateStatusSerializer(user).data)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings = Setting.objects.all().order_by('key')
        serializer = SettingSerializer(settings, many=True)
        return Response(serializer.data)
    else:
        serializer = SettingSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        serializer = SettingSerializer(setting)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    user_filter = request.query_params.get('user', None)
    if user_filter:
        queryset = queryset.filter(user_id=user_filter)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__lte=date_to)

    queryset = queryset.order_by('-created_at')
    serializer = AuditLogSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)
    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)
