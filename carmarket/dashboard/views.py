import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.db.models import Q, Count, Prefetch
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework.response import Response

from carmarket.core.cache_utils import get_cached_dashboard_stats, cache_dashboard_stats
from carmarket.core.serializers import UserAdminSerializer, UserSerializer, PasswordChangeSerializer
from carmarket.core.utils import create_audit_log
from carmarket.core.views import CustomTokenObtainPairSerializer
from carmarket.listings.models import CarListing, CarImage
from carmarket.listings.services import delete_listing, delete_user_data
from carmarket.listings.views import listing_queryset
from carmarket.messaging.models import Message
from carmarket.messaging.serializers import MessageSerializer
from .serializers import (
    DashboardLoginSerializer, BlockUserSerializer, ChannelsSerializer, ListingRemovalSerializer,
    ModerationSerializer, CorporateUserSerializer, AdminListingSerializer
)
from .stats import collect_dashboard_stats

User = get_user_model()
logger = logging.getLogger('carmarket.dashboard')


def members():
    """Non-staff accounts with their listing count"""
    return User.objects.filter(is_staff=False).annotate(listing_count=Count('listings'))


def annotated_user(pk):
    return User.objects.annotate(listing_count=Count('listings')).get(pk=pk)


@api_view(['POST'])
@permission_classes([AllowAny])
def dashboard_login(request):
    """Admin sign-in by username or email; issues a session-length token pair"""
    serializer = DashboardLoginSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    identifier = serializer.validated_data['username'].strip()
    account = User.objects.filter(Q(username__iexact=identifier) | Q(email__iexact=identifier)).first()
    user = None
    if account:
        user = authenticate(request, username=account.email, password=serializer.validated_data['password'])

    if user is None or not user.is_staff:
        logger.warning(f"Failed dashboard login for '{identifier}'")
        return Response({'error': 'Invalid admin credentials'}, status=status.HTTP_401_UNAUTHORIZED)
    if user.is_blocked:
        return Response({'error': 'This admin account is blocked'}, status=status.HTTP_403_FORBIDDEN)

    session = timedelta(hours=getattr(settings, 'DASHBOARD_SESSION_HOURS', 24))
    refresh = CustomTokenObtainPairSerializer.get_token(user)
    refresh.set_exp(lifetime=session)
    access = refresh.access_token
    access.set_exp(lifetime=session)

    create_audit_log(
        request=request,
        user=user,
        action='admin_login',
        model_name='User',
        object_id=user.id,
        object_name=user.email
    )
    logger.info(f"Admin {user.id} signed in to the dashboard")
    return Response({
        'access': str(access),
        'refresh': str(refresh),
        'expires_at': (timezone.now() + session).isoformat(),
        'user': UserSerializer(user).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_change_password(request):
    """Change the signed-in admin's password"""
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
        object_name=request.user.email,
        changes={'dashboard': True}
    )
    logger.info(f"Admin {request.user.id} changed dashboard password")
    return Response({'message': 'Password updated successfully'})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_stats(request):
    """Totals, activity and daily listing counts (cached)"""
    cached_data, cache_key = get_cached_dashboard_stats()
    if cached_data is not None:
        return Response(cached_data)
    data = collect_dashboard_stats()
    cache_dashboard_stats(cache_key, data)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_users(request):
    """Individual accounts; ``search`` matches name, email or phone"""
    queryset = members().filter(is_corporate=False)
    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(full_name__icontains=search) |
            Q(email__icontains=search) |
            Q(phone__icontains=search)
        )
    return Response(UserAdminSerializer(queryset.order_by('-created_at'), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_corporate_users(request):
    """Corporate accounts with their listings; ``search`` matches name, email, company or tax number"""
    queryset = members().filter(is_corporate=True).prefetch_related(
        Prefetch('listings', queryset=CarListing.objects.order_by('-created_at'))
    )
    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(full_name__icontains=search) |
            Q(email__icontains=search) |
            Q(company_name__icontains=search) |
            Q(tax_number__icontains=search)
        )
    return Response(CorporateUserSerializer(queryset.order_by('-created_at'), many=True).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_user_delete(request, pk):
    """Delete an account and all of its listings, images and messages"""
    user = get_object_or_404(User, pk=pk)
    if user.id == request.user.id:
        return Response({'error': 'You cannot delete your own account from the dashboard'}, status=status.HTTP_400_BAD_REQUEST)
    if user.is_superuser:
        return Response({'error': 'Superuser accounts cannot be deleted'}, status=status.HTTP_403_FORBIDDEN)

    user_id, email = user.id, user.email
    try:
        delete_user_data(user)
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request,
        action='user_delete',
        model_name='User',
        object_id=user_id,
        object_name=email
    )
    logger.info(f"Admin {request.user.id} deleted user {user_id}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_user_block(request, pk):
    """Block an account with a reason"""
    user = get_object_or_404(User, pk=pk)
    if user.id == request.user.id or user.is_staff:
        return Response({'error': 'Admin accounts cannot be blocked'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = BlockUserSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    reason = serializer.validated_data['reason']
    user.block(reason, blocked_by=request.user)
    create_audit_log(
        request=request,
        action='user_block',
        model_name='User',
        object_id=user.id,
        object_name=user.email,
        changes={'reason': reason}
    )
    logger.info(f"Admin {request.user.id} blocked user {user.id}")
    return Response(UserAdminSerializer(annotated_user(user.pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_user_unblock(request, pk):
    """Lift a block"""
    user = get_object_or_404(User, pk=pk)
    if not user.is_blocked:
        return Response({'error': 'User is not blocked'}, status=status.HTTP_400_BAD_REQUEST)

    previous_reason = user.block_reason
    user.unblock()
    create_audit_log(
        request=request,
        action='user_unblock',
        model_name='User',
        object_id=user.id,
        object_name=user.email,
        changes={'previous_reason': previous_reason}
    )
    logger.info(f"Admin {request.user.id} unblocked user {user.id}")
    return Response(UserAdminSerializer(annotated_user(user.pk)).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_user_channels(request, pk):
    """Switch a user's WhatsApp / Instagram contact channels"""
    user = get_object_or_404(User, pk=pk)
    serializer = ChannelsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    changes = dict(serializer.validated_data)
    for field, value in changes.items():
        setattr(user, field, value)
    user.save(update_fields=list(changes) + ['updated_at'])
    create_audit_log(
        request=request,
        action='channels_update',
        model_name='User',
        object_id=user.id,
        object_name=user.email,
        changes=changes
    )
    return Response(UserAdminSerializer(annotated_user(user.pk)).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_listings(request):
    """All listings with owner details; ``search`` and ``status`` filters"""
    queryset = listing_queryset()
    listing_status = request.query_params.get('status', '').strip()
    if listing_status:
        queryset = queryset.filter(status=listing_status)
    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(brand__icontains=search) |
            Q(model__icontains=search) |
            Q(user__full_name__icontains=search) |
            Q(user__company_name__icontains=search)
        )
    return Response(AdminListingSerializer(queryset.order_by('-created_at'), many=True).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_listing_delete(request, pk):
    """Remove a fake or abusive listing; a reason is required"""
    listing = get_object_or_404(CarListing, pk=pk)
    serializer = ListingRemovalSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    listing_id, title, owner_id = listing.id, listing.title, listing.user_id
    try:
        delete_listing(listing)
    except Exception as e:
        logger.error(f"Error removing listing {listing_id}: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request,
        action='listing_delete',
        model_name='CarListing',
        object_id=listing_id,
        object_name=title,
        changes={'reason': serializer.validated_data['reason'], 'owner_id': owner_id, 'moderation': True}
    )
    logger.info(f"Admin {request.user.id} removed listing {listing_id}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_listing_moderate(request, pk):
    """Approve or reject a listing"""
    listing = get_object_or_404(listing_queryset(), pk=pk)
    serializer = ModerationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_status = serializer.validated_data['status']
    previous_status = listing.status
    listing.status = new_status
    listing.save(update_fields=['status', 'updated_at'])

    create_audit_log(
        request=request,
        action='listing_approve' if new_status == CarListing.STATUS_APPROVED else 'listing_reject',
        model_name='CarListing',
        object_id=listing.id,
        object_name=listing.title,
        changes={
            'from': previous_status,
            'to': new_status,
            'reason': serializer.validated_data.get('reason', ''),
        }
    )
    logger.info(f"Admin {request.user.id} set listing {listing.id} status {previous_status} -> {new_status}")
    return Response(AdminListingSerializer(listing).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def dashboard_messages(request):
    """All messages; ``search`` matches content, sender or receiver name"""
    queryset = Message.objects.select_related('sender', 'receiver', 'listing').prefetch_related(
        Prefetch('listing__images', queryset=CarImage.objects.order_by('position', 'id'))
    )
    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(content__icontains=search) |
            Q(sender__full_name__icontains=search) |
            Q(receiver__full_name__icontains=search)
        )
    return Response(MessageSerializer(queryset.order_by('-created_at'), many=True).data)
