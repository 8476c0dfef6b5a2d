import logging

from django.contrib.auth import get_user_model
from django.db.models import Q, Prefetch
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_datetime
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from carmarket.core.serializers import UserSummarySerializer
from carmarket.listings.models import CarImage
from .conversations import UnreadTracker, group_conversations, conversation_history
from .models import Message
from .serializers import MessageSerializer, MessageCreateSerializer, ConversationSerializer

User = get_user_model()
logger = logging.getLogger('carmarket.messaging')


def messages_for(user):
    """All messages the user sent or received, newest first"""
    return Message.objects.filter(
        Q(sender=user) | Q(receiver=user)
    ).select_related('sender', 'receiver', 'listing').prefetch_related(
        Prefetch('listing__images', queryset=CarImage.objects.order_by('position', 'id'))
    ).order_by('-created_at', '-id')


def parse_counterparty(value):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def message_list_create(request):
    """
    GET: the user's messages, newest first. ``since`` (ISO timestamp)
    returns only newer messages, for polling.
    POST: send a message about a listing.
    """
    if request.method == 'GET':
        queryset = messages_for(request.user)
        since = request.query_params.get('since')
        if since:
            since_dt = parse_datetime(since)
            if since_dt is None:
                return Response({'error': "'since' must be an ISO 8601 timestamp"}, status=status.HTTP_400_BAD_REQUEST)
            queryset = queryset.filter(created_at__gt=since_dt)
        return Response(MessageSerializer(queryset, many=True).data)

    serializer = MessageCreateSerializer(data=request.data, context={'sender': request.user})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        message = serializer.save()
    except Exception as e:
        logger.error(f"Error sending message: {str(e)}", exc_info=True)
        return Response({'error': 'Message could not be sent'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Message {message.id} sent from {message.sender_id} to {message.receiver_id} about listing {message.listing_id}")
    message = messages_for(request.user).get(pk=message.pk)
    return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def message_detail(request, pk):
    """Delete a message; only its sender may do so"""
    message = get_object_or_404(Message, pk=pk, sender=request.user)
    message.delete()
    logger.info(f"Message {pk} deleted by sender {request.user.id}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def conversation_list(request):
    """
    One entry per counterparty with listing, latest message and unread count.
    ``search`` filters by counterparty name, listing brand/model or message
    text; ``open`` names the counterparty whose conversation is open.
    """
    open_id = parse_counterparty(request.query_params.get('open'))
    search = request.query_params.get('search', '').strip()
    conversations, tracker = group_conversations(
        messages_for(request.user), request.user.id, open_counterparty_id=open_id, search=search
    )
    data = ConversationSerializer(conversations, many=True, context={'user_id': request.user.id}).data
    return Response({
        'conversations': data,
        'unread_total': tracker.total,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def conversation_detail(request, user_id):
    """Full history with one counterparty, oldest first; marks incoming messages read"""
    counterparty = get_object_or_404(User, pk=user_id)
    history = conversation_history(messages_for(request.user), request.user.id, counterparty.id)

    unread_ids = [m.id for m in history if m.receiver_id == request.user.id and not m.read]
    if unread_ids:
        Message.objects.filter(id__in=unread_ids).update(read=True)
        for message in history:
            if message.id in unread_ids:
                message.read = True
        logger.debug(f"Marked {len(unread_ids)} messages read for user {request.user.id}")

    return Response({
        'counterparty': UserSummarySerializer(counterparty).data,
        'messages': MessageSerializer(history, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_count(request):
    """Unread incoming messages, total and per sender"""
    tracker = UnreadTracker(request.user.id, parse_counterparty(request.query_params.get('open')))
    for message in Message.objects.filter(receiver=request.user, read=False).only('id', 'sender_id', 'receiver_id', 'read'):
        tracker.observe(message)
    return Response({
        'total': tracker.total,
        'by_sender': {str(sender_id): count for sender_id, count in tracker.counts.items()},
    })
