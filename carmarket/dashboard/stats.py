"""
Dashboard statistics
"""
from datetime import datetime, time, timedelta

from django.contrib.auth import get_user_model
from django.db.models import Count
from django.db.models.functions import TruncDate
from django.utils import timezone

from carmarket.listings.models import CarListing
from carmarket.messaging.models import Message

User = get_user_model()

ACTIVE_WINDOW_DAYS = 7
DAILY_LISTINGS_DAYS = 30


def active_user_count(since):
    """Distinct users who created a listing or sent a message since ``since``"""
    listing_creators = set(
        CarListing.objects.filter(created_at__gte=since).values_list('user_id', flat=True)
    )
    message_senders = set(
        Message.objects.filter(created_at__gte=since).values_list('sender_id', flat=True)
    )
    return len(listing_creators | message_senders)


def daily_listing_counts(days=DAILY_LISTINGS_DAYS, now=None):
    """
    New listings per local day for the last ``days`` days, oldest first,
    with zero-filled gaps.
    """
    now = now or timezone.now()
    today = timezone.localdate(now)
    first_day = today - timedelta(days=days - 1)
    start = timezone.make_aware(datetime.combine(first_day, time.min))

    rows = (
        CarListing.objects.filter(created_at__gte=start)
        .annotate(day=TruncDate('created_at'))
        .values('day')
        .annotate(count=Count('id'))
    )
    counts = {row['day']: row['count'] for row in rows}
    return [
        {'date': (first_day + timedelta(days=offset)).isoformat(),
         'count': counts.get(first_day + timedelta(days=offset), 0)}
        for offset in range(days)
    ]


def collect_dashboard_stats(now=None):
    now = now or timezone.now()
    members = User.objects.filter(is_staff=False)
    corporate_users = members.filter(is_corporate=True).count()
    individual_users = members.filter(is_corporate=False).count()

    by_status = {value: 0 for value, _ in CarListing.STATUS_CHOICES}
    for row in CarListing.objects.values('status').annotate(count=Count('id')):
        by_status[row['status']] = row['count']

    return {
        'total_users': corporate_users + individual_users,
        'individual_users': individual_users,
        'corporate_users': corporate_users,
        'blocked_users': members.filter(is_blocked=True).count(),
        'total_listings': sum(by_status.values()),
        'listings_by_status': by_status,
        'total_messages': Message.objects.count(),
        'active_users': active_user_count(now - timedelta(days=ACTIVE_WINDOW_DAYS)),
        'daily_listings': daily_listing_counts(now=now),
        'generated_at': now.isoformat(),
    }
