"""Audit trail helpers shared by the account, listing and dashboard views"""
import logging
from datetime import date, datetime
from decimal import Decimal

from .models import AuditLog

logger = logging.getLogger(__name__)

JSON_TYPES = (str, int, float, bool, type(None))


def get_client_ip(request):
    """First address of X-Forwarded-For, else REMOTE_ADDR"""
    meta = getattr(request, 'META', None)
    if not meta:
        return None
    forwarded = meta.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return meta.get('REMOTE_ADDR') or None


def audit_actor(request=None, user=None):
    """The authenticated user an entry is attributed to, or None"""
    actor = user or getattr(request, 'user', None)
    if actor is None or not actor.is_authenticated:
        return None
    return actor


def json_safe(value):
    """Convert a change value into something the JSON column accepts"""
    if isinstance(value, JSON_TYPES):
        return value
    if isinstance(value, (list, tuple, set)):
        return [json_safe(item) for item in value]
    if isinstance(value, dict):
        return {str(key): json_safe(item) for key, item in value.items()}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, 'pk'):
        return value.pk
    return str(value)


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None):
    """
    Record who did what to which object.

    ``user`` overrides the request user (used at registration and admin
    login, before the request is authenticated). Returns the AuditLog, or
    None when the entry is incomplete or could not be written; a failed
    audit write never breaks the calling operation.
    """
    if not action or not model_name or object_id in (None, ''):
        logger.warning(f"Audit log skipped: action={action}, model_name={model_name}, object_id={object_id}")
        return None

    try:
        return AuditLog.objects.create(
            user=audit_actor(request, user),
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=(object_name or '')[:255] or None,
            changes=json_safe(changes or {}),
            ip_address=get_client_ip(request),
        )
    except Exception as e:
        logger.error(f"Failed to create audit log for {model_name} {object_id}: {str(e)}")
        return None
