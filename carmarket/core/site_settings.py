"""Typed access to dashboard-managed Setting rows"""
from .models import Setting

SOCIAL_INSTAGRAM_KEY = 'social.instagram_enabled'
SOCIAL_FACEBOOK_KEY = 'social.facebook_enabled'

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def get_setting(key, default=None):
    row = Setting.objects.filter(key=key).only('value').first()
    return row.value if row else default


def get_bool_setting(key, default=False):
    value = get_setting(key)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def enabled_share_platforms():
    """Social platforms switched on in the dashboard (both on by default)"""
    platforms = []
    if get_bool_setting(SOCIAL_INSTAGRAM_KEY, True):
        platforms.append('instagram')
    if get_bool_setting(SOCIAL_FACEBOOK_KEY, True):
        platforms.append('facebook')
    return platforms
