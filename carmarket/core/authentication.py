"""JWT authentication that refuses blocked and deactivated accounts"""
import logging

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)


def blocked_message(user):
    message = 'Your account has been blocked'
    if user.block_reason:
        message += f': {user.block_reason}'
    return message + '. Please contact support.'


class MarketplaceJWTAuthentication(JWTAuthentication):
    """
    Bearer token authentication checked against the live user row, so a
    block applied from the dashboard takes effect on the next request.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if user.is_blocked:
            logger.info(f"Rejected token for blocked user {user.id}")
            raise AuthenticationFailed(blocked_message(user), code='user_blocked')
        return user
