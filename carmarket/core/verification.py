"""
Email verification codes: issue a 6-digit code with a resend cooldown,
deliver it through the email API, and confirm it.
"""
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .email_service import send_verification_code
from .models import User, VerificationCode

logger = logging.getLogger(__name__)


class VerificationCooldown(Exception):
    """A code was sent to this address too recently"""

    def __init__(self, retry_after):
        self.retry_after = retry_after
        super().__init__(f'Please wait {retry_after} seconds before requesting a new code')


class EmailAlreadyRegistered(Exception):
    """The address being verified belongs to another account"""


def generate_code() -> str:
    return f'{secrets.randbelow(900000) + 100000}'


def seconds_until_resend(email: str) -> int:
    """Seconds left before another code may be sent to ``email``"""
    cooldown = getattr(settings, 'VERIFICATION_RESEND_SECONDS', 60)
    last = VerificationCode.objects.filter(email__iexact=email).order_by('-created_at').first()
    if not last:
        return 0
    elapsed = (timezone.now() - last.created_at).total_seconds()
    return max(0, int(cooldown - elapsed + 0.999))


def request_code(user, email: str) -> VerificationCode:
    """
    Create and email a verification code for ``email``.

    Raises:
        VerificationCooldown: a code was issued within the cooldown window.
        EmailDeliveryError: the email API refused or was unreachable. No
            code is stored in that case.
    """
    retry_after = seconds_until_resend(email)
    if retry_after > 0:
        raise VerificationCooldown(retry_after)

    ttl_minutes = getattr(settings, 'VERIFICATION_CODE_TTL_MINUTES', 10)
    code = generate_code()
    send_verification_code(email, code, ttl_minutes)

    verification = VerificationCode.objects.create(
        user=user,
        email=email,
        code=code,
        expires_at=timezone.now() + timedelta(minutes=ttl_minutes),
    )
    logger.info(f"Verification code issued to user {user.id} for {email}")
    return verification


@transaction.atomic
def verify_code(user, email: str, code: str) -> bool:
    """
    Consume a matching, unexpired code and apply the verified address
    to the user, keeping the username in step with it. Returns False
    when no such code exists.

    Raises:
        EmailAlreadyRegistered: another account took the address after
            the code was issued. The code stays unconsumed.
    """
    verification = (
        VerificationCode.objects.select_for_update()
        .filter(user=user, email__iexact=email, code=(code or '').strip(), consumed=False)
        .order_by('-created_at')
        .first()
    )
    if not verification or verification.is_expired():
        logger.info(f"Verification failed for user {user.id} ({email})")
        return False

    if User.objects.filter(email__iexact=verification.email).exclude(pk=user.pk).exists():
        logger.warning(f"User {user.id} tried to verify {email}, which another account now owns")
        raise EmailAlreadyRegistered('This email address is already registered')

    verification.consumed = True
    verification.save(update_fields=['consumed'])

    user.email = verification.email
    user.username = User.objects.available_username(verification.email, exclude_pk=user.pk)
    user.email_verified = True
    user.save(update_fields=['email', 'username', 'email_verified', 'updated_at'])
    logger.info(f"Email {email} verified for user {user.id}")
    return True
