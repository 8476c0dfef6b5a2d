"""
Third-party email API client used to deliver verification codes.

The provider is called over HTTPS with a JSON body; URL, key and sender
address come from settings (``EMAIL_API_URL``, ``EMAIL_API_KEY``,
``EMAIL_FROM_ADDRESS``).
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the email provider cannot accept a message"""


def is_configured() -> bool:
    return bool(getattr(settings, 'EMAIL_API_URL', ''))


def send_email(to_address: str, subject: str, text: str, html: str = None) -> dict:
    """
    Send one email through the provider API.

    Returns:
        The provider's JSON response (or an empty dict when it has no body).

    Raises:
        EmailDeliveryError: provider not configured, unreachable, or it
        answered with a non-2xx status.
    """
    api_url = getattr(settings, 'EMAIL_API_URL', '')
    if not api_url:
        raise EmailDeliveryError('Email service is not configured')

    headers = {'Content-Type': 'application/json'}
    api_key = getattr(settings, 'EMAIL_API_KEY', '')
    if api_key:
        headers['Authorization'] = f'Bearer {api_key}'

    payload = {
        'from': getattr(settings, 'EMAIL_FROM_ADDRESS', ''),
        'to': [to_address],
        'subject': subject,
        'text': text,
    }
    if html:
        payload['html'] = html

    try:
        response = requests.post(
            api_url,
            json=payload,
            headers=headers,
            timeout=getattr(settings, 'EMAIL_API_TIMEOUT', 10),
        )
        response.raise_for_status()
    except requests.exceptions.Timeout:
        logger.warning(f"Email API timed out sending to {to_address}")
        raise EmailDeliveryError('Email service timed out')
    except requests.exceptions.RequestException as e:
        logger.warning(f"Email API request failed for {to_address}: {str(e)}")
        raise EmailDeliveryError('Email could not be sent')

    logger.info(f"Email '{subject}' sent to {to_address}")
    try:
        return response.json()
    except ValueError:
        return {}


def send_verification_code(to_address: str, code: str, ttl_minutes: int) -> dict:
    """Email a 6-digit verification code"""
    subject = 'Your CarMarket verification code'
    text = (
        f'Your verification code is {code}.\n'
        f'The code is valid for {ttl_minutes} minutes. '
        f'If you did not request it you can ignore this email.'
    )
    html = (
        f'<p>Your verification code is <strong>{code}</strong>.</p>'
        f'<p>The code is valid for {ttl_minutes} minutes. '
        f'If you did not request it you can ignore this email.</p>'
    )
    return send_email(to_address, subject, text, html)
