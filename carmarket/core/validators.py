"""
Account input validation: password rules and strength, email address
shape, and phone number normalization.
"""
import re

from django.core.exceptions import ValidationError

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 16
PASSWORD_SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'

EMAIL_MAX_LENGTH = 254
EMAIL_LOCAL_MAX_LENGTH = 64
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

PHONE_MIN_NATIONAL_DIGITS = 7
PHONE_MAX_NATIONAL_DIGITS = 12
DEFAULT_DIAL_CODE = '90'
# Countries offered by the phone field; all codes are two digits
DIAL_CODES = ('90', '49', '33', '44', '31', '32', '43', '41', '46', '45', '47', '39', '34')

STRENGTH_LABELS = {
    0: 'Very weak',
    1: 'Very weak',
    2: 'Weak',
    3: 'Weak',
    4: 'Medium',
    5: 'Strong',
    6: 'Very strong',
}


def _has_special(password: str) -> bool:
    return any(ch in PASSWORD_SPECIAL_CHARACTERS for ch in password)


def check_password_rules(password: str):
    """
    Check a password against the marketplace rules.

    Returns:
        (is_valid, error_message) where error_message is the message of the
        first rule that fails, or an empty string.
    """
    password = password or ''
    if len(password) < PASSWORD_MIN_LENGTH:
        return False, f'Password must be at least {PASSWORD_MIN_LENGTH} characters long'
    if len(password) > PASSWORD_MAX_LENGTH:
        return False, f'Password must be at most {PASSWORD_MAX_LENGTH} characters long'
    if not re.search(r'[A-Z]', password):
        return False, 'Password must contain at least one uppercase letter'
    if not re.search(r'[a-z]', password):
        return False, 'Password must contain at least one lowercase letter'
    if not re.search(r'[0-9]', password):
        return False, 'Password must contain at least one number'
    if not _has_special(password):
        return False, f'Password must contain at least one special character ({PASSWORD_SPECIAL_CHARACTERS})'
    return True, ''


def password_strength(password: str):
    """Score a password from 0 to 6 and return (score, label)"""
    password = password or ''
    score = 0
    if len(password) >= 8:
        score += 1
    if len(password) >= 12:
        score += 1
    if re.search(r'[A-Z]', password):
        score += 1
    if re.search(r'[a-z]', password):
        score += 1
    if re.search(r'[0-9]', password):
        score += 1
    if _has_special(password):
        score += 1
    return score, STRENGTH_LABELS[score]


class MarketplacePasswordValidator:
    """AUTH_PASSWORD_VALIDATORS entry enforcing check_password_rules"""

    def validate(self, password, user=None):
        is_valid, message = check_password_rules(password)
        if not is_valid:
            raise ValidationError(message, code='password_rules')

    def get_help_text(self):
        return (
            f'Your password must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters and contain '
            f'an uppercase letter, a lowercase letter, a number and a special character.'
        )


def validate_email_address(email: str) -> str:
    """
    Validate an email address and return it trimmed.

    Raises:
        ValidationError with a user-facing message.
    """
    email = (email or '').strip()
    if not email:
        raise ValidationError('Email address is required')
    if not EMAIL_PATTERN.match(email):
        raise ValidationError('Please enter a valid email address')
    if len(email) > EMAIL_MAX_LENGTH:
        raise ValidationError('Email address is too long')
    if '..' in email:
        raise ValidationError('Email address cannot contain consecutive dots')
    if email.startswith('.') or email.endswith('.'):
        raise ValidationError('Email address cannot start or end with a dot')
    local_part = email.split('@')[0]
    if len(local_part) > EMAIL_LOCAL_MAX_LENGTH:
        raise ValidationError('The part before @ is too long')
    return email


def split_phone(value: str):
    """
    Split a phone number into ``(dial_code, national_digits)``.

    A leading ``+`` or ``00`` must be followed by a supported dial code.
    Without one the number is national: a single trunk ``0`` is dropped
    and the Turkish code is assumed.
    """
    value = (value or '').strip()
    digits = re.sub(r'\D', '', value)
    if value.startswith('+'):
        international = digits
    elif digits.startswith('00'):
        international = digits[2:]
    else:
        if digits.startswith('0'):
            digits = digits[1:]
        return DEFAULT_DIAL_CODE, digits

    for dial_code in DIAL_CODES:
        if international.startswith(dial_code):
            return dial_code, international[len(dial_code):]
    raise ValidationError('Unsupported country code')


def normalize_phone(value: str) -> str:
    """
    Normalize a phone number to ``+<dial code><national digits>``.

    Accepts spaces, dashes and brackets. Raises ValidationError when the
    country code is not supported, or the national part is shorter than
    7 or longer than 12 digits.
    """
    dial_code, national = split_phone(value)
    if not PHONE_MIN_NATIONAL_DIGITS <= len(national) <= PHONE_MAX_NATIONAL_DIGITS:
        raise ValidationError('Please enter a valid phone number')
    return f'+{dial_code}{national}'


def whatsapp_link(phone: str):
    """Build a wa.me link, defaulting to the Turkish country code"""
    digits = re.sub(r'\D', '', phone or '')
    if not digits:
        return None
    if not digits.startswith('90'):
        digits = f'90{digits}'
    return f'https://wa.me/{digits}'
