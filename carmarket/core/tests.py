"""
Test suite for accounts: validation rules, registration, login, profile,
email verification, corporate trial and admin settings
"""
from datetime import timedelta
from io import StringIO
from unittest import mock

import requests
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from carmarket.core.models import VerificationCode, Setting, AuditLog
from carmarket.core.test_utils import TestDataFactory, AuthenticatedAPIClient, MarketplaceTestCase, DEFAULT_PASSWORD
from carmarket.core.validators import (
    check_password_rules, password_strength, validate_email_address, normalize_phone, whatsapp_link
)
from carmarket.listings.models import CarListing

User = get_user_model()

EMAIL_SETTINGS = {
    'EMAIL_API_URL': 'https://mail.example.com/send',
    'EMAIL_API_KEY': 'test-key',
}


class PasswordRuleTests(TestCase):
    """Test password rules and strength scoring"""

    def test_valid_password(self):
        self.assertEqual(check_password_rules('Abcdefg1!'), (True, ''))

    def test_too_short(self):
        is_valid, error = check_password_rules('Ab1!')
        self.assertFalse(is_valid)
        self.assertIn('at least 8', error)

    def test_too_long(self):
        is_valid, error = check_password_rules('Abcdefgh1!abcdefg')
        self.assertFalse(is_valid)
        self.assertIn('at most 16', error)

    def test_missing_character_classes_report_first_failure(self):
        self.assertIn('uppercase', check_password_rules('abcdefg1!')[1])
        self.assertIn('lowercase', check_password_rules('ABCDEFG1!')[1])
        self.assertIn('number', check_password_rules('Abcdefgh!')[1])
        self.assertIn('special character', check_password_rules('Abcdefgh1')[1])

    def test_strength_labels(self):
        self.assertEqual(password_strength(''), (0, 'Very weak'))
        self.assertEqual(password_strength('abcdefgh'), (2, 'Weak'))
        self.assertEqual(password_strength('Abcdefg1'), (4, 'Medium'))
        self.assertEqual(password_strength('Abcdefgh1!'), (5, 'Strong'))
        self.assertEqual(password_strength('Abcdefgh1!xy'), (6, 'Very strong'))


class ContactValidationTests(TestCase):
    """Test email and phone helpers"""

    def test_email_is_trimmed(self):
        self.assertEqual(validate_email_address('  driver@example.com '), 'driver@example.com')

    def test_invalid_emails(self):
        for email in ['', 'not-an-email', 'a..b@example.com', '.ab@example.com', 'ab@example.com.',
                      f'{"a" * 65}@example.com']:
            with self.subTest(email=email):
                with self.assertRaises(ValidationError):
                    validate_email_address(email)

    def test_normalize_phone(self):
        self.assertEqual(normalize_phone('+90 (555) 123-45-67'), '+905551234567')
        self.assertEqual(normalize_phone('0049 151 2345 6789'), '+4915123456789')
        self.assertEqual(normalize_phone('0532 111 22 33'), '+905321112233')
        with self.assertRaises(ValidationError):
            normalize_phone('12345')

    def test_national_part_limited_to_twelve_digits(self):
        self.assertEqual(normalize_phone('+90 123456789012'), '+90123456789012')
        with self.assertRaises(ValidationError):
            normalize_phone('+90 1234567890123')

    def test_unsupported_country_code(self):
        with self.assertRaises(ValidationError):
            normalize_phone('+1 212 555 0100')

    def test_whatsapp_link_adds_country_code(self):
        self.assertEqual(whatsapp_link('+905551234567'), 'https://wa.me/905551234567')
        self.assertEqual(whatsapp_link('555 123 45 67'), 'https://wa.me/905551234567')
        self.assertIsNone(whatsapp_link(''))


class UserModelTests(TestCase):
    """Test User model methods"""

    def test_create_user_uses_email_as_username(self):
        user = TestDataFactory.create_user(email='seller@test.com')
        self.assertEqual(user.username, 'seller@test.com')
        self.assertTrue(user.check_password(DEFAULT_PASSWORD))

    def test_create_user_with_username_in_use(self):
        TestDataFactory.create_user(email='first@test.com', username='shared@test.com')
        user = TestDataFactory.create_user(email='shared@test.com')
        self.assertNotEqual(user.username, 'shared@test.com')
        self.assertTrue(user.username.startswith('shared@test.com+'))
        self.assertLessEqual(len(user.username), 150)

    def test_start_corporate_trial(self):
        user = TestDataFactory.create_user()
        user.start_corporate_trial('Acme Motors', '1234567890')
        user.refresh_from_db()
        self.assertTrue(user.is_corporate)
        self.assertEqual(user.subscription_status, User.SUBSCRIPTION_TRIAL)
        self.assertEqual((user.trial_end_date - user.trial_start_date).days, 30)
        self.assertTrue(user.is_trial_active())

    def test_trial_inactive_after_end(self):
        user = TestDataFactory.create_corporate_user()
        user.trial_end_date = timezone.now() - timedelta(minutes=1)
        user.save()
        self.assertFalse(user.is_trial_active())

    def test_block_and_unblock(self):
        admin = TestDataFactory.create_admin()
        user = TestDataFactory.create_user()
        user.block('Spam listings', blocked_by=admin)
        user.refresh_from_db()
        self.assertTrue(user.is_blocked)
        self.assertEqual(user.block_reason, 'Spam listings')
        self.assertEqual(user.blocked_by, admin)
        self.assertIsNotNone(user.blocked_at)

        user.unblock()
        user.refresh_from_db()
        self.assertFalse(user.is_blocked)
        self.assertIsNone(user.block_reason)
        self.assertIsNone(user.blocked_by)


class RegistrationTests(TestCase):
    """Test individual and corporate sign-up"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_individual(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'Buyer@Example.com',
            'password': 'Secret#123',
            'full_name': 'Ayse Yilmaz',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn('access', response.data)
        user = User.objects.get(email='buyer@example.com')
        self.assertFalse(user.is_corporate)
        self.assertEqual(user.full_name, 'Ayse Yilmaz')
        self.assertTrue(AuditLog.objects.filter(action='register', object_id=str(user.id)).exists())

    def test_register_duplicate_email(self):
        TestDataFactory.create_user(email='taken@example.com')
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'taken@example.com',
            'password': 'Secret#123',
            'full_name': 'Someone Else',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('already registered', str(response.data['email']))

    def test_register_weak_password(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'weak@example.com',
            'password': 'password',
            'full_name': 'Weak Password',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_register_requires_full_name(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'noname@example.com',
            'password': 'Secret#123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('full_name', response.data)

    def test_register_corporate_starts_trial_and_signs_in(self):
        response = self.client.post('/api/v1/auth/register/', {
            'account_type': 'corporate',
            'email': 'dealer@example.com',
            'password': 'Secret#123',
            'password_confirm': 'Secret#123',
            'full_name': 'Mehmet Demir',
            'phone': '+90 555 123 45 67',
            'company_name': 'Demir Otomotiv',
            'tax_number': '1234567890',
            'city': 'Ankara',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

        user = User.objects.get(email='dealer@example.com')
        self.assertTrue(user.is_corporate)
        self.assertEqual(user.company_name, 'Demir Otomotiv')
        self.assertEqual(user.phone, '+905551234567')
        self.assertEqual(user.city, 'Ankara')
        self.assertEqual(user.subscription_status, User.SUBSCRIPTION_TRIAL)
        self.assertTrue(user.is_trial_active())

    def test_register_corporate_requires_company_fields(self):
        response = self.client.post('/api/v1/auth/register/', {
            'account_type': 'corporate',
            'email': 'dealer2@example.com',
            'password': 'Secret#123',
            'password_confirm': 'Secret#123',
            'full_name': 'Mehmet Demir',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('company_name', response.data)
        self.assertIn('tax_number', response.data)
        self.assertIn('phone', response.data)

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'mismatch@example.com',
            'password': 'Secret#123',
            'password_confirm': 'Secret#124',
            'full_name': 'Mis Match',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password_confirm', response.data)


class LoginTests(TestCase):
    """Test JWT login and blocked-account handling"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(email='driver@test.com')

    def test_login_returns_tokens(self):
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'driver@test.com',
            'password': DEFAULT_PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['email'], 'driver@test.com')

    def test_login_email_is_case_insensitive(self):
        response = self.client.post('/api/v1/auth/login/', {
            'email': '  Driver@Test.com ',
            'password': DEFAULT_PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'driver@test.com',
            'password': 'Wrong#123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_blocked_user_shows_reason(self):
        self.user.block('Fraudulent listings')
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'driver@test.com',
            'password': DEFAULT_PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('blocked', str(response.data['detail']))
        self.assertIn('Fraudulent listings', str(response.data['detail']))

    def test_existing_token_rejected_after_block(self):
        self.client.authenticate_user(self.user)
        self.assertEqual(self.client.get('/api/v1/auth/me/').status_code, status.HTTP_200_OK)
        self.user.block('Abuse')
        self.assertEqual(self.client.get('/api/v1/auth/me/').status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token(self):
        login = self.client.post('/api/v1/auth/login/', {
            'email': 'driver@test.com',
            'password': DEFAULT_PASSWORD,
        }, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)


class ProfileTests(MarketplaceTestCase):
    """Test the current-user profile endpoint"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user(email='me@test.com', full_name='Old Name')
        self.client.authenticate_user(self.user)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_get_profile(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'me@test.com')
        self.assertFalse(response.data['trial_active'])

    def test_update_name_and_phone(self):
        response = self.client.patch('/api/v1/auth/me/', {
            'full_name': 'New Name',
            'phone': '0532 111 22 33',
            'email': 'hijack@test.com',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.full_name, 'New Name')
        self.assertEqual(self.user.phone, '+905321112233')
        self.assertEqual(self.user.email, 'me@test.com')

    def test_update_invalid_phone(self):
        response = self.client.patch('/api/v1/auth/me/', {'phone': '123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_phone_too_long(self):
        response = self.client.patch('/api/v1/auth/me/', {'phone': '+90 1234567890123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data)

    def test_delete_account_removes_listings(self):
        listing = TestDataFactory.create_listing(self.user)
        image = TestDataFactory.create_image(listing)
        storage, name = image.image.storage, image.image.name
        self.assertTrue(storage.exists(name))

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.delete('/api/v1/auth/me/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())
        self.assertFalse(CarListing.objects.filter(pk=listing.pk).exists())
        self.assertFalse(storage.exists(name))


class ChangePasswordTests(TestCase):
    """Test changing the account password"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)

    def test_change_password(self):
        response = self.client.post('/api/v1/auth/change-password/', {
            'current_password': DEFAULT_PASSWORD,
            'new_password': 'Fresh#Pass1',
            'confirm_password': 'Fresh#Pass1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('Fresh#Pass1'))

    def test_wrong_current_password(self):
        response = self.client.post('/api/v1/auth/change-password/', {
            'current_password': 'Nope#1234',
            'new_password': 'Fresh#Pass1',
            'confirm_password': 'Fresh#Pass1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('current_password', response.data)

    def test_confirmation_mismatch(self):
        response = self.client.post('/api/v1/auth/change-password/', {
            'current_password': DEFAULT_PASSWORD,
            'new_password': 'Fresh#Pass1',
            'confirm_password': 'Fresh#Pass2',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('confirm_password', response.data)

    def test_new_password_must_follow_rules(self):
        response = self.client.post('/api/v1/auth/change-password/', {
            'current_password': DEFAULT_PASSWORD,
            'new_password': 'simple',
            'confirm_password': 'simple',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('new_password', response.data)

    def test_password_check_endpoint(self):
        self.client.logout()
        response = self.client.post('/api/v1/auth/password-check/', {'password': 'Abcdefgh1!'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_valid'])
        self.assertEqual(response.data['score'], 5)
        self.assertEqual(response.data['strength'], 'Strong')


@override_settings(**EMAIL_SETTINGS)
class EmailVerificationTests(TestCase):
    """Test verification code issue, cooldown and confirmation"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(email='old@test.com')
        self.client.authenticate_user(self.user)

    @mock.patch('carmarket.core.email_service.requests.post')
    def test_request_sends_code(self, mock_post):
        mock_post.return_value.json.return_value = {'id': 'msg-1'}
        response = self.client.post('/api/v1/auth/verification/request/', {'email': 'new@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        code = VerificationCode.objects.get(user=self.user)
        self.assertEqual(code.email, 'new@test.com')
        self.assertRegex(code.code, r'^\d{6}$')
        mock_post.assert_called_once()
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['to'], ['new@test.com'])
        self.assertIn(code.code, payload['text'])
        self.assertEqual(mock_post.call_args.kwargs['headers']['Authorization'], 'Bearer test-key')

    @mock.patch('carmarket.core.email_service.requests.post')
    def test_resend_cooldown(self, mock_post):
        self.client.post('/api/v1/auth/verification/request/', {'email': 'new@test.com'}, format='json')
        response = self.client.post('/api/v1/auth/verification/request/', {'email': 'new@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertGreater(response.data['retry_after'], 0)
        self.assertEqual(mock_post.call_count, 1)

    def test_invalid_email_rejected(self):
        response = self.client.post('/api/v1/auth/verification/request/', {'email': 'a..b@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_email_of_another_account_rejected(self):
        TestDataFactory.create_user(email='taken@test.com')
        response = self.client.post('/api/v1/auth/verification/request/', {'email': 'taken@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('carmarket.core.email_service.requests.post')
    def test_provider_failure_stores_no_code(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('down')
        response = self.client.post('/api/v1/auth/verification/request/', {'email': 'new@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(VerificationCode.objects.exists())

    @override_settings(EMAIL_API_URL='')
    def test_unconfigured_provider(self):
        response = self.client.post('/api/v1/auth/verification/request/', {'email': 'new@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    def test_verify_code_updates_email(self):
        VerificationCode.objects.create(
            user=self.user, email='new@test.com', code='123456',
            expires_at=timezone.now() + timedelta(minutes=10)
        )
        response = self.client.post('/api/v1/auth/verification/verify/', {
            'email': 'new@test.com', 'code': '123456'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.email, 'new@test.com')
        self.assertTrue(self.user.email_verified)
        self.assertTrue(VerificationCode.objects.get(code='123456').consumed)

    def test_verify_wrong_code(self):
        VerificationCode.objects.create(
            user=self.user, email='new@test.com', code='123456',
            expires_at=timezone.now() + timedelta(minutes=10)
        )
        response = self.client.post('/api/v1/auth/verification/verify/', {
            'email': 'new@test.com', 'code': '654321'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid verification code')

    def test_verify_expired_code(self):
        VerificationCode.objects.create(
            user=self.user, email='new@test.com', code='123456',
            expires_at=timezone.now() - timedelta(seconds=1)
        )
        response = self.client.post('/api/v1/auth/verification/verify/', {
            'email': 'new@test.com', 'code': '123456'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.user.refresh_from_db()
        self.assertEqual(self.user.email, 'old@test.com')

    def test_verify_code_updates_username(self):
        VerificationCode.objects.create(
            user=self.user, email='new@test.com', code='123456',
            expires_at=timezone.now() + timedelta(minutes=10)
        )
        self.client.post('/api/v1/auth/verification/verify/', {
            'email': 'new@test.com', 'code': '123456'
        }, format='json')
        self.user.refresh_from_db()
        self.assertEqual(self.user.username, 'new@test.com')

    def test_previous_email_can_register_after_change(self):
        VerificationCode.objects.create(
            user=self.user, email='new@test.com', code='123456',
            expires_at=timezone.now() + timedelta(minutes=10)
        )
        response = self.client.post('/api/v1/auth/verification/verify/', {
            'email': 'new@test.com', 'code': '123456'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.logout()
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'old@test.com',
            'password': 'Secret#123',
            'full_name': 'Second Owner',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(email='old@test.com').username, 'old@test.com')

    def test_verify_email_taken_after_request(self):
        VerificationCode.objects.create(
            user=self.user, email='taken@test.com', code='123456',
            expires_at=timezone.now() + timedelta(minutes=10)
        )
        TestDataFactory.create_user(email='taken@test.com')
        response = self.client.post('/api/v1/auth/verification/verify/', {
            'email': 'taken@test.com', 'code': '123456'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'This email address is already registered')
        self.user.refresh_from_db()
        self.assertEqual(self.user.email, 'old@test.com')
        self.assertFalse(VerificationCode.objects.get(code='123456').consumed)


class CorporateAccountTests(TestCase):
    """Test corporate status and auto share"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_corporate_status(self):
        user = TestDataFactory.create_corporate_user(company_name='Acme Motors', tax_number='9876543210')
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/corporate/status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_corporate'])
        self.assertTrue(response.data['trial_active'])
        self.assertEqual(response.data['subscription_status'], 'trial')
        self.assertEqual(response.data['company_name'], 'Acme Motors')

    def test_toggle_auto_share(self):
        user = TestDataFactory.create_corporate_user()
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/corporate/auto-share/', {'enabled': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.auto_share)

    def test_toggle_auto_share_requires_boolean(self):
        user = TestDataFactory.create_corporate_user()
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/corporate/auto-share/', {'enabled': 'yes'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_individual_cannot_toggle_auto_share(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/corporate/auto-share/', {'enabled': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_expire_corporate_trials_command(self):
        expired = TestDataFactory.create_corporate_user()
        expired.trial_end_date = timezone.now() - timedelta(days=1)
        expired.save()
        current = TestDataFactory.create_corporate_user()

        out = StringIO()
        call_command('expire_corporate_trials', stdout=out)

        expired.refresh_from_db()
        current.refresh_from_db()
        self.assertEqual(expired.subscription_status, User.SUBSCRIPTION_FREE)
        self.assertEqual(current.subscription_status, User.SUBSCRIPTION_TRIAL)
        self.assertIn('Expired 1', out.getvalue())


class SettingAndAuditLogTests(TestCase):
    """Test admin-only settings and audit log endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()

    def test_settings_require_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_manages_settings(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/settings/', {
            'key': 'social.instagram_enabled',
            'value': 'false',
            'description': 'Publish listings to Instagram',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        setting = Setting.objects.get(key='social.instagram_enabled')
        response = self.client.patch(f'/api/v1/settings/{setting.id}/', {'value': 'true'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        setting.refresh_from_db()
        self.assertEqual(setting.value, 'true')

    def test_audit_log_filtering(self):
        user = TestDataFactory.create_user()
        AuditLog.objects.create(user=self.admin, action='user_block', model_name='User', object_id=str(user.id))
        AuditLog.objects.create(user=self.admin, action='listing_delete', model_name='CarListing', object_id='7')
        self.client.authenticate_user(self.admin)

        response = self.client.get('/api/v1/audit-logs/', {'action': 'user_block'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['object_id'], str(user.id))
