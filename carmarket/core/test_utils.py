"""
Test utilities and factories for creating test data
"""
import io
import random
import shutil
import string
import tempfile

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from PIL import Image
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from carmarket.listings.models import CarListing, CarImage
from carmarket.messaging.models import Message

User = get_user_model()

DEFAULT_PASSWORD = 'TestPass#123'


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password=DEFAULT_PASSWORD, full_name=None, phone=None,
                    is_staff=False, is_superuser=False, **extra_fields):
        """Create a test user"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        if full_name is None:
            full_name = f'Test User {TestDataFactory.random_string(4)}'
        return User.objects.create_user(
            email=email,
            password=password,
            full_name=full_name,
            phone=phone,
            is_staff=is_staff,
            is_superuser=is_superuser,
            **extra_fields
        )

    @staticmethod
    def create_corporate_user(company_name=None, tax_number=None, **kwargs):
        """Create a corporate user with an active trial"""
        user = TestDataFactory.create_user(**kwargs)
        user.start_corporate_trial(
            company_name or f'Motors {TestDataFactory.random_string(4)}',
            tax_number or f'{random.randint(1000000000, 9999999999)}'
        )
        return user

    @staticmethod
    def create_admin(email=None, password=DEFAULT_PASSWORD, username=None):
        """Create a staff user for dashboard tests"""
        if not email:
            email = f'admin_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(
            email=email,
            password=password,
            username=username,
            full_name='Site Admin',
            is_staff=True
        )

    @staticmethod
    def create_listing(user, status=CarListing.STATUS_APPROVED, **overrides):
        """Create a test listing"""
        data = {
            'brand': 'Toyota',
            'model': 'Corolla',
            'year': 2018,
            'mileage': 85000,
            'color': 'white',
            'price': 750000,
            'fuel_type': 'petrol',
            'transmission': 'automatic',
            'body_type': 'sedan',
            'condition': 'used',
            'location': 'Istanbul',
            'description': 'Well maintained, single owner',
            'features': ['ABS', 'Bluetooth'],
        }
        data.update(overrides)
        return CarListing.objects.create(user=user, status=status, **data)

    @staticmethod
    def make_image_file(name='photo.png', width=1920, height=1080, image_format='PNG', content_type=None):
        """Build an in-memory image upload"""
        buffer = io.BytesIO()
        Image.new('RGB', (width, height), color=(40, 90, 160)).save(buffer, format=image_format)
        if content_type is None:
            content_type = f'image/{image_format.lower()}'
        return SimpleUploadedFile(name, buffer.getvalue(), content_type=content_type)

    @staticmethod
    def create_image(listing, position=0):
        """Attach a stored image to a listing (requires a writable MEDIA_ROOT)"""
        return CarImage.objects.create(
            listing=listing,
            image=TestDataFactory.make_image_file(),
            position=position
        )

    @staticmethod
    def create_message(sender, receiver, listing, content=None, read=False):
        """Create a test message"""
        return Message.objects.create(
            sender=sender,
            receiver=receiver,
            listing=listing,
            content=content or f'Hello {TestDataFactory.random_string(8)}',
            read=read
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()


class MarketplaceTestCase(TestCase):
    """
    TestCase with an isolated MEDIA_ROOT and an empty cache for every test.
    """

    @classmethod
    def setUpClass(cls):
        cls._media_root = tempfile.mkdtemp(prefix='carmarket-test-media-')
        cls._media_override = override_settings(MEDIA_ROOT=cls._media_root)
        cls._media_override.enable()
        super().setUpClass()

    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        cls._media_override.disable()
        shutil.rmtree(cls._media_root, ignore_errors=True)

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
