"""
Test suite for car listings: search, creation with photos, owner
updates, deletion, social sharing
"""
from datetime import date
from unittest import mock

import requests
from django.test import TestCase, override_settings
from rest_framework import status

from carmarket.core.models import AuditLog, Setting
from carmarket.core.test_utils import TestDataFactory, MarketplaceTestCase
from carmarket.listings.models import CarListing, CarImage
from carmarket.listings.validators import validate_listing_images, MAX_IMAGES_PER_LISTING

SHARE_URL = 'https://hooks.example.com/share'


def listing_payload(**overrides):
    data = {
        'brand': 'Volkswagen',
        'model': 'Golf',
        'year': 2020,
        'mileage': '45.000',
        'color': 'grey',
        'price': '1.250.000 TL',
        'fuel_type': 'diesel',
        'transmission': 'automatic',
        'body_type': 'hatchback',
        'condition': 'used',
        'location': ' Izmir ',
        'description': 'Garage kept',
        'features': ['Bluetooth', 'ABS', 'ABS'],
        'negotiable': 'true',
    }
    data.update(overrides)
    return data


class ImageValidationTests(TestCase):
    """Test photo batch rules"""

    def test_valid_image_passes(self):
        self.assertEqual(validate_listing_images([TestDataFactory.make_image_file()]), [])

    def test_no_images(self):
        self.assertEqual(validate_listing_images([]), ['At least one image is required'])

    def test_existing_images_count_towards_limit(self):
        errors = validate_listing_images([TestDataFactory.make_image_file()], existing_count=MAX_IMAGES_PER_LISTING)
        self.assertEqual(errors, [f'A listing can have at most {MAX_IMAGES_PER_LISTING} images'])

    def test_small_image_rejected(self):
        errors = validate_listing_images([TestDataFactory.make_image_file('small.png', width=800, height=600)])
        self.assertEqual(len(errors), 1)
        self.assertTrue(errors[0].startswith('small.png:'))
        self.assertIn('1920x1080', errors[0])

    def test_unsupported_format_rejected(self):
        errors = validate_listing_images([TestDataFactory.make_image_file('car.gif', image_format='GIF')])
        self.assertEqual(len(errors), 1)
        self.assertIn('JPEG, PNG and WebP', errors[0])

    def test_disguised_file_rejected(self):
        upload = TestDataFactory.make_image_file('car.png', image_format='GIF', content_type='image/png')
        errors = validate_listing_images([upload])
        self.assertEqual(len(errors), 1)
        self.assertIn('JPEG, PNG and WebP', errors[0])


class ListingSearchTests(MarketplaceTestCase):
    """Test the public listing search"""

    def setUp(self):
        super().setUp()
        self.seller = TestDataFactory.create_user()
        self.corolla = TestDataFactory.create_listing(self.seller)
        self.clio = TestDataFactory.create_listing(
            self.seller, brand='Renault', model='Clio', year=2015, mileage=140000, price=420000,
            fuel_type='diesel', transmission='manual', body_type='hatchback', location='Ankara',
            features=['ABS', 'Parking Sensors']
        )
        self.pending = TestDataFactory.create_listing(
            self.seller, status=CarListing.STATUS_PENDING, brand='BMW', model='320i'
        )

    def ids(self, response):
        return {item['id'] for item in response.data}

    def test_anonymous_sees_approved_only(self):
        response = self.client.get('/api/v1/listings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.ids(response), {self.corolla.id, self.clio.id})

    def test_search_matches_brand_model_or_location(self):
        self.assertEqual(self.ids(self.client.get('/api/v1/listings/', {'search': 'clio'})), {self.clio.id})
        self.assertEqual(self.ids(self.client.get('/api/v1/listings/', {'search': 'istanbul'})), {self.corolla.id})

    def test_range_filters(self):
        response = self.client.get('/api/v1/listings/', {'min_price': 500000})
        self.assertEqual(self.ids(response), {self.corolla.id})
        response = self.client.get('/api/v1/listings/', {'max_year': 2016, 'min_mileage': 100000})
        self.assertEqual(self.ids(response), {self.clio.id})

    def test_choice_filters(self):
        response = self.client.get('/api/v1/listings/', {'fuel_type': 'diesel', 'transmission': 'manual'})
        self.assertEqual(self.ids(response), {self.clio.id})

    def test_invalid_choice_returns_400(self):
        response = self.client.get('/api/v1/listings/', {'fuel_type': 'steam'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_features_must_all_match(self):
        response = self.client.get('/api/v1/listings/', {'features': 'ABS'})
        self.assertEqual(self.ids(response), {self.corolla.id, self.clio.id})
        response = self.client.get('/api/v1/listings/', {'features': 'ABS, Parking Sensors'})
        self.assertEqual(self.ids(response), {self.clio.id})

    def test_results_are_cached_until_listings_change(self):
        self.assertEqual(len(self.client.get('/api/v1/listings/').data), 2)

        # Without a commit the cached page is still served
        TestDataFactory.create_listing(self.seller, brand='Fiat', model='Egea')
        self.assertEqual(len(self.client.get('/api/v1/listings/').data), 2)

        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_listing(self.seller, brand='Kia', model='Ceed')
        self.assertEqual(len(self.client.get('/api/v1/listings/').data), 4)

    @mock.patch('carmarket.core.cache_signals.invalidate_dashboard_cache')
    def test_seller_change_invalidates_cached_searches(self, mock_dashboard_invalidate):
        self.seller.phone = '+905551234567'
        self.seller.save()
        response = self.client.get('/api/v1/listings/')
        self.assertEqual(response.data[0]['seller']['whatsapp_url'], 'https://wa.me/905551234567')

        with self.captureOnCommitCallbacks(execute=True):
            self.seller.whatsapp_enabled = False
            self.seller.save()
        mock_dashboard_invalidate.assert_called()

        response = self.client.get('/api/v1/listings/')
        self.assertTrue(all(item['seller']['whatsapp_url'] is None for item in response.data))

    def test_seller_contact(self):
        self.seller.phone = '+905551234567'
        self.seller.save()
        response = self.client.get(f'/api/v1/listings/{self.corolla.id}/')
        self.assertEqual(response.data['seller']['whatsapp_url'], 'https://wa.me/905551234567')

        self.seller.whatsapp_enabled = False
        self.seller.save()
        response = self.client.get(f'/api/v1/listings/{self.corolla.id}/')
        self.assertIsNone(response.data['seller']['whatsapp_url'])

    def test_seller_instagram_flag(self):
        response = self.client.get(f'/api/v1/listings/{self.corolla.id}/')
        self.assertFalse(response.data['seller']['instagram_enabled'])

        self.seller.instagram_enabled = True
        self.seller.save()
        response = self.client.get(f'/api/v1/listings/{self.corolla.id}/')
        self.assertTrue(response.data['seller']['instagram_enabled'])

    def test_pending_listing_hidden_from_others(self):
        response = self.client.get(f'/api/v1/listings/{self.pending.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        self.client.authenticate_user(self.seller)
        response = self.client.get(f'/api/v1/listings/{self.pending.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_my_listings_include_every_status(self):
        self.client.authenticate_user(self.seller)
        response = self.client.get('/api/v1/listings/mine/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.ids(response), {self.corolla.id, self.clio.id, self.pending.id})

    def test_options(self):
        response = self.client.get('/api/v1/listings/options/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('Toyota', response.data['brands'])
        self.assertIn('ABS', response.data['features'])
        self.assertEqual(response.data['defaults'], {'doors': '4', 'condition': 'used'})


class ListingCreateTests(MarketplaceTestCase):
    """Test creating listings with photos"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)

    def post_listing(self, images=None, **overrides):
        data = listing_payload(**overrides)
        if images is None:
            images = [TestDataFactory.make_image_file()]
        if images:
            data['images'] = images
        return self.client.post('/api/v1/listings/', data, format='multipart')

    def test_requires_authentication(self):
        self.client.logout()
        response = self.post_listing()
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_listing(self):
        response = self.post_listing(images=[
            TestDataFactory.make_image_file('front.png'),
            TestDataFactory.make_image_file('back.jpg', image_format='JPEG'),
        ])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['price'], 1250000)
        self.assertEqual(response.data['mileage'], 45000)
        self.assertEqual(response.data['location'], 'Izmir')
        self.assertEqual(response.data['features'], ['ABS', 'Bluetooth'])
        self.assertEqual(response.data['status'], CarListing.STATUS_APPROVED)
        self.assertTrue(response.data['negotiable'])
        self.assertEqual(response.data['title'], '2020 Volkswagen Golf')
        self.assertEqual([image['position'] for image in response.data['images']], [0, 1])
        self.assertIn('car-images/', response.data['images'][0]['url'])

        listing = CarListing.objects.get(pk=response.data['id'])
        self.assertEqual(listing.user, self.user)
        self.assertTrue(AuditLog.objects.filter(action='listing_create', object_id=str(listing.id)).exists())

    def test_missing_images(self):
        response = self.post_listing(images=[])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['images'], ['At least one image is required'])
        self.assertFalse(CarListing.objects.exists())

    def test_small_image_rejected(self):
        response = self.post_listing(images=[TestDataFactory.make_image_file('tiny.png', width=640, height=480)])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('tiny.png', response.data['images'][0])
        self.assertFalse(CarImage.objects.exists())

    def test_field_errors_reported_with_image_errors(self):
        response = self.post_listing(images=[], year=date.today().year + 2, brand='  ')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('year', response.data)
        self.assertIn('brand', response.data)
        self.assertIn('images', response.data)

    def test_unknown_feature_rejected(self):
        response = self.post_listing(features=['Flux Capacitor'])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('features', response.data)

    @override_settings(LISTING_REQUIRES_APPROVAL=True)
    def test_listing_waits_for_approval_when_enabled(self):
        response = self.post_listing()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], CarListing.STATUS_PENDING)

        self.client.logout()
        response = self.client.get('/api/v1/listings/')
        self.assertEqual(response.data, [])

    @override_settings(SOCIAL_SHARE_URL=SHARE_URL)
    @mock.patch('carmarket.listings.social_share.requests.post')
    def test_auto_share_for_corporate_accounts(self, mock_post):
        dealer = TestDataFactory.create_corporate_user(auto_share=True)
        Setting.objects.create(key='social.facebook_enabled', value='false')
        self.client.authenticate_user(dealer)

        response = self.post_listing()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        mock_post.assert_called_once()
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['listing_id'], response.data['id'])
        self.assertEqual(payload['platforms'], ['instagram'])

    @override_settings(SOCIAL_SHARE_URL=SHARE_URL)
    @mock.patch('carmarket.listings.social_share.requests.post')
    def test_auto_share_failure_does_not_block_creation(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('down')
        dealer = TestDataFactory.create_corporate_user(auto_share=True)
        self.client.authenticate_user(dealer)

        response = self.post_listing()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    @override_settings(SOCIAL_SHARE_URL=SHARE_URL)
    @mock.patch('carmarket.listings.social_share.requests.post')
    def test_no_auto_share_for_individuals(self, mock_post):
        response = self.post_listing()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        mock_post.assert_not_called()


class ListingOwnerTests(MarketplaceTestCase):
    """Test owner-only update, delete and share"""

    def setUp(self):
        super().setUp()
        self.owner = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.listing = TestDataFactory.create_listing(self.owner)

    def test_owner_updates_listing(self):
        self.client.authenticate_user(self.owner)
        response = self.client.patch(
            f'/api/v1/listings/{self.listing.id}/', {'price': '699.000', 'negotiable': True}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['price'], 699000)
        self.listing.refresh_from_db()
        self.assertTrue(self.listing.negotiable)
        self.assertTrue(AuditLog.objects.filter(action='listing_update', object_id=str(self.listing.id)).exists())

    def test_other_user_cannot_update(self):
        self.client.authenticate_user(self.other)
        response = self.client.patch(f'/api/v1/listings/{self.listing.id}/', {'price': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'You do not have permission to modify this listing')

    def test_other_user_cannot_delete(self):
        self.client.authenticate_user(self.other)
        response = self.client.delete(f'/api/v1/listings/{self.listing.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(CarListing.objects.filter(pk=self.listing.pk).exists())

    def test_owner_deletes_listing_and_photos(self):
        image = TestDataFactory.create_image(self.listing)
        storage, name = image.image.storage, image.image.name
        self.client.authenticate_user(self.owner)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.delete(f'/api/v1/listings/{self.listing.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CarListing.objects.filter(pk=self.listing.pk).exists())
        self.assertFalse(CarImage.objects.filter(pk=image.pk).exists())
        self.assertFalse(storage.exists(name))

    def test_share_requires_owner(self):
        self.client.authenticate_user(self.other)
        response = self.client.post(
            f'/api/v1/listings/{self.listing.id}/share/', {'platforms': ['instagram']}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_share_requires_approved_listing(self):
        pending = TestDataFactory.create_listing(self.owner, status=CarListing.STATUS_PENDING)
        self.client.authenticate_user(self.owner)
        response = self.client.post(
            f'/api/v1/listings/{pending.id}/share/', {'platforms': ['instagram']}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(SOCIAL_SHARE_URL='')
    def test_share_not_configured(self):
        self.client.authenticate_user(self.owner)
        response = self.client.post(
            f'/api/v1/listings/{self.listing.id}/share/', {'platforms': ['facebook']}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    @override_settings(SOCIAL_SHARE_URL=SHARE_URL, SOCIAL_SHARE_TOKEN='hook-token')
    @mock.patch('carmarket.listings.social_share.requests.post')
    def test_share_listing(self, mock_post):
        mock_post.return_value.json.return_value = {'status': 'queued'}
        self.client.authenticate_user(self.owner)
        response = self.client.post(
            f'/api/v1/listings/{self.listing.id}/share/',
            {'platforms': ['instagram', 'facebook', 'instagram']},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['shared'], ['instagram', 'facebook'])
        self.assertEqual(response.data['result'], {'status': 'queued'})

        self.assertEqual(mock_post.call_args.args[0], SHARE_URL)
        self.assertEqual(mock_post.call_args.kwargs['headers']['Authorization'], 'Bearer hook-token')
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['title'], '2018 Toyota Corolla')
        self.assertEqual(payload['price'], 750000)
        self.assertTrue(AuditLog.objects.filter(action='listing_share', object_id=str(self.listing.id)).exists())

    @override_settings(SOCIAL_SHARE_URL=SHARE_URL)
    @mock.patch('carmarket.listings.social_share.requests.post')
    def test_share_failure_returns_502(self, mock_post):
        mock_post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError('500')
        self.client.authenticate_user(self.owner)
        response = self.client.post(
            f'/api/v1/listings/{self.listing.id}/share/', {'platforms': ['instagram']}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    @override_settings(SOCIAL_SHARE_URL=SHARE_URL)
    @mock.patch('carmarket.listings.social_share.requests.post')
    def test_share_to_disabled_platform(self, mock_post):
        Setting.objects.create(key='social.facebook_enabled', value='false')
        self.client.authenticate_user(self.owner)
        response = self.client.post(
            f'/api/v1/listings/{self.listing.id}/share/', {'platforms': ['instagram', 'facebook']}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['disabled'], ['facebook'])
        mock_post.assert_not_called()
        self.assertFalse(AuditLog.objects.filter(action='listing_share').exists())

    def test_share_unknown_platform(self):
        self.client.authenticate_user(self.owner)
        response = self.client.post(
            f'/api/v1/listings/{self.listing.id}/share/', {'platforms': ['myspace']}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
