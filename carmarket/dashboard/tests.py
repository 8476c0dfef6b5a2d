"""
Test suite for the admin dashboard: admin sign-in, statistics, user and
listing moderation
"""
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone
from rest_framework import status

from carmarket.core.models import AuditLog
from carmarket.core.test_utils import TestDataFactory, MarketplaceTestCase, AuthenticatedAPIClient, DEFAULT_PASSWORD
from carmarket.dashboard.stats import daily_listing_counts, collect_dashboard_stats
from carmarket.listings.models import CarListing
from carmarket.messaging.models import Message

User = get_user_model()


class DashboardTestCase(MarketplaceTestCase):
    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_admin(email='admin@test.com', username='siteadmin')
        self.seller = TestDataFactory.create_user(full_name='Selin Seller', phone='+905551112233')
        self.buyer = TestDataFactory.create_user(full_name='Bora Buyer')
        self.dealer = TestDataFactory.create_corporate_user(company_name='Anadolu Motors', full_name='Deniz Dealer')
        self.listing = TestDataFactory.create_listing(self.seller)
        self.dealer_listing = TestDataFactory.create_listing(self.dealer, brand='BMW', model='520d')
        self.pending = TestDataFactory.create_listing(
            self.seller, status=CarListing.STATUS_PENDING, brand='Fiat', model='Egea'
        )
        self.message = TestDataFactory.create_message(
            self.buyer, self.seller, self.listing, content='Would you accept an offer?'
        )
        self.client.authenticate_user(self.admin)


class DashboardAccessTests(DashboardTestCase):
    """Test admin-only access and admin sign-in"""

    def test_anonymous_rejected(self):
        self.client.logout()
        response = self.client.get('/api/v1/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_regular_user_forbidden(self):
        self.client.authenticate_user(self.seller)
        for url in ['/api/v1/dashboard/stats/', '/api/v1/dashboard/users/', '/api/v1/dashboard/listings/',
                    '/api/v1/dashboard/messages/']:
            with self.subTest(url=url):
                self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

    def test_login_with_username(self):
        client = AuthenticatedAPIClient()
        response = client.post('/api/v1/dashboard/login/', {
            'username': 'siteadmin', 'password': DEFAULT_PASSWORD
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('expires_at', response.data)
        self.assertTrue(response.data['user']['is_staff'])
        self.assertTrue(AuditLog.objects.filter(action='admin_login', user=self.admin).exists())

        client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        self.assertEqual(client.get('/api/v1/dashboard/stats/').status_code, status.HTTP_200_OK)

    def test_login_with_email(self):
        response = AuthenticatedAPIClient().post('/api/v1/dashboard/login/', {
            'username': 'ADMIN@test.com', 'password': DEFAULT_PASSWORD
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_login_rejects_members_and_bad_passwords(self):
        client = AuthenticatedAPIClient()
        response = client.post('/api/v1/dashboard/login/', {
            'username': self.seller.email, 'password': DEFAULT_PASSWORD
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid admin credentials')

        response = client.post('/api/v1/dashboard/login/', {
            'username': 'siteadmin', 'password': 'Wrong#Pass1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_change_password(self):
        response = self.client.post('/api/v1/dashboard/password/', {
            'current_password': DEFAULT_PASSWORD,
            'new_password': 'Admin#Pass2',
            'confirm_password': 'Admin#Pass2',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.check_password('Admin#Pass2'))

    def test_create_dashboard_admin_command(self):
        out = StringIO()
        call_command('create_dashboard_admin', 'ops@test.com', 'Admin#Pass1', username='ops', stdout=out)
        ops = User.objects.get(email='ops@test.com')
        self.assertTrue(ops.is_staff)
        self.assertEqual(ops.username, 'ops')
        self.assertTrue(ops.check_password('Admin#Pass1'))
        self.assertIn('Created dashboard admin', out.getvalue())

        call_command('create_dashboard_admin', 'ops@test.com', 'Admin#Pass2', stdout=out)
        ops.refresh_from_db()
        self.assertTrue(ops.check_password('Admin#Pass2'))

    def test_create_dashboard_admin_rejects_weak_password(self):
        with self.assertRaises(CommandError):
            call_command('create_dashboard_admin', 'ops@test.com', 'weak', stdout=StringIO())


class DashboardStatsTests(DashboardTestCase):
    """Test statistics"""

    def test_collect_stats(self):
        self.buyer.block('Spam')
        stats = collect_dashboard_stats()
        self.assertEqual(stats['total_users'], 3)
        self.assertEqual(stats['individual_users'], 2)
        self.assertEqual(stats['corporate_users'], 1)
        self.assertEqual(stats['blocked_users'], 1)
        self.assertEqual(stats['total_listings'], 3)
        self.assertEqual(stats['listings_by_status'], {'pending': 1, 'approved': 2, 'rejected': 0})
        self.assertEqual(stats['total_messages'], 1)
        # seller and dealer listed, buyer sent a message
        self.assertEqual(stats['active_users'], 3)

    def test_daily_listing_counts(self):
        days = daily_listing_counts(days=7)
        self.assertEqual(len(days), 7)
        self.assertEqual(days[-1], {'date': timezone.localdate().isoformat(), 'count': 3})
        self.assertTrue(all(day['count'] == 0 for day in days[:-1]))

    def test_stats_endpoint_is_cached(self):
        response = self.client.get('/api/v1/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_listings'], 3)
        self.assertEqual(len(response.data['daily_listings']), 30)

        TestDataFactory.create_listing(self.buyer)
        self.assertEqual(self.client.get('/api/v1/dashboard/stats/').data['total_listings'], 3)

        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_listing(self.buyer)
        self.assertEqual(self.client.get('/api/v1/dashboard/stats/').data['total_listings'], 5)


class DashboardUserTests(DashboardTestCase):
    """Test user moderation"""

    def test_individual_users(self):
        response = self.client.get('/api/v1/dashboard/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({u['id'] for u in response.data}, {self.seller.id, self.buyer.id})

        response = self.client.get('/api/v1/dashboard/users/', {'search': '5551112233'})
        self.assertEqual([u['id'] for u in response.data], [self.seller.id])
        self.assertEqual(response.data[0]['listing_count'], 2)

    def test_corporate_users_with_listings(self):
        response = self.client.get('/api/v1/dashboard/corporate-users/', {'search': 'anadolu'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['company_name'], 'Anadolu Motors')
        self.assertEqual([l['id'] for l in response.data[0]['listings']], [self.dealer_listing.id])

    def test_block_requires_reason(self):
        response = self.client.post(f'/api/v1/dashboard/users/{self.seller.id}/block/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('reason', response.data)

    def test_block_and_unblock(self):
        seller_client = AuthenticatedAPIClient().authenticate_user(self.seller)
        self.assertEqual(seller_client.get('/api/v1/auth/me/').status_code, status.HTTP_200_OK)

        response = self.client.post(
            f'/api/v1/dashboard/users/{self.seller.id}/block/', {'reason': 'Fake listings'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_blocked'])
        self.assertEqual(response.data['block_reason'], 'Fake listings')
        self.assertEqual(response.data['blocked_by'], self.admin.id)
        self.assertTrue(AuditLog.objects.filter(action='user_block', object_id=str(self.seller.id)).exists())

        response = seller_client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('Fake listings', str(response.data['detail']))

        response = self.client.post(f'/api/v1/dashboard/users/{self.seller.id}/unblock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_blocked'])
        self.assertEqual(seller_client.get('/api/v1/auth/me/').status_code, status.HTTP_200_OK)

    def test_unblock_requires_blocked_user(self):
        response = self.client.post(f'/api/v1/dashboard/users/{self.seller.id}/unblock/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admins_cannot_be_blocked(self):
        other_admin = TestDataFactory.create_admin()
        for user in (self.admin, other_admin):
            with self.subTest(user=user.email):
                response = self.client.post(
                    f'/api/v1/dashboard/users/{user.id}/block/', {'reason': 'Test'}, format='json'
                )
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_user_removes_everything(self):
        response = self.client.delete(f'/api/v1/dashboard/users/{self.seller.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.seller.pk).exists())
        self.assertFalse(CarListing.objects.filter(user_id=self.seller.id).exists())
        self.assertFalse(Message.objects.filter(pk=self.message.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action='user_delete', object_id=str(self.seller.id)).exists())

    def test_delete_self_or_superuser_refused(self):
        response = self.client.delete(f'/api/v1/dashboard/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        root = TestDataFactory.create_user(is_staff=True, is_superuser=True)
        response = self.client.delete(f'/api/v1/dashboard/users/{root.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(User.objects.filter(pk=root.pk).exists())

    def test_update_channels(self):
        response = self.client.patch(
            f'/api/v1/dashboard/users/{self.seller.id}/channels/',
            {'whatsapp_enabled': False, 'instagram_enabled': True},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.seller.refresh_from_db()
        self.assertFalse(self.seller.whatsapp_enabled)
        self.assertTrue(self.seller.instagram_enabled)

        listing = self.client.get(f'/api/v1/listings/{self.listing.id}/').data
        self.assertIsNone(listing['seller']['whatsapp_url'])
        self.assertTrue(listing['seller']['instagram_enabled'])

    def test_update_channels_requires_a_field(self):
        response = self.client.patch(f'/api/v1/dashboard/users/{self.seller.id}/channels/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DashboardListingTests(DashboardTestCase):
    """Test listing moderation"""

    def test_list_all_listings(self):
        response = self.client.get('/api/v1/dashboard/listings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 3)
        self.assertIn('owner', response.data[0])

    def test_filter_by_status_and_owner(self):
        response = self.client.get('/api/v1/dashboard/listings/', {'status': 'pending'})
        self.assertEqual([l['id'] for l in response.data], [self.pending.id])

        response = self.client.get('/api/v1/dashboard/listings/', {'search': 'anadolu'})
        self.assertEqual([l['id'] for l in response.data], [self.dealer_listing.id])
        self.assertEqual(response.data[0]['owner']['email'], self.dealer.email)

    def test_approve_pending_listing(self):
        response = self.client.post(
            f'/api/v1/dashboard/listings/{self.pending.id}/moderate/', {'status': 'approved'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'approved')
        self.assertTrue(AuditLog.objects.filter(action='listing_approve', object_id=str(self.pending.id)).exists())

        self.client.logout()
        ids = {l['id'] for l in self.client.get('/api/v1/listings/').data}
        self.assertIn(self.pending.id, ids)

    def test_reject_listing(self):
        response = self.client.post(
            f'/api/v1/dashboard/listings/{self.listing.id}/moderate/',
            {'status': 'rejected', 'reason': 'Stock photos'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='listing_reject', object_id=str(self.listing.id))
        self.assertEqual(log.changes['reason'], 'Stock photos')
        self.assertEqual(log.changes['from'], 'approved')

    def test_moderate_invalid_status(self):
        response = self.client.post(
            f'/api/v1/dashboard/listings/{self.listing.id}/moderate/', {'status': 'pending'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_remove_listing_requires_reason(self):
        response = self.client.delete(f'/api/v1/dashboard/listings/{self.listing.id}/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(CarListing.objects.filter(pk=self.listing.pk).exists())

    def test_remove_listing(self):
        image = TestDataFactory.create_image(self.listing)
        storage, name = image.image.storage, image.image.name

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.delete(
                f'/api/v1/dashboard/listings/{self.listing.id}/', {'reason': 'Fake listing'}, format='json'
            )
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CarListing.objects.filter(pk=self.listing.pk).exists())
        self.assertFalse(storage.exists(name))

        log = AuditLog.objects.get(action='listing_delete', object_id=str(self.listing.id))
        self.assertEqual(log.changes['reason'], 'Fake listing')
        self.assertEqual(log.user, self.admin)

    def test_messages_search(self):
        TestDataFactory.create_message(self.seller, self.buyer, self.listing, content='Yes, make an offer')
        response = self.client.get('/api/v1/dashboard/messages/')
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/dashboard/messages/', {'search': 'accept'})
        self.assertEqual([m['id'] for m in response.data], [self.message.id])
