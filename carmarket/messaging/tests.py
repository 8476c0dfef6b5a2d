"""
Test suite for messaging: conversation grouping, unread tracking and the
message API
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from carmarket.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from carmarket.messaging.conversations import UnreadTracker, group_conversations, conversation_history
from carmarket.messaging.models import Message
from carmarket.messaging.views import messages_for


class UnreadTrackerTests(TestCase):
    """Test unread counting rules"""

    def test_counts_unread_incoming_only(self):
        tracker = UnreadTracker(user_id=1)
        tracker.observe(Message(sender_id=2, receiver_id=1, read=False))
        tracker.observe(Message(sender_id=2, receiver_id=1, read=True))
        tracker.observe(Message(sender_id=1, receiver_id=2, read=False))
        tracker.observe(Message(sender_id=3, receiver_id=1, read=False))
        self.assertEqual(tracker.count_for(2), 1)
        self.assertEqual(tracker.count_for(3), 1)
        self.assertEqual(tracker.total, 2)

    def test_open_conversation_is_not_counted(self):
        tracker = UnreadTracker(user_id=1, open_counterparty_id=2)
        tracker.observe(Message(sender_id=2, receiver_id=1, read=False))
        self.assertEqual(tracker.total, 0)

    def test_opening_resets_counter(self):
        tracker = UnreadTracker(user_id=1)
        tracker.observe(Message(sender_id=2, receiver_id=1, read=False))
        tracker.observe(Message(sender_id=2, receiver_id=1, read=False))
        tracker.open(2)
        self.assertEqual(tracker.count_for(2), 0)
        tracker.observe(Message(sender_id=2, receiver_id=1, read=False))
        self.assertEqual(tracker.count_for(2), 0)


class MessagingTestMixin:
    """
    Buyer talks to two sellers:
      seller_a (Toyota Corolla): buyer asks, seller_a answers twice (unread)
      seller_b (Renault Clio): one unread message to the buyer
    """

    def build_conversations(self):
        now = timezone.now()
        self.buyer = TestDataFactory.create_user(full_name='Burak Buyer')
        self.seller_a = TestDataFactory.create_user(full_name='Ali Seller')
        self.seller_b = TestDataFactory.create_user(full_name='Zeynep Kaya')
        self.listing_a = TestDataFactory.create_listing(self.seller_a)
        self.listing_b = TestDataFactory.create_listing(self.seller_b, brand='Renault', model='Clio')

        self.m1 = self.message_at(self.buyer, self.seller_a, self.listing_a, 'Is it still available?', now - timedelta(minutes=30))
        self.m2 = self.message_at(self.seller_a, self.buyer, self.listing_a, 'Yes it is', now - timedelta(minutes=20))
        self.m3 = self.message_at(self.seller_a, self.buyer, self.listing_a, 'Come and see it', now - timedelta(minutes=10))
        self.m4 = self.message_at(self.seller_b, self.buyer, self.listing_b, 'The price is firm', now - timedelta(minutes=15))

    def message_at(self, sender, receiver, listing, content, created_at):
        message = TestDataFactory.create_message(sender, receiver, listing, content=content)
        Message.objects.filter(pk=message.pk).update(created_at=created_at)
        message.refresh_from_db()
        return message


class ConversationGroupingTests(MessagingTestMixin, TestCase):
    """Test grouping messages into conversations"""

    def setUp(self):
        self.build_conversations()

    def test_grouped_by_counterparty_newest_first(self):
        conversations, tracker = group_conversations(messages_for(self.buyer), self.buyer.id)
        self.assertEqual([c.counterparty_id for c in conversations], [self.seller_a.id, self.seller_b.id])

        with_a = conversations[0]
        self.assertEqual(with_a.message_count, 3)
        self.assertEqual(with_a.unread_count, 2)
        self.assertEqual(with_a.latest.id, self.m3.id)
        self.assertEqual(with_a.counterparty(self.buyer.id), self.seller_a)
        self.assertEqual(tracker.total, 3)

    def test_seller_sees_single_conversation(self):
        conversations, tracker = group_conversations(messages_for(self.seller_a), self.seller_a.id)
        self.assertEqual(len(conversations), 1)
        self.assertEqual(conversations[0].counterparty_id, self.buyer.id)
        self.assertEqual(conversations[0].unread_count, 1)
        self.assertEqual(tracker.total, 1)

    def test_open_counterparty_excluded_from_unread(self):
        conversations, tracker = group_conversations(
            messages_for(self.buyer), self.buyer.id, open_counterparty_id=self.seller_a.id
        )
        self.assertEqual(conversations[0].unread_count, 0)
        self.assertEqual(tracker.total, 1)

    def test_search(self):
        def counterparties(term):
            conversations, _ = group_conversations(messages_for(self.buyer), self.buyer.id, search=term)
            return [c.counterparty_id for c in conversations]

        self.assertEqual(counterparties('zeynep'), [self.seller_b.id])
        self.assertEqual(counterparties('COROLLA'), [self.seller_a.id])
        self.assertEqual(counterparties('firm'), [self.seller_b.id])
        self.assertEqual(counterparties('tesla'), [])

    def test_history_is_oldest_first(self):
        history = conversation_history(messages_for(self.buyer), self.buyer.id, self.seller_a.id)
        self.assertEqual([m.id for m in history], [self.m1.id, self.m2.id, self.m3.id])


class MessageAPITests(MessagingTestMixin, TestCase):
    """Test the message and conversation endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.build_conversations()
        self.client.authenticate_user(self.buyer)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/conversations/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_send_message(self):
        response = self.client.post('/api/v1/messages/', {
            'receiver': self.seller_b.id,
            'listing': self.listing_b.id,
            'content': '  Can I test drive it?  ',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['content'], 'Can I test drive it?')
        self.assertEqual(response.data['sender']['id'], self.buyer.id)
        self.assertEqual(response.data['receiver']['id'], self.seller_b.id)
        self.assertEqual(response.data['listing']['id'], self.listing_b.id)
        self.assertFalse(response.data['read'])

    def test_cannot_message_yourself(self):
        response = self.client.post('/api/v1/messages/', {
            'receiver': self.buyer.id,
            'listing': self.listing_a.id,
            'content': 'Hello me',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('receiver', response.data)

    def test_cannot_message_blocked_user(self):
        self.seller_b.block('Spam')
        response = self.client.post('/api/v1/messages/', {
            'receiver': self.seller_b.id,
            'listing': self.listing_b.id,
            'content': 'Hello',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_or_long_content_rejected(self):
        for content in ['   ', 'x' * 2001]:
            with self.subTest(length=len(content)):
                response = self.client.post('/api/v1/messages/', {
                    'receiver': self.seller_a.id,
                    'listing': self.listing_a.id,
                    'content': content,
                }, format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn('content', response.data)

    def test_list_messages_since(self):
        response = self.client.get('/api/v1/messages/')
        self.assertEqual([m['id'] for m in response.data], [self.m3.id, self.m4.id, self.m2.id, self.m1.id])

        response = self.client.get('/api/v1/messages/', {'since': self.m2.created_at.isoformat()})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({m['id'] for m in response.data}, {self.m3.id, self.m4.id})

    def test_invalid_since(self):
        response = self.client.get('/api/v1/messages/', {'since': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sender_deletes_message(self):
        response = self.client.delete(f'/api/v1/messages/{self.m1.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Message.objects.filter(pk=self.m1.pk).exists())

    def test_receiver_cannot_delete_message(self):
        response = self.client.delete(f'/api/v1/messages/{self.m2.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Message.objects.filter(pk=self.m2.pk).exists())

    def test_conversation_list(self):
        response = self.client.get('/api/v1/conversations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['unread_total'], 3)

        first = response.data['conversations'][0]
        self.assertEqual(first['counterparty']['id'], self.seller_a.id)
        self.assertEqual(first['listing']['id'], self.listing_a.id)
        self.assertEqual(first['last_message']['id'], self.m3.id)
        self.assertEqual(first['message_count'], 3)
        self.assertEqual(first['unread_count'], 2)

    def test_conversation_list_with_open_and_search(self):
        response = self.client.get('/api/v1/conversations/', {'open': self.seller_a.id, 'search': 'ali'})
        self.assertEqual(len(response.data['conversations']), 1)
        self.assertEqual(response.data['conversations'][0]['unread_count'], 0)
        self.assertEqual(response.data['unread_total'], 1)

    def test_opening_conversation_marks_read(self):
        response = self.client.get(f'/api/v1/conversations/{self.seller_a.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['counterparty']['id'], self.seller_a.id)
        self.assertEqual([m['id'] for m in response.data['messages']], [self.m1.id, self.m2.id, self.m3.id])
        self.assertTrue(all(m['read'] for m in response.data['messages'] if m['receiver']['id'] == self.buyer.id))

        self.assertEqual(Message.objects.filter(receiver=self.buyer, read=False).count(), 1)
        response = self.client.get('/api/v1/messages/unread-count/')
        self.assertEqual(response.data['total'], 1)

    def test_unknown_conversation(self):
        response = self.client.get('/api/v1/conversations/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unread_count(self):
        response = self.client.get('/api/v1/messages/unread-count/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)
        self.assertEqual(response.data['by_sender'], {str(self.seller_a.id): 2, str(self.seller_b.id): 1})

    def test_deleting_listing_removes_its_messages(self):
        self.listing_a.delete()
        self.assertEqual(list(messages_for(self.buyer).values_list('id', flat=True)), [self.m4.id])
