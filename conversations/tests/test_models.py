from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase

from conversations.exceptions import ValidationError
from conversations.models import Conversation, ConversationMessage, normalize_tracking_id


class NormalizeTrackingIdTest(SimpleTestCase):
    def test_uppercases_and_strips(self):
        self.assertEqual(normalize_tracking_id('  trk-abc123xyz0 '), 'TRK-ABC123XYZ0')

    def test_mixed_case_variants_collapse(self):
        variants = ['TRK-ABC123XYZ0', 'trk-abc123xyz0', 'Trk-AbC123xYz0']
        self.assertEqual({normalize_tracking_id(v) for v in variants}, {'TRK-ABC123XYZ0'})

    def test_empty_rejected(self):
        with self.assertRaisesMessage(ValidationError, 'Tracking ID required'):
            normalize_tracking_id('   ')

    def test_non_string_rejected(self):
        with self.assertRaises(ValidationError):
            normalize_tracking_id(None)

    def test_characters_outside_room_alphabet_rejected(self):
        with self.assertRaisesMessage(ValidationError, 'Invalid tracking ID'):
            normalize_tracking_id('trk abc/123')


class ConversationModelTest(TestCase):
    def setUp(self):
        self.conversation = Conversation.objects.create(
            tracking_id="trk-test123abc",
            customer_name="Jane",
            customer_email=" Jane@Example.COM ",
        )

    def test_conversation_creation(self):
        """Test that a conversation is stored with normalized keys and defaults"""
        self.assertEqual(self.conversation.tracking_id, "TRK-TEST123ABC")
        self.assertEqual(self.conversation.customer_email, "jane@example.com")
        self.assertEqual(self.conversation.status, Conversation.Status.ACTIVE)
        self.assertFalse(self.conversation.is_unread_by_admin)
        self.assertIsNotNone(self.conversation.last_message_at)
        self.assertIsNotNone(self.conversation.created_at)
        self.assertIsNotNone(self.conversation.updated_at)

    def test_conversation_str_representation(self):
        self.assertEqual(str(self.conversation), "Conversation TRK-TEST123ABC")

    def test_tracking_id_unique_across_case(self):
        """A lower-case duplicate normalizes onto the same key and is refused"""
        with self.assertRaises(IntegrityError), transaction.atomic():
            Conversation.objects.create(tracking_id="trk-test123abc", customer_name="Other")

    def test_empty_conversation_is_valid(self):
        self.assertEqual(self.conversation.messages.count(), 0)


class ConversationMessageModelTest(TestCase):
    def setUp(self):
        self.conversation = Conversation.objects.create(
            tracking_id="TRK-TEST123ABC",
            customer_name="Jane",
        )
        self.message = ConversationMessage.objects.create(
            conversation=self.conversation,
            sender=ConversationMessage.Sender.USER,
            message="Where is my order?",
        )

    def test_message_creation(self):
        self.assertEqual(self.message.sender, "user")
        self.assertEqual(self.message.message, "Where is my order?")
        self.assertIsNone(self.message.admin_id)
        self.assertIsNotNone(self.message.timestamp)

    def test_message_str_representation(self):
        self.assertEqual(str(self.message), "user: Where is my order?...")

    def test_message_ordering_is_insertion_order(self):
        """Messages come back in the order they were appended"""
        second = ConversationMessage.objects.create(
            conversation=self.conversation,
            sender=ConversationMessage.Sender.ADMIN,
            message="Second message",
            admin_id="staff-1",
            admin_name="Alice",
        )

        messages = list(self.conversation.messages.all())
        self.assertEqual(messages, [self.message, second])

    def test_messages_deleted_with_conversation(self):
        self.conversation.delete()
        self.assertFalse(ConversationMessage.objects.exists())
