from django.contrib import admin
from django.test import RequestFactory, TestCase

from conversations.admin import ConversationAdmin, ConversationMessageInline
from conversations.models import Conversation, ConversationMessage


class ConversationAdminTest(TestCase):
    def setUp(self):
        self.conversation = Conversation.objects.create(tracking_id='TRK-ABC123XYZ0', customer_name='Jane')
        ConversationMessage.objects.create(conversation=self.conversation, sender='user', message='hello')
        self.request = RequestFactory().get('/admin/')

    def test_messages_have_no_standalone_admin(self):
        self.assertTrue(admin.site.is_registered(Conversation))
        self.assertFalse(admin.site.is_registered(ConversationMessage))

    def test_message_inline_is_read_only(self):
        inline = ConversationMessageInline(Conversation, admin.site)

        self.assertFalse(inline.has_add_permission(self.request, self.conversation))
        self.assertFalse(inline.has_change_permission(self.request, self.conversation))
        self.assertFalse(inline.has_delete_permission(self.request, self.conversation))
        self.assertEqual(set(inline.readonly_fields), set(inline.fields))
        self.assertIn('message', inline.readonly_fields)

    def test_conversation_admin_uses_message_inline(self):
        self.assertIn(ConversationMessageInline, ConversationAdmin.inlines)
