import json

from django.test import SimpleTestCase

from conversations.exceptions import ValidationError
from websocket_chat.protocol import (
    AdminSubscribe,
    CustomerMessage,
    JoinConversation,
    StaffMessage,
    TypingIndicator,
    conversation_room,
    encode_frame,
    parse_frame,
)


def frame(event_type, data=None):
    return json.dumps({'type': event_type, 'data': data})


class ParseFrameTest(SimpleTestCase):
    def test_join_with_bare_tracking_id(self):
        self.assertEqual(
            parse_frame(frame('join-conversation', 'trk-abc123xyz0')),
            JoinConversation(tracking_id='trk-abc123xyz0'),
        )

    def test_join_with_object_payload(self):
        event = parse_frame(frame('join-conversation', {'trackingId': ' trk-abc123xyz0 '}))
        self.assertEqual(event, JoinConversation(tracking_id='trk-abc123xyz0'))

    def test_customer_message(self):
        event = parse_frame(frame('customer-message', {
            'trackingId': 'trk-abc123xyz0',
            'message': ' Where is my order? ',
            'customerName': 'Jane',
        }))
        self.assertEqual(event, CustomerMessage(
            tracking_id='trk-abc123xyz0',
            message='Where is my order?',
            customer_name='Jane',
            customer_email=None,
        ))

    def test_staff_message_numeric_id(self):
        event = parse_frame(frame('staff-message', {
            'trackingId': 'TRK-ABC123XYZ0',
            'message': 'On its way',
            'staffId': 42,
            'staffName': 'Alice',
        }))
        self.assertEqual(event, StaffMessage('TRK-ABC123XYZ0', 'On its way', '42', 'Alice'))

    def test_missing_fields_parse_as_empty(self):
        """Required-field checks belong to the hub, parsing only shapes the data"""
        event = parse_frame(frame('customer-message', {'trackingId': 'TRK-ABC123XYZ0'}))
        self.assertEqual(event.message, '')
        self.assertEqual(event.customer_name, '')

    def test_admin_subscribe_without_data(self):
        self.assertEqual(parse_frame(json.dumps({'type': 'admin-subscribe'})), AdminSubscribe())

    def test_typing_keeps_payload_verbatim(self):
        payload = {'trackingId': 'trk-abc123xyz0', 'typing': True, 'name': 'Jane', 'extra': [1, 2]}
        event = parse_frame(frame('typing-indicator', payload))
        self.assertIsInstance(event, TypingIndicator)
        self.assertEqual(event.payload, payload)

    def test_invalid_json(self):
        with self.assertRaisesMessage(ValidationError, 'Invalid JSON format'):
            parse_frame('{not json')

    def test_non_object_frame(self):
        with self.assertRaises(ValidationError):
            parse_frame('["join-conversation"]')

    def test_unknown_type(self):
        with self.assertRaisesMessage(ValidationError, 'Unknown message type'):
            parse_frame(frame('leave-conversation', 'TRK-ABC123XYZ0'))

    def test_non_string_field(self):
        with self.assertRaises(ValidationError):
            parse_frame(frame('customer-message', {'trackingId': ['TRK'], 'message': 'x', 'customerName': 'y'}))


class EnvelopeTest(SimpleTestCase):
    def test_encode_frame(self):
        self.assertEqual(
            json.loads(encode_frame('error', {'message': 'boom'})),
            {'type': 'error', 'data': {'message': 'boom'}},
        )

    def test_room_names(self):
        self.assertEqual(conversation_room('TRK-ABC123XYZ0'), 'conversation-TRK-ABC123XYZ0')
