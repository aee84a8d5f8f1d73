"""
Event envelope for the support chat websocket.

Every frame is a JSON object ``{"type": <event name>, "data": <payload>}``.
Inbound frames are parsed into the frozen dataclasses below; the hub answers
with effect objects (``Subscribe``, ``Reply``, ``Broadcast``) that the
consumer applies to the channel layer.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from django.core.serializers.json import DjangoJSONEncoder

from conversations.exceptions import ValidationError

ADMIN_ROOM = 'admin-dashboard'
ROOM_MESSAGE_TYPE = 'chat.event'


def conversation_room(tracking_id: str) -> str:
    """Room name for an already normalized tracking id"""
    return f'conversation-{tracking_id}'


class InboundEvent:
    JOIN_CONVERSATION = 'join-conversation'
    CUSTOMER_MESSAGE = 'customer-message'
    STAFF_MESSAGE = 'staff-message'
    ADMIN_SUBSCRIBE = 'admin-subscribe'
    TYPING_INDICATOR = 'typing-indicator'


class OutboundEvent:
    CHAT_HISTORY = 'chat-history'
    NEW_MESSAGE = 'new-message'
    CONVERSATION_UPDATED = 'conversation-updated'
    CONVERSATION_DELETED = 'conversation-deleted'
    TYPING_INDICATOR = 'typing-indicator'
    ERROR = 'error'


@dataclass(frozen=True)
class JoinConversation:
    tracking_id: str


@dataclass(frozen=True)
class CustomerMessage:
    tracking_id: str
    message: str
    customer_name: str
    customer_email: Optional[str] = None


@dataclass(frozen=True)
class StaffMessage:
    tracking_id: str
    message: str
    staff_id: str
    staff_name: str


@dataclass(frozen=True)
class AdminSubscribe:
    pass


@dataclass(frozen=True)
class TypingIndicator:
    tracking_id: str
    # relayed untouched to the other room members
    payload: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Subscribe:
    room: str


@dataclass(frozen=True)
class Reply:
    event: str
    payload: Any


@dataclass(frozen=True)
class Broadcast:
    room: str
    event: str
    payload: Any
    exclude_sender: bool = False


def _text(data, key):
    value = data.get(key)
    if value is None:
        return ''
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise ValidationError(f"Field '{key}' must be a string")
    return value.strip()


def _object(data):
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Invalid message data')
    return data


def parse_event(event_type, data):
    """Build the typed inbound event for a frame's type and data."""
    if event_type == InboundEvent.JOIN_CONVERSATION:
        if isinstance(data, str):
            return JoinConversation(tracking_id=data.strip())
        return JoinConversation(tracking_id=_text(_object(data), 'trackingId'))

    if event_type == InboundEvent.CUSTOMER_MESSAGE:
        data = _object(data)
        return CustomerMessage(
            tracking_id=_text(data, 'trackingId'),
            message=_text(data, 'message'),
            customer_name=_text(data, 'customerName'),
            customer_email=_text(data, 'customerEmail') or None,
        )

    if event_type == InboundEvent.STAFF_MESSAGE:
        data = _object(data)
        return StaffMessage(
            tracking_id=_text(data, 'trackingId'),
            message=_text(data, 'message'),
            staff_id=_text(data, 'staffId'),
            staff_name=_text(data, 'staffName'),
        )

    if event_type == InboundEvent.ADMIN_SUBSCRIBE:
        return AdminSubscribe()

    if event_type == InboundEvent.TYPING_INDICATOR:
        data = _object(data)
        return TypingIndicator(tracking_id=_text(data, 'trackingId'), payload=data)

    raise ValidationError('Unknown message type')


def parse_frame(text_data):
    """
    Decode one websocket text frame into an inbound event.

    Raises:
        ValidationError: for malformed JSON, non-object frames and unknown types
    """
    try:
        frame = json.loads(text_data)
    except (TypeError, ValueError):
        raise ValidationError('Invalid JSON format')

    if not isinstance(frame, dict) or not isinstance(frame.get('type'), str):
        raise ValidationError('Invalid frame, expected {"type": ..., "data": ...}')

    return parse_event(frame['type'], frame.get('data'))


def encode_frame(event, payload):
    return json.dumps({'type': event, 'data': payload}, cls=DjangoJSONEncoder)


def room_message(event, payload, sender_channel=None):
    """Channel layer message delivered to every consumer in a room"""
    return {
        'type': ROOM_MESSAGE_TYPE,
        'event': event,
        'payload': payload,
        'sender_channel': sender_channel,
    }
