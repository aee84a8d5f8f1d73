"""
Realtime hub for support chat.

``ChatHub.dispatch`` runs the handler for one inbound event and returns the
effects to apply (room subscriptions, a reply to the sender, room
broadcasts). It never touches the network itself, which keeps the event
handlers testable with nothing more than a database.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from django.conf import settings

from conversations.exceptions import (
    AuthorizationError,
    ChatError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from conversations.models import ConversationMessage, normalize_tracking_id
from conversations.serializers import ConversationMessageSerializer, ConversationSerializer
from conversations.store import ConversationStore, clean_text
from trackdesk.jwt_utils import StaffIdentity, get_jwt_manager
from .presence import PresenceRegistry
from .protocol import (
    ADMIN_ROOM,
    AdminSubscribe,
    Broadcast,
    CustomerMessage,
    JoinConversation,
    OutboundEvent,
    Reply,
    StaffMessage,
    Subscribe,
    TypingIndicator,
    conversation_room,
)

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """One websocket session as the hub sees it"""
    session_id: str
    # raw staff JWT from the handshake, re-verified on every staff event
    credential: Optional[str] = None


class ChatHub:

    def __init__(self, store=None, presence=None, jwt_manager=None, trust_asserted_staff=None):
        self.store = store or ConversationStore()
        self.presence = presence or PresenceRegistry()
        self.jwt_manager = jwt_manager or get_jwt_manager()
        self._trust_asserted_staff = trust_asserted_staff
        self._handlers = {
            JoinConversation: (self.join_conversation, 'Failed to join chat'),
            CustomerMessage: (self.customer_message, 'Failed to send message'),
            StaffMessage: (self.staff_message, 'Failed to send message'),
            AdminSubscribe: (self.admin_subscribe, 'Failed to join dashboard'),
            TypingIndicator: (self.typing_indicator, 'Failed to relay typing indicator'),
        }

    @property
    def trust_asserted_staff(self):
        if self._trust_asserted_staff is None:
            return getattr(settings, 'CHAT_TRUST_ASSERTED_STAFF', False)
        return self._trust_asserted_staff

    async def dispatch(self, connection, event):
        """
        Handle one inbound event for ``connection``.

        Failures never escape: they become a single ``error`` reply to the
        sender and no broadcast is produced.
        """
        handler, failure_message = self._handlers[type(event)]
        try:
            return await handler(connection, event)
        except PersistenceError as e:
            logger.error("Store failure on %s from %s: %s", type(event).__name__, connection.session_id, e)
            return [self.error(failure_message)]
        except ChatError as e:
            logger.info("Rejected %s from %s: %s", type(event).__name__, connection.session_id, e.message)
            return [self.error(e.message)]
        except Exception:
            logger.exception("Unhandled error on %s from %s", type(event).__name__, connection.session_id)
            return [self.error(failure_message)]

    def disconnect(self, connection):
        removed = self.presence.discard_session(connection.session_id)
        if removed:
            logger.info("Session %s left %s", connection.session_id, ', '.join(removed))
        return removed

    @staticmethod
    def error(message):
        return Reply(OutboundEvent.ERROR, {'message': message})

    async def join_conversation(self, connection, event):
        tracking_id = normalize_tracking_id(event.tracking_id)
        conversation = await self.store.afind_by_tracking_id(tracking_id)

        self.presence.record(tracking_id, connection.session_id)
        logger.info("Session %s joined %s", connection.session_id, conversation_room(tracking_id))

        effects = [Subscribe(conversation_room(tracking_id))]
        if conversation is not None:
            effects.append(Reply(OutboundEvent.CHAT_HISTORY, ConversationSerializer(conversation).data))
        return effects

    async def customer_message(self, connection, event):
        # checked against the sanitized form before any write, so a
        # markup-only body creates nothing
        if not (event.tracking_id and clean_text(event.message) and clean_text(event.customer_name)):
            raise ValidationError('Invalid message data')

        tracking_id = normalize_tracking_id(event.tracking_id)
        conversation, _ = await self.store.afind_or_create(
            tracking_id, event.customer_name, event.customer_email
        )
        conversation, message = await self.store.aappend_message(
            conversation, ConversationMessage.Sender.USER, event.message
        )
        logger.info("Customer message in %s", conversation_room(tracking_id))
        return self._fan_out(conversation, message)

    async def staff_message(self, connection, event):
        if not (event.tracking_id and clean_text(event.message) and event.staff_id and event.staff_name):
            raise ValidationError('Invalid message data')

        staff = self._verify_staff(connection, event.staff_id, event.staff_name)
        tracking_id = normalize_tracking_id(event.tracking_id)

        conversation = await self.store.afind_by_tracking_id(tracking_id)
        if conversation is None:
            raise NotFoundError()

        conversation, message = await self.store.aappend_message(
            conversation,
            ConversationMessage.Sender.ADMIN,
            event.message,
            admin_id=staff.staff_id,
            admin_name=staff.name,
        )
        logger.info("Staff %s replied in %s", staff.staff_id, conversation_room(tracking_id))
        return self._fan_out(conversation, message)

    async def admin_subscribe(self, connection, event):
        self._verify_staff(connection)
        logger.info("Session %s subscribed to %s", connection.session_id, ADMIN_ROOM)
        return [Subscribe(ADMIN_ROOM)]

    async def typing_indicator(self, connection, event):
        try:
            tracking_id = normalize_tracking_id(event.tracking_id)
        except ValidationError:
            return []
        return [Broadcast(
            conversation_room(tracking_id),
            OutboundEvent.TYPING_INDICATOR,
            event.payload,
            exclude_sender=True,
        )]

    def _fan_out(self, conversation, message):
        # The admin room gets every update, including staff replies
        data = ConversationSerializer(conversation).data
        return [
            Broadcast(
                conversation_room(conversation.tracking_id),
                OutboundEvent.NEW_MESSAGE,
                {'conversation': data, 'message': ConversationMessageSerializer(message).data},
            ),
            Broadcast(ADMIN_ROOM, OutboundEvent.CONVERSATION_UPDATED, {'conversation': data}),
        ]

    def _verify_staff(self, connection, asserted_id=None, asserted_name=None):
        """
        Resolve the staff member behind a staff-only event.

        The credential presented at connect time is verified again here so
        an expired or revoked token stops working mid-connection.
        """
        if self.trust_asserted_staff:
            if asserted_id is None:
                return None
            return StaffIdentity(staff_id=asserted_id, name=asserted_name)

        if not connection.credential:
            raise AuthorizationError('Staff credentials required')

        try:
            staff = self.jwt_manager.extract_staff(connection.credential)
        except jwt.InvalidTokenError as e:
            raise AuthorizationError(f'Not authorized, {e}')

        if asserted_id is not None and asserted_id != staff.staff_id:
            raise AuthorizationError('Staff identity does not match credentials')
        return staff
