import logging

from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings

from conversations.exceptions import ValidationError
from .apps import get_hub
from .hub import Connection
from .protocol import (
    Broadcast,
    OutboundEvent,
    Reply,
    Subscribe,
    encode_frame,
    parse_frame,
    room_message,
)

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncWebsocketConsumer):
    """
    WebSocket consumer for support chat.

    Bridges websocket frames to the ChatHub: inbound frames are parsed and
    dispatched, and the effects the hub returns are applied to this socket
    and the channel layer rooms.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.hub = None
        self.connection = None
        self.rooms = set()

    async def connect(self):
        """Accept every client; staff identity, if any, was attached by the auth middleware"""
        self.hub = get_hub()
        self.connection = Connection(
            session_id=self.channel_name,
            credential=self.scope.get('staff_token'),
        )

        await self.accept()

        staff = self.scope.get('staff')
        logger.info(
            "Client connected: %s%s",
            self.channel_name,
            f" (staff {staff.staff_id})" if staff else "",
        )

    async def disconnect(self, code):
        """Drop presence entries and room memberships for this session"""
        if self.connection:
            self.hub.disconnect(self.connection)

        for room in list(self.rooms):
            await self.channel_layer.group_discard(room, self.channel_name)
        self.rooms.clear()

        logger.info("Client disconnected: %s (code %s)", self.channel_name, code)

    async def receive(self, text_data=None, bytes_data=None):
        """Handle incoming WebSocket frames"""
        if text_data is None:
            await self.send_error("Binary frames are not supported")
            return

        max_size = self.scope.get('max_message_size', settings.WEBSOCKET_MAX_MESSAGE_SIZE)
        if len(text_data) > max_size:
            await self.send_error("Message too large")
            return

        try:
            event = parse_frame(text_data)
        except ValidationError as e:
            await self.send_error(e.message)
            return

        effects = await self.hub.dispatch(self.connection, event)
        await self.apply_effects(effects)

    async def apply_effects(self, effects):
        for effect in effects:
            if isinstance(effect, Subscribe):
                try:
                    await self.channel_layer.group_add(effect.room, self.channel_name)
                except Exception:
                    logger.exception("Failed to add %s to %s", self.channel_name, effect.room)
                    await self.send_error("Failed to join chat")
                    continue
                self.rooms.add(effect.room)
            elif isinstance(effect, Reply):
                await self.send_event(effect.event, effect.payload)
            elif isinstance(effect, Broadcast):
                try:
                    await self.channel_layer.group_send(
                        effect.room,
                        room_message(
                            effect.event,
                            effect.payload,
                            sender_channel=self.channel_name if effect.exclude_sender else None,
                        ),
                    )
                except Exception:
                    # fire-and-forget, the write already succeeded
                    logger.exception("Failed to push %s to %s", effect.event, effect.room)

    async def chat_event(self, event):
        """Deliver a room event to this socket"""
        if event.get('sender_channel') == self.channel_name:
            return
        await self.send_event(event['event'], event['payload'])

    async def send_event(self, event, payload):
        await self.send(text_data=encode_frame(event, payload))

    async def send_error(self, message):
        """Send error message to client"""
        await self.send_event(OutboundEvent.ERROR, {'message': message})
