import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from .protocol import ADMIN_ROOM, room_message

logger = logging.getLogger(__name__)


class ChatBroadcastService:
    """
    Pushes chat events from synchronous code (REST views, admin actions)
    into the websocket rooms
    """

    @staticmethod
    def send_to_room(room, event, payload):
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning("No channel layer configured, dropping %s for %s", event, room)
            return False

        try:
            async_to_sync(channel_layer.group_send)(room, room_message(event, payload))
        except Exception:
            # fire-and-forget, the write already succeeded
            logger.exception("Failed to push %s to %s", event, room)
            return False
        return True

    @classmethod
    def notify_admin_dashboard(cls, event, payload):
        return cls.send_to_room(ADMIN_ROOM, event, payload)
