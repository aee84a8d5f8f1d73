import logging
import time
from urllib.parse import parse_qs

from channels.middleware import BaseMiddleware
from django.conf import settings
from django.core.cache import cache

from trackdesk.jwt_utils import get_staff_from_token

logger = logging.getLogger(__name__)


class WebSocketAuthMiddleware(BaseMiddleware):
    """
    Middleware for WebSocket authentication and rate limiting.

    Customers connect anonymously. Staff pass their JWT as ``?token=``; a
    token that does not verify closes the socket, a valid one puts the staff
    identity and the raw credential on the scope.
    """

    async def __call__(self, scope, receive, send):
        query_string = scope.get('query_string', b'').decode()
        query_params = parse_qs(query_string)

        token = query_params.get('token', [None])[0]

        scope['staff'] = None
        scope['staff_token'] = None

        if token:
            staff = get_staff_from_token(token)
            if staff is None:
                logger.warning("Rejected websocket with invalid staff token")
                await send({
                    'type': 'websocket.close',
                    'code': 4001,
                    'reason': 'Invalid authentication token'
                })
                return
            scope['staff'] = staff
            scope['staff_token'] = token

        client = scope.get('client')
        if client and not await self.check_rate_limit(client[0]):
            await send({
                'type': 'websocket.close',
                'code': 4029,
                'reason': 'Rate limit exceeded'
            })
            return

        return await super().__call__(scope, receive, send)

    async def check_rate_limit(self, client_key):
        """Check if a client address has exceeded the connection rate limit"""
        cache_key = f"websocket_rate_limit:{client_key}"
        current_time = int(time.time())

        rate_data = await cache.aget(cache_key, {'count': 0, 'window_start': current_time})

        # 1 minute window
        if current_time - rate_data['window_start'] >= 60:
            rate_data = {'count': 0, 'window_start': current_time}

        if rate_data['count'] >= settings.WEBSOCKET_RATE_LIMIT:
            logger.warning("Websocket rate limit exceeded for %s", client_key)
            return False

        rate_data['count'] += 1
        await cache.aset(cache_key, rate_data, 60)

        return True


class WebSocketSecurityMiddleware(BaseMiddleware):
    """
    Additional security middleware for WebSocket connections
    Exposes the frame size limit to consumers through the scope
    """

    async def __call__(self, scope, receive, send):
        scope['max_message_size'] = settings.WEBSOCKET_MAX_MESSAGE_SIZE

        return await super().__call__(scope, receive, send)
