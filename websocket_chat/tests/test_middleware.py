from django.core.cache import cache
from django.test import SimpleTestCase, override_settings

from trackdesk.jwt_utils import generate_staff_token
from websocket_chat.middleware import WebSocketAuthMiddleware, WebSocketSecurityMiddleware


class RecordingApp:
    """Inner ASGI app that remembers the scope it was called with"""

    def __init__(self):
        self.scope = None

    async def __call__(self, scope, receive, send):
        self.scope = scope


async def noop_receive():
    return {'type': 'websocket.connect'}


class WebSocketAuthMiddlewareTest(SimpleTestCase):
    def setUp(self):
        cache.clear()
        self.inner = RecordingApp()
        self.middleware = WebSocketAuthMiddleware(self.inner)
        self.sent = []

    async def send(self, message):
        self.sent.append(message)

    async def call(self, query_string=b'', client=None):
        scope = {'type': 'websocket', 'path': '/ws/chat/', 'query_string': query_string}
        if client:
            scope['client'] = client
        await self.middleware(scope, noop_receive, self.send)
        return scope

    async def test_anonymous_connection_passes_through(self):
        await self.call()

        self.assertIsNotNone(self.inner.scope)
        self.assertIsNone(self.inner.scope['staff'])
        self.assertIsNone(self.inner.scope['staff_token'])
        self.assertEqual(self.sent, [])

    async def test_valid_staff_token_sets_identity(self):
        token = generate_staff_token('staff-1', 'Alice', permissions=['canManageChats'])

        await self.call(f'token={token}'.encode())

        self.assertEqual(self.inner.scope['staff'].staff_id, 'staff-1')
        self.assertEqual(self.inner.scope['staff_token'], token)

    async def test_invalid_token_closes_connection(self):
        await self.call(b'token=not-a-jwt')

        self.assertIsNone(self.inner.scope)
        self.assertEqual(self.sent[0]['type'], 'websocket.close')
        self.assertEqual(self.sent[0]['code'], 4001)

    @override_settings(WEBSOCKET_RATE_LIMIT=2)
    async def test_rate_limit_per_client_address(self):
        for _ in range(2):
            self.inner.scope = None
            await self.call(client=('10.0.0.1', 50000))
            self.assertIsNotNone(self.inner.scope)

        self.inner.scope = None
        await self.call(client=('10.0.0.1', 50001))

        self.assertIsNone(self.inner.scope)
        self.assertEqual(self.sent[-1]['code'], 4029)

        # other addresses are counted separately
        await self.call(client=('10.0.0.2', 50000))
        self.assertIsNotNone(self.inner.scope)

    @override_settings(WEBSOCKET_RATE_LIMIT=1)
    async def test_check_rate_limit(self):
        self.assertTrue(await self.middleware.check_rate_limit('10.0.0.9'))
        self.assertFalse(await self.middleware.check_rate_limit('10.0.0.9'))


class WebSocketSecurityMiddlewareTest(SimpleTestCase):
    @override_settings(WEBSOCKET_MAX_MESSAGE_SIZE=1024)
    async def test_exposes_max_message_size(self):
        inner = RecordingApp()

        async def send(message):
            pass

        await WebSocketSecurityMiddleware(inner)({'type': 'websocket'}, noop_receive, send)

        self.assertEqual(inner.scope['max_message_size'], 1024)
