class ChatError(Exception):
    """Base class for chat failures reported back to the caller"""

    default_message = 'Chat operation failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ChatError):
    default_message = 'Invalid message data'


class NotFoundError(ChatError):
    default_message = 'Chat not found'


class PersistenceError(ChatError):
    default_message = 'Failed to save chat'


class AuthorizationError(ChatError):
    default_message = 'Not authorized'
