"""
Persistence service for support conversations.

Every method has a synchronous form used by the REST views and an
``a``-prefixed coroutine form used by the realtime hub; the coroutines run the
same code through ``database_sync_to_async``. Tracking identifiers are
normalized on the way in, and database failures surface as
``PersistenceError`` so callers can report them without crashing.
"""

import functools
import html
import logging

import bleach
from channels.db import database_sync_to_async
from django.db import DatabaseError, transaction
from django.utils import timezone

from .exceptions import NotFoundError, PersistenceError, ValidationError
from .models import Conversation, ConversationMessage, normalize_tracking_id

logger = logging.getLogger(__name__)


def clean_text(value):
    """
    Strip markup and surrounding whitespace from user supplied text.

    bleach escapes whatever it leaves behind; the result is unescaped again so
    a body like ``5 < 6 & 7`` is stored as plain text.
    """
    if not isinstance(value, str):
        return ''
    return html.unescape(bleach.clean(value, tags=[], attributes={}, strip=True)).strip()


def persistence_guard(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            logger.exception("Conversation store failure in %s", func.__name__)
            raise PersistenceError(f"Failed to save chat: {e}") from e
    return wrapper


class ConversationStore:

    def _load(self, **lookup):
        return Conversation.objects.prefetch_related('messages').get(**lookup)

    @persistence_guard
    def find_by_tracking_id(self, tracking_id):
        try:
            return self._load(tracking_id=normalize_tracking_id(tracking_id))
        except Conversation.DoesNotExist:
            return None

    @persistence_guard
    def find_or_create(self, tracking_id, customer_name, customer_email=None):
        """
        Return ``(conversation, created)`` for a tracking id, creating it on first contact.

        The unique constraint on ``tracking_id`` keeps concurrent first contacts
        down to a single row; ``get_or_create`` retries the lookup when it
        loses that race.
        """
        tracking_id = normalize_tracking_id(tracking_id)
        customer_name = clean_text(customer_name)
        if not customer_name:
            raise ValidationError('Customer name required')

        _, created = Conversation.objects.get_or_create(
            tracking_id=tracking_id,
            defaults={
                'customer_name': customer_name,
                'customer_email': (customer_email or '').strip() or None,
            },
        )
        if created:
            logger.info("Created conversation %s", tracking_id)
        return self._load(tracking_id=tracking_id), created

    @persistence_guard
    def append_message(self, conversation, sender, text, admin_id=None, admin_name=None):
        """
        Append one message and refresh the conversation metadata in a single write.

        Returns ``(conversation, message)`` where the conversation is reloaded
        with its full history.
        """
        text = clean_text(text)
        if not text:
            raise ValidationError('Message cannot be empty')
        if sender not in ConversationMessage.Sender.values:
            raise ValidationError(f"Unknown sender '{sender}'")

        is_admin = sender == ConversationMessage.Sender.ADMIN

        with transaction.atomic():
            try:
                locked = Conversation.objects.select_for_update().get(pk=conversation.pk)
            except Conversation.DoesNotExist:
                raise NotFoundError()

            now = timezone.now()
            message = ConversationMessage.objects.create(
                conversation=locked,
                sender=sender,
                message=text,
                timestamp=now,
                admin_id=str(admin_id) if is_admin else None,
                admin_name=admin_name if is_admin else None,
            )

            locked.last_message_at = now
            locked.is_unread_by_admin = not is_admin
            locked.save(update_fields=['last_message_at', 'is_unread_by_admin', 'updated_at'])

        return self._load(pk=locked.pk), message

    @persistence_guard
    def list_all(self, status=None):
        conversations = Conversation.objects.prefetch_related('messages')
        if status:
            if status not in Conversation.Status.values:
                raise ValidationError(f"Invalid status '{status}'")
            conversations = conversations.filter(status=status)
        return list(conversations.order_by('-last_message_at', '-id'))

    @persistence_guard
    def update_status(self, tracking_id, status):
        if status not in Conversation.Status.values:
            raise ValidationError(f"Invalid status '{status}'")

        conversation = self._get_for_update(tracking_id)
        conversation.status = status
        conversation.is_unread_by_admin = False
        conversation.save(update_fields=['status', 'is_unread_by_admin', 'updated_at'])
        return self._load(pk=conversation.pk)

    @persistence_guard
    def mark_read(self, tracking_id):
        conversation = self._get_for_update(tracking_id)
        conversation.is_unread_by_admin = False
        conversation.save(update_fields=['is_unread_by_admin', 'updated_at'])
        return self._load(pk=conversation.pk)

    @persistence_guard
    def delete(self, tracking_id):
        conversation = self._get_for_update(tracking_id)
        conversation.delete()
        logger.info("Deleted conversation %s", conversation.tracking_id)
        return conversation.tracking_id

    def _get_for_update(self, tracking_id):
        try:
            return Conversation.objects.get(tracking_id=normalize_tracking_id(tracking_id))
        except Conversation.DoesNotExist:
            raise NotFoundError()

    afind_by_tracking_id = database_sync_to_async(find_by_tracking_id)
    afind_or_create = database_sync_to_async(find_or_create)
    aappend_message = database_sync_to_async(append_message)
    alist_all = database_sync_to_async(list_all)
    aupdate_status = database_sync_to_async(update_status)
    amark_read = database_sync_to_async(mark_read)
    adelete = database_sync_to_async(delete)
