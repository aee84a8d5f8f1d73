import re

from django.db import models
from django.utils import timezone

from .exceptions import ValidationError

# Group names on the channel layer only accept this alphabet
TRACKING_ID_PATTERN = re.compile(r'^[A-Z0-9._\-]{1,64}$')


def normalize_tracking_id(tracking_id):
    """Strip and upper-case a tracking identifier, rejecting anything unusable as a room key."""
    if not isinstance(tracking_id, str):
        raise ValidationError('Tracking ID required')

    normalized = tracking_id.strip().upper()
    if not normalized:
        raise ValidationError('Tracking ID required')
    if not TRACKING_ID_PATTERN.match(normalized):
        raise ValidationError('Invalid tracking ID')
    return normalized


class Conversation(models.Model):
    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        RESOLVED = 'resolved', 'Resolved'
        CLOSED = 'closed', 'Closed'

    tracking_id = models.CharField(max_length=64, unique=True)
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField(blank=True, null=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    is_unread_by_admin = models.BooleanField(default=False)
    last_message_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'conversations_conversation'
        indexes = [
            models.Index(fields=['status'], name='conversation_status_idx'),
            models.Index(fields=['-last_message_at'], name='conversation_last_msg_idx'),
        ]

    def save(self, *args, **kwargs):
        self.tracking_id = normalize_tracking_id(self.tracking_id)
        if self.customer_email:
            self.customer_email = self.customer_email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"Conversation {self.tracking_id}"


class ConversationMessage(models.Model):
    class Sender(models.TextChoices):
        USER = 'user', 'Customer'
        ADMIN = 'admin', 'Staff'

    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='messages')
    sender = models.CharField(max_length=8, choices=Sender.choices)
    message = models.TextField()
    timestamp = models.DateTimeField(default=timezone.now)
    admin_id = models.CharField(max_length=100, blank=True, null=True)
    admin_name = models.CharField(max_length=255, blank=True, null=True)

    class Meta:
        db_table = 'conversations_conversationmessage'
        ordering = ['id']

    def __str__(self):
        return f"{self.sender}: {self.message[:50]}..."
