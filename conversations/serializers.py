from rest_framework import serializers
from .models import Conversation, ConversationMessage


class ConversationMessageSerializer(serializers.ModelSerializer):
    adminId = serializers.CharField(source='admin_id', read_only=True)
    adminName = serializers.CharField(source='admin_name', read_only=True)

    class Meta:
        model = ConversationMessage
        fields = ['sender', 'message', 'timestamp', 'adminId', 'adminName']
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if instance.sender != ConversationMessage.Sender.ADMIN:
            data.pop('adminId', None)
            data.pop('adminName', None)
        return data


class ConversationSerializer(serializers.ModelSerializer):
    """Full conversation document, the shape every chat event and endpoint carries"""
    trackingId = serializers.CharField(source='tracking_id', read_only=True)
    customerName = serializers.CharField(source='customer_name', read_only=True)
    customerEmail = serializers.EmailField(source='customer_email', read_only=True, allow_null=True)
    messages = ConversationMessageSerializer(many=True, read_only=True)
    isUnreadByAdmin = serializers.BooleanField(source='is_unread_by_admin', read_only=True)
    lastMessageAt = serializers.DateTimeField(source='last_message_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Conversation
        fields = ['trackingId', 'customerName', 'customerEmail', 'messages', 'status',
                  'isUnreadByAdmin', 'lastMessageAt', 'createdAt', 'updatedAt']
        read_only_fields = fields


class ConversationCreateSerializer(serializers.Serializer):
    trackingId = serializers.CharField(max_length=64)
    customerName = serializers.CharField(max_length=255)
    customerEmail = serializers.EmailField(required=False, allow_null=True, allow_blank=True)


class ConversationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Conversation.Status.choices)
