import logging

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from trackdesk.permissions import CanManageChats
from websocket_chat.protocol import OutboundEvent
from websocket_chat.services import ChatBroadcastService
from .exceptions import ChatError, NotFoundError, PersistenceError, ValidationError
from .serializers import (
    ConversationSerializer,
    ConversationCreateSerializer,
    ConversationStatusSerializer,
)
from .store import ConversationStore

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(error):
    code = ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
    return Response({'message': error.message}, status=code)


class ChatStoreMixin:
    store_class = ConversationStore

    def get_store(self):
        return self.store_class()


class ChatListCreateView(ChatStoreMixin, APIView):
    """Staff listing of every chat, and the public create-or-get entry point"""

    def get_permissions(self):
        if self.request.method == 'POST':
            return [AllowAny()]
        return [CanManageChats()]

    def get(self, request):
        """List chats, newest activity first, optionally filtered by ?status="""
        try:
            chats = self.get_store().list_all(status=request.GET.get('status') or None)
        except ChatError as e:
            return error_response(e)

        return Response({
            'chats': ConversationSerializer(chats, many=True).data,
            'total_count': len(chats),
        })

    def post(self, request):
        """Create the chat for a tracking id, or return the existing one"""
        serializer = ConversationCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                'message': 'Please provide tracking ID and customer name',
                'errors': serializer.errors,
            }, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            chat, created = self.get_store().find_or_create(
                data['trackingId'],
                data['customerName'],
                data.get('customerEmail'),
            )
        except ChatError as e:
            return error_response(e)

        return Response(
            {'chat': ConversationSerializer(chat).data, 'is_new': created},
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class ChatDetailView(ChatStoreMixin, APIView):
    """Public lookup by tracking id; staff may delete the whole chat"""

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [CanManageChats()]

    def get(self, request, tracking_id):
        try:
            chat = self.get_store().find_by_tracking_id(tracking_id)
        except ChatError as e:
            return error_response(e)

        if chat is None:
            return error_response(NotFoundError())
        return Response({'chat': ConversationSerializer(chat).data})

    def delete(self, request, tracking_id):
        try:
            deleted_id = self.get_store().delete(tracking_id)
        except ChatError as e:
            return error_response(e)

        logger.info("Chat %s deleted by staff %s", deleted_id, request.auth.staff_id)
        ChatBroadcastService.notify_admin_dashboard(
            OutboundEvent.CONVERSATION_DELETED, {'trackingId': deleted_id}
        )
        return Response({
            'message': 'Chat deleted successfully',
            'trackingId': deleted_id,
        })


class ChatStatusView(ChatStoreMixin, APIView):
    permission_classes = [CanManageChats]

    def put(self, request, tracking_id):
        serializer = ConversationStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                'message': 'Please provide a valid status',
                'errors': serializer.errors,
            }, status=status.HTTP_400_BAD_REQUEST)

        try:
            chat = self.get_store().update_status(tracking_id, serializer.validated_data['status'])
        except ChatError as e:
            return error_response(e)

        data = ConversationSerializer(chat).data
        ChatBroadcastService.notify_admin_dashboard(
            OutboundEvent.CONVERSATION_UPDATED, {'conversation': data}
        )
        return Response({'message': 'Chat status updated successfully', 'chat': data})


class ChatMarkReadView(ChatStoreMixin, APIView):
    permission_classes = [CanManageChats]

    def put(self, request, tracking_id):
        try:
            chat = self.get_store().mark_read(tracking_id)
        except ChatError as e:
            return error_response(e)

        data = ConversationSerializer(chat).data
        ChatBroadcastService.notify_admin_dashboard(
            OutboundEvent.CONVERSATION_UPDATED, {'conversation': data}
        )
        return Response({'message': 'Chat marked as read', 'chat': data})
