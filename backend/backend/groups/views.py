from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .serializers import (
    GroupInputSerializer, GroupSerializer, InviteSerializer, MembershipSerializer,
    MessageSerializer, SendMessageSerializer,
)
from .services import GroupService


class GroupViewSet(viewsets.ViewSet):
    """
    Groups the current user belongs to, their members and their chat feed.
    """
    permission_classes = [permissions.IsAuthenticated]
    service_class = GroupService

    def get_service(self):
        return self.service_class()

    def list(self, request):
        groups = self.get_service().list_for_user(request.user)
        return Response(GroupSerializer(groups, many=True).data)

    def create(self, request):
        serializer = GroupInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        group = self.get_service().create(request.user, serializer.validated_data['name'])
        return Response(GroupSerializer(group).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(GroupSerializer(self.get_service().get(request.user, pk)).data)

    @action(detail=True, methods=['post'])
    def invite(self, request, pk=None):
        serializer = InviteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = self.get_service().invite(request.user, pk, serializer.validated_data['email'])
        return Response(MembershipSerializer(membership).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get', 'post'])
    def messages(self, request, pk=None):
        service = self.get_service()
        if request.method == 'POST':
            serializer = SendMessageSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            message = service.send_message(
                request.user, pk,
                content=serializer.validated_data.get('content'),
                consumption_id=serializer.validated_data.get('consumptionId'),
            )
            return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)
        return Response(MessageSerializer(service.get_messages(request.user, pk), many=True).data)
