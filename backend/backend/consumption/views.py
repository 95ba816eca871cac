from rest_framework import permissions, status, viewsets
from rest_framework.response import Response

from .serializers import ConsumptionInputSerializer, ConsumptionSerializer
from .services import ConsumptionService


class ConsumptionViewSet(viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    def list(self, request):
        items = ConsumptionService().list_for_user(request.user)
        return Response(ConsumptionSerializer(items, many=True).data)

    def create(self, request):
        serializer = ConsumptionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        consumption = ConsumptionService().create(request.user, serializer.validated_data)
        return Response(ConsumptionSerializer(consumption).data, status=status.HTTP_201_CREATED)
