from django.contrib.auth import get_user_model
from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.serializers import UserSerializer

User = get_user_model()

SEARCH_LIMIT = 10


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    """Return the user behind the bearer token"""
    return Response(UserSerializer(request.user).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def search_users(request):
    """
    Case-insensitive match on email or name.
    An empty query returns no users rather than the whole table.
    """
    query = (request.query_params.get('q') or '').strip()
    if not query:
        return Response([])

    users = User.objects.filter(
        Q(email__icontains=query) | Q(name__icontains=query)
    ).order_by('email')[:SEARCH_LIMIT]
    return Response(UserSerializer(users, many=True).data)
