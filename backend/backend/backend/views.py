from django.db import DatabaseError, connection
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


@api_view(['GET'])
@permission_classes([AllowAny])
def greeting(request):
    return Response({'message': 'Hello from the page builder backend!'})


@api_view(['GET'])
@permission_classes([AllowAny])
def test_db(request):
    """Backend health check, including a round trip to the database"""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
            cursor.fetchone()
    except DatabaseError as e:
        return Response(
            {'status': 'error', 'message': f'Database unavailable: {e}'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response({'status': 'ok', 'message': 'Backend is running and the database is reachable.'})
