from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    avatarUrl = serializers.CharField(source='avatar_url', read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='date_joined', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'avatarUrl', 'createdAt']
        read_only_fields = fields
