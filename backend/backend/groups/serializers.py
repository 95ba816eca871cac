from rest_framework import serializers

from accounts.serializers import UserSerializer
from consumption.serializers import ConsumptionSerializer

from .models import Group, Membership, Message


class MembershipSerializer(serializers.ModelSerializer):
    userId = serializers.UUIDField(source='user_id', read_only=True)
    groupId = serializers.UUIDField(source='group_id', read_only=True)
    joinedAt = serializers.DateTimeField(source='joined_at', read_only=True)
    user = UserSerializer(read_only=True)

    class Meta:
        model = Membership
        fields = ['userId', 'groupId', 'role', 'joinedAt', 'user']
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    members = MembershipSerializer(source='memberships', many=True, read_only=True)

    class Meta:
        model = Group
        fields = ['id', 'name', 'createdAt', 'updatedAt', 'members']
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    userId = serializers.UUIDField(source='user_id', read_only=True)
    groupId = serializers.UUIDField(source='group_id', read_only=True)
    consumptionId = serializers.UUIDField(source='consumption_id', read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    user = UserSerializer(read_only=True)
    consumption = ConsumptionSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Message
        fields = ['id', 'content', 'userId', 'groupId', 'consumptionId', 'createdAt', 'user', 'consumption']
        read_only_fields = fields


class GroupInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)


class InviteSerializer(serializers.Serializer):
    email = serializers.EmailField()


class SendMessageSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    consumptionId = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get('content') and not attrs.get('consumptionId'):
            raise serializers.ValidationError('A message needs content or a consumption')
        return attrs
