from rest_framework import serializers

from accounts.serializers import UserSerializer

from .models import Consumption


class ConsumptionSerializer(serializers.ModelSerializer):
    userId = serializers.UUIDField(source='user_id', read_only=True)
    groupId = serializers.UUIDField(source='group_id', read_only=True, allow_null=True)
    user = UserSerializer(read_only=True)
    group = serializers.SerializerMethodField()

    class Meta:
        model = Consumption
        fields = ['id', 'amount', 'description', 'date', 'userId', 'groupId', 'user', 'group']
        read_only_fields = fields

    def get_group(self, obj):
        if obj.group_id is None:
            return None
        return {'id': str(obj.group.id), 'name': obj.group.name}


class ConsumptionInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(max_length=500)
    date = serializers.DateTimeField(required=False, allow_null=True)
    groupId = serializers.UUIDField(required=False, allow_null=True)
