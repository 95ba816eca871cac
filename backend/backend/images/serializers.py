from rest_framework import serializers

from .models import Image
from .processing import ORIGINAL


class ImageSerializer(serializers.ModelSerializer):
    """
    Camel-cased image metadata. `url` points at the resolution named by the
    `preferred` context key and falls back to the original.
    """
    originalName = serializers.CharField(source='original_name', read_only=True)
    mimeType = serializers.CharField(source='mime_type', read_only=True)
    url = serializers.SerializerMethodField()
    urlTiny = serializers.CharField(source='url_tiny', read_only=True, allow_null=True)
    urlMedium = serializers.CharField(source='url_medium', read_only=True, allow_null=True)
    urlLarge = serializers.CharField(source='url_large', read_only=True, allow_null=True)
    urlOriginal = serializers.CharField(source='url_original', read_only=True)
    uploadedAt = serializers.DateTimeField(source='uploaded_at', read_only=True)
    userId = serializers.SerializerMethodField()

    class Meta:
        model = Image
        fields = [
            'id', 'filename', 'originalName', 'mimeType', 'size', 'width', 'height',
            'url', 'urlTiny', 'urlMedium', 'urlLarge', 'urlOriginal', 'uploadedAt', 'userId',
        ]
        read_only_fields = fields

    def get_url(self, obj):
        preferred = self.context.get('preferred') or ORIGINAL
        return obj.url_for(preferred) or obj.url_original

    def get_userId(self, obj):
        return str(obj.user_id) if obj.user_id else None


class UploadFromUrlSerializer(serializers.Serializer):
    url = serializers.CharField(max_length=2048)
