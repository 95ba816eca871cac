from rest_framework import serializers

from .component_tree import COMPONENT_TYPES
from .models import Page


def validate_slug_value(value):
    """Ensure slug is URL-safe"""
    if not value.replace('-', '').replace('_', '').isalnum():
        raise serializers.ValidationError("Slug can only contain letters, numbers, hyphens, and underscores.")
    return value


class PageSerializer(serializers.ModelSerializer):
    metadata = serializers.SerializerMethodField()
    isPublished = serializers.BooleanField(source='is_published', read_only=True)
    userId = serializers.SerializerMethodField()

    class Meta:
        model = Page
        fields = ['id', 'name', 'slug', 'metadata', 'components', 'isPublished', 'userId']
        read_only_fields = fields

    def get_metadata(self, obj):
        timestamp = serializers.DateTimeField()
        return {
            'title': obj.title,
            'description': obj.description,
            'keywords': obj.keywords,
            'author': obj.author,
            'createdAt': timestamp.to_representation(obj.created_at),
            'updatedAt': timestamp.to_representation(obj.updated_at),
        }

    def get_userId(self, obj):
        return str(obj.user_id) if obj.user_id else None


class PageInputSerializer(serializers.Serializer):
    """Create/update payload for pages; use partial=True for updates"""
    name = serializers.CharField(max_length=255)
    slug = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    keywords = serializers.ListField(child=serializers.CharField(), required=False, allow_null=True)
    author = serializers.CharField(required=False, allow_null=True, max_length=255)
    components = serializers.ListField(child=serializers.DictField(), required=False, allow_null=True)
    isPublished = serializers.BooleanField(source='is_published', required=False, allow_null=True)

    def validate_slug(self, value):
        return validate_slug_value(value)


class ComponentInputSerializer(serializers.Serializer):
    """
    Shape check for component payloads. The tree itself drops fields that
    do not belong to the requested type.
    """
    type = serializers.ChoiceField(choices=COMPONENT_TYPES)
    content = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    src = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    alt = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    iconName = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    size = serializers.FloatField(required=False, allow_null=True)
    color = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    style = serializers.DictField(required=False, allow_null=True)
    position = serializers.DictField(required=False, allow_null=True)
    children = serializers.ListField(child=serializers.DictField(), required=False, allow_null=True)


def component_payload(request_data, partial=False):
    """Validate a component payload and return the raw fields it carries"""
    serializer = ComponentInputSerializer(data=request_data, partial=partial)
    serializer.is_valid(raise_exception=True)
    return {key: request_data[key] for key in serializer.fields if key in request_data}


def component_list(components):
    return [component.to_dict() for component in components]
