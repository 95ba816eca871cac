from django.contrib import admin
from .models import Image


@admin.register(Image)
class ImageAdmin(admin.ModelAdmin):
    list_display = ('original_name', 'filename', 'mime_type', 'size', 'user', 'uploaded_at')
    list_filter = ('mime_type',)
    search_fields = ('original_name', 'filename')
    readonly_fields = ('url_tiny', 'url_medium', 'url_large', 'url_original')
