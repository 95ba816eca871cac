import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class Image(models.Model):
    """
    Metadata for one uploaded image and the public URLs of its stored variants.
    `url_original` is always set; derived resolutions are best-effort.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    filename = models.CharField(max_length=255, unique=True)
    original_name = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=100)
    size = models.BigIntegerField()
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)
    url_tiny = models.URLField(max_length=1000, null=True, blank=True)
    url_medium = models.URLField(max_length=1000, null=True, blank=True)
    url_large = models.URLField(max_length=1000, null=True, blank=True)
    url_original = models.URLField(max_length=1000)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='images',
    )
    uploaded_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'images'
        ordering = ['-uploaded_at']

    def __str__(self):
        return f"{self.original_name} ({self.filename})"

    def url_for(self, resolution):
        return getattr(self, f"url_{resolution}", None)
