from django.conf import settings
from django.db import models


class Page(models.Model):
    """
    Represents a page in the page builder.
    The component tree is stored as a JSON array of components.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        null=True, blank=True, related_name='pages'
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, db_index=True)
    title = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)
    keywords = models.JSONField(null=True, blank=True, help_text="SEO keywords")
    author = models.CharField(max_length=255, default='System')
    components = models.JSONField(default=list, help_text="JSON array of page components")
    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.name} ({self.slug})"
