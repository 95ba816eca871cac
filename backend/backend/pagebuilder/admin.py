from django.contrib import admin
from .models import Page


@admin.register(Page)
class PageAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'user', 'is_published', 'updated_at')
    list_filter = ('is_published',)
    search_fields = ('name', 'slug', 'title')
