from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


class CustomUserAdmin(BaseUserAdmin):
    list_display = ('email', 'username', 'name', 'is_staff', 'date_joined')
    list_filter = ('is_staff', 'is_superuser', 'is_active')
    search_fields = ('email', 'username', 'name')
    ordering = ('email',)
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Profile', {
            'fields': ('name', 'avatar_url')
        }),
    )


admin.site.register(User, CustomUserAdmin)
