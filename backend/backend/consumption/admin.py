from django.contrib import admin
from .models import Consumption


@admin.register(Consumption)
class ConsumptionAdmin(admin.ModelAdmin):
    list_display = ('description', 'amount', 'user', 'group', 'date')
    list_filter = ('group',)
