from django.contrib import admin
from .models import GreenCoffee


@admin.register(GreenCoffee)
class GreenCoffeeAdmin(admin.ModelAdmin):
    """Admin interface for green coffee stock."""

    list_display = ['name', 'grade', 'country', 'producer', 'quantity', 'updated_at']
    list_filter = ['grade', 'country']
    search_fields = ['name', 'country', 'producer']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['grade', 'name']
