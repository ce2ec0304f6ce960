from django.contrib import admin
from .models import Shop


@admin.register(Shop)
class ShopAdmin(admin.ModelAdmin):
    """Admin interface for shops and their stock thresholds."""

    list_display = [
        'name',
        'address',
        'min_coffee_quantity_small',
        'min_coffee_quantity_large',
        'created_at',
    ]
    search_fields = ['name', 'address']
    readonly_fields = ['created_at', 'updated_at']
