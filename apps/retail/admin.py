from django.contrib import admin
from django.utils.html import format_html
from .models import RetailOrder, RetailOrderItem, RetailInventory, InventoryAdjustment, OrderStatus
from .services import normalize_line_item


STATUS_COLORS = {
    OrderStatus.PENDING: ('#E5C49A', '#2C1810'),
    OrderStatus.CONFIRMED: ('#A47449', 'white'),
    OrderStatus.ROASTED: ('#A47449', 'white'),
    OrderStatus.DISPATCHED: ('#A47449', 'white'),
    OrderStatus.DELIVERED: ('#6B8E5E', 'white'),
    OrderStatus.CANCELLED: ('#B85C5C', 'white'),
}


class RetailOrderItemInline(admin.TabularInline):
    """Inline admin for line items within an order."""
    model = RetailOrderItem
    extra = 0
    fields = [
        'coffee',
        'small_bags',
        'small_bags_espresso',
        'small_bags_filter',
        'medium_bags_espresso',
        'medium_bags_filter',
        'large_bags',
        'total_quantity',
        'counted_kg',
    ]
    readonly_fields = ['counted_kg']

    def counted_kg(self, obj):
        """Weight recomputed from the bag counts."""
        if obj.pk is None:
            return '-'
        return normalize_line_item(obj).total_kg
    counted_kg.short_description = 'Counted kg'


@admin.register(RetailOrder)
class RetailOrderAdmin(admin.ModelAdmin):
    """
    Admin interface for retail orders.

    Status changes that move stock (delivery, cancellation) go through the
    API, so status is read-only here.
    """

    list_display = ['id', 'shop', 'status_badge', 'ordered_by', 'created_at', 'delivered_at']
    list_filter = ['status', 'shop', 'created_at']
    search_fields = ['shop__name', 'ordered_by__email']
    readonly_fields = ['status', 'created_at', 'updated_at', 'delivered_at']
    date_hierarchy = 'created_at'
    inlines = [RetailOrderItemInline]

    def status_badge(self, obj):
        """Display order status as colored badge."""
        bg, fg = STATUS_COLORS.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    def get_queryset(self, request):
        """Optimize query."""
        return super().get_queryset(request).select_related('shop', 'ordered_by')


@admin.register(RetailInventory)
class RetailInventoryAdmin(admin.ModelAdmin):
    """Admin interface for shop inventory rows."""

    list_display = [
        'shop',
        'coffee',
        'small_bags_espresso',
        'small_bags_filter',
        'medium_bags_espresso',
        'medium_bags_filter',
        'large_bags',
        'total_quantity',
        'last_order_date',
    ]
    list_filter = ['shop']
    search_fields = ['shop__name', 'coffee__name']
    readonly_fields = ['updated_at']


@admin.register(InventoryAdjustment)
class InventoryAdjustmentAdmin(admin.ModelAdmin):
    """Read-only audit trail of manual inventory corrections."""

    list_display = ['inventory', 'adjusted_by', 'created_at']
    list_filter = ['inventory__shop', 'created_at']
    search_fields = ['inventory__shop__name', 'inventory__coffee__name', 'adjusted_by__email']
    readonly_fields = ['inventory', 'adjusted_by', 'previous_values', 'new_values', 'created_at']

    def has_add_permission(self, request):
        return False
