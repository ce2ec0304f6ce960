from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class OrderStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    ROASTED = 'ROASTED', 'Roasted'
    DISPATCHED = 'DISPATCHED', 'Dispatched'
    DELIVERED = 'DELIVERED', 'Delivered'
    CANCELLED = 'CANCELLED', 'Cancelled'


TERMINAL_STATUSES = (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class RetailOrder(models.Model):
    """Order of roasted coffee placed by a shop."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    shop = models.ForeignKey(
        'shops.Shop',
        on_delete=models.CASCADE,
        related_name='orders'
    )
    ordered_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='retail_orders'
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'retail_orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at']),
            models.Index(fields=['shop', 'status']),
        ]

    def __str__(self):
        return f"Order {self.id} ({self.get_status_display()})"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES


class RetailOrderItem(models.Model):
    """
    One coffee on a retail order.

    ``small_bags`` predates the espresso/filter split and is only filled
    on older orders; new orders use the split fields.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        RetailOrder,
        on_delete=models.CASCADE,
        related_name='items'
    )
    coffee = models.ForeignKey(
        'coffee.GreenCoffee',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )

    # Bag counts: 200g small, 500g medium, 1kg large
    small_bags = models.PositiveIntegerField(default=0, null=True, blank=True)
    small_bags_espresso = models.PositiveIntegerField(default=0, null=True, blank=True)
    small_bags_filter = models.PositiveIntegerField(default=0, null=True, blank=True)
    medium_bags_espresso = models.PositiveIntegerField(default=0, null=True, blank=True)
    medium_bags_filter = models.PositiveIntegerField(default=0, null=True, blank=True)
    large_bags = models.PositiveIntegerField(default=0, null=True, blank=True)

    # Precomputed weight in kg, stored at order time
    total_quantity = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        default=Decimal('0.000'),
        validators=[MinValueValidator(Decimal('0.000'))]
    )

    class Meta:
        db_table = 'retail_order_items'

    def __str__(self):
        coffee_name = self.coffee.name if self.coffee else 'Unknown coffee'
        return f"{coffee_name} x {self.total_quantity} kg"


class RetailInventory(models.Model):
    """Roasted coffee on hand at a shop, credited when orders are delivered."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    shop = models.ForeignKey(
        'shops.Shop',
        on_delete=models.CASCADE,
        related_name='inventory'
    )
    coffee = models.ForeignKey(
        'coffee.GreenCoffee',
        on_delete=models.CASCADE,
        related_name='retail_inventory'
    )

    small_bags_espresso = models.PositiveIntegerField(default=0)
    small_bags_filter = models.PositiveIntegerField(default=0)
    medium_bags_espresso = models.PositiveIntegerField(default=0)
    medium_bags_filter = models.PositiveIntegerField(default=0)
    large_bags = models.PositiveIntegerField(default=0)
    total_quantity = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        default=Decimal('0.000')
    )

    last_order_date = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'retail_inventory'
        unique_together = [['shop', 'coffee']]
        verbose_name_plural = 'retail inventory'

    def __str__(self):
        return f"{self.shop} - {self.coffee}: {self.total_quantity} kg"

    @property
    def small_bags(self):
        return self.small_bags_espresso + self.small_bags_filter


class InventoryAdjustment(models.Model):
    """Audit record of a manual correction to a shop's inventory row."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    inventory = models.ForeignKey(
        RetailInventory,
        on_delete=models.CASCADE,
        related_name='adjustments'
    )
    adjusted_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='inventory_adjustments'
    )

    # Bag counts and total_quantity before and after the correction
    previous_values = models.JSONField(default=dict)
    new_values = models.JSONField(default=dict)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'retail_inventory_adjustments'
        ordering = ['-created_at']

    def __str__(self):
        return f"Adjustment of {self.inventory} at {self.created_at}"
