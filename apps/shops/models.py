from django.db import models
import uuid


class Shop(models.Model):
    """Retail shop that orders roasted coffee from the roastery."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, unique=True)
    address = models.CharField(max_length=500, blank=True)

    # Stock thresholds used for inventory alerts (bag counts)
    min_coffee_quantity_small = models.PositiveIntegerField(default=10)
    min_coffee_quantity_large = models.PositiveIntegerField(default=5)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_shops'
    )

    class Meta:
        db_table = 'shops'
        ordering = ['name']

    def __str__(self):
        return self.name
