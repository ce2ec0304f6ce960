from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class CoffeeGrade(models.TextChoices):
    SPECIALTY = 'SPECIALTY', 'Specialty'
    PREMIUM = 'PREMIUM', 'Premium'
    RARITY = 'RARITY', 'Rarity'


class GreenCoffee(models.Model):
    """Green coffee lot held by the roastery, in kilograms."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, db_index=True)
    grade = models.CharField(max_length=20, choices=CoffeeGrade.choices, default=CoffeeGrade.SPECIALTY)
    country = models.CharField(max_length=100, blank=True)
    producer = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)

    # Sellable stock; reserved when a retail order is placed
    quantity = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        default=Decimal('0.000'),
        validators=[MinValueValidator(Decimal('0.000'))]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_coffees'
    )

    class Meta:
        db_table = 'green_coffee'
        unique_together = [['name', 'country', 'producer']]
        indexes = [
            models.Index(fields=['grade']),
        ]
        ordering = ['grade', 'name']

    def __str__(self):
        return f"{self.name} ({self.get_grade_display()})"
