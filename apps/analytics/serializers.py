"""
Serializers for analytics app.

This module contains:
1. Input serializers - Query parameter validation
2. Response serializers - API documentation and output formatting
"""

from rest_framework import serializers
from datetime import datetime, timedelta

from .analytics import DEFAULT_WEEKS, MAX_WEEKS


# =============================================================================
# Input Serializers (Query Parameter Validation)
# =============================================================================

class DeliveredOrdersQuerySerializer(serializers.Serializer):
    """
    Validate period and date range query parameters.

    Used by: delivered_orders

    Query Parameters:
        period (str): Month period in YYYY-MM format (e.g., '2025-01')
        start_date (date): Start of date range
        end_date (date): End of date range
        fallback_to_stored_total (bool): Count stored totals of items
            without bag counts

    Note:
        If 'period' is provided, it takes precedence and is converted
        to start_date and end_date for the full month.
    """

    period = serializers.RegexField(
        regex=r'^\d{4}-(0[1-9]|1[0-2])$',
        required=False,
        allow_blank=True,
        help_text='Month period in YYYY-MM format'
    )
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    fallback_to_stored_total = serializers.BooleanField(required=False, allow_null=True)

    def validate(self, attrs):
        """Parse period into date range if provided."""
        period = attrs.get('period')

        if period:
            year, month = (int(part) for part in period.split('-'))
            attrs['start_date'] = datetime(year, month, 1).date()
            # Last day of month
            if month == 12:
                attrs['end_date'] = datetime(year + 1, 1, 1).date() - timedelta(days=1)
            else:
                attrs['end_date'] = datetime(year, month + 1, 1).date() - timedelta(days=1)

        return attrs


class WeeklyDeliveredQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for the weekly delivery report.

    Used by: weekly_delivered_orders

    Query Parameters:
        weeks (int): Number of weeks to look back, 1-52 (default 8)
        fallback_to_stored_total (bool): Count stored totals of items
            without bag counts
    """

    weeks = serializers.IntegerField(
        min_value=1,
        max_value=MAX_WEEKS,
        required=False,
        default=DEFAULT_WEEKS
    )
    fallback_to_stored_total = serializers.BooleanField(required=False, allow_null=True)


# =============================================================================
# Response Serializers
# =============================================================================

class GradeDeliverySerializer(serializers.Serializer):
    """Delivered bags and weight for one coffee grade."""
    grade = serializers.CharField()
    label = serializers.CharField()
    small_bags = serializers.IntegerField()
    small_bags_espresso = serializers.IntegerField()
    small_bags_filter = serializers.IntegerField()
    medium_bags = serializers.IntegerField()
    large_bags = serializers.IntegerField()
    total_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    espresso_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    filter_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    medium_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    item_count = serializers.IntegerField()


class DeliveredOrdersResponseSerializer(serializers.Serializer):
    """Delivered orders per grade for a period."""
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    order_count = serializers.IntegerField()
    total_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    grades = GradeDeliverySerializer(many=True)
    partial = serializers.BooleanField()


class WeeklyShopSerializer(serializers.Serializer):
    """Delivered coffee per grade for one shop in one week."""
    shop_id = serializers.UUIDField()
    shop_name = serializers.CharField()
    total_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    grades = GradeDeliverySerializer(many=True)


class WeeklyDeliverySerializer(serializers.Serializer):
    """Delivered coffee for one Monday-Sunday week."""
    week_start = serializers.DateField()
    week_end = serializers.DateField()
    label = serializers.CharField()
    order_count = serializers.IntegerField()
    total_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    grades = GradeDeliverySerializer(many=True)
    shops = WeeklyShopSerializer(many=True)


class WeeklyDeliveredResponseSerializer(serializers.Serializer):
    """Weekly delivered orders, most recent week first."""
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    total_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    weeks = WeeklyDeliverySerializer(many=True)
    partial = serializers.BooleanField()


class ErrorSerializer(serializers.Serializer):
    """Standard error response serializer."""
    error = serializers.CharField()
