"""
Analytics Module
=================

Read-only reporting over retail orders.

Classes:
    RetailAnalytics: Static methods for delivery reporting.

Example:
    Delivered coffee per grade for January::

        from apps.analytics.analytics import RetailAnalytics

        stats = RetailAnalytics.delivered_by_grade(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 31),
        )
        for row in stats['grades']:
            print(row['grade'], row['total_kg'])

Note:
    Bag counts come from the same normalizer and aggregator that power
    the pending orders summary, so historical orders using the legacy
    ``small_bags`` field are reported as espresso here as well.
"""

import logging
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from apps.coffee.models import CoffeeGrade
from apps.retail.models import OrderStatus
from apps.retail.services import KeyStrategy, aggregate_orders, get_orders
from apps.shops.models import Shop
from .exceptions import InvalidDateRangeError, InvalidParameterError, MissingParameterError

logger = logging.getLogger(__name__)


MAX_WEEKS = 52
DEFAULT_WEEKS = 8


def _empty_grade_row(code, label):
    return {
        'grade': code,
        'label': label,
        'small_bags': 0,
        'small_bags_espresso': 0,
        'small_bags_filter': 0,
        'medium_bags': 0,
        'large_bags': 0,
        'total_kg': Decimal('0.0'),
        'espresso_kg': Decimal('0.0'),
        'filter_kg': Decimal('0.0'),
        'medium_kg': Decimal('0.0'),
        'item_count': 0,
    }


def _empty_grades():
    return {code: _empty_grade_row(code, label) for code, label in CoffeeGrade.choices}


def _add_to_grade(grades, bucket):
    """Add an aggregate bucket into its grade row; unknown grades are logged and left out."""
    row = grades.get(bucket.grade)
    if row is None:
        logger.warning(
            "Delivered coffee %s has unknown grade %s, left out of grade totals",
            bucket.coffee_name, bucket.grade,
        )
        return
    row['small_bags'] += bucket.small_bags
    row['small_bags_espresso'] += bucket.small_bags_espresso
    row['small_bags_filter'] += bucket.small_bags_filter
    row['medium_bags'] += bucket.medium_bags
    row['large_bags'] += bucket.large_bags
    row['total_kg'] += bucket.total_kg
    row['espresso_kg'] += bucket.espresso_kg
    row['filter_kg'] += bucket.filter_kg
    row['medium_kg'] += bucket.medium_kg
    row['item_count'] += bucket.item_count


def _week_start(day):
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


class RetailAnalytics:
    """
    Delivery statistics for the roastery dashboard.

    All methods return plain dictionaries, ready for response serializers.
    """

    @staticmethod
    def delivered_by_grade(start_date, end_date, fallback_to_stored_total=False):
        """
        Sum delivered coffee per grade within a date range.

        Orders count when their ``delivered_at`` date falls between
        ``start_date`` and ``end_date`` (both inclusive). Items are grouped
        by coffee and grade and then rolled up per grade; every grade is
        present in the result, with zeros when nothing was delivered.

        Args:
            start_date (date): First day of the period.
            end_date (date): Last day of the period.
            fallback_to_stored_total (bool): Count stored totals of items
                without bag counts.

        Returns:
            dict: A dictionary containing:
                - start_date, end_date: The requested period.
                - order_count (int): Delivered orders in the period.
                - total_kg (Decimal): Delivered weight across all grades.
                - grades (list): One row per grade with bag counts and kg.
                - partial (bool): True if line items were skipped or
                  flagged during aggregation.

        Raises:
            MissingParameterError: If a date is missing.
            InvalidDateRangeError: If start_date is after end_date.
        """
        if start_date is None or end_date is None:
            raise MissingParameterError("Start date and end date are required")
        if start_date > end_date:
            raise InvalidDateRangeError("Start date must be before end date")

        orders = get_orders(status=OrderStatus.DELIVERED).filter(
            delivered_at__date__gte=start_date,
            delivered_at__date__lte=end_date,
        )
        result = aggregate_orders(
            orders,
            status_filter=OrderStatus.DELIVERED,
            key_strategy=KeyStrategy.COFFEE_GRADE,
            fallback_to_stored_total=fallback_to_stored_total,
        )

        grades = _empty_grades()
        for bucket in result.buckets:
            _add_to_grade(grades, bucket)

        return {
            'start_date': start_date,
            'end_date': end_date,
            'order_count': result.order_count,
            'total_kg': result.grand_total.total_kg,
            'grades': list(grades.values()),
            'partial': result.has_warnings,
        }

    @staticmethod
    def weekly_delivered(weeks=DEFAULT_WEEKS, today=None, fallback_to_stored_total=False):
        """
        Delivered coffee per grade for each of the last ``weeks`` weeks.

        Weeks run Monday to Sunday and the current week is included.
        Every week lists every shop, with zeros for shops that received
        nothing. Most recent week first.

        Args:
            weeks (int): Number of weeks, 1 to 52.
            today (date): Reference day; defaults to the current local date.
            fallback_to_stored_total (bool): Count stored totals of items
                without bag counts.

        Returns:
            dict: start_date, end_date, total_kg, partial and ``weeks``,
            a list of per-week dicts with grades and per-shop grades.

        Raises:
            InvalidParameterError: If weeks is outside 1-52.
        """
        if not isinstance(weeks, int) or isinstance(weeks, bool) or not 1 <= weeks <= MAX_WEEKS:
            raise InvalidParameterError(f"Weeks must be a number between 1 and {MAX_WEEKS}")

        today = today or timezone.localdate()
        current_week = _week_start(today)
        start_date = current_week - timedelta(weeks=weeks - 1)
        end_date = current_week + timedelta(days=6)

        orders = get_orders(status=OrderStatus.DELIVERED).filter(
            delivered_at__date__gte=start_date,
            delivered_at__date__lte=end_date,
        )
        by_week = {}
        for order in orders:
            delivered_on = timezone.localtime(order.delivered_at).date()
            by_week.setdefault(_week_start(delivered_on), []).append(order)

        shops = list(Shop.objects.order_by('name').values('id', 'name'))

        weekly = []
        total_kg = Decimal('0.0')
        partial = False
        for offset in range(weeks):
            week_start = current_week - timedelta(weeks=offset)
            week_end = week_start + timedelta(days=6)

            result = aggregate_orders(
                by_week.get(week_start, []),
                status_filter=OrderStatus.DELIVERED,
                key_strategy=KeyStrategy.COFFEE_GRADE,
                include_shop_breakdown=True,
                fallback_to_stored_total=fallback_to_stored_total,
            )

            grades = _empty_grades()
            shop_grades = {shop['id']: _empty_grades() for shop in shops}
            for bucket in result.buckets:
                _add_to_grade(grades, bucket)
                for part in bucket.shop_breakdown:
                    if part.shop_id in shop_grades:
                        _add_to_grade(shop_grades[part.shop_id], part)

            weekly.append({
                'week_start': week_start,
                'week_end': week_end,
                'label': f"{week_start:%b} {week_start.day} - {week_end:%b} {week_end.day}",
                'order_count': result.order_count,
                'total_kg': result.grand_total.total_kg,
                'grades': list(grades.values()),
                'shops': [
                    {
                        'shop_id': shop['id'],
                        'shop_name': shop['name'],
                        'total_kg': sum(
                            (row['total_kg'] for row in shop_grades[shop['id']].values()),
                            Decimal('0.0'),
                        ),
                        'grades': list(shop_grades[shop['id']].values()),
                    }
                    for shop in shops
                ],
            })
            total_kg += result.grand_total.total_kg
            partial = partial or result.has_warnings

        return {
            'start_date': start_date,
            'end_date': end_date,
            'total_kg': total_kg,
            'weeks': weekly,
            'partial': partial,
        }
