"""
Cross-order quantity aggregation.

Folds raw retail orders into per-coffee (optionally per-shop or
per-grade) buckets. Every line item is normalized exactly once through
``normalize_line_item`` and added to exactly one bucket, so the grand
total always equals the sum of the per-item weights.

Buckets are immutable; each addition produces a new bucket. Nothing is
cached between calls, so the same orders always give the same result.

Example:
    Pending orders per coffee and shop::

        from apps.retail.services import aggregate_orders, KeyStrategy

        result = aggregate_orders(
            get_orders(status=OrderStatus.PENDING),
            status_filter=OrderStatus.PENDING,
            key_strategy=KeyStrategy.COFFEE_SHOP,
            include_shop_breakdown=True,
        )
        for bucket in result.buckets:
            print(bucket.shop_name, bucket.coffee_name, bucket.total_kg)
        print(result.grand_total.total_kg)
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .exceptions import AggregationInputError
from .quantities import ZERO_KG, NormalizedItem, normalize_line_item, read_field

logger = logging.getLogger(__name__)


UNKNOWN_GRADE = 'UNKNOWN'
UNKNOWN_SHOP = 'Unknown Shop'
UNKNOWN_COFFEE = 'Unknown coffee'


class KeyStrategy(str, Enum):
    """How line items are grouped into buckets."""

    COFFEE = 'coffee'
    COFFEE_SHOP = 'coffee_shop'
    COFFEE_GRADE = 'coffee_grade'

    @property
    def includes_shop(self) -> bool:
        return self is KeyStrategy.COFFEE_SHOP


@dataclass(frozen=True)
class SkippedItem:
    """A line item left out of the totals because it was malformed."""

    order_id: Any
    shop_name: str
    reason: str


@dataclass(frozen=True)
class FlaggedItem:
    """A line item with no bag counts but a stored kilogram total."""

    order_id: Any
    shop_name: str
    coffee_id: Any
    coffee_name: str
    stored_total_kg: Decimal
    counted_kg: Decimal


@dataclass(frozen=True)
class AggregateBucket:
    """Summed bag counts and weights for one aggregation key."""

    key: tuple = ()
    coffee_id: Any = None
    coffee_name: str = ''
    grade: str = ''
    shop_id: Any = None
    shop_name: str = ''
    small_bags_espresso: int = 0
    small_bags_filter: int = 0
    medium_bags_espresso: int = 0
    medium_bags_filter: int = 0
    large_bags: int = 0
    total_kg: Decimal = ZERO_KG
    espresso_kg: Decimal = ZERO_KG
    filter_kg: Decimal = ZERO_KG
    medium_kg: Decimal = ZERO_KG
    item_count: int = 0
    flagged_count: int = 0
    shop_breakdown: tuple = ()

    @property
    def small_bags(self) -> int:
        # Always derived from the split counts, never tracked separately.
        return self.small_bags_espresso + self.small_bags_filter

    @property
    def medium_bags(self) -> int:
        return self.medium_bags_espresso + self.medium_bags_filter

    def add_item(
        self,
        normalized: NormalizedItem,
        fallback_to_stored_total: bool = False,
    ) -> 'AggregateBucket':
        """Return a new bucket with one normalized line item added."""
        return replace(
            self,
            small_bags_espresso=self.small_bags_espresso + normalized.espresso_bags_small,
            small_bags_filter=self.small_bags_filter + normalized.filter_bags_small,
            medium_bags_espresso=self.medium_bags_espresso + normalized.espresso_bags_medium,
            medium_bags_filter=self.medium_bags_filter + normalized.filter_bags_medium,
            large_bags=self.large_bags + normalized.large_bags,
            total_kg=self.total_kg + normalized.resolved_total_kg(fallback_to_stored_total),
            espresso_kg=self.espresso_kg + normalized.espresso_kg,
            filter_kg=self.filter_kg + normalized.filter_kg,
            medium_kg=self.medium_kg + normalized.medium_kg,
            item_count=self.item_count + 1,
            flagged_count=self.flagged_count + (1 if normalized.is_ambiguous else 0),
        )

    def combine(self, other: 'AggregateBucket') -> 'AggregateBucket':
        """Return a new bucket holding both totals; labels stay this bucket's."""
        return replace(
            self,
            small_bags_espresso=self.small_bags_espresso + other.small_bags_espresso,
            small_bags_filter=self.small_bags_filter + other.small_bags_filter,
            medium_bags_espresso=self.medium_bags_espresso + other.medium_bags_espresso,
            medium_bags_filter=self.medium_bags_filter + other.medium_bags_filter,
            large_bags=self.large_bags + other.large_bags,
            total_kg=self.total_kg + other.total_kg,
            espresso_kg=self.espresso_kg + other.espresso_kg,
            filter_kg=self.filter_kg + other.filter_kg,
            medium_kg=self.medium_kg + other.medium_kg,
            item_count=self.item_count + other.item_count,
            flagged_count=self.flagged_count + other.flagged_count,
        )


@dataclass(frozen=True)
class AggregationResult:
    """
    Output of one aggregation pass.

    ``grand_total`` and ``shop_subtotals`` are sums of the returned
    buckets, never recomputed from the orders.
    """

    buckets: tuple
    grand_total: AggregateBucket
    key_strategy: KeyStrategy
    shop_subtotals: Optional[dict] = None
    skipped: tuple = ()
    flagged: tuple = ()
    fallback_to_stored_total: bool = False
    order_count: int = 0

    @property
    def has_warnings(self) -> bool:
        return bool(self.skipped or self.flagged)


def _status_matcher(status_filter):
    if status_filter is None:
        return lambda status: True
    if isinstance(status_filter, str):
        allowed = {status_filter}
    else:
        allowed = set(status_filter)
    return lambda status: status in allowed


def _order_items(order) -> list:
    items = read_field(order, 'items')
    if items is None:
        return []
    if hasattr(items, 'all'):
        return list(items.all())
    return list(items)


def _shop_of(order) -> tuple:
    shop = read_field(order, 'shop')
    shop_id = read_field(order, 'shop_id')
    if shop_id is None and shop is not None:
        shop_id = read_field(shop, 'id')
    shop_name = read_field(shop, 'name') if shop is not None else None
    if shop_name:
        return shop_id, shop_name
    if shop_id is not None:
        # Nameless shops stay apart in shop_subtotals
        return shop_id, f"{UNKNOWN_SHOP} ({shop_id})"
    return shop_id, UNKNOWN_SHOP


def _coffee_of(item) -> tuple:
    """Coffee id, name and grade of a line item; the id may come from ``coffee_id`` alone."""
    coffee = read_field(item, 'coffee')
    if coffee is None:
        return read_field(item, 'coffee_id'), None, UNKNOWN_GRADE
    coffee_id = read_field(coffee, 'id')
    if coffee_id is None:
        coffee_id = read_field(item, 'coffee_id')
    return coffee_id, read_field(coffee, 'name'), read_field(coffee, 'grade') or UNKNOWN_GRADE


def _aggregation_key(key_strategy: KeyStrategy, coffee_id, shop_id, grade) -> tuple:
    if key_strategy is KeyStrategy.COFFEE_SHOP:
        return (coffee_id, shop_id)
    if key_strategy is KeyStrategy.COFFEE_GRADE:
        return (coffee_id, grade)
    return (coffee_id,)


def _sort_key(key_strategy: KeyStrategy):
    if key_strategy.includes_shop:
        return lambda bucket: (bucket.shop_name, bucket.coffee_name, str(bucket.key))
    return lambda bucket: (bucket.coffee_name, str(bucket.key))


def _by_shop(bucket):
    return (bucket.shop_name, str(bucket.shop_id))


def _check_orders_argument(orders) -> None:
    if isinstance(orders, (AggregationResult, AggregateBucket, Mapping, str)):
        raise AggregationInputError(
            "aggregate_orders() takes raw orders, not "
            f"{type(orders).__name__}"
        )


def aggregate_orders(
    orders: Iterable,
    status_filter: Any = 'PENDING',
    key_strategy: KeyStrategy = KeyStrategy.COFFEE,
    *,
    include_shop_breakdown: bool = False,
    fallback_to_stored_total: bool = False,
) -> AggregationResult:
    """
    Fold raw orders into per-key bag and weight totals.

    This operation:
    1. Keeps orders whose status matches ``status_filter``
    2. Normalizes each of their line items once
    3. Adds the item into the bucket for its aggregation key
       (and into a per-shop sub-bucket when shop detail is requested)
    4. Sorts buckets and sums them into the grand total and shop subtotals

    Args:
        orders: Orders with ``status``, ``shop`` and ``items``; either
            ``RetailOrder`` instances (items and coffee prefetched) or
            plain mappings with the same fields.
        status_filter: One status, an iterable of statuses, or None for
            every order.
        key_strategy: Grouping, see ``KeyStrategy``.
        include_shop_breakdown: Attach per-shop sub-buckets to every bucket
            and return ``shop_subtotals``.
        fallback_to_stored_total: Count the stored ``total_quantity`` for
            items that have no bag counts. Off by default. Such items are
            flagged either way.

    Returns:
        AggregationResult

    Raises:
        AggregationInputError: If handed buckets or a previous result
            instead of raw orders.
    """
    _check_orders_argument(orders)
    key_strategy = KeyStrategy(key_strategy)
    matches = _status_matcher(status_filter)

    buckets = {}
    shop_parts = {}
    skipped = []
    flagged = []
    order_count = 0

    for order in orders:
        if isinstance(order, (AggregateBucket, AggregationResult)):
            raise AggregationInputError(
                "aggregate_orders() takes raw orders, not aggregated buckets"
            )
        if not matches(read_field(order, 'status')):
            continue
        order_count += 1

        order_id = read_field(order, 'id')
        shop_id, shop_name = _shop_of(order)

        for item in _order_items(order):
            coffee_id, coffee_name, grade = _coffee_of(item)
            if coffee_id is None and not coffee_name:
                logger.warning(
                    "Skipping line item %s on order %s (%s): unresolved coffee reference",
                    read_field(item, 'id'), order_id, shop_name,
                )
                skipped.append(SkippedItem(
                    order_id=order_id,
                    shop_name=shop_name,
                    reason='unresolved coffee reference',
                ))
                continue
            if not coffee_name:
                coffee_name = f"{UNKNOWN_COFFEE} ({coffee_id})"
                logger.warning(
                    "Order %s (%s): coffee %s has no name, reported as %r",
                    order_id, shop_name, coffee_id, coffee_name,
                )
            normalized = normalize_line_item(item)

            if normalized.is_ambiguous:
                counted_kg = normalized.resolved_total_kg(fallback_to_stored_total)
                logger.warning(
                    "Order %s (%s): %s has no bag counts but stores %s kg; counting %s kg",
                    order_id, shop_name, coffee_name,
                    normalized.stored_total_kg, counted_kg,
                )
                flagged.append(FlaggedItem(
                    order_id=order_id,
                    shop_name=shop_name,
                    coffee_id=coffee_id,
                    coffee_name=coffee_name,
                    stored_total_kg=normalized.stored_total_kg,
                    counted_kg=counted_kg,
                ))

            key = _aggregation_key(key_strategy, coffee_id, shop_id, grade)
            if key not in buckets:
                buckets[key] = AggregateBucket(
                    key=key,
                    coffee_id=coffee_id,
                    coffee_name=coffee_name,
                    grade=grade,
                    shop_id=shop_id if key_strategy.includes_shop else None,
                    shop_name=shop_name if key_strategy.includes_shop else '',
                )
            buckets[key] = buckets[key].add_item(normalized, fallback_to_stored_total)

            if include_shop_breakdown:
                parts = shop_parts.setdefault(key, {})
                if shop_id not in parts:
                    parts[shop_id] = AggregateBucket(
                        key=key + (shop_id,) if not key_strategy.includes_shop else key,
                        coffee_id=coffee_id,
                        coffee_name=coffee_name,
                        grade=grade,
                        shop_id=shop_id,
                        shop_name=shop_name,
                    )
                parts[shop_id] = parts[shop_id].add_item(normalized, fallback_to_stored_total)

    rows = sorted(buckets.values(), key=_sort_key(key_strategy))

    shop_subtotals = None
    if include_shop_breakdown:
        rows = [
            replace(bucket, shop_breakdown=tuple(sorted(shop_parts[bucket.key].values(), key=_by_shop)))
            for bucket in rows
        ]
        subtotals = {}
        for bucket in rows:
            for part in bucket.shop_breakdown:
                if part.shop_id not in subtotals:
                    subtotals[part.shop_id] = AggregateBucket(
                        key=(part.shop_id,),
                        shop_id=part.shop_id,
                        shop_name=part.shop_name,
                    )
                subtotals[part.shop_id] = subtotals[part.shop_id].combine(part)
        shop_subtotals = {}
        for subtotal in sorted(subtotals.values(), key=_by_shop):
            label = subtotal.shop_name
            if label in shop_subtotals:
                # Two shops share a name; keep both
                label = f"{label} ({subtotal.shop_id})"
            shop_subtotals[label] = subtotal

    grand_total = AggregateBucket()
    for bucket in rows:
        grand_total = grand_total.combine(bucket)

    logger.debug(
        "Aggregated %d orders into %d buckets (%s kg, %d skipped, %d flagged)",
        order_count, len(rows), grand_total.total_kg, len(skipped), len(flagged),
    )

    return AggregationResult(
        buckets=tuple(rows),
        grand_total=grand_total,
        key_strategy=key_strategy,
        shop_subtotals=shop_subtotals,
        skipped=tuple(skipped),
        flagged=tuple(flagged),
        fallback_to_stored_total=fallback_to_stored_total,
        order_count=order_count,
    )
