"""
Bag quantity normalization.

Retail line items describe coffee in bags, and the bag fields grew over
time: first an undifferentiated ``small_bags`` count, then the
espresso/filter split of 200g bags, then 500g medium bags. This module
turns any generation of line item into one canonical record and a
kilogram weight.

Precedence for small bags:
    1. ``small_bags_espresso`` / ``small_bags_filter`` when either is > 0.
    2. Otherwise the legacy ``small_bags`` count, attributed to espresso.
    3. Otherwise zero.

Orders placed before the split are reported as espresso. That
attribution is part of historical reporting and must stay as is.

Example:
    >>> item = {'small_bags': 9}
    >>> normalize_line_item(item).total_kg
    Decimal('1.8')
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .exceptions import InvalidQuantityError

logger = logging.getLogger(__name__)


SMALL_BAG_KG = Decimal('0.2')
MEDIUM_BAG_KG = Decimal('0.5')
LARGE_BAG_KG = Decimal('1.0')

ZERO_KG = Decimal('0.0')

LEGACY_SMALL_FIELD = 'small_bags'
SPLIT_SMALL_FIELDS = ('small_bags_espresso', 'small_bags_filter')
BAG_COUNT_FIELDS = (
    LEGACY_SMALL_FIELD,
    'small_bags_espresso',
    'small_bags_filter',
    'medium_bags_espresso',
    'medium_bags_filter',
    'large_bags',
)
STORED_TOTAL_FIELD = 'total_quantity'


class SmallBagSource(str, Enum):
    """Which small-bag fields were authoritative for an item."""

    SPLIT = 'split'
    LEGACY = 'legacy'
    NONE = 'none'


@dataclass(frozen=True)
class NormalizedItem:
    """Canonical bag counts and weight for a single line item."""

    espresso_bags_small: int = 0
    filter_bags_small: int = 0
    espresso_bags_medium: int = 0
    filter_bags_medium: int = 0
    large_bags: int = 0
    total_kg: Decimal = ZERO_KG
    stored_total_kg: Decimal = ZERO_KG
    small_bag_source: SmallBagSource = SmallBagSource.NONE

    @property
    def small_bags(self) -> int:
        return self.espresso_bags_small + self.filter_bags_small

    @property
    def medium_bags(self) -> int:
        return self.espresso_bags_medium + self.filter_bags_medium

    @property
    def espresso_kg(self) -> Decimal:
        return self.espresso_bags_small * SMALL_BAG_KG

    @property
    def filter_kg(self) -> Decimal:
        return self.filter_bags_small * SMALL_BAG_KG

    @property
    def medium_kg(self) -> Decimal:
        return self.medium_bags * MEDIUM_BAG_KG

    @property
    def has_bags(self) -> bool:
        return (self.small_bags + self.medium_bags + self.large_bags) > 0

    @property
    def is_ambiguous(self) -> bool:
        """No bags at all, yet a stored kilogram total exists."""
        return not self.has_bags and self.stored_total_kg > 0

    def resolved_total_kg(self, fallback_to_stored_total: bool = False) -> Decimal:
        """
        Weight to report under the caller's stored-total policy.

        Bag counts always win. The stored total is used only for ambiguous
        items and only when the caller asks for it.
        """
        if fallback_to_stored_total and self.is_ambiguous:
            return self.stored_total_kg
        return self.total_kg


def read_field(source: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a model instance or a plain mapping."""
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def _count(value: Any) -> int:
    if value is None:
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        # NaN raises ValueError, infinity raises OverflowError
        logger.debug("Ignoring non-numeric bag count %r", value)
        return 0
    return count if count > 0 else 0


def _kilograms(value: Any) -> Decimal:
    if value is None:
        return ZERO_KG
    try:
        kg = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.debug("Ignoring non-numeric stored total %r", value)
        return ZERO_KG
    if not kg.is_finite() or kg <= 0:
        return ZERO_KG
    return kg


def bag_weight_kg(small: int = 0, medium: int = 0, large: int = 0) -> Decimal:
    """Weight of a set of bags using the fixed 200g / 500g / 1kg sizes."""
    return small * SMALL_BAG_KG + medium * MEDIUM_BAG_KG + large * LARGE_BAG_KG


def normalize_line_item(item: Any) -> NormalizedItem:
    """
    Convert one line item into canonical bag counts and kilograms.

    ``item`` may be a ``RetailOrderItem``, a ``RetailInventory`` row or any
    mapping using the same field names. Missing and ``None`` counts are
    zero; negative counts are clamped to zero. Never raises.

    The stored ``total_quantity`` is carried through untouched as
    ``stored_total_kg``; whether to use it is the caller's decision (see
    ``NormalizedItem.resolved_total_kg``).
    """
    legacy_small = _count(read_field(item, LEGACY_SMALL_FIELD))
    espresso_small = _count(read_field(item, 'small_bags_espresso'))
    filter_small = _count(read_field(item, 'small_bags_filter'))

    if espresso_small > 0 or filter_small > 0:
        source = SmallBagSource.SPLIT
    elif legacy_small > 0:
        source = SmallBagSource.LEGACY
        espresso_small, filter_small = legacy_small, 0
    else:
        source = SmallBagSource.NONE

    espresso_medium = _count(read_field(item, 'medium_bags_espresso'))
    filter_medium = _count(read_field(item, 'medium_bags_filter'))
    large = _count(read_field(item, 'large_bags'))

    return NormalizedItem(
        espresso_bags_small=espresso_small,
        filter_bags_small=filter_small,
        espresso_bags_medium=espresso_medium,
        filter_bags_medium=filter_medium,
        large_bags=large,
        total_kg=bag_weight_kg(
            small=espresso_small + filter_small,
            medium=espresso_medium + filter_medium,
            large=large,
        ),
        stored_total_kg=_kilograms(read_field(item, STORED_TOTAL_FIELD)),
        small_bag_source=source,
    )


def check_bag_counts(data: Mapping) -> None:
    """Raise InvalidQuantityError unless every given count is a whole number >= 0."""
    for field in BAG_COUNT_FIELDS:
        value = data.get(field)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidQuantityError(f"{field} must be a whole number")
        if value < 0:
            raise InvalidQuantityError(f"{field} cannot be negative")


def validate_bag_counts(data: Mapping) -> NormalizedItem:
    """
    Validate bag counts submitted for a new line item.

    Unlike ``normalize_line_item`` this is strict: new orders must use
    whole, non-negative counts, must order at least one bag, and must not
    fill in both the legacy and the split small-bag fields.

    Raises:
        InvalidQuantityError: If any of the above rules is broken.

    Returns:
        The normalized item for the validated counts.
    """
    check_bag_counts(data)

    if (data.get(LEGACY_SMALL_FIELD) or 0) > 0 and any(
        (data.get(field) or 0) > 0 for field in SPLIT_SMALL_FIELDS
    ):
        raise InvalidQuantityError(
            "Use either small_bags or small_bags_espresso/small_bags_filter, not both"
        )

    normalized = normalize_line_item(data)
    if not normalized.has_bags:
        raise InvalidQuantityError("Line item must contain at least one bag")
    return normalized
