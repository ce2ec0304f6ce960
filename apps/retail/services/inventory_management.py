"""Shop inventory service - delivery crediting, manual corrections and stock alerts."""

import logging
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.shops.models import Shop
from ..models import InventoryAdjustment, RetailInventory
from .exceptions import InvalidQuantityError, InventoryNotFoundError, ShopNotFoundError
from .quantities import (
    LEGACY_SMALL_FIELD,
    SPLIT_SMALL_FIELDS,
    check_bag_counts,
    normalize_line_item,
)

logger = logging.getLogger(__name__)


ALERT_OK = 'ok'
ALERT_WARNING = 'warning'
ALERT_CRITICAL = 'critical'

INVENTORY_COUNT_FIELDS = (
    'small_bags_espresso',
    'small_bags_filter',
    'medium_bags_espresso',
    'medium_bags_filter',
    'large_bags',
)
KG_PLACES = Decimal('0.001')


@transaction.atomic
def credit_delivered_order(order, *, fallback_to_stored_total: bool = False) -> list:
    """
    Add a delivered order's coffee to the shop's inventory.

    Each line item is normalized and its bag counts and kilograms are added
    to the (shop, coffee) inventory row, which is locked for the update.
    Callers run this inside the same transaction that marks the order
    delivered, so concurrent deliveries for the same shop and coffee cannot
    overwrite each other.

    Args:
        order: RetailOrder being delivered
        fallback_to_stored_total: Credit the stored ``total_quantity`` for
            items without bag counts

    Returns:
        List of updated RetailInventory rows
    """
    credited = []
    now = timezone.now()

    for item in order.items.select_related('coffee'):
        if item.coffee_id is None:
            logger.warning(
                "Order %s: line item %s has no coffee, nothing credited",
                order.id, item.id,
            )
            continue

        normalized = normalize_line_item(item)
        if normalized.is_ambiguous:
            logger.warning(
                "Order %s: line item %s has no bag counts but stores %s kg",
                order.id, item.id, normalized.stored_total_kg,
            )

        inventory, created = (
            RetailInventory.objects
            .select_for_update()
            .get_or_create(shop_id=order.shop_id, coffee_id=item.coffee_id)
        )

        inventory.small_bags_espresso += normalized.espresso_bags_small
        inventory.small_bags_filter += normalized.filter_bags_small
        inventory.medium_bags_espresso += normalized.espresso_bags_medium
        inventory.medium_bags_filter += normalized.filter_bags_medium
        inventory.large_bags += normalized.large_bags
        inventory.total_quantity += normalized.resolved_total_kg(fallback_to_stored_total)
        inventory.last_order_date = now
        inventory.save()

        logger.info(
            "Credited %s kg of coffee %s to shop %s",
            normalized.resolved_total_kg(fallback_to_stored_total),
            item.coffee_id, order.shop_id,
        )
        credited.append(inventory)

    return credited


def _inventory_snapshot(inventory: RetailInventory) -> dict:
    values = {field: getattr(inventory, field) for field in INVENTORY_COUNT_FIELDS}
    values['total_quantity'] = str(inventory.total_quantity)
    return values


@transaction.atomic
def update_inventory(*, inventory_id: UUID, counts: dict, adjusted_by=None) -> RetailInventory:
    """
    Correct the bag counts of an inventory row by hand.

    Only the counts that are given change. A legacy ``small_bags`` count
    replaces both small bag fields and is booked as espresso. The total
    is recomputed from the resulting bags, so any stored total credited
    for bagless deliveries is replaced. Every correction leaves an
    ``InventoryAdjustment`` with the values before and after.

    Args:
        inventory_id: RetailInventory row to correct
        counts: New bag counts keyed by field name
        adjusted_by: User making the correction

    Returns:
        Updated RetailInventory

    Raises:
        InvalidQuantityError: If no count is given, a count is not a whole
            number >= 0, or legacy and split small bags are mixed
        InventoryNotFoundError: If the row doesn't exist
    """
    given = {field: value for field, value in counts.items() if value is not None}
    if not any(field in given for field in (LEGACY_SMALL_FIELD,) + INVENTORY_COUNT_FIELDS):
        raise InvalidQuantityError("At least one bag count must be provided")
    check_bag_counts(given)
    if LEGACY_SMALL_FIELD in given and any(field in given for field in SPLIT_SMALL_FIELDS):
        raise InvalidQuantityError(
            "Use either small_bags or small_bags_espresso/small_bags_filter, not both"
        )

    try:
        inventory = RetailInventory.objects.select_for_update().get(id=inventory_id)
    except RetailInventory.DoesNotExist:
        raise InventoryNotFoundError(f"Inventory record {inventory_id} not found")

    previous = _inventory_snapshot(inventory)

    merged = {field: getattr(inventory, field) for field in INVENTORY_COUNT_FIELDS}
    for field in INVENTORY_COUNT_FIELDS:
        if field in given:
            merged[field] = given[field]
    if LEGACY_SMALL_FIELD in given:
        merged['small_bags_espresso'] = given[LEGACY_SMALL_FIELD]
        merged['small_bags_filter'] = 0

    normalized = normalize_line_item(merged)
    inventory.small_bags_espresso = normalized.espresso_bags_small
    inventory.small_bags_filter = normalized.filter_bags_small
    inventory.medium_bags_espresso = normalized.espresso_bags_medium
    inventory.medium_bags_filter = normalized.filter_bags_medium
    inventory.large_bags = normalized.large_bags
    inventory.total_quantity = normalized.total_kg.quantize(KG_PLACES)
    inventory.save()

    InventoryAdjustment.objects.create(
        inventory=inventory,
        adjusted_by=adjusted_by,
        previous_values=previous,
        new_values=_inventory_snapshot(inventory),
    )

    logger.info(
        "Inventory %s of shop %s corrected from %s kg to %s kg",
        inventory.id, inventory.shop_id, previous['total_quantity'], inventory.total_quantity,
    )
    return inventory


def stock_alert_level(count: int, minimum: int) -> str:
    """
    Alert level for a bag count against the shop's minimum.

    Below 30% of the minimum is critical, below 70% is a warning.
    """
    if minimum <= 0:
        return ALERT_OK
    if count * 10 < minimum * 3:
        return ALERT_CRITICAL
    if count * 10 < minimum * 7:
        return ALERT_WARNING
    return ALERT_OK


def _stock_percentage(count: int, minimum: int) -> float:
    if minimum <= 0:
        return 100.0
    return round(min(100.0, count / minimum * 100), 1)


def get_shop_inventory(*, shop_id: UUID) -> dict:
    """
    Get a shop's inventory rows with stock alert levels.

    Each row and the shop-wide totals carry small and large bag alerts
    against the shop's ``min_coffee_quantity_small`` and
    ``min_coffee_quantity_large``.

    Raises:
        ShopNotFoundError: If shop doesn't exist
    """
    try:
        shop = Shop.objects.get(id=shop_id)
    except Shop.DoesNotExist:
        raise ShopNotFoundError(f"Shop {shop_id} not found")

    rows = (
        RetailInventory.objects
        .filter(shop=shop)
        .select_related('coffee')
        .order_by('coffee__grade', 'coffee__name')
    )

    items = []
    total_small = 0
    total_medium = 0
    total_large = 0
    for row in rows:
        medium_bags = row.medium_bags_espresso + row.medium_bags_filter
        total_small += row.small_bags
        total_medium += medium_bags
        total_large += row.large_bags
        items.append({
            'id': row.id,
            'coffee_id': row.coffee_id,
            'coffee_name': row.coffee.name,
            'grade': row.coffee.grade,
            'small_bags_espresso': row.small_bags_espresso,
            'small_bags_filter': row.small_bags_filter,
            'small_bags': row.small_bags,
            'medium_bags_espresso': row.medium_bags_espresso,
            'medium_bags_filter': row.medium_bags_filter,
            'medium_bags': medium_bags,
            'large_bags': row.large_bags,
            'total_quantity': row.total_quantity,
            'last_order_date': row.last_order_date,
            'small_bags_alert': stock_alert_level(row.small_bags, shop.min_coffee_quantity_small),
            'large_bags_alert': stock_alert_level(row.large_bags, shop.min_coffee_quantity_large),
        })

    return {
        'shop_id': shop.id,
        'shop_name': shop.name,
        'min_small_bags': shop.min_coffee_quantity_small,
        'min_large_bags': shop.min_coffee_quantity_large,
        'total_small_bags': total_small,
        'total_medium_bags': total_medium,
        'total_large_bags': total_large,
        'small_bags_percentage': _stock_percentage(total_small, shop.min_coffee_quantity_small),
        'large_bags_percentage': _stock_percentage(total_large, shop.min_coffee_quantity_large),
        'small_bags_alert': stock_alert_level(total_small, shop.min_coffee_quantity_small),
        'large_bags_alert': stock_alert_level(total_large, shop.min_coffee_quantity_large),
        'items': items,
    }
