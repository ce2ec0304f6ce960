"""Retail order operations service."""

import logging
from decimal import Decimal
from typing import Any, Iterable, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.accounts.models import User
from apps.coffee.models import GreenCoffee
from apps.shops.models import Shop
from ..models import RetailOrder, RetailOrderItem, OrderStatus
from .exceptions import (
    CoffeeNotFoundError,
    InsufficientCoffeeError,
    InvalidQuantityError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
    ShopNotFoundError,
)
from .inventory_management import credit_delivered_order
from .quantities import BAG_COUNT_FIELDS, validate_bag_counts

logger = logging.getLogger(__name__)


def default_fallback_policy() -> bool:
    """Project-wide default for counting stored totals of bagless items."""
    return getattr(settings, 'QUANTITY_FALLBACK_TO_STORED_TOTAL', False)


def get_orders(*, status: Any = None, shop_id: Optional[UUID] = None):
    """
    Fetch orders with shop, items and coffee joined.

    This is the order source for aggregation; the returned queryset is
    evaluated once by whoever iterates it.

    Args:
        status: A status, a list of statuses, or None for all
        shop_id: Optional shop filter
    """
    queryset = (
        RetailOrder.objects
        .select_related('shop', 'ordered_by')
        .prefetch_related('items__coffee')
    )
    if status:
        if isinstance(status, str):
            queryset = queryset.filter(status=status)
        else:
            queryset = queryset.filter(status__in=list(status))
    if shop_id:
        queryset = queryset.filter(shop_id=shop_id)
    return queryset


def _as_uuid(value) -> UUID:
    try:
        return value if isinstance(value, UUID) else UUID(str(value))
    except ValueError:
        raise CoffeeNotFoundError(f"Coffee {value} not found")


@transaction.atomic
def create_order(
    *,
    shop_id: UUID,
    ordered_by: Optional[User],
    items: Iterable[dict]
) -> RetailOrder:
    """
    Place a retail order and reserve its green coffee.

    This operation:
    1. Validates bag counts of every item
    2. Locks the ordered coffees and checks enough kg is available
    3. Creates the order (PENDING) and its items, storing each item's kg
    4. Reserves the kg by reducing GreenCoffee.quantity

    Nothing is written unless every item passes.

    Args:
        shop_id: Ordering shop
        ordered_by: User placing the order
        items: Dicts with ``coffee_id`` and bag count fields

    Returns:
        Created RetailOrder with items prefetched

    Raises:
        ShopNotFoundError: If shop doesn't exist
        InvalidQuantityError: If an item has invalid bag counts
        CoffeeNotFoundError: If a coffee doesn't exist
        InsufficientCoffeeError: If there is not enough green coffee
    """
    items = list(items or [])
    if not items:
        raise InvalidQuantityError("Order must contain at least one item")

    try:
        shop = Shop.objects.get(id=shop_id)
    except Shop.DoesNotExist:
        raise ShopNotFoundError(f"Shop {shop_id} not found")

    validated = []
    requested_kg = {}
    for item in items:
        if not item.get('coffee_id'):
            raise InvalidQuantityError("Each order item needs a coffee")
        coffee_id = _as_uuid(item['coffee_id'])
        normalized = validate_bag_counts(item)
        validated.append((coffee_id, item, normalized))
        requested_kg[coffee_id] = requested_kg.get(coffee_id, Decimal('0')) + normalized.total_kg

    coffees = {
        coffee.id: coffee
        for coffee in GreenCoffee.objects.select_for_update().filter(id__in=list(requested_kg))
    }
    for coffee_id, kg in requested_kg.items():
        coffee = coffees.get(coffee_id)
        if coffee is None:
            raise CoffeeNotFoundError(f"Coffee {coffee_id} not found")
        if coffee.quantity < kg:
            raise InsufficientCoffeeError(
                f"Insufficient quantity for coffee {coffee.name}. "
                f"Available: {coffee.quantity}kg, Requested: {kg}kg"
            )

    order = RetailOrder.objects.create(
        shop=shop,
        ordered_by=ordered_by,
        status=OrderStatus.PENDING,
    )
    RetailOrderItem.objects.bulk_create([
        RetailOrderItem(
            order=order,
            coffee=coffees[coffee_id],
            total_quantity=normalized.total_kg,
            **{field: item.get(field) or 0 for field in BAG_COUNT_FIELDS}
        )
        for coffee_id, item, normalized in validated
    ])

    for coffee_id, kg in requested_kg.items():
        GreenCoffee.objects.filter(id=coffee_id).update(quantity=F('quantity') - kg)
        logger.info("Reserved %s kg of coffee %s for order %s", kg, coffee_id, order.id)

    logger.info(
        "Created order %s for shop %s with %d items",
        order.id, shop.name, len(validated),
    )
    return get_orders().get(id=order.id)


def _release_reserved_coffee(order: RetailOrder) -> None:
    for item in order.items.all():
        if item.coffee_id is None:
            logger.warning(
                "Order %s: line item %s has no coffee, nothing returned to stock",
                order.id, item.id,
            )
            continue
        GreenCoffee.objects.filter(id=item.coffee_id).update(
            quantity=F('quantity') + item.total_quantity
        )
        logger.info(
            "Returned %s kg of coffee %s from cancelled order %s",
            item.total_quantity, item.coffee_id, order.id,
        )


@transaction.atomic
def update_order_status(
    *,
    order_id: UUID,
    status: str,
    fallback_to_stored_total: Optional[bool] = None
) -> RetailOrder:
    """
    Move an order to a new status.

    DELIVERED and CANCELLED are final. Delivering credits the shop's
    inventory; cancelling returns the reserved kg to green coffee stock.
    The order row is locked for the whole transaction, so an order can
    only be credited once.

    Args:
        order_id: Order to update
        status: Target OrderStatus value
        fallback_to_stored_total: Policy for bagless items when crediting
            inventory; defaults to the project setting

    Returns:
        Updated RetailOrder with items prefetched

    Raises:
        OrderNotFoundError: If order doesn't exist
        InvalidStatusTransitionError: If status is unknown, unchanged, or
            the order is already final
    """
    if status not in OrderStatus.values:
        raise InvalidStatusTransitionError(f"Invalid status value: {status}")
    if fallback_to_stored_total is None:
        fallback_to_stored_total = default_fallback_policy()

    try:
        order = RetailOrder.objects.select_for_update().get(id=order_id)
    except RetailOrder.DoesNotExist:
        raise OrderNotFoundError(f"Order {order_id} not found")

    if order.is_terminal:
        raise InvalidStatusTransitionError(
            f"Order is already {order.status} and cannot change to {status}"
        )
    if order.status == status:
        raise InvalidStatusTransitionError(f"Order is already {status}")

    previous_status = order.status
    order.status = status

    if status == OrderStatus.DELIVERED:
        order.delivered_at = timezone.now()
        credit_delivered_order(order, fallback_to_stored_total=fallback_to_stored_total)
    elif status == OrderStatus.CANCELLED:
        _release_reserved_coffee(order)

    order.save(update_fields=['status', 'delivered_at', 'updated_at'])
    logger.info("Order %s status %s -> %s", order.id, previous_status, status)

    return get_orders().get(id=order.id)
