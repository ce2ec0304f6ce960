"""Services for retail orders, quantity reconciliation and shop inventory."""

from .exceptions import (
    RetailServiceError,
    InvalidQuantityError,
    CoffeeNotFoundError,
    ShopNotFoundError,
    OrderNotFoundError,
    InsufficientCoffeeError,
    InvalidStatusTransitionError,
    AggregationInputError,
    InventoryNotFoundError,
)
from .quantities import (
    SMALL_BAG_KG,
    MEDIUM_BAG_KG,
    LARGE_BAG_KG,
    BAG_COUNT_FIELDS,
    SmallBagSource,
    NormalizedItem,
    bag_weight_kg,
    check_bag_counts,
    normalize_line_item,
    validate_bag_counts,
)
from .aggregation import (
    KeyStrategy,
    AggregateBucket,
    AggregationResult,
    SkippedItem,
    FlaggedItem,
    aggregate_orders,
)
from .order_management import (
    default_fallback_policy,
    get_orders,
    create_order,
    update_order_status,
)
from .inventory_management import (
    ALERT_OK,
    ALERT_WARNING,
    ALERT_CRITICAL,
    credit_delivered_order,
    update_inventory,
    stock_alert_level,
    get_shop_inventory,
)

__all__ = [
    # Exceptions
    'RetailServiceError',
    'InvalidQuantityError',
    'CoffeeNotFoundError',
    'ShopNotFoundError',
    'OrderNotFoundError',
    'InsufficientCoffeeError',
    'InvalidStatusTransitionError',
    'AggregationInputError',
    'InventoryNotFoundError',
    # Quantities
    'SMALL_BAG_KG',
    'MEDIUM_BAG_KG',
    'LARGE_BAG_KG',
    'BAG_COUNT_FIELDS',
    'SmallBagSource',
    'NormalizedItem',
    'bag_weight_kg',
    'check_bag_counts',
    'normalize_line_item',
    'validate_bag_counts',
    # Aggregation
    'KeyStrategy',
    'AggregateBucket',
    'AggregationResult',
    'SkippedItem',
    'FlaggedItem',
    'aggregate_orders',
    # Orders
    'default_fallback_policy',
    'get_orders',
    'create_order',
    'update_order_status',
    # Inventory
    'ALERT_OK',
    'ALERT_WARNING',
    'ALERT_CRITICAL',
    'credit_delivered_order',
    'update_inventory',
    'stock_alert_level',
    'get_shop_inventory',
]
