"""Domain exceptions for retail app."""


class RetailServiceError(Exception):
    """Base exception for all retail service errors."""
    pass


class InvalidQuantityError(RetailServiceError):
    """Bag counts on a line item are invalid."""
    pass


class CoffeeNotFoundError(RetailServiceError):
    """Green coffee does not exist."""
    pass


class ShopNotFoundError(RetailServiceError):
    """Shop does not exist."""
    pass


class OrderNotFoundError(RetailServiceError):
    """Retail order does not exist."""
    pass


class InsufficientCoffeeError(RetailServiceError):
    """Not enough green coffee left to reserve for an order."""
    pass


class InvalidStatusTransitionError(RetailServiceError):
    """Order is in a terminal status or the target status is unknown."""
    pass


class AggregationInputError(RetailServiceError, TypeError):
    """Aggregator was handed something other than raw orders."""
    pass


class InventoryNotFoundError(RetailServiceError):
    """Shop inventory row does not exist."""
    pass
