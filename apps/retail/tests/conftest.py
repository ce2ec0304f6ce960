import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.coffee.models import GreenCoffee, CoffeeGrade
from apps.shops.models import Shop
from apps.retail.models import RetailOrder, RetailOrderItem, RetailInventory, OrderStatus


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def retailer(db):
    """Create a shop retailer."""
    return User.objects.create_user(
        email='retailer@example.com',
        password='TestPass123!',
        display_name='Retailer',
        role=UserRole.RETAILER,
    )


@pytest.fixture
def roaster(db):
    """Create a roaster (cannot place orders)."""
    return User.objects.create_user(
        email='roaster@example.com',
        password='TestPass123!',
        display_name='Roaster',
        role=UserRole.ROASTER,
    )


@pytest.fixture
def retailer_client(api_client, retailer):
    """Return API client authenticated as retailer."""
    refresh = RefreshToken.for_user(retailer)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def roaster_client(api_client, roaster):
    """Return API client authenticated as roaster."""
    refresh = RefreshToken.for_user(roaster)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


# =============================================================================
# Shops and coffee
# =============================================================================

@pytest.fixture
def shop(db):
    """Create the main test shop."""
    return Shop.objects.create(name='Centrum', address='Main Square 1')


@pytest.fixture
def other_shop(db):
    """Create a second shop."""
    return Shop.objects.create(name='Riverside', address='River Street 12')


@pytest.fixture
def bedecho(db):
    """Specialty coffee with plenty of stock."""
    return GreenCoffee.objects.create(
        name='Bedecho',
        grade=CoffeeGrade.SPECIALTY,
        country='Ethiopia',
        quantity=Decimal('50.000'),
    )


@pytest.fixture
def cerrado(db):
    """Premium coffee with plenty of stock."""
    return GreenCoffee.objects.create(
        name='Cerrado',
        grade=CoffeeGrade.PREMIUM,
        country='Brazil',
        quantity=Decimal('50.000'),
    )


@pytest.fixture
def geisha(db):
    """Rarity coffee with little stock."""
    return GreenCoffee.objects.create(
        name='Geisha',
        grade=CoffeeGrade.RARITY,
        country='Panama',
        quantity=Decimal('1.000'),
    )


# =============================================================================
# Orders
# =============================================================================

@pytest.fixture
def make_order(db):
    """
    Factory writing orders straight to the database.

    Bypasses the order service so tests can store historical shapes
    (legacy small_bags, stored totals without bag counts).
    """
    def _make_order(shop, items, status=OrderStatus.PENDING, **order_fields):
        order = RetailOrder.objects.create(shop=shop, status=status, **order_fields)
        for item in items:
            RetailOrderItem.objects.create(order=order, **item)
        return order
    return _make_order


@pytest.fixture
def legacy_order(make_order, shop, bedecho):
    """Pending order placed before the espresso/filter split: 9 small bags."""
    return make_order(shop, [{
        'coffee': bedecho,
        'small_bags': 9,
        'small_bags_espresso': 0,
        'small_bags_filter': 0,
        'total_quantity': Decimal('1.800'),
    }])


@pytest.fixture
def split_order(make_order, shop, bedecho):
    """Pending order using the split fields: 3 espresso, 2 filter."""
    return make_order(shop, [{
        'coffee': bedecho,
        'small_bags': 0,
        'small_bags_espresso': 3,
        'small_bags_filter': 2,
        'total_quantity': Decimal('1.000'),
    }])


@pytest.fixture
def stored_total_order(make_order, other_shop, bedecho):
    """Pending order with a stored total but no bag counts."""
    return make_order(other_shop, [{
        'coffee': bedecho,
        'small_bags': 0,
        'small_bags_espresso': 0,
        'small_bags_filter': 0,
        'total_quantity': Decimal('1.800'),
    }])


# =============================================================================
# Inventory
# =============================================================================

@pytest.fixture
def inventory_row(shop, bedecho):
    """Centrum's Bedecho stock: 5 espresso + 3 filter small bags, 2 large (3.6 kg)."""
    return RetailInventory.objects.create(
        shop=shop,
        coffee=bedecho,
        small_bags_espresso=5,
        small_bags_filter=3,
        large_bags=2,
        total_quantity=Decimal('3.600'),
    )
