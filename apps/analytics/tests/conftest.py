import pytest
from decimal import Decimal
from datetime import datetime, timedelta
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.coffee.models import GreenCoffee, CoffeeGrade
from apps.shops.models import Shop
from apps.retail.models import RetailOrder, RetailOrderItem, OrderStatus


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


# =============================================================================
# Users
# =============================================================================

def _user(email, role):
    return User.objects.create_user(
        email=email,
        password='TestPass123!',
        display_name=email.split('@')[0].capitalize(),
        role=role,
    )


@pytest.fixture
def owner(db):
    return _user('owner@example.com', UserRole.OWNER)


@pytest.fixture
def retailer(db):
    return _user('retailer@example.com', UserRole.RETAILER)


@pytest.fixture
def roaster(db):
    return _user('roaster@example.com', UserRole.ROASTER)


@pytest.fixture
def barista(db):
    return _user('barista@example.com', UserRole.BARISTA)


def _authenticate(client, user):
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def owner_client(api_client, owner):
    """Return API client authenticated as owner."""
    return _authenticate(api_client, owner)


@pytest.fixture
def retailer_client(api_client, retailer):
    """Return API client authenticated as retailer."""
    return _authenticate(api_client, retailer)


@pytest.fixture
def roaster_client(api_client, roaster):
    """Return API client authenticated as roaster."""
    return _authenticate(api_client, roaster)


@pytest.fixture
def barista_client(api_client, barista):
    """Return API client authenticated as barista."""
    return _authenticate(api_client, barista)


# =============================================================================
# Delivered orders
# =============================================================================

@pytest.fixture
def shop(db):
    return Shop.objects.create(name='Centrum')


@pytest.fixture
def coffees(db):
    """One coffee per grade."""
    return {
        grade: GreenCoffee.objects.create(name=name, grade=grade, quantity=Decimal('20.000'))
        for name, grade in [
            ('Bedecho', CoffeeGrade.SPECIALTY),
            ('Cerrado', CoffeeGrade.PREMIUM),
            ('Geisha', CoffeeGrade.RARITY),
        ]
    }


@pytest.fixture
def delivery_day():
    """Fixed delivery date inside a known month."""
    return timezone.make_aware(datetime(2025, 3, 14, 10, 0))


@pytest.fixture
def delivered_orders(shop, coffees, delivery_day):
    """
    Delivered orders in March 2025 plus noise outside the range.

    Specialty: 9 legacy small bags (1.8 kg) + 1 espresso, 2 filter (0.6 kg)
    Premium: 2 medium + 1 large (2.0 kg)
    """
    def order(items, status=OrderStatus.DELIVERED, delivered_at=delivery_day):
        created = RetailOrder.objects.create(shop=shop, status=status, delivered_at=delivered_at)
        for item in items:
            RetailOrderItem.objects.create(order=created, **item)
        return created

    orders = [
        order([{'coffee': coffees[CoffeeGrade.SPECIALTY], 'small_bags': 9}]),
        order([
            {'coffee': coffees[CoffeeGrade.SPECIALTY], 'small_bags_espresso': 1, 'small_bags_filter': 2},
            {'coffee': coffees[CoffeeGrade.PREMIUM], 'medium_bags_filter': 2, 'large_bags': 1},
        ]),
    ]
    # Outside the range or not delivered
    order([{'coffee': coffees[CoffeeGrade.RARITY], 'large_bags': 4}],
          delivered_at=delivery_day - timedelta(days=60))
    order([{'coffee': coffees[CoffeeGrade.RARITY], 'large_bags': 4}],
          status=OrderStatus.PENDING, delivered_at=None)
    return orders
