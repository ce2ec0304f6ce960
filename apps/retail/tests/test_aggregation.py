"""
Unit tests for cross-order aggregation.

Orders are plain dicts shaped like ``RetailOrder`` with shop and items;
no database needed.
"""

import pytest
from decimal import Decimal

from apps.retail.services import (
    AggregationInputError,
    KeyStrategy,
    aggregate_orders,
    normalize_line_item,
)


BEDECHO = {'id': 'c-bedecho', 'name': 'Bedecho', 'grade': 'SPECIALTY'}
CERRADO = {'id': 'c-cerrado', 'name': 'Cerrado', 'grade': 'PREMIUM'}
GEISHA = {'id': 'c-geisha', 'name': 'Geisha', 'grade': 'RARITY'}

CENTRUM = {'id': 's-centrum', 'name': 'Centrum'}
RIVERSIDE = {'id': 's-riverside', 'name': 'Riverside'}


def order(order_id, shop, items, status='PENDING'):
    return {'id': order_id, 'status': status, 'shop': shop, 'items': items}


def item(coffee, **counts):
    return {'coffee': coffee, **counts}


@pytest.fixture
def mixed_orders():
    """Orders from two shops, three coffees and several field generations."""
    return [
        order('o1', CENTRUM, [
            item(BEDECHO, small_bags=9, total_quantity='1.8'),
            item(CERRADO, medium_bags_espresso=2, large_bags=1),
        ]),
        order('o2', RIVERSIDE, [
            item(BEDECHO, small_bags_espresso=3, small_bags_filter=2),
            item(GEISHA, small_bags_filter=4),
        ]),
        order('o3', CENTRUM, [
            item(BEDECHO, large_bags=2),
        ]),
        order('o4', RIVERSIDE, [
            item(CERRADO, large_bags=10),
        ], status='DELIVERED'),
    ]


# =============================================================================
# Totals
# =============================================================================

class TestTotals:

    def test_grand_total_matches_independent_sum(self, mixed_orders):
        """Grand total equals the per-item weights summed separately."""
        result = aggregate_orders(mixed_orders)

        expected = sum(
            (normalize_line_item(line).total_kg
             for o in mixed_orders if o['status'] == 'PENDING'
             for line in o['items']),
            Decimal('0'),
        )
        assert result.grand_total.total_kg == expected
        assert result.grand_total.total_kg == Decimal('7.6')

    def test_grand_total_equals_sum_of_buckets(self, mixed_orders):
        for strategy in KeyStrategy:
            result = aggregate_orders(mixed_orders, key_strategy=strategy)
            assert result.grand_total.total_kg == sum(
                (bucket.total_kg for bucket in result.buckets), Decimal('0')
            )

    def test_two_orders_of_same_coffee(self):
        """Two distinct 1.8 kg orders sum to 3.6 kg, once each."""
        orders = [
            order('o1', CENTRUM, [item(BEDECHO, small_bags=9)]),
            order('o2', RIVERSIDE, [item(BEDECHO, small_bags_espresso=9)]),
        ]

        result = aggregate_orders(orders)

        assert len(result.buckets) == 1
        assert result.buckets[0].total_kg == Decimal('3.6')
        assert result.buckets[0].small_bags_espresso == 18
        assert result.grand_total.total_kg == Decimal('3.6')

    def test_no_orders(self):
        result = aggregate_orders([])

        assert result.buckets == ()
        assert result.grand_total.total_kg == Decimal('0.0')
        assert result.order_count == 0

    def test_zero_bag_order_total_is_exact_zero(self):
        result = aggregate_orders([order('o1', CENTRUM, [item(BEDECHO, small_bags_espresso=0)])])

        assert result.grand_total.total_kg == Decimal('0.0')
        assert not result.grand_total.total_kg.is_signed()

    def test_medium_bags_reported_separately(self, mixed_orders):
        result = aggregate_orders(mixed_orders)
        cerrado = next(b for b in result.buckets if b.coffee_name == 'Cerrado')

        assert cerrado.small_bags == 0
        assert cerrado.medium_bags_espresso == 2
        assert cerrado.medium_kg == Decimal('1.0')
        assert cerrado.total_kg == Decimal('2.0')


# =============================================================================
# Status filter
# =============================================================================

class TestStatusFilter:

    def test_default_is_pending(self, mixed_orders):
        result = aggregate_orders(mixed_orders)

        assert result.order_count == 3
        cerrado = next(b for b in result.buckets if b.coffee_name == 'Cerrado')
        assert cerrado.large_bags == 1

    def test_single_status(self, mixed_orders):
        result = aggregate_orders(mixed_orders, status_filter='DELIVERED')

        assert result.order_count == 1
        assert result.grand_total.total_kg == Decimal('10.0')

    def test_several_statuses(self, mixed_orders):
        result = aggregate_orders(mixed_orders, status_filter=['PENDING', 'DELIVERED'])

        assert result.order_count == 4
        assert result.grand_total.total_kg == Decimal('17.6')

    def test_none_includes_all(self, mixed_orders):
        result = aggregate_orders(mixed_orders, status_filter=None)

        assert result.order_count == 4


# =============================================================================
# Grouping
# =============================================================================

class TestGrouping:

    def test_coffee_key_merges_shops(self):
        orders = [
            order('o1', CENTRUM, [item(BEDECHO, small_bags_espresso=5)]),
            order('o2', RIVERSIDE, [item(BEDECHO, large_bags=1)]),
        ]

        by_coffee = aggregate_orders(orders, key_strategy=KeyStrategy.COFFEE)
        by_shop = aggregate_orders(orders, key_strategy=KeyStrategy.COFFEE_SHOP)

        assert len(by_coffee.buckets) == 1
        assert len(by_shop.buckets) == 2
        assert by_coffee.buckets[0].total_kg == sum(
            (bucket.total_kg for bucket in by_shop.buckets), Decimal('0')
        )
        assert by_coffee.buckets[0].total_kg == Decimal('2.0')

    def test_coffee_shop_rows_ordered_by_shop_then_coffee(self, mixed_orders):
        result = aggregate_orders(mixed_orders, key_strategy=KeyStrategy.COFFEE_SHOP)

        assert [(b.shop_name, b.coffee_name) for b in result.buckets] == [
            ('Centrum', 'Bedecho'),
            ('Centrum', 'Cerrado'),
            ('Riverside', 'Bedecho'),
            ('Riverside', 'Geisha'),
        ]

    def test_coffee_rows_ordered_by_name(self, mixed_orders):
        result = aggregate_orders(mixed_orders)

        assert [b.coffee_name for b in result.buckets] == ['Bedecho', 'Cerrado', 'Geisha']
        assert all(b.shop_name == '' for b in result.buckets)

    def test_grade_key_carries_grade(self, mixed_orders):
        result = aggregate_orders(mixed_orders, key_strategy=KeyStrategy.COFFEE_GRADE)

        assert {b.coffee_name: b.grade for b in result.buckets} == {
            'Bedecho': 'SPECIALTY',
            'Cerrado': 'PREMIUM',
            'Geisha': 'RARITY',
        }

    def test_key_strategy_accepts_value(self, mixed_orders):
        result = aggregate_orders(mixed_orders, key_strategy='coffee_shop')

        assert result.key_strategy is KeyStrategy.COFFEE_SHOP

    def test_same_name_coffees_ordered_by_key(self):
        first = {'id': 'c-1', 'name': 'Bedecho', 'grade': 'SPECIALTY'}
        second = {'id': 'c-2', 'name': 'Bedecho', 'grade': 'PREMIUM'}
        orders = [
            order('o1', CENTRUM, [item(second, large_bags=2)]),
            order('o2', CENTRUM, [item(first, large_bags=1)]),
        ]

        result = aggregate_orders(orders)
        reversed_input = aggregate_orders(list(reversed(orders)))

        assert [b.coffee_id for b in result.buckets] == ['c-1', 'c-2']
        assert [b.key for b in result.buckets] == sorted(
            (b.key for b in result.buckets), key=str
        )
        assert result.buckets == reversed_input.buckets

    def test_names_compared_case_sensitively(self):
        lower = {'id': 'c-lower', 'name': 'bedecho', 'grade': 'SPECIALTY'}
        upper = {'id': 'c-upper', 'name': 'Bedecho', 'grade': 'SPECIALTY'}
        orders = [
            order('o1', CENTRUM, [item(lower, large_bags=1)]),
            order('o2', CENTRUM, [item(upper, large_bags=1)]),
            order('o3', CENTRUM, [item(CERRADO, large_bags=1)]),
        ]

        result = aggregate_orders(orders)

        # Uppercase letters sort before lowercase ones
        assert [b.coffee_name for b in result.buckets] == ['Bedecho', 'Cerrado', 'bedecho']

    def test_same_shop_names_ordered_by_key(self):
        north = {'id': 's-1', 'name': 'Centrum'}
        south = {'id': 's-2', 'name': 'Centrum'}
        orders = [
            order('o1', south, [item(BEDECHO, large_bags=1)]),
            order('o2', north, [item(BEDECHO, large_bags=1)]),
        ]

        result = aggregate_orders(orders, key_strategy=KeyStrategy.COFFEE_SHOP)

        assert [b.shop_id for b in result.buckets] == ['s-1', 's-2']


# =============================================================================
# Shop breakdown
# =============================================================================

class TestShopBreakdown:

    def test_breakdown_per_bucket(self, mixed_orders):
        result = aggregate_orders(mixed_orders, include_shop_breakdown=True)
        bedecho = next(b for b in result.buckets if b.coffee_name == 'Bedecho')

        assert [part.shop_name for part in bedecho.shop_breakdown] == ['Centrum', 'Riverside']
        assert sum(
            (part.total_kg for part in bedecho.shop_breakdown), Decimal('0')
        ) == bedecho.total_kg

    def test_shop_subtotals(self, mixed_orders):
        result = aggregate_orders(mixed_orders, include_shop_breakdown=True)

        assert list(result.shop_subtotals) == ['Centrum', 'Riverside']
        # Centrum: 1.8 + 1.0 + 1.0 + 2.0, Riverside: 1.0 + 0.8
        assert result.shop_subtotals['Centrum'].total_kg == Decimal('5.8')
        assert result.shop_subtotals['Riverside'].total_kg == Decimal('1.8')
        assert sum(
            (subtotal.total_kg for subtotal in result.shop_subtotals.values()), Decimal('0')
        ) == result.grand_total.total_kg

    def test_no_subtotals_unless_requested(self, mixed_orders):
        result = aggregate_orders(mixed_orders)

        assert result.shop_subtotals is None
        assert all(b.shop_breakdown == () for b in result.buckets)

    def test_order_without_shop(self):
        result = aggregate_orders(
            [order('o1', None, [item(BEDECHO, large_bags=1)])],
            include_shop_breakdown=True,
        )

        assert list(result.shop_subtotals) == ['Unknown Shop']

    def test_nameless_shops_keep_separate_subtotals(self):
        result = aggregate_orders([
            order('o1', {'id': 's1'}, [item(BEDECHO, large_bags=1)]),
            order('o2', {'id': 's2'}, [item(BEDECHO, large_bags=2)]),
        ], include_shop_breakdown=True)

        assert list(result.shop_subtotals) == ['Unknown Shop (s1)', 'Unknown Shop (s2)']
        assert sum(
            (subtotal.total_kg for subtotal in result.shop_subtotals.values()), Decimal('0')
        ) == result.grand_total.total_kg == Decimal('3.0')

    def test_shops_sharing_a_name_keep_separate_subtotals(self):
        result = aggregate_orders([
            order('o1', {'id': 's1', 'name': 'Centrum'}, [item(BEDECHO, large_bags=1)]),
            order('o2', {'id': 's2', 'name': 'Centrum'}, [item(BEDECHO, large_bags=2)]),
        ], include_shop_breakdown=True)

        assert list(result.shop_subtotals) == ['Centrum', 'Centrum (s2)']
        assert result.shop_subtotals['Centrum (s2)'].total_kg == Decimal('2.0')


# =============================================================================
# Ambiguous and malformed items
# =============================================================================

class TestWarnings:

    def test_stored_total_without_bags_is_flagged(self):
        """A 1.8 kg item with no bag counts is not silently reported as 0."""
        result = aggregate_orders([
            order('o1', CENTRUM, [item(BEDECHO, total_quantity='1.8')]),
        ])

        assert result.has_warnings
        assert len(result.flagged) == 1
        flagged = result.flagged[0]
        assert flagged.order_id == 'o1'
        assert flagged.coffee_name == 'Bedecho'
        assert flagged.stored_total_kg == Decimal('1.8')
        assert flagged.counted_kg == Decimal('0.0')
        assert result.buckets[0].flagged_count == 1
        assert result.grand_total.total_kg == Decimal('0.0')

    def test_fallback_counts_stored_total(self):
        result = aggregate_orders(
            [order('o1', CENTRUM, [item(BEDECHO, total_quantity='1.8')])],
            fallback_to_stored_total=True,
        )

        assert result.flagged[0].counted_kg == Decimal('1.8')
        assert result.grand_total.total_kg == Decimal('1.8')
        assert result.fallback_to_stored_total is True

    def test_missing_coffee_is_skipped(self):
        result = aggregate_orders([
            order('o1', CENTRUM, [
                item(None, large_bags=3),
                item(BEDECHO, large_bags=1),
            ]),
        ])

        assert len(result.skipped) == 1
        assert result.skipped[0].order_id == 'o1'
        assert result.skipped[0].shop_name == 'Centrum'
        assert result.grand_total.total_kg == Decimal('1.0')
        assert result.has_warnings

    def test_coffee_id_without_coffee_is_counted(self):
        result = aggregate_orders([
            order('o1', CENTRUM, [{'coffee_id': 'c-bedecho', 'large_bags': 2}]),
        ])

        assert result.skipped == ()
        assert result.buckets[0].coffee_id == 'c-bedecho'
        assert result.buckets[0].coffee_name == 'Unknown coffee (c-bedecho)'
        assert result.grand_total.total_kg == Decimal('2.0')

    def test_nameless_coffee_is_counted_under_its_id(self):
        result = aggregate_orders([
            order('o1', CENTRUM, [
                item({'id': 'c-x', 'name': '', 'grade': 'PREMIUM'}, large_bags=1),
                item(BEDECHO, large_bags=1),
            ]),
        ])

        assert result.skipped == ()
        assert [b.coffee_name for b in result.buckets] == ['Bedecho', 'Unknown coffee (c-x)']
        assert result.buckets[1].grade == 'PREMIUM'

    def test_skip_reason_names_unresolved_coffee(self):
        result = aggregate_orders([order('o1', CENTRUM, [item(None, large_bags=1)])])

        assert result.skipped[0].reason == 'unresolved coffee reference'

    def test_clean_orders_have_no_warnings(self, mixed_orders):
        result = aggregate_orders(mixed_orders)

        assert not result.has_warnings

    def test_warnings_logged(self, caplog):
        aggregate_orders([
            order('o1', CENTRUM, [item(None, large_bags=1), item(BEDECHO, total_quantity='1.8')]),
        ])

        messages = [record.getMessage() for record in caplog.records]
        assert any('unresolved coffee reference' in message for message in messages)
        assert any('no bag counts' in message for message in messages)


# =============================================================================
# Purity
# =============================================================================

class TestPurity:

    def test_repeated_calls_identical(self, mixed_orders):
        first = aggregate_orders(mixed_orders, key_strategy=KeyStrategy.COFFEE_SHOP,
                                 include_shop_breakdown=True)
        second = aggregate_orders(mixed_orders, key_strategy=KeyStrategy.COFFEE_SHOP,
                                  include_shop_breakdown=True)

        assert first == second

    def test_generator_input(self, mixed_orders):
        result = aggregate_orders(o for o in mixed_orders)

        assert result.grand_total.total_kg == Decimal('7.6')

    def test_result_cannot_be_aggregated_again(self, mixed_orders):
        result = aggregate_orders(mixed_orders)

        with pytest.raises(AggregationInputError):
            aggregate_orders(result)

    def test_buckets_cannot_be_aggregated_again(self, mixed_orders):
        result = aggregate_orders(mixed_orders)

        with pytest.raises(TypeError):
            aggregate_orders(list(result.buckets))

    def test_buckets_are_immutable(self, mixed_orders):
        bucket = aggregate_orders(mixed_orders).buckets[0]

        with pytest.raises(AttributeError):
            bucket.total_kg = Decimal('99')
