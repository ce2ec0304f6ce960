"""
Management command to inspect how orders are counted in the summary.

Prints every matching order's raw line items next to their normalized
bag counts and weight, then the per-shop aggregation, so a mismatch
between stored totals and bag counts is visible at a glance.

Usage:
    python manage.py debug_pending_orders
    python manage.py debug_pending_orders --coffee Bedecho --status ALL
    python manage.py debug_pending_orders --fallback-to-stored-total
"""

from django.core.management.base import BaseCommand, CommandError

from apps.retail.models import OrderStatus
from apps.retail.services import (
    KeyStrategy,
    aggregate_orders,
    get_orders,
    normalize_line_item,
)


class Command(BaseCommand):
    help = 'Show raw and normalized quantities of orders and their aggregation'

    def add_arguments(self, parser):
        parser.add_argument(
            '--coffee',
            help='Only show line items whose coffee name contains this text',
        )
        parser.add_argument(
            '--status',
            default=OrderStatus.PENDING,
            help='Order status to inspect, or ALL (default: PENDING)',
        )
        parser.add_argument(
            '--fallback-to-stored-total',
            action='store_true',
            help='Count stored totals of items that have no bag counts',
        )

    def handle(self, *args, **options):
        status = options['status'].upper()
        if status != 'ALL' and status not in OrderStatus.values:
            raise CommandError(
                f"Unknown status '{options['status']}'. "
                f"Use ALL or one of: {', '.join(OrderStatus.values)}"
            )
        status_filter = None if status == 'ALL' else status
        coffee_filter = (options['coffee'] or '').lower()
        fallback = options['fallback_to_stored_total']

        orders = list(get_orders(status=status_filter))
        self.stdout.write(f'\nFound {len(orders)} order(s) with status {status}\n')

        for order in orders:
            items = [
                item for item in order.items.all()
                if not coffee_filter
                or (item.coffee and coffee_filter in item.coffee.name.lower())
            ]
            if not items:
                continue

            self.stdout.write(self.style.MIGRATE_HEADING(
                f'Order {order.id} | {order.shop.name} | {order.status} | {order.created_at:%Y-%m-%d}'
            ))
            for item in items:
                normalized = normalize_line_item(item)
                coffee_name = item.coffee.name if item.coffee else 'Unknown coffee'
                self.stdout.write(
                    f'  {coffee_name}: raw small={item.small_bags} '
                    f'espresso={item.small_bags_espresso} filter={item.small_bags_filter} '
                    f'medium={item.medium_bags_espresso}/{item.medium_bags_filter} '
                    f'large={item.large_bags} stored={item.total_quantity} kg'
                )
                line = (
                    f'    -> espresso={normalized.espresso_bags_small} '
                    f'filter={normalized.filter_bags_small} '
                    f'medium={normalized.medium_bags} large={normalized.large_bags} '
                    f'({normalized.small_bag_source.value}) '
                    f'counted={normalized.resolved_total_kg(fallback)} kg'
                )
                if normalized.is_ambiguous:
                    self.stdout.write(self.style.WARNING(line + '  [no bags, stored total only]'))
                else:
                    self.stdout.write(line)

        result = aggregate_orders(
            orders,
            status_filter=status_filter,
            key_strategy=KeyStrategy.COFFEE_SHOP,
            fallback_to_stored_total=fallback,
        )

        self.stdout.write('\nAggregation by coffee and shop:')
        for bucket in result.buckets:
            if coffee_filter and coffee_filter not in bucket.coffee_name.lower():
                continue
            self.stdout.write(
                f'  {bucket.shop_name} | {bucket.coffee_name}: '
                f'small={bucket.small_bags} (espresso {bucket.small_bags_espresso}, '
                f'filter {bucket.small_bags_filter}) medium={bucket.medium_bags} '
                f'large={bucket.large_bags} total={bucket.total_kg} kg'
            )

        self.stdout.write(self.style.SUCCESS(
            f'\nGrand total: {result.grand_total.total_kg} kg '
            f'across {result.order_count} order(s)'
        ))
        if result.skipped:
            self.stdout.write(self.style.WARNING(
                f'{len(result.skipped)} line item(s) skipped (unresolved coffee)'
            ))
        if result.flagged:
            self.stdout.write(self.style.WARNING(
                f'{len(result.flagged)} line item(s) have a stored total but no bag counts'
            ))
