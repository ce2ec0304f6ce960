"""
Management command to create sample data for trying out the API.

Usage:
    python manage.py seed_sample_data
    python manage.py seed_sample_data --clear

This creates:
- 4 users (admin, owner, retailer, roaster)
- 2 shops
- 4 green coffees across all grades
- Pending orders placed through the order service
- Older orders using the legacy ``small_bags`` field, one of them with
  only a stored total
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import User, UserRole
from apps.coffee.models import GreenCoffee, CoffeeGrade
from apps.shops.models import Shop
from apps.retail.models import RetailOrder, RetailOrderItem, RetailInventory, OrderStatus
from apps.retail.services import create_order


class Command(BaseCommand):
    help = 'Create sample shops, coffees and retail orders'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        shops = self.create_shops(users['admin'])
        coffees = self.create_coffees(users['admin'])
        self.create_orders(users, shops, coffees)
        self.create_legacy_orders(shops, coffees)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (superuser)')
        self.stdout.write('  owner@example.com / password123')
        self.stdout.write('  retailer@example.com / password123')
        self.stdout.write('  roaster@example.com / password123')

    def clear_data(self):
        """Clear all retail data from the database."""
        RetailInventory.objects.all().delete()
        RetailOrderItem.objects.all().delete()
        RetailOrder.objects.all().delete()
        GreenCoffee.objects.all().delete()
        Shop.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()

    def create_users(self):
        """Create one user per role used by the retail flow."""
        users = {}

        admin, created = User.objects.get_or_create(
            email='admin@example.com',
            defaults={
                'display_name': 'Admin',
                'role': UserRole.ADMIN,
                'is_staff': True,
                'is_superuser': True,
            }
        )
        if created:
            admin.set_password('admin123')
            admin.save()
        users['admin'] = admin

        for key, role in [
            ('owner', UserRole.OWNER),
            ('retailer', UserRole.RETAILER),
            ('roaster', UserRole.ROASTER),
        ]:
            user, created = User.objects.get_or_create(
                email=f'{key}@example.com',
                defaults={'display_name': key.capitalize(), 'role': role}
            )
            if created:
                user.set_password('password123')
                user.save()
            users[key] = user

        self.stdout.write(f'  Created {len(users)} users')
        return users

    def create_shops(self, admin):
        shops = {}
        for name, address in [
            ('Centrum', 'Main Square 1'),
            ('Riverside', 'River Street 12'),
        ]:
            shop, _ = Shop.objects.get_or_create(
                name=name,
                defaults={'address': address, 'created_by': admin}
            )
            shops[name] = shop

        self.stdout.write(f'  Created {len(shops)} shops')
        return shops

    def create_coffees(self, admin):
        coffees = {}
        for name, grade, country, quantity in [
            ('Bedecho', CoffeeGrade.SPECIALTY, 'Ethiopia', Decimal('60.000')),
            ('Finca Santa Rosa', CoffeeGrade.SPECIALTY, 'Colombia', Decimal('45.000')),
            ('Cerrado Mineiro', CoffeeGrade.PREMIUM, 'Brazil', Decimal('120.000')),
            ('Geisha Lot 7', CoffeeGrade.RARITY, 'Panama', Decimal('8.000')),
        ]:
            coffee, _ = GreenCoffee.objects.get_or_create(
                name=name,
                country=country,
                producer='',
                defaults={'grade': grade, 'quantity': quantity, 'created_by': admin}
            )
            coffees[name] = coffee

        self.stdout.write(f'  Created {len(coffees)} green coffees')
        return coffees

    def create_orders(self, users, shops, coffees):
        """Place current-style orders through the order service."""
        create_order(
            shop_id=shops['Centrum'].id,
            ordered_by=users['retailer'],
            items=[
                {
                    'coffee_id': coffees['Bedecho'].id,
                    'small_bags_espresso': 3,
                    'small_bags_filter': 2,
                },
                {
                    'coffee_id': coffees['Cerrado Mineiro'].id,
                    'medium_bags_espresso': 4,
                    'large_bags': 2,
                },
            ]
        )
        create_order(
            shop_id=shops['Riverside'].id,
            ordered_by=users['owner'],
            items=[
                {
                    'coffee_id': coffees['Bedecho'].id,
                    'small_bags_filter': 6,
                    'medium_bags_filter': 2,
                },
                {
                    'coffee_id': coffees['Geisha Lot 7'].id,
                    'small_bags_espresso': 5,
                },
            ]
        )
        self.stdout.write('  Created 2 orders')

    def create_legacy_orders(self, shops, coffees):
        """Orders as stored before the espresso/filter split."""
        legacy = RetailOrder.objects.create(shop=shops['Centrum'], status=OrderStatus.PENDING)
        RetailOrderItem.objects.create(
            order=legacy,
            coffee=coffees['Bedecho'],
            small_bags=9,
            small_bags_espresso=0,
            small_bags_filter=0,
            total_quantity=Decimal('1.800'),
        )

        stored_only = RetailOrder.objects.create(shop=shops['Riverside'], status=OrderStatus.PENDING)
        RetailOrderItem.objects.create(
            order=stored_only,
            coffee=coffees['Bedecho'],
            small_bags=0,
            small_bags_espresso=0,
            small_bags_filter=0,
            total_quantity=Decimal('1.800'),
        )
        self.stdout.write('  Created 2 legacy orders')
