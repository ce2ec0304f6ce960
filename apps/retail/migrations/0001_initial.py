import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


STATUS_CHOICES = [
    ('PENDING', 'Pending'),
    ('CONFIRMED', 'Confirmed'),
    ('ROASTED', 'Roasted'),
    ('DISPATCHED', 'Dispatched'),
    ('DELIVERED', 'Delivered'),
    ('CANCELLED', 'Cancelled'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('coffee', '0001_initial'),
        ('shops', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='RetailOrder',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=STATUS_CHOICES, db_index=True, default='PENDING', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('ordered_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='retail_orders', to=settings.AUTH_USER_MODEL)),
                ('shop', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='orders', to='shops.shop')),
            ],
            options={
                'db_table': 'retail_orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='retail_orde_status_8e21c4_idx'),
                    models.Index(fields=['shop', 'status'], name='retail_orde_shop_id_3f0b7d_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RetailOrderItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('small_bags', models.PositiveIntegerField(blank=True, default=0, null=True)),
                ('small_bags_espresso', models.PositiveIntegerField(blank=True, default=0, null=True)),
                ('small_bags_filter', models.PositiveIntegerField(blank=True, default=0, null=True)),
                ('medium_bags_espresso', models.PositiveIntegerField(blank=True, default=0, null=True)),
                ('medium_bags_filter', models.PositiveIntegerField(blank=True, default=0, null=True)),
                ('large_bags', models.PositiveIntegerField(blank=True, default=0, null=True)),
                ('total_quantity', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=10, validators=[MinValueValidator(Decimal('0.000'))])),
                ('coffee', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='order_items', to='coffee.greencoffee')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='retail.retailorder')),
            ],
            options={
                'db_table': 'retail_order_items',
            },
        ),
        migrations.CreateModel(
            name='RetailInventory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('small_bags_espresso', models.PositiveIntegerField(default=0)),
                ('small_bags_filter', models.PositiveIntegerField(default=0)),
                ('medium_bags_espresso', models.PositiveIntegerField(default=0)),
                ('medium_bags_filter', models.PositiveIntegerField(default=0)),
                ('large_bags', models.PositiveIntegerField(default=0)),
                ('total_quantity', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=10)),
                ('last_order_date', models.DateTimeField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('coffee', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='retail_inventory', to='coffee.greencoffee')),
                ('shop', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory', to='shops.shop')),
            ],
            options={
                'db_table': 'retail_inventory',
                'verbose_name_plural': 'retail inventory',
                'unique_together': {('shop', 'coffee')},
            },
        ),
    ]
