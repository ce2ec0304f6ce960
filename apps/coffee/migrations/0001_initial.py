import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='GreenCoffee',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('grade', models.CharField(choices=[('SPECIALTY', 'Specialty'), ('PREMIUM', 'Premium'), ('RARITY', 'Rarity')], default='SPECIALTY', max_length=20)),
                ('country', models.CharField(blank=True, max_length=100)),
                ('producer', models.CharField(blank=True, max_length=200)),
                ('notes', models.TextField(blank=True)),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=10, validators=[MinValueValidator(Decimal('0.000'))])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_coffees', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'green_coffee',
                'ordering': ['grade', 'name'],
                'unique_together': {('name', 'country', 'producer')},
                'indexes': [
                    models.Index(fields=['grade'], name='green_coffe_grade_5c1e0a_idx'),
                ],
            },
        ),
    ]
