"""Widen Cart.total so large carts fit."""

from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):
    """Cart.total from 12 to 24 digits."""

    dependencies = [
        ('django_epharmacy', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='cart',
            name='total',
            field=models.DecimalField(
                decimal_places=2,
                default=Decimal('0.00'),
                max_digits=24,
                verbose_name='total',
            ),
        ),
    ]
