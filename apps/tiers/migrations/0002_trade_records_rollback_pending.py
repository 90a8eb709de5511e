from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('tiers', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='upgraderequest',
            name='status',
            field=models.CharField(choices=[('burn_pending', 'Burn pending'), ('burn_confirmed', 'Burn confirmed'), ('completed', 'Completed'), ('reconciliation_required', 'Reconciliation required'), ('rollback_pending', 'Rollback pending'), ('rolled_back', 'Rolled back')], default='burn_pending', max_length=30),
        ),
        migrations.CreateModel(
            name='TradeRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=20)),
                ('volume_after', models.DecimalField(decimal_places=2, max_digits=20)),
                ('fee', models.DecimalField(blank=True, decimal_places=2, max_digits=20, null=True)),
                ('fee_discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=5)),
                ('fee_saved', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=20)),
                ('tier_level', models.PositiveSmallIntegerField(default=0)),
                ('reference_id', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tier_trades', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'tier_trade_records',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.AddConstraint(
            model_name='traderecord',
            constraint=models.UniqueConstraint(fields=('user', 'reference_id'), name='unique_trade_reference_per_user'),
        ),
    ]
