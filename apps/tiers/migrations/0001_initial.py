from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='UserProgress',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('trading_volume', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=20)),
                ('tier_level', models.PositiveSmallIntegerField(default=0)),
                ('tier_state', models.CharField(choices=[('no_tier', 'No tier'), ('active', 'Active'), ('pending_upgrade', 'Pending upgrade')], default='no_tier', max_length=20)),
                ('tier_claimed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='tier_progress', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_tier_progress',
            },
        ),
        migrations.CreateModel(
            name='UpgradeRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('request_key', models.CharField(db_index=True, max_length=64)),
                ('from_level', models.PositiveSmallIntegerField()),
                ('to_level', models.PositiveSmallIntegerField()),
                ('status', models.CharField(choices=[('burn_pending', 'Burn pending'), ('burn_confirmed', 'Burn confirmed'), ('completed', 'Completed'), ('reconciliation_required', 'Reconciliation required'), ('rolled_back', 'Rolled back')], default='burn_pending', max_length=30)),
                ('burn_reference', models.CharField(blank=True, max_length=200)),
                ('mint_reference', models.CharField(blank=True, max_length=200)),
                ('burned_at', models.DateTimeField(blank=True, null=True)),
                ('retry_count', models.PositiveIntegerField(default=0)),
                ('max_retries', models.PositiveIntegerField(default=3)),
                ('last_error', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tier_upgrade_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'tier_upgrade_requests',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='TierChangeLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_level', models.PositiveSmallIntegerField(default=0)),
                ('to_level', models.PositiveSmallIntegerField()),
                ('reason', models.CharField(choices=[('claim', 'Claim'), ('upgrade', 'Upgrade'), ('rollback', 'Rollback')], max_length=20)),
                ('trading_volume', models.DecimalField(decimal_places=2, max_digits=20)),
                ('reference', models.CharField(blank=True, max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('upgrade_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='change_logs', to='tiers.upgraderequest')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tier_changes', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'tier_change_logs',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='UserSpecialTier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50)),
                ('reason', models.CharField(blank=True, max_length=200)),
                ('awarded_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='special_tiers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_special_tiers',
                'ordering': ['awarded_at'],
                'unique_together': {('user', 'code')},
            },
        ),
    ]
