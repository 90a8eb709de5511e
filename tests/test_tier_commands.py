"""
Tests for the record_trading_volume and award_special_tier management commands
"""
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from apps.tiers.catalog import set_catalog
from apps.tiers.models import TradeRecord, UserProgress, UserSpecialTier
from tests.factories import UserFactory, build_catalog, create_user_with_tier

SPECIAL_TIERS = [{'code': 'trophy_breeder', 'name': 'Trophy Breeder', 'fee_discount': '25'}]


class TierCommandTestCase(TestCase):

    def setUp(self):
        set_catalog(build_catalog([100, 1000, 10000], special_tiers=SPECIAL_TIERS))
        self.addCleanup(set_catalog, None)

    def run_command(self, name, *args, **options):
        out = StringIO()
        call_command(name, *args, stdout=out, **options)
        return out.getvalue()


class TestRecordTradingVolumeCommand(TierCommandTestCase):

    def test_adds_volume(self):
        user, _ = create_user_with_tier(level=1, trading_volume=150)

        output = self.run_command('record_trading_volume', str(user.id), '49.5')

        self.assertIn('250.00', output)
        self.assertEqual(UserProgress.objects.get(user=user).trading_volume, Decimal('250.00'))

    def test_records_fee_and_reference(self):
        user, _ = create_user_with_tier(level=1, trading_volume=150)

        self.run_command('record_trading_volume', str(user.id), '10', fee='4', reference='t-9')
        self.run_command('record_trading_volume', str(user.id), '10', fee='4', reference='t-9')

        trade = TradeRecord.objects.get(user=user)
        self.assertEqual(trade.reference_id, 't-9')
        self.assertEqual(trade.fee_saved, Decimal('0.40'))
        self.assertEqual(UserProgress.objects.get(user=user).trading_volume, Decimal('160.00'))

    def test_invalid_amount_is_a_command_error(self):
        user, _ = create_user_with_tier(level=0, trading_volume=0)

        for amount in ('0', '-3', 'abc', 'NaN'):
            with self.subTest(amount=amount):
                with self.assertRaises(CommandError):
                    self.run_command('record_trading_volume', str(user.id), amount)

        self.assertEqual(UserProgress.objects.get(user=user).trading_volume, Decimal('0.00'))

    def test_unknown_user_is_a_command_error(self):
        with self.assertRaisesMessage(CommandError, 'not found'):
            self.run_command('record_trading_volume', '999999', '10')


class TestAwardSpecialTierCommand(TierCommandTestCase):

    def test_awards_special_tier(self):
        user = UserFactory()

        output = self.run_command('award_special_tier', str(user.id), 'trophy_breeder', reason='season winner')

        self.assertIn('Awarded special tier trophy_breeder', output)
        special = UserSpecialTier.objects.get(user=user)
        self.assertEqual(special.reason, 'season winner')

    def test_second_award_reports_existing_tier(self):
        user = UserFactory()
        self.run_command('award_special_tier', str(user.id), 'trophy_breeder')

        output = self.run_command('award_special_tier', str(user.id), 'trophy_breeder')

        self.assertIn('already holds', output)
        self.assertEqual(UserSpecialTier.objects.filter(user=user).count(), 1)

    def test_unknown_code_is_a_command_error(self):
        user = UserFactory()

        with self.assertRaisesMessage(CommandError, 'not in the catalog'):
            self.run_command('award_special_tier', str(user.id), 'nope')

    def test_unknown_user_is_a_command_error(self):
        with self.assertRaisesMessage(CommandError, 'not found'):
            self.run_command('award_special_tier', '999999', 'trophy_breeder')
