"""
Tests for the reconcile_upgrades management command
"""
from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.tiers.catalog import set_catalog
from apps.tiers.models import UpgradeRequest, UserProgress
from tests.factories import UpgradeRequestFactory, build_catalog, create_user_with_tier


@override_settings(TIER_ISSUER_BACKEND='apps.tiers.issuers.LocalTierIssuer')
class TestReconcileUpgradesCommand(TestCase):

    def setUp(self):
        set_catalog(build_catalog([100, 1000, 10000]))
        self.addCleanup(set_catalog, None)
        self.user, progress = create_user_with_tier(level=0, trading_volume=20000)
        progress.tier_state = UserProgress.PENDING_UPGRADE
        progress.save()
        self.pending = UpgradeRequestFactory(
            user=self.user, from_level=1, to_level=2, status=UpgradeRequest.BURN_CONFIRMED,
            burned_at=timezone.now(),
        )

    def run_command(self, *args):
        out = StringIO()
        call_command('reconcile_upgrades', *args, stdout=out)
        return out.getvalue()

    def test_lists_unfinished_upgrades(self):
        output = self.run_command()

        self.assertIn(f'#{self.pending.id}', output)
        self.assertIn('1 -> 2 burn_confirmed', output)

    def test_resume_completes_pending_upgrades(self):
        output = self.run_command('--resume')

        self.assertIn('1 completed, 0 interrupted', output)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.status, UpgradeRequest.COMPLETED)
        progress = UserProgress.objects.get(user=self.user)
        self.assertEqual((progress.tier_level, progress.tier_state), (2, UserProgress.ACTIVE))

    @override_settings(TIER_PENDING_UPGRADE_STALE_SECONDS=60)
    def test_flag_stale(self):
        UpgradeRequest.objects.filter(pk=self.pending.pk).update(updated_at=timezone.now() - timedelta(hours=1))

        output = self.run_command('--flag-stale')

        self.assertIn('1 stale upgrades flagged', output)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.status, UpgradeRequest.RECONCILIATION_REQUIRED)

    def test_rollback(self):
        output = self.run_command('--rollback', str(self.pending.id))

        self.assertIn('is back at tier 1', output)
        progress = UserProgress.objects.get(user=self.user)
        self.assertEqual((progress.tier_level, progress.tier_state), (1, UserProgress.ACTIVE))

    def test_retry_flagged_upgrade(self):
        UpgradeRequest.objects.filter(pk=self.pending.pk).update(status=UpgradeRequest.RECONCILIATION_REQUIRED)

        output = self.run_command('--retry', str(self.pending.id))

        self.assertIn('completed at tier 2', output)

    def test_unknown_request(self):
        with self.assertRaises(CommandError):
            self.run_command('--rollback', '999999')

    def test_rolling_back_completed_upgrade_fails(self):
        self.run_command('--resume')

        with self.assertRaises(CommandError):
            self.run_command('--rollback', str(self.pending.id))
