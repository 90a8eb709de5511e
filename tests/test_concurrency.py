"""
Threaded tests for the per-user lock: competing tier and badge mutations of
one user must serialize, never both acting on the same badges.
"""
import threading

from django.contrib.auth import get_user_model
from django.db import connection
from django.test import TransactionTestCase

from apps.badges.models import UserBadge
from apps.badges.services import BadgeService
from apps.tiers.catalog import TierCatalog, set_catalog
from apps.tiers.exceptions import (
    BadgeRequirementUnmet, InvalidTierTransition, PendingUpgradeConflict, TierProgressionError,
    UpgradeInterrupted,
)
from apps.tiers.issuers import IssuerClient
from apps.tiers.models import TierChangeLog, UpgradeRequest, UserProgress
from apps.tiers.services import UpgradeService
from tests.factories import UserBadgeFactory, create_user_with_tier
from tests.issuers import RecordingIssuer

# Tiers 2 and 3 both consume badges 7 and 8
SHARED_BADGE_CATALOG = {
    'tiers': [
        {'level': 1, 'name': 'Tier 1', 'required_volume': '50000', 'fee_discount': '10'},
        {'level': 2, 'name': 'Tier 2', 'required_volume': '150000', 'fee_discount': '20',
         'required_badge_ids': [7, 8]},
        {'level': 3, 'name': 'Tier 3', 'required_volume': '500000', 'fee_discount': '30',
         'required_badge_ids': [7, 8]},
    ],
    'badges': [
        {'id': 7, 'name': 'Badge 7', 'tier_level': 2, 'task_id': 1007},
        {'id': 8, 'name': 'Badge 8', 'tier_level': 2, 'task_id': 1008},
    ],
}


def run_together(*targets):
    """Start every target at once on its own thread; returns (results, errors) by index"""
    barrier = threading.Barrier(len(targets))
    results = [None] * len(targets)
    errors = [None] * len(targets)

    def run(index, target):
        try:
            barrier.wait(5)
            results[index] = target()
        except Exception as e:
            errors[index] = e
        finally:
            connection.close()

    threads = [threading.Thread(target=run, args=(i, t)) for i, t in enumerate(targets)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(30)
    return results, errors


class ConcurrencyTestCase(TransactionTestCase):

    def setUp(self):
        set_catalog(TierCatalog.from_dict(SHARED_BADGE_CATALOG))
        self.addCleanup(set_catalog, None)
        self.issuer = RecordingIssuer()
        self.client_ = IssuerClient(issuer=self.issuer, timeout=5)

    def fresh_user(self, user):
        return get_user_model().objects.get(pk=user.pk)


class TestCompetingUpgrades(ConcurrencyTestCase):

    def test_only_one_upgrade_consumes_the_shared_badges(self):
        user, _ = create_user_with_tier(level=1, trading_volume=600000)
        for badge_id in (7, 8):
            UserBadgeFactory(user=user, badge_id=badge_id, status=UserBadge.ACTIVATED)

        results, errors = run_together(
            lambda: UpgradeService.request_upgrade(self.fresh_user(user), 1, 2, client=self.client_),
            lambda: UpgradeService.request_upgrade(self.fresh_user(user), 1, 3, client=self.client_),
        )

        winners = [result for result in results if result is not None]
        losers = [error for error in errors if error is not None]
        self.assertEqual(len(winners), 1)
        self.assertEqual(len(losers), 1)
        self.assertIsInstance(losers[0], (PendingUpgradeConflict, InvalidTierTransition))

        upgrade = UpgradeRequest.objects.get(user=user)
        self.assertEqual(upgrade.status, UpgradeRequest.COMPLETED)
        self.assertEqual(upgrade.to_level, winners[0].tier_level)
        consumed_by = set(UserBadge.objects.filter(user=user).values_list('consumed_by', flat=True))
        self.assertEqual(consumed_by, {upgrade.pk})
        self.assertEqual(self.issuer.count('burn'), 1)
        self.assertEqual(UserProgress.objects.get(user=user).tier_level, upgrade.to_level)

    def test_same_upgrade_twice_opens_one_request(self):
        user, _ = create_user_with_tier(level=1, trading_volume=600000)
        for badge_id in (7, 8):
            UserBadgeFactory(user=user, badge_id=badge_id, status=UserBadge.ACTIVATED)

        results, errors = run_together(
            lambda: UpgradeService.request_upgrade(self.fresh_user(user), 1, 2, client=self.client_),
            lambda: UpgradeService.request_upgrade(self.fresh_user(user), 1, 2, client=self.client_),
        )

        # The later call either resumes the same request or finds tier 1 already gone
        for error in errors:
            if error is not None:
                self.assertIsInstance(error, TierProgressionError)
        self.assertTrue(any(result is not None for result in results))
        self.assertEqual(UpgradeRequest.objects.filter(user=user).count(), 1)
        self.assertEqual(TierChangeLog.objects.filter(user=user, reason=TierChangeLog.UPGRADE).count(), 1)
        self.assertEqual(UserProgress.objects.get(user=user).tier_level, 2)


class TestActivationDuringUpgrade(ConcurrencyTestCase):

    def test_activation_and_upgrade_serialize(self):
        user, _ = create_user_with_tier(level=1, trading_volume=600000)
        UserBadgeFactory(user=user, badge_id=7, status=UserBadge.ACTIVATED)
        UserBadgeFactory(user=user, badge_id=8, status=UserBadge.OWNED)

        results, errors = run_together(
            lambda: BadgeService.activate_badge(self.fresh_user(user), 8),
            lambda: UpgradeService.request_upgrade(self.fresh_user(user), 1, 2, client=self.client_),
        )

        self.assertIsNone(errors[0])
        badges = dict(UserBadge.objects.filter(user=user).values_list('badge_id', 'status'))
        if errors[1] is None:
            # Activation landed first, the upgrade consumed both badges
            self.assertEqual(results[1].tier_level, 2)
            self.assertEqual(badges, {7: UserBadge.CONSUMED, 8: UserBadge.CONSUMED})
        else:
            # Upgrade validated first and saw badge 8 only owned
            self.assertIsInstance(errors[1], BadgeRequirementUnmet)
            self.assertFalse(UpgradeRequest.objects.filter(user=user).exists())
            self.assertEqual(badges, {7: UserBadge.ACTIVATED, 8: UserBadge.ACTIVATED})


class RollbackClaimedDuringMint(RecordingIssuer):
    """Claims a rollback of the upgrade while its mint is on the wire"""

    def __init__(self, upgrade_request_id):
        super().__init__()
        self.upgrade_request_id = upgrade_request_id

    def mint(self, request_key, user_id, level):
        if not request_key.endswith(':rollback'):
            try:
                UpgradeRequest.objects.filter(pk=self.upgrade_request_id).update(
                    status=UpgradeRequest.ROLLBACK_PENDING
                )
            finally:
                connection.close()
        return super().mint(request_key, user_id, level)


class TestRollbackDuringUpgrade(ConcurrencyTestCase):

    def test_claimed_rollback_is_not_completed_by_the_upgrade(self):
        user, _ = create_user_with_tier(level=2, trading_volume=600000)
        for badge_id in (7, 8):
            UserBadgeFactory(user=user, badge_id=badge_id, status=UserBadge.ACTIVATED)
        self.issuer.fail_mints = 1
        with self.assertRaises(UpgradeInterrupted):
            UpgradeService.request_upgrade(user, 2, 3, client=self.client_)
        pending = UpgradeRequest.objects.get(user=user)

        issuer = RollbackClaimedDuringMint(pending.pk)
        client = IssuerClient(issuer=issuer, timeout=5)
        with self.assertRaises(UpgradeInterrupted) as ctx:
            UpgradeService.request_upgrade(user, 2, 3, client=client)

        self.assertEqual(ctx.exception.upgrade_status, UpgradeRequest.ROLLBACK_PENDING)
        self.assertEqual(UserProgress.objects.get(user=user).tier_level, 0)
        self.assertFalse(TierChangeLog.objects.filter(user=user, reason=TierChangeLog.UPGRADE).exists())

        UpgradeService.rollback_upgrade(pending, client=client)

        pending.refresh_from_db()
        self.assertEqual(pending.status, UpgradeRequest.ROLLED_BACK)
        progress = UserProgress.objects.get(user=user)
        self.assertEqual((progress.tier_level, progress.tier_state), (2, UserProgress.ACTIVE))
        statuses = set(UserBadge.objects.filter(user=user).values_list('status', flat=True))
        self.assertEqual(statuses, {UserBadge.ACTIVATED})
