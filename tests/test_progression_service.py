"""
Tests for tier claims, trading volume intake, special tiers and fee discounts
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.badges.models import UserBadge
from apps.tiers.catalog import set_catalog
from apps.tiers.exceptions import (
    BadgeRequirementUnmet, InsufficientVolume, InvalidTierTransition, InvalidVolume,
    IssuerUnavailable, PendingUpgradeConflict, TierOutOfRange, UnknownSpecialTier, UpgradeInterrupted,
    UpgradeRequestNotFound,
)
from apps.tiers.issuers import IssuerClient
from apps.tiers.models import TierChangeLog, TradeRecord, UpgradeRequest, UserProgress
from apps.tiers.services import ProgressionService, UpgradeService
from tests.factories import (
    UpgradeRequestFactory, UserBadgeFactory, UserFactory, build_catalog, create_user_with_tier,
)
from tests.issuers import RecordingIssuer

SPECIAL_TIERS = [
    {'code': 'trophy_breeder', 'name': 'Trophy Breeder', 'fee_discount': '25', 'benefits': {'crown': True}},
    {'code': 'whale', 'name': 'Whale', 'fee_discount': '80'},
]


class ProgressionTestCase(TestCase):
    """Ladder 100k / 500k / 5M; tier 1 requires badge 1, tier 3 is directly claimable"""

    def setUp(self):
        set_catalog(build_catalog(
            [100000, 500000, 5000000],
            badges_by_level={1: [1], 2: [3, 4]},
            special_tiers=SPECIAL_TIERS,
            direct_claim=(3,),
        ))
        self.addCleanup(set_catalog, None)
        self.issuer = RecordingIssuer()
        self.client_ = IssuerClient(issuer=self.issuer, timeout=2)

    def claim_ready_user(self, trading_volume=150000):
        user, _ = create_user_with_tier(level=0, trading_volume=trading_volume)
        UserBadgeFactory(user=user, badge_id=1, status=UserBadge.ACTIVATED)
        return user


class TestClaimTier(ProgressionTestCase):

    def test_claim_mints_and_activates_tier(self):
        user = self.claim_ready_user()

        result = ProgressionService.claim_tier(user, 1, client=self.client_)

        self.assertTrue(result.changed)
        self.assertEqual(result.level, 1)
        self.assertEqual(result.fee_discount, Decimal('10'))
        self.assertEqual(result.benefits, {'level': 1})
        self.assertTrue(result.mint_reference.startswith('mint-1'))
        self.assertEqual(self.issuer.calls, [('mint', 1)])

        progress = UserProgress.objects.get(user=user)
        self.assertEqual(progress.tier_level, 1)
        self.assertEqual(progress.tier_state, UserProgress.ACTIVE)
        self.assertIsNotNone(progress.tier_claimed_at)

        log = TierChangeLog.objects.get(user=user)
        self.assertEqual((log.from_level, log.to_level, log.reason), (0, 1, TierChangeLog.CLAIM))
        self.assertEqual(log.trading_volume, Decimal('150000.00'))

    def test_claiming_held_tier_is_idempotent(self):
        user = self.claim_ready_user()
        ProgressionService.claim_tier(user, 1, client=self.client_)

        result = ProgressionService.claim_tier(user, 1, client=self.client_)

        self.assertFalse(result.changed)
        self.assertEqual(result.level, 1)
        self.assertEqual(self.issuer.count('mint'), 1)
        self.assertEqual(TierChangeLog.objects.filter(user=user).count(), 1)

    def test_claim_then_evaluate_reports_claimed_tier(self):
        user = self.claim_ready_user()
        ProgressionService.claim_tier(user, 1, client=self.client_)

        progress, snapshot = ProgressionService.get_snapshot(user)

        self.assertEqual(snapshot.held_tier_level, 1)
        self.assertEqual(snapshot.current_tier_level, 1)
        self.assertEqual(snapshot.next_tier_level, 2)
        self.assertEqual(snapshot.fee_discount, Decimal('10'))

    def test_claim_below_required_volume_is_rejected(self):
        user = self.claim_ready_user(trading_volume=99999.99)

        with self.assertRaises(InsufficientVolume) as ctx:
            ProgressionService.claim_tier(user, 1, client=self.client_)

        self.assertEqual(ctx.exception.shortfall, Decimal('0.01'))
        self.assertEqual(self.issuer.calls, [])
        self.assertEqual(UserProgress.objects.get(user=user).tier_level, 0)

    def test_claim_without_activated_badges_is_rejected(self):
        user, _ = create_user_with_tier(level=0, trading_volume=150000)
        UserBadgeFactory(user=user, badge_id=1, status=UserBadge.OWNED)

        with self.assertRaises(BadgeRequirementUnmet) as ctx:
            ProgressionService.claim_tier(user, 1, client=self.client_)

        self.assertEqual(ctx.exception.missing_badge_ids, [1])

    def test_tier_reached_only_by_upgrade_cannot_be_claimed(self):
        user = self.claim_ready_user(trading_volume=600000)

        with self.assertRaises(InvalidTierTransition):
            ProgressionService.claim_tier(user, 2, client=self.client_)

    def test_directly_claimable_tier(self):
        user = self.claim_ready_user(trading_volume=5000000)

        result = ProgressionService.claim_tier(user, 3, client=self.client_)

        self.assertEqual(result.level, 3)
        self.assertEqual(UserProgress.objects.get(user=user).tier_level, 3)

    def test_claim_out_of_range(self):
        user = self.claim_ready_user()

        with self.assertRaises(TierOutOfRange):
            ProgressionService.claim_tier(user, 9, client=self.client_)

    def test_claim_while_holding_another_tier_is_rejected(self):
        user, _ = create_user_with_tier(level=1, trading_volume=6000000)

        with self.assertRaises(InvalidTierTransition):
            ProgressionService.claim_tier(user, 3, client=self.client_)

    def test_mint_failure_leaves_state_untouched(self):
        user = self.claim_ready_user()
        self.issuer.fail_mints = 1

        with self.assertRaises(IssuerUnavailable):
            ProgressionService.claim_tier(user, 1, client=self.client_)

        progress = UserProgress.objects.get(user=user)
        self.assertEqual(progress.tier_level, 0)
        self.assertEqual(progress.tier_state, UserProgress.NO_TIER)
        self.assertFalse(TierChangeLog.objects.filter(user=user).exists())

    def test_claim_during_pending_upgrade_conflicts(self):
        user, _ = create_user_with_tier(level=1, trading_volume=600000)
        UserBadgeFactory(user=user, badge_id=3, status=UserBadge.ACTIVATED)
        UserBadgeFactory(user=user, badge_id=4, status=UserBadge.ACTIVATED)
        self.issuer.fail_mints = 1
        with self.assertRaises(UpgradeInterrupted):
            UpgradeService.request_upgrade(user, 1, 2, client=self.client_)

        with self.assertRaises(PendingUpgradeConflict):
            ProgressionService.claim_tier(user, 1, client=self.client_)


class TestTradingVolume(ProgressionTestCase):

    def test_volume_accumulates(self):
        user, _ = create_user_with_tier(level=0, trading_volume=0)

        ProgressionService.record_trading_volume(user, '60000.50')
        progress = ProgressionService.record_trading_volume(user, 39999.5)

        self.assertEqual(progress.trading_volume, Decimal('100000.00'))
        self.assertEqual(UserProgress.objects.get(user=user).trading_volume, Decimal('100000.00'))

    def test_non_positive_amounts_are_rejected(self):
        user, _ = create_user_with_tier(level=0, trading_volume=10)

        for amount in (0, -5, 'NaN', 'Infinity', 'abc', None):
            with self.subTest(amount=amount):
                with self.assertRaises(InvalidVolume):
                    ProgressionService.record_trading_volume(user, amount)

        self.assertEqual(UserProgress.objects.get(user=user).trading_volume, Decimal('10.00'))

    def test_volume_alone_does_not_change_held_tier(self):
        user, _ = create_user_with_tier(level=0, trading_volume=0)

        ProgressionService.record_trading_volume(user, 1000000)
        _, snapshot = ProgressionService.get_snapshot(user)

        self.assertEqual(snapshot.held_tier_level, 0)
        self.assertEqual(snapshot.volume_tier_level, 2)
        self.assertEqual(snapshot.current_tier_level, 0)


    def test_replayed_trade_reference_is_counted_once(self):
        user, _ = create_user_with_tier(level=0, trading_volume=0)

        ProgressionService.record_trading_volume(user, '500', reference_id='trade-1')
        progress = ProgressionService.record_trading_volume(user, '500', reference_id='trade-1')

        self.assertEqual(progress.trading_volume, Decimal('500.00'))
        self.assertEqual(TradeRecord.objects.filter(user=user).count(), 1)

    def test_trade_records_the_held_tier_discount_on_the_fee(self):
        user, _ = create_user_with_tier(level=2, trading_volume=600000)

        ProgressionService.record_trading_volume(user, '1000', fee='12.50')

        trade = TradeRecord.objects.get(user=user)
        self.assertEqual(trade.fee_discount, Decimal('20.00'))
        self.assertEqual(trade.fee_saved, Decimal('2.50'))
        self.assertEqual(trade.tier_level, 2)
        self.assertEqual(trade.volume_after, Decimal('601000.00'))

    def test_negative_fee_is_rejected(self):
        user, _ = create_user_with_tier(level=1, trading_volume=200000)

        with self.assertRaises(InvalidVolume):
            ProgressionService.record_trading_volume(user, '10', fee='-1')

        self.assertFalse(TradeRecord.objects.filter(user=user).exists())

    def test_trading_summary_windows(self):
        user, _ = create_user_with_tier(level=1, trading_volume=100000)
        ProgressionService.record_trading_volume(user, '300')
        ProgressionService.record_trading_volume(user, '200')
        old = TradeRecord.objects.create(
            user=user, amount=Decimal('5000'), volume_after=Decimal('105500'), tier_level=1
        )
        TradeRecord.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=20))

        summary = ProgressionService.get_trading_summary(user)

        self.assertEqual(summary['trading_volume'], Decimal('100500.00'))
        self.assertEqual(summary['total_trades'], 3)
        self.assertEqual(summary['largest_trade'], Decimal('5000.00'))
        self.assertEqual(summary['volume_last_7_days'], Decimal('500.00'))
        self.assertEqual(summary['volume_last_30_days'], Decimal('5500.00'))
        self.assertEqual(summary['next_tier_level'], 2)
        self.assertEqual(summary['next_tier_shortfall'], Decimal('399500.00'))


class TestFeeSavings(ProgressionTestCase):

    def test_savings_follow_the_discount_held_at_trade_time(self):
        user, _ = create_user_with_tier(level=1, trading_volume=150000)
        ProgressionService.record_trading_volume(user, '1000', fee='100')
        UserProgress.objects.filter(user=user).update(tier_level=2)
        ProgressionService.award_special_tier(user, 'trophy_breeder')
        ProgressionService.record_trading_volume(user, '1000', fee='100')
        ProgressionService.record_trading_volume(user, '1000')

        savings = ProgressionService.get_fee_savings(user)

        self.assertEqual(savings['tier_level'], 2)
        self.assertEqual(savings['tier_name'], 'Tier 2')
        self.assertEqual(savings['fee_discount'], Decimal('45'))
        self.assertEqual(savings['total_fees'], Decimal('200.00'))
        self.assertEqual(savings['total_saved'], Decimal('55.00'))
        self.assertEqual(savings['discounted_trades'], 2)
        self.assertEqual(savings['savings_breakdown']['last_30_days'], Decimal('55.00'))

    def test_old_savings_drop_out_of_recent_windows(self):
        user, _ = create_user_with_tier(level=1, trading_volume=150000)
        ProgressionService.record_trading_volume(user, '1000', fee='50')
        TradeRecord.objects.filter(user=user).update(created_at=timezone.now() - timedelta(days=60))

        breakdown = ProgressionService.get_fee_savings(user)['savings_breakdown']

        self.assertEqual(breakdown['last_30_days'], Decimal('0.00'))
        self.assertEqual(breakdown['last_90_days'], Decimal('5.00'))
        self.assertEqual(breakdown['last_year'], Decimal('5.00'))

    def test_user_without_tier_saves_nothing(self):
        user, _ = create_user_with_tier(level=0, trading_volume=0)
        ProgressionService.record_trading_volume(user, '1000', fee='50')

        savings = ProgressionService.get_fee_savings(user)

        self.assertIsNone(savings['tier_name'])
        self.assertEqual(savings['total_fees'], Decimal('50.00'))
        self.assertEqual(savings['total_saved'], Decimal('0.00'))
        self.assertEqual(savings['discounted_trades'], 0)


class TestUpgradeRequestLookup(ProgressionTestCase):

    def test_lookup_is_limited_to_the_owner(self):
        owner = UserFactory()
        other = UserFactory()
        upgrade = UpgradeRequestFactory(user=owner)

        self.assertEqual(ProgressionService.get_upgrade_request(owner, upgrade.pk), upgrade)
        with self.assertRaises(UpgradeRequestNotFound):
            ProgressionService.get_upgrade_request(other, upgrade.pk)

    def test_requests_filter_by_status(self):
        user = UserFactory()
        UpgradeRequestFactory(user=user, status=UpgradeRequest.COMPLETED)
        rolled_back = UpgradeRequestFactory(user=user, status=UpgradeRequest.ROLLED_BACK)

        requests = ProgressionService.get_upgrade_requests(user, status=UpgradeRequest.ROLLED_BACK)

        self.assertEqual(list(requests), [rolled_back])
        self.assertEqual(len(ProgressionService.get_upgrade_requests(user)), 2)


class TestSpecialTiersAndDiscounts(ProgressionTestCase):

    def test_award_special_tier_is_idempotent(self):
        user = UserFactory()

        special, created = ProgressionService.award_special_tier(user, 'trophy_breeder', 'season winner')
        again, created_again = ProgressionService.award_special_tier(user, 'trophy_breeder')

        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(special.pk, again.pk)
        self.assertEqual(again.reason, 'season winner')

    def test_unknown_special_tier(self):
        user = UserFactory()

        with self.assertRaises(UnknownSpecialTier):
            ProgressionService.award_special_tier(user, 'nope')

    def test_special_discount_stacks_on_tier_discount(self):
        user, _ = create_user_with_tier(level=2, trading_volume=600000)
        ProgressionService.award_special_tier(user, 'trophy_breeder')

        discount = ProgressionService.get_fee_discount(user, fee='200')

        self.assertEqual(discount['tier_level'], 2)
        self.assertEqual(discount['special_tiers'], ['trophy_breeder'])
        self.assertEqual(discount['fee_discount'], Decimal('45'))
        self.assertEqual(discount['discounted_fee'], Decimal('110.00'))

    def test_stacked_discount_is_capped(self):
        user, _ = create_user_with_tier(level=3, trading_volume=6000000)
        ProgressionService.award_special_tier(user, 'trophy_breeder')
        ProgressionService.award_special_tier(user, 'whale')

        discount = ProgressionService.get_fee_discount(user, fee=50)

        self.assertEqual(discount['fee_discount'], Decimal('100'))
        self.assertEqual(discount['discounted_fee'], Decimal('0.00'))

    def test_special_tier_without_tier(self):
        user, _ = create_user_with_tier(level=0)
        ProgressionService.award_special_tier(user, 'trophy_breeder')

        discount = ProgressionService.get_fee_discount(user)

        self.assertEqual(discount['fee_discount'], Decimal('25'))
        self.assertNotIn('discounted_fee', discount)


class TestUpgradeEligibility(ProgressionTestCase):

    def test_eligible_holder(self):
        user, _ = create_user_with_tier(level=1, trading_volume=600000)
        UserBadgeFactory(user=user, badge_id=3, status=UserBadge.ACTIVATED)
        UserBadgeFactory(user=user, badge_id=4, status=UserBadge.ACTIVATED)

        eligibility = ProgressionService.get_upgrade_eligibility(user)

        self.assertTrue(eligibility['can_upgrade'])
        self.assertEqual(eligibility['next_level'], 2)
        self.assertEqual(eligibility['required_badge_ids'], [3, 4])
        self.assertEqual(eligibility['missing_badge_ids'], [])

    def test_missing_requirements_are_reported(self):
        user, _ = create_user_with_tier(level=1, trading_volume=400000)
        UserBadgeFactory(user=user, badge_id=3, status=UserBadge.ACTIVATED)

        eligibility = ProgressionService.get_upgrade_eligibility(user)

        self.assertFalse(eligibility['can_upgrade'])
        self.assertEqual(eligibility['shortfall'], Decimal('100000.00'))
        self.assertEqual(eligibility['progress'], 80)
        self.assertEqual(eligibility['missing_badge_ids'], [4])

    def test_user_without_tier_cannot_upgrade(self):
        user, _ = create_user_with_tier(level=0, trading_volume=6000000)

        eligibility = ProgressionService.get_upgrade_eligibility(user)

        self.assertFalse(eligibility['can_upgrade'])
