"""
Tests for the pure tier progression rules
"""
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from apps.tiers.engine import (
    TIER_STATUS_ACTIVE, TIER_STATUS_LOCKED, TIER_STATUS_UNLOCKABLE,
    apply_fee_discount, evaluate_progress, fee_discount, merge_benefits,
    progress_percentage, upgrade_request_key,
)
from apps.tiers.exceptions import InvalidVolume, UnknownBadge
from tests.factories import build_catalog

LADDER = build_catalog([50000, 150000, 500000])
GATED_LADDER = build_catalog([50000, 150000, 500000], badges_by_level={2: [1, 2], 3: [3]})
SPECIAL_LADDER = build_catalog(
    [100, 200],
    discounts={1: 10, 2: 80},
    special_tiers=[
        {'code': 'trophy', 'name': 'Trophy', 'fee_discount': '25', 'benefits': {'crown': True}},
        {'code': 'legend', 'name': 'Legend', 'fee_discount': '30', 'benefits': {'level': 'legend'}},
    ],
)

volumes = st.decimals(min_value=0, max_value=10 ** 9, places=2, allow_nan=False, allow_infinity=False)
badge_sets = st.sets(st.sampled_from([1, 2, 3]))


class TestEvaluateProgress:

    def test_volume_between_first_and_second_tier(self):
        snapshot = evaluate_progress(LADDER, 75000)

        assert snapshot.current_tier_level == 1
        assert snapshot.next_tier_level == 2
        assert snapshot.next_tier_progress == 50
        assert snapshot.next_tier_shortfall == Decimal('75000.00')

    def test_volume_below_first_tier_is_no_tier(self):
        snapshot = evaluate_progress(LADDER, 49999.99)

        assert snapshot.current_tier_level == 0
        assert snapshot.next_tier_level == 1
        assert snapshot.next_tier_progress == 99
        assert snapshot.fee_discount == Decimal('0')

    def test_progress_is_clamped_for_unclaimed_tier(self):
        snapshot = evaluate_progress(LADDER, 400000, claimed_level=0)

        assert snapshot.current_tier_level == 2
        assert snapshot.next_tier_level == 1
        assert snapshot.next_tier_progress == 100
        assert snapshot.next_tier_shortfall == Decimal('0.00')
        assert snapshot.can_upgrade

    def test_max_level_has_no_next_tier(self):
        snapshot = evaluate_progress(LADDER, 10 ** 7)

        assert snapshot.current_tier_level == 3
        assert snapshot.next_tier_level is None
        assert snapshot.next_tier_progress is None
        assert not snapshot.can_upgrade

    def test_badge_gate_stops_the_ladder(self):
        snapshot = evaluate_progress(GATED_LADDER, 600000, owned=[1, 2], activated=[])

        assert snapshot.volume_tier_level == 3
        assert snapshot.current_tier_level == 1
        assert snapshot.next_tier_missing_badge_ids == (1, 2)
        assert not snapshot.can_upgrade

    def test_activated_and_consumed_badges_satisfy_the_gate(self):
        snapshot = evaluate_progress(GATED_LADDER, 600000, activated=[3], consumed=[1, 2])

        assert snapshot.current_tier_level == 3

    def test_owned_badges_do_not_count_until_activated(self):
        snapshot = evaluate_progress(GATED_LADDER, 200000, owned=[1], activated=[2])

        assert snapshot.current_tier_level == 1
        assert snapshot.next_tier_missing_badge_ids == (1,)

    def test_tier_rows_report_status_against_claimed_level(self):
        snapshot = evaluate_progress(GATED_LADDER, 200000, activated=[1, 2], claimed_level=1)

        statuses = {row.level: row.status for row in snapshot.tiers}
        assert statuses == {1: TIER_STATUS_ACTIVE, 2: TIER_STATUS_UNLOCKABLE, 3: TIER_STATUS_LOCKED}
        assert snapshot.tiers[2].missing_badge_ids == (3,)
        assert snapshot.tiers[2].progress == 40

    def test_claimed_level_drives_discount_and_benefits(self):
        snapshot = evaluate_progress(LADDER, 600000, claimed_level=1)

        assert snapshot.current_tier_level == 3
        assert snapshot.held_tier_level == 1
        assert snapshot.fee_discount == Decimal('10')
        assert snapshot.benefits == {'level': 1}

    def test_negative_volume_is_rejected(self):
        with pytest.raises(InvalidVolume):
            evaluate_progress(LADDER, -1)

    def test_non_numeric_volume_is_rejected(self):
        with pytest.raises(InvalidVolume):
            evaluate_progress(LADDER, 'a lot')

    def test_unknown_badge_is_rejected(self):
        with pytest.raises(UnknownBadge) as exc_info:
            evaluate_progress(GATED_LADDER, 0, owned=[99], activated=[1])

        assert exc_info.value.badge_ids == [99]

    def test_evaluation_is_repeatable(self):
        first = evaluate_progress(GATED_LADDER, 160000, owned=[3], activated=[1, 2], claimed_level=1)
        second = evaluate_progress(GATED_LADDER, 160000, owned=[3], activated=[1, 2], claimed_level=1)

        assert first == second

    @given(low=volumes, high=volumes, owned=badge_sets, activated=badge_sets)
    @settings(max_examples=200, deadline=None)
    def test_current_level_is_monotonic_in_volume(self, low, high, owned, activated):
        """Increasing volume never decreases the current tier level"""
        low, high = min(low, high), max(low, high)

        low_snapshot = evaluate_progress(GATED_LADDER, low, owned=owned, activated=activated)
        high_snapshot = evaluate_progress(GATED_LADDER, high, owned=owned, activated=activated)

        assert low_snapshot.current_tier_level <= high_snapshot.current_tier_level
        assert low_snapshot.volume_tier_level <= high_snapshot.volume_tier_level

    @given(volume=volumes, activated=badge_sets)
    @settings(max_examples=200, deadline=None)
    def test_progress_stays_within_bounds(self, volume, activated):
        snapshot = evaluate_progress(GATED_LADDER, volume, activated=activated)

        assert snapshot.current_tier_level <= snapshot.volume_tier_level
        for row in snapshot.tiers:
            assert 0 <= row.progress <= 100
        if snapshot.next_tier_progress is not None:
            assert 0 <= snapshot.next_tier_progress <= 100


class TestProgressPercentage:

    @pytest.mark.parametrize('volume, required, expected', [
        ('75000', '150000', 50),
        ('149999.99', '150000', 99),
        ('150000', '150000', 100),
        ('900000', '150000', 100),
        ('0', '150000', 0),
        ('10', '0', 100),
    ])
    def test_floor_and_clamp(self, volume, required, expected):
        assert progress_percentage(Decimal(volume), Decimal(required)) == expected


class TestFeeDiscount:

    def test_special_tier_discount_stacks_additively(self):
        assert fee_discount(SPECIAL_LADDER, 1, ['trophy']) == Decimal('35')

    def test_total_discount_is_capped_at_hundred(self):
        assert fee_discount(SPECIAL_LADDER, 2, ['trophy', 'legend']) == Decimal('100')

    def test_no_tier_only_counts_special_tiers(self):
        assert fee_discount(SPECIAL_LADDER, 0, ['trophy']) == Decimal('25')

    def test_unknown_special_tier_adds_nothing(self):
        assert fee_discount(SPECIAL_LADDER, 1, ['retired']) == Decimal('10')

    def test_apply_fee_discount_rounds_to_cents(self):
        assert apply_fee_discount('10.00', '35') == Decimal('6.50')
        assert apply_fee_discount('0.99', '33') == Decimal('0.66')
        assert apply_fee_discount('50', '100') == Decimal('0.00')

    def test_special_tier_benefits_overlay_tier_benefits(self):
        benefits = merge_benefits(SPECIAL_LADDER, 1, ['trophy', 'legend'])

        assert benefits == {'level': 'legend', 'crown': True}


class TestUpgradeRequestKey:

    def test_key_is_deterministic(self):
        assert upgrade_request_key(7, 2, 3) == upgrade_request_key(7, 2, 3)
        assert len(upgrade_request_key(7, 2, 3)) == 64

    def test_key_depends_on_every_part(self):
        keys = {upgrade_request_key(7, 2, 3), upgrade_request_key(8, 2, 3), upgrade_request_key(7, 1, 3)}

        assert len(keys) == 3
