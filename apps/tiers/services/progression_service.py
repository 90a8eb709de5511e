"""
Progression service: progress snapshots, level claims, trading volume intake,
special tiers and fee discounts.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from django.db import transaction
from django.db.models import Count, Max, Sum
from django.utils import timezone

from apps.badges.models import UserBadge
from ..catalog import get_catalog, to_volume
from ..engine import (
    ProgressSnapshot, apply_fee_discount, discount_schedule, evaluate_progress,
    fee_discount, merge_benefits, missing_badges, upgrade_request_key,
)
from ..exceptions import (
    BadgeRequirementUnmet, InsufficientVolume, InvalidTierTransition, InvalidVolume,
    IssuerUnavailable, PendingUpgradeConflict, TierOutOfRange, UnknownSpecialTier,
    UpgradeRequestNotFound,
)
from ..issuers import IssuerClient, IssuerError
from ..models import TradeRecord, TierChangeLog, UpgradeRequest, UserProgress, UserSpecialTier

logger = logging.getLogger(__name__)


@dataclass
class ClaimResult:
    progress: UserProgress
    level: int
    changed: bool
    fee_discount: Decimal
    benefits: Dict
    mint_reference: str = ''


class ProgressionService:
    """Service class for tier progression reads and direct claims"""

    @staticmethod
    def special_tier_codes(user) -> List[str]:
        return list(
            UserSpecialTier.objects.filter(user=user).order_by('code').values_list('code', flat=True)
        )

    @staticmethod
    def get_progress(user) -> UserProgress:
        progress, _ = UserProgress.objects.get_or_create(user=user)
        return progress

    @staticmethod
    def get_snapshot(user, catalog=None):
        """
        Evaluate the user's stored state against the catalog.

        Progress, badges and special tiers are read in one transaction so the
        snapshot never mixes badge states from before and after a write.
        Returns (UserProgress, ProgressSnapshot).
        """
        catalog = catalog or get_catalog()
        with transaction.atomic():
            progress = ProgressionService.get_progress(user)
            owned, activated, consumed = UserBadge.status_sets(user)
            codes = ProgressionService.special_tier_codes(user)

        snapshot = evaluate_progress(
            catalog,
            progress.trading_volume,
            owned=owned,
            activated=activated,
            consumed=consumed,
            claimed_level=progress.tier_level,
            special_tier_codes=codes,
        )
        return progress, snapshot

    @staticmethod
    def get_pending_upgrade(user) -> Optional[UpgradeRequest]:
        return UpgradeRequest.objects.unfinished().filter(user=user).order_by('-created_at').first()

    @staticmethod
    def get_upgrade_eligibility(user) -> Dict:
        """Project the user's state onto the next tier's requirements"""
        catalog = get_catalog()
        progress, snapshot = ProgressionService.get_snapshot(user, catalog)
        pending = ProgressionService.get_pending_upgrade(user)

        eligibility = {
            'current_level': progress.tier_level,
            'tier_state': progress.tier_state,
            'next_level': snapshot.next_tier_level,
            'can_upgrade': snapshot.can_upgrade and pending is None and progress.holds_tier,
            'trading_volume': snapshot.trading_volume,
            'progress': snapshot.next_tier_progress,
            'shortfall': snapshot.next_tier_shortfall,
            'missing_badge_ids': list(snapshot.next_tier_missing_badge_ids),
            'pending_upgrade': pending,
        }
        if snapshot.next_tier_level is not None:
            next_tier = catalog.get_tier(snapshot.next_tier_level)
            eligibility['required_volume'] = next_tier.required_volume
            eligibility['required_badge_ids'] = list(next_tier.required_badge_ids)
        return eligibility

    @staticmethod
    def claim_tier(user, level=1, client=None) -> ClaimResult:
        """
        Enter the ladder by claiming a tier without holding a prior one.

        Only level 1, or a tier the catalog flags as directly claimable, may
        be claimed. Claiming the level already held is an idempotent success.
        """
        catalog = get_catalog()
        tier = catalog.get_tier(level)
        if tier is None:
            raise TierOutOfRange(level, catalog.max_level)
        if not tier.claimable:
            raise InvalidTierTransition(
                0, level, message=f'Tier {level} can only be reached by upgrading'
            )

        with transaction.atomic():
            progress = UserProgress.objects.lock_for(user)
            existing = ProgressionService._check_claim(user, progress, tier, catalog)
        if existing is not None:
            return existing

        # Mint outside the lock; a concurrent claim of the same level reuses the key
        key = upgrade_request_key(user.pk, 0, level)
        client = client or IssuerClient()
        try:
            reference = client.mint(key, user.pk, level)
        except IssuerError as e:
            logger.warning(f"Tier {level} claim for user {user.pk} failed at mint: {e}")
            raise IssuerUnavailable(f'Could not issue tier {level}, please retry') from e

        with transaction.atomic():
            progress = UserProgress.objects.lock_for(user)
            existing = ProgressionService._check_claim(user, progress, tier, catalog)
            if existing is not None:
                return existing

            progress.tier_level = level
            progress.tier_state = UserProgress.ACTIVE
            progress.tier_claimed_at = timezone.now()
            progress.save(update_fields=['tier_level', 'tier_state', 'tier_claimed_at', 'updated_at'])

            TierChangeLog.objects.create(
                user=user,
                from_level=0,
                to_level=level,
                reason=TierChangeLog.CLAIM,
                trading_volume=progress.trading_volume,
                reference=reference,
            )
            codes = ProgressionService.special_tier_codes(user)

        logger.info(f"User {user.pk} claimed tier {level} ({reference})")
        return ClaimResult(
            progress=progress,
            level=level,
            changed=True,
            fee_discount=fee_discount(catalog, level, codes),
            benefits=merge_benefits(catalog, level, codes),
            mint_reference=reference,
        )

    @staticmethod
    def _check_claim(user, progress, tier, catalog) -> Optional[ClaimResult]:
        """Validate a claim under the user lock; returns a result when already held"""
        if progress.is_pending_upgrade:
            pending = ProgressionService.get_pending_upgrade(user)
            if pending is not None:
                raise PendingUpgradeConflict(pending)

        if progress.tier_level == tier.level and progress.holds_tier:
            codes = ProgressionService.special_tier_codes(user)
            return ClaimResult(
                progress=progress,
                level=tier.level,
                changed=False,
                fee_discount=fee_discount(catalog, tier.level, codes),
                benefits=merge_benefits(catalog, tier.level, codes),
            )
        if progress.tier_level != 0:
            raise InvalidTierTransition(
                progress.tier_level, tier.level,
                message=f'Already holding tier {progress.tier_level}, use an upgrade instead',
            )

        if progress.trading_volume < tier.required_volume:
            raise InsufficientVolume(tier.level, tier.required_volume, progress.trading_volume)

        _, activated, consumed = UserBadge.status_sets(user)
        missing = missing_badges(catalog, tier.level, frozenset(activated | consumed))
        if missing:
            raise BadgeRequirementUnmet(tier.level, missing)
        return None

    @staticmethod
    def record_trading_volume(user, amount, fee=None, reference_id=None) -> UserProgress:
        """
        Add a strictly positive traded amount to the user's cumulative volume.

        When the trading fee is given the discount of the tier held at that
        moment is recorded against it. A trade whose reference_id was already
        recorded for the user is ignored so a replayed feed never double counts.
        """
        amount = ProgressionService._parse_amount(amount, 'Traded amount')
        if amount <= 0:
            raise InvalidVolume('Traded amount must be positive')
        if fee is not None:
            fee = ProgressionService._parse_amount(fee, 'Trading fee')
            if fee < 0:
                raise InvalidVolume('Trading fee must not be negative')

        catalog = get_catalog()
        with transaction.atomic():
            progress = UserProgress.objects.lock_for(user)
            if reference_id and TradeRecord.objects.filter(user=user, reference_id=reference_id).exists():
                logger.info(f"Trade {reference_id} of user {user.pk} already recorded, skipping")
                return progress

            progress.trading_volume += amount
            progress.save(update_fields=['trading_volume', 'updated_at'])

            discount = Decimal('0.00')
            saved = Decimal('0.00')
            if fee is not None:
                codes = ProgressionService.special_tier_codes(user)
                held_level = progress.tier_level if progress.holds_tier else 0
                discount = fee_discount(catalog, held_level, codes)
                saved = fee - apply_fee_discount(fee, discount)
            TradeRecord.objects.create(
                user=user,
                amount=amount,
                volume_after=progress.trading_volume,
                fee=fee,
                fee_discount=discount,
                fee_saved=saved,
                tier_level=progress.tier_level,
                reference_id=reference_id or None,
            )

        logger.info(f"User {user.pk} traded {amount}, cumulative volume {progress.trading_volume}")
        return progress

    @staticmethod
    def _parse_amount(value, label) -> Decimal:
        try:
            value = to_volume(value)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidVolume(f'{label} {value!r} is not a valid amount')
        if not value.is_finite():
            raise InvalidVolume(f'{label} must be a finite amount')
        return value

    @staticmethod
    def get_trading_summary(user, now=None) -> Dict:
        """Cumulative and recent traded volume with the progress it buys on the ladder"""
        now = now or timezone.now()
        catalog = get_catalog()
        progress, snapshot = ProgressionService.get_snapshot(user, catalog)
        trades = TradeRecord.objects.filter(user=user)
        totals = trades.aggregate(
            total_trades=Count('id'),
            largest_trade=Max('amount'),
            last_trade_at=Max('created_at'),
        )

        return {
            'trading_volume': progress.trading_volume,
            'total_trades': totals['total_trades'],
            'largest_trade': totals['largest_trade'] or Decimal('0.00'),
            'last_trade_at': totals['last_trade_at'],
            'volume_last_7_days': _sum_since(trades, 'amount', now - timedelta(days=7)),
            'volume_last_30_days': _sum_since(trades, 'amount', now - timedelta(days=30)),
            'tier_level': progress.tier_level,
            'next_tier_level': snapshot.next_tier_level,
            'next_tier_progress': snapshot.next_tier_progress,
            'next_tier_shortfall': snapshot.next_tier_shortfall,
        }

    @staticmethod
    def get_fee_savings(user, now=None) -> Dict:
        """Fees saved through tier and special tier discounts on recorded trades"""
        now = now or timezone.now()
        catalog = get_catalog()
        progress, snapshot = ProgressionService.get_snapshot(user, catalog)
        tier = catalog.get_tier(progress.tier_level)
        trades = TradeRecord.objects.filter(user=user, fee__isnull=False)
        totals = trades.aggregate(total_fees=Sum('fee'), total_saved=Sum('fee_saved'))

        return {
            'tier_level': progress.tier_level,
            'tier_name': tier.name if tier else None,
            'fee_discount': snapshot.fee_discount,
            'total_fees': totals['total_fees'] or Decimal('0.00'),
            'total_saved': totals['total_saved'] or Decimal('0.00'),
            'discounted_trades': trades.filter(fee_saved__gt=0).count(),
            'savings_breakdown': {
                'last_30_days': _sum_since(trades, 'fee_saved', now - timedelta(days=30)),
                'last_90_days': _sum_since(trades, 'fee_saved', now - timedelta(days=90)),
                'last_year': _sum_since(trades, 'fee_saved', now - timedelta(days=365)),
            },
        }

    @staticmethod
    def award_special_tier(user, code, reason=''):
        """Award a special tier. Returns (UserSpecialTier, created)"""
        catalog = get_catalog()
        if catalog.get_special_tier(code) is None:
            raise UnknownSpecialTier(code)

        with transaction.atomic():
            UserProgress.objects.lock_for(user)
            special, created = UserSpecialTier.objects.get_or_create(
                user=user, code=code, defaults={'reason': reason}
            )

        if created:
            logger.info(f"User {user.pk} was awarded special tier {code}")
        return special, created

    @staticmethod
    def get_fee_discount(user, fee=None) -> Dict:
        """Active discount of the user and the schedule across the ladder"""
        catalog = get_catalog()
        progress, snapshot = ProgressionService.get_snapshot(user, catalog)

        result = {
            'tier_level': progress.tier_level,
            'special_tiers': list(snapshot.special_tier_codes),
            'fee_discount': snapshot.fee_discount,
            'schedule': discount_schedule(catalog, snapshot.special_tier_codes),
        }
        if fee is not None:
            result['fee'] = Decimal(str(fee))
            result['discounted_fee'] = apply_fee_discount(fee, snapshot.fee_discount)
        return result

    @staticmethod
    def get_change_history(user, limit=20):
        return TierChangeLog.objects.filter(user=user).order_by('-created_at', '-id')[:limit]

    @staticmethod
    def get_upgrade_requests(user, status=None, limit=20):
        requests = UpgradeRequest.objects.filter(user=user)
        if status:
            requests = requests.filter(status=status)
        return requests.order_by('-created_at', '-id')[:limit]

    @staticmethod
    def get_upgrade_request(user, upgrade_request_id) -> UpgradeRequest:
        """One of the user's upgrade requests; other users' requests are reported as missing"""
        try:
            return UpgradeRequest.objects.get(pk=upgrade_request_id, user=user)
        except UpgradeRequest.DoesNotExist:
            raise UpgradeRequestNotFound(upgrade_request_id)

    @staticmethod
    def describe_snapshot(snapshot: ProgressSnapshot, catalog=None) -> Dict:
        """Flatten a snapshot into plain data for serializers"""
        catalog = catalog or get_catalog()
        held = catalog.get_tier(snapshot.held_tier_level)
        return {
            'trading_volume': snapshot.trading_volume,
            'current_tier_level': snapshot.current_tier_level,
            'volume_tier_level': snapshot.volume_tier_level,
            'held_tier_level': snapshot.held_tier_level,
            'held_tier_name': held.name if held else None,
            'next_tier_level': snapshot.next_tier_level,
            'next_tier_progress': snapshot.next_tier_progress,
            'next_tier_shortfall': snapshot.next_tier_shortfall,
            'next_tier_missing_badge_ids': list(snapshot.next_tier_missing_badge_ids),
            'fee_discount': snapshot.fee_discount,
            'benefits': snapshot.benefits,
            'special_tiers': list(snapshot.special_tier_codes),
            'tiers': [
                {
                    'level': row.level,
                    'name': row.name,
                    'required_volume': row.required_volume,
                    'fee_discount': row.fee_discount,
                    'status': row.status,
                    'progress': row.progress,
                    'volume_met': row.volume_met,
                    'missing_badge_ids': list(row.missing_badge_ids),
                }
                for row in snapshot.tiers
            ],
        }


def _sum_since(queryset, field, since) -> Decimal:
    total = queryset.filter(created_at__gte=since).aggregate(total=Sum(field))['total']
    return total or Decimal('0.00')
