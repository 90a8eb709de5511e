"""
Tier progression rules.

Everything here is a pure function of the catalog and the values passed in:
no database access, no clock, no hidden state. The services layer loads a
user's state under lock and feeds it to these functions.
"""
import hashlib
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Dict, FrozenSet, List, Optional, Tuple

from .catalog import CENTS, MAX_DISCOUNT, TierCatalog, to_volume
from .exceptions import InvalidVolume, UnknownBadge

HUNDRED = Decimal('100')

TIER_STATUS_ACTIVE = 'active'
TIER_STATUS_UNLOCKABLE = 'unlockable'
TIER_STATUS_LOCKED = 'locked'


@dataclass(frozen=True)
class TierProgress:
    """One row of the tier ladder as seen by a user"""
    level: int
    name: str
    required_volume: Decimal
    fee_discount: Decimal
    status: str
    progress: int
    volume_met: bool
    missing_badge_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class ProgressSnapshot:
    trading_volume: Decimal
    volume_tier_level: int
    current_tier_level: int
    held_tier_level: int
    next_tier_level: Optional[int]
    next_tier_progress: Optional[int]
    next_tier_shortfall: Optional[Decimal]
    next_tier_missing_badge_ids: Tuple[int, ...]
    fee_discount: Decimal
    benefits: Dict
    special_tier_codes: Tuple[str, ...]
    tiers: Tuple[TierProgress, ...] = field(default_factory=tuple)

    @property
    def can_upgrade(self) -> bool:
        """Whether the next tier's volume and badge requirements are both met"""
        return (
            self.next_tier_level is not None
            and self.next_tier_shortfall == Decimal('0.00')
            and not self.next_tier_missing_badge_ids
        )


def progress_percentage(volume: Decimal, required_volume: Decimal) -> int:
    """floor(volume / required * 100), clamped to 100"""
    if required_volume <= 0:
        return 100
    ratio = (volume * HUNDRED / required_volume).to_integral_value(rounding=ROUND_FLOOR)
    return int(min(HUNDRED, ratio))


def volume_shortfall(volume: Decimal, required_volume: Decimal) -> Decimal:
    return max(Decimal('0.00'), required_volume - volume).quantize(CENTS)


def missing_badges(catalog: TierCatalog, level: int, satisfied: FrozenSet[int]) -> Tuple[int, ...]:
    """Required badge ids of ``level`` that are not in ``satisfied``"""
    tier = catalog.get_tier(level)
    if tier is None:
        return ()
    return tuple(sorted(set(tier.required_badge_ids) - satisfied))


def volume_tier_level(catalog: TierCatalog, volume: Decimal) -> int:
    """Highest level whose volume requirement is met, 0 when none is"""
    level = 0
    for tier in catalog.tiers:
        if volume >= tier.required_volume and tier.level > level:
            level = tier.level
    return level


def current_tier_level(catalog: TierCatalog, volume: Decimal, satisfied: FrozenSet[int]) -> int:
    """
    Walk the ladder upward while both the volume requirement and the badge
    prerequisites of each level hold; stop at the first level that fails.
    """
    level = 0
    for candidate in range(1, catalog.max_level + 1):
        tier = catalog.get_tier(candidate)
        if volume < tier.required_volume:
            break
        if missing_badges(catalog, candidate, satisfied):
            break
        level = candidate
    return level


def fee_discount(catalog: TierCatalog, tier_level: int, special_tier_codes=()) -> Decimal:
    """
    Tier discount plus every special tier discount, capped at 100 percent.
    Unknown special tier codes contribute nothing.
    """
    total = Decimal('0')
    tier = catalog.get_tier(tier_level) if tier_level else None
    if tier is not None:
        total += tier.fee_discount
    for code in special_tier_codes:
        special = catalog.get_special_tier(code)
        if special is not None:
            total += special.fee_discount
    return min(total, MAX_DISCOUNT)


def apply_fee_discount(fee, discount) -> Decimal:
    """Discounted fee rounded to cents"""
    fee = Decimal(str(fee))
    discount = min(max(Decimal(str(discount)), Decimal('0')), MAX_DISCOUNT)
    return (fee * (HUNDRED - discount) / HUNDRED).quantize(CENTS, rounding=ROUND_HALF_UP)


def merge_benefits(catalog: TierCatalog, tier_level: int, special_tier_codes=()) -> Dict:
    """Tier benefits overlaid with special tier benefits, in code order"""
    benefits = {}
    tier = catalog.get_tier(tier_level) if tier_level else None
    if tier is not None:
        benefits.update(tier.benefits)
    for code in special_tier_codes:
        special = catalog.get_special_tier(code)
        if special is not None:
            benefits.update(special.benefits)
    return benefits


def discount_schedule(catalog: TierCatalog, special_tier_codes=()) -> List[Dict]:
    """Effective fee discount at every level of the ladder"""
    return [
        {
            'level': tier.level,
            'name': tier.name,
            'tier_discount': tier.fee_discount,
            'fee_discount': fee_discount(catalog, tier.level, special_tier_codes),
        }
        for tier in sorted(catalog.tiers, key=lambda t: t.level)
    ]


def upgrade_request_key(user_id, from_level: int, to_level: int) -> str:
    """Deterministic idempotency key of an upgrade request"""
    raw = f"{user_id}:{from_level}:{to_level}"
    return hashlib.sha256(raw.encode('utf-8')).hexdigest()


def evaluate_progress(
    catalog: TierCatalog,
    volume,
    owned=(),
    activated=(),
    consumed=(),
    claimed_level: Optional[int] = None,
    special_tier_codes=(),
) -> ProgressSnapshot:
    """
    Project a user's volume and badge state onto the tier ladder.

    ``claimed_level`` is the tier the user actually holds. When it is given the
    next locked tier, the fee discount and the benefits derive from it;
    otherwise from the computed ``current_tier_level``.

    Raises:
        InvalidVolume: volume is negative or not a number
        UnknownBadge: a badge id is not in the catalog
    """
    try:
        volume = to_volume(volume)
    except (ArithmeticError, TypeError, ValueError):
        raise InvalidVolume(f'Trading volume {volume!r} is not a valid amount')
    if not volume.is_finite() or volume < 0:
        raise InvalidVolume()

    owned, activated, consumed = frozenset(owned), frozenset(activated), frozenset(consumed)
    unknown = catalog.unknown_badge_ids(owned | activated | consumed)
    if unknown:
        raise UnknownBadge(unknown)

    # Consumed badges already paid for the tier they unlocked
    satisfied = activated | consumed
    special_tier_codes = tuple(sorted(set(special_tier_codes)))

    volume_level = volume_tier_level(catalog, volume)
    current_level = current_tier_level(catalog, volume, satisfied)
    held_level = current_level if claimed_level is None else claimed_level

    next_level = held_level + 1 if held_level < catalog.max_level else None
    next_progress = next_shortfall = None
    next_missing = ()
    if next_level is not None:
        next_tier = catalog.get_tier(next_level)
        next_progress = progress_percentage(volume, next_tier.required_volume)
        next_shortfall = volume_shortfall(volume, next_tier.required_volume)
        next_missing = missing_badges(catalog, next_level, satisfied)

    rows = []
    for tier in sorted(catalog.tiers, key=lambda t: t.level):
        missing = missing_badges(catalog, tier.level, satisfied)
        volume_met = volume >= tier.required_volume
        if tier.level <= held_level:
            row_status = TIER_STATUS_ACTIVE
        elif volume_met and not missing:
            row_status = TIER_STATUS_UNLOCKABLE
        else:
            row_status = TIER_STATUS_LOCKED
        rows.append(TierProgress(
            level=tier.level,
            name=tier.name,
            required_volume=tier.required_volume,
            fee_discount=tier.fee_discount,
            status=row_status,
            progress=progress_percentage(volume, tier.required_volume),
            volume_met=volume_met,
            missing_badge_ids=missing,
        ))

    return ProgressSnapshot(
        trading_volume=volume,
        volume_tier_level=volume_level,
        current_tier_level=current_level,
        held_tier_level=held_level,
        next_tier_level=next_level,
        next_tier_progress=next_progress,
        next_tier_shortfall=next_shortfall,
        next_tier_missing_badge_ids=next_missing,
        fee_discount=fee_discount(catalog, held_level, special_tier_codes),
        benefits=merge_benefits(catalog, held_level, special_tier_codes),
        special_tier_codes=special_tier_codes,
        tiers=tuple(rows),
    )
