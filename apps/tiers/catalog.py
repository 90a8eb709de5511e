"""
Immutable tier, special tier and badge catalog.

The catalog is reference data: it is parsed and validated once when the app
registry is ready and then shared read-only by every request. Inconsistent
catalog data raises ``CatalogError`` at load time, never per request.
"""
import json
import logging
import threading
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from django.conf import settings

from .catalog_data import DEFAULT_CATALOG
from .exceptions import CatalogError

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
MAX_DISCOUNT = Decimal('100')


def to_volume(value) -> Decimal:
    """Convert an amount to the fixed-point USD representation (2 places)"""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TierDefinition:
    level: int
    name: str
    required_volume: Decimal
    fee_discount: Decimal
    symbol: str = ''
    benefits: Mapping = field(default_factory=lambda: MappingProxyType({}))
    required_badge_ids: Tuple[int, ...] = ()
    direct_claim: bool = False

    @property
    def claimable(self) -> bool:
        """Whether the tier can be claimed without holding a prior tier"""
        return self.level == 1 or self.direct_claim


@dataclass(frozen=True)
class SpecialTierDefinition:
    code: str
    name: str
    fee_discount: Decimal
    benefits: Mapping = field(default_factory=lambda: MappingProxyType({}))
    acquisition: str = 'awarded'


@dataclass(frozen=True)
class BadgeDefinition:
    id: int
    name: str
    tier_level: int
    task_id: int
    task_name: str = ''
    description: str = ''
    rarity: str = 'common'
    contribution_value: Decimal = Decimal('1.0')


@dataclass(frozen=True)
class TierCatalog:
    tiers: Tuple[TierDefinition, ...]
    special_tiers: Tuple[SpecialTierDefinition, ...] = ()
    badges: Tuple[BadgeDefinition, ...] = ()

    def __post_init__(self):
        # Index lookups once; the dataclass stays frozen for callers
        object.__setattr__(self, '_tiers_by_level', {t.level: t for t in self.tiers})
        object.__setattr__(self, '_badges_by_id', {b.id: b for b in self.badges})
        object.__setattr__(self, '_badges_by_task', {b.task_id: b for b in self.badges})
        object.__setattr__(self, '_special_by_code', {s.code: s for s in self.special_tiers})

    @property
    def max_level(self) -> int:
        return max(self._tiers_by_level) if self.tiers else 0

    def get_tier(self, level) -> Optional[TierDefinition]:
        return self._tiers_by_level.get(level)

    def get_badge(self, badge_id) -> Optional[BadgeDefinition]:
        return self._badges_by_id.get(badge_id)

    def badge_for_task(self, task_id) -> Optional[BadgeDefinition]:
        return self._badges_by_task.get(task_id)

    def get_special_tier(self, code) -> Optional[SpecialTierDefinition]:
        return self._special_by_code.get(code)

    def badges_for_level(self, level) -> Tuple[BadgeDefinition, ...]:
        return tuple(b for b in self.badges if b.tier_level == level)

    def unknown_badge_ids(self, badge_ids):
        return sorted(set(badge_ids) - set(self._badges_by_id))

    def validate(self):
        """Check the catalog invariants, raising CatalogError on the first violation"""
        if not self.tiers:
            raise CatalogError('Catalog must define at least one tier')

        levels = [t.level for t in self.tiers]
        if sorted(levels) != list(range(1, len(levels) + 1)):
            raise CatalogError(f'Tier levels must be exactly 1..{len(levels)}, got {sorted(levels)}')

        ordered = sorted(self.tiers, key=lambda t: t.level)
        for tier in ordered:
            if tier.required_volume is None:
                raise CatalogError(f'Tier {tier.level} has no required volume')
            if not tier.required_volume.is_finite() or not tier.fee_discount.is_finite():
                raise CatalogError(f'Tier {tier.level} volume and fee discount must be finite numbers')
            if tier.required_volume < 0:
                raise CatalogError(f'Tier {tier.level} has a negative required volume')
            if not Decimal('0') <= tier.fee_discount <= MAX_DISCOUNT:
                raise CatalogError(f'Tier {tier.level} fee discount must be within 0..100')
        for lower, higher in zip(ordered, ordered[1:]):
            if not lower.required_volume < higher.required_volume:
                raise CatalogError(
                    f'Tier {higher.level} must require more volume than tier {lower.level}'
                )

        badge_ids = [b.id for b in self.badges]
        if len(badge_ids) != len(set(badge_ids)):
            raise CatalogError('Badge ids must be unique')
        task_ids = [b.task_id for b in self.badges]
        if len(task_ids) != len(set(task_ids)):
            raise CatalogError('Badge task ids must be unique')
        for badge in self.badges:
            if badge.tier_level not in self._tiers_by_level:
                raise CatalogError(f'Badge {badge.id} belongs to unknown tier {badge.tier_level}')

        for tier in ordered:
            unknown = self.unknown_badge_ids(tier.required_badge_ids)
            if unknown:
                raise CatalogError(f'Tier {tier.level} requires unknown badges {unknown}')

        codes = [s.code for s in self.special_tiers]
        if len(codes) != len(set(codes)):
            raise CatalogError('Special tier codes must be unique')
        for special in self.special_tiers:
            if not special.fee_discount.is_finite():
                raise CatalogError(f'Special tier {special.code} fee discount must be a finite number')
            if not Decimal('0') <= special.fee_discount <= MAX_DISCOUNT:
                raise CatalogError(f'Special tier {special.code} fee discount must be within 0..100')

        return self

    @classmethod
    def from_dict(cls, data: Dict) -> 'TierCatalog':
        """Build and validate a catalog from plain data (JSON shape)"""
        try:
            tiers = tuple(
                TierDefinition(
                    level=int(item['level']),
                    name=item['name'],
                    symbol=item.get('symbol', ''),
                    required_volume=_optional_volume(item.get('required_volume')),
                    fee_discount=Decimal(str(item.get('fee_discount', '0'))),
                    benefits=MappingProxyType(dict(item.get('benefits', {}))),
                    required_badge_ids=tuple(int(b) for b in item.get('required_badge_ids', [])),
                    direct_claim=bool(item.get('direct_claim', False)),
                )
                for item in data.get('tiers', [])
            )
            special_tiers = tuple(
                SpecialTierDefinition(
                    code=item['code'],
                    name=item['name'],
                    fee_discount=Decimal(str(item.get('fee_discount', '0'))),
                    benefits=MappingProxyType(dict(item.get('benefits', {}))),
                    acquisition=item.get('acquisition', 'awarded'),
                )
                for item in data.get('special_tiers', [])
            )
            badges = tuple(
                BadgeDefinition(
                    id=int(item['id']),
                    name=item['name'],
                    tier_level=int(item['tier_level']),
                    task_id=int(item['task_id']),
                    task_name=item.get('task_name', ''),
                    description=item.get('description', ''),
                    rarity=item.get('rarity', 'common'),
                    contribution_value=Decimal(str(item.get('contribution_value', '1.0'))),
                )
                for item in data.get('badges', [])
            )
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise CatalogError(f'Malformed catalog entry: {e!r}') from e

        return cls(tiers=tiers, special_tiers=special_tiers, badges=badges).validate()


def _optional_volume(value):
    if value is None:
        return None
    return to_volume(value)


_catalog = None
_catalog_lock = threading.Lock()


def load_catalog(path=None) -> TierCatalog:
    """Load the catalog from a JSON file, or the built-in default"""
    if path:
        try:
            with open(path, encoding='utf-8') as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f'Cannot read tier catalog {path}: {e}') from e
        source = path
    else:
        data = DEFAULT_CATALOG
        source = 'built-in default'

    catalog = TierCatalog.from_dict(data)
    logger.info(
        f"Loaded tier catalog from {source}: {len(catalog.tiers)} tiers, "
        f"{len(catalog.badges)} badges, {len(catalog.special_tiers)} special tiers"
    )
    return catalog


def get_catalog() -> TierCatalog:
    """Return the process-wide catalog, loading it on first use"""
    global _catalog
    if _catalog is None:
        with _catalog_lock:
            if _catalog is None:
                _catalog = load_catalog(getattr(settings, 'TIER_CATALOG_PATH', ''))
    return _catalog


def set_catalog(catalog: Optional[TierCatalog]) -> None:
    """Replace the process-wide catalog; ``None`` reloads from settings on next use"""
    global _catalog
    with _catalog_lock:
        _catalog = catalog.validate() if catalog is not None else None
