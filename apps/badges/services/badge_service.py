"""
Badge service: earning, activation and the per-user badge collection.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from django.db import transaction

from apps.tiers.catalog import get_catalog
from apps.tiers.exceptions import BadgeNotOwned, UnknownBadge, UnknownBadgeTask
from apps.tiers.models import UserProgress
from ..models import UserBadge

logger = logging.getLogger(__name__)

BADGE_STATUSES = [UserBadge.NOT_EARNED, UserBadge.OWNED, UserBadge.ACTIVATED, UserBadge.CONSUMED]


@dataclass
class ActivateResult:
    badge_id: int
    status: str
    changed: bool
    user_badge: Optional[UserBadge] = None


@dataclass
class EarnResult:
    badge_id: int
    status: str
    earned: bool
    user_badge: Optional[UserBadge] = None


class BadgeService:
    """Service class for badge operations"""

    @staticmethod
    def activate_badge(user, badge_id) -> ActivateResult:
        """
        Move an owned badge to activated.

        Activating an already activated badge succeeds without writing.
        Badges never earned, or already consumed by an upgrade, raise
        BadgeNotOwned.
        """
        if get_catalog().get_badge(badge_id) is None:
            raise UnknownBadge(badge_id)

        with transaction.atomic():
            UserProgress.objects.lock_for(user)
            badge = UserBadge.objects.filter(user=user, badge_id=badge_id).first()

            if badge is None:
                raise BadgeNotOwned(badge_id, UserBadge.NOT_EARNED)
            if badge.status == UserBadge.CONSUMED:
                raise BadgeNotOwned(badge_id, UserBadge.CONSUMED)
            if badge.status == UserBadge.ACTIVATED:
                return ActivateResult(badge_id, badge.status, changed=False, user_badge=badge)

            badge.activate()

        logger.info(f"User {user.pk} activated badge {badge_id}")
        return ActivateResult(badge_id, badge.status, changed=True, user_badge=badge)

    @staticmethod
    def complete_badge_task(user, task_id) -> EarnResult:
        """Grant the badge linked to a completed task; repeated completions are no-ops"""
        definition = get_catalog().badge_for_task(task_id)
        if definition is None:
            raise UnknownBadgeTask(task_id)

        with transaction.atomic():
            UserProgress.objects.lock_for(user)
            badge, created = UserBadge.objects.get_or_create(
                user=user, badge_id=definition.id, defaults={'status': UserBadge.OWNED}
            )

        if created:
            logger.info(f"User {user.pk} earned badge {definition.id} by completing task {task_id}")
        return EarnResult(definition.id, badge.status, earned=created, user_badge=badge)

    @staticmethod
    def get_collection(user, level=None, status=None) -> Dict:
        """
        Join the badge catalog with the user's badge states.

        ``level`` and ``status`` filter the returned badges; the stats always
        describe the whole collection.
        """
        catalog = get_catalog()
        user_badges = {badge.badge_id: badge for badge in UserBadge.objects.filter(user=user)}

        stats = {badge_status: 0 for badge_status in BADGE_STATUSES}
        badges = []
        for definition in sorted(catalog.badges, key=lambda b: (b.tier_level, b.id)):
            user_badge = user_badges.get(definition.id)
            badge_status = user_badge.status if user_badge else UserBadge.NOT_EARNED
            stats[badge_status] += 1

            if level is not None and definition.tier_level != level:
                continue
            if status is not None and badge_status != status:
                continue
            badges.append({
                'badge': definition,
                'status': badge_status,
                'earned_at': user_badge.earned_at if user_badge else None,
                'activated_at': user_badge.activated_at if user_badge else None,
                'consumed_at': user_badge.consumed_at if user_badge else None,
                'required_for_levels': [
                    tier.level for tier in catalog.tiers if definition.id in tier.required_badge_ids
                ],
            })

        stats['total'] = len(catalog.badges)
        return {'badges': badges, 'stats': stats}
