"""
Upgrade service: burn-then-mint tier transitions and their recovery.

An upgrade is persisted as an ``UpgradeRequest`` before any issuer call is
made, and every phase is committed before the next one starts. A failure at
any point therefore leaves a request that re-invoking the same upgrade (or the
``reconcile_upgrades`` command) resumes from the recorded phase.

Phases:
    burn_pending    badges consumed, old tier token still live
    burn_confirmed  old tier token burned, user holds no tier
    completed       new tier token minted and recorded

Recovery moves an unfinished request through rollback_pending (old tier being
re-issued) to rolled_back.
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.badges.models import UserBadge
from ..catalog import get_catalog
from ..engine import discount_schedule, fee_discount, merge_benefits, upgrade_request_key
from ..exceptions import (
    BadgeRequirementUnmet, InsufficientVolume, InvalidTierTransition, IssuerUnavailable,
    PendingUpgradeConflict, TierOutOfRange, UpgradeInterrupted, UpgradeNeedsReconciliation,
)
from ..issuers import IssuerClient, IssuerError
from ..models import TierChangeLog, UpgradeRequest, UserProgress
from .progression_service import ProgressionService

logger = logging.getLogger(__name__)


@dataclass
class UpgradeResult:
    upgrade_request: UpgradeRequest
    tier_level: int
    fee_discount: object
    benefits: Dict
    discount_schedule: List[Dict] = field(default_factory=list)
    resumed: bool = False


class UpgradeService:
    """Service class for tier upgrades"""

    @staticmethod
    def request_upgrade(user, from_level, to_level, client=None) -> UpgradeResult:
        """
        Upgrade the user from ``from_level`` to ``to_level``.

        Re-invoking with the same levels while the request is unfinished
        resumes it without validating volume or badges again.

        Raises:
            InvalidTierTransition: to_level <= from_level, or from_level not held
            TierOutOfRange: a level is outside the ladder
            UpgradeNeedsReconciliation: this upgrade is flagged for manual handling
            PendingUpgradeConflict: a different upgrade is unfinished
            InsufficientVolume: volume below the target requirement
            BadgeRequirementUnmet: target prerequisite badges not activated
            UpgradeInterrupted: the issuer failed, the request stays pending
        """
        catalog = get_catalog()
        if to_level <= from_level:
            raise InvalidTierTransition(from_level, to_level)
        if to_level > catalog.max_level:
            raise TierOutOfRange(to_level, catalog.max_level)
        if from_level < 1:
            raise TierOutOfRange(from_level, catalog.max_level)

        key = upgrade_request_key(user.pk, from_level, to_level)
        resumed = False

        with transaction.atomic():
            progress = UserProgress.objects.lock_for(user)
            pending = UpgradeRequest.objects.unfinished().filter(user=user).select_for_update().first()

            if pending is not None:
                if pending.request_key != key or pending.is_rolling_back:
                    raise PendingUpgradeConflict(pending)
                if pending.needs_reconciliation:
                    raise UpgradeNeedsReconciliation(pending)
                upgrade_request = pending
                resumed = True
                logger.info(f"Resuming upgrade {pending.id} for user {user.pk} at {pending.status}")
            else:
                upgrade_request = UpgradeService._open_request(user, progress, catalog, key, from_level, to_level)

        result = UpgradeService._drive(upgrade_request, client)
        result.resumed = resumed
        return result

    @staticmethod
    def _open_request(user, progress, catalog, key, from_level, to_level) -> UpgradeRequest:
        """Validate and persist a new upgrade; caller holds the user lock"""
        if not progress.holds_tier or progress.tier_level != from_level:
            raise InvalidTierTransition(
                from_level, to_level,
                message=f'Current tier is {progress.tier_level}, not {from_level}',
            )

        target = catalog.get_tier(to_level)
        if progress.trading_volume < target.required_volume:
            raise InsufficientVolume(to_level, target.required_volume, progress.trading_volume)

        required = set(target.required_badge_ids)
        activated = set(
            UserBadge.objects.filter(
                user=user, badge_id__in=required, status=UserBadge.ACTIVATED
            ).values_list('badge_id', flat=True)
        )
        if required - activated:
            raise BadgeRequirementUnmet(to_level, required - activated)

        upgrade_request = UpgradeRequest.objects.create(
            user=user,
            request_key=key,
            from_level=from_level,
            to_level=to_level,
            max_retries=settings.TIER_UPGRADE_MAX_RETRIES,
        )
        for badge in UserBadge.objects.filter(user=user, badge_id__in=required, status=UserBadge.ACTIVATED):
            badge.consume(upgrade_request)

        progress.tier_state = UserProgress.PENDING_UPGRADE
        progress.save(update_fields=['tier_state', 'updated_at'])

        logger.info(
            f"Opened upgrade {upgrade_request.id} for user {user.pk}: "
            f"{from_level} -> {to_level}, consumed badges {sorted(required)}"
        )
        return upgrade_request

    @staticmethod
    def _drive(upgrade_request, client=None) -> UpgradeResult:
        """Run the remaining phases of an upgrade request"""
        client = client or IssuerClient()
        user_id = upgrade_request.user_id

        if upgrade_request.status == UpgradeRequest.BURN_PENDING:
            try:
                reference = client.burn(upgrade_request.issuer_key, user_id, upgrade_request.from_level)
            except IssuerError as e:
                UpgradeService._fail(upgrade_request, 'burn', e)

            with transaction.atomic():
                progress = UserProgress.objects.lock_for(upgrade_request.user)
                upgrade_request = UpgradeRequest.objects.select_for_update().get(pk=upgrade_request.pk)
                if upgrade_request.status == UpgradeRequest.BURN_PENDING:
                    upgrade_request.mark_burned(reference)
                    progress.tier_level = 0
                    progress.save(update_fields=['tier_level', 'updated_at'])
                    logger.info(f"Upgrade {upgrade_request.id}: burned tier {upgrade_request.from_level} ({reference})")
                elif upgrade_request.status not in (UpgradeRequest.BURN_CONFIRMED, UpgradeRequest.COMPLETED):
                    logger.warning(
                        f"Upgrade {upgrade_request.id} is {upgrade_request.status}, "
                        f"burn {reference} was not recorded"
                    )

        if upgrade_request.status == UpgradeRequest.BURN_CONFIRMED:
            try:
                reference = client.mint(upgrade_request.issuer_key, user_id, upgrade_request.to_level)
            except IssuerError as e:
                UpgradeService._fail(upgrade_request, 'mint', e)

            with transaction.atomic():
                progress = UserProgress.objects.lock_for(upgrade_request.user)
                upgrade_request = UpgradeRequest.objects.select_for_update().get(pk=upgrade_request.pk)
                if upgrade_request.status == UpgradeRequest.BURN_CONFIRMED:
                    upgrade_request.mark_completed(reference)
                    progress.tier_level = upgrade_request.to_level
                    progress.tier_state = UserProgress.ACTIVE
                    progress.tier_claimed_at = timezone.now()
                    progress.save(update_fields=['tier_level', 'tier_state', 'tier_claimed_at', 'updated_at'])
                    TierChangeLog.objects.create(
                        user_id=user_id,
                        from_level=upgrade_request.from_level,
                        to_level=upgrade_request.to_level,
                        reason=TierChangeLog.UPGRADE,
                        upgrade_request=upgrade_request,
                        trading_volume=progress.trading_volume,
                        reference=reference,
                    )
                    logger.info(
                        f"Upgrade {upgrade_request.id} completed: user {user_id} now holds "
                        f"tier {upgrade_request.to_level} ({reference})"
                    )
                elif upgrade_request.status != UpgradeRequest.COMPLETED:
                    logger.warning(
                        f"Upgrade {upgrade_request.id} is {upgrade_request.status}, "
                        f"mint {reference} of tier {upgrade_request.to_level} needs reconciliation"
                    )

        if upgrade_request.status != UpgradeRequest.COMPLETED:
            # Rolled back or flagged by someone else between phases
            raise UpgradeInterrupted(upgrade_request, f'upgrade is {upgrade_request.status}')

        return UpgradeService._result(upgrade_request)

    @staticmethod
    def _fail(upgrade_request, phase, error):
        """Record a failed issuer call and raise UpgradeInterrupted"""
        with transaction.atomic():
            UserProgress.objects.lock_for(upgrade_request.user)
            upgrade_request = UpgradeRequest.objects.select_for_update().get(pk=upgrade_request.pk)
            if upgrade_request.status in UpgradeRequest.IN_PROGRESS_STATUSES:
                upgrade_request.record_failure(f'{phase}: {error}')

        logger.warning(
            f"Upgrade {upgrade_request.id} {phase} failed "
            f"(attempt {upgrade_request.retry_count}/{upgrade_request.max_retries}): {error}"
        )
        if upgrade_request.needs_reconciliation:
            logger.warning(f"Upgrade {upgrade_request.id} flagged for manual reconciliation")
        raise UpgradeInterrupted(upgrade_request, f'{phase} failed: {error}') from error

    @staticmethod
    def _result(upgrade_request) -> UpgradeResult:
        catalog = get_catalog()
        codes = ProgressionService.special_tier_codes(upgrade_request.user)
        return UpgradeResult(
            upgrade_request=upgrade_request,
            tier_level=upgrade_request.to_level,
            fee_discount=fee_discount(catalog, upgrade_request.to_level, codes),
            benefits=merge_benefits(catalog, upgrade_request.to_level, codes),
            discount_schedule=discount_schedule(catalog, codes),
        )

    @staticmethod
    def find_stale_upgrades(now=None):
        """In-progress upgrades that made no progress within the stale window"""
        now = now or timezone.now()
        cutoff = now - timedelta(seconds=settings.TIER_PENDING_UPGRADE_STALE_SECONDS)
        return UpgradeRequest.objects.in_progress().filter(updated_at__lt=cutoff).order_by('created_at')

    @staticmethod
    def flag_stale_upgrades(now=None) -> List[UpgradeRequest]:
        """Move stale upgrades to reconciliation_required so they are never retried silently"""
        now = now or timezone.now()
        flagged = []
        for stale in UpgradeService.find_stale_upgrades(now):
            with transaction.atomic():
                UserProgress.objects.lock_for(stale.user)
                upgrade_request = UpgradeRequest.objects.select_for_update().get(pk=stale.pk)
                if upgrade_request.status not in UpgradeRequest.IN_PROGRESS_STATUSES:
                    continue
                upgrade_request.status = UpgradeRequest.RECONCILIATION_REQUIRED
                upgrade_request.last_error = (
                    f'stale: no progress since {upgrade_request.updated_at.isoformat()}'
                )
                upgrade_request.save(update_fields=['status', 'last_error', 'updated_at'])

            logger.warning(
                f"Upgrade {upgrade_request.id} for user {upgrade_request.user_id} "
                f"({upgrade_request.from_level} -> {upgrade_request.to_level}) is stale, "
                f"flagged for manual reconciliation"
            )
            flagged.append(upgrade_request)
        return flagged

    @staticmethod
    def resume_pending_upgrades(client=None) -> Dict[str, List[int]]:
        """Drive every in-progress, non-stale upgrade. Returns request ids by outcome"""
        stale_ids = set(UpgradeService.find_stale_upgrades().values_list('id', flat=True))
        outcome = {'completed': [], 'interrupted': []}
        for upgrade_request in UpgradeRequest.objects.in_progress().exclude(id__in=stale_ids).order_by('created_at'):
            try:
                UpgradeService._drive(upgrade_request, client)
            except UpgradeInterrupted as e:
                logger.warning(f"Resuming upgrade {upgrade_request.id} failed: {e.message}")
                outcome['interrupted'].append(upgrade_request.id)
            else:
                outcome['completed'].append(upgrade_request.id)
        return outcome

    @staticmethod
    def rollback_upgrade(upgrade_request, client=None) -> UpgradeRequest:
        """
        Administrative exit from PendingUpgrade: give the user back the tier
        they upgraded from and return the consumed badges.

        The request is moved to rollback_pending under the user lock before
        the old tier is re-issued, so an upgrade being driven at the same time
        can no longer complete it. A failed re-issue puts the request back in
        the phase it was taken from.
        """
        with transaction.atomic():
            UserProgress.objects.lock_for(upgrade_request.user)
            upgrade_request = UpgradeRequest.objects.select_for_update().get(pk=upgrade_request.pk)
            UpgradeService._check_rollback(upgrade_request)
            previous_status = upgrade_request.status
            upgrade_request.status = UpgradeRequest.ROLLBACK_PENDING
            upgrade_request.save(update_fields=['status', 'updated_at'])

        reference = ''
        if upgrade_request.burned_at is not None:
            # Old token is gone, issue it again
            client = client or IssuerClient()
            try:
                reference = client.mint(
                    f"{upgrade_request.issuer_key}:rollback", upgrade_request.user_id, upgrade_request.from_level
                )
            except IssuerError as e:
                logger.warning(f"Rollback of upgrade {upgrade_request.id} failed at re-mint: {e}")
                UpgradeService._release_rollback(upgrade_request, previous_status, e)
                raise IssuerUnavailable(f'Could not re-issue tier {upgrade_request.from_level}') from e

        with transaction.atomic():
            progress = UserProgress.objects.lock_for(upgrade_request.user)
            upgrade_request = UpgradeRequest.objects.select_for_update().get(pk=upgrade_request.pk)
            if not upgrade_request.is_rolling_back:
                raise InvalidTierTransition(
                    upgrade_request.from_level, upgrade_request.to_level,
                    message=f'Upgrade {upgrade_request.id} is {upgrade_request.status} and cannot be rolled back',
                )

            restored = []
            for badge in UserBadge.objects.filter(consumed_by=upgrade_request, status=UserBadge.CONSUMED):
                badge.restore()
                restored.append(badge.badge_id)

            previous_level = progress.tier_level
            progress.tier_level = upgrade_request.from_level
            progress.tier_state = UserProgress.ACTIVE
            progress.save(update_fields=['tier_level', 'tier_state', 'updated_at'])

            upgrade_request.status = UpgradeRequest.ROLLED_BACK
            upgrade_request.last_error = ''
            upgrade_request.save(update_fields=['status', 'last_error', 'updated_at'])

            TierChangeLog.objects.create(
                user_id=upgrade_request.user_id,
                from_level=previous_level,
                to_level=upgrade_request.from_level,
                reason=TierChangeLog.ROLLBACK,
                upgrade_request=upgrade_request,
                trading_volume=progress.trading_volume,
                reference=reference,
            )

        logger.info(
            f"Rolled back upgrade {upgrade_request.id}: user {upgrade_request.user_id} restored to "
            f"tier {upgrade_request.from_level}, badges {sorted(restored)} returned"
        )
        return upgrade_request

    @staticmethod
    def _check_rollback(upgrade_request):
        if not upgrade_request.is_unfinished:
            raise InvalidTierTransition(
                upgrade_request.from_level, upgrade_request.to_level,
                message=f'Upgrade {upgrade_request.id} is {upgrade_request.status} and cannot be rolled back',
            )

    @staticmethod
    def _release_rollback(upgrade_request, previous_status, error):
        """Return a rollback_pending request to the phase it was claimed from"""
        with transaction.atomic():
            UserProgress.objects.lock_for(upgrade_request.user)
            upgrade_request = UpgradeRequest.objects.select_for_update().get(pk=upgrade_request.pk)
            if upgrade_request.is_rolling_back:
                upgrade_request.status = previous_status
                upgrade_request.last_error = f'rollback: {error}'[:1000]
                upgrade_request.save(update_fields=['status', 'last_error', 'updated_at'])

    @staticmethod
    def force_retry(upgrade_request, client=None) -> UpgradeResult:
        """Clear a reconciliation flag, reset the retry budget and resume the upgrade"""
        with transaction.atomic():
            UserProgress.objects.lock_for(upgrade_request.user)
            upgrade_request = UpgradeRequest.objects.select_for_update().get(pk=upgrade_request.pk)
            if not upgrade_request.is_unfinished:
                raise InvalidTierTransition(
                    upgrade_request.from_level, upgrade_request.to_level,
                    message=f'Upgrade {upgrade_request.id} is {upgrade_request.status} and cannot be retried',
                )
            if upgrade_request.is_rolling_back:
                raise InvalidTierTransition(
                    upgrade_request.from_level, upgrade_request.to_level,
                    message=f'Upgrade {upgrade_request.id} is being rolled back',
                )
            if upgrade_request.burned_at is not None:
                upgrade_request.status = UpgradeRequest.BURN_CONFIRMED
            else:
                upgrade_request.status = UpgradeRequest.BURN_PENDING
            upgrade_request.retry_count = 0
            upgrade_request.max_retries = settings.TIER_UPGRADE_MAX_RETRIES
            upgrade_request.save(update_fields=['status', 'retry_count', 'max_retries', 'updated_at'])

        logger.info(f"Forced retry of upgrade {upgrade_request.id} from {upgrade_request.status}")
        return UpgradeService._drive(upgrade_request, client)
