"""
Tier progression errors.

Every business rule violation raised by the engine is a
``TierProgressionError``. They are all recoverable and user-facing: the DRF
exception handler turns them into the standard error envelope. The only fatal
error is ``CatalogError``, raised once at startup when the catalog itself is
inconsistent.
"""
from decimal import Decimal

from django.core.exceptions import ImproperlyConfigured
from rest_framework import status


class CatalogError(ImproperlyConfigured):
    """Tier/badge catalog data is inconsistent"""


class TierProgressionError(Exception):
    """Base class for user-facing tier progression errors"""
    code = 'tier_progression_error'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Tier progression request rejected'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def details(self):
        """Structured payload returned in the envelope ``data`` field"""
        return {}


class InvalidTierTransition(TierProgressionError):
    code = 'invalid_tier_transition'
    default_message = 'Target tier must be higher than the current tier'

    def __init__(self, from_level=None, to_level=None, message=None):
        self.from_level = from_level
        self.to_level = to_level
        super().__init__(message)

    def details(self):
        return {'from_level': self.from_level, 'to_level': self.to_level}


class TierOutOfRange(TierProgressionError):
    code = 'tier_out_of_range'
    default_message = 'Requested tier level does not exist'

    def __init__(self, level, max_level, message=None):
        self.level = level
        self.max_level = max_level
        super().__init__(message or f'Tier level {level} is outside 1..{max_level}')

    def details(self):
        return {'level': self.level, 'max_level': self.max_level}


class InsufficientVolume(TierProgressionError):
    code = 'insufficient_volume'
    default_message = 'Trading volume is below the tier requirement'

    def __init__(self, level, required_volume, current_volume):
        self.level = level
        self.required_volume = Decimal(required_volume)
        self.current_volume = Decimal(current_volume)
        self.shortfall = self.required_volume - self.current_volume
        super().__init__(
            f'Tier {level} requires {self.required_volume} trading volume, '
            f'short by {self.shortfall}'
        )

    def details(self):
        return {
            'level': self.level,
            'required_volume': str(self.required_volume),
            'current_volume': str(self.current_volume),
            'shortfall': str(self.shortfall),
        }


class BadgeRequirementUnmet(TierProgressionError):
    code = 'badge_requirement_unmet'
    default_message = 'Required badges are not activated'

    def __init__(self, level, missing_badge_ids):
        self.level = level
        self.missing_badge_ids = sorted(missing_badge_ids)
        super().__init__(
            f'Tier {level} requires activated badges: {self.missing_badge_ids}'
        )

    def details(self):
        return {'level': self.level, 'missing_badge_ids': self.missing_badge_ids}


class BadgeNotOwned(TierProgressionError):
    code = 'badge_not_owned'
    default_message = 'Badge must be owned before it can be activated'

    def __init__(self, badge_id, current_status='not_earned'):
        self.badge_id = badge_id
        self.current_status = current_status
        super().__init__(f'Badge {badge_id} is {current_status}, it must be owned to activate')

    def details(self):
        return {'badge_id': self.badge_id, 'status': self.current_status}


class UnknownBadge(TierProgressionError):
    code = 'unknown_badge'
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, badge_ids):
        if isinstance(badge_ids, int):
            badge_ids = [badge_ids]
        self.badge_ids = sorted(badge_ids)
        super().__init__(f'Badges not in catalog: {self.badge_ids}')

    def details(self):
        return {'badge_ids': self.badge_ids}


class UnknownBadgeTask(TierProgressionError):
    code = 'unknown_badge_task'
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__(f'No badge is linked to task {task_id}')

    def details(self):
        return {'task_id': self.task_id}


class UnknownSpecialTier(TierProgressionError):
    code = 'unknown_special_tier'
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, code):
        self.special_tier_code = code
        super().__init__(f'Special tier {code!r} is not in the catalog')

    def details(self):
        return {'special_tier': self.special_tier_code}


class UpgradeRequestNotFound(TierProgressionError):
    code = 'upgrade_request_not_found'
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, upgrade_request_id):
        self.upgrade_request_id = upgrade_request_id
        super().__init__(f'Upgrade request {upgrade_request_id} not found')

    def details(self):
        return {'upgrade_request_id': self.upgrade_request_id}


class InvalidVolume(TierProgressionError):
    code = 'invalid_volume'
    default_message = 'Trading volume must be a non-negative amount'


class PendingUpgradeConflict(TierProgressionError):
    code = 'pending_upgrade_conflict'
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, upgrade_request):
        self.upgrade_request_id = upgrade_request.id
        self.from_level = upgrade_request.from_level
        self.to_level = upgrade_request.to_level
        super().__init__(
            f'Upgrade {self.from_level} -> {self.to_level} is still pending, '
            'retry it before requesting another tier change'
        )

    def details(self):
        return {
            'upgrade_request_id': self.upgrade_request_id,
            'from_level': self.from_level,
            'to_level': self.to_level,
        }


class UpgradeNeedsReconciliation(PendingUpgradeConflict):
    code = 'upgrade_needs_reconciliation'

    def __init__(self, upgrade_request):
        super().__init__(upgrade_request)
        self.message = (
            f'Upgrade {self.from_level} -> {self.to_level} is held for manual '
            'reconciliation, contact support'
        )
        self.args = (self.message,)


class UpgradeInterrupted(TierProgressionError):
    """Issuer failed mid-upgrade, the request stays pending and can be retried"""
    code = 'upgrade_interrupted'
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, upgrade_request, reason):
        self.upgrade_request_id = upgrade_request.id
        self.from_level = upgrade_request.from_level
        self.to_level = upgrade_request.to_level
        self.upgrade_status = upgrade_request.status
        self.retryable = upgrade_request.status in ('burn_pending', 'burn_confirmed')
        super().__init__(f'Upgrade interrupted: {reason}')

    def details(self):
        return {
            'upgrade_request_id': self.upgrade_request_id,
            'from_level': self.from_level,
            'to_level': self.to_level,
            'status': self.upgrade_status,
            'retryable': self.retryable,
        }


class IssuerUnavailable(TierProgressionError):
    code = 'issuer_unavailable'
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'Tier issuing service is unavailable, please retry'
