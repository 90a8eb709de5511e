"""
Tier services module.
"""
from .progression_service import ClaimResult, ProgressionService
from .upgrade_service import UpgradeResult, UpgradeService

__all__ = [
    'ClaimResult',
    'ProgressionService',
    'UpgradeResult',
    'UpgradeService',
]
