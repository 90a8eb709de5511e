"""
Common validators module.
"""
from .user_validators import (
    next_nickname_change_at, validate_email, validate_nickname, validate_nickname_change
)

__all__ = [
    'next_nickname_change_at',
    'validate_email',
    'validate_nickname',
    'validate_nickname_change',
]
