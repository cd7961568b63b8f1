"""Domain models and types for flashcount.

This package contains the functional core:
- Pure functions with no side effects
- No I/O operations
- Easy to test
- Business logic separated from infrastructure
"""

from flashcount.domain.errors import (
    BackupFormatError,
    ConfigurationError,
    FlashCountError,
    InternalConsistencyError,
)
from flashcount.domain.models import Direction, EntityId, Frequency, Money, Month

__all__ = [
    "BackupFormatError",
    "ConfigurationError",
    "Direction",
    "EntityId",
    "FlashCountError",
    "Frequency",
    "InternalConsistencyError",
    "Money",
    "Month",
]
