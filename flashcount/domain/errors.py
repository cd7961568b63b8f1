"""Typed failures raised by the functional core."""


class FlashCountError(Exception):
    """Base class for every error flashcount raises on purpose."""


class ConfigurationError(FlashCountError, ValueError):
    """Input that must be rejected outright (unknown frequency, bad amount, bad setting)."""


class InternalConsistencyError(FlashCountError, RuntimeError):
    """A computation reached a state that should be impossible, e.g. a runaway catch-up loop."""


class BackupFormatError(FlashCountError, ValueError):
    """A backup payload is not shaped like a flashcount backup."""


class UnsupportedEntryError(BackupFormatError):
    """A backup entry uses a frequency, account type or asset category this version does not know."""
