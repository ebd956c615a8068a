"""
Exceptions raised by the tournament core.

Validation errors are user-correctable (bad scores, bad settings).
Integrity errors mean a caller broke a contract (a pairing outside its pool,
mixed rounds handed to progression) and the operation refused to emit data.
"""


class OcheError(Exception):
    """Base exception for all tournament core errors."""


class ValidationError(OcheError, ValueError):
    """Raised when user-supplied data is rejected."""


class MatchValidationError(ValidationError):
    """Raised when scores cannot be recorded or a match cannot be confirmed."""


class SettingsError(ValidationError):
    """Raised when settings or a roster cannot be loaded or used."""


class IntegrityError(OcheError, RuntimeError):
    """Raised when input violates an internal contract."""


class ScheduleIntegrityError(IntegrityError):
    """Raised when a pool schedule would reference players outside the pool."""


class ProgressionIntegrityError(IntegrityError):
    """Raised when bracket progression receives inconsistent matches."""
