class RecoveryError(Exception):
    """Base exception for document recovery."""


class RecoveryStageError(RecoveryError):
    """Raised when a recovery stage does not yield usable text."""


class RepairError(RecoveryError):
    """Raised when a byte-level or external repair pass fails."""
