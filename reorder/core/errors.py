"""
Exception types for audit order reconciliation.
"""


class ReorderError(Exception):
    """Base class for reconciliation errors."""
    pass


class UnexpectedRevTypeError(ReorderError):
    """Raised when a revision carries a revtype outside INSERT/UPDATE/DELETE. Fatal for the run."""
    pass


class StoreError(ReorderError):
    """Raised when an audit store read or write fails."""
    pass


class UniqueViolationError(StoreError):
    """Raised when a correction write collides with an existing stored order."""
    pass


class CorrectionCountError(ReorderError):
    """Raised when a correction write matches zero or more than one row."""

    def __init__(self, count: int, message: str = "") -> None:
        super().__init__(message or f"Expected one row to be updated, got {count}")
        self.count = count


class ConfigError(ReorderError):
    """Raised when settings are missing or invalid."""
    pass
