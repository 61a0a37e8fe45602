"""
Core reconciliation primitives.

This module provides:
- RevisionTuple: One audit row with content-based identity
- RevType: INSERT / UPDATE / DELETE classification
- CorrectionRequest: One corrective order assignment
- Errors: Exception hierarchy shared by replay, stores and CLI
"""

from .revision import LineKey, RevisionTuple, RevType, rev_type_label, sort_revisions
from .corrections import (
    AMBIGUOUS_ORDER,
    DATA_CORRUPTION,
    DELETE_CORRECTION,
    INSERT_CORRECTION,
    MANUAL_FIX_REQUIRED,
    RETRY_RESOLVED,
    RUN,
    UPDATE_CORRECTION,
    CorrectionRequest,
)
from .errors import (
    ConfigError,
    CorrectionCountError,
    ReorderError,
    StoreError,
    UnexpectedRevTypeError,
    UniqueViolationError,
)

__all__ = [
    "LineKey",
    "RevisionTuple",
    "RevType",
    "rev_type_label",
    "sort_revisions",
    "CorrectionRequest",
    "INSERT_CORRECTION",
    "UPDATE_CORRECTION",
    "DELETE_CORRECTION",
    "DATA_CORRUPTION",
    "AMBIGUOUS_ORDER",
    "RETRY_RESOLVED",
    "MANUAL_FIX_REQUIRED",
    "RUN",
    "ReorderError",
    "UnexpectedRevTypeError",
    "StoreError",
    "UniqueViolationError",
    "CorrectionCountError",
    "ConfigError",
]
