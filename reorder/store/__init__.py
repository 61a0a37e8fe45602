"""
Audit table access.

This module provides:
- AuditStore: Abstract interface (candidates, loader, correction sink)
- MemoryAuditStore: List-backed store for tests and offline inspection
- PostgresAuditStore: psycopg store over the audit table
"""

from .store import AuditStore
from .memory_store import MemoryAuditStore
from .postgres_store import PostgresAuditStore

__all__ = [
    "AuditStore",
    "MemoryAuditStore",
    "PostgresAuditStore",
]
