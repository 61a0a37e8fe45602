"""
Test suite for audit order reconciliation.

Focus areas:
- Replay order assignment and determinism
- Retry heuristic
- Driver isolation between entities
- Savepoint rollback of failed writes
"""
