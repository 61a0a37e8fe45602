"""
Replay system for order reconstruction.

Replay rebuilds one entity's live line list from its audit trail and derives
the order every revision should have stored.
Must be 100% deterministic: same revisions -> same corrections.
"""

from .engine import DeletePolicy, ReplayResult, ReplayState, replay
from .retry import retry, swap_first_insert_pair

__all__ = [
    "DeletePolicy",
    "ReplayResult",
    "ReplayState",
    "replay",
    "retry",
    "swap_first_insert_pair",
]
