"""
Retry heuristic for replays that collided on an INSERT position.

Two INSERTs sharing a revision have no reliable relative order in the audit
table. Swapping the first such pair and replaying once more resolves the
common case; anything still failing goes to a human.
"""

import logging
from typing import List, Optional

from ..core.revision import RevisionTuple, RevType
from ..logging_config import get_logger
from .engine import DeletePolicy, ReplayResult, replay


def swap_first_insert_pair(revisions: List[RevisionTuple]) -> Optional[int]:
    """
    Swap the first two adjacent INSERT revisions sharing a rev, in place.

    Returns:
        Index of the first swapped revision, or None if no pair exists
    """
    for i in range(len(revisions) - 1):
        first, second = revisions[i], revisions[i + 1]
        if (
            first.rev_type == RevType.INSERT
            and second.rev_type == RevType.INSERT
            and first.rev == second.rev
        ):
            revisions[i], revisions[i + 1] = second, first
            return i
    return None


def retry(
    revisions: List[RevisionTuple],
    delete_policy: DeletePolicy = DeletePolicy.HISTORY,
    logger: Optional[logging.LoggerAdapter] = None,
) -> ReplayResult:
    """
    Swap the first same-rev INSERT pair and replay exactly once.

    Args:
        revisions: The sequence that failed to replay; mutated in place
        delete_policy: Renumbering rule passed through to replay

    Returns:
        The retried ReplayResult, or a failed result when nothing can be swapped
    """
    if logger is None:
        trace_id = revisions[0].entity_id if revisions else None
        logger = get_logger(__name__, trace_id=trace_id)

    index = swap_first_insert_pair(revisions)
    if index is None:
        logger.debug("No adjacent same-revision INSERT pair to swap")
        return ReplayResult(False)

    logger.debug("Swapped revisions at %d and %d, replaying again", index, index + 1)
    return replay(revisions, delete_policy, logger=logger)
