"""
Replay engine: reconstruct one entity's live line order revision by revision.

Replay walks revisions in (rev asc, rev_type desc, order_id asc) order and
keeps two containers owned by the invocation:
- live: lines currently believed to exist, in display order
- history: last order value assigned to each logical line

Every order value that disagrees with the stored one becomes a
CorrectionRequest. Replay writes nothing; the driver forwards corrections.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..core.corrections import (
    AMBIGUOUS_ORDER,
    DATA_CORRUPTION,
    DELETE_CORRECTION,
    INSERT_CORRECTION,
    UPDATE_CORRECTION,
    CorrectionRequest,
)
from ..core.errors import UnexpectedRevTypeError
from ..core.revision import LineKey, RevisionTuple, RevType
from ..logging_config import get_logger, log_event


class DeletePolicy(str, Enum):
    """
    How a DELETE revision renumbers.

    HISTORY restores the deleted line's last assigned order on its delete row.
    RESCAN corrects every remaining live line whose stored order no longer
    matches its index. The two disagree on some histories; HISTORY is the
    default and RESCAN exists to compare against real data.
    """
    HISTORY = "history"
    RESCAN = "rescan"


class Step(Enum):
    CONTINUE = "continue"
    COLLISION = "collision"
    CORRUPT = "corrupt"


@dataclass
class ReplayState:
    """
    Mutable state of a single replay invocation.

    Fields:
        live: Live order list
        history: Logical line -> last assigned order
        corrections: Corrections emitted so far, in emission order
        delete_policy: Renumbering rule for DELETE revisions
    """
    live: List[RevisionTuple] = field(default_factory=list)
    history: Dict[LineKey, int] = field(default_factory=dict)
    corrections: List[CorrectionRequest] = field(default_factory=list)
    delete_policy: DeletePolicy = DeletePolicy.HISTORY

    def last_index_of(self, key: LineKey) -> int:
        for index in range(len(self.live) - 1, -1, -1):
            if self.live[index].key == key:
                return index
        return -1

    def remove(self, key: LineKey) -> bool:
        """Remove the first live line with this identity. False if absent."""
        for index, line in enumerate(self.live):
            if line.key == key:
                del self.live[index]
                return True
        return False

    def order_taken(self, order: int) -> bool:
        return any(self.history.get(line.key) == order for line in self.live)


@dataclass(frozen=True)
class ReplayResult:
    """
    Result of replaying one entity.

    Fields:
        success: False only when an INSERT position collided with history
        corrections: Corrections emitted before replay finished or stopped
        corrupted: True when an UPDATE/DELETE referenced an absent line
        processed: Number of revisions consumed
    """
    success: bool
    corrections: Tuple[CorrectionRequest, ...] = ()
    corrupted: bool = False
    processed: int = 0


Handler = Callable[[ReplayState, RevisionTuple, logging.LoggerAdapter], Step]


def _emit(
    state: ReplayState,
    revision: RevisionTuple,
    order: int,
    category: str,
    logger: logging.LoggerAdapter,
) -> CorrectionRequest:
    correction = CorrectionRequest.for_revision(revision, order, category)
    state.corrections.append(correction)
    log_event(logger, category, f"Update {correction.describe()}")
    return correction


def apply_insert(state: ReplayState, revision: RevisionTuple, logger: logging.LoggerAdapter) -> Step:
    state.live.append(revision)
    order = len(state.live) - 1
    if state.order_taken(order):
        log_event(
            logger,
            AMBIGUOUS_ORDER,
            f"Order {order} already taken by an existing line, guessed the wrong order at {revision.describe()}",
            logging.WARNING,
        )
        return Step.COLLISION

    state.history[revision.key] = order
    if revision.order_id is None or revision.order_id != order:
        _emit(state, revision, order, INSERT_CORRECTION, logger)
        revision.order_id = order
    return Step.CONTINUE


def apply_update(state: ReplayState, revision: RevisionTuple, logger: logging.LoggerAdapter) -> Step:
    last = state.last_index_of(revision.key)
    if last < 0:
        log_event(
            logger,
            DATA_CORRUPTION,
            f"UPDATE of a line that does not exist -> {revision.describe()}",
            logging.ERROR,
        )
        return Step.CORRUPT

    # Offset of one below the last occurrence is the legacy writer's rule.
    order = last - 1
    state.history[revision.key] = order
    if revision.order_id is None:
        _emit(state, revision, order, UPDATE_CORRECTION, logger)
    return Step.CONTINUE


def apply_delete(state: ReplayState, revision: RevisionTuple, logger: logging.LoggerAdapter) -> Step:
    if not state.remove(revision.key):
        log_event(
            logger,
            DATA_CORRUPTION,
            f"DELETE of a line that does not exist -> {revision.describe()}",
            logging.ERROR,
        )
        return Step.CORRUPT

    if state.delete_policy is DeletePolicy.RESCAN:
        for index, line in enumerate(state.live):
            if line.order_id != index:
                _emit(state, line, index, DELETE_CORRECTION, logger)
                line.order_id = index
                state.history[line.key] = index
    else:
        remembered = state.history.get(revision.key)
        if remembered is not None and remembered != revision.order_id:
            _emit(state, revision, remembered, DELETE_CORRECTION, logger)

    state.history.pop(revision.key, None)
    return Step.CONTINUE


HANDLERS: Dict[int, Handler] = {
    RevType.INSERT: apply_insert,
    RevType.UPDATE: apply_update,
    RevType.DELETE: apply_delete,
}


def replay(
    revisions: Sequence[RevisionTuple],
    delete_policy: DeletePolicy = DeletePolicy.HISTORY,
    logger: Optional[logging.LoggerAdapter] = None,
) -> ReplayResult:
    """
    Replay one entity's revisions and compute order corrections.

    Revisions must already be in replay order; they are not re-sorted.
    INSERT revisions whose order is corrected have order_id updated in place.

    Args:
        revisions: One entity's audit rows in replay order
        delete_policy: Renumbering rule for DELETE revisions
        logger: Adapter carrying the entity trace_id (created when None)

    Returns:
        ReplayResult. success is False only on an INSERT collision; data
        corruption stops replay with success True and corrupted True.

    Raises:
        UnexpectedRevTypeError: If a revision has a revtype outside 0/1/2
    """
    if logger is None:
        trace_id = revisions[0].entity_id if revisions else None
        logger = get_logger(__name__, trace_id=trace_id)

    state = ReplayState(delete_policy=DeletePolicy(delete_policy))
    processed = 0

    for revision in revisions:
        handler = HANDLERS.get(revision.rev_type)
        if handler is None:
            raise UnexpectedRevTypeError(
                f"What's a {revision.rev_type} revType: {revision.describe()}"
            )
        processed += 1
        step = handler(state, revision, logger)
        if step is Step.COLLISION:
            return ReplayResult(False, tuple(state.corrections), processed=processed)
        if step is Step.CORRUPT:
            # Bailing out, the data needs to be fixed first
            return ReplayResult(True, tuple(state.corrections), corrupted=True, processed=processed)

    return ReplayResult(True, tuple(state.corrections), processed=processed)
