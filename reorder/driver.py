"""
Entity driver: reconcile every candidate entity in one run.

For each entity: load revisions, replay, retry once on collision, forward
every correction to the store. No single entity's outcome stops the run;
only fatal errors (unexpected revtype, failed commit) escape.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .core.corrections import MANUAL_FIX_REQUIRED, RETRY_RESOLVED, RUN, CorrectionRequest
from .core.revision import RevisionTuple
from .logging_config import get_logger, log_event
from .replay.engine import DeletePolicy, ReplayResult, replay
from .replay.retry import retry
from .store.store import AuditStore

logger = get_logger(__name__)


class EntityOutcome(str, Enum):
    CLEAN = "clean"
    CORRECTED = "corrected"
    CORRUPT = "corrupt"
    RESOLVED_ON_RETRY = "resolved-on-retry"
    MANUAL_FIX_REQUIRED = "manual-fix-required"


@dataclass(frozen=True)
class EntityReport:
    """
    Result of reconciling one entity.

    Fields:
        entity_id: Entity reconciled
        outcome: Classification for operators
        revisions: Number of audit rows loaded
        emitted: Corrections produced by replay (first pass and retry)
        applied: Corrections the store accepted
    """
    entity_id: int
    outcome: EntityOutcome
    revisions: int
    emitted: int
    applied: int

    @property
    def failed_writes(self) -> int:
        return self.emitted - self.applied

    @property
    def needs_manual_fix(self) -> bool:
        return (
            self.outcome in (EntityOutcome.CORRUPT, EntityOutcome.MANUAL_FIX_REQUIRED)
            or self.failed_writes > 0
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "outcome": self.outcome.value,
            "revisions": self.revisions,
            "emitted": self.emitted,
            "applied": self.applied,
        }


@dataclass
class RunSummary:
    reports: List[EntityReport] = field(default_factory=list)
    dry_run: bool = False
    committed: bool = False

    @property
    def entities(self) -> int:
        return len(self.reports)

    @property
    def corrections_emitted(self) -> int:
        return sum(r.emitted for r in self.reports)

    @property
    def corrections_applied(self) -> int:
        return sum(r.applied for r in self.reports)

    @property
    def manual_fix_entities(self) -> List[int]:
        return [r.entity_id for r in self.reports if r.needs_manual_fix]

    def outcome_counts(self) -> Dict[str, int]:
        counts = {outcome.value: 0 for outcome in EntityOutcome}
        for r in self.reports:
            counts[r.outcome.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": self.entities,
            "corrections_emitted": self.corrections_emitted,
            "corrections_applied": self.corrections_applied,
            "outcomes": self.outcome_counts(),
            "manual_fix_entities": self.manual_fix_entities,
            "dry_run": self.dry_run,
            "committed": self.committed,
        }


@dataclass(frozen=True)
class EntityPlan:
    """
    Replay outcome for one entity before anything is written.

    Fields:
        first: Result of the first replay
        second: Result of the retry, None when the first pass succeeded
    """
    first: ReplayResult
    second: Optional[ReplayResult] = None

    @property
    def corrections(self) -> Tuple[CorrectionRequest, ...]:
        if self.second is None:
            return self.first.corrections
        return self.first.corrections + self.second.corrections

    @property
    def outcome(self) -> EntityOutcome:
        final = self.first if self.second is None else self.second
        if not final.success:
            return EntityOutcome.MANUAL_FIX_REQUIRED
        if final.corrupted:
            return EntityOutcome.CORRUPT
        if self.second is not None:
            return EntityOutcome.RESOLVED_ON_RETRY
        return EntityOutcome.CORRECTED if self.first.corrections else EntityOutcome.CLEAN


def plan_entity(
    revisions: List[RevisionTuple],
    delete_policy: DeletePolicy = DeletePolicy.HISTORY,
    entity_id: Optional[int] = None,
) -> EntityPlan:
    """
    Replay one entity, retrying once on collision. Writes nothing.

    Corrections of a collided first pass are kept alongside the retry's, the
    same as if they had been written before the retry ran.
    """
    if entity_id is None and revisions:
        entity_id = revisions[0].entity_id
    entity_logger = get_logger(__name__, trace_id=entity_id)

    first = replay(revisions, delete_policy, logger=entity_logger)
    if first.success:
        return EntityPlan(first)

    entity_logger.info("Re-ordering entity %s and trying again", entity_id)
    second = retry(revisions, delete_policy, logger=entity_logger)
    if second.success:
        log_event(entity_logger, RETRY_RESOLVED, f"Entity {entity_id} resolved on retry")
    else:
        log_event(
            entity_logger,
            MANUAL_FIX_REQUIRED,
            f"Still failed after retry, need manual fix for entity {entity_id}",
            logging.ERROR,
        )
    return EntityPlan(first, second)


def reconcile_entity(
    store: AuditStore,
    entity_id: int,
    delete_policy: DeletePolicy = DeletePolicy.HISTORY,
) -> EntityReport:
    """Load, plan and forward every correction of one entity to the store."""
    revisions = store.load_revisions(entity_id)
    plan = plan_entity(revisions, delete_policy, entity_id=entity_id)
    corrections = plan.corrections
    applied = sum(store.apply(correction) for correction in corrections)
    return EntityReport(entity_id, plan.outcome, len(revisions), len(corrections), applied)


def reconcile(
    store: AuditStore,
    delete_policy: DeletePolicy = DeletePolicy.HISTORY,
    entity_ids: Optional[Iterable[int]] = None,
) -> RunSummary:
    """
    Reconcile candidate entities in ascending id order.

    Args:
        store: Audit store (caller owns the transaction)
        delete_policy: Renumbering rule for DELETE revisions
        entity_ids: Explicit ids to reconcile (None = store.candidates())

    Returns:
        RunSummary with one report per entity

    Raises:
        UnexpectedRevTypeError: If any revision has an unknown revtype
    """
    summary = RunSummary()
    ids = store.candidates() if entity_ids is None else entity_ids
    for entity_id in ids:
        summary.reports.append(reconcile_entity(store, entity_id, delete_policy))
    return summary


def run(
    store: AuditStore,
    delete_policy: DeletePolicy = DeletePolicy.HISTORY,
    entity_ids: Optional[Iterable[int]] = None,
    dry_run: bool = False,
) -> RunSummary:
    """
    Reconcile inside one transaction, committed once at the end.

    Any escaping error rolls the whole run back. dry_run performs every write
    and then rolls back.
    """
    log_event(
        logger,
        RUN,
        f"Starting reconciliation (delete_policy={DeletePolicy(delete_policy).value}, dry_run={dry_run})",
    )
    with store.transaction(dry_run=dry_run):
        summary = reconcile(store, delete_policy, entity_ids)
    summary.dry_run = dry_run
    summary.committed = not dry_run

    log_event(
        logger,
        RUN,
        f"Finished: entities={summary.entities} emitted={summary.corrections_emitted} "
        f"applied={summary.corrections_applied} manual_fix={len(summary.manual_fix_entities)} "
        f"{'rolled back (dry run)' if dry_run else 'committed'}",
    )
    return summary
