"""
In-memory audit store.

Holds audit rows in a list and emulates the run transaction, savepoints and
the audit table's unique constraint. Used by tests and for offline
inspection of exported rows.
"""

from collections import Counter
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterable, Iterator, List, Optional, Tuple

from ..core.corrections import CorrectionRequest
from ..core.errors import StoreError, UniqueViolationError
from ..core.revision import RevisionTuple, sort_revisions
from .store import AuditStore

UniqueKey = Tuple[int, int, int, int]


class MemoryAuditStore(AuditStore):
    """
    List-backed audit store.

    Unique constraint (when enforced): no two rows share
    (entity_id, rev, rev_type, order_id) with a non-null order_id.
    """

    def __init__(self, rows: Iterable[RevisionTuple] = (), enforce_unique: bool = True) -> None:
        self.rows: List[RevisionTuple] = [replace(row) for row in rows]
        self.enforce_unique = enforce_unique
        self.committed: List[RevisionTuple] = [replace(row) for row in self.rows]
        self.commits = 0
        self._in_transaction = False

    def candidates(self) -> Iterator[int]:
        counts = Counter((row.entity_id, row.rev) for row in self.rows)
        ids = sorted({entity_id for (entity_id, _), n in counts.items() if n > 1})
        yield from ids

    def load_revisions(self, entity_id: int) -> List[RevisionTuple]:
        ordered = sort_revisions(replace(row) for row in self.rows if row.entity_id == entity_id)
        for number, row in enumerate(ordered, 1):
            row.row_number = number
        return ordered

    @contextmanager
    def transaction(self, dry_run: bool = False) -> Iterator[None]:
        if self._in_transaction:
            raise StoreError("transaction already in progress")
        snapshot = self._snapshot()
        self._in_transaction = True
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            raise
        else:
            if dry_run:
                self._restore(snapshot)
            else:
                self.committed = [replace(row) for row in self.rows]
                self.commits += 1
        finally:
            self._in_transaction = False

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        snapshot = self._snapshot()
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            raise

    def update_order(self, correction: CorrectionRequest) -> int:
        matched = [row for row in self.rows if self._addresses(row, correction)]
        for row in matched:
            row.order_id = correction.order
        if self.enforce_unique and matched:
            self._check_unique(correction)
        return len(matched)

    def order_of(
        self, entity_id: int, rev: int, content: str, rev_type: int, committed: bool = False
    ) -> Optional[int]:
        """Stored order of one row, from the working or committed view."""
        rows = self.committed if committed else self.rows
        for row in rows:
            if (row.entity_id, row.rev, row.content, row.rev_type) == (entity_id, rev, content, rev_type):
                return row.order_id
        raise KeyError((entity_id, rev, content, rev_type))

    @staticmethod
    def _addresses(row: RevisionTuple, correction: CorrectionRequest) -> bool:
        return (
            row.rev == correction.rev
            and row.entity_id == correction.entity_id
            and row.content == correction.content
            and row.rev_type == correction.rev_type
        )

    def _check_unique(self, correction: CorrectionRequest) -> None:
        seen = Counter(
            (row.entity_id, row.rev, row.rev_type, row.order_id)
            for row in self.rows
            if row.entity_id == correction.entity_id and row.order_id is not None
        )
        key: UniqueKey = (correction.entity_id, correction.rev, correction.rev_type, correction.order)
        if seen[key] > 1:
            raise UniqueViolationError(
                f"duplicate key (entity_id, rev, revtype, order_id)={key}"
            )

    def _snapshot(self) -> List[Optional[int]]:
        return [row.order_id for row in self.rows]

    def _restore(self, snapshot: List[Optional[int]]) -> None:
        for row, order_id in zip(self.rows, snapshot):
            row.order_id = order_id
