"""
Revision model: one row of the address-line audit trail.

Identity is content based: two revisions describe the same logical line iff
their entity_id and content match. rev, rev_type and order_id never take part.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable, List, Optional, Sequence, Tuple


class RevType(IntEnum):
    """Revision classification as stored in the revtype column."""
    INSERT = 0
    UPDATE = 1
    DELETE = 2


def rev_type_label(value: int) -> str:
    try:
        return RevType(value).name
    except ValueError:
        return str(value)


@dataclass(frozen=True)
class LineKey:
    """
    Logical line identity.

    Fields:
        entity_id: Owning address-line entity
        content: Text of the line
    """
    entity_id: int
    content: str


@dataclass(eq=False)
class RevisionTuple:
    """
    One audit row.

    Fields:
        rev: Revision number (monotonic per entity)
        entity_id: Owning address-line entity
        content: Text of the line at this revision
        rev_type: Stored revtype (0 INSERT, 1 UPDATE, 2 DELETE)
        order_id: Stored ordinal position, None when never recorded
        row_number: Diagnostic rank from the loader query

    Everything except order_id is read-only by convention. Equality and
    hashing follow key (entity_id, content).
    """
    rev: int
    entity_id: int
    content: str
    rev_type: int
    order_id: Optional[int] = None
    row_number: int = 0
    key: LineKey = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.key = LineKey(self.entity_id, self.content)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, RevisionTuple):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    @staticmethod
    def from_row(entity_id: int, row: Sequence[Any]) -> "RevisionTuple":
        """
        Build a revision from a loader row.

        Args:
            entity_id: Owning entity
            row: (rev, content, rev_type, order_id, row_number)
        """
        rev, content, rev_type, order_id, row_number = row
        return RevisionTuple(
            rev=int(rev),
            entity_id=entity_id,
            content=content,
            rev_type=int(rev_type),
            order_id=None if order_id is None else int(order_id),
            row_number=int(row_number),
        )

    def sort_key(self) -> Tuple[int, int, float]:
        """rev asc, rev_type desc, order_id asc (nulls last, as PostgreSQL sorts them)."""
        order = self.order_id if self.order_id is not None else float("inf")
        return (self.rev, -self.rev_type, order)

    def describe(self) -> str:
        return (
            f"entity={self.entity_id} line={self.content!r} rev={self.rev} "
            f"revtype={rev_type_label(self.rev_type)} order_id={self.order_id} "
            f"row={self.row_number}"
        )


def sort_revisions(revisions: Iterable[RevisionTuple]) -> List[RevisionTuple]:
    """Return revisions in replay order. The engine never sorts; loaders use this."""
    return sorted(revisions, key=lambda r: r.sort_key())
