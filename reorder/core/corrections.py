"""
Correction requests emitted by replay and the log categories that tag them.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .revision import RevisionTuple, rev_type_label

# Log stream categories. Operators grep for these after a run.
INSERT_CORRECTION = "insert-correction"
UPDATE_CORRECTION = "update-correction"
DELETE_CORRECTION = "delete-correction"
DATA_CORRUPTION = "data-corruption"
AMBIGUOUS_ORDER = "ambiguous-order"
RETRY_RESOLVED = "retry-resolved"
MANUAL_FIX_REQUIRED = "manual-fix-required"
RUN = "run"


@dataclass(frozen=True)
class CorrectionRequest:
    """
    One corrective order assignment for a single audit row.

    The row is addressed by (rev, entity_id, content, rev_type).

    Fields:
        order: Order value to write
        rev: Revision number of the target row
        entity_id: Owning entity
        content: Line content of the target row
        rev_type: Stored revtype of the target row
        previous: Stored order before the correction (None when null)
        category: Log category that produced the correction
    """
    order: int
    rev: int
    entity_id: int
    content: str
    rev_type: int
    previous: Optional[int] = None
    category: str = INSERT_CORRECTION

    @staticmethod
    def for_revision(revision: RevisionTuple, order: int, category: str) -> "CorrectionRequest":
        return CorrectionRequest(
            order=order,
            rev=revision.rev,
            entity_id=revision.entity_id,
            content=revision.content,
            rev_type=revision.rev_type,
            previous=revision.order_id,
            category=category,
        )

    def describe(self) -> str:
        previous = -1 if self.previous is None else self.previous
        return (
            f"order {previous} -> {self.order} for entity={self.entity_id} "
            f"line={self.content!r} rev={self.rev} revtype={rev_type_label(self.rev_type)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order": self.order,
            "rev": self.rev,
            "entity_id": self.entity_id,
            "content": self.content,
            "rev_type": self.rev_type,
            "previous": self.previous,
            "category": self.category,
        }
