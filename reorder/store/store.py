"""
AuditStore abstract interface.

Defines the collaborators replay needs from storage: candidate selection,
revision loading and the correction sink.
"""

import logging
from abc import ABC, abstractmethod
from typing import ContextManager, Iterator, List

from ..core.corrections import MANUAL_FIX_REQUIRED, CorrectionRequest
from ..core.errors import CorrectionCountError, StoreError, UniqueViolationError
from ..core.revision import RevisionTuple
from ..logging_config import get_logger, log_event


class AuditStore(ABC):
    """
    Abstract audit table access.

    All implementations must guarantee:
    - candidates() yields entity ids ascending, forward-only
    - load_revisions() returns fresh tuples in replay order
    - every write happens inside transaction(); savepoint() nests inside it
    """

    @abstractmethod
    def candidates(self) -> Iterator[int]:
        """
        Yield entity ids whose history has more than one row sharing a rev.

        Yields:
            Entity ids in ascending order
        """
        ...

    @abstractmethod
    def load_revisions(self, entity_id: int) -> List[RevisionTuple]:
        """
        Load one entity's audit rows.

        Returns:
            Revisions ordered by rev asc, rev_type desc, order_id asc
        """
        ...

    @abstractmethod
    def transaction(self, dry_run: bool = False) -> ContextManager[None]:
        """
        Run-wide transaction. Commits once on clean exit, rolls back on error.

        Args:
            dry_run: Roll back even on clean exit
        """
        ...

    @abstractmethod
    def savepoint(self) -> ContextManager[None]:
        """Nested scope that undoes only its own writes when it raises."""
        ...

    @abstractmethod
    def update_order(self, correction: CorrectionRequest) -> int:
        """
        Write correction.order to the row it addresses.

        Returns:
            Number of rows updated

        Raises:
            UniqueViolationError: If the write collides with a stored order
            StoreError: If the write fails for any other reason
        """
        ...

    def apply(self, correction: CorrectionRequest) -> int:
        """
        Apply one correction inside its own savepoint.

        A failed write is rolled back alone and logged for manual repair;
        the surrounding transaction and later corrections are unaffected.

        Returns:
            1 when the row was updated, 0 when the write was discarded
        """
        logger = get_logger(__name__, trace_id=correction.entity_id)
        try:
            with self.savepoint():
                count = self.update_order(correction)
                if count != 1:
                    raise CorrectionCountError(count)
        except UniqueViolationError as e:
            log_event(
                logger,
                MANUAL_FIX_REQUIRED,
                f"Unique constraint violation, rolled back {correction.describe()}: {e}",
                logging.WARNING,
            )
            return 0
        except CorrectionCountError as e:
            log_event(
                logger,
                MANUAL_FIX_REQUIRED,
                f"{e}, rolled back {correction.describe()}",
                logging.WARNING,
            )
            return 0
        except StoreError as e:
            log_event(
                logger,
                MANUAL_FIX_REQUIRED,
                f"Can not update order_id, may need manual fix: {correction.describe()}: {e}",
                logging.ERROR,
            )
            return 0
        return count

    def ping(self) -> None:
        """
        Check the store is reachable.

        Implementations may override. Default does nothing.
        """
        return None

    def close(self) -> None:
        """
        Release connections.

        Implementations may override. Default does nothing.
        """
        return None

    def __enter__(self) -> "AuditStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
