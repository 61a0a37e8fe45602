"""
PostgreSQL audit store (psycopg 3).

Two connections:
- read: read-only, streams candidate ids through a server-side cursor
- write: loads revisions and applies corrections inside one transaction

Both run in autocommit mode so transaction() blocks are explicit: the outer
block is the run transaction, nested blocks become savepoints.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional

import psycopg
from psycopg import errors, sql

from ..config import Settings
from ..core.corrections import CorrectionRequest
from ..core.errors import StoreError, UniqueViolationError
from ..core.revision import RevisionTuple
from ..logging_config import get_logger
from .store import AuditStore

logger = get_logger(__name__)

CANDIDATES_SQL = (
    "SELECT DISTINCT {entity} FROM {table} "
    "GROUP BY {entity}, rev HAVING count(rev) > 1 ORDER BY {entity}"
)

REVISIONS_SQL = (
    "SELECT rev, {content}, revtype, order_id, "
    "row_number() OVER (ORDER BY rev, revtype DESC, order_id) "
    "FROM {table} WHERE {entity} = %s "
    "ORDER BY rev, revtype DESC, order_id"
)

UPDATE_ORDER_SQL = (
    "UPDATE {table} SET order_id = %s "
    "WHERE rev = %s AND {entity} = %s AND {content} = %s AND revtype = %s"
)


class PostgresAuditStore(AuditStore):
    """
    Audit store over a PostgreSQL audit table.

    Usage:
        with PostgresAuditStore.connect(Settings.from_env()) as store:
            store.ping()
            with store.transaction():
                ...
    """

    def __init__(
        self,
        conn: psycopg.Connection,
        read_conn: Optional[psycopg.Connection] = None,
        table: str = "ptgrid.addresslines_aud",
        entity_column: str = "addresslines_id",
        content_column: str = "addresslines",
        fetch_size: int = 50,
    ) -> None:
        """
        Initialize store over open connections.

        Args:
            conn: Write connection (autocommit)
            read_conn: Read-only connection for the candidate stream (defaults to conn)
            table: Audit table, 'table' or 'schema.table'
            entity_column: Owning entity column
            content_column: Line content column
            fetch_size: Rows prefetched per round trip by the candidate cursor
        """
        self._conn = conn
        self._read = read_conn if read_conn is not None else conn
        self.fetch_size = fetch_size

        names = {
            "table": sql.Identifier(*table.split(".")),
            "entity": sql.Identifier(entity_column),
            "content": sql.Identifier(content_column),
        }
        self._candidates_sql = sql.SQL(CANDIDATES_SQL).format(**names)
        self._revisions_sql = sql.SQL(REVISIONS_SQL).format(**names)
        self._update_sql = sql.SQL(UPDATE_ORDER_SQL).format(**names)

    @classmethod
    def connect(cls, settings: Settings) -> "PostgresAuditStore":
        """
        Open read and write connections from settings.

        Raises:
            StoreError: If a connection cannot be opened
        """
        conninfo = settings.conninfo()
        try:
            conn = psycopg.connect(conninfo, autocommit=True)
        except psycopg.Error as e:
            raise StoreError(f"Can not connect: {e}") from e
        try:
            read_conn = psycopg.connect(conninfo, autocommit=True)
            read_conn.read_only = True
        except psycopg.Error as e:
            conn.close()
            raise StoreError(f"Can not connect: {e}") from e

        return cls(
            conn,
            read_conn=read_conn,
            table=settings.table,
            entity_column=settings.entity_column,
            content_column=settings.content_column,
            fetch_size=settings.fetch_size,
        )

    def close(self) -> None:
        if self._read is not self._conn:
            self._read.close()
        self._conn.close()

    def ping(self) -> None:
        """
        Check connectivity with SELECT 1.

        Raises:
            StoreError: If the server is unreachable
        """
        try:
            with self._conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
        except psycopg.Error as e:
            raise StoreError(f"Database check failed: {e}") from e

    def candidates(self) -> Iterator[int]:
        try:
            with self._read.transaction():
                with self._read.cursor(name="reorder_candidates") as cur:
                    cur.itersize = self.fetch_size
                    cur.execute(self._candidates_sql)
                    for (entity_id,) in cur:
                        yield int(entity_id)
        except psycopg.Error as e:
            raise StoreError(f"Candidate query failed: {e}") from e

    def load_revisions(self, entity_id: int) -> List[RevisionTuple]:
        try:
            with self._conn.cursor() as cur:
                cur.execute(self._revisions_sql, (entity_id,))
                rows = cur.fetchall()
        except psycopg.Error as e:
            raise StoreError(f"Can not load revisions of entity {entity_id}: {e}") from e
        return [RevisionTuple.from_row(entity_id, row) for row in rows]

    @contextmanager
    def transaction(self, dry_run: bool = False) -> Iterator[None]:
        try:
            with self._conn.transaction(force_rollback=dry_run):
                yield
        except psycopg.Error as e:
            raise StoreError(f"Transaction failed, nothing committed: {e}") from e
        logger.debug("Transaction %s", "rolled back (dry run)" if dry_run else "committed")

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        with self._conn.transaction():
            yield

    def update_order(self, correction: CorrectionRequest) -> int:
        params = (
            correction.order,
            correction.rev,
            correction.entity_id,
            correction.content,
            correction.rev_type,
        )
        try:
            with self._conn.cursor() as cur:
                cur.execute(self._update_sql, params)
                return cur.rowcount
        except errors.UniqueViolation as e:
            raise UniqueViolationError(str(e)) from e
        except psycopg.Error as e:
            raise StoreError(str(e)) from e
