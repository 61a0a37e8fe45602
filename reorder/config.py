"""
Run settings read from the environment.

Connection settings use the standard libpq variables (PGHOST, PGPORT,
PGDATABASE, PGUSER, PGPASSWORD) unless REORDER_DATABASE_URL is set.
"""

import os
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from psycopg.conninfo import make_conninfo

from .core.errors import ConfigError
from .replay.engine import DeletePolicy

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _env_int(key: str, default: int) -> int:
    val = os.getenv(key)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {val!r}")


def parse_delete_policy(value: str) -> DeletePolicy:
    try:
        return DeletePolicy(value.strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in DeletePolicy)
        raise ConfigError(f"Unknown delete policy {value!r} (expected one of: {choices})")


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None
    host: Optional[str] = None
    port: Optional[str] = None
    dbname: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    table: str = "ptgrid.addresslines_aud"
    entity_column: str = "addresslines_id"
    content_column: str = "addresslines"
    fetch_size: int = 50
    delete_policy: DeletePolicy = DeletePolicy.HISTORY
    log_level: str = "INFO"
    log_format: str = "json"

    @staticmethod
    def from_env() -> "Settings":
        settings = Settings(
            database_url=os.getenv("REORDER_DATABASE_URL") or None,
            host=os.getenv("PGHOST") or None,
            port=os.getenv("PGPORT") or None,
            dbname=os.getenv("PGDATABASE") or None,
            user=os.getenv("PGUSER") or None,
            password=os.getenv("PGPASSWORD") or None,
            table=os.getenv("REORDER_TABLE", "ptgrid.addresslines_aud"),
            entity_column=os.getenv("REORDER_ENTITY_COLUMN", "addresslines_id"),
            content_column=os.getenv("REORDER_CONTENT_COLUMN", "addresslines"),
            fetch_size=_env_int("REORDER_FETCH_SIZE", 50),
            delete_policy=parse_delete_policy(os.getenv("REORDER_DELETE_POLICY", "history")),
            log_level=os.getenv("REORDER_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("REORDER_LOG_FORMAT", "json").lower(),
        )
        settings.validate()
        return settings

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with the non-None overrides applied (CLI options)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        settings = replace(self, **changes)
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.fetch_size <= 0:
            raise ConfigError(f"REORDER_FETCH_SIZE must be positive, got {self.fetch_size}")
        parts = self.table.split(".")
        if len(parts) > 2 or not all(_IDENT.match(p) for p in parts):
            raise ConfigError(f"REORDER_TABLE must be 'table' or 'schema.table', got {self.table!r}")
        for name in (self.entity_column, self.content_column):
            if not _IDENT.match(name):
                raise ConfigError(f"Invalid column name {name!r}")
        if self.log_format not in ("json", "text"):
            raise ConfigError(f"REORDER_LOG_FORMAT must be json or text, got {self.log_format!r}")

    def conninfo(self) -> str:
        """
        Connection string for psycopg.

        REORDER_DATABASE_URL wins over the PG* variables. Unset parameters are
        left out so libpq falls back to its own defaults.
        """
        if self.database_url:
            return make_conninfo(self.database_url)
        params: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "dbname": self.dbname,
            "user": self.user,
            "password": self.password,
        }
        return make_conninfo(**{k: v for k, v in params.items() if v is not None})

    def redacted(self) -> Dict[str, Any]:
        """Settings for display, without the password."""
        return {
            "host": self.host or "(libpq default)",
            "port": self.port or "(libpq default)",
            "dbname": self.dbname or "(libpq default)",
            "user": self.user or "(libpq default)",
            "database_url": "set" if self.database_url else "unset",
            "table": self.table,
            "entity_column": self.entity_column,
            "content_column": self.content_column,
            "fetch_size": self.fetch_size,
            "delete_policy": self.delete_policy.value,
        }
