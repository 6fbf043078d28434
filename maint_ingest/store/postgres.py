from __future__ import annotations

import os
import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..config.loader import DatabaseConfig
from .blob_store import StoreError

"""PostgreSQL-backed blob store (psycopg2).

Each blob is one row of a two-column key/value table; ``put`` is an upsert
committed on its own, so a collection is always replaced as a whole.

Connection parameters resolve in this order:
    1. ``DATABASE_URL`` / ``PGDSN`` (full DSN)
    2. ``PGHOST`` / ``PGPORT`` / ``PGUSER`` / ``PGPASSWORD`` / ``PGDATABASE``
    3. the ``database`` section of the config file
"""

__all__ = [
    "PostgresBlobStore",
    "resolve_dsn",
]

_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


class PostgresBlobStore:
    """Blob store on table ``(name text primary key, payload text, updated_at timestamptz)``."""

    def __init__(self, dsn: str, table: str = "maint_blobs", *, connect: Any = None) -> None:
        if not _TABLE_RE.match(table):
            raise StoreError(f"invalid table name: {table!r}")
        self.dsn = dsn
        self.table = table
        self._connect = connect or psycopg2.connect
        self._table_ready = False

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        try:
            conn = self._connect(self.dsn)
        except Exception as e:
            raise StoreError(f"cannot connect to database: {e}") from e
        try:
            cur = conn.cursor()
            try:
                yield cur
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cur.close()
        finally:
            conn.close()

    def _ensure_table(self, cur: Any) -> None:
        if self._table_ready:
            return
        cur.execute(
            f"CREATE TABLE IF NOT EXISTS {self.table} ("
            "name text PRIMARY KEY, payload text NOT NULL, "
            "updated_at timestamptz NOT NULL DEFAULT now())"
        )
        self._table_ready = True

    def get(self, name: str) -> str | None:
        try:
            with self._cursor() as cur:
                self._ensure_table(cur)
                cur.execute(f"SELECT payload FROM {self.table} WHERE name = %s", (name,))
                row = cur.fetchone()
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"failed reading blob '{name}': {e}") from e
        return None if row is None else row[0]

    def put(self, name: str, payload: str) -> None:
        try:
            with self._cursor() as cur:
                self._ensure_table(cur)
                cur.execute(
                    f"INSERT INTO {self.table} (name, payload, updated_at) VALUES (%s, %s, now()) "
                    "ON CONFLICT (name) DO UPDATE SET payload = EXCLUDED.payload, updated_at = now()",
                    (name, payload),
                )
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"failed writing blob '{name}': {e}") from e
