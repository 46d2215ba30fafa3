"""SQL storage adapter for table definitions.

Supports two backends:
- PostgreSQL (production, database_url starting with ``postgres``)
- SQLite (local development, default)

Uses raw SQL via psycopg2 (Postgres) or sqlite3 (SQLite). No ORM.

Thread-safety: Postgres uses a ThreadedConnectionPool. SQLite uses
per-call connections with check_same_thread=False.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from gridweaver.errors import DefinitionNotFound

from .adapters import merge_partial, new_definition_id

logger = logging.getLogger(__name__)

# SQLite default path
SQLITE_PATH = Path(__file__).parent / "gridweaver.db"


def _json_dumps(data: Any) -> str:
    """Serialize a document for storage."""
    return json.dumps(data, ensure_ascii=False)


def _json_loads(text: Any) -> Any:
    """Deserialize a stored document."""
    if isinstance(text, dict):
        return text  # Already parsed (Postgres JSONB)
    return json.loads(text)


class SqlStorageAdapter:
    """Stores definitions in a ``table_definitions`` table."""

    def __init__(self, database_url: str = "", sqlite_path: Optional[Path] = None):
        self.database_url = database_url
        if sqlite_path is None and database_url.startswith("sqlite:///"):
            sqlite_path = Path(database_url[len("sqlite:///"):])
        self.sqlite_path = Path(sqlite_path) if sqlite_path else SQLITE_PATH
        self._pg_pool = None
        self._initialized = False

    def _is_postgres(self) -> bool:
        return self.database_url.startswith("postgres")

    def _get_pg_pool(self):
        """Get or create the Postgres connection pool (lazy)."""
        if self._pg_pool is None:
            import psycopg2.pool

            self._pg_pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=5,
                dsn=self.database_url,
            )
            logger.info("PostgreSQL connection pool initialized (1-5 connections)")
        return self._pg_pool

    @contextmanager
    def get_connection(self):
        """Get a database connection (Postgres or SQLite)."""
        if self._is_postgres():
            pool = self._get_pg_pool()
            conn = pool.getconn()
            try:
                yield conn
            finally:
                pool.putconn(conn)
        else:
            conn = sqlite3.connect(str(self.sqlite_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            try:
                yield conn
            finally:
                conn.close()

    def execute(self, sql: str, params: tuple = (), fetch: str = "none") -> Any:
        """Execute a SQL statement.

        Args:
            sql: SQL statement with %s placeholders
            params: Parameters tuple
            fetch: "none", "one", "all"

        Returns:
            None for "none", dict for "one", list[dict] for "all"
        """
        adapted_sql = sql if self._is_postgres() else sql.replace("%s", "?")

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(adapted_sql, params)

            if fetch == "one":
                row = cursor.fetchone()
                if row is None:
                    return None
                if self._is_postgres():
                    columns = [desc[0] for desc in cursor.description]
                    return dict(zip(columns, row))
                return dict(row)
            if fetch == "all":
                rows = cursor.fetchall()
                if self._is_postgres():
                    columns = [desc[0] for desc in cursor.description]
                    return [dict(zip(columns, row)) for row in rows]
                return [dict(row) for row in rows]

            conn.commit()
            return cursor.rowcount

    def init_db(self) -> None:
        """Create the table if it doesn't exist."""
        if self._initialized:
            return

        document_type = "JSONB" if self._is_postgres() else "TEXT"
        self.execute(
            f"""CREATE TABLE IF NOT EXISTS table_definitions (
                id VARCHAR(64) PRIMARY KEY,
                document {document_type} NOT NULL,
                created_at VARCHAR(40) NOT NULL,
                updated_at VARCHAR(40) NOT NULL
            )"""
        )
        self._initialized = True
        backend = "PostgreSQL" if self._is_postgres() else f"SQLite ({self.sqlite_path})"
        logger.info(f"Table definition database initialized: {backend}")

    def create(self, document: dict[str, Any]) -> str:
        self.init_db()
        definition_id = new_definition_id()
        now = datetime.now(timezone.utc).isoformat()
        self.execute(
            "INSERT INTO table_definitions (id, document, created_at, updated_at) "
            "VALUES (%s, %s, %s, %s)",
            (definition_id, _json_dumps(document), now, now),
        )
        logger.info(f"Saved table definition: {definition_id}")
        return definition_id

    def read(self, definition_id: str) -> Optional[dict[str, Any]]:
        self.init_db()
        row = self.execute(
            "SELECT document FROM table_definitions WHERE id = %s",
            (definition_id,),
            fetch="one",
        )
        if row is None:
            return None
        return _json_loads(row["document"])

    def update(self, definition_id: str, partial: dict[str, Any]) -> None:
        current = self.read(definition_id)
        if current is None:
            raise DefinitionNotFound(definition_id)

        now = datetime.now(timezone.utc).isoformat()
        self.execute(
            "UPDATE table_definitions SET document = %s, updated_at = %s WHERE id = %s",
            (_json_dumps(merge_partial(current, partial)), now, definition_id),
        )
        logger.info(f"Updated table definition: {definition_id}")

    def delete(self, definition_id: str) -> None:
        self.init_db()
        deleted = self.execute(
            "DELETE FROM table_definitions WHERE id = %s",
            (definition_id,),
        )
        if not deleted:
            raise DefinitionNotFound(definition_id)
        logger.info(f"Deleted table definition: {definition_id}")

    def list_ids(self) -> list[str]:
        self.init_db()
        rows = self.execute(
            "SELECT id FROM table_definitions ORDER BY created_at, id",
            fetch="all",
        )
        return [row["id"] for row in rows]
