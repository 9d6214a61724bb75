"""SQLite storage of saved ship placements."""

from __future__ import annotations

import logging
import random
import sqlite3
from typing import Any

log = logging.getLogger(__name__)

_PLACEMENTS_TABLE = "Fields"


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class PlacementDatabase:
    """A connection to an SQLite file holding ship placements in a Fields table."""

    def __init__(self):
        self._conn: sqlite3.Connection | None = None
        self._rng = random.Random()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("database is not connected")
        return self._conn

    def connect(self, path: str) -> None:
        """Open (creating if needed) the database at path."""
        self._conn = sqlite3.connect(path)

    def disconnect(self) -> None:
        if self._conn is None:
            log.debug("Database was not opened")
            return
        self._conn.close()
        self._conn = None

    def run_query(self, query: str) -> list[tuple]:
        """Execute one statement, commit, and return any rows it produced."""
        conn = self._connection()
        rows = conn.execute(query).fetchall()
        conn.commit()
        return rows

    def create_table(self, name: str, table_format: str) -> None:
        """Create the table with the given column definitions unless it exists."""
        conn = self._connection()
        try:
            conn.execute(f"SELECT * FROM {_quote(name)}")
        except sqlite3.Error:
            conn.execute(f"CREATE TABLE {_quote(name)}({table_format})")
            conn.commit()
        log.debug("Table %s created or already exists", name)

    def table_rows(self, name: str) -> list[dict[str, Any]]:
        """All rows of a table as column-name mappings."""
        cursor = self._connection().execute(f"SELECT * FROM {_quote(name)}")
        columns = [d[0] for d in cursor.description]
        return [dict(zip(columns, row)) for row in cursor]

    def table_len(self, name: str) -> int:
        """Number of rows in a table; 0 if it cannot be read."""
        try:
            cursor = self._connection().execute(
                f"SELECT COUNT(*) FROM {_quote(name)}"
            )
        except sqlite3.Error as exc:
            log.debug("Cannot read table %s: %s", name, exc)
            return 0
        return cursor.fetchone()[0]

    def clear(self) -> None:
        """Delete every row of every table, keeping the tables."""
        conn = self._connection()
        tables = [
            row[0]
            for row in conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
            )
        ]
        for table in tables:
            try:
                conn.execute(f"DELETE FROM {_quote(table)}")
            except sqlite3.Error as exc:
                log.debug("Cannot clear table %s: %s", table, exc)
        conn.commit()

    def random_field(self) -> str:
        """A randomly chosen stored placement, or an empty string if there are none."""
        count = self.table_len(_PLACEMENTS_TABLE)
        if count <= 0:
            log.debug("No placements stored")
            return ""
        offset = self._rng.randrange(count)
        row = self._connection().execute(
            f"SELECT field_text FROM {_quote(_PLACEMENTS_TABLE)} LIMIT 1 OFFSET ?",
            (offset,),
        ).fetchone()
        if row is None:
            return ""
        return str(row[0])

    def add_placement(self, field: str) -> None:
        conn = self._connection()
        conn.execute(
            f"INSERT INTO {_quote(_PLACEMENTS_TABLE)} (field_text) VALUES (?)",
            (field,),
        )
        conn.commit()

    def __enter__(self) -> "PlacementDatabase":
        return self

    def __exit__(self, *args) -> None:
        self.disconnect()