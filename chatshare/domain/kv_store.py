#!/usr/bin/env python3
"""
Read-only access to Cursor's key/value SQLite stores.

Both the per-workspace and the global ``state.vscdb`` are plain tables of
``(key, value)`` rows where the value is a JSON document. ``ItemTable`` is
always present; newer global stores also carry ``cursorDiskKV``.
"""

from __future__ import annotations

import json
import logging
import pathlib
import sqlite3
from typing import Any, Callable, List, Optional, Sequence, Set, Union

from .errors import DatabaseNotFoundError
from .models import StoreRecord

logger = logging.getLogger(__name__)

ITEM_TABLE = "ItemTable"
DISK_KV_TABLE = "cursorDiskKV"

DEFAULT_SCAN_LIMIT = 20


def _decode(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _check_table_name(table: str) -> str:
    if not table.isidentifier():
        raise ValueError(f"Invalid table name: {table!r}")
    return table


class KeyValueStore:
    """A read-only handle on one ``state.vscdb`` file.

    Use as a context manager so the connection is closed on every path::

        with KeyValueStore(path) as store:
            record = store.get("ItemTable", "composer.composerData")
    """

    def __init__(self, db_path: Union[str, pathlib.Path]):
        self.db_path = pathlib.Path(db_path)
        self._con: Optional[sqlite3.Connection] = None

    def open(self) -> "KeyValueStore":
        """Open the database read-only.

        Raises:
            DatabaseNotFoundError: If the file does not exist.
            sqlite3.Error: If SQLite cannot open it.
        """
        if not self.db_path.is_file():
            raise DatabaseNotFoundError(self.db_path)
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        logger.debug(f"Opening database: {self.db_path}")
        self._con = sqlite3.connect(uri, uri=True)
        try:
            self._con.execute("PRAGMA cache_size = 10000")
            self._con.execute("PRAGMA temp_store = MEMORY")
        except sqlite3.Error as e:
            logger.debug(f"Could not tune {self.db_path}: {e}")
        return self

    def close(self) -> None:
        """Close the connection; failures are logged, never raised."""
        if self._con is None:
            return
        try:
            self._con.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to close database {self.db_path}: {e}")
        finally:
            self._con = None

    def __enter__(self) -> "KeyValueStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._con is not None

    def _cursor(self) -> sqlite3.Cursor:
        if self._con is None:
            raise sqlite3.ProgrammingError(f"Database {self.db_path} is not open")
        return self._con.cursor()

    def table_names(self) -> Set[str]:
        cur = self._cursor()
        cur.execute("SELECT name FROM sqlite_master WHERE type='table'")
        return {row[0] for row in cur.fetchall()}

    def has_table(self, table: str) -> bool:
        cur = self._cursor()
        cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
        return cur.fetchone() is not None

    def get(self, table: str, key: str) -> Optional[StoreRecord]:
        """Exact lookup; returns None for a missing key or an empty value."""
        cur = self._cursor()
        cur.execute(f"SELECT value FROM {_check_table_name(table)} WHERE key=?", (key,))
        row = cur.fetchone()
        if row is None:
            return None
        value = _decode(row[0])
        if not value:
            return None
        return StoreRecord(key, value)

    def scan(self, table: str, terms: Sequence[str], limit: int = DEFAULT_SCAN_LIMIT) -> List[StoreRecord]:
        """Return up to ``limit`` records whose key contains any of ``terms``."""
        if not terms:
            return []
        where = " OR ".join("key LIKE ?" for _ in terms)
        params = [f"%{term}%" for term in terms] + [limit]
        cur = self._cursor()
        cur.execute(f"SELECT key, value FROM {_check_table_name(table)} WHERE {where} LIMIT ?", params)
        records = []
        for key, value in cur.fetchall():
            decoded = _decode(value)
            if decoded:
                records.append(StoreRecord(str(key), decoded))
        return records


class KeyValueProbe:
    """Look a record up by a list of known keys, then by key pattern.

    Exact hits are returned as they are. Pattern matches are only accepted
    when their decoded value passes ``recognizer``; values that are not valid
    JSON are skipped.
    """

    def __init__(self,
                 keys: Sequence[str],
                 scan_terms: Sequence[str],
                 recognizer: Callable[[Any], bool],
                 limit: int = DEFAULT_SCAN_LIMIT):
        self.keys = tuple(keys)
        self.scan_terms = tuple(scan_terms)
        self.recognizer = recognizer
        self.limit = limit

    def lookup(self, store: KeyValueStore, table: str) -> Optional[StoreRecord]:
        for key in self.keys:
            logger.debug(f"Querying {table} key: {key}")
            record = store.get(table, key)
            if record is not None:
                logger.info(f"Found data under {table} key {key}")
                return record
        return None

    def scan(self, store: KeyValueStore, table: str) -> Optional[StoreRecord]:
        candidates = store.scan(table, self.scan_terms, self.limit)
        logger.info(f"Pattern scan of {table} returned {len(candidates)} candidate keys")
        for record in candidates:
            try:
                data = record.parse()
            except (json.JSONDecodeError, ValueError):
                logger.debug(f"Skipping {record.key}: value is not JSON")
                continue
            if self.recognizer(data):
                logger.info(f"Found recognizable data under {table} key {record.key}")
                return record
        return None

    def probe(self, store: KeyValueStore, table: str) -> Optional[StoreRecord]:
        """Exact keys first, then the pattern scan."""
        record = self.lookup(store, table)
        if record is not None:
            return record
        logger.info(f"No known key matched in {table}, falling back to pattern scan")
        return self.scan(store, table)
