"""Single-document persistence.

The whole application state (users, ships, components, jobs, notifications)
lives in one JSON value under one storage key. Every mutation reads the full
document, changes it in memory and writes the full document back inside
``transaction()``, which holds the store's lock from load through save.
The lock covers the threads of one process; separate processes sharing a
database file are not coordinated.
"""

import json
import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Any, Optional, Union

from .db import connect, DB_PATH
from .logger import get_logger
from .schema_sql import SCHEMA_SQL
from .seed import initial_data

STORAGE_KEY = os.getenv("STORAGE_KEY", "entnt_shipMaintenance")

COLLECTIONS = ("users", "ships", "components", "jobs", "notifications")

logger = get_logger()


class StorageError(Exception):
    """Reading or writing the underlying key-value store failed."""


class DocumentStore:
    def __init__(self, db_path: Optional[Union[str, Path]] = None, key: str = STORAGE_KEY):
        self.db_path = Path(db_path or DB_PATH)
        self.key = key
        self._lock = threading.RLock()
        self._schema_ready = False

    @contextmanager
    def connect(self):
        try:
            with connect(self.db_path) as con:
                yield con
        except sqlite3.Error as e:
            logger.error("Storage failure on %s: %s", self.db_path, e)
            raise StorageError(str(e)) from e

    def ensure_schema(self) -> None:
        # DDL runs once per store instance
        if self._schema_ready:
            return
        with self._lock:
            if self._schema_ready:
                return
            with self.connect() as con:
                con.executescript(SCHEMA_SQL)
                con.commit()
            self._schema_ready = True

    def initialize(self) -> bool:
        """Create the schema and write the seed document if none exists.

        Returns True when the seed was written, False when a document was
        already present (calling this repeatedly is a no-op).
        """
        self.ensure_schema()
        with self._lock, self.connect() as con:
            row = con.execute("SELECT 1 FROM kv_store WHERE key=?", (self.key,)).fetchone()
            if row:
                return False
            con.execute(
                "INSERT INTO kv_store(key, value, updated_at) VALUES (?,?, datetime('now'))",
                (self.key, json.dumps(initial_data(), ensure_ascii=False)),
            )
            con.commit()
        logger.info("Seeded document under key %s", self.key)
        return True

    def exists(self) -> bool:
        self.ensure_schema()
        with self.connect() as con:
            row = con.execute("SELECT 1 FROM kv_store WHERE key=?", (self.key,)).fetchone()
            return row is not None

    def load(self) -> Dict[str, Any]:
        """Return the stored document, or a fresh seed copy if nothing is stored."""
        self.ensure_schema()
        with self.connect() as con:
            row = con.execute("SELECT value FROM kv_store WHERE key=?", (self.key,)).fetchone()
        if not row:
            return initial_data()
        try:
            data = json.loads(row["value"])
        except ValueError as e:
            logger.error("Stored document under %s is not valid JSON", self.key)
            raise StorageError(f"corrupt document: {e}") from e
        if not isinstance(data, dict):
            logger.error("Stored document under %s is a %s, not an object", self.key, type(data).__name__)
            raise StorageError(f"corrupt document: expected an object, got {type(data).__name__}")
        for name in COLLECTIONS:
            if data.get(name) is None:
                data[name] = []
            elif not isinstance(data[name], list):
                logger.error("Collection %s under %s is not a list", name, self.key)
                raise StorageError(f"corrupt document: {name} is not a list")
        return data

    def save(self, data: Dict[str, Any]) -> None:
        self.ensure_schema()
        payload = json.dumps(data, ensure_ascii=False)
        with self._lock, self.connect() as con:
            con.execute(
                """
                INSERT INTO kv_store(key, value, updated_at) VALUES (?,?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """,
                (self.key, payload),
            )
            con.commit()

    @contextmanager
    def transaction(self):
        """Load the document, yield it for mutation, then save it.

        Other transactions on this store wait until the save finishes. If
        the block raises, nothing is written.
        """
        with self._lock:
            data = self.load()
            yield data
            self.save(data)

    def clear(self) -> None:
        """Drop the stored document; the next initialize() reseeds."""
        self.ensure_schema()
        with self._lock, self.connect() as con:
            con.execute("DELETE FROM kv_store WHERE key=?", (self.key,))
            con.commit()
        logger.info("Cleared document under key %s", self.key)
