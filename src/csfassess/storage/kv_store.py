"""
Key-value persistence backends.

Assessment state is persisted through a narrow string key-value port so
the engine never depends on a particular storage mechanism:

    get(key) -> str | None
    set(key, value)          may raise StorageError
    remove(key)

Backends:
    - MemoryKeyValueStore: process-local dictionary, used in tests
    - JsonFileKeyValueStore: one JSON document on disk, rewritten
      atomically (temp file + rename) on every change
    - SqliteKeyValueStore: single "kv" table, connection-per-operation

Writes are last-write-wins. Multiple writers to the same backing file
must be serialized by the caller.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".csfassess" / "data"

STORAGE_BACKENDS = ("file", "sqlite", "memory")


class StorageError(Exception):
    """Base exception for storage errors."""

    pass


class CorruptDataError(StorageError):
    """Raised when persisted data cannot be read or parsed."""

    pass


class KeyValueStore(ABC):
    """
    Abstract string key-value store.

    Subclasses implement get, set, and remove. Values are opaque strings;
    serialization is the caller's concern.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """
        Read a value.

        Returns:
            Stored string, or None if the key is absent.

        Raises:
            StorageError: If the backend cannot be read.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            StorageError: If the value cannot be persisted.
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Delete a key. Removing an absent key is not an error.

        Raises:
            StorageError: If the backend cannot be written.
        """
        pass

    def keys(self) -> list[str]:
        """All stored keys, sorted."""
        return []


class MemoryKeyValueStore(KeyValueStore):
    """In-memory store. Contents are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for {key} must be a string")
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Store backed by a single JSON object file.

    The whole document is re-read on every get so changes made by another
    process are visible, and rewritten atomically on every set/remove.

    Attributes:
        path: Path of the JSON document.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Store file {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read store file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise CorruptDataError(f"Store file {self.path} does not contain an object")
        return data

    def _write(self, data: dict[str, str]) -> None:
        try:
            temp_fd, temp_path = tempfile.mkstemp(
                suffix=".json",
                dir=str(self.path.parent),
            )
        except OSError as e:
            raise StorageError(f"Cannot write store file {self.path}: {e}") from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise StorageError(f"Cannot write store file {self.path}: {e}") from e

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for {key} must be a string")
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> list[str]:
        return sorted(self._read())


CREATE_KV_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SqliteKeyValueStore(KeyValueStore):
    """
    Store backed by a SQLite table.

    Uses a new connection for every operation, so one instance may be
    shared between threads.

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self) -> None:
        """Create the kv table if needed."""
        try:
            with self._get_connection() as conn:
                conn.executescript(CREATE_KV_TABLE_SQL)
        except sqlite3.DatabaseError as e:
            raise CorruptDataError(f"Cannot open database {self.db_path}: {e}") from e

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get a database connection with proper settings.

        Yields:
            SQLite connection with row factory set.
        """
        conn = sqlite3.connect(
            str(self.db_path),
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def get(self, key: str) -> str | None:
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read {key}: {e}") from e
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for {key} must be a string")
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, datetime.now(UTC).isoformat()),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Cannot write {key}: {e}") from e

    def remove(self, key: str) -> None:
        try:
            with self._get_connection() as conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageError(f"Cannot remove {key}: {e}") from e

    def keys(self) -> list[str]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot list keys: {e}") from e
        return [row["key"] for row in rows]


def create_store(backend: str, data_dir: Path | str | None = None) -> KeyValueStore:
    """
    Create a key-value store for a configured backend.

    Args:
        backend: "file", "sqlite", or "memory".
        data_dir: Directory for file-based backends. Defaults to
            ~/.csfassess/data.

    Returns:
        KeyValueStore instance.

    Raises:
        ValueError: If the backend name is unknown.
    """
    directory = Path(data_dir) if data_dir is not None else DEFAULT_DATA_DIR

    if backend == "file":
        store: KeyValueStore = JsonFileKeyValueStore(directory / "assessments.json")
    elif backend == "sqlite":
        store = SqliteKeyValueStore(directory / "csfassess.db")
    elif backend == "memory":
        store = MemoryKeyValueStore()
    else:
        raise ValueError(
            f"Unknown storage backend: {backend}. "
            f"Expected one of: {', '.join(STORAGE_BACKENDS)}"
        )

    logger.debug(f"Using {backend} storage backend in {directory}")
    return store
