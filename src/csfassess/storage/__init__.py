"""
Persistence for assessment state.

The AssessmentStore reads and writes one framework's assessment map,
metadata, and snapshot history through a KeyValueStore backend.

Backends:
    - file: single JSON document (default)
    - sqlite: SQLite "kv" table
    - memory: in-process dictionary
"""

from csfassess.storage.assessment_store import (
    DEFAULT_KEY_PREFIX,
    AssessmentStore,
    state_key,
)
from csfassess.storage.kv_store import (
    STORAGE_BACKENDS,
    CorruptDataError,
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    SqliteKeyValueStore,
    StorageError,
    create_store,
)
from csfassess.storage.models import AssessmentMeta, Snapshot, parse_timestamp

__all__ = [
    # Store
    "AssessmentStore",
    "DEFAULT_KEY_PREFIX",
    "state_key",
    # Backends
    "KeyValueStore",
    "MemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "SqliteKeyValueStore",
    "STORAGE_BACKENDS",
    "create_store",
    # Models
    "AssessmentMeta",
    "Snapshot",
    "parse_timestamp",
    # Errors
    "StorageError",
    "CorruptDataError",
]
