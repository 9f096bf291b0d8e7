"""
Assessment persistence on top of a key-value store.

Each framework instance owns a set of keys under a common prefix:

    <prefix>.<stateKey>Assessment         serialized assessment map
    <prefix>.<stateKey>AssessmentMeta     {lastUpdated, userTitle, userRole}
    <prefix>.<stateKey>AssessmentHistory  append-only snapshot list
    <prefix>.lastUpdated                  global {lastUpdated} marker

stateKey is derived from the framework id ("nist-csf-2.0" -> "nistcsf20").
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from csfassess.scoring.models import AssessmentRecord, InvalidAssessmentError
from csfassess.scoring.strategies import ResponseStrategy, RubricStrategy
from csfassess.storage.kv_store import CorruptDataError, KeyValueStore
from csfassess.storage.models import AssessmentMeta, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "csfassess"


def state_key(framework_id: str) -> str:
    """
    Derive the storage key fragment for a framework.

    Non-alphanumeric characters are dropped and the rest lowercased,
    e.g. "nist-csf-2.0" -> "nistcsf20", "iso_27001" -> "iso27001".
    """
    key = re.sub(r"[^0-9a-z]", "", framework_id.lower())
    if not key:
        raise ValueError(f"Invalid framework id: {framework_id!r}")
    return key


class AssessmentStore:
    """
    Reads and writes one framework's assessment state.

    Example:
        store = AssessmentStore(JsonFileKeyValueStore(path), "nist-csf-2.0")
        assessments = store.load_assessments()
        store.save_assessments(assessments, AssessmentMeta(user_role="CISO"))

    Attributes:
        kv: Underlying key-value store.
        framework_id: Framework whose state is stored.
        strategy: Strategy used to (de)serialize records.
        key_prefix: Namespace prefix for all keys.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        framework_id: str,
        strategy: ResponseStrategy | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self.kv = kv
        self.framework_id = framework_id
        self.strategy = strategy or RubricStrategy()
        self.key_prefix = key_prefix

        base = f"{key_prefix}.{state_key(framework_id)}"
        self.assessment_key = f"{base}Assessment"
        self.meta_key = f"{base}AssessmentMeta"
        self.history_key = f"{base}AssessmentHistory"
        self.last_updated_key = f"{key_prefix}.lastUpdated"

    def _load_json(self, key: str) -> Any:
        raw = self.kv.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Stored value for {key} is not valid JSON: {e}") from e

    def load_assessments(self) -> dict[str, AssessmentRecord]:
        """
        Load the stored assessment map.

        Returns:
            Assessment map, empty if nothing is stored.

        Raises:
            CorruptDataError: If the stored map cannot be parsed.
            StorageError: If the store cannot be read.
        """
        data = self._load_json(self.assessment_key)
        if data is None:
            return {}
        try:
            assessments = self.strategy.parse_map(data)
        except InvalidAssessmentError as e:
            raise CorruptDataError(f"Stored assessment is invalid: {e}") from e

        logger.debug(f"Loaded {len(assessments)} assessments for {self.framework_id}")
        return assessments

    def save_assessments(
        self,
        assessments: dict[str, AssessmentRecord],
        meta: AssessmentMeta | None = None,
    ) -> AssessmentMeta:
        """
        Persist the assessment map and its metadata.

        Also refreshes the global lastUpdated marker.

        Args:
            assessments: Assessment map to store.
            meta: Metadata to store. The stored copy has last_updated set
                to now; the argument is left unchanged.

        Returns:
            The stored metadata.

        Raises:
            StorageError: If any value cannot be written.
        """
        now = datetime.now(UTC).isoformat()
        meta = replace(meta or self.get_meta(), last_updated=now)

        payload = json.dumps(self.strategy.serialize_map(assessments))
        self.kv.set(self.assessment_key, payload)
        self.kv.set(self.meta_key, json.dumps(meta.to_dict()))
        self.kv.set(self.last_updated_key, json.dumps({"lastUpdated": now}))

        logger.debug(f"Saved {len(assessments)} assessments for {self.framework_id}")
        return meta

    def get_meta(self) -> AssessmentMeta:
        """
        Stored metadata, or empty metadata if none is stored.

        Raises:
            CorruptDataError: If the stored metadata cannot be parsed.
        """
        data = self._load_json(self.meta_key)
        if data is None:
            return AssessmentMeta()
        if not isinstance(data, dict):
            raise CorruptDataError(f"Stored value for {self.meta_key} is not an object")
        return AssessmentMeta.from_dict(data)

    def reset(self) -> None:
        """
        Remove the stored assessment map and metadata.

        Snapshot history is kept.

        Raises:
            StorageError: If a key cannot be removed.
        """
        self.kv.remove(self.assessment_key)
        self.kv.remove(self.meta_key)
        self.kv.set(
            self.last_updated_key,
            json.dumps({"lastUpdated": datetime.now(UTC).isoformat()}),
        )
        logger.info(f"Reset stored assessment for {self.framework_id}")

    def get_snapshots(self) -> list[Snapshot]:
        """
        Stored snapshot history, oldest first.

        Raises:
            CorruptDataError: If the history cannot be parsed.
        """
        data = self._load_json(self.history_key)
        if data is None:
            return []
        if not isinstance(data, list):
            raise CorruptDataError(f"Stored value for {self.history_key} is not a list")
        try:
            snapshots = [Snapshot.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptDataError(f"Stored snapshot history is invalid: {e}") from e
        return sorted(snapshots, key=lambda s: s.date)

    def append_snapshot(self, snapshot: Snapshot) -> list[Snapshot]:
        """
        Append a snapshot to the history.

        Returns:
            Updated history, oldest first.

        Raises:
            StorageError: If the history cannot be read or written.
        """
        history = self.get_snapshots()
        history.append(snapshot)
        history.sort(key=lambda s: s.date)
        self.kv.set(self.history_key, json.dumps([s.to_dict() for s in history]))
        logger.debug(
            f"Recorded snapshot for {self.framework_id}: "
            f"{snapshot.completion_rate:.1f}% complete"
        )
        return history
