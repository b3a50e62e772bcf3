"""
One-time upgrades from the legacy single-blob formats to per-setup keys.

Stages are gated by presence-only markers. A marker is set only after the
migrated setups have been written, and never cleared, so an interrupted
migration simply runs again on the next load. Rewriting the same setups
produces the same keys, so a repeat is harmless.

    V1 ``setups``   --(present, no migratedV2)-->          V3, sets migratedV2 + migratedV3
    V2 ``setupsV2`` --(present, migratedV2, no migratedV3)-->  V3, sets migratedV3

The V1 key is removed whenever it is still present. The V2 key is kept as
a fallback unless the store config opts into removing it.
"""

import logging
from dataclasses import dataclass, field

from .codec import decode_setup_list
from .config import StorageKeys
from .errors import MalformedDataError
from .protocol import KeyValueStoreProtocol
from .record_store import RecordStore

logger = logging.getLogger(__name__)

MARKER_VALUE = "True"


@dataclass
class MigrationResult:
    """What a migration pass did. Empty when the store was already current."""
    migrated: list[str] = field(default_factory=list)  # e.g. ["v1->v3"]
    removed_keys: list[str] = field(default_factory=list)
    setup_count: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.migrated or self.removed_keys)


class MigrationController:
    """Runs pending migration stages against one config group."""

    def __init__(
        self,
        store: KeyValueStoreProtocol,
        group: str,
        keys: StorageKeys,
        records: RecordStore,
        *,
        remove_legacy_v2: bool = False,
    ):
        self._store = store
        self._group = group
        self._keys = keys
        self._records = records
        self._remove_legacy_v2 = remove_legacy_v2

    def _has_marker(self, key: str) -> bool:
        return bool(self._store.get(self._group, key))

    def _set_marker(self, key: str) -> None:
        self._store.set(self._group, key, MARKER_VALUE)

    def _migrate_blob(self, key: str, *, legacy: bool) -> int:
        """Rewrite a single-blob setup array as per-setup keys."""
        text = self._store.get(self._group, key)
        try:
            setups = decode_setup_list(text, legacy=legacy)
        except MalformedDataError as e:
            # Markers stay unset and the blob is left in place for a retry
            logger.error("Exception occurred while loading %s: %s", key, e)
            raise
        self._records.save(setups)
        return len(setups)

    def _has_blob(self, key: str) -> bool:
        return self._store.get(self._group, key) is not None

    def run(self) -> MigrationResult:
        """
        Apply every stage whose marker is absent and whose legacy blob exists.

        A stage never runs without its blob: saving an empty list would
        remove any setups already stored under the current keys. Idempotent.
        """
        result = MigrationResult()
        keys = self._keys

        if not self._has_marker(keys.migrated_v2) and self._has_blob(keys.setups_v1):
            logger.info("Migrating data from V1 to V3")
            result.setup_count += self._migrate_blob(keys.setups_v1, legacy=True)
            self._set_marker(keys.migrated_v2)
            self._set_marker(keys.migrated_v3)
            result.migrated.append("v1->v3")

        if self._has_blob(keys.setups_v1):
            logger.info("Removing old v1 data key")
            self._store.unset(self._group, keys.setups_v1)
            result.removed_keys.append(keys.setups_v1)

        if (
            not self._has_marker(keys.migrated_v3)
            and self._has_marker(keys.migrated_v2)
            and self._has_blob(keys.setups_v2)
        ):
            logger.info("Migrating data from V2 to V3")
            result.setup_count += self._migrate_blob(keys.setups_v2, legacy=False)
            self._set_marker(keys.migrated_v3)
            result.migrated.append("v2->v3")

        if (
            self._remove_legacy_v2
            and self._has_marker(keys.migrated_v3)
            and self._has_blob(keys.setups_v2)
        ):
            logger.info("Removing old v2 data key")
            self._store.unset(self._group, keys.setups_v2)
            result.removed_keys.append(keys.setups_v2)

        return result
