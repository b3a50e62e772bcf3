"""
Load/save orchestration for setups and sections.

load():
    1. run pending migrations
    2. load setups in stored order (repairing order drift)
    3. enrich each setup and index it by name
    4. load sections, dropping duplicate and dangling setup references

save():
    writes setups (per-key + order list) and/or sections (one blob)
"""

import logging
from typing import Optional

from .cache import SetupsCache
from .codec import decode_sections, encode_sections
from .config import StorageKeys, StoreConfig
from .enrichment import NullEnricher, enrich_setup
from .errors import MalformedDataError
from .migration import MigrationController, MigrationResult
from .protocol import EnricherProtocol, KeyValueStoreProtocol
from .record_store import RecordStore
from .types import InventorySetup, LoadedData, Section

logger = logging.getLogger(__name__)


def reconcile_section(section: Section, setup_names) -> Section:
    """Dedupe a section's references (first occurrence wins) and drop unknown names."""
    section.setups = [
        name for name in dict.fromkeys(section.setups)
        if name in setup_names
    ]
    return section


class PersistentDataManager:
    """
    Owns persistence of one group's setups and sections.

    Single writer: callers must not share a store between managers.
    """

    def __init__(
        self,
        store: KeyValueStoreProtocol,
        enricher: Optional[EnricherProtocol] = None,
        *,
        group: str = "inventorysetups",
        keys: Optional[StorageKeys] = None,
        remove_legacy_v2: bool = False,
    ):
        self._store = store
        self._enricher = enricher or NullEnricher()
        self._group = group
        self._keys = keys or StorageKeys()
        self.records = RecordStore(
            store, group, self._keys.setups_v3_prefix, self._keys.setups_order_v3,
        )
        self.migrations = MigrationController(
            store, group, self._keys, self.records,
            remove_legacy_v2=remove_legacy_v2,
        )
        self.cache = SetupsCache()
        self.last_migration: Optional[MigrationResult] = None

    @classmethod
    def from_config(
        cls,
        store: KeyValueStoreProtocol,
        config: StoreConfig,
        enricher: Optional[EnricherProtocol] = None,
    ) -> "PersistentDataManager":
        return cls(
            store,
            enricher,
            group=config.group,
            keys=config.keys,
            remove_legacy_v2=config.remove_legacy_v2,
        )

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    def load(self) -> LoadedData:
        """
        Run migrations and reconstruct setups and sections from the store.

        Returns new lists on every call; nothing from a previous load is reused.

        Raises:
            SetupLoadError: If a stored setup is corrupt
        """
        self.cache.clear_all()
        self.last_migration = self.migrations.run()

        setups = self.records.load()
        for setup in setups:
            enrich_setup(setup, self._enricher)
            self.cache.add_setup(setup)

        sections = self.load_sections()
        for section in sections:
            reconcile_section(section, self.cache.setup_names)
            self.cache.add_section(section)

        return LoadedData(setups=setups, sections=sections)

    def load_sections(self) -> list[Section]:
        """Decode stored sections as-is; unreadable data reads as no sections."""
        text = self._store.get(self._group, self._keys.sections)
        try:
            return decode_sections(text)
        except MalformedDataError as e:
            logger.warning("Ignoring unreadable sections: %s", e)
            return []

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def save(
        self,
        setups: Optional[list[InventorySetup]] = None,
        sections: Optional[list[Section]] = None,
    ) -> None:
        """Persist whichever of setups/sections is given."""
        if setups is not None:
            self.records.save(setups)
        if sections is not None:
            self._store.set(self._group, self._keys.sections, encode_sections(sections))
