"""
setupkeep

Versioned persistence for inventory setups and sections over a flat,
string-valued config store.

Quick Start:
    from setupkeep import PersistentDataManager, SqliteConfigStore

    store = SqliteConfigStore(Path("config.db"))
    manager = PersistentDataManager(store)
    loaded = manager.load()          # migrates legacy data on first use
    manager.save(loaded.setups, loaded.sections)

CLI Usage:
    setupkeep list
    setupkeep check
    setupkeep migrate --json

Storage Layout (within the config group):
    setupsV3_<hash>   one setup per key, hash = MurmurHash3-128 of the name
    setupsOrderV3     JSON array of hashes in display order
    sections          JSON array of sections
    migratedV2/V3     presence-only migration markers
    setups, setupsV2  legacy single-blob formats

Environment Variables:
    SETUPKEEP_STORE_PATH  - Override default store location (~/.setupkeep)
    SETUPKEEP_VERBOSE     - Set to 1 for debug logging in the CLI
"""

from .config import StorageKeys, StoreConfig, load_or_create_config
from .config_store import MemoryConfigStore, SqliteConfigStore
from .enrichment import NullEnricher
from .errors import MalformedDataError, SetupLoadError
from .hashing import setup_key
from .manager import PersistentDataManager
from .migration import MigrationController, MigrationResult
from .protocol import EnricherProtocol, KeyValueStoreProtocol
from .record_store import RecordStore
from .types import InventorySetup, LoadedData, Section, SetupItem

__version__ = "0.1.0"
__all__ = [
    "PersistentDataManager",
    "RecordStore",
    "MigrationController",
    "MigrationResult",
    "InventorySetup",
    "SetupItem",
    "Section",
    "LoadedData",
    "StorageKeys",
    "StoreConfig",
    "load_or_create_config",
    "MemoryConfigStore",
    "SqliteConfigStore",
    "KeyValueStoreProtocol",
    "EnricherProtocol",
    "NullEnricher",
    "MalformedDataError",
    "SetupLoadError",
    "setup_key",
]
