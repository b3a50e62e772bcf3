"""
Configuration management for setupkeep stores.

The configuration is stored as a TOML file in the store directory. It names
the config group and the logical keys used for each storage format, and
holds the migration cleanup policy.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path

import tomli_w


CONFIG_FILENAME = "setupkeep.toml"
CONFIG_VERSION = 1
DEFAULT_GROUP = "inventorysetups"
DEFAULT_DB_FILENAME = "config.db"


@dataclass
class StorageKeys:
    """Logical keys (within the group) for every persisted artifact."""
    migrated_v2: str = "migratedV2"
    migrated_v3: str = "migratedV3"
    setups_v1: str = "setups"
    setups_v2: str = "setupsV2"
    setups_v3_prefix: str = "setupsV3_"
    setups_order_v3: str = "setupsOrderV3"
    sections: str = "sections"


@dataclass
class StoreConfig:
    """Complete store configuration."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    group: str = DEFAULT_GROUP
    backend: str = "sqlite"
    db_filename: str = DEFAULT_DB_FILENAME
    keys: StorageKeys = field(default_factory=StorageKeys)

    # Legacy V2 blob is kept after migration unless this is set
    remove_legacy_v2: bool = False

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    @property
    def db_path(self) -> Path:
        """Path to the SQLite config store."""
        return self.path / self.db_filename

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()


def get_default_store_path() -> Path:
    """Store directory: SETUPKEEP_STORE_PATH, else ~/.setupkeep."""
    env = os.environ.get("SETUPKEEP_STORE_PATH")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".setupkeep"


def load_config(store_path: Path) -> StoreConfig:
    """
    Load configuration from a store directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = store_path / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    store = data.get("store", {})
    version = store.get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    key_names = {f.name for f in fields(StorageKeys)}
    key_data = data.get("keys", {})
    unknown = set(key_data) - key_names
    if unknown:
        raise ValueError(f"Unknown keys in [keys]: {sorted(unknown)}")

    return StoreConfig(
        path=store_path,
        version=version,
        created=store.get("created", ""),
        group=store.get("group", DEFAULT_GROUP),
        backend=store.get("backend", "sqlite"),
        db_filename=store.get("db", DEFAULT_DB_FILENAME),
        keys=StorageKeys(**key_data),
        remove_legacy_v2=bool(data.get("migration", {}).get("remove_legacy_v2", False)),
    )


def save_config(config: StoreConfig) -> None:
    """
    Save configuration to the store directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    data = {
        "store": {
            "version": config.version,
            "created": config.created,
            "group": config.group,
            "backend": config.backend,
            "db": config.db_filename,
        },
        "keys": {f.name: getattr(config.keys, f.name) for f in fields(StorageKeys)},
        "migration": {
            "remove_legacy_v2": config.remove_legacy_v2,
        },
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(store_path: Path) -> StoreConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management.
    """
    config_path = store_path / CONFIG_FILENAME

    if config_path.exists():
        return load_config(store_path)
    else:
        config = StoreConfig(path=store_path)
        save_config(config)
        return config
