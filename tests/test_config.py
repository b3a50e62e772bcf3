"""Tests for TOML store configuration and the backend factory."""

import pytest

from setupkeep.backend import create_store
from setupkeep.config import (
    CONFIG_FILENAME,
    StorageKeys,
    StoreConfig,
    get_default_store_path,
    load_config,
    load_or_create_config,
    save_config,
)
from setupkeep.config_store import SqliteConfigStore


class TestConfigFile:
    def test_created_with_defaults(self, tmp_path):
        config = load_or_create_config(tmp_path / "store")
        assert (tmp_path / "store" / CONFIG_FILENAME).exists()
        assert config.group == "inventorysetups"
        assert config.keys == StorageKeys()
        assert config.remove_legacy_v2 is False
        assert config.backend == "sqlite"

    def test_round_trip(self, tmp_path):
        config = StoreConfig(
            path=tmp_path,
            group="mygroup",
            keys=StorageKeys(setups_order_v3="setupsOrderV3_"),
            remove_legacy_v2=True,
        )
        save_config(config)
        loaded = load_config(tmp_path)
        assert loaded.group == "mygroup"
        assert loaded.keys.setups_order_v3 == "setupsOrderV3_"
        assert loaded.keys.sections == "sections"
        assert loaded.remove_legacy_v2 is True
        assert loaded.created == config.created

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path)

    def test_newer_version_rejected(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("[store]\nversion = 99\n")
        with pytest.raises(ValueError, match="newer"):
            load_config(tmp_path)

    def test_unknown_key_rejected(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text('[keys]\nsetups_v4 = "x"\n')
        with pytest.raises(ValueError, match="setups_v4"):
            load_config(tmp_path)

    def test_partial_file(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text('[keys]\nsections = "groups"\n')
        config = load_config(tmp_path)
        assert config.keys.sections == "groups"
        assert config.keys.migrated_v2 == "migratedV2"
        assert config.group == "inventorysetups"


class TestStorePath:
    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SETUPKEEP_STORE_PATH", str(tmp_path))
        assert get_default_store_path() == tmp_path

    def test_default(self, monkeypatch):
        monkeypatch.delenv("SETUPKEEP_STORE_PATH", raising=False)
        assert get_default_store_path().name == ".setupkeep"


class TestBackendFactory:
    def test_sqlite(self, tmp_path):
        store = create_store(StoreConfig(path=tmp_path))
        assert isinstance(store, SqliteConfigStore)
        assert (tmp_path / "config.db").exists()
        store.close()

    def test_memory_is_not_a_config_backend(self, tmp_path):
        # A config-file store must persist; MemoryConfigStore is only constructed directly
        with pytest.raises(ValueError, match="Unknown backend"):
            create_store(StoreConfig(path=tmp_path, backend="memory"))

    def test_unknown(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown backend"):
            create_store(StoreConfig(path=tmp_path, backend="no-such-backend"))
