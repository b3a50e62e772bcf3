"""
Tests for PersistentDataManager: full load/save cycle, section
reconciliation, and the name cache.
"""

import json

import pytest

from setupkeep.codec import encode_sections
from setupkeep.config import StorageKeys, StoreConfig
from setupkeep.config_store import MemoryConfigStore
from setupkeep.errors import SetupLoadError
from setupkeep.hashing import setup_key
from setupkeep.manager import PersistentDataManager, reconcile_section
from setupkeep.types import Section
from tests.conftest import GROUP, make_setup


class TestReconcileSection:
    def test_dedupes_and_drops_unknown(self):
        section = Section(name="S", setups=["A", "A", "B"])
        assert reconcile_section(section, {"A"}).setups == ["A"]

    def test_first_occurrence_wins(self):
        section = Section(name="S", setups=["B", "A", "B", "C", "A"])
        assert reconcile_section(section, {"A", "B", "C"}).setups == ["B", "A", "C"]

    def test_empty(self):
        assert reconcile_section(Section(name="S"), {"A"}).setups == []


class TestLoad:
    def test_section_references_reconciled(self, manager, migrated_store):
        manager.save([make_setup("A")], [Section(name="Bossing", setups=["A", "A", "B"])])
        loaded = manager.load()
        assert loaded.sections[0].setups == ["A"]

    def test_dangling_reference_not_written_back_on_load(self, manager, migrated_store):
        manager.save([make_setup("A")], [Section(name="S", setups=["A", "Gone"])])
        manager.load()
        stored = json.loads(migrated_store.get(GROUP, "sections"))
        assert stored[0]["setups"] == ["A", "Gone"]

    def test_section_order_preserved(self, manager):
        sections = [Section(name=n) for n in ("Z", "M", "A")]
        manager.save([], sections)
        assert [s.name for s in manager.load().sections] == ["Z", "M", "A"]

    def test_corrupt_sections_treated_as_empty(self, manager, migrated_store, caplog):
        manager.save([make_setup("A")])
        migrated_store.set(GROUP, "sections", "{{{")
        loaded = manager.load()
        assert loaded.sections == []
        assert [s.name for s in loaded.setups] == ["A"]
        assert "unreadable sections" in caplog.text

    def test_returns_fresh_objects(self, manager):
        manager.save([make_setup("A")])
        first = manager.load()
        second = manager.load()
        assert first.setups == second.setups
        assert first.setups is not second.setups
        assert first.setups[0] is not second.setups[0]

    def test_cache_rebuilt(self, manager):
        manager.save([make_setup("A"), make_setup("B")], [Section(name="S", setups=["B"])])
        manager.load()
        assert set(manager.cache.setup_names) == {"A", "B"}
        assert manager.cache.sections_for("B") == ["S"]
        assert manager.cache.sections_for("A") == []

        manager.save([make_setup("A")], [])
        manager.load()
        assert set(manager.cache.setup_names) == {"A"}
        assert manager.cache.section_names == {}

    def test_corrupt_setup_propagates(self, manager, migrated_store):
        manager.save([make_setup("A")])
        migrated_store.set(GROUP, "setupsV3_" + setup_key("A"), "{")
        with pytest.raises(SetupLoadError):
            manager.load()

    def test_store_failure_propagates(self, enricher):
        class BrokenStore(MemoryConfigStore):
            def list_keys(self, prefix):
                raise OSError("store unavailable")

        store = BrokenStore()
        store.set(GROUP, "migratedV2", "True")
        store.set(GROUP, "migratedV3", "True")
        with pytest.raises(OSError):
            PersistentDataManager(store, enricher).load()

    def test_migration_result_recorded(self, manager):
        manager.load()
        assert manager.last_migration is not None
        assert not manager.last_migration.changed


class TestSave:
    def test_sections_only(self, manager, migrated_store):
        manager.save(sections=[Section(name="S", setups=["A"])])
        assert migrated_store.get(GROUP, "sections") == encode_sections([Section(name="S", setups=["A"])])
        assert migrated_store.get(GROUP, "setupsOrderV3") is None

    def test_setups_only(self, manager, migrated_store):
        migrated_store.set(GROUP, "sections", "[]")
        manager.save(setups=[make_setup("A")])
        assert migrated_store.get(GROUP, "sections") == "[]"
        assert migrated_store.get(GROUP, "setupsV3_" + setup_key("A")) is not None

    def test_round_trip_twice_stable(self, manager, migrated_store):
        manager.save(
            [make_setup("A", 12791), make_setup("B", 4151)],
            [Section(name="S", setups=["B", "A"])],
        )
        loaded = manager.load()
        manager.save(loaded.setups, loaded.sections)
        after_first = migrated_store.snapshot()

        loaded = manager.load()
        manager.save(loaded.setups, loaded.sections)
        assert migrated_store.snapshot() == after_first

    def test_rename_leaves_single_record(self, manager, migrated_store):
        manager.save([make_setup("Before")])
        loaded = manager.load()
        loaded.setups[0].name = "After"
        manager.save(loaded.setups)

        assert [s.name for s in manager.load().setups] == ["After"]
        assert migrated_store.get(GROUP, "setupsV3_" + setup_key("Before")) is None
        assert migrated_store.get(GROUP, "setupsV3_" + setup_key("After")) is not None


class TestCustomKeys:
    def test_from_config(self, tmp_path, enricher):
        keys = StorageKeys(setups_v3_prefix="s3_", setups_order_v3="order", sections="groups")
        config = StoreConfig(path=tmp_path, group="custom", keys=keys)
        store = MemoryConfigStore()
        store.set("custom", "migratedV2", "True")
        store.set("custom", "migratedV3", "True")

        manager = PersistentDataManager.from_config(store, config, enricher)
        manager.save([make_setup("A")], [Section(name="G", setups=["A"])])

        assert store.get("custom", "s3_" + setup_key("A")) is not None
        assert store.get("custom", "order") is not None
        assert store.get("custom", "groups") is not None
        assert store.get(GROUP, "sections") is None
        assert manager.load().sections[0].setups == ["A"]
