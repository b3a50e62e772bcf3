"""
Shared pytest fixtures for setupkeep tests.

Provides an in-memory config store and a deterministic enricher so tests
don't need a database or item data.
"""

import json
from pathlib import Path
from typing import Optional

import pytest

from setupkeep.config import StorageKeys
from setupkeep.config_store import MemoryConfigStore, SqliteConfigStore
from setupkeep.manager import PersistentDataManager
from setupkeep.types import InventorySetup, SetupItem

GROUP = "inventorysetups"

RUNE_POUCH_ID = 12791
BOLT_POUCH_ID = 9433
QUIVER_ID = 28951


class MockEnricher:
    """
    Deterministic enricher for testing.

    Names resolve to ``item-<id>``. A rune/bolt pouch in the inventory, or a
    quiver in either container, is "detected" with fixed contents.
    """

    def __init__(self):
        self.resolved: list[int] = []

    def derive_rune_pouch(self, inventory: list[SetupItem]) -> Optional[list[SetupItem]]:
        if any(i.id == RUNE_POUCH_ID for i in inventory):
            return [SetupItem(id=556, quantity=1000), SetupItem(id=555, quantity=500)]
        return None

    def derive_bolt_pouch(self, inventory: list[SetupItem]) -> Optional[list[SetupItem]]:
        if any(i.id == BOLT_POUCH_ID for i in inventory):
            return [SetupItem(id=9244, quantity=100)]
        return None

    def derive_quiver(
        self,
        inventory: list[SetupItem],
        equipment: list[SetupItem],
    ) -> Optional[list[SetupItem]]:
        if any(i.id == QUIVER_ID for i in inventory + equipment):
            return [SetupItem(id=892, quantity=250)]
        return None

    def resolve_name(self, item_id: int) -> str:
        self.resolved.append(item_id)
        return f"item-{item_id}"


def make_setup(name: str, *item_ids: int, **kwargs) -> InventorySetup:
    """Build a setup whose inventory holds the given item ids."""
    return InventorySetup(
        name=name,
        inventory=[SetupItem(id=i) for i in item_ids],
        **kwargs,
    )


def legacy_v1_blob(*names: str) -> str:
    """A V1 single-key setups array using the long field names."""
    return json.dumps([
        {
            "name": name,
            "inventory": [{"id": 995, "name": "Coins", "quantity": 100, "fuzzy": False}],
            "equipment": [{"id": -1, "name": "", "quantity": 1}],
            "notes": f"notes for {name}",
            "highlightColor": "#FFFF0000",
        }
        for name in names
    ])


def legacy_v2_blob(*names: str) -> str:
    """A V2 single-key setups array using the compact field names."""
    return json.dumps([
        {"name": name, "inv": [{"id": 4151}], "eq": [], "notes": "v2"}
        for name in names
    ])


@pytest.fixture
def keys():
    return StorageKeys()


@pytest.fixture
def store():
    """Fresh in-memory config store."""
    return MemoryConfigStore()


@pytest.fixture
def migrated_store(store, keys):
    """In-memory store with both migration markers already set."""
    store.set(GROUP, keys.migrated_v2, "True")
    store.set(GROUP, keys.migrated_v3, "True")
    return store


@pytest.fixture
def enricher():
    return MockEnricher()


@pytest.fixture
def manager(migrated_store, enricher):
    """Manager over a store that needs no migration."""
    return PersistentDataManager(migrated_store, enricher)


@pytest.fixture
def sqlite_store(tmp_path: Path):
    s = SqliteConfigStore(tmp_path / "config.db")
    yield s
    s.close()
