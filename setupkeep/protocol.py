"""
Protocol definitions for the services the persistence layer consumes.

- KeyValueStoreProtocol: the flat string config store (one group of keys)
- EnricherProtocol: derives pouch/quiver contents and resolves item names
"""

from typing import Optional, Protocol, runtime_checkable

from .types import SetupItem


@runtime_checkable
class KeyValueStoreProtocol(Protocol):
    """
    A flat, string-valued configuration store.

    Keys are addressed as ``(group, key)``. ``list_keys`` takes a whole-key
    prefix (``whole_key(group, prefix)``) and returns whole keys.

    Implemented by:
    - SqliteConfigStore (local SQLite file)
    - MemoryConfigStore (in-process dict)
    """

    def get(self, group: str, key: str) -> Optional[str]: ...

    def set(self, group: str, key: str, value: str) -> None: ...

    def unset(self, group: str, key: str) -> None: ...

    def list_keys(self, prefix: str) -> list[str]: ...


@runtime_checkable
class EnricherProtocol(Protocol):
    """
    Domain lookups invoked once per setup after it is loaded.

    The ``derive_*`` methods return ``None`` when the containers do not
    imply the pouch/quiver.
    """

    def derive_rune_pouch(self, inventory: list[SetupItem]) -> Optional[list[SetupItem]]: ...

    def derive_bolt_pouch(self, inventory: list[SetupItem]) -> Optional[list[SetupItem]]: ...

    def derive_quiver(
        self,
        inventory: list[SetupItem],
        equipment: list[SetupItem],
    ) -> Optional[list[SetupItem]]: ...

    def resolve_name(self, item_id: int) -> str: ...
