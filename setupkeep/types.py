"""
Data types for inventory setups and sections.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


# Item id used for an empty inventory/equipment slot
EMPTY_SLOT_ID = -1


@dataclass
class SetupItem:
    """A single slot assignment inside a setup container."""
    id: int
    name: str = ""
    quantity: int = 1
    fuzzy: bool = False
    stack_compare: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.id == EMPTY_SLOT_ID


@dataclass
class InventorySetup:
    """
    A named, user-authored inventory setup.

    The display name is the storage identity: keys are recomputed from it
    on every save, so renaming a setup moves it to a new key.

    The pouch/quiver containers are ``None`` when absent (not detected or
    never recorded), which is distinct from an empty list.
    """
    name: str
    inventory: list[SetupItem] = field(default_factory=list)
    equipment: list[SetupItem] = field(default_factory=list)
    rune_pouch: Optional[list[SetupItem]] = None
    bolt_pouch: Optional[list[SetupItem]] = None
    quiver: Optional[list[SetupItem]] = None
    notes: Optional[str] = None
    additional_filtered_items: Optional[dict[int, SetupItem]] = None

    # Display attributes; stored but never interpreted here
    highlight_colour: Optional[str] = None
    highlight_difference: bool = False
    display_colour: Optional[str] = None
    filter_bank: bool = False
    unordered_highlight: bool = False
    spellbook: int = 0
    favorite: bool = False
    icon_id: int = -1

    # Unknown JSON fields, written back verbatim
    extra: dict[str, Any] = field(default_factory=dict)

    def item_containers(self) -> list[list[SetupItem]]:
        """Containers whose item names are resolved on load."""
        containers = [self.inventory, self.equipment]
        for container in (self.rune_pouch, self.bolt_pouch):
            if container is not None:
                containers.append(container)
        return containers


@dataclass
class Section:
    """A named, ordered group of setup names. References, not ownership."""
    name: str
    setups: list[str] = field(default_factory=list)
    max_height: int = 0
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class LoadedData:
    """Result of a full load: setups in display order, then sections."""
    setups: list[InventorySetup] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
