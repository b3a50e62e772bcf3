"""
Load-time enrichment of decoded setups.

Backfills containers added after a setup was first saved (rune pouch, bolt
pouch, quiver, notes, additional filtered items) and resolves item display
names, which are not persisted.
"""

from typing import Optional

from .protocol import EnricherProtocol
from .types import InventorySetup, SetupItem


class NullEnricher:
    """Enricher that detects no pouches or quiver and resolves every item name to an empty string."""

    def derive_rune_pouch(self, inventory: list[SetupItem]) -> Optional[list[SetupItem]]:
        return None

    def derive_bolt_pouch(self, inventory: list[SetupItem]) -> Optional[list[SetupItem]]:
        return None

    def derive_quiver(
        self,
        inventory: list[SetupItem],
        equipment: list[SetupItem],
    ) -> Optional[list[SetupItem]]:
        return None

    def resolve_name(self, item_id: int) -> str:
        return ""


def enrich_setup(setup: InventorySetup, enricher: EnricherProtocol) -> InventorySetup:
    """
    Fill absent derived fields and resolve item names in place.

    Existing pouch/quiver contents are never replaced.
    """
    if setup.rune_pouch is None:
        setup.rune_pouch = enricher.derive_rune_pouch(setup.inventory)
    if setup.bolt_pouch is None:
        setup.bolt_pouch = enricher.derive_bolt_pouch(setup.inventory)
    if setup.quiver is None:
        setup.quiver = enricher.derive_quiver(setup.inventory, setup.equipment)
    if setup.notes is None:
        setup.notes = ""
    if setup.additional_filtered_items is None:
        setup.additional_filtered_items = {}

    for container in setup.item_containers():
        for item in container:
            item.name = enricher.resolve_name(item.id)
    for item in setup.additional_filtered_items.values():
        item.name = enricher.resolve_name(item.id)

    return setup
