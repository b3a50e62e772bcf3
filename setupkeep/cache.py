"""
Name lookups over the loaded setups and sections.

Rebuilt from scratch on every load; never persisted.
"""

from typing import Optional

from .types import InventorySetup, Section


class SetupsCache:
    """Index of setups and sections by name, plus setup->sections membership."""

    def __init__(self):
        self.setup_names: dict[str, InventorySetup] = {}
        self.section_names: dict[str, Section] = {}
        self.setup_sections: dict[str, list[str]] = {}

    def clear_all(self) -> None:
        self.setup_names.clear()
        self.section_names.clear()
        self.setup_sections.clear()

    def add_setup(self, setup: InventorySetup) -> None:
        self.setup_names[setup.name] = setup

    def add_section(self, section: Section) -> None:
        self.section_names[section.name] = section
        for name in section.setups:
            self.setup_sections.setdefault(name, []).append(section.name)

    def get_setup(self, name: str) -> Optional[InventorySetup]:
        return self.setup_names.get(name)

    def sections_for(self, setup_name: str) -> list[str]:
        """Names of the sections referencing a setup, in section order."""
        return list(self.setup_sections.get(setup_name, []))
