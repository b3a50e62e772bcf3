"""
JSON codec for setups, sections and the setup order list.

Two record shapes exist on disk:

- Current (V2 and V3): compact keys (``inv``, ``eq``, ``rp`` ...), default
  values omitted. V2 stored a JSON array of these under one key; V3 stores
  one record per key.
- Legacy V1: a single JSON array of records using the long field names.

Decoding tolerates absent optional fields. Fields that are not recognised
are kept in ``extra`` and written back unchanged.
"""

import json
from typing import Any, Callable, Optional

from .errors import MalformedDataError
from .types import InventorySetup, Section, SetupItem

# Hooks applied to raw legacy arrays (list of record dicts) before decoding.
# Each takes and returns the list; use for one-off shape fixes to old blobs.
LegacyFixup = Callable[[list[dict]], list[dict]]
LEGACY_FIXUPS: list[LegacyFixup] = []


# (attribute, current key, legacy V1 key, default)
_SCALAR_FIELDS: list[tuple[str, str, str, Any]] = [
    ("notes", "notes", "notes", None),
    ("highlight_colour", "hc", "highlightColor", None),
    ("highlight_difference", "hd", "highlightDifference", False),
    ("display_colour", "dc", "displayColor", None),
    ("filter_bank", "fb", "filterBank", False),
    ("unordered_highlight", "uh", "unorderedHighlight", False),
    ("spellbook", "sb", "spellBook", 0),
    ("favorite", "fv", "favorite", False),
    ("icon_id", "iId", "iconID", -1),
]

# (attribute, current key, legacy V1 key)
_CONTAINER_FIELDS: list[tuple[str, str, str]] = [
    ("inventory", "inv", "inventory"),
    ("equipment", "eq", "equipment"),
    ("rune_pouch", "rp", "rune_pouch"),
    ("bolt_pouch", "bp", "boltPouch"),
    ("quiver", "qv", "quiver"),
]

_AFI_KEYS = ("afi", "additionalFilteredItems")


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

def _item_to_dict(item: SetupItem) -> dict:
    d: dict[str, Any] = {"id": item.id}
    if item.quantity != 1:
        d["q"] = item.quantity
    if item.fuzzy:
        d["f"] = True
    if item.stack_compare is not None:
        d["sc"] = item.stack_compare
    return d


def _item_from_dict(d: Any, legacy: bool) -> SetupItem:
    if not isinstance(d, dict) or not isinstance(d.get("id"), int):
        raise MalformedDataError(f"Invalid item: {d!r}")
    try:
        if legacy:
            return SetupItem(
                id=d["id"],
                name=d.get("name") or "",
                quantity=int(d.get("quantity", 1)),
                fuzzy=bool(d.get("fuzzy", False)),
                stack_compare=d.get("stackCompare"),
            )
        return SetupItem(
            id=d["id"],
            quantity=int(d.get("q", 1)),
            fuzzy=bool(d.get("f", False)),
            stack_compare=d.get("sc"),
        )
    except (TypeError, ValueError) as e:
        raise MalformedDataError(f"Invalid item {d!r}: {e}") from e


def _container_from_json(value: Any, legacy: bool) -> Optional[list[SetupItem]]:
    if value is None:
        return None
    if not isinstance(value, list):
        raise MalformedDataError(f"Invalid item container: {value!r}")
    return [_item_from_dict(v, legacy) for v in value]


# ---------------------------------------------------------------------------
# Setups
# ---------------------------------------------------------------------------

def setup_to_dict(setup: InventorySetup) -> dict:
    """Convert a setup to its current compact JSON shape."""
    d: dict[str, Any] = dict(setup.extra)
    d["name"] = setup.name
    for attr, key, _legacy_key in _CONTAINER_FIELDS:
        container = getattr(setup, attr)
        if container is not None:
            d[key] = [_item_to_dict(i) for i in container]
    if setup.additional_filtered_items is not None:
        d["afi"] = {
            str(k): _item_to_dict(v)
            for k, v in setup.additional_filtered_items.items()
        }
    for attr, key, _legacy_key, default in _SCALAR_FIELDS:
        value = getattr(setup, attr)
        if value != default:
            d[key] = value
    return d


def setup_from_dict(d: Any, *, legacy: bool = False) -> InventorySetup:
    """Build a setup from a decoded JSON object.

    Args:
        d: Decoded JSON object
        legacy: Read V1 long field names instead of the compact ones

    Raises:
        MalformedDataError: If the object does not have a setup's shape
    """
    if not isinstance(d, dict):
        raise MalformedDataError(f"Setup must be a JSON object, got {type(d).__name__}")
    name = d.get("name")
    if not isinstance(name, str):
        raise MalformedDataError("Setup has no name")

    known = {"name"}
    setup = InventorySetup(name=name)

    for attr, key, legacy_key in _CONTAINER_FIELDS:
        k = legacy_key if legacy else key
        known.add(k)
        setattr(setup, attr, _container_from_json(d.get(k), legacy))
    # inventory and equipment are always present in memory
    if setup.inventory is None:
        setup.inventory = []
    if setup.equipment is None:
        setup.equipment = []

    afi_key = _AFI_KEYS[1] if legacy else _AFI_KEYS[0]
    known.add(afi_key)
    afi = d.get(afi_key)
    if afi is not None:
        if not isinstance(afi, dict):
            raise MalformedDataError(f"Invalid additional filtered items: {afi!r}")
        try:
            setup.additional_filtered_items = {
                int(k): _item_from_dict(v, legacy) for k, v in afi.items()
            }
        except ValueError as e:
            raise MalformedDataError(f"Invalid additional filtered items: {e}") from e

    for attr, key, legacy_key, default in _SCALAR_FIELDS:
        k = legacy_key if legacy else key
        known.add(k)
        setattr(setup, attr, d.get(k, default))

    setup.extra = {k: v for k, v in d.items() if k not in known}
    return setup


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedDataError(f"Invalid JSON: {e}") from e


def encode_setup(setup: InventorySetup) -> str:
    return json.dumps(setup_to_dict(setup), ensure_ascii=False, separators=(",", ":"))


def decode_setup(text: Optional[str]) -> InventorySetup:
    """Decode one current-format setup. Absent text is malformed here."""
    if not text:
        raise MalformedDataError("Setup data is empty")
    return setup_from_dict(_loads(text))


def decode_setup_list(text: Optional[str], *, legacy: bool = False) -> list[InventorySetup]:
    """Decode a single-blob setup array (V1 or V2 layout).

    Absent or empty text decodes to an empty list.
    """
    if not text:
        return []
    data = _loads(text)
    if data is None:
        return []
    if not isinstance(data, list):
        raise MalformedDataError("Setup list must be a JSON array")
    for fixup in LEGACY_FIXUPS:
        data = fixup(data)
    return [setup_from_dict(d, legacy=legacy) for d in data]


# ---------------------------------------------------------------------------
# Order list
# ---------------------------------------------------------------------------

def encode_order(order: list[str]) -> str:
    return json.dumps(list(order))


def decode_order(text: Optional[str]) -> list[str]:
    if not text:
        return []
    data = _loads(text)
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(h, str) for h in data):
        raise MalformedDataError("Setup order must be a JSON array of strings")
    return data


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def section_to_dict(section: Section) -> dict:
    d: dict[str, Any] = dict(section.extra)
    d["name"] = section.name
    d["setups"] = list(section.setups)
    d["maxHeight"] = section.max_height
    return d


def section_from_dict(d: Any) -> Section:
    if not isinstance(d, dict) or not isinstance(d.get("name"), str):
        raise MalformedDataError(f"Invalid section: {d!r}")
    setups = d.get("setups") or []
    if not isinstance(setups, list) or not all(isinstance(s, str) for s in setups):
        raise MalformedDataError(f"Invalid setups in section {d['name']!r}")
    max_height = d.get("maxHeight", 0)
    if not isinstance(max_height, int):
        raise MalformedDataError(f"Invalid maxHeight in section {d['name']!r}")
    return Section(
        name=d["name"],
        setups=list(setups),
        max_height=max_height,
        extra={k: v for k, v in d.items() if k not in ("name", "setups", "maxHeight")},
    )


def encode_sections(sections: list[Section]) -> str:
    return json.dumps([section_to_dict(s) for s in sections], ensure_ascii=False)


def decode_sections(text: Optional[str]) -> list[Section]:
    if not text:
        return []
    data = _loads(text)
    if data is None:
        return []
    if not isinstance(data, list):
        raise MalformedDataError("Sections must be a JSON array")
    return [section_from_dict(d) for d in data]
