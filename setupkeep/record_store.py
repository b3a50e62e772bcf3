"""
Per-setup persistence over a flat key-value store.

Each setup is written under ``prefix + setup_key(name)``; a separate order
key holds the JSON array of those hashes and is the only authority on
display order. The store offers no multi-key transaction, so a save that
stops part-way leaves a state that load() repairs:

- Order entries whose setup key is gone are dropped.
- Setup keys missing from the order are appended after the ordered ones,
  sorted by hash so repeated loads agree.

A corrupt setup body aborts the load; a missing or corrupt order list is
treated as empty.
"""

import logging
from typing import NamedTuple

from .codec import decode_order, decode_setup, encode_order, encode_setup
from .config_store import whole_key
from .errors import MalformedDataError, SetupLoadError
from .hashing import setup_key
from .protocol import KeyValueStoreProtocol
from .types import InventorySetup

logger = logging.getLogger(__name__)


class OrderDrift(NamedTuple):
    """Divergence between the order list and the stored setup keys."""
    stale: list[str]  # hashes in the order list with no stored setup
    orphaned: list[str]  # stored hashes missing from the order list

    @property
    def clean(self) -> bool:
        return not self.stale and not self.orphaned


class RecordStore:
    """Ordered collection of setups stored one key per setup."""

    def __init__(
        self,
        store: KeyValueStoreProtocol,
        group: str,
        prefix: str,
        order_key: str,
    ):
        self._store = store
        self._group = group
        self._prefix = prefix
        self._order_key = order_key

    def stored_hashes(self) -> set[str]:
        """Hash suffixes of every setup key currently in the store."""
        whole_prefix = whole_key(self._group, self._prefix)
        return {
            key[len(whole_prefix):]
            for key in self._store.list_keys(whole_prefix)
        }

    def load_order(self) -> list[str]:
        """Read the order list; absent or corrupt reads as empty."""
        text = self._store.get(self._group, self._order_key)
        try:
            return decode_order(text)
        except MalformedDataError as e:
            logger.warning("Ignoring unreadable setup order %s: %s", self._order_key, e)
            return []

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def save(self, setups: list[InventorySetup]) -> list[str]:
        """
        Write all setups, remove keys no longer in use, then rewrite the order.

        Keys are derived from the current names on every call, so a renamed
        setup is written under its new key and its old key is removed here.

        Returns:
            The order list that was written
        """
        stale = self.stored_hashes()
        order: list[str] = []
        for setup in setups:
            h = setup_key(setup.name)
            order.append(h)
            stale.discard(h)
            self._store.set(self._group, self._prefix + h, encode_setup(setup))

        for h in sorted(stale):
            # Renamed (now saved under a new hash above) or deleted
            self._store.unset(self._group, self._prefix + h)
        if stale:
            logger.debug("Removed %d unused setup keys", len(stale))

        self._store.set(self._group, self._order_key, encode_order(order))
        return order

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    def _load_one(self, h: str) -> InventorySetup:
        key = self._prefix + h
        try:
            return decode_setup(self._store.get(self._group, key))
        except MalformedDataError as e:
            logger.error("Exception occurred while loading %s: %s", key, e)
            raise SetupLoadError(key, e) from e

    def load(self) -> list[InventorySetup]:
        """
        Reconstruct the ordered setup list.

        Raises:
            SetupLoadError: If any stored setup cannot be decoded
        """
        remaining = self.stored_hashes()
        setups: list[InventorySetup] = []

        for h in self.load_order():
            if h in remaining:
                remaining.discard(h)
                setups.append(self._load_one(h))

        for h in sorted(remaining):
            # Written by a save that stopped before rewriting the order
            logger.info("Loading setup that was missing from order key: %s%s", self._prefix, h)
            setups.append(self._load_one(h))

        return setups

    def check(self) -> OrderDrift:
        """Report drift between the order list and stored keys without repairing it."""
        stored = self.stored_hashes()
        order = self.load_order()
        listed = set(order)
        return OrderDrift(
            stale=[h for h in order if h not in stored],
            orphaned=sorted(stored - listed),
        )
