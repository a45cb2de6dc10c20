"""
Bounded, newest-first history logs persisted to the key-value store.

Each log is a ``collections.deque`` with ``maxlen`` so inserting at the
front evicts the oldest entry at the back.  The whole log is written on
every insert; if the write fails the previous contents are restored and
``PersistenceFailure`` propagates.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Generic, TypeVar

from chainwallet_core.errors import PersistenceFailure
from chainwallet_core.models import MiningRecord, TransactionRecord
from chainwallet_core.storage import (
    MINING_KEY,
    TRANSACTIONS_KEY,
    KeyValueStore,
    load_json,
    save_json,
)

logger = logging.getLogger("chainwallet_history")

DEFAULT_CAPACITY = 10

R = TypeVar("R", TransactionRecord, MiningRecord)


class BoundedHistory(Generic[R]):
    """A capped, newest-first log of records stored under one key."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        decode: Callable[[dict], R],
        capacity: int = DEFAULT_CAPACITY,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._store = store
        self.key = key
        self.capacity = capacity
        self._entries: deque[R] = deque(maxlen=capacity)

        raw = load_json(store, key)
        if raw is None:
            return
        if not isinstance(raw, list):
            raise PersistenceFailure(f"{key!r} is not a list", key=key)
        try:
            # Stored newest-first; anything past the cap is dropped.
            self._entries.extend(decode(item) for item in raw[:capacity])
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceFailure(f"corrupt entry under {key!r}: {exc}", key=key) from exc

    def record(self, entry: R) -> None:
        previous = list(self._entries)
        self._entries.appendleft(entry)
        try:
            save_json(self._store, self.key, [e.to_dict() for e in self._entries])
        except PersistenceFailure:
            self._entries = deque(previous, maxlen=self.capacity)
            raise
        logger.debug(f"{self.key}: recorded entry, {len(self._entries)}/{self.capacity} kept")

    def entries(self) -> list[R]:
        """Newest first."""
        return list(self._entries)

    def latest(self) -> R | None:
        return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))


class TransactionHistory(BoundedHistory[TransactionRecord]):
    def __init__(self, store: KeyValueStore, capacity: int = DEFAULT_CAPACITY):
        super().__init__(store, TRANSACTIONS_KEY, TransactionRecord.from_dict, capacity)


class MiningHistory(BoundedHistory[MiningRecord]):
    def __init__(self, store: KeyValueStore, capacity: int = DEFAULT_CAPACITY):
        super().__init__(store, MINING_KEY, MiningRecord.from_dict, capacity)

    def total_reward(self, miner_address: str | None = None) -> float:
        """Sum of recorded rewards, optionally for one miner only."""
        return sum(
            e.reward for e in self._entries
            if miner_address is None or e.miner_address == miner_address
        )
