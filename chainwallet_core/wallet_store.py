"""
Wallet management for ChainWallet.

The ``WalletStore`` is the only owner of local key material.  It keeps the
wallet list in creation order plus a ``public_key -> Wallet`` index, and
writes the whole list under the ``wallets`` key on every mutation.

Mutations are copy-on-write: a new list is built from the *current* list,
persisted, and only then swapped in.  A failed write therefore leaves the
last persisted list visible, including wallets added by other operations
that completed while this one was awaiting the node.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chainwallet_core.errors import (
    DuplicateWallet,
    EmptyLabel,
    MissingKeyMaterial,
    PersistenceFailure,
)
from chainwallet_core.formatting import format_hash
from chainwallet_core.models import Wallet
from chainwallet_core.storage import WALLETS_KEY, KeyValueStore, load_json, save_json

if TYPE_CHECKING:
    from chainwallet_core.client import LedgerClient

logger = logging.getLogger("chainwallet_wallets")


class WalletStore:
    """Durable, ordered set of local identities keyed by public key."""

    def __init__(self, store: KeyValueStore, client: LedgerClient):
        self._store = store
        self._client = client
        self._wallets: tuple[Wallet, ...] = self._load()
        self._index: dict[str, Wallet] = {w.public_key: w for w in self._wallets}

    def _load(self) -> tuple[Wallet, ...]:
        raw = load_json(self._store, WALLETS_KEY)
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise PersistenceFailure(f"{WALLETS_KEY!r} is not a list", key=WALLETS_KEY)
        wallets: list[Wallet] = []
        seen: set[str] = set()
        try:
            for item in raw:
                w = Wallet.from_dict(item)
                if w.public_key in seen:
                    logger.warning(f"Skipping duplicate stored wallet {format_hash(w.public_key)}")
                    continue
                seen.add(w.public_key)
                wallets.append(w)
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceFailure(f"corrupt wallet entry: {exc}", key=WALLETS_KEY) from exc
        logger.info(f"Loaded {len(wallets)} wallet(s)")
        return tuple(wallets)

    def _commit(self, wallets: tuple[Wallet, ...]) -> None:
        """Persist *wallets* and make them visible; leaves state untouched on failure."""
        save_json(self._store, WALLETS_KEY, [w.to_dict() for w in wallets])
        self._wallets = wallets
        self._index = {w.public_key: w for w in wallets}

    # ── queries ──────────────────────────────────────────────────

    def list_wallets(self) -> list[Wallet]:
        """All wallets in creation order."""
        return list(self._wallets)

    def get(self, public_key: str) -> Wallet | None:
        return self._index.get(public_key)

    def __contains__(self, public_key: object) -> bool:
        return public_key in self._index

    def __len__(self) -> int:
        return len(self._wallets)

    def default_wallet(self) -> Wallet | None:
        """The wallet front ends pre-select: the oldest one."""
        return self._wallets[0] if self._wallets else None

    def label_for(self, address: str | None) -> str | None:
        if address is None:
            return None
        w = self._index.get(address)
        return w.label if w else None

    def labels(self) -> dict[str, str]:
        return {w.public_key: w.label for w in self._wallets}

    # ── mutations ────────────────────────────────────────────────

    async def create_labeled(self, label: str) -> Wallet:
        """Mint a key pair on the node, label it, and persist it."""
        if not label or not label.strip():
            raise EmptyLabel()
        public_key, private_key = await self._client.mint_wallet()
        if public_key in self._index:
            raise DuplicateWallet(public_key)
        wallet = Wallet(public_key=public_key, private_key=private_key, label=label)
        self._commit(self._wallets + (wallet,))
        logger.info(f"Created wallet '{label}' -> {format_hash(public_key)}")
        return wallet

    def import_existing(self, public_key: str, private_key: str, label: str) -> Wallet:
        """Add a key pair obtained elsewhere.  No remote call is made."""
        if not public_key or not public_key.strip():
            raise MissingKeyMaterial("public key")
        if not private_key or not private_key.strip():
            raise MissingKeyMaterial("private key")
        if not label or not label.strip():
            raise EmptyLabel()
        if public_key in self._index:
            raise DuplicateWallet(public_key)
        wallet = Wallet(public_key=public_key, private_key=private_key, label=label)
        self._commit(self._wallets + (wallet,))
        logger.info(f"Imported wallet '{label}' -> {format_hash(public_key)}")
        return wallet

    def delete(self, public_key: str) -> None:
        """Remove a wallet.  Deleting an unknown key is a no-op."""
        if public_key not in self._index:
            return
        self._commit(tuple(w for w in self._wallets if w.public_key != public_key))
        logger.info(f"Deleted wallet {format_hash(public_key)}")
