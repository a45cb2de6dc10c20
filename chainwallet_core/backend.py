"""
Composition root — wires the client, stores and workflows from a config
and exposes the operations a front end calls.

Front ends hold one ``WalletBackend`` and never touch the components'
durable state directly.

Usage:
    async with WalletBackend(load_config("chainwallet.toml")) as backend:
        await backend.connect()
        wallet = await backend.create_wallet("Main")
"""

from __future__ import annotations

import logging
from typing import Any

from chainwallet_core import backup
from chainwallet_core.balances import BalanceCache
from chainwallet_core.chain_view import ChainView
from chainwallet_core.client import LedgerClient
from chainwallet_core.config import ChainWalletConfig
from chainwallet_core.errors import NoMinerSelected, NoSenderSelected, RemoteError, UnknownWallet
from chainwallet_core.history import MiningHistory, TransactionHistory
from chainwallet_core.mining import MiningResult, MiningWorkflow
from chainwallet_core.models import (
    ChainSnapshot,
    MiningRecord,
    Transaction,
    TransactionRecord,
    Wallet,
)
from chainwallet_core.storage import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from chainwallet_core.transactions import TransactionWorkflow
from chainwallet_core.wallet_store import WalletStore

logger = logging.getLogger("chainwallet_backend")


def open_store(config: ChainWalletConfig) -> KeyValueStore:
    if config.storage.backend == "memory":
        return MemoryKeyValueStore()
    if config.storage.backend == "sqlite":
        return SQLiteKeyValueStore(config.storage.path)
    raise ValueError(f"unknown storage backend {config.storage.backend!r}")


class WalletBackend:
    """Everything a wallet UI needs, behind one object."""

    def __init__(
        self,
        config: ChainWalletConfig | None = None,
        *,
        store: KeyValueStore | None = None,
        client: LedgerClient | None = None,
    ):
        self.config = config or ChainWalletConfig()
        self.store = store if store is not None else open_store(self.config)
        self.client = client or LedgerClient(
            self.config.remote.base_url,
            timeout=self.config.remote.timeout_seconds,
        )
        capacity = self.config.history.capacity

        self.chain = ChainView(self.client)
        self.wallet_store = WalletStore(self.store, self.client)
        self.balances = BalanceCache(self.client)
        self.transactions = TransactionWorkflow(self.client, TransactionHistory(self.store, capacity))
        self.mining = MiningWorkflow(self.client, MiningHistory(self.store, capacity), self.chain)
        self.is_connected = False

    # ── lifecycle ────────────────────────────────────────────────

    async def close(self) -> None:
        await self.mining.wait_background()
        await self.client.close()
        close = getattr(self.store, "close", None)
        if close is not None:
            close()

    async def __aenter__(self) -> WalletBackend:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ── node ─────────────────────────────────────────────────────

    async def connect(self) -> ChainSnapshot:
        """Probe the node with a chain fetch; records the outcome in ``is_connected``."""
        try:
            snapshot = await self.chain.refresh()
        except RemoteError:
            self.is_connected = False
            raise
        self.is_connected = True
        logger.info(f"Connected to {self.client.base_url} ({snapshot.length} blocks)")
        return snapshot

    async def refresh_chain(self) -> ChainSnapshot:
        return await self.chain.refresh()

    def dashboard(self) -> dict[str, Any]:
        summary = self.chain.summary()
        summary["connected"] = self.is_connected
        summary["wallet_count"] = len(self.wallet_store)
        summary["total_balance"] = self.balances.total(self.wallet_store.list_wallets())
        summary["total_mining_reward"] = self.mining.total_reward()
        return summary

    # ── wallets ──────────────────────────────────────────────────

    def wallets(self) -> list[Wallet]:
        return self.wallet_store.list_wallets()

    async def create_wallet(self, label: str) -> Wallet:
        return await self.wallet_store.create_labeled(label)

    def import_wallet(self, public_key: str, private_key: str, label: str) -> Wallet:
        return self.wallet_store.import_existing(public_key, private_key, label)

    def delete_wallet(self, public_key: str) -> None:
        self.wallet_store.delete(public_key)
        self.balances.forget(public_key)

    async def refresh_balances(self) -> dict[str, float]:
        return await self.balances.refresh(self.wallet_store.list_wallets())

    def export_wallet(self, public_key: str, passphrase: str, **kwargs: Any) -> dict:
        wallet = self.wallet_store.get(public_key)
        if wallet is None:
            raise UnknownWallet(public_key)
        return backup.export_encrypted(wallet, passphrase, **kwargs)

    def import_backup(self, data: dict, passphrase: str, label: str | None = None) -> Wallet:
        restored = backup.import_encrypted(data, passphrase)
        return self.wallet_store.import_existing(
            restored.public_key, restored.private_key, label or restored.label,
        )

    # ── workflows ────────────────────────────────────────────────

    async def send(self, from_public_key: str, to_address: str, amount: float) -> Transaction:
        sender = self.wallet_store.get(from_public_key) if from_public_key else None
        if sender is None:
            raise NoSenderSelected()
        return await self.transactions.submit(sender, to_address, amount)

    async def mine(self, miner_public_key: str) -> MiningResult:
        miner = self.wallet_store.get(miner_public_key) if miner_public_key else None
        if miner is None:
            raise NoMinerSelected()
        return await self.mining.mine(miner)

    def transaction_history(self) -> list[TransactionRecord]:
        return self.transactions.recent()

    def mining_history(self) -> list[MiningRecord]:
        return self.mining.history.entries()
