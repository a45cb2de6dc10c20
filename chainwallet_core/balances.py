"""
Best-effort balance refresh for every known wallet.

One ``fetch_balance`` per wallet runs concurrently.  A failure for one
address maps that address to 0 and never aborts the others: balances are
display data only, the node does all authoritative validation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from chainwallet_core.errors import RemoteError
from chainwallet_core.formatting import format_hash
from chainwallet_core.models import Wallet

if TYPE_CHECKING:
    from chainwallet_core.client import LedgerClient

logger = logging.getLogger("chainwallet_balances")


class BalanceCache:
    """Last observed balance per public key."""

    def __init__(self, client: LedgerClient):
        self._client = client
        self._balances: dict[str, float] = {}

    async def _fetch_one(self, address: str, result: dict[str, float]) -> None:
        try:
            balance = await self._client.fetch_balance(address)
        except RemoteError as exc:
            logger.warning(f"Balance fetch failed for {format_hash(address)}: {exc}")
            balance = 0
        # Last completed fetch for an address wins.
        result[address] = balance
        self._balances[address] = balance

    async def refresh(self, wallets: Iterable[Wallet]) -> dict[str, float]:
        """Fetch every wallet's balance; returns ``{public_key: balance}``."""
        addresses = list(dict.fromkeys(w.public_key for w in wallets))
        result: dict[str, float] = {}
        await asyncio.gather(*(self._fetch_one(a, result) for a in addresses))
        # Keep the caller's wallet order.
        return {a: result[a] for a in addresses}

    def get(self, address: str) -> float:
        return self._balances.get(address, 0)

    def snapshot(self) -> dict[str, float]:
        return dict(self._balances)

    def total(self, wallets: Iterable[Wallet] | None = None) -> float:
        if wallets is None:
            return sum(self._balances.values())
        return sum(self._balances.get(w.public_key, 0) for w in wallets)

    def forget(self, address: str) -> None:
        self._balances.pop(address, None)
