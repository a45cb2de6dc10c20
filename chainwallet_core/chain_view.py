"""
Read-only projection of the node's chain and pending pool.

The view holds no durable state: ``refresh`` swaps in the freshly fetched
snapshot wholesale, and every accessor reads the last successful one.  A
failed refresh keeps the previous snapshot and propagates the error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from chainwallet_core.formatting import format_hash
from chainwallet_core.models import Block, ChainSnapshot, Transaction, now_ms

if TYPE_CHECKING:
    from chainwallet_core.client import LedgerClient

logger = logging.getLogger("chainwallet_chain")

DASHBOARD_RECENT_BLOCKS = 5


class ChainView:
    def __init__(self, client: LedgerClient):
        self._client = client
        self._snapshot: ChainSnapshot | None = None
        self.last_refreshed_at: int | None = None

    async def refresh(self) -> ChainSnapshot:
        snapshot = await self._client.fetch_snapshot()
        self._snapshot = snapshot
        self.last_refreshed_at = now_ms()
        logger.debug(
            f"Chain refreshed: {snapshot.length} blocks, "
            f"{len(snapshot.pending_transactions)} pending"
        )
        return snapshot

    @property
    def snapshot(self) -> ChainSnapshot | None:
        return self._snapshot

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot is not None

    def _current(self) -> ChainSnapshot:
        return self._snapshot if self._snapshot is not None else ChainSnapshot()

    # ── derived figures ──────────────────────────────────────────

    @property
    def block_count(self) -> int:
        return self._current().length

    @property
    def pending_count(self) -> int:
        return len(self._current().pending_transactions)

    @property
    def latest_block(self) -> Block | None:
        chain = self._current().chain
        return chain[-1] if chain else None

    def block_at(self, reverse_index: int) -> Block:
        """Block at height ``len(chain) - 1 - reverse_index`` (0 = newest)."""
        chain = self._current().chain
        if reverse_index < 0 or reverse_index >= len(chain):
            raise IndexError(f"reverse index {reverse_index} out of range for {len(chain)} blocks")
        return chain[len(chain) - 1 - reverse_index]

    def height_of(self, reverse_index: int) -> int:
        return self.block_count - 1 - reverse_index

    def blocks_newest_first(self, limit: int | None = None) -> list[Block]:
        blocks = list(reversed(self._current().chain))
        return blocks if limit is None else blocks[:limit]

    def pending_transactions(self) -> list[Transaction]:
        return list(self._current().pending_transactions)

    def summary(self, recent: int = DASHBOARD_RECENT_BLOCKS) -> dict[str, Any]:
        """Figures for a dashboard: counts, latest block and the newest blocks."""
        latest = self.latest_block
        count = self.block_count
        return {
            "block_count": count,
            "pending_count": self.pending_count,
            "latest_block": None if latest is None else {
                "hash": latest.hash,
                "short_hash": format_hash(latest.hash),
                "transaction_count": len(latest.transactions),
                "timestamp": latest.timestamp,
            },
            "recent_blocks": [
                {
                    "height": count - 1 - i,
                    "hash": b.hash,
                    "timestamp": b.timestamp,
                    "transaction_count": len(b.transactions),
                }
                for i, b in enumerate(self.blocks_newest_first(recent))
            ],
            "last_refreshed_at": self.last_refreshed_at,
        }
