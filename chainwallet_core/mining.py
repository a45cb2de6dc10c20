"""
Mining workflow: ask the node to mine for one of our wallets and log the result.

After a successful mine the pending-pool view is refreshed in the
background.  That refresh is fire-and-forget: its failure is logged and
never turns a successful mine into an error.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, NamedTuple

from chainwallet_core.errors import NoMinerSelected, PersistenceFailure
from chainwallet_core.formatting import format_hash
from chainwallet_core.history import MiningHistory
from chainwallet_core.models import Block, MiningRecord, Wallet, now_ms

if TYPE_CHECKING:
    from chainwallet_core.chain_view import ChainView
    from chainwallet_core.client import LedgerClient

logger = logging.getLogger("chainwallet_mining")


class MiningResult(NamedTuple):
    block: Block
    reward: float


class MiningWorkflow:
    def __init__(
        self,
        client: LedgerClient,
        history: MiningHistory,
        chain_view: ChainView | None = None,
    ):
        self._client = client
        self.history = history
        self._chain_view = chain_view
        # Background task references (prevent GC)
        self._bg_tasks: set[asyncio.Task] = set()

    async def mine(self, miner: Wallet | None) -> MiningResult:
        """Returns ``(block, reward)``; reward is 0 when the block pays us nothing."""
        if miner is None or not miner.public_key:
            raise NoMinerSelected()

        block = await self._client.trigger_mining(miner.public_key)
        reward = block.reward_for(miner.public_key)
        logger.info(
            f"Block mined for {format_hash(miner.public_key)}: "
            f"hash={format_hash(block.hash)} txs={len(block.transactions)} reward={reward}"
        )
        try:
            self.history.record(MiningRecord(
                block=block,
                recorded_at=now_ms(),
                miner_address=miner.public_key,
                reward=reward,
            ))
        except PersistenceFailure as exc:
            exc.result = MiningResult(block, reward)
            raise
        finally:
            self._schedule_pending_refresh()
        return MiningResult(block, reward)

    def _schedule_pending_refresh(self) -> None:
        if self._chain_view is None:
            return
        task = asyncio.ensure_future(self._refresh_pending())
        self._bg_tasks.add(task)
        task.add_done_callback(self._bg_tasks.discard)

    async def _refresh_pending(self) -> None:
        try:
            await self._chain_view.refresh()
        except Exception as exc:
            logger.warning(
                f"Pending-transaction refresh after mining failed: {type(exc).__name__}: {exc}"
            )

    async def wait_background(self) -> None:
        """Wait for outstanding background refreshes (used on shutdown and in tests)."""
        if self._bg_tasks:
            await asyncio.gather(*list(self._bg_tasks), return_exceptions=True)

    def total_reward(self, miner_address: str | None = None) -> float:
        return self.history.total_reward(miner_address)
