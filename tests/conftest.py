"""
Shared pytest fixtures for the ChainWallet test suite.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make ``run_client`` importable without installing the project
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from chainwallet_core.errors import PersistenceFailure, RemoteRejected, RemoteUnavailable  # noqa: E402
from chainwallet_core.models import Block, ChainSnapshot, Transaction, now_ms  # noqa: E402
from chainwallet_core.storage import MemoryKeyValueStore  # noqa: E402


class FakeLedgerClient:
    """In-process stand-in for LedgerClient that records every call."""

    def __init__(self):
        self.base_url = "http://fake-node"
        self.calls: list[tuple] = []
        self.snapshot = ChainSnapshot()
        self.balances: dict[str, float] = {}
        self.failing_balances: set[str] = set()
        self.failures: dict[str, Exception] = {}
        self.next_block: Block | None = None
        self.reward = 100
        self._minted = 0

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def calls_to(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    def _enter(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    async def fetch_snapshot(self) -> ChainSnapshot:
        self._enter("fetch_snapshot")
        return self.snapshot

    async def check_connection(self) -> bool:
        await self.fetch_snapshot()
        return True

    async def mint_wallet(self) -> tuple[str, str]:
        self._enter("mint_wallet")
        self._minted += 1
        return f"04pub{self._minted:060d}", f"priv{self._minted:060d}"

    async def fetch_balance(self, address: str) -> float:
        self._enter("fetch_balance", address)
        if address in self.failing_balances:
            raise RemoteUnavailable(f"balance lookup for {address} timed out")
        return self.balances.get(address, 0)

    async def submit_transaction(self, from_address, to_address, amount, signing_secret):
        self._enter("submit_transaction", from_address, to_address, amount, signing_secret)
        return Transaction(from_address, to_address, amount, now_ms(), signature="sig")

    async def trigger_mining(self, miner_address: str) -> Block:
        self._enter("trigger_mining", miner_address)
        if self.next_block is not None:
            return self.next_block
        previous = self.snapshot.chain[-1].hash if self.snapshot.chain else "0" * 64
        return Block(
            timestamp=now_ms(),
            transactions=(Transaction(None, miner_address, self.reward, now_ms()),),
            previous_hash=previous,
            hash=f"{len(self.calls_to('trigger_mining')):064x}",
            nonce=42,
        )

    async def close(self) -> None:
        pass


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose writes can be made to fail on demand."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_saves = False
        self.saves: list[str] = []

    def save(self, key: str, value: str) -> None:
        if self.fail_saves:
            raise PersistenceFailure(f"disk full while writing {key}", key=key)
        self.saves.append(key)
        super().save(key, value)


def make_block(index: int, transactions=(), previous_hash: str | None = None) -> Block:
    return Block(
        timestamp=1_700_000_000_000 + index * 1000,
        transactions=tuple(transactions),
        previous_hash=previous_hash or ("0" * 64 if index == 0 else f"{index - 1:064x}"),
        hash=f"{index:064x}",
        nonce=index * 7,
    )


def make_chain(length: int, pending: int = 0) -> ChainSnapshot:
    blocks = tuple(make_block(i) for i in range(length))
    txs = tuple(
        Transaction(f"from{i}", f"to{i}", i + 1, 1_700_000_000_000 + i) for i in range(pending)
    )
    return ChainSnapshot(chain=blocks, pending_transactions=txs)


@pytest.fixture
def store():
    """Fresh store whose writes can be failed with ``store.fail_saves = True``."""
    return FlakyStore()


@pytest.fixture
def client():
    """Fake ledger node client."""
    return FakeLedgerClient()


@pytest.fixture
def rejecting():
    """Factory for RemoteRejected errors."""
    return lambda reason="Insufficient balance": RemoteRejected(reason, status=400)


@pytest.fixture
def block_factory():
    return make_block


@pytest.fixture
def chain_factory():
    return make_chain
