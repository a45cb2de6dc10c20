"""
Value types shared by every ChainWallet component.

All types are immutable and convert to / from the camelCase JSON used both
on the wire (ledger node REST API) and in the local key-value store:

    Transaction        {fromAddress, toAddress, amount, timestamp, signature?}
    Block              {timestamp, transactions, previousHash, hash, nonce}
    ChainSnapshot      {chain, pendingTransactions, length}
    Wallet             {publicKey, privateKey, label}
    TransactionRecord  {transaction, recordedAt}
    MiningRecord       {block, recordedAt, minerAddress, reward}

``from_dict`` raises ``KeyError`` / ``TypeError`` / ``ValueError`` on a
malformed payload; callers decide how to surface that.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any


def now_ms() -> int:
    """Current wall-clock time as a millisecond epoch (the node's unit)."""
    return int(time.time() * 1000)


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"{name} must be finite")
    return value


@dataclass(frozen=True)
class Transaction:
    """A transfer, or a mining reward when ``from_address`` is None."""
    from_address: str | None
    to_address: str
    amount: float
    timestamp: float
    signature: str | None = None

    def __post_init__(self) -> None:
        # Only finiteness here: node-produced entries (e.g. a 0 reward) are
        # taken as given. Positive amounts are enforced before submitting.
        _number(self.amount, "amount")

    @property
    def is_reward(self) -> bool:
        return self.from_address is None

    @classmethod
    def from_dict(cls, data: dict) -> Transaction:
        return cls(
            from_address=data.get("fromAddress"),
            to_address=str(data["toAddress"]),
            amount=_number(data["amount"], "amount"),
            timestamp=_number(data.get("timestamp", 0), "timestamp"),
            signature=data.get("signature"),
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "fromAddress": self.from_address,
            "toAddress": self.to_address,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }
        if self.signature is not None:
            d["signature"] = self.signature
        return d


@dataclass(frozen=True)
class Block:
    """A mined block exactly as the node returned it.  Never recomputed locally."""
    timestamp: float
    transactions: tuple[Transaction, ...]
    previous_hash: str
    hash: str
    nonce: int

    def reward_for(self, miner_address: str) -> float:
        """Amount of the reward transaction paid to *miner_address*, or 0."""
        for tx in self.transactions:
            if tx.from_address is None and tx.to_address == miner_address:
                return tx.amount
        return 0

    @classmethod
    def from_dict(cls, data: dict) -> Block:
        return cls(
            timestamp=_number(data["timestamp"], "timestamp"),
            transactions=tuple(Transaction.from_dict(t) for t in data.get("transactions", [])),
            previous_hash=str(data["previousHash"]),
            hash=str(data["hash"]),
            nonce=int(data.get("nonce", 0)),
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "transactions": [t.to_dict() for t in self.transactions],
            "previousHash": self.previous_hash,
            "hash": self.hash,
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class ChainSnapshot:
    """Confirmed blocks plus the pending pool, replaced wholesale on every fetch."""
    chain: tuple[Block, ...] = ()
    pending_transactions: tuple[Transaction, ...] = ()

    @property
    def length(self) -> int:
        return len(self.chain)

    @classmethod
    def from_dict(cls, data: dict) -> ChainSnapshot:
        return cls(
            chain=tuple(Block.from_dict(b) for b in data["chain"]),
            pending_transactions=tuple(
                Transaction.from_dict(t) for t in data.get("pendingTransactions", [])
            ),
        )

    def to_dict(self) -> dict:
        return {
            "chain": [b.to_dict() for b in self.chain],
            "pendingTransactions": [t.to_dict() for t in self.pending_transactions],
            "length": self.length,
        }


@dataclass(frozen=True)
class Wallet:
    """A locally held key pair.  Identity is ``public_key``."""
    public_key: str
    private_key: str = field(repr=False)
    label: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Wallet:
        return cls(
            public_key=str(data["publicKey"]),
            private_key=str(data["privateKey"]),
            label=str(data.get("label", "")),
        )

    def to_dict(self) -> dict:
        return {
            "publicKey": self.public_key,
            "privateKey": self.private_key,
            "label": self.label,
        }


@dataclass(frozen=True)
class TransactionRecord:
    """One entry of the local "recent transactions" log."""
    transaction: Transaction
    recorded_at: int

    @classmethod
    def from_dict(cls, data: dict) -> TransactionRecord:
        # The browser client stored {tx, timestamp}
        tx = data["transaction"] if "transaction" in data else data["tx"]
        recorded = data["recordedAt"] if "recordedAt" in data else data["timestamp"]
        return cls(Transaction.from_dict(tx), int(recorded))

    def to_dict(self) -> dict:
        return {"transaction": self.transaction.to_dict(), "recordedAt": self.recorded_at}


@dataclass(frozen=True)
class MiningRecord:
    """One entry of the local mining history log."""
    block: Block
    recorded_at: int
    miner_address: str
    reward: float

    @classmethod
    def from_dict(cls, data: dict) -> MiningRecord:
        recorded = data["recordedAt"] if "recordedAt" in data else data["timestamp"]
        return cls(
            block=Block.from_dict(data["block"]),
            recorded_at=int(recorded),
            miner_address=str(data["minerAddress"]),
            reward=_number(data.get("reward", 0), "reward"),
        )

    def to_dict(self) -> dict:
        return {
            "block": self.block.to_dict(),
            "recordedAt": self.recorded_at,
            "minerAddress": self.miner_address,
            "reward": self.reward,
        }
