"""
Tests for chainwallet_core.models — wire / storage shapes of the value types.
"""

from __future__ import annotations

import math

import pytest

from chainwallet_core.models import (
    Block,
    ChainSnapshot,
    MiningRecord,
    Transaction,
    TransactionRecord,
    Wallet,
)

NODE_BLOCK = {
    "timestamp": 1_700_000_000_000,
    "transactions": [
        {"fromAddress": "alice", "toAddress": "bob", "amount": 5, "timestamp": 1, "signature": "3045"},
        {"fromAddress": None, "toAddress": "miner", "amount": 100, "timestamp": 2},
    ],
    "previousHash": "00ab",
    "hash": "00cd",
    "nonce": 1234,
}


class TestTransaction:
    def test_from_dict_reads_camel_case(self):
        tx = Transaction.from_dict(NODE_BLOCK["transactions"][0])
        assert tx.from_address == "alice"
        assert tx.to_address == "bob"
        assert tx.amount == 5
        assert tx.signature == "3045"
        assert not tx.is_reward

    def test_reward_has_no_sender(self):
        tx = Transaction.from_dict(NODE_BLOCK["transactions"][1])
        assert tx.is_reward
        assert "signature" not in tx.to_dict()

    def test_zero_amount_from_node_accepted(self):
        tx = Transaction.from_dict({"fromAddress": None, "toAddress": "m", "amount": 0})
        assert tx.amount == 0
        assert tx.is_reward

    @pytest.mark.parametrize("amount", [math.nan, math.inf, "10", True])
    def test_non_numeric_amount_rejected(self, amount):
        with pytest.raises((TypeError, ValueError)):
            Transaction("a", "b", amount, 0)

    def test_missing_recipient_is_key_error(self):
        with pytest.raises(KeyError):
            Transaction.from_dict({"fromAddress": "a", "amount": 1})

    def test_immutable(self):
        tx = Transaction("a", "b", 1, 0)
        with pytest.raises(AttributeError):
            tx.amount = 2  # type: ignore[misc]


class TestBlock:
    def test_from_dict(self):
        block = Block.from_dict(NODE_BLOCK)
        assert block.previous_hash == "00ab"
        assert block.hash == "00cd"
        assert block.nonce == 1234
        assert len(block.transactions) == 2

    def test_to_dict_matches_node_shape(self):
        d = Block.from_dict(NODE_BLOCK).to_dict()
        assert d["previousHash"] == "00ab"
        assert d["transactions"][1]["fromAddress"] is None

    def test_reward_for_miner(self):
        block = Block.from_dict(NODE_BLOCK)
        assert block.reward_for("miner") == 100

    def test_reward_for_other_address_is_zero(self):
        block = Block.from_dict(NODE_BLOCK)
        # "bob" receives a transfer, not a reward
        assert block.reward_for("bob") == 0


class TestChainSnapshot:
    def test_from_dict(self):
        snap = ChainSnapshot.from_dict({
            "chain": [NODE_BLOCK],
            "pendingTransactions": [{"fromAddress": "x", "toAddress": "y", "amount": 1, "timestamp": 3}],
            "length": 1,
        })
        assert snap.length == 1
        assert len(snap.pending_transactions) == 1

    def test_missing_pending_means_empty(self):
        snap = ChainSnapshot.from_dict({"chain": []})
        assert snap.pending_transactions == ()

    def test_to_dict_includes_length(self):
        assert ChainSnapshot().to_dict() == {"chain": [], "pendingTransactions": [], "length": 0}


class TestWallet:
    def test_round_trip_keys(self):
        w = Wallet.from_dict({"publicKey": "pub", "privateKey": "priv", "label": "Main"})
        assert w.to_dict() == {"publicKey": "pub", "privateKey": "priv", "label": "Main"}

    def test_repr_hides_private_key(self):
        w = Wallet("pub", "super-secret", "Main")
        assert "super-secret" not in repr(w)
        assert "pub" in repr(w)


class TestHistoryRecords:
    def test_transaction_record_shape(self):
        rec = TransactionRecord(Transaction("a", "b", 1, 0), recorded_at=99)
        assert rec.to_dict() == {
            "transaction": {"fromAddress": "a", "toAddress": "b", "amount": 1, "timestamp": 0},
            "recordedAt": 99,
        }

    def test_transaction_record_accepts_legacy_shape(self):
        rec = TransactionRecord.from_dict({
            "tx": {"fromAddress": "a", "toAddress": "b", "amount": 2, "timestamp": 0},
            "timestamp": 1234,
        })
        assert rec.transaction.amount == 2
        assert rec.recorded_at == 1234

    def test_mining_record_accepts_legacy_shape(self):
        rec = MiningRecord.from_dict({
            "block": NODE_BLOCK,
            "timestamp": 55,
            "minerAddress": "miner",
            "reward": 100,
        })
        assert rec.recorded_at == 55
        assert rec.block.hash == "00cd"
        assert rec.to_dict()["recordedAt"] == 55
