"""
Tests for the interactive client's command dispatcher (run_client.py).
"""

from __future__ import annotations

import json

import pytest

import run_client
from chainwallet_core import backup
from chainwallet_core.backend import WalletBackend
from chainwallet_core.errors import NoSenderSelected
from chainwallet_core.models import ChainSnapshot, Transaction
from chainwallet_core.storage import MemoryKeyValueStore
from run_client import parse_args, run_command


@pytest.fixture
def backend(client):
    return WalletBackend(store=MemoryKeyValueStore(), client=client)


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])
        assert args.config is None
        assert args.command is None

    def test_flags(self):
        args = parse_args(["--server-url", "http://n:1", "--log-format", "json", "--command", "wallets"])
        assert args.server_url == "http://n:1"
        assert args.log_format == "json"
        assert args.command == "wallets"


class TestCommands:
    @pytest.mark.asyncio
    async def test_blank_and_help(self, backend, capsys):
        assert await run_command(backend, "   ") is True
        assert await run_command(backend, "help") is True
        assert "create <label>" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_quit(self, backend):
        assert await run_command(backend, "quit") is False

    @pytest.mark.asyncio
    async def test_unknown(self, backend, capsys):
        await run_command(backend, "frobnicate")
        assert "Unknown command" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_create_and_list(self, backend, capsys):
        await run_command(backend, 'create "Main wallet"')
        await run_command(backend, "wallets")
        out = capsys.readouterr().out
        assert "Created 'Main wallet'" in out
        assert "1. Main wallet" in out

    @pytest.mark.asyncio
    async def test_empty_wallet_list(self, backend, capsys):
        await run_command(backend, "wallets")
        assert "No wallets yet" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_send_by_label_and_index(self, backend, client, capsys):
        backend.import_wallet("04alice", "ka", "alice")
        backend.import_wallet("04bob", "kb", "bob")
        await run_command(backend, "send alice 2 12.5")
        assert client.calls_to("submit_transaction") == [
            ("submit_transaction", "04alice", "04bob", 12.5, "ka"),
        ]
        await run_command(backend, "history")
        out = capsys.readouterr().out
        assert "waiting to be mined" in out
        assert "alice (04alic...lice) -> bob (04bob...4bob)" in out
        assert "12.5" in out

    @pytest.mark.asyncio
    async def test_send_non_numeric_amount(self, backend, client, capsys):
        backend.import_wallet("04alice", "ka", "alice")
        await run_command(backend, "send alice 04bob lots")
        assert "Not a number" in capsys.readouterr().out
        assert client.call_count == 0

    @pytest.mark.asyncio
    async def test_send_unknown_sender_raises(self, backend):
        with pytest.raises(NoSenderSelected):
            await run_command(backend, "send ghost 04bob 1")

    @pytest.mark.asyncio
    async def test_mine_and_mined(self, backend, capsys):
        backend.import_wallet("04miner", "km", "miner")
        await run_command(backend, "mine miner")
        await run_command(backend, "mined")
        await backend.mining.wait_background()
        out = capsys.readouterr().out
        assert "reward 100" in out
        assert "Total reward: 100" in out

    @pytest.mark.asyncio
    async def test_status_and_chain(self, backend, client, chain_factory, capsys):
        client.snapshot = chain_factory(3, pending=1)
        await run_command(backend, "status")
        status = json.loads(capsys.readouterr().out)
        assert status["block_count"] == 3
        assert status["pending_count"] == 1

        await run_command(backend, "chain 2")
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 2
        assert lines[0].strip().startswith("#2")

    @pytest.mark.asyncio
    async def test_block_shows_reward_sender(self, backend, client, block_factory, capsys):
        client.snapshot = ChainSnapshot(chain=(
            block_factory(0, transactions=[Transaction(None, "04miner", 100, 0)]),
        ))
        await run_command(backend, "block 0")
        out = capsys.readouterr().out
        assert "Height:        0" in out
        assert "System (mining reward)" in out

    @pytest.mark.asyncio
    async def test_block_out_of_range(self, backend):
        with pytest.raises(IndexError):
            await run_command(backend, "block 3")

    @pytest.mark.asyncio
    async def test_balances(self, backend, client, capsys):
        backend.import_wallet("04alice", "ka", "alice")
        backend.import_wallet("04bob", "kb", "bob")
        client.balances = {"04alice": 30}
        client.failing_balances = {"04bob"}
        await run_command(backend, "balances")
        out = capsys.readouterr().out
        assert "Total: 30" in out

    @pytest.mark.asyncio
    async def test_delete_by_label(self, backend, capsys):
        backend.import_wallet("04alice", "ka", "alice")
        await run_command(backend, "delete alice")
        assert backend.wallets() == []

    @pytest.mark.asyncio
    async def test_export_and_restore(self, backend, client, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(run_client.getpass, "getpass", lambda prompt="": "pw")
        original = backup.export_encrypted
        monkeypatch.setattr(
            backup, "export_encrypted",
            lambda wallet, passphrase, **kw: original(wallet, passphrase, iterations=1_000),
        )
        backend.import_wallet("04alice", "ka", "alice")
        path = tmp_path / "alice.json"
        await run_command(backend, f"export alice {path}")
        assert json.loads(path.read_text())["public_key"] == "04alice"

        other = WalletBackend(store=MemoryKeyValueStore(), client=client)
        await run_command(other, f"restore {path} restored")
        assert other.wallets()[0].label == "restored"
        assert other.wallets()[0].private_key == "ka"
