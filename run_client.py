#!/usr/bin/env python3
"""
ChainWallet client — connects to a ledger node and offers an interactive
prompt for managing wallets, sending transfers and mining.

Usage:
    python run_client.py --server-url http://127.0.0.1:3000
    python run_client.py --config chainwallet.toml --command "wallets"

Environment variables (alternative to flags):
    CHAINWALLET_SERVER_URL, CHAINWALLET_DB_PATH, CHAINWALLET_LOG_LEVEL, CHAINWALLET_LOG_FMT
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import getpass
import json
import logging
import os
import shlex
import sys

# ---------------------------------------------------------------------------
# Ensure the project root is in sys.path so imports work before pip install
# ---------------------------------------------------------------------------
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from chainwallet_core.backend import WalletBackend  # noqa: E402
from chainwallet_core.config import load_config  # noqa: E402
from chainwallet_core.errors import ChainWalletError, RemoteError  # noqa: E402
from chainwallet_core.formatting import (  # noqa: E402
    format_address,
    format_amount,
    format_hash,
    format_timestamp,
)
from chainwallet_core.logging_config import setup_logging  # noqa: E402

logger = logging.getLogger("client")

HELP = """
  status                      - Node summary (blocks, pending, latest block)
  chain [n]                   - Newest n blocks (default 5)
  block <i>                   - Block details, i = 0 is the newest
  pending                     - Pending transactions
  wallets                     - List wallets with last known balances
  create <label>              - Mint a new wallet on the node
  import <pub> <priv> <label> - Add an existing key pair
  delete <pub>                - Forget a wallet (irreversible)
  balances                    - Refresh balances from the node
  send <from> <to> <amount>   - Submit a transfer
  mine <miner>                - Mine pending transactions for a wallet
  history                     - Recent transfers
  mined                       - Recent mined blocks
  export <pub> <file>         - Write an encrypted wallet backup
  restore <file> [label]      - Import an encrypted wallet backup
  help                        - Show this help
  quit                        - Exit
"""


def _resolve(backend: WalletBackend, ref: str) -> str:
    """Accept a full public key, a wallet label, or a 1-based list index."""
    for w in backend.wallets():
        if ref in (w.public_key, w.label):
            return w.public_key
    if ref.isdigit():
        wallets = backend.wallets()
        idx = int(ref) - 1
        if 0 <= idx < len(wallets):
            return wallets[idx].public_key
    return ref


async def run_command(backend: WalletBackend, line: str) -> bool:
    """Execute one prompt line.  Returns False when the user asked to quit."""
    parts = shlex.split(line)
    if not parts:
        return True
    cmd, args = parts[0].lower(), parts[1:]
    labels = backend.wallet_store.labels()

    if cmd == "help":
        print(HELP)

    elif cmd == "status":
        if not backend.chain.has_snapshot:
            await backend.refresh_chain()
        print(json.dumps(backend.dashboard(), indent=2, default=str))

    elif cmd == "chain":
        await backend.refresh_chain()
        limit = int(args[0]) if args else 5
        for i, b in enumerate(backend.chain.blocks_newest_first(limit)):
            print(f"  #{backend.chain.height_of(i)}  {format_hash(b.hash, head=8, tail=8)}  "
                  f"{format_timestamp(b.timestamp)}  txs={len(b.transactions)}")

    elif cmd == "block":
        if not args:
            print("  Usage: block <reverse_index>")
            return True
        if not backend.chain.has_snapshot:
            await backend.refresh_chain()
        idx = int(args[0])
        b = backend.chain.block_at(idx)
        print(f"  Height:        {backend.chain.height_of(idx)}")
        print(f"  Hash:          {b.hash}")
        print(f"  Previous hash: {b.previous_hash}")
        print(f"  Nonce:         {b.nonce}")
        print(f"  Time:          {format_timestamp(b.timestamp)}")
        for tx in b.transactions:
            print(f"    {format_address(tx.from_address, labels)} -> "
                  f"{format_address(tx.to_address, labels)}  {format_amount(tx.amount)}")

    elif cmd == "pending":
        await backend.refresh_chain()
        pending = backend.chain.pending_transactions()
        if not pending:
            print("  No pending transactions")
        for tx in pending:
            print(f"  {format_address(tx.from_address, labels)} -> "
                  f"{format_address(tx.to_address, labels)}  {format_amount(tx.amount)}")

    elif cmd == "wallets":
        wallets = backend.wallets()
        if not wallets:
            print("  No wallets yet. Use 'create <label>'.")
        for i, w in enumerate(wallets, start=1):
            print(f"  {i}. {w.label:<16} {format_hash(w.public_key, head=8, tail=4)}  "
                  f"balance={format_amount(backend.balances.get(w.public_key))}")

    elif cmd == "create":
        if not args:
            print("  Usage: create <label>")
            return True
        w = await backend.create_wallet(" ".join(args))
        print(f"  Created '{w.label}': {w.public_key}")

    elif cmd == "import":
        if len(args) < 3:
            print("  Usage: import <public_key> <private_key> <label>")
            return True
        w = backend.import_wallet(args[0], args[1], " ".join(args[2:]))
        print(f"  Imported '{w.label}'")

    elif cmd == "delete":
        if not args:
            print("  Usage: delete <public_key|label|#>")
            return True
        backend.delete_wallet(_resolve(backend, args[0]))
        print("  Deleted")

    elif cmd == "balances":
        balances = await backend.refresh_balances()
        for pk, bal in balances.items():
            print(f"  {format_address(pk, labels)}: {format_amount(bal)}")
        print(f"  Total: {format_amount(sum(balances.values()))}")

    elif cmd == "send":
        if len(args) < 3:
            print("  Usage: send <from> <to> <amount>")
            return True
        try:
            amount = float(args[2])
        except ValueError:
            print(f"  Not a number: {args[2]}")
            return True
        tx = await backend.send(_resolve(backend, args[0]), _resolve(backend, args[1]), amount)
        print(f"  Submitted {format_amount(tx.amount)} to "
              f"{format_address(tx.to_address, labels)}; waiting to be mined")

    elif cmd == "mine":
        if not args:
            print("  Usage: mine <miner>")
            return True
        print("  Mining...")
        result = await backend.mine(_resolve(backend, args[0]))
        print(f"  Mined block {format_hash(result.block.hash)} with "
              f"{len(result.block.transactions)} txs, reward {format_amount(result.reward)}")

    elif cmd == "history":
        records = backend.transaction_history()
        if not records:
            print("  No transactions yet")
        for r in records:
            tx = r.transaction
            print(f"  {format_timestamp(r.recorded_at)}  {format_address(tx.from_address, labels)} -> "
                  f"{format_address(tx.to_address, labels)}  {format_amount(tx.amount)}")

    elif cmd == "mined":
        records = backend.mining_history()
        if not records:
            print("  No blocks mined yet")
        for r in records:
            print(f"  {format_timestamp(r.recorded_at)}  {format_hash(r.block.hash)}  "
                  f"miner={format_address(r.miner_address, labels)}  reward={format_amount(r.reward)}")
        print(f"  Total reward: {format_amount(backend.mining.total_reward())}")

    elif cmd == "export":
        if len(args) < 2:
            print("  Usage: export <public_key|label|#> <file>")
            return True
        passphrase = getpass.getpass("  Backup passphrase: ")
        data = backend.export_wallet(_resolve(backend, args[0]), passphrase)
        with open(args[1], "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        print(f"  Encrypted backup written to {args[1]}")

    elif cmd == "restore":
        if not args:
            print("  Usage: restore <file> [label]")
            return True
        with open(args[0], encoding="utf-8") as f:
            data = json.load(f)
        passphrase = getpass.getpass("  Backup passphrase: ")
        w = backend.import_backup(data, passphrase, " ".join(args[1:]) or None)
        print(f"  Restored '{w.label}'")

    elif cmd in ("quit", "exit", "q"):
        return False

    else:
        print(f"  Unknown command: {cmd}. Type 'help'.")

    return True


async def interactive_cli(backend: WalletBackend) -> None:
    loop = asyncio.get_running_loop()
    print(HELP)
    while True:
        try:
            line = await loop.run_in_executor(None, lambda: input("\n[chainwallet] > "))
            if not await run_command(backend, line):
                break
        except (EOFError, KeyboardInterrupt):
            print()
            break
        except (ChainWalletError, ValueError, IndexError, OSError) as e:
            print(f"  Error: {e}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="ChainWallet client")
    p.add_argument("--config", default=None, help="Path to chainwallet.toml config file")
    p.add_argument("--server-url", default=None, help="Ledger node base URL")
    p.add_argument("--db-path", default=None, help="SQLite file for wallets and history")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    p.add_argument("--log-format", choices=["human", "json"], default=None)
    p.add_argument("--command", default=None,
                   help="Run a single command and exit instead of prompting")
    return p.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Load config (TOML + env overrides); CLI flags override both
    cfg = load_config(args.config)
    if args.server_url:
        cfg.remote.base_url = args.server_url
    if args.db_path:
        cfg.storage.path = args.db_path
    if args.log_level:
        cfg.logging.level = args.log_level.upper()
    if args.log_format:
        cfg.logging.format = args.log_format
    setup_logging(cfg.logging.level, cfg.logging.format, cfg.logging.file)

    async with WalletBackend(cfg) as backend:
        try:
            await backend.connect()
        except RemoteError as e:
            logger.warning(f"Cannot reach ledger node at {cfg.remote.base_url}: {e}")

        if args.command:
            try:
                await run_command(backend, args.command)
            except (ChainWalletError, ValueError, IndexError, OSError) as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            return 0

        await interactive_cli(backend)
    return 0


def main_sync() -> None:
    """Synchronous entry point for console_scripts."""
    with contextlib.suppress(KeyboardInterrupt):
        sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    main_sync()
