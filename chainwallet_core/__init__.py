"""
ChainWallet - client-side wallet and chain-sync core for an HTTP ledger node.

Key features:
- Typed asyncio client for the remote ledger's REST surface
- Durable local wallet set (create, import, delete) with rollback on failed writes
- Best-effort balance refresh across every known wallet
- Transfer and mining workflows with bounded, persisted history logs
- Read-only chain projection for dashboards and block explorers
- AES-GCM encrypted wallet backups
"""

__version__ = "1.0.0"
__all__ = [
    "models",
    "errors",
    "storage",
    "client",
    "wallet_store",
    "backup",
    "balances",
    "history",
    "transactions",
    "mining",
    "chain_view",
    "formatting",
    "config",
    "logging_config",
    "backend",
]
