"""
TOML-based configuration for ChainWallet.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from chainwallet_core.config import load_config
    cfg = load_config("chainwallet.toml")
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


@dataclass
class RemoteConfig:
    """Where the ledger node lives and how long to wait for it."""
    base_url: str = "http://127.0.0.1:3000"
    timeout_seconds: float = 10.0


@dataclass
class StorageConfig:
    """Local persistence of wallets and history logs."""
    backend: str = "sqlite"   # "sqlite" or "memory"
    path: str = "data/chainwallet.db"


@dataclass
class HistoryConfig:
    """How many recent transactions / mined blocks to keep."""
    capacity: int = 10


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class ChainWalletConfig:
    """Top-level configuration container."""
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def load_config(path: str | None = None) -> ChainWalletConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        CHAINWALLET_SERVER_URL -> remote.base_url
        CHAINWALLET_TIMEOUT    -> remote.timeout_seconds
        CHAINWALLET_STORAGE    -> storage.backend
        CHAINWALLET_DB_PATH    -> storage.path
        CHAINWALLET_LOG_LEVEL  -> logging.level
        CHAINWALLET_LOG_FMT    -> logging.format
    """
    cfg = ChainWalletConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("remote", cfg.remote),
                ("storage", cfg.storage),
                ("history", cfg.history),
                ("logging", cfg.logging),
            ]:
                if isinstance(data.get(section_name), dict):
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("CHAINWALLET_SERVER_URL"):
        cfg.remote.base_url = v
    if v := os.environ.get("CHAINWALLET_TIMEOUT"):
        cfg.remote.timeout_seconds = float(v)
    if v := os.environ.get("CHAINWALLET_STORAGE"):
        cfg.storage.backend = v.lower()
    if v := os.environ.get("CHAINWALLET_DB_PATH"):
        cfg.storage.path = v
    if v := os.environ.get("CHAINWALLET_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("CHAINWALLET_LOG_FMT"):
        cfg.logging.format = v

    if cfg.history.capacity < 1:
        raise ValueError("history.capacity must be at least 1")
    return cfg
