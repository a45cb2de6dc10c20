"""
Durable key-value persistence for ChainWallet.

The core only needs two operations from its store:

    load(key) -> str | None
    save(key, value) -> None

Values are JSON documents written whole on every mutation.  Two backends
are provided: ``SQLiteKeyValueStore`` for real use and
``MemoryKeyValueStore`` for tests and throw-away sessions.

Usage:
    store = SQLiteKeyValueStore("data/chainwallet.db")
    store.save("wallets", "[]")
    raw = store.load("wallets")
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from chainwallet_core.errors import PersistenceFailure

logger = logging.getLogger("chainwallet_storage")

WALLETS_KEY = "wallets"
TRANSACTIONS_KEY = "recentTransactions"
MINING_KEY = "miningHistory"


@runtime_checkable
class KeyValueStore(Protocol):
    def load(self, key: str) -> str | None: ...

    def save(self, key: str, value: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store.  Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self._data.get(key)

    def save(self, key: str, value: str) -> None:
        self._data[key] = value

    def close(self) -> None:
        pass


class SQLiteKeyValueStore:
    """Thin SQLite wrapper holding one JSON document per key."""

    def __init__(self, db_path: str = "data/chainwallet.db"):
        self.db_path = db_path
        try:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(db_path)
            self._conn.row_factory = sqlite3.Row
            # busy_timeout prevents "database is locked" under contention
            self._conn.execute("PRAGMA busy_timeout = 5000")
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key   TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            self._conn.commit()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceFailure(f"cannot open store {db_path}: {exc}") from exc
        logger.info(f"Storage opened: {db_path}")

    def load(self, key: str) -> str | None:
        try:
            row = self._conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"cannot read {key!r}: {exc}", key=key) from exc
        return row["value"] if row else None

    def save(self, key: str, value: str) -> None:
        try:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value)
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"cannot write {key!r}: {exc}", key=key) from exc

    def keys(self) -> list[str]:
        rows = self._conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [r["key"] for r in rows]

    # ── lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


# ── JSON helpers ─────────────────────────────────────────────────────

def load_json(store: KeyValueStore, key: str) -> Any:
    """Decode the JSON document under *key*; ``None`` when the key is absent."""
    raw = store.load(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PersistenceFailure(f"corrupt JSON under {key!r}: {exc}", key=key) from exc


def save_json(store: KeyValueStore, key: str, value: Any) -> None:
    """Encode *value* and write it under *key*; any store error becomes PersistenceFailure."""
    payload = json.dumps(value, separators=(",", ":"))
    try:
        store.save(key, payload)
    except PersistenceFailure:
        raise
    except Exception as exc:
        raise PersistenceFailure(f"cannot write {key!r}: {exc}", key=key) from exc
