"""
Async HTTP client for the remote ledger node.

Built on ``aiohttp``.  Every method is a single request with no retries;
callers decide whether re-issuing a request is safe (``submit_transaction``
and ``trigger_mining`` have side effects on the node).

Endpoints consumed
------------------
GET  /blockchain            {chain, pendingTransactions, length}
GET  /wallet/new            {publicKey, privateKey}
GET  /balance/<address>     {address, balance}
POST /transaction           {message, transaction}
POST /mine                  {message, lastBlock}

Error mapping
-------------
- connection refused / DNS / timeout / HTTP 502, 503, 504 -> RemoteUnavailable
- any other HTTP status >= 400                           -> RemoteRejected
- a body that is not text, or not the expected JSON shape -> RemoteRejected

Usage:
    async with LedgerClient("http://127.0.0.1:3000") as client:
        snapshot = await client.fetch_snapshot()
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from chainwallet_core.errors import RemoteRejected, RemoteUnavailable
from chainwallet_core.models import Block, ChainSnapshot, Transaction

logger = logging.getLogger("chainwallet_client")

# Statuses that mean "the node is not reachable right now" rather than
# "the node refused this request".
_UNAVAILABLE_STATUSES = frozenset({502, 503, 504})


def _reason_from_body(body: Any, fallback: str) -> str:
    """Pull the server's human-readable reason out of an error body."""
    if isinstance(body, dict):
        for key in ("error", "message", "reason"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(body, str) and body.strip():
        return body.strip()[:500]
    return fallback


class LedgerClient:
    """Typed wrapper around the node's five REST operations."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        *,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    # ── lifecycle ────────────────────────────────────────────────

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> LedgerClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ── transport ────────────────────────────────────────────────

    async def _request(self, method: str, path: str, payload: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            async with self._get_session().request(method, url, json=payload) as resp:
                raw = await resp.read()
                try:
                    text = raw.decode(resp.charset or "utf-8")
                except (UnicodeDecodeError, LookupError) as exc:
                    raise RemoteRejected(f"malformed response from {path}: undecodable body") from exc
                try:
                    body: Any = json.loads(text) if text else None
                except ValueError:
                    body = text
                if resp.status >= 400:
                    reason = _reason_from_body(body, resp.reason or "request failed")
                    if resp.status in _UNAVAILABLE_STATUSES:
                        raise RemoteUnavailable(f"{method} {path}: HTTP {resp.status} {reason}")
                    raise RemoteRejected(reason, status=resp.status)
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as exc:
            raise RemoteUnavailable(f"{method} {path}: {str(exc) or type(exc).__name__}") from exc
        except aiohttp.ClientError as exc:
            raise RemoteUnavailable(f"{method} {path}: {exc}") from exc

        if not isinstance(body, dict):
            raise RemoteRejected(f"malformed response from {path}: expected a JSON object")
        return body

    # ── operations ───────────────────────────────────────────────

    async def fetch_snapshot(self) -> ChainSnapshot:
        body = await self._request("GET", "/blockchain")
        try:
            return ChainSnapshot.from_dict(body)
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteRejected(f"malformed chain snapshot: {exc}") from exc

    async def check_connection(self) -> bool:
        """Probe the node; raises RemoteUnavailable / RemoteRejected on failure."""
        await self.fetch_snapshot()
        return True

    async def mint_wallet(self) -> tuple[str, str]:
        """Ask the node for a fresh key pair.  Returns ``(public_key, private_key)``."""
        body = await self._request("GET", "/wallet/new")
        public_key = body.get("publicKey")
        private_key = body.get("privateKey")
        if not isinstance(public_key, str) or not public_key:
            raise RemoteRejected("malformed wallet response: missing publicKey")
        if not isinstance(private_key, str) or not private_key:
            raise RemoteRejected("malformed wallet response: missing privateKey")
        return public_key, private_key

    async def fetch_balance(self, address: str) -> float:
        body = await self._request("GET", f"/balance/{quote(address, safe='')}")
        balance = body.get("balance", 0)
        if balance is None:
            return 0
        if isinstance(balance, bool) or not isinstance(balance, (int, float)):
            try:
                return float(balance)
            except (TypeError, ValueError) as exc:
                raise RemoteRejected(f"malformed balance for {address[:16]}: {balance!r}") from exc
        return balance

    async def submit_transaction(
        self,
        from_address: str,
        to_address: str,
        amount: float,
        signing_secret: str,
    ) -> Transaction:
        body = await self._request("POST", "/transaction", {
            "fromAddress": from_address,
            "toAddress": to_address,
            "amount": amount,
            "privateKey": signing_secret,
        })
        try:
            return Transaction.from_dict(body["transaction"])
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteRejected(f"malformed transaction response: {exc}") from exc

    async def trigger_mining(self, miner_address: str) -> Block:
        body = await self._request("POST", "/mine", {"minerAddress": miner_address})
        try:
            return Block.from_dict(body["lastBlock"])
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteRejected(f"malformed mining response: {exc}") from exc
