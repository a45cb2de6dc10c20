"""
Tests for BalanceCache — concurrent, best-effort balance refresh.
"""

from __future__ import annotations

import pytest

from chainwallet_core.balances import BalanceCache
from chainwallet_core.models import Wallet


def _wallets(*keys: str) -> list[Wallet]:
    return [Wallet(k, f"priv-{k}", k.upper()) for k in keys]


class TestRefresh:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_others(self, client):
        client.balances = {"a": 10, "b": 20, "c": 30}
        client.failing_balances = {"b"}
        cache = BalanceCache(client)
        result = await cache.refresh(_wallets("a", "b", "c"))
        assert result == {"a": 10, "b": 0, "c": 30}
        assert len(client.calls_to("fetch_balance")) == 3

    @pytest.mark.asyncio
    async def test_rejected_lookup_is_zero(self, client, rejecting):
        client.balances = {"a": 5, "b": 9, "c": 5}
        original = client.fetch_balance

        async def fetch_balance(address):
            if address == "b":
                raise rejecting("malformed response from /balance/b: undecodable body")
            return await original(address)

        client.fetch_balance = fetch_balance
        result = await BalanceCache(client).refresh(_wallets("a", "b", "c"))
        assert result == {"a": 5, "b": 0, "c": 5}

    @pytest.mark.asyncio
    async def test_keeps_wallet_order(self, client):
        client.balances = {"z": 1, "y": 2, "x": 3}
        result = await BalanceCache(client).refresh(_wallets("z", "y", "x"))
        assert list(result) == ["z", "y", "x"]

    @pytest.mark.asyncio
    async def test_duplicate_addresses_fetched_once(self, client):
        client.balances = {"a": 5}
        wallets = _wallets("a") + _wallets("a")
        result = await BalanceCache(client).refresh(wallets)
        assert result == {"a": 5}
        assert len(client.calls_to("fetch_balance")) == 1

    @pytest.mark.asyncio
    async def test_no_wallets(self, client):
        assert await BalanceCache(client).refresh([]) == {}
        assert client.call_count == 0

    @pytest.mark.asyncio
    async def test_unknown_address_is_zero(self, client):
        result = await BalanceCache(client).refresh(_wallets("fresh"))
        assert result == {"fresh": 0}


class TestCache:
    @pytest.mark.asyncio
    async def test_get_and_total(self, client):
        client.balances = {"a": 10, "b": 2.5}
        cache = BalanceCache(client)
        wallets = _wallets("a", "b")
        await cache.refresh(wallets)
        assert cache.get("a") == 10
        assert cache.get("unknown") == 0
        assert cache.total() == 12.5
        assert cache.total(wallets[:1]) == 10

    @pytest.mark.asyncio
    async def test_later_refresh_overwrites(self, client):
        client.balances = {"a": 10}
        cache = BalanceCache(client)
        await cache.refresh(_wallets("a"))
        client.balances["a"] = 4
        await cache.refresh(_wallets("a"))
        assert cache.snapshot() == {"a": 4}

    @pytest.mark.asyncio
    async def test_forget(self, client):
        client.balances = {"a": 10}
        cache = BalanceCache(client)
        await cache.refresh(_wallets("a"))
        cache.forget("a")
        cache.forget("a")
        assert cache.snapshot() == {}
