"""
Exception hierarchy for ChainWallet.

Every error raised by the core derives from ``ChainWalletError`` so a front
end can catch the whole family in one place.  Input problems are reported
as ``ValidationError`` subclasses before any remote call is made; failures
talking to the ledger node are ``RemoteError`` subclasses.
"""

from __future__ import annotations

from typing import Any


class ChainWalletError(Exception):
    """Base class for all ChainWallet errors."""


# ── Caller input ─────────────────────────────────────────────────────

class ValidationError(ChainWalletError, ValueError):
    """Bad caller input; never reaches the remote node."""


class EmptyLabel(ValidationError):
    def __init__(self) -> None:
        super().__init__("wallet label must not be empty")


class MissingKeyMaterial(ValidationError):
    def __init__(self, field_name: str) -> None:
        super().__init__(f"{field_name} must not be empty")
        self.field_name = field_name


class NoSenderSelected(ValidationError):
    def __init__(self) -> None:
        super().__init__("no sending wallet selected")


class MissingRecipient(ValidationError):
    def __init__(self) -> None:
        super().__init__("recipient address must not be empty")


class InvalidAmount(ValidationError):
    def __init__(self, amount: Any) -> None:
        super().__init__(f"amount must be a finite number greater than 0, got {amount!r}")
        self.amount = amount


class NoMinerSelected(ValidationError):
    def __init__(self) -> None:
        super().__init__("no mining wallet selected")


class UnknownWallet(ValidationError):
    def __init__(self, public_key: str) -> None:
        super().__init__(f"no local wallet with public key {public_key[:16]}")
        self.public_key = public_key


class InvalidBackup(ValidationError):
    """Wrong passphrase, tampered ciphertext or an unreadable backup dict."""


# ── Local state ──────────────────────────────────────────────────────

class DuplicateWallet(ChainWalletError):
    def __init__(self, public_key: str) -> None:
        super().__init__(f"wallet already exists: {public_key[:16]}")
        self.public_key = public_key


class PersistenceFailure(ChainWalletError):
    """
    The durable key-value store could not be read or written.

    ``result`` is set when the remote side effect had already happened
    (e.g. the transaction was accepted) before the local write failed.
    """

    def __init__(self, message: str, *, key: str | None = None, result: Any = None) -> None:
        super().__init__(message)
        self.key = key
        self.result = result


# ── Remote node ──────────────────────────────────────────────────────

class RemoteError(ChainWalletError):
    """Base class for failures reported by (or while reaching) the node."""


class RemoteUnavailable(RemoteError):
    """Transport-level failure: connection refused, DNS, timeout, gateway errors."""


class RemoteRejected(RemoteError):
    """The node answered but refused the request, or answered nonsense."""

    def __init__(self, reason: str, status: int | None = None) -> None:
        super().__init__(f"{reason} (HTTP {status})" if status else reason)
        self.reason = reason
        self.status = status
