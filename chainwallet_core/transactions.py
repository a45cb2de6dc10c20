"""
Transfer workflow: validate locally, submit to the node, log on success.

No balance is adjusted locally; balances are re-read from the node on the
next refresh.  A rejected or failed submission leaves the history log
untouched and the node's error reaches the caller unchanged.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from chainwallet_core.errors import (
    InvalidAmount,
    MissingRecipient,
    NoSenderSelected,
    PersistenceFailure,
)
from chainwallet_core.formatting import format_hash
from chainwallet_core.history import TransactionHistory
from chainwallet_core.models import Transaction, TransactionRecord, Wallet, now_ms

if TYPE_CHECKING:
    from chainwallet_core.client import LedgerClient

logger = logging.getLogger("chainwallet_transactions")


def validate_amount(amount: object) -> float:
    """Reject non-numbers, NaN, Inf and anything <= 0."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmount(amount)
    if math.isnan(amount) or math.isinf(amount) or amount <= 0:
        raise InvalidAmount(amount)
    return amount


class TransactionWorkflow:
    def __init__(self, client: LedgerClient, history: TransactionHistory):
        self._client = client
        self.history = history

    async def submit(self, sender: Wallet | None, to_address: str, amount: float) -> Transaction:
        if sender is None or not sender.public_key:
            raise NoSenderSelected()
        if not to_address or not to_address.strip():
            raise MissingRecipient()
        amount = validate_amount(amount)

        tx = await self._client.submit_transaction(
            sender.public_key, to_address.strip(), amount, sender.private_key,
        )
        logger.info(
            f"Transaction submitted: {format_hash(sender.public_key)} -> "
            f"{format_hash(tx.to_address)} amount={tx.amount}"
        )
        try:
            self.history.record(TransactionRecord(transaction=tx, recorded_at=now_ms()))
        except PersistenceFailure as exc:
            exc.result = tx
            raise
        return tx

    def recent(self) -> list[TransactionRecord]:
        return self.history.entries()
