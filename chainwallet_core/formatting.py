"""
Display-only string helpers shared by every front end.

Nothing here feeds back into core logic; callers picking a different
head/tail width (the 8/4 variant on some pages) is purely cosmetic.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

ELLIPSIS = "..."
REWARD_SENDER_LABEL = "System (mining reward)"


def format_hash(value: str, truncate: bool = True, head: int = 6, tail: int = 6) -> str:
    """Shorten *value* to its first *head* and last *tail* characters."""
    if not truncate:
        return value
    return f"{value[:head]}{ELLIPSIS}{value[len(value) - tail:]}"


def format_address(
    address: str | None,
    labels: Mapping[str, str] | None = None,
    full: bool = False,
) -> str:
    """Render an address with its wallet label when known."""
    if not address:
        return REWARD_SENDER_LABEL
    shown = format_hash(address, truncate=not full, head=6, tail=4)
    label = (labels or {}).get(address)
    if label:
        return f"{label} ({shown})"
    return shown


def format_timestamp(ms: float) -> str:
    """Millisecond epoch -> local ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:.8f}".rstrip("0")
