"""
Merging positions that hold the same security in different accounts
"""

# pylint: disable=invalid-name

import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional
from pnlview.datamodels import Account, Position, Security

logger = logging.getLogger(__name__)


def ratio(numerator: Decimal, denominator: Optional[Decimal]) -> Optional[Decimal]:
    """numerator / denominator, None when the denominator is zero or undefined"""
    if denominator is None or denominator == 0:
        return None
    return numerator / denominator


def gain_percent(gain_amount: Decimal, market_value: Decimal) -> Optional[Decimal]:
    """Gain relative to cost basis (market value - gain)"""
    return ratio(gain_amount, market_value - gain_amount)


def _pick_security(existing: Security, incoming: Security) -> Security:
    """The incoming record wins, unless both are timestamped and it is older"""
    if (
        existing.updated is not None
        and incoming.updated is not None
        and existing.updated > incoming.updated
    ):
        return existing
    return incoming


def merge_positions(existing: Optional[Position], incoming: Position) -> Position:
    """Merge two positions of the same symbol.

    Additive values are summed and the gain percent is recomputed from the
    sums. Neither input is modified.
    """
    if existing is None:
        return incoming
    if existing.symbol != incoming.symbol:
        raise ValueError(f"Cannot merge {existing.symbol} with {incoming.symbol}")

    market_value = existing.market_value + incoming.market_value
    gain_amount = existing.gain_amount + incoming.gain_amount
    return Position(
        security=_pick_security(existing.security, incoming.security),
        quantity=existing.quantity + incoming.quantity,
        book_value=existing.book_value + incoming.book_value,
        market_value=market_value,
        gain_amount=gain_amount,
        gain_currency_amount=existing.gain_currency_amount
        + incoming.gain_currency_amount,
        gain_percent=gain_percent(gain_amount, market_value),
    )


def merge_account_positions(accounts: Iterable[Account]) -> Dict[str, Position]:
    """Fold the positions of all accounts into symbol -> merged position"""
    merged: Dict[str, Position] = {}
    for account in accounts:
        for position in account.positions:
            merged[position.symbol] = merge_positions(
                merged.get(position.symbol), position
            )
    logger.debug("Merged %d symbols", len(merged))
    return merged
