"""
Trading activity: bought and sold securities since a date
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional, Union
from pydantic import BaseModel
from pnlview.datamodels import (
    ActivityReport,
    Position,
    SecurityActivity,
    Transaction,
)
from pnlview.positions import ratio
from pnlview.util import SideEnum

logger = logging.getLogger(__name__)


class ActivityFold(BaseModel):
    """Running totals for one symbol"""

    symbol: str
    currency: str
    shares: Decimal = Decimal(0)
    currency_value: Decimal = Decimal(0)
    value: Decimal = Decimal(0)
    price: Optional[Decimal] = None
    accounts: Dict[str, Decimal] = {}

    def add(self, transaction: Transaction):
        """Fold in one transaction, the average price is kept current"""
        self.shares += transaction.shares
        self.currency_value += transaction.currency_amount
        self.value += transaction.amount
        self.accounts[transaction.account] = (
            self.accounts.get(transaction.account, Decimal(0)) + transaction.shares
        )
        self.price = ratio(self.currency_value, self.shares)

    def activity(self, last_price: Optional[Decimal]) -> SecurityActivity:
        return SecurityActivity(
            symbol=self.symbol,
            currency=self.currency,
            last_price=last_price,
            price=None if self.price is None else abs(self.price),
            value=self.value,
            currency_value=self.currency_value,
            shares=abs(self.shares),
            accounts=dict(self.accounts),
        )


def symbol_price_cache(positions: Iterable[Position]) -> Dict[str, Decimal]:
    """Symbol -> last price of the current snapshot"""
    cache = {}
    for position in positions:
        if position.security.last_price is not None:
            cache[position.symbol] = position.security.last_price
    return cache


def aggregate_activity(
    transactions: Iterable[Transaction],
    from_date: date,
    side: Union[SideEnum, str],
    price_cache: Mapping[str, Decimal],
) -> list[SecurityActivity]:
    """Aggregate buys or sells on or after from_date per symbol, largest value first"""
    side = SideEnum(side)
    folds: Dict[str, ActivityFold] = {}
    for t in transactions:
        if t.date < from_date or t.original_type != side.value:
            continue
        fold = folds.get(t.symbol)
        if fold is None:
            fold = ActivityFold(symbol=t.symbol, currency=t.currency)
            folds[t.symbol] = fold
        fold.add(t)

    result = []
    for symbol, fold in folds.items():
        last_price = price_cache.get(symbol)
        if last_price is None:
            logger.debug("No last price for %s", symbol)
        result.append(fold.activity(last_price))
    return sorted(result, key=lambda s: s.value, reverse=True)


def activity(
    transactions: Iterable[Transaction],
    from_date: date,
    price_cache: Mapping[str, Decimal],
) -> ActivityReport:
    """Bought and sold tables"""
    transactions = list(transactions)
    bought = aggregate_activity(transactions, from_date, SideEnum.BUY, price_cache)
    sold = aggregate_activity(transactions, from_date, SideEnum.SELL, price_cache)
    logger.info(
        "Activity since %s: %d bought, %d sold", from_date, len(bought), len(sold)
    )
    return ActivityReport(from_date=from_date, bought=bought, sold=sold)
