"""Data models for pnlview"""

# pylint: disable=too-few-public-methods, missing-class-docstring, no-name-in-module
# pylint: disable=no-self-argument

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Dict, Optional
import dateutil.parser as dt
from pydantic import (
    field_validator,
    ConfigDict,
    BaseModel,
    Field,
    RootModel,
    computed_field,
)
from pydantic.alias_generators import to_camel
from pnlview.util import BASE_CURRENCY, GAIN_COLOR, LOSS_COLOR

#
# Input data model
#
# The dashboard hands us a mix of snake_case (positions) and camelCase
# (transactions) keys, so both the field name and its camelCase alias are
# accepted.
#########################################################################


class InputModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Security(InputModel):
    """Security held in a position"""

    symbol: str
    currency: str = BASE_CURRENCY
    last_price: Optional[Annotated[Decimal, Field(ge=0)]] = None
    # Snapshot time of last_price, used to pick between merged records
    updated: Optional[datetime] = None
    name: Optional[str] = None

    @field_validator("currency", mode="before")
    @classmethod
    def currency_validator(cls, v):
        """Currencies are canonically lowercase"""
        return (v or BASE_CURRENCY).lower()


def get_symbol(security: Security) -> str:
    """Symbol used as identity key for holdings"""
    return security.symbol


class Position(InputModel):
    """A holding of one security in one account. Values in base currency."""

    security: Security
    quantity: Decimal = Decimal(0)
    book_value: Decimal = Decimal(0)
    market_value: Decimal = Decimal(0)
    gain_amount: Decimal = Decimal(0)
    # Gain in the security's own currency
    gain_currency_amount: Decimal = Decimal(0)
    # None when the cost basis is zero
    gain_percent: Optional[Decimal] = None

    @field_validator(
        "quantity",
        "book_value",
        "market_value",
        "gain_amount",
        "gain_currency_amount",
        mode="before",
    )
    @classmethod
    def missing_is_zero(cls, v):
        """Missing additive values count as zero"""
        return 0 if v is None else v

    @property
    def symbol(self) -> str:
        return get_symbol(self.security)

    @property
    def cost_basis(self) -> Decimal:
        return self.market_value - self.gain_amount


class Account(InputModel):
    """Brokerage account"""

    id: Optional[str] = None
    name: str
    type: Optional[str] = None
    institution: Optional[str] = None
    # Free form label for the custom group dimension
    group: Optional[str] = None
    currency: str = BASE_CURRENCY
    # None means the account reports no cash, treated as zero when summed
    cash: Optional[Decimal] = None
    value: Decimal = Decimal(0)
    positions: list[Position] = []

    @field_validator("currency", mode="before")
    @classmethod
    def currency_validator(cls, v):
        return (v or BASE_CURRENCY).lower()

    @field_validator("value", mode="before")
    @classmethod
    def value_validator(cls, v):
        return 0 if v is None else v

    def market_value(self) -> Decimal:
        """Sum of position market values"""
        return sum((p.market_value for p in self.positions), Decimal(0))

    def gain_amount(self) -> Decimal:
        """Sum of position gains"""
        return sum((p.gain_amount for p in self.positions), Decimal(0))


class Transaction(InputModel):
    """Buy/sell (or other) transaction"""

    date: date
    symbol: str
    original_type: str
    shares: Decimal = Decimal(0)
    amount: Decimal = Decimal(0)
    currency_amount: Decimal = Decimal(0)
    currency: str = BASE_CURRENCY
    account: str

    @field_validator("date", mode="before")
    @classmethod
    def date_validator(cls, v):
        """Accept datetimes and free form date strings, keep the day"""
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str):
            return dt.parse(v).date()
        return v

    @field_validator("original_type", "currency", mode="before")
    @classmethod
    def lowercase_validator(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("shares", "amount", "currency_amount", mode="before")
    @classmethod
    def missing_is_zero(cls, v):
        return 0 if v is None else v


class CurrencyCache(RootModel):
    """Date -> rate cache. Chronological insertion order, last entry is the
    most recent rate. Read only for the engine."""

    root: Dict[str, Decimal] = {}

    @field_validator("root", mode="before")
    @classmethod
    def keys_validator(cls, v):
        """Allow date keys, store ISO strings"""
        if isinstance(v, dict):
            return {
                k.isoformat() if isinstance(k, date) else k: rate
                for k, rate in v.items()
            }
        return v

    def __iter__(self):
        return iter(self.root)

    def __len__(self):
        return len(self.root)

    def __contains__(self, item):
        return item in self.root

    def __getitem__(self, item):
        return self.root[item]

    def get(self, item, default=None):
        return self.root.get(item, default)

    def latest_date(self) -> Optional[str]:
        """Date of the most recent rate, None for an empty cache"""
        return next(reversed(self.root), None)

    def latest(self) -> Optional[Decimal]:
        """Most recent rate, None for an empty cache"""
        latest = self.latest_date()
        return None if latest is None else self.root[latest]


class Snapshot(InputModel):
    """Everything the dashboard knows about a portfolio at one point in time"""

    accounts: list[Account] = []
    transactions: list[Transaction] = []
    currency_cache: CurrencyCache = CurrencyCache({})
    from_date: Optional[date] = None
    base_currency: str = BASE_CURRENCY

    def positions(self) -> list[Position]:
        """All positions of all accounts, unmerged"""
        return [p for a in self.accounts for p in a.positions]


class MergedAccountGroup(BaseModel):
    """Accounts sharing a group key, positions merged by symbol"""

    name: str
    value: Decimal = Decimal(0)
    gain_amount: Decimal = Decimal(0)
    positions: Dict[str, Position] = {}
    accounts: list[Account] = []


#
# Output data model
#
# Serialized with camelCase aliases, the field names a chart or table
# layer reads (gainRatio, lastPrice, pnlColor, ...).
#########################################################################


class ViewModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def pnl_color(gained: bool) -> str:
    return GAIN_COLOR if gained else LOSS_COLOR


class AccountCash(ViewModel):
    """Cash of one account inside a group"""

    name: str
    cad: Decimal = Decimal(0)
    usd: Decimal = Decimal(0)
    # Cash in currencies other than CAD/USD, not part of any total
    other: Dict[str, Decimal] = {}

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.cad + self.usd


class GroupSummary(ViewModel):
    """One slice of the composition chart"""

    name: str
    rank: int
    value: Decimal
    total_value: Decimal
    gain: Decimal
    gain_ratio: Optional[Decimal] = None
    percentage: Optional[Decimal] = None
    show_label: bool = True
    cash: Decimal = Decimal(0)
    cad: Decimal = Decimal(0)
    usd: Decimal = Decimal(0)
    accounts: list[AccountCash] = []
    drilldown: Optional[str] = None

    @computed_field
    @property
    def gain_ratio_display(self) -> str:
        if self.gain_ratio is None:
            return "-"
        return f"{self.gain_ratio:.2f}%"

    @computed_field
    @property
    def gained(self) -> bool:
        return self.gain >= 0

    @computed_field
    @property
    def pnl_color(self) -> str:
        return pnl_color(self.gained)


class AccountQuantity(ViewModel):
    name: str
    quantity: Decimal


class HoldingPoint(ViewModel):
    """One merged holding"""

    symbol: str
    rank: int
    group: Optional[str] = None
    group_rank: Optional[int] = None
    value: Decimal
    # Percent, None when the cost basis is zero
    gain: Optional[Decimal] = None
    profit: Decimal
    buy_price: Optional[Decimal] = None
    shares: Decimal
    last_price: Optional[Decimal] = None
    currency: Optional[str] = None
    percentage: Optional[Decimal] = None
    show_label: bool = True
    accounts: list[AccountQuantity] = []

    @computed_field
    @property
    def gained(self) -> bool:
        return self.profit >= 0

    @computed_field
    @property
    def pnl_color(self) -> str:
        return pnl_color(self.gained)


class HoldingsGroupSeries(ViewModel):
    """Ranked holdings of a group, or of the whole portfolio"""

    id: str
    name: str
    value: Decimal = Decimal(0)
    data: list[HoldingPoint] = []


class Composition(ViewModel):
    """Composition chart: group slices plus either the holdings ring or
    the per-group drilldown series"""

    title: str
    group_by: str
    total_value: Decimal
    groups: list[GroupSummary] = []
    holdings: Optional[HoldingsGroupSeries] = None
    drilldown: list[HoldingsGroupSeries] = []


class SecurityActivity(ViewModel):
    """Bought or sold security row"""

    symbol: str
    currency: str
    last_price: Optional[Decimal] = None
    # Weighted average price in the security's currency
    price: Optional[Decimal] = None
    value: Decimal
    currency_value: Decimal
    shares: Decimal
    accounts: Dict[str, Decimal] = {}

    @computed_field
    @property
    def change_percent(self) -> Optional[Decimal]:
        if not self.last_price or self.price is None:
            return None
        return (self.last_price - self.price) / self.last_price * 100

    @computed_field
    @property
    def gained(self) -> Optional[bool]:
        change = self.change_percent
        return None if change is None else change > 0

    @computed_field
    @property
    def pnl_color(self) -> Optional[str]:
        gained = self.gained
        return None if gained is None else pnl_color(gained)


class ActivityReport(ViewModel):
    """Bought and sold tables"""

    from_date: date
    bought: list[SecurityActivity] = []
    sold: list[SecurityActivity] = []


class DashboardResponse(ViewModel):
    """Web response"""

    composition: Optional[Composition] = None
    holdings: Optional[HoldingsGroupSeries] = None
    activity: Optional[ActivityReport] = None
    log: str = ""
    version: str
