import os
from datetime import date
from decimal import Decimal
import pytest
from pydantic import ValidationError

from pnlview.activity import (
    ActivityFold,
    activity,
    aggregate_activity,
    symbol_price_cache,
)
from pnlview.datamodels import Transaction
from pnlview.main import activity_report, load_snapshot
from pnlview.util import SideEnum


def trans(day, symbol, side, shares, amount, account, currency_amount=None):
    return Transaction(
        date=day,
        symbol=symbol,
        original_type=side,
        shares=shares,
        amount=amount,
        currency_amount=amount if currency_amount is None else currency_amount,
        account=account,
    )


buys = [
    trans("2023-12-01", "ABC", "buy", 1, 90, "RRSP"),
    trans("2024-01-05", "ABC", "buy", 10, 1000, "RRSP"),
    trans("2024-01-10", "ABC", "buy", 5, 520, "TFSA"),
    trans("2024-01-11", "ABC", "dividend", 0, 5, "TFSA"),
]


def test_bought_since():
    (abc,) = aggregate_activity(buys, date(2024, 1, 1), SideEnum.BUY, {"ABC": Decimal(100)})
    assert abc.symbol == "ABC"
    assert abc.shares == 15
    assert abc.value == 1520
    assert round(abc.price, 2) == Decimal("101.33")
    assert abc.accounts == {"RRSP": 10, "TFSA": 5}
    assert abc.last_price == 100
    assert round(abc.change_percent, 2) == Decimal("-1.33")
    assert abc.gained is False
    assert abc.pnl_color == "red"


def test_from_date_is_inclusive():
    (abc,) = aggregate_activity(buys, date(2024, 1, 5), "buy", {})
    assert abc.shares == 15
    (abc,) = aggregate_activity(buys, date(2024, 1, 6), "buy", {})
    assert abc.shares == 5
    assert aggregate_activity(buys, date(2024, 2, 1), "buy", {}) == []


def test_running_average_price():
    fold = ActivityFold(symbol="ABC", currency="cad")
    fold.add(buys[1])
    assert fold.price == 100
    fold.add(buys[2])
    assert fold.price == Decimal(1520) / Decimal(15)


def test_no_last_price():
    (abc,) = aggregate_activity(buys, date(2024, 1, 1), "buy", {})
    assert abc.last_price is None
    assert abc.change_percent is None
    assert abc.gained is None
    assert abc.pnl_color is None


def test_zero_shares():
    (abc,) = aggregate_activity(
        [trans("2024-01-05", "ABC", "buy", 0, 10, "RRSP")], date(2024, 1, 1), "buy", {}
    )
    assert abc.price is None
    assert abc.change_percent is None


def test_sold_are_absolute():
    sells = [
        trans("2024-02-15", "XYZ", "SELL", -5, 480, "US Margin", currency_amount=360),
    ]
    (xyz,) = aggregate_activity(sells, date(2024, 1, 1), "sell", {"XYZ": Decimal(75)})
    assert xyz.shares == 5
    assert xyz.price == 72
    assert xyz.accounts == {"US Margin": -5}
    assert xyz.gained is True


def test_idempotent():
    report = activity(buys, date(2024, 1, 1), {"ABC": Decimal(100)})
    assert report == activity(buys, date(2024, 1, 1), {"ABC": Decimal(100)})
    assert report.sold == []


def test_transaction_input():
    t = Transaction.model_validate(
        {
            "date": "2024-01-05T15:30:00-05:00",
            "symbol": "ABC",
            "originalType": "BUY",
            "shares": 1,
            "amount": 10,
            "currencyAmount": 8,
            "currency": "USD",
            "account": "RRSP",
        }
    )
    assert t.date == date(2024, 1, 5)
    assert t.original_type == "buy"
    assert t.currency_amount == 8
    assert t.currency == "usd"

    with pytest.raises(ValidationError):
        Transaction.model_validate(
            {"date": "not a date", "symbol": "ABC", "originalType": "buy", "account": "x"}
        )


def test_snapshot_activity():
    base_dir = os.path.dirname(__file__)
    with open(os.path.join(base_dir, "snapshot1.json"), encoding="utf-8") as f:
        snapshot = load_snapshot(f)

    assert symbol_price_cache(snapshot.positions()) == {"ABC": 100, "XYZ": 75}

    report = activity_report(snapshot)
    assert report.from_date == date(2024, 1, 1)
    assert [s.symbol for s in report.bought] == ["XYZ", "ABC"]
    xyz = report.bought[0]
    assert xyz.price == 90
    assert xyz.currency == "usd"
    assert xyz.change_percent == -20
    assert [s.symbol for s in report.sold] == ["XYZ"]

    data = report.model_dump(by_alias=True)
    assert data["fromDate"] == date(2024, 1, 1)
    assert "changePercent" in data["bought"][0]
    assert "lastPrice" in data["bought"][0]
