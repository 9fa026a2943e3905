"""
Holdings composition: accounts grouped by a dimension, and the merged
holdings of the whole portfolio or of one group.
"""

# pylint: disable=invalid-name

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Iterable, Optional, Union
from pnlview.datamodels import (
    Account,
    AccountCash,
    AccountQuantity,
    Composition,
    CurrencyCache,
    GroupSummary,
    HoldingPoint,
    HoldingsGroupSeries,
    MergedAccountGroup,
)
from pnlview.fx import convert_to_base
from pnlview.positions import gain_percent, merge_account_positions, ratio
from pnlview.util import (
    CASH_QUANTUM,
    GROUP_LABEL_THRESHOLD,
    HOLDINGS_LABEL_THRESHOLD,
    RATIO_QUANTUM,
    GroupTypeEnum,
    start_case,
)

logger = logging.getLogger(__name__)

OTHER_GROUP = "Other"

GroupBy = Union[GroupTypeEnum, str, Callable[[Account], str]]


def get_group_key(group_by: GroupBy, account: Account) -> str:
    """Group key of an account. Every account maps to exactly one group."""
    if callable(group_by):
        key = group_by(account)
        return str(key) if key else OTHER_GROUP

    group_by = GroupTypeEnum(group_by)
    if group_by == GroupTypeEnum.CURRENCY:
        return account.currency.upper()
    if group_by == GroupTypeEnum.TYPE:
        return account.type or OTHER_GROUP
    if group_by == GroupTypeEnum.INSTITUTION:
        return account.institution or OTHER_GROUP
    return account.group or OTHER_GROUP


def composition_title(group_by: GroupBy) -> str:
    if callable(group_by):
        title = "Custom"
    else:
        group_by = GroupTypeEnum(group_by)
        if group_by == GroupTypeEnum.CURRENCY:
            title = "USD vs CAD"
        elif group_by == GroupTypeEnum.TYPE:
            title = "Account Type"
        else:
            title = start_case(group_by.value)
    return f"{title} Composition"


def percent(value: Decimal, total: Decimal) -> Optional[Decimal]:
    r = ratio(value, total)
    return None if r is None else r * 100


def merge_group(name: str, accounts: Iterable[Account]) -> MergedAccountGroup:
    """Merge the positions of accounts into one group"""
    accounts = list(accounts)
    return MergedAccountGroup(
        name=name,
        value=sum((a.market_value() for a in accounts), Decimal(0)),
        gain_amount=sum((a.gain_amount() for a in accounts), Decimal(0)),
        positions=merge_account_positions(accounts),
        accounts=accounts,
    )


def partition_accounts(
    accounts: Iterable[Account], group_by: GroupBy
) -> Dict[str, list[Account]]:
    """Group key -> accounts, in order of first appearance"""
    partitions: Dict[str, list[Account]] = {}
    for account in accounts:
        partitions.setdefault(get_group_key(group_by, account), []).append(account)
    return partitions


def merge_account_groups(
    accounts: Iterable[Account], group_by: GroupBy
) -> list[MergedAccountGroup]:
    """Merged groups sorted by value, ties in order of first appearance"""
    groups = [
        merge_group(name, members)
        for name, members in partition_accounts(accounts, group_by).items()
    ]
    return sorted(groups, key=lambda g: g.value, reverse=True)


#
# Account groups
#########################################################################


def _round_cash(cash: Optional[Decimal]) -> Decimal:
    """Account cash rounded to cents. No cash reported counts as zero."""
    if cash is None:
        return Decimal(0)
    return cash.quantize(CASH_QUANTUM, rounding=ROUND_HALF_UP)


def _add_cash(ledger: Dict[str, AccountCash], account: Account):
    """Add the cash of account to the per account ledger of its group"""
    entry = ledger.get(account.name)
    if entry is None:
        entry = AccountCash(name=account.name)
        ledger[account.name] = entry
    cash = _round_cash(account.cash)
    if account.currency == "cad":
        entry.cad += cash
    elif account.currency == "usd":
        entry.usd += cash
    elif cash:
        # Only CAD and USD cash is converted
        logger.warning(
            "Cash %s %s in account %s not included in cash totals",
            cash,
            account.currency.upper(),
            account.name,
        )
        entry.other[account.currency] = entry.other.get(account.currency, Decimal(0)) + cash


def group_accounts(
    accounts: Iterable[Account],
    group_by: GroupBy,
    currency_cache: CurrencyCache,
    label_threshold: Decimal = GROUP_LABEL_THRESHOLD,
    drilldown: bool = False,
) -> list[GroupSummary]:
    """Group accounts and summarize value, gain and cash per group.

    Groups without market value are dropped. Groups are ranked by value,
    highest first. USD cash is converted with the latest rate in the
    currency cache.
    """
    accounts = list(accounts)
    total_value = sum((a.value for a in accounts), Decimal(0))

    values: Dict[str, Decimal] = {}
    gains: Dict[str, Decimal] = {}
    ledgers: Dict[str, Dict[str, AccountCash]] = {}
    for account in accounts:
        name = get_group_key(group_by, account)
        if name not in values:
            values[name] = Decimal(0)
            gains[name] = Decimal(0)
            ledgers[name] = {}
        values[name] += account.market_value()
        gains[name] += account.gain_amount()
        _add_cash(ledgers[name], account)

    names = [name for name in values if values[name]]
    dropped = len(values) - len(names)
    if dropped:
        logger.debug("Dropped %d groups without market value", dropped)
    names.sort(key=lambda n: values[n], reverse=True)
    groups_value = sum((values[n] for n in names), Decimal(0))
    latest_date = currency_cache.latest_date()

    summaries = []
    for index, name in enumerate(names):
        ledger = list(ledgers[name].values())
        cad = sum((a.cad for a in ledger), Decimal(0))
        usd = sum((a.usd for a in ledger), Decimal(0))
        cash_table = sorted(
            [a for a in ledger if a.cad or a.usd],
            key=lambda a: a.cad + a.usd,
            reverse=True,
        )
        value = values[name]
        gain = gains[name]
        gain_ratio = percent(gain, value - gain)
        share = percent(value, groups_value)
        summaries.append(
            GroupSummary(
                name=name,
                rank=index,
                value=value,
                total_value=total_value,
                gain=gain,
                gain_ratio=None
                if gain_ratio is None
                else gain_ratio.quantize(RATIO_QUANTUM, rounding=ROUND_HALF_UP),
                percentage=share,
                show_label=share is not None and share > label_threshold,
                cash=cad + convert_to_base(latest_date, usd, currency_cache),
                cad=cad,
                usd=usd,
                accounts=cash_table,
                drilldown=name if drilldown else None,
            )
        )
    return summaries


#
# Holdings
#########################################################################


def _accounts_table(group: MergedAccountGroup, symbol: str) -> list[AccountQuantity]:
    """Quantity of symbol held by each account of the group"""
    table = []
    for account in group.accounts:
        position = next((p for p in account.positions if p.symbol == symbol), None)
        if position:
            table.append(AccountQuantity(name=account.name, quantity=position.quantity))
    return sorted(table, key=lambda a: a.quantity, reverse=True)


def holding_points(
    group: MergedAccountGroup,
    label_threshold: Decimal = HOLDINGS_LABEL_THRESHOLD,
    total: Optional[Decimal] = None,
    group_rank: Optional[int] = None,
) -> list[HoldingPoint]:
    """Holdings of a merged group ranked by market value.

    The percentage is relative to total (the group's value by default).
    Holdings below the label threshold are kept, only their label is off.
    """
    positions = sorted(
        group.positions.values(), key=lambda p: p.market_value, reverse=True
    )
    if total is None:
        total = sum((p.market_value for p in positions), Decimal(0))

    points = []
    for idx, position in enumerate(positions):
        symbol = position.symbol
        pct = position.gain_percent
        if pct is None:
            pct = gain_percent(position.gain_amount, position.market_value)
        share = percent(position.market_value, total)
        security = position.security
        points.append(
            HoldingPoint(
                symbol=symbol,
                rank=idx,
                group=group.name if group_rank is not None else None,
                group_rank=group_rank,
                value=position.market_value,
                gain=None if pct is None else pct * 100,
                profit=position.gain_amount,
                buy_price=ratio(position.book_value, position.quantity),
                shares=position.quantity,
                last_price=security.last_price,
                currency=security.currency.upper() if security.currency else None,
                percentage=share,
                show_label=share is not None and share > label_threshold,
                accounts=_accounts_table(group, symbol),
            )
        )
    return points


def build_holdings_series(
    accounts: Iterable[Account],
    group_by: GroupBy = GroupTypeEnum.CURRENCY,
    scope: Optional[str] = None,
    label_threshold: Decimal = HOLDINGS_LABEL_THRESHOLD,
) -> HoldingsGroupSeries:
    """Merged holdings of the whole portfolio, or of the group named scope"""
    if scope is None:
        group = merge_group("Holdings", accounts)
        series_id = "holdings"
    else:
        members = partition_accounts(accounts, group_by).get(scope)
        if members is None:
            logger.info("No accounts in group %s", scope)
            members = []
        group = merge_group(scope, members)
        series_id = scope
    return HoldingsGroupSeries(
        id=series_id,
        name=group.name,
        value=group.value,
        data=holding_points(group, label_threshold),
    )


def build_holdings_drilldown(
    accounts: Iterable[Account],
    group_by: GroupBy,
    label_threshold: Decimal = HOLDINGS_LABEL_THRESHOLD,
) -> list[HoldingsGroupSeries]:
    """One holdings series per group with market value, ranked like the groups"""
    return [
        HoldingsGroupSeries(
            id=group.name,
            name=group.name,
            value=group.value,
            data=holding_points(group, label_threshold),
        )
        for group in merge_account_groups(accounts, group_by)
        if group.value
    ]


def build_holdings_ring(
    accounts: Iterable[Account],
    group_by: GroupBy,
    label_threshold: Decimal = HOLDINGS_LABEL_THRESHOLD,
) -> HoldingsGroupSeries:
    """Holdings of every group, concatenated in group order. Each point
    keeps its group and group rank so it can be drawn next to its group."""
    groups = merge_account_groups(accounts, group_by)
    total = sum((g.value for g in groups), Decimal(0))
    data = []
    for index, group in enumerate(groups):
        data.extend(holding_points(group, label_threshold, total, group_rank=index))
    return HoldingsGroupSeries(id="holdings", name="Holdings", value=total, data=data)


def composition(
    accounts: Iterable[Account],
    group_by: GroupBy,
    currency_cache: CurrencyCache,
    show_holdings: bool = True,
) -> Composition:
    """Composition chart data.

    With show_holdings the groups come with the holdings ring, otherwise
    every group links to its drilldown series.
    """
    accounts = list(accounts)
    groups = group_accounts(
        accounts,
        group_by,
        currency_cache,
        label_threshold=GROUP_LABEL_THRESHOLD if show_holdings else Decimal(0),
        drilldown=not show_holdings,
    )
    logger.info(
        "Composition by %s: %d groups from %d accounts",
        "custom key" if callable(group_by) else GroupTypeEnum(group_by),
        len(groups),
        len(accounts),
    )
    return Composition(
        title=composition_title(group_by),
        group_by="custom" if callable(group_by) else GroupTypeEnum(group_by).value,
        total_value=sum((a.value for a in accounts), Decimal(0)),
        groups=groups,
        holdings=build_holdings_ring(accounts, group_by) if show_holdings else None,
        drilldown=[] if show_holdings else build_holdings_drilldown(accounts, group_by),
    )
