# Use Rich tables to print the dashboard

from decimal import Decimal
from typing import Optional
from rich.console import Console
from rich.table import Table
from pnlview.datamodels import (
    ActivityReport,
    Composition,
    GroupSummary,
    HoldingsGroupSeries,
    SecurityActivity,
)
from pnlview.console import console

PRIVATE = '-'


def format_money(value: Optional[Decimal], precision: int = 2) -> str:
    '''1234.5 -> 1,234.50. Undefined values render as a dash.'''
    if value is None:
        return '-'
    return f'{value:,.{precision}f}'


def format_percent(value: Optional[Decimal]) -> str:
    if value is None:
        return '-'
    return f'{value:.2f}%'


def pnl_style(gained: Optional[bool]) -> str:
    if gained is None:
        return ''
    return 'green' if gained else 'red'


def print_groups(comp: Composition, console: Console, private: bool = False):
    '''Composition groups'''
    money = (lambda v: PRIVATE) if private else format_money
    table = Table(title=comp.title, show_header=True, header_style="bold magenta")
    table.add_column("Group", justify="left", style="cyan", no_wrap=True)
    table.add_column("Share", justify="right")
    table.add_column("Value", justify="right", no_wrap=True)
    table.add_column("Unrealized P/L ($)", justify="right")
    table.add_column("Unrealized P/L (%)", justify="right")
    table.add_column("Total Cash", justify="right")
    table.add_column("CAD Cash", justify="right")
    table.add_column("USD Cash", justify="right")

    for g in comp.groups:
        table.add_row(g.name, format_percent(g.percentage), money(g.value),
                      money(g.gain), g.gain_ratio_display, money(g.cash),
                      money(g.cad), money(g.usd), style=pnl_style(g.gained))
    table.add_row('Total', '', money(comp.total_value), style='bold')
    console.print(table)


def print_cash_table(group: GroupSummary, console: Console, private: bool = False):
    '''Cash per account of a group'''
    if not group.accounts:
        return
    money = (lambda v: PRIVATE) if private else format_money
    table = Table(title=f"Cash: {group.name}")
    table.add_column("Account", justify="left", style="cyan", no_wrap=True)
    table.add_column("C$", justify="right")
    table.add_column("U$", justify="right")
    for a in group.accounts:
        table.add_row(a.name,
                      money(a.cad) if a.cad else '',
                      money(a.usd) if a.usd else '',
                      style='red' if a.total < 0 else '')
    console.print(table)


def print_holdings(series: HoldingsGroupSeries, console: Console, private: bool = False):
    '''Merged holdings with the accounts that hold them'''
    money = (lambda v: PRIVATE) if private else format_money
    table = Table(title=f"Holdings: {series.name}", show_header=True,
                  header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Symbol", justify="center", style="cyan", no_wrap=True)
    table.add_column("Share", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Shares", justify="right")
    table.add_column("Buy Price", justify="right")
    table.add_column("Last Price", justify="right")
    table.add_column("P/L ($)", justify="right")
    table.add_column("P/L (%)", justify="right")
    table.add_column("Accounts", justify="left")

    for p in series.data:
        accounts = Table("account", "qty", show_edge=False, padding=0, show_header=False)
        for a in p.accounts:
            accounts.add_row(a.name, f'{a.quantity}')
        symbol = f'{p.symbol} ({p.group})' if p.group else p.symbol
        table.add_row(str(p.rank + 1), symbol, format_percent(p.percentage),
                      money(p.value), f'{p.shares}', format_money(p.buy_price),
                      f'{format_money(p.last_price)} {p.currency or ""}',
                      money(p.profit), format_percent(p.gain), accounts,
                      style=pnl_style(p.gained))
    console.print(table)


def print_activity(title: str, securities: list[SecurityActivity], console: Console):
    '''Bought or sold securities'''
    table = Table(title=f"Securities {title}", show_header=True, header_style="bold magenta")
    table.add_column("Symbol", justify="center", style="cyan", no_wrap=True)
    table.add_column("Currency", justify="center")
    table.add_column("Last Price", justify="right")
    table.add_column("Price", justify="right", style="bold")
    table.add_column("Shares", justify="right", style="bold")
    table.add_column("Amount", justify="right")
    table.add_column("Change %", justify="right")

    for s in securities:
        change = s.change_percent
        table.add_row(s.symbol, s.currency.upper(), format_money(s.last_price),
                      format_money(s.price), f'{s.shares}', format_money(s.value),
                      '-' if change is None else f'[{pnl_style(s.gained)}]{change:.2f}%')
    console.print(table)


def print_report(comp: Composition, act: ActivityReport,
                 holdings: Optional[HoldingsGroupSeries], verbose: bool,
                 private: bool = False):
    '''Pretty print the dashboard to console'''
    print_groups(comp, console, private)

    if verbose:
        for g in comp.groups:
            print_cash_table(g, console, private)
        if comp.holdings:
            print_holdings(comp.holdings, console, private)
        for series in comp.drilldown:
            print_holdings(series, console, private)

    if holdings:
        print_holdings(holdings, console, private)

    console.print(f'Trading activity since {act.from_date.isoformat()}\n', style="bold magenta")
    print_activity('Bought', act.bought, console)
    print_activity('Sold', act.sold, console)
