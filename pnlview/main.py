"""
pnlview main entry point
"""

# pylint: disable=invalid-name
import logging
from datetime import date
from decimal import Decimal
from typing import NamedTuple, Optional
import simplejson as json
from pnlview.activity import activity, symbol_price_cache
from pnlview.composition import GroupBy, build_holdings_series, composition
from pnlview.datamodels import (
    ActivityReport,
    Composition,
    HoldingsGroupSeries,
    Snapshot,
)
from pnlview.excel_report import excel_report
from pnlview.util import GroupTypeEnum, PnlviewException

logger = logging.getLogger(__name__)


class DashboardReturn(NamedTuple):
    composition: Composition
    activity: ActivityReport
    holdings: Optional[HoldingsGroupSeries]
    excel: bytes


class PnlviewErrorException(PnlviewException):
    """Invalid input to the dashboard"""


def json_load(fp):
    """Load json file"""
    data = json.load(fp, parse_float=Decimal)
    return data


def load_snapshot(fp) -> Snapshot:
    """Read and validate a snapshot file"""
    data = json_load(fp)
    if not isinstance(data, dict):
        raise PnlviewErrorException("Snapshot must be a JSON object")
    snapshot = Snapshot.model_validate(data)
    logger.info(
        "Snapshot read: %d accounts, %d transactions, %d currency rates",
        len(snapshot.accounts),
        len(snapshot.transactions),
        len(snapshot.currency_cache),
    )
    return snapshot


def default_from_date(snapshot: Snapshot) -> date:
    """Snapshot from_date, else the first transaction, else today"""
    if snapshot.from_date:
        return snapshot.from_date
    if snapshot.transactions:
        return min(t.date for t in snapshot.transactions)
    return date.today()


def composition_report(
    snapshot: Snapshot, group_by: GroupBy, show_holdings: bool = True
) -> Composition:
    return composition(
        snapshot.accounts,
        group_by,
        snapshot.currency_cache,
        show_holdings=show_holdings,
    )


def activity_report(snapshot: Snapshot, from_date: Optional[date] = None) -> ActivityReport:
    if from_date is None:
        from_date = default_from_date(snapshot)
    price_cache = symbol_price_cache(snapshot.positions())
    return activity(snapshot.transactions, from_date, price_cache)


def drilldown_report(
    snapshot: Snapshot, comp: Composition, group_by: GroupBy, drilldown: str
) -> HoldingsGroupSeries:
    """Holdings of one of the groups shown in comp"""
    known = [g.name for g in comp.groups]
    if drilldown not in known:
        raise PnlviewErrorException(
            f"Unknown group {drilldown}, expected one of: {', '.join(known)}"
        )
    return build_holdings_series(snapshot.accounts, group_by, scope=drilldown)


def dashboard(
    snapshot: Snapshot,
    group_by: GroupBy = GroupTypeEnum.CURRENCY,
    show_holdings: bool = True,
    drilldown: Optional[str] = None,
    from_date: Optional[date] = None,
) -> DashboardReturn:
    """Composition chart, activity tables and optionally the holdings of
    one group"""
    comp = composition_report(snapshot, group_by, show_holdings)
    if drilldown is not None:
        holdings = drilldown_report(snapshot, comp, group_by, drilldown)
    else:
        holdings = None
    act = activity_report(snapshot, from_date)
    return DashboardReturn(comp, act, holdings, excel_report(comp, act))


def do_dashboard(
    snapshotfile,
    group_by: GroupBy = GroupTypeEnum.CURRENCY,
    show_holdings: bool = True,
    drilldown: Optional[str] = None,
    from_date: Optional[date] = None,
) -> DashboardReturn:
    """Read a snapshot file and build the dashboard"""
    snapshot = load_snapshot(snapshotfile)
    return dashboard(snapshot, group_by, show_holdings, drilldown, from_date)
