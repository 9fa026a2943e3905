"""
pnlview command line
"""

# pylint: disable=invalid-name

import logging
from datetime import datetime
import typer
from pydantic import ValidationError
from rich.logging import RichHandler
from pnlview.main import do_dashboard
from pnlview.console import console
from pnlview.datamodels import DashboardResponse
from pnlview.report import print_report
from pnlview.util import GroupTypeEnum, PnlviewException
from pnlview import __version__

app = typer.Typer(pretty_exceptions_enable=False)

logger = logging.getLogger(__name__)


def version_callback(value: bool):
    if value:
        typer.echo(f"pnlview CLI version: {__version__}")
        raise typer.Exit()


@app.command()
def main(  # noqa: C901
    snapshot: typer.FileText,
    group: GroupTypeEnum = typer.Option(
        GroupTypeEnum.CURRENCY, help="Group accounts by", envvar="PNLVIEW_GROUP"
    ),
    drilldown: str = typer.Option(None, help="Show the holdings of one group"),
    holdings: bool = typer.Option(
        True, "--holdings/--no-holdings", help="Holdings ring instead of drilldown series"
    ),
    from_date: datetime = typer.Option(
        None, formats=["%Y-%m-%d"], help="Trading activity since (default: snapshot)"
    ),
    output: typer.FileBinaryWrite = typer.Option(None, help="Excel report"),
    outjson: typer.FileTextWrite = typer.Option(None, help="JSON report"),
    private: bool = typer.Option(False, help="Hide amounts"),
    verbose: bool = False,
    loglevel: str = typer.Option("WARNING", help="Logging level", envvar="PNLVIEW_LOGLEVEL"),
    version: bool = typer.Option(
        None, "--version", callback=version_callback, is_eager=True
    ),
):
    """Portfolio composition and trading activity"""
    lognames = logging.getLevelNamesMapping()
    if loglevel not in lognames:
        raise typer.BadParameter(f"Invalid loglevel: {loglevel}")

    logging.basicConfig(
        level=lognames[loglevel], handlers=[RichHandler(rich_tracebacks=False)]
    )

    try:
        result = do_dashboard(
            snapshot,
            group,
            show_holdings=holdings,
            drilldown=drilldown,
            from_date=from_date.date() if from_date else None,
        )
    except (PnlviewException, ValidationError) as e:
        logger.error("%s", e)
        raise typer.Exit(code=1) from e

    print_report(result.composition, result.activity, result.holdings, verbose, private)

    if outjson:
        logger.info("Writing JSON report to %s", outjson.name)
        j = DashboardResponse(
            composition=result.composition,
            holdings=result.holdings,
            activity=result.activity,
            version=__version__,
        ).model_dump_json(indent=4, by_alias=True)
        with outjson as f:
            f.write(j)

    if output:
        logger.info("Writing Excel report to: %s", output.name)
        with output as f:
            f.write(result.excel)
    elif verbose:
        console.print("No Excel report file specified", style="bold red")


if __name__ == "__main__":
    app()
