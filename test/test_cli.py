import json
import os
from datetime import date
import pytest
from openpyxl import load_workbook
from typer.testing import CliRunner

from pnlview.main import PnlviewErrorException, dashboard, default_from_date, load_snapshot
from pnlview.datamodels import Snapshot
from pnlview.pnlview import app
from pnlview.util import GroupTypeEnum

runner = CliRunner()

base_dir = os.path.dirname(__file__)
snapshotfile = os.path.join(base_dir, "snapshot1.json")


@pytest.fixture
def snapshot():
    with open(snapshotfile, encoding="utf-8") as f:
        return load_snapshot(f)


def test_full_run(tmp_path):
    outjson = tmp_path / "dashboard.json"
    outxlsx = tmp_path / "dashboard.xlsx"
    result = runner.invoke(
        app,
        [
            snapshotfile,
            "--verbose",
            "--outjson",
            str(outjson),
            "--output",
            str(outxlsx),
        ],
    )
    print("RESULT", result.stdout)
    assert result.exit_code == 0

    with open(outjson, encoding="utf-8") as f:
        data = json.load(f)
    groups = data["composition"]["groups"]
    assert [g["name"] for g in groups] == ["CAD", "USD"]
    assert "gainRatio" in groups[0]
    assert data["activity"]["fromDate"] == "2024-01-01"

    wb = load_workbook(outxlsx)
    assert wb.sheetnames == ["Composition", "Holdings", "Bought", "Sold"]


def test_drilldown_and_group():
    result = runner.invoke(
        app, [snapshotfile, "--group", "type", "--drilldown", "tfsa", "--no-holdings"]
    )
    assert result.exit_code == 0
    assert "Holdings: tfsa" in result.stdout


def test_unknown_drilldown():
    result = runner.invoke(app, [snapshotfile, "--drilldown", "GBP"])
    assert result.exit_code == 1


def test_private():
    result = runner.invoke(app, [snapshotfile, "--private", "--from-date", "2024-02-01"])
    assert result.exit_code == 0
    assert "3,500.00" not in result.stdout


def test_invalid_loglevel():
    result = runner.invoke(app, [snapshotfile, "--loglevel", "CHATTY"])
    assert result.exit_code != 0


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "pnlview" in result.stdout


def test_default_from_date(snapshot):
    assert default_from_date(snapshot) == date(2024, 1, 1)
    snapshot.from_date = None
    assert default_from_date(snapshot) == date(2023, 12, 1)
    assert default_from_date(Snapshot()) == date.today()


def test_dashboard(snapshot):
    result = dashboard(snapshot, GroupTypeEnum.CURRENCY, drilldown="USD")
    assert result.holdings.name == "USD"
    assert result.excel.startswith(b"PK")
    with pytest.raises(PnlviewErrorException):
        dashboard(snapshot, GroupTypeEnum.CURRENCY, drilldown="EUR")


def test_snapshot_not_an_object(tmp_path):
    f = tmp_path / "bad.json"
    f.write_text("[]")
    with open(f, encoding="utf-8") as fp, pytest.raises(PnlviewErrorException):
        load_snapshot(fp)
