"""
Generates Excel reports for the dashboard.
"""

import logging
from io import BytesIO
from datetime import date
from openpyxl import Workbook
from openpyxl.formatting.rule import CellIsRule
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from pnlview import __version__
from pnlview.datamodels import ActivityReport, Composition, SecurityActivity

logger = logging.getLogger(__name__)

# --- Constants for Formatting ---
CURRENCY_FORMAT = "#,##0.00"
QTY_FORMAT = "0.####"
PERCENT_FORMAT = "0.00"
RED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
HEADER_FILL = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")

COMPOSITION_HEADERS = ["Group", "Value", "Gain", "Gain %", "Cash", "CAD", "USD"]
HOLDINGS_HEADERS = [
    "Group",
    "Symbol",
    "Shares",
    "Value",
    "Gain %",
    "Profit",
    "Buy Price",
    "Last Price",
    "Currency",
    "Accounts",
]
ACTIVITY_HEADERS = [
    "Symbol",
    "Currency",
    "Last Price",
    "Price",
    "Shares",
    "Amount",
    "Change %",
    "Accounts",
]


def write_header(ws, headers):
    """Title row is row 1, headers row 2, data starts at row 3"""
    for col, header in enumerate(headers, start=1):
        cell = ws.cell(row=2, column=col, value=header)
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")


def format_cells(ws, headers, columns, number_format):
    """Number format for the data rows of the named columns"""
    for header in columns:
        letter = get_column_letter(headers.index(header) + 1)
        for row in range(3, ws.max_row + 1):
            ws[f"{letter}{row}"].number_format = number_format


def negative_red(ws, headers, columns):
    """Red fill for negative values in the named columns"""
    if ws.max_row < 3:
        return
    for header in columns:
        letter = get_column_letter(headers.index(header) + 1)
        ws.conditional_formatting.add(
            f"{letter}3:{letter}{ws.max_row}",
            CellIsRule(operator="lessThan", formula=["0"], fill=RED_FILL),
        )


def adjust_width(ws):
    for column_cells in ws.columns:
        length = max(len(str(cell.value or "")) for cell in column_cells)
        ws.column_dimensions[column_cells[0].column_letter].width = min(length + 2, 60)


def accounts_text(accounts) -> str:
    return ", ".join(f"{name}: {qty}" for name, qty in accounts)


def composition_sheet(ws, comp: Composition):
    ws.title = "Composition"
    ws["A1"] = comp.title
    ws["A1"].font = Font(bold=True, size=14)
    write_header(ws, COMPOSITION_HEADERS)
    for g in comp.groups:
        ws.append([g.name, g.value, g.gain, g.gain_ratio, g.cash, g.cad, g.usd])
    ws.append(["Total", comp.total_value])
    format_cells(ws, COMPOSITION_HEADERS, ["Value", "Gain", "Cash", "CAD", "USD"], CURRENCY_FORMAT)
    format_cells(ws, COMPOSITION_HEADERS, ["Gain %"], PERCENT_FORMAT)
    negative_red(ws, COMPOSITION_HEADERS, ["Gain", "Gain %", "Cash"])


def holdings_sheet(ws, comp: Composition):
    ws["A1"] = "Holdings"
    ws["A1"].font = Font(bold=True, size=14)
    write_header(ws, HOLDINGS_HEADERS)
    series = [comp.holdings] if comp.holdings else comp.drilldown
    for s in series:
        for p in s.data:
            ws.append(
                [
                    p.group or s.name,
                    p.symbol,
                    p.shares,
                    p.value,
                    p.gain,
                    p.profit,
                    p.buy_price,
                    p.last_price,
                    p.currency,
                    accounts_text((a.name, a.quantity) for a in p.accounts),
                ]
            )
    format_cells(ws, HOLDINGS_HEADERS, ["Shares"], QTY_FORMAT)
    format_cells(
        ws, HOLDINGS_HEADERS, ["Value", "Profit", "Buy Price", "Last Price"], CURRENCY_FORMAT
    )
    format_cells(ws, HOLDINGS_HEADERS, ["Gain %"], PERCENT_FORMAT)
    negative_red(ws, HOLDINGS_HEADERS, ["Gain %", "Profit"])


def activity_sheet(ws, title: str, from_date: date, securities: list[SecurityActivity]):
    ws["A1"] = f"Securities {title} since {from_date.isoformat()}"
    ws["A1"].font = Font(bold=True, size=14)
    write_header(ws, ACTIVITY_HEADERS)
    for s in securities:
        ws.append(
            [
                s.symbol,
                s.currency.upper(),
                s.last_price,
                s.price,
                s.shares,
                s.value,
                s.change_percent,
                accounts_text(s.accounts.items()),
            ]
        )
    format_cells(ws, ACTIVITY_HEADERS, ["Last Price", "Price", "Amount"], CURRENCY_FORMAT)
    format_cells(ws, ACTIVITY_HEADERS, ["Shares"], QTY_FORMAT)
    format_cells(ws, ACTIVITY_HEADERS, ["Change %"], PERCENT_FORMAT)
    negative_red(ws, ACTIVITY_HEADERS, ["Change %"])


def excel_report(comp: Composition, act: ActivityReport) -> bytes:
    """Workbook with composition, holdings and activity sheets"""
    wb = Workbook()
    composition_sheet(wb.active, comp)
    holdings_sheet(wb.create_sheet("Holdings"), comp)
    activity_sheet(wb.create_sheet("Bought"), "Bought", act.from_date, act.bought)
    activity_sheet(wb.create_sheet("Sold"), "Sold", act.from_date, act.sold)
    for ws in wb.worksheets:
        adjust_width(ws)
    wb.properties.creator = f"pnlview {__version__}"

    buffer = BytesIO()
    wb.save(buffer)
    logger.debug("Excel report: %d sheets", len(wb.worksheets))
    return buffer.getvalue()
