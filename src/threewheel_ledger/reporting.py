"""Sales report engine.

Reports join each sale with the vehicle it sold and derive the profit of every
row plus aggregate totals. They are recomputed from the persisted collections
on every call and never write anything back.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from . import data_manager, log
from .billing import format_currency
from .constants import UNKNOWN_MODEL
from .core_logic import RuntimeContext


@dataclass(frozen=True)
class ReportRow:
    """One sale joined with its vehicle."""

    sale_id: str
    vehicle_id: str
    model: str
    sale_date: str
    selling_price: Decimal
    purchase_price: Decimal
    profit: Decimal


@dataclass(frozen=True)
class ReportSummary:
    """Count and additive totals over a report's rows."""

    count: int
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal


@dataclass(frozen=True)
class SalesReport:
    rows: List[ReportRow]
    summary: ReportSummary


def build_report(
    context: RuntimeContext,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
) -> SalesReport:
    """Join sales to vehicles over an optional inclusive date range.

    Bounds are compared with the stored ISO date text, so ``"2024-02-01"``
    sorts before ``"2024-10-01"`` as the calendar does. Rows keep the order of
    the sale collection. A sale whose vehicle is missing is reported with
    model ``"Unknown"`` and a zero purchase price.

    Args:
        context (RuntimeContext): Runtime context holding the workbook.
        from_date (str | None): Earliest sale date to include.
        to_date (str | None): Latest sale date to include.

    Returns:
        SalesReport: Rows plus their summary.
    """
    sales = data_manager.load_sales(context.workbook)
    vehicles_by_id = {v.vehicle_id: v for v in data_manager.load_vehicles(context.workbook)}

    if from_date:
        sales = [sale for sale in sales if sale.sale_date >= from_date]
    if to_date:
        sales = [sale for sale in sales if sale.sale_date <= to_date]

    rows = [build_report_row(sale, vehicles_by_id.get(sale.vehicle_id)) for sale in sales]
    summary = summarize(rows)
    log.debug(
        "Built report for %s..%s: %d rows, profit=%s",
        from_date or "*",
        to_date or "*",
        summary.count,
        summary.total_profit,
    )
    return SalesReport(rows=rows, summary=summary)


def build_report_row(sale: data_manager.SaleRow, vehicle: Optional[data_manager.VehicleRow]) -> ReportRow:
    """Join one sale with its (possibly missing) vehicle."""
    if vehicle is None:
        log.warning("Sale '%s' references missing vehicle '%s'", sale.sale_id, sale.vehicle_id)
        model = UNKNOWN_MODEL
        purchase_price = Decimal("0")
    else:
        model = vehicle.model
        purchase_price = vehicle.purchase_price
    return ReportRow(
        sale_id=sale.sale_id,
        vehicle_id=sale.vehicle_id,
        model=model,
        sale_date=sale.sale_date,
        selling_price=sale.selling_price,
        purchase_price=purchase_price,
        profit=sale.selling_price - purchase_price,
    )


def summarize(rows: Sequence[ReportRow]) -> ReportSummary:
    """Total revenue and cost; profit is their exact difference."""
    total_revenue = sum((row.selling_price for row in rows), Decimal("0"))
    total_cost = sum((row.purchase_price for row in rows), Decimal("0"))
    return ReportSummary(
        count=len(rows),
        total_revenue=total_revenue,
        total_cost=total_cost,
        total_profit=total_revenue - total_cost,
    )


def render_report_csv(report: SalesReport, *, reveal_purchase_price: bool) -> str:
    """Render the report as CSV text.

    Layout: a header, one line per row, a blank line, then the ``Summary``
    block. Purchase price columns and the ``Total Cost`` line appear only when
    ``reveal_purchase_price`` is set.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    headers = ["Model", "Selling Price", "Sale Date", "Profit"]
    if reveal_purchase_price:
        headers.insert(2, "Purchase Price")
    writer.writerow(headers)

    for row in report.rows:
        values: List[object] = [row.model, row.selling_price, row.sale_date, row.profit]
        if reveal_purchase_price:
            values.insert(2, row.purchase_price)
        writer.writerow(values)

    summary = report.summary
    writer.writerow([])
    writer.writerow(["Summary"])
    writer.writerow(["Count", summary.count])
    writer.writerow(["Total Revenue", summary.total_revenue])
    if reveal_purchase_price:
        writer.writerow(["Total Cost", summary.total_cost])
    writer.writerow(["Total Profit", summary.total_profit])
    return buffer.getvalue()


def format_report_table(report: SalesReport, *, reveal_purchase_price: bool) -> str:
    """Render the report as a fixed-width text table for the terminal."""
    if not report.rows:
        return "No sales found for the selected date range"

    headers = ["Model", "Selling Price", "Sale Date", "Profit"]
    if reveal_purchase_price:
        headers.insert(2, "Purchase Price")

    body: List[List[str]] = []
    for row in report.rows:
        cells = [row.model, format_currency(row.selling_price), row.sale_date, format_currency(row.profit)]
        if reveal_purchase_price:
            cells.insert(2, format_currency(row.purchase_price))
        body.append(cells)

    summary = report.summary
    footer = ["Summary", format_currency(summary.total_revenue), "", format_currency(summary.total_profit)]
    if reveal_purchase_price:
        footer.insert(2, format_currency(summary.total_cost))

    widths = [max(len(line[i]) for line in [headers, *body, footer]) for i in range(len(headers))]

    def _line(cells: Sequence[str]) -> str:
        return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()

    rule = "  ".join("-" * width for width in widths)
    lines = [_line(headers), rule, *(_line(cells) for cells in body), rule, _line(footer)]
    lines.append(f"Count: {summary.count}")
    return "\n".join(lines)
