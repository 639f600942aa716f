"""Unit tests for the sales report engine."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from threewheel_ledger import core_logic, data_manager, reporting


def _vehicle(vehicle_id: str, model: str, price: str) -> data_manager.VehicleRow:
    return data_manager.VehicleRow(
        vehicle_id=vehicle_id,
        model=model,
        year=2022,
        vehicle_number="N",
        color="Red",
        chassis_number="CH",
        engine_number="EN",
        notes=None,
        purchase_price=Decimal(price),
        added_date="2024-01-01",
    )


def _sale(sale_id: str, vehicle_id: str, sale_date: str, price: str) -> data_manager.SaleRow:
    return data_manager.SaleRow(
        sale_id=sale_id,
        vehicle_id=vehicle_id,
        sale_date=sale_date,
        selling_price=Decimal(price),
        payment_method="Ready Cash",
        buyer_name="Buyer",
        buyer_address="Address",
        buyer_nic="NIC",
        buyer_phone="Phone",
        sale_notes=None,
    )


@pytest.fixture
def demo_context(context) -> core_logic.RuntimeContext:
    """Context whose workbook holds the demo dataset."""

    data_manager.reset_to_seed_data(context.workbook)
    return context


# ---------------------------------------------------------------------------
# build_report
# ---------------------------------------------------------------------------


def test_build_report_joins_sales_and_vehicles(demo_context):
    """Demo data yields two rows with per-row profit and totals."""

    report = reporting.build_report(demo_context)

    assert [(row.model, row.profit) for row in report.rows] == [
        ("Bajaj Auto Rickshaw", Decimal("10000")),
        ("Mahindra Alfa", Decimal("13000")),
    ]
    assert report.summary == reporting.ReportSummary(
        count=2,
        total_revenue=Decimal("200000"),
        total_cost=Decimal("177000"),
        total_profit=Decimal("23000"),
    )


@pytest.mark.parametrize(
    ("from_date", "to_date", "expected"),
    [
        ("2024-03-01", None, ["S-DEMO-2"]),
        (None, "2024-02-28", ["S-DEMO-1"]),
        ("2024-02-01", "2024-02-01", ["S-DEMO-1"]),
        ("2024-03-16", "2024-12-31", []),
        ("", "", ["S-DEMO-1", "S-DEMO-2"]),
    ],
)
def test_build_report_filters_inclusive_date_range(demo_context, from_date, expected, to_date):
    """Bounds are inclusive and blank bounds are ignored."""

    report = reporting.build_report(demo_context, from_date, to_date)
    assert [row.sale_id for row in report.rows] == expected
    assert report.summary.count == len(expected)


def test_build_report_empty_range_has_zero_totals(demo_context):
    """An empty selection sums to zero."""

    report = reporting.build_report(demo_context, "2030-01-01")
    assert report.summary == reporting.ReportSummary(0, Decimal("0"), Decimal("0"), Decimal("0"))


def test_build_report_missing_vehicle_reports_unknown(context, caplog):
    """A dangling sale counts its full price as profit."""

    data_manager.save_sales(context.workbook, [_sale("S1", "V-GONE", "2024-01-01", "5000")])

    with caplog.at_level(logging.WARNING):
        report = reporting.build_report(context)

    (row,) = report.rows
    assert row.model == "Unknown"
    assert row.purchase_price == Decimal("0")
    assert row.profit == Decimal("5000")
    assert "V-GONE" in caplog.text


def test_summarize_profit_equals_revenue_minus_cost():
    """Totals are additive and profit is their exact difference."""

    rows = [
        reporting.build_report_row(_sale("S1", "V1", "2024-01-01", "0.10"), _vehicle("V1", "A", "0.20")),
        reporting.build_report_row(_sale("S2", "V2", "2024-01-02", "100.05"), _vehicle("V2", "B", "50.02")),
    ]

    summary = reporting.summarize(rows)

    assert summary.total_revenue == Decimal("100.15")
    assert summary.total_cost == Decimal("50.22")
    assert summary.total_profit == Decimal("49.93")
    assert summary.total_profit == sum((row.profit for row in rows), Decimal("0"))


def test_build_report_reflects_latest_mutation(demo_context, sale_fields):
    """Reports never serve a stale view after a sale is recorded."""

    before = reporting.build_report(demo_context)
    core_logic.record_sale(demo_context, sale_fields("V-DEMO-3", selling_price="80000"))
    after = reporting.build_report(demo_context)

    assert after.summary.count == before.summary.count + 1
    assert after.summary.total_profit == before.summary.total_profit + Decimal("5000")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def test_render_report_csv_hides_purchase_price_by_default(demo_context):
    """Without the reveal flag no cost column or total appears."""

    text = reporting.render_report_csv(reporting.build_report(demo_context), reveal_purchase_price=False)
    lines = text.splitlines()

    assert lines[0] == "Model,Selling Price,Sale Date,Profit"
    assert lines[1] == "Bajaj Auto Rickshaw,95000,2024-02-01,10000"
    assert lines[3] == ""
    assert lines[4:] == ["Summary", "Count,2", "Total Revenue,200000", "Total Profit,23000"]


def test_render_report_csv_reveals_purchase_price(demo_context):
    """With the reveal flag the cost column and total are included."""

    text = reporting.render_report_csv(reporting.build_report(demo_context), reveal_purchase_price=True)
    lines = text.splitlines()

    assert lines[0] == "Model,Selling Price,Purchase Price,Sale Date,Profit"
    assert lines[1] == "Bajaj Auto Rickshaw,95000,85000,2024-02-01,10000"
    assert "Total Cost,177000" in lines


def test_render_report_csv_quotes_commas_in_model(context):
    """Model names containing commas stay in one column."""

    data_manager.save_vehicles(context.workbook, [_vehicle("V1", "Ape, City", "100")])
    data_manager.save_sales(context.workbook, [_sale("S1", "V1", "2024-01-01", "150")])

    text = reporting.render_report_csv(reporting.build_report(context), reveal_purchase_price=False)
    assert text.splitlines()[1] == '"Ape, City",150,2024-01-01,50'


def test_format_report_table_empty_message(context):
    """An empty report renders a friendly message."""

    report = reporting.build_report(context)
    assert reporting.format_report_table(report, reveal_purchase_price=False) == (
        "No sales found for the selected date range"
    )


def test_format_report_table_lists_rows_and_totals(demo_context):
    """The table shows formatted prices and the sale count."""

    table = reporting.format_report_table(reporting.build_report(demo_context), reveal_purchase_price=True)

    assert "Mahindra Alfa" in table
    assert "Rs. 1,05,000.00" in table
    assert "Rs. 1,77,000.00" in table
    assert table.splitlines()[-1] == "Count: 2"
