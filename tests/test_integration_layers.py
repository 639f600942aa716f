"""Integration tests describing the end-to-end ledger workflows.

These scenarios drive the business logic layer against a real workbook on
disk, reloading it between steps so every assertion reflects persisted state.
"""

from __future__ import annotations

import json
from decimal import Decimal

import openpyxl
import pytest

from threewheel_ledger import core_logic, data_manager, reporting


def _vehicle_input(model: str, price: str) -> dict:
    return {
        "model": model,
        "year": 2022,
        "vehicle_number": f"{model[:3].upper()}-1",
        "color": "Red",
        "chassis_number": f"CH-{model}",
        "engine_number": f"EN-{model}",
        "purchase_price": price,
    }


def _sale_input(vehicle_id: str, price: str, sale_date: str, buyer: str = "Ahmed Khan") -> dict:
    return {
        "vehicle_id": vehicle_id,
        "selling_price": price,
        "payment_method": "Ready Cash",
        "buyer_name": buyer,
        "buyer_address": "123 Main Street",
        "buyer_nic": "42101-1234567-1",
        "buyer_phone": "0300-1234567",
        "sale_date": sale_date,
    }


@pytest.fixture
def empty_context(config_factory) -> core_logic.RuntimeContext:
    """Runtime context over a workbook created without demo data."""

    bundle = config_factory(seed_demo=False)
    context = core_logic.load_runtime_context(bundle.config_path)
    core_logic.ensure_schema_version(context)
    return context


def test_sale_and_report_flow(empty_context):
    """Two vehicles, one sale: the report shows a single profitable row."""

    context = empty_context
    v1 = core_logic.add_vehicle(context, _vehicle_input("Bajaj", "85000"))
    core_logic.add_vehicle(context, _vehicle_input("Mahindra", "92000"))

    context = core_logic.refresh_context(context)
    core_logic.record_sale(context, _sale_input(v1.vehicle_id, "95000", "2024-02-01"))

    context = core_logic.refresh_context(context)
    report = reporting.build_report(context)

    assert len(report.rows) == 1
    assert report.rows[0].model == "Bajaj"
    assert report.rows[0].profit == Decimal("10000")
    assert report.summary.count == 1
    assert report.summary.total_revenue == Decimal("95000")
    assert report.summary.total_profit == Decimal("10000")

    with pytest.raises(core_logic.AlreadySoldError):
        core_logic.record_sale(context, _sale_input(v1.vehicle_id, "99000", "2024-02-02", buyer="Other"))


def test_rejected_sale_leaves_workbook_unchanged(empty_context):
    """A duplicate sale attempt changes neither collection on disk."""

    context = empty_context
    vehicle = core_logic.add_vehicle(context, _vehicle_input("Piaggio", "75000"))
    core_logic.record_sale(context, _sale_input(vehicle.vehicle_id, "80000", "2024-04-01"))
    before = (core_logic.list_vehicles(context), core_logic.list_sales(context))

    with pytest.raises(core_logic.AlreadySoldError):
        core_logic.record_sale(context, _sale_input(vehicle.vehicle_id, "81000", "2024-04-02"))

    reloaded = core_logic.refresh_context(context)
    assert (core_logic.list_vehicles(reloaded), core_logic.list_sales(reloaded)) == before


def test_cascade_delete_persists(runtime_context):
    """Cascading a delete removes both records from the saved workbook."""

    context = runtime_context
    with pytest.raises(core_logic.RequiresConfirmation):
        core_logic.delete_vehicle(context, "V-DEMO-2")

    reloaded = core_logic.refresh_context(context)
    assert core_logic.is_sold(reloaded, "V-DEMO-2")

    core_logic.delete_vehicle(reloaded, "V-DEMO-2", confirm_cascade=True)

    reloaded = core_logic.refresh_context(reloaded)
    assert "V-DEMO-2" not in {v.vehicle_id for v in core_logic.list_vehicles(reloaded)}
    assert "V-DEMO-2" not in core_logic.sold_vehicle_ids(reloaded)


def test_export_import_round_trip_restores_collections(runtime_context):
    """Importing an export restores equal records in the same order."""

    context = runtime_context
    core_logic.add_vehicle(context, _vehicle_input("Atul", "65000.50"))
    vehicles = core_logic.list_vehicles(context)
    sales = core_logic.list_sales(context)
    document = json.loads(json.dumps(core_logic.export_all(context)))

    core_logic.import_backup(context, {"vehicles": [], "sales": []})
    assert core_logic.list_vehicles(context) == []

    result = core_logic.import_backup(context, document)

    reloaded = core_logic.refresh_context(context)
    assert result == data_manager.ImportResult(vehicles_replaced=True, sales_replaced=True)
    assert core_logic.list_vehicles(reloaded) == vehicles
    assert core_logic.list_sales(reloaded) == sales


def test_import_rejects_sales_selling_a_vehicle_twice(runtime_context):
    """A backup that violates one-sale-per-vehicle keeps the current sales."""

    context = runtime_context
    document = core_logic.export_all(context)
    duplicate = dict(document["sales"][0], id="S-DUP")
    document["sales"].append(duplicate)

    result = core_logic.import_backup(context, document)

    assert result.sales_replaced is False
    assert [s.sale_id for s in core_logic.list_sales(context)] == ["S-DEMO-1", "S-DEMO-2"]


def test_damaged_sales_on_disk_are_never_overwritten(runtime_context):
    """A sale row edited by hand into nonsense blocks writes and stays on disk."""

    data_file = runtime_context.settings.data_file
    workbook = openpyxl.load_workbook(data_file)
    workbook[data_manager.SALES_SHEET]["D3"] = "ninety thousand"
    workbook.save(data_file)
    context = core_logic.refresh_context(runtime_context)

    assert core_logic.list_sales(context) == []
    with pytest.raises(core_logic.UnreadableStoreError):
        core_logic.record_sale(context, _sale_input("V-DEMO-3", "85000", "2024-03-01"))

    stored = data_manager.snapshot_rows(openpyxl.load_workbook(data_file), data_manager.SALES_SHEET)
    assert [row[0] for row in stored] == ["S-DEMO-1", "S-DEMO-2"]
    assert stored[1][3] == "ninety thousand"


def test_bill_handoff_survives_reload(runtime_context):
    """The selected bill is stored in the workbook, not in memory."""

    core_logic.select_sale_for_bill(runtime_context, "S-DEMO-1")

    reloaded = core_logic.refresh_context(runtime_context)
    sale, vehicle = core_logic.resolve_current_bill(reloaded)

    assert sale.sale_id == "S-DEMO-1"
    assert vehicle.vehicle_id == "V-DEMO-1"


def test_reveal_setting_survives_reload(runtime_context):
    """The purchase-price toggle is persisted in the Settings sheet."""

    core_logic.set_reveal_purchase_price(runtime_context, True)

    reloaded = core_logic.refresh_context(runtime_context)
    assert core_logic.get_reveal_purchase_price(reloaded) is True
