"""Command-line entry points for the three-wheeler ledger.

All orchestration in this module is limited to argparse wiring, translating
command-line arguments into the field mappings consumed by the business layer,
and printing results. Business rules live in
:mod:`threewheel_ledger.core_logic`.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping, MutableMapping, Optional, Sequence

from . import billing, core_logic, data_manager, log, reporting
from .constants import PaymentMethod


@dataclass(frozen=True)
class CommandSpec:
    """Describe how a CLI sub-command is configured and executed."""

    name: str
    help_text: str
    register: Callable[[argparse._SubParsersAction[argparse.ArgumentParser]], argparse.ArgumentParser]
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int]


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="threewheel-cli",
        description="Inventory and sales ledger for a three-wheeler shop.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to config.ini (defaults to ./config.ini).",
    )
    return parser


def configure_subcommands(
    parser: argparse.ArgumentParser,
) -> Mapping[str, CommandSpec]:
    """Wire all CLI sub-commands onto the supplied parser."""
    subparsers = parser.add_subparsers(dest="command", required=True, title="commands")
    write_specs = register_write_commands(subparsers)
    read_specs = register_read_commands(subparsers)
    return build_command_table([*write_specs.values(), *read_specs.values()])


def register_write_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare mutating CLI commands such as sales and deletions."""
    specs = {
        "add-vehicle": register_add_vehicle_command(subparsers),
        "update-vehicle": register_update_vehicle_command(subparsers),
        "delete-vehicle": register_delete_vehicle_command(subparsers),
        "sell": register_sell_command(subparsers),
        "bill": register_bill_command(subparsers),
        "reveal-prices": register_reveal_prices_command(subparsers),
        "import": register_import_command(subparsers),
        "reset-demo": register_reset_demo_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_read_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare read-only CLI commands such as listings and reports."""
    specs = {
        "vehicles": register_vehicles_command(subparsers),
        "sales": register_sales_command(subparsers),
        "report": register_report_command(subparsers),
        "export-report": register_export_report_command(subparsers),
        "export": register_export_command(subparsers),
        "show-bill": register_show_bill_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def _add_vehicle_field_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--model", required=True)
    parser.add_argument("--year", required=True)
    parser.add_argument("--vehicle-number", required=True)
    parser.add_argument("--color", required=True)
    parser.add_argument("--chassis-number", required=True)
    parser.add_argument("--engine-number", required=True)
    parser.add_argument("--purchase-price", required=True)
    parser.add_argument("--notes", default=None)


def _add_date_range_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--from", dest="from_date", default=None, help="Earliest sale date (YYYY-MM-DD).")
    parser.add_argument("--to", dest="to_date", default=None, help="Latest sale date (YYYY-MM-DD).")


def register_add_vehicle_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add-vehicle``."""
    name = "add-vehicle"
    help_text = "Add a vehicle to the inventory."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_vehicle_field_arguments(parser)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_add_vehicle)


def register_update_vehicle_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``update-vehicle``."""
    name = "update-vehicle"
    help_text = "Replace the details of an existing vehicle."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--vehicle-id", required=True)
        _add_vehicle_field_arguments(parser)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_update_vehicle)


def register_delete_vehicle_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``delete-vehicle``."""
    name = "delete-vehicle"
    help_text = "Delete a vehicle (and, with consent, its sale)."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--vehicle-id", required=True)
        parser.add_argument(
            "--confirm-cascade",
            action="store_true",
            help="Also delete the sale record when the vehicle has been sold.",
        )
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_delete_vehicle)


def register_sell_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``sell``."""
    name = "sell"
    help_text = "Record the sale of an available vehicle."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--vehicle-id", required=True)
        parser.add_argument("--selling-price", required=True)
        parser.add_argument(
            "--payment-method",
            choices=[member.value for member in PaymentMethod],
            required=True,
        )
        parser.add_argument("--buyer-name", required=True)
        parser.add_argument("--buyer-address", required=True)
        parser.add_argument("--buyer-nic", required=True)
        parser.add_argument("--buyer-phone", required=True)
        parser.add_argument("--sale-date", default=None, help="Sale date (YYYY-MM-DD); defaults to today.")
        parser.add_argument("--notes", dest="notes", default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_sell)


def register_bill_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``bill``."""
    name = "bill"
    help_text = "Select a sale for billing and print its receipt."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--sale-id", required=True)
        parser.add_argument("--output", type=Path, default=None, help="Write the receipt to this file.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_bill)


def register_reveal_prices_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``reveal-prices``."""
    name = "reveal-prices"
    help_text = "Show or hide purchase prices in reports and exports."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument("--on", dest="reveal", action="store_true")
        group.add_argument("--off", dest="reveal", action="store_false")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_reveal_prices)


def register_import_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``import``."""
    name = "import"
    help_text = "Restore vehicles and sales from a JSON backup."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--file", type=Path, required=True)
        parser.add_argument("--yes", action="store_true", help="Confirm that current data may be replaced.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_import)


def register_reset_demo_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``reset-demo``."""
    name = "reset-demo"
    help_text = "Delete all data and restore the demo inventory."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--yes", action="store_true", help="Confirm that all current data may be replaced.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_reset_demo)


def register_vehicles_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``vehicles``."""
    name = "vehicles"
    help_text = "List the vehicle inventory."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--available", action="store_true", help="Only list unsold vehicles.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_list_vehicles)


def register_sales_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``sales``."""
    name = "sales"
    help_text = "List recorded sales, newest first."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_list_sales)


def register_report_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``report``."""
    name = "report"
    help_text = "Display the sales and profit report."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_date_range_arguments(parser)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_report)


def register_export_report_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``export-report``."""
    name = "export-report"
    help_text = "Export the sales report as CSV."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_date_range_arguments(parser)
        parser.add_argument("--output", type=Path, default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_export_report)


def register_export_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``export``."""
    name = "export"
    help_text = "Write a JSON backup of all vehicles and sales."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--output", type=Path, default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_export)


def register_show_bill_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``show-bill``."""
    name = "show-bill"
    help_text = "Print the receipt of the most recently selected sale."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--output", type=Path, default=None, help="Write the receipt to this file.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_show_bill)


def load_runtime_context(config_path: Optional[Path] = None) -> core_logic.RuntimeContext:
    """Resolve the runtime context for CLI operations."""
    target = Path(config_path) if config_path is not None else None
    context = core_logic.load_runtime_context(target)
    core_logic.ensure_schema_version(context)
    return context


def dispatch_command(
    context: core_logic.RuntimeContext,
    args: argparse.Namespace,
    command_table: Mapping[str, CommandSpec],
) -> int:
    """Dispatch the parsed arguments to the configured executor."""
    if not hasattr(args, "command") or args.command is None:
        raise KeyError("No command specified")
    spec = command_table.get(args.command)
    if spec is None:
        raise KeyError(f"Unknown command: {args.command}")
    return spec.execute(context, args)


def build_command_table(
    specs: Iterable[CommandSpec],
) -> MutableMapping[str, CommandSpec]:
    """Build an index of command specifications keyed by command name."""
    table: Dict[str, CommandSpec] = {}
    for spec in specs:
        if spec.name in table:
            raise ValueError(f"Duplicate command name: {spec.name}")
        table[spec.name] = spec
    return table


def translate_vehicle_fields(args: argparse.Namespace) -> Mapping[str, Any]:
    """Translate CLI args into a vehicle field mapping."""
    return {
        "model": args.model,
        "year": args.year,
        "vehicle_number": args.vehicle_number,
        "color": args.color,
        "chassis_number": args.chassis_number,
        "engine_number": args.engine_number,
        "purchase_price": args.purchase_price,
        "notes": args.notes,
    }


def translate_sale_fields(args: argparse.Namespace) -> Mapping[str, Any]:
    """Translate CLI args into a sale field mapping."""
    sale_date = args.sale_date or core_logic.current_date_iso()
    return {
        "vehicle_id": args.vehicle_id,
        "selling_price": args.selling_price,
        "payment_method": args.payment_method,
        "buyer_name": args.buyer_name,
        "buyer_address": args.buyer_address,
        "buyer_nic": args.buyer_nic,
        "buyer_phone": args.buyer_phone,
        "sale_date": sale_date,
        "sale_notes": args.notes,
    }


def format_vehicle_line(vehicle: data_manager.VehicleRow, *, sold: bool) -> str:
    """Render one inventory line."""
    line = (
        f"{vehicle.vehicle_id}  {vehicle.model} ({vehicle.year}) - {vehicle.color or 'N/A'} - "
        f"{vehicle.vehicle_number or 'N/A'}  added {billing.format_date(vehicle.added_date)}"
    )
    return f"{line}  [SOLD]" if sold else line


def format_sale_line(sale: data_manager.SaleRow, vehicle: Optional[data_manager.VehicleRow]) -> str:
    """Render one sales listing line."""
    vehicle_name = f"{vehicle.model} ({vehicle.year})" if vehicle else "Unknown Vehicle"
    return (
        f"{sale.sale_id}  {vehicle_name}  buyer {sale.buyer_name or 'N/A'}  "
        f"{billing.format_date(sale.sale_date)}  {billing.format_currency(sale.selling_price)}  "
        f"{sale.payment_method or 'N/A'}"
    )


def run_add_vehicle(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the add-vehicle workflow in the BLL."""
    vehicle = core_logic.add_vehicle(context, translate_vehicle_fields(args))
    print(f"Vehicle added: {vehicle.vehicle_id}")
    return 0


def run_update_vehicle(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the update-vehicle workflow in the BLL."""
    vehicle = core_logic.update_vehicle(context, args.vehicle_id, translate_vehicle_fields(args))
    print(f"Vehicle updated: {vehicle.vehicle_id}")
    return 0


def run_delete_vehicle(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the delete-vehicle workflow in the BLL."""
    outcome = core_logic.delete_vehicle(
        context,
        args.vehicle_id,
        confirm_cascade=getattr(args, "confirm_cascade", False),
    )
    print(f"Vehicle deleted: {outcome.vehicle.vehicle_id}")
    if outcome.removed_sale is not None:
        print(f"Sale removed: {outcome.removed_sale.sale_id}")
    return 0


def run_sell(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the sale workflow via the BLL."""
    sale = core_logic.record_sale(context, translate_sale_fields(args))
    print(f"Sale recorded: {sale.sale_id}")
    return 0


def run_bill(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Select a sale for billing, then print or save its receipt."""
    sale, vehicle = core_logic.select_sale_for_bill(context, args.sale_id)
    _emit_bill(context, sale, vehicle, getattr(args, "output", None))
    return 0


def run_show_bill(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print or save the receipt of the sale held in the handoff slot."""
    sale, vehicle = core_logic.resolve_current_bill(context)
    _emit_bill(context, sale, vehicle, getattr(args, "output", None))
    return 0


def _emit_bill(
    context: core_logic.RuntimeContext,
    sale: data_manager.SaleRow,
    vehicle: data_manager.VehicleRow,
    output: Optional[Path],
) -> None:
    text = billing.format_bill(
        sale,
        vehicle,
        shop_name=context.settings.shop_name,
        generated_on=core_logic.current_date_iso(),
    )
    if output is None:
        print(text, end="")
        return
    target = output if output.suffix else output / billing.bill_filename(sale)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    print(f"Bill written to {target}")


def run_reveal_prices(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Toggle the purchase-price display setting."""
    core_logic.set_reveal_purchase_price(context, bool(args.reveal))
    print(f"Purchase prices {'shown' if args.reveal else 'hidden'} in reports")
    return 0


def run_import(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Restore collections from a JSON backup file once confirmed."""
    if not getattr(args, "yes", False):
        log.warning("Import aborted: pass --yes to replace all current data")
        return 2
    try:
        payload = json.loads(Path(args.file).read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise core_logic.ImportFormatError(f"Error importing file: {error}") from error
    result = core_logic.import_backup(context, payload)
    print(
        "Import finished: vehicles %s, sales %s"
        % (
            "replaced" if result.vehicles_replaced else "unchanged",
            "replaced" if result.sales_replaced else "unchanged",
        )
    )
    return 0


def run_reset_demo(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Replace all data with the demo dataset once confirmed."""
    if not getattr(args, "yes", False):
        log.warning("Reset aborted: pass --yes to replace all current data")
        return 2
    core_logic.reset_demo_data(context)
    print("Demo data restored")
    return 0


def run_list_vehicles(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print the inventory, optionally limited to unsold vehicles."""
    if getattr(args, "available", False):
        vehicles = core_logic.available_vehicles(context)
        sold: set[str] = set()
    else:
        vehicles = core_logic.list_vehicles(context)
        sold = core_logic.sold_vehicle_ids(context)
    if not vehicles:
        print("No vehicles in inventory")
        return 0
    for vehicle in vehicles:
        print(format_vehicle_line(vehicle, sold=vehicle.vehicle_id in sold))
    return 0


def run_list_sales(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print recorded sales, newest first."""
    sales = core_logic.list_sales(context, newest_first=True)
    if not sales:
        print("No sales recorded")
        return 0
    vehicles_by_id = {v.vehicle_id: v for v in core_logic.list_vehicles(context)}
    for sale in sales:
        print(format_sale_line(sale, vehicles_by_id.get(sale.vehicle_id)))
    return 0


def run_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print the report table for the requested date range."""
    report = reporting.build_report(context, args.from_date, args.to_date)
    reveal = core_logic.get_reveal_purchase_price(context)
    print(reporting.format_report_table(report, reveal_purchase_price=reveal))
    return 0


def run_export_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Write the report as CSV."""
    report = reporting.build_report(context, args.from_date, args.to_date)
    if not report.rows:
        log.warning("No data to export")
        return 1
    reveal = core_logic.get_reveal_purchase_price(context)
    output = args.output or Path(f"sales-report-{core_logic.current_date_iso()}.csv")
    output.write_text(reporting.render_report_csv(report, reveal_purchase_price=reveal), encoding="utf-8")
    print(f"Report exported to {output}")
    return 0


def run_export(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Write the full-state JSON backup."""
    output = args.output or Path(f"three-wheeler-backup-{core_logic.current_date_iso()}.json")
    output.write_text(json.dumps(core_logic.export_all(context), indent=2), encoding="utf-8")
    print(f"Data exported to {output}")
    return 0


def handle_cli_error(error: Exception) -> int:
    """Convert raised exceptions into user-friendly exit codes."""
    if isinstance(error, core_logic.RequiresConfirmation):
        log.error("%s. Re-run with --confirm-cascade to delete both.", error)
        return 2
    if isinstance(error, core_logic.BusinessRuleViolation):
        log.error("%s", error)
        return 2
    if isinstance(error, FileNotFoundError):
        log.error("%s", error)
        return 3
    if isinstance(error, core_logic.PersistenceError):
        log.error("Action did not complete: %s", error)
        return 4
    log.error("%s", error)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point that orchestrates parsing and execution."""
    parser = build_parser()
    command_table = configure_subcommands(parser)
    args = parser.parse_args(argv)
    try:
        context = load_runtime_context(getattr(args, "config", None))
        return dispatch_command(context, args, command_table)
    except Exception as error:  # pragma: no cover - centralised error handler tested separately
        return handle_cli_error(error)
