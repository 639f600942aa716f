"""Data access layer for the three-wheeler ledger.

This module provides low-level helpers that read from and write to the ledger
workbook. Business rules belong in :mod:`threewheel_ledger.core_logic`.

The public API is designed around four responsibilities:

1. Configuration handling: finding and parsing ``config.ini``.
2. Workbook lifecycle: opening and persisting the Excel file.
3. Collection operations: whole-sheet load and replace of vehicles and sales,
   plus the ``Settings`` key/value sheet and the current-sale handoff slot.
4. Backup interchange: converting records to and from the JSON backup shape,
   and the guarded ``import_all`` / ``reset_to_seed_data`` replacements.
"""


from __future__ import annotations

import configparser
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import openpyxl
from openpyxl.styles import Font
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from . import log
from .constants import SHEET_COLUMNS, SettingKey, SheetName


CONFIG_FILE_NAME = "config.ini"
VEHICLES_SHEET = SheetName.VEHICLES.value
SALES_SHEET = SheetName.SALES.value
SETTINGS_SHEET = SheetName.SETTINGS.value
CURRENT_SALE_SHEET = SheetName.CURRENT_SALE.value

# Errors raised while turning a stored or imported value into a typed record.
RECORD_ERRORS = (KeyError, TypeError, ValueError, InvalidOperation)

VEHICLE_KEYS = (
    "id",
    "model",
    "year",
    "vehicleNumber",
    "color",
    "chassisNumber",
    "engineNumber",
    "purchasePrice",
    "addedDate",
)
SALE_KEYS = (
    "id",
    "vehicleId",
    "saleDate",
    "sellingPrice",
    "paymentMethod",
    "buyerName",
    "buyerAddress",
    "buyerNIC",
    "buyerPhone",
)


@dataclass(frozen=True)
class ConfigSettings:
    """Typed representation of the ``config.ini`` settings we care about."""

    data_file: Path
    shop_name: str
    schema_version: str


@dataclass(frozen=True)
class VehicleRow:
    """In-memory view of a row from the ``Vehicles`` sheet."""

    vehicle_id: str
    model: str
    year: int
    vehicle_number: str
    color: str
    chassis_number: str
    engine_number: str
    notes: Optional[str]
    purchase_price: Decimal
    added_date: str


@dataclass(frozen=True)
class SaleRow:
    """In-memory view of a row from the ``Sales`` sheet."""

    sale_id: str
    vehicle_id: str
    sale_date: str
    selling_price: Decimal
    payment_method: str
    buyer_name: str
    buyer_address: str
    buyer_nic: str
    buyer_phone: str
    sale_notes: Optional[str]


@dataclass(frozen=True)
class ImportResult:
    """Report which collections an import actually replaced."""

    vehicles_replaced: bool
    sales_replaced: bool


DEMO_VEHICLES: Sequence[VehicleRow] = (
    VehicleRow(
        vehicle_id="V-DEMO-1",
        model="Bajaj Auto Rickshaw",
        year=2022,
        vehicle_number="ABC-1234",
        color="Red",
        chassis_number="CH123456789",
        engine_number="EN987654321",
        notes="Good condition, low mileage",
        purchase_price=Decimal("85000"),
        added_date="2024-01-15",
    ),
    VehicleRow(
        vehicle_id="V-DEMO-2",
        model="Mahindra Alfa",
        year=2023,
        vehicle_number="XYZ-5678",
        color="Blue",
        chassis_number="CH987654321",
        engine_number="EN123456789",
        notes="New model, excellent condition",
        purchase_price=Decimal("92000"),
        added_date="2024-02-10",
    ),
    VehicleRow(
        vehicle_id="V-DEMO-3",
        model="Piaggio Ape",
        year=2021,
        vehicle_number="DEF-9012",
        color="White",
        chassis_number="CH456789123",
        engine_number="EN789123456",
        notes="Used, needs minor repairs",
        purchase_price=Decimal("75000"),
        added_date="2024-03-05",
    ),
    VehicleRow(
        vehicle_id="V-DEMO-4",
        model="TVS King",
        year=2023,
        vehicle_number="GHI-3456",
        color="Black",
        chassis_number="CH789123456",
        engine_number="EN456789123",
        notes="Brand new, showroom condition",
        purchase_price=Decimal("98000"),
        added_date="2024-03-20",
    ),
)

DEMO_SALES: Sequence[SaleRow] = (
    SaleRow(
        sale_id="S-DEMO-1",
        vehicle_id="V-DEMO-1",
        sale_date="2024-02-01",
        selling_price=Decimal("95000"),
        payment_method="Ready Cash",
        buyer_name="Ahmed Khan",
        buyer_address="123 Main Street, Karachi",
        buyer_nic="42101-1234567-1",
        buyer_phone="0300-1234567",
        sale_notes="Sold to regular customer",
    ),
    SaleRow(
        sale_id="S-DEMO-2",
        vehicle_id="V-DEMO-2",
        sale_date="2024-03-15",
        selling_price=Decimal("105000"),
        payment_method="Finance (Leasing)",
        buyer_name="Fatima Ali",
        buyer_address="456 Park Avenue, Lahore",
        buyer_nic="35202-9876543-2",
        buyer_phone="0312-9876543",
        sale_notes="Quick sale, finance approved",
    ),
)


def find_config_file(explicit_path: Optional[Path] = None) -> Path:
    """Locate the configuration file that controls how the data layer behaves.

    If the caller provides ``explicit_path`` the value is returned immediately
    without any verification. Otherwise the function walks up from the current
    working directory looking for ``CONFIG_FILE_NAME``; the first match wins.

    Args:
        explicit_path (Path | None): Optional path to use instead of performing
            the upward search.

    Returns:
        Path: The path provided by the caller or the discovered file.

    Raises:
        FileNotFoundError: If no parent directory holds ``CONFIG_FILE_NAME``.
    """

    if explicit_path:
        return explicit_path

    current = Path.cwd()
    for p in (current, *current.parents):
        candidate = p / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

    raise FileNotFoundError(
        f"Configuration file not found: {CONFIG_FILE_NAME}")


def read_config(config_path: Path) -> configparser.ConfigParser:
    """Load ``config.ini`` and return a populated ``ConfigParser`` instance.

    Validation of required entries happens in :func:`parse_settings`.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist after expansion and
            resolution.
    """

    config_path = config_path.expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path)
    return parser


def parse_settings(parser: configparser.ConfigParser, *, base_path: Optional[Path] = None) -> ConfigSettings:
    """Convert a ``ConfigParser`` into strongly typed :class:`ConfigSettings`.

    Relative ``DataFile`` entries are anchored to ``base_path`` (normally the
    directory holding ``config.ini``) or to the working directory when no base
    is supplied.

    Args:
        parser (configparser.ConfigParser): Parsed configuration data.
        base_path (Path | None): Anchor directory for relative data files.

    Returns:
        ConfigSettings: Immutable settings with a resolved data file path.

    Raises:
        KeyError: If a required section or option is missing.
    """

    try:
        data_file_raw = parser.get("System", "DataFile")
        shop_name = parser.get("System", "ShopName")
        schema_version = parser.get("System", "SchemaVersion")
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise KeyError(f"Missing required configuration entry: {exc}") from exc

    data_file_path = Path(data_file_raw)
    if not data_file_path.is_absolute():
        if base_path is None:
            base_path = Path.cwd()
        data_file_path = (base_path / data_file_path).resolve()

    return ConfigSettings(
        data_file=data_file_path,
        shop_name=shop_name,
        schema_version=schema_version,
    )


def open_workbook(data_file: Path) -> Workbook:
    """Open the ledger workbook and return a live ``openpyxl`` workbook.

    Raises:
        FileNotFoundError: If ``data_file`` does not exist after expansion and
            resolution.
    """

    data_file = Path(data_file).expanduser().resolve()
    if not data_file.exists():
        raise FileNotFoundError(f"Workbook not found: {data_file}")

    return openpyxl.load_workbook(data_file)


def save_workbook(workbook: Workbook, destination: Path) -> None:
    """Persist the workbook to disk, creating parent folders on demand."""

    dest = Path(destination).expanduser().resolve()
    dest.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(dest)


def refresh_workbook(data_file: Path) -> Workbook:
    """Reload the workbook from disk, discarding unsaved in-memory changes."""

    return open_workbook(data_file)


def get_sheet(workbook: Workbook, sheet_name: str) -> Worksheet:
    """Return ``sheet_name``, creating it with its header row when absent.

    Workbooks created before a sheet was introduced keep working: the missing
    sheet simply starts out empty.
    """

    if sheet_name in workbook.sheetnames:
        return workbook[sheet_name]

    log.warning("Sheet '%s' missing from workbook; creating an empty one", sheet_name)
    sheet = workbook.create_sheet(title=sheet_name)
    write_header(sheet, SHEET_COLUMNS[sheet_name])
    return sheet


def write_header(sheet: Worksheet, columns: Sequence[str]) -> None:
    """Write a bold header row into the first row of ``sheet``."""

    bold_font = Font(bold=True)
    for column_index, column_name in enumerate(columns, start=1):
        cell = sheet.cell(row=1, column=column_index)
        cell.value = column_name
        cell.font = bold_font


def iter_records(workbook: Workbook, sheet_name: str) -> Iterable[tuple]:
    """Yield the raw value tuples of every non-empty data row of a sheet."""

    sheet = get_sheet(workbook, sheet_name)
    for raw in sheet.iter_rows(min_row=2, values_only=True):
        # skip fully empty rows
        if any(cell is not None for cell in raw):
            yield raw


def iter_vehicles(workbook: Workbook) -> Iterable[VehicleRow]:
    """Iterate over vehicle records stored on the ``Vehicles`` worksheet.

    Rows are deserialized lazily, so a malformed row raises from the iterator
    at the point it is reached. :func:`load_vehicles` is the forgiving entry
    point that callers normally use.

    Yields:
        VehicleRow: One structured record per populated row, in sheet order.
    """

    for raw in iter_records(workbook, VEHICLES_SHEET):
        yield deserialize_vehicle(raw)


def iter_sales(workbook: Workbook) -> Iterable[SaleRow]:
    """Iterate over the ``Sales`` worksheet and yield typed records."""

    for raw in iter_records(workbook, SALES_SHEET):
        yield deserialize_sale(raw)


def load_vehicles(workbook: Workbook, *, strict: bool = False) -> List[VehicleRow]:
    """Read the whole vehicle collection in insertion order.

    An unreadable sheet degrades to an empty collection so that a damaged
    workbook never blocks a read; the problem is logged instead. Callers that
    write the collection back pass ``strict=True`` and get the parse error,
    since saving the empty fallback would erase every stored row.

    Raises:
        KeyError, TypeError, ValueError, decimal.InvalidOperation: Only when
            ``strict`` is set and a row cannot be read.
    """

    try:
        return list(iter_vehicles(workbook))
    except RECORD_ERRORS as exc:
        if strict:
            raise
        log.error("Vehicles sheet is unreadable, treating it as empty: %s", exc)
        return []


def load_sales(workbook: Workbook, *, strict: bool = False) -> List[SaleRow]:
    """Read the whole sale collection in insertion order.

    Mirrors :func:`load_vehicles`, including the ``strict`` switch.
    """

    try:
        return list(iter_sales(workbook))
    except RECORD_ERRORS as exc:
        if strict:
            raise
        log.error("Sales sheet is unreadable, treating it as empty: %s", exc)
        return []


def snapshot_rows(workbook: Workbook, sheet_name: str) -> List[tuple]:
    """Copy the raw data rows of a sheet, readable or not."""

    return list(iter_records(workbook, sheet_name))


def restore_rows(workbook: Workbook, sheet_name: str, rows: Iterable[Sequence[object]]) -> None:
    """Write back rows captured by :func:`snapshot_rows`."""

    _replace_records(workbook, sheet_name, rows)


def save_vehicles(workbook: Workbook, vehicles: Iterable[VehicleRow]) -> None:
    """Replace every data row of the ``Vehicles`` sheet with ``vehicles``."""

    _replace_records(workbook, VEHICLES_SHEET, (serialize_vehicle(v) for v in vehicles))


def save_sales(workbook: Workbook, sales: Iterable[SaleRow]) -> None:
    """Replace every data row of the ``Sales`` sheet with ``sales``."""

    _replace_records(workbook, SALES_SHEET, (serialize_sale(s) for s in sales))


def _replace_records(workbook: Workbook, sheet_name: str, rows: Iterable[Sequence[object]]) -> None:
    sheet = get_sheet(workbook, sheet_name)
    if sheet.max_row > 1:
        sheet.delete_rows(2, sheet.max_row - 1)
    for row_index, row in enumerate(rows, start=2):
        for column_index, value in enumerate(row, start=1):
            sheet.cell(row=row_index, column=column_index, value=value)


def locate_row(workbook: Workbook, sheet_name: str, key_column: str, key_value: str) -> Optional[int]:
    """Find a row by matching a key value within the specified worksheet.

    Args:
        workbook (Workbook): Workbook providing access to ``sheet_name``.
        sheet_name (str): Name of the worksheet to search.
        key_column (str): Header title of the column holding the lookup key.
        key_value (str): Value to match within the key column.

    Returns:
        int | None: 1-based Excel row index when a match is found, otherwise
            ``None``.

    Raises:
        KeyError: If ``key_column`` is not present in the worksheet header.
    """

    sheet = get_sheet(workbook, sheet_name)
    header_cells = list(sheet[1])
    header_map = {cell.value: idx + 1 for idx, cell in enumerate(header_cells)}
    if key_column not in header_map:
        raise KeyError(f"Unknown column: {key_column}")

    key_col_index = header_map[key_column]

    for row_idx, row in enumerate(sheet.iter_rows(min_row=2, values_only=True), start=2):
        if row[key_col_index - 1] == key_value:
            return row_idx

    return None


def get_setting(workbook: Workbook, key: str, default: Optional[str] = None) -> Optional[str]:
    """Return the text stored for ``key`` on the ``Settings`` sheet."""

    for raw in iter_records(workbook, SETTINGS_SHEET):
        if raw[0] == key:
            return None if len(raw) < 2 or raw[1] is None else str(raw[1])
    return default


def set_setting(workbook: Workbook, key: str, value: str) -> None:
    """Insert or overwrite the value stored for ``key``."""

    row_index = locate_row(workbook, SETTINGS_SHEET, "Key", key)
    sheet = get_sheet(workbook, SETTINGS_SHEET)
    if row_index is None:
        sheet.append([key, value])
    else:
        sheet.cell(row=row_index, column=2, value=value)


def get_reveal_purchase_price(workbook: Workbook) -> bool:
    """Return the persisted "reveal purchase price" flag (default ``False``)."""

    raw = get_setting(workbook, SettingKey.REVEAL_PURCHASE_PRICE.value)
    return raw is not None and raw.strip().lower() == "true"


def set_reveal_purchase_price(workbook: Workbook, enabled: bool) -> None:
    """Persist the "reveal purchase price" flag as ``true``/``false`` text."""

    set_setting(workbook, SettingKey.REVEAL_PURCHASE_PRICE.value, "true" if enabled else "false")


def load_current_sale(workbook: Workbook) -> Optional[SaleRow]:
    """Return the sale held in the bill handoff slot, if any."""

    for raw in iter_records(workbook, CURRENT_SALE_SHEET):
        try:
            return deserialize_sale(raw)
        except RECORD_ERRORS as exc:
            log.error("Current sale slot is unreadable, ignoring it: %s", exc)
            return None
    return None


def save_current_sale(workbook: Workbook, sale: SaleRow) -> None:
    """Overwrite the bill handoff slot with ``sale``."""

    _replace_records(workbook, CURRENT_SALE_SHEET, [serialize_sale(sale)])


def clear_current_sale(workbook: Workbook) -> None:
    """Empty the bill handoff slot."""

    _replace_records(workbook, CURRENT_SALE_SHEET, [])


def import_all(workbook: Workbook, vehicles: Any = None, sales: Any = None) -> ImportResult:
    """Replace the vehicle and/or sale collections from backup payloads.

    Each payload is parsed in full before anything is written. A collection is
    replaced only when its payload is a list whose every record parses, whose
    ids are unique and, for sales, whose vehicle references are unique. Any
    other payload (absent, not a list, or containing one bad record) leaves
    that collection exactly as it was.

    Args:
        workbook (Workbook): Workbook holding the collections.
        vehicles (Any): Candidate ``vehicles`` list from a backup.
        sales (Any): Candidate ``sales`` list from a backup.

    Returns:
        ImportResult: Flags stating which collections were replaced.
    """

    parsed_vehicles = parse_vehicle_records(vehicles)
    parsed_sales = parse_sale_records(sales)

    if parsed_vehicles is not None:
        save_vehicles(workbook, parsed_vehicles)
        log.info("Imported %d vehicles", len(parsed_vehicles))
    if parsed_sales is not None:
        save_sales(workbook, parsed_sales)
        log.info("Imported %d sales", len(parsed_sales))

    return ImportResult(
        vehicles_replaced=parsed_vehicles is not None,
        sales_replaced=parsed_sales is not None,
    )


def parse_vehicle_records(payload: Any) -> Optional[List[VehicleRow]]:
    """Parse a backup ``vehicles`` list, or return ``None`` if it is malformed."""

    if not isinstance(payload, list):
        if payload is not None:
            log.warning("Ignoring vehicles payload of type %s", type(payload).__name__)
        return None

    try:
        records = [vehicle_from_dict(item) for item in payload]
    except RECORD_ERRORS as exc:
        log.warning("Ignoring vehicles payload with a malformed record: %s", exc)
        return None

    if len({record.vehicle_id for record in records}) != len(records):
        log.warning("Ignoring vehicles payload with duplicate ids")
        return None
    return records


def parse_sale_records(payload: Any) -> Optional[List[SaleRow]]:
    """Parse a backup ``sales`` list, or return ``None`` if it is malformed.

    Besides the structural checks, a list that would give one vehicle two
    sales is rejected as a whole.
    """

    if not isinstance(payload, list):
        if payload is not None:
            log.warning("Ignoring sales payload of type %s", type(payload).__name__)
        return None

    try:
        records = [sale_from_dict(item) for item in payload]
    except RECORD_ERRORS as exc:
        log.warning("Ignoring sales payload with a malformed record: %s", exc)
        return None

    if len({record.sale_id for record in records}) != len(records):
        log.warning("Ignoring sales payload with duplicate ids")
        return None
    if len({record.vehicle_id for record in records}) != len(records):
        log.warning("Ignoring sales payload that sells one vehicle twice")
        return None
    return records


def reset_to_seed_data(workbook: Workbook) -> None:
    """Clear both collections and write the demonstration dataset."""

    save_vehicles(workbook, DEMO_VEHICLES)
    save_sales(workbook, DEMO_SALES)
    log.info(
        "Seeded workbook with %d demo vehicles and %d demo sales",
        len(DEMO_VEHICLES),
        len(DEMO_SALES),
    )


def serialize_vehicle(record: VehicleRow) -> list[object]:
    """Convert a vehicle dataclass into the ``Vehicles`` column ordering."""

    return [
        record.vehicle_id,
        record.model,
        record.year,
        record.vehicle_number,
        record.color,
        record.chassis_number,
        record.engine_number,
        record.notes,
        record.purchase_price,
        record.added_date,
    ]


def serialize_sale(record: SaleRow) -> list[object]:
    """Convert a sale dataclass into the ``Sales`` column ordering."""

    return [
        record.sale_id,
        record.vehicle_id,
        record.sale_date,
        record.selling_price,
        record.payment_method,
        record.buyer_name,
        record.buyer_address,
        record.buyer_nic,
        record.buyer_phone,
        record.sale_notes,
    ]


def deserialize_vehicle(raw_row: Sequence[object]) -> VehicleRow:
    """Convert a raw worksheet row into a strongly typed vehicle record.

    Numbers typed by Excel are coerced back to text for identifier columns,
    prices become :class:`~decimal.Decimal`, and dates stored as Excel dates
    are turned back into ISO text.

    Raises:
        ValueError: If the row has the wrong width or lacks an identifier.
        TypeError, decimal.InvalidOperation: If year or price cannot be read.
    """

    (
        vehicle_id,
        model,
        year,
        vehicle_number,
        color,
        chassis_number,
        engine_number,
        notes,
        purchase_price,
        added_date,
    ) = raw_row[: len(SHEET_COLUMNS[VEHICLES_SHEET])]

    return VehicleRow(
        vehicle_id=_required_text(vehicle_id),
        model=_text(model),
        year=int(year),
        vehicle_number=_text(vehicle_number),
        color=_text(color),
        chassis_number=_text(chassis_number),
        engine_number=_text(engine_number),
        notes=_optional_text(notes),
        purchase_price=_to_decimal(purchase_price),
        added_date=_date_text(added_date),
    )


def deserialize_sale(raw_row: Sequence[object]) -> SaleRow:
    """Convert a raw worksheet row into a strongly typed sale record."""

    (
        sale_id,
        vehicle_id,
        sale_date,
        selling_price,
        payment_method,
        buyer_name,
        buyer_address,
        buyer_nic,
        buyer_phone,
        sale_notes,
    ) = raw_row[: len(SHEET_COLUMNS[SALES_SHEET])]

    return SaleRow(
        sale_id=_required_text(sale_id),
        vehicle_id=_required_text(vehicle_id),
        sale_date=_date_text(sale_date),
        selling_price=_to_decimal(selling_price),
        payment_method=_text(payment_method),
        buyer_name=_text(buyer_name),
        buyer_address=_text(buyer_address),
        buyer_nic=_text(buyer_nic),
        buyer_phone=_text(buyer_phone),
        sale_notes=_optional_text(sale_notes),
    )


def vehicle_to_dict(record: VehicleRow) -> Dict[str, Any]:
    """Render a vehicle in the camelCase backup shape."""

    return {
        "id": record.vehicle_id,
        "model": record.model,
        "year": record.year,
        "vehicleNumber": record.vehicle_number,
        "color": record.color,
        "chassisNumber": record.chassis_number,
        "engineNumber": record.engine_number,
        "notes": record.notes or "",
        "purchasePrice": json_number(record.purchase_price),
        "addedDate": record.added_date,
    }


def sale_to_dict(record: SaleRow) -> Dict[str, Any]:
    """Render a sale in the camelCase backup shape."""

    return {
        "id": record.sale_id,
        "vehicleId": record.vehicle_id,
        "saleDate": record.sale_date,
        "sellingPrice": json_number(record.selling_price),
        "paymentMethod": record.payment_method,
        "buyerName": record.buyer_name,
        "buyerAddress": record.buyer_address,
        "buyerNIC": record.buyer_nic,
        "buyerPhone": record.buyer_phone,
        "saleNotes": record.sale_notes or "",
    }


def vehicle_from_dict(record: Mapping[str, Any]) -> VehicleRow:
    """Parse one backup vehicle record.

    Raises:
        TypeError: If ``record`` is not a mapping.
        KeyError: If a required key is missing.
        ValueError, decimal.InvalidOperation: If a value cannot be parsed.
    """

    if not isinstance(record, Mapping):
        raise TypeError(f"Vehicle record must be an object, got {type(record).__name__}")
    missing = [key for key in VEHICLE_KEYS if key not in record]
    if missing:
        raise KeyError(f"Vehicle record missing keys: {', '.join(missing)}")

    return VehicleRow(
        vehicle_id=_required_text(record["id"]),
        model=_text(record["model"]),
        year=_to_int(record["year"]),
        vehicle_number=_text(record["vehicleNumber"]),
        color=_text(record["color"]),
        chassis_number=_text(record["chassisNumber"]),
        engine_number=_text(record["engineNumber"]),
        notes=_optional_text(record.get("notes")),
        purchase_price=_to_decimal(record["purchasePrice"]),
        added_date=_date_text(record["addedDate"]),
    )


def sale_from_dict(record: Mapping[str, Any]) -> SaleRow:
    """Parse one backup sale record; raises like :func:`vehicle_from_dict`."""

    if not isinstance(record, Mapping):
        raise TypeError(f"Sale record must be an object, got {type(record).__name__}")
    missing = [key for key in SALE_KEYS if key not in record]
    if missing:
        raise KeyError(f"Sale record missing keys: {', '.join(missing)}")

    return SaleRow(
        sale_id=_required_text(record["id"]),
        vehicle_id=_required_text(record["vehicleId"]),
        sale_date=_date_text(record["saleDate"]),
        selling_price=_to_decimal(record["sellingPrice"]),
        payment_method=_text(record["paymentMethod"]),
        buyer_name=_text(record["buyerName"]),
        buyer_address=_text(record["buyerAddress"]),
        buyer_nic=_text(record["buyerNIC"]),
        buyer_phone=_text(record["buyerPhone"]),
        sale_notes=_optional_text(record.get("saleNotes")),
    )


def json_number(value: Decimal) -> int | float:
    """Return ``value`` as a JSON-friendly int when integral, else a float."""

    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _text(raw: object) -> str:
    return str(raw) if raw is not None else ""


def _optional_text(raw: object) -> Optional[str]:
    if raw is None:
        return None
    text = str(raw)
    return text if text.strip() else None


def _required_text(raw: object) -> str:
    text = _text(raw).strip()
    if not text:
        raise ValueError("Record identifier is blank")
    return text


def _to_int(raw: object) -> int:
    if isinstance(raw, bool):
        raise TypeError("Boolean is not a valid year")
    return int(raw)  # type: ignore[arg-type]


def _to_decimal(raw: object) -> Decimal:
    if raw is None or isinstance(raw, bool):
        raise TypeError(f"Not a monetary value: {raw!r}")
    value = Decimal(str(raw))
    if not value.is_finite():
        raise ValueError(f"Not a finite monetary value: {raw!r}")
    return value


def _date_text(raw: object) -> str:
    # Excel may hand dates back as datetime objects.
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    text = _text(raw).strip()
    if not text:
        raise ValueError("Date value is blank")
    # Report bounds compare this text, so only canonical ISO dates are kept.
    return date.fromisoformat(text).isoformat()
