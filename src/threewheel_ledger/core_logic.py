"""Business logic layer for the three-wheeler ledger.

This module owns the rules that keep the vehicle inventory and the sales
ledger consistent with each other: field validation, the one-sale-per-vehicle
guard, cascading deletes and the bill handoff. All I/O goes through the Data
Access Layer (DAL) in :mod:`threewheel_ledger.data_manager`.

Every mutation follows the same cycle: read the full collections, validate,
mutate in memory, then persist the workbook. Derived state such as the set of
sold vehicles is recomputed from the persisted collections on every call.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple

from openpyxl.workbook import Workbook

from . import data_manager, log
from .constants import EXPECTED_SCHEMA_VERSION, MAX_MODEL_YEAR, MIN_MODEL_YEAR, PaymentMethod


class BusinessRuleViolation(Exception):
    """Raised when a requested operation violates a domain constraint."""


class ValidationError(BusinessRuleViolation):
    """Raised when a single input field fails its constraint."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(BusinessRuleViolation):
    """Raised when a referenced vehicle or sale is unknown."""

    def __init__(self, record_id: Optional[str], message: str) -> None:
        super().__init__(message)
        self.record_id = record_id


class AlreadySoldError(BusinessRuleViolation):
    """Raised when a sale is attempted on a vehicle that already has one."""

    def __init__(self, vehicle_id: str) -> None:
        super().__init__(f"Vehicle '{vehicle_id}' has already been sold")
        self.vehicle_id = vehicle_id


class RequiresConfirmation(BusinessRuleViolation):
    """Raised when deleting a sold vehicle needs explicit cascade consent."""

    def __init__(self, vehicle_id: str, sale_id: str) -> None:
        super().__init__(
            f"Vehicle '{vehicle_id}' has been sold (sale '{sale_id}'); "
            "deleting it also removes the sale record"
        )
        self.vehicle_id = vehicle_id
        self.sale_id = sale_id


class ImportFormatError(BusinessRuleViolation):
    """Raised when a backup payload does not have the full-state shape."""


class PersistenceError(RuntimeError):
    """Raised when the workbook cannot be written; nothing was committed."""


class UnreadableStoreError(PersistenceError):
    """Raised when a collection about to be rewritten has unreadable rows."""


@dataclass(frozen=True)
class RuntimeContext:
    """Container for configuration and the workbook store used by the BLL."""

    settings: data_manager.ConfigSettings
    workbook: Workbook


@dataclass(frozen=True)
class VehicleFields:
    """Validated, normalized vehicle input ready to become a record."""

    model: str
    year: int
    vehicle_number: str
    color: str
    chassis_number: str
    engine_number: str
    purchase_price: Decimal
    notes: Optional[str] = None


@dataclass(frozen=True)
class SaleFields:
    """Validated, normalized sale input ready to become a record."""

    vehicle_id: str
    sale_date: str
    selling_price: Decimal
    payment_method: PaymentMethod
    buyer_name: str
    buyer_address: str
    buyer_nic: str
    buyer_phone: str
    sale_notes: Optional[str] = None


@dataclass(frozen=True)
class DeletionOutcome:
    """Records removed by :func:`delete_vehicle`."""

    vehicle: data_manager.VehicleRow
    removed_sale: Optional[data_manager.SaleRow]


def _resolve_timestamp(candidate: Optional[datetime] = None) -> datetime:
    """Return ``candidate`` or the current UTC time."""

    return candidate if candidate is not None else datetime.now(UTC)


def current_date_iso() -> str:
    """Return today's UTC date as ISO text; the one clock used for dates."""
    return _resolve_timestamp().date().isoformat()


def load_runtime_context(config_path: Optional[Path] = None) -> RuntimeContext:
    """Load configuration settings and a live workbook for the BLL.

    Args:
        config_path (Path | None): Optional override path for the configuration
            file. When omitted the data layer searches upward from the current
            working directory.

    Returns:
        RuntimeContext: Settings plus the opened workbook.

    Raises:
        FileNotFoundError: If the configuration file or workbook is missing.
        KeyError: When mandatory configuration options are missing.
    """
    located_config = data_manager.find_config_file(config_path)
    resolved_config = Path(located_config).expanduser().resolve()
    parser = data_manager.read_config(resolved_config)
    settings = data_manager.parse_settings(parser, base_path=resolved_config.parent)
    workbook = data_manager.open_workbook(settings.data_file)
    log.info("Loaded runtime context for workbook '%s'", settings.data_file)
    return RuntimeContext(settings=settings, workbook=workbook)


def ensure_schema_version(context: RuntimeContext) -> None:
    """Refuse to operate on a workbook declared with a foreign schema version.

    Raises:
        RuntimeError: If ``config.ini`` declares a version other than
            ``EXPECTED_SCHEMA_VERSION``.
    """
    if context.settings.schema_version != EXPECTED_SCHEMA_VERSION:
        log.error(
            "Workbook schema mismatch: expected %s, found %s",
            EXPECTED_SCHEMA_VERSION,
            context.settings.schema_version,
        )
        raise RuntimeError(
            "Workbook schema mismatch: expected %s, found %s"
            % (EXPECTED_SCHEMA_VERSION, context.settings.schema_version)
        )

    log.debug("Schema version '%s' validated", context.settings.schema_version)


def persist_context(context: RuntimeContext) -> None:
    """Write the in-memory workbook to the configured data file.

    Raises:
        PersistenceError: If the file cannot be written.
    """
    try:
        data_manager.save_workbook(
            context.workbook,
            destination=context.settings.data_file,
        )
    except OSError as error:
        log.error("Unable to persist workbook '%s': %s", context.settings.data_file, error)
        raise PersistenceError(str(error)) from error
    log.info("Persisted workbook '%s'", context.settings.data_file)


def refresh_context(context: RuntimeContext) -> RuntimeContext:
    """Reload the workbook from disk, discarding unsaved modifications."""
    workbook = data_manager.refresh_workbook(context.settings.data_file)
    log.info("Reloaded workbook '%s'", context.settings.data_file)
    return RuntimeContext(settings=context.settings, workbook=workbook)


_COMMITTED_SHEETS = (
    data_manager.VEHICLES_SHEET,
    data_manager.SALES_SHEET,
    data_manager.CURRENT_SALE_SHEET,
)


@contextmanager
def _committing(context: RuntimeContext) -> Iterator[None]:
    """Persist the workbook after the block, restoring it if anything fails.

    The snapshot holds the raw rows of every sheet a lifecycle operation may
    touch, including rows that do not parse, so a failed write leaves the
    in-memory workbook equal to the persisted one.
    """
    workbook = context.workbook
    snapshot = {name: data_manager.snapshot_rows(workbook, name) for name in _COMMITTED_SHEETS}
    try:
        yield
        persist_context(context)
    except Exception:
        for name, rows in snapshot.items():
            data_manager.restore_rows(workbook, name, rows)
        log.warning("Rolled back in-memory workbook after a failed operation")
        raise


def _stored_vehicles(context: RuntimeContext) -> List[data_manager.VehicleRow]:
    """Read vehicles for a rewrite, refusing to continue past a bad row."""
    try:
        return data_manager.load_vehicles(context.workbook, strict=True)
    except data_manager.RECORD_ERRORS as error:
        log.error("Refusing to rewrite unreadable Vehicles sheet: %s", error)
        raise UnreadableStoreError(f"Vehicles sheet has an unreadable row: {error}") from error


def _stored_sales(context: RuntimeContext) -> List[data_manager.SaleRow]:
    """Read sales for a rewrite, refusing to continue past a bad row."""
    try:
        return data_manager.load_sales(context.workbook, strict=True)
    except data_manager.RECORD_ERRORS as error:
        log.error("Refusing to rewrite unreadable Sales sheet: %s", error)
        raise UnreadableStoreError(f"Sales sheet has an unreadable row: {error}") from error


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def list_vehicles(context: RuntimeContext) -> List[data_manager.VehicleRow]:
    """Return every vehicle in persisted insertion order."""
    return data_manager.load_vehicles(context.workbook)


def list_sales(context: RuntimeContext, *, newest_first: bool = False) -> List[data_manager.SaleRow]:
    """Return every sale, optionally sorted newest first by sale date.

    The sort is stable, so sales sharing a date keep their ledger order.
    """
    sales = data_manager.load_sales(context.workbook)
    if newest_first:
        sales.sort(key=lambda sale: sale.sale_date, reverse=True)
    return sales


def get_vehicle(context: RuntimeContext, vehicle_id: str) -> data_manager.VehicleRow:
    """Resolve a vehicle by id.

    Raises:
        NotFoundError: If no vehicle carries ``vehicle_id``.
    """
    for vehicle in data_manager.load_vehicles(context.workbook):
        if vehicle.vehicle_id == vehicle_id:
            return vehicle
    log.warning("Vehicle lookup failed for id '%s'", vehicle_id)
    raise NotFoundError(vehicle_id, f"Unknown vehicle id: {vehicle_id}")


def get_sale(context: RuntimeContext, sale_id: str) -> data_manager.SaleRow:
    """Resolve a sale by id.

    Raises:
        NotFoundError: If no sale carries ``sale_id``.
    """
    for sale in data_manager.load_sales(context.workbook):
        if sale.sale_id == sale_id:
            return sale
    log.warning("Sale lookup failed for id '%s'", sale_id)
    raise NotFoundError(sale_id, f"Unknown sale id: {sale_id}")


def sold_vehicle_ids(context: RuntimeContext) -> Set[str]:
    """Return the ids of every vehicle referenced by a persisted sale."""
    return {sale.vehicle_id for sale in data_manager.load_sales(context.workbook)}


def is_sold(context: RuntimeContext, vehicle_id: str) -> bool:
    """Return ``True`` iff some persisted sale references ``vehicle_id``."""
    return vehicle_id in sold_vehicle_ids(context)


def available_vehicles(context: RuntimeContext) -> List[data_manager.VehicleRow]:
    """Return unsold vehicles in persisted insertion order."""
    sold = sold_vehicle_ids(context)
    return [vehicle for vehicle in data_manager.load_vehicles(context.workbook) if vehicle.vehicle_id not in sold]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_vehicle(fields: Mapping[str, Any]) -> VehicleFields:
    """Check raw vehicle input and return the normalized fields.

    Constraints are checked in form order and the first failure is raised, so
    callers can point the user at exactly one field. Text is stripped before
    it is checked for emptiness.

    Args:
        fields (Mapping[str, Any]): Raw input keyed by ``VehicleFields`` names.

    Returns:
        VehicleFields: Normalized values.

    Raises:
        ValidationError: Naming the first offending field.
    """
    model = require_text(fields, "model", "Model is required")
    year = require_year(fields.get("year"))
    vehicle_number = require_text(fields, "vehicle_number", "Vehicle Number is required")
    color = require_text(fields, "color", "Color is required")
    chassis_number = require_text(fields, "chassis_number", "Chassis Number is required")
    engine_number = require_text(fields, "engine_number", "Engine Number is required")
    purchase_price = require_positive_money(
        fields.get("purchase_price"),
        field="purchase_price",
        message="Purchase price must be greater than 0",
    )
    return VehicleFields(
        model=model,
        year=year,
        vehicle_number=vehicle_number,
        color=color,
        chassis_number=chassis_number,
        engine_number=engine_number,
        purchase_price=purchase_price,
        notes=optional_text(fields.get("notes")),
    )


def validate_sale(fields: Mapping[str, Any]) -> SaleFields:
    """Check raw sale input and return the normalized fields.

    Only single-record constraints are enforced here. Whether the vehicle is
    still available depends on the whole sale collection and is checked by
    :func:`record_sale` at commit time.

    Raises:
        ValidationError: Naming the first offending field.
    """
    vehicle_id = require_text(fields, "vehicle_id", "Please select a vehicle")
    selling_price = require_positive_money(
        fields.get("selling_price"),
        field="selling_price",
        message="Selling price must be greater than 0",
    )
    payment_method = require_payment_method(fields.get("payment_method"))
    buyer_name = require_text(fields, "buyer_name", "Buyer name is required")
    buyer_address = require_text(fields, "buyer_address", "Buyer address is required")
    buyer_nic = require_text(fields, "buyer_nic", "Buyer NIC number is required")
    buyer_phone = require_text(fields, "buyer_phone", "Buyer phone number is required")
    sale_date = require_iso_date(fields.get("sale_date"), field="sale_date")
    return SaleFields(
        vehicle_id=vehicle_id,
        sale_date=sale_date,
        selling_price=selling_price,
        payment_method=payment_method,
        buyer_name=buyer_name,
        buyer_address=buyer_address,
        buyer_nic=buyer_nic,
        buyer_phone=buyer_phone,
        sale_notes=optional_text(fields.get("sale_notes")),
    )


def require_text(fields: Mapping[str, Any], field: str, message: str) -> str:
    """Return the stripped text stored under ``field`` or raise."""
    raw = fields.get(field)
    text = str(raw).strip() if raw is not None else ""
    if not text:
        log.error("Validation failed for '%s': %s", field, message)
        raise ValidationError(field, message)
    return text


def optional_text(raw: Any) -> Optional[str]:
    """Strip optional free text, collapsing blanks to ``None``."""
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def require_year(raw: Any) -> int:
    """Parse a model year within the accepted inclusive range."""
    message = "Please enter a valid year"
    if isinstance(raw, bool):
        raise ValidationError("year", message)
    try:
        year = raw if isinstance(raw, int) else int(str(raw).strip())
    except ValueError as exc:
        log.error("Validation failed for 'year': %r", raw)
        raise ValidationError("year", message) from exc
    if year < MIN_MODEL_YEAR or year > MAX_MODEL_YEAR:
        log.error("Validation failed for 'year': %s out of range", year)
        raise ValidationError("year", message)
    return year


def require_positive_money(raw: Any, *, field: str, message: str) -> Decimal:
    """Parse a strictly positive, finite monetary amount.

    Floats are converted through their text form so ``0.1`` stays ``0.1``.
    """
    if raw is None or isinstance(raw, bool):
        raise ValidationError(field, message)
    try:
        amount = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
    except InvalidOperation as exc:
        log.error("Validation failed for '%s': %r", field, raw)
        raise ValidationError(field, message) from exc
    if not amount.is_finite() or amount <= Decimal("0"):
        log.error("Validation failed for '%s': %s", field, amount)
        raise ValidationError(field, message)
    return amount


def require_payment_method(raw: Any) -> PaymentMethod:
    """Resolve a payment method label to its :class:`PaymentMethod` member."""
    if isinstance(raw, PaymentMethod):
        return raw
    label = str(raw).strip() if raw is not None else ""
    if not label:
        raise ValidationError("payment_method", "Payment method is required")
    try:
        return PaymentMethod(label)
    except ValueError as exc:
        log.error("Unsupported payment method provided: %s", label)
        raise ValidationError("payment_method", f"Unsupported payment method: {label}") from exc


def require_iso_date(raw: Any, *, field: str) -> str:
    """Return a calendar date as ISO ``YYYY-MM-DD`` text.

    Report filtering compares these strings lexicographically, which is only
    sound for the canonical ISO form.
    """
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    text = str(raw).strip() if raw is not None else ""
    if not text:
        raise ValidationError(field, "Sale date is required")
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError as exc:
        log.error("Validation failed for '%s': %r", field, raw)
        raise ValidationError(field, f"Invalid date: {text}") from exc


def generate_record_id(prefix: str, *, when: Optional[datetime] = None) -> str:
    """Generate a sortable, collision-resistant record identifier.

    Returns:
        str: ``{prefix}{YYYYMMDDHHMMSSffffff}-{6 hex chars}``.
    """
    when = when or _resolve_timestamp()
    return f"{prefix}{when.strftime('%Y%m%d%H%M%S%f')}-{uuid.uuid4().hex[:6]}"


# ---------------------------------------------------------------------------
# Lifecycle operations
# ---------------------------------------------------------------------------


def add_vehicle(context: RuntimeContext, fields: Mapping[str, Any]) -> data_manager.VehicleRow:
    """Validate and append a new vehicle to the inventory.

    The vehicle receives a fresh id and today's UTC date as its immutable
    ``added_date``; both collections are then persisted.

    Raises:
        ValidationError: If any field is invalid; nothing is written.
        PersistenceError: If the workbook cannot be saved.
    """
    validated = validate_vehicle(fields)
    vehicles = _stored_vehicles(context)
    vehicle = data_manager.VehicleRow(
        vehicle_id=generate_record_id("V"),
        model=validated.model,
        year=validated.year,
        vehicle_number=validated.vehicle_number,
        color=validated.color,
        chassis_number=validated.chassis_number,
        engine_number=validated.engine_number,
        notes=validated.notes,
        purchase_price=validated.purchase_price,
        added_date=current_date_iso(),
    )
    with _committing(context):
        data_manager.save_vehicles(context.workbook, [*vehicles, vehicle])
    log.info("Added vehicle '%s' (%s %s)", vehicle.vehicle_id, vehicle.model, vehicle.year)
    return vehicle


def update_vehicle(context: RuntimeContext, vehicle_id: str, fields: Mapping[str, Any]) -> data_manager.VehicleRow:
    """Replace the editable fields of an existing vehicle in place.

    ``vehicle_id`` and ``added_date`` are carried over. Sold vehicles can be
    edited here as well: sales reference vehicles by id only.

    Raises:
        NotFoundError: If ``vehicle_id`` is unknown.
        ValidationError: If any field is invalid; nothing is written.
    """
    vehicles = _stored_vehicles(context)
    index = next((i for i, v in enumerate(vehicles) if v.vehicle_id == vehicle_id), None)
    if index is None:
        log.warning("Update requested for unknown vehicle '%s'", vehicle_id)
        raise NotFoundError(vehicle_id, f"Unknown vehicle id: {vehicle_id}")

    validated = validate_vehicle(fields)
    if is_sold(context, vehicle_id):
        log.info("Updating vehicle '%s' which already has a sale", vehicle_id)

    updated = replace(
        vehicles[index],
        model=validated.model,
        year=validated.year,
        vehicle_number=validated.vehicle_number,
        color=validated.color,
        chassis_number=validated.chassis_number,
        engine_number=validated.engine_number,
        notes=validated.notes,
        purchase_price=validated.purchase_price,
    )
    vehicles[index] = updated
    with _committing(context):
        data_manager.save_vehicles(context.workbook, vehicles)
    log.info("Updated vehicle '%s'", vehicle_id)
    return updated


def delete_vehicle(context: RuntimeContext, vehicle_id: str, *, confirm_cascade: bool = False) -> DeletionOutcome:
    """Delete a vehicle, cascading to its sale when the caller consents.

    When a sale references the vehicle and ``confirm_cascade`` is ``False``
    the call raises :class:`RequiresConfirmation` without touching anything;
    the caller obtains consent and retries. With consent the sale is removed
    first, then the vehicle, and both collections are persisted together.

    Raises:
        NotFoundError: If ``vehicle_id`` is unknown.
        RequiresConfirmation: If a sale exists and consent was not given.
    """
    vehicles = _stored_vehicles(context)
    target = next((v for v in vehicles if v.vehicle_id == vehicle_id), None)
    if target is None:
        log.warning("Delete requested for unknown vehicle '%s'", vehicle_id)
        raise NotFoundError(vehicle_id, f"Unknown vehicle id: {vehicle_id}")

    sales = _stored_sales(context)
    linked = [sale for sale in sales if sale.vehicle_id == vehicle_id]
    if linked and not confirm_cascade:
        log.warning("Delete of sold vehicle '%s' needs cascade confirmation", vehicle_id)
        raise RequiresConfirmation(vehicle_id, linked[0].sale_id)

    current = data_manager.load_current_sale(context.workbook)
    with _committing(context):
        if linked:
            data_manager.save_sales(context.workbook, [s for s in sales if s.vehicle_id != vehicle_id])
            if current is not None and current.vehicle_id == vehicle_id:
                data_manager.clear_current_sale(context.workbook)
        data_manager.save_vehicles(context.workbook, [v for v in vehicles if v.vehicle_id != vehicle_id])

    removed_sale = linked[0] if linked else None
    log.info(
        "Deleted vehicle '%s'%s",
        vehicle_id,
        f" and its sale '{removed_sale.sale_id}'" if removed_sale else "",
    )
    return DeletionOutcome(vehicle=target, removed_sale=removed_sale)


def record_sale(context: RuntimeContext, fields: Mapping[str, Any]) -> data_manager.SaleRow:
    """Validate and append the one allowed sale of a vehicle.

    The availability check runs against a fresh read of the sale collection
    right before the write, independent of any list the caller rendered
    earlier. The new sale also becomes the current bill handoff.

    Raises:
        ValidationError: If any field is invalid.
        NotFoundError: If the referenced vehicle does not exist.
        AlreadySoldError: If the vehicle already has a sale.
    """
    validated = validate_sale(fields)
    get_vehicle(context, validated.vehicle_id)

    sales = _stored_sales(context)
    if any(sale.vehicle_id == validated.vehicle_id for sale in sales):
        log.warning("Attempted second sale of vehicle '%s'", validated.vehicle_id)
        raise AlreadySoldError(validated.vehicle_id)

    sale = data_manager.SaleRow(
        sale_id=generate_record_id("S"),
        vehicle_id=validated.vehicle_id,
        sale_date=validated.sale_date,
        selling_price=validated.selling_price,
        payment_method=validated.payment_method.value,
        buyer_name=validated.buyer_name,
        buyer_address=validated.buyer_address,
        buyer_nic=validated.buyer_nic,
        buyer_phone=validated.buyer_phone,
        sale_notes=validated.sale_notes,
    )
    with _committing(context):
        data_manager.save_sales(context.workbook, [*sales, sale])
        data_manager.save_current_sale(context.workbook, sale)
    log.info(
        "Recorded sale '%s' of vehicle '%s' (price=%s, payment=%s)",
        sale.sale_id,
        sale.vehicle_id,
        sale.selling_price,
        sale.payment_method,
    )
    return sale


# ---------------------------------------------------------------------------
# Bill handoff
# ---------------------------------------------------------------------------


def select_sale_for_bill(context: RuntimeContext, sale_id: str) -> Tuple[data_manager.SaleRow, data_manager.VehicleRow]:
    """Store ``sale_id`` in the bill handoff slot and return the resolved pair.

    Raises:
        NotFoundError: If the sale, or the vehicle it references, is missing.
    """
    sale = get_sale(context, sale_id)
    vehicle = get_vehicle(context, sale.vehicle_id)
    with _committing(context):
        data_manager.save_current_sale(context.workbook, sale)
    log.info("Selected sale '%s' for billing", sale_id)
    return sale, vehicle


def resolve_current_bill(context: RuntimeContext) -> Tuple[data_manager.SaleRow, data_manager.VehicleRow]:
    """Return the ``(sale, vehicle)`` pair held in the bill handoff slot.

    Raises:
        NotFoundError: If no sale is selected or its vehicle no longer exists.
    """
    sale = data_manager.load_current_sale(context.workbook)
    if sale is None:
        raise NotFoundError(None, "No sale selected for bill generation")
    return sale, get_vehicle(context, sale.vehicle_id)


# ---------------------------------------------------------------------------
# Settings, backup and reset
# ---------------------------------------------------------------------------


def get_reveal_purchase_price(context: RuntimeContext) -> bool:
    """Return whether reports should show purchase prices."""
    return data_manager.get_reveal_purchase_price(context.workbook)


def set_reveal_purchase_price(context: RuntimeContext, enabled: bool) -> None:
    """Persist the purchase-price display flag."""
    previous = data_manager.get_reveal_purchase_price(context.workbook)
    data_manager.set_reveal_purchase_price(context.workbook, enabled)
    try:
        persist_context(context)
    except PersistenceError:
        data_manager.set_reveal_purchase_price(context.workbook, previous)
        raise
    log.info("Purchase price display %s", "enabled" if enabled else "disabled")


def export_all(context: RuntimeContext, *, when: Optional[datetime] = None) -> Dict[str, Any]:
    """Return the full-state backup document ``{vehicles, sales, exportDate}``."""
    return {
        "vehicles": [data_manager.vehicle_to_dict(v) for v in _stored_vehicles(context)],
        "sales": [data_manager.sale_to_dict(s) for s in _stored_sales(context)],
        "exportDate": _resolve_timestamp(when).isoformat(),
    }


def _sync_current_sale(context: RuntimeContext) -> None:
    """Point the bill slot at the imported copy of its sale, or empty it."""
    current = data_manager.load_current_sale(context.workbook)
    if current is None:
        data_manager.clear_current_sale(context.workbook)
        return
    imported = {sale.sale_id: sale for sale in data_manager.load_sales(context.workbook)}
    replacement = imported.get(current.sale_id)
    if replacement is None:
        log.info("Cleared bill slot: sale '%s' is not in the imported backup", current.sale_id)
        data_manager.clear_current_sale(context.workbook)
    else:
        data_manager.save_current_sale(context.workbook, replacement)


def import_backup(context: RuntimeContext, payload: Any) -> data_manager.ImportResult:
    """Restore collections from a full-state backup document.

    Each of ``vehicles`` and ``sales`` is replaced only when well formed;
    otherwise that collection is left untouched.

    Raises:
        ImportFormatError: If ``payload`` is not a JSON object.
    """
    if not isinstance(payload, Mapping):
        log.error("Rejected backup payload of type %s", type(payload).__name__)
        raise ImportFormatError("Backup must be a JSON object with 'vehicles' and 'sales' lists")

    with _committing(context):
        result = data_manager.import_all(
            context.workbook,
            vehicles=payload.get("vehicles"),
            sales=payload.get("sales"),
        )
        if result.sales_replaced:
            _sync_current_sale(context)
    if not (result.vehicles_replaced or result.sales_replaced):
        log.warning("Backup contained no importable collections")
    return result


def reset_demo_data(context: RuntimeContext) -> None:
    """Replace all vehicles and sales with the demonstration dataset."""
    with _committing(context):
        data_manager.reset_to_seed_data(context.workbook)
        data_manager.clear_current_sale(context.workbook)
    log.info("Restored demo data")
