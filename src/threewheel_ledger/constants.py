"""Enumerations and fixed identifiers shared across the ledger modules.

The data access layer, the business rules and the CLI all read sheet names,
column layouts and setting keys from here so the workbook format has a single
definition.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping, Sequence


# Schema version every config.ini must declare before the ledger is mutated.
EXPECTED_SCHEMA_VERSION = "1.0.0"


class PaymentMethod(str, Enum):
    """Enumerate the payment methods a sale may be settled with."""

    READY_CASH = "Ready Cash"
    BANK_TRANSFER = "Bank Transfer"
    CHEQUE = "Cheque"
    FINANCE_LEASING = "Finance (Leasing)"
    INSTALLMENTS = "Installments"


class SheetName(str, Enum):
    """Enumerate the workbook sheet names managed by the DAL."""

    VEHICLES = "Vehicles"
    SALES = "Sales"
    SETTINGS = "Settings"
    CURRENT_SALE = "CurrentSale"


class SettingKey(str, Enum):
    """Keys stored on the ``Settings`` sheet."""

    REVEAL_PURCHASE_PRICE = "RevealPurchasePrice"


VEHICLE_COLUMNS: Sequence[str] = (
    "VehicleID",
    "Model",
    "Year",
    "VehicleNumber",
    "Color",
    "ChassisNumber",
    "EngineNumber",
    "Notes",
    "PurchasePrice",
    "AddedDate",
)

SALE_COLUMNS: Sequence[str] = (
    "SaleID",
    "VehicleID",
    "SaleDate",
    "SellingPrice",
    "PaymentMethod",
    "BuyerName",
    "BuyerAddress",
    "BuyerNIC",
    "BuyerPhone",
    "SaleNotes",
)

SETTINGS_COLUMNS: Sequence[str] = ("Key", "Value")

SHEET_COLUMNS: Mapping[str, Sequence[str]] = {
    SheetName.VEHICLES.value: VEHICLE_COLUMNS,
    SheetName.SALES.value: SALE_COLUMNS,
    SheetName.SETTINGS.value: SETTINGS_COLUMNS,
    SheetName.CURRENT_SALE.value: SALE_COLUMNS,
}

UNKNOWN_MODEL = "Unknown"
MIN_MODEL_YEAR = 1900
MAX_MODEL_YEAR = 2100


__all__ = [
    "EXPECTED_SCHEMA_VERSION",
    "PaymentMethod",
    "SheetName",
    "SettingKey",
    "VEHICLE_COLUMNS",
    "SALE_COLUMNS",
    "SETTINGS_COLUMNS",
    "SHEET_COLUMNS",
    "UNKNOWN_MODEL",
    "MIN_MODEL_YEAR",
    "MAX_MODEL_YEAR",
]
