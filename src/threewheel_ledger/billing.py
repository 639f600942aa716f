"""Plain-text sale receipts.

Formatting only: the caller resolves the ``(sale, vehicle)`` pair through
:mod:`threewheel_ledger.core_logic` and this module lays it out.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from .core_logic import current_date_iso
from .data_manager import SaleRow, VehicleRow

CURRENCY_PREFIX = "Rs."
BILL_WIDTH = 60
NOT_AVAILABLE = "N/A"


def format_currency(amount: Decimal) -> str:
    """Format an amount with two decimals and Indian digit grouping.

    ``Decimal("105000")`` becomes ``"Rs. 1,05,000.00"``.
    """
    value = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, _, fraction = f"{abs(value):.2f}".partition(".")
    return f"{CURRENCY_PREFIX} {sign}{_group_indian(whole)}.{fraction}"


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups: List[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join([*groups, tail])


def format_date(iso_text: str) -> str:
    """Render ISO date text as ``"1 Feb 2024"``; other text passes through."""
    if not iso_text:
        return ""
    try:
        parsed = date.fromisoformat(iso_text)
    except ValueError:
        return iso_text
    return f"{parsed.day} {parsed.strftime('%b')} {parsed.year}"


def bill_filename(sale: SaleRow, *, extension: str = "txt") -> str:
    """Return ``Bill_<buyer name>_<sale date>.<extension>``."""
    buyer = re.sub(r"\s+", "_", sale.buyer_name.strip())
    return f"Bill_{buyer}_{sale.sale_date}.{extension}"


def format_bill(
    sale: SaleRow,
    vehicle: VehicleRow,
    *,
    shop_name: str,
    generated_on: Optional[str] = None,
) -> str:
    """Lay out a printable receipt for one sale.

    Args:
        sale (SaleRow): The sale being billed.
        vehicle (VehicleRow): The vehicle ``sale`` refers to.
        shop_name (str): Name printed in the header and footer.
        generated_on (str | None): ISO date printed in the footer; defaults to
            today's UTC date.

    Returns:
        str: Receipt text terminated by a newline.
    """
    generated_on = generated_on or current_date_iso()
    rule = "=" * BILL_WIDTH
    thin_rule = "-" * BILL_WIDTH

    lines = [
        rule,
        shop_name.center(BILL_WIDTH).rstrip(),
        "Billing & Inventory Management".center(BILL_WIDTH).rstrip(),
        "Sale Receipt".center(BILL_WIDTH).rstrip(),
        rule,
        "",
        "Vehicle Information",
        thin_rule,
        _info("Model", vehicle.model),
        _info("Year", vehicle.year),
        _info("Color", vehicle.color),
        _info("Vehicle Number", vehicle.vehicle_number),
        _info("Chassis Number", vehicle.chassis_number),
        _info("Engine Number", vehicle.engine_number),
        "",
        "Buyer Information",
        thin_rule,
        _info("Name", sale.buyer_name),
        _info("Address", sale.buyer_address),
        _info("NIC Number", sale.buyer_nic),
        _info("Phone", sale.buyer_phone),
        "",
        "Sale Information",
        thin_rule,
        _info("Sale Date", format_date(sale.sale_date)),
        _info("Payment Method", sale.payment_method),
        "",
        f"SELLING PRICE: {format_currency(sale.selling_price)}",
    ]
    if sale.sale_notes:
        lines.extend(["", _info("Notes", sale.sale_notes)])
    lines.extend(
        [
            "",
            rule,
            f"Thank you for your business with {shop_name}!".center(BILL_WIDTH).rstrip(),
            f"Generated on: {format_date(generated_on)}".center(BILL_WIDTH).rstrip(),
            rule,
        ]
    )
    return "\n".join(lines) + "\n"


def _info(label: str, value: object) -> str:
    text = str(value) if value not in (None, "") else NOT_AVAILABLE
    return f"{label + ':':<17}{text}"
