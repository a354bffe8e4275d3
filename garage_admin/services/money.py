"""
Work order money calculations.

All arithmetic is done in ``Decimal``. Rounding to cents happens once, in
``MoneyTotals.rounded``, right before the values are stored or shown.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Union

DEFAULT_VAT_RATE = Decimal("0.24")
CENTS = Decimal("0.01")
ZERO = Decimal("0")

# Upper bounds for one line; larger values are rejected, not coerced
MAX_QUANTITY = 10000
MAX_UNIT_PRICE = Decimal("1000000")


def _to_decimal(value: Any) -> Decimal:
    """Convert to a finite Decimal, or None when it cannot be done."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, float):
            number = Decimal(str(value))
        else:
            number = Decimal(str(value).strip() if isinstance(value, str) else value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def coerce_quantity(value: Any) -> int:
    """Quantity as a whole number, at least 1.

    Raises ValueError above ``MAX_QUANTITY``.
    """
    number = _to_decimal(value)
    if number is None:
        return 1
    if number > MAX_QUANTITY:
        raise ValueError(f"Quantity must be at most {MAX_QUANTITY}")
    return max(int(number), 1)


def coerce_unit_price(value: Any) -> Decimal:
    """Unit price as a Decimal, at least 0.

    Raises ValueError above ``MAX_UNIT_PRICE``.
    """
    number = _to_decimal(value)
    if number is None or number < 0:
        return ZERO
    if number > MAX_UNIT_PRICE:
        raise ValueError(f"Unit price must be at most {MAX_UNIT_PRICE}")
    return number


def _line_value(line: Union[Mapping, Any], key: str):
    if isinstance(line, Mapping):
        return line.get(key)
    return getattr(line, key, None)


def subtotal(lines: Iterable) -> Decimal:
    """Sum of quantity x unit price over the lines.

    Lines may be mappings or objects with ``quantity`` and ``unit_price``.
    Missing, non-numeric or negative values fall back to quantity 1 and price 0;
    values above the line bounds raise ValueError.
    """
    result = ZERO
    for line in lines:
        quantity = coerce_quantity(_line_value(line, "quantity"))
        unit_price = coerce_unit_price(_line_value(line, "unit_price"))
        result += quantity * unit_price
    return result


def vat(amount: Decimal, rate: Decimal = DEFAULT_VAT_RATE) -> Decimal:
    return amount * Decimal(str(rate))


def total(amount: Decimal, vat_amount: Decimal) -> Decimal:
    return amount + vat_amount


def to_cents(amount: Decimal) -> int:
    return int((amount / CENTS).to_integral_value(rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class MoneyTotals:
    subtotal: Decimal
    vat: Decimal
    total: Decimal

    def rounded(self) -> "MoneyTotals":
        """Round subtotal and VAT to cents; total is their rounded sum."""
        sub = self.subtotal.quantize(CENTS, rounding=ROUND_HALF_UP)
        tax = self.vat.quantize(CENTS, rounding=ROUND_HALF_UP)
        return MoneyTotals(subtotal=sub, vat=tax, total=sub + tax)

    def as_cents(self) -> dict:
        r = self.rounded()
        return {
            "subtotal_cents": to_cents(r.subtotal),
            "vat_cents": to_cents(r.vat),
            "total_cents": to_cents(r.total),
        }


def compute_totals(lines: Iterable, rate: Decimal = DEFAULT_VAT_RATE) -> MoneyTotals:
    """Run subtotal, vat and total in order over one set of lines."""
    sub = subtotal(lines)
    tax = vat(sub, rate)
    return MoneyTotals(subtotal=sub, vat=tax, total=total(sub, tax))
