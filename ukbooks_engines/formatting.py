"""Display formatting for already-rounded monetary values."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from ukbooks_kernel.domain.values import Money, parse_decimal


def format_currency(amount: Money | Decimal | int | str | float) -> str:
    """
    Format an amount as en-GB currency text.

    Always two decimals with thousands separators: ``£1,234.50``,
    ``-£12.00``. Bare numbers are treated as pounds sterling.

    Raises:
        ValueError: If ``amount`` is not a finite number (NaN, Infinity,
            non-numeric text).
    """
    if isinstance(amount, Money):
        value, symbol = amount.amount, amount.currency.symbol
    else:
        value, symbol = parse_decimal(amount), "£"
        if value is None:
            raise ValueError(f"Cannot format {amount!r} as currency")

    value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"
