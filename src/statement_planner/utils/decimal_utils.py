"""Decimal utilities for statement amounts.

All monetary calculations must use Decimal to avoid floating-point precision issues.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

# Currency markers to strip from amount text
CURRENCY_SYMBOLS = ("U$S", "US$", "USD", "ARS", "$", "€")

# Regex for parentheses-enclosed negatives: ($1.234,56) or (1234.56)
PARENS_NEGATIVE_PATTERN = re.compile(r"^\s*\(\s*([^)]+)\s*\)\s*$")

ZERO = Decimal("0")


def parse_amount(raw_amount: str) -> Decimal:
    """Parse statement amount text into a signed Decimal.

    Handles:
    - Standard: 1234.56, -1234.56
    - Argentine/European grouping: 1.234,56 and 1234,56
    - US grouping: 1,234.56
    - Currency markers: $ 1.234,56, U$S 12,50
    - Parentheses or trailing minus for negatives: (1.234,56), 1.234,56-

    Args:
        raw_amount: The raw amount text.

    Returns:
        Parsed amount (negative for credits/refunds).

    Raises:
        ValueError: If the amount cannot be parsed.
    """
    if not raw_amount or not raw_amount.strip():
        raise ValueError("Empty amount string")

    original = raw_amount
    amount_str = raw_amount.strip()
    is_negative = False

    parens_match = PARENS_NEGATIVE_PATTERN.match(amount_str)
    if parens_match:
        amount_str = parens_match.group(1).strip()
        is_negative = True

    for symbol in CURRENCY_SYMBOLS:
        amount_str = amount_str.replace(symbol, "")
    amount_str = amount_str.replace(" ", "")

    if amount_str.startswith("-"):
        is_negative = True
        amount_str = amount_str[1:]
    elif amount_str.endswith("-"):
        is_negative = True
        amount_str = amount_str[:-1]

    if "," in amount_str and "." in amount_str:
        if amount_str.rfind(",") > amount_str.rfind("."):
            # 1.234,56 -> 1234.56
            amount_str = amount_str.replace(".", "").replace(",", ".")
        else:
            # 1,234.56 -> 1234.56
            amount_str = amount_str.replace(",", "")
    elif "," in amount_str:
        # Statements use the comma as decimal separator
        amount_str = amount_str.replace(",", ".")
    elif amount_str.count(".") > 1:
        # 1.234.567 -> 1234567
        amount_str = amount_str.replace(".", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount '{original}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Cannot parse amount '{original}': not a finite number")

    return -amount if is_negative else amount


def safe_decimal(value: Optional[object], default: Optional[Decimal] = ZERO) -> Optional[Decimal]:
    """Safely convert a value to Decimal.

    Args:
        value: Value to convert (Decimal, int, float, string or None).
        default: Value returned when conversion fails.

    Returns:
        Decimal value or default.
    """
    if value is None or isinstance(value, bool):
        return default

    try:
        if isinstance(value, Decimal):
            return value if value.is_finite() else default
        if isinstance(value, int):
            return Decimal(value)
        if isinstance(value, float):
            # Convert float to string first for precision
            result = Decimal(str(value))
            return result if result.is_finite() else default
        if isinstance(value, str):
            return parse_amount(value)
        return default
    except (InvalidOperation, ValueError):
        return default


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Sum Decimal amounts, starting from Decimal zero."""
    total = ZERO
    for amount in amounts:
        total += amount
    return total


def format_currency(
    amount: Decimal,
    symbol: str = "$",
    decimal_places: int = 0,
) -> str:
    """Format an amount for display with Argentine grouping.

    Args:
        amount: The amount to format.
        symbol: Currency symbol prefix.
        decimal_places: Number of decimal places (statements round to pesos).

    Returns:
        Formatted string like "$ 12.345" or "-$ 1.234,50".
    """
    quantize_str = "1" if decimal_places == 0 else "0." + "0" * decimal_places
    rounded = amount.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)

    text = f"{abs(rounded):,.{decimal_places}f}"
    # Swap separators: 12,345.50 -> 12.345,50
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol} {text}"
