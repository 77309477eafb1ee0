"""Sanitization of text written to CSV files."""

from typing import Optional

# Leading characters that make a spreadsheet evaluate a cell as a formula
# ("|" covers DDE payloads)
_FORMULA_CHARS = ("=", "+", "-", "@", "\t", "\r", "\n", "|")


def sanitize_for_csv(value: Optional[str]) -> Optional[str]:
    """Neutralize formula injection in a text cell.

    A value starting with a formula character gets a leading single quote,
    the OWASP mitigation for CSV injection. Statement details such as
    "-PERCEPCION IVA" or "=SUSCRIPCION" are common enough to need it.

    Args:
        value: Cell text, or None.

    Returns:
        Safe text, or None if input was None.
    """
    if not value:
        return value
    if value.startswith(_FORMULA_CHARS):
        return "'" + value
    return value


def sanitize_row(values: list[object]) -> list[object]:
    """Sanitize the text cells of a row, leaving other values as they are."""
    return [sanitize_for_csv(v) if isinstance(v, str) else v for v in values]
