"""Positional row codecs for the statement workbook.

Each collection is stored as one worksheet with a header row and one
record per row. Column order is fixed:

transactions:
    id, date, detail, amount, bank, type, installment-current,
    installment-total, target-period, post-closing (1/0), closing-date,
    due-date, import-date, plan
banks:
    id, name, columns (comma-joined), currency symbol,
    identifiers ("||"-joined), due keywords, closing keywords
fixed_expenses:
    id, name, amount
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from statement_planner.models.bank import BankProfile, FixedExpense
from statement_planner.models.transaction import Transaction, TransactionType
from statement_planner.utils.decimal_utils import safe_decimal
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)

Row = Sequence[object]

TRANSACTION_HEADERS = [
    "id", "date", "detail", "amount", "bank", "type", "installment_current",
    "installment_total", "target_period", "post_closing", "closing_date",
    "due_date", "import_date", "plan",
]
BANK_HEADERS = [
    "id", "name", "columns", "currency", "identifiers",
    "due_date_keywords", "closing_date_keywords",
]
FIXED_EXPENSE_HEADERS = ["id", "name", "amount"]
INCOME_HEADERS = ["amount"]

COLUMN_SEPARATOR = ","
IDENTIFIER_SEPARATOR = "||"


def _cell(row: Row, index: int) -> object:
    return row[index] if index < len(row) else None


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _date_text(value: object) -> str:
    """Cells typed as dates by a spreadsheet come back as datetime objects."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return _text(value)[:10]


def _int(value: object, default: int = 1) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(str(value)))
    except (ValueError, OverflowError):
        return default


def _split(value: object, separator: str) -> list[str]:
    return [part.strip() for part in _text(value).split(separator) if part.strip()]


def transaction_to_row(tx: Transaction, import_date: str) -> list[object]:
    """Flatten a transaction into a worksheet row.

    Args:
        tx: Transaction to store.
        import_date: Date of the import (ISO).

    Returns:
        Row values in TRANSACTION_HEADERS order.
    """
    return [
        tx.id,
        tx.date,
        tx.detail,
        str(tx.amount),
        tx.bank_name,
        tx.type.value,
        tx.installment_current or 1,
        tx.installment_total or 1,
        tx.target_period or tx.date[:7],
        1 if tx.is_post_closing else 0,
        tx.statement_closing_date or "",
        tx.statement_due_date or "",
        import_date,
        tx.plan or "",
    ]


def row_to_transaction(row: Row) -> Optional[Transaction]:
    """Rebuild a transaction from a worksheet row.

    Rows without an id or an amount are skipped.

    Returns:
        The transaction, or None for an unusable row.
    """
    tx_id = _text(_cell(row, 0))
    amount = safe_decimal(_cell(row, 3), default=None)
    if not tx_id or amount is None:
        logger.warning(f"Skipping unusable transaction row: {list(row)[:4]}")
        return None

    total = _int(_cell(row, 7))
    return Transaction(
        id=tx_id,
        date=_date_text(_cell(row, 1)),
        detail=_text(_cell(row, 2)),
        amount=amount,
        bank_name=_text(_cell(row, 4)),
        type=TransactionType.parse(_text(_cell(row, 5)) or None, is_installment=total > 1),
        installment_current=_int(_cell(row, 6)),
        installment_total=total,
        target_period=_text(_cell(row, 8))[:7],
        is_post_closing=_int(_cell(row, 9), default=0) == 1,
        statement_closing_date=_date_text(_cell(row, 10)),
        statement_due_date=_date_text(_cell(row, 11)),
        import_date=_date_text(_cell(row, 12)),
        plan=_text(_cell(row, 13)) or None,
    )


def bank_to_row(bank: BankProfile) -> list[object]:
    """Flatten a bank profile into a worksheet row."""
    return [
        bank.id,
        bank.name,
        f"{COLUMN_SEPARATOR} ".join(bank.columns),
        bank.currency_symbol,
        IDENTIFIER_SEPARATOR.join(bank.identifiers),
        bank.due_date_keywords,
        bank.closing_date_keywords,
    ]


def row_to_bank(row: Row) -> Optional[BankProfile]:
    """Rebuild a bank profile from a worksheet row."""
    bank_id = _text(_cell(row, 0))
    name = _text(_cell(row, 1))
    if not bank_id and not name:
        return None
    return BankProfile(
        id=bank_id or name,
        name=name or bank_id,
        columns=_split(_cell(row, 2), COLUMN_SEPARATOR),
        currency_symbol=_text(_cell(row, 3)) or "$",
        identifiers=_split(_cell(row, 4), IDENTIFIER_SEPARATOR),
        due_date_keywords=_text(_cell(row, 5)),
        closing_date_keywords=_text(_cell(row, 6)),
    )


def fixed_expense_to_row(expense: FixedExpense) -> list[object]:
    """Flatten a fixed expense into a worksheet row."""
    return [expense.id, expense.name, str(expense.amount)]


def row_to_fixed_expense(row: Row) -> Optional[FixedExpense]:
    """Rebuild a fixed expense from a worksheet row."""
    name = _text(_cell(row, 1))
    amount = safe_decimal(_cell(row, 2), default=None)
    if not name or amount is None:
        return None
    expense = FixedExpense(name=name, amount=amount)
    if _text(_cell(row, 0)):
        expense.id = _text(_cell(row, 0))
    return expense


def parse_income(value: object) -> Decimal:
    """Income cell to Decimal, zero when empty or unreadable."""
    return safe_decimal(value) or Decimal("0")
