"""Excel workbook persistence for transactions, banks, expenses and income."""

import threading
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional, TypeVar

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from statement_planner.models.bank import BankProfile, FixedExpense
from statement_planner.models.transaction import Transaction
from statement_planner.processing.period_allocator import reallocate
from statement_planner.storage.rows import (
    BANK_HEADERS,
    FIXED_EXPENSE_HEADERS,
    INCOME_HEADERS,
    TRANSACTION_HEADERS,
    Row,
    bank_to_row,
    fixed_expense_to_row,
    parse_income,
    row_to_bank,
    row_to_fixed_expense,
    row_to_transaction,
    transaction_to_row,
)
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

TRANSACTIONS_SHEET = "transactions"
BANKS_SHEET = "banks"
FIXED_EXPENSES_SHEET = "fixed_expenses"
INCOME_SHEET = "income"

# Failures of reading or writing the workbook file
STORE_ERRORS = (OSError, InvalidFileException, zipfile.BadZipFile, KeyError, ValueError)


class StoreError(Exception):
    """Raised internally when the workbook cannot be read or written."""

    pass


@dataclass
class StoreResult:
    """Outcome of a write.

    Attributes:
        ok: Whether the write reached the file.
        message: Human-readable outcome.
    """

    ok: bool
    message: str = ""


@dataclass
class Snapshot:
    """Everything loaded by one refresh."""

    transactions: list[Transaction] = field(default_factory=list)
    banks: list[BankProfile] = field(default_factory=list)
    fixed_expenses: list[FixedExpense] = field(default_factory=list)
    income: Decimal = field(default_factory=lambda: Decimal("0"))


class WorkbookStore:
    """Stores every collection as one worksheet of a single .xlsx file.

    Reads never raise: a missing or broken workbook yields empty collections
    and an error log line. Writes return a StoreResult instead of raising.
    Nothing is retried.
    """

    def __init__(self, path: Path):
        """Initialize store.

        Args:
            path: Workbook file (created on first write).
        """
        self.path = Path(path)
        self._write_lock = threading.Lock()

    # Reads

    def fetch_transactions(self) -> list[Transaction]:
        """Load every stored transaction, in storage order."""
        return self._fetch(TRANSACTIONS_SHEET, row_to_transaction)

    def fetch_banks(self) -> list[BankProfile]:
        """Load the bank profiles."""
        return self._fetch(BANKS_SHEET, row_to_bank)

    def fetch_fixed_expenses(self) -> list[FixedExpense]:
        """Load the fixed monthly expenses."""
        return self._fetch(FIXED_EXPENSES_SHEET, row_to_fixed_expense)

    def fetch_income(self) -> Decimal:
        """Load the monthly income (zero when unset)."""
        try:
            rows = self._read_rows(INCOME_SHEET)
        except StoreError as e:
            logger.error(f"Could not load income: {e}")
            return Decimal("0")
        return parse_income(rows[0][0]) if rows and rows[0] else Decimal("0")

    def has_collection(self, sheet: str) -> bool:
        """Whether a collection was ever saved (even if now empty)."""
        if not self.path.exists():
            return False
        try:
            wb = load_workbook(self.path, read_only=True)
        except STORE_ERRORS as e:
            logger.error(f"Cannot open {self.path}: {e}")
            return False
        try:
            return sheet in wb.sheetnames
        finally:
            wb.close()

    def _fetch(self, sheet: str, decode: Callable[[Row], Optional[T]]) -> list[T]:
        try:
            rows = self._read_rows(sheet)
        except StoreError as e:
            logger.error(f"Could not load {sheet}: {e}")
            return []

        items = []
        for row in rows:
            item = decode(row)
            if item is not None:
                items.append(item)
        logger.debug(f"Loaded {len(items)} {sheet} rows from {self.path.name}")
        return items

    def _read_rows(self, sheet: str) -> list[tuple[object, ...]]:
        """Data rows of a worksheet, header excluded.

        Raises:
            StoreError: If the workbook exists but cannot be read.
        """
        if not self.path.exists():
            return []

        try:
            wb = load_workbook(self.path, read_only=True, data_only=True)
        except STORE_ERRORS as e:
            raise StoreError(f"Cannot open {self.path}: {e}") from e

        try:
            if sheet not in wb.sheetnames:
                return []
            rows = wb[sheet].iter_rows(min_row=2, values_only=True)
            return [row for row in rows if any(cell is not None and cell != "" for cell in row)]
        finally:
            wb.close()

    # Writes

    def save_transactions(
        self,
        transactions: list[Transaction],
        import_date: Optional[str] = None,
    ) -> StoreResult:
        """Append newly imported transactions.

        Args:
            transactions: Transactions to append.
            import_date: Import date recorded on every row (default: today).

        Returns:
            StoreResult of the write.
        """
        stamp = import_date or date.today().isoformat()
        rows = [transaction_to_row(t, stamp) for t in transactions]
        return self._write(TRANSACTIONS_SHEET, TRANSACTION_HEADERS, rows, replace=False)

    def save_banks(self, banks: list[BankProfile]) -> StoreResult:
        """Replace the stored bank profiles.

        Transactions of a profile that is no longer listed stay stored.
        """
        return self._write(BANKS_SHEET, BANK_HEADERS, [bank_to_row(b) for b in banks])

    def save_fixed_expenses(self, expenses: list[FixedExpense]) -> StoreResult:
        """Replace the stored fixed expenses."""
        rows = [fixed_expense_to_row(e) for e in expenses]
        return self._write(FIXED_EXPENSES_SHEET, FIXED_EXPENSE_HEADERS, rows)

    def save_income(self, amount: Decimal) -> StoreResult:
        """Replace the stored monthly income."""
        return self._write(INCOME_SHEET, INCOME_HEADERS, [[str(amount)]])

    def _write(
        self,
        sheet: str,
        headers: list[str],
        rows: list[list[object]],
        replace: bool = True,
    ) -> StoreResult:
        with self._write_lock:
            try:
                wb = self._open_for_write()
                if replace and sheet in wb.sheetnames:
                    wb.remove(wb[sheet])

                if sheet in wb.sheetnames:
                    ws = wb[sheet]
                else:
                    ws = wb.create_sheet(sheet)
                    ws.append(headers)
                    ws.freeze_panes = "A2"

                for row in rows:
                    ws.append(row)
                    # Store text like "=SUSCRIPCION" as text, not as a formula
                    for cell in ws[ws.max_row]:
                        if cell.data_type == "f":
                            cell.data_type = "s"

                self.path.parent.mkdir(parents=True, exist_ok=True)
                wb.save(self.path)
            except STORE_ERRORS as e:
                logger.error(f"Could not save {sheet} to {self.path}: {e}")
                return StoreResult(ok=False, message=f"Could not save {sheet}: {e}")

        logger.info(f"Saved {len(rows)} {sheet} rows to {self.path}")
        return StoreResult(ok=True, message=f"Saved {len(rows)} {sheet} rows")

    def _open_for_write(self) -> Workbook:
        if self.path.exists():
            return load_workbook(self.path)

        wb = Workbook()
        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)
        return wb


def refresh_all(store: WorkbookStore, max_workers: int = 4) -> Snapshot:
    """Load all four collections concurrently.

    Every read finishes before the snapshot is built. Stored period fields
    are recomputed from the transaction and statement dates.

    Args:
        store: Workbook store to read.
        max_workers: Thread pool size.

    Returns:
        A new Snapshot; callers replace their previous one with it.
    """
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        transactions = pool.submit(store.fetch_transactions)
        banks = pool.submit(store.fetch_banks)
        expenses = pool.submit(store.fetch_fixed_expenses)
        income = pool.submit(store.fetch_income)

        snapshot = Snapshot(
            transactions=[reallocate(t) for t in transactions.result()],
            banks=banks.result(),
            fixed_expenses=expenses.result(),
            income=income.result(),
        )

    logger.info(
        f"Refreshed: {len(snapshot.transactions)} transactions, "
        f"{len(snapshot.banks)} banks, {len(snapshot.fixed_expenses)} fixed expenses"
    )
    return snapshot
