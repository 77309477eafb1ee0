"""Tests for the workbook store and its row codecs."""

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from statement_planner.models.bank import BankProfile, FixedExpense
from statement_planner.models.transaction import Transaction, TransactionType
from statement_planner.storage import WorkbookStore, refresh_all
from statement_planner.storage.rows import (
    bank_to_row,
    row_to_bank,
    row_to_fixed_expense,
    row_to_transaction,
    transaction_to_row,
)
from statement_planner.storage.workbook_store import BANKS_SHEET, TRANSACTIONS_SHEET


def create_transaction(
    detail: str = "FRAVEGA (ZETA)",
    amount: str = "1500.50",
    tx_date: str = "2024-03-15",
    target_period: str = "2024-05",
) -> Transaction:
    """Helper to create a Transaction for testing."""
    return Transaction(
        date=tx_date,
        detail=detail,
        amount=Decimal(amount),
        type=TransactionType.INSTALLMENT,
        bank_name="Naranja X",
        installment_current=1,
        installment_total=3,
        target_period=target_period,
        is_post_closing=True,
        statement_closing_date="2024-03-10",
        statement_due_date="2024-04-10",
        plan="Zeta",
    )


class TestRowCodecs:
    """Tests for the positional row codecs."""

    def test_transaction_row_layout(self) -> None:
        """Test column order of a transaction row."""
        tx = create_transaction()
        row = transaction_to_row(tx, "2024-04-01")

        assert row[0] == tx.id
        assert row[3] == "1500.50"
        assert row[8] == "2024-05"
        assert row[9] == 1
        assert row[12] == "2024-04-01"
        assert row[13] == "Zeta"

    def test_transaction_row_decoded(self) -> None:
        """Test that a stored row rebuilds the transaction."""
        tx = create_transaction()
        decoded = row_to_transaction(transaction_to_row(tx, "2024-04-01"))

        assert decoded is not None
        assert decoded.id == tx.id
        assert decoded.amount == Decimal("1500.50")
        assert decoded.type is TransactionType.INSTALLMENT
        assert decoded.is_post_closing is True
        assert decoded.plan == "Zeta"
        assert decoded.import_date == "2024-04-01"

    def test_short_legacy_row(self) -> None:
        """Test a row written before the plan column existed."""
        row = ["tx-1", "2024-03-01", "COTO", 1200, "Galicia Visa", "", 1, 1, "2024-04-01"]
        tx = row_to_transaction(row)

        assert tx is not None
        assert tx.type is TransactionType.PURCHASE
        assert tx.target_period == "2024-04"
        assert tx.is_post_closing is False
        assert tx.plan is None

    def test_out_of_range_installment_cells(self) -> None:
        """Test that overflowing numeric cells fall back to defaults."""
        row = ["tx-1", "2024-03-01", "COTO", 1200, "Galicia Visa", "", "inf", "1e400", "2024-04-01"]
        tx = row_to_transaction(row)

        assert tx is not None
        assert tx.installment_current == 1
        assert tx.installment_total == 1

    def test_spreadsheet_date_cells(self) -> None:
        """Test cells a spreadsheet typed as dates."""
        row = ["tx-1", datetime(2024, 3, 1), "COTO", "1200", "Galicia Visa", "PURCHASE",
               1, 1, "2024-04", 0, datetime(2024, 3, 10), datetime(2024, 4, 10)]
        tx = row_to_transaction(row)

        assert tx is not None
        assert tx.date == "2024-03-01"
        assert tx.statement_closing_date == "2024-03-10"

    @pytest.mark.parametrize(
        "row",
        [
            [None, "2024-03-01", "COTO", "100"],
            ["tx-1", "2024-03-01", "COTO", "abc"],
            ["tx-1", "2024-03-01", "COTO", "NaN"],
        ],
    )
    def test_unusable_transaction_rows(self, row: list[object]) -> None:
        """Test that rows without id or amount are skipped."""
        assert row_to_transaction(row) is None

    def test_bank_row_lists(self) -> None:
        """Test the joined list columns of a bank row."""
        bank = BankProfile(
            id="galicia_visa",
            name="Galicia Visa",
            columns=["Fecha", "Detalle", "Importe"],
            identifiers=["GALICIA", "VISA SIGNATURE"],
        )
        row = bank_to_row(bank)
        assert row[2] == "Fecha, Detalle, Importe"
        assert row[4] == "GALICIA||VISA SIGNATURE"

        decoded = row_to_bank(row)
        assert decoded is not None
        assert decoded.columns == bank.columns
        assert decoded.identifiers == bank.identifiers

    def test_fixed_expense_row(self) -> None:
        """Test fixed expense decoding."""
        expense = row_to_fixed_expense(["abc123", "Alquiler", "250000"])
        assert expense is not None
        assert expense.id == "abc123"
        assert expense.amount == Decimal("250000")
        assert row_to_fixed_expense(["x", "", "10"]) is None


class TestWorkbookStore:
    """Tests for WorkbookStore."""

    @pytest.fixture
    def store(self, tmp_path: Path) -> WorkbookStore:
        return WorkbookStore(tmp_path / "data" / "statements.xlsx")

    def test_missing_workbook_reads_empty(self, store: WorkbookStore) -> None:
        """Test reads before the first write."""
        assert store.fetch_transactions() == []
        assert store.fetch_banks() == []
        assert store.fetch_fixed_expenses() == []
        assert store.fetch_income() == Decimal("0")
        assert store.has_collection(BANKS_SHEET) is False

    def test_transactions_are_appended(self, store: WorkbookStore) -> None:
        """Test that each import adds rows after the existing ones."""
        first = create_transaction(detail="COTO")
        second = create_transaction(detail="YPF")

        assert store.save_transactions([first], import_date="2024-04-01").ok
        result = store.save_transactions([second], import_date="2024-04-02")
        assert result.ok is True

        stored = store.fetch_transactions()
        assert [t.detail for t in stored] == ["COTO", "YPF"]
        assert [t.import_date for t in stored] == ["2024-04-01", "2024-04-02"]
        assert stored[0].amount == Decimal("1500.50")

    def test_banks_are_replaced(self, store: WorkbookStore) -> None:
        """Test that saving banks overwrites the previous list."""
        store.save_banks([BankProfile(id="a", name="A"), BankProfile(id="b", name="B")])
        store.save_banks([BankProfile(id="b", name="B")])
        assert [b.id for b in store.fetch_banks()] == ["b"]

    def test_empty_collection_still_exists(self, store: WorkbookStore) -> None:
        """Test that deleting every bank leaves an empty but saved collection."""
        store.save_banks([])
        assert store.fetch_banks() == []
        assert store.has_collection(BANKS_SHEET) is True

    def test_collections_are_independent(self, store: WorkbookStore) -> None:
        """Test that replacing one sheet leaves the others intact."""
        store.save_transactions([create_transaction()])
        store.save_fixed_expenses([FixedExpense(name="Alquiler", amount=Decimal("250000"))])
        store.save_income(Decimal("900000"))
        store.save_fixed_expenses([FixedExpense(name="Internet", amount=Decimal("15000"))])

        assert len(store.fetch_transactions()) == 1
        assert [e.name for e in store.fetch_fixed_expenses()] == ["Internet"]
        assert store.fetch_income() == Decimal("900000")

    def test_formula_like_detail_kept_as_text(self, store: WorkbookStore) -> None:
        """Test that a detail starting with "=" is not stored as a formula."""
        store.save_transactions([create_transaction(detail="=SUSCRIPCION")])
        assert store.fetch_transactions()[0].detail == "=SUSCRIPCION"

    def test_broken_workbook(self, tmp_path: Path) -> None:
        """Test that an unreadable file gives empty reads and failed writes."""
        path = tmp_path / "statements.xlsx"
        path.write_bytes(b"not a workbook")
        store = WorkbookStore(path)

        assert store.fetch_transactions() == []
        assert store.fetch_income() == Decimal("0")
        assert store.has_collection(TRANSACTIONS_SHEET) is False

        result = store.save_banks([BankProfile(id="a", name="A")])
        assert result.ok is False
        assert "banks" in result.message


class TestRefreshAll:
    """Tests for refresh_all."""

    def test_snapshot_of_all_collections(self, tmp_path: Path) -> None:
        """Test that one refresh loads every collection."""
        store = WorkbookStore(tmp_path / "statements.xlsx")
        store.save_transactions([create_transaction()])
        store.save_banks([BankProfile(id="naranja_x", name="Naranja X")])
        store.save_fixed_expenses([FixedExpense(name="Alquiler", amount=Decimal("100"))])
        store.save_income(Decimal("1000"))

        snapshot = refresh_all(store)
        assert len(snapshot.transactions) == 1
        assert [b.name for b in snapshot.banks] == ["Naranja X"]
        assert len(snapshot.fixed_expenses) == 1
        assert snapshot.income == Decimal("1000")

    def test_stale_period_recomputed(self, tmp_path: Path) -> None:
        """Test that stored periods are recomputed from the cycle dates."""
        store = WorkbookStore(tmp_path / "statements.xlsx")
        store.save_transactions([create_transaction(target_period="2024-04")])

        (tx,) = refresh_all(store).transactions
        assert tx.target_period == "2024-05"
        assert tx.is_post_closing is True

    def test_empty_store(self, tmp_path: Path) -> None:
        """Test a refresh before anything was saved."""
        snapshot = refresh_all(WorkbookStore(tmp_path / "none.xlsx"))
        assert snapshot.transactions == []
        assert snapshot.income == Decimal("0")
