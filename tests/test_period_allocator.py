"""Tests for statement cycle allocation."""

from datetime import date
from decimal import Decimal

import pytest

from statement_planner.models.transaction import Transaction
from statement_planner.processing.period_allocator import (
    UNKNOWN_PERIOD,
    allocate_period,
    estimate_statement_dates,
    get_statement_period,
    is_post_closing,
    reallocate,
)


def create_transaction(
    tx_date: str = "2024-03-05",
    closing: str = "2024-03-10",
    due: str = "2024-04-10",
    target_period: str = "",
    bank_name: str = "Naranja X",
) -> Transaction:
    """Helper to create a Transaction for testing."""
    return Transaction(
        date=tx_date,
        detail="SUPERMERCADO",
        amount=Decimal("1000"),
        bank_name=bank_name,
        target_period=target_period,
        statement_closing_date=closing,
        statement_due_date=due,
    )


class TestAllocatePeriod:
    """Tests for allocate_period."""

    def test_post_closing_purchase_bills_next_cycle(self) -> None:
        """Test a purchase after closing lands one month after the due month."""
        assert allocate_period("2024-03-15", "2024-03-10", "2024-04-10") == "2024-05"
        assert is_post_closing("2024-03-15", "2024-03-10") is True

    def test_purchase_before_closing_bills_due_month(self) -> None:
        """Test a purchase before closing lands in the due date's month."""
        assert allocate_period("2024-03-05", "2024-03-10", "2024-04-10") == "2024-04"
        assert is_post_closing("2024-03-05", "2024-03-10") is False

    def test_purchase_on_closing_day_is_not_post_closing(self) -> None:
        """Test that the closing day itself still belongs to the current cycle."""
        assert allocate_period("2024-03-10", "2024-03-10", "2024-04-10") == "2024-04"
        assert is_post_closing("2024-03-10", "2024-03-10") is False

    def test_missing_due_date_defaults_to_month_after_closing(self) -> None:
        """Test the due date fallback to the first of the following month."""
        assert allocate_period("2024-03-05", "2024-03-10", "") == "2024-04"
        assert allocate_period("2024-03-15", "2024-03-10", None) == "2024-05"

    def test_december_closing_rolls_year(self) -> None:
        """Test cycle allocation over the year boundary."""
        assert allocate_period("2024-12-20", "2024-12-15", "2025-01-05") == "2025-02"

    def test_missing_closing_date_uses_own_month(self) -> None:
        """Test that without cycle dates the transaction's month is used."""
        assert allocate_period("2024-03-15", None, None) == "2024-03"
        assert is_post_closing("2024-03-15", None) is False

    def test_missing_transaction_date_uses_today(self) -> None:
        """Test that a missing date bills in the current month."""
        assert allocate_period("", "2024-03-10", "2024-04-10", today=date(2025, 7, 2)) == "2025-07"

    def test_unparseable_transaction_date_truncates(self) -> None:
        """Test that an unparseable date degrades to its first seven characters."""
        assert allocate_period("2024-3x-99", "2024-03-10", "2024-04-10") == "2024-3x"

    def test_deterministic(self) -> None:
        """Test that identical inputs always give the same period."""
        results = {allocate_period("2024-03-15", "2024-03-10", "2024-04-10") for _ in range(5)}
        assert results == {"2024-05"}

    @pytest.mark.parametrize(
        "tx_date, expected",
        [("2024-03-09", False), ("2024-03-10", False), ("2024-03-11", True)],
    )
    def test_post_closing_flag_matches_comparison(self, tx_date: str, expected: bool) -> None:
        """Test that the flag is exactly tx_date > closing_date."""
        assert is_post_closing(tx_date, "2024-03-10") is expected


class TestStatementPeriod:
    """Tests for get_statement_period and reallocate."""

    def test_full_date_period_reduced_to_month(self) -> None:
        """Test that stored full dates are cut to YYYY-MM."""
        tx = create_transaction(target_period="2024-04-01")
        assert get_statement_period(tx) == "2024-04"

    def test_falls_back_to_transaction_date(self) -> None:
        """Test the date fallback when no period is stored."""
        tx = create_transaction(tx_date="2024-02-20", target_period="")
        assert get_statement_period(tx) == "2024-02"

    def test_unknown_without_period_or_date(self) -> None:
        """Test the Unknown marker."""
        tx = create_transaction(tx_date="", target_period="")
        assert get_statement_period(tx) == UNKNOWN_PERIOD

    def test_reallocate_recomputes_from_dates(self) -> None:
        """Test that a stale stored period is replaced."""
        tx = create_transaction(tx_date="2024-03-15", target_period="2024-04")
        fresh = reallocate(tx)
        assert fresh.target_period == "2024-05"
        assert fresh.is_post_closing is True
        assert tx.target_period == "2024-04"

    def test_reallocate_keeps_period_without_closing(self) -> None:
        """Test that rows without a closing date keep their stored period."""
        tx = create_transaction(tx_date="2024-03-15", closing="", due="", target_period="2024-06-01")
        assert reallocate(tx).target_period == "2024-06"


class TestEstimateStatementDates:
    """Tests for estimate_statement_dates."""

    def test_real_dates_for_period(self) -> None:
        """Test that a period with real statement dates returns them."""
        txns = [create_transaction(target_period="2024-04")]
        dates = estimate_statement_dates(txns, "Naranja X", "2024-04")
        assert dates is not None
        assert dates.closing == "2024-03-10"
        assert dates.due == "2024-04-10"
        assert dates.is_estimated is False

    def test_projects_latest_dates_forward(self) -> None:
        """Test that a future period shifts the latest dates by the month gap."""
        txns = [create_transaction(target_period="2024-04")]
        dates = estimate_statement_dates(txns, "Naranja X", "2024-06")
        assert dates is not None
        assert dates.closing == "2024-05-10"
        assert dates.due == "2024-06-10"
        assert dates.is_estimated is True

    def test_none_without_dated_statements(self) -> None:
        """Test that a bank with no cycle dates yields None."""
        txns = [create_transaction(closing="", due="", target_period="2024-04")]
        assert estimate_statement_dates(txns, "Naranja X", "2024-06") is None

    def test_other_banks_ignored(self) -> None:
        """Test that dates of another bank are never used."""
        txns = [create_transaction(target_period="2024-04", bank_name="Galicia Visa")]
        assert estimate_statement_dates(txns, "Naranja X", "2024-04") is None
