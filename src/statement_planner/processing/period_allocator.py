"""Statement cycle allocation for card transactions."""

from dataclasses import replace
from datetime import date
from typing import Optional

from statement_planner.models.report import StatementDates
from statement_planner.models.transaction import Transaction
from statement_planner.utils.date_utils import (
    add_months,
    month_difference,
    parse_iso_date,
    period_key,
)
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)

UNKNOWN_PERIOD = "Unknown"


def allocate_period(
    tx_date: Optional[str],
    closing_date: Optional[str] = None,
    due_date: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    """Decide the statement period (YYYY-MM) a charge bills in.

    The cycle is identified by its due date's month. Purchases made after
    the closing date roll into the following cycle. Comparisons are by day;
    a purchase on the closing date itself stays in the current cycle.

    Args:
        tx_date: Transaction date (ISO).
        closing_date: Closing date of the statement the line came from (ISO).
        due_date: Due date of that statement (ISO). Defaults to the first day
            of the month after closing.
        today: Reference date used when the transaction date is missing.

    Returns:
        Period key.
    """
    if not tx_date:
        return period_key(today or date.today())

    tx = parse_iso_date(tx_date)
    if tx is None:
        # Degraded: keep whatever year-month the raw text starts with
        logger.debug(f"Unparseable transaction date {tx_date!r}, truncating")
        return tx_date[:7]

    closing = parse_iso_date(closing_date)
    if closing is None:
        return period_key(tx)

    due = parse_iso_date(due_date)
    if due is None:
        due = add_months(date(closing.year, closing.month, 1), 1)

    if tx > closing:
        return period_key(add_months(date(due.year, due.month, 1), 1))
    return period_key(due)


def is_post_closing(tx_date: Optional[str], closing_date: Optional[str]) -> bool:
    """Whether a transaction falls after its statement's closing date."""
    tx = parse_iso_date(tx_date)
    closing = parse_iso_date(closing_date)
    if tx is None or closing is None:
        return False
    return tx > closing


def get_statement_period(tx: Transaction) -> str:
    """Month-level key of the cycle a transaction bills in.

    Stored periods may be full dates ("2026-02-01") or year-months; both
    reduce to the first seven characters.
    """
    raw = tx.target_period or tx.date or ""
    if not raw or raw == UNKNOWN_PERIOD:
        return UNKNOWN_PERIOD
    return raw[:7]


def reallocate(tx: Transaction) -> Transaction:
    """Recompute a loaded transaction's cycle fields from its dates.

    Without a closing date nothing can be recomputed and the stored period
    is kept (reduced to its month).

    Returns:
        A copy with target_period and is_post_closing refreshed.
    """
    if not parse_iso_date(tx.statement_closing_date):
        period = get_statement_period(tx)
        return replace(tx, target_period=period, is_post_closing=False)

    return replace(
        tx,
        target_period=allocate_period(tx.date, tx.statement_closing_date, tx.statement_due_date),
        is_post_closing=is_post_closing(tx.date, tx.statement_closing_date),
    )


def estimate_statement_dates(
    transactions: list[Transaction],
    bank_name: str,
    period: str,
) -> Optional[StatementDates]:
    """Closing and due dates of a bank's statement for a period.

    When a transaction of the bank billing in the period carries its
    statement dates, those are returned as-is. Otherwise the most recent
    known closing and due dates are shifted by the number of months between
    their own period and the requested one, and flagged as estimated.

    Args:
        transactions: Clean transactions.
        bank_name: Bank to look at.
        period: Period key.

    Returns:
        StatementDates, or None when the bank has no dated statements.
    """
    bank_txns = [t for t in transactions if t.bank_name == bank_name]

    for txn in bank_txns:
        if get_statement_period(txn) == period and txn.statement_closing_date:
            return StatementDates(
                closing=txn.statement_closing_date or None,
                due=txn.statement_due_date or None,
                is_estimated=False,
            )

    closing = _project_latest(bank_txns, period, lambda t: t.statement_closing_date)
    due = _project_latest(bank_txns, period, lambda t: t.statement_due_date)
    if closing is None and due is None:
        return None
    return StatementDates(closing=closing, due=due, is_estimated=True)


def _project_latest(transactions: list[Transaction], period: str, pick) -> Optional[str]:
    samples = [t for t in transactions if parse_iso_date(pick(t))]
    if not samples:
        return None

    latest = max(samples, key=lambda t: t.date)
    base_date = parse_iso_date(pick(latest))
    diff = month_difference(get_statement_period(latest), period)
    if base_date is None or diff is None:
        return None
    return add_months(base_date, diff).isoformat()
