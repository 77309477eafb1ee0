"""Installment projection into future statement periods."""

from collections import defaultdict
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from statement_planner.config import Config
from statement_planner.models.report import PeriodOption, ProjectionResult
from statement_planner.models.transaction import Transaction
from statement_planner.processing.aggregator import Aggregator
from statement_planner.processing.period_allocator import UNKNOWN_PERIOD, get_statement_period
from statement_planner.utils.date_utils import format_month_year, month_difference, shift_period
from statement_planner.utils.decimal_utils import sum_amounts
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_HORIZON_MONTHS = 36


def projected_installment(tx: Transaction, target_period: str) -> Optional[int]:
    """Installment number a transaction bills in a future period.

    Args:
        tx: Clean transaction.
        target_period: Period key strictly after the transaction's own period.

    Returns:
        The installment number, or None when the transaction is not billed
        in that period (not an installment, same or earlier period, or the
        series is already paid off).
    """
    if not tx.is_installment:
        return None

    diff = month_difference(get_statement_period(tx), target_period)
    if diff is None or diff <= 0:
        return None

    number = (tx.installment_current or 1) + diff
    if number > tx.installment_total:
        return None
    return number


def project(
    transactions: list[Transaction],
    target_period: str,
    base_period: str,
) -> ProjectionResult:
    """Transactions billed in a period, with their installment number there.

    The base period is the latest real statement: its transactions are
    returned verbatim. Any other period is treated as a future month and
    holds copies of the installment transactions still running then, with
    ``installment_current`` set to the projected number. Amounts are never
    changed.

    Args:
        transactions: Clean transactions.
        target_period: Period to show.
        base_period: Latest real statement period.

    Returns:
        ProjectionResult with the items and their installment numbers.
    """
    result = ProjectionResult()

    if target_period == base_period:
        for txn in transactions:
            if get_statement_period(txn) == target_period:
                result.items.append(txn)
                result.installment_numbers[txn.id] = txn.installment_current
        return result

    label = format_month_year(target_period)
    for txn in transactions:
        number = projected_installment(txn, target_period)
        if number is None:
            continue
        result.items.append(
            replace(
                txn,
                installment_current=number,
                explanation=f"In {label} you will pay installment {number} of {txn.installment_total}.",
            )
        )
        result.installment_numbers[txn.id] = number

    logger.debug(f"Projected {len(result.items)} installments into {target_period}")
    return result


def available_periods(transactions: list[Transaction]) -> list[str]:
    """Distinct statement periods with real transactions, newest first."""
    periods = {get_statement_period(t) for t in transactions}
    periods.discard(UNKNOWN_PERIOD)
    return sorted(periods, reverse=True)


def available_projection_periods(
    transactions: list[Transaction],
    horizon: int = DEFAULT_HORIZON_MONTHS,
) -> list[PeriodOption]:
    """Period picker entries for the projection view.

    The first entry is the base (latest real) period. It is followed by
    every month within the horizon in which at least one installment is
    still billed.

    Args:
        transactions: Clean transactions.
        horizon: Number of months to scan after the base period.

    Returns:
        Picker options, empty when there is no real period.
    """
    periods = available_periods(transactions)
    if not periods:
        return []

    base = periods[0]
    options = [PeriodOption(key=base, label=f"CURRENT ({format_month_year(base)})", is_base=True)]

    installments = [t for t in transactions if t.is_installment]
    for offset in range(1, horizon + 1):
        key = shift_period(base, offset)
        if any(projected_installment(t, key) is not None for t in installments):
            options.append(PeriodOption(key=key, label=format_month_year(key)))

    return options


def period_total(
    transactions: list[Transaction],
    period: str,
    base_period: str,
    config: Config,
) -> Decimal:
    """Amount billed in a period under the projection rule.

    Named-plan purchases count once per bank and month at their installment
    amount, the same figure the grouped period summary shows.
    """
    items = project(transactions, period, base_period).items
    return sum_amounts(t.amount for t in Aggregator(config).billed_entries(items))


def history_totals(transactions: list[Transaction], config: Config) -> list[tuple[str, Decimal]]:
    """Amount billed per real statement period, oldest first."""
    by_period: dict[str, list[Transaction]] = defaultdict(list)
    for txn in transactions:
        by_period[get_statement_period(txn)].append(txn)

    aggregator = Aggregator(config)
    return [
        (key, sum_amounts(t.amount for t in aggregator.billed_entries(by_period[key])))
        for key in reversed(available_periods(transactions))
    ]


def projection_totals(
    transactions: list[Transaction],
    config: Config,
    horizon: int = DEFAULT_HORIZON_MONTHS,
) -> list[tuple[str, Decimal]]:
    """Amount billed per projection picker period, base period first."""
    options = available_projection_periods(transactions, horizon)
    if not options:
        return []

    base = options[0].key
    return [(option.key, period_total(transactions, option.key, base, config)) for option in options]


def totals_by_bank(
    transactions: list[Transaction],
    period: str,
    base_period: str,
    config: Config,
    projected: bool = False,
) -> dict[str, Decimal]:
    """Amount billed per bank in a period.

    Args:
        transactions: Clean transactions of every bank.
        period: Period key.
        base_period: Latest real statement period.
        config: Application configuration (plan rules, tax keywords).
        projected: Use the projection rule for months after the base period.
            Otherwise only transactions billing in the period itself count.

    Returns:
        Bank name to amount, only banks with a positive amount, in order of
        first appearance.
    """
    if projected:
        items = project(transactions, period, base_period).items
    else:
        items = [t for t in transactions if get_statement_period(t) == period]

    totals: dict[str, Decimal] = {}
    for txn in Aggregator(config).billed_entries(items):
        bank = txn.bank_name or "Other"
        totals[bank] = totals.get(bank, Decimal("0")) + txn.amount

    return {bank: total for bank, total in totals.items() if total > 0}
