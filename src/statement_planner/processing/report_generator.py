"""Period view generation for console and CSV output."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from statement_planner.config import Config
from statement_planner.models.report import ProcessedResult, StatementDates
from statement_planner.models.transaction import Transaction
from statement_planner.processing.aggregator import Aggregator, filter_by_search
from statement_planner.processing.deduplicator import clean_transactions
from statement_planner.processing.period_allocator import estimate_statement_dates
from statement_planner.processing.projection import (
    available_periods,
    available_projection_periods,
    project,
    totals_by_bank,
)
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)


class ViewMode(Enum):
    """Which periods a view offers."""

    HISTORY = "history"
    PROJECTION = "projection"


@dataclass
class PeriodView:
    """Everything shown for one selected period.

    Attributes:
        period: Period actually shown ("" when there is no data).
        base_period: Latest real statement period.
        mode: History or projection.
        result: Raw and grouped entries with the summary.
        statement_dates: Closing and due dates, only for single-bank views.
        bank_totals: Amount per bank in the period.
    """

    period: str
    base_period: str
    mode: ViewMode
    result: ProcessedResult = field(default_factory=ProcessedResult)
    statement_dates: Optional[StatementDates] = None
    bank_totals: dict[str, Decimal] = field(default_factory=dict)

    @property
    def is_projected(self) -> bool:
        """Whether the period is a future month computed by projection."""
        return self.mode is ViewMode.PROJECTION and self.period != self.base_period


def build_period_view(
    transactions: list[Transaction],
    config: Config,
    period: Optional[str] = None,
    mode: ViewMode = ViewMode.HISTORY,
    bank: Optional[str] = None,
    search: Optional[str] = None,
) -> PeriodView:
    """Build the view of one statement period.

    Single source of truth for what the console table and the CSV export
    show. Steps: clean the transactions, restrict to a bank, pick the
    period, take its transactions (projected for future months), apply the
    search term, then group.

    Args:
        transactions: Transactions as loaded from the store.
        config: Application configuration.
        period: Requested period key. Falls back to the newest available
            one when missing or not offered in the mode.
        mode: History (real periods) or projection (base plus future months).
        bank: Restrict to one bank's transactions.
        search: Case-insensitive detail or bank filter.

    Returns:
        PeriodView for the selected period.
    """
    clean = clean_transactions(transactions, config)
    scoped = [t for t in clean if t.bank_name == bank] if bank else clean

    history = available_periods(scoped)
    base = history[0] if history else ""
    if mode is ViewMode.HISTORY:
        offered = history
    else:
        offered = [
            option.key
            for option in available_projection_periods(scoped, config.projection.horizon_months)
        ]

    active = _select_period(period, offered)
    view = PeriodView(period=active, base_period=base, mode=mode)
    if not active:
        logger.info("No statement periods available")
        return view

    # History shows the period verbatim, like the base month of a projection
    items = project(scoped, active, base if view.is_projected else active).items

    items = filter_by_search(items, search)
    view.result = Aggregator(config).group(items, active, bank)

    if bank:
        view.statement_dates = estimate_statement_dates(scoped, bank, active)

    view.bank_totals = totals_by_bank(clean, active, base, config, projected=view.is_projected)
    return view


def _select_period(requested: Optional[str], offered: list[str]) -> str:
    if requested and requested in offered:
        return requested
    if requested:
        logger.warning(f"Period {requested} not available, showing the latest one")
    return offered[0] if offered else ""
