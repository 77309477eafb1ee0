"""Result models for period views, projections and balances."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from statement_planner.models.transaction import Transaction


@dataclass
class PeriodSummary:
    """Totals shown above a period's transaction table.

    Attributes:
        total: Sum of every grouped entry.
        total_usd: Dollar-denominated total (pass-through, always zero today).
        total_installments: Sum of entries that are part of installment series.
        total_taxes: Sum of the items pulled into the tax rollup.
    """

    total: Decimal = field(default_factory=lambda: Decimal("0"))
    total_usd: Decimal = field(default_factory=lambda: Decimal("0"))
    total_installments: Decimal = field(default_factory=lambda: Decimal("0"))
    total_taxes: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class ProcessedResult:
    """Transactions of one period, raw and grouped for display.

    Single source of truth for what the console table and CSV export show.
    """

    raw_transactions: list[Transaction] = field(default_factory=list)
    grouped_transactions: list[Transaction] = field(default_factory=list)
    summary: PeriodSummary = field(default_factory=PeriodSummary)

    @property
    def has_post_closing(self) -> bool:
        """Whether any raw transaction was charged after its closing date."""
        return any(t.is_post_closing for t in self.raw_transactions)


@dataclass
class ProjectionResult:
    """Transactions billed in a period and their installment number there.

    Attributes:
        items: Transactions billed in the period (copies for future months).
        installment_numbers: Transaction id to installment number in the period.
    """

    items: list[Transaction] = field(default_factory=list)
    installment_numbers: dict[str, int] = field(default_factory=dict)


@dataclass
class PeriodOption:
    """One entry of a period picker."""

    key: str
    label: str
    is_base: bool = False


@dataclass
class StatementDates:
    """Closing and due dates shown for a bank's statement period.

    Attributes:
        closing: Closing date (ISO), None if unknown.
        due: Due date (ISO), None if unknown.
        is_estimated: True when the dates were projected from another cycle.
    """

    closing: Optional[str] = None
    due: Optional[str] = None
    is_estimated: bool = False


@dataclass
class MonthlyBalance:
    """Income against card charges and fixed expenses for one month."""

    period: str
    income: Decimal
    card_total: Decimal
    fixed_total: Decimal

    @property
    def total_out(self) -> Decimal:
        """Everything that leaves the account in the month."""
        return self.card_total + self.fixed_total

    @property
    def balance(self) -> Decimal:
        """Income minus outgoing money."""
        return self.income - self.total_out

    @property
    def is_healthy(self) -> bool:
        """True when the month does not end in the red."""
        return self.balance >= 0
