"""Monthly balance of income against card charges and fixed expenses."""

from decimal import Decimal
from typing import Optional

from statement_planner.config import Config
from statement_planner.models.bank import FixedExpense
from statement_planner.models.report import MonthlyBalance, PeriodOption
from statement_planner.models.transaction import Transaction
from statement_planner.processing.deduplicator import clean_transactions
from statement_planner.processing.projection import available_periods, period_total
from statement_planner.utils.date_utils import format_month_year, generate_period_range
from statement_planner.utils.decimal_utils import sum_amounts
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)


class BalanceCalculator:
    """Calculates what is left of the monthly income.

    Card charges for a month follow the projection rule: the latest real
    statement period counts every charge billed in it, later months count
    the installments still running then. Named-plan purchases count at their
    consolidated installment amount, as in the period view.
    """

    def __init__(self, config: Config, transactions: list[Transaction]):
        """Initialize balance calculator.

        Args:
            config: Application configuration.
            transactions: Transactions as loaded (cleaned here).
        """
        self.config = config
        self.transactions = clean_transactions(transactions, config)
        periods = available_periods(self.transactions)
        self.base_period: Optional[str] = periods[0] if periods else None

    def card_total(self, period: str) -> Decimal:
        """Card charges billed in a period.

        Args:
            period: Period key.

        Returns:
            Sum of the charges, zero when there is no real period yet.
        """
        if self.base_period is None:
            return Decimal("0")
        return period_total(self.transactions, period, self.base_period, self.config)

    def balance_periods(self) -> list[PeriodOption]:
        """Periods offered by the balance view: base month plus the next ones.

        Returns:
            Options starting at the base period, empty without data.
        """
        if self.base_period is None:
            return []

        count = self.config.projection.balance_months + 1
        return [
            PeriodOption(key=key, label=format_month_year(key), is_base=(key == self.base_period))
            for key in generate_period_range(self.base_period, count)
        ]

    def monthly_balance(
        self,
        period: str,
        income: Decimal,
        fixed_expenses: list[FixedExpense],
    ) -> MonthlyBalance:
        """Compute the balance for one month.

        Args:
            period: Period key.
            income: Monthly income.
            fixed_expenses: Recurring expenses paid every month.

        Returns:
            MonthlyBalance for the period.
        """
        balance = MonthlyBalance(
            period=period,
            income=income,
            card_total=self.card_total(period),
            fixed_total=sum_amounts(e.amount for e in fixed_expenses),
        )

        logger.debug(
            f"Balance for {period}: income={balance.income}, "
            f"card={balance.card_total}, fixed={balance.fixed_total}, "
            f"balance={balance.balance}"
        )
        return balance
