"""Grouping of a period's transactions for display."""

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from statement_planner.config import TAX_ROLLUP_DETAIL, Config, PlanRule
from statement_planner.models.report import PeriodSummary, ProcessedResult
from statement_planner.models.transaction import EntryKind, Transaction, TransactionType
from statement_planner.utils.date_utils import format_month_year
from statement_planner.utils.decimal_utils import sum_amounts
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


class Aggregator:
    """Groups a period's transactions into display entries.

    Grouping runs in two steps:
    1. Card fees and taxes are pulled into one rollup entry.
    2. Named-plan purchases (e.g. Naranja X "Zeta") are collapsed per bank
       and calendar month into one installment entry each.

    The raw transactions are kept untouched next to the grouped ones.
    """

    def __init__(self, config: Config):
        """Initialize aggregator.

        Args:
            config: Application configuration (tax keywords, plan rules).
        """
        self.config = config

    def is_tax(self, tx: Transaction) -> bool:
        """Check if a transaction is a card fee or tax."""
        if tx.type is TransactionType.TAX_FEE:
            return True
        detail = tx.detail.upper()
        return any(k in detail for k in self.config.keywords.for_bank(tx.bank_name).tax)

    def group(
        self,
        transactions: list[Transaction],
        period: str,
        bank_name: Optional[str] = None,
    ) -> ProcessedResult:
        """Group one period's transactions.

        Args:
            transactions: Transactions billed in the period.
            period: Period key, used to date the tax rollup.
            bank_name: Bank the view is restricted to, if any.

        Returns:
            ProcessedResult with raw and grouped entries and the summary.
        """
        taxes, rest = self._split_taxes(transactions)

        grouped = self.consolidate_plans(rest)
        if taxes:
            grouped.append(self._tax_rollup(taxes, period, bank_name))

        grouped.sort(key=lambda t: t.date)

        summary = PeriodSummary(
            total=sum_amounts(t.amount for t in grouped),
            total_installments=sum_amounts(t.amount for t in grouped if t.is_installment),
            total_taxes=sum_amounts(t.amount for t in taxes),
        )

        logger.debug(
            f"Grouped {len(transactions)} transactions for {period} into {len(grouped)} entries"
        )
        return ProcessedResult(
            raw_transactions=list(transactions),
            grouped_transactions=grouped,
            summary=summary,
        )

    def billed_entries(self, transactions: list[Transaction]) -> list[Transaction]:
        """Entries whose amounts add up to what a period bills.

        Taxes are kept as they are and named-plan purchases are consolidated,
        so the sum equals the grouped summary total. Period, history and bank
        totals all go through here.
        """
        taxes, rest = self._split_taxes(transactions)
        return taxes + self.consolidate_plans(rest)

    def _split_taxes(
        self, transactions: list[Transaction]
    ) -> tuple[list[Transaction], list[Transaction]]:
        taxes: list[Transaction] = []
        rest: list[Transaction] = []
        for txn in transactions:
            (taxes if self.is_tax(txn) else rest).append(txn)
        return taxes, rest

    def _tax_rollup(
        self,
        taxes: list[Transaction],
        period: str,
        bank_name: Optional[str],
    ) -> Transaction:
        banks = {t.bank_name for t in taxes}
        return Transaction(
            id=f"tax-rollup-{period}",
            date=f"{period}-01",
            detail=TAX_ROLLUP_DETAIL,
            amount=sum_amounts(t.amount for t in taxes),
            type=TransactionType.TAX_FEE,
            bank_name=bank_name or (banks.pop() if len(banks) == 1 else ""),
            target_period=period,
            kind=EntryKind.TAX_ROLLUP,
            children=list(taxes),
        )

    def consolidate_plans(self, transactions: list[Transaction]) -> list[Transaction]:
        """Collapse named-plan purchases into one entry per bank and month.

        Only the extracted plan field counts. A detail that merely mentions
        the plan keyword is passed through unchanged.
        """
        passthrough: list[Transaction] = []
        groups: dict[tuple[str, str], list[Transaction]] = defaultdict(list)
        rules: dict[str, PlanRule] = {}

        for txn in transactions:
            rule = self.config.plan_rule_for(txn.bank_name)
            if rule is not None and rule.matches(txn.plan):
                groups[(txn.bank_name, txn.date[:7])].append(txn)
                rules[txn.bank_name] = rule
            else:
                passthrough.append(txn)

        for (bank, month), items in groups.items():
            passthrough.append(self._plan_rollup(items, bank, month, rules[bank]))

        return passthrough

    def _plan_rollup(
        self,
        items: list[Transaction],
        bank: str,
        month: str,
        rule: PlanRule,
    ) -> Transaction:
        total = sum_amounts(t.amount for t in items)
        amount = (total / rule.installment_total).quantize(CENT, rounding=ROUND_HALF_UP)
        first = min(items, key=lambda t: t.date)

        return Transaction(
            id=f"plan-rollup-{bank}-{month}",
            date=first.date,
            detail=f"Plan {rule.keyword} {format_month_year(month)} {rule.marker_text}",
            amount=amount,
            type=TransactionType.INSTALLMENT,
            bank_name=bank,
            installment_current=min(first.installment_current, rule.installment_total),
            installment_total=rule.installment_total,
            target_period=first.target_period,
            is_post_closing=any(t.is_post_closing for t in items),
            statement_closing_date=first.statement_closing_date,
            statement_due_date=first.statement_due_date,
            plan=rule.keyword,
            kind=EntryKind.PLAN_ROLLUP,
            children=list(items),
        )


def filter_by_search(transactions: list[Transaction], term: Optional[str]) -> list[Transaction]:
    """Keep transactions whose detail or bank name contains a search term.

    Matching is case-insensitive. A blank term keeps everything.
    """
    if not term or not term.strip():
        return list(transactions)
    needle = term.strip().lower()
    return [
        t for t in transactions
        if needle in t.detail.lower() or needle in (t.bank_name or "").lower()
    ]


def flatten(entries: list[Transaction]) -> list[tuple[Transaction, bool]]:
    """List grouped entries each followed by its children.

    Returns:
        (transaction, is_child) pairs.
    """
    rows: list[tuple[Transaction, bool]] = []
    for entry in entries:
        rows.append((entry, False))
        rows.extend((child, True) for child in entry.children)
    return rows
