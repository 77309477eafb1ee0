"""Conversion of extracted statement items into normalized transactions."""

from datetime import date
from typing import Optional

from statement_planner.config import Config
from statement_planner.models.bank import BankProfile
from statement_planner.models.transaction import (
    RawStatementItem,
    StatementExtraction,
    Transaction,
    TransactionType,
)
from statement_planner.processing.bank_rules import BankRuleEngine
from statement_planner.processing.period_allocator import allocate_period, is_post_closing
from statement_planner.utils.date_utils import normalize_date, parse_iso_date
from statement_planner.utils.decimal_utils import safe_decimal
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)


class StatementNormalizer:
    """Normalizes an extracted statement into the standard Transaction format.

    The normalizer:
    - Normalizes transaction and cycle dates to ISO
    - Allocates each line to the statement period it bills in
    - Flags post-closing purchases
    - Coerces amounts to Decimal and drops lines without one
    - Runs the bank rule engine on every line
    """

    def __init__(self, config: Config, today: Optional[date] = None):
        """Initialize normalizer with configuration.

        Args:
            config: Application configuration.
            today: Reference date for lines with unusable dates (default: today).
        """
        self.config = config
        self.rules = BankRuleEngine(config)
        self.today = today

    def normalize(
        self,
        extraction: StatementExtraction,
        bank: BankProfile,
    ) -> list[Transaction]:
        """Normalize every item of one statement.

        Args:
            extraction: Extracted cycle dates and items.
            bank: Bank profile the statement belongs to.

        Returns:
            List of normalized Transaction objects.
        """
        closing = normalize_date(extraction.closing_date)
        due = normalize_date(extraction.due_date)
        if extraction.closing_date and not parse_iso_date(closing):
            logger.warning(f"Unparseable closing date {extraction.closing_date!r}")

        transactions = []
        for item in extraction.items:
            txn = self._normalize_item(item, bank, closing, due)
            if txn is not None:
                transactions.append(txn)

        logger.info(
            f"Normalized {len(transactions)}/{len(extraction.items)} "
            f"transactions for bank {bank.name}"
        )
        return transactions

    def _normalize_item(
        self,
        item: RawStatementItem,
        bank: BankProfile,
        closing: str,
        due: str,
    ) -> Optional[Transaction]:
        """Normalize a single extracted item.

        Returns:
            Normalized Transaction or None if the line has no usable amount.
        """
        amount = safe_decimal(item.amount, default=None)
        if amount is None:
            logger.warning(f"Dropping line without a usable amount: {item.detail!r}")
            return None

        tx_date = normalize_date(item.date)
        if not parse_iso_date(tx_date):
            if tx_date:
                logger.warning(f"Unparseable date {item.date!r} for {item.detail!r}, using today")
            tx_date = ""

        total = item.installment_total or 1
        base = Transaction(
            date=tx_date or (self.today or date.today()).isoformat(),
            detail=item.detail.strip(),
            amount=amount,
            type=(
                TransactionType.INSTALLMENT
                if total > 1
                else TransactionType.parse(item.type)
            ),
            bank_name=bank.name,
            installment_current=item.installment_current or 1,
            installment_total=total,
            target_period=allocate_period(tx_date, closing, due, today=self.today),
            is_post_closing=is_post_closing(tx_date, closing),
            statement_closing_date=closing,
            statement_due_date=due,
            plan=item.plan,
        )

        return self.rules.apply_rules(base, bank.name, item)


def normalize_statement(
    extraction: StatementExtraction,
    bank: BankProfile,
    config: Config,
) -> list[Transaction]:
    """Convenience function to normalize one statement.

    Args:
        extraction: Extracted cycle dates and items.
        bank: Bank profile the statement belongs to.
        config: Application configuration.

    Returns:
        List of normalized Transaction objects.
    """
    normalizer = StatementNormalizer(config)
    return normalizer.normalize(extraction, bank)
