"""Payment detection and duplicate removal.

The filter here produces the "clean" transaction list every total,
projection and period grouping is computed from.
"""

from decimal import Decimal

from statement_planner.config import Config, KeywordConfig
from statement_planner.models.transaction import Transaction, TransactionType
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)


class PaymentClassifier:
    """Recognizes statement lines that are payments received, not spend.

    A line is a payment when it is typed PAYMENT or its detail carries a
    payment keyword without an exclusion keyword, and it is not a reversal.
    """

    def __init__(self, keywords: KeywordConfig):
        """Initialize classifier.

        Args:
            keywords: Keyword tables (bank extras are merged per line).
        """
        self.keywords = keywords

    def is_payment(self, tx: Transaction) -> bool:
        """Check whether a transaction is a payment received.

        Args:
            tx: Transaction to check.

        Returns:
            True if the line must be excluded from spend.
        """
        tables = self.keywords.for_bank(tx.bank_name)
        detail = tx.detail.upper()

        if tables.reversal and tables.reversal in detail:
            return False

        if tx.type is TransactionType.PAYMENT:
            return True

        has_payment = any(k in detail for k in tables.payment)
        has_exclusion = any(k in detail for k in tables.payment_exclusions)
        return has_payment and not has_exclusion


class Deduplicator:
    """Drops payments and collapses duplicate imports.

    Duplicates share (date, detail, amount, bank). The first occurrence wins
    and input order is preserved. Applying the filter twice gives the same
    result as applying it once.
    """

    def __init__(self, config: Config):
        """Initialize deduplicator.

        Args:
            config: Application configuration.
        """
        self.config = config
        self.classifier = PaymentClassifier(config.keywords)

    def clean(self, transactions: list[Transaction]) -> list[Transaction]:
        """Return the clean transaction list.

        Args:
            transactions: Transactions as loaded.

        Returns:
            New list without payments and duplicates.
        """
        seen: set[tuple[str, str, Decimal, str]] = set()
        clean: list[Transaction] = []
        payments = 0
        duplicates = 0

        for txn in transactions:
            if self.classifier.is_payment(txn):
                payments += 1
                continue

            key = txn.dedup_key
            if key in seen:
                duplicates += 1
                continue

            seen.add(key)
            clean.append(txn)

        logger.info(
            f"Clean transactions: {len(clean)} "
            f"({payments} payments, {duplicates} duplicates removed)"
        )
        return clean


def clean_transactions(
    transactions: list[Transaction],
    config: Config,
) -> list[Transaction]:
    """Convenience function to drop payments and duplicates.

    Args:
        transactions: Transactions as loaded.
        config: Application configuration.

    Returns:
        The clean transaction list.
    """
    deduplicator = Deduplicator(config)
    return deduplicator.clean(transactions)
