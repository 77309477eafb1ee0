"""Statement processing pipeline components."""

from statement_planner.processing.normalizer import (
    StatementNormalizer,
    normalize_statement,
)
from statement_planner.processing.bank_rules import BankRuleEngine
from statement_planner.processing.deduplicator import (
    Deduplicator,
    PaymentClassifier,
    clean_transactions,
)
from statement_planner.processing.aggregator import Aggregator
from statement_planner.processing.balance_calculator import BalanceCalculator
from statement_planner.processing.report_generator import (
    PeriodView,
    ViewMode,
    build_period_view,
)

__all__ = [
    "StatementNormalizer",
    "normalize_statement",
    "BankRuleEngine",
    "Deduplicator",
    "PaymentClassifier",
    "clean_transactions",
    "Aggregator",
    "BalanceCalculator",
    "PeriodView",
    "ViewMode",
    "build_period_view",
]
