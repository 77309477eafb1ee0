"""Data models for statements, bank profiles and period results."""

from statement_planner.models.bank import BankProfile, FixedExpense
from statement_planner.models.report import (
    MonthlyBalance,
    PeriodOption,
    PeriodSummary,
    ProcessedResult,
    ProjectionResult,
    StatementDates,
)
from statement_planner.models.transaction import (
    EntryKind,
    RawStatementItem,
    StatementExtraction,
    Transaction,
    TransactionType,
)

__all__ = [
    "BankProfile",
    "FixedExpense",
    "EntryKind",
    "RawStatementItem",
    "StatementExtraction",
    "Transaction",
    "TransactionType",
    "MonthlyBalance",
    "PeriodOption",
    "PeriodSummary",
    "ProcessedResult",
    "ProjectionResult",
    "StatementDates",
]
