"""Transaction data models for credit card statements."""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(Enum):
    """Classification of a statement line."""

    PURCHASE = "PURCHASE"
    INSTALLMENT = "INSTALLMENT"
    TAX_FEE = "TAX_FEE"
    PAYMENT = "PAYMENT"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: object, is_installment: bool = False) -> "TransactionType":
        """Map an arbitrary value to a TransactionType.

        Unknown or missing values are derived from the installment flag.

        Args:
            value: Raw type value (string, enum member or None).
            is_installment: Whether the line belongs to an installment series.

        Returns:
            The matching TransactionType.
        """
        if isinstance(value, TransactionType):
            return value
        if value is not None:
            try:
                return cls(str(value).strip().upper())
            except ValueError:
                pass
        return cls.INSTALLMENT if is_installment else cls.PURCHASE


class EntryKind(Enum):
    """Whether an entry is a real statement line or a synthetic rollup."""

    RAW = "raw"
    TAX_ROLLUP = "tax-rollup"
    PLAN_ROLLUP = "plan-rollup"


@dataclass
class RawStatementItem:
    """One line item exactly as the AI extractor returned it.

    This intermediate representation keeps the loosely typed extraction
    output apart from the canonical Transaction; the conversion happens in
    the statement normalizer.
    """

    date: str = ""
    detail: str = ""
    amount: object = None
    type: Optional[str] = None
    plan: Optional[str] = None
    installment_current: Optional[int] = None
    installment_total: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "RawStatementItem":
        """Create from an extraction payload item (camelCase keys)."""
        return cls(
            date=str(data.get("date") or ""),
            detail=str(data.get("detail") or ""),
            amount=data.get("amount"),
            type=str(data["type"]) if data.get("type") else None,
            plan=str(data["plan"]) if data.get("plan") else None,
            installment_current=_optional_int(data.get("installmentCurrent")),
            installment_total=_optional_int(data.get("installmentTotal")),
        )


@dataclass
class StatementExtraction:
    """Cycle-level result of extracting one statement.

    Attributes:
        closing_date: Closing date text as extracted (not yet normalized).
        due_date: Due date text as extracted (not yet normalized).
        items: Extracted line items.
    """

    closing_date: str = ""
    due_date: str = ""
    items: list[RawStatementItem] = field(default_factory=list)


@dataclass
class Transaction:
    """One purchase, fee or payment line, or a synthetic rollup of several.

    Attributes:
        date: Posting date as an ISO string (YYYY-MM-DD).
        detail: Free-text description.
        amount: Per-period charge (per-installment amount for installments).
        type: Classification of the line.
        bank_name: Display name of the owning bank profile.
        id: Opaque unique identifier.
        installment_current: 1-based position in the installment series.
        installment_total: Number of installments in the series.
        target_period: Statement cycle (YYYY-MM) this charge bills in.
        is_post_closing: Whether the date falls after the cycle's closing date.
        statement_closing_date: Closing date of the source statement.
        statement_due_date: Due date of the source statement.
        plan: Raw plan code as extracted (e.g. "03/06" or "Zeta").
        kind: Real statement line or synthetic rollup.
        children: Transactions summarized by a synthetic rollup.
        explanation: Human-readable note attached by projections.
        import_date: Date the row was persisted.
    """

    date: str
    detail: str
    amount: Decimal
    type: TransactionType = TransactionType.PURCHASE
    bank_name: str = ""

    id: str = field(default_factory=lambda: f"tx-{uuid.uuid4().hex[:12]}")

    # Installment series
    installment_current: int = 1
    installment_total: int = 1

    # Statement cycle
    target_period: str = ""
    is_post_closing: bool = False
    statement_closing_date: str = ""
    statement_due_date: str = ""

    plan: Optional[str] = None
    kind: EntryKind = EntryKind.RAW
    children: list["Transaction"] = field(default_factory=list)
    explanation: Optional[str] = None
    import_date: str = ""

    @property
    def is_installment(self) -> bool:
        """True iff the transaction is part of a multi-installment series."""
        return self.installment_total > 1

    @property
    def installments_remaining(self) -> int:
        """Installments still to be billed after the current one."""
        return max(self.installment_total - self.installment_current, 0)

    @property
    def is_synthetic(self) -> bool:
        """Whether this entry is a rollup rather than a statement line."""
        return self.kind is not EntryKind.RAW

    @property
    def dedup_key(self) -> tuple[str, str, Decimal, str]:
        """Composite identity used to collapse duplicate imports."""
        return (self.date, self.detail, self.amount, self.bank_name)

    def __repr__(self) -> str:
        return (
            f"Transaction(date={self.date}, "
            f"detail={self.detail[:30]!r}, "
            f"amount={self.amount}, "
            f"bank={self.bank_name}, "
            f"period={self.target_period})"
        )


def _optional_int(value: object) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(str(value)))
    except (ValueError, OverflowError):
        return None
