"""Bank profile and fixed expense data models."""

import re
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass
class BankProfile:
    """Configuration for one card-issuing bank.

    Attributes:
        id: Unique identifier for this profile.
        name: Display name (e.g., "Naranja X"), copied onto transactions.
        columns: Expected statement column layout.
        currency_symbol: Currency symbol printed on statements.
        identifiers: Hints that help recognize this bank's statements.
        due_date_keywords: Phrase the statement uses next to the due date.
        closing_date_keywords: Phrase the statement uses next to the closing date.
    """

    id: str
    name: str
    columns: list[str] = field(default_factory=list)
    currency_symbol: str = "$"
    identifiers: list[str] = field(default_factory=list)
    due_date_keywords: str = ""
    closing_date_keywords: str = ""

    def matches(self, name: str) -> bool:
        """Check whether a bank name refers to this profile (case-insensitive)."""
        needle = name.strip().lower()
        return needle in (self.id.lower(), self.name.lower())

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "BankProfile":
        """Create a BankProfile from a dictionary (YAML config or AI metadata).

        Both snake_case and camelCase keys are accepted.

        Args:
            data: Dictionary containing profile data.

        Returns:
            A new BankProfile instance.
        """
        name = str(data.get("name") or data.get("id") or "Banco")
        profile_id = str(data.get("id") or slugify(name))

        columns = data.get("columns", [])
        if isinstance(columns, str):
            columns = [c.strip() for c in columns.split(",") if c.strip()]

        identifiers = data.get("identifiers", [])
        if isinstance(identifiers, str):
            identifiers = [i.strip() for i in identifiers.split("||") if i.strip()]

        return cls(
            id=profile_id,
            name=name,
            columns=[str(c) for c in columns],  # type: ignore[union-attr]
            currency_symbol=str(
                data.get("currency_symbol") or data.get("currencySymbol") or "$"
            ),
            identifiers=[str(i) for i in identifiers],  # type: ignore[union-attr]
            due_date_keywords=str(
                data.get("due_date_keywords") or data.get("dueDateKeywords") or ""
            ),
            closing_date_keywords=str(
                data.get("closing_date_keywords") or data.get("closingDateKeywords") or ""
            ),
        )

    def __repr__(self) -> str:
        return f"BankProfile(id={self.id!r}, name={self.name!r})"


@dataclass
class FixedExpense:
    """A flat recurring monthly cost (rent, utilities, subscriptions)."""

    name: str
    amount: Decimal
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:9])


def slugify(name: str) -> str:
    """Build a profile id from a display name."""
    slug = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    return slug or "bank"


def find_bank(banks: list[BankProfile], name: str) -> Optional[BankProfile]:
    """Find a bank profile by id or display name."""
    for bank in banks:
        if bank.matches(name):
            return bank
    return None
