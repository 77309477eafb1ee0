"""Bank-specific post-processing of extracted statement lines."""

import re
from dataclasses import replace
from typing import Optional

from statement_planner.config import Config, PlanRule
from statement_planner.models.transaction import (
    RawStatementItem,
    Transaction,
    TransactionType,
)
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)

# Plan codes like "03/06" or "3 / 12"
INSTALLMENT_CODE_PATTERN = re.compile(r"(\d+)\s*/\s*(\d+)")


def parse_installment_code(plan: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse an "N/M" plan code.

    Args:
        plan: Raw plan text.

    Returns:
        (current, total) or None when the text holds no such code.
    """
    if not plan:
        return None
    match = INSTALLMENT_CODE_PATTERN.search(plan)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


class BankRuleEngine:
    """Applies plan-code parsing and bank-specific plan rules.

    Rules, in order:
    1. Named plan: a bank's plan keyword in the plan code or detail forces a
       fixed-length installment series (e.g. Naranja X "Zeta" = 3 cuotas).
    2. Generic: an "N/M" plan code sets the installment position and total.
    3. Validation: the type is made consistent with the installment flag and
       the position is clamped into 1..total.
    """

    def __init__(self, config: Config):
        """Initialize rule engine with configuration.

        Args:
            config: Application configuration (plan rules).
        """
        self.config = config

    def apply_rules(
        self,
        tx: Transaction,
        bank_name: str,
        raw_item: RawStatementItem,
    ) -> Transaction:
        """Apply all rules to a freshly built transaction.

        Args:
            tx: Transaction built from the raw item.
            bank_name: Name of the bank profile the statement belongs to.
            raw_item: The extracted item the transaction was built from.

        Returns:
            A new Transaction; the input is not modified.
        """
        raw_plan = (raw_item.plan or "").upper()

        rule = self.config.plan_rule_for(bank_name)
        if rule is not None and (rule.matches(raw_plan) or rule.matches(tx.detail)):
            return self._validate(self._apply_plan_rule(tx, rule))

        code = parse_installment_code(raw_plan)
        if code is not None:
            current, total = code
            tx = replace(
                tx,
                installment_current=current,
                installment_total=total,
                type=TransactionType.INSTALLMENT if total > 1 else TransactionType.PURCHASE,
            )

        return self._validate(tx)

    def _apply_plan_rule(self, tx: Transaction, rule: PlanRule) -> Transaction:
        detail = tx.detail
        if not rule.matches(detail):
            detail = f"{detail} {rule.marker_text}".strip()

        logger.debug(f"Plan rule {rule.keyword} applied to {tx.detail!r}")
        return replace(
            tx,
            detail=detail,
            type=TransactionType.INSTALLMENT,
            installment_current=tx.installment_current or 1,
            installment_total=rule.installment_total,
        )

    def _validate(self, tx: Transaction) -> Transaction:
        total = max(tx.installment_total or 1, 1)
        current = tx.installment_current or 1
        if not 1 <= current <= total:
            logger.warning(
                f"Installment {current}/{total} out of range for {tx.detail!r}, clamping"
            )
            current = min(max(current, 1), total)

        tx_type = TransactionType.parse(tx.type, is_installment=total > 1)
        return replace(tx, installment_current=current, installment_total=total, type=tx_type)
