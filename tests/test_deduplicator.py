"""Tests for payment detection and duplicate removal."""

from decimal import Decimal

import pytest

from statement_planner.config import Config, KeywordConfig
from statement_planner.models.transaction import Transaction, TransactionType
from statement_planner.processing.deduplicator import (
    Deduplicator,
    PaymentClassifier,
    clean_transactions,
)


def create_transaction(
    detail: str = "SUPERMERCADO DIA",
    amount: str = "1500",
    tx_date: str = "2024-03-05",
    bank_name: str = "Naranja X",
    tx_type: TransactionType = TransactionType.PURCHASE,
) -> Transaction:
    """Helper to create a Transaction for testing."""
    return Transaction(
        date=tx_date,
        detail=detail,
        amount=Decimal(amount),
        type=tx_type,
        bank_name=bank_name,
        target_period="2024-04",
    )


class TestPaymentClassifier:
    """Tests for PaymentClassifier.is_payment."""

    @pytest.fixture
    def classifier(self) -> PaymentClassifier:
        return PaymentClassifier(KeywordConfig())

    @pytest.mark.parametrize(
        "detail",
        ["SU PAGO EN PESOS", "Pago de tarjeta", "PAGO USD 50", "PAGO CAJERO RED LINK"],
    )
    def test_payment_keywords(self, classifier: PaymentClassifier, detail: str) -> None:
        """Test that payment keywords are matched case-insensitively."""
        assert classifier.is_payment(create_transaction(detail=detail)) is True

    @pytest.mark.parametrize(
        "detail",
        ["PAGO MIS CUENTAS EDENOR", "PAGO DE SERVICIOS AYSA", "SU PAGO AFIP PAGO AFIP"],
    )
    def test_exclusions_veto_payment(self, classifier: PaymentClassifier, detail: str) -> None:
        """Test that bill payments made with the card stay as spend."""
        assert classifier.is_payment(create_transaction(detail=detail)) is False

    def test_payment_type(self, classifier: PaymentClassifier) -> None:
        """Test that PAYMENT typed lines are payments whatever their text."""
        tx = create_transaction(detail="TRANSFERENCIA", tx_type=TransactionType.PAYMENT)
        assert classifier.is_payment(tx) is True

    def test_reversal_is_never_payment(self, classifier: PaymentClassifier) -> None:
        """Test that a reversal is kept even when typed or worded as a payment."""
        tx = create_transaction(detail="REVERSION SU PAGO", tx_type=TransactionType.PAYMENT)
        assert classifier.is_payment(tx) is False

    def test_plain_purchase(self, classifier: PaymentClassifier) -> None:
        """Test that ordinary purchases are not payments."""
        assert classifier.is_payment(create_transaction()) is False

    def test_bank_extra_keywords(self) -> None:
        """Test that per-bank keywords apply only to that bank."""
        keywords = KeywordConfig(bank_extras={"GALICIA": {"payment": ["DEBITO AUTOMATICO"]}})
        classifier = PaymentClassifier(keywords)

        galicia = create_transaction(detail="DEBITO AUTOMATICO", bank_name="Galicia Visa")
        naranja = create_transaction(detail="DEBITO AUTOMATICO", bank_name="Naranja X")

        assert classifier.is_payment(galicia) is True
        assert classifier.is_payment(naranja) is False


class TestDeduplicator:
    """Tests for Deduplicator.clean."""

    @pytest.fixture
    def deduplicator(self) -> Deduplicator:
        return Deduplicator(Config())

    def test_duplicates_collapse_first_wins(self, deduplicator: Deduplicator) -> None:
        """Test that a re-imported line is dropped and the first copy is kept."""
        first = create_transaction()
        second = create_transaction()
        result = deduplicator.clean([first, second])
        assert len(result) == 1
        assert result[0].id == first.id

    def test_different_bank_is_not_duplicate(self, deduplicator: Deduplicator) -> None:
        """Test that the bank name is part of the identity."""
        result = deduplicator.clean([
            create_transaction(bank_name="Naranja X"),
            create_transaction(bank_name="Galicia Visa"),
        ])
        assert len(result) == 2

    def test_different_amount_is_not_duplicate(self, deduplicator: Deduplicator) -> None:
        """Test that the amount is part of the identity."""
        result = deduplicator.clean([
            create_transaction(amount="1500"),
            create_transaction(amount="1500.01"),
        ])
        assert len(result) == 2

    def test_payments_removed_order_kept(self, deduplicator: Deduplicator) -> None:
        """Test that payments go away and the remaining order is preserved."""
        txns = [
            create_transaction(detail="COTO"),
            create_transaction(detail="SU PAGO EN PESOS", amount="-50000"),
            create_transaction(detail="YPF"),
            create_transaction(detail="FARMACITY"),
        ]
        result = deduplicator.clean(txns)
        assert [t.detail for t in result] == ["COTO", "YPF", "FARMACITY"]

    def test_idempotent(self, deduplicator: Deduplicator) -> None:
        """Test that cleaning twice gives the same list as cleaning once."""
        txns = [
            create_transaction(detail="COTO"),
            create_transaction(detail="COTO"),
            create_transaction(detail="SU PAGO"),
            create_transaction(detail="YPF", tx_date="2024-03-06"),
        ]
        once = deduplicator.clean(txns)
        twice = deduplicator.clean(once)
        assert [t.id for t in twice] == [t.id for t in once]

    def test_input_not_modified(self, deduplicator: Deduplicator) -> None:
        """Test that the input list is left intact."""
        txns = [create_transaction(), create_transaction()]
        deduplicator.clean(txns)
        assert len(txns) == 2

    def test_convenience_function(self) -> None:
        """Test clean_transactions."""
        txns = [create_transaction(), create_transaction(), create_transaction(detail="SU PAGO")]
        assert len(clean_transactions(txns, Config())) == 1

    def test_empty(self, deduplicator: Deduplicator) -> None:
        """Test empty input."""
        assert deduplicator.clean([]) == []
