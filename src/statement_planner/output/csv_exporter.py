"""CSV export of a statement period view."""

import csv
import re
from decimal import Decimal
from pathlib import Path

from statement_planner.config import Config
from statement_planner.models.transaction import Transaction
from statement_planner.processing.aggregator import flatten
from statement_planner.processing.report_generator import PeriodView
from statement_planner.utils.date_utils import format_month_year
from statement_planner.utils.logging_config import get_logger
from statement_planner.utils.sanitize import sanitize_row

logger = get_logger(__name__)

# Characters that are unsafe for filenames across platforms (Windows, macOS, Linux)
_UNSAFE_FILENAME_PATTERN = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

HEADERS = [
    "Row", "Date", "Bank", "Detail", "Type", "Installment", "Amount",
    "Period", "Post-closing", "Note",
]


def _sanitize_filename(name: str) -> str:
    """Sanitize a string for use in filenames.

    Args:
        name: String to sanitize.

    Returns:
        Safe filename component.
    """
    safe = _UNSAFE_FILENAME_PATTERN.sub("_", name)
    safe = re.sub(r"\s+", "_", safe)
    safe = re.sub(r"_+", "_", safe).strip("_")
    return safe or "unknown"


def default_export_name(view: PeriodView, bank: str = "") -> str:
    """File name for a view export, e.g. "statement_2024-06_naranja_x.csv"."""
    parts = ["statement", view.period or "empty"]
    if bank:
        parts.append(_sanitize_filename(bank.lower()))
    return "_".join(parts) + ".csv"


class CSVExporter:
    """Exports a period view to one CSV file.

    The file holds the grouped entries, each followed by the raw items it
    summarizes (marked as children), then a summary block.
    """

    def __init__(self, config: Config):
        """Initialize CSV exporter.

        Args:
            config: Application configuration.
        """
        self.config = config

    def export(self, output_path: Path, view: PeriodView) -> Path:
        """Write a period view to CSV.

        Args:
            output_path: Target file.
            view: Period view to export.

        Returns:
            Path to the created file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        result = view.result

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(HEADERS)

            for txn, is_child in flatten(result.grouped_transactions):
                writer.writerow(sanitize_row(self._row(txn, is_child)))

            writer.writerow([])
            writer.writerow(["SUMMARY", format_month_year(view.period) if view.period else ""])
            writer.writerow(["Total", _money(result.summary.total)])
            writer.writerow(["Total USD", _money(result.summary.total_usd)])
            writer.writerow(["Installments", _money(result.summary.total_installments)])
            writer.writerow(["Taxes and fees", _money(result.summary.total_taxes)])

        logger.info(
            f"Exported {len(result.grouped_transactions)} entries for {view.period} to {output_path}"
        )
        return output_path

    def _row(self, txn: Transaction, is_child: bool) -> list[object]:
        installment = (
            f"{txn.installment_current}/{txn.installment_total}" if txn.is_installment else ""
        )
        return [
            "child" if is_child else txn.kind.value,
            txn.date,
            txn.bank_name,
            txn.detail,
            txn.type.value,
            installment,
            _money(txn.amount),
            txn.target_period,
            "yes" if txn.is_post_closing else "",
            txn.explanation or "",
        ]


def _money(amount: Decimal) -> Decimal:
    # Kept numeric so negative amounts are not quoted by the sanitizer
    return amount.quantize(Decimal("0.01"))
