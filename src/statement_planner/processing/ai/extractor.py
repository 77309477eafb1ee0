"""AI extraction of credit card statements."""

import base64
from pathlib import Path
from typing import Any, Optional

from statement_planner.models.bank import BankProfile
from statement_planner.models.transaction import (
    RawStatementItem,
    StatementExtraction,
    Transaction,
)
from statement_planner.processing.ai.client import AIClient
from statement_planner.processing.ai.models import StatementFile
from statement_planner.processing.ai.prompts import (
    EXTRACTION_SYSTEM_PROMPT,
    FORMAT_SYSTEM_PROMPT,
    FORMAT_USER_PROMPT,
    build_extraction_prompt,
)
from statement_planner.processing.normalizer import StatementNormalizer
from statement_planner.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)

MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class ExtractionError(Exception):
    """Raised when a statement cannot be extracted."""

    pass


class NoTransactionsError(ExtractionError):
    """Raised when a statement yields no transactions."""

    def __init__(self, message: str = "no transactions detected"):
        super().__init__(message)


def load_statement_files(paths: list[Path]) -> list[StatementFile]:
    """Read statement files for extraction.

    Args:
        paths: One PDF or one or more screenshots.

    Returns:
        Files with their media type and base64 content.

    Raises:
        ExtractionError: If a file is missing or not a PDF or image.
    """
    files = []
    for path in paths:
        media_type = MEDIA_TYPES.get(path.suffix.lower())
        if media_type is None:
            raise ExtractionError(f"Unsupported statement file: {path.name} (use a PDF or an image)")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ExtractionError(f"Cannot read {path}: {e}") from e
        files.append(StatementFile(path=path, media_type=media_type, data=base64.b64encode(data).decode("ascii")))

    if not files:
        raise ExtractionError("No statement files given")
    if len(files) > 1 and any(f.is_pdf for f in files):
        raise ExtractionError("Send one PDF, or several images of the same statement")
    return files


class StatementExtractor:
    """Extracts transactions from statement files with Claude.

    The extractor owns no connection: it uses the AIClient session the
    caller created and leaves closing it to the caller.
    """

    def __init__(self, client: AIClient, normalizer: StatementNormalizer):
        """Initialize extractor.

        Args:
            client: AI client session.
            normalizer: Converts extracted items to transactions.
        """
        self.client = client
        self.normalizer = normalizer

    def extract_statement(self, files: list[StatementFile], bank: BankProfile) -> list[Transaction]:
        """Extract and normalize one statement.

        Args:
            files: One PDF or several images of the statement.
            bank: Bank profile the statement belongs to.

        Returns:
            Normalized transactions.

        Raises:
            AIClientError: If the API request fails.
            ExtractionError: If the response is not valid extraction JSON.
            NoTransactionsError: If the statement yields no transactions.
        """
        rule = self.normalizer.config.plan_rule_for(bank.name)
        content: list[dict[str, Any]] = [f.content_block() for f in files]
        content.append({"type": "text", "text": build_extraction_prompt(bank, rule.keyword if rule else None)})

        with LogContext(logger, "extract statement", bank=bank.name, files=len(files)):
            response = self.client.send_message(EXTRACTION_SYSTEM_PROMPT, content)
            extraction = self.parse_extraction(response)

            if not extraction.items:
                raise NoTransactionsError()

            transactions = self.normalizer.normalize(extraction, bank)
            if not transactions:
                raise NoTransactionsError()

        self.client.usage_stats.statements_extracted += 1
        return transactions

    def parse_extraction(self, response: str) -> StatementExtraction:
        """Parse the model's response into a StatementExtraction.

        Raises:
            ExtractionError: If the response is not an object with a
                "transactions" list of objects.
        """
        try:
            payload = self.client.parse_json_response(response)
        except ValueError as e:
            raise ExtractionError(f"Invalid extraction response: {e}") from e

        if not isinstance(payload, dict):
            raise ExtractionError("Extraction response is not a JSON object")

        items = payload.get("transactions")
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise ExtractionError("Extraction response has no valid 'transactions' list")

        return StatementExtraction(
            closing_date=_text(payload.get("closingDate")),
            due_date=_text(payload.get("dueDate")),
            items=[RawStatementItem.from_dict(item) for item in items],
        )

    def analyze_bank_format(self, file: StatementFile) -> BankProfile:
        """Infer a bank profile from a sample statement.

        Args:
            file: A sample statement of the bank.

        Returns:
            New BankProfile with name, columns, currency and date labels.

        Raises:
            AIClientError: If the API request fails.
            ExtractionError: If the response is not a JSON object.
        """
        content = [file.content_block(), {"type": "text", "text": FORMAT_USER_PROMPT}]
        response = self.client.send_message(FORMAT_SYSTEM_PROMPT, content)

        try:
            payload = self.client.parse_json_response(response)
        except ValueError as e:
            raise ExtractionError(f"Invalid format response: {e}") from e
        if not isinstance(payload, dict):
            raise ExtractionError("Format response is not a JSON object")

        payload.pop("id", None)
        profile = BankProfile.from_dict(payload)
        self.client.usage_stats.formats_analyzed += 1
        logger.info(f"Analyzed format of {file.path.name}: {profile.name}")
        return profile


def _text(value: Optional[object]) -> str:
    return str(value).strip() if value else ""
