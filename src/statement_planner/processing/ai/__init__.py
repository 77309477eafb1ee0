"""AI-powered statement extraction module.

This module reads credit card statements (PDFs or screenshots) with the
Claude API and turns them into normalized transactions.

Example usage:
    from statement_planner.processing.ai import (
        AIClient, AIClientConfig, StatementExtractor, load_statement_files,
    )

    with AIClient(AIClientConfig.from_config(config.ai)) as client:
        extractor = StatementExtractor(client, StatementNormalizer(config))
        files = load_statement_files([Path("resumen.pdf")])
        transactions = extractor.extract_statement(files, bank)
"""

from statement_planner.processing.ai.client import (
    AIClient,
    AIClientConfig,
    AIClientError,
    APIKeyNotFoundError,
)
from statement_planner.processing.ai.extractor import (
    ExtractionError,
    NoTransactionsError,
    StatementExtractor,
    load_statement_files,
)
from statement_planner.processing.ai.models import AIUsageStats, StatementFile

__all__ = [
    # Extraction
    "StatementExtractor",
    "load_statement_files",
    # Client
    "AIClient",
    "AIClientConfig",
    # Errors
    "AIClientError",
    "APIKeyNotFoundError",
    "ExtractionError",
    "NoTransactionsError",
    # Models
    "AIUsageStats",
    "StatementFile",
]
