"""AI-specific data models for statement extraction."""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class StatementFile:
    """One statement file ready to be sent to the model.

    Attributes:
        path: Where the file was read from.
        media_type: MIME type ("application/pdf", "image/png", ...).
        data: Base64-encoded file content.
    """

    path: Path
    media_type: str
    data: str

    @property
    def is_pdf(self) -> bool:
        return self.media_type == "application/pdf"

    def content_block(self) -> dict[str, object]:
        """Anthropic message content block for this file."""
        block_type = "document" if self.is_pdf else "image"
        return {
            "type": block_type,
            "source": {"type": "base64", "media_type": self.media_type, "data": self.data},
        }


@dataclass
class AIUsageStats:
    """Cumulative AI usage statistics for a session.

    Attributes:
        total_requests: Total API requests made.
        total_input_tokens: Total input tokens used.
        total_output_tokens: Total output tokens used.
        statements_extracted: Number of statements extracted.
        formats_analyzed: Number of bank formats analyzed.
    """

    total_requests: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    statements_extracted: int = 0
    formats_analyzed: int = 0

    def add_request(self, input_tokens: int, output_tokens: int) -> None:
        """Record a completed request."""
        self.total_requests += 1
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
