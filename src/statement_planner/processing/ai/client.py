"""Anthropic API client wrapper owned by the caller."""

import json
import os
import time
from dataclasses import dataclass, field
from typing import Any, Union

from rich.console import Console

from statement_planner.config import AIConfig
from statement_planner.processing.ai.models import AIUsageStats
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)
_console = Console(stderr=True)

# Message content: plain text or a list of Anthropic content blocks
MessageContent = Union[str, list[dict[str, Any]]]


class AIClientError(Exception):
    """Base exception for AI client errors."""

    pass


class APIKeyNotFoundError(AIClientError):
    """Raised when API key is not found."""

    pass


@dataclass
class AIClientConfig:
    """Configuration for the AI client.

    Attributes:
        api_key_env: Environment variable name for API key.
        model: Model to use for requests.
        max_tokens: Maximum tokens for response.
        timeout: Request timeout in seconds.
        retry_attempts: Attempts when the API is rate limited or overloaded.
        retry_delay: Initial delay between those attempts (exponential backoff).
    """

    api_key_env: str = "ANTHROPIC_API_KEY"
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 8192
    timeout: float = 120.0
    retry_attempts: int = 3
    retry_delay: float = 2.0

    @classmethod
    def from_config(cls, config: AIConfig) -> "AIClientConfig":
        """Create from the ai section of the settings."""
        return cls(
            api_key_env=config.api_key_env,
            model=config.model,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )


@dataclass
class AIClient:
    """Session with the Anthropic API.

    The caller creates the client, passes it to whatever needs it and
    closes it when done (or uses it as a context manager). The underlying
    connection is only opened on the first request.
    """

    config: AIClientConfig = field(default_factory=AIClientConfig)
    _client: Any = field(default=None, init=False, repr=False)
    usage_stats: AIUsageStats = field(default_factory=AIUsageStats)

    @property
    def is_available(self) -> bool:
        """Check if AI client can be initialized (API key exists)."""
        return bool(os.environ.get(self.config.api_key_env))

    def __enter__(self) -> "AIClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the HTTP connection pool, if one was opened."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug("AI client closed")

    def _ensure_initialized(self) -> None:
        """Lazily initialize the Anthropic client."""
        if self._client is not None:
            return

        api_key = os.environ.get(self.config.api_key_env)
        if not api_key:
            raise APIKeyNotFoundError(
                f"API key not found in environment variable: {self.config.api_key_env}"
            )

        try:
            import anthropic

            self._client = anthropic.Anthropic(api_key=api_key, timeout=self.config.timeout)
            logger.info(f"AI client initialized with model: {self.config.model}")
        except ImportError as err:
            raise AIClientError(
                "anthropic package not installed. Run: pip install anthropic"
            ) from err

    def send_message(self, system_prompt: str, content: MessageContent) -> str:
        """Send one message and return the response text.

        Rate-limit and overload responses are retried with exponential
        backoff; any other failure is raised at once.

        Args:
            system_prompt: The system prompt.
            content: Text or content blocks (documents, images, text).

        Returns:
            Concatenated text of the response.

        Raises:
            APIKeyNotFoundError: If the API key is missing.
            AIClientError: If the request fails.
        """
        self._ensure_initialized()

        import anthropic

        delay = self.config.retry_delay
        for attempt in range(1, self.config.retry_attempts + 1):
            try:
                response = self._client.messages.create(
                    model=self.config.model,
                    max_tokens=self.config.max_tokens,
                    system=system_prompt,
                    messages=[{"role": "user", "content": content}],
                )
            except (anthropic.RateLimitError, anthropic.InternalServerError) as e:
                if attempt == self.config.retry_attempts:
                    raise AIClientError(f"Request failed after {attempt} attempts: {e}") from e
                _console.print(f"[yellow]API busy, retrying in {delay:.0f}s...[/yellow]")
                logger.warning(f"API busy ({e}), retrying in {delay}s")
                time.sleep(delay)
                delay *= 2
                continue
            except anthropic.APIError as e:
                raise AIClientError(f"Request failed: {e}") from e

            text = "".join(
                block.text for block in response.content if getattr(block, "type", "") == "text"
            )
            input_tokens = response.usage.input_tokens
            output_tokens = response.usage.output_tokens
            self.usage_stats.add_request(input_tokens, output_tokens)

            logger.debug(f"Request completed: {input_tokens} in, {output_tokens} out")
            return text

        raise AIClientError("Request failed: no attempts made")

    def parse_json_response(self, response: str) -> dict[str, Any] | list[Any]:
        """Parse a JSON response from the AI.

        Handles markdown code fences and extra text around the JSON.

        Args:
            response: The response string.

        Returns:
            Parsed JSON as a dictionary or list.

        Raises:
            ValueError: If JSON cannot be parsed.
        """
        cleaned = response.replace("```json", "").replace("```", "").strip()

        try:
            result = json.loads(cleaned)
            if isinstance(result, (dict, list)):
                return result
            raise ValueError(f"JSON parsed to unexpected type: {type(result)}")
        except json.JSONDecodeError:
            pass

        # Look for {...} or [...]
        start_brace = cleaned.find("{")
        start_bracket = cleaned.find("[")

        if start_brace == -1 and start_bracket == -1:
            raise ValueError(f"No JSON found in response: {cleaned[:100]}")

        if start_brace == -1:
            start = start_bracket
        elif start_bracket == -1:
            start = start_brace
        else:
            start = min(start_brace, start_bracket)

        depth = 0
        in_string = False
        escaped = False
        for i, char in enumerate(cleaned[start:], start):
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char in "{[":
                depth += 1
            elif char in "}]":
                depth -= 1
                if depth == 0:
                    try:
                        result = json.loads(cleaned[start : i + 1])
                    except json.JSONDecodeError:
                        break
                    if isinstance(result, (dict, list)):
                        return result
                    break

        raise ValueError(f"Could not parse JSON from response: {cleaned[:200]}")

    def get_usage_summary(self) -> str:
        """Get a summary of API usage.

        Returns:
            Human-readable usage summary.
        """
        stats = self.usage_stats
        return (
            f"AI Usage Summary:\n"
            f"  Total requests: {stats.total_requests}\n"
            f"  Input tokens: {stats.total_input_tokens:,}\n"
            f"  Output tokens: {stats.total_output_tokens:,}\n"
            f"  Statements extracted: {stats.statements_extracted}"
        )
