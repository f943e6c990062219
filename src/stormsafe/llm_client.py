"""Anthropic messages client used for the recommendation step."""

import logging
from typing import Optional

import anthropic

from .config import Settings, get_settings
from .exceptions import ReasoningUnavailable

logger = logging.getLogger(__name__)


class LLMClient:
    """Sends a system prompt and one user message, returns raw text."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[anthropic.Anthropic] = None):
        self.settings = settings or get_settings()
        self._client = client
        if self._client is None and self.settings.anthropic_api_key:
            self._client = anthropic.Anthropic(api_key=self.settings.anthropic_api_key)

    def complete(self, system: str, user: str, *, max_tokens: Optional[int] = None) -> str:
        """
        Get a completion.

        Args:
            system: System prompt.
            user: User message.
            max_tokens: Max output tokens; defaults to the configured limit.

        Returns:
            Raw text response. No structure is guaranteed.

        Raises:
            ReasoningUnavailable: If no key is configured or the call fails.
        """
        if self._client is None:
            raise ReasoningUnavailable("ANTHROPIC_API_KEY not configured")

        try:
            response = self._client.messages.create(
                model=self.settings.anthropic_model,
                max_tokens=max_tokens or self.settings.anthropic_max_tokens,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        except anthropic.APIError as e:
            logger.warning(f"Anthropic request failed: {e}")
            raise ReasoningUnavailable(f"Anthropic request failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return text.strip()
