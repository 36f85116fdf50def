"""Chat completion client backed by the OpenAI or Anthropic SDK."""

from typing import Any, Literal

from anthropic import Anthropic
import openai

from refactor_assistant.agents.exceptions import AgentError, CompletionError
from refactor_assistant.models import ChatMessage, MessageRole

# Constants
MAX_API_TOKENS = 8192  # Anthropic requires an explicit response budget
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
SUPPORTED_PROVIDERS = ("openai", "anthropic")


class CompletionClient:
    """Sends a conversation to the configured provider and returns its text."""

    def __init__(
        self,
        api_key: str | None,
        provider: str = "openai",
        timeout_seconds: float | None = None,
        max_tokens: int = MAX_API_TOKENS,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Credential for the selected provider. Never read from
                the environment here; the CLI injects it.
            provider: "openai" or "anthropic".
            timeout_seconds: Optional per-request timeout.
            max_tokens: Response token budget for providers that need one.

        Raises:
            AgentError: If the key is missing or the provider is unknown.
        """
        if provider not in SUPPORTED_PROVIDERS:
            raise AgentError(f"Unsupported provider: {provider}")
        if not api_key:
            raise AgentError(f"No API key provided for provider '{provider}'.")

        self.provider: Literal["openai", "anthropic"] = provider
        self.max_tokens: int = max_tokens
        self._openai_client: openai.OpenAI | None = None
        self._anthropic_client: Anthropic | None = None

        client_kwargs: dict[str, Any] = {"api_key": api_key}
        if timeout_seconds is not None:
            client_kwargs["timeout"] = timeout_seconds

        if provider == "anthropic":
            self._anthropic_client = Anthropic(**client_kwargs)
        else:
            self._openai_client = openai.OpenAI(**client_kwargs)

    def _resolve_model(self, model: str) -> str:
        if self.provider == "anthropic" and model.startswith("gpt-"):
            return DEFAULT_ANTHROPIC_MODEL
        return model

    def complete(self, model: str, conversation: list[ChatMessage]) -> str:
        """Return the completion text for one conversation.

        Raises:
            CompletionError: On any transport failure or when the response
                carries no text content.
        """
        try:
            if self.provider == "anthropic":
                return self._complete_anthropic(model, conversation)
            return self._complete_openai(model, conversation)
        except CompletionError:
            raise
        except Exception as exc:
            raise CompletionError(
                f"{self.provider} request failed: {type(exc).__name__}: {exc}"
            ) from exc

    def _complete_openai(self, model: str, conversation: list[ChatMessage]) -> str:
        response = self._openai_client.chat.completions.create(
            model=self._resolve_model(model),
            messages=[message.as_payload() for message in conversation],
        )
        return self._parse_openai_response(response)

    def _parse_openai_response(self, response: Any) -> str:
        choices = getattr(response, "choices", None)
        if not choices:
            raise CompletionError("Failed to parse the response: no choices returned")
        content = choices[0].message.content
        if not isinstance(content, str) or not content:
            raise CompletionError("Failed to parse the response: missing message content")
        return content

    def _complete_anthropic(self, model: str, conversation: list[ChatMessage]) -> str:
        system_parts = [m.content for m in conversation if m.role == MessageRole.SYSTEM]
        messages = [m.as_payload() for m in conversation if m.role != MessageRole.SYSTEM]
        response = self._anthropic_client.messages.create(
            model=self._resolve_model(model),
            max_tokens=self.max_tokens,
            system="\n\n".join(system_parts),
            messages=messages,
        )
        return self._parse_anthropic_response(response)

    def _parse_anthropic_response(self, response: Any) -> str:
        texts = [
            block.text
            for block in getattr(response, "content", None) or []
            if getattr(block, "type", None) == "text"
        ]
        text = "".join(texts)
        if not text:
            raise CompletionError("Failed to parse the response: no text blocks returned")
        return text
