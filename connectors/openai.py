"""OpenAI-compatible API connector for the note assistant.

This module provides a thin wrapper around the OpenAI Python SDK pointed at an
OpenAI-compatible chat-completion endpoint (OpenRouter by default) with:
- Async support for chat completions
- Attribution headers required by OpenRouter
- OpenTelemetry instrumentation for observability
- Helpers to validate completion bodies and classify rate-limit failures

Retries are disabled at the SDK level; the model dispatcher owns retry policy.
"""

from enum import Enum
from typing import Any

from openai import APIStatusError, AsyncOpenAI, RateLimitError
from openai.types.chat import ChatCompletion
from opentelemetry import trace

tracer = trace.get_tracer(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterModel(str, Enum):
    """Free-tier chat models, in preferred order."""

    DEEPSEEK_CHAT_V3 = "deepseek/deepseek-chat-v3-0324:free"
    PHI_3_MINI = "microsoft/phi-3-mini-128k-instruct:free"
    MISTRAL_7B = "mistralai/mistral-7b-instruct:free"
    LLAMA_32_3B = "meta-llama/llama-3.2-3b-instruct:free"
    GEMMA_2_9B = "google/gemma-2-9b-it:free"
    ZEPHYR_7B = "huggingfaceh4/zephyr-7b-beta:free"
    OPENCHAT_7B = "openchat/openchat-7b:free"
    MYTHOMIST_7B = "gryphe/mythomist-7b:free"


DEFAULT_MODEL_CHAIN: tuple[str, ...] = tuple(model.value for model in OpenRouterModel)


class MalformedCompletionError(Exception):
    """Raised when a completion body has no first-choice message content."""


def first_choice_content(completion: ChatCompletion) -> str:
    """Return the reply text of a completion or raise MalformedCompletionError."""
    choices = getattr(completion, "choices", None)
    if not choices:
        raise MalformedCompletionError("Invalid response format: no choices")

    message = getattr(choices[0], "message", None)
    if message is None or message.content is None:
        raise MalformedCompletionError("Invalid response format: no message content")

    return message.content


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether a failed request was rejected for rate limiting.

    Matches HTTP 429, the ``rate_limit_exceeded`` error code, or any error
    message mentioning a rate limit.
    """
    if isinstance(error, RateLimitError):
        return True
    if isinstance(error, APIStatusError) and error.status_code == 429:
        return True
    if getattr(error, "code", None) == "rate_limit_exceeded":
        return True

    message = getattr(error, "message", None) or str(error)
    return "rate limit" in message.lower()


class OpenAIConnector:
    """Async connector for OpenAI-compatible chat completion endpoints.

    Example:
        >>> async with OpenAIConnector(api_key="sk-or-...") as connector:
        ...     response = await connector.chat_completion(
        ...         messages=[{"role": "user", "content": "Hello!"}],
        ...         model=OpenRouterModel.DEEPSEEK_CHAT_V3,
        ...     )
        ...     print(first_choice_content(response))
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = DEFAULT_BASE_URL,
        site_url: str | None = None,
        site_name: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 0,
    ):
        """Initialize the connector.

        Args:
            api_key: API key for the endpoint
            base_url: Endpoint base URL (OpenRouter by default)
            site_url: Sent as ``HTTP-Referer`` for attribution
            site_name: Sent as ``X-Title`` for attribution
            timeout: Request timeout in seconds
            max_retries: SDK-level retries (0, the dispatcher retries across models)
        """
        default_headers = {}
        if site_url:
            default_headers["HTTP-Referer"] = site_url
        if site_name:
            default_headers["X-Title"] = site_name

        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            default_headers=default_headers or None,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.close()

    @tracer.start_as_current_span("openai.chat_completion")
    async def chat_completion(
        self,
        messages: list[dict[str, Any]],
        model: OpenRouterModel | str = OpenRouterModel.DEEPSEEK_CHAT_V3,
        temperature: float | None = None,
        max_tokens: int | None = None,
        stream: bool = False,
        **kwargs: Any,
    ) -> ChatCompletion:
        """Create a chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model identifier to use
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate
            stream: Always sent; the assistant only uses non-streaming replies
            **kwargs: Additional parameters to pass to the API

        Returns:
            ChatCompletion object
        """
        span = trace.get_current_span()
        span.set_attribute("openai.model", str(model))
        span.set_attribute("openai.message_count", len(messages))

        model_value = model.value if isinstance(model, OpenRouterModel) else model
        params: dict[str, Any] = {
            "model": model_value,
            "messages": messages,
            "stream": stream,
            **kwargs,
        }

        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        try:
            response = await self.client.chat.completions.create(**params)

            if hasattr(response, "usage") and response.usage:
                span.set_attribute("openai.prompt_tokens", response.usage.prompt_tokens)
                span.set_attribute("openai.completion_tokens", response.usage.completion_tokens)
                span.set_attribute("openai.total_tokens", response.usage.total_tokens)

            return response
        except Exception as e:
            span.record_exception(e)
            raise
