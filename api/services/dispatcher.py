"""Sequential multi-model dispatch with backoff and a deterministic fallback.

The dispatcher walks an ordered list of model identifiers one attempt at a
time. Each call starts from the model that last succeeded, so a working model
stays preferred. When every model fails (or no API key is configured) the
caller still receives usable text from :func:`fallback_response`.

A single call is tracked by a :class:`DispatchRun`, an explicit state machine::

    Idle -> Attempting(i) -> Success
                          -> Attempting(i + 1) -> ...
                          -> Exhausted
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from connectors.openai import (
    DEFAULT_MODEL_CHAIN,
    OpenAIConnector,
    first_choice_content,
    is_rate_limit_error,
)

from .. import config
from ..models import AIResponse, HistoryTurn
from ..observability import get_app_metrics, get_tracer
from ..prompts import get_assistant_system_prompt
from .fallbacks import EXHAUSTED_ERROR, fallback_response

logger = structlog.get_logger(__name__)

tracer = get_tracer(__name__)

CONTEXT_PREFIX_CHARS = 500
HISTORY_ROLES = ("user", "assistant")


class DispatchState(str, Enum):
    """States of a single dispatch run."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


class InvalidTransitionError(RuntimeError):
    """Raised when a dispatch run is driven out of order."""


@dataclass
class DispatchRun:
    """State of one dispatch call over ``model_count`` candidates.

    ``attempt`` counts attempts already started; the model index for the
    current attempt is ``(start_index + attempt) % model_count``.
    """

    start_index: int
    model_count: int
    state: DispatchState = DispatchState.IDLE
    attempt: int = 0
    history: list[tuple[DispatchState, int | None]] = field(default_factory=list)

    @property
    def current_index(self) -> int:
        return (self.start_index + self.attempt) % self.model_count

    def begin(self) -> int:
        """Idle -> Attempting(start_index)."""
        if self.state is not DispatchState.IDLE:
            raise InvalidTransitionError(f"cannot begin from {self.state.value}")
        if self.model_count <= 0:
            self.state = DispatchState.EXHAUSTED
            self.history.append((self.state, None))
            raise InvalidTransitionError("no models to attempt")

        self.state = DispatchState.ATTEMPTING
        self.history.append((self.state, self.current_index))
        return self.current_index

    def succeed(self) -> int:
        """Attempting(i) -> Success. Returns i."""
        if self.state is not DispatchState.ATTEMPTING:
            raise InvalidTransitionError(f"cannot succeed from {self.state.value}")
        index = self.current_index
        self.state = DispatchState.SUCCESS
        self.history.append((self.state, index))
        return index

    def fail(self) -> DispatchState:
        """Attempting(i) -> Attempting(i + 1), or Exhausted after the last model."""
        if self.state is not DispatchState.ATTEMPTING:
            raise InvalidTransitionError(f"cannot fail from {self.state.value}")

        self.attempt += 1
        if self.attempt >= self.model_count:
            self.state = DispatchState.EXHAUSTED
            self.history.append((self.state, None))
        else:
            self.history.append((self.state, self.current_index))
        return self.state


@dataclass
class DispatchOutcome:
    """Result of :meth:`ModelDispatcher.complete`."""

    content: str | None
    model: str | None
    attempts: int
    state: DispatchState


class ModelDispatcher:
    """Chat completions over an ordered model list with a sticky preference.

    Example:
        >>> dispatcher = ModelDispatcher(api_key="sk-or-...")
        >>> reply = await dispatcher.generate_response("Summarize this", context=note.content)
        >>> reply.content, reply.error
    """

    def __init__(
        self,
        api_key: str | None = None,
        models: Sequence[str] = DEFAULT_MODEL_CHAIN,
        connector: OpenAIConnector | None = None,
        test_mode: bool = False,
        max_tokens: int = config.AI_MAX_TOKENS,
        temperature: float = config.AI_TEMPERATURE,
        backoff_base: float = config.AI_BACKOFF_BASE_SECONDS,
        backoff_cap: float = config.AI_BACKOFF_CAP_SECONDS,
        rate_limit_base: float = config.AI_RATE_LIMIT_BASE_SECONDS,
        rate_limit_step: float = config.AI_RATE_LIMIT_STEP_SECONDS,
        history_turns: int = config.AI_HISTORY_TURNS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the dispatcher.

        Args:
            api_key: Provider API key; without one every call uses the fallback
            models: Model identifiers in preferred order
            connector: Pre-built connector (created lazily from ``api_key`` if omitted)
            test_mode: Always answer with the fallback, even with a key
            max_tokens: Completion token cap sent with every request
            temperature: Sampling temperature sent with every request
            backoff_base: Delay before the second attempt, doubled per attempt
            backoff_cap: Ceiling for the exponential delay
            rate_limit_base: Extra delay after a rate-limited attempt
            rate_limit_step: Added to ``rate_limit_base`` per attempt number
            history_turns: Most recent prior turns kept in each request
            sleep: Awaitable sleep, replaceable in tests
        """
        if not models:
            raise ValueError("At least one model identifier is required")

        self.api_key = api_key or ""
        self.models = list(models)
        self.test_mode = test_mode
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self.rate_limit_base = rate_limit_base
        self.rate_limit_step = rate_limit_step
        self.history_turns = history_turns
        self._sleep = sleep
        self._connector = connector
        self.last_success_index = 0

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key) and not self.test_mode

    def _get_connector(self) -> OpenAIConnector:
        if self._connector is None:
            self._connector = OpenAIConnector(
                api_key=self.api_key,
                base_url=config.AI_BASE_URL,
                site_url=config.AI_SITE_URL,
                site_name=config.AI_SITE_NAME,
                timeout=config.AI_TIMEOUT_SECONDS,
            )
        return self._connector

    async def close(self) -> None:
        """Close the underlying connector, if one was created."""
        if self._connector is not None:
            await self._connector.close()
            self._connector = None

    def backoff_delay(self, attempt: int) -> float:
        """Delay before attempt number ``attempt`` (0 for the first attempt)."""
        if attempt <= 0:
            return 0.0
        return min(self.backoff_base * 2 ** (attempt - 1), self.backoff_cap)

    def rate_limit_delay(self, attempt: int) -> float:
        """Extra delay after attempt number ``attempt`` was rate limited."""
        return self.rate_limit_base + attempt * self.rate_limit_step

    def build_messages(
        self,
        prompt: str,
        context: str = "",
        is_editing: bool = False,
        history: Sequence[HistoryTurn | dict[str, str]] | None = None,
    ) -> list[dict[str, str]]:
        """Assemble system instruction, prior turns and the user prompt.

        Only the last ``history_turns`` user/assistant turns are kept; other
        roles are dropped.
        """
        system_prompt = get_assistant_system_prompt(
            mode="editing" if is_editing else "reading",
            context=context[:CONTEXT_PREFIX_CHARS],
        )
        messages = [{"role": "system", "content": system_prompt}]

        turns = [
            {"role": turn.role, "content": turn.content}
            if isinstance(turn, HistoryTurn)
            else {"role": turn["role"], "content": turn["content"]}
            for turn in history or []
        ]
        turns = [turn for turn in turns if turn["role"] in HISTORY_ROLES]
        if self.history_turns > 0:
            messages.extend(turns[-self.history_turns :])

        messages.append({"role": "user", "content": prompt})
        return messages

    async def complete(self, messages: list[dict[str, str]]) -> DispatchOutcome:
        """Try each model in turn until one answers.

        Never raises for provider failures; an exhausted run returns
        ``content=None``.
        """
        with tracer.start_as_current_span("dispatcher.complete") as span:
            run = DispatchRun(start_index=self.last_success_index, model_count=len(self.models))
            index = run.begin()
            connector = self._get_connector()

            while run.state is DispatchState.ATTEMPTING:
                attempt = run.attempt
                model = self.models[index]

                delay = self.backoff_delay(attempt)
                if delay:
                    logger.debug("model_backoff_wait", attempt=attempt, delay_seconds=delay)
                    await self._sleep(delay)

                logger.info(
                    "model_attempt_started",
                    model=model,
                    attempt=attempt + 1,
                    total=run.model_count,
                )

                try:
                    completion = await connector.chat_completion(
                        messages=messages,
                        model=model,
                        max_tokens=self.max_tokens,
                        temperature=self.temperature,
                        stream=False,
                    )
                    content = first_choice_content(completion)
                except Exception as e:
                    rate_limited = is_rate_limit_error(e)
                    logger.warning(
                        "model_attempt_failed",
                        model=model,
                        attempt=attempt + 1,
                        rate_limited=rate_limited,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    span.add_event(
                        "model_attempt_failed",
                        {"model": model, "rate_limited": rate_limited},
                    )
                    if rate_limited:
                        await self._sleep(self.rate_limit_delay(attempt))

                    if run.fail() is DispatchState.ATTEMPTING:
                        index = run.current_index
                    continue

                self.last_success_index = run.succeed()
                span.set_attribute("dispatcher.model", model)
                span.set_attribute("dispatcher.attempts", attempt + 1)
                logger.info("model_attempt_succeeded", model=model, attempt=attempt + 1)
                return DispatchOutcome(
                    content=content, model=model, attempts=attempt + 1, state=run.state
                )

            span.set_attribute("dispatcher.attempts", run.attempt)
            span.set_attribute("dispatcher.exhausted", True)
            logger.warning("all_models_failed", attempts=run.attempt)
            return DispatchOutcome(
                content=None, model=None, attempts=run.attempt, state=run.state
            )

    async def generate_response(
        self,
        prompt: str,
        context: str = "",
        is_editing: bool = False,
        history: Sequence[HistoryTurn | dict[str, str]] | None = None,
    ) -> AIResponse:
        """Answer a prompt about a note, degrading to the canned fallback.

        Args:
            prompt: User request
            context: Note content (only the first 500 characters are sent)
            is_editing: Editing mode changes the system instruction and fallback table
            history: Prior conversation turns

        Returns:
            AIResponse; ``error`` is set only when every model failed
        """
        metrics = get_app_metrics()
        metrics.ai_requests.add(1, {"editing": is_editing})

        if not self.has_credentials:
            logger.info("ai_fallback_no_credentials", test_mode=self.test_mode)
            metrics.ai_fallbacks.add(1, {"reason": "no_credentials"})
            return AIResponse(content=fallback_response(prompt, is_editing, context))

        messages = self.build_messages(prompt, context, is_editing, history)
        outcome = await self.complete(messages)

        if outcome.content is None:
            metrics.ai_fallbacks.add(1, {"reason": "exhausted"})
            return AIResponse(
                content=fallback_response(prompt, is_editing, context),
                error=EXHAUSTED_ERROR,
            )

        return AIResponse(content=outcome.content)
