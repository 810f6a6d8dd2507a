"""LLM provider abstraction via LiteLLM Router.

Provides the text-completion capability used by the structured output layer:
- Claude Sonnet 4 as the primary model
- GPT-4o as fallback when Claude is unavailable
- Token usage reported back with every response
- Every provider or transport failure surfaces as ApiError
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence

import structlog
from litellm import Router
from pydantic import BaseModel

from src.minutes_ai.config import Settings, get_settings
from src.minutes_ai.schemas.llm import CompletionResult, LLMMessage, TokenUsage
from src.minutes_ai.structured.errors import ApiError

logger = structlog.get_logger(__name__)

MODEL_GROUP = "reasoning"


class CompletionClient(Protocol):
    """Anything that turns messages into text.

    Implementations may return a CompletionResult (text, model, usage) or a
    bare string.
    """

    async def send_message(
        self,
        messages: Sequence[LLMMessage | dict[str, Any]],
        *,
        system: str | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult | str: ...


def _as_message_dict(message: LLMMessage | dict[str, Any]) -> dict[str, Any]:
    if isinstance(message, BaseModel):
        return message.model_dump()
    return {"role": message["role"], "content": message["content"]}


class LLMService:
    """Text-completion capability backed by a LiteLLM Router.

    Configures Claude as the primary model with GPT-4o as fallback under a
    single model group. Provider-level retries are left to the Router's
    ``num_retries`` (LLM_MAX_RETRIES, 0 by default); callers above this
    layer never retry an ApiError.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._default_max_tokens = settings.LLM_DEFAULT_MAX_TOKENS

        model_list = []

        # Primary model: Claude
        if settings.ANTHROPIC_API_KEY:
            model_list.append({
                "model_name": MODEL_GROUP,
                "litellm_params": {
                    "model": settings.LLM_MODEL,
                    "api_key": settings.ANTHROPIC_API_KEY,
                },
            })

        # Fallback model: GPT-4o
        if settings.OPENAI_API_KEY:
            model_list.append({
                "model_name": MODEL_GROUP,
                "litellm_params": {
                    "model": settings.LLM_FALLBACK_MODEL,
                    "api_key": settings.OPENAI_API_KEY,
                },
            })

        if not model_list:
            logger.warning("No LLM API keys configured -- LLM service will be unavailable")
            self.router = None
            self.default_model = ""
            return

        self.default_model = model_list[0]["litellm_params"]["model"]
        self.router = Router(
            model_list=model_list,
            num_retries=settings.LLM_MAX_RETRIES,
            timeout=settings.LLM_TIMEOUT,
            allowed_fails=3,
            cooldown_time=30,
        )

    async def send_message(
        self,
        messages: Sequence[LLMMessage | dict[str, Any]],
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.2,
    ) -> CompletionResult:
        """Execute a single completion call through the LiteLLM Router.

        Args:
            messages: Conversation messages with 'role' and 'content'.
            system: Optional system prompt, sent as the leading system message.
            max_tokens: Maximum tokens in the response (service default if None).
            temperature: Sampling temperature.

        Returns:
            CompletionResult with text, model and usage.

        Raises:
            ApiError: No provider configured, empty input, the call failed,
                or the response carried no text.
        """
        if not self.router:
            raise ApiError("No LLM API keys configured")

        if not messages:
            raise ApiError("At least one message is required")

        payload = [_as_message_dict(m) for m in messages]
        if system:
            payload.insert(0, {"role": "system", "content": system})

        try:
            response = await self.router.acompletion(
                model=MODEL_GROUP,
                messages=payload,
                max_tokens=max_tokens or self._default_max_tokens,
                temperature=temperature,
            )
        except Exception as exc:
            status_code = getattr(exc, "status_code", None)
            logger.warning(
                "llm_request_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                status_code=status_code,
            )
            raise ApiError(
                f"API request failed: {exc}",
                status_code=status_code if isinstance(status_code, int) else None,
                cause=exc,
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ApiError("No text content in response")

        usage = None
        if getattr(response, "usage", None):
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens or 0,
                output_tokens=response.usage.completion_tokens or 0,
            )

        return CompletionResult(
            text=content,
            model=getattr(response, "model", None) or self.default_model,
            usage=usage,
        )
