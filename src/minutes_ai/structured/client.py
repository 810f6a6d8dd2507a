"""StructuredOutputClient -- schema-validated JSON from a text-completion capability.

Flow per call:
1. Build the system prompt: caller text + JSON-only instruction + rendered
   schema contract.
2. For attempt in 0..retry_count: call the completion capability, extract
   JSON from the reply, validate it against the schema.
3. Provider failures raise ApiError immediately (never retried). Parse or
   validation failures are retried with the same messages; the last one
   raises ParseError with the raw text and diagnostics.

Exports:
    StructuredOutputClient: The retrying client.
    StructuredResult: Validated value plus usage and attempt count.
    build_json_system_prompt: System prompt construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Sequence, TypeVar

import structlog

from src.minutes_ai.schemas.llm import CompletionResult, LLMMessage, TokenUsage
from src.minutes_ai.services.llm import CompletionClient
from src.minutes_ai.structured.errors import ApiError, ParseError
from src.minutes_ai.structured.extraction import extract_json
from src.minutes_ai.structured.schema import StructuredSchema

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_COUNT = 1

JSON_OUTPUT_INSTRUCTION = (
    "You must respond with valid JSON only. No markdown, no code blocks, "
    "no explanations.\n"
    "Your response must conform to this schema:\n"
    "{schema}\n\n"
    "Respond with the JSON value directly."
)


def build_json_system_prompt(schema: StructuredSchema[Any], base_system: str | None = None) -> str:
    """Combine optional caller system text with the JSON output contract."""
    instruction = JSON_OUTPUT_INSTRUCTION.format(schema=schema.render())
    if base_system:
        return f"{base_system}\n\n{instruction}"
    return instruction


@dataclass(frozen=True)
class StructuredResult(Generic[T]):
    """A validated structured value and what it cost to obtain.

    Attributes:
        value: Schema-validated output.
        usage: Token usage summed over every attempt, or None when the
            provider reported none.
        model: Model identifier reported by the final successful call.
        attempts: Number of completion calls made (1 = first try).
    """

    value: T
    usage: TokenUsage | None
    model: str
    attempts: int


class StructuredOutputClient:
    """Wraps a CompletionClient with JSON extraction, validation and retries.

    Holds no per-call state, so one instance may serve concurrent calls.

    Args:
        completion_client: The underlying text-completion capability.
        default_model: Model identifier reported when the capability does
            not name one (e.g. it returns bare strings).
    """

    def __init__(
        self,
        completion_client: CompletionClient,
        default_model: str = "",
    ) -> None:
        self._completion_client = completion_client
        self._default_model = default_model or getattr(
            completion_client, "default_model", ""
        )

    @property
    def default_model(self) -> str:
        return self._default_model

    async def generate_structured_output(
        self,
        messages: Sequence[LLMMessage | dict[str, Any]],
        schema: StructuredSchema[T],
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        retry_count: int | None = None,
    ) -> T:
        """Return the schema-validated value for ``messages``.

        Raises:
            ApiError: The completion call failed (not retried).
            ParseError: No attempt produced schema-valid JSON.
        """
        result = await self.generate_structured_result(
            messages,
            schema,
            system=system,
            max_tokens=max_tokens,
            retry_count=retry_count,
        )
        return result.value

    async def generate_structured_result(
        self,
        messages: Sequence[LLMMessage | dict[str, Any]],
        schema: StructuredSchema[T],
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        retry_count: int | None = None,
    ) -> StructuredResult[T]:
        """Like generate_structured_output, also reporting usage and attempts."""
        retries = DEFAULT_RETRY_COUNT if retry_count is None else retry_count
        if retries < 0:
            raise ValueError(f"retry_count must be >= 0, got {retries}")

        system_prompt = build_json_system_prompt(schema, system)
        usage: TokenUsage | None = None

        for attempt in range(retries + 1):
            completion = await self._complete(messages, system_prompt, max_tokens)
            if completion.usage is not None:
                usage = completion.usage if usage is None else usage + completion.usage

            value, diagnostics = self._parse(completion.text, schema)
            if not diagnostics:
                if attempt > 0:
                    logger.info(
                        "structured_output_recovered",
                        schema=schema.name,
                        attempt=attempt + 1,
                    )
                return StructuredResult(
                    value=value,
                    usage=usage,
                    model=completion.model or self._default_model,
                    attempts=attempt + 1,
                )

            logger.warning(
                "structured_output_parse_failed",
                schema=schema.name,
                attempt=attempt + 1,
                max_attempts=retries + 1,
                diagnostics=diagnostics[:5],
                response_preview=completion.text[:200],
            )

            if attempt == retries:
                raise ParseError(
                    f"Schema validation failed after {retries + 1} attempt(s): "
                    + "; ".join(diagnostics[:5]),
                    raw_content=completion.text,
                    diagnostics=diagnostics,
                )

        # range(retries + 1) always runs at least once and every path
        # through the loop body returns or raises.
        raise AssertionError("unreachable")

    async def _complete(
        self,
        messages: Sequence[LLMMessage | dict[str, Any]],
        system_prompt: str,
        max_tokens: int | None,
    ) -> CompletionResult:
        """Issue one completion call; any failure becomes ApiError."""
        try:
            response = await self._completion_client.send_message(
                messages, system=system_prompt, max_tokens=max_tokens
            )
        except ApiError:
            raise
        except Exception as exc:
            raise ApiError(
                f"Unexpected error: {exc}",
                status_code=getattr(exc, "status_code", None),
                cause=exc,
            ) from exc

        if isinstance(response, str):
            return CompletionResult(text=response, model=self._default_model)
        return response

    @staticmethod
    def _parse(text: str, schema: StructuredSchema[T]) -> tuple[T | None, list[str]]:
        """Extract and validate; returns (value, diagnostics)."""
        extracted = extract_json(text)
        if extracted is None:
            return None, ["Failed to extract valid JSON from response"]

        validation = schema.validate(extracted.value)
        if not validation.ok:
            return None, [f"[{extracted.strategy}] {d}" for d in validation.diagnostics]
        return validation.value, []
