"""MinutesGenerationService -- transcript in, structured minutes out.

Pipeline:
    validate input -> format transcript -> build prompts ->
    StructuredOutputClient (schema-validated JSON, parse retries) ->
    MinutesTransformer -> MinutesGenerationResult

Every failure surfaces as MinutesGenerationError with a stable code:
    VALIDATION_ERROR   input rejected before any provider call
    CLAUDE_API_ERROR   provider/transport failure (never retried)
    PARSE_ERROR        no attempt produced schema-valid output
    UNKNOWN_ERROR      anything else
The original exception is kept as ``cause`` (and ``__cause__``).

The service holds no mutable state; the StructuredOutputClient is injected,
so independent instances can run side by side.

Exports:
    MinutesGenerationService: The orchestrator.
    MinutesGenerationError: Error raised by generate_minutes.
    InputValidationError: Field-level input validation failure.
    validate_generation_input: Ordered input checks.
    create_minutes_generation_service: Factory wiring LLMService from settings.
    create_minutes_generation_service_with_client: Factory with injected client.
"""

from __future__ import annotations

import json
import re
import time
from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from src.minutes_ai.config import Settings, get_settings
from src.minutes_ai.minutes.formatter import format_transcript
from src.minutes_ai.minutes.prompts import (
    MINUTES_OUTPUT_SCHEMA,
    build_user_prompt,
    get_system_prompt,
)
from src.minutes_ai.minutes.schemas import (
    DATE_PATTERN,
    GenerationOptions,
    MinutesGenerationInput,
    MinutesGenerationResult,
)
from src.minutes_ai.minutes.transformer import MinutesTransformer
from src.minutes_ai.schemas.llm import LLMMessage, TokenUsage
from src.minutes_ai.services.llm import LLMService
from src.minutes_ai.structured.client import StructuredOutputClient
from src.minutes_ai.structured.errors import ApiError, ParseError

logger = structlog.get_logger(__name__)

DEFAULT_MAX_TOKENS = 8000
DEFAULT_RETRY_COUNT = 2
CHARS_PER_TOKEN = 4.0  # Fallback estimate when the provider reports no usage

_DATE_RE = re.compile(DATE_PATTERN)


# ── Errors ───────────────────────────────────────────────────────────────────


class ErrorCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CLAUDE_API_ERROR = "CLAUDE_API_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    MISSING_API_KEY = "MISSING_API_KEY"


class InputValidationError(ValueError):
    """Raised when generation input is malformed.

    Attributes:
        field: Dotted path of the offending input field.
    """

    def __init__(self, message: str, field: str) -> None:
        self.field = field
        super().__init__(message)


class MinutesGenerationError(Exception):
    """Raised when minutes generation fails.

    Attributes:
        code: One of the ErrorCode constants.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        code: str,
        cause: BaseException | None = None,
    ) -> None:
        self.code = code
        self.cause = cause
        super().__init__(message)


# ── Input Validation ─────────────────────────────────────────────────────────


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _as_mapping(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


def validate_generation_input(
    data: MinutesGenerationInput | Mapping[str, Any],
) -> MinutesGenerationInput:
    """Check input in a fixed order and return it as a typed model.

    Order: transcript present, at least one segment, meeting present,
    meeting id, meeting title, meeting date format, attendees list. The
    first failing check raises; remaining shape problems are reported from
    Pydantic validation.

    Raises:
        InputValidationError: Naming the failed field.
    """
    if isinstance(data, MinutesGenerationInput):
        data = data.model_dump()
    if not isinstance(data, Mapping):
        raise InputValidationError("Input must be an object", field="input")
    data = {k: v for k, v in data.items() if not (k == "options" and v is None)}

    transcript = _as_mapping(data.get("transcript"))
    if not isinstance(transcript, Mapping):
        raise InputValidationError("Transcript is required", field="transcript")

    segments = transcript.get("segments")
    if not isinstance(segments, list) or not segments:
        raise InputValidationError(
            "Transcript must have at least one segment", field="transcript.segments"
        )

    meeting = _as_mapping(data.get("meeting"))
    if not isinstance(meeting, Mapping):
        raise InputValidationError("Meeting information is required", field="meeting")

    if _is_blank(meeting.get("id")):
        raise InputValidationError("Meeting ID is required", field="meeting.id")

    if _is_blank(meeting.get("title")):
        raise InputValidationError("Meeting title is required", field="meeting.title")

    date = meeting.get("date")
    if not isinstance(date, str) or not _DATE_RE.fullmatch(date):
        raise InputValidationError(
            "Meeting date is required and must be in YYYY-MM-DD format",
            field="meeting.date",
        )

    if not isinstance(meeting.get("attendees"), list):
        raise InputValidationError(
            "Meeting attendees must be an array", field="meeting.attendees"
        )

    try:
        return MinutesGenerationInput.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        raise InputValidationError(
            f"Invalid input at {field}: {first['msg']}", field=field
        ) from exc


def _estimate_tokens(text: str) -> int:
    return int(len(text) / CHARS_PER_TOKEN)


# ── MinutesGenerationService ─────────────────────────────────────────────────


class MinutesGenerationService:
    """Generates meeting minutes from transcripts via structured LLM output.

    Args:
        client: StructuredOutputClient used for the model call.
        transformer: Optional MinutesTransformer (injectable clock for tests).
        max_tokens: Default response token limit when options leave it unset.
        retry_count: Default parse-retry budget when options leave it unset.
    """

    def __init__(
        self,
        client: StructuredOutputClient,
        transformer: MinutesTransformer | None = None,
        *,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        retry_count: int = DEFAULT_RETRY_COUNT,
    ) -> None:
        self._client = client
        self._transformer = transformer or MinutesTransformer()
        self._max_tokens = max_tokens
        self._retry_count = retry_count

    async def generate_minutes(
        self, generation_input: MinutesGenerationInput | Mapping[str, Any]
    ) -> MinutesGenerationResult:
        """Generate minutes for one meeting.

        Args:
            generation_input: MinutesGenerationInput or an equivalent mapping
                (e.g. a decoded request body).

        Returns:
            MinutesGenerationResult with minutes, usage and processing time.

        Raises:
            MinutesGenerationError: On any failure, with a stable code.
        """
        start = time.monotonic()

        try:
            validated = validate_generation_input(generation_input)
        except InputValidationError as exc:
            logger.info("minutes_input_rejected", field=exc.field, reason=str(exc))
            raise MinutesGenerationError(
                str(exc), ErrorCode.VALIDATION_ERROR, cause=exc
            ) from exc

        meeting = validated.meeting
        options: GenerationOptions = validated.options
        log = logger.bind(meeting_id=meeting.id, language=options.language)

        try:
            transcript_text = format_transcript(validated.transcript)
            system_prompt = get_system_prompt(options.language)
            user_prompt = build_user_prompt(
                transcript_text,
                title=meeting.title,
                date=meeting.date,
                attendee_names=[a.name for a in meeting.attendees],
                language=options.language,
            )

            result = await self._client.generate_structured_result(
                [LLMMessage(role="user", content=user_prompt)],
                MINUTES_OUTPUT_SCHEMA,
                system=system_prompt,
                max_tokens=options.max_tokens or self._max_tokens,
                retry_count=(
                    self._retry_count if options.retry_count is None else options.retry_count
                ),
            )

            processing_time_ms = int((time.monotonic() - start) * 1000)
            minutes = self._transformer.transform(
                result.value,
                validated,
                processing_time_ms=processing_time_ms,
                model=result.model,
            )

            usage = result.usage or TokenUsage(
                input_tokens=_estimate_tokens(system_prompt + user_prompt),
                output_tokens=_estimate_tokens(
                    json.dumps(result.value.model_dump(mode="json"), ensure_ascii=False)
                ),
            )
        except ApiError as exc:
            log.warning("minutes_generation_api_error", error=str(exc), status_code=exc.status_code)
            raise MinutesGenerationError(
                f"Claude API error: {exc}", ErrorCode.CLAUDE_API_ERROR, cause=exc
            ) from exc
        except ParseError as exc:
            log.warning(
                "minutes_generation_parse_error",
                error=str(exc),
                diagnostics=exc.diagnostics[:5],
            )
            raise MinutesGenerationError(
                f"Failed to parse Claude response: {exc}", ErrorCode.PARSE_ERROR, cause=exc
            ) from exc
        except MinutesGenerationError:
            raise
        except Exception as exc:
            log.exception("minutes_generation_failed")
            raise MinutesGenerationError(
                f"Unexpected error during minutes generation: {exc}",
                ErrorCode.UNKNOWN_ERROR,
                cause=exc,
            ) from exc

        log.info(
            "minutes_generated",
            topics=len(minutes.topics),
            decisions=len(minutes.decisions),
            action_items=len(minutes.action_items),
            attempts=result.attempts,
            confidence=minutes.metadata.confidence,
            processing_time_ms=processing_time_ms,
        )

        return MinutesGenerationResult(
            minutes=minutes,
            usage=usage,
            processing_time_ms=processing_time_ms,
        )


# ── Factory Functions ────────────────────────────────────────────────────────


def create_minutes_generation_service(
    settings: Settings | None = None,
) -> MinutesGenerationService:
    """Build a service backed by LLMService from settings.

    Raises:
        MinutesGenerationError: MISSING_API_KEY when no provider key is set.
    """
    settings = settings or get_settings()
    if not settings.has_llm_provider():
        raise MinutesGenerationError(
            "ANTHROPIC_API_KEY or OPENAI_API_KEY environment variable is required",
            ErrorCode.MISSING_API_KEY,
        )

    llm_service = LLMService(settings)
    client = StructuredOutputClient(llm_service, default_model=llm_service.default_model)
    return MinutesGenerationService(
        client,
        max_tokens=settings.MINUTES_MAX_TOKENS,
        retry_count=settings.MINUTES_RETRY_COUNT,
    )


def create_minutes_generation_service_with_client(
    client: StructuredOutputClient,
) -> MinutesGenerationService:
    """Build a service around an existing StructuredOutputClient."""
    return MinutesGenerationService(client)
