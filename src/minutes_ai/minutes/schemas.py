"""Pydantic v2 schemas for the minutes generation domain.

Defines the data contracts for transcripts, meeting context, generation
options, the raw structured output the model is asked to produce, and the
canonical Minutes document built from it. Output models are frozen: every
entity is created once per generation call and never mutated afterwards.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.minutes_ai.schemas.llm import TokenUsage

DATE_PATTERN = r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"


# ── Enums ────────────────────────────────────────────────────────────────────


class Priority(str, Enum):
    """Priority estimated for an action item."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionItemStatus(str, Enum):
    """Action item status. Freshly generated items are always pending."""

    PENDING = "pending"


OutputLanguage = Literal["ja", "en"]


# ── Input Models ─────────────────────────────────────────────────────────────


class Speaker(BaseModel):
    """A person speaking in a transcript or named in minutes."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class TranscriptSegment(BaseModel):
    """A single time-stamped utterance."""

    id: str
    start_time: int = Field(..., ge=0, description="Milliseconds from meeting start")
    end_time: int = Field(..., ge=0, description="Milliseconds from meeting start")
    speaker: Speaker
    text: str
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class Transcript(BaseModel):
    """Speech-to-text output for one meeting, segments ordered by time."""

    meeting_id: str
    language: str = "ja"
    segments: list[TranscriptSegment]
    total_duration: int = Field(default=0, ge=0)
    created_at: datetime | None = None


class Attendee(BaseModel):
    """A meeting attendee as known to the calendar."""

    id: str
    name: str


class MeetingContext(BaseModel):
    """Meeting information that accompanies a transcript."""

    id: str
    title: str
    date: str = Field(..., pattern=DATE_PATTERN, description="YYYY-MM-DD")
    attendees: list[Attendee] = Field(default_factory=list)


class GenerationOptions(BaseModel):
    """Per-call generation settings. Unset values fall back to service defaults."""

    language: OutputLanguage = "ja"
    max_tokens: int | None = Field(default=None, gt=0)
    retry_count: int | None = Field(default=None, ge=0)


class MinutesGenerationInput(BaseModel):
    """Everything needed to generate minutes for one meeting."""

    transcript: Transcript
    meeting: MeetingContext
    options: GenerationOptions = Field(default_factory=GenerationOptions)


# ── Raw Model Output (no IDs -- generated server-side) ───────────────────────


class RawSpeaker(BaseModel):
    name: str = Field(..., min_length=1)


class RawTopic(BaseModel):
    title: str = Field(..., min_length=1)
    start_time: int = Field(..., ge=0)
    end_time: int = Field(..., ge=0)
    summary: str
    key_points: list[str]
    speakers: list[RawSpeaker] | None = None

    @model_validator(mode="after")
    def _end_not_before_start(self) -> RawTopic:
        if self.end_time < self.start_time:
            raise ValueError("end_time must be greater than or equal to start_time")
        return self


class RawDecision(BaseModel):
    content: str = Field(..., min_length=1)
    context: str | None = None
    decided_at: int | None = Field(default=None, ge=0)


class RawActionItem(BaseModel):
    content: str = Field(..., min_length=1)
    assignee: RawSpeaker | None = None
    due_date: str | None = Field(default=None, pattern=DATE_PATTERN)
    priority: Priority


class RawMinutesOutput(BaseModel):
    """Structured output the model asserts, validated before transformation."""

    summary: str = Field(..., min_length=1)
    topics: list[RawTopic]
    decisions: list[RawDecision]
    action_items: list[RawActionItem]
    attendees: list[RawSpeaker] | None = None


# ── Canonical Minutes ────────────────────────────────────────────────────────


class TopicSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    start_time: int
    end_time: int
    summary: str
    key_points: list[str]
    speakers: list[Speaker]


class DecisionItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    context: str | None = None
    decided_at: int | None = None


class ActionItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    assignee: Speaker | None = None
    due_date: str | None = None
    priority: Priority
    status: ActionItemStatus = ActionItemStatus.PENDING


class MinutesMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated_at: datetime
    model: str
    processing_time_ms: int = Field(..., ge=0)
    confidence: float = Field(..., gt=0.0, le=1.0)


class Minutes(BaseModel):
    """Complete AI-generated meeting minutes."""

    model_config = ConfigDict(frozen=True)

    id: str
    meeting_id: str
    title: str
    date: str
    duration: int = Field(..., ge=0, description="Milliseconds covered by topics")
    summary: str
    topics: list[TopicSegment]
    decisions: list[DecisionItem]
    action_items: list[ActionItem]
    attendees: list[Speaker]
    metadata: MinutesMetadata


class MinutesGenerationResult(BaseModel):
    """Generated minutes with processing metrics."""

    model_config = ConfigDict(frozen=True)

    minutes: Minutes
    usage: TokenUsage
    processing_time_ms: int = Field(..., ge=0)
