"""Deterministic mapping from validated model output to canonical Minutes.

IMPORTANT: Nothing here calls the LLM. IDs, duration and confidence are pure
functions of the raw output and the meeting input, so the same raw output
always yields the same structure.

ID scheme (positional, array order, never reused within a call):
    topics        -> topic_0, topic_1, ...
    decisions     -> dec_0, dec_1, ...
    action items  -> act_0, act_1, ...
    speakers      -> speaker_0, speaker_1, ... (first appearance)
    unknown assignee of action item i -> assignee_i

Exports:
    MinutesTransformer: Builds Minutes from RawMinutesOutput.
    calculate_duration: Topic span in milliseconds.
    calculate_confidence: Completeness score in (0, 1].
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from src.minutes_ai.minutes.schemas import (
    ActionItem,
    ActionItemStatus,
    DecisionItem,
    Minutes,
    MinutesGenerationInput,
    MinutesMetadata,
    RawActionItem,
    RawMinutesOutput,
    RawSpeaker,
    RawTopic,
    Speaker,
    TopicSegment,
)

# ── Confidence Weights ───────────────────────────────────────────────────────

SUBSTANTIAL_SUMMARY_CHARS = 50

SUMMARY_WEIGHT = 0.30
SHORT_SUMMARY_WEIGHT = 0.10
TOPICS_WEIGHT = 0.30
DECISIONS_WEIGHT = 0.20
ACTION_ITEMS_WEIGHT = 0.20

MIN_CONFIDENCE = 0.05
MAX_CONFIDENCE = 1.0


def calculate_duration(topics: list[RawTopic] | list[TopicSegment]) -> int:
    """Return max(end_time) - min(start_time) over topics, or 0 without topics."""
    if not topics:
        return 0
    return max(t.end_time for t in topics) - min(t.start_time for t in topics)


def calculate_confidence(raw: RawMinutesOutput) -> float:
    """Score how complete the raw output is.

    Weights (total = 1.0):
        summary >= 50 chars:  0.30  (shorter non-empty summary: 0.10)
        topics non-empty:     0.30
        decisions non-empty:  0.20
        action items non-empty: 0.20

    The result is clamped to [0.05, 1.0], so it is never zero.
    """
    summary = raw.summary.strip()
    score = 0.0

    if len(summary) >= SUBSTANTIAL_SUMMARY_CHARS:
        score += SUMMARY_WEIGHT
    elif summary:
        score += SHORT_SUMMARY_WEIGHT

    if raw.topics:
        score += TOPICS_WEIGHT
    if raw.decisions:
        score += DECISIONS_WEIGHT
    if raw.action_items:
        score += ACTION_ITEMS_WEIGHT

    return round(min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, score)), 4)


class _SpeakerRegistry:
    """Name -> Speaker map handing out speaker_N in first-seen order."""

    def __init__(self) -> None:
        self._by_name: dict[str, Speaker] = {}

    def register(self, name: str) -> Speaker:
        speaker = self._by_name.get(name)
        if speaker is None:
            speaker = Speaker(id=f"speaker_{len(self._by_name)}", name=name)
            self._by_name[name] = speaker
        return speaker

    def get(self, name: str) -> Speaker | None:
        return self._by_name.get(name)

    def speakers(self) -> list[Speaker]:
        return list(self._by_name.values())


class MinutesTransformer:
    """Maps RawMinutesOutput plus meeting input onto the Minutes entity.

    Args:
        clock: Returns the current time; used for ``generated_at`` and the
            minutes ID. Defaults to UTC wall-clock time.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def transform(
        self,
        raw: RawMinutesOutput,
        generation_input: MinutesGenerationInput,
        processing_time_ms: int,
        model: str,
    ) -> Minutes:
        """Build Minutes from validated model output.

        Entity IDs (topic_N, dec_N, act_N, speaker_N, assignee_N) are
        positional and stable for the same raw output. ``Minutes.id`` and
        ``metadata.generated_at`` come from the clock, so they differ between
        runs unless the clock is fixed.
        """
        now = self._clock()
        meeting = generation_input.meeting

        registry, attendees = self._build_speakers(raw)

        topics = [
            self._transform_topic(topic, index, registry)
            for index, topic in enumerate(raw.topics)
        ]
        decisions = [
            DecisionItem(
                id=f"dec_{index}",
                content=decision.content,
                context=decision.context,
                decided_at=decision.decided_at,
            )
            for index, decision in enumerate(raw.decisions)
        ]
        action_items = [
            self._transform_action_item(item, index, registry)
            for index, item in enumerate(raw.action_items)
        ]

        return Minutes(
            id=f"min_{meeting.id}_{int(now.timestamp() * 1000)}",
            meeting_id=meeting.id,
            title=meeting.title,
            date=meeting.date,
            duration=calculate_duration(raw.topics),
            summary=raw.summary,
            topics=topics,
            decisions=decisions,
            action_items=action_items,
            attendees=attendees,
            metadata=MinutesMetadata(
                generated_at=now,
                model=model,
                processing_time_ms=processing_time_ms,
                confidence=calculate_confidence(raw),
            ),
        )

    @staticmethod
    def _build_speakers(raw: RawMinutesOutput) -> tuple[_SpeakerRegistry, list[Speaker]]:
        """Seed the registry from attendees, else from topic speakers.

        The seeded entries become Minutes.attendees. Topic speakers missing
        from an attendee-seeded registry still get the next speaker_N but are
        not added to the attendee list.
        """
        registry = _SpeakerRegistry()

        source: list[RawSpeaker]
        if raw.attendees is not None:
            source = raw.attendees
        else:
            source = [s for topic in raw.topics for s in (topic.speakers or [])]

        for speaker in source:
            registry.register(speaker.name)
        return registry, registry.speakers()

    @staticmethod
    def _transform_topic(topic: RawTopic, index: int, registry: _SpeakerRegistry) -> TopicSegment:
        speakers: list[Speaker] = []
        for raw_speaker in topic.speakers or []:
            speaker = registry.register(raw_speaker.name)
            if speaker not in speakers:
                speakers.append(speaker)

        return TopicSegment(
            id=f"topic_{index}",
            title=topic.title,
            start_time=topic.start_time,
            end_time=topic.end_time,
            summary=topic.summary,
            key_points=list(topic.key_points),
            speakers=speakers,
        )

    @staticmethod
    def _transform_action_item(
        item: RawActionItem, index: int, registry: _SpeakerRegistry
    ) -> ActionItem:
        assignee = None
        if item.assignee is not None:
            assignee = registry.get(item.assignee.name) or Speaker(
                id=f"assignee_{index}", name=item.assignee.name
            )

        return ActionItem(
            id=f"act_{index}",
            content=item.content,
            assignee=assignee,
            due_date=item.due_date,
            priority=item.priority,
            status=ActionItemStatus.PENDING,
        )
