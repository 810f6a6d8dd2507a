"""Tests for MinutesTransformer and its pure helpers.

The transformer never calls the LLM, so everything here is synchronous and
driven by a fixed clock.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from conftest import make_input, make_raw_output
from src.minutes_ai.minutes.schemas import (
    ActionItemStatus,
    MinutesGenerationInput,
    Priority,
    RawMinutesOutput,
)
from src.minutes_ai.minutes.transformer import (
    MinutesTransformer,
    calculate_confidence,
    calculate_duration,
)

FIXED_NOW = datetime(2025, 1, 22, 10, 30, tzinfo=timezone.utc)


def _raw(**overrides) -> RawMinutesOutput:
    return RawMinutesOutput.model_validate(make_raw_output(**overrides))


def _transform(raw: RawMinutesOutput, model: str = "test-model"):
    transformer = MinutesTransformer(clock=lambda: FIXED_NOW)
    generation_input = MinutesGenerationInput.model_validate(make_input())
    return transformer.transform(raw, generation_input, processing_time_ms=1234, model=model)


def _topic(title: str, start: int, end: int, speakers: list[str] | None = None) -> dict:
    topic = {"title": title, "start_time": start, "end_time": end, "summary": "s", "key_points": []}
    if speakers is not None:
        topic["speakers"] = [{"name": n} for n in speakers]
    return topic


class TestCalculateDuration:
    def test_span_from_earliest_start_to_latest_end(self):
        raw = _raw(topics=[_topic("b", 40000, 50000), _topic("a", 10000, 20000)])
        assert calculate_duration(raw.topics) == 40000

    def test_no_topics_is_zero(self):
        assert calculate_duration([]) == 0


class TestCalculateConfidence:
    def test_complete_output_scores_high(self):
        assert calculate_confidence(_raw()) > 0.7

    def test_complete_output_is_full_score(self):
        assert calculate_confidence(_raw()) == 1.0

    def test_sparse_output_scores_low(self):
        raw = _raw(summary="短い要約", topics=[], decisions=[], action_items=[])
        score = calculate_confidence(raw)
        assert 0 < score < 0.5

    def test_never_zero(self):
        raw = _raw(summary=" ", topics=[], decisions=[], action_items=[])
        assert calculate_confidence(raw) == pytest.approx(0.05)

    def test_within_unit_interval(self):
        raw = _raw(decisions=[], action_items=[])
        assert 0 < calculate_confidence(raw) <= 1


class TestTransform:
    def test_meeting_fields_and_id(self):
        minutes = _transform(_raw())

        assert minutes.meeting_id == "meeting-123"
        assert minutes.title == "週次定例会議"
        assert minutes.date == "2025-01-22"
        assert minutes.id == f"min_meeting-123_{int(FIXED_NOW.timestamp() * 1000)}"

    def test_positional_ids(self):
        raw = _raw(
            decisions=[{"content": "A"}, {"content": "B"}],
            action_items=[
                {"content": "x", "priority": "low"},
                {"content": "y", "priority": "medium"},
            ],
        )
        minutes = _transform(raw)

        assert [t.id for t in minutes.topics] == ["topic_0", "topic_1"]
        assert [d.id for d in minutes.decisions] == ["dec_0", "dec_1"]
        assert [a.id for a in minutes.action_items] == ["act_0", "act_1"]

    def test_topic_fields_copied(self):
        topic = _transform(_raw()).topics[1]

        assert topic.title == "リリース日"
        assert topic.start_time == 30000
        assert topic.end_time == 90000
        assert topic.key_points == ["金曜日リリース", "リリースノート作成"]

    def test_speakers_from_topics_when_no_attendees(self):
        minutes = _transform(_raw())

        assert [(s.id, s.name) for s in minutes.attendees] == [
            ("speaker_0", "田中"),
            ("speaker_1", "鈴木"),
        ]
        assert minutes.topics[0].speakers == minutes.attendees
        assert minutes.topics[1].speakers == minutes.attendees

    def test_attendees_seed_the_speaker_map(self):
        raw = _raw(
            attendees=[{"name": "鈴木"}, {"name": "田中"}],
            topics=[_topic("t", 0, 1000, ["田中", "佐藤"])],
        )
        minutes = _transform(raw)

        assert [s.name for s in minutes.attendees] == ["鈴木", "田中"]
        speakers = minutes.topics[0].speakers
        assert speakers[0].id == "speaker_1"
        # Unlisted topic speakers get the next id but do not join attendees.
        assert (speakers[1].id, speakers[1].name) == ("speaker_2", "佐藤")

    def test_duplicate_topic_speaker_listed_once(self):
        raw = _raw(topics=[_topic("t", 0, 1000, ["田中", "田中"])])
        assert len(_transform(raw).topics[0].speakers) == 1

    def test_topic_without_speakers(self):
        raw = _raw(topics=[_topic("t", 0, 1000)])
        minutes = _transform(raw)
        assert minutes.topics[0].speakers == []
        assert minutes.attendees == []

    def test_known_assignee_reuses_speaker(self):
        minutes = _transform(_raw())
        assignee = minutes.action_items[0].assignee
        assert (assignee.id, assignee.name) == ("speaker_1", "鈴木")

    def test_unknown_assignee_gets_positional_id(self):
        raw = _raw(
            action_items=[
                {"content": "a", "priority": "low"},
                {"content": "b", "priority": "high", "assignee": {"name": "山田"}},
            ]
        )
        assignee = _transform(raw).action_items[1].assignee
        assert (assignee.id, assignee.name) == ("assignee_1", "山田")

    def test_missing_assignee_is_omitted_from_dump(self):
        raw = _raw(action_items=[{"content": "a", "priority": "low"}])
        item = _transform(raw).action_items[0]

        assert item.assignee is None
        dumped = item.model_dump(mode="json", exclude_none=True)
        assert "assignee" not in dumped
        assert "due_date" not in dumped

    def test_action_items_are_pending(self):
        item = _transform(_raw()).action_items[0]
        assert item.status == ActionItemStatus.PENDING
        assert item.priority == Priority.HIGH
        assert item.due_date == "2025-01-24"

    def test_decision_fields(self):
        decision = _transform(_raw()).decisions[0]
        assert decision.content == "金曜日にリリースする"
        assert decision.decided_at == 45000

    def test_duration_and_empty_topics(self):
        assert _transform(_raw()).duration == 90000
        assert _transform(_raw(topics=[])).duration == 0

    def test_metadata(self):
        metadata = _transform(_raw(), model="anthropic/claude-sonnet-4-20250514").metadata

        assert metadata.generated_at == FIXED_NOW
        assert metadata.model == "anthropic/claude-sonnet-4-20250514"
        assert metadata.processing_time_ms == 1234
        assert 0 < metadata.confidence <= 1

    def test_same_raw_output_gives_same_minutes(self):
        raw = _raw()
        assert _transform(raw) == _transform(raw)
