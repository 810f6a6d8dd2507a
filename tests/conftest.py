"""Shared fixtures for the minutes generation test suite.

Provides:
- ScriptedCompletionClient: a CompletionClient test double that replays a
  scripted list of responses (strings, CompletionResults or exceptions) and
  records every call it receives
- Builders for transcripts, meeting context and raw model output
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from src.minutes_ai.schemas.llm import CompletionResult


class ScriptedCompletionClient:
    """Replays scripted responses in order; exceptions are raised."""

    def __init__(self, responses: list[Any], default_model: str = "test-model") -> None:
        self._responses = list(responses)
        self.default_model = default_model
        self.calls: list[dict[str, Any]] = []

    async def send_message(self, messages, *, system=None, max_tokens=None):
        self.calls.append(
            {"messages": list(messages), "system": system, "max_tokens": max_tokens}
        )
        if not self._responses:
            raise AssertionError("ScriptedCompletionClient ran out of responses")
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)


def make_segments() -> list[dict[str, Any]]:
    """Four segments, two speakers, spanning 0-90000 ms."""
    tanaka = {"id": "user-1", "name": "田中"}
    suzuki = {"id": "user-2", "name": "鈴木"}
    return [
        {"id": "seg-1", "start_time": 0, "end_time": 15000, "speaker": tanaka,
         "text": "本日の議題はリリース計画です。", "confidence": 0.95},
        {"id": "seg-2", "start_time": 15000, "end_time": 30000, "speaker": suzuki,
         "text": "テストは今週中に完了します。", "confidence": 0.92},
        {"id": "seg-3", "start_time": 30000, "end_time": 60000, "speaker": tanaka,
         "text": "では金曜日リリースで決定しましょう。", "confidence": 0.9},
        {"id": "seg-4", "start_time": 60000, "end_time": 90000, "speaker": suzuki,
         "text": "リリースノートは私が24日までに作成します。", "confidence": 0.93},
    ]


def make_input(**overrides: Any) -> dict[str, Any]:
    """A valid generation input as a plain mapping (request-body shape)."""
    data: dict[str, Any] = {
        "transcript": {
            "meeting_id": "meeting-123",
            "language": "ja",
            "segments": make_segments(),
            "total_duration": 90000,
            "created_at": "2025-01-22T10:00:00Z",
        },
        "meeting": {
            "id": "meeting-123",
            "title": "週次定例会議",
            "date": "2025-01-22",
            "attendees": [
                {"id": "user-1", "name": "田中"},
                {"id": "user-2", "name": "鈴木"},
            ],
        },
    }
    data.update(overrides)
    return data


def make_raw_output(**overrides: Any) -> dict[str, Any]:
    """Raw model output with two topics, one decision, one action item."""
    data: dict[str, Any] = {
        "summary": (
            "週次定例会議ではリリース計画について議論した。テストは今週中に完了する"
            "見込みで、金曜日にリリースすることが決定した。リリースノートは鈴木が作成する。"
        ),
        "topics": [
            {
                "title": "リリース計画",
                "start_time": 0,
                "end_time": 30000,
                "summary": "リリースに向けた進捗を確認した。",
                "key_points": ["テストは今週中に完了"],
                "speakers": [{"name": "田中"}, {"name": "鈴木"}],
            },
            {
                "title": "リリース日",
                "start_time": 30000,
                "end_time": 90000,
                "summary": "リリース日を金曜日に決定した。",
                "key_points": ["金曜日リリース", "リリースノート作成"],
                "speakers": [{"name": "田中"}, {"name": "鈴木"}],
            },
        ],
        "decisions": [
            {"content": "金曜日にリリースする", "context": "テスト完了見込みのため", "decided_at": 45000},
        ],
        "action_items": [
            {
                "content": "リリースノートを作成する",
                "assignee": {"name": "鈴木"},
                "due_date": "2025-01-24",
                "priority": "high",
            },
        ],
    }
    data.update(overrides)
    return data


def as_completion(data: Any, model: str = "anthropic/claude-sonnet-4-20250514",
                  input_tokens: int | None = None, output_tokens: int | None = None) -> CompletionResult:
    """Wrap a JSON-serializable value as a CompletionResult."""
    usage = None
    if input_tokens is not None or output_tokens is not None:
        usage = {"input_tokens": input_tokens or 0, "output_tokens": output_tokens or 0}
    return CompletionResult(
        text=json.dumps(data, ensure_ascii=False),
        model=model,
        usage=usage,
    )


@pytest.fixture
def generation_input() -> dict[str, Any]:
    return make_input()


@pytest.fixture
def raw_output() -> dict[str, Any]:
    return make_raw_output()
