"""Prompts and output contract for minutes generation.

The output contract is a hand-written schema descriptor mirroring
RawMinutesOutput. The descriptor is what the model sees (rendered into the
system prompt by StructuredOutputClient); RawMinutesOutput enforces the
value constraints the descriptor cannot express.
"""

from __future__ import annotations

from src.minutes_ai.minutes.schemas import OutputLanguage, RawMinutesOutput
from src.minutes_ai.structured.schema import (
    ArraySchema,
    EnumSchema,
    Field,
    ObjectSchema,
    StructuredSchema,
    integer,
    string,
)

# ── System Prompts ───────────────────────────────────────────────────────────

SYSTEM_PROMPT_JA = (
    "あなたは議事録作成の専門家です。\n"
    "会議の文字起こしから、構造化された正確な議事録を作成します。\n\n"
    "あなたの役割:\n"
    "- 会議の内容を正確に把握し、重要な情報を漏らさず抽出する\n"
    "- 話題の流れを理解し、論理的に話題ごとに区切る\n"
    "- 決定事項とアクションアイテムを明確に区別する\n"
    "- 簡潔で読みやすい文章で要約する\n\n"
    "文字起こしに無い事実を追加しないでください。"
)

SYSTEM_PROMPT_EN = (
    "You are an expert meeting minutes writer.\n"
    "You turn meeting transcripts into structured, accurate minutes.\n\n"
    "Your role:\n"
    "- Understand the meeting and extract every important piece of information\n"
    "- Follow the flow of discussion and segment it into topics\n"
    "- Clearly separate decisions from action items\n"
    "- Summarize in concise, readable prose\n\n"
    "Do not add facts that are not in the transcript."
)


def get_system_prompt(language: OutputLanguage = "ja") -> str:
    """Return the system prompt preamble for the output language."""
    return SYSTEM_PROMPT_JA if language == "ja" else SYSTEM_PROMPT_EN


# ── User Prompts ─────────────────────────────────────────────────────────────

USER_PROMPT_TEMPLATE_JA = """以下の会議の文字起こしから議事録を作成してください。

## 出力要件
- summary: 会議全体の要約（3-5文。目的、主な論点、結論を含める）
- topics: 議論の流れに沿った話題。start_time / end_time はミリ秒（推定で可）
- decisions: 「決定」「承認」「合意」などから抽出。無ければ空配列
- action_items: 担当者（参加者から選択）、期限（YYYY-MM-DD）、優先度（high / medium / low）。無ければ空配列
- id フィールドは含めないでください（サーバー側で生成します）

## 会議情報
タイトル: {title}
日付: {date}
参加者: {attendees}

## 文字起こし
{transcript}"""

USER_PROMPT_TEMPLATE_EN = """Create meeting minutes from the following transcript.

## Output requirements
- summary: 3-5 sentences covering purpose, main discussion points and conclusions
- topics: follow the flow of discussion; start_time / end_time in milliseconds (estimates are fine)
- decisions: extract from phrases like "decided", "approved", "agreed"; empty array if none
- action_items: assignee (from attendees), due date (YYYY-MM-DD), priority (high / medium / low); empty array if none
- Do not include id fields (they are generated server-side)

## Meeting information
Title: {title}
Date: {date}
Attendees: {attendees}

## Transcript
{transcript}"""


def build_user_prompt(
    transcript_text: str,
    title: str,
    date: str,
    attendee_names: list[str],
    language: OutputLanguage = "ja",
) -> str:
    """Fill the language-specific user prompt with meeting data."""
    template = USER_PROMPT_TEMPLATE_JA if language == "ja" else USER_PROMPT_TEMPLATE_EN
    attendees = ", ".join(attendee_names) if attendee_names else "(Not specified)"
    return template.format(
        title=title,
        date=date,
        attendees=attendees,
        transcript=transcript_text,
    )


# ── Output Contract ──────────────────────────────────────────────────────────

_SPEAKER = ObjectSchema(fields=(Field("name", string()),))

MINUTES_OUTPUT_DESCRIPTOR = ObjectSchema(
    fields=(
        Field("summary", string(), description="3-5 sentence overall summary"),
        Field(
            "topics",
            ArraySchema(
                ObjectSchema(
                    fields=(
                        Field("title", string()),
                        Field("start_time", integer(), description="milliseconds"),
                        Field("end_time", integer(), description="milliseconds"),
                        Field("summary", string()),
                        Field("key_points", ArraySchema(string())),
                        Field("speakers", ArraySchema(_SPEAKER), optional=True),
                    )
                )
            ),
        ),
        Field(
            "decisions",
            ArraySchema(
                ObjectSchema(
                    fields=(
                        Field("content", string()),
                        Field("context", string(), optional=True),
                        Field("decided_at", integer(), optional=True, description="milliseconds"),
                    )
                )
            ),
        ),
        Field(
            "action_items",
            ArraySchema(
                ObjectSchema(
                    fields=(
                        Field("content", string()),
                        Field("assignee", _SPEAKER, optional=True),
                        Field("due_date", string(), optional=True, description="YYYY-MM-DD"),
                        Field("priority", EnumSchema(("high", "medium", "low"))),
                    )
                )
            ),
        ),
        Field("attendees", ArraySchema(_SPEAKER), optional=True),
    )
)

MINUTES_OUTPUT_SCHEMA: StructuredSchema[RawMinutesOutput] = StructuredSchema(
    descriptor=MINUTES_OUTPUT_DESCRIPTOR,
    model=RawMinutesOutput,
    name="minutes",
)
