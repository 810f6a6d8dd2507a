"""Render transcript segments as prompt-ready text.

One line per segment, in segment order:

    [HH:MM:SS] SpeakerName: text

Hours are not wrapped at 24.
"""

from __future__ import annotations

from src.minutes_ai.minutes.schemas import Transcript, TranscriptSegment


def format_timestamp(ms: int) -> str:
    """Format milliseconds as a zero-padded HH:MM:SS timestamp."""
    if ms < 0:
        return "00:00:00"

    total_seconds = ms // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_segment(segment: TranscriptSegment) -> str:
    return f"[{format_timestamp(segment.start_time)}] {segment.speaker.name}: {segment.text}"


def format_transcript(transcript: Transcript) -> str:
    """Render every segment of ``transcript``, joined with newlines."""
    return "\n".join(format_segment(segment) for segment in transcript.segments)
