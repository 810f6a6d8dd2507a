#!/usr/bin/env python3
"""CLI script to generate minutes from a transcript JSON file.

Usage:
    python scripts/generate_minutes.py --input meeting.json
    python scripts/generate_minutes.py --input meeting.json --language en --retry-count 1

The input file holds {"transcript": {...}, "meeting": {...}, "options": {...}}
in the shape accepted by MinutesGenerationService. Provider keys are read
from the environment or .env file (ANTHROPIC_API_KEY / OPENAI_API_KEY).

Prints the generated minutes as JSON on stdout. Exit code 0 on success,
1 on an unreadable input file or a generation error (the error code is
printed to stderr).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any

# Ensure project root is on sys.path so we can import src.minutes_ai
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.minutes_ai.core.logging import configure_structlog  # noqa: E402
from src.minutes_ai.minutes.service import (  # noqa: E402
    MinutesGenerationError,
    MinutesGenerationService,
    create_minutes_generation_service,
)


def load_input(path: str, language: str | None, max_tokens: int | None, retry_count: int | None) -> dict[str, Any]:
    """Read the input file and apply command-line option overrides.

    Raises:
        OSError: The file cannot be read.
        ValueError: The file is not JSON or its top level is not an object.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Input file must contain a JSON object")

    options = dict(data.get("options") or {})
    if language is not None:
        options["language"] = language
    if max_tokens is not None:
        options["max_tokens"] = max_tokens
    if retry_count is not None:
        options["retry_count"] = retry_count
    data["options"] = options
    return data


async def generate(service: MinutesGenerationService, data: dict[str, Any]) -> dict[str, Any]:
    result = await service.generate_minutes(data)
    return {
        "minutes": result.minutes.model_dump(mode="json", exclude_none=True),
        "usage": result.usage.model_dump(),
        "processing_time_ms": result.processing_time_ms,
    }


def main(argv: list[str] | None = None, service: MinutesGenerationService | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate meeting minutes from a transcript")
    parser.add_argument("--input", required=True, help="Path to the transcript/meeting JSON file")
    parser.add_argument("--language", choices=["ja", "en"], default=None, help="Output language")
    parser.add_argument("--max-tokens", type=int, default=None, help="Response token limit")
    parser.add_argument("--retry-count", type=int, default=None, help="Parse retry budget")
    args = parser.parse_args(argv)

    configure_structlog()

    try:
        data = load_input(args.input, args.language, args.max_tokens, args.retry_count)
    except (OSError, ValueError) as exc:
        print(f"INPUT_ERROR: {exc}", file=sys.stderr)
        return 1

    try:
        service = service or create_minutes_generation_service()
        output = asyncio.run(generate(service, data))
    except MinutesGenerationError as exc:
        print(f"{exc.code}: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
