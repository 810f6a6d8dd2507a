"""Pydantic schemas for the text-completion capability."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class LLMMessage(BaseModel):
    """A single conversation message sent to the provider."""

    role: Literal["user", "assistant"] = Field(..., description="Message role")
    content: str = Field(..., description="Message content")


class TokenUsage(BaseModel):
    """Token counts for one or more provider calls."""

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


class CompletionResult(BaseModel):
    """Text returned by one provider call."""

    text: str = Field(..., description="Generated content")
    model: str = Field(default="", description="Model that generated the response")
    usage: TokenUsage | None = Field(
        default=None, description="Token usage, when the provider reports it"
    )
