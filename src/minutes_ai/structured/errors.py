"""Error types raised by the structured output layer.

ApiError is fatal (provider or transport failure, never retried).
ParseError is recoverable (the response did not yield schema-conformant
JSON) and is retried by StructuredOutputClient up to its budget.
"""

from __future__ import annotations


class ApiError(Exception):
    """Raised when the completion provider call itself fails.

    Attributes:
        status_code: HTTP status reported by the provider, if any.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)


class ParseError(Exception):
    """Raised when a response cannot be turned into schema-valid data.

    Attributes:
        raw_content: The raw response text of the last attempt.
        diagnostics: Extraction and validation problems, one per entry.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        raw_content: str | None = None,
        diagnostics: list[str] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.raw_content = raw_content
        self.diagnostics = list(diagnostics or [])
        self.cause = cause
        super().__init__(message)
