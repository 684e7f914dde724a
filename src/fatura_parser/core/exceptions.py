"""Custom exception classes for statement parsing.

This module defines the exceptions that cross the parser boundary. Each
exception carries an error code from the catalog in errors.py.

Field-level misses (an unparsable date or amount) are not errors: the field
is simply left empty. A parse that finds too few transactions returns a
result without a statement; ``InsufficientDataError`` only exists for the
service layer, which turns that result into "try another parser".
"""

from typing import Any


class StatementProcessingError(Exception):
    """Base exception for all statement processing errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "PARSE_002")
        details: Additional context about the error (for logging)
        http_status: HTTP status code a calling layer should return
    """

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int = 500,
    ):
        """Initialize the exception.

        Args:
            error_code: Error code from errors.py
            details: Additional error context (not shown to users)
            http_status: HTTP status code (default: 500)
        """
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status
        super().__init__(error_code)


class MalformedDocumentError(StatementProcessingError):
    """Raised when the PDF bytes cannot be decoded into pages and glyphs.

    Common causes:
    - Empty or truncated upload (PARSE_002)
    - Not a PDF at all (PARSE_002)
    - Encrypted PDF (PARSE_003)
    """

    def __init__(
        self,
        error_code: str = "PARSE_002",
        details: dict[str, Any] | None = None,
        http_status: int = 422,
    ):
        super().__init__(error_code, details, http_status)


class InsufficientDataError(StatementProcessingError):
    """Raised by extraction services when a parser found too few transactions.

    This is an expected outcome used to fall back to another parser and is
    never logged as an error. Maps to PARSE_005.
    """

    def __init__(
        self,
        error_code: str = "PARSE_005",
        details: dict[str, Any] | None = None,
        http_status: int = 422,
    ):
        super().__init__(error_code, details, http_status)


class UnsupportedBankError(StatementProcessingError):
    """Raised when no parser (not even the fallback) is registered for a bank.

    Maps to error code PARSE_001.
    """

    def __init__(
        self,
        error_code: str = "PARSE_001",
        details: dict[str, Any] | None = None,
        http_status: int = 400,
    ):
        super().__init__(error_code, details, http_status)


class ExtractionFailedError(StatementProcessingError):
    """Raised when every extraction strategy reported insufficient data.

    ``details["attempts"]`` lists one entry per strategy. Maps to PARSE_006.
    """

    def __init__(
        self,
        error_code: str = "PARSE_006",
        details: dict[str, Any] | None = None,
        http_status: int = 422,
    ):
        super().__init__(error_code, details, http_status)
