"""Schemas for extracted documents, parser state and parsed statements."""

from fatura_parser.schemas.internal import (
    CardSummary,
    CreditCardStatement,
    InstallmentInfo,
    ParserMetrics,
    StatementCard,
    StatementMetadata,
    StatementTransaction,
)

__all__ = [
    "CardSummary",
    "CreditCardStatement",
    "InstallmentInfo",
    "ParserMetrics",
    "StatementCard",
    "StatementMetadata",
    "StatementTransaction",
]
