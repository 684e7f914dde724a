from fatura_parser.services.statement import (
    CompositeStatementExtractionService,
    LocalStatementExtractionService,
    StatementService,
    extract_statement,
)

__all__ = [
    "CompositeStatementExtractionService",
    "LocalStatementExtractionService",
    "StatementService",
    "extract_statement",
]
