"""Statement extraction services.

This module chains parsers into an extraction workflow:
1. Resolve the parser for the caller's bank
2. Run the bank-specific parser
3. Fall back to the generic parser when it finds too little data
4. Tag the result with the bank key and whether a fallback was used
"""

import logging

from fatura_parser.core.exceptions import (
    ExtractionFailedError,
    InsufficientDataError,
    UnsupportedBankError,
)
from fatura_parser.parsers.factory import GENERIC_BANK, ParserRegistry, get_parser_registry
from fatura_parser.parsers.generic import GenericParser
from fatura_parser.schemas.internal import CreditCardStatement

logger = logging.getLogger(__name__)


class LocalStatementExtractionService:
    """Runs one local parser and turns "no statement" into an exception."""

    def __init__(self, parser: GenericParser):
        self.parser = parser

    @property
    def name(self) -> str:
        return self.parser.parser_name

    def extract(self, pdf_bytes: bytes) -> CreditCardStatement:
        """Parse the PDF with the wrapped parser.

        Raises:
            InsufficientDataError: If the parser found too few transactions
            MalformedDocumentError: If the PDF cannot be decoded
        """
        result = self.parser.parse(pdf_bytes)
        timings = result.metrics.model_dump()

        logger.info(
            "Local parser finished",
            extra={"parser": self.name, "timings_ms": timings, "line_count": len(result.rows)},
        )

        if result.statement is None:
            logger.info("Local parser found insufficient data", extra={"parser": self.name})
            raise InsufficientDataError(
                details={
                    "parser": self.name,
                    "line_count": len(result.rows),
                    "raw_lines_sample": [row.text for row in result.rows[:5]],
                    "timings_ms": timings,
                }
            )

        return result.statement


class CompositeStatementExtractionService:
    """Tries extraction services in order until one returns a statement.

    Only ``InsufficientDataError`` moves on to the next service. A malformed
    document is raised immediately since no other parser can decode it.
    """

    def __init__(self, services: list[LocalStatementExtractionService]):
        if not services:
            raise ValueError("At least one extraction service is required")
        self.services = services

    def extract(self, pdf_bytes: bytes) -> CreditCardStatement:
        """Return the first statement produced.

        Raises:
            ExtractionFailedError: If every service reported insufficient data
            MalformedDocumentError: If the PDF cannot be decoded
        """
        attempts: list[dict] = []

        for service in self.services:
            try:
                return service.extract(pdf_bytes)
            except InsufficientDataError as exc:
                attempts.append({"strategy": service.name, "error_code": exc.error_code, **exc.details})
                logger.info("Extraction strategy skipped", extra={"strategy": service.name})

        raise ExtractionFailedError(details={"attempts": attempts})


class StatementService:
    """Extracts statements for a named bank using the parser registry.

    Example:
        >>> service = StatementService()
        >>> statement = service.extract(pdf_bytes, bank="c6")
        >>> statement.metadata.is_fallback
        False
    """

    def __init__(self, registry: ParserRegistry | None = None):
        self.registry = registry or get_parser_registry()

    def build_services(self, bank: str | None) -> tuple[list[LocalStatementExtractionService], str, bool]:
        """Return the services to try, the resolved bank key and its fallback flag.

        Raises:
            UnsupportedBankError: If no parser resolves for the bank
        """
        resolved = self.registry.resolve(bank)
        if resolved is None:
            raise UnsupportedBankError(
                details={"bank": bank, "registered_banks": self.registry.get_registered_banks()}
            )

        services = [LocalStatementExtractionService(resolved.parser)]
        if resolved.bank_key != GENERIC_BANK:
            generic = self.registry.resolve(GENERIC_BANK)
            if generic is not None and generic.bank_key == GENERIC_BANK:
                services.append(LocalStatementExtractionService(generic.parser))

        return services, resolved.bank_key, resolved.is_fallback

    def extract(self, pdf_bytes: bytes, bank: str | None = GENERIC_BANK) -> CreditCardStatement:
        """Extract a statement for ``bank``.

        Raises:
            UnsupportedBankError: If no parser resolves for the bank
            ExtractionFailedError: If no parser found enough transactions
            MalformedDocumentError: If the PDF cannot be decoded
        """
        services, bank_key, is_fallback = self.build_services(bank)
        primary_name = services[0].name

        statement = CompositeStatementExtractionService(services).extract(pdf_bytes)

        statement.metadata.bank_key = bank_key
        statement.metadata.is_fallback = is_fallback or statement.metadata.parser != primary_name

        logger.info(
            "Statement extracted",
            extra={
                "bank": bank_key,
                "parser": statement.metadata.parser,
                "is_fallback": statement.metadata.is_fallback,
            },
        )
        return statement


def extract_statement(pdf_bytes: bytes, bank: str = GENERIC_BANK) -> CreditCardStatement:
    """Convenience function to extract a statement using the global registry."""
    return StatementService().extract(pdf_bytes, bank=bank)
