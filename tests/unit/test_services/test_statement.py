"""Tests for the statement extraction services."""

import logging
from unittest.mock import Mock, patch

import pytest

from fatura_parser.core.exceptions import (
    ExtractionFailedError,
    InsufficientDataError,
    MalformedDocumentError,
    UnsupportedBankError,
)
from fatura_parser.parsers.factory import ParserRegistry
from fatura_parser.parsers.generic import GenericParser
from fatura_parser.parsers.refinements import C6BankParser
from fatura_parser.services.statement import (
    CompositeStatementExtractionService,
    LocalStatementExtractionService,
    StatementService,
    extract_statement,
)


@pytest.fixture
def registry_for(make_parser):
    """Build a registry whose parsers all read the given rows."""

    def _build(rows, banks=("c6", "generic")):
        parsers = {"c6": C6BankParser, "generic": GenericParser}
        return ParserRegistry({bank: make_parser(parsers[bank], rows) for bank in banks})

    return _build


class TestLocalStatementExtractionService:
    """Test suite for LocalStatementExtractionService."""

    def test_returns_statement(self, make_parser, c6_rows):
        service = LocalStatementExtractionService(make_parser(C6BankParser, c6_rows))

        statement = service.extract(b"pdf")

        assert service.name == "local:c6-bank"
        assert len(statement.transactions) == 3

    def test_insufficient_data_raises(self, make_parser, generic_rows):
        service = LocalStatementExtractionService(make_parser(C6BankParser, generic_rows))

        with pytest.raises(InsufficientDataError) as exc_info:
            service.extract(b"pdf")

        error = exc_info.value
        assert error.error_code == "PARSE_005"
        assert error.details["parser"] == "local:c6-bank"
        assert error.details["line_count"] == len(generic_rows)
        assert len(error.details["raw_lines_sample"]) == 5
        assert "total_ms" in error.details["timings_ms"]

    def test_insufficient_data_logged_at_info(self, make_parser, generic_rows, caplog):
        service = LocalStatementExtractionService(make_parser(C6BankParser, generic_rows))

        with caplog.at_level(logging.DEBUG, logger="fatura_parser"):
            with pytest.raises(InsufficientDataError):
                service.extract(b"pdf")

        assert caplog.records
        assert all(record.levelno <= logging.INFO for record in caplog.records)


class TestCompositeStatementExtractionService:
    """Test suite for CompositeStatementExtractionService."""

    def test_requires_services(self):
        with pytest.raises(ValueError):
            CompositeStatementExtractionService([])

    def test_falls_through_insufficient_data(self):
        statement = Mock()
        first = Mock(extract=Mock(side_effect=InsufficientDataError(details={"line_count": 3})))
        first.name = "first"
        second = Mock(extract=Mock(return_value=statement))
        second.name = "second"

        result = CompositeStatementExtractionService([first, second]).extract(b"pdf")

        assert result is statement
        first.extract.assert_called_once_with(b"pdf")
        second.extract.assert_called_once_with(b"pdf")

    def test_all_insufficient_raises_extraction_failed(self):
        services = []
        for name in ("first", "second"):
            service = Mock(extract=Mock(side_effect=InsufficientDataError()))
            service.name = name
            services.append(service)

        with pytest.raises(ExtractionFailedError) as exc_info:
            CompositeStatementExtractionService(services).extract(b"pdf")

        attempts = exc_info.value.details["attempts"]
        assert exc_info.value.error_code == "PARSE_006"
        assert [attempt["strategy"] for attempt in attempts] == ["first", "second"]
        assert all(attempt["error_code"] == "PARSE_005" for attempt in attempts)

    def test_malformed_document_stops_chain(self):
        first = Mock(extract=Mock(side_effect=MalformedDocumentError()))
        first.name = "first"
        second = Mock()
        second.name = "second"

        with pytest.raises(MalformedDocumentError):
            CompositeStatementExtractionService([first, second]).extract(b"pdf")

        second.extract.assert_not_called()


class TestStatementService:
    """Test suite for StatementService."""

    def test_bank_specific_parser(self, registry_for, c6_rows):
        statement = StatementService(registry_for(c6_rows)).extract(b"pdf", bank="c6")

        assert statement.metadata.parser == "local:c6-bank"
        assert statement.metadata.bank_key == "c6"
        assert statement.metadata.is_fallback is False

    def test_generic_fallback_after_insufficient_data(self, registry_for, generic_rows):
        """Test the generic parser runs when the bank parser finds too little."""
        statement = StatementService(registry_for(generic_rows)).extract(b"pdf", bank="c6")

        assert statement.metadata.parser == "local:generic"
        assert statement.metadata.bank_key == "c6"
        assert statement.metadata.is_fallback is True

    def test_unknown_bank_uses_default(self, registry_for, generic_rows):
        statement = StatementService(registry_for(generic_rows)).extract(b"pdf", bank="itau")

        assert statement.metadata.bank_key == "generic"
        assert statement.metadata.is_fallback is True

    def test_generic_bank(self, registry_for, generic_rows):
        service = StatementService(registry_for(generic_rows))

        services, bank_key, is_fallback = service.build_services("generic")
        statement = service.extract(b"pdf", bank="generic")

        assert len(services) == 1
        assert bank_key == "generic"
        assert is_fallback is False
        assert statement.metadata.is_fallback is False

    def test_unsupported_bank(self, registry_for, c6_rows):
        service = StatementService(registry_for(c6_rows, banks=("c6",)))

        with pytest.raises(UnsupportedBankError) as exc_info:
            service.extract(b"pdf", bank="itau")

        assert exc_info.value.error_code == "PARSE_001"
        assert exc_info.value.details["registered_banks"] == ["c6"]

    def test_no_parser_succeeds(self, registry_for, make_rows):
        rows = make_rows(["Nada aqui"])

        with pytest.raises(ExtractionFailedError) as exc_info:
            StatementService(registry_for(rows)).extract(b"pdf", bank="c6")

        strategies = [attempt["strategy"] for attempt in exc_info.value.details["attempts"]]
        assert strategies == ["local:c6-bank", "local:generic"]

    def test_malformed_document_propagates(self, registry_for, c6_rows):
        registry = registry_for(c6_rows)
        for bank in ("c6", "generic"):
            registry.resolve(bank).parser.extractor.extract.side_effect = MalformedDocumentError()

        with pytest.raises(MalformedDocumentError):
            StatementService(registry).extract(b"pdf", bank="c6")

        generic = registry.resolve("generic").parser
        generic.extractor.extract.assert_not_called()


class TestExtractStatement:
    """Test suite for the module-level convenience function."""

    @patch("fatura_parser.services.statement.get_parser_registry")
    def test_uses_global_registry(self, mock_registry, registry_for, c6_rows):
        mock_registry.return_value = registry_for(c6_rows)

        statement = extract_statement(b"pdf", bank="c6")

        assert statement.metadata.bank_key == "c6"
        mock_registry.assert_called_once_with()
