"""Tests for GenericParser."""

from datetime import date
from decimal import Decimal

from fatura_parser.config import ParserConfig
from fatura_parser.parsers.extractor import PDFExtractor
from fatura_parser.parsers.generic import GenericParser
from fatura_parser.parsers.normalizer import PdfTextNormalizer


class TestGenericParserInit:
    """Test suite for GenericParser construction."""

    def test_default_components(self, parser_config):
        parser = GenericParser(config=parser_config)

        assert isinstance(parser.extractor, PDFExtractor)
        assert isinstance(parser.normalizer, PdfTextNormalizer)
        assert parser.parser_name == "local:generic"

    def test_config_drives_components(self):
        """Test tolerances flow into the default extractor and normalizer."""
        config = ParserConfig(y_tolerance=4.0, space_threshold=2.5, word_x_tolerance=1.0)
        parser = GenericParser(config=config)

        assert parser.normalizer.y_tolerance == 4.0
        assert parser.normalizer.space_threshold == 2.5
        assert parser.extractor.x_tolerance == 1.0


class TestGenericParserParse:
    """Test suite for GenericParser.parse on normalized rows."""

    def test_header_fields(self, make_parser, generic_rows):
        statement = make_parser(GenericParser, generic_rows).parse(b"pdf").statement

        assert statement.cardholder_name == "JOÃO DA SILVA"
        assert statement.closing_date == date(2025, 3, 10)
        assert statement.due_date == date(2025, 3, 20)
        assert statement.total_amount_due == Decimal("350.00")
        assert statement.minimum_payment == Decimal("35.00")
        assert statement.metadata.currency == "BRL"

    def test_transactions(self, make_parser, generic_rows):
        """Test date, description, signed amount and type per row."""
        statement = make_parser(GenericParser, generic_rows).parse(b"pdf").statement

        transactions = statement.transactions
        assert len(transactions) == 4

        first = transactions[0]
        assert first.date == date(2025, 3, 2)
        assert first.description == "PADARIA CENTRAL"
        assert first.amount == Decimal("50.00")
        assert first.transaction_type == "purchase"
        assert first.metadata == {"page": 1}

        payment = transactions[2]
        assert payment.date == date(2025, 2, 15)
        assert payment.transaction_type == "payment"
        assert payment.amount == Decimal("-100.00")

        installment = transactions[3]
        assert installment.transaction_type == "installment"
        assert installment.installment.current == 2
        assert installment.installment.total == 10

    def test_single_implicit_card(self, make_parser, generic_rows):
        """Test every transaction lands on one card without a section."""
        statement = make_parser(GenericParser, generic_rows).parse(b"pdf").statement

        assert len(statement.cards) == 1
        assert statement.cards[0].is_additional is None
        assert statement.cards[0].cardholder == "JOÃO DA SILVA"
        assert statement.main_card_last4 is None

        summary = statement.metadata.card_summaries[0]
        assert summary.section is None
        assert summary.computed_subtotal == Decimal("350.00")
        assert summary.expected_subtotal is None
        assert summary.subtotal_difference is None
        assert summary.transaction_count == 4

    def test_metadata(self, make_parser, generic_rows):
        result = make_parser(GenericParser, generic_rows).parse(b"pdf")
        metadata = result.statement.metadata

        assert metadata.parser == "local:generic"
        assert metadata.line_count == len(generic_rows)
        assert metadata.raw_lines_sample == [row.text for row in generic_rows[:5]]
        assert metadata.timings_ms is result.metrics
        assert result.metrics.total_ms >= 0

    def test_insufficient_transactions_returns_no_statement(self, make_parser, generic_rows):
        """Test fewer than the minimum transactions yields statement=None."""
        rows = generic_rows[:6]

        result = make_parser(GenericParser, rows).parse(b"pdf")

        assert result.statement is None
        assert not result.has_statement
        assert result.rows == rows

    def test_minimum_transactions_is_configurable(self, make_parser, generic_rows):
        config = ParserConfig(minimum_transactions=1)

        result = make_parser(GenericParser, generic_rows[:6], config=config).parse(b"pdf")

        assert result.has_statement
        assert len(result.statement.transactions) == 1

    def test_amount_split_from_currency_symbol(self, make_parser, make_rows):
        """Test an amount extracted as "R$" + value chunks is rejoined."""
        rows = make_rows(
            [
                ["01/03", "Mercado", "R$", "10,00"],
                ["02/03", "Posto", "R$", "20,00"],
                ["03/03", "Estorno Posto", "-", "5,00"],
            ]
        )

        statement = make_parser(GenericParser, rows).parse(b"pdf").statement

        amounts = [txn.amount for txn in statement.transactions]
        assert amounts == [Decimal("10.00"), Decimal("20.00"), Decimal("-5.00")]
        assert [txn.description for txn in statement.transactions] == ["Mercado", "Posto", "Estorno Posto"]
        assert statement.transactions[2].transaction_type == "refund"

    def test_rows_without_date_or_amount_skipped(self, make_parser, make_rows):
        rows = make_rows(
            [
                ["Descrição", "Valor", "Data"],
                ["01/03", "Mercado", "sem valor"],
                ["01/03", "Mercado", "10,00"],
            ]
        )

        result = make_parser(GenericParser, rows, config=ParserConfig(minimum_transactions=1)).parse(b"pdf")

        assert len(result.statement.transactions) == 1

    def test_header_scan_limit(self, make_parser, generic_rows):
        """Test header labels after the scan window are ignored."""
        config = ParserConfig(header_scan_lines=2)

        statement = make_parser(GenericParser, generic_rows, config=config).parse(b"pdf").statement

        assert statement.closing_date == date(2025, 3, 10)
        assert statement.due_date is None
        assert statement.total_amount_due is None

    def test_parse_is_repeatable(self, make_parser, generic_rows):
        """Test parser instances keep no state between calls."""
        parser = make_parser(GenericParser, generic_rows)

        first = parser.parse(b"pdf").statement
        second = parser.parse(b"pdf").statement

        assert first.model_dump(exclude={"metadata"}) == second.model_dump(exclude={"metadata"})
