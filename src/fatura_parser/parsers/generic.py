"""Generic credit card statement parser.

This module provides the GenericParser class, which runs the local parsing
pipeline shared by every bank:

1. Extract positioned text runs from the PDF (PDFExtractor)
2. Rebuild visual rows (PdfTextNormalizer)
3. Detect header fields
4. Segment card blocks and detect transactions
5. Reconcile subtotals and assemble the statement

Steps 1, 2 and 5 are shared. Bank-specific refinements inherit from this
class and override the header, segmentation and transaction hooks.
"""

import logging
import re
import time

from fatura_parser.config import ParserConfig
from fatura_parser.parsers.assembly import assemble_statement, reconcile_block
from fatura_parser.parsers.extractor import PDFExtractor
from fatura_parser.parsers.formats import (
    NUMERIC_DATE_PATTERN,
    TypeRules,
    classify_transaction,
    collapse_whitespace,
    extract_installment,
    find_amount,
    parse_currency,
    parse_numeric_date,
    parse_transaction_date,
    signed_amount,
)
from fatura_parser.parsers.normalizer import PdfTextNormalizer
from fatura_parser.schemas.document import NormalizedRow
from fatura_parser.schemas.internal import ParserMetrics, StatementTransaction
from fatura_parser.schemas.parsing import CardBlock, DateContext, HeaderFields, ParserResult

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float, end: float | None = None) -> float:
    end = time.perf_counter() if end is None else end
    return round((end - start) * 1000, 2)


class GenericParser:
    """Fallback parser for Brazilian credit card statements.

    Uses loose label patterns for the header and a column heuristic for
    transactions: leftmost chunk is a numeric date, rightmost chunk is the
    amount, everything between is the description. All transactions belong
    to one implicit card. The column heuristic is an approximation and can
    misread multi-column or reflowed layouts.

    Subclasses can override specific hooks to handle bank-specific layouts:
        - _extract_header(): Header labels
        - _extract_card_blocks(): Card sectioning
        - _extract_transactions(): Transaction row layout

    Parser instances hold no per-call state and can be shared.

    Example:
        >>> parser = GenericParser()
        >>> result = parser.parse(pdf_bytes)
        >>> if result.statement is None:
        ...     print("Insufficient data, try another parser")
    """

    parser_name = "local:generic"

    CARDHOLDER_PATTERN = re.compile(r"(titular|nome do titular|cliente)\s*[-:]\s*(.+)", re.IGNORECASE)
    CLOSING_DATE_PATTERN = re.compile(
        r"(data\s+de\s+fechamento|fechamento)\s*[-:]\s*(\d{2}[-/]\d{2}(?:[-/]\d{2,4})?)",
        re.IGNORECASE,
    )
    DUE_DATE_PATTERN = re.compile(
        r"(vencimento|pagamento\s+até)\s*[-:]\s*(\d{2}[-/]\d{2}(?:[-/]\d{2,4})?)",
        re.IGNORECASE,
    )
    INVOICE_PATTERN = re.compile(
        r"(fatura\s*n[ºo°.]|n[ºo°.]\s+da\s+fatura|número\s+da\s+fatura)\s*[-:]\s*([0-9a-z-]+)",
        re.IGNORECASE,
    )
    CURRENCY_PATTERN = re.compile(r"(?<![A-Za-z])(BRL|USD|EUR|R\$)", re.IGNORECASE)
    TOTAL_PATTERN = re.compile(
        r"(total\s+(?:da\s+fatura|a\s+pagar|geral)|valor\s+total)\s*[-:]?\s*(\S.*)",
        re.IGNORECASE,
    )
    MINIMUM_PATTERN = re.compile(
        r"(pagamento\s+mínimo|valor\s+mínimo)\s*[-:]?\s*(\S.*)", re.IGNORECASE
    )

    # Whole chunk is an amount, optionally prefixed by "R$" or a minus sign
    FULL_AMOUNT_PATTERN = re.compile(r"^-?(?:R\$)?-?\d{1,3}(?:\.\d{3})*,\d{2}$", re.IGNORECASE)
    DETACHED_SIGN_PATTERN = re.compile(r"^(?:-|R\$|-R\$|R\$-)$", re.IGNORECASE)

    # Ordered keyword rules; first match wins, default "purchase"
    TRANSACTION_TYPE_RULES: TypeRules = (
        ("refund", re.compile(r"estorno|reembolso|cashback|cr[eé]dito")),
        ("payment", re.compile(r"pagamento|pagto|boleto")),
        ("installment", re.compile(r"parcela|parcelamento|parcelado")),
        ("fee", re.compile(r"tarifa|juros|anuidade|multa|encargo")),
        ("adjustment", re.compile(r"ajuste|ajustado|compensa[cç][aã]o")),
    )

    def __init__(
        self,
        config: ParserConfig | None = None,
        extractor: PDFExtractor | None = None,
        normalizer: PdfTextNormalizer | None = None,
    ):
        """Initialize the parser.

        Args:
            config: Parser tuning (default: built from settings)
            extractor: PDF extractor instance (default: new PDFExtractor)
            normalizer: Row normalizer instance (default: new PdfTextNormalizer)
        """
        self.config = config or ParserConfig.from_settings()
        self.extractor = extractor or PDFExtractor(
            x_tolerance=self.config.word_x_tolerance,
            y_tolerance=self.config.word_y_tolerance,
        )
        self.normalizer = normalizer or PdfTextNormalizer(
            y_tolerance=self.config.y_tolerance,
            space_threshold=self.config.space_threshold,
        )

    def parse(self, pdf_bytes: bytes) -> ParserResult:
        """Parse a credit card statement from PDF bytes.

        Args:
            pdf_bytes: PDF file content as bytes

        Returns:
            ParserResult. ``statement`` is None when fewer than
            ``config.minimum_transactions`` transactions were detected.

        Raises:
            MalformedDocumentError: If the PDF cannot be decoded
        """
        total_start = time.perf_counter()

        start = time.perf_counter()
        document = self.extractor.extract(pdf_bytes)
        pdf_ms = _elapsed_ms(start)

        start = time.perf_counter()
        rows = self.normalizer.normalize(document)
        normalization_ms = _elapsed_ms(start)

        start = time.perf_counter()
        header = self._extract_header(rows)
        header_ms = _elapsed_ms(start)

        start = time.perf_counter()
        blocks = self._extract_card_blocks(rows, header)
        transaction_count = sum(len(block.transactions) for block in blocks)
        transactions_ms = _elapsed_ms(start)

        metrics = ParserMetrics(
            pdf_extraction_ms=pdf_ms,
            normalization_ms=normalization_ms,
            header_detection_ms=header_ms,
            transaction_detection_ms=transactions_ms,
        )

        if transaction_count < self.config.minimum_transactions:
            metrics.total_ms = _elapsed_ms(total_start)
            logger.info(
                "Insufficient transactions for statement",
                extra={
                    "parser": self.parser_name,
                    "transactions_count": transaction_count,
                    "minimum": self.config.minimum_transactions,
                },
            )
            return ParserResult(statement=None, rows=rows, document=document, metrics=metrics)

        statement = assemble_statement(
            header=header,
            blocks=blocks,
            rows=rows,
            parser_name=self.parser_name,
            currency=self.config.fallback_currency,
        )
        metrics.total_ms = _elapsed_ms(total_start)
        statement.metadata.timings_ms = metrics

        logger.info(
            "Parsed statement",
            extra={
                "parser": self.parser_name,
                "cards_count": len(statement.cards),
                "transactions_count": transaction_count,
            },
        )
        return ParserResult(statement=statement, rows=rows, document=document, metrics=metrics)

    def _header_rows(self, rows: list[NormalizedRow]) -> list[NormalizedRow]:
        limit = self.config.header_scan_lines
        return rows if limit is None else rows[:limit]

    def _extract_header(self, rows: list[NormalizedRow]) -> HeaderFields:
        """Detect header fields; the first match of each field wins."""
        header = HeaderFields()

        for row in self._header_rows(rows):
            text = row.text
            if not text:
                continue

            match = self.CARDHOLDER_PATTERN.search(text)
            if match:
                header.set_once("cardholder_name", match.group(2).strip() or None)

            match = self.CLOSING_DATE_PATTERN.search(text)
            if match and header.closing_date is None:
                closing = parse_numeric_date(match.group(2), header.fallback_year)
                if header.set_once("closing_date", closing):
                    header.fallback_year = closing.year
                    header.closing_month = closing.month

            match = self.DUE_DATE_PATTERN.search(text)
            if match and header.due_date is None:
                due = parse_numeric_date(match.group(2), header.fallback_year)
                if header.set_once("due_date", due) and header.fallback_year is None:
                    header.fallback_year = due.year

            match = self.INVOICE_PATTERN.search(text)
            if match:
                header.set_once("invoice_number", match.group(2).strip())

            match = self.CURRENCY_PATTERN.search(text)
            if match:
                value = match.group(1).upper()
                header.set_once("currency", "BRL" if value == "R$" else value)

            match = self.TOTAL_PATTERN.search(text)
            if match:
                header.set_once("total_amount", find_amount(match.group(2)))

            match = self.MINIMUM_PATTERN.search(text)
            if match:
                header.set_once("minimum_payment", find_amount(match.group(2)))

        return header

    def _extract_card_blocks(self, rows: list[NormalizedRow], header: HeaderFields) -> list[CardBlock]:
        """Put every transaction on one implicit card."""
        transactions = self._extract_transactions(rows, header.date_context())
        if not transactions:
            return []

        block = CardBlock(section=None, cardholder=header.cardholder_name)
        return [reconcile_block(block, transactions)]

    def _extract_transactions(
        self, rows: list[NormalizedRow], context: DateContext
    ) -> list[StatementTransaction]:
        transactions: list[StatementTransaction] = []

        for row in rows:
            if len(row.chunks) < 3:
                continue

            ordered = sorted(row.chunks, key=lambda chunk: chunk.x)
            texts = [chunk.text.strip() for chunk in ordered if chunk.text.strip()]
            if len(texts) < 3 or not NUMERIC_DATE_PATTERN.match(texts[0]):
                continue

            split = self._split_amount(texts[1:])
            if split is None:
                continue
            description_parts, amount_text = split

            transaction = self._build_transaction(
                date_value=parse_transaction_date(texts[0], context),
                description_parts=description_parts,
                amount_text=amount_text,
                page=row.page,
            )
            if transaction is not None:
                transactions.append(transaction)

        return transactions

    def _split_amount(self, texts: list[str]) -> tuple[list[str], str] | None:
        """Split trailing amount chunk(s) from the description chunks.

        The amount is the last chunk, or the last two joined when the
        currency symbol or minus sign was extracted as its own chunk.
        """
        if len(texts) >= 3 and self.DETACHED_SIGN_PATTERN.match(re.sub(r"\s+", "", texts[-2])):
            joined = re.sub(r"\s+", "", texts[-2] + texts[-1])
            if self.FULL_AMOUNT_PATTERN.match(joined):
                return texts[:-2], joined

        last = re.sub(r"\s+", "", texts[-1])
        if self.FULL_AMOUNT_PATTERN.match(last):
            return texts[:-1], last

        return None

    def _build_transaction(
        self,
        date_value,
        description_parts: list[str],
        amount_text: str,
        page: int,
    ) -> StatementTransaction | None:
        """Create a transaction; rows without description or amount are dropped."""
        description = collapse_whitespace(" ".join(description_parts))
        if not description:
            return None

        amount = parse_currency(amount_text)
        if amount is None:
            return None

        transaction_type = classify_transaction(description, self.TRANSACTION_TYPE_RULES)
        return StatementTransaction(
            date=date_value,
            description=description,
            amount=signed_amount(amount, transaction_type),
            currency=self.config.fallback_currency,
            transaction_type=transaction_type,
            installment=extract_installment(description),
            metadata={"page": page},
        )
