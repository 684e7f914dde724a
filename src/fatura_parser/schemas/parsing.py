"""Intermediate state passed between parser stages."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from fatura_parser.schemas.document import GlyphDocument, NormalizedRow
from fatura_parser.schemas.internal import (
    CardSection,
    CreditCardStatement,
    ParserMetrics,
    StatementTransaction,
)


@dataclass(frozen=True)
class DateContext:
    """Year/month used to resolve transaction dates printed without a year.

    A transaction month later than the closing month belongs to the previous
    year (a December purchase on a statement closing in January).
    """

    year: int
    closing_month: int | None = None

    def resolve_year(self, month: int) -> int:
        if self.closing_month is not None and month > self.closing_month:
            return self.year - 1
        return self.year


@dataclass
class HeaderFields:
    """Sparse header values. Each field keeps the first value found."""

    cardholder_name: str | None = None
    due_date: date | None = None
    closing_date: date | None = None
    invoice_number: str | None = None
    total_amount: Decimal | None = None
    minimum_payment: Decimal | None = None
    best_purchase_day: int | None = None
    auto_debit: str | None = None
    annual_fee: str | None = None
    credit_limit: Decimal | None = None
    available_limit: Decimal | None = None
    currency: str | None = None
    fallback_year: int | None = None
    closing_month: int | None = None

    def set_once(self, name: str, value) -> bool:
        """Set ``name`` unless it already has a value. Returns True if set."""
        if value is None or getattr(self, name) is not None:
            return False
        setattr(self, name, value)
        return True

    def date_context(self) -> DateContext:
        year = self.fallback_year if self.fallback_year is not None else date.today().year
        return DateContext(year=year, closing_month=self.closing_month)


@dataclass
class CardBlock:
    """One card's section of the statement.

    Opened by a subtotal marker row; ``rows`` buffers the rows that follow
    until the block is finalized, which fills ``transactions`` and the
    reconciliation fields.
    """

    section: CardSection | None
    card_name: str = ""
    cardholder: str | None = None
    last_digits: str | None = None
    card_type: str | None = None
    expected_subtotal: Decimal | None = None
    rows: list[NormalizedRow] = field(default_factory=list)
    transactions: list[StatementTransaction] = field(default_factory=list)
    computed_subtotal: Decimal | None = None
    subtotal_difference: Decimal | None = None
    finalized: bool = False


@dataclass
class ParserResult:
    """Outcome of one parse call.

    ``statement`` is None when fewer transactions than the configured minimum
    were found; rows and metrics are returned either way.
    """

    statement: CreditCardStatement | None
    rows: list[NormalizedRow]
    document: GlyphDocument
    metrics: ParserMetrics

    @property
    def has_statement(self) -> bool:
        return self.statement is not None
