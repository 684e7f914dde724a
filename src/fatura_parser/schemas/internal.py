"""Output schemas for parsed credit card statements.

Money values are ``Decimal`` rounded to 2 places and serialize to JSON
numbers. Dates serialize to ISO strings (YYYY-MM-DD).

Sign convention: transaction amounts are signed against the statement
balance. Charges (purchase, installment, fee) are positive, credits
(payment, refund, adjustment) are negative.
"""

import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(value), return_type=float, when_used="json"),
]

TransactionType = Literal["purchase", "installment", "payment", "refund", "fee", "adjustment"]

CardSection = Literal["principal", "additional"]

CREDIT_TRANSACTION_TYPES: frozenset[str] = frozenset({"payment", "refund", "adjustment"})


class InstallmentInfo(BaseModel):
    """Installment position ("parcela 2/10") when the description carries one."""

    current: int | None = Field(None, description="Current installment number")
    total: int | None = Field(None, description="Total number of installments")


class StatementTransaction(BaseModel):
    """Represents a single line item extracted from a statement."""

    date: datetime.date | None = Field(None, description="Transaction date")
    description: str = Field(..., description="Merchant / line description (may contain PII)")
    amount: Money = Field(..., description="Signed amount (negative for credits)")
    currency: str = Field(default="BRL", description="ISO currency code")
    transaction_type: TransactionType | None = Field(None, description="Classified type")
    inferred_category: str | None = Field(None, description="Merchant category (if available)")
    installment: InstallmentInfo = Field(default_factory=InstallmentInfo)
    metadata: dict = Field(default_factory=dict, description="Free-form parser annotations")

    @field_validator("description")
    @classmethod
    def description_not_empty(cls, v: str) -> str:
        """Ensure description is not empty."""
        if not v or not v.strip():
            raise ValueError("Description cannot be empty")
        return v.strip()

    @property
    def is_credit(self) -> bool:
        return self.amount < 0


class StatementCard(BaseModel):
    """One physical or virtual card section of a statement."""

    card_type: str | None = Field(None, description="Card network / product")
    last4_digits: str | None = Field(None, description="Last 4 digits of the card")
    cardholder: str | None = Field(None, description="Name printed for this card")
    is_additional: bool | None = Field(None, description="True for additional cards")
    card_subtotal: Money | None = Field(None, description="Subtotal declared by the document")
    transactions: list[StatementTransaction] = Field(default_factory=list)


class CardSummary(BaseModel):
    """Reconciliation of one card block against its declared subtotal."""

    section: CardSection | None = None
    card_name: str | None = None
    cardholder: str | None = None
    last_digits: str | None = None
    card_type: str | None = None
    expected_subtotal: Money | None = None
    computed_subtotal: Money
    subtotal_difference: Money | None = None
    transaction_count: int = 0


class ParserMetrics(BaseModel):
    """Per-stage wall-clock timings in milliseconds."""

    pdf_extraction_ms: float = 0.0
    normalization_ms: float = 0.0
    header_detection_ms: float = 0.0
    transaction_detection_ms: float = 0.0
    total_ms: float = 0.0


class StatementMetadata(BaseModel):
    """Parser identity, diagnostics and reconciliation summaries."""

    model_config = ConfigDict(extra="allow")

    parser: str
    source: str = "pdfplumber"
    line_count: int = 0
    invoice_number: str | None = None
    currency: str | None = None
    raw_lines_sample: list[str] = Field(default_factory=list)
    timings_ms: ParserMetrics | None = None
    card_summaries: list[CardSummary] = Field(default_factory=list)
    bank_key: str | None = None
    is_fallback: bool | None = None


class CreditCardStatement(BaseModel):
    """Represents a complete parsed credit card statement.

    Contains potentially sensitive information (names, card digits).
    """

    cardholder_name: str | None = Field(None, description="Main cardholder")
    main_card_last4: str | None = Field(None, description="Last 4 digits of the main card")
    due_date: datetime.date | None = Field(None, description="Payment due date")
    closing_date: datetime.date | None = Field(None, description="Statement closing date")
    total_amount_due: Money | None = Field(None, description="Statement total")
    minimum_payment: Money | None = Field(None, description="Minimum payment")
    best_purchase_day: int | None = Field(None, description="Best day of month to purchase")
    auto_debit: Literal["Enabled", "Disabled"] | None = Field(None, description="Auto-debit flag")
    annual_fee: str | None = Field(None, description="Annual fee as printed ('Exempt' if waived)")
    credit_limit: Money | None = Field(None, description="Total credit limit")
    available_limit: Money | None = Field(None, description="Available credit limit")
    cards: list[StatementCard] = Field(default_factory=list)
    metadata: StatementMetadata

    @property
    def transactions(self) -> list[StatementTransaction]:
        """All transactions across cards, in document order."""
        return [txn for card in self.cards for txn in card.transactions]
