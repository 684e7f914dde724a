"""Subtotal reconciliation and statement assembly.

This module turns finalized card blocks and header fields into the
``CreditCardStatement`` returned to callers. Reconciliation compares the sum
of a card's signed transaction amounts with the subtotal the document
declares for that card; the difference is reported, never corrected.
"""

import re
from decimal import Decimal

from fatura_parser.parsers.formats import CENTS, parse_currency
from fatura_parser.schemas.document import NormalizedRow
from fatura_parser.schemas.internal import (
    CardSummary,
    CreditCardStatement,
    StatementCard,
    StatementMetadata,
    StatementTransaction,
)
from fatura_parser.schemas.parsing import CardBlock, HeaderFields

FOOTER_TOTAL_PATTERN = re.compile(r"VALOR\s+TOTAL\s*([\d.,]+)", re.IGNORECASE)
FOOTER_MINIMUM_PATTERN = re.compile(r"PAGAMENTO\s+M[IÍ]NIMO\s*([\d.,]+)", re.IGNORECASE)

RAW_LINES_SAMPLE_SIZE = 5


def signed_total(transactions: list[StatementTransaction]) -> Decimal:
    total = sum((txn.amount for txn in transactions), Decimal("0"))
    return total.quantize(CENTS)


def reconcile_block(block: CardBlock, transactions: list[StatementTransaction]) -> CardBlock:
    """Close a block: attach its transactions and compute the subtotal check."""
    block.transactions = transactions
    block.computed_subtotal = abs(signed_total(transactions))
    if block.expected_subtotal is not None:
        block.subtotal_difference = (block.computed_subtotal - block.expected_subtotal).quantize(CENTS)
    else:
        block.subtotal_difference = None
    block.rows = []
    block.finalized = True
    return block


def summarize_block(block: CardBlock) -> CardSummary:
    return CardSummary(
        section=block.section,
        card_name=block.card_name or None,
        cardholder=block.cardholder,
        last_digits=block.last_digits,
        card_type=block.card_type,
        expected_subtotal=block.expected_subtotal,
        computed_subtotal=block.computed_subtotal if block.computed_subtotal is not None else Decimal("0.00"),
        subtotal_difference=block.subtotal_difference,
        transaction_count=len(block.transactions),
    )


def build_card(block: CardBlock) -> StatementCard:
    return StatementCard(
        card_type=block.card_type,
        last4_digits=block.last_digits,
        cardholder=block.cardholder,
        is_additional=None if block.section is None else block.section == "additional",
        card_subtotal=block.expected_subtotal,
        transactions=block.transactions,
    )


def find_footer_amount(rows: list[NormalizedRow], pattern: re.Pattern) -> Decimal | None:
    """First parsable amount following a footer label anywhere in the document."""
    for row in rows:
        match = pattern.search(row.text)
        if match:
            amount = parse_currency(match.group(1))
            if amount is not None:
                return amount
    return None


def assemble_statement(
    header: HeaderFields,
    blocks: list[CardBlock],
    rows: list[NormalizedRow],
    parser_name: str,
    currency: str,
) -> CreditCardStatement:
    """Build the statement from finalized blocks.

    Total and minimum payment come from the header when detected there, else
    from the footer labels ("VALOR TOTAL", "PAGAMENTO MÍNIMO").
    """
    total_amount = header.total_amount
    if total_amount is None:
        total_amount = find_footer_amount(rows, FOOTER_TOTAL_PATTERN)

    minimum_payment = header.minimum_payment
    if minimum_payment is None:
        minimum_payment = find_footer_amount(rows, FOOTER_MINIMUM_PATTERN)

    main_card_last4 = next(
        (block.last_digits for block in blocks if block.section == "principal" and block.last_digits),
        None,
    )

    metadata = StatementMetadata(
        parser=parser_name,
        line_count=len(rows),
        invoice_number=header.invoice_number,
        currency=header.currency or currency,
        raw_lines_sample=[row.text for row in rows[:RAW_LINES_SAMPLE_SIZE]],
        card_summaries=[summarize_block(block) for block in blocks],
    )

    return CreditCardStatement(
        cardholder_name=header.cardholder_name,
        main_card_last4=main_card_last4,
        due_date=header.due_date,
        closing_date=header.closing_date,
        total_amount_due=total_amount,
        minimum_payment=minimum_payment,
        best_purchase_day=header.best_purchase_day,
        auto_debit=header.auto_debit,
        annual_fee=header.annual_fee,
        credit_limit=header.credit_limit,
        available_limit=header.available_limit,
        cards=[build_card(block) for block in blocks],
        metadata=metadata,
    )
