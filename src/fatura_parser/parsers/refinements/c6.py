"""C6 Bank parser refinement.

C6 statements list transactions per card. Each card section starts with a
subtotal line such as::

    Subtotal deste cartão R$ 1.500,00 | Cartão Principal - NOME Final 1111 | Mastercard

followed by transaction rows laid out in two columns, each transaction being
"<day> <month abbr>" + description chunks + amount. Cards are grouped under
"Transações do cartão principal" and "Transações dos cartões adicionais".
"""

import logging
import re

from fatura_parser.parsers.assembly import reconcile_block
from fatura_parser.parsers.formats import (
    DAY_MONTH_PATTERN,
    TypeRules,
    is_amount,
    parse_currency,
    parse_date_value,
    parse_day_month,
)
from fatura_parser.parsers.generic import GenericParser
from fatura_parser.schemas.document import NormalizedRow
from fatura_parser.schemas.internal import CardSection, StatementTransaction
from fatura_parser.schemas.parsing import CardBlock, DateContext, HeaderFields

logger = logging.getLogger(__name__)


class C6BankParser(GenericParser):
    """Parser refinement for C6 Bank credit card statements.

    C6-specific behaviors:
    - Header labels: "Vencimento:", "Valor da fatura:", "Débito automático:" ...
    - One card block per "Subtotal deste cartão" line, tagged principal/additional
    - Transaction dates printed as "05 jan", year taken from the closing date
    - Several transactions may share one visual row (two-column layout)
    """

    parser_name = "local:c6-bank"

    CARDHOLDER_LINE_PATTERN = re.compile(r"^[A-ZÀ-Ü][A-ZÀ-Ü\s\-']+$")
    CLOSING_DATE_PATTERN = re.compile(r"até\s+(\d{2}[/-]\d{2}(?:[/-]\d{2,4})?)", re.IGNORECASE)
    DUE_DATE_PATTERN = re.compile(r"Vencimento:\s*([^|\s].*?)(?:Débito|Valor|$)", re.IGNORECASE)
    TOTAL_PATTERN = re.compile(r"Valor da fatura:\s*R\$\s*([\d.,]+)", re.IGNORECASE)
    MINIMUM_PATTERN = re.compile(
        r"Pagamento mínimo\s*(?:ou parcial)?\s*R\$\s*([\d.,]+)", re.IGNORECASE
    )
    INVOICE_PATTERN = re.compile(r"NOSSO NÚMERO\s*(\d{6,})", re.IGNORECASE)
    BEST_DAY_PATTERN = re.compile(r"Melhor dia de compra:\s*(\d{1,2})", re.IGNORECASE)
    AUTO_DEBIT_PATTERN = re.compile(r"Débito automático:\s*(Ativado|Desativado)", re.IGNORECASE)
    ANNUAL_FEE_PATTERN = re.compile(r"Anuidade:\s*([^|]+)", re.IGNORECASE)
    CREDIT_LIMIT_PATTERN = re.compile(
        r"Limite\s+(?:total|de\s+crédito|crédito).*?R\$\s*([\d.,]+)", re.IGNORECASE
    )
    AVAILABLE_LIMIT_PATTERN = re.compile(r"Limite\s+disponível.*?R\$\s*([\d.,]+)", re.IGNORECASE)

    PRINCIPAL_SECTION_PATTERN = re.compile(r"Transações do cartão principal", re.IGNORECASE)
    ADDITIONAL_SECTION_PATTERN = re.compile(r"Transações dos cartões adicionais", re.IGNORECASE)
    SUBTOTAL_PATTERN = re.compile(r"Subtotal\s+deste\s+cartão\s+R\$\s*([\d.,]+)", re.IGNORECASE)
    NOISE_ROW_PATTERN = re.compile(r"^Valores em reais", re.IGNORECASE)
    VALUE_WITH_CURRENCY_PATTERN = re.compile(r"R\$\s*([\d.,]+)", re.IGNORECASE)
    LAST_DIGITS_PATTERN = re.compile(r"Final\s*(\d{4})", re.IGNORECASE)
    HOLDER_PATTERN = re.compile(r"-\s*([A-ZÀ-Ú][A-ZÀ-Ú\s'.]*)")

    TRANSACTION_TYPE_RULES: TypeRules = (
        ("refund", re.compile(r"estorno|reembolso|cashback|cr[eé]dito")),
        ("payment", re.compile(r"pagamento|pagto|boleto|pix")),
        ("adjustment", re.compile(r"ajuste|ajust|antecip|inclus[aã]o|compensa[cç][aã]o")),
        ("fee", re.compile(r"tarifa|juros|encargo|anuidade|multa")),
        ("installment", re.compile(r"parcela|parcelamento|parcelado|\d+/\d+")),
    )

    def _extract_header(self, rows: list[NormalizedRow]) -> HeaderFields:
        """Detect C6 header fields; the first match of each field wins.

        The closing date ("... até 15/01/2025") sets the fallback year and
        closing month used for transaction dates.
        """
        header = HeaderFields()

        for row in self._header_rows(rows):
            text = row.text
            if not text:
                continue

            if header.cardholder_name is None and self._looks_like_name(text):
                header.cardholder_name = text.strip()

            match = self.CLOSING_DATE_PATTERN.search(text)
            if match and header.closing_date is None:
                closing = parse_date_value(match.group(1), header.fallback_year)
                if header.set_once("closing_date", closing):
                    header.fallback_year = closing.year
                    header.closing_month = closing.month

            match = self.DUE_DATE_PATTERN.search(text)
            if match and header.due_date is None:
                due = parse_date_value(match.group(1), header.fallback_year)
                if header.set_once("due_date", due) and header.fallback_year is None:
                    header.fallback_year = due.year

            match = self.TOTAL_PATTERN.search(text)
            if match:
                header.set_once("total_amount", parse_currency(match.group(1)))

            match = self.MINIMUM_PATTERN.search(text)
            if match:
                header.set_once("minimum_payment", parse_currency(match.group(1)))

            match = self.INVOICE_PATTERN.search(text)
            if match:
                header.set_once("invoice_number", match.group(1).strip())

            match = self.BEST_DAY_PATTERN.search(text)
            if match:
                header.set_once("best_purchase_day", int(match.group(1)))

            match = self.AUTO_DEBIT_PATTERN.search(text)
            if match:
                enabled = match.group(1).lower().startswith("ativ")
                header.set_once("auto_debit", "Enabled" if enabled else "Disabled")

            match = self.ANNUAL_FEE_PATTERN.search(text)
            if match:
                header.set_once("annual_fee", self._normalize_annual_fee(match.group(1)))

            match = self.CREDIT_LIMIT_PATTERN.search(text)
            if match:
                header.set_once("credit_limit", parse_currency(match.group(1)))

            match = self.AVAILABLE_LIMIT_PATTERN.search(text)
            if match:
                header.set_once("available_limit", parse_currency(match.group(1)))

        return header

    def _looks_like_name(self, text: str) -> bool:
        candidate = text.strip()
        return (
            len(candidate) >= 5
            and bool(self.CARDHOLDER_LINE_PATTERN.match(candidate))
            and len(candidate.split()) >= 2
        )

    def _normalize_annual_fee(self, value: str) -> str | None:
        trimmed = value.strip()
        if not trimmed:
            return None
        if re.search(r"isent[oa]", trimmed, re.IGNORECASE):
            return "Exempt"
        return trimmed

    def _extract_card_blocks(self, rows: list[NormalizedRow], header: HeaderFields) -> list[CardBlock]:
        """Segment rows into card blocks.

        A subtotal row closes the open block and opens the next one, tagged
        with the current section. Rows before the first subtotal row have no
        block and are dropped.
        """
        context = header.date_context()
        blocks: list[CardBlock] = []
        current: CardBlock | None = None
        section: CardSection = "principal"

        for row in rows:
            text = row.text
            if not text:
                continue

            if self.ADDITIONAL_SECTION_PATTERN.search(text):
                section = "additional"
                continue

            if self.PRINCIPAL_SECTION_PATTERN.search(text):
                section = "principal"
                continue

            match = self.SUBTOTAL_PATTERN.search(text)
            if match:
                if current is not None:
                    blocks.append(self._finalize_block(current, context))
                current = self._open_block(row, section, match.group(1))
                continue

            if current is None:
                continue

            if self.NOISE_ROW_PATTERN.search(text):
                continue

            current.rows.append(row)

        if current is not None:
            blocks.append(self._finalize_block(current, context))

        return blocks

    def _open_block(self, row: NormalizedRow, section: CardSection, subtotal_text: str) -> CardBlock:
        """Read the card identity that follows the subtotal amount on the row."""
        amount_index = next(
            (
                index
                for index, chunk in enumerate(row.chunks)
                if self.VALUE_WITH_CURRENCY_PATTERN.search(chunk.text)
            ),
            -1,
        )
        info = row.chunks[amount_index + 1 :] if amount_index >= 0 else row.chunks[1:]
        info_texts = [chunk.text.strip() for chunk in info if chunk.text.strip()]

        if info_texts:
            card_name = info_texts[0]
        else:
            card_name = self.SUBTOTAL_PATTERN.sub("", row.text).strip()
        card_type = " ".join(info_texts[1:]).strip() or None

        digits_match = self.LAST_DIGITS_PATTERN.search(card_name)
        label = self.LAST_DIGITS_PATTERN.sub("", card_name)
        holder_match = self.HOLDER_PATTERN.search(label)
        cardholder = holder_match.group(1).strip() if holder_match else None

        block = CardBlock(
            section=section,
            card_name=card_name,
            cardholder=cardholder or None,
            last_digits=digits_match.group(1) if digits_match else None,
            card_type=card_type,
            expected_subtotal=parse_currency(subtotal_text),
        )
        logger.debug(
            "Opened card block",
            extra={"section": section, "last_digits": block.last_digits},
        )
        return block

    def _finalize_block(self, block: CardBlock, context: DateContext) -> CardBlock:
        transactions = self._extract_transactions(block.rows, context)
        return reconcile_block(block, transactions)

    def _extract_transactions(
        self, rows: list[NormalizedRow], context: DateContext
    ) -> list[StatementTransaction]:
        transactions: list[StatementTransaction] = []

        for row in rows:
            for group in self._split_transaction_groups(row):
                if len(group) < 3:
                    continue
                transaction = self._build_transaction(
                    date_value=parse_day_month(group[0], context),
                    description_parts=group[1:-1],
                    amount_text=group[-1],
                    page=row.page,
                )
                if transaction is not None:
                    transactions.append(transaction)

        return transactions

    def _split_transaction_groups(self, row: NormalizedRow) -> list[list[str]]:
        """Split a row into [date, description..., amount] chunk groups.

        A date chunk opens a group (dropping any group still open), an amount
        chunk closes it. Groups never closed by an amount are dropped.
        """
        groups: list[list[str]] = []
        current: list[str] | None = None

        for chunk in row.chunks:
            text = chunk.text.strip()
            if not text:
                continue

            if DAY_MONTH_PATTERN.match(text):
                current = [text]
                continue

            if current is None:
                continue

            current.append(text)
            if is_amount(text):
                groups.append(current)
                current = None

        return groups
