"""Brazilian (pt-BR) value formats shared by the statement parsers.

Handles:
    - Currency: "R$ 1.234,56", "-45,00"
    - Numeric dates: "15/01/2025", "15/01/25", "15/01"
    - Textual dates: "20 de janeiro de 2025", "05 jan"
    - Transaction type keywords and installment markers ("3/10")

Every parse helper returns None on input it does not understand; none of
them raise.
"""

import re
import unicodedata
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from fatura_parser.schemas.internal import CREDIT_TRANSACTION_TYPES, InstallmentInfo
from fatura_parser.schemas.parsing import DateContext

CENTS = Decimal("0.01")

MONTHS: dict[str, int] = {
    "jan": 1,
    "janeiro": 1,
    "fev": 2,
    "fevereiro": 2,
    "mar": 3,
    "marco": 3,
    "abr": 4,
    "abril": 4,
    "mai": 5,
    "maio": 5,
    "jun": 6,
    "junho": 6,
    "jul": 7,
    "julho": 7,
    "ago": 8,
    "agosto": 8,
    "set": 9,
    "setembro": 9,
    "out": 10,
    "outubro": 10,
    "nov": 11,
    "novembro": 11,
    "dez": 12,
    "dezembro": 12,
}

# Amount at the end of a chunk: thousands dot, decimal comma, optional minus
AMOUNT_PATTERN = re.compile(r"-?\d{1,3}(?:\.\d{3})*,\d{2}$")
DAY_MONTH_PATTERN = re.compile(r"^(\d{1,2})\s+([a-zç]{3,})$", re.IGNORECASE)
NUMERIC_DATE_PATTERN = re.compile(r"^(\d{1,2})[/-](\d{1,2})(?:[/-](\d{2,4}))?$")
TEXTUAL_DATE_PATTERN = re.compile(
    r"^(\d{1,2})\s+de\s+([a-zç]+)(?:\s+de\s+(\d{4}))?$", re.IGNORECASE
)
INSTALLMENT_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})")
# First amount-looking token inside free text ("R$ 2.000,00 em 10/02")
EMBEDDED_AMOUNT_PATTERN = re.compile(r"-?\d{1,3}(?:\.\d{3})*,\d{2}|-?\d+,\d{2}")

TypeRules = tuple[tuple[str, re.Pattern], ...]


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def normalize_month(value: str) -> str:
    """Lowercase and strip diacritics ("Março" -> "marco")."""
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def month_number(name: str) -> int | None:
    return MONTHS.get(normalize_month(name.strip()))


def parse_currency(value: str | None) -> Decimal | None:
    """Parse a pt-BR currency string.

    "1.234,56" -> Decimal("1234.56"); "R$ 45,00" -> Decimal("45.00");
    "N/A" -> None.
    """
    if not value:
        return None

    sanitized = re.sub(r"[\sR$]", "", value, flags=re.IGNORECASE)
    sanitized = sanitized.replace(".", "").replace(",", ".", 1)
    sanitized = re.sub(r"[^\d.-]", "", sanitized)

    try:
        amount = Decimal(sanitized)
        if not amount.is_finite():
            return None
        # Raises for values beyond the context precision (28 digits)
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def is_amount(text: str) -> bool:
    return bool(AMOUNT_PATTERN.search(text.strip()))


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_numeric_date(value: str | None, fallback_year: int | None = None) -> date | None:
    """Parse "dd/mm", "dd/mm/yy" or "dd/mm/yyyy" ("-" also accepted)."""
    if not value:
        return None
    match = NUMERIC_DATE_PATTERN.match(value.strip())
    if not match:
        return None

    day, month, year_text = match.groups()
    if year_text is None:
        year = fallback_year if fallback_year is not None else date.today().year
    elif len(year_text) == 2:
        year = 2000 + int(year_text)
    else:
        year = int(year_text)

    return _safe_date(year, int(month), int(day))


def parse_date_value(value: str | None, fallback_year: int | None = None) -> date | None:
    """Parse a header date: numeric, or "20 de janeiro [de 2025]"."""
    if not value:
        return None
    trimmed = value.strip()

    numeric = parse_numeric_date(trimmed, fallback_year)
    if numeric:
        return numeric

    match = TEXTUAL_DATE_PATTERN.match(trimmed)
    if match:
        day, month_text, year_text = match.groups()
        month = month_number(month_text)
        if month is None:
            return None
        if year_text:
            year = int(year_text)
        else:
            year = fallback_year if fallback_year is not None else date.today().year
        return _safe_date(year, month, int(day))

    return None


def parse_day_month(value: str, context: DateContext) -> date | None:
    """Resolve a transaction date printed as "05 jan" against the statement."""
    match = DAY_MONTH_PATTERN.match(value.strip())
    if not match:
        return None

    month = month_number(match.group(2))
    if month is None:
        return None

    return _safe_date(context.resolve_year(month), month, int(match.group(1)))


def classify_transaction(description: str, rules: TypeRules) -> str:
    """Return the type of the first matching keyword rule, else "purchase"."""
    normalized = description.lower()
    for transaction_type, pattern in rules:
        if pattern.search(normalized):
            return transaction_type
    return "purchase"


def extract_installment(description: str) -> InstallmentInfo:
    match = INSTALLMENT_PATTERN.search(description)
    if not match:
        return InstallmentInfo()
    return InstallmentInfo(current=int(match.group(1)), total=int(match.group(2)))


def signed_amount(amount: Decimal, transaction_type: str | None) -> Decimal:
    """Apply the statement sign convention: credits negative, charges positive."""
    if amount < 0 or transaction_type in CREDIT_TRANSACTION_TYPES:
        return -abs(amount)
    return abs(amount)


def find_amount(text: str | None) -> Decimal | None:
    """Parse the first pt-BR amount embedded in free text."""
    if not text:
        return None
    match = EMBEDDED_AMOUNT_PATTERN.search(text)
    if not match:
        return None
    return parse_currency(match.group(0))


def parse_transaction_date(value: str, context: DateContext) -> date | None:
    """Resolve a numeric transaction date; a missing year comes from the context."""
    match = NUMERIC_DATE_PATTERN.match(value.strip())
    if not match:
        return None

    day, month, year_text = match.groups()
    if year_text is not None:
        return parse_numeric_date(value)
    return _safe_date(context.resolve_year(int(month)), int(month), int(day))
