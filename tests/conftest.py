import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

sys.path.append(str(Path(__file__).parents[1] / "src"))

from fatura_parser.config import ParserConfig
from fatura_parser.parsers.extractor import PDFExtractor
from fatura_parser.parsers.normalizer import PdfTextNormalizer
from fatura_parser.schemas.document import GlyphDocument, GlyphRun, NormalizedRow

CHAR_WIDTH = 5.0
COLUMN_GAP = 20.0


def build_row(chunks, page: int = 1, y: float = 0.0) -> NormalizedRow:
    """Build a normalized row from chunk texts laid out left to right."""
    if isinstance(chunks, str):
        chunks = [chunks]

    runs = []
    x = 40.0
    for text in chunks:
        width = len(text) * CHAR_WIDTH
        runs.append(GlyphRun(page=page, text=text, x=x, y=y, width=width, spacing=CHAR_WIDTH))
        x += width + COLUMN_GAP

    return NormalizedRow(page=page, y=y, text=" ".join(chunks), chunks=runs)


def build_rows(lines, page: int = 1) -> list[NormalizedRow]:
    return [build_row(line, page=page, y=20.0 + index * 12.0) for index, line in enumerate(lines)]


@pytest.fixture
def make_row():
    return build_row


@pytest.fixture
def make_rows():
    return build_rows


@pytest.fixture
def parser_config():
    """Parser tuning independent of the environment."""
    return ParserConfig()


@pytest.fixture
def make_parser(parser_config):
    """Build a parser whose extractor and normalizer are stubbed.

    The normalizer returns the given rows, so parsing logic is tested without
    real PDFs.
    """

    def _make(parser_class, rows, config: ParserConfig | None = None):
        extractor = Mock(spec=PDFExtractor)
        extractor.extract.return_value = GlyphDocument()
        normalizer = Mock(spec=PdfTextNormalizer)
        normalizer.normalize.return_value = rows
        return parser_class(config=config or parser_config, extractor=extractor, normalizer=normalizer)

    return _make


C6_STATEMENT_LINES = [
    "LEANDRO AZEVEDO MARTINS",
    "Período até 15/01/2025",
    "Vencimento: 20/01/2025",
    "Valor da fatura: R$ 2.000,00",
    "Pagamento mínimo R$ 200,00",
    "NOSSO NÚMERO 123456789",
    "Transações do cartão principal",
    [
        "Subtotal deste cartão",
        "R$ 1.500,00",
        "Cartão Principal - LEANDRO AZEVEDO Final 1111",
        "Mastercard",
    ],
    "Valores em reais",
    ["05 jan", "Supermercado", "Central", "600,00"],
    ["10 jan", "Loja", "Online", "900,00"],
    "Transações dos cartões adicionais",
    [
        "Subtotal deste cartão",
        "R$ 500,00",
        "Cartão Adicional - MARIA AZEVEDO Final 2222",
        "Visa",
    ],
    "Valores em reais",
    ["12 jan", "Restaurante", "Legal", "500,00"],
]

GENERIC_STATEMENT_LINES = [
    "Titular: JOÃO DA SILVA",
    "Data de fechamento: 10/03/2025",
    "Vencimento: 20/03/2025",
    "Total da fatura: R$ 350,00",
    "Pagamento mínimo: R$ 35,00",
    ["02/03", "PADARIA CENTRAL", "50,00"],
    ["05/03", "FARMACIA SAO JOAO", "120,00"],
    ["15/02", "Pagamento recebido", "-100,00"],
    ["08/03", "Loja Parcela 2/10", "280,00"],
]


@pytest.fixture
def c6_rows():
    return build_rows(C6_STATEMENT_LINES)


@pytest.fixture
def generic_rows():
    return build_rows(GENERIC_STATEMENT_LINES)
