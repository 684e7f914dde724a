"""Command line entry point: parse a statement PDF and print it as JSON."""

import argparse
import logging
import sys
from pathlib import Path

from fatura_parser.config import get_settings
from fatura_parser.core.errors import get_user_message
from fatura_parser.core.exceptions import (
    ExtractionFailedError,
    InsufficientDataError,
    MalformedDocumentError,
    UnsupportedBankError,
)
from fatura_parser.core.logging import setup_logging
from fatura_parser.services.statement import StatementService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MALFORMED = 1
EXIT_NO_STATEMENT = 2


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="fatura-parser",
        description="Extract a Brazilian credit card statement (fatura) from a PDF",
    )
    parser.add_argument("file", type=Path, help="Statement PDF")
    parser.add_argument("--bank", default=settings.default_bank, help="Issuing bank (e.g., 'c6')")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        pdf_bytes = args.file.read_bytes()
    except OSError as exc:
        print(f"Cannot read {args.file}: {exc}", file=sys.stderr)
        return EXIT_MALFORMED

    try:
        statement = StatementService().extract(pdf_bytes, bank=args.bank)
    except MalformedDocumentError as exc:
        logger.warning("Malformed document", extra={"error_code": exc.error_code, "details": exc.details})
        print(get_user_message(exc.error_code), file=sys.stderr)
        return EXIT_MALFORMED
    except (InsufficientDataError, ExtractionFailedError, UnsupportedBankError) as exc:
        print(get_user_message(exc.error_code), file=sys.stderr)
        return EXIT_NO_STATEMENT

    print(statement.model_dump_json(indent=args.indent))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
