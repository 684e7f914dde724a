"""PDF parsing module for credit card statements.

This module provides functionality to extract structured data from
credit card statement PDFs using a hybrid architecture:
- GenericParser handles common patterns across all banks
- Bank-specific refinements override only what's different
"""

from fatura_parser.parsers.extractor import PDFExtractor
from fatura_parser.parsers.factory import ParserRegistry, create_default_registry, get_parser_registry
from fatura_parser.parsers.generic import GenericParser
from fatura_parser.parsers.normalizer import PdfTextNormalizer
from fatura_parser.parsers.refinements import C6BankParser

__all__ = [
    "PDFExtractor",
    "PdfTextNormalizer",
    "GenericParser",
    "C6BankParser",
    "ParserRegistry",
    "create_default_registry",
    "get_parser_registry",
]
