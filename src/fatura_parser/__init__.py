"""Local rule-based parser for Brazilian credit card statement PDFs."""

__version__ = "0.1.0"
