"""Bank-specific parser refinements.

Each refinement extends GenericParser and overrides only what's different
for that specific bank (header labels, card sections, transaction layout).
"""

from .c6 import C6BankParser

__all__ = ["C6BankParser"]
