"""Parser registry for routing statements to the appropriate parser.

The caller names the issuing bank; the registry maps that name to a parser:
a bank-specific refinement when one is registered, else the default
(generic) parser flagged as a fallback.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from fatura_parser.config import ParserConfig, Settings, get_settings
from fatura_parser.parsers.generic import GenericParser
from fatura_parser.parsers.refinements import C6BankParser

logger = logging.getLogger(__name__)

ParserEntry = GenericParser | type[GenericParser] | Callable[[], GenericParser]

GENERIC_BANK = "generic"

# Bank names (as given by callers) that map to a refinement
REFINEMENT_ALIASES: dict[str, type[GenericParser]] = {
    "c6": C6BankParser,
    "c6 bank": C6BankParser,
    "c6-bank": C6BankParser,
    "c6bank": C6BankParser,
}


def normalize_bank(bank: str | None) -> str:
    return (bank or "").strip().lower()


@dataclass(frozen=True)
class ResolvedParser:
    """A parser chosen for a bank name."""

    parser: GenericParser
    bank_key: str
    is_fallback: bool


class ParserRegistry:
    """Registry of parsers keyed by normalized bank name.

    Entries may be parser instances, ``GenericParser`` subclasses or
    zero-argument factories; the latter two are instantiated on first use
    and cached.

    Example:
        >>> registry = ParserRegistry({"c6": C6BankParser, "generic": GenericParser})
        >>> resolved = registry.resolve("C6")
        >>> resolved.parser.parser_name
        'local:c6-bank'
    """

    def __init__(self, entries: dict[str, ParserEntry] | None = None, default_bank: str = GENERIC_BANK):
        self.default_bank = normalize_bank(default_bank)
        self._entries: dict[str, ParserEntry] = {}
        self._instances: dict[str, GenericParser] = {}
        for bank, entry in (entries or {}).items():
            self.register(bank, entry)

    def register(self, bank: str, parser: ParserEntry):
        """Register a parser for a bank name, replacing any previous entry.

        Raises:
            ValueError: If the entry is not a GenericParser instance, subclass
                or factory
        """
        key = normalize_bank(bank)
        if not key:
            raise ValueError("Bank name must not be empty")

        is_class = isinstance(parser, type)
        if is_class and not issubclass(parser, GenericParser):
            raise ValueError(f"Parser class must inherit from GenericParser, got {parser}")
        if not is_class and not isinstance(parser, GenericParser) and not callable(parser):
            raise ValueError(f"Parser must be a GenericParser or a factory, got {parser!r}")

        self._entries[key] = parser
        self._instances.pop(key, None)

    def unregister(self, bank: str):
        key = normalize_bank(bank)
        self._entries.pop(key, None)
        self._instances.pop(key, None)

    def get_registered_banks(self) -> list[str]:
        return list(self._entries.keys())

    def resolve(self, bank: str | None) -> ResolvedParser | None:
        """Resolve a bank name to a parser.

        Returns:
            The bank's own parser, else the default bank's parser flagged
            ``is_fallback``, else None when neither is registered.
        """
        key = normalize_bank(bank)
        if key in self._entries:
            return ResolvedParser(self._instance(key), key, is_fallback=False)

        if self.default_bank in self._entries:
            logger.debug(
                "No parser registered for bank, using default",
                extra={"bank": key, "default_bank": self.default_bank},
            )
            return ResolvedParser(self._instance(self.default_bank), self.default_bank, is_fallback=True)

        return None

    def _instance(self, key: str) -> GenericParser:
        if key not in self._instances:
            entry = self._entries[key]
            parser = entry if isinstance(entry, GenericParser) else entry()
            if not isinstance(parser, GenericParser):
                raise ValueError(f"Factory for '{key}' returned {parser!r}, not a GenericParser")
            self._instances[key] = parser
        return self._instances[key]


def create_default_registry(
    banks: list[str] | None = None,
    default_bank: str | None = None,
    settings: Settings | None = None,
) -> ParserRegistry:
    """Build a registry for the given bank names.

    Known aliases get their refinement; any other name gets the generic
    parser. A ``generic`` entry is always present.
    """
    settings = settings or get_settings()
    config = ParserConfig.from_settings(settings)
    names = banks if banks is not None else settings.banks

    def factory_for(parser_class: type[GenericParser]) -> Callable[[], GenericParser]:
        return lambda: parser_class(config=config)

    registry = ParserRegistry(default_bank=default_bank or settings.default_bank)
    for name in names:
        parser_class = REFINEMENT_ALIASES.get(normalize_bank(name), GenericParser)
        registry.register(name, factory_for(parser_class))

    if GENERIC_BANK not in registry.get_registered_banks():
        registry.register(GENERIC_BANK, factory_for(GenericParser))

    return registry


# Singleton registry instance for global use
_registry_instance: ParserRegistry | None = None


def get_parser_registry() -> ParserRegistry:
    """Get or create the global ParserRegistry instance."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = create_default_registry()
    return _registry_instance
