"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (prefix ``FATURA_``)."""

    model_config = SettingsConfigDict(
        env_prefix="FATURA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    log_level: str = "INFO"

    # Row grouping (PDF points)
    y_tolerance: float = 2.0
    space_threshold: float = 1.5

    # pdfplumber word grouping (PDF points)
    word_x_tolerance: float = 3.0
    word_y_tolerance: float = 3.0

    # Parsing
    minimum_transactions: int = 3
    fallback_currency: str = "BRL"
    header_scan_lines: int | None = 80

    # Parser registry
    default_bank: str = "generic"
    banks: list[str] = ["c6", "generic"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


class ParserConfig(BaseModel):
    """Per-parser tuning, decoupled from the environment for tests."""

    fallback_currency: str = "BRL"
    minimum_transactions: int = 3
    header_scan_lines: int | None = 80
    y_tolerance: float = 2.0
    space_threshold: float = 1.5
    word_x_tolerance: float = 3.0
    word_y_tolerance: float = 3.0

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "ParserConfig":
        source = source or get_settings()
        return cls(
            fallback_currency=source.fallback_currency,
            minimum_transactions=source.minimum_transactions,
            header_scan_lines=source.header_scan_lines,
            y_tolerance=source.y_tolerance,
            space_threshold=source.space_threshold,
            word_x_tolerance=source.word_x_tolerance,
            word_y_tolerance=source.word_y_tolerance,
        )
