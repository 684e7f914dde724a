"""Error codes and user-friendly messages.

This module defines the error catalog for statement parsing.
Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation (pt-BR, like the statements)
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ErrorDefinition:
    """Definition of a single error type."""

    code: str
    message: str
    user_message: str
    suggestion: str
    retry_allowed: bool


_DEFINITIONS = [
    ErrorDefinition(
        code="PARSE_001",
        message="No parser registered for the requested bank",
        user_message="Não reconhecemos o banco informado.",
        suggestion="Informe um banco suportado (por exemplo, 'c6') ou use 'generic'.",
        retry_allowed=False,
    ),
    ErrorDefinition(
        code="PARSE_002",
        message="PDF extraction failed: corrupted or invalid file",
        user_message="Este PDF parece estar corrompido ou danificado.",
        suggestion="Baixe a fatura novamente no site ou aplicativo do banco.",
        retry_allowed=True,
    ),
    ErrorDefinition(
        code="PARSE_003",
        message="PDF is encrypted",
        user_message="Este PDF está protegido por senha.",
        suggestion="Envie uma versão da fatura sem senha.",
        retry_allowed=False,
    ),
    ErrorDefinition(
        code="PARSE_005",
        message="Too few transactions detected for the selected parser",
        user_message="Não encontramos lançamentos suficientes nesta fatura.",
        suggestion="Verifique se o banco informado corresponde ao documento.",
        retry_allowed=True,
    ),
    ErrorDefinition(
        code="PARSE_006",
        message="No extraction strategy produced a statement",
        user_message="Não foi possível extrair os dados desta fatura.",
        suggestion="O layout da fatura pode ter mudado. Entre em contato com o suporte.",
        retry_allowed=False,
    ),
]

# Error catalog for statement parsing
ERROR_CATALOG: dict[str, dict] = {definition.code: asdict(definition) for definition in _DEFINITIONS}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details (a generic entry for unknown codes)
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "Ocorreu um erro inesperado.",
            "suggestion": "Tente novamente. Se o problema persistir, contate o suporte.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def get_user_message(error_code: str) -> str:
    """Get user-friendly message for an error code."""
    return get_error(error_code)["user_message"]


def get_suggestion(error_code: str) -> str:
    """Get actionable suggestion for an error code."""
    return get_error(error_code)["suggestion"]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable."""
    return get_error(error_code)["retry_allowed"]
