"""
Helpdesk error kinds.
Services raise these; the API turns each one into the same error envelope:
{"error": {"code", "message", "details", "path"}}.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for every failure a caller can observe."""
    code = "InternalServerError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Erro interno"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_envelope(self, path: str) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "path": path,
            }
        }


class EntityNotFoundException(AppError):
    """User, profile, ticket or problem type lookup miss."""
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Registro não encontrado"


class DuplicateAccountException(AppError):
    """Sign-up with an email that already has an account."""
    code = "DuplicateAccount"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Usuário já existe"


class DuplicateTicketException(AppError):
    """An active ticket already exists for the same user, sector and problem type."""
    code = "DuplicateTicket"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Já existe um chamado ativo para este setor e tipo de problema"


class ValidationException(AppError):
    """Missing or invalid required field."""
    code = "ValidationError"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Dados inválidos"


class InvalidTransitionException(ValidationException):
    """Ticket is not in the state the requested transition starts from."""
    code = "InvalidTransition"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Transição de status inválida"


class UnauthorizedException(AppError):
    """No active session, or wrong credentials."""
    code = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Não autenticado"


class ForbiddenException(AppError):
    """Role or ownership check failed."""
    code = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Acesso negado"


class StorageException(AppError):
    """The record store could not serialize or deserialize a collection."""
    code = "StorageError"
    default_message = "Falha no armazenamento"


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render AppErrors as the error envelope; anything else is a logged 500."""
    if isinstance(exc, AppError):
        if isinstance(exc, StorageException):
            logger.error("Storage failure", path=request.url.path, **exc.details)
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope(request.url.path))

    logger.exception("Unexpected error occurred", path=request.url.path)
    unexpected = AppError("Ocorreu um erro inesperado. Tente novamente mais tarde.")
    return JSONResponse(status_code=unexpected.status_code, content=unexpected.to_envelope(request.url.path))
