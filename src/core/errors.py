# src/core/errors.py — v1
"""Error taxonomy for remote operations and local persistence.

Remote failures are values (ClassifiedError) threaded through the retry
loop; retryability is an explicit field. Local store failures and pipeline
failures are exceptions raised to the caller.

User-facing messages are Spanish, the product locale.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, get_args

RemoteErrorCode = Literal[
    "NO_CONNECTIVITY",
    "TIMEOUT",
    "INVALID_RESPONSE",
    "INVALID_REQUEST",
    "INVALID_DESCRIPTION_LENGTH",
    "NETWORK_ERROR",
    "UNKNOWN_ERROR",
]

StorageErrorCode = Literal["QUOTA_EXCEEDED", "ACCESS_DENIED", "PARSE_ERROR", "UNKNOWN"]

REMOTE_ERROR_CODES: frozenset[str] = frozenset(get_args(RemoteErrorCode))

MESSAGES: dict[str, str] = {
    "NO_CONNECTIVITY": "No hay conexión a internet. Por favor, verifica tu conexión.",
    "TIMEOUT": "La solicitud tardó demasiado tiempo. Por favor, intenta de nuevo.",
    "INVALID_RESPONSE": "Formato de respuesta inválido",
    "INCOMPLETE_RESPONSE": "Respuesta incompleta del servidor",
    "INVALID_REQUEST": "Se requiere la foto y la descripción de comidas",
    "INVALID_DESCRIPTION_LENGTH": "La descripción debe tener entre 10 y 500 caracteres",
    "NETWORK_ERROR": "Error de conexión. Por favor, verifica tu internet e intenta de nuevo.",
    "UNKNOWN_ERROR": "Ocurrió un error inesperado",
    "SERVER_ERROR": "Ocurrió un error",
    "QUOTA_EXCEEDED": (
        "Se excedió el espacio de almacenamiento. "
        "Elimina algunos altares para liberar espacio."
    ),
    "ACCESS_DENIED": (
        "Acceso denegado al almacenamiento local. "
        "Revisa los permisos de la carpeta de datos."
    ),
    "PARSE_ERROR": "No se pudieron leer los altares guardados: datos corruptos.",
    "UNKNOWN": "Ocurrió un error inesperado al acceder al almacenamiento.",
}

ATTEMPTS_SUFFIX = " (intentos: {attempts})"


@dataclass(frozen=True)
class ClassifiedError:
    """Normalized remote failure.

    Attributes:
        message: Localized human-readable message.
        code: Stable machine code.
        status_code: HTTP-like status when known (0 for offline).
        retryable: Whether re-attempting may succeed.
        attempts: Number of tries that produced this error.
        raw_code: Server-provided code when it is outside the stable set.
    """

    message: str
    code: RemoteErrorCode
    status_code: int | None = None
    retryable: bool = False
    attempts: int = 1
    raw_code: str | None = None

    def with_attempts(self, attempts: int) -> ClassifiedError:
        """Return a copy annotated with the total attempt count.

        The message suffix is only added when at least one retry happened.
        """
        message = self.message
        if attempts > 1:
            message = f"{message}{ATTEMPTS_SUFFIX.format(attempts=attempts)}"
        return replace(self, message=message, attempts=attempts)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


def remote_error(
    code: RemoteErrorCode,
    status_code: int | None = None,
    retryable: bool = False,
    message: str | None = None,
) -> ClassifiedError:
    """Build a ClassifiedError using the catalog message for ``code``."""
    return ClassifiedError(
        message=message or MESSAGES[code],
        code=code,
        status_code=status_code,
        retryable=retryable,
    )


class LocalStorageError(Exception):
    """Raised by the local store; ``code`` is one of StorageErrorCode."""

    def __init__(self, code: StorageErrorCode, message: str | None = None):
        self.code = code
        self.message = message or MESSAGES[code]
        super().__init__(self.message)


class AltarCreationError(Exception):
    """Raised when the creation pipeline fails fatally.

    Attributes:
        stage: Pipeline stage where the failure happened.
        error: Classified remote error, when the failure came from a remote step.
    """

    def __init__(
        self,
        message: str,
        stage: str,
        error: ClassifiedError | None = None,
    ):
        self.stage = stage
        self.error = error
        super().__init__(message)

    @property
    def code(self) -> str | None:
        return self.error.code if self.error is not None else None
