import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import requests

from ingestion.config import MAX_RETRIES, RETRY_BACKOFF

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """Base de los errores de ingesta."""
    pass


class FatalIngestionError(IngestionError):
    """Excepción para errores fatales que abortan la ejecución completa."""
    pass


class SeasonNotFoundError(FatalIngestionError):
    """No se pudo resolver la temporada solicitada (o no hay ninguna)."""
    pass


class MalformedPayloadError(IngestionError):
    """Al payload del proveedor le falta un array o campo esperado."""
    pass


class FetchOutcome(Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"          # 404: el hueco no existe
    INACCESSIBLE = "inaccessible"    # 406: existe pero no es accesible
    TRANSIENT = "transient"          # red, timeout, 5xx... (reintentos agotados)


# Códigos terminales: no se reintentan
TERMINAL_STATUS = {
    404: FetchOutcome.NOT_FOUND,
    406: FetchOutcome.INACCESSIBLE,
}


@dataclass
class FetchResult:
    """Resultado clasificado de una llamada al proveedor."""
    outcome: FetchOutcome
    data: Optional[Any] = None
    error: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome is FetchOutcome.SUCCESS


def fetch_with_retry(request_func: Callable[[], requests.Response], max_retries: int = MAX_RETRIES,
                     backoff: float = RETRY_BACKOFF, error_context: str = "") -> FetchResult:
    """Ejecuta una petición HTTP con reintentos y la clasifica.

    404 y 406 son terminales y no se reintentan. Cualquier otro código no 2xx,
    error de red, timeout o JSON inválido es transitorio: se reintenta esperando
    ``backoff * nº de intento`` segundos (sin esperar tras el último).

    Args:
        request_func: Callable sin argumentos que realiza la petición
        max_retries: Número máximo de intentos
        backoff: Segundos base de espera entre intentos
        error_context: Texto para identificar la llamada en los logs

    Returns:
        FetchResult con el resultado clasificado
    """
    last_error = None
    for attempt in range(1, max_retries + 1):
        try:
            response = request_func()
            terminal = TERMINAL_STATUS.get(response.status_code)
            if terminal is not None:
                logger.debug(f"{error_context}: HTTP {response.status_code} ({terminal.value})")
                return FetchResult(terminal, error=f"HTTP {response.status_code}", attempts=attempt)
            response.raise_for_status()
            return FetchResult(FetchOutcome.SUCCESS, data=response.json(), attempts=attempt)
        except (requests.RequestException, ValueError) as e:
            # requests.JSONDecodeError hereda de ValueError
            last_error = str(e)

        if attempt < max_retries:
            wait = backoff * attempt
            logger.warning(
                f"Error en {error_context} (intento {attempt}/{max_retries}): {last_error}. "
                f"Esperando {wait:.1f}s para reintentar..."
            )
            time.sleep(wait)

    logger.warning(f"Fallo persistente en {error_context} tras {max_retries} intentos: {last_error}")
    return FetchResult(FetchOutcome.TRANSIENT, error=last_error, attempts=max_retries)
