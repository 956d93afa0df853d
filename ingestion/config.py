"""Configuraciones para el módulo de ingesta.

Este módulo centraliza todas las configuraciones relacionadas con:
- URL base y timeouts/reintentos de la API de EuroLeague
- Delay entre partidos (rate limiting)
- Temporadas fijas y candidatas
- Umbrales de fallos consecutivos que dan una temporada por terminada

Los valores se leen del entorno (.env) y se agrupan en ``IngestionConfig``,
que es lo que recibe el orquestador.
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dotenv import load_dotenv

# Cargar variables de entorno del archivo .env
load_dotenv()


def _env_list(name: str, default: str) -> List[str]:
    """Lee una lista separada por comas de una variable de entorno."""
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# Configuración de API
API_BASE_URL = os.getenv("EUROLEAGUE_API_BASE_URL", "https://live.euroleague.net/api")
API_TIMEOUT = int(os.getenv("INGEST_API_TIMEOUT", 30))   # Tiempo de espera máximo por intento (segundos)
MAX_RETRIES = int(os.getenv("INGEST_MAX_RETRIES", 3))    # Intentos por llamada ante errores transitorios
RETRY_BACKOFF = float(os.getenv("INGEST_RETRY_BACKOFF", 1.0))  # Espera = RETRY_BACKOFF * nº de intento
API_DELAY = float(os.getenv("INGEST_API_DELAY", 0.5))    # Pausa (segundos) tras cada partido descargado
USER_AGENT = "EuroleagueStatsAPI/1.0"

# Temporadas
SEASONS = _env_list("INGEST_SEASONS", "E2025,E2024,E2023,E2022,E2021,E2020,E2019,E2018")
CANDIDATE_SEASONS = _env_list("INGEST_CANDIDATE_SEASONS", "E2023,E2024,E2025,E2026")
CURRENT_SEASON = os.getenv("CURRENT_SEASON") or None

# Umbrales de parada (fallos consecutivos)
INIT_MAX_FETCH_FAILURES = int(os.getenv("INGEST_INIT_MAX_FETCH_FAILURES", 2))
UPDATE_MAX_FETCH_FAILURES = int(os.getenv("INGEST_UPDATE_MAX_FETCH_FAILURES", 3))
UPDATE_MAX_PROCESS_FAILURES = int(os.getenv("INGEST_UPDATE_MAX_PROCESS_FAILURES", 3))

# Nombre de la tarea en system_status
TASK_NAME = "ingestion"


@dataclass(frozen=True)
class IngestionConfig:
    """Parámetros operativos de una ejecución de ingesta."""

    base_url: str = API_BASE_URL
    timeout: int = API_TIMEOUT
    max_retries: int = MAX_RETRIES
    retry_backoff: float = RETRY_BACKOFF
    request_delay: float = API_DELAY
    user_agent: str = USER_AGENT
    seasons: Tuple[str, ...] = field(default_factory=lambda: tuple(SEASONS))
    candidate_seasons: Tuple[str, ...] = field(default_factory=lambda: tuple(CANDIDATE_SEASONS))
    current_season: Optional[str] = CURRENT_SEASON
    init_max_fetch_failures: int = INIT_MAX_FETCH_FAILURES
    update_max_fetch_failures: int = UPDATE_MAX_FETCH_FAILURES
    update_max_process_failures: int = UPDATE_MAX_PROCESS_FAILURES

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError("max_retries debe ser >= 1")
        if self.timeout <= 0:
            raise ValueError("timeout debe ser > 0")
        if self.request_delay < 0 or self.retry_backoff < 0:
            raise ValueError("request_delay y retry_backoff no pueden ser negativos")
        for name in ("init_max_fetch_failures", "update_max_fetch_failures", "update_max_process_failures"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} debe ser >= 1")
        # Aceptar listas en el constructor manteniendo la inmutabilidad
        object.__setattr__(self, "seasons", tuple(self.seasons))
        object.__setattr__(self, "candidate_seasons", tuple(self.candidate_seasons))
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls) -> "IngestionConfig":
        """Construye la configuración a partir de las variables de entorno actuales."""
        return cls(
            base_url=os.getenv("EUROLEAGUE_API_BASE_URL", API_BASE_URL),
            timeout=int(os.getenv("INGEST_API_TIMEOUT", API_TIMEOUT)),
            max_retries=int(os.getenv("INGEST_MAX_RETRIES", MAX_RETRIES)),
            retry_backoff=float(os.getenv("INGEST_RETRY_BACKOFF", RETRY_BACKOFF)),
            request_delay=float(os.getenv("INGEST_API_DELAY", API_DELAY)),
            seasons=tuple(_env_list("INGEST_SEASONS", ",".join(SEASONS))),
            candidate_seasons=tuple(_env_list("INGEST_CANDIDATE_SEASONS", ",".join(CANDIDATE_SEASONS))),
            current_season=os.getenv("CURRENT_SEASON") or CURRENT_SEASON,
            init_max_fetch_failures=int(os.getenv("INGEST_INIT_MAX_FETCH_FAILURES", INIT_MAX_FETCH_FAILURES)),
            update_max_fetch_failures=int(os.getenv("INGEST_UPDATE_MAX_FETCH_FAILURES", UPDATE_MAX_FETCH_FAILURES)),
            update_max_process_failures=int(os.getenv("INGEST_UPDATE_MAX_PROCESS_FAILURES", UPDATE_MAX_PROCESS_FAILURES)),
        )
