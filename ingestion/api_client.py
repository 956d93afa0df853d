"""Cliente para la API live de la EuroLeague.

Este módulo centraliza las llamadas al proveedor, proporcionando una
interfaz consistente con timeout por intento, reintentos con backoff y
clasificación del resultado (éxito, 404, 406 o fallo transitorio).
No toca la base de datos.
"""

import logging
from typing import Optional

import requests

from ingestion.api_common import FetchResult, fetch_with_retry
from ingestion.config import IngestionConfig

logger = logging.getLogger(__name__)

BOXSCORE_ENDPOINT = "Boxscore"
POINTS_ENDPOINT = "Points"


class EuroleagueApiClient:
    """Cliente que maneja todas las llamadas a la API de la EuroLeague.

    Reutiliza una única ``requests.Session`` entre llamadas. Las llamadas nunca
    lanzan excepciones de red: devuelven un ``FetchResult`` clasificado.
    """

    def __init__(self, config: Optional[IngestionConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or IngestionConfig()
        self.http = session or requests.Session()
        self.http.headers.update({
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        })

    def build_url(self, endpoint: str) -> str:
        return f"{self.config.base_url}/{endpoint}"

    def fetch(self, endpoint: str, game_code: int, season_code: str) -> FetchResult:
        """Descarga un endpoint para un partido y temporada.

        Args:
            endpoint: Nombre del endpoint (ej: "Boxscore", "Points")
            game_code: gamecode del partido dentro de la temporada
            season_code: Código de temporada (ej: "E2025")

        Returns:
            FetchResult con el JSON parseado si outcome es SUCCESS
        """
        url = self.build_url(endpoint)
        params = {"gamecode": game_code, "seasoncode": season_code}
        return fetch_with_retry(
            lambda: self.http.get(url, params=params, timeout=self.config.timeout),
            max_retries=self.config.max_retries,
            backoff=self.config.retry_backoff,
            error_context=f"{endpoint}({season_code}, {game_code})",
        )

    def fetch_boxscore(self, game_code: int, season_code: str) -> FetchResult:
        return self.fetch(BOXSCORE_ENDPOINT, game_code, season_code)

    def fetch_points(self, game_code: int, season_code: str) -> FetchResult:
        return self.fetch(POINTS_ENDPOINT, game_code, season_code)

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
