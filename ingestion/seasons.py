"""Registro de temporadas: resolución, alta idempotente y descubrimiento.

Una temporada nueva se descubre sondeando el Boxscore de su gamecode 1:
si el proveedor lo sirve, la temporada existe y se registra.
"""

import logging
from typing import Iterable, List, Optional

from db.models import Season
from db.services import EntityStore
from ingestion.api_common import SeasonNotFoundError
from ingestion.utils import season_name_from_code

logger = logging.getLogger(__name__)

PROBE_GAME_CODE = 1


class SeasonRegistry:
    """Mantiene las temporadas conocidas en la BD."""

    def __init__(self, store: EntityStore, api_client=None, current_season: Optional[str] = None):
        self.store = store
        self.api = api_client
        self.current_season = current_season

    derive_season_name = staticmethod(season_name_from_code)

    def resolve_season(self, code: Optional[str] = None) -> Season:
        """Resuelve una temporada por código, por la temporada actual configurada o la más reciente.

        Args:
            code: Código de temporada explícito (ej: "E2025")

        Returns:
            Season encontrada

        Raises:
            SeasonNotFoundError: Si el código no existe o no hay ninguna temporada
        """
        code = code or self.current_season
        if code:
            season = self.store.get_season(code)
            if season is None:
                raise SeasonNotFoundError(f"Temporada {code} no encontrada")
            return season

        season = self.store.latest_season()
        if season is None:
            raise SeasonNotFoundError("No hay temporadas registradas")
        return season

    def ensure_season(self, code: str) -> Season:
        """Obtiene o crea la temporada (idempotente y tolerante a carreras)."""
        return self.store.get_or_create_season(code, self.derive_season_name(code))

    def discover_candidate_seasons(self, candidates: Iterable[str]) -> List[Season]:
        """Sondea las temporadas candidatas no registradas y crea las que existan.

        Args:
            candidates: Códigos de temporada a comprobar

        Returns:
            Lista de temporadas creadas en esta llamada
        """
        created = []
        for code in candidates:
            if self.store.get_season(code) is not None:
                continue

            result = self.api.fetch_boxscore(PROBE_GAME_CODE, code)
            if not result.ok:
                logger.debug(f"Temporada candidata {code} no disponible ({result.outcome.value})")
                continue

            season = self.ensure_season(code)
            logger.info(f"🆕 Nueva temporada descubierta: {season.code} ({season.name})")
            created.append(season)
        return created
