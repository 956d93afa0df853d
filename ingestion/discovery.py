"""Descubrimiento secuencial de partidos dentro de una temporada.

El proveedor no expone cuántos partidos tiene una temporada: se recorren los
gamecodes en orden creciente y se da la temporada por terminada tras N fallos
consecutivos de descarga (o, en modo update, también de procesamiento).
"""
import logging
import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional

from db.models import Season
from db.services import ConstraintViolation, EntityStore
from ingestion.api_common import FatalIngestionError, FetchOutcome
from ingestion.config import IngestionConfig
from ingestion.ingestors import GameIngestion, ScoringEventIngestion

logger = logging.getLogger(__name__)


class WalkMode(Enum):
    INITIALIZE = "initialize"   # Desde el gamecode 1
    UPDATE = "update"           # Desde el mayor gamecode guardado + 1


@dataclass
class SeasonWalkResult:
    """Resumen del recorrido de una temporada."""
    season_code: str
    mode: WalkMode
    start_game_code: int
    last_game_code: Optional[int] = None
    games_ingested: int = 0
    skipped_existing: int = 0
    fetch_failures: int = 0
    process_failures: int = 0
    stop_reason: str = ""

    def to_dict(self):
        data = asdict(self)
        data['mode'] = self.mode.value
        return data


class GameDiscoveryWalker:
    """Recorre los gamecodes de una temporada e ingiere cada partido encontrado."""

    def __init__(self, store: EntityStore, api_client, config: IngestionConfig,
                 game_ingestor: Optional[GameIngestion] = None,
                 points_ingestor: Optional[ScoringEventIngestion] = None,
                 reporter=None):
        self.store = store
        self.api = api_client
        self.config = config
        self.game_ingestor = game_ingestor or GameIngestion(store)
        self.points_ingestor = points_ingestor or ScoringEventIngestion(api_client, store)
        self.reporter = reporter

    def start_game_code(self, season: Season, mode: WalkMode) -> int:
        """Primer gamecode a recorrer.

        INITIALIZE empieza en 1. UPDATE sigue al mayor gamecode guardado, salvo
        que antes quede un partido a medio ingerir.
        """
        if mode is WalkMode.INITIALIZE:
            return 1
        next_code = (self.store.max_game_code(season.id) or 0) + 1
        incomplete = self.store.first_incomplete_game_code(season.id)
        return min(incomplete, next_code) if incomplete is not None else next_code

    def walk(self, season: Season, mode: WalkMode) -> SeasonWalkResult:
        """Recorre la temporada hasta alcanzar el umbral de fallos consecutivos.

        Args:
            season: Temporada a recorrer
            mode: INITIALIZE (umbral de descarga 2) o UPDATE (umbrales 3/3)

        Returns:
            SeasonWalkResult con los contadores del recorrido
        """
        if mode is WalkMode.INITIALIZE:
            max_fetch_failures = self.config.init_max_fetch_failures
            max_process_failures = None
        else:
            max_fetch_failures = self.config.update_max_fetch_failures
            max_process_failures = self.config.update_max_process_failures

        game_code = self.start_game_code(season, mode)
        result = SeasonWalkResult(season_code=season.code, mode=mode, start_game_code=game_code)
        consecutive_fetch_failures = 0
        consecutive_process_failures = 0

        logger.info(f"Recorriendo {season.code} en modo {mode.value} desde el gamecode {game_code}")

        while True:
            if consecutive_fetch_failures >= max_fetch_failures:
                result.stop_reason = f"{consecutive_fetch_failures} fallos de descarga consecutivos"
                break
            if max_process_failures is not None and consecutive_process_failures >= max_process_failures:
                result.stop_reason = f"{consecutive_process_failures} fallos de procesamiento consecutivos"
                break

            result.last_game_code = game_code

            existing = self.store.get_game(season.id, game_code)
            if existing is not None and self.store.is_game_complete(existing.id):
                result.skipped_existing += 1
                consecutive_fetch_failures = 0
                consecutive_process_failures = 0
                game_code += 1
                continue

            fetched = self.api.fetch_boxscore(game_code, season.code)
            if not fetched.ok:
                consecutive_fetch_failures += 1
                result.fetch_failures += 1
                if fetched.outcome is FetchOutcome.TRANSIENT:
                    logger.warning(f"Boxscore {season.code}/{game_code} no disponible tras reintentos: {fetched.error}")
                else:
                    logger.debug(f"Boxscore {season.code}/{game_code}: {fetched.outcome.value}")
                game_code += 1
                continue

            consecutive_fetch_failures = 0
            try:
                game = self.game_ingestor.ingest(game_code, season, fetched.data)
                self.points_ingestor.ingest_points(game, game_code, season.code)
            except FatalIngestionError:
                raise
            except ConstraintViolation as e:
                # Otra escritura llegó antes: no cuenta como fallo
                self.store.session.rollback()
                consecutive_process_failures = 0
                logger.warning(f"Conflicto al guardar {season.code}/{game_code}: {e}")
            except Exception as e:
                self.store.session.rollback()
                consecutive_process_failures += 1
                result.process_failures += 1
                logger.error(f"Error procesando partido {season.code}/{game_code}: {e}", exc_info=True)
            else:
                consecutive_process_failures = 0
                result.games_ingested += 1
                if self.reporter:
                    self.reporter.update(None, f"{season.code}: partido {game_code} ingerido")

            game_code += 1
            time.sleep(self.config.request_delay)

        logger.info(
            f"Fin de {season.code} ({mode.value}) en el gamecode {result.last_game_code}: "
            f"{result.games_ingested} nuevos, {result.skipped_existing} ya existentes. {result.stop_reason}"
        )
        return result
