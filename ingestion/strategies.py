"""Estrategias de ingesta (inicialización completa y actualización incremental).

Este módulo define el orquestador que secuencia las temporadas y
delega el recorrido de cada una en GameDiscoveryWalker.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from db.logging import log_header, log_step, log_success
from db.models import Season
from db.services import EntityStore
from ingestion.api_client import EuroleagueApiClient
from ingestion.api_common import FatalIngestionError, SeasonNotFoundError
from ingestion.config import IngestionConfig
from ingestion.discovery import GameDiscoveryWalker, SeasonWalkResult, WalkMode
from ingestion.seasons import SeasonRegistry
from ingestion.utils import ProgressReporter

logger = logging.getLogger("euroleague.ingestion.strategies")


@dataclass
class RunSummary:
    """Resumen agregado de una ejecución de ingesta."""
    mode: WalkMode
    seasons: List[SeasonWalkResult] = field(default_factory=list)
    new_seasons: List[str] = field(default_factory=list)

    @property
    def games_ingested(self) -> int:
        return sum(s.games_ingested for s in self.seasons)

    @property
    def fetch_failures(self) -> int:
        return sum(s.fetch_failures for s in self.seasons)

    @property
    def process_failures(self) -> int:
        return sum(s.process_failures for s in self.seasons)

    def describe(self) -> str:
        lines = [f"Modo {self.mode.value}: {self.games_ingested} partidos nuevos en {len(self.seasons)} temporadas"]
        if self.new_seasons:
            lines.append(f"Temporadas descubiertas: {', '.join(self.new_seasons)}")
        for s in self.seasons:
            lines.append(
                f"  {s.season_code}: {s.games_ingested} nuevos, {s.skipped_existing} existentes, "
                f"{s.fetch_failures} fallos de descarga, {s.process_failures} de procesamiento "
                f"(último gamecode {s.last_game_code})"
            )
        return "\n".join(lines)


class IngestionOrchestrator:
    """Secuencia la inicialización y la actualización de temporadas."""

    def __init__(self, session: Session, config: Optional[IngestionConfig] = None,
                 api_client: Optional[EuroleagueApiClient] = None,
                 reporter: Optional[ProgressReporter] = None):
        self.config = config or IngestionConfig()
        self.store = EntityStore(session)
        self.api = api_client or EuroleagueApiClient(self.config)
        self.reporter = reporter
        self.registry = SeasonRegistry(self.store, self.api, self.config.current_season)
        self.walker = GameDiscoveryWalker(self.store, self.api, self.config, reporter=reporter)

    def initialize(self) -> RunSummary:
        """Registra las temporadas configuradas y las recorre desde el gamecode 1."""
        log_header("Inicialización de temporadas EuroLeague")
        summary = RunSummary(mode=WalkMode.INITIALIZE)

        seasons = [self.registry.ensure_season(code) for code in self.config.seasons]
        return self._run(seasons, WalkMode.INITIALIZE, summary)

    def update(self, season_code: Optional[str] = None) -> RunSummary:
        """Descubre temporadas nuevas y continúa cada temporada conocida donde se quedó.

        Args:
            season_code: Si se indica, solo se actualiza esa temporada (debe existir)

        Raises:
            SeasonNotFoundError: Si la temporada indicada no existe o no hay ninguna
        """
        log_header("Actualización incremental EuroLeague")
        summary = RunSummary(mode=WalkMode.UPDATE)

        if season_code:
            seasons = [self.registry.resolve_season(season_code)]
        else:
            log_step("Buscando temporadas nuevas")
            created = self.registry.discover_candidate_seasons(self.config.candidate_seasons)
            summary.new_seasons = [s.code for s in created]
            seasons = self.store.list_seasons()
            if not seasons:
                raise SeasonNotFoundError("No hay temporadas registradas para actualizar")

        return self._run(seasons, WalkMode.UPDATE, summary)

    def _run(self, seasons: List[Season], mode: WalkMode, summary: RunSummary) -> RunSummary:
        if self.reporter:
            self.reporter.set_total(len(seasons))
            self.reporter.update(0, f"Iniciando {mode.value} de {len(seasons)} temporadas")

        try:
            for season in seasons:
                log_step(f"Procesando temporada {season.code} ({season.name})")
                summary.seasons.append(self.walker.walk(season, mode))
                if self.reporter:
                    self.reporter.increment(f"Temporada {season.code} completada")
        except FatalIngestionError as e:
            logger.error(f"Error fatal en la ingesta: {e}")
            if self.reporter:
                self.reporter.fail(str(e))
            raise
        except Exception as e:
            logger.error(f"Error inesperado en la ingesta ({mode.value}): {e}", exc_info=True)
            if self.reporter:
                self.reporter.fail(str(e))
            raise

        logger.info(summary.describe())
        if self.reporter:
            self.reporter.complete("Ingesta finalizada")
        log_success(f"Ingesta ({mode.value}) completada: {summary.games_ingested} partidos nuevos")
        return summary
