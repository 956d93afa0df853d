"""Módulo de ingesta de datos de la EuroLeague.

Este módulo contiene toda la lógica para descubrir, descargar, procesar y
almacenar partidos desde la API live de la EuroLeague.
"""

from ingestion.api_client import EuroleagueApiClient
from ingestion.api_common import (
    FetchOutcome,
    FetchResult,
    IngestionError,
    FatalIngestionError,
    SeasonNotFoundError,
    MalformedPayloadError,
)
from ingestion.config import IngestionConfig
from ingestion.seasons import SeasonRegistry
from ingestion.ingestors import GameIngestion, ScoringEventIngestion
from ingestion.discovery import GameDiscoveryWalker, SeasonWalkResult, WalkMode
from ingestion.strategies import IngestionOrchestrator, RunSummary

__all__ = [
    'EuroleagueApiClient',
    'FetchOutcome',
    'FetchResult',
    'IngestionError',
    'FatalIngestionError',
    'SeasonNotFoundError',
    'MalformedPayloadError',
    'IngestionConfig',
    'SeasonRegistry',
    'GameIngestion',
    'ScoringEventIngestion',
    'GameDiscoveryWalker',
    'SeasonWalkResult',
    'WalkMode',
    'IngestionOrchestrator',
    'RunSummary',
]
