"""Módulo de base de datos para la ingesta EuroLeague.

Este módulo centraliza toda la funcionalidad relacionada con la base de datos:
- Modelos SQLAlchemy
- Configuración de conexión
- Persistencia idempotente (EntityStore)
- Resumen de registros
"""

from db.connection import DATABASE_URL, init_db, get_session, get_engine, create_db_engine
from db.models import (
    Base,
    Season,
    Team,
    Player,
    Game,
    TeamGameStats,
    PlayerGameStats,
    ScoringEvent,
    SystemStatus,
    LogEntry,
)
from db.services import EntityStore, ConstraintViolation

from db.summary import (
    get_record_counts,
    print_summary,
    get_summary_string
)

__all__ = [
    'DATABASE_URL',
    'init_db',
    'get_session',
    'get_engine',
    'create_db_engine',
    'Base',
    'Season',
    'Team',
    'Player',
    'Game',
    'TeamGameStats',
    'PlayerGameStats',
    'ScoringEvent',
    'SystemStatus',
    'LogEntry',
    'EntityStore',
    'ConstraintViolation',
    'get_record_counts',
    'print_summary',
    'get_summary_string',
]
