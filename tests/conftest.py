"""Configuracion y fixtures compartidas para tests.

Este modulo contiene fixtures reutilizables para todos los tests del proyecto:
BD SQLite en memoria, payloads de ejemplo del proveedor y un cliente API falso.
"""

import copy
import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

# Agregar raiz al path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from db.connection import create_db_engine, init_db
from db.services import EntityStore
from ingestion.api_common import FetchOutcome, FetchResult
from ingestion.config import IngestionConfig


# =============================================================================
# Fixtures de Base de Datos
# =============================================================================

@pytest.fixture
def db_engine():
    """Engine SQLite en memoria con todas las tablas creadas."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Sesion sobre la BD en memoria."""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    """EntityStore sobre la sesion de test."""
    return EntityStore(db_session)


@pytest.fixture
def test_config():
    """Configuracion sin esperas para que los tests sean rapidos."""
    return IngestionConfig(
        base_url="https://api.test/api",
        request_delay=0,
        retry_backoff=0,
        seasons=("E2024", "E2023"),
        candidate_seasons=("E2024", "E2025"),
        current_season=None,
    )


# =============================================================================
# Payloads de ejemplo del proveedor
# =============================================================================

def make_player_line(player_id, name, team_code, points=10, minutes="20:00", **overrides):
    """Linea de jugador del Boxscore con contadores razonables."""
    line = {
        'Player_ID': player_id,
        'Player': name,
        'Team': team_code,
        'Minutes': minutes,
        'Points': points,
        'FieldGoalsMade2': 3,
        'FieldGoalsAttempted2': 6,
        'FieldGoalsMade3': 1,
        'FieldGoalsAttempted3': 3,
        'FreeThrowsMade': 1,
        'FreeThrowsAttempted': 2,
        'TotalRebounds': 4,
        'Assistances': 2,
        'Steals': 1,
        'Turnovers': 2,
        'BlocksFavour': 0,
        'FoulsCommited': 3,
    }
    line.update(overrides)
    return line


def make_boxscore(home_score=78, away_score=81):
    """Boxscore con dos equipos (Real Madrid local, Barcelona visitante)."""
    return {
        'Live': False,
        'Stats': [
            {
                'Team': 'Real Madrid',
                'Coach': 'MATEO, CHUS',
                'PlayersStats': [
                    make_player_line('P003733   ', 'LLULL, SERGIO', 'MAD', points=12),
                    make_player_line('P002661', 'TAVARES, WALTER', 'MAD', points=8, Minutes="25:13"),
                ],
                'tmr': {},
                'totr': {},
            },
            {
                'Team': 'FC Barcelona',
                'Coach': 'PEÑARROYA, JOAN',
                'PlayersStats': [
                    make_player_line('P006543', 'SATORANSKY, TOMAS', 'BAR', points=15),
                    make_player_line('P007025', 'PUNTER, KEVIN', 'BAR', points=20, minutes="DNP"),
                ],
                'tmr': {},
                'totr': {},
            },
        ],
        'EndOfQuarter': [
            {'Team': 'Real Madrid', 'Quarter1': 20, 'Quarter2': 40, 'Quarter3': 60, 'Quarter4': home_score},
            {'Team': 'FC Barcelona', 'Quarter1': 18, 'Quarter2': 39, 'Quarter3': 61, 'Quarter4': away_score},
        ],
        'ByQuarter': [],
    }


def make_points():
    """Payload del feed Points para el partido de make_boxscore()."""
    return {
        'Rows': [
            {'ID_PLAYER': 'P003733   ', 'TEAM': 'MAD ', 'ID_ACTION': '3FGM', 'POINTS': 3, 'MINUTE': 2, 'ZONE': 'F'},
            {'ID_PLAYER': 'P006543', 'TEAM': 'BAR', 'ID_ACTION': '2FGA', 'POINTS': 0, 'MINUTE': 5, 'ZONE': 'C'},
            {'ID_PLAYER': 'P999999', 'TEAM': 'BAR', 'ID_ACTION': 'FTM', 'POINTS': 1, 'MINUTE': 7, 'ZONE': None},
        ]
    }


@pytest.fixture
def sample_boxscore():
    return make_boxscore()


@pytest.fixture
def sample_points():
    return make_points()


# =============================================================================
# Fixtures de API Mock
# =============================================================================

class FakeApiClient:
    """Cliente falso: sirve payloads por (temporada, gamecode) y registra las llamadas.

    Cualquier gamecode sin payload ni outcome configurado responde NOT_FOUND.
    """

    def __init__(self, boxscores=None, points=None, outcomes=None):
        self.boxscores = boxscores or {}
        self.points = points or {}
        self.outcomes = outcomes or {}
        self.calls = []

    def _result(self, payloads, endpoint, game_code, season_code):
        self.calls.append((endpoint, season_code, game_code))
        outcome = self.outcomes.get((endpoint, season_code, game_code))
        if outcome is not None:
            return FetchResult(outcome, error=outcome.value)
        data = payloads.get((season_code, game_code))
        if data is None:
            return FetchResult(FetchOutcome.NOT_FOUND, error="HTTP 404")
        return FetchResult(FetchOutcome.SUCCESS, data=copy.deepcopy(data))

    def fetch_boxscore(self, game_code, season_code):
        return self._result(self.boxscores, "Boxscore", game_code, season_code)

    def fetch_points(self, game_code, season_code):
        return self._result(self.points, "Points", game_code, season_code)

    def boxscore_calls(self, season_code=None):
        return [code for endpoint, season, code in self.calls
                if endpoint == "Boxscore" and (season_code is None or season == season_code)]


@pytest.fixture
def fake_api():
    return FakeApiClient()


def season_payloads(season_code, game_codes):
    """Boxscores y Points para varios gamecodes de una temporada."""
    boxscores = {(season_code, code): make_boxscore() for code in game_codes}
    points = {(season_code, code): make_points() for code in game_codes}
    return boxscores, points
