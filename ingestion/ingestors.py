"""Ingestores de partidos (Boxscore) y acciones anotadoras (Points).

Este módulo transforma los payloads del proveedor en filas normalizadas
a través de EntityStore. Cada escritura es idempotente, de modo que
reprocesar un partido nunca duplica datos.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError

from db.models import Game, Season, Team, GAME_STATUS_COMPLETED
from db.services import ConstraintViolation, EntityStore
from ingestion.api_common import MalformedPayloadError
from ingestion.utils import clean_code, safe_int, split_player_name

logger = logging.getLogger(__name__)

TEAM_CODE_MAX_LENGTH = 10

# Errores que descartan una fila sin abortar el resto del partido
ROW_ERRORS = (ConstraintViolation, SQLAlchemyError, MalformedPayloadError, ValueError, OverflowError)

# Contadores del proveedor presentes en cada línea de jugador
COUNTER_COLUMNS = [
    'Points', 'FieldGoalsMade2', 'FieldGoalsAttempted2', 'FieldGoalsMade3',
    'FieldGoalsAttempted3', 'FreeThrowsMade', 'FreeThrowsAttempted',
    'TotalRebounds', 'Assistances', 'Steals', 'Turnovers', 'BlocksFavour',
    'FoulsCommited',
]


def player_line_stats(line: Dict[str, Any]) -> Dict[str, int]:
    """Convierte una línea de jugador del Boxscore en columnas de PlayerGameStats.

    Los tiros de campo son la suma de 2PT y 3PT.
    """
    return {
        'pts': safe_int(line.get('Points')),
        'fgm': safe_int(line.get('FieldGoalsMade2')) + safe_int(line.get('FieldGoalsMade3')),
        'fga': safe_int(line.get('FieldGoalsAttempted2')) + safe_int(line.get('FieldGoalsAttempted3')),
        'fg3m': safe_int(line.get('FieldGoalsMade3')),
        'fg3a': safe_int(line.get('FieldGoalsAttempted3')),
        'ftm': safe_int(line.get('FreeThrowsMade')),
        'fta': safe_int(line.get('FreeThrowsAttempted')),
        'reb': safe_int(line.get('TotalRebounds')),
        'ast': safe_int(line.get('Assistances')),
        'stl': safe_int(line.get('Steals')),
        'blk': safe_int(line.get('BlocksFavour')),
        'tov': safe_int(line.get('Turnovers')),
        'pf': safe_int(line.get('FoulsCommited')),
    }


def team_totals(players: List[Dict[str, Any]]) -> Dict[str, int]:
    """Suma las líneas de los jugadores de un equipo en columnas de TeamGameStats."""
    df = pd.DataFrame(players)
    for col in COUNTER_COLUMNS:
        if col not in df.columns:
            df[col] = 0
    totals = df[COUNTER_COLUMNS].apply(pd.to_numeric, errors='coerce').fillna(0).sum()

    return {
        'total_pts': int(totals['Points']),
        'total_fgm': int(totals['FieldGoalsMade2'] + totals['FieldGoalsMade3']),
        'total_fga': int(totals['FieldGoalsAttempted2'] + totals['FieldGoalsAttempted3']),
        'total_fg3m': int(totals['FieldGoalsMade3']),
        'total_fg3a': int(totals['FieldGoalsAttempted3']),
        'total_ftm': int(totals['FreeThrowsMade']),
        'total_fta': int(totals['FreeThrowsAttempted']),
        'total_reb': int(totals['TotalRebounds']),
        'total_ast': int(totals['Assistances']),
        'total_stl': int(totals['Steals']),
        'total_blk': int(totals['BlocksFavour']),
        'total_tov': int(totals['Turnovers']),
        'total_pf': int(totals['FoulsCommited']),
    }


def team_score(end_of_quarter: Any, team_name: str) -> int:
    """Marcador final (Quarter4) del equipo, buscado por nombre en EndOfQuarter.

    El orden de la lista no importa. Si no aparece, 0.
    """
    for row in end_of_quarter or []:
        if isinstance(row, dict) and (row.get('Team') or '').strip() == team_name:
            return safe_int(row.get('Quarter4'))
    return 0


class GameIngestion:
    """Maneja la ingesta de un partido individual a partir de su Boxscore."""

    def __init__(self, store: EntityStore):
        """Inicializa el ingestor de partidos.

        Args:
            store: Frontera de persistencia
        """
        self.store = store

    def ingest(self, game_code: int, season: Season, boxscore: Dict[str, Any]) -> Game:
        """Ingiere un partido completo (Game, TeamGameStats y PlayerGameStats).

        Args:
            game_code: gamecode del partido
            season: Temporada a la que pertenece
            boxscore: Payload del endpoint Boxscore

        Returns:
            El Game (nuevo o ya existente)

        Raises:
            MalformedPayloadError: Si falta Stats o no trae exactamente dos equipos
            ConstraintViolation: Si la inserción del partido no se puede resolver
        """
        existing = self.store.get_game(season.id, game_code)
        if existing is not None and self.store.is_game_complete(existing.id):
            logger.debug(f"Partido {season.code}/{game_code} ya existe, se omite")
            return existing
        if existing is not None:
            logger.info(f"Partido {season.code}/{game_code} incompleto, se completan sus estadísticas")

        blocks = self._team_blocks(boxscore)
        teams = [self._resolve_team(block) for block in blocks]
        # El marcador se busca por el nombre del payload, no por el guardado
        home_score, away_score = (
            team_score(boxscore.get('EndOfQuarter'), (block.get('Team') or '').strip()) for block in blocks
        )
        home_team, away_team = teams

        game, created = self.store.insert_game(season.id, game_code, {
            'home_team_id': home_team.id,
            'away_team_id': away_team.id,
            'home_score': home_score,
            'away_score': away_score,
            'status': GAME_STATUS_COMPLETED,
            'date': date.today(),
        })
        if not created and existing is None:
            logger.debug(f"Partido {season.code}/{game_code} creado por otra escritura concurrente")

        stored_players = 0
        for is_home, block, team in zip((True, False), blocks, teams):
            players = block.get('PlayersStats') or []
            stored_players += self._ingest_player_lines(game, team, players)
            # Los totales van al final: su presencia marca el equipo como completo
            try:
                self.store.insert_team_game_stats(game.id, team.id, {'is_home': is_home, **team_totals(players)})
            except ROW_ERRORS as e:
                logger.warning(f"No se pudieron guardar los totales de {team.code} en partido {game.id}: {e}")

        logger.info(
            f"Partido {season.code}/{game_code}: {home_team.code} {game.home_score} - "
            f"{game.away_score} {away_team.code} ({stored_players} jugadores)"
        )
        return game

    def _team_blocks(self, boxscore: Dict[str, Any]) -> List[Dict[str, Any]]:
        stats = boxscore.get('Stats') if isinstance(boxscore, dict) else None
        if not isinstance(stats, list) or len(stats) != 2:
            raise MalformedPayloadError("El Boxscore no contiene exactamente dos equipos en Stats")
        return stats

    def _resolve_team(self, block: Dict[str, Any]) -> Team:
        """Obtiene o crea el equipo de un bloque de Stats."""
        name = (block.get('Team') or '').strip()
        code = self._team_code(block, name)
        if not code:
            raise MalformedPayloadError("Bloque de equipo sin nombre ni código")
        return self.store.get_or_create_team(code, name or code)

    @staticmethod
    def _team_code(block: Dict[str, Any], name: str) -> Optional[str]:
        # El código viene en las líneas de jugador; el bloque solo trae el nombre
        for line in block.get('PlayersStats') or []:
            code = clean_code(line.get('Team'))
            if code:
                return code
        return clean_code(name[:TEAM_CODE_MAX_LENGTH])

    def _ingest_player_lines(self, game: Game, team: Team, players: List[Dict[str, Any]]) -> int:
        """Procesa las líneas de jugadores de un equipo. Las líneas inválidas se omiten."""
        stored = 0
        for line in players:
            player_code = clean_code(line.get('Player_ID'))
            if not player_code:
                logger.warning(f"Línea de jugador sin Player_ID en partido {game.id} ({team.code}), se omite")
                continue

            first_name, last_name = split_player_name(line.get('Player'))
            try:
                player = self.store.get_or_create_player(player_code, first_name, last_name)
                self.store.insert_player_game_stats(game.id, player.id, team.id, {
                    'minutes_played': line.get('Minutes'),
                    **player_line_stats(line),
                })
            except ROW_ERRORS as e:
                logger.warning(f"No se pudo guardar la línea de {player_code} en partido {game.id}: {e}")
                continue
            stored += 1
        return stored


class ScoringEventIngestion:
    """Ingiere las acciones anotadoras de un partido desde el feed Points."""

    def __init__(self, api_client, store: EntityStore):
        self.api = api_client
        self.store = store

    def ingest_points(self, game: Game, game_code: int, season_code: str) -> int:
        """Descarga e inserta las acciones anotadoras. Nunca lanza excepciones.

        Returns:
            Número de acciones guardadas
        """
        if self.store.count_scoring_events(game.id) > 0:
            logger.debug(f"Partido {season_code}/{game_code} ya tiene acciones anotadoras, se omite")
            return 0

        result = self.api.fetch_points(game_code, season_code)
        if not result.ok:
            logger.warning(f"Points no disponible para {season_code}/{game_code} ({result.outcome.value})")
            return 0

        rows = result.data.get('Rows') if isinstance(result.data, dict) else None
        if not isinstance(rows, list):
            logger.warning(f"Points sin Rows para {season_code}/{game_code}")
            return 0

        stored = 0
        for row in rows:
            try:
                if self._ingest_row(game, row):
                    stored += 1
            except ConstraintViolation as e:
                logger.debug(f"Acción anotadora descartada en {season_code}/{game_code}: {e}")
            except Exception as e:
                logger.warning(f"Error procesando acción anotadora en {season_code}/{game_code}: {e}")

        logger.debug(f"Partido {season_code}/{game_code}: {stored} acciones anotadoras")
        return stored

    def _ingest_row(self, game: Game, row: Dict[str, Any]) -> bool:
        player_code = clean_code(row.get('ID_PLAYER'))
        team_code = clean_code(row.get('TEAM'))
        player = self.store.get_player(player_code) if player_code else None
        team = self.store.get_team(team_code) if team_code else None
        if player is None or team is None:
            return False

        points = safe_int(row.get('POINTS'))
        self.store.add_scoring_event({
            'game_id': game.id,
            'team_id': team.id,
            'player_id': player.id,
            'period': safe_int(row.get('MINUTE')),
            'points_scored': points,
            'shot_type': clean_code(row.get('ID_ACTION')),
            'zone': clean_code(row.get('ZONE')),
            'is_made': points > 0,
        })
        return True
