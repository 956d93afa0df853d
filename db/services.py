"""Operaciones de persistencia idempotentes (get-or-create / insert-if-absent).

Todas las escrituras pasan por ``EntityStore.insert_if_absent``: se consulta
primero, y si no existe se inserta dentro de un SAVEPOINT. Si otra escritura
concurrente gana la carrera, la restricción única salta como IntegrityError,
se deshace solo el SAVEPOINT y se devuelve la fila existente.

Cada escritura es su propia unidad confirmada (commit); no hay transacción
que abarque un partido completo.
"""

import logging
from typing import Any, Dict, Optional, Tuple, Type

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models import Season, Team, Player, Game, TeamGameStats, PlayerGameStats, ScoringEvent

logger = logging.getLogger(__name__)


class ConstraintViolation(Exception):
    """Violación de una restricción de la BD que no se resuelve releyendo la fila.

    Se lanza cuando el INSERT choca con una restricción pero la fila en
    conflicto no aparece al volver a consultarla (por ejemplo, una FK rota).
    """

    def __init__(self, model_name: str, lookup: Dict[str, Any], original: Optional[Exception] = None):
        self.model_name = model_name
        self.lookup = lookup
        self.original = original
        super().__init__(f"Violación de restricción en {model_name} {lookup}: {original}")


class EntityStore:
    """Frontera de persistencia sobre una sesión SQLAlchemy."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Primitivas
    # ------------------------------------------------------------------

    def find(self, model: Type, **lookup) -> Optional[Any]:
        return self.session.query(model).filter_by(**lookup).first()

    def insert_if_absent(self, model: Type, lookup: Dict[str, Any],
                         values: Optional[Dict[str, Any]] = None) -> Tuple[Any, bool]:
        """Inserta una fila si no existe ninguna con ``lookup``.

        Args:
            model: Clase del modelo SQLAlchemy
            lookup: Columnas que identifican la fila (clave de negocio)
            values: Resto de columnas para la fila nueva

        Returns:
            Tuple[row, created]: La fila (nueva o existente) y si se creó ahora

        Raises:
            ConstraintViolation: Si el INSERT viola una restricción y no hay
                fila existente con la que resolver el conflicto
            SQLAlchemyError: Otros errores de la BD, tras deshacer el SAVEPOINT
        """
        existing = self.find(model, **lookup)
        if existing is not None:
            return existing, False

        # El SAVEPOINT se deshace ante cualquier error del flush y la sesión sigue usable
        try:
            with self.session.begin_nested():
                row = model(**lookup, **(values or {}))
                self.session.add(row)
                self.session.flush()
        except IntegrityError as e:
            # Otra escritura la creó justo antes
            existing = self.find(model, **lookup)
            if existing is None:
                self.session.rollback()
                raise ConstraintViolation(model.__name__, lookup, e) from e
            logger.debug(f"Conflicto de unicidad resuelto en {model.__name__} {lookup}")
            return existing, False

        self.session.commit()
        return row, True

    def insert(self, model: Type, values: Dict[str, Any]) -> Any:
        """Inserta una fila sin clave de negocio (ej: ScoringEvent).

        Raises:
            ConstraintViolation: Si la BD rechaza la fila
        """
        try:
            with self.session.begin_nested():
                row = model(**values)
                self.session.add(row)
                self.session.flush()
        except IntegrityError as e:
            raise ConstraintViolation(model.__name__, values, e) from e
        self.session.commit()
        return row

    # ------------------------------------------------------------------
    # Temporadas
    # ------------------------------------------------------------------

    def get_season(self, code: str) -> Optional[Season]:
        return self.find(Season, code=code)

    def get_or_create_season(self, code: str, name: str) -> Season:
        season, created = self.insert_if_absent(Season, {'code': code}, {'name': name})
        if created:
            logger.info(f"Temporada creada: {code} ({name})")
        return season

    def latest_season(self) -> Optional[Season]:
        """Temporada creada más recientemente."""
        return (
            self.session.query(Season)
            .order_by(Season.created_at.desc(), Season.id.desc())
            .first()
        )

    def list_seasons(self):
        return self.session.query(Season).order_by(Season.code).all()

    # ------------------------------------------------------------------
    # Equipos y jugadores
    # ------------------------------------------------------------------

    def get_team(self, code: str) -> Optional[Team]:
        return self.find(Team, code=code)

    def get_or_create_team(self, code: str, name: str) -> Team:
        """Obtiene un equipo por código o lo crea. Nunca sobrescribe uno existente."""
        team, _ = self.insert_if_absent(Team, {'code': code}, {'name': name})
        return team

    def get_player(self, code: str) -> Optional[Player]:
        return self.find(Player, code=code)

    def get_or_create_player(self, code: str, first_name: str, last_name: str) -> Player:
        """Obtiene un jugador por Player_ID o lo crea. Nunca sobrescribe uno existente."""
        player, _ = self.insert_if_absent(
            Player, {'code': code}, {'first_name': first_name, 'last_name': last_name}
        )
        return player

    # ------------------------------------------------------------------
    # Partidos y estadísticas
    # ------------------------------------------------------------------

    def get_game(self, season_id: int, game_code: int) -> Optional[Game]:
        return self.find(Game, season_id=season_id, game_code=game_code)

    def max_game_code(self, season_id: int) -> Optional[int]:
        """Mayor gamecode almacenado para la temporada (None si no hay partidos)."""
        return (
            self.session.query(func.max(Game.game_code))
            .filter(Game.season_id == season_id)
            .scalar()
        )

    def is_game_complete(self, game_id: int) -> bool:
        """Un partido está completo cuando tiene los totales de sus dos equipos."""
        return self.session.query(TeamGameStats).filter(TeamGameStats.game_id == game_id).count() >= 2

    def first_incomplete_game_code(self, season_id: int) -> Optional[int]:
        """Menor gamecode de la temporada con totales de equipo pendientes."""
        row = (
            self.session.query(Game.game_code)
            .outerjoin(TeamGameStats, TeamGameStats.game_id == Game.id)
            .filter(Game.season_id == season_id)
            .group_by(Game.id, Game.game_code)
            .having(func.count(TeamGameStats.id) < 2)
            .order_by(Game.game_code)
            .first()
        )
        return row[0] if row else None

    def insert_game(self, season_id: int, game_code: int, values: Dict[str, Any]) -> Tuple[Game, bool]:
        return self.insert_if_absent(Game, {'season_id': season_id, 'game_code': game_code}, values)

    def insert_team_game_stats(self, game_id: int, team_id: int, values: Dict[str, Any]) -> Tuple[TeamGameStats, bool]:
        return self.insert_if_absent(TeamGameStats, {'game_id': game_id, 'team_id': team_id}, values)

    def insert_player_game_stats(self, game_id: int, player_id: int, team_id: int,
                                 values: Dict[str, Any]) -> Tuple[PlayerGameStats, bool]:
        return self.insert_if_absent(
            PlayerGameStats,
            {'game_id': game_id, 'player_id': player_id, 'team_id': team_id},
            values
        )

    def add_scoring_event(self, values: Dict[str, Any]) -> ScoringEvent:
        return self.insert(ScoringEvent, values)

    def count_scoring_events(self, game_id: int) -> int:
        return self.session.query(ScoringEvent).filter(ScoringEvent.game_id == game_id).count()
