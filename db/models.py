"""Modelos SQLAlchemy para la base de datos de la EuroLeague.

Este módulo define todos los modelos de datos (ORM) que representan
las tablas en la base de datos PostgreSQL.

Las claves de identidad de negocio son los códigos del proveedor
(código de temporada, código de equipo, Player_ID y gamecode); los ids
numéricos son internos.
"""

from sqlalchemy import Column, Integer, String, Date, ForeignKey, Boolean, DateTime, UniqueConstraint, Index, CheckConstraint
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime, timezone

Base = declarative_base()


GAME_STATUS_SCHEDULED = 'Scheduled'
GAME_STATUS_COMPLETED = 'Completed'


def utc_now():
    """Retorna la fecha y hora actual en UTC (timezone-aware).

    Usado como default para campos created_at en los modelos.
    """
    return datetime.now(timezone.utc)


class Season(Base):
    """Modelo para temporadas de la EuroLeague (ej: E2025 -> 2025-26 Season).

    Una temporada se crea una sola vez, la primera vez que se ve, y nunca se modifica.
    """
    __tablename__ = 'seasons'

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(10), unique=True, nullable=False, comment='Código del proveedor (ej: E2025)')
    name = Column(String(50), nullable=False, comment='Nombre derivado del año (ej: 2025-26 Season)')

    # Auditoría
    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)

    # Relaciones
    games = relationship('Game', back_populates='season')

    def __repr__(self):
        return f"<Season(code='{self.code}', name='{self.name}')>"


class Team(Base):
    """Modelo para equipos de la EuroLeague."""
    __tablename__ = 'teams'

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(10), unique=True, nullable=False, comment='Código del equipo en el proveedor (ej: MAD)')
    name = Column(String(100), nullable=False)
    city = Column(String(50), nullable=True)
    country = Column(String(50), nullable=True)

    # Auditoría
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relaciones
    home_games = relationship(
        'Game',
        foreign_keys='Game.home_team_id',
        back_populates='home_team'
    )
    away_games = relationship(
        'Game',
        foreign_keys='Game.away_team_id',
        back_populates='away_team'
    )
    player_stats = relationship('PlayerGameStats', back_populates='team')
    team_game_stats = relationship('TeamGameStats', back_populates='team')

    def __repr__(self):
        return f"<Team(code='{self.code}', name='{self.name}')>"


class Player(Base):
    """Modelo para jugadores de la EuroLeague."""
    __tablename__ = 'players'

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), unique=True, nullable=False, comment='Player_ID del proveedor sin espacios (ej: P003733)')
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default='')
    position = Column(String(20), nullable=True, comment='Posición de juego si el proveedor la informa')

    # Auditoría
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relaciones
    game_stats = relationship('PlayerGameStats', back_populates='player')

    __table_args__ = (
        Index('idx_players_name', 'last_name', 'first_name'),
    )

    def __repr__(self):
        return f"<Player(code='{self.code}', name='{self.full_name}')>"

    @property
    def full_name(self):
        """Nombre completo en formato 'Nombre Apellido'."""
        return f"{self.first_name} {self.last_name}".strip()


class Game(Base):
    """Modelo para partidos de la EuroLeague.

    Un partido se identifica por (temporada, gamecode). Los marcadores son nullable
    porque el modelo admite partidos programados sin resultado.
    """
    __tablename__ = 'games'

    id = Column(Integer, primary_key=True, autoincrement=True)
    season_id = Column(Integer, ForeignKey('seasons.id'), nullable=False, index=True)
    game_code = Column(Integer, nullable=False, comment='gamecode del proveedor, secuencial dentro de la temporada')
    date = Column(Date, nullable=False, index=True, comment='Fecha de ingesta (el Boxscore no trae fecha)')
    status = Column(String(20), default=GAME_STATUS_SCHEDULED, nullable=False, comment='Scheduled o Completed')
    home_team_id = Column(Integer, ForeignKey('teams.id'), nullable=False, index=True, comment='ID del equipo local')
    away_team_id = Column(Integer, ForeignKey('teams.id'), nullable=False, index=True, comment='ID del equipo visitante')
    home_score = Column(Integer, nullable=True, comment='Puntos del equipo local (marcador final)')
    away_score = Column(Integer, nullable=True, comment='Puntos del equipo visitante (marcador final)')

    # Auditoría
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relaciones
    season = relationship('Season', back_populates='games')
    home_team = relationship('Team', foreign_keys=[home_team_id], back_populates='home_games')
    away_team = relationship('Team', foreign_keys=[away_team_id], back_populates='away_games')
    player_stats = relationship('PlayerGameStats', back_populates='game')
    team_game_stats = relationship('TeamGameStats', back_populates='game')
    scoring_events = relationship('ScoringEvent', back_populates='game')

    __table_args__ = (
        # Un gamecode es único dentro de su temporada, no globalmente
        UniqueConstraint('season_id', 'game_code', name='uq_game_season_code'),
        CheckConstraint('home_score >= 0', name='check_home_score'),
        CheckConstraint('away_score >= 0', name='check_away_score'),
        Index('idx_games_teams', 'home_team_id', 'away_team_id'),
    )

    def __repr__(self):
        return f"<Game(season_id={self.season_id}, game_code={self.game_code}, status='{self.status}')>"

    @property
    def winner_team_id(self):
        """Retorna el ID del equipo ganador o None si es empate/sin marcador."""
        if self.home_score is None or self.away_score is None:
            return None
        if self.home_score > self.away_score:
            return self.home_team_id
        elif self.away_score > self.home_score:
            return self.away_team_id
        return None

    @property
    def is_finished(self):
        return self.status == GAME_STATUS_COMPLETED


class TeamGameStats(Base):
    """Estadísticas agregadas del equipo por partido.

    Se calculan sumando las líneas de los jugadores del equipo en el mismo Boxscore.
    """
    __tablename__ = 'team_game_stats'

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(Integer, ForeignKey('games.id'), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey('teams.id'), nullable=False, index=True)
    is_home = Column(Boolean, default=False, nullable=False, comment='True si el equipo jugó como local')

    # Core Stats (suma de las líneas de jugadores)
    total_pts = Column(Integer, default=0, nullable=False)
    total_reb = Column(Integer, default=0, nullable=False)
    total_ast = Column(Integer, default=0, nullable=False)
    total_stl = Column(Integer, default=0, nullable=False)
    total_blk = Column(Integer, default=0, nullable=False, comment='Tapones a favor')
    total_tov = Column(Integer, default=0, nullable=False)
    total_pf = Column(Integer, default=0, nullable=False, comment='Faltas cometidas')

    # Shooting (tiros de campo = 2PT + 3PT)
    total_fgm = Column(Integer, default=0, nullable=False)
    total_fga = Column(Integer, default=0, nullable=False)
    total_fg3m = Column(Integer, default=0, nullable=False)
    total_fg3a = Column(Integer, default=0, nullable=False)
    total_ftm = Column(Integer, default=0, nullable=False)
    total_fta = Column(Integer, default=0, nullable=False)

    # Auditoría
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relaciones
    game = relationship('Game', back_populates='team_game_stats')
    team = relationship('Team', back_populates='team_game_stats')

    __table_args__ = (
        # Un equipo solo puede tener una entrada de estadísticas por partido
        UniqueConstraint('game_id', 'team_id', name='uq_team_game'),
    )

    def __repr__(self):
        return f"<TeamGameStats(team_id={self.team_id}, game_id={self.game_id}, pts={self.total_pts})>"


class PlayerGameStats(Base):
    """Modelo para estadísticas de jugadores en partidos individuales."""
    __tablename__ = 'player_game_stats'

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(Integer, ForeignKey('games.id'), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey('teams.id'), nullable=False, index=True)

    # Cadena cruda del proveedor ("MM:SS", "DNP" o NULL); se interpreta en lectura
    minutes_played = Column(String(10), nullable=True)

    # Core Stats
    pts = Column(Integer, default=0, nullable=False)
    reb = Column(Integer, default=0, nullable=False)
    ast = Column(Integer, default=0, nullable=False)
    stl = Column(Integer, default=0, nullable=False)
    blk = Column(Integer, default=0, nullable=False)
    tov = Column(Integer, default=0, nullable=False)
    pf = Column(Integer, default=0, nullable=False)

    # Shooting
    fgm = Column(Integer, default=0, nullable=False, comment='Field Goals Made (2PT + 3PT)')
    fga = Column(Integer, default=0, nullable=False, comment='Field Goals Attempted (2PT + 3PT)')
    fg3m = Column(Integer, default=0, nullable=False, comment='3-Point Field Goals Made')
    fg3a = Column(Integer, default=0, nullable=False, comment='3-Point Field Goals Attempted')
    ftm = Column(Integer, default=0, nullable=False, comment='Free Throws Made')
    fta = Column(Integer, default=0, nullable=False, comment='Free Throws Attempted')

    # Auditoría
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relaciones
    game = relationship('Game', back_populates='player_stats')
    player = relationship('Player', back_populates='game_stats')
    team = relationship('Team', back_populates='player_stats')

    __table_args__ = (
        UniqueConstraint('game_id', 'player_id', 'team_id', name='uq_player_game_team'),
        Index('idx_player_game_stats_team_game', 'team_id', 'game_id'),
    )

    def __repr__(self):
        return f"<PlayerGameStats(player_id={self.player_id}, game_id={self.game_id}, pts={self.pts})>"

    @property
    def did_play(self):
        """False si el jugador no llegó a jugar (sin minutos o 'DNP')."""
        return bool(self.minutes_played) and self.minutes_played.strip().upper() != 'DNP'


class ScoringEvent(Base):
    """Acción anotadora del feed de Points.

    No tiene restricción de unicidad: evitar duplicados es responsabilidad
    de la propia ejecución de ingesta.
    """
    __tablename__ = 'scoring_events'

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(Integer, ForeignKey('games.id'), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey('teams.id'), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)

    period = Column(Integer, default=0, nullable=False, comment='Valor MINUTE del feed')
    time_remaining = Column(String(10), nullable=True)
    points_scored = Column(Integer, default=0, nullable=False)
    shot_type = Column(String(20), nullable=True, comment='ID_ACTION del feed (ej: 2FGM, 3FGA, FTM)')
    zone = Column(String(5), nullable=True, comment='Zona de tiro del feed')
    is_made = Column(Boolean, default=False, nullable=False)

    # Auditoría
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relaciones
    game = relationship('Game', back_populates='scoring_events')

    def __repr__(self):
        return f"<ScoringEvent(game_id={self.game_id}, player_id={self.player_id}, shot='{self.shot_type}', pts={self.points_scored})>"


class SystemStatus(Base):
    """Modelo para persistir el estado de tareas del sistema (ej: ingesta)."""
    __tablename__ = 'system_status'

    task_name = Column(String(50), primary_key=True)
    status = Column(String(20), default='idle', nullable=False,
                    comment='Estado: idle, running, completed, failed')
    progress = Column(Integer, default=0, nullable=False,
                     comment='Porcentaje de progreso (0-100)')
    message = Column(String(255), nullable=True,
                    comment='Mensaje descriptivo del paso actual')

    # Auditoría
    last_run = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<SystemStatus(task='{self.task_name}', status='{self.status}', progress={self.progress}%)>"


class LogEntry(Base):
    """Modelo para persistir logs del sistema en la base de datos."""
    __tablename__ = 'log_entries'

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, default=utc_now, nullable=False, index=True)
    level = Column(String(20), nullable=False, index=True)
    module = Column(String(100), nullable=False)
    message = Column(String, nullable=False)
    traceback = Column(String, nullable=True)

    def __repr__(self):
        return f"<LogEntry(id={self.id}, level='{self.level}', module='{self.module}')>"
