"""Utilidad para mostrar un resumen del número de registros en la base de datos.

Este módulo proporciona funciones simples para obtener y mostrar
el conteo de registros en cada tabla ingerida.
"""

from typing import Dict, Optional

from sqlalchemy.orm import Session

from db.connection import get_session
from db.models import (
    Season, Team, Player, Game, PlayerGameStats, TeamGameStats, ScoringEvent
)


def get_record_counts(session: Optional[Session] = None) -> Dict[str, int]:
    """Obtiene el número de registros en cada tabla de la base de datos.

    Args:
        session: Sesión a usar. Si es None se abre (y cierra) una propia.

    Returns:
        Diccionario con el nombre de la tabla como clave y el conteo como valor
    """
    own_session = session is None
    session = session or get_session()
    try:
        return {
            'seasons': session.query(Season).count(),
            'teams': session.query(Team).count(),
            'players': session.query(Player).count(),
            'games': session.query(Game).count(),
            'player_game_stats': session.query(PlayerGameStats).count(),
            'team_game_stats': session.query(TeamGameStats).count(),
            'scoring_events': session.query(ScoringEvent).count(),
        }
    finally:
        if own_session:
            session.close()


def get_summary_string(session: Optional[Session] = None) -> str:
    """Retorna un resumen del número de registros como string.

    Returns:
        String con el resumen formateado
    """
    counts = get_record_counts(session)
    total = sum(counts.values())
    width = max(len(name) for name in counts.keys()) + 5

    lines = ["=" * 70, "RESUMEN DE REGISTROS EN LA BASE DE DATOS", "=" * 70]
    for table_name, count in sorted(counts.items()):
        display_name = table_name.replace('_', ' ').title()
        lines.append(f"  {display_name:<{width}} {count:>12,}")
    lines.append("-" * 70)
    lines.append(f"  {'TOTAL':<{width}} {total:>12,}")
    lines.append("=" * 70)

    return "\n".join(lines)


def print_summary(session: Optional[Session] = None):
    """Imprime un resumen visual del número de registros en cada tabla."""
    print("\n" + get_summary_string(session) + "\n")
