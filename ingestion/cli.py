"""CLI para ejecutar la ingesta de la EuroLeague.

Este módulo proporciona la interfaz de línea de comandos con dos modos:
- initialize: Registra las temporadas configuradas y las recorre desde el partido 1
- update: Descubre temporadas nuevas y continúa cada temporada donde se quedó
"""

import argparse
import logging
import sys

from db import init_db
from db.connection import get_session
from db.logging import setup_logging, cleanup_for_new_ingestion
from db.summary import get_summary_string
from ingestion.api_client import EuroleagueApiClient
from ingestion.api_common import FatalIngestionError
from ingestion.config import IngestionConfig, TASK_NAME
from ingestion.strategies import IngestionOrchestrator
from ingestion.utils import ProgressReporter

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Ingesta incremental de datos de la EuroLeague',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Ejemplos de uso:

  # Carga inicial de las temporadas configuradas (INGEST_SEASONS)
  python -m ingestion.cli --mode initialize

  # Actualización incremental (descubre temporadas nuevas y continúa las existentes)
  python -m ingestion.cli --mode update

  # Actualizar solo una temporada
  python -m ingestion.cli --mode update --season E2025

  # Inicializar base de datos
  python -m ingestion.cli --init-db
        """
    )
    parser.add_argument(
        '--mode',
        type=str,
        choices=['initialize', 'update'],
        help='Modo de ingesta (requerido si no se usa --init-db)'
    )
    parser.add_argument(
        '--season',
        type=str,
        default=None,
        help='Código de temporada a actualizar en modo update (ej: E2025)'
    )
    parser.add_argument(
        '--init-db',
        action='store_true',
        help='Inicializar base de datos antes de la ingesta'
    )
    parser.add_argument(
        '--clear-logs',
        action='store_true',
        help='Borrar logs y estados previos antes de empezar'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Activar logs de nivel DEBUG'
    )
    return parser


def run_ingestion(mode: str, season_code=None, config=None) -> int:
    """Ejecuta una ingesta completa en el modo indicado.

    Returns:
        Código de salida del proceso (0 = éxito)
    """
    config = config or IngestionConfig.from_env()
    session = get_session()
    reporter = ProgressReporter(TASK_NAME, session_factory=get_session)

    try:
        with EuroleagueApiClient(config) as api_client:
            orchestrator = IngestionOrchestrator(session, config, api_client=api_client, reporter=reporter)
            if mode == 'initialize':
                summary = orchestrator.initialize()
            else:
                summary = orchestrator.update(season_code)

        print(summary.describe())
        print(get_summary_string(session))
        return 0

    except FatalIngestionError as e:
        logger.error("=" * 80)
        logger.error("🔴 ERROR FATAL: la ingesta se ha detenido")
        logger.error(f"Error: {e}")
        logger.error("=" * 80)
        return 1

    except Exception as e:
        logger.error(f"❌ Error inesperado: {e}", exc_info=True)
        return 1

    finally:
        session.close()


def main(argv=None) -> int:
    """Punto de entrada principal del CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.mode and not args.init_db:
        parser.error("--mode es requerido (usar --help para ver ejemplos)")

    # La tabla de logs debe existir antes de enviar logs a la BD
    if args.init_db:
        init_db()

    setup_logging("cli", verbose=args.verbose)

    if args.init_db:
        logger.info("✅ Base de datos inicializada")
        if not args.mode:
            return 0

    if args.clear_logs:
        session = get_session()
        try:
            stats = cleanup_for_new_ingestion(session)
            logger.info(f"🧹 {stats['logs_deleted']} logs y {stats['status_deleted']} estados eliminados")
        finally:
            session.close()

    try:
        return run_ingestion(args.mode, args.season)
    except KeyboardInterrupt:
        logger.warning("⚠️  Ingesta interrumpida por el usuario")
        return 130


if __name__ == '__main__':
    sys.exit(main())
