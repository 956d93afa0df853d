"""Sistema centralizado de Logging para la ingesta EuroLeague.

Este módulo unifica la lógica de registro, persistencia y configuración de logs
para la CLI y los scripts.

Funcionalidades:
- Configuración automática según entorno (Local vs Cloud).
- Persistencia en base de datos vía SQLAlchemy (tabla log_entries).
- Gestión de niveles de log y formatos unificados.
- Limpieza de logs y estados antes de una ejecución.
"""
import os
import sys
import logging
import traceback
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy.orm import Session, sessionmaker

from db.connection import get_engine
from db.models import LogEntry, SystemStatus

# ==============================================================================
# 1. CONSTANTES Y CONFIGURACIÓN
# ==============================================================================

IS_CLOUD = os.getenv("CLOUD_MODE") == "true"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

DEFAULT_LOG_LEVEL = "WARNING" if IS_CLOUD else "INFO"
LOG_LEVEL = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

# Silenciar consola (útil cuando la ejecución la controla otro proceso)
SILENT_STDOUT = os.getenv("INGEST_SILENT_STDOUT", "false").lower() == "true"

# Persistir logs en la BD
LOG_TO_DB = os.getenv("INGEST_LOG_TO_DB", "true").lower() == "true"

# Intervalo mínimo entre logs de progreso (usado por ProgressReporter)
PROGRESS_LOG_EVERY_N_SECONDS = int(os.getenv("INGEST_PROGRESS_LOG_INTERVAL", 5))

NOISY_LOGGERS = ('urllib3', 'requests', 'sqlalchemy.engine')


# ==============================================================================
# 2. HANDLERS PERSONALIZADOS
# ==============================================================================

class SQLAlchemyHandler(logging.Handler):
    """Handler que guarda registros en la tabla log_entries de la base de datos.

    Si la BD falla, el error se reporta por la vía estándar de logging
    (handleError) y la aplicación continúa.
    """

    def __init__(self, session_factory=None):
        super().__init__()
        # Inicialización lazy del engine para evitar problemas de importación circular
        self._session_factory = session_factory

    @property
    def session_factory(self):
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=get_engine())
        return self._session_factory

    def emit(self, record):
        # Evitar bucles infinitos si SQLAlchemy o psycopg2 generan logs
        if record.name.startswith('sqlalchemy') or record.name.startswith('psycopg2'):
            return

        session = self.session_factory()
        try:
            tb = None
            if record.exc_info:
                tb = "".join(traceback.format_exception(*record.exc_info))

            session.add(LogEntry(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
                level=record.levelname,
                module=record.name,
                message=record.getMessage(),
                traceback=tb
            ))
            session.commit()
        except Exception:
            session.rollback()
            self.handleError(record)
        finally:
            session.close()


# ==============================================================================
# 3. SETUP UNIFICADO
# ==============================================================================

def setup_logging(context: str = "cli", verbose: bool = False, log_to_db: bool = LOG_TO_DB):
    """Configura el sistema de logging global según el contexto.

    Args:
        context: Tipo de proceso ('cli', 'script').
        verbose: Si True, fuerza nivel DEBUG.
        log_to_db: Si True, añade el handler que persiste en log_entries.
    """
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.INFO)

    handlers = []
    if log_to_db:
        handlers.append(SQLAlchemyHandler())

    # En nube los scripts no escriben en consola para reducir ruido
    if not SILENT_STDOUT and (context == "cli" or not IS_CLOUD):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        handlers.append(console_handler)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# ==============================================================================
# 4. UTILIDADES DE ALTO NIVEL
# ==============================================================================

def log_header(message: str, logger_name: str = "euroleague.system"):
    """Imprime un banner decorativo uniforme."""
    logger = logging.getLogger(logger_name)
    logger.info("=" * 80)
    logger.info(message.upper())
    logger.info("=" * 80)

def log_success(message: str, logger_name: str = "euroleague.system"):
    """Imprime un mensaje de éxito con icono."""
    logging.getLogger(logger_name).info(f"✅ {message}")

def log_step(message: str, logger_name: str = "euroleague.system"):
    """Imprime un paso del proceso."""
    logging.getLogger(logger_name).info(f"➜ {message}...")


# ==============================================================================
# 5. LIMPIEZA PREVIA A UNA EJECUCIÓN
# ==============================================================================

def cleanup_for_new_ingestion(session: Session) -> Dict[str, int]:
    """Vacía log_entries y system_status en una sola transacción (opción --clear-logs)."""
    try:
        stats = {
            'logs_deleted': session.query(LogEntry).delete(),
            'status_deleted': session.query(SystemStatus).delete(),
        }
        session.commit()
    except Exception:
        session.rollback()
        raise
    return stats
