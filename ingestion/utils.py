import logging
import math
import re
import time
from datetime import datetime
from typing import Any, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from db.logging import PROGRESS_LOG_EVERY_N_SECONDS
from db.models import SystemStatus

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"\d+")


def season_name_from_code(code: str) -> str:
    """Deriva el nombre legible de una temporada a partir de su código.

    El primer grupo de dígitos es el año de inicio: "E2023" -> "2023-24 Season",
    "E2099" -> "2099-00 Season". Sin dígitos se devuelve el código tal cual.
    """
    match = _YEAR_RE.search(code or "")
    if not match:
        return code
    year = int(match.group())
    return f"{year}-{(year + 1) % 100:02d} Season"


def clean_code(value: Any) -> Optional[str]:
    """Normaliza un código del proveedor (Player_ID, TEAM...) quitando espacios.

    Returns:
        El código sin espacios o None si viene vacío
    """
    if value is None:
        return None
    code = str(value).strip()
    return code or None


def split_player_name(raw_name: Any) -> Tuple[str, str]:
    """Separa un nombre "APELLIDO, NOMBRE" en (nombre, apellido).

    Se corta por la primera coma. Sin coma, el texto completo es el nombre
    y el apellido queda vacío.
    """
    name = str(raw_name or "").strip()
    if "," not in name:
        return name, ""
    last, first = name.split(",", 1)
    return first.strip(), last.strip()


def safe_int(value: Any, default: int = 0) -> int:
    """Convierte un valor a int de forma segura."""
    try:
        f_val = float(value)
    except (TypeError, ValueError):
        return default
    return int(f_val) if not (math.isnan(f_val) or math.isinf(f_val)) else default


class ProgressReporter:
    """Maneja el reporte de progreso de la ingesta en system_status y en el log."""

    def __init__(self, task_name: str, session_factory=None):
        self.task_name = task_name
        self.session_factory = session_factory
        self.current_progress = 0
        self.last_message = ""
        self.start_time = time.time()
        self.last_log_time = self.start_time
        self.items_processed = 0
        self.total_items = 0
        self._started = False

    def set_total(self, total: int):
        """Define el total de items a procesar para cálculos automáticos."""
        self.total_items = total

    def increment(self, message: str = "", delta: int = 1):
        """Incrementa el contador de items procesados y actualiza el progreso.

        Args:
            message: Mensaje descriptivo del progreso (opcional)
            delta: Número de items procesados (default: 1)
        """
        self.items_processed += delta
        if self.total_items > 0:
            progress = min(100, int((self.items_processed / self.total_items) * 100))
        else:
            progress = self.current_progress
        if not message and self.total_items > 0:
            message = f"{self.items_processed}/{self.total_items}"
        self.update(progress, message or "En progreso...")

    def _elapsed_str(self, now: float) -> str:
        elapsed = int(now - self.start_time)
        if elapsed > 60:
            return f"{elapsed//60}m{elapsed%60}s"
        return f"{elapsed}s"

    def update(self, progress: Optional[int], message: str, status: str = "running"):
        """Actualiza el estado en la base de datos.

        Args:
            progress: Porcentaje de progreso (0-100) o None para mantener el actual
            message: Mensaje descriptivo
            status: Estado de la tarea (running, completed, failed)
        """
        if progress is not None:
            self.current_progress = progress
        self.last_message = message

        # Solo loguear si han pasado >N segundos, salvo cambios de estado
        now = time.time()
        should_log = (now - self.last_log_time) >= PROGRESS_LOG_EVERY_N_SECONDS
        if should_log or self.current_progress >= 100 or status != "running":
            logger.info(f"[{self.task_name}] {self.current_progress}% - {message} (Tiempo: {self._elapsed_str(now)})")
            self.last_log_time = now

        if not self.session_factory:
            return

        session = self.session_factory()
        try:
            task = session.query(SystemStatus).filter_by(task_name=self.task_name).first()
            if not task:
                task = SystemStatus(task_name=self.task_name)
                session.add(task)

            task.status = status
            task.progress = self.current_progress
            task.message = message[:255]
            # last_run marca el inicio de esta ejecución: no se pisa en cada update
            if not self._started or task.last_run is None:
                task.last_run = datetime.now()
                self._started = True

            session.commit()
        except SQLAlchemyError as e:
            # El monitor de progreso nunca debe parar la ingesta
            session.rollback()
            logger.debug(f"No se pudo actualizar system_status: {e}")
        finally:
            session.close()

    def complete(self, message: str = "Tarea completada con éxito"):
        """Marca la tarea como completada."""
        self.update(100, f"{message} en {self._elapsed_str(time.time())}", status="completed")

    def fail(self, message: str):
        """Marca la tarea como fallida."""
        self.update(self.current_progress, f"ERROR: {message}", status="failed")
