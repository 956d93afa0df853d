#!/usr/bin/env python3
"""Script para inicializar el esquema de la base de datos.

Útil para ejecutar después del despliegue, antes de la primera ingesta.
"""

import sys
from pathlib import Path

# Agregar el directorio raíz del proyecto al path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from db import init_db, DATABASE_URL
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    try:
        logger.info(f"Inicializando esquema de base de datos en {DATABASE_URL.rsplit('@', 1)[-1]}...")
        init_db()
        logger.info("✅ Base de datos inicializada correctamente")
    except Exception as e:
        logger.error(f"❌ Error al inicializar base de datos: {e}", exc_info=True)
        sys.exit(1)
