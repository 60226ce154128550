#  Copyright (c) 2026 Fleer
import os
import sys
from dotenv import load_dotenv

# 1. DETERMINAR RUTAS BASE
if getattr(sys, 'frozen', False):
    # Si es .exe, BASE_DIR será la carpeta del ejecutable
    BASE_DIR = os.path.dirname(sys.executable)
else:
    BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

ENV_PATH = os.path.join(BASE_DIR, '.env')
if os.path.exists(ENV_PATH):
    load_dotenv(ENV_PATH)


def _leer_bool(clave: str, defecto: bool = False) -> bool:
    """Interpreta una variable de entorno como booleano ('true', '1', 'si')."""
    valor = os.getenv(clave)
    if valor is None:
        return defecto
    return valor.strip().lower() in ("true", "1", "si", "yes")


def _leer_float(clave: str, defecto: float) -> float:
    try:
        return float(os.getenv(clave, defecto))
    except (TypeError, ValueError):
        return defecto


def _leer_int(clave: str, defecto: int) -> int:
    try:
        return int(os.getenv(clave, defecto))
    except (TypeError, ValueError):
        return defecto


# 2. CONFIGURACIÓN DE BASE DE DATOS
DB_TYPE = os.getenv("DB_TYPE", "sqlite")
DB_NAME = os.getenv("DB_NAME", "formacion.db")

if DB_TYPE == "sqlite":
    db_path = os.path.join(BASE_DIR, DB_NAME)
    DATABASE_URL = f"sqlite:///{db_path}"
else:
    _user = os.getenv("DB_USER")
    _pass = os.getenv("DB_PASS")
    _host = os.getenv("DB_HOST")
    _name = os.getenv("DB_NAME_REMOTE")
    _port = os.getenv("DB_PORT", "5432")

    if not all([_user, _pass, _host, _name]):
        fallback_path = os.path.join(BASE_DIR, 'temp_fallback.db')
        DATABASE_URL = f"sqlite:///{fallback_path}"
    else:
        DATABASE_URL = f"postgresql://{_user}:{_pass}@{_host}:{_port}/{_name}"

# 3. LECTURA DEL CSV
# Los ficheros exportados por la nómina vienen siempre en un juego de caracteres de un byte
CSV_ENCODING = os.getenv("CSV_ENCODING", "latin-1")
CSV_CHUNK_SIZE = max(1, _leer_int("CSV_CHUNK_SIZE", 500))

# 4. RECONCILIACIÓN DE ENTIDADES
# Proporción mínima de longitud para aceptar que un nombre de centro contiene a otro.
# Valor heredado de los datos de origen, pendiente de confirmar con producto.
CENTER_CONTAINS_MIN_RATIO = _leer_float("CENTER_CONTAINS_MIN_RATIO", 0.7)
CREATE_RETRY_DELAY = _leer_float("CREATE_RETRY_DELAY", 0.05)

# 5. DIAGNÓSTICO
# Desactivado por defecto para no dejar artefactos en producción
IMPORT_WRITE_BAD_ROWS = _leer_bool("IMPORT_WRITE_BAD_ROWS", False)
IMPORT_BAD_ROWS_PATH = os.getenv("IMPORT_BAD_ROWS_PATH", os.path.join(os.getcwd(), 'import-bad-rows.csv'))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# 6. SERVIDOR HTTP
APP_TITLE = "Gestión de Formación - Importación CSV"
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = _leer_int("API_PORT", 8000)
