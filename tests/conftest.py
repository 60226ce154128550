# Fixtures comunes: base de datos SQLite en memoria compartida por todos los
# modelos a través de una fábrica de sesiones inyectada.

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from database.conexion import Base, crear_fabrica_sesiones
from database import models  # noqa: F401
from services.contexto import ContextoImportacion
from services.filas_erroneas import RegistroFilasErroneas
from services.persistence import ImportacionService


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return crear_fabrica_sesiones(engine)


@pytest.fixture
def contar(session_factory):
    """Cuenta filas de un modelo SQLAlchemy, opcionalmente filtradas."""
    def _contar(modelo, **filtros):
        with session_factory() as s:
            return s.query(modelo).filter_by(**filtros).count()
    return _contar


@pytest.fixture
def registro(tmp_path):
    return RegistroFilasErroneas(ruta=str(tmp_path / "bad-rows.csv"), activo=True)


@pytest.fixture
def servicio(session_factory, registro):
    return ImportacionService(session_factory=session_factory, registro_filas=registro)


@pytest.fixture
def contexto():
    return ContextoImportacion()


@pytest.fixture
def csv_bytes():
    """Construye el contenido de un CSV en latin-1 a partir de sus líneas."""
    def _csv(*lineas):
        return "\n".join(lineas).encode("latin-1")
    return _csv
