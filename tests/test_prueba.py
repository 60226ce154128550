from collections import Counter

from sqlalchemy import inspect

from config.mappings import FASES
from database.models import Persona, PersonaCentro
from database.prueba import a_csv, generar_filas
from database.setup import TABLAS_IMPORTACION, inicializar_base_de_datos


def test_inicializar_crea_las_tablas(engine):
    inicializar_base_de_datos(bind=engine)
    inspector = inspect(engine)
    assert all(inspector.has_table(t) for t in TABLAS_IMPORTACION)


def test_exportacion_ficticia_completa_sin_errores(servicio, session_factory, contar):
    contenido = a_csv(generar_filas(30, semilla=7))

    for fase in FASES:
        resultado = servicio.procesar(contenido, fase)
        assert resultado["errors"] == [], fase
        assert len(resultado["results"]) == 30

    assert contar(Persona) > 0
    with session_factory() as s:
        principales = Counter(v.persona_id for v in s.query(PersonaCentro).filter_by(es_principal=True))
        con_centro = {v.persona_id for v in s.query(PersonaCentro)}
    assert con_centro
    assert all(principales[p] == 1 for p in con_centro)
