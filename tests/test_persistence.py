from datetime import date

import pytest

from database.models import (
    Centro, Empresa, Grupo, Matricula, Persona, PersonaCentro, PersonaGrupo
)
from services.errores import ArchivoRequeridoError, FaseInvalidaError

CABECERA = "DNI;NOMBRE;PRIMER_APELLIDO;CIF;EMPRESA;CENTRO;FECHA_ALTA;FECHA_BAJA"
ANA = "11111111H;Ana;Ruiz;B12345678;Acme;Centro Norte;01/01/2023;"


@pytest.fixture
def importar(servicio, csv_bytes):
    def _importar(fase, *lineas, **kwargs):
        return servicio.procesar(csv_bytes(*lineas), fase, **kwargs)
    return _importar


@pytest.fixture
def ana_en_acme(importar):
    """Ana creada, con su empresa y su centro."""
    importar("users", CABECERA, ANA)
    importar("companies", CABECERA, ANA)


def _principales(session_factory, persona_id):
    with session_factory() as s:
        return s.query(PersonaCentro).filter_by(persona_id=persona_id, es_principal=True).all()


def test_fase_invalida_y_fichero_vacio(servicio):
    with pytest.raises(FaseInvalidaError):
        servicio.procesar(b"DNI\n1", "enrollments")
    with pytest.raises(ArchivoRequeridoError):
        servicio.procesar(b"", "users")


def test_empresa_sin_cif_se_omite_sin_escribir(importar, contar):
    resultado = importar("companies", "DNI;CIF;CENTRO", "12345678Z;;Centro X")

    assert resultado["success"] is True
    assert resultado["results"] == [
        {"row": 1, "phase": "companies", "status": "skipped", "reason": "company_not_found"}
    ]
    assert contar(Empresa) == 0
    assert contar(Centro) == 0


def test_fase_de_usuarios_crea_y_numera_filas(importar, contar):
    resultado = importar("users", CABECERA, ANA, "22222222J;Luis;Gil;;;;;", ";;;;;;;")

    filas = resultado["results"]
    assert [f["row"] for f in filas] == [1, 2, 3]
    assert filas[0]["matched_by"] == "created"
    assert filas[2]["reason"] == "insufficient_user_data"
    assert contar(Persona) == 2


def test_fases_repetidas_son_idempotentes(importar, ana_en_acme, contar):
    primera = importar("associate", CABECERA, ANA)
    importar("users", CABECERA, ANA)
    importar("companies", CABECERA, ANA)
    segunda = importar("associate", CABECERA, ANA)

    assert primera["results"][0]["action"] == "created"
    assert segunda["results"][0]["action"] == "updated"
    assert contar(Persona) == 1
    assert contar(Empresa) == 1
    assert contar(Centro) == 1
    assert contar(PersonaCentro) == 1


def test_asociar_marca_como_principal_el_alta_mas_reciente(importar, session_factory, contar):
    norte = "11111111H;Ana;Ruiz;B12345678;Acme;Centro Norte;01/01/2022;"
    sur = "11111111H;Ana;Ruiz;B12345678;Acme;Centro Sur;01/06/2023;"
    importar("users", CABECERA, norte)
    importar("companies", CABECERA, norte, sur)

    resultado = importar("associate", CABECERA, norte, sur)

    persona_id = resultado["results"][0]["id_user"]
    principales = _principales(session_factory, persona_id)
    assert len(principales) == 1
    assert principales[0].centro_id == resultado["results"][1]["id_center"]
    assert contar(PersonaCentro, persona_id=persona_id) == 2


def test_sin_fechas_se_garantiza_un_principal(importar, session_factory):
    norte = "11111111H;Ana;Ruiz;B12345678;Acme;Centro Norte;;"
    sur = "11111111H;Ana;Ruiz;B12345678;Acme;Centro Sur;;"
    importar("users", CABECERA, norte)
    importar("companies", CABECERA, norte, sur)

    resultado = importar("associate", CABECERA, norte, sur)

    assert len(_principales(session_factory, resultado["results"][0]["id_user"])) == 1


def test_reparacion_deja_un_unico_principal(servicio, session_factory):
    persona = servicio.model_persona.create({"nombre": "Ana", "dni": "11111111H"})
    empresa = servicio.model_empresa.create({"cif": "B12345678", "nombre": "Acme"})
    viejo = servicio.model_centro.create({"nombre": "Norte", "empresa_id": empresa.id})
    nuevo = servicio.model_centro.create({"nombre": "Sur", "empresa_id": empresa.id})
    with session_factory() as s, s.begin():
        s.add_all([
            PersonaCentro(persona_id=persona.id, centro_id=viejo.id, fecha_inicio=date(2020, 1, 1), es_principal=True),
            PersonaCentro(persona_id=persona.id, centro_id=nuevo.id, fecha_inicio=date(2024, 1, 1), es_principal=True),
        ])

    assert servicio.asegurar_centro_principal() == 1

    principales = _principales(session_factory, persona.id)
    assert [p.centro_id for p in principales] == [nuevo.id]
    assert servicio.asegurar_centro_principal() == 0


def test_motivos_de_omision_al_asociar(importar, ana_en_acme, contar):
    resultado = importar(
        "associate", CABECERA,
        "11111111H;Ana;Ruiz;B12345678;Acme;;01/01/2023;",
        "11111111H;Ana;Ruiz;B12345678;Acme;Centro Inexistente;01/01/2023;",
        "99999999R;Nadie;Nada;B12345678;Acme;Centro Norte;01/01/2023;",
    )

    motivos = [f["reason"] for f in resultado["results"]]
    assert motivos == ["center_name_missing", "center_not_found", "user_not_found"]
    assert contar(PersonaCentro) == 0
    assert contar(Persona) == 1


def test_las_fechas_de_asociacion_solo_avanzan(importar, ana_en_acme, session_factory):
    importar("associate", CABECERA, "11111111H;Ana;Ruiz;B12345678;Acme;Centro Norte;01/01/2023;31/12/2023")
    importar("associate", CABECERA, "11111111H;Ana;Ruiz;B12345678;Acme;Centro Norte;01/01/2022;31/12/2024")

    with session_factory() as s:
        vinculo = s.query(PersonaCentro).one()
    assert vinculo.fecha_inicio == date(2023, 1, 1)
    assert vinculo.fecha_final == date(2024, 12, 31)


def test_fase_de_cursos_matricula_con_progreso(importar, session_factory, contar):
    cabecera = "DNI;NOMBRE;moodleIdCourse;CURSO;PORCENTAJE_COMPLETADO;TIME_SPENT"
    fila = "11111111H;Ana;77;Excel;45,6;9999999999"
    importar("users", cabecera, fila)

    resultado = importar("courses", cabecera, fila, "11111111H;Ana;;;10;")

    assert resultado["results"][0]["status"] == "ok"
    assert resultado["results"][1]["reason"] == "course_not_found"
    with session_factory() as s:
        matricula = s.query(Matricula).one()
    assert matricula.porcentaje_completado == 45.6
    assert matricula.tiempo_dedicado == 9999999
    assert contar(Persona) == 1


def test_fase_de_grupos_enlaza_centro_y_actualiza_matricula(importar, session_factory, contar):
    cabecera = CABECERA + ";moodleIdCourse;CURSO;moodleIdGroup;GRUPO;GROUP_START_DATE;PORCENTAJE_COMPLETADO;TIME_SPENT"
    en_curso = ANA + ";77;Excel;;;;10;00h 10m 00s"
    en_grupo = ANA + ";77;Excel;500;G1;2025-02-01;80;01:00:00"
    importar("users", cabecera, en_curso)
    empresas = importar("companies", cabecera, en_curso)
    importar("courses", cabecera, en_curso)

    resultado = importar("groups", cabecera, en_grupo)

    fila = resultado["results"][0]
    assert fila["status"] == "ok"
    assert fila["id_center"] == empresas["results"][0]["id_center"]
    with session_factory() as s:
        pertenencia = s.query(PersonaGrupo).one()
        grupo = s.query(Grupo).one()
        matricula = s.query(Matricula).one()
    assert pertenencia.centro_id == fila["id_center"]
    assert pertenencia.tiempo_dedicado == 3600
    assert grupo.curso_id == fila["id_course"]
    assert grupo.fecha_inicio == date(2025, 2, 1)
    assert matricula.porcentaje_completado == 80.0
    assert matricula.tiempo_dedicado == 3600
    assert contar(Centro) == 1


def test_una_fila_que_falla_no_detiene_la_fase(importar, servicio, monkeypatch):
    cabecera = "DNI;NOMBRE;CURSO"
    importar("users", cabecera, "11111111H;Ana;Excel", "22222222J;Luis;Excel")
    original = servicio.model_matricula.registrar
    llamadas = []

    def registrar_fallando_una_vez(*args, **kwargs):
        llamadas.append(args)
        if len(llamadas) == 1:
            raise RuntimeError("fallo de escritura")
        return original(*args, **kwargs)

    monkeypatch.setattr(servicio.model_matricula, "registrar", registrar_fallando_una_vez)

    resultado = importar("courses", cabecera, "11111111H;Ana;Excel", "22222222J;Luis;Excel")

    assert resultado["success"] is False
    assert resultado["errors"] == [{"row": 1, "phase": "courses", "error": "fallo de escritura"}]
    assert [f["status"] for f in resultado["results"]] == ["error", "ok"]


def test_limite_de_filas(importar, contar):
    resultado = importar("users", "DNI;NOMBRE", "11111111H;Ana", "22222222J;Luis", "33333333P;Eva",
                         limite_filas=2)
    assert len(resultado["results"]) == 2
    assert contar(Persona) == 2


def test_filas_omitidas_van_al_fichero_de_diagnostico(importar, registro):
    importar("associate", CABECERA, "99999999R;Nadie;Nada;B12345678;Acme;Centro Norte;;")

    with open(registro.ruta, encoding="utf-8") as f:
        lineas = f.read().splitlines()
    assert lineas[0] == "row,phase,reason,raw_json"
    assert lineas[1].startswith("1,associate,user_not_found,")
    assert "99999999R" in lineas[1]


def test_un_fallo_al_reparar_no_pierde_el_informe(importar, servicio, session_factory, monkeypatch):
    cabecera = "DNI;NOMBRE;CIF;CENTRO"
    filas = ["11111111H;Ana;B12345678;Centro Norte", "22222222J;Luis;B12345678;Centro Norte"]
    importar("users", cabecera, *filas)
    importar("companies", cabecera, *filas)
    original = servicio.model_persona_centro.fijar_principal
    fallidas = []

    def fijar_fallando_una_vez(persona_id, centro_id):
        if not fallidas:
            fallidas.append(persona_id)
            raise RuntimeError("bloqueo")
        return original(persona_id, centro_id)

    monkeypatch.setattr(servicio.model_persona_centro, "fijar_principal", fijar_fallando_una_vez)

    # Sin fechas ninguna vinculación nace como principal: ambas personas pasan por la reparación
    resultado = importar("associate", cabecera, *filas)

    assert resultado["success"] is True
    assert [f["action"] for f in resultado["results"]] == ["created", "created"]
    reparada = next(f["id_user"] for f in resultado["results"] if f["id_user"] != fallidas[0])
    assert len(_principales(session_factory, reparada)) == 1
    assert _principales(session_factory, fallidas[0]) == []
