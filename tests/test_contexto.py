from database.models import Centro, Curso, Persona
from services.contexto import ContextoImportacion


def test_volver_a_registrar_una_persona_refresca_sin_duplicar(contexto):
    contexto.registrar_persona(Persona(id="P1", nombre="Ana", primer_apellido="Ruiz", dni="11111111H"))
    refrescada = Persona(id="P1", nombre="Ana", primer_apellido="Ruiz", dni="11111111H", moodle_id=55)

    contexto.registrar_persona(refrescada)

    assert list(contexto.personas) == ["P1"]
    assert contexto.personas_por_dni["11111111H"] is refrescada
    assert contexto.personas_por_literal["ana ruiz"] is refrescada
    assert contexto.personas_por_moodle[55] is refrescada


def test_el_nombre_literal_pertenece_a_la_primera_persona(contexto):
    primera = Persona(id="P1", nombre="Ana", primer_apellido="Ruiz")
    contexto.registrar_persona(primera)
    contexto.registrar_persona(Persona(id="P2", nombre="ana", primer_apellido="RUIZ"))

    assert contexto.personas_por_literal["ana ruiz"] is primera
    assert len(contexto.personas) == 2


def test_centros_indexados_por_empresa_y_clave(contexto):
    norte = Centro(id="C1", nombre="Norte", empresa_id="01ABC", import_id="01ABC_norte")
    otro = Centro(id="C2", nombre="Sur", empresa_id="01XYZ")
    contexto.registrar_centro(norte)
    contexto.registrar_centro(otro)
    contexto.registrar_centro(norte, "Norte", "281")

    assert contexto.centros_de_empresa("01ABC") == [norte]
    assert contexto.centros_de_empresa("sin-centros") == []
    assert contexto.centro_por_import_id("01abc_NORTE") is norte
    assert contexto.centro_por_import_id("") is None
    assert len(contexto.centros) == 2
    assert contexto.nombres_vistos_por_numero_patronal[("01ABC", "281")] == {"norte"}


def test_curso_renombrado_deja_de_responder_al_nombre_anterior(contexto):
    contexto.registrar_curso(Curso(id="K1", nombre="Excel", moodle_id=77))
    contexto.registrar_curso(Curso(id="K1", nombre="Excel Avanzado", moodle_id=77))

    assert "excel" not in contexto.cursos_por_nombre
    assert contexto.cursos_por_nombre["excel avanzado"].id == "K1"
    assert len(contexto.cursos) == 1


def test_cargar_indexa_todo_lo_persistido():
    ctx = ContextoImportacion().cargar(
        personas=[Persona(id="P1", nombre="Eva", primer_apellido="Sanz", nss="281111111111")],
        cursos=[Curso(id="K1", nombre="Word")],
    )
    assert ctx.personas_por_nss["281111111111"].id == "P1"
    assert ctx.cursos_por_nombre["word"].id == "K1"
