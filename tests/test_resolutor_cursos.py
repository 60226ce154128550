from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from database.models import Curso, Grupo
from models.curso_model import CursoModel
from models.grupo_model import GrupoModel
from services.contexto import ContextoImportacion
from services.resolutor_cursos import ResolutorCursos


class CursoModelInestable(CursoModel):
    """Falla las primeras `fallos` creaciones."""

    def __init__(self, session_factory, fallos):
        super().__init__(session_factory)
        self.fallos = fallos
        self.intentos = 0

    def create(self, data):
        self.intentos += 1
        if self.intentos <= self.fallos:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return super().create(data)


@pytest.fixture
def cursos(session_factory):
    return CursoModel(session_factory)


@pytest.fixture
def grupos(session_factory):
    return GrupoModel(session_factory)


def _resolutor(cursos, grupos):
    ctx = ContextoImportacion().cargar(cursos=cursos.get_all(), grupos=grupos.get_all())
    return ResolutorCursos(ctx, cursos, grupos, espera_reintento=0)


def test_id_externo_gana_al_nombre(cursos, grupos, contar):
    resolutor = _resolutor(cursos, grupos)
    viejo = resolutor.resolver_curso({"moodle_id_course": "77", "course_name": "Old Name"})
    nuevo = resolutor.resolver_curso({"moodle_id_course": "77", "course_name": "New Name"})

    assert viejo.coincidencia == "created"
    assert nuevo.coincidencia == "moodle_id"
    assert nuevo.entidad.id == viejo.entidad.id
    assert contar(Curso) == 1


def test_mismo_nombre_con_ids_distintos_no_se_fusiona(cursos, grupos, contar):
    resolutor = _resolutor(cursos, grupos)
    a = resolutor.resolver_curso({"moodle_id_course": "1", "course_name": "Excel"})
    b = resolutor.resolver_curso({"moodle_id_course": "2", "course_name": "Excel"})
    assert a.entidad.id != b.entidad.id
    assert contar(Curso) == 2


def test_sin_id_se_busca_por_nombre_normalizado(cursos, grupos, contar):
    resolutor = _resolutor(cursos, grupos)
    creado = resolutor.resolver_curso({"course_name": "Prevención de Riesgos", "course_modality": "presencial",
                                       "course_hours": "20", "price_per_hour": "12,5"})
    mismo = resolutor.resolver_curso({"course_name": "prevencion  de riesgos"})

    assert creado.entidad.modalidad == "Presencial"
    assert creado.entidad.horas == 20
    assert mismo.coincidencia == "name"
    assert mismo.entidad.id == creado.entidad.id
    assert contar(Curso) == 1


def test_sin_id_ni_nombre_no_hay_curso(cursos, grupos):
    assert _resolutor(cursos, grupos).resolver_curso({}).motivo == "course_not_found"


def test_actualiza_solo_los_campos_presentes(cursos, grupos):
    resolutor = _resolutor(cursos, grupos)
    curso = resolutor.resolver_curso({"moodle_id_course": "9", "course_name": "Inglés", "course_hours": "40"}).entidad

    actualizado = resolutor.actualizar_curso(curso, {"course_name": "Inglés B1"})

    assert actualizado.nombre == "Inglés B1"
    assert actualizado.horas == 40


def test_creacion_se_reintenta_una_vez(session_factory, grupos):
    inestable = CursoModelInestable(session_factory, fallos=1)
    r = _resolutor(inestable, grupos).resolver_curso({"moodle_id_course": "5", "course_name": "Word"})
    assert r.ok
    assert inestable.intentos == 2


def test_dos_fallos_terminan_en_relectura(session_factory, grupos):
    inestable = CursoModelInestable(session_factory, fallos=2)
    r = _resolutor(inestable, grupos).resolver_curso({"moodle_id_course": "5", "course_name": "Word"})
    assert r.motivo == "course_not_found"
    assert inestable.intentos == 2


def test_grupo_acotado_a_su_curso(cursos, grupos, contar):
    resolutor = _resolutor(cursos, grupos)
    curso_a = resolutor.resolver_curso({"course_name": "A"}).entidad
    curso_b = resolutor.resolver_curso({"course_name": "B"}).entidad

    g_a = resolutor.resolver_grupo({"group_name": "G1"}, curso_a)
    otra_vez = resolutor.resolver_grupo({"group_name": "g1"}, curso_a)
    g_b = resolutor.resolver_grupo({"group_name": "G1"}, curso_b)

    assert otra_vez.entidad.id == g_a.entidad.id
    assert otra_vez.coincidencia == "name"
    assert g_b.entidad.id != g_a.entidad.id
    assert contar(Grupo) == 2


def test_id_de_grupo_es_autoritativo(cursos, grupos, contar):
    resolutor = _resolutor(cursos, grupos)
    curso_a = resolutor.resolver_curso({"course_name": "A"}).entidad
    curso_b = resolutor.resolver_curso({"course_name": "B"}).entidad

    creado = resolutor.resolver_grupo({"moodle_id_group": "300", "group_name": "Mañanas"}, curso_a)
    # Distinto curso y nombre: manda el identificador
    mismo = resolutor.resolver_grupo({"moodle_id_group": "300", "group_name": "Tardes"}, curso_b)

    assert mismo.entidad.id == creado.entidad.id
    assert mismo.coincidencia == "moodle_id"
    assert contar(Grupo) == 1


def test_grupo_sin_id_necesita_nombre(cursos, grupos):
    assert _resolutor(cursos, grupos).resolver_grupo({}).motivo == "group_not_found"


def test_actualizar_grupo_limpia_descripcion_y_fechas(cursos, grupos):
    resolutor = _resolutor(cursos, grupos)
    grupo = resolutor.resolver_grupo({"group_name": "G1"}).entidad

    actualizado = resolutor.actualizar_grupo(grupo, {
        "group_description": "<p>Turno&nbsp;de mañana</p>",
        "group_start_date": "01/02/2025",
        "group_end_date": "2025-03-31",
        "fundae_group_id": "F-12",
    })

    assert actualizado.descripcion == "Turno de mañana"
    assert actualizado.fecha_inicio == date(2025, 2, 1)
    assert actualizado.fecha_final == date(2025, 3, 31)
    assert actualizado.fundae_id == "F-12"
