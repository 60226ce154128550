#  Copyright (c) 2026 Fleer
#  Permission is hereby granted, free of charge, to any person obtaining a copy
#  of this software and associated documentation files (the "Software"), to deal
#  in the Software without restriction, including without limitation the rights
#  to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
#  copies of the Software, and to permit persons to whom the Software is
#  furnished to do so, subject to the following conditions:
#
#  The above copyright notice and this permission notice shall be included in all
#  copies or substantial portions of the Software.

import logging
import time
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from database.config import CREATE_RETRY_DELAY
from database.schemas import Resolucion
from models.curso_model import CursoModel
from models.grupo_model import GrupoModel
from services.contexto import ContextoImportacion
from utilities.sanitizer import Sanitizer

logger = logging.getLogger(__name__)


def _id_externo(valor) -> Optional[int]:
    return Sanitizer.parsear_entero(valor) if Sanitizer.es_numerico(valor) else None


def _texto(fila: dict, campo: str) -> str:
    return (fila.get(campo) or "").strip()


def tiene_datos_curso(fila: dict) -> bool:
    """La fila trae identificador o nombre de curso."""
    return bool(_texto(fila, "moodle_id_course") or _texto(fila, "course_name"))


class ResolutorCursos:
    """Resolución de cursos y grupos.

    El identificador externo (LMS) es autoritativo: si la fila lo trae solo se
    busca por él y, si no existe, se crea con él. El nombre solo se usa cuando
    no hay identificador.
    """

    def __init__(self, contexto: ContextoImportacion, cursos: CursoModel, grupos: GrupoModel,
                 espera_reintento: float = CREATE_RETRY_DELAY):
        self.ctx = contexto
        self.cursos = cursos
        self.grupos = grupos
        self.espera_reintento = espera_reintento

    def _crear_con_reintento(self, modelo, datos: dict, releer: Callable, entidad: str):
        """Crea un registro reintentando una vez tras una breve espera.

        Si el reintento también falla, se intenta leer el registro que otro
        proceso pudo haber creado.

        Returns:
            object | None: El registro creado o releído.
        """
        try:
            return modelo.create(datos)
        except SQLAlchemyError as e:
            logger.warning("Fallo creando %s (%s); reintento en %.2fs", entidad, e, self.espera_reintento)
        time.sleep(self.espera_reintento)
        try:
            return modelo.create(datos)
        except SQLAlchemyError as e:
            logger.warning("Segundo fallo creando %s: %s", entidad, e)
        return releer()

    # ----------------------------
    # CURSOS
    # ----------------------------
    @staticmethod
    def campos_curso(fila: dict) -> dict:
        """Campos de curso presentes en la fila (los ausentes no se incluyen)."""
        campos = {}
        if _texto(fila, "course_name"):
            campos["nombre"] = _texto(fila, "course_name")
        if _texto(fila, "course_short_name"):
            campos["nombre_corto"] = _texto(fila, "course_short_name")
        if _texto(fila, "course_modality"):
            campos["modalidad"] = Sanitizer.mapear_modalidad(fila.get("course_modality"))
        horas = Sanitizer.parsear_entero(fila.get("course_hours"))
        if horas is not None:
            campos["horas"] = max(0, horas)
        precio = Sanitizer.parsear_decimal(fila.get("price_per_hour"))
        if precio is not None:
            campos["precio_hora"] = precio
        if _texto(fila, "fundae_course_id"):
            campos["fundae_id"] = _texto(fila, "fundae_course_id")
        return campos

    def resolver_curso(self, fila: dict) -> Resolucion:
        """Localiza o crea el curso de la fila.

        Returns:
            Resolucion: Curso resuelto o motivo `course_not_found`.
        """
        moodle_id = _id_externo(fila.get("moodle_id_course"))
        nombre = _texto(fila, "course_name")

        if moodle_id is not None:
            curso = self.ctx.cursos_por_moodle.get(moodle_id)
            if curso is not None:
                return Resolucion.exito(curso, "moodle_id")
            curso = self.cursos.search(filters={"moodle_id": moodle_id}, first=True)
            if curso is not None:
                self.ctx.registrar_curso(curso)
                return Resolucion.exito(curso, "moodle_id")
            return self._crear_curso(fila, moodle_id, nombre or f"Curso {moodle_id}")

        if not nombre:
            return Resolucion.fallo("course_not_found")

        curso = self.ctx.cursos_por_nombre.get(Sanitizer.normalizar_nombre(nombre))
        if curso is not None:
            return Resolucion.exito(curso, "name")
        curso = self.cursos.buscar_por_nombre(nombre)
        if curso is not None:
            self.ctx.registrar_curso(curso)
            return Resolucion.exito(curso, "name")
        return self._crear_curso(fila, None, nombre)

    def _crear_curso(self, fila: dict, moodle_id: Optional[int], nombre: str) -> Resolucion:
        datos = {"modalidad": "Online", "horas": 0, **self.campos_curso(fila), "nombre": nombre, "moodle_id": moodle_id}

        def releer():
            if moodle_id is not None:
                return self.cursos.search(filters={"moodle_id": moodle_id}, first=True)
            return self.cursos.buscar_por_nombre(nombre)

        curso = self._crear_con_reintento(self.cursos, datos, releer, f"curso '{nombre}'")
        if curso is None:
            return Resolucion.fallo("course_not_found")
        self.ctx.registrar_curso(curso)
        return Resolucion.exito(curso, "created")

    def actualizar_curso(self, curso, fila: dict):
        """Aplica al curso solo los campos que trae la fila y que han cambiado."""
        cambios = {k: v for k, v in self.campos_curso(fila).items() if getattr(curso, k, None) != v}
        if not cambios:
            return curso
        actualizado = self.cursos.update(curso.id, cambios) or curso
        self.ctx.registrar_curso(actualizado)
        return actualizado

    # ----------------------------
    # GRUPOS
    # ----------------------------
    @staticmethod
    def campos_grupo(fila: dict) -> dict:
        campos = {}
        descripcion = Sanitizer.limpiar_descripcion(fila.get("group_description"))
        if descripcion:
            campos["descripcion"] = descripcion
        inicio = Sanitizer.parsear_fecha(fila.get("group_start_date"))
        if inicio:
            campos["fecha_inicio"] = inicio
        fin = Sanitizer.parsear_fecha(fila.get("group_end_date"))
        if fin:
            campos["fecha_final"] = fin
        if _texto(fila, "fundae_group_id"):
            campos["fundae_id"] = _texto(fila, "fundae_group_id")
        return campos

    def resolver_grupo(self, fila: dict, curso=None) -> Resolucion:
        """Localiza o crea el grupo de la fila, acotado al curso cuando se conoce.

        Returns:
            Resolucion: Grupo resuelto o motivo `group_not_found`.
        """
        moodle_id = _id_externo(fila.get("moodle_id_group"))
        nombre = _texto(fila, "group_name")
        curso_id = curso.id if curso is not None else None

        if moodle_id is not None:
            grupo = self.ctx.grupos_por_moodle.get(moodle_id)
            if grupo is None:
                grupo = self.grupos.search(filters={"moodle_id": moodle_id}, first=True)
                if grupo is not None:
                    self.ctx.registrar_grupo(grupo)
            if grupo is not None:
                if curso_id and grupo.curso_id and grupo.curso_id != curso_id:
                    logger.warning("El grupo %s pertenece al curso %s, la fila indica %s",
                                   moodle_id, grupo.curso_id, curso_id)
                return Resolucion.exito(grupo, "moodle_id")

        if not nombre:
            return Resolucion.fallo("group_not_found")

        if moodle_id is None:
            clave = Sanitizer.normalizar_nombre(nombre)
            grupo = self.ctx.grupos_por_nombre.get((clave, curso_id))
            if grupo is None and curso_id is None:
                grupo = next((g for (n, _), g in self.ctx.grupos_por_nombre.items() if n == clave), None)
            if grupo is None:
                grupo = self.grupos.buscar_por_nombre(nombre, curso_id)
                if grupo is not None:
                    self.ctx.registrar_grupo(grupo)
            if grupo is not None:
                return Resolucion.exito(grupo, "name")

        datos = {**self.campos_grupo(fila), "nombre": nombre, "moodle_id": moodle_id, "curso_id": curso_id}

        def releer():
            if moodle_id is not None:
                return self.grupos.search(filters={"moodle_id": moodle_id}, first=True)
            return self.grupos.buscar_por_nombre(nombre, curso_id)

        grupo = self._crear_con_reintento(self.grupos, datos, releer, f"grupo '{nombre}'")
        if grupo is None:
            return Resolucion.fallo("group_not_found")
        self.ctx.registrar_grupo(grupo)
        return Resolucion.exito(grupo, "created")

    def actualizar_grupo(self, grupo, fila: dict, curso=None):
        """Actualiza descripción, fechas y código FUNDAE del grupo con los datos de la fila."""
        cambios = {k: v for k, v in self.campos_grupo(fila).items() if getattr(grupo, k, None) != v}
        if curso is not None and grupo.curso_id is None:
            cambios["curso_id"] = curso.id
        if not cambios:
            return grupo
        actualizado = self.grupos.update(grupo.id, cambios) or grupo
        self.ctx.registrar_grupo(actualizado)
        return actualizado
