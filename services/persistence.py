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
from typing import Optional

from config.mappings import (
    FASES, FASE_USUARIOS, FASE_EMPRESAS, FASE_ASOCIAR, FASE_CURSOS, FASE_GRUPOS
)
from controllers.import_processor import CsvEngine
from database.schemas import ResultadoFila, ErrorFila, ResultadoImportacion
from models.centro_model import CentroModel
from models.curso_model import CursoModel
from models.empresa_model import EmpresaModel
from models.grupo_model import GrupoModel
from models.matricula_model import MatriculaModel, PersonaGrupoModel
from models.persona_centro_model import PersonaCentroModel
from models.persona_model import PersonaModel
from services.contexto import ContextoImportacion
from services.errores import ArchivoRequeridoError, FaseInvalidaError
from services.filas_erroneas import RegistroFilasErroneas
from services.resolutor_cursos import ResolutorCursos, tiene_datos_curso
from services.resolutor_empresas import ResolutorEmpresas
from services.resolutor_personas import ResolutorPersonas
from utilities.sanitizer import Sanitizer

logger = logging.getLogger(__name__)

INTERVALO_PROGRESO = 1000


class ImportacionService:
    """
    Servicio que orquesta una fase de importación sobre un fichero CSV.

    Procesa las filas de una en una, en orden, delegando en los resolutores de
    cada entidad. Ninguna fila detiene la ejecución: cada una termina como
    `ok`, `skipped` (con motivo) o `error` (excepción capturada).
    """

    def __init__(self, session_factory=None, registro_filas: Optional[RegistroFilasErroneas] = None):
        """
        Inicializa el servicio instanciando los modelos necesarios.

        Args:
            session_factory (sessionmaker, optional): Fábrica de sesiones para todos los modelos.
            registro_filas (RegistroFilasErroneas, optional): Destino de las filas no procesadas.
        """
        self.model_persona = PersonaModel(session_factory)
        self.model_empresa = EmpresaModel(session_factory)
        self.model_centro = CentroModel(session_factory)
        self.model_curso = CursoModel(session_factory)
        self.model_grupo = GrupoModel(session_factory)
        self.model_persona_centro = PersonaCentroModel(session_factory)
        self.model_matricula = MatriculaModel(session_factory)
        self.model_persona_grupo = PersonaGrupoModel(session_factory)
        self.registro_filas = registro_filas or RegistroFilasErroneas()

    # ----------------------------
    # PUNTO DE ENTRADA
    # ----------------------------
    def procesar(self, contenido: bytes, fase: str, limite_filas: Optional[int] = None) -> dict:
        """
        Ejecuta una fase de importación sobre el contenido de un CSV.

        Args:
            contenido (bytes): Bytes del fichero subido.
            fase (str): Una de `users`, `companies`, `associate`, `courses`, `groups`.
            limite_filas (int, optional): Máximo de filas a procesar.

        Returns:
            dict: `{success, results, errors}` con el desenlace de cada fila.

        Raises:
            ArchivoRequeridoError: Si no se recibe contenido.
            FaseInvalidaError: Si la fase no es una de las admitidas.
        """
        if not contenido:
            raise ArchivoRequeridoError()
        if fase not in FASES:
            raise FaseInvalidaError(fase)

        csv = CsvEngine(contenido)
        ctx = self._preparar_contexto(csv, fase)
        personas = ResolutorPersonas(ctx, self.model_persona)
        empresas = ResolutorEmpresas(ctx, self.model_empresa, self.model_centro)
        cursos = ResolutorCursos(ctx, self.model_curso, self.model_grupo)

        manejadores = {
            FASE_USUARIOS: lambda i, f: self._fase_usuarios(i, f, personas),
            FASE_EMPRESAS: lambda i, f: self._fase_empresas(i, f, empresas),
            FASE_ASOCIAR: lambda i, f: self._fase_asociar(i, f, personas, empresas),
            FASE_CURSOS: lambda i, f: self._fase_cursos(i, f, personas, cursos),
            FASE_GRUPOS: lambda i, f: self._fase_grupos(i, f, personas, empresas, cursos),
        }
        manejar = manejadores[fase]

        resultado = ResultadoImportacion()
        logger.info("Inicio de importación: fase=%s separador=%r", fase, csv.separador)

        for idx, fila in enumerate(csv, start=1):
            if limite_filas is not None and idx > limite_filas:
                break
            try:
                desenlace = manejar(idx, fila)
                resultado.results.append(desenlace)
                if desenlace.status == "skipped":
                    self.registro_filas.registrar(idx, fase, desenlace.reason, fila)
            except Exception as e:
                logger.exception("Fila %d (fase %s): error inesperado", idx, fase)
                resultado.errors.append(ErrorFila(row=idx, phase=fase, error=str(e)))
                resultado.results.append(ResultadoFila(row=idx, phase=fase, status="error", reason=str(e)))
                self.registro_filas.registrar(idx, fase, str(e), fila)

            if idx % INTERVALO_PROGRESO == 0:
                logger.info("Fase %s: %d filas procesadas", fase, idx)

        if fase == FASE_ASOCIAR:
            corregidos = self.asegurar_centro_principal()
            logger.info("Centro principal corregido para %d personas", corregidos)

        logger.info("Fin de importación: fase=%s filas=%d errores=%d",
                    fase, len(resultado.results), len(resultado.errors))
        return resultado.to_dict()

    def _preparar_contexto(self, csv: CsvEngine, fase: str) -> ContextoImportacion:
        """Carga las cachés de la ejecución desde la base de datos."""
        ctx = ContextoImportacion().cargar(
            personas=self.model_persona.get_all(),
            empresas=self.model_empresa.get_all(),
            centros=self.model_centro.get_all(),
            cursos=self.model_curso.get_all(),
            grupos=self.model_grupo.get_all(),
        )
        if fase in (FASE_EMPRESAS, FASE_GRUPOS):
            ctx.preescanear_centros(csv)
        return ctx

    # ----------------------------
    # FASES
    # ----------------------------
    @staticmethod
    def _omitida(idx, fase, motivo, **ids) -> ResultadoFila:
        return ResultadoFila(row=idx, phase=fase, status="skipped", reason=motivo, **ids)

    def _fase_usuarios(self, idx, fila, personas: ResolutorPersonas) -> ResultadoFila:
        r = personas.resolver(fila, FASE_USUARIOS)
        if not r.ok:
            return self._omitida(idx, FASE_USUARIOS, r.motivo)
        return ResultadoFila(row=idx, phase=FASE_USUARIOS, status="ok",
                             id_user=r.entidad.id, matched_by=r.coincidencia)

    def _fase_empresas(self, idx, fila, empresas: ResolutorEmpresas) -> ResultadoFila:
        r_empresa = empresas.resolver_empresa(fila)
        if not r_empresa.ok:
            return self._omitida(idx, FASE_EMPRESAS, r_empresa.motivo)
        empresa = r_empresa.entidad

        r_centro = empresas.resolver_centro(fila, empresa)
        if not r_centro.ok:
            return self._omitida(idx, FASE_EMPRESAS, r_centro.motivo, id_company=empresa.id)
        return ResultadoFila(row=idx, phase=FASE_EMPRESAS, status="ok", id_company=empresa.id,
                             id_center=r_centro.entidad.id, matched_by=r_centro.coincidencia)

    def _fase_asociar(self, idx, fila, personas: ResolutorPersonas, empresas: ResolutorEmpresas) -> ResultadoFila:
        r_persona = personas.resolver(fila, FASE_ASOCIAR)
        if not r_persona.ok:
            return self._omitida(idx, FASE_ASOCIAR, r_persona.motivo)
        persona = r_persona.entidad

        if not (fila.get("center_name") or "").strip():
            return self._omitida(idx, FASE_ASOCIAR, "center_name_missing", id_user=persona.id)

        empresa = empresas.ctx.empresa_por_cif(fila.get("cif"))
        centro = empresas.centro_por_clave(fila, empresa)
        if centro is None:
            return self._omitida(idx, FASE_ASOCIAR, "center_not_found", id_user=persona.id,
                                 id_company=empresa.id if empresa else None)

        accion = self.model_persona_centro.registrar_vinculacion(
            persona.id,
            centro.id,
            Sanitizer.parsear_fecha(fila.get("user_center_start_date")),
            Sanitizer.parsear_fecha(fila.get("user_center_end_date")),
        )
        return ResultadoFila(row=idx, phase=FASE_ASOCIAR, status="ok", id_user=persona.id,
                             id_company=centro.empresa_id, id_center=centro.id,
                             matched_by=r_persona.coincidencia, action=accion)

    def _fase_cursos(self, idx, fila, personas: ResolutorPersonas, cursos: ResolutorCursos) -> ResultadoFila:
        r_persona = personas.resolver(fila, FASE_CURSOS)
        if not r_persona.ok:
            return self._omitida(idx, FASE_CURSOS, r_persona.motivo)
        persona = r_persona.entidad

        r_curso = cursos.resolver_curso(fila)
        if not r_curso.ok:
            return self._omitida(idx, FASE_CURSOS, r_curso.motivo, id_user=persona.id)
        curso = cursos.actualizar_curso(r_curso.entidad, fila)

        self.model_matricula.registrar(
            persona.id, curso.id,
            porcentaje=Sanitizer.parsear_porcentaje(fila.get("completion_percentage")),
            tiempo=Sanitizer.parsear_duracion(fila.get("time_spent")),
        )
        return ResultadoFila(row=idx, phase=FASE_CURSOS, status="ok", id_user=persona.id,
                             id_course=curso.id, matched_by=r_curso.coincidencia)

    def _fase_grupos(self, idx, fila, personas: ResolutorPersonas, empresas: ResolutorEmpresas,
                     cursos: ResolutorCursos) -> ResultadoFila:
        r_persona = personas.resolver(fila, FASE_GRUPOS)
        if not r_persona.ok:
            return self._omitida(idx, FASE_GRUPOS, r_persona.motivo)
        persona = r_persona.entidad

        empresa = empresas.ctx.empresa_por_cif(fila.get("cif"))
        centro = None
        if (fila.get("center_name") or "").strip() or empresa is not None:
            r_centro = empresas.resolver_centro(fila, empresa)
            centro = r_centro.entidad

        curso = None
        if tiene_datos_curso(fila):
            r_curso = cursos.resolver_curso(fila)
            if not r_curso.ok:
                return self._omitida(idx, FASE_GRUPOS, r_curso.motivo, id_user=persona.id)
            curso = r_curso.entidad

        r_grupo = cursos.resolver_grupo(fila, curso)
        if not r_grupo.ok:
            return self._omitida(idx, FASE_GRUPOS, r_grupo.motivo, id_user=persona.id,
                                 id_course=curso.id if curso else None)
        grupo = cursos.actualizar_grupo(r_grupo.entidad, fila, curso)

        porcentaje = Sanitizer.parsear_porcentaje(fila.get("completion_percentage"))
        tiempo = Sanitizer.parsear_duracion(fila.get("time_spent"))
        self.model_persona_grupo.registrar(
            persona.id, grupo.id,
            centro_id=centro.id if centro else None,
            porcentaje=porcentaje,
            tiempo=tiempo,
        )
        curso_id = curso.id if curso else grupo.curso_id
        if curso_id:
            self.model_matricula.actualizar_progreso(persona.id, curso_id, porcentaje, tiempo)

        return ResultadoFila(row=idx, phase=FASE_GRUPOS, status="ok", id_user=persona.id,
                             id_company=empresa.id if empresa else None,
                             id_center=centro.id if centro else None,
                             id_course=curso_id, id_group=grupo.id, matched_by=r_grupo.coincidencia)

    # ----------------------------
    # INVARIANTE DE CENTRO PRINCIPAL
    # ----------------------------
    def asegurar_centro_principal(self) -> int:
        """
        Garantiza que cada persona con vinculaciones tenga exactamente un centro principal.

        Para las personas sin ninguno (o con varios) se elige la vinculación con la
        fecha de inicio más reciente, o la primera si ninguna tiene fecha. Cada
        corrección va en su propia transacción; un fallo no impide las demás.

        Returns:
            int: Número de personas corregidas.
        """
        corregidos = 0
        for persona_id, vinculaciones in self.model_persona_centro.agrupar_por_persona().items():
            principales = sum(1 for v in vinculaciones if v.es_principal)
            if principales == 1:
                continue
            elegida = PersonaCentroModel.elegir_principal(vinculaciones)
            try:
                self.model_persona_centro.fijar_principal(persona_id, elegida.centro_id)
                corregidos += 1
            except Exception:
                logger.exception("No se pudo fijar el centro principal de la persona %s", persona_id)
        return corregidos
