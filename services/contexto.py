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
from collections import defaultdict
from typing import Iterable

from models.empresa_model import EmpresaModel
from utilities.sanitizer import Sanitizer

logger = logging.getLogger(__name__)


def clave_dni(valor) -> str:
    return Sanitizer.completar_dni(Sanitizer.normalizar_dni(valor))


def clave_nombre_completo(*partes) -> str:
    return Sanitizer.normalizar_nombre(" ".join(str(p) for p in partes if p))


def clave_numero_patronal(valor) -> str:
    return Sanitizer.normalizar_identificador(valor)


def _indexar_primero(indice: dict, clave, entidad):
    """Indexa `entidad` salvo que la clave ya pertenezca a otra; refresca la propia."""
    actual = indice.get(clave)
    if actual is None or actual.id == entidad.id:
        indice[clave] = entidad


class ContextoImportacion:
    """Cachés de identidad de una ejecución de importación.

    Se construye una vez por ejecución y se pasa a todos los resolutores. Los
    índices "vistos" se llenan a medida que se resuelven filas y se consultan
    antes que los cargados desde la base de datos, de modo que dos filas del
    mismo CSV que se refieren a una entidad aún no persistida resuelven igual.
    """

    def __init__(self):
        # Personas cargadas de la base de datos, {id: persona} en orden de registro
        self.personas = {}
        self.personas_por_dni = {}
        self.personas_por_nss = {}
        self.personas_por_moodle = {}
        self.personas_por_nombre = {}
        self.personas_por_literal = {}

        # Personas vistas en esta ejecución
        self.vistos_dni = {}
        self.vistos_nss = {}
        self.vistos_moodle = {}
        self.vistos_nombre = {}

        self.empresas_por_cif = {}

        self.centros = {}
        self.centros_por_empresa = defaultdict(dict)
        self.centros_por_import_id = {}
        self.cache_centros = {}
        self.pendientes = set()
        # (clave cif, número patronal) -> nombres de centro en todo el fichero
        self.numeros_patronales_archivo = defaultdict(set)
        # (empresa_id, número patronal) -> nombres de centro ya resueltos en esta ejecución
        self.nombres_vistos_por_numero_patronal = defaultdict(set)

        self.cursos = {}
        self.cursos_por_moodle = {}
        self.cursos_por_nombre = {}
        self._nombre_de_curso = {}

        self.grupos_por_moodle = {}
        self.grupos_por_nombre = {}

    # ----------------------------
    # CARGA INICIAL
    # ----------------------------
    def cargar(self, personas: Iterable = (), empresas: Iterable = (), centros: Iterable = (),
               cursos: Iterable = (), grupos: Iterable = ()):
        """Indexa las entidades existentes en la base de datos.

        Args:
            personas, empresas, centros, cursos, grupos (Iterable): Registros ya persistidos.

        Returns:
            ContextoImportacion: La propia instancia, para encadenar.
        """
        for p in personas:
            self.registrar_persona(p)
        for e in empresas:
            self.registrar_empresa(e)
        for c in centros:
            self.registrar_centro(c)
        for c in cursos:
            self.registrar_curso(c)
        for g in grupos:
            self.registrar_grupo(g)
        logger.info(
            "Cachés cargadas: %d personas, %d empresas, %d centros, %d cursos, %d grupos",
            len(self.personas), len(self.empresas_por_cif), len(self.centros),
            len(self.cursos), len(self.grupos_por_moodle) + len(self.grupos_por_nombre),
        )
        return self

    def preescanear_centros(self, filas: Iterable[dict]):
        """Recorre el fichero completo anotando qué nombres de centro comparten número patronal.

        El número patronal se reutiliza en los datos de origen para centros
        distintos; este índice permite rechazar coincidencias ambiguas aunque
        el segundo nombre aparezca más abajo en el fichero.
        """
        for fila in filas:
            cif = EmpresaModel.clave_cif(fila.get("cif"))
            numero = clave_numero_patronal(fila.get("employer_number"))
            nombre = Sanitizer.normalizar_nombre(fila.get("center_name"))
            if cif and numero and nombre:
                self.numeros_patronales_archivo[(cif, numero)].add(nombre)

    # ----------------------------
    # PERSONAS
    # ----------------------------
    @staticmethod
    def _claves_persona(persona) -> dict:
        return {
            "dni": clave_dni(persona.dni),
            "nss": Sanitizer.normalizar_nss(persona.nss),
            "moodle": persona.moodle_id,
            "nombre": clave_nombre_completo(persona.nombre, persona.primer_apellido, persona.segundo_apellido),
        }

    @staticmethod
    def nombre_literal(*partes) -> str:
        """Nombre completo en minúsculas sin normalizar tildes."""
        return " ".join(" ".join(p for p in partes if p).split()).lower()

    def registrar_persona(self, persona):
        """Añade o refresca una persona en los índices cargados de la base de datos."""
        self.personas[persona.id] = persona
        literal = self.nombre_literal(persona.nombre, persona.primer_apellido, persona.segundo_apellido)
        if literal:
            _indexar_primero(self.personas_por_literal, literal, persona)
        claves = self._claves_persona(persona)
        if claves["dni"]:
            self.personas_por_dni[claves["dni"]] = persona
        if claves["nss"]:
            self.personas_por_nss[claves["nss"]] = persona
        if claves["moodle"] is not None:
            self.personas_por_moodle[claves["moodle"]] = persona
        if claves["nombre"]:
            _indexar_primero(self.personas_por_nombre, claves["nombre"], persona)

    def marcar_visto(self, persona):
        """Registra la persona en los índices de esta ejecución."""
        claves = self._claves_persona(persona)
        if claves["dni"]:
            self.vistos_dni[claves["dni"]] = persona
        if claves["nss"]:
            self.vistos_nss[claves["nss"]] = persona
        if claves["moodle"] is not None:
            self.vistos_moodle[claves["moodle"]] = persona
        if claves["nombre"]:
            self.vistos_nombre[claves["nombre"]] = persona

    def duenio_moodle(self, moodle_id):
        return self.vistos_moodle.get(moodle_id) or self.personas_por_moodle.get(moodle_id)

    # ----------------------------
    # EMPRESAS Y CENTROS
    # ----------------------------
    def registrar_empresa(self, empresa):
        self.empresas_por_cif[EmpresaModel.clave_cif(empresa.cif)] = empresa

    def empresa_por_cif(self, cif):
        clave = EmpresaModel.clave_cif(cif)
        return self.empresas_por_cif.get(clave) if clave else None

    def registrar_centro(self, centro, nombre_csv: str = "", numero_patronal: str = ""):
        """Añade o refresca un centro en la lista y en la caché (nombre, empresa).

        Si se indica, el nombre del CSV queda anotado como visto para su número patronal.
        """
        self.centros[centro.id] = centro
        self.centros_por_empresa[centro.empresa_id][centro.id] = centro
        if centro.import_id:
            _indexar_primero(self.centros_por_import_id, Sanitizer.normalizar_nombre(centro.import_id), centro)
        self.cache_centros[(Sanitizer.normalizar_nombre(centro.nombre), centro.empresa_id)] = centro

        nombre = Sanitizer.normalizar_nombre(nombre_csv)
        if nombre:
            self.cache_centros[(nombre, centro.empresa_id)] = centro
            numero = clave_numero_patronal(numero_patronal)
            if numero:
                self.nombres_vistos_por_numero_patronal[(centro.empresa_id, numero)].add(nombre)

    def centros_de_empresa(self, empresa_id: str) -> list:
        return list(self.centros_por_empresa.get(empresa_id, {}).values())

    def centro_por_import_id(self, clave: str):
        """Centro cuya clave de importación coincide con `clave`.

        Ambos lados se normalizan: los ULID se guardan en mayúsculas y el nombre
        en minúsculas.
        """
        if not clave:
            return None
        return self.centros_por_import_id.get(Sanitizer.normalizar_nombre(clave))

    # ----------------------------
    # CURSOS Y GRUPOS
    # ----------------------------
    def registrar_curso(self, curso):
        self.cursos[curso.id] = curso
        if curso.moodle_id is not None:
            self.cursos_por_moodle[curso.moodle_id] = curso

        # Un curso renombrado deja de responder a su nombre anterior
        nombre = Sanitizer.normalizar_nombre(curso.nombre)
        anterior = self._nombre_de_curso.get(curso.id)
        if anterior and anterior != nombre and getattr(self.cursos_por_nombre.get(anterior), "id", None) == curso.id:
            del self.cursos_por_nombre[anterior]
        self._nombre_de_curso[curso.id] = nombre
        if nombre:
            _indexar_primero(self.cursos_por_nombre, nombre, curso)

    def registrar_grupo(self, grupo):
        if grupo.moodle_id is not None:
            self.grupos_por_moodle[grupo.moodle_id] = grupo
        nombre = Sanitizer.normalizar_nombre(grupo.nombre)
        if nombre:
            self.grupos_por_nombre[(nombre, grupo.curso_id)] = grupo
