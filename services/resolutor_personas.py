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
import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from config.mappings import FASE_USUARIOS
from database.schemas import Resolucion
from models.persona_model import PersonaModel
from services.contexto import ContextoImportacion, clave_nombre_completo, clave_dni
from utilities.sanitizer import Sanitizer

logger = logging.getLogger(__name__)

_RE_LETRAS = re.compile(r"[A-Za-zÀ-ÿ]")


@dataclass
class DatosPersona:
    """Campos de persona extraídos y normalizados de una fila."""
    dni: str
    nss: str
    moodle_id: Optional[int]
    nombre: str
    primer_apellido: str
    segundo_apellido: str
    correo: str
    telefono: str
    nivel_educativo: str

    @classmethod
    def desde_fila(cls, fila: dict) -> "DatosPersona":
        primer = (fila.get("first_surname") or "").strip()
        segundo = (fila.get("second_surname") or "").strip()
        apellidos = (fila.get("apellidos") or "").strip()
        if not primer and apellidos:
            partes = apellidos.split(None, 1)
            primer = partes[0]
            segundo = segundo or (partes[1] if len(partes) > 1 else "")

        moodle_raw = fila.get("moodle_id_user")
        return cls(
            dni=clave_dni(fila.get("dni")),
            nss=Sanitizer.normalizar_nss(fila.get("nss")),
            moodle_id=Sanitizer.parsear_entero(moodle_raw) if Sanitizer.es_numerico(moodle_raw) else None,
            nombre=(fila.get("name") or "").strip(),
            primer_apellido=primer,
            segundo_apellido=segundo,
            correo=(fila.get("email") or "").strip(),
            telefono=(fila.get("phone") or "").strip(),
            nivel_educativo=(fila.get("education_level") or "").strip(),
        )

    @property
    def nombre_completo(self) -> str:
        return clave_nombre_completo(self.nombre, self.primer_apellido, self.segundo_apellido)

    @property
    def nombre_literal(self) -> str:
        return ContextoImportacion.nombre_literal(self.nombre, self.primer_apellido, self.segundo_apellido)

    def permite_crear(self) -> bool:
        """Hay al menos un dato que identifica a una persona real."""
        return (
            Sanitizer.es_dni_nie_valido(self.dni)
            or len(self.nss) >= 6
            or self.moodle_id is not None
            or Sanitizer.es_correo_valido(self.correo)
            or bool(_RE_LETRAS.search(self.nombre))
            or bool(_RE_LETRAS.search(self.primer_apellido))
        )


class ResolutorPersonas:
    """Localiza (y en la fase de usuarios, crea) la persona a la que se refiere una fila."""

    def __init__(self, contexto: ContextoImportacion, personas: PersonaModel):
        self.ctx = contexto
        self.personas = personas

    def resolver(self, fila: dict, fase: str) -> Resolucion:
        """Resuelve la persona de la fila.

        Prioridad: NSS, DNI, identificador del LMS, nombre completo normalizado
        (primero en los índices de esta ejecución y luego en los cargados),
        búsqueda literal por nombre y, por último, consulta directa por DNI.

        Args:
            fila (dict): Fila canónica.
            fase (str): Fase en curso; solo `users` puede crear personas.

        Returns:
            Resolucion: Persona encontrada/creada, o el motivo de la omisión.
        """
        datos = DatosPersona.desde_fila(fila)

        persona, coincidencia = self._buscar(datos)
        if persona is not None:
            persona = self._completar(persona, datos)
            self._recordar(persona)
            return Resolucion.exito(persona, coincidencia)

        if fase != FASE_USUARIOS:
            return Resolucion.fallo("user_not_found")
        if not datos.permite_crear():
            return Resolucion.fallo("insufficient_user_data")

        return self._crear(datos)

    def _buscar(self, datos: DatosPersona):
        ctx = self.ctx
        nombre = datos.nombre_completo
        candidatos = (
            (ctx.vistos_nss, datos.nss, "nss"),
            (ctx.vistos_dni, datos.dni, "dni"),
            (ctx.vistos_moodle, datos.moodle_id, "moodle_id"),
            (ctx.vistos_nombre, nombre, "full_name"),
            (ctx.personas_por_nss, datos.nss, "nss"),
            (ctx.personas_por_dni, datos.dni, "dni"),
            (ctx.personas_por_moodle, datos.moodle_id, "moodle_id"),
            (ctx.personas_por_nombre, nombre, "full_name"),
        )
        for indice, clave, etiqueta in candidatos:
            if clave in (None, ""):
                continue
            persona = indice.get(clave)
            if persona is not None:
                return persona, etiqueta

        literal = datos.nombre_literal
        if literal:
            persona = ctx.personas_por_literal.get(literal)
            if persona is not None:
                return persona, "name_scan"

        if datos.dni:
            persona = self.personas.buscar_por_dni(datos.dni)
            if persona is not None:
                return persona, "dni_found"
        return None, None

    def _completar(self, persona, datos: DatosPersona):
        """Rellena en la persona existente los datos que le falten."""
        cambios = {}
        if Sanitizer.es_nie(datos.dni) and persona.tipo_documento != "NIE" and clave_dni(persona.dni) == datos.dni:
            cambios["tipo_documento"] = "NIE"
        if datos.moodle_id is not None and persona.moodle_id is None:
            duenio = self.ctx.duenio_moodle(datos.moodle_id)
            if (duenio is None or duenio.id == persona.id) and self.personas.moodle_id_libre(datos.moodle_id, persona.id):
                cambios["moodle_id"] = datos.moodle_id
            else:
                logger.warning("El id de LMS %s ya pertenece a otra persona; no se asigna a %s",
                               datos.moodle_id, persona.id)
        if datos.nivel_educativo and not persona.nivel_educativo:
            cambios["nivel_educativo"] = datos.nivel_educativo

        if not cambios:
            return persona
        actualizada = self.personas.update(persona.id, cambios)
        return actualizada or persona

    def _recordar(self, persona):
        self.ctx.registrar_persona(persona)
        self.ctx.marcar_visto(persona)

    def _crear(self, datos: DatosPersona) -> Resolucion:
        moodle_id = datos.moodle_id
        if moodle_id is not None and self.ctx.duenio_moodle(moodle_id) is not None:
            moodle_id = None

        nueva = {
            "nombre": datos.nombre,
            "primer_apellido": datos.primer_apellido,
            "segundo_apellido": datos.segundo_apellido or None,
            "dni": datos.dni or None,
            "tipo_documento": "NIE" if Sanitizer.es_nie(datos.dni) else "DNI",
            "nss": datos.nss or None,
            "correo": datos.correo if Sanitizer.es_correo_valido(datos.correo) else None,
            "telefono": datos.telefono or None,
            "moodle_id": moodle_id,
            "nivel_educativo": datos.nivel_educativo or None,
        }
        try:
            persona = self.personas.create(nueva)
        except IntegrityError:
            # Otra fila (o ejecución) ya guardó ese documento
            persona = self.personas.buscar_por_dni(datos.dni) if datos.dni else None
            if persona is None:
                raise
            self._recordar(persona)
            return Resolucion.exito(persona, "dni_found")

        self._recordar(persona)
        return Resolucion.exito(persona, "created")
