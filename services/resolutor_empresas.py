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

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from config.mappings import CENTRO_DESCONOCIDO
from database.config import CENTER_CONTAINS_MIN_RATIO
from database.schemas import Resolucion
from models.centro_model import CentroModel
from models.empresa_model import EmpresaModel
from services.contexto import ContextoImportacion, clave_numero_patronal
from utilities.sanitizer import Sanitizer

logger = logging.getLogger(__name__)


class ResolutorEmpresas:
    """Resolución de empresas (por CIF) y de sus centros de trabajo."""

    def __init__(self, contexto: ContextoImportacion, empresas: EmpresaModel, centros: CentroModel,
                 ratio_contencion: float = CENTER_CONTAINS_MIN_RATIO):
        self.ctx = contexto
        self.empresas = empresas
        self.centros = centros
        self.ratio_contencion = ratio_contencion

    # ----------------------------
    # EMPRESAS
    # ----------------------------
    def resolver_empresa(self, fila: dict) -> Resolucion:
        """Localiza o crea la empresa de la fila. Sin CIF no hay empresa.

        Args:
            fila (dict): Fila canónica.

        Returns:
            Resolucion: Empresa resuelta o motivo `company_not_found`.
        """
        cif = "".join((fila.get("cif") or "").split()).upper()
        if not cif:
            return Resolucion.fallo("company_not_found")

        empresa = self.ctx.empresa_por_cif(cif)
        if empresa is not None:
            return Resolucion.exito(empresa, "cache")

        empresa = self.empresas.buscar_por_cif(cif)
        if empresa is not None:
            self.ctx.registrar_empresa(empresa)
            return Resolucion.exito(empresa, "cif")

        nombre = (fila.get("company_name") or "").strip() or None
        razon_social = (fila.get("corporate_name") or "").strip() or None
        try:
            self.empresas.create({"cif": cif, "nombre": nombre or razon_social, "razon_social": razon_social})
        except IntegrityError:
            logger.warning("Empresa con CIF %s creada en paralelo; se vuelve a leer", cif)

        empresa = self.empresas.buscar_por_cif(cif)
        if empresa is None:
            return Resolucion.fallo("company_not_found")
        self.ctx.registrar_empresa(empresa)
        return Resolucion.exito(empresa, "created")

    # ----------------------------
    # CENTROS
    # ----------------------------
    def _contiene(self, a: str, b: str) -> bool:
        """Contención en ambos sentidos exigiendo una longitud mínima relativa a la mayor."""
        if not a or not b:
            return False
        corto, largo = (a, b) if len(a) <= len(b) else (b, a)
        minimo = max(4, int(len(largo) * self.ratio_contencion + 0.5))
        return corto in largo and len(corto) >= minimo

    def resolver_centro(self, fila: dict, empresa=None) -> Resolucion:
        """Localiza o crea el centro de la fila dentro de su empresa.

        Orden: sin empresa, búsqueda global por nombre; clave de importación;
        caché de la ejecución; nombre exacto; contención de nombres; número
        patronal (solo si no es ambiguo); centro centinela si la fila no trae
        nombre; y, por último, creación con clave de importación.

        Args:
            fila (dict): Fila canónica.
            empresa (Empresa, optional): Empresa ya resuelta.

        Returns:
            Resolucion: Centro resuelto o motivo `center_not_found`.
        """
        nombre_csv = (fila.get("center_name") or "").strip()
        nombre = Sanitizer.normalizar_nombre(nombre_csv)
        numero_csv = (fila.get("employer_number") or "").strip()

        if empresa is None:
            return self._resolver_sin_empresa(nombre)

        propios = self.ctx.centros_de_empresa(empresa.id)

        if nombre:
            centro = self.ctx.centro_por_import_id(CentroModel.clave_importacion(empresa.id, nombre_csv))
            if centro is not None and centro.empresa_id == empresa.id:
                return self._cachear(centro, nombre_csv, numero_csv, "import_id")

            centro = self.ctx.cache_centros.get((nombre, empresa.id))
            if centro is not None:
                return self._cachear(centro, nombre_csv, numero_csv, "cache")

            for c in propios:
                if Sanitizer.normalizar_nombre(c.nombre) == nombre:
                    return self._cachear(c, nombre_csv, numero_csv, "name")

            for c in propios:
                if self._contiene(nombre, Sanitizer.normalizar_nombre(c.nombre)):
                    return self._cachear(c, nombre_csv, numero_csv, "contains")

        centro = self._por_numero_patronal(fila, empresa, propios, nombre, numero_csv)
        if centro is not None:
            return self._cachear(centro, nombre_csv, numero_csv, "employer_number")

        if not nombre:
            return self._centinela(empresa)

        return self._crear(empresa, nombre_csv, numero_csv)

    def _resolver_sin_empresa(self, nombre: str) -> Resolucion:
        if not nombre:
            return Resolucion.fallo("center_not_found")
        for c in self.ctx.centros.values():
            if Sanitizer.normalizar_nombre(c.nombre) == nombre:
                return Resolucion.exito(c, "global_name")
        for c in self.ctx.centros.values():
            otro = Sanitizer.normalizar_nombre(c.nombre)
            if otro and (otro in nombre or nombre in otro):
                return Resolucion.exito(c, "global_contains")
        return Resolucion.fallo("center_not_found")

    def _por_numero_patronal(self, fila, empresa, propios, nombre, numero_csv):
        numero = clave_numero_patronal(numero_csv)
        if not numero:
            return None
        candidatos = [c for c in propios if clave_numero_patronal(c.numero_patronal) == numero]
        if len(candidatos) != 1:
            if candidatos:
                logger.warning("Número patronal %s compartido por %d centros de la empresa %s; no se usa",
                               numero, len(candidatos), empresa.id)
            return None

        candidato = candidatos[0]
        en_archivo = self.ctx.numeros_patronales_archivo.get((EmpresaModel.clave_cif(fila.get("cif")), numero), set())
        vistos = self.ctx.nombres_vistos_por_numero_patronal.get((empresa.id, numero), set())
        otros = (set(en_archivo) | set(vistos)) - {nombre}
        if otros:
            logger.warning("Número patronal %s ambiguo para '%s' (otros nombres: %s)",
                           numero, nombre, ", ".join(sorted(otros)))
            return None
        return candidato

    def _centinela(self, empresa) -> Resolucion:
        nombre = Sanitizer.normalizar_nombre(CENTRO_DESCONOCIDO)
        centro = self.ctx.cache_centros.get((nombre, empresa.id))
        if centro is not None:
            return Resolucion.exito(centro, "unknown")
        resultado = self._crear(empresa, CENTRO_DESCONOCIDO, "")
        if resultado.ok:
            resultado.coincidencia = "unknown"
        return resultado

    def _crear(self, empresa, nombre_csv: str, numero_csv: str) -> Resolucion:
        clave = CentroModel.clave_importacion(empresa.id, nombre_csv)
        if clave in self.ctx.pendientes:
            centro = self._releer(empresa, nombre_csv, clave)
            if centro is not None:
                return self._cachear(centro, nombre_csv, numero_csv, "import_id")
            return Resolucion.fallo("center_not_found")

        self.ctx.pendientes.add(clave)
        try:
            centro = self.centros.create({
                "nombre": nombre_csv,
                "numero_patronal": numero_csv or None,
                "empresa_id": empresa.id,
                "import_id": clave,
            })
            return self._cachear(centro, nombre_csv, numero_csv, "created")
        except SQLAlchemyError as e:
            logger.warning("No se pudo crear el centro '%s' de la empresa %s: %s", nombre_csv, empresa.id, e)
            centro = self._releer(empresa, nombre_csv, clave)
            if centro is not None:
                return self._cachear(centro, nombre_csv, numero_csv, "name")
            return Resolucion.fallo("center_not_found")
        finally:
            self.ctx.pendientes.discard(clave)

    def _releer(self, empresa, nombre_csv: str, clave: str):
        centro = self.centros.buscar_por_import_id(clave)
        if centro is not None:
            return centro
        nombre = Sanitizer.normalizar_nombre(nombre_csv)
        for c in self.centros.de_empresa(empresa.id):
            if Sanitizer.normalizar_nombre(c.nombre) == nombre:
                return c
        return None

    def _cachear(self, centro, nombre_csv: str, numero_csv: str, coincidencia: str) -> Resolucion:
        self.ctx.registrar_centro(centro, nombre_csv, numero_csv)
        return Resolucion.exito(centro, coincidencia)

    # ----------------------------
    # FASE DE ASOCIACIÓN
    # ----------------------------
    def centro_por_clave(self, fila: dict, empresa=None):
        """Busca (sin crear) el centro de una fila por su clave de importación.

        Con empresa se usa la clave `empresaId_nombre`; se admite también la clave
        heredada que era solo el nombre normalizado.

        Returns:
            Centro | None: El centro encontrado.
        """
        nombre_csv = (fila.get("center_name") or "").strip()
        nombre = Sanitizer.normalizar_nombre(nombre_csv)
        if not nombre:
            return None

        claves = [nombre]
        if empresa is not None:
            claves.insert(0, CentroModel.clave_importacion(empresa.id, nombre_csv))

        for clave in claves:
            centro = self.ctx.centro_por_import_id(clave)
            if centro is not None:
                return centro
            centro = self.centros.buscar_por_import_id(clave)
            if centro is not None:
                self.ctx.registrar_centro(centro)
                return centro
        return None
