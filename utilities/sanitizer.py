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
import html
import math
import re
import unicodedata
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import pandas as pd

from config.mappings import PG_INT_MAX

_RE_ENTERO = re.compile(r"\d+", re.ASCII)
_RE_DNI = re.compile(r"^\d{8}[A-Z]$")
_RE_NIE = re.compile(r"^[XYZ]\d{7}[A-Z]$")
_RE_DNI_CORTO = re.compile(r"^\d{7}[A-Z]$")
_RE_HMS = re.compile(r"^(\d{1,2}):(\d{1,2})(?::(\d{1,2}))?$")
_RE_UNIDADES = re.compile(r"^(?:(\d+)\s*h)?\s*(?:(\d+)\s*m)?\s*(?:(\d+)\s*s)?$", re.IGNORECASE)
_RE_DMY = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_RE_YMD = re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$")


class Sanitizer:
    """Clase utilitaria estática para limpieza y validación de datos.

    Todas las funciones son totales: ante una entrada no interpretable devuelven
    un valor ausente ("" o None) en lugar de lanzar una excepción.
    """

    @staticmethod
    def _vacio(valor: Any) -> bool:
        if valor is None:
            return True
        try:
            if pd.isna(valor):
                return True
        except (TypeError, ValueError):
            pass
        return str(valor).strip() == ""

    # ----------------------------
    # IDENTIFICADORES
    # ----------------------------
    @staticmethod
    def normalizar_identificador(valor: Any) -> str:
        """Elimina todo lo que no sea alfanumérico y pasa a mayúsculas."""
        if Sanitizer._vacio(valor):
            return ""
        return re.sub(r"[^A-Z0-9]", "", str(valor).upper())

    @staticmethod
    def normalizar_dni(valor: Any) -> str:
        """
        Limpia puntos, comas, guiones y espacios (incluidos NBSP y ZWSP) de un DNI/NIE.

        Args:
            valor (Any): Valor de entrada.

        Returns:
            str: Documento en mayúsculas; "" si está vacío o son todo ceros.
        """
        if Sanitizer._vacio(valor):
            return ""
        txt = re.sub(r"[.,\-\s\u00a0\u200b]", "", str(valor)).upper()
        txt = re.sub(r"[^A-Z0-9]", "", txt)
        if not txt or set(txt) == {"0"}:
            return ""
        return txt

    @staticmethod
    def completar_dni(dni: str) -> str:
        """Rellena con un cero a la izquierda los DNI de 7 dígitos + letra."""
        if dni and _RE_DNI_CORTO.match(dni):
            return "0" + dni
        return dni

    @staticmethod
    def es_dni_nie_valido(dni: str) -> bool:
        """Comprueba el formato (no la letra de control) de un DNI o NIE."""
        return bool(dni) and bool(_RE_DNI.match(dni) or _RE_NIE.match(dni))

    @staticmethod
    def es_nie(dni: str) -> bool:
        return bool(dni) and bool(_RE_NIE.match(dni))

    @staticmethod
    def normalizar_nss(valor: Any) -> str:
        """
        Normaliza un número de la Seguridad Social.

        Los exportadores de hojas de cálculo a veces lo escriben en notación
        científica (`2.8123E+11`); se expande al entero antes de extraer los dígitos.

        Args:
            valor (Any): Valor de entrada.

        Returns:
            str: Solo dígitos; "" si está vacío o son todo ceros.
        """
        if Sanitizer._vacio(valor):
            return ""
        txt = str(valor).strip()
        if re.search(r"e\+?\d", txt, re.IGNORECASE):
            try:
                txt = format(Decimal(txt.replace(",", ".")).to_integral_value(), "f")
            except InvalidOperation:
                pass
        digitos = re.sub(r"\D", "", txt)
        if not digitos or set(digitos) == {"0"}:
            return ""
        return digitos

    @staticmethod
    def normalizar_nombre(valor: Any) -> str:
        """Quita tildes, colapsa espacios y pasa a minúsculas. Clave para comparar nombres."""
        if Sanitizer._vacio(valor):
            return ""
        txt = unicodedata.normalize("NFD", str(valor))
        txt = "".join(c for c in txt if unicodedata.category(c) != "Mn")
        return re.sub(r"\s+", " ", txt).strip().lower()

    @staticmethod
    def es_correo_valido(valor: Any) -> bool:
        return not Sanitizer._vacio(valor) and "@" in str(valor)

    @staticmethod
    def es_numerico(valor: Any) -> bool:
        return not Sanitizer._vacio(valor) and _RE_ENTERO.fullmatch(str(valor).strip()) is not None

    # ----------------------------
    # NÚMEROS
    # ----------------------------
    @staticmethod
    def parsear_entero(valor: Any) -> Optional[int]:
        """Convierte a entero admitiendo '12', '12.0' o '12,0'. None si no es posible."""
        if Sanitizer._vacio(valor):
            return None
        txt = str(valor).strip().replace(",", ".")
        try:
            numero = float(txt)
        except ValueError:
            return None
        if math.isnan(numero) or math.isinf(numero):
            return None
        return int(numero)

    @staticmethod
    def parsear_decimal(valor: Any) -> Optional[float]:
        """
        Convierte un valor a float, manejando comas decimales
        y valores no numéricos.

        Args:
            valor (Any): Valor de entrada (str, float, int).

        Returns:
            float | None: Valor numérico o None si es inválido.
        """
        if Sanitizer._vacio(valor):
            return None
        s_val = str(valor).strip().replace(',', '.')
        if s_val in ["-", "nan", "None"]:
            return None
        try:
            numero = float(s_val)
        except ValueError:
            return None
        return None if math.isnan(numero) else numero

    @staticmethod
    def parsear_porcentaje(valor: Any) -> Optional[float]:
        """Porcentaje acotado a [0, 100] y redondeado a 2 decimales (mitad hacia arriba)."""
        numero = Sanitizer.parsear_decimal(valor)
        if numero is None:
            return None
        numero = min(100.0, max(0.0, numero))
        return math.floor(numero * 100 + 0.5) / 100

    @staticmethod
    def parsear_duracion(valor: Any) -> Optional[int]:
        """
        Convierte una duración a segundos.

        Formatos admitidos: entero en segundos (o milisegundos si excede el máximo
        de 32 bits), `HH:MM:SS`, `MM:SS`, `06h 14m 24s`, y como último recurso el
        entero inicial del texto.

        Args:
            valor (Any): Valor de entrada.

        Returns:
            int | None: Segundos en [0, PG_INT_MAX], o None si no se reconoce.
        """
        if Sanitizer._vacio(valor):
            return None
        txt = str(valor).strip()

        if re.fullmatch(r"-?\d+", txt):
            segundos = int(txt)
            if segundos < 0:
                return 0
            if segundos > PG_INT_MAX:
                segundos //= 1000
            return min(segundos, PG_INT_MAX)

        hms = _RE_HMS.match(txt)
        if hms:
            a, b, c = hms.groups()
            if c is None:
                segundos = int(a) * 60 + int(b)
            else:
                segundos = int(a) * 3600 + int(b) * 60 + int(c)
            return min(segundos, PG_INT_MAX)

        unidades = _RE_UNIDADES.match(txt)
        if unidades:
            h, m, s = (int(x) if x else 0 for x in unidades.groups())
            segundos = h * 3600 + m * 60 + s
            if segundos > 0:
                return min(segundos, PG_INT_MAX)

        inicial = re.match(r"^(\d+)", txt)
        if inicial:
            return min(int(inicial.group(1)), PG_INT_MAX)
        return None

    # ----------------------------
    # FECHAS
    # ----------------------------
    @staticmethod
    def parsear_fecha(valor: Any) -> Optional[date]:
        """
        Interpreta una fecha en los formatos habituales de las exportaciones.

        Orden: epoch en milisegundos (> 1e10) o segundos (> 1e9), ISO 8601,
        RFC 2822, `dd/mm/yyyy` o `dd-mm-yyyy`, `yyyy-mm-dd` o `yyyy/mm/dd`.

        Args:
            valor (Any): Valor de entrada.

        Returns:
            date | None: La fecha, o None si no se reconoce o no existe en el calendario.
        """
        if Sanitizer._vacio(valor):
            return None
        if isinstance(valor, datetime):
            return valor.date()
        if isinstance(valor, date):
            return valor
        txt = str(valor).strip()

        if _RE_ENTERO.fullmatch(txt):
            numero = int(txt)
            try:
                if numero > 1e10:
                    return datetime.fromtimestamp(numero / 1000, tz=timezone.utc).date()
                if numero > 1e9:
                    return datetime.fromtimestamp(numero, tz=timezone.utc).date()
            except (OverflowError, OSError, ValueError):
                return None

        try:
            return datetime.fromisoformat(txt.replace("Z", "+00:00")).date()
        except ValueError:
            pass

        try:
            return parsedate_to_datetime(txt).date()
        except (TypeError, ValueError, IndexError):
            pass

        for patron, orden in ((_RE_DMY, (2, 1, 0)), (_RE_YMD, (0, 1, 2))):
            m = patron.match(txt)
            if m:
                partes = [int(p) for p in m.groups()]
                anio, mes, dia = (partes[i] for i in orden)
                try:
                    return date(anio, mes, dia)
                except ValueError:
                    return None
        return None

    # ----------------------------
    # TEXTOS LIBRES
    # ----------------------------
    @staticmethod
    def limpiar_descripcion(valor: Any) -> Optional[str]:
        """
        Convierte una descripción HTML (o con pseudo-etiquetas sueltas como `br /`
        o `/p`) en texto plano con saltos de línea.

        Args:
            valor (Any): Texto de entrada.

        Returns:
            str | None: Líneas no vacías con los espacios colapsados, o None.
        """
        if Sanitizer._vacio(valor):
            return None
        txt = html.unescape(str(valor))
        txt = re.sub(r"<[^>]*>", "\n", txt)
        txt = re.sub(r"(?:^|\s)br\s*/?(?=\s|$)", "\n", txt, flags=re.IGNORECASE)
        txt = re.sub(r"(?:^|\s)/?p(?=\s|$)", "\n", txt, flags=re.IGNORECASE)
        lineas = [re.sub(r"\s+", " ", linea).strip() for linea in txt.splitlines()]
        lineas = [linea for linea in lineas if linea]
        return "\n".join(lineas) or None

    @staticmethod
    def mapear_modalidad(valor: Any) -> str:
        """Traduce la modalidad del CSV a 'Online', 'Presencial' o 'Mixta'."""
        txt = Sanitizer.normalizar_nombre(valor)
        if txt.startswith("presencial"):
            return "Presencial"
        if txt in ("mixta", "mixto", "semipresencial", "blended"):
            return "Mixta"
        return "Online"
