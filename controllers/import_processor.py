import io
import logging
import re
from typing import Dict, Iterator, List

import pandas as pd

from config.mappings import ALIAS_A_CANONICO, clave_encabezado
from database.config import CSV_ENCODING, CSV_CHUNK_SIZE

logger = logging.getLogger(__name__)

# "Expected 2 fields in line 12, saw 4"
_RE_LINEA_ERRONEA = re.compile(r"line (\d+)")


def canonizar_encabezado(columna: str) -> str:
    """Devuelve el nombre canónico de un encabezado, o el original si no es conocido."""
    return ALIAS_A_CANONICO.get(clave_encabezado(columna), str(columna))


class CsvEngine:
    """Motor de lectura de los CSV exportados por la nómina y el proveedor de formación.

    Decodifica el contenido con un juego de caracteres de un byte, detecta el
    separador a partir de la primera línea y expone las filas como diccionarios
    {campo canónico: valor crudo}. Es iterable varias veces: cada recorrido vuelve
    a leer el contenido original, por lo que una fase puede pre-escanear el
    fichero y después procesarlo.
    """

    def __init__(self, contenido: bytes, encoding: str = CSV_ENCODING, chunk_size: int = CSV_CHUNK_SIZE):
        """Inicializa el motor con el contenido del fichero.

        Args:
            contenido (bytes): Bytes del CSV tal y como llegan en la subida.
            encoding (str, optional): Codificación de un byte a aplicar.
            chunk_size (int, optional): Filas que pandas lee por bloque.
        """
        self.texto = contenido.decode(encoding, errors="replace") if contenido else ""
        self.chunk_size = max(1, chunk_size)
        self.separador = self.detectar_separador(self.texto)
        self.mapa_cols: Dict[str, str] = {}

    @staticmethod
    def detectar_separador(texto: str) -> str:
        """Elige ';' si la primera línea lo contiene y no tiene ','; si no, ','."""
        primera = texto.splitlines()[0] if texto else ""
        if ";" in primera and "," not in primera:
            return ";"
        return ","

    def mapear_columnas(self, columnas: List[str]) -> Dict[str, str]:
        """Identifica los campos canónicos a partir de los encabezados del fichero.

        El primer encabezado que reclama un campo canónico se queda con él; los
        siguientes (y los desconocidos) conservan su nombre original.

        Args:
            columnas (List[str]): Encabezados tal y como vienen en el CSV.

        Returns:
            Dict[str, str]: Mapeo {encabezado original: nombre de campo en la fila}.
        """
        mapa = {}
        usados = set()
        for i, col in enumerate(columnas):
            canonico = canonizar_encabezado(col)
            if canonico in usados:
                canonico = str(col) if str(col) not in usados else f"{col}_{i}"
            usados.add(canonico)
            mapa[col] = canonico
        self.mapa_cols = mapa
        return mapa

    def __iter__(self) -> Iterator[Dict[str, str]]:
        return self.filas()

    def _leer(self, texto: str, chunksize=None):
        return pd.read_csv(
            io.StringIO(texto),
            sep=self.separador,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            chunksize=chunksize,
        )

    def _registros(self, bloque) -> Iterator[Dict[str, str]]:
        mapa = self.mapear_columnas(list(bloque.columns))
        bloque = bloque.rename(columns=mapa)
        for registro in bloque.to_dict(orient="records"):
            yield {k: ("" if v is None else str(v).strip()) for k, v in registro.items()}

    def _previas_a_linea_erronea(self, error: Exception, entregadas: int) -> Iterator[Dict[str, str]]:
        """Filas válidas anteriores a la línea que provocó el error y aún no entregadas.

        pandas descarta el bloque completo que contiene la línea mal formada; se
        vuelve a leer el texto hasta la línea anterior a la indicada en el error.
        """
        m = _RE_LINEA_ERRONEA.search(str(error))
        if not m:
            return
        lineas = self.texto.splitlines()[:int(m.group(1)) - 1]
        try:
            previo = self._leer("\n".join(lineas))
        except (pd.errors.ParserError, pd.errors.EmptyDataError):
            return
        yield from self._registros(previo.iloc[entregadas:])

    def filas(self) -> Iterator[Dict[str, str]]:
        """Genera las filas del fichero de forma perezosa.

        Un error de parseo corta la secuencia en la línea mal formada: las filas
        anteriores se entregan y la importación continúa con ellas.

        Yields:
            Dict[str, str]: Fila con claves canónicas y valores sin espacios sobrantes.
        """
        if not self.texto.strip():
            return

        entregadas = 0
        try:
            for bloque in self._leer(self.texto, self.chunk_size):
                for fila in self._registros(bloque):
                    entregadas += 1
                    yield fila
        except pd.errors.ParserError as e:
            logger.warning("CSV malformado, se detiene la lectura tras %d filas: %s", entregadas, e)
            yield from self._previas_a_linea_erronea(e, entregadas)
        except pd.errors.EmptyDataError:
            logger.warning("CSV sin encabezados ni filas.")
