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

import csv
import json
import logging
import os

from database.config import IMPORT_WRITE_BAD_ROWS, IMPORT_BAD_ROWS_PATH

logger = logging.getLogger(__name__)

CABECERA = ["row", "phase", "reason", "raw_json"]


class RegistroFilasErroneas:
    """Fichero CSV de diagnóstico, solo de anexado, con las filas no procesadas.

    Desactivado por defecto; las fallas de escritura se registran en el log y
    nunca interrumpen la importación.
    """

    def __init__(self, ruta: str = IMPORT_BAD_ROWS_PATH, activo: bool = IMPORT_WRITE_BAD_ROWS):
        self.ruta = ruta
        self.activo = activo

    def registrar(self, fila: int, fase: str, motivo: str, datos: dict) -> bool:
        """Anexa una fila al fichero de diagnóstico.

        Args:
            fila (int): Número de fila (base 1).
            fase (str): Fase de importación.
            motivo (str): Código de omisión o mensaje de error.
            datos (dict): Fila cruda tal y como salió del decodificador.

        Returns:
            bool: True si se escribió la fila.
        """
        if not self.activo:
            return False
        try:
            nuevo = not os.path.exists(self.ruta) or os.path.getsize(self.ruta) == 0
            with open(self.ruta, "a", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                if nuevo:
                    writer.writerow(CABECERA)
                writer.writerow([fila, fase, motivo, json.dumps(datos, ensure_ascii=False, default=str)])
            return True
        except OSError as e:
            logger.error("No se pudo escribir la fila %s en %s: %s", fila, self.ruta, e)
            return False
