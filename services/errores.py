"""Errores estructurales de la importación.

Se lanzan antes de procesar cualquier fila; los problemas de una fila concreta
nunca se propagan como excepción, se registran en el resultado.
"""


class ImportacionError(ValueError):
    """Petición de importación mal formada."""


class FaseInvalidaError(ImportacionError):
    def __init__(self, fase):
        super().__init__(f"Fase de importación no válida: {fase!r}")
        self.fase = fase


class ArchivoRequeridoError(ImportacionError):
    def __init__(self):
        super().__init__("Se requiere un fichero CSV")
