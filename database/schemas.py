from dataclasses import dataclass, field, asdict
from typing import List, Any, Optional


@dataclass
class Resolucion:
    """Resultado etiquetado de un resolutor de entidades.

    `entidad` es None cuando no hubo coincidencia ni creación; en ese caso `motivo`
    indica el código de omisión (ej. 'company_not_found').
    """
    entidad: Any = None
    coincidencia: Optional[str] = None  # 'nss', 'dni', 'import_id', 'created', ...
    motivo: Optional[str] = None

    @classmethod
    def exito(cls, entidad: Any, coincidencia: str) -> "Resolucion":
        return cls(entidad=entidad, coincidencia=coincidencia)

    @classmethod
    def fallo(cls, motivo: str) -> "Resolucion":
        return cls(motivo=motivo)

    @property
    def ok(self) -> bool:
        return self.entidad is not None


@dataclass
class ResultadoFila:
    """Desenlace de una fila del CSV dentro de una fase de importación."""
    row: int
    phase: str
    status: str  # 'ok', 'skipped', 'error'
    reason: Optional[str] = None
    id_user: Optional[str] = None
    id_company: Optional[str] = None
    id_center: Optional[str] = None
    id_course: Optional[str] = None
    id_group: Optional[str] = None
    matched_by: Optional[str] = None
    action: Optional[str] = None  # 'created', 'updated' (solo asociaciones)

    def to_dict(self) -> dict:
        """Serializa el desenlace omitiendo los campos vacíos."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ErrorFila:
    """Excepción inesperada capturada al procesar una fila."""
    row: int
    phase: str
    error: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ResultadoImportacion:
    """Resumen final de una ejecución de importación (una fase sobre un fichero)."""
    results: List[ResultadoFila] = field(default_factory=list)
    errors: List[ErrorFila] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
            "errors": [e.to_dict() for e in self.errors],
        }
