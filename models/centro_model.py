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

from sqlalchemy import func

from database.models import Centro
from database.base_model import BaseCRUDModel
from utilities.sanitizer import Sanitizer


class CentroModel(BaseCRUDModel):
    """Modelo CRUD para la gestión de Centros de trabajo."""
    model = Centro

    @staticmethod
    def clave_importacion(empresa_id: str, nombre: str) -> str:
        """Construye la clave sintética `empresaId_nombreNormalizado` de un centro.

        Args:
            empresa_id (str): ID de la empresa propietaria.
            nombre (str): Nombre del centro tal y como llega en el CSV.

        Returns:
            str: Clave de importación persistida en `Centro.import_id`.
        """
        return f"{empresa_id}_{Sanitizer.normalizar_nombre(nombre)}"

    def buscar_por_import_id(self, import_id: str):
        """Busca un centro por su clave de importación, sin distinguir mayúsculas."""
        if not import_id:
            return None
        with self._get_session() as session:
            return (
                session.query(Centro)
                .filter(func.lower(Centro.import_id) == import_id.lower())
                .first()
            )

    def de_empresa(self, empresa_id: str) -> list:
        """Recupera los centros de una empresa ordenados por nombre."""
        with self._get_session() as session:
            return (
                session.query(Centro)
                .filter(Centro.empresa_id == empresa_id)
                .order_by(Centro.nombre.asc())
                .all()
            )
