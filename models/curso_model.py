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

from database.base_model import BaseCRUDModel
from database.models import Curso


class CursoModel(BaseCRUDModel):
    """Modelo CRUD para la gestión de Cursos."""
    model = Curso

    def buscar_por_nombre(self, nombre: str):
        """Busca un curso por nombre exacto sin distinguir mayúsculas.

        Args:
            nombre (str): Nombre del curso.

        Returns:
            Curso | None: El primer curso con ese nombre.
        """
        if not nombre:
            return None
        with self._get_session() as session:
            return (
                session.query(Curso)
                .filter(func.lower(Curso.nombre) == nombre.strip().lower())
                .first()
            )
