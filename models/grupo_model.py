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
from database.models import Grupo


class GrupoModel(BaseCRUDModel):
    """Modelo CRUD para los Grupos (ediciones) de los cursos."""
    model = Grupo

    def buscar_por_nombre(self, nombre: str, curso_id: str | None = None):
        """Busca un grupo por nombre, acotado al curso cuando se conoce.

        Args:
            nombre (str): Nombre del grupo.
            curso_id (str, optional): Curso al que debe pertenecer.

        Returns:
            Grupo | None: El primer grupo que coincide.
        """
        if not nombre:
            return None
        with self._get_session() as session:
            query = session.query(Grupo).filter(func.lower(Grupo.nombre) == nombre.strip().lower())
            if curso_id:
                query = query.filter(Grupo.curso_id == curso_id)
            return query.first()
