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

from typing import Optional

from database.base_model import BaseCRUDModel
from database.models import Matricula, PersonaGrupo


class MatriculaModel(BaseCRUDModel):
    """Modelo CRUD de las matrículas (persona inscrita en un curso) y su progreso."""
    model = Matricula

    def registrar(self, persona_id: str, curso_id: str,
                  porcentaje: Optional[float] = None, tiempo: Optional[int] = None):
        """Crea o actualiza la matrícula de una persona en un curso.

        Args:
            persona_id (str): ID de la persona.
            curso_id (str): ID del curso.
            porcentaje (float, optional): Porcentaje completado (0-100).
            tiempo (int, optional): Tiempo dedicado en segundos.

        Returns:
            tuple: (Matricula, creada)
        """
        return self.upsert(
            {"persona_id": persona_id, "curso_id": curso_id},
            {"porcentaje_completado": porcentaje, "tiempo_dedicado": tiempo},
        )

    def actualizar_progreso(self, persona_id: str, curso_id: str,
                            porcentaje: Optional[float], tiempo: Optional[int]) -> bool:
        """Copia el progreso a una matrícula existente; nunca crea una nueva.

        Returns:
            bool: True si existía la matrícula.
        """
        existente = self.search(filters={"persona_id": persona_id, "curso_id": curso_id}, first=True)
        if not existente:
            return False
        cambios = {k: v for k, v in (("porcentaje_completado", porcentaje), ("tiempo_dedicado", tiempo))
                   if v is not None}
        if cambios:
            self.update(existente.id, cambios)
        return True


class PersonaGrupoModel(BaseCRUDModel):
    """Modelo CRUD de la pertenencia de personas a grupos."""
    model = PersonaGrupo

    def registrar(self, persona_id: str, grupo_id: str, centro_id: Optional[str] = None,
                  porcentaje: Optional[float] = None, tiempo: Optional[int] = None):
        """Crea o actualiza la pertenencia de una persona a un grupo.

        Returns:
            tuple: (PersonaGrupo, creada)
        """
        return self.upsert(
            {"persona_id": persona_id, "grupo_id": grupo_id},
            {"centro_id": centro_id, "porcentaje_completado": porcentaje, "tiempo_dedicado": tiempo},
        )
