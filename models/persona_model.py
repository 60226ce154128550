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

from database.base_model import BaseCRUDModel
from database.models import Persona
from utilities.sanitizer import Sanitizer


class PersonaModel(BaseCRUDModel):
    """Modelo CRUD para la gestión de Personas (trabajadores y alumnos)."""
    model = Persona

    def buscar_por_dni(self, dni: str):
        """Busca una persona por DNI probando también la forma rellenada a 8 dígitos.

        Args:
            dni (str): DNI ya normalizado.

        Returns:
            Persona | None: La persona encontrada.
        """
        if not dni:
            return None
        candidatos = [dni]
        completo = Sanitizer.completar_dni(dni)
        if completo != dni:
            candidatos.append(completo)

        with self._get_session() as session:
            return session.query(Persona).filter(Persona.dni.in_(candidatos)).first()

    def moodle_id_libre(self, moodle_id: int, persona_id: str) -> bool:
        """Indica si el identificador del LMS no pertenece a otra persona."""
        with self._get_session() as session:
            duenio = session.query(Persona).filter(Persona.moodle_id == moodle_id).first()
            return duenio is None or duenio.id == persona_id
