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

from collections import defaultdict
from datetime import date
from typing import Optional

from database.base_model import BaseCRUDModel
from database.models import PersonaCentro


class PersonaCentroModel(BaseCRUDModel):
    """Modelo CRUD de las vinculaciones persona-centro.

    Mantiene la regla de negocio de que cada persona con vinculaciones tiene
    exactamente un centro principal.
    """
    model = PersonaCentro

    @staticmethod
    def _mas_reciente(actual: Optional[date], nueva: Optional[date]) -> Optional[date]:
        if nueva is None:
            return actual
        if actual is None or actual < nueva:
            return nueva
        return actual

    def registrar_vinculacion(self, persona_id: str, centro_id: str,
                              fecha_inicio: Optional[date], fecha_final: Optional[date]):
        """Crea o amplía la vinculación de una persona con un centro en una transacción.

        Las fechas solo avanzan: se conserva la fecha más reciente entre la guardada
        y la del CSV. La vinculación pasa a ser la principal cuando la fecha de inicio
        del CSV es estrictamente posterior a la de todas las demás vinculaciones con
        fecha de la persona; en ese caso se desmarcan las demás.

        Args:
            persona_id (str): ID de la persona.
            centro_id (str): ID del centro.
            fecha_inicio (date, optional): Fecha de alta leída del CSV.
            fecha_final (date, optional): Fecha de baja leída del CSV.

        Returns:
            str: 'created' o 'updated'.
        """
        with self.unidad_de_trabajo() as session:
            vinculaciones = session.query(PersonaCentro).filter_by(persona_id=persona_id).all()
            existente = next((v for v in vinculaciones if v.centro_id == centro_id), None)
            otras = [v for v in vinculaciones if v.centro_id != centro_id]

            es_principal = fecha_inicio is not None and all(
                fecha_inicio > o.fecha_inicio for o in otras if o.fecha_inicio is not None
            )

            if existente is None:
                existente = PersonaCentro(
                    persona_id=persona_id,
                    centro_id=centro_id,
                    fecha_inicio=fecha_inicio,
                    fecha_final=fecha_final,
                    es_principal=es_principal,
                )
                session.add(existente)
                accion = "created"
            else:
                existente.fecha_inicio = self._mas_reciente(existente.fecha_inicio, fecha_inicio)
                existente.fecha_final = self._mas_reciente(existente.fecha_final, fecha_final)
                if es_principal:
                    existente.es_principal = True
                accion = "updated"

            if es_principal:
                for otra in otras:
                    otra.es_principal = False

        return accion

    def agrupar_por_persona(self) -> dict:
        """Devuelve {persona_id: [vinculaciones]} con el orden de inserción."""
        agrupadas = defaultdict(list)
        for v in self.get_all():
            agrupadas[v.persona_id].append(v)
        return dict(agrupadas)

    def fijar_principal(self, persona_id: str, centro_id: str):
        """Marca `centro_id` como único centro principal de la persona, en su propia transacción."""
        with self.unidad_de_trabajo() as session:
            for v in session.query(PersonaCentro).filter_by(persona_id=persona_id).all():
                v.es_principal = v.centro_id == centro_id

    @staticmethod
    def elegir_principal(vinculaciones: list):
        """Elige la vinculación con la fecha de inicio más reciente.

        Si ninguna tiene fecha, se queda con la primera.

        Returns:
            PersonaCentro | None: La vinculación elegida.
        """
        if not vinculaciones:
            return None
        con_fecha = [v for v in vinculaciones if v.fecha_inicio is not None]
        if not con_fecha:
            return vinculaciones[0]
        return max(con_fecha, key=lambda v: v.fecha_inicio)
