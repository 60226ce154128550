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
from database.models import Empresa


class EmpresaModel(BaseCRUDModel):
    """Modelo CRUD para la gestión de Empresas."""
    model = Empresa

    @staticmethod
    def clave_cif(cif) -> str:
        """Clave de comparación de un CIF: sin espacios y en minúsculas."""
        return "".join(str(cif or "").split()).lower()

    def buscar_por_cif(self, cif: str):
        """Busca una empresa por CIF sin distinguir mayúsculas ni espacios.

        Args:
            cif (str): CIF tal y como llega en la fila.

        Returns:
            Empresa | None: La empresa encontrada.
        """
        clave = self.clave_cif(cif)
        if not clave:
            return None
        with self._get_session() as session:
            return (
                session.query(Empresa)
                .filter(func.lower(func.replace(Empresa.cif, " ", "")) == clave)
                .first()
            )
