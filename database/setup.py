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

import logging

from sqlalchemy import inspect

from database.conexion import engine, Base
# Registro de las tablas en el metadata
from database import models  # noqa: F401

logger = logging.getLogger(__name__)

TABLAS_IMPORTACION = (
    "personas", "empresas", "centros", "cursos", "grupos",
    "personas_centros", "matriculas", "personas_grupos",
)


def inicializar_base_de_datos(bind=None):
    """
    Crea la estructura de la base de datos si no existe.

    Verifica mediante inspección que las tablas que usa la importación quedan
    creadas y deja constancia en el log de las que falten.

    Args:
        bind (Engine, optional): Motor a inicializar. Por defecto, el global.
    """
    bind = bind or engine
    logger.info("Inicializando base de datos (%s)...", bind.dialect.name)

    Base.metadata.create_all(bind=bind)

    inspector = inspect(bind)
    faltantes = [t for t in TABLAS_IMPORTACION if not inspector.has_table(t)]
    if faltantes:
        logger.error("Tablas no creadas: %s", ", ".join(faltantes))
    else:
        logger.info("Estructura de tablas verificada/creada.")
