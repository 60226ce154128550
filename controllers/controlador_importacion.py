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
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile

from config.mappings import FASES
from database.config import APP_TITLE
from services.errores import ImportacionError
from services.persistence import ImportacionService

logger = logging.getLogger(__name__)

RUTA_SUBIDA = "/api/import-velneo/upload-csv"


def crear_app(servicio: Optional[ImportacionService] = None) -> FastAPI:
    """Construye la aplicación HTTP que dispara las importaciones.

    Args:
        servicio (ImportacionService, optional): Servicio a usar; por defecto uno
            ligado a la base de datos configurada.

    Returns:
        FastAPI: Aplicación lista para servir con uvicorn.
    """
    app = FastAPI(title=APP_TITLE)
    app.state.importacion = servicio or ImportacionService()

    @app.post(RUTA_SUBIDA)
    def subir_csv(
        request: Request,
        file: Optional[UploadFile] = File(None),
        phase: Optional[str] = Form(None),
    ):
        """Recibe un CSV y la fase a ejecutar; devuelve el desenlace de cada fila."""
        if file is None:
            raise HTTPException(status_code=400, detail="File is required")
        if phase not in FASES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid phase. Expected one of: {', '.join(FASES)}",
            )

        contenido = file.file.read()
        logger.info("Subida recibida: fichero=%s fase=%s bytes=%d", file.filename, phase, len(contenido))
        try:
            return request.app.state.importacion.procesar(contenido, phase)
        except ImportacionError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return app
