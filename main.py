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

import argparse
import json
import logging
import sys

import uvicorn

import database.config as config
from config.mappings import FASES
from controllers.controlador_importacion import crear_app
from database.setup import inicializar_base_de_datos
from services.persistence import ImportacionService


def configurar_logging():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def main(argv=None):
    """
    Punto de entrada principal de la aplicación.

    Realiza la secuencia de arranque completa:
    1. Configura el logging según `LOG_LEVEL`.
    2. Inicializa la conexión y estructura de la base de datos.
    3. Si se indica `--csv`, importa ese fichero en la fase dada e imprime el resultado en JSON.
    4. Si no, levanta el servidor HTTP con uvicorn.
    """
    parser = argparse.ArgumentParser(description=config.APP_TITLE)
    parser.add_argument("--csv", help="Fichero CSV a importar sin levantar el servidor")
    parser.add_argument("--fase", choices=FASES, help="Fase de importación para --csv")
    parser.add_argument("--limite", type=int, default=None, help="Máximo de filas a procesar")
    args = parser.parse_args(argv)

    configurar_logging()
    inicializar_base_de_datos()

    if args.csv:
        if not args.fase:
            parser.error("--fase es obligatorio junto con --csv")
        with open(args.csv, "rb") as f:
            resultado = ImportacionService().procesar(f.read(), args.fase, limite_filas=args.limite)
        print(json.dumps(resultado, ensure_ascii=False, indent=2))
        return 0 if resultado["success"] else 1

    uvicorn.run(crear_app(), host=config.API_HOST, port=config.API_PORT)
    return 0


if __name__ == "__main__":
    sys.exit(main())
