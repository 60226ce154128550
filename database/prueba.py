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

import csv
import io
import random
import sys
from datetime import timedelta

from faker import Faker

# Inicializar Faker
faker = Faker("es_ES")  # Español

# Opciones para campos
MODALIDADES = ["ONLINE", "PRESENCIAL", "MIXTA", "e-learning"]
NIVELES = ["ESO", "Bachillerato", "FP Grado Medio", "FP Grado Superior", "Universitario"]
LETRAS_DNI = "TRWAGMYFPDXBNJZSQVHLCKE"

COLUMNAS = [
    "DNI", "NSS", "NOMBRE", "PRIMER_APELLIDO", "SEGUNDO_APELLIDO", "EMAIL", "TELEFONO",
    "NIVEL_EDUCATIVO", "moodleIdUser", "CIF", "EMPRESA", "RAZON_SOCIAL", "CENTRO",
    "NUMERO_PATRONAL", "FECHA_ALTA", "FECHA_BAJA", "moodleIdCourse", "CURSO", "MODALIDAD",
    "HORAS", "PRECIO_HORA", "moodleIdGroup", "GRUPO", "GROUP_DESCRIPTION",
    "GROUP_START_DATE", "GROUP_END_DATE", "PORCENTAJE_COMPLETADO", "TIME_SPENT",
]


def generar_dni() -> str:
    """Genera un DNI con letra de control válida."""
    numero = random.randint(1, 99999999)
    return f"{numero:08d}{LETRAS_DNI[numero % 23]}"


def generar_empresas(n=3) -> list:
    """Genera empresas ficticias, cada una con dos o tres centros.

    Returns:
        list: Diccionarios con 'cif', 'nombre', 'razon_social' y 'centros'.
    """
    empresas = []
    for _ in range(n):
        nombre = faker.company()
        centros = [
            {"nombre": f"Centro {faker.city()}", "numero_patronal": str(faker.random_number(digits=11, fix_len=True))}
            for _ in range(random.randint(2, 3))
        ]
        empresas.append({
            "cif": faker.cif(),
            "nombre": nombre,
            "razon_social": f"{nombre} {faker.company_suffix()}",
            "centros": centros,
        })
    return empresas


def generar_cursos(n=4) -> list:
    cursos = []
    for i in range(n):
        inicio = faker.date_between(start_date="-180d", end_date="today")
        cursos.append({
            "moodle_id": str(100 + i),
            "nombre": f"{faker.word().capitalize()} {faker.word().capitalize()} {faker.random_number(digits=3)}",
            "modalidad": random.choice(MODALIDADES),
            "horas": str(random.randint(10, 120)),
            "precio_hora": f"{random.uniform(5, 30):.2f}".replace(".", ","),
            "grupo_moodle_id": str(500 + i),
            "grupo": f"G{i + 1}-{inicio.year}",
            "inicio": inicio,
            "fin": inicio + timedelta(days=random.randint(15, 90)),
        })
    return cursos


def generar_filas(n=50, semilla=None) -> list:
    """Genera filas de exportación combinando persona, empresa, centro, curso y grupo.

    Args:
        n (int, optional): Número de filas.
        semilla (int, optional): Semilla para obtener siempre los mismos datos.

    Returns:
        list: Lista de diccionarios con las claves de `COLUMNAS`.
    """
    if semilla is not None:
        random.seed(semilla)
        Faker.seed(semilla)

    empresas = generar_empresas()
    cursos = generar_cursos()
    filas = []
    for i in range(n):
        empresa = random.choice(empresas)
        centro = random.choice(empresa["centros"])
        curso = random.choice(cursos)
        alta = faker.date_between(start_date="-5y", end_date="today")
        filas.append({
            "DNI": generar_dni(),
            "NSS": str(faker.random_number(digits=12, fix_len=True)),
            "NOMBRE": faker.first_name(),
            "PRIMER_APELLIDO": faker.last_name(),
            "SEGUNDO_APELLIDO": faker.last_name(),
            "EMAIL": faker.email(),
            "TELEFONO": faker.phone_number(),
            "NIVEL_EDUCATIVO": random.choice(NIVELES),
            "moodleIdUser": str(1000 + i),
            "CIF": empresa["cif"],
            "EMPRESA": empresa["nombre"],
            "RAZON_SOCIAL": empresa["razon_social"],
            "CENTRO": centro["nombre"],
            "NUMERO_PATRONAL": centro["numero_patronal"],
            "FECHA_ALTA": alta.strftime("%d/%m/%Y"),
            "FECHA_BAJA": "",
            "moodleIdCourse": curso["moodle_id"],
            "CURSO": curso["nombre"],
            "MODALIDAD": curso["modalidad"],
            "HORAS": curso["horas"],
            "PRECIO_HORA": curso["precio_hora"],
            "moodleIdGroup": curso["grupo_moodle_id"],
            "GRUPO": curso["grupo"],
            "GROUP_DESCRIPTION": f"<p>{faker.sentence()}</p><br />",
            "GROUP_START_DATE": curso["inicio"].isoformat(),
            "GROUP_END_DATE": curso["fin"].isoformat(),
            "PORCENTAJE_COMPLETADO": f"{random.uniform(0, 100):.3f}".replace(".", ","),
            "TIME_SPENT": f"{random.randint(0, 40):02d}h {random.randint(0, 59):02d}m {random.randint(0, 59):02d}s",
        })
    return filas


def a_csv(filas: list, separador: str = ";", encoding: str = "latin-1") -> bytes:
    """Serializa las filas como lo hace la nómina: separador ';' y un byte por carácter."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=COLUMNAS, delimiter=separador)
    writer.writeheader()
    writer.writerows(filas)
    return buffer.getvalue().encode(encoding, errors="replace")


if __name__ == "__main__":
    destino = sys.argv[1] if len(sys.argv) > 1 else "exportacion_prueba.csv"
    with open(destino, "wb") as f:
        f.write(a_csv(generar_filas(25)))
    print(f"Fichero de prueba generado en {destino}")
