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

"""Configuración de mapeos y constantes para la importación de CSV.

Este módulo define las estructuras de datos estáticas utilizadas para la
normalización de encabezados, las fases admitidas y los límites numéricos
que aplican los normalizadores.
"""
import re
import unicodedata

# Fases de importación admitidas (una por invocación)
FASE_USUARIOS = "users"
FASE_EMPRESAS = "companies"
FASE_ASOCIAR = "associate"
FASE_CURSOS = "courses"
FASE_GRUPOS = "groups"

FASES = (FASE_USUARIOS, FASE_EMPRESAS, FASE_ASOCIAR, FASE_CURSOS, FASE_GRUPOS)
"""tuple: Fases válidas, en el orden en que se ejecutan normalmente."""

PG_INT_MAX = 2147483647
"""int: Máximo positivo de un entero de 32 bits; tope de duraciones."""

CENTRO_DESCONOCIDO = "DESCONOCIDO"
"""str: Nombre del centro centinela por empresa cuando la fila no trae centro."""

# Mapeo de campos canónicos y sus posibles encabezados en el CSV
COLUMNA_ALIAS = {
    'dni': ['DNI', 'NIF', 'NIE', 'DOCUMENTO', 'DNI_USER', 'USER_DNI'],
    'nss': ['NSS', 'NUSS', 'NUM_SS', 'SEGURIDAD_SOCIAL'],
    'name': ['NAME', 'NOMBRE', 'FIRSTNAME', 'FIRST_NAME'],
    'first_surname': ['FIRST_SURNAME', 'PRIMER_APELLIDO', 'APELLIDO1', 'LASTNAME', 'SURNAME'],
    'second_surname': ['SECOND_SURNAME', 'SEGUNDO_APELLIDO', 'APELLIDO2'],
    'apellidos': ['APELLIDOS'],
    'email': ['EMAIL', 'CORREO', 'MAIL', 'E-MAIL'],
    'phone': ['PHONE', 'TELEFONO', 'MOVIL'],
    'education_level': ['EDUCATION_LEVEL', 'NIVEL_EDUCATIVO', 'NIVEL_ESTUDIOS'],
    'moodle_id_user': ['MOODLE_ID_USER', 'MOODLEIDUSER', 'ID_MOODLE', 'USER_ID_MOODLE'],
    'moodle_username': ['MOODLE_USERNAME', 'USERNAME'],
    'cif': ['CIF', 'CIF_EMPRESA', 'COMPANY_CIF'],
    'company_name': ['COMPANY_NAME', 'EMPRESA', 'NOMBRE_EMPRESA'],
    'corporate_name': ['CORPORATE_NAME', 'RAZON_SOCIAL'],
    'center_name': ['CENTER_NAME', 'CENTRO', 'NOMBRE_CENTRO', 'CENTRO_TRABAJO'],
    'employer_number': ['EMPLOYER_NUMBER', 'NUMERO_PATRONAL', 'CCC', 'CODIGO_CUENTA_COTIZACION'],
    'user_center_start_date': ['USER_CENTER_START_DATE', 'START_DATE', 'FECHA_ALTA', 'FECHA_INICIO_CENTRO'],
    'user_center_end_date': ['USER_CENTER_END_DATE', 'END_DATE', 'FECHA_BAJA', 'FECHA_FIN_CENTRO'],
    'moodle_id_course': ['MOODLE_ID_COURSE', 'MOODLEIDCOURSE', 'COURSE_ID_MOODLE'],
    'course_name': ['COURSE_NAME', 'CURSO', 'NOMBRE_CURSO'],
    'course_short_name': ['COURSE_SHORT_NAME', 'SHORTNAME', 'NOMBRE_CORTO'],
    'course_modality': ['COURSE_MODALITY', 'MODALITY', 'MODALIDAD'],
    'course_hours': ['COURSE_HOURS', 'HOURS', 'HORAS'],
    'price_per_hour': ['PRICE_PER_HOUR', 'PRECIO_HORA'],
    'fundae_course_id': ['FUNDAE_COURSE_ID', 'FUNDAE_ID_COURSE', 'ID_FUNDAE_CURSO'],
    'moodle_id_group': ['MOODLE_ID_GROUP', 'MOODLEIDGROUP', 'GROUP_ID_MOODLE'],
    'group_name': ['GROUP_NAME', 'GRUPO', 'NOMBRE_GRUPO'],
    'group_description': ['GROUP_DESCRIPTION', 'DESCRIPCION_GRUPO'],
    'group_start_date': ['GROUP_START_DATE', 'FECHA_INICIO_GRUPO'],
    'group_end_date': ['GROUP_END_DATE', 'FECHA_FIN_GRUPO'],
    'fundae_group_id': ['FUNDAE_GROUP_ID', 'FUNDAE_ID_GROUP', 'ID_FUNDAE_GRUPO'],
    'completion_percentage': ['COMPLETION_PERCENTAGE', 'PORCENTAJE_COMPLETADO', 'PROGRESO'],
    'time_spent': ['TIME_SPENT', 'TIME_SPENT_SECONDS', 'TIEMPO_DEDICADO'],
}
"""dict: Diccionario que asocia nombres de campo canónicos con sus posibles alias.

Las claves son el nombre interno que usan los resolutores; los valores, los
encabezados que pueden aparecer en los ficheros exportados. La comparación se
hace sobre la clave compacta de `clave_encabezado`, de modo que `moodleIdUser`,
`MOODLE_ID_USER` y `moodle id user` equivalen.
"""


def clave_encabezado(texto: str) -> str:
    """Reduce un encabezado a su forma compacta: sin BOM, sin tildes,
    en mayúsculas y solo con caracteres alfanuméricos."""
    txt = str(texto).replace("\ufeff", "").replace("\u00ef\u00bb\u00bf", "").strip()
    txt = unicodedata.normalize("NFD", txt)
    txt = "".join(c for c in txt if unicodedata.category(c) != "Mn")
    return re.sub(r"[^A-Z0-9]", "", txt.upper())


ALIAS_A_CANONICO = {
    clave_encabezado(alias): canonico
    for canonico, alias_list in COLUMNA_ALIAS.items()
    for alias in [canonico, *alias_list]
}
"""dict: Índice inverso {clave compacta: campo canónico} construido al importar."""
