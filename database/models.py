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

import ulid
from sqlalchemy import (
    Column, String, Float, ForeignKey, Date, Text,
    UniqueConstraint, Integer, Boolean, Numeric
)
from database.conexion import Base


def generar_uid() -> str:
    """
    Genera un identificador único universalmente ordenable lexicográficamente (ULID).

    Returns:
        str: Cadena ULID de 26 caracteres.
    """
    return str(ulid.new())


# ---------------- MODELOS ----------------

class Persona(Base):
    """Persona trabajadora o alumna importada desde la nómina o el proveedor de formación."""
    __tablename__ = "personas"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)
    nombre = Column(String(255), nullable=False, default="")
    primer_apellido = Column(String(255), nullable=False, default="")
    segundo_apellido = Column(String(255), nullable=True)

    dni = Column(String(20), unique=True, nullable=True)
    tipo_documento = Column(String(10), nullable=False, default="DNI")
    nss = Column(String(20), nullable=True, index=True)
    correo = Column(String(150), nullable=True)
    telefono = Column(String(50), nullable=True)

    # Identificador numérico de la persona en el LMS (Moodle)
    moodle_id = Column(Integer, unique=True, nullable=True)
    nivel_educativo = Column(String(100), nullable=True)


class Empresa(Base):
    """Empresa empleadora, identificada por su CIF."""
    __tablename__ = "empresas"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)
    cif = Column(String(20), unique=True, nullable=False)
    nombre = Column(String(255), nullable=True)
    razon_social = Column(String(255), nullable=True)


class Centro(Base):
    """Centro de trabajo de una empresa.

    `import_id` guarda la clave sintética `empresaId_nombreNormalizado` con la que
    las siguientes importaciones reconocen el centro sin ambigüedad.
    """
    __tablename__ = "centros"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)
    nombre = Column(String(255), nullable=False)
    numero_patronal = Column(String(50), nullable=True)
    import_id = Column(String(320), nullable=True, index=True)

    empresa_id = Column(
        String(26),
        ForeignKey("empresas.id", ondelete="CASCADE"),
        nullable=False
    )


class Curso(Base):
    """Acción formativa. `moodle_id` es autoritativo cuando viene informado."""
    __tablename__ = "cursos"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)
    moodle_id = Column(Integer, unique=True, nullable=True)
    nombre = Column(String(255), nullable=False)
    nombre_corto = Column(String(255), nullable=True)
    modalidad = Column(String(20), nullable=False, default="Online")
    horas = Column(Integer, nullable=False, default=0)
    precio_hora = Column(Numeric(10, 2), nullable=True)
    fundae_id = Column(String(50), nullable=True)
    activo = Column(Boolean, default=True, nullable=False)


class Grupo(Base):
    """Grupo (edición) de un curso."""
    __tablename__ = "grupos"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)
    moodle_id = Column(Integer, unique=True, nullable=True)
    nombre = Column(String(255), nullable=False)
    curso_id = Column(
        String(26),
        ForeignKey("cursos.id", ondelete="CASCADE"),
        nullable=True
    )
    descripcion = Column(Text, nullable=True)
    fecha_inicio = Column(Date, nullable=True)
    fecha_final = Column(Date, nullable=True)
    fundae_id = Column(String(50), nullable=True)


class PersonaCentro(Base):
    """Vinculación laboral de una persona con un centro.

    Cada persona con vinculaciones debe tener exactamente una marcada como principal.
    """
    __tablename__ = "personas_centros"

    persona_id = Column(
        String(26),
        ForeignKey("personas.id", ondelete="CASCADE"),
        primary_key=True
    )
    centro_id = Column(
        String(26),
        ForeignKey("centros.id", ondelete="CASCADE"),
        primary_key=True
    )
    fecha_inicio = Column(Date, nullable=True)
    fecha_final = Column(Date, nullable=True)
    es_principal = Column(Boolean, default=False, nullable=False)


class Matricula(Base):
    """Inscripción de una persona en un curso y su progreso."""
    __tablename__ = "matriculas"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)

    persona_id = Column(
        String(26),
        ForeignKey("personas.id", ondelete="CASCADE"),
        nullable=False
    )
    curso_id = Column(
        String(26),
        ForeignKey("cursos.id", ondelete="CASCADE"),
        nullable=False
    )
    porcentaje_completado = Column(Float, nullable=True)
    tiempo_dedicado = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("persona_id", "curso_id", name="uq_matricula_persona_curso"),
    )


class PersonaGrupo(Base):
    """Pertenencia de una persona a un grupo, con el centro desde el que participa."""
    __tablename__ = "personas_grupos"

    id = Column(String(26), primary_key=True, default=generar_uid, index=True)

    persona_id = Column(
        String(26),
        ForeignKey("personas.id", ondelete="CASCADE"),
        nullable=False
    )
    grupo_id = Column(
        String(26),
        ForeignKey("grupos.id", ondelete="CASCADE"),
        nullable=False
    )
    centro_id = Column(
        String(26),
        ForeignKey("centros.id", ondelete="SET NULL"),
        nullable=True
    )
    porcentaje_completado = Column(Float, nullable=True)
    tiempo_dedicado = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("persona_id", "grupo_id", name="uq_persona_grupo"),
    )
