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

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError
from database.conexion import SessionLocal


class BaseCRUDModel:
    """Clase base abstracta para operaciones CRUD genéricas en modelos SQLAlchemy.

    Proporciona métodos estandarizados para crear, leer, actualizar y buscar
    registros, y un ámbito transaccional (`unidad_de_trabajo`). Las clases hijas
    deben definir el atributo de clase `model` con el modelo SQLAlchemy
    correspondiente.
    """

    model = None  # se define en la subclase

    def __init__(self, session_factory=None):
        """
        Args:
            session_factory (sessionmaker, optional): Fábrica de sesiones a usar.
                Por defecto, la global de `database.conexion`.
        """
        self._session_factory = session_factory or SessionLocal

    # ----------------------------
    # MÉTODOS BÁSICOS CRUD
    # ----------------------------
    def _get_session(self):
        """Crea y devuelve una nueva sesión de base de datos.

        Returns:
            Session: Una instancia de sqlalchemy.orm.Session.
        """
        return self._session_factory()

    @contextmanager
    def unidad_de_trabajo(self):
        """Abre una sesión con una transacción que se confirma al salir del bloque.

        Cualquier excepción dentro del bloque deshace la transacción completa y se
        propaga al llamador.

        Yields:
            Session: Sesión con la transacción abierta.
        """
        with self._get_session() as session:
            with session.begin():
                yield session

    def get_all(self):
        """Recupera todos los registros existentes del modelo.

        Returns:
            list: Lista de todas las instancias del modelo en la base de datos.
        """
        with self._get_session() as session:
            return session.query(self.model).all()

    def get_by_id(self, obj_id: str):
        """Busca un registro por su clave primaria (ID).

        Args:
            obj_id (str): El identificador único del registro.

        Returns:
            object: La instancia del modelo si existe, None en caso contrario.
        """
        with self._get_session() as session:
            return session.query(self.model).filter_by(id=obj_id).first()

    def create(self, data: dict):
        """Crea un nuevo registro en la base de datos.

        Args:
            data (dict): Diccionario con los datos para inicializar el modelo.

        Returns:
            object: La instancia del modelo recién creada y persistida.

        Raises:
            IntegrityError: Si ocurre una violación de restricción (ej. clave única duplicada).
        """
        with self._get_session() as session:
            try:
                obj = self.model(**data)
                session.add(obj)
                session.commit()
                session.refresh(obj)
                return obj
            except IntegrityError:
                session.rollback()
                raise

    def update(self, obj_id: str, data: dict):
        """Actualiza un registro existente identificado por su ID.

        Args:
            obj_id (str): ID del registro a actualizar.
            data (dict): Diccionario clave-valor con los campos a modificar.

        Returns:
            object: La instancia actualizada si existe, None si no se encuentra.

        Raises:
            IntegrityError: Si la actualización viola restricciones de integridad.
        """
        with self._get_session() as session:
            try:
                obj = session.query(self.model).filter_by(id=obj_id).first()
                if not obj:
                    return None
                for key, value in data.items():
                    if hasattr(obj, key):
                        setattr(obj, key, value)
                session.commit()
                session.refresh(obj)
                return obj
            except IntegrityError:
                session.rollback()
                raise

    def upsert(self, filters: dict, data: dict):
        """Actualiza el registro que cumple `filters` o lo crea si no existe.

        Los valores None de `data` no sobrescriben lo que ya está guardado.

        Args:
            filters (dict): Igualdades que identifican el registro (clave natural).
            data (dict): Campos a escribir.

        Returns:
            tuple: (instancia, creado) donde `creado` es True si se insertó.
        """
        with self._get_session() as session:
            with session.begin():
                obj = session.query(self.model).filter_by(**filters).first()
                creado = obj is None
                if creado:
                    obj = self.model(**filters)
                    session.add(obj)
                for key, value in data.items():
                    if value is not None and hasattr(obj, key):
                        setattr(obj, key, value)
            return obj, creado

    # ----------------------------
    # MÉTODO AUXILIAR DE FILTRADO
    # ----------------------------
    def _apply_filters(self, query, filters: dict | None = None):
        """Aplica filtros dinámicos de igualdad (AND) a una consulta.

        Args:
            query (Query): Objeto Query base de SQLAlchemy.
            filters (dict, optional): Filtros de igualdad exacta. {campo: valor}.

        Returns:
            Query: El objeto Query modificado con los filtros aplicados.
        """
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.filter(getattr(self.model, field) == value)
        return query

    # ----------------------------
    # MÉTODOS DE CONSULTA AVANZADA
    # ----------------------------
    def search(self, filters: dict | None = None, first: bool = False):
        """Realiza una búsqueda con filtros de igualdad.

        Args:
            filters (dict, optional): Filtros exactos (AND).
            first (bool, optional): Si True, devuelve solo el primer resultado.

        Returns:
            list | object: Lista de resultados o una instancia única si first=True.
        """
        with self._get_session() as session:
            query = self._apply_filters(session.query(self.model), filters)
            return query.first() if first else query.all()
