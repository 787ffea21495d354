"""
library_dashboard/repository.py

Acceso a datos de autores y libros sobre una Session de SQLAlchemy.

Los fallos de base de datos no salen como códigos de error en texto: se
traducen a excepciones tipadas (errors.NotFound, errors.UniqueViolation,
errors.PersistenceError) para que los handlers decidan el status HTTP.
"""

import logging
from typing import Any, Dict, List, Tuple

from psycopg2 import errors as pg_errors
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from . import models
from .errors import NotFound, PersistenceError, UniqueViolation

logger = logging.getLogger("app")


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if isinstance(orig, pg_errors.UniqueViolation):
        return True
    return "UNIQUE constraint failed" in str(orig)


def _translate(exc: SQLAlchemyError, unique_fields: Tuple[str, ...]) -> PersistenceError:
    """Convierte un error de SQLAlchemy en el tipo de fallo correspondiente."""
    if isinstance(exc, IntegrityError) and _is_unique_violation(exc):
        message = str(exc.orig)
        field = next((f for f in unique_fields if f in message), None)
        return UniqueViolation(field)
    return PersistenceError(str(exc))


class _Repository:
    model: Any = None
    entity: str = ""
    unique_fields: Tuple[str, ...] = ()
    related_name: str = ""

    def __init__(self, db: Session):
        self.db = db

    def _related(self):
        return getattr(self.model, self.related_name)

    def get(self, entity_id: int, include_related: bool = True):
        stmt = select(self.model).where(self.model.id == entity_id)
        if include_related:
            stmt = stmt.options(selectinload(self._related()))
        try:
            return self.db.execute(stmt).scalars().first()
        except SQLAlchemyError as e:
            raise _translate(e, self.unique_fields)

    def exists(self, entity_id: int) -> bool:
        return self.get(entity_id, include_related=False) is not None

    def list_all(self) -> List[Any]:
        stmt = (
            select(self.model)
            .options(selectinload(self._related()))
            .order_by(self.model.id)
        )
        try:
            return list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            raise _translate(e, self.unique_fields)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise _translate(e, self.unique_fields)

    def create(self, data: Dict[str, Any]):
        obj = self.model(**data)
        self.db.add(obj)
        self._commit()
        logger.info("%s created id=%s", self.entity, obj.id)
        return self.get(obj.id)

    def update(self, entity_id: int, changes: Dict[str, Any]):
        """
        Actualización parcial: solo se tocan las claves presentes en `changes`.
        """
        obj = self.get(entity_id, include_related=False)
        if obj is None:
            raise NotFound(self.entity, entity_id)
        for field, value in changes.items():
            setattr(obj, field, value)
        self._commit()
        return self.get(entity_id)

    def delete(self, entity_id: int) -> None:
        obj = self.get(entity_id, include_related=False)
        if obj is None:
            raise NotFound(self.entity, entity_id)
        self.db.delete(obj)
        self._commit()
        logger.info("%s deleted id=%s", self.entity, entity_id)


class AuthorRepository(_Repository):
    model = models.Author
    entity = "Author"
    unique_fields = ("email",)
    related_name = "books"


class BookRepository(_Repository):
    model = models.Book
    entity = "Book"
    unique_fields = ("isbn",)
    related_name = "author"

