"""
library_dashboard/routers/books.py

Endpoints de libros. Cada libro pertenece a un autor (authorId).

Antes de asignar un libro a otro autor se comprueba que el autor existe,
así el libro no se modifica si la referencia es inválida.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..errors import ApiError, NotFound, PersistenceError, UniqueViolation
from ..repository import AuthorRepository, BookRepository
from ..validators import MIN_TITLE_LENGTH, is_valid_title, to_int_or_none

logger = logging.getLogger("app")

router = APIRouter(prefix="/books", tags=["books"])

BOOK_NOT_FOUND = "Libro no encontrado"
DUPLICATE_ISBN = "El ISBN ya existe"


def _clean_book_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    if "title" in data and not is_valid_title(data["title"]):
        raise ApiError(400, f"Titulo debe tener al menos {MIN_TITLE_LENGTH} caracteres")

    for field, label in (("published_year", "publishedYear"), ("pages", "pages")):
        if field in data:
            try:
                data[field] = to_int_or_none(data[field])
            except ValueError:
                raise ApiError(400, f"{label} debe ser un numero entero")

    if "author_id" in data and data["author_id"] is None:
        raise ApiError(400, "El libro debe tener un author")

    return data


def _assert_author_exists(db: Session, author_id: int) -> None:
    """Comprueba que el autor existe. Si no, 404."""
    try:
        exists = AuthorRepository(db).exists(author_id)
    except PersistenceError:
        logger.exception("Error checking author %s", author_id)
        raise ApiError(500, "Error al verificar el author")
    if not exists:
        raise ApiError(404, "El author especificado no existe")


# -------------------------------
# GET /books/ (listar libros)
# -------------------------------
@router.get("/", response_model=List[schemas.BookWithAuthor])
def list_books(db: Session = Depends(get_db)):
    """Lista todos los libros incluyendo su autor."""
    try:
        return BookRepository(db).list_all()
    except PersistenceError:
        logger.exception("Error listing books")
        raise ApiError(500, "Error al obtener los libros")


# -------------------------------
# POST /books/ (crear libro)
# -------------------------------
@router.post("/", response_model=schemas.BookWithAuthor, status_code=201)
def create_book(book: schemas.BookCreate, db: Session = Depends(get_db)):
    data = _clean_book_fields(book.model_dump())
    _assert_author_exists(db, data["author_id"])
    try:
        return BookRepository(db).create(data)
    except UniqueViolation:
        raise ApiError(409, DUPLICATE_ISBN)
    except PersistenceError:
        logger.exception("Error creating book")
        raise ApiError(500, "Error al crear el libro")


# -------------------------------
# GET /books/{book_id} (detalle)
# -------------------------------
@router.get("/{book_id}", response_model=schemas.BookWithAuthor)
def get_book(book_id: int, db: Session = Depends(get_db)):
    """Devuelve el detalle de un libro por ID, incluyendo su autor."""
    try:
        book = BookRepository(db).get(book_id)
    except PersistenceError:
        logger.exception("Error reading book %s", book_id)
        raise ApiError(500, "Error al obtener el libro")
    if not book:
        raise ApiError(404, BOOK_NOT_FOUND)
    return book


# -------------------------------
# PUT /books/{book_id} (actualizar)
# -------------------------------
@router.put("/{book_id}", response_model=schemas.BookWithAuthor)
def update_book(book_id: int, payload: schemas.BookUpdate, db: Session = Depends(get_db)):
    """
    Actualiza un libro (solo los campos enviados).

    Si viene authorId, el autor tiene que existir; si no, 404 sin tocar el libro.
    """
    changes = _clean_book_fields(payload.model_dump(exclude_unset=True))
    if "author_id" in changes:
        _assert_author_exists(db, changes["author_id"])
    try:
        return BookRepository(db).update(book_id, changes)
    except NotFound:
        raise ApiError(404, BOOK_NOT_FOUND)
    except UniqueViolation:
        raise ApiError(409, DUPLICATE_ISBN)
    except PersistenceError:
        logger.exception("Error updating book %s", book_id)
        raise ApiError(500, "Error al actualizar el libro")


# -------------------------------
# DELETE /books/{book_id}
# -------------------------------
@router.delete("/{book_id}", response_model=schemas.Message)
def delete_book(book_id: int, db: Session = Depends(get_db)):
    try:
        BookRepository(db).delete(book_id)
    except NotFound:
        raise ApiError(404, BOOK_NOT_FOUND)
    except PersistenceError:
        logger.exception("Error deleting book %s", book_id)
        raise ApiError(500, "Error al eliminar el libro")
    return {"message": "Libro eliminado correctamente"}
