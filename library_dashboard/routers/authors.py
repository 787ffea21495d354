"""
library_dashboard/routers/authors.py

Endpoints de autores.

- GET    /authors/            -> lista autores con sus libros (para el dashboard)
- POST   /authors/            -> crea autor
- GET    /authors/{id}        -> detalle incluyendo libros
- PUT    /authors/{id}        -> actualización parcial
- DELETE /authors/{id}        -> elimina autor (y sus libros)
- GET    /authors/{id}/books  -> solo los libros del autor
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..errors import ApiError, NotFound, PersistenceError, UniqueViolation
from ..repository import AuthorRepository
from ..validators import is_valid_email, to_int_or_none

logger = logging.getLogger("app")

router = APIRouter(prefix="/authors", tags=["authors"])

AUTHOR_NOT_FOUND = "Autor no encontrado"
DUPLICATE_EMAIL = "El email ya esta registrado"


def _clean_author_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Valida y normaliza los campos presentes en el body.
    Los campos ausentes no aparecen en `data` y no se tocan.
    """
    if "email" in data and not is_valid_email(data["email"]):
        raise ApiError(400, "Email invalido")

    if "name" in data and not (data["name"] or "").strip():
        raise ApiError(400, "El nombre es obligatorio")

    if "birth_year" in data:
        try:
            data["birth_year"] = to_int_or_none(data["birth_year"])
        except ValueError:
            raise ApiError(400, "El año de nacimiento debe ser un numero entero")

    return data


# -------------------------------
# GET /authors/ (listar autores)
# -------------------------------
@router.get("/", response_model=List[schemas.AuthorWithBooks])
def list_authors(db: Session = Depends(get_db)):
    """Lista todos los autores con sus libros y el conteo de libros."""
    try:
        return AuthorRepository(db).list_all()
    except PersistenceError:
        logger.exception("Error listing authors")
        raise ApiError(500, "Error al obtener los autores")


# -------------------------------
# POST /authors/ (crear autor)
# -------------------------------
@router.post("/", response_model=schemas.AuthorWithBooks, status_code=201)
def create_author(author: schemas.AuthorCreate, db: Session = Depends(get_db)):
    data = _clean_author_fields(author.model_dump())
    try:
        return AuthorRepository(db).create(data)
    except UniqueViolation:
        raise ApiError(409, DUPLICATE_EMAIL)
    except PersistenceError:
        logger.exception("Error creating author")
        raise ApiError(500, "Error al crear el autor")


# -------------------------------
# GET /authors/{author_id} (detalle)
# -------------------------------
@router.get("/{author_id}", response_model=schemas.AuthorWithBooks)
def read_author(author_id: int, db: Session = Depends(get_db)):
    """Obtiene un autor por id, incluyendo sus libros."""
    try:
        author = AuthorRepository(db).get(author_id)
    except PersistenceError:
        logger.exception("Error reading author %s", author_id)
        raise ApiError(500, "Error al obtener el autor")
    if not author:
        raise ApiError(404, AUTHOR_NOT_FOUND)
    return author


# -------------------------------
# PUT /authors/{author_id} (actualizar)
# -------------------------------
@router.put("/{author_id}", response_model=schemas.AuthorWithBooks)
def update_author(author_id: int, payload: schemas.AuthorUpdate, db: Session = Depends(get_db)):
    """
    Actualiza un autor.

    Body (todos opcionales, solo cambia lo enviado):
    {
      "name": "Nombre",
      "email": "autor@dominio.com",
      "bio": "...",
      "nationality": "...",
      "birthYear": 1965
    }
    """
    changes = _clean_author_fields(payload.model_dump(exclude_unset=True))
    try:
        return AuthorRepository(db).update(author_id, changes)
    except NotFound:
        raise ApiError(404, AUTHOR_NOT_FOUND)
    except UniqueViolation:
        raise ApiError(409, DUPLICATE_EMAIL)
    except PersistenceError:
        logger.exception("Error updating author %s", author_id)
        raise ApiError(500, "Error al actualizar el autor")


# -------------------------------
# DELETE /authors/{author_id}
# -------------------------------
@router.delete("/{author_id}", response_model=schemas.Message)
def delete_author(author_id: int, db: Session = Depends(get_db)):
    try:
        AuthorRepository(db).delete(author_id)
    except NotFound:
        raise ApiError(404, AUTHOR_NOT_FOUND)
    except PersistenceError:
        logger.exception("Error deleting author %s", author_id)
        raise ApiError(500, "Error al eliminar el autor")
    return {"message": "Autor eliminado correctamente"}


# -------------------------------
# GET /authors/{author_id}/books
# -------------------------------
@router.get("/{author_id}/books", response_model=schemas.AuthorBooks)
def read_author_books(author_id: int, db: Session = Depends(get_db)):
    """Devuelve SOLO los libros de un autor (lo usa el modal del dashboard)."""
    try:
        author = AuthorRepository(db).get(author_id)
    except PersistenceError:
        logger.exception("Error reading books of author %s", author_id)
        raise ApiError(500, "Error al cargar los libros del autor")
    if not author:
        raise ApiError(404, AUTHOR_NOT_FOUND)
    return {"author_id": author.id, "books": author.books}
