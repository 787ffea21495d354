from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional, Union

# El API habla camelCase (birthYear, authorId...) y el modelo ORM snake_case.
# populate_by_name permite recibir cualquiera de los dos.
class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Los enteros pueden llegar como número o como texto de formulario ("1990", "")
IntLike = Optional[Union[int, str]]


# ---------------------------
# Author Schemas
# ---------------------------
class AuthorCreate(CamelModel):
    name: str
    email: str
    bio: Optional[str] = None
    nationality: Optional[str] = None
    birth_year: IntLike = None


class AuthorUpdate(CamelModel):
    # Todo opcional: solo cambian los campos presentes en el body
    name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    nationality: Optional[str] = None
    birth_year: IntLike = None


class Author(CamelModel):
    id: int
    name: str
    email: str
    bio: Optional[str] = None
    nationality: Optional[str] = None
    birth_year: Optional[int] = None


# ---------------------------
# Book Schemas
# ---------------------------
class BookCreate(CamelModel):
    title: str
    author_id: int
    description: Optional[str] = None
    isbn: Optional[str] = None
    published_year: IntLike = None
    genre: Optional[str] = None
    pages: IntLike = None


class BookUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    isbn: Optional[str] = None
    published_year: IntLike = None
    genre: Optional[str] = None
    pages: IntLike = None
    author_id: Optional[int] = None


class Book(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    isbn: Optional[str] = None
    published_year: Optional[int] = None
    genre: Optional[str] = None
    pages: Optional[int] = None
    author_id: int


# ---------------------------
# Respuestas compuestas
# ---------------------------
class AuthorWithBooks(Author):
    books: List[Book] = []
    book_count: int = 0


class BookWithAuthor(Book):
    author: Optional[Author] = None


class AuthorBooks(CamelModel):
    author_id: int
    books: List[Book] = []


class Message(BaseModel):
    message: str
