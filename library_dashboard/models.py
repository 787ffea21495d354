from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from .database import Base


class Author(Base):
    __tablename__ = "authors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    bio = Column(Text)
    nationality = Column(String)
    birth_year = Column(Integer)

    # Relación uno-a-muchos: al borrar el autor se borran sus libros
    books = relationship(
        "Book",
        back_populates="author",
        cascade="all, delete-orphan",
        order_by="Book.id",
    )

    @property
    def book_count(self) -> int:
        return len(self.books)


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    isbn = Column(String, unique=True)
    published_year = Column(Integer)
    genre = Column(String)
    pages = Column(Integer)
    author_id = Column(Integer, ForeignKey("authors.id"), nullable=False, index=True)

    author = relationship("Author", back_populates="books")
