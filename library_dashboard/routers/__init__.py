from . import authors, books, dashboard

__all__ = ["authors", "books", "dashboard"]
