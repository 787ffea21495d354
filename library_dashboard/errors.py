"""
Errores del servicio.

- ApiError: error que un handler devuelve al cliente como {"error": "..."}.
- NotFound / UniqueViolation / PersistenceError: tipos de fallo de la capa
  de persistencia (repository.py). Los handlers los traducen a 404/409/500.
"""

from typing import Optional


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class PersistenceError(Exception):
    """Fallo de base de datos no clasificado."""


class NotFound(PersistenceError):
    def __init__(self, entity: str, entity_id: int):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class UniqueViolation(PersistenceError):
    def __init__(self, field: Optional[str]):
        super().__init__(f"unique constraint violated on {field or 'unknown field'}")
        self.field = field
