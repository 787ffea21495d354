import os

# Base de datos en memoria para los tests (antes de importar la app)
os.environ["DATABASE_URL"] = "sqlite://"

import pytest

from library_dashboard import models
from library_dashboard.database import SessionLocal


@pytest.fixture(autouse=True)
def clean_db():
    yield
    db = SessionLocal()
    try:
        db.query(models.Book).delete()
        db.query(models.Author).delete()
        db.commit()
    finally:
        db.close()
