"""
Configuración del servicio leída de variables de entorno.

- DATABASE_URL : cadena de conexión SQLAlchemy (Postgres en Docker, SQLite en local)
- LOG_LEVEL    : nivel de logging (INFO por defecto)
- SQL_ECHO     : "true" para ver las consultas SQL en el log
- API_BASE_URL : URL del API que consume el dashboard
"""

import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./library.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
