"""
library_dashboard/main.py

Servicio de Autores y Libros (FastAPI) con dashboard.

- Un autor puede tener varios libros (uno-a-muchos: Book.author_id -> Author.id).
- Los errores se devuelven siempre como {"error": "..."}.

Endpoints:
- /authors/...   -> CRUD de autores (routers/authors.py)
- /books/...     -> CRUD de libros (routers/books.py)
- /dashboard     -> página HTML con estadísticas y tabla de autores
- /health        -> healthcheck con verificación DB
- /metrics       -> métricas Prometheus
"""

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import LOG_LEVEL
from .database import engine, Base
from .errors import ApiError
from .routers import authors, books, dashboard
from . import models  # noqa: F401  registra las tablas en Base.metadata

logger = logging.getLogger("app")
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)

try:
    # Crea tablas si no existen (sin herramienta de migraciones)
    Base.metadata.create_all(bind=engine)
    logger.info("Tablas verificadas/creadas correctamente.")
except SQLAlchemyError as e:
    # Otro proceso puede estar creándolas a la vez
    logger.warning(f"Aviso en DB: Las tablas ya existen o están siendo creadas: {e}")

app = FastAPI(
    title="Dashboard de Autores",
    description="Servicio de gestión de autores y sus libros",
    version="1.0.0",
)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"]
)


def _route_path(request: Request) -> str:
    # plantilla de la ruta (/authors/{author_id}) para no crear una serie por id
    route = request.scope.get("route")
    return getattr(route, "path", request.scope["path"])


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id", str(uuid4()))
    start = time.time()

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.exception(
            "request_id=%s method=%s path=%s error=%s",
            request_id, request.method, request.url.path, str(exc)
        )
        raise

    duration_ms = int((time.time() - start) * 1000)
    logger.info(
        "request_id=%s method=%s path=%s status=%s duration_ms=%s",
        request_id, request.method, request.url.path, response.status_code, duration_ms
    )
    path = _route_path(request)
    REQUEST_COUNT.labels(request.method, path, str(response.status_code)).inc()
    REQUEST_LATENCY.labels(request.method, path).observe((time.time() - start))

    response.headers["X-Request-Id"] = request_id
    return response


# ---------------------------------------------------------------------
# Errores -> {"error": "..."}
# ---------------------------------------------------------------------

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code < 500:
        logger.info(
            "method=%s path=%s status=%s error=%s",
            request.method, request.url.path, exc.status_code, exc.message
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("method=%s path=%s invalid request: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Datos invalidos"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Error interno del servidor"})


app.include_router(authors.router)
app.include_router(books.router)
app.include_router(dashboard.router)


@app.get("/metrics", include_in_schema=False)
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# ---------------------------------------------------------------------
# Utilidad / Observabilidad básica
# ---------------------------------------------------------------------

@app.get("/")
def read_root():
    return {
        "service": "Library Dashboard",
        "status": "Online",
        "message": "Bienvenido al sistema de gestión de autores y libros",
    }


@app.get("/health")
def health_check():
    """
    Healthcheck simple:
    - Devuelve healthy si puede abrir una conexión y ejecutar SELECT 1.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "error": str(e)}
