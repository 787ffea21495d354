"""
library_dashboard/dashboard.py

Dashboard de autores: estado de la vista, estadísticas y acciones.

El estado vive en un DashboardState explícito que se pasa a cada acción del
DashboardController. Las acciones hablan con el API por HTTP (ApiClient) y
solo modifican el estado cuando la llamada termina.

Flujo:
  load()        -> GET /authors/ y recalcula estadísticas
  submit()      -> POST /authors/ (crear) o PUT /authors/{id} (editar)
  request_delete() -> muestra la confirmación de borrado
  delete()      -> pide confirmación y DELETE /authors/{id}
  view_books()  -> GET /authors/{id}/books (modal de libros)
"""

import html
import json
import logging
import math
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import API_BASE_URL

logger = logging.getLogger("app")

DELETE_CONFIRMATION = "¿Estás seguro de que deseas eliminar este autor?"


# ---------------------------------------------------------------------
# Estadísticas
# ---------------------------------------------------------------------

@dataclass
class Stats:
    total_authors: int = 0
    total_books: int = 0
    average_books_per_author: float = 0
    unique_genres: int = 0
    average_pages: int = 0


def _round_half_up(value: float, decimals: int = 0) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def _book_count(author: Dict[str, Any]) -> int:
    return author.get("bookCount") or len(author.get("books") or [])


def calculate_stats(authors: List[Dict[str, Any]]) -> Stats:
    """
    Calcula las estadísticas del dashboard a partir de la lista de autores
    (cada autor con sus libros anidados).
    """
    total_authors = len(authors)
    total_books = sum(_book_count(a) for a in authors)
    average_books = _round_half_up(total_books / total_authors, 2) if total_authors else 0

    all_books = [b for a in authors for b in (a.get("books") or [])]
    genres = {b.get("genre") for b in all_books if b.get("genre") is not None}
    pages = [b["pages"] for b in all_books if b.get("pages") is not None]
    average_pages = int(_round_half_up(sum(pages) / len(pages))) if pages else 0

    return Stats(
        total_authors=total_authors,
        total_books=total_books,
        average_books_per_author=average_books,
        unique_genres=len(genres),
        average_pages=average_pages,
    )


# ---------------------------------------------------------------------
# Estado de la vista
# ---------------------------------------------------------------------

def empty_form() -> Dict[str, str]:
    return {"name": "", "email": "", "bio": "", "nationality": "", "birthYear": ""}


@dataclass
class DashboardState:
    authors: List[Dict[str, Any]] = field(default_factory=list)
    stats: Optional[Stats] = None
    loading: bool = True
    show_form: bool = False
    editing_author: Optional[Dict[str, Any]] = None
    form_data: Dict[str, str] = field(default_factory=empty_form)
    error: str = ""
    success: str = ""
    # None = modal cerrado
    selected_author_books: Optional[List[Dict[str, Any]]] = None
    loading_books: bool = False
    # autor pendiente de confirmar su borrado
    confirm_delete: Optional[Dict[str, Any]] = None


# ---------------------------------------------------------------------
# Cliente HTTP del API
# ---------------------------------------------------------------------

class ApiUnavailable(Exception):
    pass


class ApiClient:
    """
    Cliente JSON mínimo sobre urllib.
    request() devuelve (status, body); los errores HTTP no lanzan excepción.
    """

    def __init__(self, base_url: str = API_BASE_URL, timeout: float = 5):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def request(self, method: str, path: str, payload: Any = None) -> Tuple[int, Any]:
        url = f"{self.base_url}{path}"
        data = None
        headers = {"Accept": "application/json"}
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = urllib.request.Request(url, data=data, method=method, headers=headers)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.status, _decode(resp.read())
        except urllib.error.HTTPError as e:
            # el API respondió con un error (400/404/409/500...)
            return e.code, _decode(e.read())
        except (urllib.error.URLError, OSError) as e:
            raise ApiUnavailable(f"API unavailable at {url}: {e}")


def _decode(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except ValueError:
        return None


def _error_message(body: Any, default: str) -> str:
    if isinstance(body, dict) and body.get("error"):
        return body["error"]
    return default


def _coerce_birth_year(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------
# Acciones
# ---------------------------------------------------------------------

class DashboardController:
    def __init__(self, client: Any, confirm: Optional[Callable[[str], bool]] = None):
        self.client = client
        # Sin función de confirmación no se borra nada
        self.confirm = confirm or (lambda message: False)

    def load(self, state: DashboardState) -> DashboardState:
        state.loading = True
        try:
            status, body = self.client.request("GET", "/authors/")
            if status == 200:
                state.authors = body or []
                state.stats = calculate_stats(state.authors)
            else:
                logger.error("Error fetching authors: status=%s", status)
        except ApiUnavailable as e:
            logger.error("Error fetching authors: %s", e)
        finally:
            state.loading = False
        return state

    def new_author(self, state: DashboardState) -> DashboardState:
        state.editing_author = None
        state.form_data = empty_form()
        state.show_form = True
        state.error = ""
        state.success = ""
        return state

    def edit(self, state: DashboardState, author: Dict[str, Any]) -> DashboardState:
        birth_year = author.get("birthYear")
        state.editing_author = author
        state.form_data = {
            "name": author.get("name") or "",
            "email": author.get("email") or "",
            "bio": author.get("bio") or "",
            "nationality": author.get("nationality") or "",
            "birthYear": str(birth_year) if birth_year is not None else "",
        }
        state.show_form = True
        state.error = ""
        state.success = ""
        return state

    def cancel_form(self, state: DashboardState) -> DashboardState:
        state.show_form = False
        state.editing_author = None
        state.form_data = empty_form()
        return state

    def submit(self, state: DashboardState) -> DashboardState:
        state.error = ""
        state.success = ""
        editing = state.editing_author
        if editing:
            method, path = "PUT", f"/authors/{editing['id']}"
        else:
            method, path = "POST", "/authors/"

        payload = dict(state.form_data)
        payload["birthYear"] = _coerce_birth_year(payload.get("birthYear"))

        try:
            status, body = self.client.request(method, path, payload)
        except ApiUnavailable as e:
            logger.error("Error submitting author: %s", e)
            state.error = "Error al procesar la solicitud"
            return state

        if 200 <= status < 300:
            state.success = "Autor actualizado correctamente" if editing else "Autor creado correctamente"
            self.cancel_form(state)
            self.load(state)
        else:
            state.error = _error_message(body, "Error al procesar la solicitud")
        return state

    def request_delete(self, state: DashboardState, author_id: int) -> DashboardState:
        author = next((a for a in state.authors if a.get("id") == author_id), None)
        if author is None:
            state.error = "Autor no encontrado"
        state.confirm_delete = author
        return state

    def delete(self, state: DashboardState, author_id: int) -> DashboardState:
        state.confirm_delete = None
        if not self.confirm(DELETE_CONFIRMATION):
            return state

        try:
            status, body = self.client.request("DELETE", f"/authors/{author_id}")
        except ApiUnavailable as e:
            logger.error("Error deleting author %s: %s", author_id, e)
            state.error = "Error al eliminar el autor"
            return state

        if 200 <= status < 300:
            state.success = "Autor eliminado correctamente"
            self.load(state)
        else:
            state.error = _error_message(body, "Error al eliminar el autor")
        return state

    def view_books(self, state: DashboardState, author_id: int) -> DashboardState:
        state.loading_books = True
        try:
            status, body = self.client.request("GET", f"/authors/{author_id}/books")
            if status == 200:
                state.selected_author_books = (body or {}).get("books") or []
            else:
                state.error = "Error al cargar los libros del autor"
        except ApiUnavailable as e:
            logger.error("Error fetching books of author %s: %s", author_id, e)
            state.error = "Error al cargar los libros del autor"
        finally:
            state.loading_books = False
        return state

    def close_books(self, state: DashboardState) -> DashboardState:
        state.selected_author_books = None
        return state


# ---------------------------------------------------------------------
# Render HTML
# ---------------------------------------------------------------------

def _e(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def _render_stats(stats: Stats) -> str:
    cards = [
        ("Total Autores", stats.total_authors),
        ("Total Libros", stats.total_books),
        ("Promedio Libros/Autor", stats.average_books_per_author),
        ("Géneros Únicos", stats.unique_genres),
        ("Promedio Páginas", stats.average_pages),
    ]
    items = "".join(
        f'<div class="card"><h3>{_e(label)}</h3><p>{_e(value)}</p></div>'
        for label, value in cards
    )
    return f'<div class="stats">{items}</div>'


def _render_form(state: DashboardState) -> str:
    form = state.form_data
    if state.editing_author:
        action = f"/dashboard/authors/{_e(state.editing_author.get('id'))}"
    else:
        action = "/dashboard/authors"
    title = "Editar Autor" if state.editing_author else "Crear Nuevo Autor"
    button = "Actualizar" if state.editing_author else "Crear"
    return (
        '<div class="form">'
        f"<h2>{title}</h2>"
        f'<form method="post" action="{action}">'
        f'<label>Nombre *<input type="text" name="name" required value="{_e(form["name"])}"></label>'
        f'<label>Email *<input type="email" name="email" required value="{_e(form["email"])}"></label>'
        f'<label>Biografía<textarea name="bio" rows="3">{_e(form["bio"])}</textarea></label>'
        f'<label>Nacionalidad<input type="text" name="nationality" value="{_e(form["nationality"])}"></label>'
        f'<label>Año de Nacimiento<input type="number" name="birthYear" value="{_e(form["birthYear"])}"></label>'
        f'<button type="submit">{button}</button>'
        '<a href="/dashboard">Cancelar</a>'
        "</form></div>"
    )


def _render_confirm_delete(author: Dict[str, Any]) -> str:
    author_id = _e(author.get("id"))
    return (
        '<div class="confirm">'
        f"<p>{_e(DELETE_CONFIRMATION)}</p><p>{_e(author.get('name'))}</p>"
        f'<form method="post" action="/dashboard/authors/{author_id}/delete">'
        '<input type="hidden" name="confirm" value="1">'
        '<button type="submit">Eliminar</button>'
        '<a href="/dashboard">Cancelar</a>'
        "</form></div>"
    )


def _render_row(author: Dict[str, Any]) -> str:
    born = ""
    if author.get("birthYear"):
        born = f'<div class="muted">Nacido: {_e(author["birthYear"])}</div>'
    author_id = _e(author.get("id"))
    return (
        "<tr>"
        f"<td>{_e(author.get('name'))}{born}</td>"
        f"<td>{_e(author.get('email'))}</td>"
        f"<td>{_e(author.get('nationality') or '-')}</td>"
        f"<td>{_book_count(author)}</td>"
        "<td>"
        f'<a href="/dashboard?books={author_id}">Ver Libros</a> '
        f'<a href="/dashboard?edit={author_id}">Editar</a> '
        f'<a href="/dashboard?delete={author_id}">Eliminar</a>'
        "</td>"
        "</tr>"
    )


def _render_books(state: DashboardState) -> str:
    if state.loading_books:
        content = "<div>Cargando...</div>"
    elif not state.selected_author_books:
        content = '<div class="muted">Este autor no tiene libros registrados</div>'
    else:
        items = []
        for book in state.selected_author_books:
            details = [
                f"{label}: {_e(book.get(key))}"
                for label, key in (
                    ("Género", "genre"),
                    ("Año", "publishedYear"),
                    ("Páginas", "pages"),
                    ("ISBN", "isbn"),
                )
                if book.get(key)
            ]
            description = f"<p>{_e(book['description'])}</p>" if book.get("description") else ""
            items.append(
                f'<div class="book"><h3>{_e(book.get("title"))}</h3>{description}'
                f'<div class="muted">{" | ".join(details)}</div></div>'
            )
        content = "".join(items)
    return (
        '<div class="modal"><h2>Libros del Autor</h2>'
        '<a href="/dashboard">×</a>'
        f"{content}</div>"
    )


def render_dashboard(state: DashboardState) -> str:
    """Genera la página HTML del dashboard para el estado dado."""
    if state.loading:
        body = "<div>Cargando...</div>"
    else:
        parts = ["<h1>Dashboard de Autores</h1>"]
        if state.stats:
            parts.append(_render_stats(state.stats))
        if state.error:
            parts.append(f'<div class="error">{_e(state.error)}</div>')
        if state.success:
            parts.append(f'<div class="success">{_e(state.success)}</div>')
        parts.append('<a href="/dashboard?new=1">+ Crear Nuevo Autor</a>')
        if state.show_form:
            parts.append(_render_form(state))
        if state.confirm_delete:
            parts.append(_render_confirm_delete(state.confirm_delete))

        if state.authors:
            rows = "".join(_render_row(a) for a in state.authors)
        else:
            rows = '<tr><td colspan="5">No hay autores registrados</td></tr>'
        parts.append(
            "<h2>Lista de Autores</h2><table><thead><tr>"
            "<th>Nombre</th><th>Email</th><th>Nacionalidad</th><th>Libros</th><th>Acciones</th>"
            f"</tr></thead><tbody>{rows}</tbody></table>"
        )

        if state.selected_author_books is not None:
            parts.append(_render_books(state))
        body = "".join(parts)

    return (
        "<!DOCTYPE html><html lang=\"es\"><head><meta charset=\"utf-8\">"
        "<title>Dashboard de Autores</title></head>"
        f"<body>{body}</body></html>"
    )
