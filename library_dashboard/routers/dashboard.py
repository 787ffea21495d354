"""
Página HTML del dashboard.

La página consume el propio API por HTTP (API_BASE_URL), igual que lo haría
el navegador:
  GET  /dashboard?books=<id>              modal con los libros del autor
  GET  /dashboard?edit=<id>               formulario de edición
  GET  /dashboard?new=1                   formulario de creación
  GET  /dashboard?delete=<id>             confirmación de borrado
  POST /dashboard/authors                 crea el autor del formulario
  POST /dashboard/authors/{id}            actualiza el autor del formulario
  POST /dashboard/authors/{id}/delete     borra el autor (requiere confirm=1)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import HTMLResponse

from ..dashboard import ApiClient, DashboardController, DashboardState, render_dashboard

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def get_api_client() -> ApiClient:
    return ApiClient()


def _form_data(name: str, email: str, bio: str, nationality: str, birth_year: str) -> dict:
    return {
        "name": name,
        "email": email,
        "bio": bio,
        "nationality": nationality,
        "birthYear": birth_year,
    }


@router.get("", response_class=HTMLResponse, include_in_schema=False)
def dashboard_page(
    books: Optional[int] = None,
    edit: Optional[int] = None,
    new: bool = False,
    delete: Optional[int] = None,
    client: ApiClient = Depends(get_api_client),
):
    controller = DashboardController(client)
    state = controller.load(DashboardState())

    if new:
        controller.new_author(state)
    elif edit is not None:
        author = next((a for a in state.authors if a.get("id") == edit), None)
        if author:
            controller.edit(state, author)
        else:
            state.error = "Autor no encontrado"

    if delete is not None:
        controller.request_delete(state, delete)

    if books is not None:
        controller.view_books(state, books)

    return HTMLResponse(render_dashboard(state))


@router.post("/authors", response_class=HTMLResponse, include_in_schema=False)
def create_author_from_form(
    name: str = Form(""),
    email: str = Form(""),
    bio: str = Form(""),
    nationality: str = Form(""),
    birth_year: str = Form("", alias="birthYear"),
    client: ApiClient = Depends(get_api_client),
):
    controller = DashboardController(client)
    state = controller.new_author(DashboardState())
    state.form_data = _form_data(name, email, bio, nationality, birth_year)
    controller.submit(state)
    if state.error:
        # el formulario sigue abierto con los datos y el error
        controller.load(state)
    return HTMLResponse(render_dashboard(state), status_code=200 if not state.error else 400)


@router.post("/authors/{author_id}", response_class=HTMLResponse, include_in_schema=False)
def update_author_from_form(
    author_id: int,
    name: str = Form(""),
    email: str = Form(""),
    bio: str = Form(""),
    nationality: str = Form(""),
    birth_year: str = Form("", alias="birthYear"),
    client: ApiClient = Depends(get_api_client),
):
    controller = DashboardController(client)
    state = controller.edit(DashboardState(), {"id": author_id})
    state.form_data = _form_data(name, email, bio, nationality, birth_year)
    controller.submit(state)
    if state.error:
        controller.load(state)
    return HTMLResponse(render_dashboard(state), status_code=200 if not state.error else 400)


@router.post("/authors/{author_id}/delete", response_class=HTMLResponse, include_in_schema=False)
def delete_author_from_form(
    author_id: int,
    confirm: str = Form(""),
    client: ApiClient = Depends(get_api_client),
):
    # Solo se borra si el formulario de confirmación envió confirm=1
    controller = DashboardController(client, confirm=lambda message: confirm == "1")
    state = controller.load(DashboardState())
    controller.delete(state, author_id)
    if not state.success and not state.error:
        controller.request_delete(state, author_id)
    return HTMLResponse(render_dashboard(state), status_code=400 if state.error else 200)
