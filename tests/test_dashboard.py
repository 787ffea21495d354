from fastapi.testclient import TestClient
from library_dashboard.main import app
from library_dashboard.dashboard import (
    ApiClient,
    ApiUnavailable,
    DashboardController,
    DashboardState,
    calculate_stats,
    render_dashboard,
)
from library_dashboard.routers.dashboard import get_api_client
import io
import json
import urllib.error
import urllib.request
import pytest

client = TestClient(app)


# Esto simula la respuesta de urllib.request.urlopen(...)
class DummyResponse:
    def __init__(self, body: str, status: int = 200):
        self._body = body.encode("utf-8")
        self.status = status

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class InProcessTransport:
    """Transporte del dashboard que llama al API en proceso."""

    def __init__(self, test_client):
        self.test_client = test_client

    def request(self, method, path, payload=None):
        r = self.test_client.request(method, path, json=payload)
        return r.status_code, r.json()


class FakeClient:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def request(self, method, path, payload=None):
        self.calls.append((method, path, payload))
        return self.responses[(method, path)]


# -------------------------------
# Estadísticas
# -------------------------------

def test_calculate_stats_example():
    authors = [
        {"books": [{"pages": 100, "genre": "A"}, {"pages": 200, "genre": "B"}]},
        {"books": []},
    ]
    stats = calculate_stats(authors)
    assert stats.total_authors == 2
    assert stats.total_books == 2
    assert stats.average_books_per_author == 1
    assert stats.unique_genres == 2
    assert stats.average_pages == 150


def test_calculate_stats_empty():
    stats = calculate_stats([])
    assert stats.total_authors == 0
    assert stats.total_books == 0
    assert stats.average_books_per_author == 0
    assert stats.unique_genres == 0
    assert stats.average_pages == 0


def test_calculate_stats_rounding_and_nulls():
    authors = [
        {"books": [{"pages": 100, "genre": "Novela"}, {"pages": 101, "genre": None}]},
        {"books": [{"pages": None, "genre": "Novela"}]},
        {"books": []},
    ]
    stats = calculate_stats(authors)
    assert stats.total_books == 3
    assert stats.average_books_per_author == 1.0
    assert stats.unique_genres == 1
    # 100.5 redondea hacia arriba
    assert stats.average_pages == 101


def test_calculate_stats_two_decimals_and_book_count():
    authors = [{"bookCount": 1, "books": []}, {"books": []}, {"books": []}]
    stats = calculate_stats(authors)
    assert stats.total_books == 1
    assert stats.average_books_per_author == 0.33


# -------------------------------
# Controlador (contra el API real en memoria)
# -------------------------------

def _controller(confirm=None):
    return DashboardController(InProcessTransport(client), confirm=confirm)


def test_load_fetches_authors_and_stats():
    client.post("/authors/", json={"name": "Autora", "email": "autora@example.com"})
    controller = _controller()

    state = controller.load(DashboardState())
    assert state.loading is False
    assert [a["name"] for a in state.authors] == ["Autora"]
    assert state.stats.total_authors == 1


def test_submit_creates_author_and_reloads():
    controller = _controller()
    state = controller.load(DashboardState())
    controller.new_author(state)
    state.form_data.update({"name": "Nueva", "email": "nueva@example.com", "birthYear": "1970"})

    controller.submit(state)
    assert state.error == ""
    assert state.success == "Autor creado correctamente"
    assert state.show_form is False
    assert state.form_data["name"] == ""
    assert state.authors[0]["birthYear"] == 1970
    assert state.stats.total_authors == 1


def test_submit_edit_uses_put():
    r = client.post("/authors/", json={"name": "Original", "email": "original@example.com"})
    controller = _controller()
    state = controller.load(DashboardState())

    controller.edit(state, state.authors[0])
    assert state.form_data["name"] == "Original"
    state.form_data["name"] = "Editada"
    controller.submit(state)

    assert state.success == "Autor actualizado correctamente"
    assert state.editing_author is None
    assert client.get(f"/authors/{r.json()['id']}").json()["name"] == "Editada"


def test_submit_surfaces_server_error():
    controller = _controller()
    state = controller.new_author(DashboardState())
    state.form_data.update({"name": "Mal", "email": "no-es-email"})

    controller.submit(state)
    assert state.error == "Email invalido"
    assert state.show_form is True


def test_delete_requires_confirmation():
    r = client.post("/authors/", json={"name": "Borrable", "email": "borrable@example.com"})
    author_id = r.json()["id"]
    asked = []

    def decline(message):
        asked.append(message)
        return False

    state = _controller(confirm=decline).load(DashboardState())
    _controller(confirm=decline).delete(state, author_id)
    assert asked == ["¿Estás seguro de que deseas eliminar este autor?"]
    assert client.get(f"/authors/{author_id}").status_code == 200

    _controller(confirm=lambda message: True).delete(state, author_id)
    assert state.success == "Autor eliminado correctamente"
    assert state.authors == []
    assert client.get(f"/authors/{author_id}").status_code == 404


def test_delete_missing_author_sets_error():
    state = _controller(confirm=lambda message: True).delete(DashboardState(), 999999999)
    assert state.error == "Autor no encontrado"


def test_view_and_close_books():
    r = client.post("/authors/", json={"name": "Con libros", "email": "libros@example.com"})
    author_id = r.json()["id"]
    client.post("/books/", json={"title": "Libro A", "authorId": author_id})
    controller = _controller()

    state = controller.view_books(DashboardState(), author_id)
    assert state.loading_books is False
    assert [b["title"] for b in state.selected_author_books] == ["Libro A"]

    controller.close_books(state)
    assert state.selected_author_books is None


def test_view_books_error_keeps_modal_closed():
    state = _controller().view_books(DashboardState(), 999999999)
    assert state.selected_author_books is None
    assert state.error == "Error al cargar los libros del autor"


# -------------------------------
# ApiClient (urlopen simulado)
# -------------------------------

def test_api_client_returns_status_and_json(monkeypatch):
    def fake_urlopen(req, timeout=5):
        assert req.full_url == "http://api:8000/authors/"
        assert req.get_method() == "GET"
        return DummyResponse(json.dumps([{"id": 1}]))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    assert ApiClient("http://api:8000/").request("GET", "/authors/") == (200, [{"id": 1}])


def test_api_client_http_error_returns_body(monkeypatch):
    def fake_urlopen(req, timeout=5):
        assert json.loads(req.data.decode("utf-8")) == {"email": "x"}
        raise urllib.error.HTTPError(
            req.full_url, 400, "Bad Request", {}, io.BytesIO(b'{"error": "Email invalido"}')
        )

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    status, body = ApiClient("http://api:8000").request("PUT", "/authors/1", {"email": "x"})
    assert status == 400
    assert body == {"error": "Email invalido"}


def test_api_client_unreachable_raises(monkeypatch):
    def fake_urlopen(req, timeout=5):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    with pytest.raises(ApiUnavailable):
        ApiClient("http://api:8000").request("GET", "/authors/")


def test_submit_when_api_unreachable(monkeypatch):
    def fake_urlopen(req, timeout=5):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    controller = DashboardController(ApiClient("http://api:8000"))
    state = controller.load(DashboardState())
    assert state.loading is False
    assert state.authors == []

    controller.new_author(state)
    controller.submit(state)
    assert state.error == "Error al procesar la solicitud"


# -------------------------------
# Página /dashboard
# -------------------------------

AUTHORS = [
    {
        "id": 1,
        "name": "Julio <Cortázar>",
        "email": "julio@example.com",
        "nationality": "Argentina",
        "birthYear": 1914,
        "bookCount": 1,
        "books": [{"id": 10, "title": "Rayuela", "genre": "Novela", "pages": 600}],
    }
]


@pytest.fixture
def fake_api():
    fake = FakeClient({
        ("GET", "/authors/"): (200, AUTHORS),
        ("GET", "/authors/1/books"): (200, {"authorId": 1, "books": AUTHORS[0]["books"]}),
    })
    app.dependency_overrides[get_api_client] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_api_client, None)


def test_dashboard_page_renders_stats_and_table(fake_api):
    r = client.get("/dashboard")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    html = r.text
    assert "Dashboard de Autores" in html
    assert "Julio &lt;Cortázar&gt;" in html
    assert "Nacido: 1914" in html
    assert "Promedio Páginas</h3><p>600</p>" in html
    assert "Libros del Autor" not in html


def test_dashboard_page_books_modal(fake_api):
    r = client.get("/dashboard?books=1")
    assert "Libros del Autor" in r.text
    assert "Rayuela" in r.text
    assert ("GET", "/authors/1/books", None) in fake_api.calls


def test_dashboard_page_edit_form(fake_api):
    r = client.get("/dashboard?edit=1")
    assert "Editar Autor" in r.text
    assert 'value="julio@example.com"' in r.text

    r = client.get("/dashboard?edit=42")
    assert "Autor no encontrado" in r.text


def test_dashboard_page_forms_post_to_dashboard_routes(fake_api):
    html = client.get("/dashboard?edit=1").text
    assert '<form method="post" action="/dashboard/authors/1">' in html
    assert 'href="/dashboard?delete=1"' in html
    assert 'href="/books/"' not in html

    html = client.get("/dashboard?new=1").text
    assert '<form method="post" action="/dashboard/authors">' in html


def test_dashboard_form_creates_author(fake_api):
    fake_api.responses[("POST", "/authors/")] = (201, {"id": 2, "name": "Nueva"})
    form = {"name": "Nueva", "email": "nueva@example.com", "bio": "", "nationality": "", "birthYear": "1970"}

    r = client.post("/dashboard/authors", data=form)
    assert r.status_code == 200
    assert "Autor creado correctamente" in r.text
    expected = dict(form, birthYear=1970)
    assert ("POST", "/authors/", expected) in fake_api.calls


def test_dashboard_form_updates_author(fake_api):
    fake_api.responses[("PUT", "/authors/1")] = (200, AUTHORS[0])
    form = {"name": "Julio", "email": "julio@example.com", "bio": "", "nationality": "", "birthYear": ""}

    r = client.post("/dashboard/authors/1", data=form)
    assert r.status_code == 200
    assert "Autor actualizado correctamente" in r.text
    assert ("PUT", "/authors/1", dict(form, birthYear=None)) in fake_api.calls


def test_dashboard_form_shows_server_error(fake_api):
    fake_api.responses[("POST", "/authors/")] = (400, {"error": "Email invalido"})

    r = client.post("/dashboard/authors", data={"name": "Mal", "email": "no-es-email"})
    assert r.status_code == 400
    assert "Email invalido" in r.text
    assert 'value="no-es-email"' in r.text
    assert "Julio &lt;Cortázar&gt;" in r.text


def test_dashboard_delete_needs_confirmation(fake_api):
    fake_api.responses[("DELETE", "/authors/1")] = (200, {"message": "Autor eliminado correctamente"})

    html = client.get("/dashboard?delete=1").text
    assert "¿Estás seguro de que deseas eliminar este autor?" in html
    assert 'action="/dashboard/authors/1/delete"' in html

    r = client.post("/dashboard/authors/1/delete")
    assert r.status_code == 200
    assert not any(call[0] == "DELETE" for call in fake_api.calls)
    assert "¿Estás seguro de que deseas eliminar este autor?" in r.text

    r = client.post("/dashboard/authors/1/delete", data={"confirm": "1"})
    assert r.status_code == 200
    assert ("DELETE", "/authors/1", None) in fake_api.calls
    assert "Autor eliminado correctamente" in r.text


def test_render_loading_state():
    assert "Cargando..." in render_dashboard(DashboardState())


def test_render_empty_table():
    state = DashboardState(loading=False, stats=calculate_stats([]))
    assert "No hay autores registrados" in render_dashboard(state)
