import base64
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from api.main import app
from api.routes import cards
from api.routes.cards import get_greeting_service
from domain.errors import CardError, DecodeError, RenderError, ServiceError


def _png_bytes(size=(108, 192), color=(120, 180, 230)) -> bytes:
    out = BytesIO()
    Image.new("RGB", size, color).save(out, format="PNG")
    return out.getvalue()


class FakeGreetingService:
    def __init__(self, background_error=False):
        self.background_error = background_error

    async def generate_greeting(self, name, age, profession=""):
        return f"¡Felices {age}, {name}!"

    async def generate_background_image(self):
        if self.background_error:
            raise ServiceError("image model down")
        return base64.b64encode(_png_bytes()).decode("ascii")


@pytest.fixture
def client():
    app.dependency_overrides[get_greeting_service] = lambda: FakeGreetingService()
    yield TestClient(app)
    app.dependency_overrides.clear()


FORM = {"name": "Ana", "date": "2024-05-01", "age": "30"}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["status"] == "ok"


def test_create_card_returns_png_download(client):
    res = client.post("/cards", data=FORM)
    assert res.status_code == 200
    assert res.headers["content-type"] == "image/png"
    assert 'filename="card-Ana.png"' in res.headers["content-disposition"]
    assert Image.open(BytesIO(res.content)).size == (1080, 1920)


def test_create_card_with_photo_and_logo(client):
    files = {
        "photo": ("me.jpg", _png_bytes((640, 480), (200, 50, 50)), "image/png"),
        "logo": ("logo.png", _png_bytes((400, 100), (10, 10, 10)), "image/png"),
    }
    res = client.post("/cards", data={**FORM, "profession": "programadora"}, files=files)
    assert res.status_code == 200
    card = Image.open(BytesIO(res.content)).convert("RGB")
    # logo sits 50px from the bottom-right corner
    assert card.getpixel((1080 - 60, 1920 - 60)) == (10, 10, 10)


def test_unicode_name_gets_encoded_filename(client):
    res = client.post("/cards", data={**FORM, "name": "José Ñandú"})
    assert res.status_code == 200
    assert "filename*=UTF-8''card-Jos%C3%A9_%C3%91and%C3%BA.png" in res.headers["content-disposition"]


def test_bad_photo_is_rejected(client):
    files = {"photo": ("me.jpg", b"not an image", "image/jpeg")}
    res = client.post("/cards", data=FORM, files=files)
    assert res.status_code == 400
    assert "foto" in res.json()["detail"]


def test_missing_required_field_is_rejected(client):
    res = client.post("/cards", data={"name": "Ana", "date": "2024-05-01"})
    assert res.status_code == 422


def test_background_failure_maps_to_bad_gateway():
    app.dependency_overrides[get_greeting_service] = lambda: FakeGreetingService(background_error=True)
    try:
        res = TestClient(app).post("/cards", data=FORM)
    finally:
        app.dependency_overrides.clear()
    assert res.status_code == 502
    assert res.json()["detail"]


def test_preview_returns_data_url(client):
    res = client.post("/cards/preview", data=FORM)
    assert res.status_code == 200
    body = res.json()
    assert body["filename"] == "card-Ana.png"
    assert body["greeting"] == "¡Felices 30, Ana!"
    assert body["data_url"].startswith("data:image/png;base64,")
    png = base64.b64decode(body["data_url"].split(",", 1)[1])
    assert Image.open(BytesIO(png)).size == (1080, 1920)


def test_render_failure_maps_to_server_error(client, monkeypatch):
    async def broken_pipeline(request, service):
        raise RenderError("canvas allocation failed")

    monkeypatch.setattr(cards, "create_birthday_card", broken_pipeline)
    res = client.post("/cards", data=FORM)
    assert res.status_code == 500
    assert res.json()["detail"] == RenderError.default_message


@pytest.mark.parametrize(
    "exc,status",
    [(DecodeError(), 400), (ServiceError(), 502), (RenderError(), 500), (CardError(), 500)],
)
def test_status_for_card_errors(exc, status):
    assert cards._status_for(exc) == status
