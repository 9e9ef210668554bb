import base64
from io import BytesIO

from PIL import Image

from domain.errors import ServiceError
from scripts import render_card_only


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


STAGES = ["01_background.png", "02_photo_frame.png", "03_text.png", "04_final.png"]


def test_local_render_writes_card_and_debug_artifacts(tmp_path):
    background = tmp_path / "bg.png"
    background.write_bytes(_png_bytes())
    out_dir = tmp_path / "out"
    debug_dir = tmp_path / "debug"

    code = render_card_only.main(
        [
            "--name", "Ana",
            "--age", "30",
            "--background", str(background),
            "--out-dir", str(out_dir),
            "--debug-dir", str(debug_dir),
        ]
    )

    assert code == 0
    assert Image.open(out_dir / "card-Ana.png").size == (1080, 1920)
    assert sorted(p.name for p in debug_dir.glob("*.png")) == STAGES


def test_generate_honours_debug_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(render_card_only, "GreetingService", FakeGreetingService)
    out_dir = tmp_path / "out"
    debug_dir = tmp_path / "debug"

    code = render_card_only.main(
        ["--name", "Ana", "--age", "30", "--generate", "--out-dir", str(out_dir), "--debug-dir", str(debug_dir)]
    )

    assert code == 0
    assert (out_dir / "card-Ana.png").exists()
    assert sorted(p.name for p in debug_dir.glob("*.png")) == STAGES
    assert (debug_dir / "layout.json").exists()


def test_generator_failure_exits_nonzero(tmp_path, monkeypatch):
    monkeypatch.setattr(render_card_only, "GreetingService", lambda: FakeGreetingService(background_error=True))

    code = render_card_only.main(["--name", "Ana", "--age", "30", "--generate", "--out-dir", str(tmp_path)])

    assert code == 1
    assert not list(tmp_path.glob("*.png"))
