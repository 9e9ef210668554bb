import math

import pytest
from PIL import Image, ImageDraw

from domain.models import DEFAULT_THEME, GeometryBox
from services.image_fit import compute_cover_crop, draw_photo_placeholder, fit_cover, fit_within


def _split_image(size: tuple[int, int], horizontal: bool = True) -> Image.Image:
    """Left/right (or top/bottom) halves in red and blue."""
    img = Image.new("RGBA", size, (255, 0, 0, 255))
    w, h = size
    box = (w // 2, 0, w, h) if horizontal else (0, h // 2, w, h)
    ImageDraw.Draw(img).rectangle((box[0], box[1], box[2] - 1, box[3] - 1), fill=(0, 0, 255, 255))
    return img


def test_wider_source_crops_left_and_right():
    sx, sy, sw, sh = compute_cover_crop((1600, 900), (720, 720))
    assert sh == 900
    assert sw == pytest.approx(900)
    assert sx == pytest.approx(350)
    assert sy == 0


def test_taller_source_crops_top_and_bottom():
    sx, sy, sw, sh = compute_cover_crop((600, 1000), (720, 720))
    assert sw == 600
    assert sh == pytest.approx(600)
    assert sx == 0
    assert sy == pytest.approx(200)


def test_same_aspect_keeps_whole_image():
    assert compute_cover_crop((360, 360), (720, 720)) == (0.0, 0.0, 360.0, 360.0)


@pytest.mark.parametrize(
    "src_size",
    [(1, 1), (4000, 10), (10, 4000), (1920, 1080), (1080, 1920), (733, 491), (720, 720)],
)
def test_cover_crop_matches_destination_aspect_and_stays_inside(src_size):
    dst = (720, 540)
    sx, sy, sw, sh = compute_cover_crop(src_size, dst)
    assert math.isclose(sw / sh, dst[0] / dst[1], rel_tol=1e-9)
    assert sx >= 0 and sy >= 0
    assert sx + sw <= src_size[0] + 1e-6
    assert sy + sh <= src_size[1] + 1e-6
    # crop is centered
    assert sx == pytest.approx((src_size[0] - sw) / 2)
    assert sy == pytest.approx((src_size[1] - sh) / 2)


@pytest.mark.parametrize("src_size", [(1600, 900), (300, 1200), (720, 720), (50, 51)])
def test_fit_cover_fills_the_box_exactly(src_size):
    box = GeometryBox(x=180, y=193.6, width=720, height=720)
    fitted = fit_cover(Image.new("RGBA", src_size, (10, 20, 30, 255)), box)
    assert fitted.size == (720, 720)
    assert fitted.getpixel((0, 0)) == (10, 20, 30, 255)
    assert fitted.getpixel((719, 719)) == (10, 20, 30, 255)


def test_fit_cover_keeps_center_of_wide_source():
    # 4:1 source, two halves; a square crop of the center shows both colors split down the middle
    src = _split_image((800, 200))
    fitted = fit_cover(src, GeometryBox(0, 0, 100, 100))
    assert fitted.getpixel((10, 50))[:3] == (255, 0, 0)
    assert fitted.getpixel((90, 50))[:3] == (0, 0, 255)


def test_fit_cover_keeps_center_of_tall_source():
    src = _split_image((200, 800), horizontal=False)
    fitted = fit_cover(src, GeometryBox(0, 0, 100, 100))
    assert fitted.getpixel((50, 10))[:3] == (255, 0, 0)
    assert fitted.getpixel((50, 90))[:3] == (0, 0, 255)


def test_fit_within_never_upscales():
    small = Image.new("RGBA", (100, 50))
    assert fit_within(small, 300, 150).size == (100, 50)


def test_fit_within_uses_the_tighter_ratio():
    assert fit_within(Image.new("RGBA", (900, 150)), 300, 150).size == (300, 50)
    assert fit_within(Image.new("RGBA", (200, 600)), 300, 150).size == (50, 150)


def test_placeholder_fills_box_and_draws_glyph():
    canvas = Image.new("RGBA", (400, 400), (0, 0, 0, 255))
    box = GeometryBox(x=50, y=50, width=300, height=300)
    draw_photo_placeholder(canvas, box, DEFAULT_THEME)

    assert canvas.getpixel((51, 51)) == DEFAULT_THEME.placeholder_color
    assert canvas.getpixel((348, 348)) == DEFAULT_THEME.placeholder_color
    # outside the box is untouched
    assert canvas.getpixel((49, 49)) == (0, 0, 0, 255)
    assert canvas.getpixel((350, 350)) == (0, 0, 0, 255)
    # head of the glyph sits just above the center
    cx, cy = box.center
    head_y = int(cy - DEFAULT_THEME.placeholder_glyph_size * 0.18)
    assert canvas.getpixel((int(cx), head_y)) == DEFAULT_THEME.placeholder_glyph_color
