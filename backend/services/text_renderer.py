"""
Text layout and drawing for the card.

`choose_font_size` and `wrap_lines` are pure: they only see a `measure`
callable, so they can be tested without fonts or a canvas. The drawing helpers
render text with a blurred glow on a private layer, which keeps glow settings
from leaking into anything drawn afterwards.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from domain.models import DrawStyle, RGBA
from settings import settings

logger = logging.getLogger(__name__)

SizedMeasure = Callable[[str, int], float]
Measure = Callable[[str], float]

# Tried in order after the configured path; Verdana matches the card design,
# DejaVu is what most Linux hosts ship.
_FONT_CANDIDATES = {
    "regular": ["Verdana.ttf", "verdana.ttf", "DejaVuSans.ttf"],
    "bold": ["Verdana_Bold.ttf", "verdanab.ttf", "DejaVuSans-Bold.ttf"],
    "italic": ["Verdana_Italic.ttf", "verdanai.ttf", "DejaVuSans-Oblique.ttf"],
}


def choose_font_size(
    text: str,
    max_width: float,
    measure: SizedMeasure,
    max_size: int = 120,
    min_size: int = 30,
    step: int = 5,
) -> int:
    """
    Largest font size (stepping down from max_size) whose measured width fits.

    Never goes below min_size: if even the floor is too wide, the floor is
    returned anyway.
    """
    size = max_size
    while measure(text, size) > max_width and size > min_size:
        size = max(min_size, size - step)
    return size


def wrap_lines(text: str, max_width: float, measure: Measure) -> List[str]:
    """
    Greedy word wrap.

    Words are packed while `line + word + " "` fits max_width. A word that
    overflows a non-empty line starts the next line; a single word wider than
    max_width stays alone on its line. Whitespace-only text yields no lines.
    """
    words = text.split()
    lines: List[str] = []
    line = ""
    for word in words:
        candidate = f"{line}{word} "
        if line and measure(candidate) > max_width:
            lines.append(line.strip())
            line = f"{word} "
        else:
            line = candidate
    if words:
        lines.append(line.strip())
    return lines


def _font_path_for(style: str) -> Optional[str]:
    return {
        "regular": settings.CARD_FONT_REGULAR,
        "bold": settings.CARD_FONT_BOLD,
        "italic": settings.CARD_FONT_ITALIC,
    }.get(style)


@lru_cache(maxsize=64)
def load_font(size: int, style: str = "regular") -> ImageFont.FreeTypeFont:
    """Resolve a font for `style` at `size`, falling back to Pillow's built-in font."""
    candidates = [p for p in [_font_path_for(style)] if p] + _FONT_CANDIDATES.get(style, [])
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.info("[fonts] no TrueType font for style=%s, using Pillow default", style)
    return ImageFont.load_default(size=size)


def font_measure(style: str) -> SizedMeasure:
    """Width measure for `choose_font_size` backed by real fonts."""
    def measure(text: str, size: int) -> float:
        return load_font(size, style).getlength(text)
    return measure


def draw_glow_text(
    canvas: Image.Image,
    text: str,
    position: Tuple[float, float],
    font: ImageFont.FreeTypeFont,
    fill: RGBA,
    style: DrawStyle,
    anchor: str = "ms",
) -> None:
    """
    Draw `text` with a soft glow behind it.

    The glow is the text mask blurred and composited `style.passes` times, then
    the solid text goes on top. `anchor="ms"` puts `position` at the horizontal
    middle of the alphabetic baseline.
    """
    if not text:
        return
    if style.is_visible:
        _composite_glow(canvas, text, position, font, style, anchor)
    ImageDraw.Draw(canvas).text(position, text, font=font, fill=fill, anchor=anchor)


def _composite_glow(
    canvas: Image.Image,
    text: str,
    position: Tuple[float, float],
    font: ImageFont.FreeTypeFont,
    style: DrawStyle,
    anchor: str,
) -> None:
    gx = position[0] + style.offset_x
    gy = position[1] + style.offset_y
    bbox = ImageDraw.Draw(canvas).textbbox((gx, gy), text, font=font, anchor=anchor)
    pad = int(style.blur_radius * 2) + 2
    left = max(0, int(bbox[0]) - pad)
    top = max(0, int(bbox[1]) - pad)
    right = min(canvas.width, int(bbox[2]) + pad + 1)
    bottom = min(canvas.height, int(bbox[3]) + pad + 1)
    if right <= left or bottom <= top:
        return

    mask = Image.new("L", (right - left, bottom - top), 0)
    ImageDraw.Draw(mask).text((gx - left, gy - top), text, font=font, fill=255, anchor=anchor)
    if style.blur_radius > 0:
        # Canvas-style blur values are roughly twice the Gaussian sigma
        mask = mask.filter(ImageFilter.GaussianBlur(radius=style.blur_radius / 2))
    alpha = style.color[3]
    mask = mask.point(lambda p: p * alpha // 255)

    glow = Image.new("RGBA", mask.size, style.color[:3] + (0,))
    glow.putalpha(mask)
    for _ in range(style.passes):
        canvas.alpha_composite(glow, dest=(left, top))


def draw_text_lines(
    canvas: Image.Image,
    lines: Sequence[str],
    center_x: float,
    first_baseline: float,
    line_height: float,
    font: ImageFont.FreeTypeFont,
    fill: RGBA,
    style: DrawStyle,
) -> float:
    """Draw pre-wrapped lines centered on center_x. Returns the last baseline used."""
    baseline = first_baseline
    for index, line in enumerate(lines):
        baseline = first_baseline + index * line_height
        draw_glow_text(canvas, line, (center_x, baseline), font, fill, style)
    return baseline
