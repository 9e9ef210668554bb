"""
Card compositor.

Loads the assets, then paints the card in a fixed z-order onto a fresh
1080x1920 canvas:

1. background (full bleed)
2. polaroid frame with drop shadow
3. photo (cover-fit) or placeholder
4. title, name (autoshrunk) and greeting (word-wrapped), all with glow
5. logo (bottom-right), if any

and encodes the result as PNG.
"""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFilter

from domain.errors import RenderError
from domain.models import CardLayout, CardRequest, CardTheme, DEFAULT_THEME, DrawStyle, GeometryBox
from services.asset_loader import CardAssets, load_card_assets
from services.image_fit import draw_photo_placeholder, fit_cover, fit_within
from services.layout_engine import compute_card_layout
from services.text_renderer import (
    choose_font_size,
    draw_glow_text,
    draw_text_lines,
    font_measure,
    load_font,
    wrap_lines,
)
from settings import settings

logger = logging.getLogger(__name__)

FALLBACK_FILENAME_STEM = "celebracion"


def build_card_filename(name: str) -> str:
    """`card-<name>.png` with whitespace as underscores and unsafe characters dropped."""
    stem = re.sub(r"\s", "_", (name or "").strip())
    stem = re.sub(r"[^\w\-]", "", stem)
    return f"card-{stem or FALLBACK_FILENAME_STEM}.png"


def _new_canvas(theme: CardTheme) -> Image.Image:
    try:
        return Image.new("RGBA", theme.canvas_size, (0, 0, 0, 0))
    except (ValueError, MemoryError) as exc:
        logger.error("[card] failed to allocate canvas %s: %s", theme.canvas_size, exc)
        raise RenderError(f"canvas allocation failed for {theme.canvas_size}") from exc


def _draw_background(canvas: Image.Image, background: Image.Image) -> None:
    if background.size != canvas.size:
        background = background.resize(canvas.size, resample=Image.Resampling.LANCZOS)
    canvas.alpha_composite(background)


def _draw_drop_shadow(canvas: Image.Image, box: GeometryBox, radius: int, style: DrawStyle) -> None:
    """Blurred rounded-rect shadow under `box`, clipped to the canvas."""
    if not style.is_visible:
        return
    pad = int(style.blur_radius * 2) + 2
    left, top, right, bottom = box.to_pixels()
    left += style.offset_x
    right += style.offset_x
    top += style.offset_y
    bottom += style.offset_y

    region_left = max(0, left - pad)
    region_top = max(0, top - pad)
    region_right = min(canvas.width, right + pad)
    region_bottom = min(canvas.height, bottom + pad)
    if region_right <= region_left or region_bottom <= region_top:
        return

    mask = Image.new("L", (region_right - region_left, region_bottom - region_top), 0)
    ImageDraw.Draw(mask).rounded_rectangle(
        (left - region_left, top - region_top, right - region_left - 1, bottom - region_top - 1),
        radius=radius,
        fill=255,
    )
    if style.blur_radius > 0:
        mask = mask.filter(ImageFilter.GaussianBlur(radius=style.blur_radius / 2))
    alpha = style.color[3]
    mask = mask.point(lambda p: p * alpha // 255)
    shadow = Image.new("RGBA", mask.size, style.color[:3] + (0,))
    shadow.putalpha(mask)
    for _ in range(style.passes):
        canvas.alpha_composite(shadow, dest=(region_left, region_top))


def _draw_photo_frame(canvas: Image.Image, layout: CardLayout, photo: Optional[Image.Image], theme: CardTheme) -> None:
    _draw_drop_shadow(canvas, layout.polaroid, theme.polaroid_radius, theme.polaroid_shadow)
    left, top, right, bottom = layout.polaroid.to_pixels()
    ImageDraw.Draw(canvas).rounded_rectangle(
        (left, top, right - 1, bottom - 1),
        radius=theme.polaroid_radius,
        fill=theme.polaroid_color,
    )
    if photo is None:
        draw_photo_placeholder(canvas, layout.photo, theme)
        return
    fitted = fit_cover(photo, layout.photo)
    px, py, _, _ = layout.photo.to_pixels()
    canvas.alpha_composite(fitted, dest=(px, py))


def _draw_text(canvas: Image.Image, layout: CardLayout, name: str, greeting: str, theme: CardTheme) -> int:
    """Title, name and greeting. Returns the number of greeting lines drawn."""
    center_x = theme.canvas_width / 2

    title_font = load_font(theme.title_font_size, "bold")
    draw_glow_text(
        canvas, theme.title_text, (center_x, layout.title_baseline), title_font, theme.text_color, theme.heading_glow
    )

    name_font = load_font(layout.name_font_size, "bold")
    draw_glow_text(
        canvas, name.upper(), (center_x, layout.name_baseline), name_font, theme.text_color, theme.heading_glow
    )

    message_font = load_font(theme.message_font_size, "italic")
    lines = wrap_lines(greeting, theme.canvas_width * theme.message_width_ratio, message_font.getlength)
    draw_text_lines(
        canvas,
        lines,
        center_x,
        layout.message_baseline,
        theme.message_line_height,
        message_font,
        theme.text_color,
        theme.message_glow,
    )
    return len(lines)


def _draw_logo(canvas: Image.Image, layout: CardLayout, logo: Optional[Image.Image], theme: CardTheme) -> None:
    if logo is None or layout.logo is None:
        return
    scaled = fit_within(logo, theme.logo_max_width, theme.logo_max_height)
    lx, ly, _, _ = layout.logo.to_pixels()
    canvas.alpha_composite(scaled, dest=(lx, ly))


def compute_name_font_size(name: str, theme: CardTheme = DEFAULT_THEME) -> int:
    return choose_font_size(
        name.upper(),
        theme.canvas_width * theme.name_width_ratio,
        font_measure("bold"),
        max_size=theme.name_max_font_size,
        min_size=theme.name_min_font_size,
        step=theme.name_font_step,
    )


def compose_card(
    assets: CardAssets,
    name: str,
    greeting: str,
    theme: CardTheme = DEFAULT_THEME,
    debug_dir: Optional[Path] = None,
) -> Image.Image:
    """Paint every layer onto a fresh canvas and return it."""
    canvas = _new_canvas(theme)
    name_font_size = compute_name_font_size(name, theme)
    layout = compute_card_layout(
        name_font_size,
        logo_size=assets.logo.size if assets.logo is not None else None,
        theme=theme,
    )

    stages: list[tuple[str, Image.Image]] = []

    def snapshot(label: str) -> None:
        if debug_dir:
            stages.append((label, canvas.copy()))

    _draw_background(canvas, assets.background)
    snapshot("background")
    _draw_photo_frame(canvas, layout, assets.photo, theme)
    snapshot("photo_frame")
    line_count = _draw_text(canvas, layout, name, greeting, theme)
    snapshot("text")
    _draw_logo(canvas, layout, assets.logo, theme)
    snapshot("final")

    logger.info(
        "[card] composed name_font=%d message_lines=%d photo=%s logo=%s",
        name_font_size,
        line_count,
        assets.photo is not None,
        assets.logo is not None,
    )
    if debug_dir:
        _write_debug_artifacts(debug_dir, stages, layout)
    return canvas


def _write_debug_artifacts(debug_dir: Path, stages: list[tuple[str, Image.Image]], layout: CardLayout) -> None:
    try:
        debug_dir.mkdir(parents=True, exist_ok=True)
        for index, (label, image) in enumerate(stages, start=1):
            image.save(debug_dir / f"{index:02d}_{label}.png")
        (debug_dir / "layout.json").write_text(json.dumps(layout.to_dict(), indent=2))
        logger.info("[debug-artifacts] wrote %d stages to %s", len(stages), debug_dir)
    except OSError:
        logger.warning("[debug-artifacts] failed to write into %s", debug_dir, exc_info=True)


def encode_png(canvas: Image.Image) -> bytes:
    output = BytesIO()
    try:
        canvas.save(output, format="PNG")
    except (OSError, ValueError) as exc:
        raise RenderError(f"PNG encoding failed: {exc}") from exc
    return output.getvalue()


def _fingerprint(request: CardRequest, background_b64: str | bytes, greeting: str) -> str:
    digest = hashlib.sha256()
    for part in (request.name, request.age, request.profession, greeting):
        digest.update(part.encode("utf-8"))
        digest.update(b"\0")
    bg = background_b64.encode("ascii", errors="replace") if isinstance(background_b64, str) else background_b64
    digest.update(bg)
    for blob in (request.photo, request.logo):
        digest.update(blob or b"")
    return digest.hexdigest()[:12]


def _compose_and_encode(
    assets: CardAssets, name: str, greeting: str, theme: CardTheme, debug_dir: Optional[Path]
) -> bytes:
    return encode_png(compose_card(assets, name, greeting, theme, debug_dir=debug_dir))


async def render_card(
    request: CardRequest,
    background_b64: str | bytes,
    greeting: str,
    theme: CardTheme = DEFAULT_THEME,
    debug_dir: Optional[Path] = None,
) -> bytes:
    """
    Render one card and return the encoded PNG.

    Raises:
        DecodeError: if the background, photo or logo cannot be decoded
        RenderError: if the canvas cannot be created or encoded
    """
    if debug_dir is None and settings.CARD_DEBUG_ARTIFACTS:
        debug_dir = settings.CARD_DEBUG_DIR / _fingerprint(request, background_b64, greeting)

    assets = await load_card_assets(background_b64, request.photo, request.logo)
    return await asyncio.to_thread(_compose_and_encode, assets, request.name, greeting, theme, debug_dir)
