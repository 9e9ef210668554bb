"""
Image fitting helpers: cover-fit crop for the photo window, aspect-preserving
downscale for the logo, and the neutral placeholder shown when no photo was
uploaded.
"""
from __future__ import annotations

from typing import Tuple

from PIL import Image, ImageDraw

from domain.models import CardTheme, DEFAULT_THEME, GeometryBox


def compute_cover_crop(
    src_size: Tuple[int, int],
    dst_size: Tuple[float, float],
) -> Tuple[float, float, float, float]:
    """
    Source rectangle (x, y, width, height) that covers the destination aspect.

    A relatively wider source keeps its full height and is cropped left/right;
    otherwise it keeps its full width and is cropped top/bottom. The crop is
    always centered.
    """
    src_w, src_h = src_size
    dst_w, dst_h = dst_size
    src_aspect = src_w / src_h
    dst_aspect = dst_w / dst_h

    if src_aspect > dst_aspect:
        crop_h = float(src_h)
        crop_w = crop_h * dst_aspect
        return ((src_w - crop_w) / 2, 0.0, crop_w, crop_h)
    crop_w = float(src_w)
    crop_h = crop_w / dst_aspect
    return (0.0, (src_h - crop_h) / 2, crop_w, crop_h)


def fit_cover(image: Image.Image, box: GeometryBox) -> Image.Image:
    """Crop and resample `image` so it exactly fills `box` without distortion."""
    target = box.size_px()
    sx, sy, sw, sh = compute_cover_crop(image.size, target)
    # resize() premultiplies RGBA internally, so no halo from transparent edges
    return image.resize(target, resample=Image.Resampling.LANCZOS, box=(sx, sy, sx + sw, sy + sh))


def fit_within(image: Image.Image, max_width: float, max_height: float) -> Image.Image:
    """Scale down (never up) to fit inside max_width x max_height."""
    scale = min(max_width / image.width, max_height / image.height, 1.0)
    if scale >= 1.0:
        return image.copy()
    size = (max(1, int(round(image.width * scale))), max(1, int(round(image.height * scale))))
    return image.resize(size, resample=Image.Resampling.LANCZOS)


def draw_photo_placeholder(canvas: Image.Image, box: GeometryBox, theme: CardTheme = DEFAULT_THEME) -> None:
    """Flat gray fill with a centered person glyph, in the same box a photo would use."""
    draw = ImageDraw.Draw(canvas)
    draw.rectangle(_inclusive(box.to_pixels()), fill=theme.placeholder_color)

    cx, cy = box.center
    size = theme.placeholder_glyph_size
    head_r = size * 0.2
    head_cy = cy - size * 0.18
    draw.ellipse(
        (cx - head_r, head_cy - head_r, cx + head_r, head_cy + head_r),
        fill=theme.placeholder_glyph_color,
    )
    # Shoulders: upper half of a wide ellipse sitting under the head
    body_w = size * 0.38
    body_top = cy + size * 0.08
    draw.chord(
        (cx - body_w, body_top, cx + body_w, body_top + size * 0.6),
        start=180,
        end=360,
        fill=theme.placeholder_glyph_color,
    )


def _inclusive(box: Tuple[int, int, int, int]) -> Tuple[int, int, int, int]:
    left, top, right, bottom = box
    return (left, top, right - 1, bottom - 1)
