"""
Layout engine service.

Computes the geometry of the card template. Everything is a fixed design
parameter of the theme except the name font size, which is chosen by the
text renderer from measured glyph widths, and the logo box, which depends on
the logo's own aspect ratio.
"""
from typing import Optional, Tuple

from domain.models import CardLayout, CardTheme, DEFAULT_THEME, GeometryBox


def polaroid_box(theme: CardTheme = DEFAULT_THEME) -> GeometryBox:
    """Polaroid backdrop: horizontally centered, top at a fixed share of the canvas height."""
    return GeometryBox(
        x=(theme.canvas_width - theme.polaroid_width) / 2,
        y=theme.canvas_height * theme.polaroid_top_ratio,
        width=theme.polaroid_width,
        height=theme.polaroid_height,
    )


def photo_box(theme: CardTheme = DEFAULT_THEME) -> GeometryBox:
    """Photo window: centered inside the polaroid with a fixed top inset."""
    frame = polaroid_box(theme)
    return GeometryBox(
        x=frame.x + (frame.width - theme.photo_width) / 2,
        y=frame.y + theme.photo_top_inset,
        width=theme.photo_width,
        height=theme.photo_height,
    )


def title_baseline(theme: CardTheme = DEFAULT_THEME) -> float:
    return polaroid_box(theme).bottom + theme.title_offset


def name_baseline(name_font_size: int, theme: CardTheme = DEFAULT_THEME) -> float:
    return title_baseline(theme) + theme.name_offset + name_font_size / 2


def message_baseline(name_font_size: int, theme: CardTheme = DEFAULT_THEME) -> float:
    return name_baseline(name_font_size, theme) + name_font_size / 2 + theme.message_offset


def logo_box(logo_size: Tuple[int, int], theme: CardTheme = DEFAULT_THEME) -> GeometryBox:
    """
    Bottom-right logo box.

    The logo is scaled by the smaller of the width-fit and height-fit ratios
    and never enlarged, so its aspect ratio is preserved.
    """
    src_w, src_h = logo_size
    scale = min(theme.logo_max_width / src_w, theme.logo_max_height / src_h, 1.0)
    width = src_w * scale
    height = src_h * scale
    return GeometryBox(
        x=theme.canvas_width - width - theme.logo_margin,
        y=theme.canvas_height - height - theme.logo_margin,
        width=width,
        height=height,
    )


def compute_card_layout(
    name_font_size: int,
    logo_size: Optional[Tuple[int, int]] = None,
    theme: CardTheme = DEFAULT_THEME,
) -> CardLayout:
    """
    Compute every box and baseline for one render.

    Args:
        name_font_size: Final (autoshrunk) font size of the name line
        logo_size: Pixel size of the decoded logo, or None when there is no logo
        theme: Card template constants

    Returns:
        CardLayout with positioned elements
    """
    return CardLayout(
        polaroid=polaroid_box(theme),
        photo=photo_box(theme),
        title_baseline=title_baseline(theme),
        name_baseline=name_baseline(name_font_size, theme),
        name_font_size=name_font_size,
        message_baseline=message_baseline(name_font_size, theme),
        logo=logo_box(logo_size, theme) if logo_size else None,
    )
