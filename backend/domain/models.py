"""
Core domain models for the birthday card generator.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple

RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True)
class CardRequest:
    """
    Everything the person filled in for one card.

    `photo` and `logo` are the raw uploaded bytes (PNG/JPEG) or None when no
    file was supplied.
    """
    name: str
    date: str
    age: str
    profession: str = ""
    photo: Optional[bytes] = field(default=None, repr=False)
    logo: Optional[bytes] = field(default=None, repr=False)


@dataclass(frozen=True)
class GeometryBox:
    """A positioned rectangle in canvas pixel coordinates."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def to_pixels(self) -> Tuple[int, int, int, int]:
        """Integer (left, top, right, bottom) box for Pillow calls."""
        left = int(round(self.x))
        top = int(round(self.y))
        return (left, top, left + int(round(self.width)), top + int(round(self.height)))

    def size_px(self) -> Tuple[int, int]:
        return (max(1, int(round(self.width))), max(1, int(round(self.height))))


@dataclass(frozen=True)
class DrawStyle:
    """
    Shadow/glow parameters for a single draw call.

    `passes` is how many times the blurred layer is composited; two passes
    give the reinforced glow used on the card text.
    """
    color: RGBA = (0, 0, 0, 0)
    blur_radius: float = 0.0
    offset_x: int = 0
    offset_y: int = 0
    passes: int = 1

    @property
    def is_visible(self) -> bool:
        return self.color[3] > 0 and self.passes > 0


NO_SHADOW = DrawStyle()


@dataclass(frozen=True)
class CardTheme:
    """
    The single card template: canvas size, colors, fonts and fixed offsets.
    """
    canvas_width: int = 1080
    canvas_height: int = 1920

    # Polaroid frame and photo window
    polaroid_width: int = 800
    polaroid_height: int = 900
    polaroid_top_ratio: float = 0.08
    polaroid_radius: int = 20
    polaroid_color: RGBA = (255, 255, 255, 255)
    polaroid_shadow: DrawStyle = DrawStyle(color=(0, 0, 0, 77), blur_radius=40, offset_x=0, offset_y=15)
    photo_width: int = 720
    photo_height: int = 720
    photo_top_inset: int = 40
    placeholder_color: RGBA = (229, 231, 235, 255)  # #e5e7eb
    placeholder_glyph_color: RGBA = (156, 163, 175, 255)  # #9ca3af
    placeholder_glyph_size: int = 150

    # Text
    text_color: RGBA = (13, 61, 111, 255)  # #0D3D6F
    title_text: str = "¡FELIZ CUMPLEAÑOS!"
    title_font_size: int = 80
    title_offset: int = 110
    name_offset: int = 110
    name_max_font_size: int = 120
    name_min_font_size: int = 30
    name_font_step: int = 5
    name_width_ratio: float = 0.9
    heading_glow: DrawStyle = DrawStyle(color=(255, 255, 224, 230), blur_radius=30, passes=2)
    message_font_size: int = 48
    message_offset: int = 100
    message_width_ratio: float = 0.8
    message_line_height: int = 60
    message_glow: DrawStyle = DrawStyle(color=(255, 255, 224, 179), blur_radius=20, passes=1)

    # Logo
    logo_max_width: int = 300
    logo_max_height: int = 150
    logo_margin: int = 50

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return (self.canvas_width, self.canvas_height)


DEFAULT_THEME = CardTheme()


@dataclass(frozen=True)
class CardLayout:
    """The computed geometry for one card render."""
    polaroid: GeometryBox
    photo: GeometryBox
    title_baseline: float
    name_baseline: float
    name_font_size: int
    message_baseline: float
    logo: Optional[GeometryBox] = None

    def to_dict(self) -> dict:
        def _box(b: Optional[GeometryBox]) -> Optional[list]:
            return None if b is None else [b.x, b.y, b.width, b.height]

        return {
            "polaroid": _box(self.polaroid),
            "photo": _box(self.photo),
            "title_baseline": self.title_baseline,
            "name_baseline": self.name_baseline,
            "name_font_size": self.name_font_size,
            "message_baseline": self.message_baseline,
            "logo": _box(self.logo),
        }


@dataclass
class RenderedCard:
    """A finished card ready for display or download."""
    png: bytes = field(repr=False)
    filename: str
    greeting: str
