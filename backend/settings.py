import os
from pathlib import Path

# Basic settings helper to read environment configuration.


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(self) -> None:
        self.GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        self.CARD_IMAGE_MODEL: str = os.getenv("CARD_IMAGE_MODEL", "imagen-4.0-generate-001")
        self.CARD_TEXT_MODEL: str = os.getenv("CARD_TEXT_MODEL", "gemini-2.5-flash")
        self.CARD_FONT_REGULAR: str | None = os.getenv("CARD_FONT_REGULAR")
        self.CARD_FONT_BOLD: str | None = os.getenv("CARD_FONT_BOLD")
        self.CARD_FONT_ITALIC: str | None = os.getenv("CARD_FONT_ITALIC")
        self.CARD_DEBUG_ARTIFACTS: bool = _as_bool(os.getenv("CARD_DEBUG_ARTIFACTS"), False)
        self.CARD_DEBUG_DIR: Path = Path(
            os.getenv("CARD_DEBUG_DIR", str(Path(__file__).resolve().parent / "data" / "debug"))
        )


settings = Settings()
