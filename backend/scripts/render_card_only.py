"""Render a birthday card from local files.

Usage:
    python -m scripts.render_card_only --name Ana --age 30 --background bg.png --greeting "¡Felices 30, Ana!"
    python -m scripts.render_card_only --name Ana --age 30 --generate [--photo me.jpg] [--logo logo.png]

Without --generate no AI calls are made: --background and --greeting are used
as given. With --generate the background (and the greeting, unless passed)
come from Gemini. When --debug-dir is set, per-layer PNGs and layout.json land
there.
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import logging
from pathlib import Path
from typing import Optional

from domain.errors import CardError
from domain.models import CardRequest
from services.card_compositor import build_card_filename, render_card
from services.card_pipeline import create_birthday_card
from services.greeting_service import GreetingService, fallback_greeting

logger = logging.getLogger("render_card_only")


def _read_optional(path: Optional[str]) -> Optional[bytes]:
    return Path(path).read_bytes() if path else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render a single birthday card.")
    parser.add_argument("--name", required=True)
    parser.add_argument("--age", required=True)
    parser.add_argument("--date", default="")
    parser.add_argument("--profession", default="")
    parser.add_argument("--photo", default=None, help="Path to a PNG/JPEG photo.")
    parser.add_argument("--logo", default=None, help="Path to a PNG/JPEG logo.")
    parser.add_argument("--background", default=None, help="Background image path (required without --generate).")
    parser.add_argument("--greeting", default=None, help="Greeting text; defaults to the fallback greeting.")
    parser.add_argument("--generate", action="store_true", help="Generate background/greeting with Gemini.")
    parser.add_argument("--out-dir", default=".", help="Directory for the output PNG.")
    parser.add_argument("--debug-dir", default=None, help="Write per-layer debug artifacts here.")
    return parser


async def _run(args: argparse.Namespace) -> Path:
    request = CardRequest(
        name=args.name,
        date=args.date,
        age=args.age,
        profession=args.profession,
        photo=_read_optional(args.photo),
        logo=_read_optional(args.logo),
    )
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    debug_dir = Path(args.debug_dir) if args.debug_dir else None

    if args.generate:
        card = await create_birthday_card(request, GreetingService(), greeting=args.greeting, debug_dir=debug_dir)
        out_path = out_dir / card.filename
        out_path.write_bytes(card.png)
        logger.info("[card] greeting=%r", card.greeting)
        return out_path

    background_b64 = base64.b64encode(Path(args.background).read_bytes()).decode("ascii")
    greeting = args.greeting or fallback_greeting(args.name, args.age)
    png = await render_card(request, background_b64, greeting, debug_dir=debug_dir)
    out_path = out_dir / build_card_filename(args.name)
    out_path.write_bytes(png)
    return out_path


def main(argv: Optional[list[str]] = None) -> int:
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.generate and not args.background:
        parser.error("--background is required unless --generate is set")

    try:
        out_path = asyncio.run(_run(args))
    except CardError as exc:
        logger.error("[card] failed: %s", exc.user_message)
        return 1
    print(f"Wrote {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
