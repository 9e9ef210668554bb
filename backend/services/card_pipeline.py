"""
Card pipeline: generate greeting and background, then render.

Pipeline stages:
1. Generate greeting and background concurrently
2. Substitute the fallback greeting if text generation failed
3. Render the card (decode, layout, draw, encode)
4. Name the output file
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from domain.errors import ServiceError
from domain.models import CardRequest, CardTheme, DEFAULT_THEME, RenderedCard
from services.card_compositor import build_card_filename, render_card
from services.greeting_service import GreetingService, fallback_greeting

logger = logging.getLogger(__name__)


async def _greeting_or_fallback(service: GreetingService, request: CardRequest) -> str:
    try:
        return await service.generate_greeting(request.name, request.age, request.profession)
    except ServiceError as exc:
        logger.warning("[card] greeting unavailable, using fallback: %s", exc)
        return fallback_greeting(request.name, request.age)


async def create_birthday_card(
    request: CardRequest,
    service: GreetingService,
    theme: CardTheme = DEFAULT_THEME,
    greeting: Optional[str] = None,
    debug_dir: Optional[Path] = None,
) -> RenderedCard:
    """
    Run the whole flow for one card.

    A ready-made `greeting` skips text generation. Background failures
    propagate as ServiceError and cancel the pending greeting; nothing
    partial is returned.
    """
    if greeting is None:
        greeting_task = asyncio.create_task(_greeting_or_fallback(service, request))
        try:
            background_b64 = await service.generate_background_image()
        except BaseException:
            greeting_task.cancel()
            raise
        greeting = await greeting_task
    else:
        background_b64 = await service.generate_background_image()

    png = await render_card(request, background_b64, greeting, theme, debug_dir=debug_dir)
    filename = build_card_filename(request.name)
    logger.info("[card] rendered %s (%d bytes)", filename, len(png))
    return RenderedCard(png=png, filename=filename, greeting=greeting)
