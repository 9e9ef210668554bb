"""
Card API routes.

Handles card generation and PNG download.
"""
import base64
import logging
from functools import lru_cache
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from domain.errors import CardError, DecodeError, ServiceError
from domain.models import CardRequest, RenderedCard
from services.card_pipeline import create_birthday_card
from services.greeting_service import GreetingService

router = APIRouter()
logger = logging.getLogger(__name__)


class CardPreviewResponse(BaseModel):
    filename: str
    greeting: str
    data_url: str


@lru_cache(maxsize=1)
def get_greeting_service() -> GreetingService:
    """Shared generator client (overridable in tests)."""
    return GreetingService()


async def _read_optional(upload: Optional[UploadFile]) -> Optional[bytes]:
    """Uploaded bytes, or None when no file (or an empty one) was sent."""
    if upload is None:
        return None
    data = await upload.read()
    return data or None


_STATUS_BY_ERROR = {DecodeError: 400, ServiceError: 502}


def _status_for(exc: CardError) -> int:
    return _STATUS_BY_ERROR.get(type(exc), 500)


def _content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode("ascii") or "card.png"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


async def _build_card(
    name: str,
    date: str,
    age: str,
    profession: str,
    photo: Optional[UploadFile],
    logo: Optional[UploadFile],
    service: GreetingService,
) -> RenderedCard:
    request = CardRequest(
        name=name.strip(),
        date=date.strip(),
        age=age.strip(),
        profession=(profession or "").strip(),
        photo=await _read_optional(photo),
        logo=await _read_optional(logo),
    )
    try:
        return await create_birthday_card(request, service)
    except CardError as exc:
        logger.warning("[card] render failed (%s): %s", type(exc).__name__, exc)
        raise HTTPException(status_code=_status_for(exc), detail=exc.user_message)


@router.post("", response_class=Response)
async def create_card(
    name: str = Form(..., min_length=1),
    date: str = Form(..., min_length=1),
    age: str = Form(..., min_length=1),
    profession: str = Form(""),
    photo: Optional[UploadFile] = File(None),
    logo: Optional[UploadFile] = File(None),
    service: GreetingService = Depends(get_greeting_service),
):
    """Generate a card and return it as a PNG download."""
    card = await _build_card(name, date, age, profession, photo, logo, service)
    return Response(
        content=card.png,
        media_type="image/png",
        headers={"Content-Disposition": _content_disposition(card.filename)},
    )


@router.post("/preview", response_model=CardPreviewResponse)
async def preview_card(
    name: str = Form(..., min_length=1),
    date: str = Form(..., min_length=1),
    age: str = Form(..., min_length=1),
    profession: str = Form(""),
    photo: Optional[UploadFile] = File(None),
    logo: Optional[UploadFile] = File(None),
    service: GreetingService = Depends(get_greeting_service),
):
    """Generate a card and return it inline as a data URL with its greeting."""
    card = await _build_card(name, date, age, profession, photo, logo, service)
    encoded = base64.b64encode(card.png).decode("ascii")
    return CardPreviewResponse(
        filename=card.filename,
        greeting=card.greeting,
        data_url=f"data:image/png;base64,{encoded}",
    )
