"""
Error taxonomy for card rendering.

Every error aborts the whole render; `user_message` is safe to show to the
person who submitted the card.
"""
from typing import Optional


class CardError(Exception):
    """Base class for failures that abort a card render."""

    default_message = "Ocurrió un error desconocido."

    def __init__(self, message: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(message or user_message or self.default_message)
        self.user_message = user_message or self.default_message


class DecodeError(CardError):
    """A supplied image payload could not be decoded."""

    default_message = "No se pudo leer una de las imágenes proporcionadas."


class ServiceError(CardError):
    """The background or greeting generator failed."""

    default_message = (
        "No se pudo generar el fondo de la tarjeta. La API puede estar ocupada o ha "
        "ocurrido un error. Por favor, inténtalo de nuevo."
    )


class RenderError(CardError):
    """The drawing surface could not be created or encoded."""

    default_message = "No se pudo crear la imagen de la tarjeta en el lienzo."
