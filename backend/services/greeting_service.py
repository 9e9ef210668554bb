"""
Gemini-backed generators for the card background and greeting text.

Both calls are async and never retried here. A failed background is fatal to
the card; a failed greeting is reported as ServiceError and the caller swaps
in `fallback_greeting`.
"""
from __future__ import annotations

import base64
import logging
from typing import Any, Optional

from google import genai
from google.genai import types as genai_types

from domain.errors import ServiceError
from settings import settings

logger = logging.getLogger(__name__)

BACKGROUND_PROMPT = """
Una imagen de fondo vertical festiva para una tarjeta de cumpleaños, de 1080x1920 píxeles. El estilo debe ser alegre, elegante y tridimensional.
- Fondo: Un degradado suave desde un azul claro y aireado en la parte inferior hasta blanco puro en la parte superior.
- Iluminación: Un efecto de luz solar suave y cálida que brilla desde el centro superior.
- Decoraciones:
  - Confeti plateado pequeño y brillante y diminutas estrellas luminosas esparcidas con elegancia.
  - Varios grupos de globos festivos flotando en las esquinas superior derecha e inferior izquierda. Los globos deben estar superpuestos para crear una sensación de profundidad.
  - Los globos deben ser en tonos de azul, algunos con brillo metálico y otros con textura de purpurina, atados con finas cuerdas plateadas.
  - Una cinta azul ondulada y elegante a lo largo del borde inferior.
El ambiente general debe ser limpio, brillante y feliz. No incluir texto ni marcos para fotos.
""".strip()

CLIENT_MISSING_MESSAGE = (
    "El cliente de IA de Gemini no está inicializado. Por favor, verifica tu clave de API."
)
BACKGROUND_FAILED_MESSAGE = (
    "No se pudo generar el fondo de la tarjeta. La API puede estar ocupada o ha ocurrido "
    "un error. Por favor, inténtalo de nuevo."
)
GREETING_FAILED_MESSAGE = "No se pudo generar el saludo."


def build_greeting_prompt(name: str, age: str, profession: str = "") -> str:
    """Profession-aware prompt when a profession is given, universal otherwise."""
    if profession:
        return (
            f"Genera un mensaje de cumpleaños corto, alegre y creativo en español para {name}, "
            f"que cumple {age} años y es {profession}. El mensaje no debe superar las 25 palabras. "
            "Sé cálido y celebratorio, haciendo un guiño ingenioso a su profesión. "
            f'Ejemplo para un programador: "¡Feliz {age} cumpleaños, {name}! Que tu vida compile '
            'sin errores y esté llena de funciones de alegría."'
        )
    return (
        f"Genera un mensaje de cumpleaños corto, alegre y universal en español para {name}, "
        f"que cumple {age} años. El mensaje no debe superar las 20 palabras. "
        f'Ejemplo: "¡Felices {age}, {name}! Que este nuevo año de vida venga cargado de momentos '
        'inolvidables y mucha felicidad."'
    )


def fallback_greeting(name: str, age: str) -> str:
    """Deterministic greeting used when text generation fails."""
    return f"¡Felicidades por tus {age} años, {name}! Que este día sea tan especial como tú eres."


class GreetingService:
    """
    Thin async wrapper over the google-genai client.

    Pass `client` to inject a preconfigured (or fake) client; otherwise one is
    built from GEMINI_API_KEY. Without a key every call raises ServiceError.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        api_key: Optional[str] = None,
        image_model: Optional[str] = None,
        text_model: Optional[str] = None,
    ):
        key = api_key or settings.GEMINI_API_KEY
        if client is None and key:
            client = genai.Client(api_key=key)
        elif client is None:
            logger.warning("[gemini] GEMINI_API_KEY not set; generation calls will fail.")
        self.client = client
        self.image_model = image_model or settings.CARD_IMAGE_MODEL
        self.text_model = text_model or settings.CARD_TEXT_MODEL

    def _require_client(self) -> Any:
        if self.client is None:
            raise ServiceError("gemini client not initialized", user_message=CLIENT_MISSING_MESSAGE)
        return self.client

    async def generate_background_image(self) -> str:
        """Generate the 9:16 card background. Returns base64-encoded PNG bytes."""
        client = self._require_client()
        try:
            response = await client.aio.models.generate_images(
                model=self.image_model,
                prompt=BACKGROUND_PROMPT,
                config=genai_types.GenerateImagesConfig(
                    number_of_images=1,
                    aspect_ratio="9:16",
                    output_mime_type="image/png",
                ),
            )
        except Exception as exc:
            logger.exception("[gemini] background generation failed")
            raise ServiceError(f"background generation failed: {exc}", user_message=BACKGROUND_FAILED_MESSAGE) from exc

        images = getattr(response, "generated_images", None) or []
        image_bytes = images[0].image.image_bytes if images and images[0].image else None
        if not image_bytes:
            logger.error("[gemini] background generation returned no images")
            raise ServiceError("background generation returned no images", user_message=BACKGROUND_FAILED_MESSAGE)
        if isinstance(image_bytes, str):
            return image_bytes
        return base64.b64encode(image_bytes).decode("ascii")

    async def generate_greeting(self, name: str, age: str, profession: str = "") -> str:
        """Generate a short Spanish greeting for the card."""
        client = self._require_client()
        try:
            response = await client.aio.models.generate_content(
                model=self.text_model,
                contents=build_greeting_prompt(name, age, profession),
            )
        except Exception as exc:
            logger.exception("[gemini] greeting generation failed")
            raise ServiceError(f"greeting generation failed: {exc}", user_message=GREETING_FAILED_MESSAGE) from exc

        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise ServiceError("greeting generation returned no text", user_message=GREETING_FAILED_MESSAGE)
        return text
