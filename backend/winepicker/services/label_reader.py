from __future__ import annotations

import base64
import io
import json
from dataclasses import asdict, dataclass, field

import anthropic
import structlog
from PIL import Image, ImageOps, UnidentifiedImageError

from winepicker.core.config import settings

logger = structlog.get_logger(__name__)

SUPPORTED_MEDIA_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
MAX_IMAGE_SIZE = (1568, 1568)

LABEL_PROMPT = """\
Analyze this wine label image. Extract the following information and return it as JSON only (no markdown, no code blocks):

{
  "producer": "the producer/domaine name",
  "wine_name": "the full wine name including vineyard if shown",
  "vintage": 2020,
  "appellation": "the appellation (e.g., Chambolle-Musigny 1er Cru)",
  "classification": "Grand Cru, Premier Cru, Village, or Regional",
  "confidence": 0.95,
  "raw_text": "all text visible on the label"
}

Focus on Burgundy wine terminology. If you can't determine a field, use null.
The confidence should reflect how certain you are about the extraction (0-1).
"""


@dataclass
class LabelReadResult:
    producer: str | None = None
    wine_name: str | None = None
    vintage: int | None = None
    appellation: str | None = None
    classification: str | None = None
    confidence: float = 0.0
    raw_text: str = field(default="")

    def to_dict(self) -> dict:
        return asdict(self)


def resize_image(data: bytes, max_size=MAX_IMAGE_SIZE) -> tuple[bytes, str]:
    """Shrink a photo to the vision model's useful size; returns (bytes, media type)."""
    with ImageOps.exif_transpose(Image.open(io.BytesIO(data))) as img:
        img.thumbnail(max_size)
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        output = io.BytesIO()
        img.save(output, format="jpeg")
        return output.getvalue(), "image/jpeg"


def _parse_vintage(value) -> int | None:
    try:
        return int(value) if value else None
    except (TypeError, ValueError):
        return None


def parse_label_response(text: str) -> LabelReadResult:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("label_reader.unparsable_response", length=len(text))
        return LabelReadResult(raw_text=text)

    if not isinstance(parsed, dict):
        return LabelReadResult(raw_text=text)

    try:
        confidence = float(parsed.get("confidence") or 0)
    except (TypeError, ValueError):
        confidence = 0.0

    return LabelReadResult(
        producer=parsed.get("producer") or None,
        wine_name=parsed.get("wine_name") or None,
        vintage=_parse_vintage(parsed.get("vintage")),
        appellation=parsed.get("appellation") or None,
        classification=parsed.get("classification") or None,
        confidence=confidence,
        raw_text=parsed.get("raw_text") or "",
    )


class LabelReader:
    """
    Reads a wine label photo with an Anthropic vision model.

    Never raises for service problems: a missing key, API errors and
    unparsable answers all come back as an empty result.
    """

    def __init__(self, client=None, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key or settings.ANTHROPIC_API_KEY
        self.model = model or settings.VISION_MODEL
        self._client = client

    @property
    def client(self):
        if self._client is None and self.api_key:
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def read(self, image: bytes, media_type: str = "image/jpeg") -> LabelReadResult:
        if self.client is None:
            logger.warning("label_reader.missing_api_key")
            return LabelReadResult()

        try:
            image, media_type = resize_image(image)
        except (UnidentifiedImageError, OSError) as exc:
            logger.warning("label_reader.bad_image", error=str(exc))
            return LabelReadResult()

        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=1024,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": media_type,
                                    "data": base64.b64encode(image).decode("ascii"),
                                },
                            },
                            {"type": "text", "text": LABEL_PROMPT},
                        ],
                    }
                ],
            )
        except anthropic.AuthenticationError as exc:
            logger.error("label_reader.auth_error", error=str(exc))
            return LabelReadResult()
        except anthropic.APIError as exc:
            logger.error("label_reader.api_error", error=str(exc))
            return LabelReadResult()

        block = message.content[0] if message.content else None
        text = block.text if block is not None and block.type == "text" else ""
        result = parse_label_response(text)

        logger.info(
            "label_reader.read",
            producer=result.producer,
            vintage=result.vintage,
            confidence=result.confidence,
        )
        return result
