"""Gemini request/response helpers shared by the three VENUS clients.

Clients are created per call from the explicitly passed credential; there
is no module-level API key.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from google import genai
from google.genai import types

from venus.models.contracts import CapturedImage

logger = structlog.get_logger()

DEFAULT_IMAGE_MIME = "image/png"

IMAGE_CONFIG = types.GenerateContentConfig(
    response_modalities=["TEXT", "IMAGE"],
)

_SAFETY_FINISH_REASONS = {
    "SAFETY",
    "IMAGE_SAFETY",
    "PROHIBITED_CONTENT",
    "BLOCKLIST",
    "SPII",
    "IMAGE_PROHIBITED_CONTENT",
}


def get_client(credential: str) -> genai.Client:
    """Create a Gemini client for the given API key."""
    return genai.Client(api_key=credential)


def image_part(image: CapturedImage) -> types.Part:
    """Inline a captured image as a request part."""
    return types.Part.from_bytes(data=image.to_bytes(), mime_type=image.mime_type)


def user_content(*parts: types.Part) -> list[types.Content]:
    """Wrap parts as a single user turn."""
    return [types.Content(role="user", parts=list(parts))]


async def generate(
    client: genai.Client,
    *,
    model: str,
    contents: list[types.Content],
    config: types.GenerateContentConfig | None = None,
) -> types.GenerateContentResponse:
    """Issue exactly one generate_content call without blocking the event loop."""
    kwargs: dict[str, Any] = {"model": model, "contents": contents}
    if config is not None:
        kwargs["config"] = config
    return await asyncio.to_thread(client.models.generate_content, **kwargs)


def _first_parts(response: types.GenerateContentResponse) -> list[types.Part]:
    if not response.candidates:
        return []
    content = response.candidates[0].content
    if content is None or content.parts is None:
        return []
    return list(content.parts)


def extract_text(response: types.GenerateContentResponse) -> str:
    """Join all text parts of the first candidate (thought parts excluded)."""
    texts = []
    for part in _first_parts(response):
        if part.text is not None and not part.thought:
            texts.append(part.text)
    return "\n".join(texts)


def extract_inline_image(response: types.GenerateContentResponse) -> CapturedImage | None:
    """Return the first inline image of the first candidate, or None."""
    for part in _first_parts(response):
        blob = part.inline_data
        if blob is None or not blob.data:
            continue
        mime_type = blob.mime_type or DEFAULT_IMAGE_MIME
        if not mime_type.startswith("image/"):
            logger.debug("gemini_non_image_part_skipped", mime_type=mime_type)
            continue
        return CapturedImage.from_bytes(blob.data, mime_type)
    return None


def _enum_name(value: object) -> str:
    return str(getattr(value, "name", value) or "")


def block_reason(response: types.GenerateContentResponse) -> str | None:
    """Name the moderation signal that stopped a response, if any."""
    feedback = response.prompt_feedback
    if feedback is not None and feedback.block_reason is not None:
        return _enum_name(feedback.block_reason)
    for candidate in response.candidates or []:
        reason = _enum_name(candidate.finish_reason)
        if reason in _SAFETY_FINISH_REASONS:
            return reason
    return None
