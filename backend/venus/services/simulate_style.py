"""Style simulation client: identity-preserving image edit.

Sends the original photo plus the style advice to a Gemini image model and
returns the first generated image. The instruction restricts the edit to
hair, makeup, eyewear, accessories and clothing colour. Every call is a
fresh request; nothing is cached.
"""

from __future__ import annotations

import structlog
from google import genai
from google.genai import types

from venus.config import settings
from venus.errors import VenusError, wrap_client_error
from venus.models.contracts import CapturedImage, ErrorKind, SimulatedImage
from venus.utils.gemini import (
    IMAGE_CONFIG,
    block_reason,
    extract_inline_image,
    extract_text,
    generate,
    get_client,
    image_part,
    user_content,
)
from venus.utils.prompts import render_prompt

log = structlog.get_logger("simulate_style")


def build_simulation_prompt(style_advice: str) -> str:
    return render_prompt("simulate_style", style_advice=style_advice.strip())


async def simulate_style(
    image: CapturedImage,
    style_advice: str,
    credential: str | None,
    client: genai.Client | None = None,
) -> SimulatedImage:
    """Render the advice onto the photo.

    Raises VenusError: SAFETY_BLOCKED when moderation stopped the edit,
    GENERATION_FAILED when the reply carries no image, otherwise the kind
    classified from the SDK error.
    """
    if not credential:
        raise VenusError(ErrorKind.MISSING_CREDENTIAL)

    if client is None:
        client = get_client(credential)

    contents = user_content(
        image_part(image),
        types.Part(text=build_simulation_prompt(style_advice)),
    )

    log.info("simulate_style_start", model=settings.simulation_model)

    try:
        response = await generate(
            client,
            model=settings.simulation_model,
            contents=contents,
            config=IMAGE_CONFIG,
        )
    except Exception as e:
        error = wrap_client_error(e, simulation=True)
        log.error("simulate_style_failed", kind=error.kind.value, error_type=type(e).__name__)
        raise error from e

    result = extract_inline_image(response)
    if result is None:
        reason = block_reason(response)
        if reason is not None:
            log.warning("simulate_style_blocked", reason=reason)
            raise VenusError(ErrorKind.SAFETY_BLOCKED, detail=reason)
        text = extract_text(response)
        log.warning("simulate_style_no_image", gemini_text=text[:300])
        raise VenusError(ErrorKind.GENERATION_FAILED, detail=text or "no image part in response")

    log.info("simulate_style_complete", mime_type=result.mime_type)
    return SimulatedImage(image=result, advice=style_advice)
