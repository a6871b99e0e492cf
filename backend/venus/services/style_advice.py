"""Alternative style suggestion client.

Asks Gemini for one new style suggestion for the analysed face, listing
every suggestion already shown so the model steers away from repeats.
The caller owns the history; this module never mutates it.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from google import genai
from google.genai import types

from venus.config import settings
from venus.errors import VenusError, wrap_client_error
from venus.models.contracts import CapturedImage, ErrorKind
from venus.utils.gemini import extract_text, generate, get_client, image_part, user_content
from venus.utils.prompts import render_prompt

log = structlog.get_logger("style_advice")


def already_suggested(current_advice: str, history: Sequence[str]) -> list[str]:
    """History followed by the current advice, blank and repeated entries dropped."""
    seen: list[str] = []
    for item in [*history, current_advice]:
        text = item.strip()
        if text and text not in seen:
            seen.append(text)
    return seen


def build_advice_prompt(current_advice: str, history: Sequence[str]) -> str:
    items = already_suggested(current_advice, history)
    listing = "\n".join(f"- {item}" for item in items) if items else "- (none)"
    return render_prompt("alternative_style", already_suggested=listing)


async def suggest_alternative_style(
    image: CapturedImage,
    current_advice: str,
    history: Sequence[str],
    credential: str | None,
    client: genai.Client | None = None,
) -> str:
    """Return one new suggestion, stripped. Blank replies raise EMPTY_SUGGESTION."""
    if not credential:
        raise VenusError(ErrorKind.MISSING_CREDENTIAL)

    if client is None:
        client = get_client(credential)

    contents = user_content(
        image_part(image),
        types.Part(text=build_advice_prompt(current_advice, history)),
    )

    log.info("style_advice_start", model=settings.advice_model, history_size=len(history))

    try:
        response = await generate(client, model=settings.advice_model, contents=contents)
    except Exception as e:
        error = wrap_client_error(e)
        log.error("style_advice_failed", kind=error.kind.value, error_type=type(e).__name__)
        raise error from e

    suggestion = extract_text(response).strip()
    if not suggestion:
        log.warning("style_advice_empty")
        raise VenusError(ErrorKind.EMPTY_SUGGESTION)

    log.info("style_advice_complete", length=len(suggestion))
    return suggestion
