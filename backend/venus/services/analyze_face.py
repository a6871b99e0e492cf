"""Face analysis client: the aesthetic scoring call.

Sends one face photo to Gemini with a structured-output schema and parses
the JSON reply into an AnalysisResult. Stateless: the credential is passed
in by the caller. One attempt per call, no retries.
"""

from __future__ import annotations

import structlog
from google import genai
from google.genai import types
from pydantic import ValidationError

from venus.config import settings
from venus.errors import VenusError, wrap_client_error
from venus.models.contracts import AnalysisResult, CapturedImage, ErrorKind
from venus.utils.gemini import extract_text, generate, get_client, image_part, user_content
from venus.utils.prompts import load_prompt

log = structlog.get_logger("analyze_face")

_SCORE = types.Schema(type=types.Type.NUMBER)

# Mirrors AnalysisResult's wire shape; everything but celebrityLookalike is required.
ANALYSIS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "overallScore": _SCORE,
        "categories": types.Schema(
            type=types.Type.OBJECT,
            properties={
                "symmetry": _SCORE,
                "skinTone": _SCORE,
                "facialHarmony": _SCORE,
                "visualAura": _SCORE,
            },
            required=["symmetry", "skinTone", "facialHarmony", "visualAura"],
        ),
        "feedback": types.Schema(type=types.Type.STRING),
        "celebrityLookalike": types.Schema(type=types.Type.STRING),
        "bestFeatures": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
        "styleAdvice": types.Schema(type=types.Type.STRING),
    },
    required=["overallScore", "categories", "feedback", "bestFeatures", "styleAdvice"],
)

ANALYSIS_CONFIG = types.GenerateContentConfig(
    response_mime_type="application/json",
    response_schema=ANALYSIS_SCHEMA,
)


def build_contents(image: CapturedImage) -> list[types.Content]:
    """Instruction text followed by the face photo, as one user turn."""
    return user_content(types.Part(text=load_prompt("analyze_face")), image_part(image))


def parse_analysis(text: str | None) -> AnalysisResult:
    """Validate the model's JSON against AnalysisResult.

    Empty payloads, malformed JSON and schema mismatches all raise
    VenusError(INVALID_RESPONSE).
    """
    if not text or not text.strip():
        raise VenusError(ErrorKind.INVALID_RESPONSE, detail="empty response")
    try:
        return AnalysisResult.model_validate_json(text, strict=True)
    except ValidationError as e:
        log.warning("analyze_face_invalid_payload", errors=e.error_count(), payload=text[:200])
        raise VenusError(ErrorKind.INVALID_RESPONSE, detail=str(e)) from e


async def analyze_face(
    image: CapturedImage,
    credential: str | None,
    client: genai.Client | None = None,
) -> AnalysisResult:
    """Score a face photo. Raises VenusError with a classified kind on failure."""
    if not credential:
        raise VenusError(ErrorKind.MISSING_CREDENTIAL)

    if client is None:
        client = get_client(credential)

    log.info("analyze_face_start", model=settings.analysis_model, mime_type=image.mime_type)

    try:
        response = await generate(
            client,
            model=settings.analysis_model,
            contents=build_contents(image),
            config=ANALYSIS_CONFIG,
        )
    except Exception as e:
        error = wrap_client_error(e)
        log.error("analyze_face_failed", kind=error.kind.value, error_type=type(e).__name__)
        raise error from e

    result = parse_analysis(extract_text(response))

    log.info(
        "analyze_face_complete",
        overall_score=result.overall_score,
        best_feature_count=len(result.best_features),
        has_lookalike=result.celebrity_lookalike is not None,
    )
    return result
