"""VENUS domain contracts.

Wire-facing models (AnalysisResult, CategoryScores) use camelCase aliases
because they are parsed directly from the structured-output JSON the
scoring model returns. Python code uses the snake_case field names.
"""

from __future__ import annotations

import base64
import binascii
from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_CAPTURE_MIME = "image/jpeg"

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# === Session ===


class SessionPhase(StrEnum):
    WELCOME = "welcome"
    CAPTURE = "capture"
    ANALYZING = "analyzing"
    RESULT = "result"


class ErrorKind(StrEnum):
    MISSING_CREDENTIAL = "missing_credential"
    MALFORMED_CREDENTIAL = "malformed_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_RESPONSE = "invalid_response"
    GENERATION_FAILED = "generation_failed"
    SAFETY_BLOCKED = "safety_blocked"
    MODEL_UNAVAILABLE = "model_unavailable"
    EMPTY_SUGGESTION = "empty_suggestion"
    CONNECTION_FAILED = "connection_failed"
    UNKNOWN_FAILURE = "unknown_failure"


class SessionError(BaseModel):
    kind: ErrorKind
    message: str
    detail: str | None = None  # truncated diagnostic, never shown verbatim


# === Images ===


class CapturedImage(BaseModel):
    """A base64-encoded raster image with its MIME type."""

    model_config = ConfigDict(frozen=True)

    mime_type: str = DEFAULT_CAPTURE_MIME
    data: str = Field(min_length=1)

    @field_validator("mime_type")
    @classmethod
    def _must_be_image(cls, value: str) -> str:
        if not value.startswith("image/"):
            raise ValueError(f"Expected an image MIME type, got {value!r}")
        return value

    @field_validator("data")
    @classmethod
    def _must_be_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Image data is not valid base64") from exc
        return value

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str = DEFAULT_CAPTURE_MIME) -> CapturedImage:
        return cls(mime_type=mime_type, data=base64.b64encode(data).decode("ascii"))

    @classmethod
    def from_data_url(cls, url: str) -> CapturedImage:
        """Parse a ``data:<mime>;base64,<payload>`` URL.

        A bare base64 payload (no ``data:`` header) is accepted and assumed
        to be JPEG, matching what camera capture produces.
        """
        if not url.startswith("data:"):
            return cls(data=url)
        header, sep, payload = url.partition(",")
        if not sep or ";base64" not in header:
            raise ValueError("Only base64 data URLs are supported")
        mime_type = header[len("data:") :].split(";", 1)[0] or DEFAULT_CAPTURE_MIME
        return cls(mime_type=mime_type, data=payload)

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


class SimulatedImage(BaseModel):
    image: CapturedImage
    advice: str


# === Analysis ===


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class CategoryScores(_WireModel):
    symmetry: float
    skin_tone: float
    facial_harmony: float
    visual_aura: float


class AnalysisResult(_WireModel):
    """Structured output of one scoring call. Scores are on a 0-100 scale."""

    overall_score: float
    categories: CategoryScores
    feedback: NonBlankStr
    celebrity_lookalike: str | None = None
    best_features: list[str]
    style_advice: NonBlankStr

    def to_wire(self) -> dict:
        """Dump back to the camelCase shape the model returned."""
        return self.model_dump(by_alias=True, exclude_none=True)


# === Session snapshot ===


class SessionState(BaseModel):
    """Read-only view of a session for whatever renders it."""

    phase: SessionPhase
    has_credential: bool
    credential_prompt: bool = False
    credential_error: SessionError | None = None
    error: SessionError | None = None
    status_message: str | None = None
    result: AnalysisResult | None = None
    advice_history: list[str] = []
    advice_loading: bool = False
    advice_error: SessionError | None = None
    simulation_open: bool = False
    simulation_loading: bool = False
    simulation_error: SessionError | None = None
    simulated_image: SimulatedImage | None = None
