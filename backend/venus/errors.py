"""Failure taxonomy for the VENUS clients and session.

Every failure raised by a client is a ``VenusError`` carrying one
``ErrorKind``. ``classify_error`` maps anything else (SDK errors, transport
errors, parse errors) onto the same taxonomy. Classification is total:
unrecognised failures become ``UNKNOWN_FAILURE``.
"""

from __future__ import annotations

import json
import re

import httpx
from google.genai import errors as genai_errors
from pydantic import ValidationError

from venus.models.contracts import ErrorKind, SessionError

MAX_DETAIL_CHARS = 200

USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.MISSING_CREDENTIAL: "API Key를 입력해 주세요.",
    ErrorKind.MALFORMED_CREDENTIAL: "유효한 Gemini API Key 형식이 아닙니다.",
    ErrorKind.INVALID_CREDENTIAL: "API Key가 유효하지 않습니다. 다시 입력해 주세요.",
    ErrorKind.QUOTA_EXCEEDED: "API 사용 한도를 초과했습니다. 잠시 후 다시 시도해 주세요.",
    ErrorKind.INVALID_RESPONSE: "얼굴 분석 중 오류가 발생했습니다. 다시 시도해 주세요.",
    ErrorKind.GENERATION_FAILED: "스타일 이미지를 생성하지 못했습니다. 다시 시도해 주세요.",
    ErrorKind.SAFETY_BLOCKED: "안전 정책으로 변환이 제한되었습니다. 다른 스타일을 시도해 보세요.",
    ErrorKind.MODEL_UNAVAILABLE: "이미지 생성 모델을 현재 사용할 수 없습니다.",
    ErrorKind.EMPTY_SUGGESTION: "새로운 스타일 제안을 받지 못했습니다. 다시 시도해 주세요.",
    ErrorKind.CONNECTION_FAILED: "네트워크 연결을 확인한 뒤 다시 시도해 주세요.",
    ErrorKind.UNKNOWN_FAILURE: "분석에 실패했습니다. 다시 시도해 주세요.",
}

# Generic fallback per session operation
UNKNOWN_FAILURE_MESSAGES: dict[str, str] = {
    "analysis": "분석에 실패했습니다. 다시 시도해 주세요.",
    "advice": "새로운 스타일 제안에 실패했습니다. 다시 시도해 주세요.",
    "simulation": "스타일 시뮬레이션에 실패했습니다. 다시 시도해 주세요.",
}

_INVALID_CREDENTIAL_CODES = {401, 403}
_INVALID_CREDENTIAL_MARKERS = (
    "API_KEY_INVALID",
    "API key not valid",
    "UNAUTHENTICATED",
    "PERMISSION_DENIED",
)
_QUOTA_STATUS = re.compile(r"\b429\b")
_QUOTA_MARKERS = ("RESOURCE_EXHAUSTED", "ResourceExhausted", "quota", "rate limit")
_SAFETY_MARKERS = ("SAFETY", "PROHIBITED_CONTENT", "blocked")
_MODEL_UNAVAILABLE_MARKERS = ("NOT_FOUND", "not found", "not supported", "not available")


class VenusError(Exception):
    """A classified failure. ``detail`` is diagnostic text, truncated."""

    def __init__(self, kind: ErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        self.detail = truncate(detail) if detail else None
        super().__init__(f"{kind.value}: {self.detail}" if self.detail else kind.value)


def truncate(text: str, limit: int = MAX_DETAIL_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _status_code(error: BaseException) -> int | None:
    if isinstance(error, genai_errors.APIError):
        return error.code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def _signal_text(error: BaseException) -> str:
    text = f"{type(error).__name__} {error}"
    status = getattr(error, "status", None)
    if isinstance(status, str):
        text = f"{text} {status}"
    return text


def _has_marker(text: str, markers: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker.lower() in lowered for marker in markers)


def classify_error(error: BaseException, *, simulation: bool = False) -> ErrorKind:
    """Map a raw failure onto the taxonomy. First match wins.

    Safety blocks and unavailable models are only distinguished for the
    style-simulation call; elsewhere they fall through to the generic kind.
    """
    if isinstance(error, VenusError):
        return error.kind

    code = _status_code(error)
    text = _signal_text(error)

    if code in _INVALID_CREDENTIAL_CODES or _has_marker(text, _INVALID_CREDENTIAL_MARKERS):
        return ErrorKind.INVALID_CREDENTIAL
    if code == 429 or _QUOTA_STATUS.search(text) or _has_marker(text, _QUOTA_MARKERS):
        return ErrorKind.QUOTA_EXCEEDED
    if simulation and _has_marker(text, _SAFETY_MARKERS):
        return ErrorKind.SAFETY_BLOCKED
    if simulation and (code == 404 or _has_marker(text, _MODEL_UNAVAILABLE_MARKERS)):
        return ErrorKind.MODEL_UNAVAILABLE
    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
        return ErrorKind.CONNECTION_FAILED
    if isinstance(error, (json.JSONDecodeError, ValidationError)):
        return ErrorKind.INVALID_RESPONSE
    return ErrorKind.UNKNOWN_FAILURE


def user_message(kind: ErrorKind, operation: str = "analysis") -> str:
    """Pre-written message for a kind. Unrecognised failures name the failed operation."""
    if kind is ErrorKind.UNKNOWN_FAILURE:
        return UNKNOWN_FAILURE_MESSAGES.get(operation, USER_MESSAGES[kind])
    return USER_MESSAGES[kind]


def to_session_error(
    error: BaseException,
    *,
    simulation: bool = False,
    operation: str | None = None,
) -> SessionError:
    """Convert any failure into the user-facing error shown by the session.

    ``operation`` defaults to "simulation" or "analysis" from the flag.
    """
    kind = classify_error(error, simulation=simulation)
    operation = operation or ("simulation" if simulation else "analysis")
    if isinstance(error, VenusError):
        detail = error.detail
    else:
        detail = truncate(f"{type(error).__name__}: {error}")
    return SessionError(kind=kind, message=user_message(kind, operation), detail=detail)


def wrap_client_error(error: Exception, *, simulation: bool = False) -> VenusError:
    """Classify an SDK/transport failure into a ``VenusError`` for re-raising."""
    kind = classify_error(error, simulation=simulation)
    return VenusError(kind, detail=f"{type(error).__name__}: {error}")
