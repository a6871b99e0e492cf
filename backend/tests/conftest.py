"""Shared fixtures: a tiny face photo and canned Gemini responses."""

from unittest.mock import MagicMock

import pytest
from google.genai import types

from venus.models.contracts import CapturedImage

FACE_BYTES = b"\xff\xd8\xff\xe0 fake jpeg"
VALID_KEY = "AIzaSyTestKey123"


def gemini_response(*parts: types.Part, finish_reason=None) -> types.GenerateContentResponse:
    candidate = types.Candidate(
        content=types.Content(role="model", parts=list(parts)),
        finish_reason=finish_reason,
    )
    return types.GenerateContentResponse(candidates=[candidate])


def text_response(text: str) -> types.GenerateContentResponse:
    return gemini_response(types.Part(text=text))


@pytest.fixture
def face_image() -> CapturedImage:
    return CapturedImage.from_bytes(FACE_BYTES)


@pytest.fixture
def mock_client() -> MagicMock:
    return MagicMock()


def request_text(mock_client: MagicMock) -> str:
    """All text parts sent in the single recorded generate_content call."""
    contents = mock_client.models.generate_content.call_args.kwargs["contents"]
    return "\n".join(p.text for c in contents for p in c.parts if p.text is not None)
