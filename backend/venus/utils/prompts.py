"""Prompt templates live as plain text files in venus/prompts/."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Load a prompt template by file stem, e.g. ``load_prompt("analyze_face")``."""
    path = PROMPTS_DIR / f"{name}.txt"
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError as exc:
        raise RuntimeError(f"Prompt template not found: {path.name}") from exc


def render_prompt(name: str, **values: str) -> str:
    """Fill a template's ``{placeholders}``. Values are inserted verbatim."""
    return load_prompt(name).format(**values)
