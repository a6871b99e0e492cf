"""Composition root: configure logging and wire a Session to local storage.

A front end (camera view, upload control, result screen) creates one
session with ``create_session()`` and drives it through its methods.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from venus.config import settings
from venus.logging import configure_logging
from venus.utils.credential_store import CredentialStore
from venus.workflows.session import Session

logger = structlog.get_logger()


def create_session(store_path: str | Path | None = None) -> Session:
    """Build a session backed by the configured credential store."""
    configure_logging()
    store = CredentialStore(path=store_path)
    session = Session(store)
    logger.info(
        "session_created",
        environment=settings.environment,
        has_credential=session.credential is not None,
        analysis_model=settings.analysis_model,
        simulation_model=settings.simulation_model,
    )
    return session
