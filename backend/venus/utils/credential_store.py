"""Local persistence for the Gemini API key.

The store is a small JSON object file used as a key-value map; the
credential lives under a single named key. It is the only component that
reads or writes the credential; everything else receives the value
explicitly.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from venus.config import settings
from venus.errors import VenusError
from venus.models.contracts import ErrorKind

log = structlog.get_logger("credential_store")


class CredentialStore:
    def __init__(
        self,
        path: str | Path | None = None,
        key: str | None = None,
        prefix: str | None = None,
    ) -> None:
        self.path = Path(path or settings.credential_store_path).expanduser()
        self.key = key or settings.credential_storage_key
        self.prefix = prefix if prefix is not None else settings.credential_prefix

    def _read(self) -> dict[str, Any]:
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            log.debug("credential_store_unreadable", path=str(self.path), error=type(exc).__name__)
            return {}
        if not isinstance(data, dict):
            log.debug("credential_store_not_a_mapping", path=str(self.path))
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data))
        except OSError as exc:
            log.warning("credential_store_write_failed", path=str(self.path), error=str(exc))
            return False
        return True

    def load(self) -> str | None:
        """Return the stored credential, or None if absent, unreadable or malformed."""
        value = self._read().get(self.key)
        if not isinstance(value, str):
            return None
        try:
            return self.validate(value)
        except VenusError as exc:
            log.debug("credential_store_value_rejected", path=str(self.path), kind=exc.kind.value)
            return None

    def validate(self, candidate: str) -> str:
        """Trim and check a candidate without persisting it."""
        credential = candidate.strip()
        if not credential:
            raise VenusError(ErrorKind.MISSING_CREDENTIAL)
        if not credential.startswith(self.prefix):
            raise VenusError(ErrorKind.MALFORMED_CREDENTIAL, detail="unrecognised key prefix")
        return credential

    def save(self, candidate: str) -> str:
        """Validate and persist a credential.

        Rejected candidates leave the stored value untouched. A storage
        write failure is logged; the credential is still returned so it can
        be used for the rest of the session.
        """
        credential = self.validate(candidate)
        data = self._read()
        data[self.key] = credential
        if self._write(data):
            log.info("credential_saved", path=str(self.path))
        return credential

    def clear(self) -> None:
        data = self._read()
        if self.key not in data:
            return
        del data[self.key]
        if self._write(data):
            log.info("credential_cleared", path=str(self.path))
