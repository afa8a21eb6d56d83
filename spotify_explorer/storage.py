"""Key-value persistence for tokens and transient PKCE values.

Plays the role browser local storage plays for a single-page client: a flat
string-to-string map that survives restarts when file backed.
"""

import json
import os
from pathlib import Path
from typing import Protocol

from spotify_explorer.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
TOKEN_EXPIRY_KEY = "tokenExpiry"
PKCE_VERIFIER_KEY = "pkce_code_verifier"
OAUTH_STATE_KEY = "oauth_state"


class KeyValueStore(Protocol):
    """Flat string key-value store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store, lost on restart."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Store backed by a JSON object on disk with owner-only permissions."""

    def __init__(self, path: Path):
        self.path = path

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            log_with_context(
                logger,
                "warning",
                "Session store unreadable, treating as empty",
                file_path=str(self.path),
                error=str(e),
                event_type="storage_read_failed",
            )
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        """Write an owner-only temp file, then rename it over the store."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.unlink(missing_ok=True)
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
