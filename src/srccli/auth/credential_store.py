"""Persistent store for the SourceCraft API token.

The token lives in ``~/.local/share/src/credentials/token.json`` (XDG) or
the platform-equivalent directory. The file is written atomically via
:func:`~srccli.config.atomic_write` with ``0o600`` permissions so that the
secret is never world-readable, even momentarily.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from srccli.config import atomic_write, get_data_dir


class CredentialEntry(BaseModel):
    """A stored API token.

    Attributes:
        credential: The token value.
        created_at: When the token was stored (UTC).
        source: Where the token came from (``"login"`` or ``"migrated"``).
    """

    credential: str = Field(repr=False, description="The API token")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the token was stored",
    )
    source: str = Field(default="login", description="How the token was obtained")


def _credentials_dir() -> Path:
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


class CredentialStore:
    """Read/write the API token file.

    Example::

        store = CredentialStore()
        store.save(CredentialEntry(credential="tok123"))
        assert store.load().credential == "tok123"
    """

    def __init__(self, name: str = "token") -> None:
        self._path = _credentials_dir() / f"{name}.json"

    @property
    def path(self) -> Path:
        return self._path

    def save(self, entry: CredentialEntry) -> None:
        """Persist *entry* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        text = json.dumps(entry.model_dump(mode="json"), indent=2) + "\n"
        atomic_write(self._path, text, mode=0o600)

    def load(self) -> Optional[CredentialEntry]:
        """Return the stored entry, or ``None`` if missing or unreadable."""
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return CredentialEntry.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError):
            return None

    def clear(self) -> bool:
        """Delete the token file. Returns ``True`` if a file was removed."""
        if self._path.is_file():
            self._path.unlink()
            return True
        return False
