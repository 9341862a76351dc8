"""Token resolution across every credential source.

The Transport Core only ever receives an already-resolved token string;
this module is where it comes from. Sources are tried in order:

1. ``SOURCECRAFT_TOKEN`` environment variable.
2. The :class:`~srccli.auth.credential_store.CredentialStore` file.
3. A ``token`` key left in ``config.yaml`` by older releases. It is moved
   into the credential store and removed from the config file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from srccli.auth.credential_store import CredentialEntry, CredentialStore
from srccli.config import config_path, load_raw_config, save_raw_config
from srccli.exceptions import TokenNotFoundError
from srccli.output import get_output

TOKEN_ENV_VAR = "SOURCECRAFT_TOKEN"


def resolve_token(path: Optional[Path] = None) -> str:
    """Return the API token from the first source that has one.

    Args:
        path: Config file to check for a legacy token. Defaults to
            :func:`~srccli.config.config_path`.

    Raises:
        TokenNotFoundError: No source provides a token.
    """
    env_token = os.environ.get(TOKEN_ENV_VAR, "").strip()
    if env_token:
        return env_token

    store = CredentialStore()
    entry = store.load()
    if entry is not None and entry.credential:
        return entry.credential

    legacy = _migrate_legacy_token(store, path or config_path())
    if legacy:
        return legacy

    raise TokenNotFoundError(
        "Token not found. Please run 'src auth login' "
        f"or set the {TOKEN_ENV_VAR} environment variable."
    )


def _migrate_legacy_token(store: CredentialStore, path: Path) -> Optional[str]:
    """Move a plain-text ``token`` from the config file into *store*."""
    data = load_raw_config(path)
    token = data.get("token")
    if not isinstance(token, str) or not token.strip():
        return None
    token = token.strip()

    output = get_output()
    store.save(CredentialEntry(credential=token, source="migrated"))
    output.info(f"Token moved from {path} to the credential store.")

    del data["token"]
    try:
        save_raw_config(data, path)
    except OSError as exc:
        output.warning(
            f"Could not remove the plain-text token from {path}: {exc}. "
            "Please remove it manually."
        )
    return token
