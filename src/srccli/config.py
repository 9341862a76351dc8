"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for srccli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.src/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Config file** -- a single YAML mapping deserialised into
  :class:`~srccli.models.AppConfig`. Located by :func:`config_path`.
* **Precedence resolution** -- :func:`resolve_base_url` and
  :func:`resolve_organization` merge CLI flags, environment variables and
  the config file into effective values; :func:`build_client_config`
  assembles the frozen :class:`~srccli.models.ClientConfig` for one run.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from srccli.exceptions import ConfigError
from srccli.models import DEFAULT_BASE_URL, AppConfig, ClientConfig

_APP_NAME = "src"
_CONFIG_FILENAME = "config.yaml"
_PROJECT_CONFIG_FILENAME = ".src.yaml"

CONFIG_ENV_VAR = "SRC_CONFIG"
BASE_URL_ENV_VAR = "SOURCECRAFT_API_URL"

HIDDEN_VALUE = "<hidden>"
"""Printed instead of the token by ``src config get token``."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/src/`` (default ``~/.config/src/``).
    On macOS/Windows: ``~/.src/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (credentials, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/src/`` (default ``~/.local/share/src/``).
    On macOS/Windows: ``~/.src/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX. When *mode* is given the
    permissions are applied to the temp file before any content is
    written. On failure the temp file is removed and the error re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Config file ---


def config_path(explicit: Optional[str] = None) -> Path:
    """Locate the config file.

    Precedence (high to low):
        1. ``--config`` flag (*explicit*)
        2. ``SRC_CONFIG`` environment variable
        3. ``./.src.yaml`` if it exists in the working directory
        4. ``<config dir>/config.yaml``

    The returned path does not have to exist.
    """
    if explicit:
        return Path(explicit).expanduser()
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    project = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if project.is_file():
        return project
    return get_config_dir() / _CONFIG_FILENAME


def load_raw_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Read the config file as a plain mapping; a missing file is empty.

    Raises:
        ConfigError: The file is not valid YAML or not a mapping.
    """
    path = path or config_path()
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a mapping at the top level")
    return data


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load and validate the config file.

    Returns:
        The deserialised :class:`~srccli.models.AppConfig`. If the file
        does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file is invalid YAML or fails validation.
    """
    path = path or config_path()
    data = load_raw_config(path)
    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_raw_config(data: dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or config_path()
    text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    atomic_write(path, text)


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    """Persist *config* atomically, leaving unset fields out of the file."""
    save_raw_config(config.model_dump(mode="json", exclude_none=True), path)


def get_value(key: str, path: Optional[Path] = None) -> Any:
    """Return the value stored under a dot-separated *key*, or ``None``.

    The token is never returned; :data:`HIDDEN_VALUE` stands in for it.
    """
    if key == "token":
        return HIDDEN_VALUE
    target: Any = load_raw_config(path)
    for part in key.split("."):
        if not isinstance(target, dict) or part not in target:
            return None
        target = target[part]
    return target


def set_value(key: str, value: str, path: Optional[Path] = None) -> Any:
    """Store *value* under a dot-separated *key* and save the file.

    Intermediate mappings are created as needed. If the key already holds
    a bool or an int the string is coerced to that type.

    Returns:
        The value actually stored.

    Raises:
        ConfigError: For the ``token`` key, a path through a non-mapping
            value, or a value that cannot be coerced.
    """
    if key == "token":
        raise ConfigError(
            "Refusing to store the token in the config file. "
            "Use 'src auth login' or set SOURCECRAFT_TOKEN instead."
        )
    parts = key.split(".")
    if not all(parts):
        raise ConfigError(f"Invalid config key: {key}")

    path = path or config_path()
    data = load_raw_config(path)
    target = data
    for part in parts[:-1]:
        node = target.setdefault(part, {})
        if not isinstance(node, dict):
            raise ConfigError(f"Invalid config key: {key} ('{part}' is not a section)")
        target = node

    current = target.get(parts[-1])
    coerced: Any = value
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            raise ConfigError(f"Expected integer for {key}, got: {value}") from None
    target[parts[-1]] = coerced

    try:
        AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Validation error: {exc}") from exc

    save_raw_config(data, path)
    return coerced


# --- Precedence resolution ---


def resolve_base_url(config: Optional[AppConfig] = None) -> str:
    """Resolve the API base URL.

    Precedence: ``SOURCECRAFT_API_URL`` > config ``base_url`` > the public API.
    """
    env_value = os.environ.get(BASE_URL_ENV_VAR)
    if env_value:
        return env_value.rstrip("/")
    if config is not None and config.base_url:
        return config.base_url.rstrip("/")
    return DEFAULT_BASE_URL


def resolve_organization(explicit: Optional[str], path: Optional[Path] = None) -> str:
    """Resolve the organization: the ``--org`` flag value, then the config file.

    Raises:
        ConfigError: Neither source provides an organization.
    """
    if explicit:
        return explicit
    config = load_config(path)
    if config.organization:
        return config.organization
    raise ConfigError(
        "Organization not specified. Use --org or run 'src config set organization <slug>'."
    )


def build_client_config(path: Optional[Path] = None) -> ClientConfig:
    """Assemble the frozen connection settings for this invocation.

    Raises:
        TokenNotFoundError: No token is available.
        ConfigError: The config file is invalid.
    """
    from srccli.auth import resolve_token

    path = path or config_path()
    token = resolve_token(path)
    return ClientConfig(base_url=resolve_base_url(load_config(path)), token=token)
