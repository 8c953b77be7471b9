"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for akeeba-remote:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.akeeba-remote/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_cache_dir`.
* **Client config** -- A single :class:`~akeeba_remote.models.ClientConfig`
  JSON file storing the client name, tunnel suffix, request and cache
  settings.
* **Precedence resolution** -- :func:`resolve_config` layers environment
  variables over the config file over defaults.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from akeeba_remote.exceptions import ConfigurationError
from akeeba_remote.models import ClientConfig

_APP_NAME = "akeeba-remote"
_CONFIG_FILENAME = "config.json"

ENV_CLIENT_NAME = "AKEEBA_REMOTE_CLIENT_NAME"
ENV_CACHE_TTL = "AKEEBA_REMOTE_CACHE_TTL"
ENV_TUNNEL_SUFFIX = "AKEEBA_REMOTE_TUNNEL_SUFFIX"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/akeeba-remote/`` (default
    ``~/.config/akeeba-remote/``). On macOS/Windows: ``~/.akeeba-remote/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the default result cache and call counters.

    On Linux/BSD: ``$XDG_CACHE_HOME/akeeba-remote/`` (default
    ``~/.cache/akeeba-remote/``). On macOS/Windows: ``~/.akeeba-remote/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the exception re-raised.
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
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
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


# --- Client config ---


def config_path() -> Path:
    """Path to the client config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_config(path: Optional[Path] = None) -> ClientConfig:
    """Load the client configuration.

    Args:
        path: Config file to read; defaults to :func:`config_path`.

    Returns:
        The deserialised :class:`~akeeba_remote.models.ClientConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigurationError: If the file contains invalid JSON or fails
            Pydantic validation.
    """
    path = path or config_path()
    if not path.is_file():
        return ClientConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ClientConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: ClientConfig, path: Optional[Path] = None) -> None:
    """Persist the client configuration atomically."""
    data = config.model_dump(mode="json")
    _atomic_write(path or config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(path: Optional[Path] = None) -> ClientConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. Environment variables (``AKEEBA_REMOTE_CLIENT_NAME``,
           ``AKEEBA_REMOTE_CACHE_TTL``, ``AKEEBA_REMOTE_TUNNEL_SUFFIX``)
        2. Config file
        3. Defaults

    Raises:
        ConfigurationError: If the file is invalid or ``AKEEBA_REMOTE_CACHE_TTL``
            is not an integer.
    """
    config = load_config(path)

    env_name = os.environ.get(ENV_CLIENT_NAME)
    if env_name:
        config.client_name = env_name

    env_ttl = os.environ.get(ENV_CACHE_TTL)
    if env_ttl:
        try:
            config.cache.ttl_seconds = int(env_ttl)
        except ValueError as exc:
            raise ConfigurationError(
                f"{ENV_CACHE_TTL} must be an integer, got '{env_ttl}'"
            ) from exc

    env_suffix = os.environ.get(ENV_TUNNEL_SUFFIX)
    if env_suffix:
        config.tunnel_suffix = env_suffix

    return config
