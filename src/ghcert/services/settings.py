"""Explicit runtime settings for one certificate transaction.

Sources are merged in order, later wins: built-in defaults, the YAML config
file, ``GHCERT_*`` environment variables, command line flags.
"""
from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ghcert.adapters.git import current_github_repository
from ghcert.config.const import (
    CONFIG_ENV,
    DEFAULT_API_BASE,
    DEFAULT_CONFIG_PATH,
    HTTP_TIMEOUT,
    POLL_ATTEMPTS,
    POLL_INTERVAL,
)
from ghcert.services.errors import ConfigurationError

_log = logging.getLogger(__name__)

__all__ = ["CertSettings", "load_settings", "config_path"]

ENV_VARS: dict[str, str] = {
    "org": "GHCERT_ORG",
    "repo": "GHCERT_REPO",
    "key_path": "GHCERT_KEY",
    "server_url": "GHCERT_SERVER_URL",
    "api_base": "GHCERT_API_BASE",
}

# YAML keys accepted besides the field names themselves
_ALIASES: dict[str, str] = {
    "organization": "org",
    "repository": "repo",
    "key": "key_path",
    "server": "server_url",
}

_REQUIRED: tuple[tuple[str, str], ...] = (
    ("org", "org"),
    ("repo", "repo"),
    ("key_path", "key"),
    ("server_url", "server"),
)


@dataclass
class CertSettings:
    org: Optional[str] = None
    repo: Optional[str] = None
    key_path: Optional[str] = None
    server_url: Optional[str] = None
    api_base: str = DEFAULT_API_BASE
    output: Optional[str] = None
    attempts: int = POLL_ATTEMPTS
    interval: float = POLL_INTERVAL
    timeout: float = HTTP_TIMEOUT

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, source: str = "config") -> "CertSettings":
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for raw_key, value in data.items():
            key = _ALIASES.get(str(raw_key), str(raw_key))
            if key not in known:
                raise ConfigurationError(f"{source}: unknown option '{raw_key}'")
            if value is None:
                continue
            values[key] = value
        settings = cls()
        return settings.with_overrides(**values)

    def with_overrides(self, **overrides: Any) -> "CertSettings":
        clean = {k: v for k, v in overrides.items() if v is not None and v != ""}
        try:
            merged = replace(self, **clean)
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc
        return merged._coerced()

    def _coerced(self) -> "CertSettings":
        try:
            attempts = int(self.attempts)
            interval = float(self.interval)
            timeout = float(self.timeout)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid numeric option: {exc}") from exc
        if attempts <= 0:
            raise ConfigurationError("attempts must be a positive integer")
        if interval < 0 or timeout <= 0:
            raise ConfigurationError("interval must be >= 0 and timeout > 0")
        for name in ("org", "repo", "key_path", "server_url", "api_base", "output"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(f"option '{name}' must be a string")
        return replace(self, attempts=attempts, interval=interval, timeout=timeout)

    def missing(self) -> list[str]:
        return [flag for name, flag in _REQUIRED if not getattr(self, name)]

    def validate(self) -> "CertSettings":
        missing = self.missing()
        if missing:
            names = '", "'.join(missing)
            raise ConfigurationError(f'required option(s) "{names}" not set')
        return self

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def config_path(explicit: Optional[str] = None) -> tuple[Path, bool]:
    """Return the config file path and whether it was requested explicitly."""
    if explicit:
        return Path(explicit).expanduser(), True
    from_env = os.environ.get(CONFIG_ENV)
    if from_env:
        return Path(from_env).expanduser(), True
    return Path(DEFAULT_CONFIG_PATH).expanduser(), False


def _load_file(path: Path, required: bool) -> CertSettings:
    if not path.exists():
        if required:
            raise ConfigurationError(f"config file not found: {path}")
        return CertSettings()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"failed to read {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{path}: expected a mapping at the top level")
    _log.debug("loaded settings from %s", path)
    return CertSettings.from_mapping(data, source=str(path))


def _env_overrides() -> dict[str, str]:
    return {name: os.environ[var] for name, var in ENV_VARS.items() if os.environ.get(var)}


def load_settings(
    *,
    config_file: Optional[str] = None,
    detect_repository: bool = True,
    cwd: Optional[Path] = None,
    **flags: Any,
) -> CertSettings:
    path, required = config_path(config_file)
    settings = _load_file(path, required)
    settings = settings.with_overrides(**_env_overrides())
    settings = settings.with_overrides(**flags)

    if detect_repository and not settings.org and not settings.repo:
        current = current_github_repository(cwd)
        if current:
            owner, name = current
            _log.debug("using current repository %s/%s", owner, name)
            settings = settings.with_overrides(org=owner, repo=name)
    return settings
