from __future__ import annotations

import logging
import os

from ghcert.config.const import KEYRING_SERVICE_NAME
from ghcert.services.errors import AuthenticationError, KeyringUnavailableError

_log = logging.getLogger(__name__)

TOKEN_ENV_VARS = ("GH_TOKEN", "GITHUB_TOKEN")
_USERNAME = "default"


def _require_keyring():
    try:
        import keyring  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise KeyringUnavailableError("system keyring is unavailable") from exc
    return keyring


def save_token(token: str) -> None:
    keyring = _require_keyring()
    try:
        keyring.set_password(KEYRING_SERVICE_NAME, _USERNAME, token)
    except Exception as exc:  # pragma: no cover - backend specific errors
        raise KeyringUnavailableError("failed to write GitHub token to keyring") from exc


def load_token() -> str | None:
    keyring = _require_keyring()
    try:
        token = keyring.get_password(KEYRING_SERVICE_NAME, _USERNAME)
    except Exception as exc:  # pragma: no cover
        raise KeyringUnavailableError("failed to load GitHub token from keyring") from exc
    return token or None


def delete_token() -> bool:
    keyring = _require_keyring()
    try:
        keyring.delete_password(KEYRING_SERVICE_NAME, _USERNAME)
    except keyring.errors.PasswordDeleteError:  # type: ignore[attr-defined]
        return False
    except Exception as exc:  # pragma: no cover
        raise KeyringUnavailableError("failed to delete GitHub token from keyring") from exc
    return True


def resolve_token() -> tuple[str, str]:
    """Return ``(token, source)`` for the ambient GitHub session."""

    for name in TOKEN_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            return value, name
    try:
        stored = load_token()
    except KeyringUnavailableError as exc:
        _log.debug("keyring lookup skipped: %s", exc)
        stored = None
    if stored:
        return stored, "keyring"
    raise AuthenticationError(
        "not authenticated to GitHub; set GH_TOKEN or run 'ghcert auth login'"
    )


__all__ = [
    "TOKEN_ENV_VARS",
    "delete_token",
    "load_token",
    "resolve_token",
    "save_token",
]
