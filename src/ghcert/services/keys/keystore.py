"""Local public-key files and the SSH keys registered on the GitHub profile."""
from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Mapping, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from pydantic import BaseModel, ConfigDict, ValidationError

from ghcert.services.errors import AuthenticationError, InvalidPublicKeyError, KeyLookupError, LocalKeyReadError
from ghcert.services.github.client import GitHubHttpClient, GitHubHttpError

_log = logging.getLogger(__name__)

__all__ = ["LocalKeyFile", "RegisteredKey", "read_local_key", "list_registered_keys", "parse_registered_keys"]


class RegisteredKey(BaseModel):
    """Public key record as returned by ``GET /user/keys``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    key: str
    title: str = ""
    id: int
    verified: bool = False
    read_only: bool = False
    created_at: Optional[datetime] = None
    url: Optional[str] = None

    @property
    def material(self) -> str:
        return self.key

    @property
    def identifier(self) -> str:
        return self.title


@dataclass(frozen=True)
class LocalKeyFile:
    path: Path
    content: bytes

    @property
    def name(self) -> str:
        return self.path.name

    def key_line(self) -> str:
        return self.content.decode("ascii").strip()

    def key_type(self) -> str:
        return self.key_line().split()[0]

    def fingerprint(self) -> str:
        """OpenSSH style ``SHA256:`` fingerprint of the key blob."""
        blob = base64.b64decode(self.key_line().split()[1])
        digest = hashlib.sha256(blob).digest()
        return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def _validate_key_content(path: Path, content: bytes) -> None:
    try:
        text = content.decode("ascii")
    except UnicodeDecodeError as exc:
        raise InvalidPublicKeyError(f"{path} is not an OpenSSH public key (non-ASCII content)") from exc
    # the key line is matched byte-for-byte from the start of the file, trailing blank lines are fine
    lines = text.rstrip().splitlines()
    if len(lines) != 1:
        found = len([line for line in lines if line.strip()])
        raise InvalidPublicKeyError(f"{path} must contain exactly one public key line, found {found}")
    if lines[0] != lines[0].lstrip():
        raise InvalidPublicKeyError(f"{path} has whitespace before the public key")
    parts = lines[0].split()
    if len(parts) < 2:
        raise InvalidPublicKeyError(f"{path} is not an OpenSSH public key")
    try:
        serialization.load_ssh_public_key(f"{parts[0]} {parts[1]}".encode("ascii"))
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise InvalidPublicKeyError(f"{path} is not a valid OpenSSH public key: {exc}") from exc


def read_local_key(path: Path | str) -> LocalKeyFile:
    key_path = Path(path).expanduser()
    try:
        content = key_path.read_bytes()
    except FileNotFoundError as exc:
        raise LocalKeyReadError(f"public key file not found: {key_path}") from exc
    except OSError as exc:
        raise LocalKeyReadError(f"failed to read public key {key_path}: {exc}") from exc
    _validate_key_content(key_path, content)
    local = LocalKeyFile(path=key_path, content=content)
    _log.debug("read local key %s (%s %s)", key_path, local.key_type(), local.fingerprint())
    return local


def parse_registered_keys(items: Iterable[Mapping]) -> list[RegisteredKey]:
    keys: list[RegisteredKey] = []
    for item in items:
        try:
            keys.append(RegisteredKey.model_validate(item))
        except ValidationError as exc:
            _log.warning("skipping malformed key record from GitHub: %s", exc.errors()[0].get("msg"))
    return keys


def list_registered_keys(client: GitHubHttpClient) -> list[RegisteredKey]:
    try:
        items = client.list_user_keys()
    except GitHubHttpError as exc:
        if exc.status_code == 401:
            raise AuthenticationError(f"GitHub rejected the credential: {exc}") from exc
        raise KeyLookupError(f"failed to list SSH keys on your GitHub profile: {exc}") from exc
    keys = parse_registered_keys(items)
    _log.debug("GitHub profile lists %d SSH key(s)", len(keys))
    return keys
