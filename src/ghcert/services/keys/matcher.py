from __future__ import annotations

import logging
from typing import Sequence

from ghcert.services.errors import NoKeysRegistered, NoMatchingKey

from .keystore import RegisteredKey

_log = logging.getLogger(__name__)


def key_matches(local_content: bytes, key: RegisteredKey) -> bool:
    # GitHub stores "<type> <blob>" without the comment, the local file may carry one.
    material = key.material.strip().encode("ascii", errors="replace")
    if not material:
        return False
    return local_content.startswith(material)


def match_registered_key(
    local_content: bytes | str,
    keys: Sequence[RegisteredKey],
    *,
    key_path: str | None = None,
) -> RegisteredKey:
    """Return the registered key whose material prefixes the local key content.

    The match is by content only; neither list position nor the number of
    registered keys influences the selection.
    """
    if not keys:
        raise NoKeysRegistered()
    content = local_content.encode("ascii", errors="replace") if isinstance(local_content, str) else local_content
    for key in keys:
        if key_matches(content, key):
            _log.debug("local key matches GitHub key id=%s title=%r", key.id, key.title)
            return key
    raise NoMatchingKey(key_path, count=len(keys))


__all__ = ["key_matches", "match_registered_key"]
