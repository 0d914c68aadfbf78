from __future__ import annotations

import secrets

from ghcert.config.const import SESSION_TOKEN_ALPHABET, SESSION_TOKEN_LENGTH

__all__ = ["new_session_token"]


def new_session_token(length: int = SESSION_TOKEN_LENGTH) -> str:
    """Random correlation token linking one dispatch to its fetch polls.

    It is not a credential: the dispatch itself travels over the authenticated
    GitHub channel. Uniqueness is probabilistic (62**20 space).
    """
    if length <= 0:
        raise ValueError("session token length must be positive")
    return "".join(secrets.choice(SESSION_TOKEN_ALPHABET) for _ in range(length))
