"""Certificate fetch loop.

Each fetch attempt resolves to one of three outcomes:

- ``NotReady``: the signer answered but has no certificate for the token yet;
  the loop continues silently.
- ``Ready``: a non-empty certificate for the token; the loop stops.
- ``TransportFailure``: the signer could not be reached or answered with an
  error. The attempt still counts against the budget, and the causes are
  reported when the budget runs out so that "still signing" and "unreachable"
  stay distinguishable.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ghcert.config.const import POLL_ATTEMPTS, POLL_INTERVAL
from ghcert.logging import mask_token
from ghcert.services.errors import CertificateNotReady, PollCancelled
from ghcert.services.github.client import GitHubHttpError, SignerHttpClient

_log = logging.getLogger(__name__)

__all__ = [
    "NotReady",
    "Ready",
    "TransportFailure",
    "PollOutcome",
    "fetch_once",
    "poll_certificate",
]


@dataclass(frozen=True)
class NotReady:
    message: str = ""


@dataclass(frozen=True)
class Ready:
    certificate: str


@dataclass(frozen=True)
class TransportFailure:
    cause: BaseException


PollOutcome = Union[NotReady, Ready, TransportFailure]


def fetch_once(client: SignerHttpClient, session_token: str) -> PollOutcome:
    try:
        body = client.fetch(session_token)
    except GitHubHttpError as exc:
        return TransportFailure(exc)
    echoed = body.get("sessionToken")
    if isinstance(echoed, str) and echoed and echoed != session_token:
        return TransportFailure(ValueError("signer answered for a different session token"))
    message = body.get("message")
    certificate = body.get("certificate")
    if isinstance(certificate, str) and certificate.strip():
        return Ready(certificate)
    return NotReady(message if isinstance(message, str) else "")


def poll_certificate(
    client: SignerHttpClient,
    session_token: str,
    *,
    attempts: int = POLL_ATTEMPTS,
    interval: float = POLL_INTERVAL,
    deadline: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    on_attempt: Optional[Callable[[int, PollOutcome], None]] = None,
) -> str:
    """Poll the signer until the certificate for ``session_token`` is available.

    ``deadline`` is a :func:`time.monotonic` timestamp. Both it and ``cancel``
    are checked before every attempt and raise :class:`PollCancelled`.
    """
    if attempts <= 0:
        raise ValueError("attempts must be positive")
    failures: list[BaseException] = []
    for attempt in range(1, attempts + 1):
        if cancel is not None and cancel.is_set():
            raise PollCancelled(f"certificate polling cancelled after {attempt - 1} attempt(s)")
        if deadline is not None and time.monotonic() >= deadline:
            raise PollCancelled(f"certificate polling deadline reached after {attempt - 1} attempt(s)")

        outcome = fetch_once(client, session_token)
        if on_attempt:
            on_attempt(attempt, outcome)

        if isinstance(outcome, Ready):
            _log.info("certificate for token %s received on attempt %d", mask_token(session_token), attempt)
            return outcome.certificate
        if isinstance(outcome, TransportFailure):
            failures.append(outcome.cause)
            _log.info("fetch attempt %d/%d failed: %s", attempt, attempts, outcome.cause)
        else:
            _log.debug("fetch attempt %d/%d: not ready %s", attempt, attempts, outcome.message)

        if interval > 0 and attempt < attempts:
            if cancel is not None:
                cancel.wait(interval)
            else:
                time.sleep(interval)

    raise CertificateNotReady(attempts, failures)
