# src/ghcert/services/service.py
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import httpx

from ghcert.logging import mask_token
from ghcert.services.certs import (
    CertificateRequest,
    certificate_path,
    dispatch_certificate_request,
    new_session_token,
    poll_certificate,
    write_certificate,
)
from ghcert.services.certs.poller import PollOutcome
from ghcert.services.github.client import GitHubHttpClient, SignerHttpClient
from ghcert.services.github.credentials import resolve_token
from ghcert.services.keys import RegisteredKey, list_registered_keys, match_registered_key, read_local_key
from ghcert.services.settings import CertSettings

_log = logging.getLogger(__name__)

__all__ = ["CertificateResult", "CertificateService"]


@dataclass
class CertificateResult:
    certificate: str
    path: Path
    key_title: str
    session_token: str
    attempts: int


class CertificateService:
    """Runs one certificate transaction: match, dispatch, poll, write.

    Steps are strictly sequential; any :class:`~ghcert.services.errors.CertError`
    aborts the transaction before anything is written.
    """

    def __init__(
        self,
        *,
        github: GitHubHttpClient | None = None,
        signer: SignerHttpClient | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._github = github
        self._signer = signer
        self._transport = transport

    def _github_client(self, settings: CertSettings) -> GitHubHttpClient:
        if self._github is None:
            token, source = resolve_token()
            _log.debug("using GitHub credential from %s", source)
            self._github = GitHubHttpClient.from_token(
                token,
                base_url=settings.api_base,
                timeout=settings.timeout,
                transport=self._transport,
            )
        return self._github

    def _signer_client(self, settings: CertSettings) -> SignerHttpClient:
        if self._signer is None:
            self._signer = SignerHttpClient.for_server(
                settings.server_url or "",
                timeout=settings.timeout,
                transport=self._transport,
            )
        return self._signer

    def list_keys(self, settings: CertSettings) -> list[RegisteredKey]:
        return list_registered_keys(self._github_client(settings))

    def get_certificate(
        self,
        settings: CertSettings,
        *,
        on_event: Optional[Callable[[str], None]] = None,
        cancel: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> CertificateResult:
        settings.validate()
        emit = on_event or (lambda _msg: None)
        org, repo = settings.org or "", settings.repo or ""

        local = read_local_key(settings.key_path or "")
        github = self._github_client(settings)
        keys = list_registered_keys(github)
        key = match_registered_key(local.content, keys, key_path=str(local.path))
        emit(f"Using GitHub key '{key.title}' ({local.fingerprint()})")

        token = new_session_token()
        request = CertificateRequest.build(key, token, local.name)
        emit(f"Requesting certificate from {org}/{repo}")
        dispatch_certificate_request(github, org, repo, request)

        attempts_made = 0

        def _count(attempt: int, _outcome: PollOutcome) -> None:
            nonlocal attempts_made
            attempts_made = attempt

        emit("Fetching certificate")
        certificate = poll_certificate(
            self._signer_client(settings),
            token,
            attempts=settings.attempts,
            interval=settings.interval,
            deadline=(time.monotonic() + timeout) if timeout is not None else None,
            cancel=cancel,
            on_attempt=_count,
        )

        target = Path(settings.output).expanduser() if settings.output else certificate_path(local.path)
        written = write_certificate(target, certificate)
        _log.info("transaction %s complete after %d fetch attempt(s)", mask_token(token), attempts_made)
        return CertificateResult(
            certificate=certificate,
            path=written,
            key_title=key.title,
            session_token=token,
            attempts=attempts_made,
        )
