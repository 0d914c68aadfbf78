from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ghcert.config.const import DISPATCH_EVENT_TYPE
from ghcert.logging import mask_token
from ghcert.services.errors import AuthenticationError, DispatchError
from ghcert.services.github.client import GitHubHttpClient, GitHubHttpError
from ghcert.services.keys.keystore import RegisteredKey

_log = logging.getLogger(__name__)

__all__ = ["CertificateRequest", "dispatch_certificate_request"]


@dataclass(frozen=True)
class CertificateRequest:
    """Payload of one ``certificate-request`` repository dispatch."""

    token: str
    key_material: str
    key_identifier: str
    pub_key_file_name: str

    @classmethod
    def build(cls, key: RegisteredKey, token: str, pub_key_file_name: str) -> "CertificateRequest":
        return cls(
            token=token,
            key_material=key.material,
            key_identifier=key.identifier,
            pub_key_file_name=pub_key_file_name,
        )

    def to_dispatch_payload(self) -> dict[str, Any]:
        return {
            "event_type": DISPATCH_EVENT_TYPE,
            "client_payload": {
                "sessionToken": self.token,
                "key": self.key_material,
                "title": self.key_identifier,
                "pubKeyFileName": self.pub_key_file_name,
            },
        }

    @classmethod
    def from_dispatch_payload(cls, data: Mapping[str, Any]) -> "CertificateRequest":
        if data.get("event_type") != DISPATCH_EVENT_TYPE:
            raise ValueError(f"unexpected event_type: {data.get('event_type')!r}")
        client_payload = data.get("client_payload")
        if not isinstance(client_payload, Mapping):
            raise ValueError("client_payload is missing")
        values: dict[str, str] = {}
        for field_name, wire_name in (
            ("token", "sessionToken"),
            ("key_material", "key"),
            ("key_identifier", "title"),
            ("pub_key_file_name", "pubKeyFileName"),
        ):
            value = client_payload.get(wire_name)
            if not isinstance(value, str):
                raise ValueError(f"client_payload.{wire_name} is missing")
            values[field_name] = value
        return cls(**values)


def dispatch_certificate_request(
    client: GitHubHttpClient,
    org: str,
    repo: str,
    request: CertificateRequest,
) -> None:
    """Send the dispatch event exactly once; failures are never retried here.

    A retry must start over with a fresh session token, since a failed call may
    still have reached the signer.
    """
    _log.info(
        "dispatching %s to %s/%s (key=%r, token=%s)",
        DISPATCH_EVENT_TYPE,
        org,
        repo,
        request.key_identifier,
        mask_token(request.token),
    )
    try:
        client.create_dispatch(org, repo, request.to_dispatch_payload())
    except GitHubHttpError as exc:
        if exc.status_code == 401:
            raise AuthenticationError(f"GitHub rejected the credential: {exc}") from exc
        if exc.status_code == 404:
            raise DispatchError(
                f"repository {org}/{repo} not found or you lack write access to it",
                status_code=exc.status_code,
            ) from exc
        raise DispatchError(f"failed to request a certificate from {org}/{repo}: {exc}", status_code=exc.status_code) from exc
