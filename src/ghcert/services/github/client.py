# src/ghcert/services/github/client.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping

import httpx

from ghcert.config.const import DEFAULT_API_BASE, GITHUB_API_VERSION, HTTP_TIMEOUT, USER_KEYS_PAGE_SIZE


class GitHubHttpError(RuntimeError):
    """Raised when GitHub or the signer returns an error response, or cannot be reached."""

    def __init__(self, message: str, *, status_code: int, payload: Any | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    @property
    def is_transport_error(self) -> bool:
        return self.status_code == 0


@dataclass(slots=True)
class _JsonHttpClient:
    base_url: str
    timeout: float = HTTP_TIMEOUT
    # default headers applied to every request (can be overridden/extended)
    default_headers: dict[str, str] = field(default_factory=dict)
    # injected by tests (httpx.MockTransport)
    transport: httpx.BaseTransport | None = None

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        accept_204: bool = False,
        timeout: float | None = None,
    ) -> Any:
        content, _response = self._send(
            method, path, json=json, params=params, headers=headers, accept_204=accept_204, timeout=timeout
        )
        return content

    def _send(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        accept_204: bool = False,
        timeout: float | None = None,
    ) -> tuple[Any, httpx.Response]:
        merged_headers: MutableMapping[str, str] = dict(self.default_headers)
        if headers:
            merged_headers.update({str(k): str(v) for k, v in headers.items()})
        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=timeout or self.timeout,
                transport=self.transport,
            ) as client:
                response = client.request(
                    method,
                    path,
                    params=params,
                    json=json,
                    headers=merged_headers,
                )
        except httpx.RequestError as exc:
            raise GitHubHttpError(f"{method} {path} failed: {exc}", status_code=0) from exc

        content: Any | None = None
        if response.content:
            try:
                content = response.json()
            except ValueError:
                content = response.text

        if response.status_code == 204 and accept_204:
            return {}, response

        if response.status_code >= 400:
            message = response.text or f"HTTP {response.status_code}"
            if isinstance(content, Mapping):
                detail = content.get("message") or content.get("error")
                if isinstance(detail, str):
                    message = detail
            raise GitHubHttpError(
                f"{method} {path} failed with status {response.status_code}: {message}",
                status_code=response.status_code,
                payload=content,
            )

        return (content if content is not None else {}), response


@dataclass(slots=True)
class GitHubHttpClient(_JsonHttpClient):
    """HTTP client for the GitHub REST API."""

    base_url: str = DEFAULT_API_BASE

    @classmethod
    def from_token(
        cls,
        token: str,
        *,
        base_url: str = DEFAULT_API_BASE,
        timeout: float = HTTP_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> "GitHubHttpClient":
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "Authorization": f"Bearer {token}",
        }
        return cls(base_url=base_url.rstrip("/"), timeout=timeout, default_headers=headers, transport=transport)

    def list_user_keys(self) -> list[dict]:
        """All keys on the profile, following ``Link: rel="next"`` across pages."""
        items: list[dict] = []
        url: str | None = "/user/keys"
        params: Mapping[str, Any] | None = {"per_page": USER_KEYS_PAGE_SIZE}
        seen: set[str] = set()
        while url and url not in seen:
            seen.add(url)
            result, response = self._send("GET", url, params=params)
            if isinstance(result, list):
                items.extend(dict(item) for item in result if isinstance(item, Mapping))
            # the next link already carries per_page and page
            url = response.links.get("next", {}).get("url")
            params = None
        return items

    def create_dispatch(self, org: str, repo: str, payload: Mapping[str, Any]) -> None:
        self.request("POST", f"/repos/{org}/{repo}/dispatches", json=payload, accept_204=True)


@dataclass(slots=True)
class SignerHttpClient(_JsonHttpClient):
    """HTTP client for the signer's certificate fetch endpoint."""

    base_url: str = ""

    @classmethod
    def for_server(
        cls,
        server_url: str,
        *,
        timeout: float = HTTP_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> "SignerHttpClient":
        return cls(
            base_url=server_url.rstrip("/"),
            timeout=timeout,
            default_headers={"Accept": "application/json"},
            transport=transport,
        )

    def fetch(self, session_token: str) -> dict:
        result = self.request("POST", "/fetch", json={"sessionToken": session_token})
        if not isinstance(result, Mapping):
            raise GitHubHttpError("POST /fetch returned a non-JSON response", status_code=200, payload=result)
        return dict(result)


__all__ = ["GitHubHttpClient", "GitHubHttpError", "SignerHttpClient"]
