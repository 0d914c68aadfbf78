from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from ghcert.services.github.client import GitHubHttpClient, SignerHttpClient

_ENV_VARS = (
    "GH_TOKEN",
    "GITHUB_TOKEN",
    "GHCERT_CONFIG",
    "GHCERT_ORG",
    "GHCERT_REPO",
    "GHCERT_KEY",
    "GHCERT_SERVER_URL",
    "GHCERT_API_BASE",
    "GHCERT_CLI_DEBUG",
)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))


def _openssh_public_key(comment: str | None = "user@host") -> str:
    key = ed25519.Ed25519PrivateKey.generate().public_key()
    line = key.public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    ).decode("ascii")
    return f"{line} {comment}" if comment else line


def _registered_key_json(material: str, *, title: str = "laptop", key_id: int = 1) -> dict:
    return {
        "key": material,
        "id": key_id,
        "url": f"https://api.github.com/user/keys/{key_id}",
        "title": title,
        "created_at": "2024-03-01T10:00:00Z",
        "verified": True,
        "read_only": False,
    }


class FakeGitHub:
    """Records calls against ``/user/keys`` and ``/repos/*/dispatches``.

    Key listings are paged like GitHub: 30 per page unless ``per_page`` asks
    for more (capped at 100), with a ``Link: rel="next"`` header.
    """

    def __init__(self, keys: list[dict], *, dispatch_status: int = 204, keys_status: int = 200) -> None:
        self.keys = keys
        self.dispatch_status = dispatch_status
        self.keys_status = keys_status
        self.dispatches: list[dict] = []
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET" and request.url.path.endswith("/user/keys"):
            if self.keys_status >= 400:
                return httpx.Response(self.keys_status, json={"message": "Bad credentials"})
            return self._keys_page(request)
        if request.method == "POST" and request.url.path.endswith("/dispatches"):
            self.dispatches.append(json.loads(request.content))
            if self.dispatch_status >= 400:
                return httpx.Response(self.dispatch_status, json={"message": "Not Found"})
            return httpx.Response(self.dispatch_status)
        return httpx.Response(404, json={"message": "Not Found"})

    def _keys_page(self, request: httpx.Request) -> httpx.Response:
        per_page = min(int(request.url.params.get("per_page", 30)), 100)
        page = int(request.url.params.get("page", 1))
        chunk = self.keys[(page - 1) * per_page : page * per_page]
        headers = {}
        if page * per_page < len(self.keys):
            next_url = request.url.copy_set_param("per_page", per_page).copy_set_param("page", page + 1)
            headers["Link"] = f'<{next_url}>; rel="next"'
        return httpx.Response(200, json=chunk, headers=headers)

    @property
    def key_listings(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def client(self) -> GitHubHttpClient:
        return GitHubHttpClient.from_token("test-token", transport=httpx.MockTransport(self))


class FakeSigner:
    """Answers ``POST /fetch`` from a list of scripted responses."""

    def __init__(self, responses: list[Callable[[dict], httpx.Response] | httpx.Response]) -> None:
        self.responses = responses
        self.bodies: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.bodies.append(body)
        index = min(len(self.bodies), len(self.responses)) - 1
        response = self.responses[index]
        if callable(response):
            return response(body)
        # fresh copy per call, httpx responses are single use
        return httpx.Response(response.status_code, content=response.content, headers=response.headers)

    @property
    def calls(self) -> int:
        return len(self.bodies)

    def client(self) -> SignerHttpClient:
        return SignerHttpClient.for_server("https://signer.example.com/ssh-cert-app", transport=httpx.MockTransport(self))

    @staticmethod
    def not_ready() -> httpx.Response:
        return httpx.Response(200, json={"message": "certificate not ready", "certificate": ""})

    @staticmethod
    def ready(certificate: str) -> httpx.Response:
        return httpx.Response(200, json={"message": "ok", "certificate": certificate})


@pytest.fixture()
def make_public_key() -> Callable[..., str]:
    """Builds a fresh ``ssh-ed25519`` public key line; pass ``comment=None`` for the bare material."""
    return _openssh_public_key


@pytest.fixture()
def key_record() -> Callable[..., dict]:
    """Builds a ``GET /user/keys`` record for the given key material."""
    return _registered_key_json


@pytest.fixture()
def fake_github() -> type[FakeGitHub]:
    return FakeGitHub


@pytest.fixture()
def fake_signer() -> type[FakeSigner]:
    return FakeSigner


@pytest.fixture()
def key_line() -> str:
    return _openssh_public_key()


@pytest.fixture()
def pub_key_file(tmp_path: Path, key_line: str) -> Path:
    path = tmp_path / "ssh" / "id_ed25519.pub"
    path.parent.mkdir()
    path.write_text(key_line + "\n", encoding="ascii")
    return path
