from __future__ import annotations

from pathlib import Path

import pytest

from ghcert.services import settings as settings_mod
from ghcert.services.errors import ConfigurationError
from ghcert.services.settings import CertSettings, config_path, load_settings


@pytest.fixture(autouse=True)
def _no_git(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings_mod, "current_github_repository", lambda cwd=None: None)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    s = load_settings()
    assert s.api_base == "https://api.github.com"
    assert s.attempts == 10
    assert s.interval == 0.0
    assert s.missing() == ["org", "repo", "key", "server"]


def test_file_env_and_flags_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    cfg = _write(
        tmp_path / "ghcert.yaml",
        "org: file-org\nrepo: file-repo\nkey: ~/.ssh/id_ed25519.pub\nserver: https://file.example.com\nattempts: 5\n",
    )
    monkeypatch.setenv("GHCERT_REPO", "env-repo")
    monkeypatch.setenv("GHCERT_SERVER_URL", "https://env.example.com")

    s = load_settings(config_file=str(cfg), server_url="https://flag.example.com", org=None)

    assert s.org == "file-org"
    assert s.repo == "env-repo"
    assert s.key_path == "~/.ssh/id_ed25519.pub"
    assert s.server_url == "https://flag.example.com"
    assert s.attempts == 5
    assert s.validate() is s


def test_default_config_file_is_read_from_home():
    home = Path.home()
    _write(home / ".config" / "ghcert" / "config.yaml", "organization: acme\nrepository: ssh-ca\n")
    s = load_settings()
    assert (s.org, s.repo) == ("acme", "ssh-ca")


def test_config_env_var(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    cfg = _write(tmp_path / "other.yaml", "org: from-env-file\n")
    monkeypatch.setenv("GHCERT_CONFIG", str(cfg))
    assert config_path() == (cfg, True)
    assert load_settings().org == "from-env-file"


def test_explicit_missing_config_file(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        load_settings(config_file=str(tmp_path / "absent.yaml"))


@pytest.mark.parametrize(
    "text",
    [
        "colour: blue\n",
        "- a\n- b\n",
        "attempts: lots\n",
        "attempts: 0\n",
        "org: [1, 2]\n",
        "org: 'unterminated\n",
    ],
)
def test_invalid_config_file(tmp_path: Path, text: str):
    cfg = _write(tmp_path / "bad.yaml", text)
    with pytest.raises(ConfigurationError):
        load_settings(config_file=str(cfg))


def test_validate_lists_every_missing_option():
    with pytest.raises(ConfigurationError) as excinfo:
        CertSettings(org="acme").validate()
    assert str(excinfo.value) == 'required option(s) "repo", "key", "server" not set'


def test_current_repository_fills_org_and_repo(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings_mod, "current_github_repository", lambda cwd=None: ("octo", "certs"))
    s = load_settings()
    assert (s.org, s.repo) == ("octo", "certs")


def test_current_repository_ignored_when_org_given(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings_mod, "current_github_repository", lambda cwd=None: ("octo", "certs"))
    s = load_settings(org="acme")
    assert (s.org, s.repo) == ("acme", None)
