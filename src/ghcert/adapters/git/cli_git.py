# src/ghcert/adapters/git/cli_git.py
from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path
from typing import Optional, Union

_log = logging.getLogger(__name__)


class GitError(RuntimeError): ...


StrOrPath = Union[str, Path]

# git@github.com:org/repo.git, ssh://git@github.com/org/repo, https://github.com/org/repo.git
_REMOTE_RE = re.compile(
    r"^(?:(?:ssh://)?[\w.-]+@|https?://(?:[^@/]+@)?)(?P<host>[\w.-]+)(?::\d+)?[:/]"
    r"(?P<owner>[\w.-]+)/(?P<name>[\w.-]+?)(?:\.git)?/?$"
)


def _run_git(args: list[str], cwd: Optional[StrOrPath] = None) -> str:
    if cwd is not None:
        cwd = str(Path(cwd))
    try:
        p = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise GitError("git executable not found") from exc
    if p.returncode != 0:
        raise GitError(f"git {' '.join(args)} failed: {p.stderr.strip()}")
    return p.stdout.strip()


def parse_github_remote(url: str) -> tuple[str, str] | None:
    match = _REMOTE_RE.match(url.strip())
    if not match:
        return None
    return match.group("owner"), match.group("name")


def current_github_repository(cwd: Optional[StrOrPath] = None, remote: str = "origin") -> tuple[str, str] | None:
    """Return ``(owner, name)`` of the repository in ``cwd``, if it has a GitHub-style remote."""
    try:
        url = _run_git(["remote", "get-url", remote], cwd=cwd)
    except GitError as exc:
        _log.debug("no current repository: %s", exc)
        return None
    return parse_github_remote(url)
