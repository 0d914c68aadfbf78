from __future__ import annotations

import stat
from pathlib import Path

import pytest

from ghcert.services.certs.writer import certificate_path, write_certificate
from ghcert.services.errors import CertificateWriteError


@pytest.mark.parametrize(
    "source, expected",
    [
        ("/home/u/.ssh/id_ed25519.pub", "/home/u/.ssh/id_ed25519-cert.pub"),
        ("/home/u/.ssh/work.key.pub", "/home/u/.ssh/work.key-cert.pub"),
        ("/home/u/.ssh/id_rsa", "/home/u/.ssh/id_rsa-cert.pub"),
        ("relative/id.pub", "relative/id-cert.pub"),
    ],
)
def test_certificate_path(source: str, expected: str):
    assert certificate_path(source) == Path(expected)


def test_write_exact_content(tmp_path: Path):
    target = tmp_path / "id_ed25519-cert.pub"
    written = write_certificate(target, "ssh-ed25519-cert-v01@openssh.com AAAA")
    assert written == target
    assert target.read_text(encoding="utf-8") == "ssh-ed25519-cert-v01@openssh.com AAAA"
    assert stat.S_IMODE(target.stat().st_mode) == 0o644
    assert [p.name for p in tmp_path.iterdir()] == ["id_ed25519-cert.pub"]


def test_overwrites_previous_certificate(tmp_path: Path):
    target = tmp_path / "id-cert.pub"
    target.write_text("old", encoding="utf-8")
    write_certificate(target, "new")
    assert target.read_text(encoding="utf-8") == "new"


def test_write_failure_is_io_error(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(CertificateWriteError) as excinfo:
        write_certificate(blocker / "sub" / "id-cert.pub", "cert")
    assert isinstance(excinfo.value, OSError)
