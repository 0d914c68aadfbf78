from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from ghcert.config.const import CERTIFICATE_SUFFIX, PUBLIC_KEY_SUFFIX
from ghcert.services.errors import CertificateWriteError

_log = logging.getLogger(__name__)

__all__ = ["certificate_path", "write_certificate"]


def certificate_path(pub_key_path: Path | str) -> Path:
    """``~/.ssh/id_ed25519.pub`` -> ``~/.ssh/id_ed25519-cert.pub``."""
    path = Path(pub_key_path)
    name = path.name
    if name.endswith(PUBLIC_KEY_SUFFIX) and len(name) > len(PUBLIC_KEY_SUFFIX):
        name = name[: -len(PUBLIC_KEY_SUFFIX)]
    return path.with_name(f"{name}{CERTIFICATE_SUFFIX}")


def write_certificate(path: Path | str, certificate: str) -> Path:
    target = Path(path).expanduser()
    tmp_name: str | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(target.parent))
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(certificate)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, target)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise CertificateWriteError(f"failed to write certificate to {target}: {exc}") from exc
    _log.info("certificate written to %s", target)
    return target
