"""Error taxonomy for the certificate request/fetch transaction.

Every failure terminates the transaction and is reported to the user as a
single message; nothing is written to disk once one of these is raised.
"""
from __future__ import annotations

from typing import Sequence

__all__ = [
    "CertError",
    "ConfigurationError",
    "AuthenticationError",
    "KeyringUnavailableError",
    "KeyLookupError",
    "NoKeysRegistered",
    "NoMatchingKey",
    "InvalidPublicKeyError",
    "DispatchError",
    "CertificateNotReady",
    "PollCancelled",
    "CertIOError",
    "LocalKeyReadError",
    "CertificateWriteError",
]


class CertError(RuntimeError):
    """Base class for user-visible transaction failures."""


class ConfigurationError(CertError):
    """Raised when required options are missing or the config file is invalid."""


class AuthenticationError(CertError):
    """Raised when no valid GitHub credential is available."""


class KeyringUnavailableError(CertError):
    """Raised when the system keyring backend is not available."""


class KeyLookupError(CertError):
    pass


class NoKeysRegistered(KeyLookupError):
    def __init__(self) -> None:
        super().__init__("no SSH keys found on your GitHub profile. Please add one")


class NoMatchingKey(KeyLookupError):
    def __init__(self, key_path: str | None = None, *, count: int = 0) -> None:
        where = f" {key_path}" if key_path else ""
        super().__init__(
            f"the local key{where} does not match any of the {count} SSH key(s) on your GitHub profile"
        )
        self.key_path = key_path
        self.count = count


class InvalidPublicKeyError(CertError):
    pass


class DispatchError(CertError):
    """Raised when the certificate-request dispatch could not be created."""

    def __init__(self, message: str, *, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class CertificateNotReady(CertError):
    """Raised after the poll budget is exhausted without a certificate."""

    def __init__(self, attempts: int, failures: Sequence[BaseException] = ()) -> None:
        self.attempts = attempts
        self.failures = list(failures)
        message = f"certificate was not ready after {attempts} attempt(s)"
        if self.signer_unreachable:
            message = f"the signer could not be reached, {message} (last error: {self.failures[-1]})"
        elif self.failures:
            last = self.failures[-1]
            message += f"; {len(self.failures)} attempt(s) could not reach the signer (last error: {last})"
        super().__init__(message)

    @property
    def signer_unreachable(self) -> bool:
        return bool(self.failures) and len(self.failures) == self.attempts


class PollCancelled(CertError):
    pass


class CertIOError(CertError, OSError):
    """Local filesystem failure while reading the key or writing the certificate."""


class LocalKeyReadError(CertIOError):
    pass


class CertificateWriteError(CertIOError):
    pass
