"""Certificate request/fetch protocol."""
from .dispatcher import CertificateRequest, dispatch_certificate_request
from .poller import NotReady, PollOutcome, Ready, TransportFailure, fetch_once, poll_certificate
from .session import new_session_token
from .writer import certificate_path, write_certificate

__all__ = [
    "CertificateRequest",
    "NotReady",
    "PollOutcome",
    "Ready",
    "TransportFailure",
    "certificate_path",
    "dispatch_certificate_request",
    "fetch_once",
    "new_session_token",
    "poll_certificate",
    "write_certificate",
]
