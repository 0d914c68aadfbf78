# src/ghcert/config/const.py
from __future__ import annotations

# Hard defaults; overridden at runtime through CertSettings only.
DEFAULT_API_BASE: str = "https://api.github.com"
GITHUB_API_VERSION: str = "2022-11-28"

# Repository dispatch event understood by the signer workflow
DISPATCH_EVENT_TYPE: str = "certificate-request"

SESSION_TOKEN_LENGTH: int = 20
SESSION_TOKEN_ALPHABET: str = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

POLL_ATTEMPTS: int = 10
POLL_INTERVAL: float = 0.0
HTTP_TIMEOUT: float = 15.0

# GitHub caps per_page at 100
USER_KEYS_PAGE_SIZE: int = 100

PUBLIC_KEY_SUFFIX: str = ".pub"
CERTIFICATE_SUFFIX: str = "-cert.pub"

CONFIG_ENV: str = "GHCERT_CONFIG"
DEFAULT_CONFIG_PATH: str = "~/.config/ghcert/config.yaml"

KEYRING_SERVICE_NAME: str = "ghcert/api.github.com"
