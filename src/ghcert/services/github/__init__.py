"""GitHub REST and signer HTTP access."""
from .client import GitHubHttpClient, GitHubHttpError, SignerHttpClient
from .credentials import resolve_token

__all__ = ["GitHubHttpClient", "GitHubHttpError", "SignerHttpClient", "resolve_token"]
