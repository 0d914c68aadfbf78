"""Local key reading and matching against the GitHub profile."""
from .keystore import LocalKeyFile, RegisteredKey, list_registered_keys, read_local_key
from .matcher import match_registered_key

__all__ = ["LocalKeyFile", "RegisteredKey", "list_registered_keys", "match_registered_key", "read_local_key"]
