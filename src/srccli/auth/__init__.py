"""Credential storage and token resolution for srccli."""

from srccli.auth.credential_store import CredentialEntry, CredentialStore
from srccli.auth.resolver import TOKEN_ENV_VAR, resolve_token

__all__ = ["CredentialEntry", "CredentialStore", "TOKEN_ENV_VAR", "resolve_token"]
