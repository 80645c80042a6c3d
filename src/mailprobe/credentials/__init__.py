"""Credential backends for mail server logins."""

from mailprobe.credentials.base import CredentialBackend
from mailprobe.credentials.env import EnvCredentialBackend

__all__ = ["CredentialBackend", "EnvCredentialBackend"]
