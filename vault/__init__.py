"""
Credential security: key material, AES-GCM encryption and the OS keychain.
"""

from .credentials import CredentialVault
from .keychain import KeychainStore, keychain_id_for
from .keyfile import get_key, init_key, load_key, reset_key_cache

__all__ = [
    "CredentialVault",
    "KeychainStore",
    "keychain_id_for",
    "get_key",
    "init_key",
    "load_key",
    "reset_key_cache",
]
