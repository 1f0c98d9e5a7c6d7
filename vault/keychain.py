"""
OS keychain access through ``keyring``.

Calls here are blocking; the credential vault runs them in a worker thread.
"""

from typing import Optional

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from config.environments import get_keychain_config


KEYCHAIN_ERRORS = (KeyringError, OSError, RuntimeError)


def keychain_id_for(endpoint_id: int) -> str:
    return f"endpoint-{endpoint_id}"


class KeychainStore:
    """Thin wrapper binding a keyring backend to the explorer's service name."""

    def __init__(self, backend: Optional[KeyringBackend] = None, service: Optional[str] = None):
        config = get_keychain_config()
        self._backend = backend
        self.service = service or config["service"]
        self.enabled = config["enabled"] if backend is None else True

    @property
    def backend(self) -> KeyringBackend:
        return self._backend if self._backend is not None else keyring.get_keyring()

    def set(self, keychain_id: str, secret: str) -> None:
        self.backend.set_password(self.service, keychain_id, secret)

    def get(self, keychain_id: str) -> Optional[str]:
        return self.backend.get_password(self.service, keychain_id)

    def delete(self, keychain_id: str) -> bool:
        """
        Remove an entry.

        Returns:
            True if an entry was removed, False if it was already absent
        """
        try:
            self.backend.delete_password(self.service, keychain_id)
        except PasswordDeleteError:
            return False
        return True
