"""
Credential vault: OS keychain first, AES-GCM encrypted column as fallback.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from explorer_types.domain import EncryptedSecret, EndpointIdentity, KeychainSecret, SecretRecord, UnreadableSecret
from explorer_types.errors import SecretUnavailable
from explorer_types.primitives import BasicCredentials

from . import crypto, keyfile
from .keychain import KEYCHAIN_ERRORS, KeychainStore, keychain_id_for


logger = logging.getLogger(__name__)


class CredentialVault:
    """
    Stores, resolves and deletes endpoint passwords.

    The record returned by ``store`` names the backend holding the secret;
    reads follow that tag and never try the other backend.
    """

    def __init__(
        self,
        keychain: Optional[KeychainStore] = None,
        key_path: Optional[Union[str, Path]] = None,
    ):
        self.keychain = keychain if keychain is not None else KeychainStore()
        self.key_path = key_path
        self._key: Optional[bytes] = None

    def _encryption_key(self) -> bytes:
        if self.key_path is None:
            return keyfile.get_key()
        if self._key is None:
            self._key = keyfile.load_key(self.key_path)
        return self._key

    async def store(self, endpoint_id: int, plaintext: str) -> SecretRecord:
        """
        Persist a password for an endpoint.

        Args:
            endpoint_id: Owning endpoint
            plaintext: Password to protect

        Returns:
            KeychainSecret if the OS keychain accepted and returned the
            secret, otherwise an EncryptedSecret

        Raises:
            SecretUnavailable: If the keychain failed and no key file is available
        """
        if self.keychain.enabled:
            keychain_id = keychain_id_for(endpoint_id)
            try:
                await asyncio.to_thread(self.keychain.set, keychain_id, plaintext)
                stored = await asyncio.to_thread(self.keychain.get, keychain_id)
            except KEYCHAIN_ERRORS as e:
                logger.warning(
                    "Keychain write failed for endpoint %s, using encrypted column: %s",
                    endpoint_id, type(e).__name__,
                )
            else:
                if stored == plaintext:
                    logger.debug("Stored secret for endpoint %s in keychain", endpoint_id)
                    return KeychainSecret(keychain_id=keychain_id)
                logger.warning(
                    "Keychain read-back mismatch for endpoint %s, using encrypted column",
                    endpoint_id,
                )

        record = crypto.encrypt(plaintext, self._encryption_key())
        logger.debug("Stored secret for endpoint %s in encrypted column", endpoint_id)
        return record

    async def retrieve(self, record: SecretRecord) -> str:
        """
        Recover the plaintext of a stored secret.

        Raises:
            SecretUnavailable: If the keychain entry is gone, the key is
                missing or corrupt, decryption fails or the stored column
                was unreadable
        """
        if isinstance(record, KeychainSecret):
            try:
                secret = await asyncio.to_thread(self.keychain.get, record.keychain_id)
            except KEYCHAIN_ERRORS as e:
                raise SecretUnavailable(f"Keychain unavailable for {record.keychain_id}") from e
            if secret is None:
                raise SecretUnavailable(f"Keychain entry {record.keychain_id} no longer exists")
            return secret
        if isinstance(record, EncryptedSecret):
            return crypto.decrypt(record, self._encryption_key())
        if isinstance(record, UnreadableSecret):
            raise SecretUnavailable(f"Stored secret cannot be read: {record.reason}")
        raise TypeError(f"Unsupported secret record: {type(record).__name__}")

    async def delete(self, record: Optional[SecretRecord]) -> None:
        """
        Remove a secret from its backend. Already-absent entries count as removed.

        Encrypted and unreadable secrets live in the endpoint row, so there is
        nothing to do for them here.
        """
        if isinstance(record, KeychainSecret):
            try:
                removed = await asyncio.to_thread(self.keychain.delete, record.keychain_id)
            except KEYCHAIN_ERRORS as e:
                logger.warning("Could not delete keychain entry %s: %s", record.keychain_id, e)
                return
            if not removed:
                logger.debug("Keychain entry %s was already absent", record.keychain_id)

    async def resolve(self, endpoint: EndpointIdentity) -> Optional[BasicCredentials]:
        """
        Build Basic-Auth credentials for one call.

        Returns:
            BasicCredentials, or None when the endpoint has no username
        """
        if not endpoint.username:
            return None
        password = await self.retrieve(endpoint.secret) if endpoint.secret is not None else ""
        return BasicCredentials(username=endpoint.username, password=password)
