"""
Endpoint lifecycle: register, edit, remove and connection test.

Every edit and every explicit test drops the endpoint's cached VersionProfile.
"""

import logging
from typing import List, Optional

from explorer_types.cluster import ConnectionTestResult
from explorer_types.domain import EndpointIdentity, KeychainSecret, SecretRecord
from explorer_types.errors import ExplorerError, ResourceNotFound
from storage.endpoints import EndpointRepository
from tools.client import CompatibilityClient
from tools.probe import VersionProbe
from utils.validation import validate_endpoint_url
from vault.credentials import CredentialVault


logger = logging.getLogger(__name__)


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Endpoint name cannot be empty")
    return name


class EndpointManager:
    """Coordinates the endpoint table, the credential vault and the probe cache."""

    def __init__(
        self,
        repository: EndpointRepository,
        vault: CredentialVault,
        probe: VersionProbe,
        client: CompatibilityClient,
    ):
        self.repository = repository
        self.vault = vault
        self.probe = probe
        self.client = client

    async def get(self, endpoint_id: int) -> EndpointIdentity:
        endpoint = await self.repository.get(endpoint_id)
        if endpoint is None:
            raise ResourceNotFound("endpoint", str(endpoint_id))
        return endpoint

    async def list(self) -> List[EndpointIdentity]:
        return await self.repository.list()

    async def register(
        self,
        name: str,
        url: str,
        insecure: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> EndpointIdentity:
        """
        Create an endpoint and protect its password.

        Args:
            name: Display name
            url: http(s) base URL
            insecure: Skip certificate validation (https only)
            username: Basic-Auth user
            password: Basic-Auth password; empty means none

        Returns:
            The stored EndpointIdentity

        Raises:
            ValueError: If name or URL are invalid
            SecretUnavailable: If the password could not be stored in any backend
        """
        name = _validate_name(name)
        url = validate_endpoint_url(url)
        endpoint = await self.repository.create(name, url, insecure, username or None)

        if password:
            try:
                record = await self.vault.store(endpoint.id, password)
            except ExplorerError:
                await self.repository.delete(endpoint.id)
                raise
            await self.repository.set_secret(endpoint.id, record)
            endpoint = await self.get(endpoint.id)

        logger.info("Registered endpoint %s (%s)", endpoint.id, endpoint.base_url)
        return endpoint

    async def update(
        self,
        endpoint_id: int,
        name: Optional[str] = None,
        url: Optional[str] = None,
        insecure: Optional[bool] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        clear_password: bool = False,
    ) -> EndpointIdentity:
        """
        Edit an endpoint. Fields left as None keep their value.

        A new password replaces the stored secret; ``clear_password`` removes it.
        """
        current = await self.get(endpoint_id)
        await self.repository.update(
            endpoint_id,
            name=_validate_name(name) if name is not None else current.name,
            url=validate_endpoint_url(url) if url is not None else current.url,
            insecure=insecure if insecure is not None else current.insecure,
            username=(username or None) if username is not None else current.username,
        )

        if password:
            record = await self.vault.store(endpoint_id, password)
            await self.repository.set_secret(endpoint_id, record)
            await self._discard(current.secret, keep=record)
        elif clear_password and current.secret is not None:
            await self.repository.set_secret(endpoint_id, None)
            await self.vault.delete(current.secret)

        self.probe.invalidate(endpoint_id)
        logger.info("Updated endpoint %s", endpoint_id)
        return await self.get(endpoint_id)

    async def _discard(self, old: Optional[SecretRecord], keep: SecretRecord) -> None:
        """Delete a replaced secret unless it is the keychain entry just rewritten."""
        if old is None:
            return
        if isinstance(old, KeychainSecret) and isinstance(keep, KeychainSecret) and old == keep:
            return
        await self.vault.delete(old)

    async def remove(self, endpoint_id: int) -> None:
        """Delete the endpoint, its console history and its stored secret."""
        endpoint = await self.get(endpoint_id)
        await self.repository.delete(endpoint_id)
        await self.vault.delete(endpoint.secret)
        self.probe.invalidate(endpoint_id)
        logger.info("Removed endpoint %s", endpoint_id)

    async def test_connection(self, endpoint_id: int) -> ConnectionTestResult:
        """
        Re-probe the endpoint, bypassing the profile cache.

        Failures are reported in the result instead of raised.
        """
        endpoint = await self.get(endpoint_id)
        self.probe.invalidate(endpoint_id)
        try:
            profile = await self.client.profile(endpoint, refresh=True)
        except ExplorerError as e:
            logger.info("Connection test for endpoint %s failed: %s", endpoint_id, e)
            return ConnectionTestResult(success=False, message=f"Connection failed: {e}")
        return ConnectionTestResult(
            success=True,
            message="Connection successful",
            version=profile.number,
            profile=profile.to_dict(),
        )
