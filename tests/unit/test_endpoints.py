"""
Unit tests for the endpoint lifecycle.
"""

import pytest

from explorer_types.domain import EncryptedSecret, KeychainSecret, UnreadableSecret
from explorer_types.errors import ResourceNotFound, SecretUnavailable
from tools.context import build_explorer
from vault.keychain import KeychainStore

from tests.fakes import BrokenKeyring


def keychain_entry(explorer, endpoint_id):
    store = explorer.vault.keychain
    return store.backend.get_password(store.service, f"endpoint-{endpoint_id}")


class TestRegister:
    """Test cases for EndpointManager.register."""

    @pytest.mark.asyncio
    async def test_password_goes_to_keychain(self, explorer, endpoint):
        assert isinstance(endpoint.secret, KeychainSecret)
        assert keychain_entry(explorer, endpoint.id) == "changeme"
        assert "changeme" not in str(endpoint.to_dict())

        credentials = await explorer.vault.resolve(endpoint)
        assert (credentials.username, credentials.password) == ("elastic", "changeme")

    @pytest.mark.asyncio
    async def test_broken_keychain_falls_back_to_encryption(self, tmp_path, key_path, executor):
        explorer = build_explorer(
            db_path=tmp_path / "explorer.db",
            key_path=key_path,
            keychain=KeychainStore(backend=BrokenKeyring()),
            executor=executor,
        )

        endpoint = await explorer.endpoints.register(
            "prod", "https://es.example:9200", username="elastic", password="changeme",
        )

        assert isinstance(endpoint.secret, EncryptedSecret)
        assert b"changeme" not in endpoint.secret.blob
        assert (await explorer.vault.resolve(endpoint)).password == "changeme"

    @pytest.mark.asyncio
    async def test_without_credentials(self, explorer):
        endpoint = await explorer.endpoints.register("local", "http://localhost:9200/")

        assert endpoint.url == "http://localhost:9200"
        assert endpoint.secret is None
        assert await explorer.vault.resolve(endpoint) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name, url", [
        ("prod", "ftp://es.example"),
        ("prod", "https://"),
        ("prod", ""),
        ("   ", "https://es.example:9200"),
    ])
    async def test_invalid_input(self, explorer, name, url):
        with pytest.raises(ValueError):
            await explorer.endpoints.register(name, url)
        assert await explorer.endpoints.list() == []


class TestUpdate:
    """Test cases for EndpointManager.update."""

    @pytest.mark.asyncio
    async def test_edit_invalidates_profile(self, explorer, endpoint, cluster):
        await explorer.client.profile(endpoint)
        assert explorer.probe.cached(endpoint) is not None

        updated = await explorer.endpoints.update(endpoint.id, url="https://es2.example:9200")

        assert updated.url == "https://es2.example:9200"
        assert updated.name == "prod"
        assert updated.username == "elastic"
        assert explorer.probe.cached(endpoint) is None
        assert explorer.probe.cached(updated) is None

    @pytest.mark.asyncio
    async def test_new_password_replaces_secret(self, explorer, endpoint):
        updated = await explorer.endpoints.update(endpoint.id, password="rotated")

        assert (await explorer.vault.resolve(updated)).password == "rotated"
        assert keychain_entry(explorer, endpoint.id) == "rotated"

    @pytest.mark.asyncio
    async def test_clear_password(self, explorer, endpoint, memory_keyring):
        updated = await explorer.endpoints.update(endpoint.id, clear_password=True)

        assert updated.secret is None
        assert memory_keyring.entries == {}
        assert (await explorer.vault.resolve(updated)).password == ""

    @pytest.mark.asyncio
    async def test_unknown_endpoint(self, explorer):
        with pytest.raises(ResourceNotFound):
            await explorer.endpoints.update(999, name="ghost")


class TestRemove:
    """Test cases for EndpointManager.remove."""

    @pytest.mark.asyncio
    async def test_remove_deletes_secret_and_history(self, explorer, endpoint, cluster, memory_keyring):
        cluster.add("GET", "/_cluster/health", {"status": "green"})
        await explorer.console.execute(endpoint, "GET", "/_cluster/health")

        await explorer.endpoints.remove(endpoint.id)

        assert memory_keyring.entries == {}
        assert await explorer.console.recent() == []
        assert explorer.probe.cached(endpoint) is None
        with pytest.raises(ResourceNotFound):
            await explorer.endpoints.get(endpoint.id)

    @pytest.mark.asyncio
    async def test_remove_with_missing_keychain_entry(self, explorer, endpoint, memory_keyring):
        memory_keyring.entries.clear()

        await explorer.endpoints.remove(endpoint.id)

        assert await explorer.endpoints.list() == []


class TestConnection:
    """Test cases for EndpointManager.test_connection."""

    @pytest.mark.asyncio
    async def test_success(self, explorer, endpoint, cluster):
        result = await explorer.endpoints.test_connection(endpoint.id)

        assert result.success is True
        assert result.version == "8.1.0"
        assert result.profile["has_sql"] is True

    @pytest.mark.asyncio
    async def test_bypasses_cache(self, explorer, endpoint, cluster):
        await explorer.client.profile(endpoint)
        cluster.set_version("7.17.9")

        result = await explorer.endpoints.test_connection(endpoint.id)

        assert result.version == "7.17.9"
        assert (await explorer.client.profile(endpoint)).number == "7.17.9"

    @pytest.mark.asyncio
    async def test_auth_failure_is_reported(self, explorer, endpoint, cluster):
        cluster.add("GET", "/", {"error": {"type": "security_exception", "reason": "unable to authenticate"}}, status=401)

        result = await explorer.endpoints.test_connection(endpoint.id)

        assert result.success is False
        assert "authenticate" in result.message
        assert result.version is None

    @pytest.mark.asyncio
    async def test_missing_keychain_entry_is_reported(self, explorer, endpoint, memory_keyring):
        memory_keyring.entries.clear()

        result = await explorer.endpoints.test_connection(endpoint.id)

        assert result.success is False


async def corrupt_secret(explorer, endpoint_id, value="%%% not base64 %%%"):
    def _update(conn):
        conn.execute("UPDATE endpoints SET password_encrypted = ? WHERE id = ?", (value, endpoint_id))

    await explorer.database.run(_update)


class TestUnreadableSecret:
    """Test cases for endpoints whose stored secret column cannot be decoded."""

    @pytest.mark.asyncio
    async def test_list_still_returns_every_endpoint(self, explorer, endpoint):
        healthy = await explorer.endpoints.register("staging", "http://localhost:9200")
        await corrupt_secret(explorer, endpoint.id)

        listed = await explorer.endpoints.list()

        assert [e.id for e in listed] == [endpoint.id, healthy.id]
        assert isinstance(listed[0].secret, UnreadableSecret)
        assert listed[0].to_dict()["secret_backend"] == "unreadable"
        assert listed[1].secret is None

    @pytest.mark.asyncio
    async def test_remove_succeeds(self, explorer, endpoint):
        await corrupt_secret(explorer, endpoint.id)

        await explorer.endpoints.remove(endpoint.id)

        assert await explorer.endpoints.list() == []

    @pytest.mark.asyncio
    async def test_resolve_raises(self, explorer, endpoint):
        await corrupt_secret(explorer, endpoint.id)
        loaded = await explorer.endpoints.get(endpoint.id)

        with pytest.raises(SecretUnavailable, match="base64"):
            await explorer.vault.resolve(loaded)

    @pytest.mark.asyncio
    async def test_connection_reports_failure(self, explorer, endpoint, cluster):
        await corrupt_secret(explorer, endpoint.id)

        result = await explorer.endpoints.test_connection(endpoint.id)

        assert result.success is False
        assert cluster.requests == []

    @pytest.mark.asyncio
    async def test_new_password_repairs_the_row(self, explorer, endpoint):
        await corrupt_secret(explorer, endpoint.id)

        updated = await explorer.endpoints.update(endpoint.id, password="rotated")

        assert isinstance(updated.secret, KeychainSecret)
        assert (await explorer.vault.resolve(updated)).password == "rotated"
