"""
Pytest configuration and fixtures for elastic-explorer tests.
"""

import os
import sys

import pytest
import pytest_asyncio

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(__file__))
sys.path.insert(0, project_root)

from explorer_types.domain import EndpointIdentity  # noqa: E402
from tests.fakes import FakeCluster, MemoryKeyring  # noqa: E402
from tools.context import build_explorer, set_explorer  # noqa: E402
from tools.probe import build_profile  # noqa: E402
from utils.connection import RequestExecutor  # noqa: E402
from vault.keychain import KeychainStore  # noqa: E402


@pytest.fixture
def cluster():
    """Fake 8.1.0 cluster."""
    return FakeCluster("8.1.0")


@pytest.fixture
def memory_keyring():
    return MemoryKeyring()


@pytest.fixture
def key_path(tmp_path):
    return tmp_path / "keys" / "db.key"


@pytest.fixture
def executor(cluster):
    """Executor bound to the fake cluster, without retries."""
    return RequestExecutor(timeout_ms=1000, max_retries=0, backoff_seconds=0, transport=cluster.transport)


@pytest.fixture
def explorer(tmp_path, key_path, executor, memory_keyring):
    """Fully wired explorer over a temporary database and the fake cluster."""
    explorer = build_explorer(
        db_path=tmp_path / "explorer.db",
        key_path=key_path,
        keychain=KeychainStore(backend=memory_keyring),
        executor=executor,
    )
    set_explorer(explorer)
    yield explorer
    set_explorer(None)


@pytest_asyncio.fixture
async def endpoint(explorer) -> EndpointIdentity:
    """Registered https endpoint with credentials and untrusted certificates."""
    return await explorer.endpoints.register(
        name="prod",
        url="https://es.example:9200",
        insecure=True,
        username="elastic",
        password="changeme",
    )


@pytest.fixture
def profile_for():
    """Factory for VersionProfiles, for calling builders and parsers directly."""
    return build_profile
