"""
Process-wide wiring of the explorer components.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import httpx

from storage.database import Database
from storage.endpoints import EndpointRepository
from storage.history import HistoryRepository, HistoryRetention
from tools.client import CompatibilityClient
from tools.flows.console import DevConsole
from tools.flows.endpoints import EndpointManager
from tools.probe import VersionProbe
from utils.connection import RequestExecutor
from vault.credentials import CredentialVault
from vault.keychain import KeychainStore
from vault.keyfile import init_key


@dataclass
class Explorer:
    """Everything a caller needs, sharing one executor and one probe cache."""
    database: Database
    vault: CredentialVault
    executor: RequestExecutor
    probe: VersionProbe
    client: CompatibilityClient
    endpoints: EndpointManager
    console: DevConsole
    history: HistoryRepository


def build_explorer(
    db_path: Optional[Union[str, Path]] = None,
    key_path: Optional[Union[str, Path]] = None,
    keychain: Optional[KeychainStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    executor: Optional[RequestExecutor] = None,
) -> Explorer:
    """
    Build the component graph.

    The key file is created here if missing; afterwards it is only read.

    Args:
        db_path: SQLite file (defaults to configuration)
        key_path: Encryption key file (defaults to configuration)
        keychain: Keychain store, e.g. bound to a specific keyring backend
        transport: httpx transport for the default executor
        executor: Pre-built executor; overrides ``transport``

    Returns:
        Explorer
    """
    init_key(key_path)

    database = Database(db_path)
    vault = CredentialVault(keychain=keychain, key_path=key_path)
    executor = executor or RequestExecutor(transport=transport)
    probe = VersionProbe(executor)
    client = CompatibilityClient(executor, probe, vault)
    history = HistoryRepository(database)

    return Explorer(
        database=database,
        vault=vault,
        executor=executor,
        probe=probe,
        client=client,
        endpoints=EndpointManager(EndpointRepository(database), vault, probe, client),
        console=DevConsole(client, history, HistoryRetention(history)),
        history=history,
    )


_explorer: Optional[Explorer] = None


def get_explorer() -> Explorer:
    global _explorer
    if _explorer is None:
        _explorer = build_explorer()
    return _explorer


def set_explorer(explorer: Optional[Explorer]) -> None:
    """Replace the process-wide explorer (None resets it)."""
    global _explorer
    _explorer = explorer
