"""
SQLite-backed persistence for endpoints and console history.
"""

from .database import Database
from .endpoints import EndpointRepository
from .history import HistoryRepository, HistoryRetention

__all__ = [
    "Database",
    "EndpointRepository",
    "HistoryRepository",
    "HistoryRetention",
]
