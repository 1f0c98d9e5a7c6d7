"""
Multi-step flows built on the compatibility client.
"""

from .console import DevConsole
from .endpoints import EndpointManager

__all__ = [
    "DevConsole",
    "EndpointManager",
]
