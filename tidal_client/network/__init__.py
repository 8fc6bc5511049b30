"""
Network layer for the hub client.
"""

from tidal_client.network.client import HubClient, ConnectionState


__all__ = [
    "HubClient",
    "ConnectionState",
]
