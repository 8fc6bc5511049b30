"""
Exceptions raised by the hub server.
"""


class HubError(Exception):
    """Base class for hub server errors."""


class DuplicateConnectionError(HubError):
    """A connection id was registered twice."""

    def __init__(self, connection_id: str):
        super().__init__(f"Connection {connection_id} is already registered")
        self.connection_id = connection_id
