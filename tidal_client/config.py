"""
Client configuration settings.
"""

import os
from dataclasses import dataclass

from tidal_shared.constants import DEFAULT_MOVE_SPEED


@dataclass
class ClientSettings:
    """Client configuration."""
    
    # Server connection
    server_host: str = "localhost"
    server_port: int = 3000
    
    # Reconnection settings
    reconnect_attempts: int = 5
    reconnect_delay: float = 2.0
    
    # Seconds to wait for the server's currentPlayer frame after connecting
    welcome_timeout: float = 10.0
    
    # Movement per input step, in world pixels
    move_speed: int = DEFAULT_MOVE_SPEED
    
    @property
    def server_url(self) -> str:
        return f"ws://{self.server_host}:{self.server_port}"


def load_settings() -> ClientSettings:
    """Load settings from environment variables."""
    return ClientSettings(
        server_host=os.getenv("TIDAL_SERVER_HOST", "localhost"),
        server_port=int(os.getenv("TIDAL_SERVER_PORT", "3000")),
        reconnect_attempts=int(os.getenv("TIDAL_RECONNECT_ATTEMPTS", "5")),
        reconnect_delay=float(os.getenv("TIDAL_RECONNECT_DELAY", "2.0")),
        welcome_timeout=float(os.getenv("TIDAL_WELCOME_TIMEOUT", "10.0")),
        move_speed=int(os.getenv("TIDAL_MOVE_SPEED", str(DEFAULT_MOVE_SPEED))),
    )


settings = load_settings()
