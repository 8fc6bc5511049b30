"""
Server configuration loaded from environment variables.
"""
import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Server configuration."""
    
    # Server settings
    HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", os.getenv("SERVER_PORT", "3000")))
    
    # HTTP liveness probe served on the WebSocket port
    HEALTH_PATH: str = os.getenv("HEALTH_PATH", "/api/health")
    
    # Transport keepalive (seconds)
    PING_INTERVAL: float = float(os.getenv("PING_INTERVAL", "25"))
    PING_TIMEOUT: float = float(os.getenv("PING_TIMEOUT", "20"))

    # A peer whose send does not complete in time is dropped (seconds)
    SEND_TIMEOUT: float = float(os.getenv("SEND_TIMEOUT", "2.0"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


config = Config()
settings = config  # Alias used by the network layer
