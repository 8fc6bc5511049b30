"""
Main entry point for the Tidal Idle hub server.

Usage:
    python -m tidal_server.main
    
Or:
    tidal-hub
"""

from tidal_server.network.server import main


if __name__ == "__main__":
    main()
