"""
Tidal Idle hub server.
"""
