"""
Headless client for the Tidal Idle hub.
"""
