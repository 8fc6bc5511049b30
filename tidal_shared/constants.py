"""
World constants for the hub scene.
All coordinates are in world pixels.
"""

# Canvas
WORLD_WIDTH = 800
WORLD_HEIGHT = 600

# Playable bounds (inclusive) enforced on every stored position
MIN_X = 15
MAX_X = 785
MIN_Y = 15
MAX_Y = 585

# Spawn area, strictly inside the playable bounds: [SPAWN_MIN, SPAWN_MAX)
SPAWN_MIN_X = 20
SPAWN_MAX_X = 780
SPAWN_MIN_Y = 20
SPAWN_MAX_Y = 580

# Generated display names are NAME_PREFIX + 0..NAME_SUFFIX_LIMIT-1
NAME_PREFIX = "Player"
NAME_SUFFIX_LIMIT = 1000

# Client-side movement per input step
DEFAULT_MOVE_SPEED = 3

# Avatar palette used to colour other players consistently
PLAYER_COLORS = [
    0xFF6B6B,
    0x4ECDC4,
    0x45B7D1,
    0xF9CA24,
    0xF0932B,
    0xEB4D4B,
    0x6C5CE7,
    0xA29BFE,
]
