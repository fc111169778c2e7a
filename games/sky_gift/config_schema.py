"""Schema for the sky gift catching game."""

REQUIRED_PARAMS = {
    "width": int,
    "height": int,
    "tick_ms": int,
    "spawn_ms": int,
}

DEFAULTS = {
    "width": 400,
    "height": 400,
    "tick_ms": 33,
    "spawn_ms": 900,
    "player_width": 60.0,
    "player_height": 20.0,
    "gift_size": 30.0,
    "player_speed": 10.0,
    "gift_speed": 4.0,
    "gift_points": 10,
    "lives": 3,
}

OPTIONAL_PARAMS = {
    "player_width": float,
    "player_height": float,
    "gift_size": float,
    "player_speed": float,
    "gift_speed": float,
    "gift_points": int,
    "lives": int,
}
