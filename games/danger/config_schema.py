"""Schema for the danger dodging game."""

REQUIRED_PARAMS = {
    "width": int,
    "height": int,
    "tick_ms": int,
    "spawn_ms": int,
}

DEFAULTS = {
    "width": 400,
    "height": 400,
    "tick_ms": 20,
    "spawn_ms": 450,
    "player_size": 20.0,
    "obstacle_size": 25.0,
    "player_speed": 8.0,
    "obstacle_min_speed": 1.5,
    "obstacle_speed_range": 2.5,
    "obstacle_drift": 2.0,
}

OPTIONAL_PARAMS = {
    "player_size": float,
    "obstacle_size": float,
    "player_speed": float,
    "obstacle_min_speed": float,
    "obstacle_speed_range": float,
    "obstacle_drift": float,
}
