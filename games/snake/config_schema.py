"""Schema for the snake game."""

REQUIRED_PARAMS = {
    "grid_size": int,
    "tick_ms": int,
}

DEFAULTS = {
    "grid_size": 20,
    "tick_ms": 150,
    "speedup_ms": 5,
    "min_tick_ms": 50,
    "fruits": ["🍎", "🍊", "🍓", "🍇", "🍉", "🍌", "🍍", "🍒"],
}

OPTIONAL_PARAMS = {
    "speedup_ms": int,
    "min_tick_ms": int,
    "fruits": list,
}
