"""Schema for the platformer."""

REQUIRED_PARAMS = {
    "width": int,
    "height": int,
    "tick_ms": int,
}

DEFAULTS = {
    "width": 400,
    "height": 400,
    "tick_ms": 16,
    "player_size": 20.0,
    "gravity": 0.5,
    "jump_force": -10.0,
    "move_speed": 4.0,
    "friction": 0.8,
    "coin_radius": 10.0,
    "fall_margin": 50.0,
    "skip_cost": 10,
    "atm_code": "2011",
    "atm_reward": 1000,
    "terminal_code": "YAHYA",
    "glitch_levels": 5,
    "next_level_delay_ms": 1500,
}

OPTIONAL_PARAMS = {
    "player_size": float,
    "gravity": float,
    "jump_force": float,
    "move_speed": float,
    "friction": float,
    "coin_radius": float,
    "fall_margin": float,
    "skip_cost": int,
    "atm_code": str,
    "atm_reward": int,
    "terminal_code": str,
    "glitch_levels": int,
    "next_level_delay_ms": int,
    "levels_path": str,
}
