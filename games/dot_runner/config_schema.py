"""Schema for the dot runner chase game."""

REQUIRED_PARAMS = {
    "grid_size": int,
    "tick_ms": int,
}

DEFAULTS = {
    "grid_size": 25,
    "tick_ms": 130,
    "speedup_ms": 2,
    "min_tick_ms": 75,
    "symbols": ["*", "#", "$", "%", "@"],
    "shadow_start_chance": 0.35,
    "shadow_chance_step": 0.03,
    "shadow_chance_max": 0.9,
    "far_distance": 12.0,
    "far_chance_factor": 0.8,
    "power_up_every": 80,
    "power_up_ticks": 25,
    "glitch_distance": 5.0,
    "glitch_probability": 0.5,
    "alert_distance": 4.0,
    "alert_cue_every": 15,
}

OPTIONAL_PARAMS = {
    "speedup_ms": int,
    "min_tick_ms": int,
    "symbols": list,
    "shadow_start_chance": float,
    "shadow_chance_step": float,
    "shadow_chance_max": float,
    "far_distance": float,
    "far_chance_factor": float,
    "power_up_every": int,
    "power_up_ticks": int,
    "glitch_distance": float,
    "glitch_probability": float,
    "alert_distance": float,
    "alert_cue_every": int,
}
