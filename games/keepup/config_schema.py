"""Schema for the balloon keep-up game."""

REQUIRED_PARAMS = {
    "width": int,
    "height": int,
    "tick_ms": int,
}

DEFAULTS = {
    "width": 400,
    "height": 400,
    "tick_ms": 16,
    "balloon_radius": 25.0,
    "gravity_start": 0.1,
    "gravity_step": 0.002,
    "gravity_max": 0.4,
    "hit_force": -5.0,
    "paddle_width": 100.0,
    "paddle_height": 10.0,
    "paddle_offset": 40.0,
    "wall_damping": 0.95,
    "ceiling_damping": 0.9,
    "base_vx_multiplier": 5.0,
    "tier_thresholds": [20, 40, 60],
    "tier_force_multipliers": [1.1, 1.2, 1.3],
    "tier_vx_multipliers": [5.5, 6.0, 6.5],
    "tier_gravity_floors": [0.2, 0.25, 0.3],
    "flash_ticks": 15,
    "shockwave_growth": 30.0,
    "shockwave_fade": 0.05,
}

OPTIONAL_PARAMS = {
    "balloon_radius": float,
    "gravity_start": float,
    "gravity_step": float,
    "gravity_max": float,
    "hit_force": float,
    "paddle_width": float,
    "paddle_height": float,
    "paddle_offset": float,
    "wall_damping": float,
    "ceiling_damping": float,
    "base_vx_multiplier": float,
    "tier_thresholds": list,
    "tier_force_multipliers": list,
    "tier_vx_multipliers": list,
    "tier_gravity_floors": list,
    "flash_ticks": int,
    "shockwave_growth": float,
    "shockwave_fade": float,
}

# One entry per tier.
SAME_LENGTH_PARAMS = [
    ("tier_thresholds", "tier_force_multipliers", "tier_vx_multipliers", "tier_gravity_floors"),
]
