"""Schema for the lane racing game with its tank boss fight."""

REQUIRED_PARAMS = {
    "width": int,
    "height": int,
    "tick_ms": int,
    "spawn_ms": int,
}

DEFAULTS = {
    "width": 400,
    "height": 400,
    "tick_ms": 16,
    "spawn_ms": 100,
    "car_width": 40.0,
    "car_height": 70.0,
    "player_bottom_margin": 20.0,
    "road_line_height": 50.0,
    "lives": 3,
    "base_speed": 5,
    "max_speed": 18,
    "score_per_speed_step": 300,
    "invincibility_ticks": 180,
    "crash_explosion_size": 80.0,
    "crash_explosion_ticks": 30,
    "safe_gap_factor": 2.5,
    "spawn_base_chance": 0.04,
    "spawn_speed_divisor": 180.0,
    "car_speed_min_factor": 0.9,
    "car_speed_range": 0.4,
    "boss_trigger_score": 1250,
    "boss_warning_ticks": 125,
    "boss_reward": 1000,
    "tank_width": 100.0,
    "tank_height": 60.0,
    "tank_y": 10.0,
    "tank_hp": 30,
    "tank_speed": 2.0,
    "tank_first_shot": 60.0,
    "tank_cooldown_min": 60.0,
    "tank_cooldown_range": 30.0,
    "tank_car_speed_factor": 1.2,
    "projectile_width": 10.0,
    "projectile_height": 20.0,
    "projectile_speed": 12.0,
    "fire_cooldown": 20,
    "colors": ["#ef4444", "#f97316", "#84cc16", "#22c55e", "#06b6d4", "#8b5cf6"],
}

OPTIONAL_PARAMS = {
    "car_width": float,
    "car_height": float,
    "player_bottom_margin": float,
    "road_line_height": float,
    "lives": int,
    "base_speed": int,
    "max_speed": int,
    "score_per_speed_step": int,
    "invincibility_ticks": int,
    "crash_explosion_size": float,
    "crash_explosion_ticks": int,
    "safe_gap_factor": float,
    "spawn_base_chance": float,
    "spawn_speed_divisor": float,
    "car_speed_min_factor": float,
    "car_speed_range": float,
    "boss_trigger_score": int,
    "boss_warning_ticks": int,
    "boss_reward": int,
    "tank_width": float,
    "tank_height": float,
    "tank_y": float,
    "tank_hp": int,
    "tank_speed": float,
    "tank_first_shot": float,
    "tank_cooldown_min": float,
    "tank_cooldown_range": float,
    "tank_car_speed_factor": float,
    "projectile_width": float,
    "projectile_height": float,
    "projectile_speed": float,
    "fire_cooldown": int,
    "colors": list,
}
