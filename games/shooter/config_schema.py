"""Schema for the twin-stick shield shooter."""

REQUIRED_PARAMS = {
    "width": int,
    "height": int,
    "tick_ms": float,
}

DEFAULTS = {
    "width": 500,
    "height": 500,
    "tick_ms": 1000.0 / 60.0,
    "shield_radius": 50.0,
    "shield_max": 100,
    "boosted_shield_max": 200,
    "shield_hit_damage": 10,
    "player_radius": 12.0,
    "player_speed": 3.5,
    "projectile_speed": 6.0,
    "projectile_radius": 5.0,
    "spawn_rate_start": 1000.0,
    "spawn_rate_min": 200.0,
    "spawn_rate_decay": 20.0,
    "spawn_chance_scale": 16.0,
    "spawn_margin": 50.0,
    "enemy_speed_start": 1.0,
    "enemy_speed_growth": 2000.0,
    "zombie_after_ticks": 300,
    "zombie_chance": 0.25,
    "normal_points": 10,
    "zombie_points": 25,
    "fire_rate_cost": 150,
    "hp_boost_cost": 100,
    "power_up_ticks": 1200,
    "shotgun_unlock_score": 200,
    "trishot_unlock_score": 600,
    "unlock_banner_ticks": 120,
}

OPTIONAL_PARAMS = {
    "shield_radius": float,
    "shield_max": int,
    "boosted_shield_max": int,
    "shield_hit_damage": int,
    "player_radius": float,
    "player_speed": float,
    "projectile_speed": float,
    "projectile_radius": float,
    "spawn_rate_start": float,
    "spawn_rate_min": float,
    "spawn_rate_decay": float,
    "spawn_chance_scale": float,
    "spawn_margin": float,
    "enemy_speed_start": float,
    "enemy_speed_growth": float,
    "zombie_after_ticks": int,
    "zombie_chance": float,
    "normal_points": int,
    "zombie_points": int,
    "fire_rate_cost": int,
    "hp_boost_cost": int,
    "power_up_ticks": int,
    "shotgun_unlock_score": int,
    "trishot_unlock_score": int,
    "unlock_banner_ticks": int,
}
