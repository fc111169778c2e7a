"""Top-level session config loading and validation for plugin-driven games."""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Mapping

import yaml

from core.input_trace import InputTraceError, parse_input_trace
from core.plugin_registry import GamePluginNotFoundError, get_game_class
from core.schema_validator import SchemaValidationError, validate_game_params


class ConfigValidationError(ValueError):
    """Raised when runtime config fails validation."""


_REQUIRED_TOP_LEVEL = {"game", "params", "session"}
_OPTIONAL_TOP_LEVEL = {"storage", "inputs"}
_REQUIRED_SESSION = {
    "seed": int,
    "max_ticks": int,
}
_OPTIONAL_STORAGE = {
    "kv_path": str,
    "session_log": str,
}


def _load_yaml_or_raise(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigValidationError(f"Config file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Failed to parse YAML config '{path}': {exc}") from exc

    if not isinstance(payload, Mapping):
        raise ConfigValidationError("Top-level config must be a mapping.")
    return dict(payload)


def _validate_section(
    section_name: str,
    section_value: Any,
    fields: Mapping[str, type[Any]],
    required: bool = True,
) -> dict[str, Any]:
    if not isinstance(section_value, Mapping):
        raise ConfigValidationError(f"Section '{section_name}' must be a mapping.")

    section = dict(section_value)
    if required:
        missing = [key for key in fields if key not in section]
        if missing:
            raise ConfigValidationError(
                f"Section '{section_name}' missing required field(s): {missing}."
            )

    extras = [key for key in section if key not in fields]
    if extras:
        raise ConfigValidationError(f"Section '{section_name}' has unknown field(s): {extras}.")

    for key, value in section.items():
        expected_type = fields[key]
        if type(value) is not expected_type:
            raise ConfigValidationError(
                f"Field '{section_name}.{key}' expected {expected_type.__name__}, got {type(value).__name__}."
            )

    return section


def load_game_params(game: str, params: Mapping[str, Any] | None = None, strict: bool = True) -> dict[str, Any]:
    """Resolve ``game`` and validate ``params`` against its schema module."""
    try:
        get_game_class(game)
    except GamePluginNotFoundError as exc:
        raise ConfigValidationError(str(exc)) from exc

    schema_module_name = f"games.{game}.config_schema"
    try:
        schema_module = importlib.import_module(schema_module_name)
    except ImportError as exc:
        raise ConfigValidationError(
            f"Could not load schema for game '{game}' ({schema_module_name})."
        ) from exc

    try:
        return validate_game_params(
            params=dict(params or {}),
            schema_module=schema_module,
            game_name=game,
            strict=strict,
        )
    except SchemaValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def load_config(path: str | Path, strict: bool = True) -> dict[str, Any]:
    """Load and validate a YAML session configuration.

    Returns normalized config with keys:
    - game
    - game_config
    - seed
    - max_ticks
    - storage
    - inputs (parsed ``InputEvent`` list)
    """
    config = _load_yaml_or_raise(Path(path))

    missing_top = sorted(key for key in _REQUIRED_TOP_LEVEL if key not in config)
    if missing_top:
        raise ConfigValidationError(f"Missing required top-level section(s): {missing_top}.")

    extras_top = [key for key in config if key not in _REQUIRED_TOP_LEVEL | _OPTIONAL_TOP_LEVEL]
    if extras_top:
        raise ConfigValidationError(f"Unknown top-level field(s): {extras_top}.")

    game = config.get("game")
    if not isinstance(game, str) or not game:
        raise ConfigValidationError("Field 'game' must be a non-empty string.")

    raw_params = config["params"]
    if raw_params is None:
        raw_params = {}
    if not isinstance(raw_params, Mapping):
        raise ConfigValidationError("Section 'params' must be a mapping.")
    game_params = load_game_params(game, raw_params, strict=strict)

    session = _validate_section("session", config["session"], _REQUIRED_SESSION)
    if session["max_ticks"] <= 0:
        raise ConfigValidationError("Field 'session.max_ticks' must be positive.")

    storage: dict[str, Any] = {}
    if config.get("storage") is not None:
        storage = _validate_section("storage", config["storage"], _OPTIONAL_STORAGE, required=False)

    raw_inputs = config.get("inputs")
    if raw_inputs is not None and not isinstance(raw_inputs, list):
        raise ConfigValidationError("Section 'inputs' must be a list.")
    try:
        inputs = parse_input_trace(raw_inputs)
    except InputTraceError as exc:
        raise ConfigValidationError(str(exc)) from exc

    return {
        "game": game,
        "game_config": game_params,
        "seed": session["seed"],
        "max_ticks": session["max_ticks"],
        "storage": storage,
        "inputs": inputs,
    }
