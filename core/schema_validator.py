"""Schema validation for game plugin parameters."""

from __future__ import annotations

import warnings
from typing import Any, Mapping


class SchemaValidationError(ValueError):
    """Raised when game params fail schema validation."""


def _check_type(key: str, value: Any, expected_type: type[Any]) -> None:
    # bool is an int subclass; exact type match keeps `true` out of int fields.
    if type(value) is not expected_type:
        raise SchemaValidationError(
            f"Parameter '{key}' expected {expected_type.__name__}, got {type(value).__name__}."
        )


def validate_game_params(
    params: Mapping[str, Any],
    schema_module: Any,
    game_name: str,
    strict: bool = True,
) -> dict[str, Any]:
    """Validate game params against the plugin's ``config_schema`` module.

    Defaults are applied first, then required fields and exact types are
    checked. Unknown parameters raise when ``strict`` and warn otherwise.
    """
    required: Mapping[str, type[Any]] = getattr(schema_module, "REQUIRED_PARAMS", {})
    defaults: Mapping[str, Any] = getattr(schema_module, "DEFAULTS", {})
    optional: Mapping[str, type[Any]] = getattr(schema_module, "OPTIONAL_PARAMS", {})

    if not isinstance(required, Mapping) or not isinstance(defaults, Mapping) or not isinstance(optional, Mapping):
        raise SchemaValidationError(
            f"Game '{game_name}' schema must define REQUIRED_PARAMS, DEFAULTS, OPTIONAL_PARAMS mappings."
        )

    merged = dict(defaults)
    merged.update(params)

    for key, expected_type in required.items():
        if key not in merged:
            raise SchemaValidationError(f"Game '{game_name}' missing required parameter '{key}'.")
        _check_type(key, merged[key], expected_type)

    for key, expected_type in optional.items():
        if key in merged:
            _check_type(key, merged[key], expected_type)

    for group in getattr(schema_module, "SAME_LENGTH_PARAMS", ()):
        lengths = {key: len(merged[key]) for key in group if key in merged}
        if len(set(lengths.values())) > 1:
            raise SchemaValidationError(
                f"Game '{game_name}' parameters {sorted(lengths)} must have equal lengths, got {lengths}."
            )

    allowed = set(required) | set(optional) | set(defaults)
    extras = sorted(key for key in merged if key not in allowed)
    if extras:
        message = f"Unknown parameter(s) {extras} for game '{game_name}'."
        if strict:
            raise SchemaValidationError(message)
        warnings.warn(message, stacklevel=2)
        for key in extras:
            merged.pop(key)

    return merged
