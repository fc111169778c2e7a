"""Dynamic game plugin discovery and lookup."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Type

import games
from games.base_game import Game


LOGGER = logging.getLogger(__name__)

_DISCOVERED: dict[str, Type[Game]] | None = None


class GamePluginNotFoundError(LookupError):
    """Raised when requested game plugin cannot be resolved."""


def discover_games() -> dict[str, Type[Game]]:
    """Discover game plugins from the ``games`` package.

    Every sub-package exposing ``GAME_NAME`` and ``GameClass`` from its
    ``sim`` module is registered.
    """
    global _DISCOVERED
    if _DISCOVERED is not None:
        return dict(_DISCOVERED)

    discovered: dict[str, Type[Game]] = {}
    package_names = sorted(
        {
            child.name
            for base in games.__path__
            for child in Path(base).iterdir()
            if child.is_dir() and not child.name.startswith("_") and (child / "sim.py").is_file()
        }
    )
    for package_name in package_names:
        try:
            plugin_module = importlib.import_module(f"games.{package_name}.sim")
        except ImportError as exc:
            LOGGER.warning("Skipping game package '%s': %s", package_name, exc)
            continue

        game_name = getattr(plugin_module, "GAME_NAME", None)
        game_class = getattr(plugin_module, "GameClass", None)
        if isinstance(game_name, str) and isinstance(game_class, type) and issubclass(game_class, Game):
            discovered[game_name] = game_class

    _DISCOVERED = discovered
    return dict(discovered)


def get_game_class(name: str) -> Type[Game]:
    """Return game class by name or raise descriptive error."""
    discovered = discover_games()
    if name in discovered:
        return discovered[name]

    available = ", ".join(sorted(discovered.keys())) or "<none>"
    raise GamePluginNotFoundError(
        f"Game plugin '{name}' not found. Available games: {available}"
    )
