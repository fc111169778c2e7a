"""Deterministic RNG container with named streams."""

from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass


@dataclass
class DeterministicRNG:
    """Owns deterministic RNG streams without touching global random state.

    A session draws from separate streams (initial layout, per-tick step,
    spawner) so that adding a spawner tick never shifts the step sequence.
    """

    seed: int

    def __post_init__(self) -> None:
        self._streams: dict[str, random.Random] = {}

    def stream(self, name: str) -> random.Random:
        """Return independent deterministic stream by name."""
        if name not in self._streams:
            # Stable across processes, unlike built-in hash().
            digest = hashlib.sha256(f"{self.seed}:{name}".encode("utf-8")).digest()
            derived_seed = int.from_bytes(digest[:8], byteorder="big", signed=False) & 0xFFFFFFFF
            self._streams[name] = random.Random(derived_seed)
        return self._streams[name]
