"""Persistent platformer progress: level, wallet, glitch flag and skins."""

from __future__ import annotations

import logging

from data.kv_store import TOTAL_COINS_KEY, KeyValueStore


LOGGER = logging.getLogger(__name__)

LEVEL_KEY = "platformer_currentLevel"
GLITCH_FIXED_KEY = "platformer_glitchFixed"
UNLOCKED_SKINS_KEY = "platformer_unlockedSkins"
EQUIPPED_SKIN_KEY = "platformer_equippedSkin"

SKIN_COSTS = {
    "default": 0,
    "glitch": 50,
    "calculator": 50,
}


class PlatformerProgress:
    """Typed view over the store keys the platformer owns.

    Every mutation is a single read-modify-write inside a store transaction.
    """

    def __init__(self, store: KeyValueStore, level_count: int) -> None:
        self.store = store
        self.level_count = level_count

    @property
    def current_level(self) -> int:
        level = self.store.get_int(LEVEL_KEY, 0)
        if level < 0 or level >= self.level_count:
            return 0
        return level

    def set_current_level(self, level: int) -> None:
        self.store.set_int(LEVEL_KEY, level)

    @property
    def total_coins(self) -> int:
        return self.store.get_int(TOTAL_COINS_KEY, 0)

    def add_coins(self, amount: int) -> int:
        return self.store.update_int(TOTAL_COINS_KEY, lambda coins: coins + amount)

    def spend(self, cost: int) -> bool:
        """Deduct ``cost`` if affordable."""
        with self.store.transaction():
            coins = self.total_coins
            if coins < cost:
                return False
            self.store.set_int(TOTAL_COINS_KEY, coins - cost)
            return True

    @property
    def glitch_fixed(self) -> bool:
        return self.store.get_bool(GLITCH_FIXED_KEY, False)

    def set_glitch_fixed(self, fixed: bool = True) -> None:
        self.store.set_bool(GLITCH_FIXED_KEY, fixed)

    @property
    def unlocked_skins(self) -> list[str]:
        skins = self.store.get_json(UNLOCKED_SKINS_KEY, ["default"])
        if not isinstance(skins, list):
            LOGGER.warning("Unlocked skins record is not a list; resetting to default.")
            return ["default"]
        return [str(s) for s in skins]

    @property
    def equipped_skin(self) -> str:
        skin = self.store.get_str(EQUIPPED_SKIN_KEY, "default")
        return skin if skin in SKIN_COSTS else "default"

    def buy_skin(self, skin: str) -> bool:
        """Unlock and equip ``skin``. Returns ``False`` if owned, unknown or unaffordable."""
        if skin not in SKIN_COSTS:
            return False
        with self.store.transaction():
            unlocked = self.unlocked_skins
            if skin in unlocked or not self.spend(SKIN_COSTS[skin]):
                return False
            self.store.set_json(UNLOCKED_SKINS_KEY, unlocked + [skin])
            self.store.set_raw(EQUIPPED_SKIN_KEY, skin)
            return True

    def equip_skin(self, skin: str) -> bool:
        if skin not in self.unlocked_skins:
            return False
        self.store.set_raw(EQUIPPED_SKIN_KEY, skin)
        return True

    def reset(self) -> None:
        """Forget level, wallet and glitch flag. Skins survive a reset."""
        with self.store.transaction():
            self.store.delete(LEVEL_KEY)
            self.store.delete(TOTAL_COINS_KEY)
            self.store.delete(GLITCH_FIXED_KEY)
