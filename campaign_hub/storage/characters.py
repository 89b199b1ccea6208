"""Character storage."""

from datetime import datetime
from typing import Any

from .base import BaseStore
from .schemas import Character

DEFAULT_STATS = {
    "strength": 10,
    "dexterity": 10,
    "constitution": 10,
    "intelligence": 10,
    "wisdom": 10,
    "charisma": 10,
}


class CharacterStore(BaseStore[Character]):
    """Player characters and bot companions."""

    table = "characters"
    model = Character
    json_columns = frozenset({"stats", "equipment", "spells", "abilities"})
    updatable = frozenset(
        {
            "name",
            "race",
            "character_class",
            "level",
            "background",
            "appearance",
            "backstory",
            "alignment",
            "stats",
            "hp",
            "max_hp",
            "equipment",
            "spells",
            "abilities",
        }
    )

    def create(
        self,
        user_id: int,
        name: str,
        race: str,
        character_class: str,
        **fields: Any,
    ) -> Character:
        """Create a character.

        Extra fields may use either snake_case or the camelCase API names;
        unknown keys are ignored.
        """
        values = {k: v for k, v in self.normalize_keys(fields).items() if k in self.updatable}
        values.setdefault("stats", dict(DEFAULT_STATS))
        values.setdefault("hp", 10)
        values.setdefault("max_hp", values["hp"])
        values.update(
            user_id=user_id,
            name=name,
            race=race,
            character_class=character_class,
            is_bot=bool(fields.get("is_bot", fields.get("isBot", False))),
            created_at=datetime.now(),
        )
        return self._create(values)

    def list_for_user(self, user_id: int) -> list[Character]:
        return self._list("user_id = ?", (user_id,), "created_at")

    def list_bots_for_user(self, user_id: int) -> list[Character]:
        return self._list("user_id = ? AND is_bot = 1", (user_id,), "created_at")
