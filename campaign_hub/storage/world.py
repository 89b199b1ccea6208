"""Adventures, NPCs and quests."""

from datetime import datetime
from typing import Any

from .base import BaseStore
from .schemas import Adventure, Npc, Quest


class AdventureStore(BaseStore[Adventure]):
    table = "adventures"
    model = Adventure
    updatable = frozenset({"title", "description", "location", "status"})

    def create(
        self,
        campaign_id: int,
        title: str,
        description: str | None = None,
        location: str | None = None,
        status: str = "in_progress",
    ) -> Adventure:
        return self._create(
            {
                "campaign_id": campaign_id,
                "title": title,
                "description": description,
                "location": location,
                "status": status,
                "created_at": datetime.now(),
            }
        )

    def list_for_campaign(self, campaign_id: int) -> list[Adventure]:
        return self._list("campaign_id = ?", (campaign_id,), "created_at DESC")


class NpcStore(BaseStore[Npc]):
    table = "npcs"
    model = Npc
    json_columns = frozenset({"stats"})
    updatable = frozenset({"name", "description", "race", "npc_class", "stats", "is_hostile"})

    def create(self, campaign_id: int, name: str, **fields: Any) -> Npc:
        values = {k: v for k, v in self.normalize_keys(fields).items() if k in self.updatable}
        values.update(campaign_id=campaign_id, name=name)
        return self._create(values)

    def list_for_campaign(self, campaign_id: int) -> list[Npc]:
        return self._list("campaign_id = ?", (campaign_id,), "name")


class QuestStore(BaseStore[Quest]):
    table = "quests"
    model = Quest
    updatable = frozenset({"title", "description", "status", "is_main_quest", "reward"})

    def create(self, adventure_id: int, title: str, **fields: Any) -> Quest:
        values = {k: v for k, v in self.normalize_keys(fields).items() if k in self.updatable}
        values.update(adventure_id=adventure_id, title=title)
        return self._create(values)

    def list_for_adventure(self, adventure_id: int) -> list[Quest]:
        # Main quests first
        return self._list("adventure_id = ?", (adventure_id,), "is_main_quest DESC, id")
