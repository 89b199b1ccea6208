"""Party plans, plan items and item comments."""

from datetime import datetime
from typing import Any

from .base import BaseStore
from .schemas import PartyPlan, PartyPlanComment, PartyPlanItem, PartyPlanWithItems


class PlanItemStore(BaseStore[PartyPlanItem]):
    table = "party_plan_items"
    model = PartyPlanItem
    updatable = frozenset({"content", "type", "status", "position", "assigned_to_id"})
    touch_column = "updated_at"

    def create(self, plan_id: int, content: str, created_by_id: int, **fields: Any) -> PartyPlanItem:
        values = {k: v for k, v in self.normalize_keys(fields).items() if k in self.updatable}
        if "position" not in values:
            row = self.db.fetch_one(
                "SELECT COALESCE(MAX(position), -1) + 1 FROM party_plan_items WHERE plan_id = ?",
                (plan_id,),
            )
            values["position"] = row[0]
        now = datetime.now()
        values.update(
            plan_id=plan_id,
            content=content,
            created_by_id=created_by_id,
            created_at=now,
            updated_at=now,
        )
        return self._create(values)

    def list_for_plan(self, plan_id: int) -> list[PartyPlanItem]:
        return self._list("plan_id = ?", (plan_id,), "position, id")


class PlanCommentStore(BaseStore[PartyPlanComment]):
    table = "party_plan_comments"
    model = PartyPlanComment

    def create(self, item_id: int, user_id: int, content: str) -> PartyPlanComment:
        return self._create(
            {
                "item_id": item_id,
                "user_id": user_id,
                "content": content,
                "created_at": datetime.now(),
            }
        )

    def list_for_item(self, item_id: int) -> list[PartyPlanComment]:
        return self._list("item_id = ?", (item_id,), "created_at, id")


class PartyPlanStore(BaseStore[PartyPlan]):
    """Shared plans scoped to a campaign. Items and comments hang off a plan."""

    table = "party_plans"
    model = PartyPlan
    updatable = frozenset({"title", "description"})
    touch_column = "updated_at"

    def __init__(self, db):
        super().__init__(db)
        self.items = PlanItemStore(db)
        self.comments = PlanCommentStore(db)

    def create(
        self, campaign_id: int, title: str, created_by_id: int, description: str | None = None
    ) -> PartyPlan:
        now = datetime.now()
        return self._create(
            {
                "campaign_id": campaign_id,
                "title": title,
                "description": description,
                "created_by_id": created_by_id,
                "created_at": now,
                "updated_at": now,
            }
        )

    def list_for_campaign(self, campaign_id: int) -> list[PartyPlan]:
        return self._list("campaign_id = ?", (campaign_id,), "created_at DESC, id DESC")

    def get_with_items(self, plan_id: int) -> PartyPlanWithItems | None:
        plan = self.get(plan_id)
        if not plan:
            return None
        return PartyPlanWithItems(**plan.model_dump(), items=self.items.list_for_plan(plan_id))

    def plan_for_item(self, item_id: int) -> PartyPlan | None:
        """The plan owning an item."""
        item = self.items.get(item_id)
        return self.get(item.plan_id) if item else None
