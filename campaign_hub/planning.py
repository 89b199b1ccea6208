"""Party planning mutations shared by the socket relay and the HTTP routes."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from .storage import Record, Storage, StorageError

logger = logging.getLogger(__name__)

PlanningAction = Literal[
    "create_plan",
    "update_plan",
    "delete_plan",
    "create_item",
    "update_item",
    "delete_item",
    "add_comment",
]

PLANNING_ACTIONS: tuple[str, ...] = PlanningAction.__args__

# Request action -> action name announced to the campaign
RESULT_ACTIONS = {
    "create_plan": "plan_created",
    "update_plan": "plan_updated",
    "delete_plan": "plan_deleted",
    "create_item": "item_created",
    "update_item": "item_updated",
    "delete_item": "item_deleted",
    "add_comment": "comment_added",
}


class PlanningError(Exception):
    """A planning action was rejected or could not be persisted."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CreatePlan(_Payload):
    title: str
    description: str | None = None


class UpdatePlan(_Payload):
    plan_id: int
    title: str | None = None
    description: str | None = None


class DeletePlan(_Payload):
    plan_id: int


class CreateItem(_Payload):
    plan_id: int
    content: str
    type: str | None = None
    status: str | None = None
    position: int | None = None
    assigned_to_id: int | None = None


class UpdateItem(_Payload):
    item_id: int
    content: str | None = None
    type: str | None = None
    status: str | None = None
    position: int | None = None
    assigned_to_id: int | None = None


class DeleteItem(_Payload):
    item_id: int


class AddComment(_Payload):
    item_id: int
    content: str


PAYLOAD_MODELS: dict[str, type[_Payload]] = {
    "create_plan": CreatePlan,
    "update_plan": UpdatePlan,
    "delete_plan": DeletePlan,
    "create_item": CreateItem,
    "update_item": UpdateItem,
    "delete_item": DeleteItem,
    "add_comment": AddComment,
}


@dataclass
class PlanningResult:
    """Outcome of a successful planning action."""

    action: str  # result action, e.g. "item_created"
    plan: Record | None = None
    item: Record | None = None
    comment: Record | None = None
    ids: dict[str, int] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Fields added to the campaign broadcast."""
        payload: dict[str, Any] = dict(self.ids)
        if self.plan is not None:
            payload["plan"] = self.plan.to_json()
        if self.item is not None:
            payload["item"] = self.item.to_json()
        if self.comment is not None:
            payload["comment"] = self.comment.to_json()
        return payload


class PlanningService:
    """Validates and persists party planning actions for one campaign at a time."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def apply(
        self, campaign_id: int, user_id: int, action: str, payload: dict[str, Any]
    ) -> PlanningResult:
        """Apply a planning action on behalf of a user.

        Raises:
            PlanningError: On an unknown action, an invalid payload, a reference
                to a plan or item outside the campaign, a forbidden delete, or a
                storage failure.
        """
        if action not in PAYLOAD_MODELS:
            raise PlanningError(f"Unknown planning action: {action}")
        try:
            data = PAYLOAD_MODELS[action].model_validate(payload)
        except ValidationError as e:
            raise PlanningError(f"Invalid {action} payload: {_describe(e)}") from e

        handler: Callable[[int, int, Any], PlanningResult] = getattr(self, f"_{action}")
        try:
            campaign = self.storage.campaigns.get(campaign_id)
            if not campaign:
                raise PlanningError("Campaign not found", status=404)
            result = handler(campaign_id, user_id, data)
        except StorageError as e:
            logger.error(f"Failed to persist {action} for campaign {campaign_id}: {e}")
            raise PlanningError(f"Failed to {action.replace('_', ' ')}", status=500) from e

        logger.info(f"User {user_id} applied {action} in campaign {campaign_id}")
        return result

    # -- lookups ----------------------------------------------------------

    def _plan_in_campaign(self, campaign_id: int, plan_id: int):
        plan = self.storage.plans.get(plan_id)
        if not plan or plan.campaign_id != campaign_id:
            raise PlanningError(f"Plan {plan_id} not found in campaign {campaign_id}", status=404)
        return plan

    def _item_in_campaign(self, campaign_id: int, item_id: int):
        item = self.storage.plans.items.get(item_id)
        if not item:
            raise PlanningError(f"Item {item_id} not found", status=404)
        self._plan_in_campaign(campaign_id, item.plan_id)
        return item

    def _can_delete(self, campaign_id: int, user_id: int, owner_id: int) -> bool:
        # Over the socket user_id is the client's unverified claim; HTTP passes the JWT identity
        if owner_id == user_id:
            return True
        campaign = self.storage.campaigns.get(campaign_id)
        return campaign is not None and campaign.dm_id == user_id

    # -- actions ----------------------------------------------------------

    def _create_plan(self, campaign_id: int, user_id: int, data: CreatePlan) -> PlanningResult:
        plan = self.storage.plans.create(campaign_id, data.title, user_id, data.description)
        return PlanningResult("plan_created", plan=plan)

    def _update_plan(self, campaign_id: int, user_id: int, data: UpdatePlan) -> PlanningResult:
        self._plan_in_campaign(campaign_id, data.plan_id)
        updates = data.model_dump(exclude={"plan_id"}, exclude_none=True)
        plan = self.storage.plans.update(data.plan_id, updates)
        return PlanningResult("plan_updated", plan=plan)

    def _delete_plan(self, campaign_id: int, user_id: int, data: DeletePlan) -> PlanningResult:
        plan = self._plan_in_campaign(campaign_id, data.plan_id)
        if not self._can_delete(campaign_id, user_id, plan.created_by_id):
            raise PlanningError("Only the plan creator or the DM can delete a plan", status=403)
        self.storage.plans.delete(plan.id)
        return PlanningResult("plan_deleted", ids={"planId": plan.id})

    def _create_item(self, campaign_id: int, user_id: int, data: CreateItem) -> PlanningResult:
        self._plan_in_campaign(campaign_id, data.plan_id)
        fields = data.model_dump(exclude={"plan_id", "content"}, exclude_none=True)
        item = self.storage.plans.items.create(data.plan_id, data.content, user_id, **fields)
        return PlanningResult("item_created", item=item, ids={"planId": data.plan_id})

    def _update_item(self, campaign_id: int, user_id: int, data: UpdateItem) -> PlanningResult:
        existing = self._item_in_campaign(campaign_id, data.item_id)
        updates = data.model_dump(exclude={"item_id"}, exclude_none=True)
        item = self.storage.plans.items.update(data.item_id, updates)
        return PlanningResult("item_updated", item=item, ids={"planId": existing.plan_id})

    def _delete_item(self, campaign_id: int, user_id: int, data: DeleteItem) -> PlanningResult:
        item = self._item_in_campaign(campaign_id, data.item_id)
        if not self._can_delete(campaign_id, user_id, item.created_by_id):
            raise PlanningError("Only the item creator or the DM can delete an item", status=403)
        self.storage.plans.items.delete(item.id)
        return PlanningResult("item_deleted", ids={"planId": item.plan_id, "itemId": item.id})

    def _add_comment(self, campaign_id: int, user_id: int, data: AddComment) -> PlanningResult:
        item = self._item_in_campaign(campaign_id, data.item_id)
        comment = self.storage.plans.comments.create(item.id, user_id, data.content)
        return PlanningResult(
            "comment_added", comment=comment, ids={"planId": item.plan_id, "itemId": item.id}
        )


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
        for err in error.errors()
    )
