"""Persisted record schemas.

Records are serialized with camelCase keys (``campaignId``, ``userId``) because
that is what the HTTP API and the socket protocol speak. Python code uses the
snake_case field names.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base class for rows returned by the storage facade."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        """Dump to a JSON-safe dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class User(Record):
    id: int
    username: str
    password_hash: str = ""
    email: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"password_hash"})


class Character(Record):
    """A player character or bot companion."""

    id: int
    user_id: int
    name: str
    race: str
    character_class: str = Field(alias="class")
    level: int = 1
    background: str | None = None
    appearance: str | None = None
    backstory: str | None = None
    alignment: str | None = None
    stats: dict[str, Any] = Field(default_factory=dict)
    hp: int = 10
    max_hp: int = 10
    equipment: dict[str, Any] | None = None
    spells: list[Any] | None = None
    abilities: list[Any] | None = None
    is_bot: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class Campaign(Record):
    id: int
    name: str
    description: str | None = None
    dm_id: int
    status: str = "active"
    setting: str | None = None
    is_ai_dm: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class CampaignCharacter(Record):
    id: int
    campaign_id: int
    character_id: int
    is_active: bool = True


class Adventure(Record):
    id: int
    campaign_id: int
    title: str
    description: str | None = None
    location: str | None = None
    status: str = "in_progress"
    created_at: datetime = Field(default_factory=datetime.now)


class Npc(Record):
    id: int
    campaign_id: int
    name: str
    description: str | None = None
    race: str | None = None
    npc_class: str | None = Field(default=None, alias="class")
    stats: dict[str, Any] | None = None
    is_hostile: bool = False


class Quest(Record):
    id: int
    adventure_id: int
    title: str
    description: str | None = None
    status: str = "active"
    is_main_quest: bool = False
    reward: str | None = None


class GameLog(Record):
    id: int
    campaign_id: int
    content: str
    type: str = "narrative"  # narrative, system, player, companion, combat
    metadata: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=datetime.now)


class Friendship(Record):
    id: int
    user_id: int
    friend_id: int
    status: str = "pending"  # pending, accepted, rejected
    created_at: datetime = Field(default_factory=datetime.now)


class UserSession(Record):
    """Online status of a user (not a socket session)."""

    id: int
    user_id: int
    last_active: datetime = Field(default_factory=datetime.now)
    status: str = "online"
    looking_for_friends: bool = False
    looking_for_party: bool = False
    status_message: str | None = None


class ChatMessage(Record):
    id: int
    campaign_id: int
    user_id: int
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)


class CampaignInvitation(Record):
    id: int
    campaign_id: int
    inviter_id: int
    invitee_id: int
    status: str = "pending"
    role: str = "player"  # player, spectator
    created_at: datetime = Field(default_factory=datetime.now)


class PartyPlan(Record):
    id: int
    campaign_id: int
    title: str
    description: str | None = None
    created_by_id: int
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class PartyPlanItem(Record):
    id: int
    plan_id: int
    content: str
    type: str = "task"
    status: str = "pending"
    position: int = 0
    created_by_id: int
    assigned_to_id: int | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class PartyPlanComment(Record):
    id: int
    item_id: int
    user_id: int
    content: str
    created_at: datetime = Field(default_factory=datetime.now)


class PartyPlanWithItems(PartyPlan):
    items: list[PartyPlanItem] = Field(default_factory=list)


class CharacterRelationship(Record):
    """How one character regards another. Strength runs from -10 to 10."""

    id: int
    source_character_id: int
    target_character_id: int
    relationship_type: str
    relationship_strength: int = 0
    notes: str | None = None
    interaction_history: list[dict[str, Any]] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class RelationshipPrediction(Record):
    id: int
    relationship_id: int
    campaign_id: int
    predicted_event: str
    predicted_outcome: str
    trigger_condition: str
    probability: int = 50
    was_triggered: bool = False
    actual_outcome: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    triggered_at: datetime | None = None
