"""Request bodies accepted by the HTTP API.

Bodies use camelCase keys like the rest of the API. Validation failures raise
pydantic's ``ValidationError``, which the app turns into a 400 response.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def provided(self) -> dict[str, Any]:
        """Snake_case dict of the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


# -- auth -----------------------------------------------------------------


class Credentials(Payload):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class Registration(Credentials):
    email: str | None = None


# -- characters -----------------------------------------------------------


class CharacterCreate(Payload):
    name: str = Field(min_length=1)
    race: str = Field(min_length=1)
    character_class: str = Field(alias="class", min_length=1)
    level: int = Field(default=1, ge=1, le=20)
    background: str | None = None
    appearance: str | None = None
    backstory: str | None = None
    alignment: str | None = None
    stats: dict[str, Any] | None = None
    hp: int | None = None
    max_hp: int | None = None
    equipment: dict[str, Any] | None = None
    spells: list[Any] | None = None
    abilities: list[Any] | None = None


class CharacterUpdate(Payload):
    name: str | None = None
    race: str | None = None
    character_class: str | None = Field(default=None, alias="class")
    level: int | None = Field(default=None, ge=1, le=20)
    background: str | None = None
    appearance: str | None = None
    backstory: str | None = None
    alignment: str | None = None
    stats: dict[str, Any] | None = None
    hp: int | None = None
    max_hp: int | None = None
    equipment: dict[str, Any] | None = None
    spells: list[Any] | None = None
    abilities: list[Any] | None = None


class CharacterGenerate(Payload):
    race: str | None = None
    character_class: str | None = Field(default=None, alias="class")
    level: int = Field(default=1, ge=1, le=20)
    alignment: str | None = None


# -- campaigns ------------------------------------------------------------


class CampaignCreate(Payload):
    name: str = Field(min_length=1)
    description: str | None = None
    setting: str | None = None
    is_ai_dm: bool = False
    status: str = "active"


class CampaignUpdate(Payload):
    name: str | None = None
    description: str | None = None
    setting: str | None = None
    is_ai_dm: bool | None = None
    status: str | None = None


class CampaignCharacterAdd(Payload):
    character_id: int


class AdventureCreate(Payload):
    title: str = Field(min_length=1)
    description: str | None = None
    location: str | None = None
    status: str = "in_progress"


class NpcCreate(Payload):
    name: str = Field(min_length=1)
    description: str | None = None
    race: str | None = None
    npc_class: str | None = Field(default=None, alias="class")
    stats: dict[str, Any] | None = None
    is_hostile: bool = False


class QuestCreate(Payload):
    title: str = Field(min_length=1)
    description: str | None = None
    status: str = "active"
    is_main_quest: bool = False
    reward: str | None = None


class QuestUpdate(Payload):
    title: str | None = None
    description: str | None = None
    status: str | None = None
    is_main_quest: bool | None = None
    reward: str | None = None


class GameLogCreate(Payload):
    content: str = Field(min_length=1)
    type: str = "narrative"
    metadata: dict[str, Any] | None = None


class ChatPost(Payload):
    content: str = Field(min_length=1)


# -- social ---------------------------------------------------------------


class FriendRequest(Payload):
    friend_id: int


class StatusResponse(Payload):
    status: Literal["accepted", "rejected"]


class OnlineStatus(Payload):
    status: Literal["online", "away", "busy", "offline"] = "online"


class SocialStatus(Payload):
    looking_for_friends: bool | None = None
    looking_for_party: bool | None = None
    status_message: str | None = None


class InvitationCreate(Payload):
    invitee_id: int
    role: Literal["player", "spectator"] = "player"


# -- generation -----------------------------------------------------------


class CampaignGenerate(Payload):
    genre: str | None = None
    theme: str | None = None
    tone: str | None = None


class AdventureGenerate(Payload):
    theme: str = "fantasy"
    setting: str = "medieval"
    difficulty: str = "medium"
    party_level: int = Field(default=1, ge=1, le=20)
    party_size: int = Field(default=4, ge=1)
    include_elements: list[str] = Field(default_factory=list)


class NpcGenerate(Payload):
    race: str | None = None
    role: str | None = None
    alignment: str | None = None
    is_hostile: bool = False


class ItemGenerate(Payload):
    item_type: str | None = None
    rarity: str = "common"
    category: str | None = None
    character_level: int = Field(default=1, ge=1, le=20)
    context: str = ""
    enemy_type: str = ""


class NarrationRequest(Payload):
    context: str = Field(min_length=1)
    player_action: str = Field(min_length=1)
    is_auto_advance: bool = False


class DialogueRequest(Payload):
    npc_info: str = Field(min_length=1)
    context: str = Field(min_length=1)
    player_prompt: str = ""


# -- bot companions -------------------------------------------------------


class CompanionCreate(Payload):
    name: str | None = None
    race: str | None = None
    character_class: str | None = Field(default=None, alias="class")
    campaign_id: int | None = None


class CompanionQuery(Payload):
    query: str = Field(min_length=1)
    companion_id: int
    campaign_id: int | None = None


# -- backstories ----------------------------------------------------------


class BackstoryTreeRequest(Payload):
    race: str = "human"
    character_class: str = Field(default="fighter", alias="class")
    alignment: str = "neutral"
    theme: str = "classic fantasy"


class NarrativeStep(Payload):
    node_text: str = ""
    choice_text: str | None = None


class AlignmentTendencies(Payload):
    law_chaos: int = 0
    good_evil: int = 0


class BackstoryFinalize(Payload):
    race: str = "human"
    character_class: str = Field(default="fighter", alias="class")
    narrative_path: list[NarrativeStep] = Field(min_length=1)
    personality_traits: dict[str, int] = Field(default_factory=dict)
    background_elements: list[str] = Field(default_factory=list)
    alignment_tendencies: AlignmentTendencies = Field(default_factory=AlignmentTendencies)


# -- relationships --------------------------------------------------------


class Interaction(Payload):
    date: str | None = None
    description: str = Field(min_length=1)
    impact: int = Field(default=0, ge=-10, le=10)
    context: str = ""


class RelationshipCreate(Payload):
    source_character_id: int
    target_character_id: int
    relationship_type: str = Field(min_length=1)
    relationship_strength: int = Field(default=0, ge=-10, le=10)
    notes: str | None = None
    interaction_history: list[Interaction] = Field(default_factory=list)


class RelationshipAnalyze(Payload):
    campaign_id: int | None = None


class PredictionCreate(Payload):
    relationship_id: int
    predicted_event: str = Field(min_length=1)
    predicted_outcome: str = Field(min_length=1)
    trigger_condition: str = Field(min_length=1)
    probability: int = Field(default=50, ge=0, le=100)


class PredictionTrigger(Payload):
    actual_outcome: str | None = None
