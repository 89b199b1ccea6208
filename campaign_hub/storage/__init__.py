"""Storage facade for users, campaigns, chat and party planning."""

from .database import Database, StorageError
from .facade import Storage
from .schemas import (
    Adventure,
    Campaign,
    CampaignCharacter,
    CampaignInvitation,
    Character,
    CharacterRelationship,
    ChatMessage,
    Friendship,
    GameLog,
    Npc,
    PartyPlan,
    PartyPlanComment,
    PartyPlanItem,
    PartyPlanWithItems,
    Quest,
    Record,
    RelationshipPrediction,
    User,
    UserSession,
)

__all__ = [
    "Database",
    "Storage",
    "StorageError",
    "Record",
    "User",
    "UserSession",
    "Friendship",
    "Character",
    "Campaign",
    "CampaignCharacter",
    "CampaignInvitation",
    "Adventure",
    "Npc",
    "Quest",
    "GameLog",
    "ChatMessage",
    "PartyPlan",
    "PartyPlanItem",
    "PartyPlanComment",
    "PartyPlanWithItems",
    "CharacterRelationship",
    "RelationshipPrediction",
]
