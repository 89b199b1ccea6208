"""Real-time campaign rooms: socket registry, message schemas and relay."""

from .messages import (
    ChatMessageIn,
    ClientMessage,
    InvalidMessage,
    JoinMessage,
    PlanningMessage,
    parse_client_message,
)
from .registry import SessionRegistry
from .relay import CampaignRelay

__all__ = [
    "CampaignRelay",
    "ChatMessageIn",
    "ClientMessage",
    "InvalidMessage",
    "JoinMessage",
    "PlanningMessage",
    "SessionRegistry",
    "parse_client_message",
]
