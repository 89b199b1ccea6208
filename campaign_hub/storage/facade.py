"""Storage facade aggregating the entity stores over one database."""

import logging
from pathlib import Path

from .campaigns import CampaignStore, InvitationStore
from .characters import CharacterStore
from .database import Database
from .logs import ChatStore, GameLogStore
from .party_plans import PartyPlanStore
from .relationships import PredictionStore, RelationshipStore
from .users import FriendshipStore, UserSessionStore, UserStore
from .world import AdventureStore, NpcStore, QuestStore

logger = logging.getLogger(__name__)


class Storage:
    """Entry point for all persistence.

    Every store shares the same ``Database`` so foreign keys and cascades hold
    across entity groups.
    """

    def __init__(self, db_path: Path | str | None = None):
        self.db = Database(db_path)
        self.users = UserStore(self.db)
        self.user_sessions = UserSessionStore(self.db)
        self.friendships = FriendshipStore(self.db)
        self.characters = CharacterStore(self.db)
        self.campaigns = CampaignStore(self.db)
        self.invitations = InvitationStore(self.db)
        self.adventures = AdventureStore(self.db)
        self.npcs = NpcStore(self.db)
        self.quests = QuestStore(self.db)
        self.game_logs = GameLogStore(self.db)
        self.chat = ChatStore(self.db)
        self.plans = PartyPlanStore(self.db)
        self.relationships = RelationshipStore(self.db)
        self.predictions = PredictionStore(self.db)
        logger.debug(f"Storage opened at {self.db.db_path}")

    def close(self) -> None:
        self.db.close()
