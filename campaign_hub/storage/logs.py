"""Game logs and campaign chat history."""

from datetime import datetime
from typing import Any

from .base import BaseStore
from .database import StorageError
from .schemas import ChatMessage, GameLog


class GameLogStore(BaseStore[GameLog]):
    table = "game_logs"
    model = GameLog
    json_columns = frozenset({"metadata"})

    def create(
        self,
        campaign_id: int,
        content: str,
        log_type: str = "narrative",
        metadata: dict[str, Any] | None = None,
    ) -> GameLog:
        return self._create(
            {
                "campaign_id": campaign_id,
                "content": content,
                "type": log_type,
                "metadata": metadata,
                "timestamp": datetime.now(),
            }
        )

    def recent(self, campaign_id: int, limit: int = 50) -> list[GameLog]:
        """Most recent entries first."""
        rows = self.db.fetch_all(
            "SELECT * FROM game_logs WHERE campaign_id = ? ORDER BY timestamp DESC, id DESC LIMIT ?",
            (campaign_id, limit),
        )
        return [self._from_row(row) for row in rows]


class ChatStore(BaseStore[ChatMessage]):
    """Campaign chat messages. Messages are immutable once written."""

    table = "chat_messages"
    model = ChatMessage

    def create(self, campaign_id: int, user_id: int, content: str) -> ChatMessage:
        return self._create(
            {
                "campaign_id": campaign_id,
                "user_id": user_id,
                "content": content,
                "timestamp": datetime.now(),
            }
        )

    def history(self, campaign_id: int, limit: int = 50) -> list[ChatMessage]:
        """The latest ``limit`` messages in chronological order."""
        rows = self.db.fetch_all(
            """
            SELECT * FROM (
                SELECT * FROM chat_messages WHERE campaign_id = ?
                ORDER BY id DESC LIMIT ?
            ) ORDER BY id
            """,
            (campaign_id, limit),
        )
        return [self._from_row(row) for row in rows]

    def update(self, row_id: int, updates: dict[str, Any]) -> ChatMessage | None:
        raise StorageError("Chat messages are immutable")
