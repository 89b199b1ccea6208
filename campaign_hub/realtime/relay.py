"""Relays validated client messages to every socket in the sender's campaign."""

import logging
import threading
import weakref
from typing import Any, Callable

from ..planning import PlanningError, PlanningService
from ..storage import ChatMessage, Storage, StorageError
from .messages import (
    ChatMessageIn,
    InvalidMessage,
    JoinMessage,
    PlanningMessage,
    error_event,
    parse_client_message,
    timestamp,
)
from .registry import SessionRegistry

logger = logging.getLogger(__name__)

# send(sid, payload): deliver one event to one socket
SendFn = Callable[[str, dict[str, Any]], None]


class CampaignRelay:
    """Routes socket messages within campaign rooms.

    Chat and planning messages are persisted before they are broadcast, and
    both happen under a per-campaign lock so every socket observes one
    campaign's updates in the order they were applied. Delivery is best
    effort: a failed send is logged and the remaining sockets still receive
    the event.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        planning: PlanningService,
        storage: Storage,
        send: SendFn,
    ):
        self.registry = registry
        self.planning = planning
        self.storage = storage
        self.send = send
        # entries vanish once no handler holds the lock
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _campaign_lock(self, campaign_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(campaign_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[campaign_id] = lock
            return lock

    def handle(self, sid: str, raw: Any) -> None:
        """Entry point for one ``message`` event from a socket."""
        try:
            message = parse_client_message(raw)
        except InvalidMessage as e:
            logger.warning(f"Rejected message from {sid}: {e}")
            self._reply_error(sid, str(e))
            return

        if isinstance(message, JoinMessage):
            self.handle_join(sid, message)
            return

        campaign_id = self.registry.campaign_of(sid)
        if campaign_id is None:
            logger.warning(f"Dropped {message.type} from {sid}: socket has not joined a campaign")
            self._reply_error(sid, "Join a campaign before sending messages")
            return

        if isinstance(message, ChatMessageIn):
            self.handle_chat(sid, campaign_id, message)
        else:
            self.handle_planning(sid, campaign_id, message)

    def handle_join(self, sid: str, message: JoinMessage) -> None:
        self.registry.join(message.campaign_id, sid)
        self._deliver(
            sid,
            {"type": "join_confirm", "campaignId": message.campaign_id, "timestamp": timestamp()},
        )

    def handle_chat(self, sid: str, campaign_id: int, message: ChatMessageIn) -> None:
        with self._campaign_lock(campaign_id):
            try:
                record = self.storage.chat.create(campaign_id, message.user_id, message.message)
            except StorageError as e:
                logger.error(f"Failed to save chat message in campaign {campaign_id}: {e}")
                self._reply_error(sid, "Failed to send message")
                return
            self._broadcast_chat_locked(record, message.username)

    def broadcast_chat(self, record: ChatMessage, username: str) -> None:
        """Broadcast a chat message that was already persisted elsewhere."""
        with self._campaign_lock(record.campaign_id):
            self._broadcast_chat_locked(record, username)

    def _broadcast_chat_locked(self, record: ChatMessage, username: str) -> None:
        self.broadcast(
            record.campaign_id,
            {
                "type": "chat",
                "message": record.content,
                "userId": record.user_id,
                "username": username,
                "campaignId": record.campaign_id,
                "messageId": record.id,
                "timestamp": record.timestamp.isoformat(),
            },
        )

    def handle_planning(self, sid: str, campaign_id: int, message: PlanningMessage) -> None:
        try:
            self.apply_planning(
                campaign_id, message.user_id, message.username, message.action, message.payload
            )
        except PlanningError as e:
            logger.warning(f"Planning {message.action} from {sid} failed: {e}")
            self._reply_error(sid, str(e))

    def apply_planning(
        self,
        campaign_id: int,
        user_id: int,
        username: str,
        action: str,
        payload: dict[str, Any],
    ):
        """Persist a planning action and announce it to the campaign.

        Used by the socket handler and by the HTTP party-plan routes. Nothing
        is broadcast when the action fails.

        Raises:
            PlanningError: If the action is rejected or cannot be persisted.
        """
        with self._campaign_lock(campaign_id):
            result = self.planning.apply(campaign_id, user_id, action, payload)
            self.broadcast(
                campaign_id,
                {
                    "type": "planning",
                    "action": result.action,
                    "campaignId": campaign_id,
                    "userId": user_id,
                    "username": username,
                    **result.to_payload(),
                    "timestamp": timestamp(),
                },
            )
        return result

    def broadcast(self, campaign_id: int, payload: dict[str, Any]) -> int:
        """Send a payload to every socket joined to a campaign. Returns the delivered count."""
        delivered = 0
        for sid in self.registry.members(campaign_id):
            if self._deliver(sid, payload):
                delivered += 1
        return delivered

    def disconnect(self, sid: str) -> None:
        self.registry.leave(sid)

    def _deliver(self, sid: str, payload: dict[str, Any]) -> bool:
        try:
            self.send(sid, payload)
            return True
        except Exception as e:
            logger.warning(f"Dropped {payload.get('type')} event for socket {sid}: {e}")
            return False

    def _reply_error(self, sid: str, message: str) -> None:
        self._deliver(sid, error_event(message))
