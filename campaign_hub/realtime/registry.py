"""Tracks which sockets are connected to which campaign."""

import logging
import threading

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps campaign id to the socket ids joined to it.

    A socket belongs to at most one campaign. A campaign entry exists only
    while it has at least one socket; the last leave removes it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        # dict preserves join order and gives set semantics for members
        self._rooms: dict[int, dict[str, None]] = {}
        self._campaign_by_sid: dict[str, int] = {}

    def join(self, campaign_id: int, sid: str) -> bool:
        """Register a socket under a campaign.

        Joining the same campaign again is a no-op. Joining another campaign
        moves the socket out of its previous one.

        Returns:
            True if the socket was newly added to the campaign.
        """
        with self._lock:
            current = self._campaign_by_sid.get(sid)
            if current == campaign_id:
                return False
            if current is not None:
                self._remove(current, sid)
                logger.info(f"Socket {sid} moved from campaign {current} to {campaign_id}")
            self._rooms.setdefault(campaign_id, {})[sid] = None
            self._campaign_by_sid[sid] = campaign_id
        logger.info(f"Socket {sid} joined campaign {campaign_id}")
        return True

    def leave(self, sid: str) -> int | None:
        """Remove a socket from its campaign. Returns the campaign it left, if any."""
        with self._lock:
            campaign_id = self._campaign_by_sid.pop(sid, None)
            if campaign_id is not None:
                self._remove(campaign_id, sid)
        if campaign_id is not None:
            logger.info(f"Socket {sid} left campaign {campaign_id}")
        return campaign_id

    def _remove(self, campaign_id: int, sid: str) -> None:
        room = self._rooms.get(campaign_id)
        if room is None:
            return
        room.pop(sid, None)
        if not room:
            del self._rooms[campaign_id]

    def members(self, campaign_id: int) -> list[str]:
        """Socket ids joined to a campaign, in join order."""
        with self._lock:
            return list(self._rooms.get(campaign_id, ()))

    def campaign_of(self, sid: str) -> int | None:
        with self._lock:
            return self._campaign_by_sid.get(sid)

    def campaigns(self) -> list[int]:
        with self._lock:
            return list(self._rooms)

    def connection_count(self) -> int:
        with self._lock:
            return len(self._campaign_by_sid)

    def clear(self) -> None:
        """Drop every registration."""
        with self._lock:
            self._rooms.clear()
            self._campaign_by_sid.clear()
