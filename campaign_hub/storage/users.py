"""User accounts, online status and friendships."""

from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from .base import BaseStore
from .schemas import Friendship, User, UserSession


class UserStore(BaseStore[User]):
    table = "users"
    model = User
    updatable = frozenset({"email"})

    def create(self, username: str, password: str, email: str | None = None) -> User:
        """Create a user. Raises ValueError if the username is taken."""
        if self.get_by_username(username):
            raise ValueError(f"Username '{username}' already exists")
        return self._create(
            {
                "username": username,
                "password_hash": generate_password_hash(password),
                "email": email,
                "created_at": datetime.now(),
            }
        )

    def get_by_username(self, username: str) -> User | None:
        row = self.db.fetch_one("SELECT * FROM users WHERE username = ?", (username,))
        return self._from_row(row)

    def authenticate(self, username: str, password: str) -> User | None:
        """Return the user if the password matches."""
        user = self.get_by_username(username)
        if user and check_password_hash(user.password_hash, password):
            return user
        return None

    def list(self) -> list[User]:
        return self._list(order="username")


class UserSessionStore(BaseStore[UserSession]):
    table = "user_sessions"
    model = UserSession
    updatable = frozenset(
        {"status", "looking_for_friends", "looking_for_party", "status_message", "last_active"}
    )

    def get_for_user(self, user_id: int) -> UserSession | None:
        row = self.db.fetch_one("SELECT * FROM user_sessions WHERE user_id = ?", (user_id,))
        return self._from_row(row)

    def upsert(self, user_id: int, status: str = "online") -> UserSession:
        """Create the status row for a user, or refresh its status and last_active."""
        existing = self.get_for_user(user_id)
        if existing:
            return self.update(existing.id, {"status": status, "last_active": datetime.now()})
        return self._create(
            {"user_id": user_id, "status": status, "last_active": datetime.now()}
        )

    def update_for_user(self, user_id: int, updates: dict) -> UserSession:
        """Update status fields for a user, creating the row if needed."""
        session = self.get_for_user(user_id) or self.upsert(user_id)
        return self.update(session.id, {**updates, "last_active": datetime.now()})

    def online(self) -> list[UserSession]:
        return self._list("status != 'offline'", order="last_active DESC")

    def looking_for_party(self) -> list[UserSession]:
        return self._list("looking_for_party = 1", order="last_active DESC")

    def looking_for_friends(self) -> list[UserSession]:
        return self._list("looking_for_friends = 1", order="last_active DESC")


class FriendshipStore(BaseStore[Friendship]):
    table = "friendships"
    model = Friendship
    updatable = frozenset({"status"})

    def get_pair(self, user_id: int, friend_id: int) -> Friendship | None:
        """Get the request sent by ``user_id`` to ``friend_id``."""
        row = self.db.fetch_one(
            "SELECT * FROM friendships WHERE user_id = ? AND friend_id = ?",
            (user_id, friend_id),
        )
        return self._from_row(row)

    def list_for_user(self, user_id: int) -> list[Friendship]:
        """Friendships sent or received by a user."""
        return self._list("user_id = ? OR friend_id = ?", (user_id, user_id), "created_at DESC")

    def create(self, user_id: int, friend_id: int) -> Friendship:
        return self._create(
            {
                "user_id": user_id,
                "friend_id": friend_id,
                "status": "pending",
                "created_at": datetime.now(),
            }
        )

    def set_status(self, user_id: int, friend_id: int, status: str) -> Friendship | None:
        friendship = self.get_pair(user_id, friend_id)
        if not friendship:
            return None
        return self.update(friendship.id, {"status": status})

    def delete_pair(self, user_id: int, friend_id: int) -> bool:
        cursor = self.db.execute(
            "DELETE FROM friendships WHERE user_id = ? AND friend_id = ?",
            (user_id, friend_id),
        )
        return cursor.rowcount > 0
