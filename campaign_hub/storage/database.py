"""SQLite database wrapper with versioned migrations.

One connection is shared by every store. Socket.IO runs handlers on worker
threads, so the connection is opened with ``check_same_thread=False`` and every
statement goes through a reentrant lock.
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator

from ..config import DATABASE_PATH

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a database operation fails."""

    pass


# Each entry upgrades the schema by one version. Applied versions are tracked
# in PRAGMA user_version, so never edit an entry once released; append instead.
MIGRATIONS: list[str] = [
    # 1: core entities
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        email TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE characters (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        race TEXT NOT NULL,
        character_class TEXT NOT NULL,
        level INTEGER NOT NULL DEFAULT 1,
        background TEXT,
        appearance TEXT,
        backstory TEXT,
        stats TEXT NOT NULL DEFAULT '{}',
        hp INTEGER NOT NULL DEFAULT 10,
        max_hp INTEGER NOT NULL DEFAULT 10,
        equipment TEXT,
        spells TEXT,
        abilities TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE campaigns (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        dm_id INTEGER NOT NULL REFERENCES users(id),
        status TEXT NOT NULL DEFAULT 'active',
        setting TEXT,
        is_ai_dm INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    );

    CREATE TABLE campaign_characters (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        campaign_id INTEGER NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        character_id INTEGER NOT NULL REFERENCES characters(id) ON DELETE CASCADE,
        is_active INTEGER NOT NULL DEFAULT 1
    );

    CREATE TABLE adventures (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        campaign_id INTEGER NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        description TEXT,
        location TEXT,
        status TEXT NOT NULL DEFAULT 'in_progress',
        created_at TEXT NOT NULL
    );

    CREATE TABLE npcs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        campaign_id INTEGER NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        description TEXT,
        race TEXT,
        npc_class TEXT,
        stats TEXT,
        is_hostile INTEGER NOT NULL DEFAULT 0
    );

    CREATE TABLE quests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        adventure_id INTEGER NOT NULL REFERENCES adventures(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        description TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        is_main_quest INTEGER NOT NULL DEFAULT 0,
        reward TEXT
    );

    CREATE TABLE game_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        campaign_id INTEGER NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        content TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'narrative',
        timestamp TEXT NOT NULL
    );

    CREATE INDEX idx_characters_user ON characters(user_id);
    CREATE INDEX idx_campaigns_dm ON campaigns(dm_id);
    CREATE INDEX idx_campaign_characters_campaign ON campaign_characters(campaign_id);
    CREATE INDEX idx_game_logs_campaign ON game_logs(campaign_id);
    """,
    # 2: social features and chat
    """
    CREATE TABLE friendships (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        friend_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at TEXT NOT NULL,
        UNIQUE (user_id, friend_id)
    );

    CREATE TABLE user_sessions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
        last_active TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'online',
        looking_for_friends INTEGER NOT NULL DEFAULT 0,
        looking_for_party INTEGER NOT NULL DEFAULT 0,
        status_message TEXT
    );

    CREATE TABLE chat_messages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        campaign_id INTEGER NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL,
        content TEXT NOT NULL,
        timestamp TEXT NOT NULL
    );

    CREATE TABLE campaign_invitations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        campaign_id INTEGER NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        inviter_id INTEGER NOT NULL REFERENCES users(id),
        invitee_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        status TEXT NOT NULL DEFAULT 'pending',
        role TEXT NOT NULL DEFAULT 'player',
        created_at TEXT NOT NULL
    );

    CREATE INDEX idx_chat_messages_campaign ON chat_messages(campaign_id);
    CREATE INDEX idx_invitations_invitee ON campaign_invitations(invitee_id);
    """,
    # 3: party planning
    """
    CREATE TABLE party_plans (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        campaign_id INTEGER NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        description TEXT,
        created_by_id INTEGER NOT NULL REFERENCES users(id),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    CREATE TABLE party_plan_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plan_id INTEGER NOT NULL REFERENCES party_plans(id) ON DELETE CASCADE,
        content TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'task',
        status TEXT NOT NULL DEFAULT 'pending',
        position INTEGER NOT NULL DEFAULT 0,
        created_by_id INTEGER NOT NULL REFERENCES users(id),
        assigned_to_id INTEGER REFERENCES users(id),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    CREATE TABLE party_plan_comments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        item_id INTEGER NOT NULL REFERENCES party_plan_items(id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(id),
        content TEXT NOT NULL,
        created_at TEXT NOT NULL
    );

    CREATE INDEX idx_party_plans_campaign ON party_plans(campaign_id);
    CREATE INDEX idx_party_plan_items_plan ON party_plan_items(plan_id);
    CREATE INDEX idx_party_plan_comments_item ON party_plan_comments(item_id);
    """,
    # 4: character progression, bot companions, game log metadata
    """
    ALTER TABLE characters ADD COLUMN alignment TEXT;
    ALTER TABLE characters ADD COLUMN is_bot INTEGER NOT NULL DEFAULT 0;
    ALTER TABLE game_logs ADD COLUMN metadata TEXT;
    """,
    # 5: character relationships and predictions
    """
    CREATE TABLE character_relationships (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        source_character_id INTEGER NOT NULL REFERENCES characters(id) ON DELETE CASCADE,
        target_character_id INTEGER NOT NULL REFERENCES characters(id) ON DELETE CASCADE,
        relationship_type TEXT NOT NULL,
        relationship_strength INTEGER NOT NULL DEFAULT 0,
        notes TEXT,
        interaction_history TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (source_character_id, target_character_id)
    );

    CREATE TABLE relationship_predictions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        relationship_id INTEGER NOT NULL REFERENCES character_relationships(id) ON DELETE CASCADE,
        campaign_id INTEGER NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        predicted_event TEXT NOT NULL,
        predicted_outcome TEXT NOT NULL,
        trigger_condition TEXT NOT NULL,
        probability INTEGER NOT NULL DEFAULT 50,
        was_triggered INTEGER NOT NULL DEFAULT 0,
        actual_outcome TEXT,
        created_at TEXT NOT NULL,
        triggered_at TEXT
    );

    CREATE INDEX idx_relationships_target ON character_relationships(target_character_id);
    CREATE INDEX idx_predictions_campaign ON relationship_predictions(campaign_id);
    """,
]


def encode_json(value: Any) -> str | None:
    """Encode a JSON column value (None stays NULL)."""
    if value is None:
        return None
    return json.dumps(value)


def decode_json(value: str | None) -> Any:
    """Decode a JSON column value."""
    if value is None or value == "":
        return None
    return json.loads(value)


class Database:
    """Shared SQLite connection for the storage facade."""

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = Path(db_path) if db_path else DATABASE_PATH
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None
        self.migrate()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
        return self._conn

    @property
    def schema_version(self) -> int:
        with self._lock:
            return self._get_conn().execute("PRAGMA user_version").fetchone()[0]

    def migrate(self) -> int:
        """Apply pending migrations. Returns the resulting schema version."""
        with self._lock:
            conn = self._get_conn()
            current = conn.execute("PRAGMA user_version").fetchone()[0]
            for version, script in enumerate(MIGRATIONS[current:], start=current + 1):
                logger.info(f"Applying schema migration {version} to {self.db_path}")
                try:
                    conn.executescript(f"BEGIN;\n{script}\nPRAGMA user_version = {version};\nCOMMIT;")
                except sqlite3.Error as e:
                    conn.rollback()
                    raise StorageError(f"Migration {version} failed: {e}") from e
            return len(MIGRATIONS)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run several statements atomically."""
        with self._lock:
            conn = self._get_conn()
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StorageError(str(e)) from e
            except Exception:
                conn.rollback()
                raise

    def execute(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        """Execute a single write statement and commit."""
        with self.transaction() as conn:
            return conn.execute(sql, tuple(params))

    def fetch_one(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Row | None:
        with self._lock:
            try:
                return self._get_conn().execute(sql, tuple(params)).fetchone()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def fetch_all(self, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._get_conn().execute(sql, tuple(params)).fetchall()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def insert(self, table: str, values: dict[str, Any]) -> int:
        """Insert a row and return its id."""
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        cursor = self.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            values.values(),
        )
        return cursor.lastrowid

    def update(self, table: str, row_id: int, values: dict[str, Any]) -> bool:
        """Update columns on a row by id. Returns False if the row is missing."""
        if not values:
            return self.fetch_one(f"SELECT 1 FROM {table} WHERE id = ?", (row_id,)) is not None
        assignments = ", ".join(f"{column} = ?" for column in values)
        cursor = self.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?",
            [*values.values(), row_id],
        )
        return cursor.rowcount > 0

    def delete(self, table: str, row_id: int) -> bool:
        cursor = self.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
