"""SQLite storage for chats, feeds and subscriptions."""

import os
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from .errors import DbError
from .logging_config import create_execution_logger
from .models import Chat, Feed, NewChat, Subscription

TARGET_SCHEMA_VERSION = 1

SCHEMA_BASE = """
CREATE TABLE IF NOT EXISTS schema_version (
  version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS chats (
  id INTEGER PRIMARY KEY,
  kind TEXT NOT NULL,
  username TEXT,
  first_name TEXT,
  last_name TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS feeds (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  url TEXT NOT NULL UNIQUE,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS subscriptions (
  chat_id INTEGER NOT NULL,
  feed_id INTEGER NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  PRIMARY KEY (chat_id, feed_id),
  FOREIGN KEY(chat_id) REFERENCES chats(id),
  FOREIGN KEY(feed_id) REFERENCES feeds(id)
);
"""


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


def apply_migrations(conn: sqlite3.Connection) -> None:
    """Record the schema version on a fresh database."""
    row = conn.execute("SELECT version FROM schema_version").fetchone()
    if row is None:
        conn.execute(
            "INSERT INTO schema_version(version) VALUES (?)", (TARGET_SCHEMA_VERSION,)
        )
        return

    # Future migrations go here:
    # if row[0] == 1:
    #     ... migrate to version 2 ...
    #     conn.execute("UPDATE schema_version SET version=2")


def init_db(db_path: str) -> None:
    """Create the database file and schema if they do not exist."""
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    conn = sqlite3.connect(db_path, isolation_level=None)
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        conn.executescript(SCHEMA_BASE)
        apply_migrations(conn)
    finally:
        conn.close()


class Database:
    """Handle to the subscription database.

    Every operation opens its own connection; pass the handle explicitly to
    whatever needs storage.
    """

    def __init__(self, db_path: str, execution_id: str | None = None):
        self.db_path = db_path
        self.logger = create_execution_logger("storage", execution_id)

    def connect(self) -> sqlite3.Connection:
        # Autocommit mode: transactions are opened explicitly in transaction()
        conn = sqlite3.connect(self.db_path, timeout=30, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a unit of work.

        The write lock is taken up front with BEGIN IMMEDIATE, so reads inside
        the block see a stable snapshot relative to other writers. Commits when
        the block finishes, rolls back when it raises.

        Raises:
            DbError: Wrapping any sqlite3 error raised in the block or on commit
        """
        try:
            conn = self.connect()
        except sqlite3.Error as e:
            self.logger.error(f"Cannot open database: {e}", error=str(e))
            raise DbError(e) from e

        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            self.logger.error(f"Transaction rolled back: {e}", error=str(e))
            raise DbError(e) from e
        except BaseException as e:
            conn.rollback()
            self.logger.debug(
                f"Transaction rolled back: {type(e).__name__}",
                error_kind=type(e).__name__,
            )
            raise
        finally:
            conn.close()


def _chat_from_row(row: sqlite3.Row) -> Chat:
    return Chat(
        id=row["id"],
        kind=row["kind"],
        username=row["username"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        created_at=_timestamp(row["created_at"]),
        updated_at=_timestamp(row["updated_at"]),
    )


def _feed_from_row(row: sqlite3.Row) -> Feed:
    return Feed(
        id=row["id"],
        url=row["url"],
        created_at=_timestamp(row["created_at"]),
        updated_at=_timestamp(row["updated_at"]),
    )


def _subscription_from_row(row: sqlite3.Row) -> Subscription:
    return Subscription(
        chat_id=row["chat_id"],
        feed_id=row["feed_id"],
        created_at=_timestamp(row["created_at"]),
        updated_at=_timestamp(row["updated_at"]),
    )


def create_or_get_chat(conn: sqlite3.Connection, new_chat: NewChat) -> Chat:
    """Insert the chat unless its external id is already stored."""
    now = _now()
    conn.execute(
        "INSERT OR IGNORE INTO chats"
        "(id, kind, username, first_name, last_name, created_at, updated_at) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        (
            new_chat.id,
            new_chat.kind,
            new_chat.username,
            new_chat.first_name,
            new_chat.last_name,
            now,
            now,
        ),
    )
    return find_chat(conn, new_chat.id)


def find_chat(conn: sqlite3.Connection, chat_id: int) -> Chat | None:
    row = conn.execute("SELECT * FROM chats WHERE id = ?", (chat_id,)).fetchone()
    return _chat_from_row(row) if row else None


def create_or_get_feed(conn: sqlite3.Connection, url: str) -> Feed:
    """Insert the feed unless the URL is already stored."""
    now = _now()
    conn.execute(
        "INSERT OR IGNORE INTO feeds(url, created_at, updated_at) VALUES (?, ?, ?)",
        (url, now, now),
    )
    row = conn.execute("SELECT * FROM feeds WHERE url = ?", (url,)).fetchone()
    return _feed_from_row(row)


def find_feed(conn: sqlite3.Connection, feed_id: int) -> Feed | None:
    row = conn.execute("SELECT * FROM feeds WHERE id = ?", (feed_id,)).fetchone()
    return _feed_from_row(row) if row else None


def create_subscription(
    conn: sqlite3.Connection, chat_id: int, feed_id: int
) -> Subscription:
    now = _now()
    conn.execute(
        "INSERT INTO subscriptions(chat_id, feed_id, created_at, updated_at) "
        "VALUES (?, ?, ?, ?)",
        (chat_id, feed_id, now, now),
    )
    return Subscription(
        chat_id=chat_id,
        feed_id=feed_id,
        created_at=_timestamp(now),
        updated_at=_timestamp(now),
    )


def find_subscription(
    conn: sqlite3.Connection, chat_id: int, feed_id: int
) -> Subscription | None:
    row = conn.execute(
        "SELECT * FROM subscriptions WHERE chat_id = ? AND feed_id = ?",
        (chat_id, feed_id),
    ).fetchone()
    return _subscription_from_row(row) if row else None


def count_subscriptions(conn: sqlite3.Connection, chat_id: int) -> int:
    row = conn.execute(
        "SELECT COUNT(*) FROM subscriptions WHERE chat_id = ?", (chat_id,)
    ).fetchone()
    return row[0]
