"""
SQLite Database Repository - Vote, Review and Username Persistence
===================================================================

Stores the three ledgers in one SQLite file. The composite primary keys
turn the legacy spreadsheet scan into a keyed lookup without changing
upsert/delete behaviour; rows are listed in insertion (rowid) order.
"""

import sqlite3
import logging
from typing import List, Optional
from contextlib import contextmanager

from ...domain.errors import StorageError
from ...domain.models import Review, ReviewScope, Vote, VoteType
from ...domain.stores import ReviewStore, Storage, UsernameStore, VoteStore

logger = logging.getLogger(__name__)

DATABASE_FILE = "thehub.db"
USERNAME_KEY_PREFIX = "username_"


class Database:
    """
    SQLite database for TheHub.

    Usage:
        db = Database()
        db.init()

        with db.connection() as conn:
            conn.execute("SELECT COUNT(*) FROM votes").fetchone()
    """

    def __init__(self, db_path: str = DATABASE_FILE):
        self.db_path = db_path
        self._initialized = False

    @contextmanager
    def connection(self):
        """Get database connection with context manager."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Database error: {e}") from e
        finally:
            conn.close()

    def init(self):
        """Initialize database tables."""
        if self._initialized:
            return

        with self.connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS votes (
                    subject_id TEXT NOT NULL,
                    voter_id TEXT NOT NULL,
                    username TEXT DEFAULT '',
                    vote_type TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    PRIMARY KEY (subject_id, voter_id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS reviews (
                    scope TEXT NOT NULL,
                    subject_id TEXT NOT NULL,
                    voter_id TEXT NOT NULL,
                    username TEXT DEFAULT '',
                    rating INTEGER NOT NULL,
                    review_text TEXT DEFAULT '',
                    timestamp TEXT NOT NULL,
                    PRIMARY KEY (scope, subject_id, voter_id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

        self._initialized = True
        logger.info(f"Database initialized: {self.db_path}")


class SqliteVoteStore(VoteStore):

    def __init__(self, db: Database):
        self._db = db

    def init(self) -> None:
        self._db.init()

    def get(self, subject_id: str, voter_id: str) -> Optional[Vote]:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM votes WHERE subject_id = ? AND voter_id = ?",
                (subject_id, voter_id)
            ).fetchone()
            return self._row_to_vote(row) if row else None

    def upsert(self, vote: Vote) -> bool:
        with self._db.connection() as conn:
            cursor = conn.execute(
                """UPDATE votes SET vote_type = ?, timestamp = ?, username = ?
                   WHERE subject_id = ? AND voter_id = ?""",
                (vote.vote_type.value, vote.timestamp, vote.username, vote.subject_id, vote.voter_id)
            )
            if cursor.rowcount > 0:
                return False
            conn.execute(
                """INSERT INTO votes (subject_id, voter_id, username, vote_type, timestamp)
                   VALUES (?, ?, ?, ?, ?)""",
                (vote.subject_id, vote.voter_id, vote.username, vote.vote_type.value, vote.timestamp)
            )
            return True

    def delete(self, subject_id: str, voter_id: str) -> bool:
        with self._db.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM votes WHERE subject_id = ? AND voter_id = ?",
                (subject_id, voter_id)
            )
            return cursor.rowcount > 0

    def list_by_subject(self, subject_id: str) -> List[Vote]:
        with self._db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM votes WHERE subject_id = ? ORDER BY rowid", (subject_id,)
            ).fetchall()
            return [self._row_to_vote(row) for row in rows]

    def _row_to_vote(self, row: sqlite3.Row) -> Vote:
        """Convert database row to Vote object."""
        return Vote(
            subject_id=row["subject_id"],
            voter_id=row["voter_id"],
            vote_type=VoteType(row["vote_type"]),
            timestamp=row["timestamp"],
            username=row["username"] or "",
        )


class SqliteReviewStore(ReviewStore):

    def __init__(self, db: Database):
        self._db = db

    def init(self) -> None:
        self._db.init()

    def get(self, scope: ReviewScope, subject_id: str, voter_id: str) -> Optional[Review]:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM reviews WHERE scope = ? AND subject_id = ? AND voter_id = ?",
                (scope.value, subject_id, voter_id)
            ).fetchone()
            return self._row_to_review(row) if row else None

    def upsert(self, review: Review) -> bool:
        with self._db.connection() as conn:
            cursor = conn.execute(
                """UPDATE reviews SET rating = ?, review_text = ?, timestamp = ?, username = ?
                   WHERE scope = ? AND subject_id = ? AND voter_id = ?""",
                (review.rating, review.text, review.timestamp, review.username,
                 review.scope.value, review.subject_id, review.voter_id)
            )
            if cursor.rowcount > 0:
                return False
            conn.execute(
                """INSERT INTO reviews (scope, subject_id, voter_id, username, rating, review_text, timestamp)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (review.scope.value, review.subject_id, review.voter_id, review.username,
                 review.rating, review.text, review.timestamp)
            )
            return True

    def list_by_subject(self, scope: ReviewScope, subject_id: str) -> List[Review]:
        with self._db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM reviews WHERE scope = ? AND subject_id = ? ORDER BY rowid",
                (scope.value, subject_id)
            ).fetchall()
            return [self._row_to_review(row) for row in rows]

    def _row_to_review(self, row: sqlite3.Row) -> Review:
        """Convert database row to Review object."""
        return Review(
            scope=ReviewScope(row["scope"]),
            subject_id=row["subject_id"],
            voter_id=row["voter_id"],
            rating=int(row["rating"]),
            text=row["review_text"] or "",
            timestamp=row["timestamp"],
            username=row["username"] or "",
        )


class SqliteUsernameStore(UsernameStore):
    """Usernames kept as 'username_<name>' = 'true' rows of the meta table."""

    def __init__(self, db: Database):
        self._db = db

    def init(self) -> None:
        self._db.init()

    def exists(self, username: str) -> bool:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT value FROM meta WHERE key = ?", (USERNAME_KEY_PREFIX + username,)
            ).fetchone()
            return row is not None and row["value"] == "true"

    def add(self, username: str) -> None:
        with self._db.connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO meta (key, value) VALUES (?, 'true')",
                (USERNAME_KEY_PREFIX + username,)
            )


class SqliteStorage(Storage):
    """All three stores in one SQLite file."""

    name = "sqlite"

    def __init__(self, db_path: str = DATABASE_FILE):
        self.db = Database(db_path)
        super().__init__(
            SqliteVoteStore(self.db),
            SqliteReviewStore(self.db),
            SqliteUsernameStore(self.db),
        )
