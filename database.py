"""
Database operations for PageKeeper.

Holds profiles, sessions, books, reading_stats and reading_challenges in a
single sqlite database. Every row belongs to one profile and is removed with it.
"""
import sqlite3
import uuid
from pathlib import Path
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime
from contextlib import contextmanager

import config
from constants import UPDATABLE_BOOK_FIELDS
from models import (
    Book,
    Profile,
    ReadingChallenge,
    ReadingStats,
    UserSession,
    format_timestamp,
    parse_timestamp,
)
from logger import get_logger

logger = get_logger(__name__)

PROFILE_FIELDS = ['username', 'avatar_url']
CHALLENGE_FIELDS = ['name', 'target', 'current', 'percentage']


class DatabaseError(Exception):
    """Raised when the storage layer fails."""
    pass


class NotFoundError(Exception):
    """Raised when a requested record does not exist."""
    pass


def new_id() -> str:
    return str(uuid.uuid4())


def _to_db_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


class Database:
    """Manages database operations for user libraries."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection."""
        if db_path is None:
            db_path = config.DB_PATH

        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.db_path = db_path
        logger.info(f"Database initialized at: {db_path}")
        self._init_schema()

    @contextmanager
    def get_connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self):
        """Initialize database schema with versioning."""
        try:
            with self.get_connection() as conn:
                c = conn.cursor()

                c.execute('''
                    CREATE TABLE IF NOT EXISTS schema_version (
                        version INTEGER PRIMARY KEY,
                        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                ''')

                current_version = c.execute(
                    'SELECT MAX(version) FROM schema_version'
                ).fetchone()[0] or 0

                schema_updates = {
                    1: '''
                        CREATE TABLE IF NOT EXISTS profiles (
                            id TEXT PRIMARY KEY,
                            email TEXT UNIQUE NOT NULL,
                            password_hash TEXT NOT NULL,
                            username TEXT,
                            avatar_url TEXT,
                            created_at TIMESTAMP,
                            updated_at TIMESTAMP
                        );

                        CREATE TABLE IF NOT EXISTS books (
                            id TEXT PRIMARY KEY,
                            user_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
                            title TEXT NOT NULL,
                            author TEXT NOT NULL,
                            cover_image TEXT,
                            description TEXT,
                            genre TEXT,
                            page_count INTEGER NOT NULL CHECK (page_count > 0),
                            current_page INTEGER DEFAULT 0,
                            progress_percentage REAL,
                            status TEXT DEFAULT 'want-to-read',
                            rating INTEGER,
                            is_favorite INTEGER DEFAULT 0,
                            started_reading TIMESTAMP,
                            finished_reading TIMESTAMP,
                            date_added TIMESTAMP,
                            last_updated TIMESTAMP
                        );

                        CREATE TABLE IF NOT EXISTS reading_stats (
                            id TEXT PRIMARY KEY,
                            user_id TEXT NOT NULL UNIQUE REFERENCES profiles(id) ON DELETE CASCADE,
                            books_read INTEGER DEFAULT 0,
                            total_pages INTEGER DEFAULT 0,
                            reading_time INTEGER DEFAULT 0,
                            current_streak INTEGER DEFAULT 0,
                            average_rating REAL,
                            last_updated TIMESTAMP
                        );

                        CREATE TABLE IF NOT EXISTS reading_challenges (
                            id TEXT PRIMARY KEY,
                            user_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
                            name TEXT NOT NULL,
                            target INTEGER NOT NULL CHECK (target > 0),
                            current INTEGER DEFAULT 0,
                            percentage REAL,
                            year INTEGER NOT NULL,
                            created_at TIMESTAMP,
                            updated_at TIMESTAMP,
                            UNIQUE (user_id, year)
                        );

                        CREATE INDEX IF NOT EXISTS idx_books_user_id ON books(user_id);
                        CREATE INDEX IF NOT EXISTS idx_reading_challenges_user_id ON reading_challenges(user_id);
                    ''',
                    2: '''
                        CREATE TABLE IF NOT EXISTS sessions (
                            token TEXT PRIMARY KEY,
                            user_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
                            created_at TIMESTAMP,
                            expires_at TIMESTAMP NOT NULL
                        );

                        CREATE INDEX IF NOT EXISTS idx_sessions_user_id ON sessions(user_id);
                        CREATE INDEX IF NOT EXISTS idx_books_user_status ON books(user_id, status);
                    '''
                }

                for version, update_sql in schema_updates.items():
                    if version > current_version:
                        try:
                            c.executescript(update_sql)
                            c.execute('INSERT INTO schema_version (version) VALUES (?)', (version,))
                            logger.info(f"Applied database schema update version {version}")
                        except sqlite3.OperationalError as e:
                            logger.warning(f"Schema update {version} may already be applied: {str(e)}")
                            continue

                logger.info("Database schema initialized successfully")

        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database schema: {str(e)}", exc_info=True)
            raise DatabaseError(f"Schema initialization failed: {str(e)}")

    # ==================== PROFILES ====================

    def create_profile(self, email: str, password_hash: str, username: Optional[str] = None) -> Profile:
        """Insert a new profile and return it."""
        try:
            with self.get_connection() as conn:
                profile_id = new_id()
                now = datetime.now().isoformat()
                conn.execute('''
                    INSERT INTO profiles (id, email, password_hash, username, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                ''', (profile_id, email, password_hash, username, now, now))

                row = conn.execute('SELECT * FROM profiles WHERE id = ?', (profile_id,)).fetchone()
                logger.info(f"Created profile {profile_id} for {email}")
                return Profile.from_row(row)

        except sqlite3.Error as e:
            logger.error(f"Failed to create profile for {email}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to create profile: {str(e)}")

    def get_profile(self, user_id: str) -> Optional[Profile]:
        """Get a profile by ID."""
        try:
            with self.get_connection() as conn:
                row = conn.execute('SELECT * FROM profiles WHERE id = ?', (user_id,)).fetchone()
                if row is None:
                    logger.debug(f"Profile {user_id} not found")
                    return None
                return Profile.from_row(row)

        except sqlite3.Error as e:
            logger.error(f"Failed to get profile {user_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to retrieve profile: {str(e)}")

    def get_credentials(self, email: str) -> Optional[Tuple[Profile, str]]:
        """Get a profile and its password hash by email."""
        try:
            with self.get_connection() as conn:
                row = conn.execute('SELECT * FROM profiles WHERE email = ?', (email,)).fetchone()
                if row is None:
                    return None
                return Profile.from_row(row), row['password_hash']

        except sqlite3.Error as e:
            logger.error(f"Failed to look up credentials: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to retrieve credentials: {str(e)}")

    def email_exists(self, email: str) -> bool:
        try:
            with self.get_connection() as conn:
                row = conn.execute('SELECT 1 FROM profiles WHERE email = ?', (email,)).fetchone()
                return row is not None

        except sqlite3.Error as e:
            logger.error(f"Failed to check email: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to check email: {str(e)}")

    def update_profile(self, user_id: str, changes: Dict[str, Any]) -> Optional[Profile]:
        """Update username and/or avatar_url. Returns None if the profile is missing."""
        changes = {k: v for k, v in changes.items() if k in PROFILE_FIELDS}
        try:
            with self.get_connection() as conn:
                set_clauses = ['updated_at = ?']
                values = [datetime.now().isoformat()]
                for column, value in changes.items():
                    set_clauses.append(f'{column} = ?')
                    values.append(value)
                values.append(user_id)

                cursor = conn.execute(
                    f"UPDATE profiles SET {', '.join(set_clauses)} WHERE id = ?",
                    values
                )
                if cursor.rowcount == 0:
                    logger.warning(f"Profile {user_id} not found for update")
                    return None

                row = conn.execute('SELECT * FROM profiles WHERE id = ?', (user_id,)).fetchone()
                logger.info(f"Updated profile {user_id}: {', '.join(changes) or 'timestamp only'}")
                return Profile.from_row(row)

        except sqlite3.Error as e:
            logger.error(f"Failed to update profile {user_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to update profile: {str(e)}")

    def delete_profile(self, user_id: str) -> bool:
        """Delete a profile and, through cascades, everything it owns."""
        try:
            with self.get_connection() as conn:
                cursor = conn.execute('DELETE FROM profiles WHERE id = ?', (user_id,))
                success = cursor.rowcount > 0
                if success:
                    logger.info(f"Deleted profile {user_id}")
                else:
                    logger.warning(f"Profile {user_id} not found for deletion")
                return success

        except sqlite3.Error as e:
            logger.error(f"Failed to delete profile {user_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to delete profile: {str(e)}")

    # ==================== SESSIONS ====================

    def create_session(self, user_id: str, token: str, expires_at: datetime) -> None:
        try:
            with self.get_connection() as conn:
                conn.execute('''
                    INSERT INTO sessions (token, user_id, created_at, expires_at)
                    VALUES (?, ?, ?, ?)
                ''', (token, user_id, datetime.now().isoformat(), expires_at.isoformat()))
                logger.debug(f"Created session for profile {user_id}")

        except sqlite3.Error as e:
            logger.error(f"Failed to create session: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to create session: {str(e)}")

    def get_session(self, token: str) -> Optional[UserSession]:
        """Look up a session token together with the owner's email."""
        try:
            with self.get_connection() as conn:
                row = conn.execute('''
                    SELECT s.token, s.user_id, s.expires_at, p.email
                    FROM sessions s
                    JOIN profiles p ON p.id = s.user_id
                    WHERE s.token = ?
                ''', (token,)).fetchone()
                if row is None:
                    return None
                return UserSession(
                    user_id=row['user_id'],
                    token=row['token'],
                    email=row['email'],
                    expires_at=parse_timestamp(row['expires_at']),
                )

        except sqlite3.Error as e:
            logger.error(f"Failed to get session: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to retrieve session: {str(e)}")

    def delete_session(self, token: str) -> bool:
        try:
            with self.get_connection() as conn:
                cursor = conn.execute('DELETE FROM sessions WHERE token = ?', (token,))
                return cursor.rowcount > 0

        except sqlite3.Error as e:
            logger.error(f"Failed to delete session: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to delete session: {str(e)}")

    def purge_expired_sessions(self, now: Optional[datetime] = None) -> int:
        """Remove expired sessions. Returns the number removed."""
        now = now or datetime.now()
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(
                    'DELETE FROM sessions WHERE expires_at <= ?', (now.isoformat(),)
                )
                if cursor.rowcount:
                    logger.info(f"Purged {cursor.rowcount} expired session(s)")
                return cursor.rowcount

        except sqlite3.Error as e:
            logger.error(f"Failed to purge sessions: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to purge sessions: {str(e)}")

    # ==================== BOOKS ====================

    def add_book(self, book: Book) -> Book:
        """Add a new book and return it with its generated id and timestamps."""
        try:
            with self.get_connection() as conn:
                now = datetime.now()
                book.id = new_id()
                book.date_added = now
                book.last_updated = now

                data = book.to_dict()
                columns = list(data.keys())
                placeholders = ', '.join('?' for _ in columns)
                conn.execute(
                    f"INSERT INTO books ({', '.join(columns)}) VALUES ({placeholders})",
                    [_to_db_value(data[c]) for c in columns]
                )

                logger.info(f"Added book: {book.title} by {book.author} (ID: {book.id})")
                return book

        except sqlite3.Error as e:
            logger.error(f"Failed to add book '{book.title}': {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to add book: {str(e)}")

    def get_book(self, book_id: str) -> Optional[Book]:
        """Get a book by ID."""
        try:
            with self.get_connection() as conn:
                row = conn.execute('SELECT * FROM books WHERE id = ?', (book_id,)).fetchone()

                if row is None:
                    logger.debug(f"Book ID {book_id} not found")
                    return None

                logger.debug(f"Retrieved book ID {book_id}")
                return Book.from_row(row)

        except sqlite3.Error as e:
            logger.error(f"Failed to get book ID {book_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to retrieve book: {str(e)}")

    def get_books(
        self,
        user_id: str,
        status: Optional[str] = None,
        favorites_only: bool = False
    ) -> List[Book]:
        """Get a user's books, most recently updated first."""
        try:
            with self.get_connection() as conn:
                query = 'SELECT * FROM books WHERE user_id = ?'
                params: List[Any] = [user_id]

                if status is not None:
                    query += ' AND status = ?'
                    params.append(status)

                if favorites_only:
                    query += ' AND is_favorite = 1'

                query += ' ORDER BY last_updated DESC, date_added DESC, rowid DESC'

                rows = conn.execute(query, params).fetchall()
                logger.debug(f"Retrieved {len(rows)} books for user {user_id}")
                return [Book.from_row(row) for row in rows]

        except sqlite3.Error as e:
            logger.error(f"Failed to get books for user {user_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to retrieve books: {str(e)}")

    def update_book(self, book_id: str, changes: Dict[str, Any]) -> Optional[Book]:
        """
        Write a partial update to a book.

        Only columns in UPDATABLE_BOOK_FIELDS are written; last_updated is
        always refreshed. Returns None when the book does not exist.
        """
        ignored = [k for k in changes if k not in UPDATABLE_BOOK_FIELDS]
        if ignored:
            logger.warning(f"Ignoring non-updatable book fields: {', '.join(ignored)}")

        try:
            with self.get_connection() as conn:
                set_clauses = ['last_updated = ?']
                values = [datetime.now().isoformat()]

                for column in UPDATABLE_BOOK_FIELDS:
                    if column in changes:
                        set_clauses.append(f'{column} = ?')
                        values.append(_to_db_value(changes[column]))

                values.append(book_id)
                cursor = conn.execute(
                    f"UPDATE books SET {', '.join(set_clauses)} WHERE id = ?",
                    values
                )

                if cursor.rowcount == 0:
                    logger.warning(f"Book ID {book_id} not found for update")
                    return None

                row = conn.execute('SELECT * FROM books WHERE id = ?', (book_id,)).fetchone()
                logger.info(f"Updated book ID {book_id}: {', '.join(sorted(changes)) or 'timestamp only'}")
                return Book.from_row(row)

        except sqlite3.Error as e:
            logger.error(f"Failed to update book ID {book_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to update book: {str(e)}")

    def delete_book(self, book_id: str) -> bool:
        """Delete a book from the database."""
        try:
            with self.get_connection() as conn:
                cursor = conn.execute('DELETE FROM books WHERE id = ?', (book_id,))

                success = cursor.rowcount > 0
                if success:
                    logger.info(f"Deleted book ID {book_id}")
                else:
                    logger.warning(f"Book ID {book_id} not found for deletion")

                return success

        except sqlite3.Error as e:
            logger.error(f"Failed to delete book ID {book_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to delete book: {str(e)}")

    def book_exists(self, user_id: str, title: str, author: str) -> bool:
        """Check for a book with exactly this title and author in a user's library."""
        try:
            with self.get_connection() as conn:
                row = conn.execute('''
                    SELECT 1 FROM books
                    WHERE user_id = ? AND title = ? AND author = ?
                    LIMIT 1
                ''', (user_id, title, author)).fetchone()
                return row is not None

        except sqlite3.Error as e:
            logger.error(f"Failed to check for book '{title}': {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to check book: {str(e)}")

    # ==================== READING STATS ====================

    def get_reading_stats(self, user_id: str) -> Optional[ReadingStats]:
        try:
            with self.get_connection() as conn:
                row = conn.execute(
                    'SELECT * FROM reading_stats WHERE user_id = ?', (user_id,)
                ).fetchone()
                return ReadingStats.from_row(row) if row else None

        except sqlite3.Error as e:
            logger.error(f"Failed to get reading stats for {user_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to retrieve reading stats: {str(e)}")

    def save_reading_stats(
        self,
        user_id: str,
        books_read: int,
        total_pages: int,
        average_rating: float
    ) -> ReadingStats:
        """
        Write the derived stats columns, creating the row on first use.

        reading_time and current_streak are left as they are.
        """
        try:
            with self.get_connection() as conn:
                now = datetime.now().isoformat()
                cursor = conn.execute('''
                    UPDATE reading_stats
                    SET books_read = ?, total_pages = ?, average_rating = ?, last_updated = ?
                    WHERE user_id = ?
                ''', (books_read, total_pages, average_rating, now, user_id))

                if cursor.rowcount == 0:
                    conn.execute('''
                        INSERT INTO reading_stats
                            (id, user_id, books_read, total_pages, reading_time,
                             current_streak, average_rating, last_updated)
                        VALUES (?, ?, ?, ?, 0, 0, ?, ?)
                    ''', (new_id(), user_id, books_read, total_pages, average_rating, now))
                    logger.info(f"Created reading stats for user {user_id}")

                row = conn.execute(
                    'SELECT * FROM reading_stats WHERE user_id = ?', (user_id,)
                ).fetchone()
                return ReadingStats.from_row(row)

        except sqlite3.Error as e:
            logger.error(f"Failed to save reading stats for {user_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to save reading stats: {str(e)}")

    def update_reading_activity(
        self,
        user_id: str,
        reading_time: Optional[int] = None,
        current_streak: Optional[int] = None
    ) -> Optional[ReadingStats]:
        """Write the externally supplied stats columns. Returns None if no stats row exists."""
        try:
            with self.get_connection() as conn:
                set_clauses = ['last_updated = ?']
                values: List[Any] = [datetime.now().isoformat()]
                if reading_time is not None:
                    set_clauses.append('reading_time = ?')
                    values.append(reading_time)
                if current_streak is not None:
                    set_clauses.append('current_streak = ?')
                    values.append(current_streak)
                values.append(user_id)

                cursor = conn.execute(
                    f"UPDATE reading_stats SET {', '.join(set_clauses)} WHERE user_id = ?",
                    values
                )
                if cursor.rowcount == 0:
                    return None

                row = conn.execute(
                    'SELECT * FROM reading_stats WHERE user_id = ?', (user_id,)
                ).fetchone()
                return ReadingStats.from_row(row)

        except sqlite3.Error as e:
            logger.error(f"Failed to update reading activity for {user_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to update reading activity: {str(e)}")

    # ==================== READING CHALLENGES ====================

    def get_challenge(self, user_id: str, year: int) -> Optional[ReadingChallenge]:
        try:
            with self.get_connection() as conn:
                row = conn.execute(
                    'SELECT * FROM reading_challenges WHERE user_id = ? AND year = ?',
                    (user_id, year)
                ).fetchone()
                return ReadingChallenge.from_row(row) if row else None

        except sqlite3.Error as e:
            logger.error(f"Failed to get {year} challenge for {user_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to retrieve challenge: {str(e)}")

    def get_user_challenges(self, user_id: str) -> List[ReadingChallenge]:
        """All of a user's challenges, newest year first."""
        try:
            with self.get_connection() as conn:
                rows = conn.execute(
                    'SELECT * FROM reading_challenges WHERE user_id = ? ORDER BY year DESC',
                    (user_id,)
                ).fetchall()
                return [ReadingChallenge.from_row(row) for row in rows]

        except sqlite3.Error as e:
            logger.error(f"Failed to get challenges for {user_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to retrieve challenges: {str(e)}")

    def add_challenge(self, challenge: ReadingChallenge) -> ReadingChallenge:
        try:
            with self.get_connection() as conn:
                now = datetime.now()
                challenge.id = new_id()
                challenge.created_at = now
                challenge.updated_at = now
                conn.execute('''
                    INSERT INTO reading_challenges
                        (id, user_id, name, target, current, percentage, year, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ''', (
                    challenge.id, challenge.user_id, challenge.name, challenge.target,
                    challenge.current, challenge.percentage, challenge.year,
                    format_timestamp(challenge.created_at), format_timestamp(challenge.updated_at)
                ))
                logger.info(
                    f"Created {challenge.year} challenge for user {challenge.user_id} "
                    f"(target {challenge.target})"
                )
                return challenge

        except sqlite3.Error as e:
            logger.error(f"Failed to create challenge: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to create challenge: {str(e)}")

    def update_challenge(self, challenge_id: str, changes: Dict[str, Any]) -> Optional[ReadingChallenge]:
        """Update challenge columns. Returns None when the challenge does not exist."""
        changes = {k: v for k, v in changes.items() if k in CHALLENGE_FIELDS}
        try:
            with self.get_connection() as conn:
                set_clauses = ['updated_at = ?']
                values: List[Any] = [datetime.now().isoformat()]
                for column, value in changes.items():
                    set_clauses.append(f'{column} = ?')
                    values.append(value)
                values.append(challenge_id)

                cursor = conn.execute(
                    f"UPDATE reading_challenges SET {', '.join(set_clauses)} WHERE id = ?",
                    values
                )
                if cursor.rowcount == 0:
                    logger.warning(f"Challenge {challenge_id} not found for update")
                    return None

                row = conn.execute(
                    'SELECT * FROM reading_challenges WHERE id = ?', (challenge_id,)
                ).fetchone()
                logger.debug(f"Updated challenge {challenge_id}: {', '.join(changes)}")
                return ReadingChallenge.from_row(row)

        except sqlite3.Error as e:
            logger.error(f"Failed to update challenge {challenge_id}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Failed to update challenge: {str(e)}")

    # ==================== MAINTENANCE ====================

    def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health check results
        """
        health = {
            'accessible': False,
            'size_mb': 0,
            'schema_version': 0,
            'row_counts': {},
            'issues': []
        }

        try:
            db_path = Path(self.db_path)
            if not db_path.exists():
                health['issues'].append("Database file does not exist")
                return health

            health['size_mb'] = round(db_path.stat().st_size / (1024 * 1024), 2)

            with self.get_connection() as conn:
                cursor = conn.cursor()

                try:
                    cursor.execute("SELECT MAX(version) FROM schema_version")
                    health['schema_version'] = cursor.fetchone()[0] or 0
                except sqlite3.OperationalError:
                    health['issues'].append("schema_version table missing")

                for table in ('profiles', 'books', 'reading_stats', 'reading_challenges', 'sessions'):
                    try:
                        cursor.execute(f"SELECT COUNT(*) FROM {table}")
                        health['row_counts'][table] = cursor.fetchone()[0]
                    except sqlite3.OperationalError:
                        health['issues'].append(f"{table} table missing or inaccessible")

                cursor.execute("PRAGMA integrity_check")
                integrity_result = cursor.fetchone()[0]
                if integrity_result != "ok":
                    health['issues'].append(f"Integrity check failed: {integrity_result}")

            health['accessible'] = True
            logger.info(f"Health check completed: {len(health['issues'])} issues found")

        except sqlite3.Error as e:
            health['issues'].append(f"Health check error: {str(e)}")
            logger.error(f"Health check failed: {str(e)}", exc_info=True)

        return health
