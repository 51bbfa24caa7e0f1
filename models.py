"""
Data models for PageKeeper application.
"""
import re
from dataclasses import dataclass, field, fields
from typing import Optional, List, Dict, Any
from datetime import datetime

from constants import (
    BOOK_STATUSES,
    STATUS_COMPLETED,
    STATUS_WANT_TO_READ,
    UPDATABLE_BOOK_FIELDS,
)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _to_snake_case(key: str) -> str:
    return re.sub(r'([A-Z])', r'_\1', key).lower()


class _Unset:
    """Marker for a field that is not part of a partial update."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass
class Profile:
    """A registered user."""
    id: str
    email: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> 'Profile':
        """Create a Profile from a database row."""
        return cls(
            id=row['id'],
            email=row['email'],
            username=row['username'],
            avatar_url=row['avatar_url'],
            created_at=parse_timestamp(row['created_at']),
            updated_at=parse_timestamp(row['updated_at']),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'avatar_url': self.avatar_url,
            'created_at': format_timestamp(self.created_at),
            'updated_at': format_timestamp(self.updated_at),
        }


@dataclass
class UserSession:
    """Authenticated session handed to every service call."""
    user_id: str
    token: str
    email: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now()) >= self.expires_at


@dataclass
class Book:
    """A book tracked in a user's library."""
    user_id: str
    title: str
    author: str
    page_count: int
    id: Optional[str] = None
    cover_image: Optional[str] = None
    description: Optional[str] = None
    genre: Optional[str] = None
    current_page: int = 0
    progress_percentage: Optional[float] = None
    status: str = STATUS_WANT_TO_READ
    is_favorite: bool = False
    rating: Optional[int] = None
    started_reading: Optional[datetime] = None
    finished_reading: Optional[datetime] = None
    date_added: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    def __post_init__(self):
        """Validate book data after initialization."""
        if not self.title or not self.title.strip():
            raise ValueError("Title is required")
        if not self.author or not self.author.strip():
            raise ValueError("Author is required")
        if self.status not in BOOK_STATUSES:
            raise ValueError(f"Invalid status: {self.status}")

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @classmethod
    def from_row(cls, row) -> 'Book':
        """Create a Book from a database row."""
        progress = row['progress_percentage']
        return cls(
            id=row['id'],
            user_id=row['user_id'],
            title=row['title'],
            author=row['author'],
            cover_image=row['cover_image'],
            description=row['description'],
            genre=row['genre'],
            page_count=row['page_count'],
            current_page=row['current_page'] or 0,
            progress_percentage=float(progress) if progress is not None else None,
            status=row['status'],
            is_favorite=bool(row['is_favorite']),
            rating=row['rating'],
            started_reading=parse_timestamp(row['started_reading']),
            finished_reading=parse_timestamp(row['finished_reading']),
            date_added=parse_timestamp(row['date_added']),
            last_updated=parse_timestamp(row['last_updated']),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert book to dictionary for database storage."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'author': self.author,
            'cover_image': self.cover_image,
            'description': self.description,
            'genre': self.genre,
            'page_count': self.page_count,
            'current_page': self.current_page,
            'progress_percentage': self.progress_percentage,
            'status': self.status,
            'is_favorite': self.is_favorite,
            'rating': self.rating,
            'started_reading': format_timestamp(self.started_reading),
            'finished_reading': format_timestamp(self.finished_reading),
            'date_added': format_timestamp(self.date_added),
            'last_updated': format_timestamp(self.last_updated),
        }


@dataclass
class BookUpdate:
    """
    Field mask for a partial book update.

    Every updatable column is a slot that defaults to UNSET. Only slots that
    were explicitly given a value (including None, which clears a column)
    are written.
    """
    title: Any = UNSET
    author: Any = UNSET
    cover_image: Any = UNSET
    description: Any = UNSET
    genre: Any = UNSET
    page_count: Any = UNSET
    current_page: Any = UNSET
    progress_percentage: Any = UNSET
    status: Any = UNSET
    rating: Any = UNSET
    is_favorite: Any = UNSET
    started_reading: Any = UNSET
    finished_reading: Any = UNSET

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BookUpdate':
        """
        Build a field mask from a loose mapping.

        Keys may be snake_case or camelCase. Keys outside the allow-list are
        dropped.
        """
        values = {}
        for key, value in data.items():
            name = _to_snake_case(key)
            if name in UPDATABLE_BOOK_FIELDS:
                values[name] = value
        return cls(**values)

    def changes(self) -> Dict[str, Any]:
        """Return only the fields present in this update."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass
class ReadingStats:
    """Aggregate reading summary for one user."""
    user_id: Optional[str] = None
    id: Optional[str] = None
    books_read: int = 0
    total_pages: int = 0
    reading_time: int = 0
    current_streak: int = 0
    average_rating: float = 0.0
    last_updated: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> 'ReadingStats':
        """Create ReadingStats from a database row."""
        average = row['average_rating']
        return cls(
            id=row['id'],
            user_id=row['user_id'],
            books_read=row['books_read'] or 0,
            total_pages=row['total_pages'] or 0,
            reading_time=row['reading_time'] or 0,
            current_streak=row['current_streak'] or 0,
            average_rating=float(average) if average is not None else 0.0,
            last_updated=parse_timestamp(row['last_updated']),
        )


@dataclass
class ReadingChallenge:
    """A per-year book count goal."""
    user_id: str
    name: str
    target: int
    year: int
    id: Optional[str] = None
    current: int = 0
    percentage: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def remaining(self) -> int:
        return max(0, self.target - self.current)

    @property
    def is_complete(self) -> bool:
        return self.current >= self.target

    @classmethod
    def from_row(cls, row) -> 'ReadingChallenge':
        """Create a ReadingChallenge from a database row."""
        percentage = row['percentage']
        return cls(
            id=row['id'],
            user_id=row['user_id'],
            name=row['name'],
            target=row['target'],
            current=row['current'] or 0,
            percentage=float(percentage) if percentage is not None else 0.0,
            year=row['year'],
            created_at=parse_timestamp(row['created_at']),
            updated_at=parse_timestamp(row['updated_at']),
        )


@dataclass
class MonthlyStat:
    """Books and pages finished in one calendar month."""
    month: str
    book_count: int = 0
    page_sum: int = 0


@dataclass
class GenreCount:
    genre: str
    count: int = 0


@dataclass
class CatalogBook:
    """A search hit from the Open Library catalog."""
    key: str
    title: str
    author_names: List[str] = field(default_factory=list)
    cover_id: Optional[int] = None
    first_publish_year: Optional[int] = None
    subjects: List[str] = field(default_factory=list)
    page_count_median: Optional[int] = None

    @property
    def author(self) -> str:
        return self.author_names[0] if self.author_names else "Unknown Author"

    @property
    def primary_subject(self) -> Optional[str]:
        return self.subjects[0] if self.subjects else None

    @classmethod
    def from_api(cls, doc: Dict[str, Any]) -> 'CatalogBook':
        """Create a CatalogBook from an Open Library search document."""
        return cls(
            key=doc.get('key', ''),
            title=doc.get('title') or 'Untitled',
            author_names=list(doc.get('author_name') or []),
            cover_id=doc.get('cover_i'),
            first_publish_year=doc.get('first_publish_year'),
            subjects=list(doc.get('subject') or []),
            page_count_median=doc.get('number_of_pages_median'),
        )
