"""
Book service: the user's library operations.

Every call takes the caller's UserSession. Books owned by someone else are
treated exactly like books that do not exist.
"""
from typing import Optional, Dict, Any, List, Union
from datetime import datetime

from api_utils import get_cover_url
from constants import (
    STATUS_COMPLETED,
    STATUS_WANT_TO_READ,
    DEFAULT_CATALOG_PAGE_COUNT,
)
from database import Database, NotFoundError
from models import Book, BookUpdate, CatalogBook, UserSession, parse_timestamp
from validation import (
    ValidationError,
    validate_book_input,
    validate_book_changes,
    validate_current_page,
    validate_page_count,
    validate_status,
    sanitize_string,
    MAX_TITLE_LENGTH,
    MAX_AUTHOR_LENGTH,
)
from logger import get_logger

logger = get_logger(__name__)

MAX_TEXT_LIMITS = {
    'title': MAX_TITLE_LENGTH,
    'author': MAX_AUTHOR_LENGTH,
}


def progress_percentage(current_page: int, page_count: int) -> float:
    """Share of the book read, 0-100, rounded to one decimal."""
    if page_count <= 0:
        return 0.0
    return round(min(current_page, page_count) / page_count * 100, 1)


class BookService:
    """CRUD and reading-progress operations over a user's books."""

    def __init__(self, db: Database):
        self.db = db

    def _owned_book(self, session: UserSession, book_id: str) -> Book:
        book = self.db.get_book(book_id)
        if book is None or book.user_id != session.user_id:
            logger.warning(f"Book {book_id} not found for user {session.user_id}")
            raise NotFoundError(f"Book {book_id} not found")
        return book

    def list_books(self, session: UserSession) -> List[Book]:
        """All of the user's books, most recently updated first."""
        return self.db.get_books(session.user_id)

    def list_by_status(self, session: UserSession, status: str) -> List[Book]:
        valid, error = validate_status(status)
        if not valid:
            raise ValidationError(error)
        return self.db.get_books(session.user_id, status=status)

    def list_favorites(self, session: UserSession) -> List[Book]:
        return self.db.get_books(session.user_id, favorites_only=True)

    def get_book(self, session: UserSession, book_id: str) -> Book:
        """
        Get one of the user's books.

        Raises:
            NotFoundError: If the book does not exist or belongs to another user
        """
        return self._owned_book(session, book_id)

    def create_book(
        self,
        session: UserSession,
        title: str,
        author: str,
        page_count: int,
        current_page: int = 0,
        status: str = STATUS_WANT_TO_READ,
        is_favorite: bool = False,
        rating: Optional[int] = None,
        genre: Optional[str] = None,
        description: Optional[str] = None,
        cover_image: Optional[str] = None
    ) -> Book:
        """
        Add a book to the user's library.

        Raises:
            ValidationError: If any field is invalid
        """
        is_valid, errors = validate_book_input(
            title=title,
            author=author,
            page_count=page_count,
            current_page=current_page,
            status=status,
            rating=rating,
            genre=genre,
            description=description
        )
        if not is_valid:
            raise ValidationError("; ".join(errors))

        book = Book(
            user_id=session.user_id,
            title=sanitize_string(title, MAX_TITLE_LENGTH),
            author=sanitize_string(author, MAX_AUTHOR_LENGTH),
            page_count=page_count,
            current_page=current_page,
            progress_percentage=progress_percentage(current_page, page_count),
            status=status,
            is_favorite=bool(is_favorite),
            rating=rating,
            genre=genre.strip() if genre and genre.strip() else None,
            description=description,
            cover_image=cover_image,
        )
        return self.db.add_book(book)

    def update_book(
        self,
        session: UserSession,
        book_id: str,
        update: Union[BookUpdate, Dict[str, Any]]
    ) -> Book:
        """
        Apply a partial update.

        Args:
            session: Caller's session
            book_id: Book to update
            update: A BookUpdate, or a mapping that is turned into one
                (unknown keys are dropped)

        Raises:
            NotFoundError: If the book does not exist for this user
            ValidationError: If a present field is invalid
        """
        if not isinstance(update, BookUpdate):
            update = BookUpdate.from_dict(update)

        book = self._owned_book(session, book_id)
        changes = update.changes()

        is_valid, errors = validate_book_changes(changes, current_page_count=book.page_count)
        if not is_valid:
            raise ValidationError("; ".join(errors))

        for name in ('title', 'author'):
            if name in changes:
                changes[name] = sanitize_string(changes[name], MAX_TEXT_LIMITS[name])
        for name in ('started_reading', 'finished_reading'):
            if name in changes:
                changes[name] = parse_timestamp(changes[name])

        updated = self.db.update_book(book_id, changes)
        if updated is None:
            raise NotFoundError(f"Book {book_id} not found")
        return updated

    def delete_book(self, session: UserSession, book_id: str) -> None:
        self._owned_book(session, book_id)
        if not self.db.delete_book(book_id):
            raise NotFoundError(f"Book {book_id} not found")

    def book_exists(self, session: UserSession, title: str, author: str) -> bool:
        """Exact title and author match within the user's library."""
        return self.db.book_exists(session.user_id, title, author)

    def update_progress(self, session: UserSession, book_id: str, current_page: int, page_count: int) -> Book:
        """
        Record the page the reader is on.

        Sets started_reading the first time a page past zero is recorded, and
        marks the book completed (with finished_reading) once the last page is
        reached. Both can happen in the same call.
        """
        for valid, error in (validate_page_count(page_count), validate_current_page(current_page)):
            if not valid:
                raise ValidationError(error)

        book = self._owned_book(session, book_id)
        now = datetime.now()

        # the stored page count bounds current_page whatever the caller passed
        last_page = min(page_count, book.page_count)
        if current_page > last_page:
            logger.debug(f"Clamping page {current_page} to {last_page} for book {book_id}")
            current_page = last_page

        update = BookUpdate(
            current_page=current_page,
            progress_percentage=progress_percentage(current_page, book.page_count),
        )

        if book.started_reading is None and current_page > 0:
            update.started_reading = now

        if current_page >= last_page and book.status != STATUS_COMPLETED:
            update.status = STATUS_COMPLETED
            update.finished_reading = now
            logger.info(f"Book {book_id} reached its last page and is now completed")

        return self.update_book(session, book_id, update)

    def save_reading_edits(
        self,
        session: UserSession,
        book_id: str,
        current_page: int,
        status: str,
        rating: Optional[int]
    ) -> Book:
        """
        Apply an edit form: page, status and rating in one go.

        Progress is recorded first, so reaching the last page completes the
        book. status is only written when the reader picked something other
        than what the book had before the edit; moving to completed stamps
        finished_reading and moving away clears it.
        """
        book = self._owned_book(session, book_id)
        previous_status = book.status

        if current_page != book.current_page:
            book = self.update_progress(session, book_id, current_page, book.page_count)

        update = BookUpdate()
        if status != previous_status and status != book.status:
            valid, error = validate_status(status)
            if not valid:
                raise ValidationError(error)
            update.status = status
            if status == STATUS_COMPLETED:
                update.finished_reading = book.finished_reading or datetime.now()
            else:
                update.finished_reading = None

        if rating != book.rating:
            update.rating = rating

        if update.is_empty():
            return book
        return self.update_book(session, book_id, update)

    def toggle_favorite(self, session: UserSession, book_id: str, is_favorite: bool) -> Book:
        """Set the favorite flag to the given value."""
        return self.update_book(session, book_id, BookUpdate(is_favorite=bool(is_favorite)))

    def add_from_catalog(self, session: UserSession, catalog_book: CatalogBook) -> Book:
        """
        Add an Open Library search hit to the want-to-read shelf.

        Raises:
            ValidationError: If the same title and author is already in the library
        """
        author = catalog_book.author
        if self.book_exists(session, catalog_book.title, author):
            raise ValidationError(f"'{catalog_book.title}' is already in your library")

        return self.create_book(
            session,
            title=catalog_book.title,
            author=author,
            page_count=catalog_book.page_count_median or DEFAULT_CATALOG_PAGE_COUNT,
            genre=catalog_book.primary_subject,
            cover_image=get_cover_url(catalog_book.cover_id, size='L'),
        )
