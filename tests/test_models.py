"""
Tests for models module.
"""
import pytest
from datetime import datetime, timezone

from models import (
    Book,
    BookUpdate,
    CatalogBook,
    ReadingChallenge,
    UserSession,
    UNSET,
    parse_timestamp,
)


class TestBook:
    """Test Book model."""

    def test_defaults(self):
        book = Book(user_id="u1", title="Dune", author="Frank Herbert", page_count=412)
        assert book.status == "want-to-read"
        assert book.current_page == 0
        assert book.is_favorite is False
        assert book.rating is None
        assert book.is_completed is False

    def test_empty_title_rejected(self):
        """Test that empty title raises ValueError."""
        with pytest.raises(ValueError, match="Title is required"):
            Book(user_id="u1", title="  ", author="Someone", page_count=10)

    def test_empty_author_rejected(self):
        with pytest.raises(ValueError, match="Author is required"):
            Book(user_id="u1", title="Dune", author="", page_count=10)

    def test_invalid_status_rejected(self):
        with pytest.raises(ValueError, match="Invalid status"):
            Book(user_id="u1", title="Dune", author="Frank Herbert", page_count=10, status="abandoned")

    def test_to_dict_formats_timestamps(self):
        finished = datetime(2024, 3, 15, 10, 30)
        book = Book(
            user_id="u1", title="Dune", author="Frank Herbert", page_count=412,
            status="completed", finished_reading=finished
        )
        data = book.to_dict()
        assert data['finished_reading'] == "2024-03-15T10:30:00"
        assert data['started_reading'] is None
        assert book.is_completed is True


class TestBookUpdate:
    """Test the partial update field mask."""

    def test_empty_update_has_no_changes(self):
        update = BookUpdate()
        assert update.changes() == {}
        assert update.is_empty() is True

    def test_only_set_fields_are_changes(self):
        update = BookUpdate(rating=4, is_favorite=False)
        assert update.changes() == {'rating': 4, 'is_favorite': False}

    def test_none_is_an_explicit_change(self):
        """Setting a field to None clears it rather than skipping it."""
        update = BookUpdate(rating=None)
        assert update.changes() == {'rating': None}
        assert update.is_empty() is False

    def test_from_dict_accepts_camel_case(self):
        update = BookUpdate.from_dict({
            'currentPage': 120,
            'isFavorite': True,
            'finishedReading': None,
        })
        assert update.changes() == {
            'current_page': 120,
            'is_favorite': True,
            'finished_reading': None,
        }

    def test_from_dict_drops_unknown_keys(self):
        update = BookUpdate.from_dict({'title': 'New', 'userId': 'someone-else', 'id': 'x', 'bogus': 1})
        assert update.changes() == {'title': 'New'}

    def test_unset_is_falsy(self):
        assert not UNSET
        assert repr(UNSET) == "UNSET"


class TestParseTimestamp:
    """Test timestamp parsing."""

    def test_none_and_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_trailing_z(self):
        parsed = parse_timestamp("2024-05-01T12:00:00Z")
        assert parsed == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_datetime_passthrough(self):
        value = datetime(2024, 1, 1)
        assert parse_timestamp(value) is value


class TestUserSession:
    """Test session expiry."""

    def test_not_expired_before_expiry(self):
        session = UserSession(user_id="u1", token="t", expires_at=datetime(2030, 1, 1))
        assert session.is_expired(now=datetime(2029, 12, 31)) is False

    def test_expired_at_expiry(self):
        session = UserSession(user_id="u1", token="t", expires_at=datetime(2030, 1, 1))
        assert session.is_expired(now=datetime(2030, 1, 1)) is True

    def test_no_expiry_never_expires(self):
        assert UserSession(user_id="u1", token="t").is_expired() is False


class TestReadingChallenge:
    """Test challenge helpers."""

    def test_remaining_and_complete(self):
        challenge = ReadingChallenge(user_id="u1", name="2024", target=10, year=2024, current=4)
        assert challenge.remaining == 6
        assert challenge.is_complete is False

    def test_remaining_never_negative(self):
        challenge = ReadingChallenge(user_id="u1", name="2024", target=3, year=2024, current=5)
        assert challenge.remaining == 0
        assert challenge.is_complete is True


class TestCatalogBook:
    """Test Open Library document mapping."""

    def test_from_api_full_document(self):
        doc = {
            'key': '/works/OL45883W',
            'title': 'Dune',
            'author_name': ['Frank Herbert'],
            'cover_i': 12345,
            'first_publish_year': 1965,
            'subject': ['Science fiction', 'Deserts'],
            'number_of_pages_median': 604,
        }
        book = CatalogBook.from_api(doc)
        assert book.key == '/works/OL45883W'
        assert book.author == 'Frank Herbert'
        assert book.cover_id == 12345
        assert book.primary_subject == 'Science fiction'
        assert book.page_count_median == 604

    def test_from_api_sparse_document(self):
        book = CatalogBook.from_api({'key': '/works/X'})
        assert book.title == 'Untitled'
        assert book.author == 'Unknown Author'
        assert book.primary_subject is None
        assert book.cover_id is None
