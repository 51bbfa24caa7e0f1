"""
Shared pytest fixtures and configuration for PageKeeper tests.
"""
import pytest
import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path

# Add parent directory to path so tests can import application modules
sys.path.insert(0, str(Path(__file__).parent.parent))

# Disable config validation during tests
os.environ['SKIP_CONFIG_VALIDATION'] = '1'

# Set test environment variables
os.environ['DEBUG_MODE'] = 'false'
os.environ['LOG_LEVEL'] = 'ERROR'  # Reduce log noise during tests
os.environ['LOG_DIR'] = tempfile.mkdtemp(prefix='pagekeeper_logs_')
os.environ['PASSWORD_HASH_ITERATIONS'] = '1000'  # Fast hashing in tests

from database import Database  # noqa: E402
from auth import AuthService  # noqa: E402
from book_service import BookService  # noqa: E402
from analytics import StatsService  # noqa: E402


@pytest.fixture
def db(tmp_path):
    """A fresh file-backed database per test."""
    return Database(str(tmp_path / "test.db"))


@pytest.fixture
def auth_service(db):
    return AuthService(db)


@pytest.fixture
def book_service(db):
    return BookService(db)


@pytest.fixture
def stats_service(db, book_service):
    return StatsService(db, book_service)


@pytest.fixture
def session(auth_service):
    """A signed-in reader."""
    _, user_session = auth_service.register("reader@example.com", "secret123", "reader")
    return user_session


@pytest.fixture
def other_session(auth_service):
    """A second, unrelated reader."""
    _, user_session = auth_service.register("other@example.com", "secret456", "other")
    return user_session


@pytest.fixture
def make_book(book_service, session):
    """Factory that adds a book to the signed-in reader's library."""
    def _make(title="Dune", author="Frank Herbert", page_count=412, **kwargs):
        return book_service.create_book(session, title=title, author=author, page_count=page_count, **kwargs)
    return _make


@pytest.fixture
def finish_book(db):
    """Mark a book completed with a specific finish date."""
    def _finish(book, finished: datetime, rating=None):
        changes = {'status': 'completed', 'finished_reading': finished, 'current_page': book.page_count}
        if rating is not None:
            changes['rating'] = rating
        return db.update_book(book.id, changes)
    return _finish
