"""
Input validation and sanitization utilities for PageKeeper.
"""
import re
from datetime import datetime
from typing import Optional, Tuple, Any, List
from logger import get_logger

import config
from constants import BOOK_STATUSES, MIN_RATING, MAX_RATING
from models import parse_timestamp

logger = get_logger(__name__)

# Input length constraints
MAX_TITLE_LENGTH = 500
MAX_AUTHOR_LENGTH = 200
MAX_GENRE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 10000
MAX_USERNAME_LENGTH = 50
MAX_CHALLENGE_NAME_LENGTH = 200
MAX_SEARCH_LENGTH = 200
MAX_EMAIL_LENGTH = 254

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class ValidationError(ValueError):
    """Raised when input is rejected before reaching storage."""
    pass


def sanitize_string(text: str, max_length: int) -> str:
    """
    Sanitize a string by trimming whitespace and limiting length.

    Args:
        text: Input string to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if not text:
        return ""

    text = text.strip()
    text = re.sub(r'\s+', ' ', text)

    if len(text) > max_length:
        logger.warning(f"Input truncated from {len(text)} to {max_length} characters")
        text = text[:max_length]

    return text


def _is_int(value: Any) -> bool:
    # bool is an int subclass; reject it explicitly
    return isinstance(value, int) and not isinstance(value, bool)


def _has_control_chars(text: str) -> bool:
    return any(ord(c) < 32 for c in text if c not in '\n\r\t')


def validate_title(title: str) -> Tuple[bool, Optional[str]]:
    """
    Validate book title.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not title or not title.strip():
        return False, "Title is required and cannot be empty"

    if len(title.strip()) > MAX_TITLE_LENGTH:
        return False, f"Title must be less than {MAX_TITLE_LENGTH} characters"

    if _has_control_chars(title):
        return False, "Title contains invalid control characters"

    return True, None


def validate_author(author: str) -> Tuple[bool, Optional[str]]:
    """
    Validate author name.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not author or not author.strip():
        return False, "Author is required and cannot be empty"

    if len(author.strip()) > MAX_AUTHOR_LENGTH:
        return False, f"Author name must be less than {MAX_AUTHOR_LENGTH} characters"

    if _has_control_chars(author):
        return False, "Author name contains invalid control characters"

    return True, None


def validate_page_count(page_count: Any) -> Tuple[bool, Optional[str]]:
    """Page count is required and must be a positive integer."""
    if page_count is None:
        return False, "Page count is required"

    if not _is_int(page_count):
        return False, "Page count must be an integer"

    if page_count < 1:
        return False, "Page count must be greater than zero"

    return True, None


def validate_current_page(current_page: Any, page_count: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate the reader's current page.

    Args:
        current_page: Page the reader is on
        page_count: Total pages, when known, used as the upper bound
    """
    if current_page is None:
        return False, "Current page is required"

    if not _is_int(current_page):
        return False, "Current page must be an integer"

    if current_page < 0:
        return False, "Current page cannot be negative"

    if page_count is not None and current_page > page_count:
        return False, f"Current page cannot exceed page count ({page_count})"

    return True, None


def validate_status(status: Any) -> Tuple[bool, Optional[str]]:
    if status not in BOOK_STATUSES:
        return False, f"Status must be one of: {', '.join(BOOK_STATUSES)}"
    return True, None


def validate_rating(rating: Any) -> Tuple[bool, Optional[str]]:
    """Rating is optional; when present it must be an integer from 1 to 5."""
    if rating is None:
        return True, None

    if not _is_int(rating):
        return False, "Rating must be an integer"

    if rating < MIN_RATING or rating > MAX_RATING:
        return False, f"Rating must be between {MIN_RATING} and {MAX_RATING}"

    return True, None


def validate_progress_percentage(progress: Any) -> Tuple[bool, Optional[str]]:
    if progress is None:
        return True, None

    if isinstance(progress, bool) or not isinstance(progress, (int, float)):
        return False, "Progress percentage must be a number"

    if progress < 0 or progress > 100:
        return False, "Progress percentage must be between 0 and 100"

    return True, None


def validate_optional_text(value: Any, label: str, max_length: int) -> Tuple[bool, Optional[str]]:
    if value is None:
        return True, None

    if not isinstance(value, str):
        return False, f"{label} must be text"

    if len(value) > max_length:
        return False, f"{label} must be less than {max_length} characters"

    return True, None


def validate_search_term(search_term: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a catalog search term.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not search_term or not search_term.strip():
        return False, "Search term cannot be empty"

    if len(search_term.strip()) > MAX_SEARCH_LENGTH:
        return False, f"Search term must be less than {MAX_SEARCH_LENGTH} characters"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    if not email or not email.strip():
        return False, "Email is required"

    email = email.strip()
    if len(email) > MAX_EMAIL_LENGTH:
        return False, f"Email must be less than {MAX_EMAIL_LENGTH} characters"

    if not EMAIL_PATTERN.match(email):
        return False, "Email address is not valid"

    return True, None


def validate_password(password: str) -> Tuple[bool, Optional[str]]:
    if not password:
        return False, "Password is required"

    if len(password) < config.MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters"

    return True, None


def validate_username(username: Optional[str]) -> Tuple[bool, Optional[str]]:
    if username is None:
        return True, None

    if not username.strip():
        return False, "Username cannot be empty"

    if len(username.strip()) > MAX_USERNAME_LENGTH:
        return False, f"Username must be less than {MAX_USERNAME_LENGTH} characters"

    if _has_control_chars(username):
        return False, "Username contains invalid control characters"

    return True, None


def validate_challenge_target(target: Any) -> Tuple[bool, Optional[str]]:
    """A challenge target must be a whole number of books, at least one."""
    if not _is_int(target):
        return False, "Challenge target must be an integer"

    if target < 1:
        return False, "Challenge target must be at least 1"

    return True, None


def validate_challenge_name(name: str) -> Tuple[bool, Optional[str]]:
    if not name or not name.strip():
        return False, "Challenge name is required"

    if len(name.strip()) > MAX_CHALLENGE_NAME_LENGTH:
        return False, f"Challenge name must be less than {MAX_CHALLENGE_NAME_LENGTH} characters"

    return True, None


def validate_year(year: Any) -> Tuple[bool, Optional[str]]:
    if not _is_int(year):
        return False, "Year must be an integer"

    if year < 1900 or year > 9999:
        return False, "Year is out of range"

    return True, None


def validate_timestamp(value: Any, label: str) -> Tuple[bool, Optional[str]]:
    """A reading date may be cleared (None), a datetime, or an ISO-8601 string."""
    if value is None or isinstance(value, datetime):
        return True, None

    if not isinstance(value, str):
        return False, f"{label} must be a date"

    try:
        parse_timestamp(value)
    except ValueError:
        return False, f"{label} is not a valid ISO-8601 date"

    return True, None


def validate_book_input(
    title: str,
    author: str,
    page_count: Any,
    current_page: Any = 0,
    status: str = "want-to-read",
    rating: Any = None,
    genre: Optional[str] = None,
    description: Optional[str] = None
) -> Tuple[bool, List[str]]:
    """
    Validate all fields of a new book at once.

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    errors = []

    valid, error = validate_title(title)
    if not valid:
        errors.append(f"Title: {error}")

    valid, error = validate_author(author)
    if not valid:
        errors.append(f"Author: {error}")

    valid, error = validate_page_count(page_count)
    if not valid:
        errors.append(f"Page count: {error}")
        page_count = None

    valid, error = validate_current_page(current_page, page_count)
    if not valid:
        errors.append(f"Current page: {error}")

    valid, error = validate_status(status)
    if not valid:
        errors.append(f"Status: {error}")

    valid, error = validate_rating(rating)
    if not valid:
        errors.append(f"Rating: {error}")

    valid, error = validate_optional_text(genre, "Genre", MAX_GENRE_LENGTH)
    if not valid:
        errors.append(f"Genre: {error}")

    valid, error = validate_optional_text(description, "Description", MAX_DESCRIPTION_LENGTH)
    if not valid:
        errors.append(f"Description: {error}")

    return len(errors) == 0, errors


def validate_book_changes(changes: dict, current_page_count: Optional[int] = None) -> Tuple[bool, List[str]]:
    """
    Validate the fields present in a partial book update.

    Args:
        changes: Mapping of column name to new value (only present fields)
        current_page_count: Stored page count, used when the update does not
            change it

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    errors = []
    page_count = changes.get('page_count', current_page_count)

    if 'title' in changes:
        valid, error = validate_title(changes['title'])
        if not valid:
            errors.append(f"Title: {error}")

    if 'author' in changes:
        valid, error = validate_author(changes['author'])
        if not valid:
            errors.append(f"Author: {error}")

    if 'page_count' in changes:
        valid, error = validate_page_count(changes['page_count'])
        if not valid:
            errors.append(f"Page count: {error}")
            page_count = None

    if 'current_page' in changes:
        valid, error = validate_current_page(changes['current_page'], page_count)
        if not valid:
            errors.append(f"Current page: {error}")

    if 'status' in changes:
        valid, error = validate_status(changes['status'])
        if not valid:
            errors.append(f"Status: {error}")

    if 'rating' in changes:
        valid, error = validate_rating(changes['rating'])
        if not valid:
            errors.append(f"Rating: {error}")

    if 'progress_percentage' in changes:
        valid, error = validate_progress_percentage(changes['progress_percentage'])
        if not valid:
            errors.append(f"Progress: {error}")

    if 'is_favorite' in changes and not isinstance(changes['is_favorite'], bool):
        errors.append("Favorite: Must be true or false")

    for name, label in (('started_reading', 'Started reading'), ('finished_reading', 'Finished reading')):
        if name in changes:
            valid, error = validate_timestamp(changes[name], label)
            if not valid:
                errors.append(f"{label}: {error}")

    for name, label, limit in (
        ('genre', 'Genre', MAX_GENRE_LENGTH),
        ('description', 'Description', MAX_DESCRIPTION_LENGTH),
        ('cover_image', 'Cover image', 2000),
    ):
        if name in changes:
            valid, error = validate_optional_text(changes[name], label, limit)
            if not valid:
                errors.append(f"{label}: {error}")

    return len(errors) == 0, errors


def sanitize_for_display(text: str, max_length: int = 1000) -> str:
    """
    Sanitize text for safe display in UI.

    Args:
        text: Text to sanitize
        max_length: Maximum length for display

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text.replace('&', '&amp;')
    text = text.replace('<', '&lt;')
    text = text.replace('>', '&gt;')
    text = text.replace('"', '&quot;')
    text = text.replace("'", '&#x27;')

    if len(text) > max_length:
        text = text[:max_length] + '...'

    return text
