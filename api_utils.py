"""
API utilities for the Open Library catalog.

Lookups are best-effort: network failures are logged and produce empty
results so the library itself keeps working.
"""
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from typing import Optional, Dict, Any, List

import config
from constants import CATALOG_GENRES
from models import CatalogBook
from validation import validate_search_term
from logger import get_logger

logger = get_logger(__name__)

COVER_SIZES = ('S', 'M', 'L')


def create_session(
    max_retries: int = config.CATALOG_MAX_RETRIES,
    backoff_factor: float = 0.5,
    status_forcelist: tuple = (429, 500, 502, 503, 504)
) -> requests.Session:
    """Create a requests Session that retries idempotent GETs."""
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods=["GET"],
        raise_on_status=False
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session = requests.Session()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


open_library_session = create_session()


def _search(params: Dict[str, Any]) -> List[CatalogBook]:
    try:
        response = open_library_session.get(
            config.OPEN_LIBRARY_SEARCH_URL,
            params=params,
            timeout=config.CATALOG_TIMEOUT
        )
        if response.status_code != 200:
            logger.warning(f"Open Library returned status {response.status_code} for {params}")
            return []

        docs = response.json().get('docs') or []
        logger.debug(f"Open Library returned {len(docs)} results for {params}")
        return [CatalogBook.from_api(doc) for doc in docs]

    except requests.exceptions.RequestException as e:
        logger.error(f"Open Library API request error: {str(e)}")
        return []
    except ValueError as e:
        logger.error(f"Open Library returned invalid JSON: {str(e)}")
        return []


def search_books(query: str, limit: int = 50) -> List[CatalogBook]:
    """
    Search the catalog by free text.

    Args:
        query: Title, author or keywords
        limit: Maximum number of results

    Returns:
        List of CatalogBook (empty on invalid query or network failure)
    """
    valid, error = validate_search_term(query)
    if not valid:
        logger.debug(f"Skipping catalog search: {error}")
        return []
    return _search({"q": query.strip(), "limit": limit})


def get_books_by_genre(genre: str, limit: int = 50) -> List[CatalogBook]:
    """Browse the catalog by subject."""
    if not genre or not genre.strip():
        return []
    return _search({"subject": genre.strip(), "limit": limit})


def get_popular_books(limit: int = 50) -> List[CatalogBook]:
    """A sample of books drawn from the first six browse genres."""
    books: List[CatalogBook] = []
    for genre in CATALOG_GENRES[:6]:
        books.extend(get_books_by_genre(genre, limit=10))
    return books[:limit]


def get_cover_url(cover_id: Optional[int], size: str = 'M') -> Optional[str]:
    """Build a cover image URL from an Open Library cover id."""
    if not cover_id:
        return None
    if size not in COVER_SIZES:
        size = 'M'
    return f"{config.OPEN_LIBRARY_COVERS_URL}/id/{cover_id}-{size}.jpg"


def get_genres() -> List[str]:
    return list(CATALOG_GENRES)


def test_api_connection() -> Dict[str, Any]:
    """
    Test connection to Open Library.
    Returns dict with 'success' boolean and optional 'error' message.
    """
    try:
        response = requests.get(config.OPEN_LIBRARY_SEARCH_URL, params={"q": "test", "limit": 1}, timeout=5)
        if response.status_code == 200:
            return {"success": True}
        return {
            "success": False,
            "error": f"API returned status code {response.status_code}"
        }

    except requests.exceptions.Timeout:
        return {"success": False, "error": "Open Library API request timed out"}
    except requests.exceptions.RequestException as e:
        return {"success": False, "error": str(e)}
