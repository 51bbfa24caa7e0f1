"""
Tests for api_utils module.
"""
import pytest
import requests
from unittest.mock import Mock, patch

import api_utils
from api_utils import (
    search_books,
    get_books_by_genre,
    get_popular_books,
    get_cover_url,
    get_genres,
    create_session,
    test_api_connection as check_api_connection,
)


def _response(status_code=200, docs=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = {'docs': docs or []}
    return response


SAMPLE_DOC = {
    'key': '/works/OL27448W',
    'title': 'The Lord of the Rings',
    'author_name': ['J.R.R. Tolkien'],
    'cover_i': 8474036,
    'first_publish_year': 1954,
    'subject': ['Fantasy'],
    'number_of_pages_median': 1193,
}


class TestSearchBooks:
    """Test catalog search."""

    def test_search_maps_results(self):
        with patch.object(api_utils.open_library_session, 'get', return_value=_response(docs=[SAMPLE_DOC])) as mock_get:
            results = search_books("  lord of the rings ", limit=5)

        assert len(results) == 1
        assert results[0].title == 'The Lord of the Rings'
        assert results[0].author == 'J.R.R. Tolkien'
        assert mock_get.call_args.kwargs['params'] == {'q': 'lord of the rings', 'limit': 5}

    def test_empty_query_skips_request(self):
        with patch.object(api_utils.open_library_session, 'get') as mock_get:
            assert search_books("   ") == []
        mock_get.assert_not_called()

    def test_http_error_returns_empty(self):
        with patch.object(api_utils.open_library_session, 'get', return_value=_response(status_code=503)):
            assert search_books("dune") == []

    def test_network_error_returns_empty(self):
        with patch.object(api_utils.open_library_session, 'get', side_effect=requests.exceptions.ConnectionError("down")):
            assert search_books("dune") == []

    def test_invalid_json_returns_empty(self):
        response = _response()
        response.json.side_effect = ValueError("not json")
        with patch.object(api_utils.open_library_session, 'get', return_value=response):
            assert search_books("dune") == []


class TestBrowse:
    """Test genre browsing."""

    def test_by_genre_uses_subject(self):
        with patch.object(api_utils.open_library_session, 'get', return_value=_response(docs=[SAMPLE_DOC])) as mock_get:
            results = get_books_by_genre("fantasy", limit=3)
        assert len(results) == 1
        assert mock_get.call_args.kwargs['params'] == {'subject': 'fantasy', 'limit': 3}

    def test_blank_genre(self):
        assert get_books_by_genre("  ") == []

    def test_popular_books_capped(self):
        docs = [dict(SAMPLE_DOC, key=f'/works/{i}') for i in range(10)]
        with patch.object(api_utils.open_library_session, 'get', return_value=_response(docs=docs)) as mock_get:
            results = get_popular_books(limit=25)
        assert len(results) == 25
        assert mock_get.call_count == 6

    def test_genres_is_a_copy(self):
        genres = get_genres()
        genres.append("made-up")
        assert "made-up" not in get_genres()


class TestCoverUrl:
    """Test cover URL building."""

    def test_cover_url(self):
        assert get_cover_url(123, 'L') == "https://covers.openlibrary.org/b/id/123-L.jpg"

    def test_unknown_size_falls_back(self):
        assert get_cover_url(123, 'XL').endswith("/id/123-M.jpg")

    def test_no_cover(self):
        assert get_cover_url(None) is None


class TestConnection:
    """Test connection checks and session setup."""

    def test_session_has_retry_adapter(self):
        session = create_session(max_retries=3)
        adapter = session.get_adapter("https://openlibrary.org")
        assert adapter.max_retries.total == 3

    @patch('api_utils.requests.get')
    def test_connection_ok(self, mock_get):
        mock_get.return_value = _response()
        assert check_api_connection() == {"success": True}

    @patch('api_utils.requests.get')
    def test_connection_timeout(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()
        result = check_api_connection()
        assert result["success"] is False
        assert "timed out" in result["error"]
