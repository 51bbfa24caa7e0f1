"""
Tests for analytics module.
"""
import pytest
from datetime import datetime

import config
from analytics import (
    books_to_dataframe,
    challenge_percentage,
    compute_genre_distribution,
    compute_monthly_breakdown,
    compute_stats,
    create_genre_chart,
    create_monthly_chart,
    monthly_dataframe,
)
from constants import MONTH_LABELS
from models import Book, GenreCount
from validation import ValidationError


def _book(status="completed", page_count=100, rating=None, finished=None, genre=None, title="Book"):
    return Book(
        user_id="u1", title=title, author="Author", page_count=page_count,
        status=status, rating=rating, finished_reading=finished, genre=genre
    )


@pytest.fixture
def two_finished_books():
    return [
        _book(page_count=300, rating=4, finished=datetime(2024, 3, 2)),
        _book(page_count=200, rating=None, finished=datetime(2024, 5, 10)),
    ]


class TestComputeStats:
    """Test the aggregate summary."""

    def test_empty_input(self):
        stats = compute_stats([])
        assert (stats.books_read, stats.total_pages, stats.average_rating) == (0, 0, 0.0)

    def test_no_completed_books(self):
        stats = compute_stats([_book(status="want-to-read", rating=5), _book(status="currently-reading")])
        assert (stats.books_read, stats.total_pages, stats.average_rating) == (0, 0, 0.0)

    def test_unrated_books_excluded_from_average(self, two_finished_books):
        stats = compute_stats(two_finished_books)
        assert stats.books_read == 2
        assert stats.total_pages == 500
        assert stats.average_rating == 4.0

    def test_completed_but_none_rated(self):
        assert compute_stats([_book(), _book()]).average_rating == 0.0

    def test_ratings_on_unfinished_books_ignored(self):
        books = [_book(rating=2), _book(status="currently-reading", rating=5)]
        assert compute_stats(books).average_rating == 2.0


class TestMonthlyBreakdown:
    """Test per-month aggregation."""

    def test_always_twelve_months_in_order(self):
        months = compute_monthly_breakdown([], 2024)
        assert [m.month for m in months] == MONTH_LABELS
        assert all(m.book_count == 0 and m.page_sum == 0 for m in months)

    def test_books_bucketed_by_finish_month(self, two_finished_books):
        months = compute_monthly_breakdown(two_finished_books, 2024)
        by_label = {m.month: (m.book_count, m.page_sum) for m in months}

        assert by_label["Mar"] == (1, 300)
        assert by_label["May"] == (1, 200)
        assert sum(m.book_count for m in months) == 2

    def test_other_years_excluded(self, two_finished_books):
        months = compute_monthly_breakdown(two_finished_books, 2023)
        assert len(months) == 12
        assert sum(m.book_count for m in months) == 0

    def test_completed_without_finish_date(self):
        """Counted as read overall, but absent from the monthly view."""
        books = [_book(finished=None)]
        assert compute_stats(books).books_read == 1
        assert sum(m.book_count for m in compute_monthly_breakdown(books, 2024)) == 0

    def test_unfinished_books_excluded(self):
        books = [_book(status="currently-reading", finished=datetime(2024, 1, 5))]
        assert sum(m.book_count for m in compute_monthly_breakdown(books, 2024)) == 0


class TestGenreDistribution:
    """Test genre counting."""

    def test_first_appearance_order(self):
        books = [
            _book(genre="Fantasy"),
            _book(genre="Mystery"),
            _book(genre="Fantasy"),
            _book(genre=None),
            _book(status="want-to-read", genre="Horror"),
        ]
        assert compute_genre_distribution(books) == [
            GenreCount(genre="Fantasy", count=2),
            GenreCount(genre="Mystery", count=1),
        ]

    def test_empty(self):
        assert compute_genre_distribution([]) == []


class TestChallengePercentage:
    """Test challenge percentage arithmetic."""

    def test_partial(self):
        assert challenge_percentage(6, 24) == 25.0

    def test_capped(self):
        assert challenge_percentage(30, 24) == 100.0

    def test_non_positive_target(self):
        assert challenge_percentage(3, 0) == 0.0


class TestStatsService:
    """Test persisted stats."""

    def test_get_stats_for_new_user(self, stats_service, session):
        stats = stats_service.get_stats(session)
        assert stats.books_read == 0
        assert stats.user_id == session.user_id

    def test_get_stats_recomputes(self, stats_service, session, make_book, finish_book):
        finish_book(make_book(page_count=300), datetime(2024, 3, 2), rating=4)
        finish_book(make_book(title="Other", page_count=200), datetime(2024, 5, 10))

        stats = stats_service.get_stats(session)
        assert stats.books_read == 2
        assert stats.total_pages == 500
        assert stats.average_rating == 4.0

    def test_reading_activity_survives_recompute(self, stats_service, session, make_book, finish_book):
        stats_service.update_reading_activity(session, reading_time=120, current_streak=3)
        finish_book(make_book(), datetime(2024, 1, 1))

        stats = stats_service.get_stats(session)
        assert stats.reading_time == 120
        assert stats.current_streak == 3
        assert stats.books_read == 1

    @pytest.mark.parametrize("value", [-1, 1.5, True])
    def test_reading_activity_rejects_bad_values(self, stats_service, session, value):
        with pytest.raises(ValidationError):
            stats_service.update_reading_activity(session, reading_time=value)

    def test_monthly_and_genres(self, stats_service, session, make_book, finish_book):
        finish_book(make_book(genre="Fantasy", page_count=250), datetime(2024, 7, 4))

        months = stats_service.monthly_breakdown(session, 2024)
        assert months[6].book_count == 1
        assert months[6].page_sum == 250
        assert stats_service.genre_distribution(session) == [GenreCount(genre="Fantasy", count=1)]


class TestChallenges:
    """Test yearly challenges."""

    def test_get_or_create_is_idempotent(self, stats_service, session):
        first = stats_service.get_or_create_challenge(session, 2024)
        second = stats_service.get_or_create_challenge(session, 2024)

        assert first.id == second.id
        assert len(stats_service.list_challenges(session)) == 1

    def test_default_challenge(self, stats_service, session):
        challenge = stats_service.get_or_create_challenge(session, 2024)
        assert challenge.name == "2024 Reading Challenge"
        assert challenge.target == config.DEFAULT_CHALLENGE_TARGET
        assert challenge.current == 0

    def test_get_challenge_defaults_to_this_year(self, stats_service, session):
        assert stats_service.get_challenge(session).year == datetime.now().year

    def test_get_challenge_invalid_year(self, stats_service, session):
        with pytest.raises(ValidationError):
            stats_service.get_challenge(session, year="2024")

    def test_create_challenge(self, stats_service, session):
        challenge = stats_service.create_challenge(session, "  Summer push ", 12, year=2023)
        assert challenge.name == "Summer push"
        assert challenge.target == 12
        assert challenge.year == 2023

    def test_create_duplicate_year(self, stats_service, session):
        stats_service.create_challenge(session, "First", 12, year=2023)
        with pytest.raises(ValidationError, match="already exists"):
            stats_service.create_challenge(session, "Second", 6, year=2023)

    def test_create_invalid(self, stats_service, session):
        with pytest.raises(ValidationError):
            stats_service.create_challenge(session, "", 0, year=2023)
        assert stats_service.list_challenges(session) == []

    def test_update_target(self, stats_service, session, make_book, finish_book):
        finish_book(make_book(), datetime.now())
        stats_service.update_stats(session)
        stats_service.get_challenge(session)
        stats_service.update_stats(session)

        updated = stats_service.update_challenge_target(session, 4)
        assert updated.target == 4
        assert updated.current == 1
        assert updated.percentage == 25.0

    @pytest.mark.parametrize("target", [0, -5])
    def test_update_target_rejects_non_positive(self, stats_service, session, target):
        before = stats_service.get_challenge(session)

        with pytest.raises(ValidationError):
            stats_service.update_challenge_target(session, target)

        after = stats_service.get_challenge(session)
        assert after.target == before.target
        assert after.percentage == before.percentage
        assert after.updated_at == before.updated_at

    def test_invalid_target_does_not_create_challenge(self, stats_service, session):
        with pytest.raises(ValidationError):
            stats_service.update_challenge_target(session, 0)
        assert stats_service.list_challenges(session) == []


class TestUpdateStats:
    """Test recomputation after book changes."""

    def test_without_challenge_only_stats_change(self, stats_service, session, make_book, finish_book):
        finish_book(make_book(), datetime.now())
        stats = stats_service.update_stats(session)

        assert stats.books_read == 1
        assert stats_service.list_challenges(session) == []

    def test_challenge_counts_all_completed_books(self, stats_service, session, make_book, finish_book):
        stats_service.create_challenge(session, "This year", 4)
        finish_book(make_book(title="Old"), datetime(2001, 6, 1))
        finish_book(make_book(title="New"), datetime.now())

        stats_service.update_stats(session)
        challenge = stats_service.get_challenge(session)
        assert challenge.current == 2
        assert challenge.percentage == 50.0

    def test_progress_to_last_page_counts(self, stats_service, book_service, session, make_book):
        stats_service.create_challenge(session, "This year", 1)
        book = make_book(page_count=120)
        book_service.update_progress(session, book.id, 120, 120)

        stats_service.update_stats(session)
        challenge = stats_service.get_challenge(session)
        assert challenge.current == 1
        assert challenge.percentage == 100.0


class TestCharts:
    """Test chart helpers."""

    def test_books_to_dataframe(self, two_finished_books):
        df = books_to_dataframe(two_finished_books)
        assert len(df) == 2
        assert df['page_count'].sum() == 500

    def test_books_to_dataframe_empty(self):
        df = books_to_dataframe([])
        assert df.empty
        assert 'title' in df.columns

    def test_monthly_dataframe(self, two_finished_books):
        df = monthly_dataframe(compute_monthly_breakdown(two_finished_books, 2024))
        assert list(df['month']) == MONTH_LABELS
        assert df['pages'].sum() == 500

    @pytest.mark.parametrize("metric", ["books", "pages"])
    def test_monthly_chart(self, two_finished_books, metric):
        fig = create_monthly_chart(compute_monthly_breakdown(two_finished_books, 2024), 2024, metric)
        assert "2024" in fig.layout.title.text

    def test_monthly_chart_unknown_metric(self):
        with pytest.raises(ValueError):
            create_monthly_chart(compute_monthly_breakdown([], 2024), 2024, "minutes")

    def test_genre_chart_empty(self):
        assert create_genre_chart([]) is None

    def test_genre_chart(self):
        fig = create_genre_chart([GenreCount("Fantasy", 2), GenreCount("Mystery", 1)])
        assert fig is not None
