"""
Reading statistics for PageKeeper.

The aggregate functions are pure: they take a list of books and return
projections without touching storage. StatsService persists those projections
(reading_stats, reading_challenges) and recomputes them from the full book set
every time it is asked; nothing is maintained incrementally.
"""
from collections import OrderedDict
from datetime import datetime
from typing import List, Optional, Any

import pandas as pd
import plotly.express as px

import config
from book_service import BookService
from constants import MONTH_LABELS
from database import Database
from models import (
    Book,
    GenreCount,
    MonthlyStat,
    ReadingChallenge,
    ReadingStats,
    UserSession,
)
from validation import (
    ValidationError,
    validate_challenge_name,
    validate_challenge_target,
    validate_year,
)
from logger import get_logger

logger = get_logger(__name__)

CHART_COLORS = [
    '#6366F1',  # Primary indigo
    '#8B5CF6',  # Purple
    '#EC4899',  # Pink
    '#F59E0B',  # Amber
    '#10B981',  # Emerald
    '#3B82F6',  # Blue
    '#EF4444',  # Red
    '#14B8A6',  # Teal
]


# ==================== AGGREGATES ====================

def compute_stats(books: List[Book]) -> ReadingStats:
    """
    Summarize completed books.

    Args:
        books: All of a user's books

    Returns:
        ReadingStats with books_read, total_pages and average_rating filled in.
        average_rating is the mean over completed books that have a rating,
        and 0.0 when none do.
    """
    completed = [b for b in books if b.is_completed]
    rated = [b.rating for b in completed if b.rating is not None]

    stats = ReadingStats(
        books_read=len(completed),
        total_pages=sum(b.page_count or 0 for b in completed),
        average_rating=sum(rated) / len(rated) if rated else 0.0,
    )
    logger.debug(
        f"Computed stats: {stats.books_read} books, {stats.total_pages} pages, "
        f"avg rating {stats.average_rating:.2f}"
    )
    return stats


def compute_monthly_breakdown(books: List[Book], year: int) -> List[MonthlyStat]:
    """
    Books and pages finished per month of a year.

    Always returns twelve entries, January first. Only completed books with a
    finished_reading date in the given year are counted, so a completed book
    without a finish date shows up in compute_stats but not here.
    """
    months = [MonthlyStat(month=label) for label in MONTH_LABELS]

    for book in books:
        if not book.is_completed or book.finished_reading is None:
            continue
        if book.finished_reading.year != year:
            continue

        bucket = months[book.finished_reading.month - 1]
        bucket.book_count += 1
        bucket.page_sum += book.page_count or 0

    return months


def compute_genre_distribution(books: List[Book]) -> List[GenreCount]:
    """Count completed books per genre, in order of first appearance."""
    counts = OrderedDict()
    for book in books:
        if not book.is_completed or not book.genre:
            continue
        counts[book.genre] = counts.get(book.genre, 0) + 1

    return [GenreCount(genre=genre, count=count) for genre, count in counts.items()]


def challenge_percentage(current: int, target: int) -> float:
    """Progress toward a target, capped at 100."""
    if target <= 0:
        return 0.0
    return min(100.0, current / target * 100)


# ==================== PERSISTED PROJECTIONS ====================

class StatsService:
    """Recomputes and stores reading stats and yearly challenges."""

    def __init__(self, db: Database, book_service: BookService):
        self.db = db
        self.book_service = book_service

    @staticmethod
    def _current_year() -> int:
        return datetime.now().year

    def get_stats(self, session: UserSession) -> ReadingStats:
        """
        Recompute the user's stats from their books and store them.

        The stats row is created on first use. reading_time and
        current_streak are kept as stored.
        """
        computed = compute_stats(self.book_service.list_books(session))
        return self.db.save_reading_stats(
            session.user_id,
            books_read=computed.books_read,
            total_pages=computed.total_pages,
            average_rating=computed.average_rating,
        )

    def update_reading_activity(
        self,
        session: UserSession,
        reading_time: Optional[int] = None,
        current_streak: Optional[int] = None
    ) -> ReadingStats:
        """Store the externally tracked reading time (minutes) and streak (days)."""
        for label, value in (("Reading time", reading_time), ("Current streak", current_streak)):
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"{label} must be a non-negative integer")

        if self.db.get_reading_stats(session.user_id) is None:
            self.get_stats(session)

        return self.db.update_reading_activity(
            session.user_id,
            reading_time=reading_time,
            current_streak=current_streak,
        )

    def get_or_create_challenge(self, session: UserSession, year: int) -> ReadingChallenge:
        """
        Look up the challenge for a year, creating the default one if missing.

        Note that this writes to storage the first time it is called for a
        year; later calls return the same challenge.
        """
        challenge = self.db.get_challenge(session.user_id, year)
        if challenge is not None:
            return challenge

        logger.info(f"No {year} challenge for user {session.user_id}, creating default")
        return self.db.add_challenge(ReadingChallenge(
            user_id=session.user_id,
            name=f"{year} Reading Challenge",
            target=config.DEFAULT_CHALLENGE_TARGET,
            year=year,
        ))

    def get_challenge(self, session: UserSession, year: Optional[int] = None) -> ReadingChallenge:
        """The challenge for a year (default: this year), created on demand."""
        if year is None:
            year = self._current_year()
        valid, error = validate_year(year)
        if not valid:
            raise ValidationError(error)
        return self.get_or_create_challenge(session, year)

    def list_challenges(self, session: UserSession) -> List[ReadingChallenge]:
        return self.db.get_user_challenges(session.user_id)

    def create_challenge(
        self,
        session: UserSession,
        name: str,
        target: int,
        year: Optional[int] = None
    ) -> ReadingChallenge:
        """
        Create a challenge for a year.

        Raises:
            ValidationError: If name, target or year is invalid, or the year
                already has a challenge
        """
        if year is None:
            year = self._current_year()

        errors = []
        for valid, error in (
            validate_challenge_name(name),
            validate_challenge_target(target),
            validate_year(year),
        ):
            if not valid:
                errors.append(error)
        if errors:
            raise ValidationError("; ".join(errors))

        if self.db.get_challenge(session.user_id, year) is not None:
            raise ValidationError(f"A reading challenge for {year} already exists")

        return self.db.add_challenge(ReadingChallenge(
            user_id=session.user_id,
            name=name.strip(),
            target=target,
            year=year,
        ))

    def update_challenge_target(self, session: UserSession, new_target: Any) -> ReadingChallenge:
        """
        Change this year's target.

        The target is checked before anything is read or written. current is
        left alone; percentage follows the new target.

        Raises:
            ValidationError: If new_target is not an integer of at least 1
        """
        valid, error = validate_challenge_target(new_target)
        if not valid:
            logger.warning(f"Rejected challenge target {new_target!r} for user {session.user_id}")
            raise ValidationError(error)

        challenge = self.get_challenge(session)
        updated = self.db.update_challenge(challenge.id, {
            'target': new_target,
            'percentage': challenge_percentage(challenge.current, new_target),
        })
        logger.info(f"Challenge {challenge.id} target changed {challenge.target} -> {new_target}")
        return updated

    def recompute_challenge_progress(
        self,
        session: UserSession,
        stats: Optional[ReadingStats] = None
    ) -> Optional[ReadingChallenge]:
        """
        Set this year's challenge progress from the all-time books read count.

        Returns None when the user has no challenge for this year.
        """
        challenge = self.db.get_challenge(session.user_id, self._current_year())
        if challenge is None:
            return None

        if stats is None:
            stats = compute_stats(self.book_service.list_books(session))

        return self.db.update_challenge(challenge.id, {
            'current': stats.books_read,
            'percentage': challenge_percentage(stats.books_read, challenge.target),
        })

    def update_stats(self, session: UserSession) -> ReadingStats:
        """Refresh stored stats and challenge progress after books change."""
        stats = self.get_stats(session)
        self.recompute_challenge_progress(session, stats)
        return stats

    def monthly_breakdown(self, session: UserSession, year: int) -> List[MonthlyStat]:
        return compute_monthly_breakdown(self.book_service.list_books(session), year)

    def genre_distribution(self, session: UserSession) -> List[GenreCount]:
        return compute_genre_distribution(self.book_service.list_books(session))


# ==================== CHARTS ====================

def books_to_dataframe(books: List[Book]) -> pd.DataFrame:
    """Flatten books into a DataFrame for tables and charts."""
    columns = [
        'title', 'author', 'genre', 'status', 'page_count', 'current_page',
        'rating', 'is_favorite', 'started_reading', 'finished_reading'
    ]
    if not books:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([{c: getattr(b, c) for c in columns} for b in books], columns=columns)


def monthly_dataframe(monthly: List[MonthlyStat]) -> pd.DataFrame:
    return pd.DataFrame(
        [{'month': m.month, 'books': m.book_count, 'pages': m.page_sum} for m in monthly],
        columns=['month', 'books', 'pages']
    )


def create_monthly_chart(monthly: List[MonthlyStat], year: int, metric: str = 'books'):
    """Bar chart of books (or pages) finished per month."""
    if metric not in ('books', 'pages'):
        raise ValueError(f"Unknown metric: {metric}")

    df = monthly_dataframe(monthly)
    fig = px.bar(
        df,
        x='month',
        y=metric,
        title=f"{'Books' if metric == 'books' else 'Pages'} finished in {year}",
        color_discrete_sequence=CHART_COLORS
    )
    fig.update_layout(xaxis_title=None, yaxis_title=metric.title(), showlegend=False)
    fig.update_xaxes(categoryorder='array', categoryarray=MONTH_LABELS)
    return fig


def create_genre_chart(genres: List[GenreCount]):
    """Pie chart of completed books per genre, or None when there is nothing to plot."""
    if not genres:
        return None

    df = pd.DataFrame([{'genre': g.genre, 'count': g.count} for g in genres])
    fig = px.pie(
        df,
        names='genre',
        values='count',
        title="Genres you've finished",
        color_discrete_sequence=CHART_COLORS
    )
    fig.update_traces(textposition='inside', textinfo='percent+label')
    return fig
