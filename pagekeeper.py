"""
PageKeeper - personal reading tracker.
Streamlit front end over the book, stats and auth services.
"""
from datetime import datetime

import streamlit as st

import config
from analytics import (
    StatsService,
    books_to_dataframe,
    create_genre_chart,
    create_monthly_chart,
)
from api_utils import search_books, get_books_by_genre, get_genres, get_cover_url, test_api_connection
from auth import AuthService, AuthenticationError
from book_service import BookService
from constants import BOOK_STATUSES, STATUS_LABELS, STATUS_CURRENTLY_READING, MAX_RATING
from database import Database, DatabaseError, NotFoundError
from models import Book
from logger import get_logger, PageKeeperLogger
from validation import ValidationError, sanitize_for_display

PageKeeperLogger().set_level(config.LOG_LEVEL)
logger = get_logger(__name__)

GENERIC_FAILURE = "Something went wrong talking to the database. Please try again."

NAV_ITEMS = [
    {"label": "Dashboard", "emoji": "🏠"},
    {"label": "My Books", "emoji": "📚"},
    {"label": "Favorites", "emoji": "❤️"},
    {"label": "Reading Stats", "emoji": "📊"},
    {"label": "Discover", "emoji": "🔍"},
    {"label": "Profile", "emoji": "👤"},
]


@st.cache_resource
def get_database():
    """Get or create database instance."""
    try:
        return Database(config.DB_PATH)
    except DatabaseError as e:
        logger.error(f"Failed to initialize database: {str(e)}", exc_info=True)
        st.error(f"Database initialization failed: {str(e)}")
        st.stop()


def get_services():
    db = get_database()
    book_service = BookService(db)
    return AuthService(db), book_service, StatsService(db, book_service)


# ==================== UI HELPER FUNCTIONS ====================

def render_page_header(title: str, subtitle: str = None, icon: str = None):
    """Render a page header."""
    st.markdown(f"## {icon + ' ' if icon else ''}{title}")
    if subtitle:
        st.caption(subtitle)


def render_empty_state(icon: str, title: str, message: str):
    st.markdown(f"### {icon} {title}")
    st.write(message)


def render_stars(rating) -> str:
    if not rating:
        return "Not rated"
    return "★" * rating + "☆" * (MAX_RATING - rating)


def refresh_stats(stats_service: StatsService, session):
    """Recompute stats after a book change; failures here should not block the change."""
    try:
        stats_service.update_stats(session)
    except DatabaseError as e:
        logger.error(f"Stats refresh failed: {str(e)}", exc_info=True)


def load_overview(stats_service: StatsService, session):
    """Fresh stats plus this year's challenge, created on first visit."""
    stats_service.get_challenge(session)
    stats = stats_service.update_stats(session)
    return stats, stats_service.get_challenge(session)


def render_book_card(book: Book, book_service: BookService, stats_service: StatsService, session):
    """Render one book with its progress, rating and favorite controls."""
    with st.container(border=True):
        col_cover, col_info = st.columns([1, 4])

        with col_cover:
            if book.cover_image:
                st.image(book.cover_image, use_container_width=True)
            else:
                st.markdown("📖")

        with col_info:
            heart = "❤️ " if book.is_favorite else ""
            st.markdown(f"**{heart}{sanitize_for_display(book.title)}**  \n{sanitize_for_display(book.author)}")
            st.caption(
                f"{STATUS_LABELS[book.status]} · {book.genre or 'No genre'} · {render_stars(book.rating)}"
            )
            st.progress(
                min(book.current_page / book.page_count, 1.0) if book.page_count else 0.0,
                text=f"{book.current_page} / {book.page_count} pages"
            )

            with st.expander("Update"):
                page = st.number_input(
                    "Current page", min_value=0, max_value=book.page_count,
                    value=book.current_page, key=f"page_{book.id}"
                )
                status = st.selectbox(
                    "Status", BOOK_STATUSES, index=BOOK_STATUSES.index(book.status),
                    format_func=STATUS_LABELS.get, key=f"status_{book.id}"
                )
                rating = st.select_slider(
                    "Rating", options=[0, 1, 2, 3, 4, 5], value=book.rating or 0,
                    key=f"rating_{book.id}"
                )

                col_save, col_fav, col_del = st.columns(3)
                try:
                    if col_save.button("Save", key=f"save_{book.id}", type="primary"):
                        book_service.save_reading_edits(
                            session, book.id, int(page), status, rating or None
                        )
                        refresh_stats(stats_service, session)
                        st.rerun()

                    fav_label = "Unfavorite" if book.is_favorite else "Favorite"
                    if col_fav.button(fav_label, key=f"fav_{book.id}"):
                        book_service.toggle_favorite(session, book.id, not book.is_favorite)
                        st.rerun()

                    if col_del.button("Delete", key=f"del_{book.id}"):
                        book_service.delete_book(session, book.id)
                        refresh_stats(stats_service, session)
                        st.rerun()

                except ValidationError as e:
                    st.error(str(e))
                except NotFoundError:
                    st.warning("This book no longer exists.")
                except DatabaseError:
                    st.error(GENERIC_FAILURE)


# ==================== AUTH ====================

def render_login_page(auth_service: AuthService):
    render_page_header("PageKeeper", "Track what you read", "📚")

    login_tab, signup_tab = st.tabs(["Sign in", "Create account"])

    with login_tab:
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary")
        if submitted:
            try:
                _, session = auth_service.authenticate(email, password)
                st.session_state.user_session = session
                st.rerun()
            except (ValidationError, AuthenticationError) as e:
                st.error(str(e))
            except DatabaseError:
                st.error(GENERIC_FAILURE)

    with signup_tab:
        with st.form("signup_form"):
            email = st.text_input("Email", key="signup_email")
            username = st.text_input("Display name (optional)")
            password = st.text_input("Password", type="password", key="signup_password")
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            try:
                _, session = auth_service.register(email, password, username or None)
                st.session_state.user_session = session
                st.rerun()
            except (ValidationError, AuthenticationError) as e:
                st.error(str(e))
            except DatabaseError:
                st.error(GENERIC_FAILURE)


# ==================== PAGE RENDERERS ====================

def render_dashboard_page(book_service: BookService, stats_service: StatsService, session):
    render_page_header("Dashboard", "Your reading at a glance", "🏠")

    stats, challenge = load_overview(stats_service, session)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Books Read", stats.books_read)
    col2.metric("Pages Read", f"{stats.total_pages:,}")
    col3.metric("Avg. Rating", f"{stats.average_rating:.1f}")
    col4.metric("Challenge", f"{challenge.current}/{challenge.target}")

    st.markdown(f"### {challenge.name}")
    st.progress(challenge.percentage / 100, text=f"{challenge.current} of {challenge.target} books completed")

    st.markdown("### Currently Reading")
    reading = book_service.list_by_status(session, STATUS_CURRENTLY_READING)
    if not reading:
        render_empty_state("📖", "Nothing in progress", "Pick a book from your shelf and start reading!")
    for book in reading:
        render_book_card(book, book_service, stats_service, session)


def render_my_books_page(book_service: BookService, stats_service: StatsService, session):
    render_page_header("My Books", "Everything on your shelves", "📚")

    with st.expander("➕ Add a book"):
        with st.form("add_book_form", clear_on_submit=True):
            title = st.text_input("Title")
            author = st.text_input("Author")
            col1, col2 = st.columns(2)
            page_count = col1.number_input("Pages", min_value=1, value=300)
            genre = col2.text_input("Genre")
            status = st.selectbox("Status", BOOK_STATUSES, format_func=STATUS_LABELS.get)
            description = st.text_area("Description")
            submitted = st.form_submit_button("Add book", type="primary")

        if submitted:
            try:
                book = book_service.create_book(
                    session,
                    title=title,
                    author=author,
                    page_count=int(page_count),
                    status=status,
                    genre=genre or None,
                    description=description or None,
                )
                refresh_stats(stats_service, session)
                st.success(f"'{book.title}' by {book.author} has been added to your library!")
            except ValidationError as e:
                st.error(str(e))
            except DatabaseError:
                st.error(GENERIC_FAILURE)

    tabs = st.tabs(["All"] + [STATUS_LABELS[s] for s in BOOK_STATUSES])
    with tabs[0]:
        books = book_service.list_books(session)
        if not books:
            render_empty_state("📚", "Your library is empty", "Add a book above or browse Discover.")
        else:
            st.dataframe(books_to_dataframe(books), use_container_width=True, hide_index=True)

    for tab, status in zip(tabs[1:], BOOK_STATUSES):
        with tab:
            books = book_service.list_by_status(session, status)
            if not books:
                render_empty_state("📭", "Nothing here yet", f"No books marked {STATUS_LABELS[status]}.")
            for book in books:
                render_book_card(book, book_service, stats_service, session)


def render_favorites_page(book_service: BookService, stats_service: StatsService, session):
    render_page_header("Favorites", "Books you love", "❤️")
    books = book_service.list_favorites(session)
    if not books:
        render_empty_state("❤️", "No favorites yet", "Mark a book as a favorite to see it here.")
    for book in books:
        render_book_card(book, book_service, stats_service, session)


def render_stats_page(stats_service: StatsService, session):
    render_page_header("Reading Stats", "How your year is going", "📊")

    stats, challenge = load_overview(stats_service, session)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Books Read", stats.books_read)
    col2.metric("Pages Read", f"{stats.total_pages:,}")
    col3.metric("Avg. Rating", f"{stats.average_rating:.1f}")
    col4.metric("Challenge Progress", f"{challenge.current}/{challenge.target}")

    st.markdown(f"### {challenge.name}")
    st.progress(challenge.percentage / 100, text=f"{round(challenge.percentage)}%")

    with st.form("challenge_form"):
        new_target = st.number_input("Yearly target", min_value=1, value=challenge.target)
        if st.form_submit_button("Update target"):
            try:
                stats_service.update_challenge_target(session, int(new_target))
                st.rerun()
            except ValidationError as e:
                st.error(str(e))

    current_year = datetime.now().year
    year = st.selectbox("Year", [current_year - i for i in range(5)])
    monthly = stats_service.monthly_breakdown(session, year)
    metric = st.radio("Show", ["books", "pages"], horizontal=True)
    st.plotly_chart(create_monthly_chart(monthly, year, metric), use_container_width=True)

    st.markdown("### Genres")
    genre_chart = create_genre_chart(stats_service.genre_distribution(session))
    if genre_chart is None:
        st.info("Finish a book with a genre to see your genre mix.")
    else:
        st.plotly_chart(genre_chart, use_container_width=True)


def render_discover_page(book_service: BookService, session):
    render_page_header("Discover", "Find your next read on Open Library", "🔍")

    col1, col2 = st.columns([3, 2])
    query = col1.text_input("Search", placeholder="Title, author or keyword")
    genre = col2.selectbox("Or browse a genre", [""] + get_genres())

    if query:
        results = search_books(query, limit=20)
    elif genre:
        results = get_books_by_genre(genre, limit=20)
    else:
        results = []

    if (query or genre) and not results:
        st.info("No books found. Try a different search.")

    for index, hit in enumerate(results):
        with st.container(border=True):
            col_cover, col_info, col_add = st.columns([1, 4, 1])
            cover = get_cover_url(hit.cover_id)
            if cover:
                col_cover.image(cover, use_container_width=True)
            col_info.markdown(f"**{sanitize_for_display(hit.title)}**  \n{sanitize_for_display(hit.author)}")
            col_info.caption(
                f"{hit.first_publish_year or 'Unknown year'} · "
                f"{hit.page_count_median or '?'} pages · {hit.primary_subject or 'No subject'}"
            )
            if col_add.button("Add", key=f"add_{index}_{hit.key}"):
                try:
                    book_service.add_from_catalog(session, hit)
                    st.success(f"Added '{hit.title}' to Want to Read")
                except ValidationError as e:
                    st.warning(str(e))
                except DatabaseError:
                    st.error(GENERIC_FAILURE)


def render_profile_page(auth_service: AuthService, stats_service: StatsService, session):
    render_page_header("Profile", "Your account", "👤")

    profile = auth_service.get_profile(session)
    if profile.avatar_url:
        st.image(profile.avatar_url, width=96)
    st.write(f"**Email:** {profile.email}")

    with st.form("profile_form"):
        username = st.text_input("Display name", value=profile.username or "")
        avatar_url = st.text_input("Avatar URL", value=profile.avatar_url or "")
        if st.form_submit_button("Save profile"):
            try:
                auth_service.update_profile(session, username=username, avatar_url=avatar_url or None)
                st.success("Profile updated")
            except ValidationError as e:
                st.error(str(e))

    stats = stats_service.get_stats(session)
    with st.form("activity_form"):
        st.markdown("#### Reading activity")
        reading_time = st.number_input("Reading time (minutes)", min_value=0, value=stats.reading_time)
        streak = st.number_input("Current streak (days)", min_value=0, value=stats.current_streak)
        if st.form_submit_button("Save activity"):
            stats_service.update_reading_activity(
                session, reading_time=int(reading_time), current_streak=int(streak)
            )
            st.success("Activity saved")

    st.divider()
    confirm = st.checkbox("I understand this deletes all my books, stats and challenges")
    if st.button("Delete my account", type="secondary", disabled=not confirm):
        auth_service.delete_profile(session)
        st.session_state.user_session = None
        st.rerun()


# ==================== MAIN APPLICATION ====================

def main():
    """Main application entry point."""
    st.set_page_config(page_title="PageKeeper", page_icon="📚", layout="centered")

    auth_service, book_service, stats_service = get_services()

    if 'current_page' not in st.session_state:
        st.session_state.current_page = "Dashboard"
    if 'user_session' not in st.session_state:
        st.session_state.user_session = None

    session = st.session_state.user_session
    if session is not None and auth_service.verify(session.token) is None:
        st.session_state.user_session = session = None

    if session is None:
        render_login_page(auth_service)
        return

    with st.sidebar:
        st.markdown("# 📚 PageKeeper")
        st.caption(session.email)
        st.divider()

        for item in NAV_ITEMS:
            is_active = st.session_state.current_page == item["label"]
            if st.button(
                f"{item['emoji']}  {item['label']}",
                key=f"nav_{item['label']}",
                use_container_width=True,
                type="primary" if is_active else "secondary"
            ):
                st.session_state.current_page = item["label"]
                st.rerun()

        st.divider()
        if st.button("Check catalog status", use_container_width=True):
            status = test_api_connection()
            st.write("Open Library:", "✅" if status["success"] else "❌")
            if config.DEBUG_MODE and not status["success"]:
                st.error(status.get("error", "Unknown"))

        if st.button("Sign out", use_container_width=True):
            auth_service.logout(session)
            st.session_state.user_session = None
            st.rerun()

    page = st.session_state.current_page
    try:
        if page == "Dashboard":
            render_dashboard_page(book_service, stats_service, session)
        elif page == "My Books":
            render_my_books_page(book_service, stats_service, session)
        elif page == "Favorites":
            render_favorites_page(book_service, stats_service, session)
        elif page == "Reading Stats":
            render_stats_page(stats_service, session)
        elif page == "Discover":
            render_discover_page(book_service, session)
        elif page == "Profile":
            render_profile_page(auth_service, stats_service, session)
    except DatabaseError as e:
        logger.error(f"Page '{page}' failed: {str(e)}", exc_info=True)
        st.error(GENERIC_FAILURE)


if __name__ == "__main__":
    main()
