# Reading status values stored on a book
STATUS_WANT_TO_READ = "want-to-read"
STATUS_CURRENTLY_READING = "currently-reading"
STATUS_COMPLETED = "completed"

BOOK_STATUSES = [
    STATUS_WANT_TO_READ,
    STATUS_CURRENTLY_READING,
    STATUS_COMPLETED,
]

STATUS_LABELS = {
    STATUS_WANT_TO_READ: "Want to Read",
    STATUS_CURRENTLY_READING: "Currently Reading",
    STATUS_COMPLETED: "Completed",
}

# Book columns a partial update may write; everything else is ignored
UPDATABLE_BOOK_FIELDS = [
    "title",
    "author",
    "cover_image",
    "description",
    "genre",
    "page_count",
    "current_page",
    "progress_percentage",
    "status",
    "rating",
    "is_favorite",
    "started_reading",
    "finished_reading",
]

MIN_RATING = 1
MAX_RATING = 5

# Fixed labels so monthly charts do not depend on the process locale
MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

# Subjects used to browse the Open Library catalog
CATALOG_GENRES = [
    "fiction",
    "fantasy",
    "science fiction",
    "mystery",
    "thriller",
    "romance",
    "historical fiction",
    "biography",
    "non-fiction",
    "poetry",
    "horror",
    "adventure",
]

# Page count assumed for catalog entries that do not report one
DEFAULT_CATALOG_PAGE_COUNT = 200
