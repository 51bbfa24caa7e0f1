"""
Configuration management for PageKeeper.
Uses environment variables with fallbacks for development.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
if env_path.exists():
    load_dotenv(dotenv_path=env_path)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on')


def get_env_int(key: str, default: int) -> int:
    """Get integer environment variable, falling back to default on bad input."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Database configuration
DB_PATH = os.getenv("DB_PATH", "data/pagekeeper.db")

# Authentication
SESSION_TTL_DAYS = get_env_int("SESSION_TTL_DAYS", 7)
PASSWORD_HASH_ITERATIONS = get_env_int("PASSWORD_HASH_ITERATIONS", 200000)
MIN_PASSWORD_LENGTH = 6

# Reading challenge defaults
DEFAULT_CHALLENGE_TARGET = get_env_int("DEFAULT_CHALLENGE_TARGET", 24)

# Open Library endpoints
OPEN_LIBRARY_SEARCH_URL = "https://openlibrary.org/search.json"
OPEN_LIBRARY_COVERS_URL = "https://covers.openlibrary.org/b"
CATALOG_TIMEOUT = get_env_int("CATALOG_TIMEOUT", 10)
CATALOG_MAX_RETRIES = get_env_int("CATALOG_MAX_RETRIES", 2)

# Debug and logging
DEBUG_MODE = get_env_bool("DEBUG_MODE", False)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_DIR = os.getenv("LOG_DIR", "data/logs")


def validate_config() -> None:
    """
    Validate configuration on application startup.
    Raises ValueError if required configuration is missing or invalid.
    """
    errors = []

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if LOG_LEVEL.upper() not in valid_log_levels:
        errors.append(f"Invalid LOG_LEVEL: '{LOG_LEVEL}'. Must be one of {valid_log_levels}")

    if SESSION_TTL_DAYS < 1:
        errors.append(f"SESSION_TTL_DAYS must be at least 1 (got {SESSION_TTL_DAYS})")

    if PASSWORD_HASH_ITERATIONS < 10000:
        errors.append("PASSWORD_HASH_ITERATIONS must be at least 10000")

    if DEFAULT_CHALLENGE_TARGET < 1:
        errors.append(
            f"DEFAULT_CHALLENGE_TARGET must be at least 1 (got {DEFAULT_CHALLENGE_TARGET})"
        )

    if not DB_PATH:
        errors.append("DB_PATH cannot be empty")

    if errors:
        error_message = "Configuration validation failed:\n" + "\n".join(f"  - {err}" for err in errors)
        raise ValueError(error_message)


# Validate on import (can be disabled by setting SKIP_CONFIG_VALIDATION=1)
if not get_env_bool("SKIP_CONFIG_VALIDATION", False):
    try:
        validate_config()
    except ValueError as e:
        # Print error but don't crash on import - let the application handle it
        if DEBUG_MODE:
            print(f"\n⚠️  Configuration Error:\n{e}\n")
            print("Set SKIP_CONFIG_VALIDATION=1 to bypass this check (not recommended)\n")
