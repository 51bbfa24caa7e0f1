"""
Authentication and profile management for PageKeeper.

Passwords are stored as salted PBKDF2-SHA256 hashes. Sessions are opaque
random tokens persisted with an expiry time; callers receive a UserSession and
pass it explicitly to the services.
"""
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple, Any

import config
from database import Database, NotFoundError
from models import Profile, UserSession, UNSET
from validation import (
    ValidationError,
    validate_email,
    validate_password,
    validate_username,
    sanitize_string,
    MAX_USERNAME_LENGTH,
)
from logger import get_logger

logger = get_logger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"


class AuthenticationError(Exception):
    """Raised when credentials are rejected."""
    pass


def hash_password(password: str, salt: Optional[str] = None, iterations: Optional[int] = None) -> str:
    """Hash a password as 'pbkdf2_sha256$iterations$salt$hex'."""
    salt = salt or secrets.token_hex(16)
    iterations = iterations or config.PASSWORD_HASH_ITERATIONS
    digest = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt.encode('utf-8'), iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        algorithm, iterations, salt, _ = stored_hash.split('$', 3)
    except ValueError:
        logger.warning("Stored password hash has an unknown format")
        return False

    if algorithm != HASH_ALGORITHM:
        return False

    candidate = hash_password(password, salt=salt, iterations=int(iterations))
    return hmac.compare_digest(candidate, stored_hash)


def generate_token() -> str:
    """Generate a secure random session token."""
    return secrets.token_urlsafe(32)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Registers users, issues sessions and manages profiles."""

    def __init__(self, db: Database):
        self.db = db

    def _start_session(self, profile: Profile) -> UserSession:
        token = generate_token()
        expires_at = datetime.now() + timedelta(days=config.SESSION_TTL_DAYS)
        self.db.create_session(profile.id, token, expires_at)
        return UserSession(
            user_id=profile.id,
            token=token,
            email=profile.email,
            expires_at=expires_at,
        )

    def register(self, email: str, password: str, username: Optional[str] = None) -> Tuple[Profile, UserSession]:
        """
        Create an account and sign it in.

        Args:
            email: Login email, must be unique
            password: Plain-text password
            username: Display name, defaults to the local part of the email

        Returns:
            Tuple of (Profile, UserSession)

        Raises:
            ValidationError: If email, password or username is malformed
            AuthenticationError: If the email is already registered
        """
        errors = []
        for label, (valid, error) in (
            ("Email", validate_email(email)),
            ("Password", validate_password(password)),
            ("Username", validate_username(username)),
        ):
            if not valid:
                errors.append(f"{label}: {error}")
        if errors:
            raise ValidationError("; ".join(errors))

        email = _normalize_email(email)
        if self.db.email_exists(email):
            logger.warning(f"Registration rejected, email already registered: {email}")
            raise AuthenticationError("Email already registered")

        username = sanitize_string(username, MAX_USERNAME_LENGTH) if username else email.split('@')[0]
        profile = self.db.create_profile(email, hash_password(password), username)
        session = self._start_session(profile)

        logger.info(f"Registered new user {profile.id}")
        return profile, session

    def authenticate(self, email: str, password: str) -> Tuple[Profile, UserSession]:
        """
        Sign in with email and password.

        Raises:
            ValidationError: If email or password is missing
            AuthenticationError: If the credentials do not match
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        credentials = self.db.get_credentials(_normalize_email(email))
        if credentials is None:
            logger.info("Login failed: unknown email")
            raise AuthenticationError("Invalid email or password")

        profile, stored_hash = credentials
        if not verify_password(password, stored_hash):
            logger.info(f"Login failed for user {profile.id}: wrong password")
            raise AuthenticationError("Invalid email or password")

        session = self._start_session(profile)
        logger.info(f"User {profile.id} signed in")
        return profile, session

    def verify(self, token: str) -> Optional[Profile]:
        """Return the profile behind a session token, or None if the token is invalid or expired."""
        if not token:
            return None

        session = self.db.get_session(token)
        if session is None:
            logger.debug("Token verification failed: unknown token")
            return None

        if session.is_expired():
            logger.info(f"Session for user {session.user_id} has expired")
            self.db.delete_session(token)
            return None

        return self.db.get_profile(session.user_id)

    def resume_session(self, token: str) -> Optional[UserSession]:
        """Rebuild a UserSession from a stored token."""
        profile = self.verify(token)
        if profile is None:
            return None
        return self.db.get_session(token)

    def logout(self, session: UserSession) -> bool:
        removed = self.db.delete_session(session.token)
        if removed:
            logger.info(f"User {session.user_id} signed out")
        return removed

    # ==================== PROFILES ====================

    def get_profile(self, session: UserSession) -> Profile:
        profile = self.db.get_profile(session.user_id)
        if profile is None:
            raise NotFoundError(f"Profile {session.user_id} not found")
        return profile

    def update_profile(self, session: UserSession, username: Optional[str] = None, avatar_url: Any = UNSET) -> Profile:
        """
        Change the display name and/or avatar.

        A username of None leaves it unchanged. avatar_url=None clears the
        avatar; leaving it UNSET keeps the current one.
        """
        changes = {}
        if username is not None:
            valid, error = validate_username(username)
            if not valid:
                raise ValidationError(error)
            changes['username'] = sanitize_string(username, MAX_USERNAME_LENGTH)

        if avatar_url is not UNSET:
            if avatar_url is not None and not str(avatar_url).startswith(('http://', 'https://')):
                raise ValidationError("Avatar URL must be an http(s) URL")
            changes['avatar_url'] = avatar_url

        profile = self.db.update_profile(session.user_id, changes)
        if profile is None:
            raise NotFoundError(f"Profile {session.user_id} not found")
        return profile

    def delete_profile(self, session: UserSession) -> None:
        """Delete the account and everything it owns."""
        if not self.db.delete_profile(session.user_id):
            raise NotFoundError(f"Profile {session.user_id} not found")
        logger.info(f"Deleted account {session.user_id}")
