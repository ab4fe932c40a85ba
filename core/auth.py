"""
Authentication module for the job-hunting tracker.
Defines the auth boundary (sign in/up/out, account updates, session-change
events) with a hosted (Supabase) and a local (SQLite) implementation.
"""
import os
import re
import uuid
import hmac
import hashlib
import base64
import json
import logging
import sqlite3
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple

# Use passlib with PBKDF2-SHA256 for secure password hashing (no length limit)
from passlib.hash import pbkdf2_sha256
from pydantic import BaseModel

from backend.database import DB_PATH, get_connection

logger = logging.getLogger(__name__)

# Token expiry: 7 days in seconds
TOKEN_EXPIRY = 7 * 24 * 60 * 60

MIN_PASSWORD_LENGTH = 6

# Email validation regex
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def get_secret_key() -> str:
    """Get SECRET_KEY from environment. Raises if not set."""
    key = os.getenv("SECRET_KEY")
    if not key:
        raise ValueError(
            "SECRET_KEY environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
        )
    return key


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-SHA256."""
    return pbkdf2_sha256.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        return pbkdf2_sha256.verify(password, password_hash)
    except (ValueError, TypeError):
        return False


def validate_email(email: str) -> bool:
    """Validate email format."""
    return bool(EMAIL_REGEX.match(email))


def validate_password(password: str) -> Tuple[bool, str]:
    """
    Validate password strength.
    Returns (is_valid, error_message).
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"パスワードは{MIN_PASSWORD_LENGTH}文字以上にしてください"
    return True, ""


def validate_new_password(
    current_password: str, new_password: str, confirm_password: str
) -> Tuple[bool, str]:
    """Checks run before a password change reaches the auth backend."""
    if not current_password:
        return False, "現在のパスワードを入力してください"
    if not new_password or not confirm_password:
        return False, "新しいパスワードを入力してください"
    if new_password != confirm_password:
        return False, "新しいパスワードが一致しません"
    return validate_password(new_password)


def sign_token(user_id: str) -> str:
    """
    Create a signed token for a user.
    Token format: base64(json(payload)).signature
    """
    secret = get_secret_key()

    payload = {
        "user_id": user_id,
        "exp": int(time.time()) + TOKEN_EXPIRY,
        "iat": int(time.time()),
    }

    payload_json = json.dumps(payload, separators=(',', ':'))
    payload_b64 = base64.urlsafe_b64encode(payload_json.encode()).decode()

    signature = hmac.new(
        secret.encode(),
        payload_b64.encode(),
        hashlib.sha256
    ).hexdigest()

    return f"{payload_b64}.{signature}"


def verify_token(token: str) -> Optional[str]:
    """
    Verify a token and return the user_id if valid.
    Returns None if invalid or expired.
    """
    parts = token.split('.')
    if len(parts) != 2:
        return None

    payload_b64, signature = parts

    expected_sig = hmac.new(
        get_secret_key().encode(),
        payload_b64.encode(),
        hashlib.sha256
    ).hexdigest()

    if not hmac.compare_digest(signature, expected_sig):
        return None

    try:
        payload = json.loads(base64.urlsafe_b64decode(payload_b64.encode()).decode())
    except (ValueError, UnicodeDecodeError):
        return None

    if payload.get("exp", 0) < time.time():
        return None

    return payload.get("user_id")


# ============ Auth boundary ============

class AuthUser(BaseModel):
    """The signed-in user"""
    id: str
    email: str = ""


class AuthEvent(str, Enum):
    """Session-change events"""
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"


AuthListener = Callable[[AuthEvent, Optional[AuthUser]], None]


class AuthBackend(ABC):
    """Session provider: current user, sign in/up/out, account updates."""

    def __init__(self) -> None:
        self._listeners: List[AuthListener] = []

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        """Subscribe to session changes. Returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _emit(self, event: AuthEvent, user: Optional[AuthUser]) -> None:
        logger.info("Auth event %s", event.value)
        for listener in list(self._listeners):
            listener(event, user)

    @abstractmethod
    def get_user(self) -> Optional[AuthUser]:
        """The user of the current session, or None."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Tuple[Optional[AuthUser], str]:
        """Returns (user, error_message). user is None if failed."""

    @abstractmethod
    def sign_up(self, email: str, password: str) -> Tuple[Optional[AuthUser], str]:
        """Returns (user, error_message). user is None if failed."""

    @abstractmethod
    def sign_out(self) -> None:
        pass

    @abstractmethod
    def update_email(self, email: str) -> Tuple[bool, str]:
        pass

    @abstractmethod
    def update_password(self, password: str) -> Tuple[bool, str]:
        pass


class SupabaseAuth(AuthBackend):
    """Auth through the Supabase client; the client keeps the session."""

    _EVENTS = {event.value: event for event in AuthEvent}

    def __init__(self, client) -> None:
        super().__init__()
        self.client = client
        self._subscription = client.auth.on_auth_state_change(self._forward)

    def _forward(self, event: str, session) -> None:
        mapped = self._EVENTS.get(str(getattr(event, "value", event)))
        if mapped is None:
            return
        user = getattr(session, "user", None) if session else None
        self._emit(mapped, self._to_user(user))

    @staticmethod
    def _to_user(user) -> Optional[AuthUser]:
        if user is None:
            return None
        return AuthUser(id=str(user.id), email=user.email or "")

    def get_user(self) -> Optional[AuthUser]:
        try:
            response = self.client.auth.get_user()
        except Exception as e:
            logger.warning("Could not read Supabase session: %s", e)
            return None
        return self._to_user(response.user if response else None)

    def sign_in(self, email: str, password: str) -> Tuple[Optional[AuthUser], str]:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.info("Sign-in failed for %s: %s", email, e)
            return None, str(e) or "エラーが発生しました"
        return self._to_user(response.user), ""

    def sign_up(self, email: str, password: str) -> Tuple[Optional[AuthUser], str]:
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            logger.info("Sign-up failed for %s: %s", email, e)
            return None, str(e) or "エラーが発生しました"
        return self._to_user(response.user), ""

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            # The client may keep its session; this app session still ends
            logger.warning("Supabase sign-out failed: %s", e)
            self._emit(AuthEvent.SIGNED_OUT, None)

    def update_email(self, email: str) -> Tuple[bool, str]:
        try:
            self.client.auth.update_user({"email": email})
        except Exception as e:
            logger.error("Error updating email: %s", e)
            return False, "メールアドレスの更新に失敗しました"
        return True, ""

    def update_password(self, password: str) -> Tuple[bool, str]:
        try:
            self.client.auth.update_user({"password": password})
        except Exception as e:
            logger.error("Error updating password: %s", e)
            return False, "パスワードの更新に失敗しました"
        return True, ""


# ============ Local user database ============

def create_user(email: str, password: str, db_path: Path = DB_PATH) -> Tuple[Optional[str], str]:
    """
    Create a new user.
    Returns (user_id, error_message). user_id is None if failed.
    """
    email = email.lower().strip()
    if not validate_email(email):
        return None, "メールアドレスの形式が正しくありません"

    is_valid, error = validate_password(password)
    if not is_valid:
        return None, error

    user_id = str(uuid.uuid4())

    try:
        conn = get_connection(db_path)
    except (sqlite3.Error, OSError) as e:
        logger.error("Error opening user database: %s", e)
        return None, "エラーが発生しました"
    try:
        conn.execute(
            """
            INSERT INTO users (id, email, password_hash, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, email, hash_password(password), datetime.now(timezone.utc).isoformat())
        )
        conn.commit()
        return user_id, ""
    except sqlite3.IntegrityError:
        return None, "このメールアドレスは既に登録されています"
    except sqlite3.Error as e:
        logger.error("Error creating user: %s", e)
        return None, "エラーが発生しました"
    finally:
        conn.close()


def authenticate(email: str, password: str, db_path: Path = DB_PATH) -> Tuple[Optional[str], str]:
    """
    Authenticate a user by email and password.
    Returns (user_id, error_message). user_id is None if failed.
    """
    email = email.lower().strip()

    try:
        conn = get_connection(db_path)
        try:
            row = conn.execute(
                "SELECT id, password_hash FROM users WHERE email = ?",
                (email,)
            ).fetchone()
        finally:
            conn.close()
    except (sqlite3.Error, OSError) as e:
        logger.error("Error reading user database: %s", e)
        return None, "エラーが発生しました"

    if not row or not verify_password(password, row["password_hash"]):
        return None, "メールアドレスまたはパスワードが正しくありません"

    return row["id"], ""


def _lookup(sql: str, params: tuple, db_path: Path) -> Optional[sqlite3.Row]:
    """Run a one-row users query; an unreadable database counts as no row."""
    try:
        conn = get_connection(db_path)
        try:
            return conn.execute(sql, params).fetchone()
        finally:
            conn.close()
    except (sqlite3.Error, OSError) as e:
        logger.error("Error reading user database: %s", e)
        return None


def get_user_email(user_id: str, db_path: Path = DB_PATH) -> Optional[str]:
    """Get user email by ID."""
    row = _lookup("SELECT email FROM users WHERE id = ?", (user_id,), db_path)
    return row["email"] if row else None


def get_user_id(email: str, db_path: Path = DB_PATH) -> Optional[str]:
    """Get user ID by email."""
    row = _lookup("SELECT id FROM users WHERE email = ?", (email.lower().strip(),), db_path)
    return row["id"] if row else None


def user_exists(email: str, db_path: Path = DB_PATH) -> bool:
    """Check if a user with the given email exists."""
    row = _lookup("SELECT 1 FROM users WHERE email = ?", (email.lower().strip(),), db_path)
    return row is not None


class LocalAuth(AuthBackend):
    """Auth against the users table of the local SQLite database.

    The session is a signed token held by this object, one per browser
    session.
    """

    def __init__(self, db_path: Path = DB_PATH, token: Optional[str] = None) -> None:
        super().__init__()
        self.db_path = db_path
        self.token = token

    def get_user(self) -> Optional[AuthUser]:
        if not self.token:
            return None
        user_id = verify_token(self.token)
        email = get_user_email(user_id, self.db_path) if user_id else None
        if not email:
            # Token invalid, clear it
            self.token = None
            return None
        return AuthUser(id=user_id, email=email)

    def _start_session(self, user_id: str) -> AuthUser:
        self.token = sign_token(user_id)
        user = AuthUser(id=user_id, email=get_user_email(user_id, self.db_path) or "")
        self._emit(AuthEvent.SIGNED_IN, user)
        return user

    def sign_in(self, email: str, password: str) -> Tuple[Optional[AuthUser], str]:
        user_id, error = authenticate(email, password, self.db_path)
        if not user_id:
            return None, error
        return self._start_session(user_id), ""

    def sign_up(self, email: str, password: str) -> Tuple[Optional[AuthUser], str]:
        user_id, error = create_user(email, password, self.db_path)
        if not user_id:
            return None, error
        # Auto-login after signup
        return self._start_session(user_id), ""

    def sign_out(self) -> None:
        self.token = None
        self._emit(AuthEvent.SIGNED_OUT, None)

    def update_email(self, email: str) -> Tuple[bool, str]:
        user = self.get_user()
        if user is None:
            return False, "ログインが必要です"
        email = email.lower().strip()
        if not validate_email(email):
            return False, "メールアドレスの形式が正しくありません"

        try:
            conn = get_connection(self.db_path)
            try:
                conn.execute("UPDATE users SET email = ? WHERE id = ?", (email, user.id))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.IntegrityError:
            return False, "このメールアドレスは既に登録されています"
        except (sqlite3.Error, OSError) as e:
            logger.error("Error updating email: %s", e)
            return False, "メールアドレスの更新に失敗しました"

        self._emit(AuthEvent.USER_UPDATED, AuthUser(id=user.id, email=email))
        return True, ""

    def update_password(self, password: str) -> Tuple[bool, str]:
        user = self.get_user()
        if user is None:
            return False, "ログインが必要です"
        is_valid, error = validate_password(password)
        if not is_valid:
            return False, error

        try:
            conn = get_connection(self.db_path)
            try:
                conn.execute(
                    "UPDATE users SET password_hash = ? WHERE id = ?",
                    (hash_password(password), user.id),
                )
                conn.commit()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            logger.error("Error updating password: %s", e)
            return False, "パスワードの更新に失敗しました"
        return True, ""
