# app/services/users.py
"""
User management helpers for local (username + password) accounts.

Responsibilities:
- Username validation and registration
- Credential checks with a per-username lockout after repeated failures
"""
from __future__ import annotations

import logging
import re
import time
from threading import Lock
from typing import Callable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import hash_password, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


class LoginLockedError(Exception):
    pass


class LoginAttemptTracker:
    """
    In-memory failed-login counter keyed by username.

    After `max_attempts` failures the username is locked until `lockout_seconds` have passed
    since the last failure. Process-local; a multi-instance deploy would need shared storage.
    """

    def __init__(
        self,
        max_attempts: int,
        lockout_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self._clock = clock
        self._attempts: dict[str, tuple[int, float]] = {}
        self._lock = Lock()

    def is_locked(self, username: str) -> bool:
        with self._lock:
            entry = self._attempts.get(username)
            if not entry:
                return False
            count, last = entry
            if count < self.max_attempts:
                return False
            if self._clock() - last < self.lockout_seconds:
                return True
            del self._attempts[username]
            return False

    def record_failure(self, username: str) -> None:
        with self._lock:
            count, _ = self._attempts.get(username, (0, 0.0))
            self._attempts[username] = (count + 1, self._clock())

    def clear(self, username: str) -> None:
        with self._lock:
            self._attempts.pop(username, None)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()


login_attempts = LoginAttemptTracker(
    settings.LOGIN_MAX_ATTEMPTS,
    settings.LOGIN_LOCKOUT_MINUTES * 60,
)


def normalize_username(raw: str) -> str:
    return (raw or "").strip()


def validate_username(username: str) -> str:
    name = normalize_username(username)
    if len(name) < settings.USERNAME_MIN_LENGTH or len(name) > settings.USERNAME_MAX_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Username must be between {settings.USERNAME_MIN_LENGTH} "
                f"and {settings.USERNAME_MAX_LENGTH} characters"
            ),
        )
    if not _USERNAME_RE.match(name):
        raise HTTPException(
            status_code=400,
            detail="Username can only contain letters, numbers, underscores, and hyphens",
        )
    return name


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Look up a user by username (exact match)."""
    return db.query(User).filter(User.username == normalize_username(username)).first()


def register_user(db: Session, username: str, password: str) -> User:
    name = validate_username(username)
    if len(password or "") < settings.PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters",
        )

    existing = get_user_by_username(db, name)
    if existing and existing.password_hash:
        raise HTTPException(status_code=409, detail="Username already exists")

    if existing:
        # Created implicitly by the log API; claim it.
        existing.password_hash = hash_password(password)
        user = existing
    else:
        user = User(username=name, password_hash=hash_password(password), is_active=True)
        db.add(user)

    db.commit()
    db.refresh(user)
    logger.info("Registered user id=%s", user.id)
    return user


def authenticate_user(
    db: Session,
    username: str,
    password: str,
    *,
    tracker: LoginAttemptTracker | None = None,
) -> User:
    attempts = tracker or login_attempts
    name = normalize_username(username)

    if attempts.is_locked(name):
        raise LoginLockedError(name)

    user = get_user_by_username(db, name)
    if not user or not user.password_hash or not verify_password(password, user.password_hash):
        attempts.record_failure(name)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User is inactive")

    attempts.clear(name)
    return user
