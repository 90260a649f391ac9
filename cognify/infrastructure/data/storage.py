"""
Local persistence for sessions, profile, theme and accounts.

Each key lives in its own JSON file under the work directory. Writes go to a
temporary file first and are swapped in with ``os.replace`` so a crash never
leaves a half-written file. Single user, single process.
"""
import os
import json
import hashlib
import logging
import secrets
import tempfile
import uuid
from typing import Any, List, Optional
from urllib.parse import quote

from pydantic import ValidationError

from ...config import (
    WORKDIR, SESSIONS_FILE, PROFILE_FILE, THEME_FILE, USER_FILE,
    REGISTERED_USERS_FILE, LAST_IDENTIFIER_FILE,
)
from ...interview.models import AuthUser, InterviewSession, RegisteredUser, UserProfile

logger = logging.getLogger("session_store")

AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=random&color=fff&bold=true"


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256(f"{salt}:{password}".encode("utf-8")).hexdigest()


class LocalStore:
    """JSON-file replacement for the browser's key/value storage."""

    def __init__(self, workdir: str = WORKDIR):
        self.workdir = workdir
        os.makedirs(self.workdir, exist_ok=True)

    def _path(self, filename: str) -> str:
        return os.path.join(self.workdir, filename)

    def _read(self, filename: str, default: Any = None) -> Any:
        path = self._path(filename)
        if not os.path.exists(path):
            return default
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt store file {path}: {e}")
            return default

    def _write(self, filename: str, data: Any) -> None:
        path = self._path(filename)
        fd, tmp_path = tempfile.mkstemp(dir=self.workdir, prefix=f".{filename}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        finally:
            # Left behind only when dump or replace failed
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def _remove(self, filename: str) -> None:
        path = self._path(filename)
        if os.path.exists(path):
            os.remove(path)

    # Sessions

    def save_session(self, session: InterviewSession) -> None:
        """Prepend a completed session to the history."""
        if not session.is_complete:
            raise ValueError(f"Refusing to save incomplete session {session.id}")
        sessions = self._read(SESSIONS_FILE, [])
        self._write(SESSIONS_FILE, [session.to_dict()] + sessions)
        logger.info(f"Saved session {session.id} ({len(sessions) + 1} total)")

    def get_sessions(self) -> List[InterviewSession]:
        """All saved sessions, most recent first. Unreadable entries are skipped."""
        sessions = []
        for raw in self._read(SESSIONS_FILE, []):
            try:
                sessions.append(InterviewSession.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable session {raw.get('id', '?')}: {e}")
        return sessions

    def get_session(self, session_id: str) -> Optional[InterviewSession]:
        for session in self.get_sessions():
            if session.id == session_id:
                return session
        return None

    # Profile and preferences

    def save_profile(self, profile: UserProfile) -> None:
        self._write(PROFILE_FILE, profile.to_dict())

    def get_profile(self) -> Optional[UserProfile]:
        data = self._read(PROFILE_FILE)
        if data is None:
            return None
        try:
            return UserProfile.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable profile: {e}")
            return None

    def save_theme(self, theme_id: str) -> None:
        self._write(THEME_FILE, theme_id)

    def get_theme(self) -> Optional[str]:
        return self._read(THEME_FILE)

    def save_user(self, user: Optional[AuthUser]) -> None:
        """Store the signed-in user, or sign out with ``None``."""
        if user is None:
            self._remove(USER_FILE)
            return
        self._write(USER_FILE, user.to_dict())
        self._write(LAST_IDENTIFIER_FILE, user.email)

    def get_user(self) -> Optional[AuthUser]:
        data = self._read(USER_FILE)
        return AuthUser.model_validate(data) if data else None

    def get_last_identifier(self) -> Optional[str]:
        return self._read(LAST_IDENTIFIER_FILE)

    # Accounts

    def get_registered_users(self) -> List[RegisteredUser]:
        return [RegisteredUser.model_validate(u) for u in self._read(REGISTERED_USERS_FILE, [])]

    def is_identifier_available(self, identifier: str) -> bool:
        return not any(u.email == identifier or u.phone == identifier for u in self.get_registered_users())

    def register_user(self, name: str, email: str, phone: str, password: str) -> Optional[AuthUser]:
        """
        Create a local account.

        Returns:
            The public user record, or None when the email or phone is taken
        """
        users = self.get_registered_users()
        if any(u.email == email for u in users) or any(u.phone == phone for u in users):
            logger.info("Registration rejected: identifier already in use")
            return None

        salt = secrets.token_hex(8)
        user = RegisteredUser(
            id=uuid.uuid4().hex[:9],
            name=name,
            email=email,
            phone=phone,
            picture=AVATAR_URL.format(name=quote(name)),
            password_hash=hash_password(password, salt),
            password_salt=salt,
        )
        self._write(REGISTERED_USERS_FILE, [u.to_dict() for u in users + [user]])
        logger.info(f"Registered user {user.id}")
        return user.public()

    def login(self, identifier: str, password: str) -> Optional[AuthUser]:
        """Match by email or phone plus password; None when nothing matches."""
        for user in self.get_registered_users():
            if identifier in (user.email, user.phone) and \
                    secrets.compare_digest(user.password_hash, hash_password(password, user.password_salt)):
                return user.public()
        return None
