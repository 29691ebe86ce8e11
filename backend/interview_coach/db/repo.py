import hashlib
import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from interview_coach.db.store import JsonKeyValueStore
from interview_coach.interview.models import InterviewSession

USER_PROFILE_KEY = "hireai_user_profile"
INTERVIEW_HISTORY_KEY = "hireai_interview_history"
AUTH_USERS_KEY = "hireai_auth_users"
CURRENT_USER_KEY = "hireai_current_user"
REVOKED_TOKENS_KEY = "hireai_revoked_tokens"

HISTORY_LIMIT = 50


class UserProfile(BaseModel):
    id: str
    name: str = "User"
    email: str = ""
    headline: str = "Candidate"
    skills: list[str] = Field(default_factory=list)
    bio: str = ""
    avatar: str = "👤"


class AuthUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    password_hash: str = Field(alias="passwordHash")


class CurrentSession(BaseModel):
    user_id: str
    issued_at: float


def hash_password(password: str) -> str:
    return hashlib.sha256(str(password).encode("utf-8")).hexdigest()


class Repository:
    """Profiles, interview history and credentials on top of the key-value store."""

    def __init__(self, store: JsonKeyValueStore):
        self.store = store

    # ---------- profiles ----------

    def get_profile(self, user_id: str) -> UserProfile:
        data = self.store.get(f"{USER_PROFILE_KEY}_{user_id}")
        if isinstance(data, dict):
            return UserProfile.model_validate(data)
        return UserProfile(id=str(user_id))

    def update_profile(self, profile: UserProfile) -> UserProfile:
        self.store.set(f"{USER_PROFILE_KEY}_{profile.id}", profile.model_dump())
        return profile

    # ---------- history ----------

    def get_history(self, user_id: str) -> list[InterviewSession]:
        rows = self.store.get(f"{INTERVIEW_HISTORY_KEY}_{user_id}", [])
        return [InterviewSession.model_validate(row) for row in rows if isinstance(row, dict)]

    def save_interview_session(self, user_id: str, session: InterviewSession) -> None:
        key = f"{INTERVIEW_HISTORY_KEY}_{user_id}"
        rows = [row for row in self.store.get(key, []) if isinstance(row, dict)]
        rows = [row for row in rows if str(row.get("id")) != session.id]
        rows.insert(0, session.model_dump(by_alias=True, mode="json"))
        self.store.set(key, rows[:HISTORY_LIMIT])

    # ---------- credentials ----------

    def get_users(self) -> list[AuthUser]:
        rows = self.store.get(AUTH_USERS_KEY, [])
        return [AuthUser.model_validate(row) for row in rows if isinstance(row, dict)]

    def find_user(self, email: str) -> Optional[AuthUser]:
        return next((user for user in self.get_users() if user.email == email), None)

    def save_user(self, user: AuthUser) -> None:
        users = self.get_users()
        for index, existing in enumerate(users):
            if existing.email == user.email:
                users[index] = user
                break
        else:
            users.append(user)
        self.store.set(AUTH_USERS_KEY, [item.model_dump(by_alias=True) for item in users])

    def update_password(self, email: str, new_password_hash: str) -> bool:
        users = self.get_users()
        target = next((user for user in users if user.email == email), None)
        if target is None:
            return False
        target.password_hash = new_password_hash
        self.store.set(AUTH_USERS_KEY, [item.model_dump(by_alias=True) for item in users])
        return True

    # ---------- current session pointer ----------

    def set_current_session(self, user_id: str, issued_at: float | None = None) -> CurrentSession:
        pointer = CurrentSession(user_id=str(user_id), issued_at=float(issued_at or time.time()))
        self.store.set(CURRENT_USER_KEY, pointer.model_dump())
        return pointer

    def get_current_session(self) -> Optional[CurrentSession]:
        data = self.store.get(CURRENT_USER_KEY)
        return CurrentSession.model_validate(data) if isinstance(data, dict) else None

    def clear_current_session(self) -> None:
        self.store.remove(CURRENT_USER_KEY)

    # ---------- revoked bearer tokens ----------

    def revoke_token(self, token_id: str, expires_at: float) -> None:
        now = time.time()
        revoked = {
            key: value
            for key, value in (self.store.get(REVOKED_TOKENS_KEY) or {}).items()
            if float(value) > now
        }
        revoked[str(token_id)] = float(expires_at)
        self.store.set(REVOKED_TOKENS_KEY, revoked)

    def is_token_revoked(self, token_id: str) -> bool:
        return str(token_id) in (self.store.get(REVOKED_TOKENS_KEY) or {})
