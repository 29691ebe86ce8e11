import logging
import re
import time
import uuid
from typing import Callable

from fastapi import HTTPException, Request
from jose import JWTError, jwt

from interview_coach.core.config import Settings
from interview_coach.db.repo import AuthUser, Repository, UserProfile, hash_password

logger = logging.getLogger("interview_coach.auth")

MIN_PASSWORD_LENGTH = 6
TOKEN_TTL_SEC = 7 * 24 * 60 * 60
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthError(ValueError):
    pass


class AuthService:
    def __init__(self, repo: Repository, settings: Settings, clock: Callable[[], float] | None = None):
        self.repo = repo
        self.settings = settings
        self._clock = clock or time.time

    def _issue_token(self, user_id: str) -> str:
        issued_at = self._clock()
        self.repo.set_current_session(user_id, issued_at)
        claims = {
            "sub": str(user_id),
            "iat": int(issued_at),
            "exp": int(issued_at + TOKEN_TTL_SEC),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, self.settings.auth_secret, algorithm="HS256")

    def signup(self, name: str, email: str, password: str) -> tuple[UserProfile, str]:
        email = str(email or "").strip().lower()
        name = str(name or "").strip()
        if not name:
            raise AuthError("Name is required.")
        if not _EMAIL_RE.match(email):
            raise AuthError("Please enter a valid email address.")
        if len(str(password or "")) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
        if self.repo.find_user(email) is not None:
            raise AuthError("Email already registered.")

        user_id = uuid.uuid4().hex
        self.repo.save_user(AuthUser(id=user_id, email=email, password_hash=hash_password(password)))
        profile = self.repo.update_profile(
            UserProfile(id=user_id, name=name, email=email, headline="New Candidate")
        )
        logger.info("signup | user_id=%s", user_id)
        return profile, self._issue_token(user_id)

    def login(self, email: str, password: str) -> tuple[UserProfile, str]:
        found = self.repo.find_user(str(email or "").strip().lower())
        if found is None:
            raise AuthError("No account found with this email.")
        if hash_password(password) != found.password_hash:
            raise AuthError("Invalid password. Please try again.")
        return self.repo.get_profile(found.id), self._issue_token(found.id)

    def reset_password(self, email: str, new_password: str) -> None:
        if len(str(new_password or "")) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if not self.repo.update_password(str(email or "").strip().lower(), hash_password(new_password)):
            raise AuthError("No account found with this email address.")

    def _decode(self, token: str) -> dict:
        try:
            payload = jwt.decode(token, self.settings.auth_secret, algorithms=["HS256"])
        except JWTError:
            raise HTTPException(401, "Invalid token")

        payload = payload or {}
        if not payload.get("sub") or not payload.get("jti"):
            raise HTTPException(401, "Invalid token")
        if self.repo.is_token_revoked(payload["jti"]):
            raise HTTPException(401, "Token has been revoked")
        return payload

    def logout(self, token: str) -> str:
        """Revoke the bearer token and clear the current-session pointer it owns."""
        payload = self._decode(token)
        user_id = str(payload["sub"])
        self.repo.revoke_token(payload["jti"], float(payload.get("exp") or self._clock() + TOKEN_TTL_SEC))
        current = self.repo.get_current_session()
        if current is not None and current.user_id == user_id:
            self.repo.clear_current_session()
        logger.info("logout | user_id=%s", user_id)
        return user_id

    def resolve_user_id(self, token: str) -> str:
        return str(self._decode(token)["sub"])


def get_bearer_token(request: Request) -> str:
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        raise HTTPException(401, "Unauthorized")
    return auth.replace("Bearer ", "", 1)
